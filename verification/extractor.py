import json
import logging
import re
from typing import Any, Dict, Optional

from openai import OpenAI, OpenAIError
from config import settings, EXTRACTION_FIELDS, HIGH_PRIORITY_FIELDS
from .models import ExtractedField, ExtractedFields
from .utils import to_data_url

logger = logging.getLogger(__name__)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class ExtractionError(Exception):
    """Raised when the vision analysis could not be obtained"""


def safe_json_parse(text: str) -> Dict[str, Any]:
    """Safely parse JSON from LLM response"""
    match = re.search(r"\{.*\}", text or "", re.DOTALL)
    if not match:
        raise ValueError("No JSON found in model output")
    parsed = json.loads(match.group())
    if not isinstance(parsed, dict):
        raise ValueError("Model output is not a JSON object")
    return parsed


def estimate_confidence(field_name: str, value: str) -> int:
    """Heuristic confidence for a value the model returned without a score"""
    if not value or not value.strip():
        return 0

    base = 85 if field_name in HIGH_PRIORITY_FIELDS else 80

    if "date" in field_name.lower():
        return base if _ISO_DATE.match(value) else base - 20

    if "mrz" in field_name.lower():
        return base if len(value) > 20 else base - 30

    return base


def _coerce_confidence(raw: Any) -> int:
    try:
        confidence = float(raw)
    except (TypeError, ValueError):
        return 0
    return max(0, min(100, int(round(confidence))))


def parse_vision_analysis(text: str) -> ExtractedFields:
    """
    Convert the model's JSON answer into ExtractedFields.

    Accepts {"field": {"value": ..., "confidence": ...}} pairs as well as flat
    {"field": "value"} entries, which get a heuristic confidence. Output that
    cannot be parsed yields no fields.
    """
    try:
        parsed = safe_json_parse(text)
    except ValueError as e:
        logger.warning("Failed to parse vision analysis: %s", e)
        return ExtractedFields()

    fields: Dict[str, ExtractedField] = {}
    for key, raw in parsed.items():
        if isinstance(raw, dict):
            if "value" not in raw or "confidence" not in raw:
                logger.debug("Skipping structured field without value/confidence: %s", key)
                continue
            value = raw.get("value")
            fields[key] = ExtractedField(
                value="" if value is None else str(value),
                confidence=_coerce_confidence(raw.get("confidence"))
            )
        elif raw is not None and raw != "":
            value = str(raw)
            fields[key] = ExtractedField(value=value, confidence=estimate_confidence(key, value))

    return ExtractedFields(fields)


class DocumentExtractor:
    """
    Extracts structured fields from identity document images using OpenAI Vision
    """

    def __init__(self, client: Optional[Any] = None, model: Optional[str] = None):
        self.client = client or OpenAI(api_key=settings.OPENAI_API_KEY)
        self.model = model or settings.OPENAI_MODEL
        self.max_tokens = settings.OPENAI_MAX_TOKENS

    def get_extraction_prompt(self) -> str:
        field_lines = ",\n".join(
            f'  "{name}": {{"value": "string", "confidence": 0-100}}' for name in EXTRACTION_FIELDS
        )

        return f"""
You are an expert document analyzer specializing in passports, visas, national IDs, and driving licenses.
Analyze this government-issued document image and extract ALL visible information.
Return STRICT JSON only.

Expected format:
{{
{field_lines}
}}

Rules:
- documentType is one of passport|visa|nationalId|drivingLicense|other
- Dates in YYYY-MM-DD
- nationality and issuingCountry as 3-letter codes if available
- sex is M|F|X
- MRZ lines exactly as printed, using '<' for filler characters
- confidence is 0-100 for each field
- If a field is not visible or unclear, set value to null and confidence to 0
"""

    def extract(self, image_bytes: bytes) -> ExtractedFields:
        """Extract fields from a JPEG document image"""

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": self.get_extraction_prompt()},
                            {
                                "type": "image_url",
                                "image_url": {
                                    "url": to_data_url(image_bytes)
                                }
                            }
                        ]
                    }
                ],
                max_tokens=self.max_tokens,
                temperature=0
            )
        except OpenAIError as e:
            raise ExtractionError(f"Vision analysis failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        fields = parse_vision_analysis(content or "{}")
        logger.info("Extracted %d fields from document image", len(fields))
        return fields
