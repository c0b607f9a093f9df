from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, RootModel
from pydantic.alias_generators import to_camel


class _Record(BaseModel):
    """Immutable record with camelCase wire names"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class ExtractedField(_Record):
    value: str
    confidence: int = Field(ge=0, le=100)


class ExtractedFields(RootModel[Dict[str, ExtractedField]]):
    """
    Named fields read off one document.

    Keys use the extractor's names (documentType, dateOfBirth, mrzLine1, ...).
    A key that is missing means the field was not extracted at all.
    """

    model_config = ConfigDict(frozen=True)

    root: Dict[str, ExtractedField] = Field(default_factory=dict)

    def get(self, name: str) -> Optional[ExtractedField]:
        return self.root.get(name)

    def value(self, name: str) -> Optional[str]:
        """Return the field value, or None when absent or empty"""
        field = self.root.get(name)
        if field is None or not field.value:
            return None
        return field.value

    def items(self) -> Iterator[Tuple[str, ExtractedField]]:
        return iter(self.root.items())

    def low_confidence(self, threshold: int) -> List[str]:
        """Names of present fields whose confidence is below threshold"""
        return [name for name, field in self.root.items() if field.confidence < threshold]

    def __len__(self) -> int:
        return len(self.root)


class ApplicantClaim(_Record):
    """Applicant-declared data used as ground truth for comparison"""

    name: Optional[str] = None
    date_of_birth: Optional[str] = None
    passport_number: Optional[str] = None
    nationality: Optional[str] = None
    intended_visa_type: Optional[str] = None


class CheckField(str, Enum):
    EXPIRY_DATE = "expiryDate"
    ISSUE_DATE = "issueDate"
    NAME = "name"
    DATE_OF_BIRTH = "dateOfBirth"
    AGE = "age"
    DOCUMENT_NUMBER = "documentNumber"
    NATIONALITY = "nationality"
    MRZ_CHECKSUM = "mrzChecksum"
    DOCUMENT_TYPE = "documentType"
    CONFIDENCE = "confidence"


class ValidationCheck(_Record):
    model_config = ConfigDict(use_enum_values=True)

    field: CheckField
    passed: bool
    message: str


class EligibilityResult(_Record):
    eligible: bool
    reason: str
    visa_type: Optional[str] = None


class VerificationResult(_Record):
    overall_confidence: int = Field(ge=0, le=100)
    extracted_fields: ExtractedFields
    validation_checks: List[ValidationCheck]
    eligibility_assessment: EligibilityResult
    recommended_actions: List[str]
    summary: str

    def to_response(self) -> Dict:
        """JSON-ready dict with camelCase keys"""
        return self.model_dump(mode="json", by_alias=True)
