from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    # OpenAI Configuration
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o"
    OPENAI_MAX_TOKENS: int = 1500

    # Field confidence (0-100 scale reported by the extractor)
    MIN_FIELD_CONFIDENCE: int = 60
    MAX_LOW_CONFIDENCE_FIELDS: int = 3

    # Document validation
    NAME_SIMILARITY_THRESHOLD: float = 0.7
    EXPIRY_WARNING_MONTHS: int = 6
    MIN_APPLICANT_AGE: int = 18
    MAX_APPLICANT_AGE: int = 120

    # Eligibility
    MIN_PASS_RATE: float = 0.7
    DEFAULT_VISA_TYPE: str = "tourist"
    # Optional YAML file overriding VISA_POLICIES below
    VISA_POLICY_FILE: Optional[str] = None

    # Aggregation
    FIELD_CONFIDENCE_WEIGHT: float = 0.6
    DEFAULT_FIELD_CONFIDENCE: float = 50
    DEFAULT_VALIDATION_SCORE: float = 70
    MANUAL_REVIEW_FAILURE_COUNT: int = 3

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()

# Visa policies keyed by lower-cased visa type
VISA_POLICIES = {
    "tourist": {
        "min_age": 18,
        "min_passport_validity_months": 6,
        "requires_valid_passport": True
    },
    "business": {
        "min_age": 21,
        "min_passport_validity_months": 6,
        "requires_valid_passport": True
    },
    "student": {
        "min_age": 16,
        "max_age": 35,
        "min_passport_validity_months": 12,
        "requires_valid_passport": True
    },
    "work": {
        "min_age": 18,
        "max_age": 65,
        "min_passport_validity_months": 12,
        "requires_valid_passport": True
    },
    "transit": {
        "min_age": 18,
        "min_passport_validity_months": 3,
        "requires_valid_passport": True
    }
}

# Fields requested from the vision model, in prompt order
EXTRACTION_FIELDS = [
    "documentType", "documentNumber", "firstName", "lastName", "fullName",
    "dateOfBirth", "nationality", "issuingCountry", "issueDate", "expiryDate",
    "sex", "placeOfBirth", "mrzLine1", "mrzLine2", "mrzLine3"
]

# Fields whose heuristic confidence starts higher when the model omits one
HIGH_PRIORITY_FIELDS = ["documentNumber", "dateOfBirth", "expiryDate", "nationality"]

# Lower-cased so comparison is case-insensitive
VALID_DOCUMENT_TYPES = {"passport", "visa", "nationalid", "drivinglicense"}

# A failure on any of these blocks eligibility when a valid passport is required
CRITICAL_CHECK_FIELDS = {"expiryDate", "documentNumber", "dateOfBirth", "name"}

# MRZ character class: uppercase Latin letters, digits and the '<' filler
MRZ_CHARSET_REGEX = r"^[A-Z0-9<]+$"

# TD-3 (passport): 2 lines x 44, TD-1 (ID card): 3 lines x 30
TD3_LINE_LENGTH = 44
TD1_LINE_LENGTH = 30
