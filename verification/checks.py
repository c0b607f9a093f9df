import logging
from datetime import datetime
from typing import List, Optional

from config import settings, VALID_DOCUMENT_TYPES
from .dates import add_months, age_in_years, parse_date
from .models import ApplicantClaim, CheckField, ExtractedFields, ValidationCheck
from .mrz import MrzVerdict, check_mrz_structure
from .similarity import similarity

logger = logging.getLogger(__name__)


class DocumentValidator:
    """
    Runs the ordered validation rules over extracted document fields.

    Each rule emits nothing when its inputs are missing. The output order is
    the rule order; a field name may appear more than once.
    """

    def __init__(self,
                 name_similarity_threshold: float = settings.NAME_SIMILARITY_THRESHOLD,
                 expiry_warning_months: int = settings.EXPIRY_WARNING_MONTHS,
                 min_age: int = settings.MIN_APPLICANT_AGE,
                 max_age: int = settings.MAX_APPLICANT_AGE,
                 min_field_confidence: int = settings.MIN_FIELD_CONFIDENCE):
        self.name_similarity_threshold = name_similarity_threshold
        self.expiry_warning_months = expiry_warning_months
        self.min_age = min_age
        self.max_age = max_age
        self.min_field_confidence = min_field_confidence

    def validate(self,
                 fields: ExtractedFields,
                 claim: ApplicantClaim,
                 now: Optional[datetime] = None) -> List[ValidationCheck]:
        """Run every rule in order and return the emitted checks"""
        now = now or datetime.now()
        checks: List[ValidationCheck] = []

        checks.extend(self._check_expiry(fields, now))
        checks.extend(self._check_issue_date(fields, now))
        checks.extend(self._check_name(fields, claim))
        checks.extend(self._check_date_of_birth(fields, claim, now))
        checks.extend(self._check_exact_match(
            CheckField.DOCUMENT_NUMBER, "Document number",
            fields.value("documentNumber"), claim.passport_number
        ))
        checks.extend(self._check_exact_match(
            CheckField.NATIONALITY, "Nationality",
            fields.value("nationality"), claim.nationality
        ))
        checks.extend(self._check_mrz(fields))
        checks.extend(self._check_document_type(fields))
        checks.append(self._check_confidence(fields))

        return checks

    def _check_expiry(self, fields: ExtractedFields, now: datetime) -> List[ValidationCheck]:
        """Check if the document is expired or expires soon"""
        raw = fields.value("expiryDate")
        if not raw:
            return []

        expiry = parse_date(raw)
        if expiry is None:
            return [ValidationCheck(
                field=CheckField.EXPIRY_DATE,
                passed=False,
                message="Invalid expiry date format"
            )]

        is_expired = expiry < now
        checks = [ValidationCheck(
            field=CheckField.EXPIRY_DATE,
            passed=not is_expired,
            message=f"Document expired on {raw}" if is_expired else f"Document valid until {raw}"
        )]

        # Informational only; does not count as a failure
        if not is_expired and expiry < add_months(now, self.expiry_warning_months):
            checks.append(ValidationCheck(
                field=CheckField.EXPIRY_DATE,
                passed=True,
                message=f"Warning: Document expires within {self.expiry_warning_months} months"
            ))

        return checks

    def _check_issue_date(self, fields: ExtractedFields, now: datetime) -> List[ValidationCheck]:
        raw = fields.value("issueDate")
        if not raw:
            return []

        issued = parse_date(raw)
        if issued is None:
            return [ValidationCheck(
                field=CheckField.ISSUE_DATE,
                passed=False,
                message="Invalid issue date format"
            )]

        is_valid = issued < now
        return [ValidationCheck(
            field=CheckField.ISSUE_DATE,
            passed=is_valid,
            message=f"Document issued on {raw}" if is_valid else "Issue date is in the future"
        )]

    def _check_name(self, fields: ExtractedFields, claim: ApplicantClaim) -> List[ValidationCheck]:
        """Fuzzy match the document name against the claimed name"""
        full_name = fields.value("fullName")
        first_name = fields.value("firstName")
        if not claim.name or not (full_name or first_name):
            return []

        display_name = full_name or f"{first_name} {fields.value('lastName') or ''}"
        extracted = display_name.strip().lower()
        claimed = claim.name.strip().lower()

        names_match = (
            claimed in extracted
            or extracted in claimed
            or similarity(extracted, claimed) > self.name_similarity_threshold
        )

        return [ValidationCheck(
            field=CheckField.NAME,
            passed=names_match,
            message="Name matches application" if names_match else
            f'Name mismatch: Document shows "{full_name or extracted}", application shows "{claim.name}"'
        )]

    def _check_date_of_birth(self,
                             fields: ExtractedFields,
                             claim: ApplicantClaim,
                             now: datetime) -> List[ValidationCheck]:
        """Exact DOB comparison followed by the applicant age band"""
        extracted_dob = fields.value("dateOfBirth")
        if not claim.date_of_birth or not extracted_dob:
            return []

        # Exact string comparison; no date normalization
        dob_match = claim.date_of_birth == extracted_dob
        checks = [ValidationCheck(
            field=CheckField.DATE_OF_BIRTH,
            passed=dob_match,
            message="Date of birth matches application" if dob_match else
            f'DOB mismatch: Document shows "{extracted_dob}", application shows "{claim.date_of_birth}"'
        )]

        dob = parse_date(extracted_dob)
        if dob is None:
            checks.append(ValidationCheck(
                field=CheckField.DATE_OF_BIRTH,
                passed=False,
                message="Invalid date of birth format"
            ))
            return checks

        age = age_in_years(dob, now)
        age_ok = self.min_age <= age < self.max_age
        if age_ok:
            message = f"Applicant age: {age} years"
        elif age < self.min_age:
            message = f"Applicant is under {self.min_age} - may require guardian"
        else:
            message = "Invalid age calculated"

        checks.append(ValidationCheck(field=CheckField.AGE, passed=age_ok, message=message))
        return checks

    def _check_exact_match(self,
                           field: CheckField,
                           label: str,
                           extracted: Optional[str],
                           claimed: Optional[str]) -> List[ValidationCheck]:
        """Case- and whitespace-insensitive equality of an identifier"""
        if not extracted or not claimed:
            return []

        matches = extracted.strip().upper() == claimed.strip().upper()
        return [ValidationCheck(
            field=field,
            passed=matches,
            message=f"{label} matches application" if matches else
            f'{label} mismatch: Document shows "{extracted}", application shows "{claimed}"'
        )]

    def _check_mrz(self, fields: ExtractedFields) -> List[ValidationCheck]:
        line1 = fields.value("mrzLine1")
        line2 = fields.value("mrzLine2")
        if not line1 or not line2:
            return []

        try:
            verdict = check_mrz_structure(line1, line2, fields.value("mrzLine3"))
        except (TypeError, ValueError) as e:
            logger.warning("MRZ structure check failed, treating as unverified: %s", e)
            verdict = MrzVerdict.unverifiable(str(e))

        if not verdict.verified:
            message = f"MRZ could not be verified ({verdict.reason})"
        elif verdict.passed:
            message = "MRZ checksum validation passed"
        else:
            message = "MRZ checksum validation failed - possible forgery or OCR error"

        return [ValidationCheck(field=CheckField.MRZ_CHECKSUM, passed=verdict.passed, message=message)]

    def _check_document_type(self, fields: ExtractedFields) -> List[ValidationCheck]:
        document_type = fields.value("documentType")
        if not document_type:
            return []

        is_valid = document_type.lower() in VALID_DOCUMENT_TYPES
        return [ValidationCheck(
            field=CheckField.DOCUMENT_TYPE,
            passed=is_valid,
            message=f"Document type: {document_type}" if is_valid else "Unrecognized document type"
        )]

    def _check_confidence(self, fields: ExtractedFields) -> ValidationCheck:
        """Always emitted last"""
        low_confidence = fields.low_confidence(self.min_field_confidence)
        if low_confidence:
            return ValidationCheck(
                field=CheckField.CONFIDENCE,
                passed=False,
                message=f"Low confidence in fields: {', '.join(low_confidence)} - manual review recommended"
            )
        return ValidationCheck(
            field=CheckField.CONFIDENCE,
            passed=True,
            message="All extracted fields have acceptable confidence scores"
        )
