import logging
from datetime import datetime
from typing import List, Optional

from config import settings, CRITICAL_CHECK_FIELDS
from .dates import add_months, age_in_years, parse_date
from .models import ApplicantClaim, EligibilityResult, ExtractedFields, ValidationCheck
from .policies import PolicyTable, default_policy_table

logger = logging.getLogger(__name__)


class EligibilityEngine:
    """
    Decides visa eligibility from extracted fields and validation checks

    Rules, first rejection wins:
    - critical check failed (expiry, document number, DOB, name) → reject
    - age outside the policy bounds or not verifiable → reject
    - passport not valid long enough or not verifiable → reject
    - nationality not allowed / denied → reject
    - too many low-confidence fields → reject
    - validation pass rate too low → reject
    - otherwise → eligible
    """

    def __init__(self,
                 policies: Optional[PolicyTable] = None,
                 min_field_confidence: int = settings.MIN_FIELD_CONFIDENCE,
                 max_low_confidence_fields: int = settings.MAX_LOW_CONFIDENCE_FIELDS,
                 min_pass_rate: float = settings.MIN_PASS_RATE):
        self.policies = policies or default_policy_table()
        self.min_field_confidence = min_field_confidence
        self.max_low_confidence_fields = max_low_confidence_fields
        self.min_pass_rate = min_pass_rate

    def assess(self,
               fields: ExtractedFields,
               claim: ApplicantClaim,
               checks: List[ValidationCheck],
               now: Optional[datetime] = None) -> EligibilityResult:
        now = now or datetime.now()
        requested = claim.intended_visa_type or self.policies.default_visa_type
        policy = self.policies.resolve(requested)
        visa_type = policy.visa_type

        # Critical validations
        critical_failures = [
            check for check in checks
            if check.field in CRITICAL_CHECK_FIELDS and not check.passed
        ]
        if policy.requires_valid_passport and critical_failures:
            return self._reject(
                f"Critical validation failures: {'; '.join(c.message for c in critical_failures)}",
                requested
            )

        # Age requirements
        raw_dob = fields.value("dateOfBirth")
        if raw_dob:
            dob = parse_date(raw_dob)
            if dob is None:
                return self._reject("Unable to verify age - invalid date of birth", visa_type)

            age = age_in_years(dob, now)
            if age < policy.min_age:
                return self._reject(
                    f"Applicant age ({age}) is below minimum age requirement "
                    f"({policy.min_age}) for {visa_type} visa",
                    visa_type
                )
            if policy.max_age is not None and age > policy.max_age:
                return self._reject(
                    f"Applicant age ({age}) exceeds maximum age requirement "
                    f"({policy.max_age}) for {visa_type} visa",
                    visa_type
                )

        # Passport validity period
        raw_expiry = fields.value("expiryDate")
        if raw_expiry:
            expiry = parse_date(raw_expiry)
            if expiry is None:
                return self._reject("Unable to verify passport validity period", visa_type)

            required_valid_until = add_months(now, policy.min_passport_validity_months)
            if expiry < required_valid_until:
                return self._reject(
                    f"Passport must be valid for at least {policy.min_passport_validity_months} "
                    f"months from today. Current expiry: {raw_expiry}",
                    visa_type
                )

        # Nationality restrictions
        raw_nationality = fields.value("nationality")
        if raw_nationality:
            nationality = raw_nationality.upper()
            if policy.allowed_nationalities is not None and nationality not in policy.allowed_nationalities:
                return self._reject(
                    f"Nationality {nationality} is not eligible for {visa_type} visa",
                    visa_type
                )
            if policy.denied_nationalities is not None and nationality in policy.denied_nationalities:
                return self._reject(
                    f"Nationality {nationality} is not eligible for {visa_type} visa "
                    f"due to policy restrictions",
                    visa_type
                )

        # Extraction quality
        low_confidence = fields.low_confidence(self.min_field_confidence)
        if len(low_confidence) > self.max_low_confidence_fields:
            return self._reject(
                "Document quality insufficient - too many low-confidence field extractions. "
                "Manual review required.",
                visa_type
            )

        # Overall validation pass rate; no checks means nothing failed
        if checks:
            pass_rate = sum(1 for c in checks if c.passed) / len(checks)
            if pass_rate < self.min_pass_rate:
                return self._reject(
                    f"Insufficient validation pass rate ({round(pass_rate * 100)}%). "
                    f"Multiple checks failed.",
                    visa_type
                )

        return EligibilityResult(
            eligible=True,
            reason=f"Applicant meets all eligibility requirements for {visa_type} visa. "
                   f"Document is valid and all required fields verified.",
            visa_type=visa_type
        )

    def _reject(self, reason: str, visa_type: str) -> EligibilityResult:
        # reason may quote document values, keep it out of the log
        logger.info("Eligibility rejected for %s visa", visa_type)
        return EligibilityResult(eligible=False, reason=reason, visa_type=visa_type)
