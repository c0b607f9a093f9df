import math
from typing import List

from config import settings
from .models import EligibilityResult, ExtractedFields, ValidationCheck, VerificationResult


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class ResultAggregator:
    """
    Combines validation checks, the eligibility verdict and field confidences
    into the final verification result
    """

    def __init__(self,
                 field_confidence_weight: float = settings.FIELD_CONFIDENCE_WEIGHT,
                 default_field_confidence: float = settings.DEFAULT_FIELD_CONFIDENCE,
                 default_validation_score: float = settings.DEFAULT_VALIDATION_SCORE,
                 manual_review_failure_count: int = settings.MANUAL_REVIEW_FAILURE_COUNT,
                 partial_pass_ratio: float = settings.MIN_PASS_RATE):
        self.field_confidence_weight = field_confidence_weight
        self.default_field_confidence = default_field_confidence
        self.default_validation_score = default_validation_score
        self.manual_review_failure_count = manual_review_failure_count
        self.partial_pass_ratio = partial_pass_ratio

    def calculate_confidence(self, fields: ExtractedFields, checks: List[ValidationCheck]) -> int:
        """Calculate overall confidence score (0-100)"""

        # Fields read with zero confidence do not drag the average down
        confidences = [field.confidence for _, field in fields.items() if field.confidence > 0]
        avg_field_confidence = (
            sum(confidences) / len(confidences) if confidences else self.default_field_confidence
        )

        passed = sum(1 for c in checks if c.passed)
        validation_score = passed / len(checks) * 100 if checks else self.default_validation_score

        overall = round_half_up(
            avg_field_confidence * self.field_confidence_weight
            + validation_score * (1 - self.field_confidence_weight)
        )
        return min(100, max(0, overall))

    def generate_recommendations(self,
                                 checks: List[ValidationCheck],
                                 eligibility: EligibilityResult) -> List[str]:
        failed = [c for c in checks if not c.passed]

        if not failed and eligibility.eligible:
            return [
                "Document appears valid and applicant is eligible",
                "Proceed with visa application processing"
            ]

        def any_failed(*fragments: str) -> bool:
            return any(
                fragment in check.field
                for check in failed
                for fragment in fragments
            )

        recommendations = []

        if any_failed("expiry", "Expiry"):
            recommendations.append("Document has expired - request renewed document")

        if any_failed("MRZ", "checksum"):
            recommendations.append("MRZ validation failed - verify document authenticity")

        if any_failed("name", "Name"):
            recommendations.append("Name mismatch detected - request clarification from applicant")

        if not eligibility.eligible:
            recommendations.append("Applicant not eligible for requested visa type")
            recommendations.append("Contact applicant for additional documentation or alternate visa type")

        if len(failed) > self.manual_review_failure_count:
            recommendations.append("Multiple validation failures - manual review required")

        return recommendations

    def generate_summary(self,
                         fields: ExtractedFields,
                         checks: List[ValidationCheck],
                         eligibility: EligibilityResult) -> str:
        doc_type = fields.value("documentType") or "document"
        doc_number = fields.value("documentNumber") or "unknown"
        name = fields.value("fullName") or fields.value("firstName") or "unknown"

        passed = sum(1 for c in checks if c.passed)
        total = len(checks)

        if passed == total and eligibility.eligible:
            return (
                f"Document verification successful. {doc_type} #{doc_number} for {name} is valid "
                f"and applicant is eligible for {eligibility.visa_type or 'requested'} visa. "
                f"All validation checks passed ({passed}/{total})."
            )

        if passed >= total * self.partial_pass_ratio:
            status = "Applicant is eligible" if eligibility.eligible else "Applicant eligibility unclear"
            return (
                f"Document partially validated. {doc_type} #{doc_number} for {name} passed "
                f"{passed} of {total} checks. {status}. Manual review recommended."
            )

        status = "" if eligibility.eligible else "Applicant not eligible. "
        return (
            f"Document validation concerns. {doc_type} #{doc_number} for {name} failed multiple "
            f"validation checks ({total - passed} failures). {status}Additional verification required."
        )

    def aggregate(self,
                  fields: ExtractedFields,
                  checks: List[ValidationCheck],
                  eligibility: EligibilityResult) -> VerificationResult:
        return VerificationResult(
            overall_confidence=self.calculate_confidence(fields, checks),
            extracted_fields=fields,
            validation_checks=checks,
            eligibility_assessment=eligibility,
            recommended_actions=self.generate_recommendations(checks, eligibility),
            summary=self.generate_summary(fields, checks, eligibility)
        )
