import logging
from datetime import datetime
from typing import Optional

from .aggregator import ResultAggregator
from .checks import DocumentValidator
from .eligibility import EligibilityEngine
from .extractor import DocumentExtractor
from .models import ApplicantClaim, ExtractedFields, VerificationResult

logger = logging.getLogger(__name__)


def verify_fields(fields: ExtractedFields,
                  claim: ApplicantClaim,
                  now: Optional[datetime] = None,
                  validator: Optional[DocumentValidator] = None,
                  engine: Optional[EligibilityEngine] = None,
                  aggregator: Optional[ResultAggregator] = None) -> VerificationResult:
    """
    Validate extracted fields against the applicant's claim and assess visa
    eligibility.

    Args:
        fields: Fields read off the document with their confidences
        claim: Applicant-declared data and the requested visa type
        now: Reference time for date checks; defaults to the current time

    Returns:
        VerificationResult with checks, eligibility, confidence and summary
    """
    now = now or datetime.now()
    validator = validator or DocumentValidator()
    engine = engine or EligibilityEngine()
    aggregator = aggregator or ResultAggregator()

    # Step 1: Validation checks
    checks = validator.validate(fields, claim, now=now)

    # Step 2: Eligibility
    eligibility = engine.assess(fields, claim, checks, now=now)

    # Step 3: Confidence, recommendations, summary
    result = aggregator.aggregate(fields, checks, eligibility)

    logger.info(
        "Verification complete: %d/%d checks passed, eligible=%s, visa_type=%s, confidence=%d",
        sum(1 for c in checks if c.passed), len(checks),
        eligibility.eligible, eligibility.visa_type, result.overall_confidence
    )
    return result


def run_pipeline(image_bytes: bytes,
                 claim: ApplicantClaim,
                 extractor: Optional[DocumentExtractor] = None,
                 now: Optional[datetime] = None) -> VerificationResult:
    """
    Extract fields from a document image, then verify them.

    An ExtractionError from the vision call propagates; the checks never run
    on a failed extraction.
    """
    extractor = extractor or DocumentExtractor()
    fields = extractor.extract(image_bytes)
    return verify_fields(fields, claim, now=now)
