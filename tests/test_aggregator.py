"""Tests for verification/aggregator.py: confidence, recommendations, summary."""

import pytest

from verification.aggregator import ResultAggregator, round_half_up
from verification.models import EligibilityResult, ExtractedFields, ValidationCheck


ELIGIBLE = EligibilityResult(eligible=True, reason="ok", visa_type="tourist")
INELIGIBLE = EligibilityResult(eligible=False, reason="no", visa_type="tourist")


def _check(field, passed):
    return ValidationCheck(field=field, passed=passed, message=f"{field} {'ok' if passed else 'failed'}")


@pytest.fixture
def aggregator():
    return ResultAggregator()


class TestConfidence:

    def test_good_document(self, aggregator, john_doe_fields):
        checks = [_check("confidence", True)] * 8
        # 0.6 * 92 + 0.4 * 100
        assert aggregator.calculate_confidence(john_doe_fields, checks) == 95

    def test_defaults_without_fields_or_checks(self, aggregator):
        # 0.6 * 50 + 0.4 * 70
        assert aggregator.calculate_confidence(ExtractedFields(), []) == 58

    def test_zero_confidence_fields_are_excluded(self, aggregator, make_fields):
        fields = make_fields(sex=("M", 80), placeOfBirth=("", 0))
        checks = [_check("confidence", True), _check("nationality", False)]
        # 0.6 * 80 + 0.4 * 50
        assert aggregator.calculate_confidence(fields, checks) == 68

    def test_only_zero_confidence_fields_use_default(self, aggregator, make_fields):
        fields = make_fields(sex=("", 0))
        checks = [_check("confidence", False)]
        # 0.6 * 50 + 0.4 * 0
        assert aggregator.calculate_confidence(fields, checks) == 30

    def test_stays_in_range(self, aggregator, make_fields):
        fields = make_fields(a=("x", 100), b=("y", 100))
        assert aggregator.calculate_confidence(fields, [_check("confidence", True)]) == 100

    @pytest.mark.parametrize("value,expected", [(92.5, 93), (2.5, 3), (0.49, 0), (71.6, 72)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected


class TestRecommendations:

    def test_all_good(self, aggregator):
        recs = aggregator.generate_recommendations([_check("name", True)], ELIGIBLE)
        assert recs == [
            "Document appears valid and applicant is eligible",
            "Proceed with visa application processing",
        ]

    def test_no_failures_but_ineligible(self, aggregator):
        recs = aggregator.generate_recommendations([_check("name", True)], INELIGIBLE)
        assert recs == [
            "Applicant not eligible for requested visa type",
            "Contact applicant for additional documentation or alternate visa type",
        ]

    def test_rules_are_additive_and_ordered(self, aggregator):
        checks = [
            _check("name", False),
            _check("mrzChecksum", False),
            _check("expiryDate", False),
            _check("confidence", False),
        ]
        recs = aggregator.generate_recommendations(checks, INELIGIBLE)

        assert recs == [
            "Document has expired - request renewed document",
            "Name mismatch detected - request clarification from applicant",
            "Applicant not eligible for requested visa type",
            "Contact applicant for additional documentation or alternate visa type",
            "Multiple validation failures - manual review required",
        ]

    def test_mrz_checksum_field_does_not_match_mrz_rule(self, aggregator):
        recs = aggregator.generate_recommendations([_check("mrzChecksum", False)], ELIGIBLE)
        assert recs == []

    def test_mrz_rule_matches_upper_case_fragment(self, aggregator):
        check = ValidationCheck.model_construct(field="passportMRZ", passed=False, message="bad")
        recs = aggregator.generate_recommendations([check], ELIGIBLE)
        assert recs == ["MRZ validation failed - verify document authenticity"]

    def test_failure_while_eligible(self, aggregator):
        recs = aggregator.generate_recommendations([_check("issueDate", False)], ELIGIBLE)
        assert recs == []

    def test_three_failures_is_not_manual_review(self, aggregator):
        checks = [_check("issueDate", False), _check("nationality", False), _check("documentType", False)]
        recs = aggregator.generate_recommendations(checks, ELIGIBLE)
        assert "Multiple validation failures - manual review required" not in recs


class TestSummary:

    def test_success(self, aggregator, john_doe_fields):
        checks = [_check("confidence", True)] * 8
        summary = aggregator.generate_summary(john_doe_fields, checks, ELIGIBLE)

        assert summary == (
            "Document verification successful. passport #A12345678 for John Doe is valid "
            "and applicant is eligible for tourist visa. All validation checks passed (8/8)."
        )

    def test_partial(self, aggregator, john_doe_fields):
        checks = [_check("confidence", True)] * 8 + [_check("name", False)] * 2
        summary = aggregator.generate_summary(john_doe_fields, checks, INELIGIBLE)

        assert summary == (
            "Document partially validated. passport #A12345678 for John Doe passed 8 of 10 "
            "checks. Applicant eligibility unclear. Manual review recommended."
        )

    def test_partial_when_eligible_with_failure(self, aggregator, john_doe_fields):
        checks = [_check("confidence", True)] * 9 + [_check("issueDate", False)]
        summary = aggregator.generate_summary(john_doe_fields, checks, ELIGIBLE)
        assert "Applicant is eligible." in summary

    def test_concerns_with_defaults(self, aggregator):
        checks = [_check("confidence", True)] + [_check("name", False)] * 3
        summary = aggregator.generate_summary(ExtractedFields(), checks, INELIGIBLE)

        assert summary == (
            "Document validation concerns. document #unknown for unknown failed multiple "
            "validation checks (3 failures). Applicant not eligible. Additional verification required."
        )

    def test_first_name_used_without_full_name(self, aggregator, make_fields):
        summary = aggregator.generate_summary(
            make_fields(firstName="John"), [_check("confidence", True)], ELIGIBLE
        )
        assert "for John is valid" in summary


def test_aggregate_builds_result(aggregator, john_doe_fields):
    checks = [_check("confidence", True)]
    result = aggregator.aggregate(john_doe_fields, checks, ELIGIBLE)

    response = result.to_response()
    assert list(response) == [
        "overallConfidence", "extractedFields", "validationChecks",
        "eligibilityAssessment", "recommendedActions", "summary",
    ]
    assert response["extractedFields"]["fullName"] == {"value": "John Doe", "confidence": 95}
    assert response["validationChecks"] == [
        {"field": "confidence", "passed": True, "message": "confidence ok"}
    ]
    assert response["eligibilityAssessment"] == {"eligible": True, "reason": "ok", "visaType": "tourist"}
