"""Shared fixtures for the document verification test suite."""

import pytest
from datetime import datetime

from config import VISA_POLICIES
from verification.models import ApplicantClaim, ExtractedField, ExtractedFields
from verification.policies import PolicyTable


# Reference time for every date-dependent test
NOW = datetime(2026, 10, 18, 12, 0, 0)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_fields():
    """Factory: make_fields(fullName=("John Doe", 95), sex="M") -> ExtractedFields.

    A bare string gets confidence 90.
    """
    def _make(**entries):
        root = {}
        for name, entry in entries.items():
            value, confidence = entry if isinstance(entry, tuple) else (entry, 90)
            root[name] = ExtractedField(value=value, confidence=confidence)
        return ExtractedFields(root)
    return _make


@pytest.fixture
def policy_table():
    return PolicyTable.from_dict(VISA_POLICIES)


# ═══════════════════════════════════════════════════
# Applicant "John Doe" travelling on a US passport
# ═══════════════════════════════════════════════════

@pytest.fixture
def john_doe_claim():
    return ApplicantClaim(
        name="John Doe",
        date_of_birth="1990-01-15",
        passport_number="A12345678",
        nationality="USA",
        intended_visa_type="tourist",
    )


@pytest.fixture
def john_doe_fields(make_fields):
    return make_fields(
        fullName=("John Doe", 95),
        dateOfBirth=("1990-01-15", 90),
        documentNumber=("A12345678", 90),
        nationality=("USA", 92),
        expiryDate=("2030-12-31", 90),
        documentType=("passport", 95),
    )
