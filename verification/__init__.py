"""
Visa Document Verification

This package contains the verification pipeline for identity documents:
- Field extraction using OpenAI Vision
- Document validation checks against the applicant's claims
- Visa eligibility assessment against per-visa-type policies
- Confidence scoring, recommendations and summary
"""

__version__ = "1.0.0"
