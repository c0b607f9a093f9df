from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field, ValidationError

import json
import logging
from functools import lru_cache
from typing import Any, Dict

from verification.extractor import DocumentExtractor, ExtractionError
from verification.file_converter import UnsupportedFileError, load_document_image
from verification.models import ApplicantClaim, ExtractedFields
from verification.policies import default_policy_table
from verification.run_pipeline import run_pipeline, verify_fields
from verification.utils import is_supported_upload
from config import settings


logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger("verification.api")

app = FastAPI(
    title="Visa Document Verification Service",
    description="Identity document validation and visa eligibility assessment with AI-powered extraction",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class VerifyFieldsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    extracted_fields: ExtractedFields = Field(default_factory=ExtractedFields, alias="extractedFields")
    applicant_data: ApplicantClaim = Field(alias="applicantData")


@lru_cache(maxsize=1)
def get_extractor() -> DocumentExtractor:
    return DocumentExtractor()


def parse_applicant_data(raw: str) -> ApplicantClaim:
    """Parse the applicantData form field, 400 on bad input"""
    try:
        return ApplicantClaim.model_validate(json.loads(raw))
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="applicantData is not valid JSON")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid applicant data: {e.errors()[0]['msg']}")


# ------------------------
# Verification API
# ------------------------
@app.post("/verify")
async def verify_document(
    image: UploadFile = File(...),
    applicant_data: str = Form(..., alias="applicantData"),
    extractor: DocumentExtractor = Depends(get_extractor)
) -> Dict[str, Any]:
    """
    Verify an identity document image against the applicant's claims.
    Supports JPG / PNG / HEIC / PDF uploads.
    """
    if not is_supported_upload(image.filename or ""):
        raise HTTPException(status_code=400, detail=f"Unsupported file type: {image.filename}")

    claim = parse_applicant_data(applicant_data)

    raw = await image.read()
    try:
        image_bytes = await run_in_threadpool(load_document_image, raw, image.filename or "")
    except UnsupportedFileError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OSError as e:
        # UnidentifiedImageError and truncated image data
        raise HTTPException(status_code=400, detail=f"Could not read image {image.filename}: {e}")
    except Exception as e:
        logger.exception("Conversion failed for %s", image.filename)
        raise HTTPException(status_code=500, detail=f"Verification failed: {e}")

    try:
        result = await run_in_threadpool(run_pipeline, image_bytes, claim, extractor)
    except ExtractionError as e:
        logger.error("Extraction failed for %s: %s", image.filename, e)
        raise HTTPException(status_code=500, detail=f"Verification failed: {e}")
    except Exception as e:
        logger.exception("Verification failed for %s", image.filename)
        raise HTTPException(status_code=500, detail=f"Verification failed: {e}")

    return result.to_response()


@app.post("/verify/fields")
async def verify_extracted_fields(request: VerifyFieldsRequest) -> Dict[str, Any]:
    """Run the checks on fields that were already extracted"""
    result = verify_fields(request.extracted_fields, request.applicant_data)
    return result.to_response()


@app.get("/policies")
async def list_policies() -> Dict[str, Any]:
    table = default_policy_table()
    return {
        "defaultVisaType": table.default_visa_type,
        "policies": {
            visa_type: table[visa_type].model_dump(mode="json", by_alias=True)
            for visa_type in table.visa_types
        }
    }


# ------------------------
# Health Check
# ------------------------
@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": "document-verification"
    }


# ------------------------
# Local Dev Entry
# ------------------------
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
