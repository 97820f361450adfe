from __future__ import annotations

from typing import Any, Optional

import structlog
from fastapi import APIRouter, File, UploadFile

from api.errors import ApiError, ErrorCode
from api.users import get_user_or_404
from config import settings
from models import Assessment, AssessmentFile, Borrower, UserType
from models.assessment import UPLOAD_CALLBACK
from services.adjudication import adjudicate
from services.blobstore import DEFAULT_BUCKET, get_blobstore, upload_bucket

logger = structlog.get_logger()

router = APIRouter(prefix=settings.base_path, tags=["assessments"])

MSG_ASSESSMENT_NOT_FOUND = "Assessment not found"


def _info_response(assessment: Assessment, include_reference: bool) -> dict[str, Any]:
    return assessment.get_api_info(include_reference).model_dump(by_alias=True, exclude_none=True)


async def _get_borrower(reference: str) -> Borrower:
    return await get_user_or_404(UserType.BORROWER, reference)


async def _get_assessment_or_404(borrower: Borrower, assessment_reference: str) -> Assessment:
    assessment = await Assessment().get_assessment(borrower, assessment_reference)
    if assessment is None:
        raise ApiError(404, ErrorCode.ASSESSMENT_NOT_FOUND, MSG_ASSESSMENT_NOT_FOUND)
    return assessment


@router.get("/borrowers/{reference}/assessments", response_model=list[dict])
async def list_assessments(reference: str):
    borrower = await _get_borrower(reference)
    assessments = await borrower.get_assessments()
    return [a.get_api_summary().model_dump() for a in assessments]


@router.post("/borrowers/{reference}/assessments", response_model=dict, status_code=201)
async def create_assessment(reference: str):
    borrower = await _get_borrower(reference)
    assessment = Assessment()
    if not await assessment.add_to_database(borrower):
        raise ApiError(500, ErrorCode.ASSESSMENT_NOT_SAVED, "Unable to create the assessment")
    return _info_response(assessment, include_reference=True)


@router.get("/borrowers/{reference}/assessments/approved", response_model=dict)
async def get_last_approved_assessment(reference: str):
    borrower = await _get_borrower(reference)
    assessment = await Assessment().get_last_approved(borrower)
    if assessment is None:
        raise ApiError(404, ErrorCode.ASSESSMENT_NOT_FOUND, "No approved assessment")
    return _info_response(assessment, include_reference=True)


@router.get("/borrowers/{reference}/assessments/{assessment_reference}", response_model=dict)
async def get_assessment(reference: str, assessment_reference: str):
    borrower = await _get_borrower(reference)
    assessment = await _get_assessment_or_404(borrower, assessment_reference)
    return _info_response(assessment, include_reference=False)


@router.post("/borrowers/{reference}/assessments/{assessment_reference}/submit", response_model=dict)
async def submit_assessment(reference: str, assessment_reference: str):
    borrower = await _get_borrower(reference)
    assessment = await _get_assessment_or_404(borrower, assessment_reference)
    if not await assessment.submit():
        raise ApiError(
            403,
            ErrorCode.ASSESSMENT_NOT_SUBMITTABLE,
            "Assessment cannot be submitted. It must be open with at least 2 files uploaded",
        )
    if settings.auto_adjudicate:
        await adjudicate(assessment)
    return _info_response(assessment, include_reference=False)


@router.post("/uploads/assessments/{assessment_reference}", response_model=dict, status_code=201)
async def upload_assessment_file(
    assessment_reference: str,
    file: UploadFile = File(..., description="Assessment document"),
    token: Optional[str] = None,
):
    """
    Upload callback: store the blob and attach it to an open assessment.
    The token from the issued upload URL is spent on every attempt that reaches it.
    """
    assessment = await Assessment().get_for_reference(assessment_reference)
    if assessment is None:
        raise ApiError(404, ErrorCode.ASSESSMENT_NOT_FOUND, MSG_ASSESSMENT_NOT_FOUND)
    if not assessment.can_upload():
        raise ApiError(403, ErrorCode.ASSESSMENT_CLOSED, "Assessment no longer accepts uploads")
    blobstore = get_blobstore()
    if not blobstore.redeem_upload_token(UPLOAD_CALLBACK + str(assessment.reference), token):
        raise ApiError(403, ErrorCode.UPLOAD_NOT_AUTHORIZED, "Upload URL is invalid or already used")

    file_name = file.filename or "upload"
    if assessment.get_file_that_matches(AssessmentFile(file_name=file_name)) is not None:
        raise ApiError(409, ErrorCode.FILE_ALREADY_UPLOADED, f"File already uploaded: {file_name}")
    content = await file.read()
    if not content:
        raise ApiError(400, ErrorCode.FILE_EMPTY, "File is empty.")

    bucket = upload_bucket() or DEFAULT_BUCKET
    blob_key = blobstore.store(bucket, file_name, content)
    assessment_file = AssessmentFile(file_name=file_name, bucket=bucket, blob_key=blob_key)
    if not await assessment.add_file(assessment_file):
        raise ApiError(500, ErrorCode.ASSESSMENT_NOT_SAVED, "Unable to attach the file")
    logger.info("assessment_upload_stored", assessment=assessment_reference, bucket=bucket, size=len(content))
    return assessment_file.get_api_model().model_dump(by_alias=True)
