from typing import List

from fastapi import APIRouter, Depends, HTTPException

from jobtrack.core.authorization import Role, require_role
from jobtrack.deps.auth import AuthContext
from jobtrack.schemas.csv_upload import (
    CsvUploadResponse,
    DetectJobsRequest,
    DetectJobsResponse,
    UploadRequest,
    UploadResponse,
)
from jobtrack.services import upload_registrar
from jobtrack.services.csv_detector import CsvNoDataError

router = APIRouter(prefix="/csv", tags=["CSV"])


@router.post("/detect-jobs", response_model=DetectJobsResponse)
def detect_jobs(
    payload: DetectJobsRequest,
    _auth: AuthContext = Depends(require_role(Role.MANAGER)),
):
    try:
        result = upload_registrar.detect_jobs(payload.content, payload.filename or "")
    except CsvNoDataError as exc:
        raise HTTPException(status_code=422, detail=f"No data detected: {exc}") from exc
    return DetectJobsResponse.model_validate(result)


@router.post("/upload", response_model=UploadResponse)
def upload_csv(
    payload: UploadRequest,
    auth: AuthContext = Depends(require_role(Role.MANAGER)),
):
    try:
        result = upload_registrar.upload(auth.company_id, payload.filename, payload.content)
    except CsvNoDataError as exc:
        raise HTTPException(status_code=422, detail=f"No data detected: {exc}") from exc
    return UploadResponse.model_validate(result)


@router.get("/uploads", response_model=List[CsvUploadResponse])
def recent_uploads(auth: AuthContext = Depends(require_role(Role.MANAGER))):
    return upload_registrar.recent_uploads(auth.company_id)


@router.delete("/uploads/{upload_id}")
def delete_upload(
    upload_id: int,
    auth: AuthContext = Depends(require_role(Role.MANAGER)),
):
    deleted = upload_registrar.delete_upload(auth.company_id, upload_id)
    return {"success": True, "deleted": deleted}
