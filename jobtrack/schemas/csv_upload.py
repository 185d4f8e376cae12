from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DetectJobsRequest(BaseModel):
    content: str
    filename: Optional[str] = None


class PhaseSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    labour_cost: int
    material_cost: int
    labour_hours: float
    labour_days: float


class DetectedJobResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    address: str
    post_code: str
    project_type: str
    phases: List[str]
    resource_count: int
    total_labour_cost: int
    total_material_cost: int
    phase_breakdown: List[PhaseSummaryResponse]


class DetectJobsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    jobs: List[DetectedJobResponse]
    total_jobs: int


class UploadRequest(BaseModel):
    filename: str = Field(..., min_length=1)
    content: str


class UploadResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    upload_id: int
    jobs_created: int
    status: str
    error_message: Optional[str] = None


class CsvUploadResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    filename: str
    status: str
    jobs_created: int
    content_hash: str
    error_message: Optional[str]
    created_at: datetime
