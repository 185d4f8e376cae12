from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class JobResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    upload_id: Optional[int]
    title: str
    address: Optional[str]
    post_code: Optional[str]
    project_type: Optional[str]
    status: str
    created_at: datetime


class PhaseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    job_id: int
    phase_name: str
    phase_order: int
    required_labour_days: int
    labour_cost_cents: int
    material_cost_cents: int
    status: str
