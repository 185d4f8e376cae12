from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TimeValidationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    required_days: int
    available_days: int
    status: str
    message: str
    contractor_count: int


class SuggestedEndDateResponse(BaseModel):
    job_id: int
    start_date: date
    suggested_end_date: Optional[date]
    available: bool


class AssignmentCostsResponse(BaseModel):
    labour_cost: int
    material_cost: int
    total_cost: int


class AssignmentCreate(BaseModel):
    job_id: int
    contractor_ids: List[int] = Field(..., min_length=1)
    selected_phases: List[str] = Field(default_factory=list)
    start_date: date
    end_date: date
    special_instructions: Optional[str] = None
    enforce_schedule: bool = False

    @model_validator(mode="after")
    def _check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class AssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    job_id: int
    contractor_id: int
    selected_phases: List[str]
    start_date: date
    end_date: date
    special_instructions: Optional[str]
    team_assignment: bool
    created_at: datetime


class AssignmentCreateResponse(BaseModel):
    assignment_ids: List[int]
    assignments_created: int
    validation: TimeValidationResponse
