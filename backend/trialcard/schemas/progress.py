from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class DepartmentProgressCreate(BaseModel):
    trial_id: str = Field(min_length=1)
    department_id: int
    username: str = Field(min_length=1)
    completed_at: datetime | None = None
    remarks: str | None = None


class DepartmentProgressForward(BaseModel):
    progress_id: int
    remarks: str | None = None


class DepartmentProgressApprove(BaseModel):
    progress_id: int
    remarks: str | None = None


class DepartmentProgressOut(BaseModel):
    progress_id: int
    trial_id: str
    department_id: int
    username: str
    completed_at: datetime | None = None
    approval_status: str
    remarks: str | None = None
    model_config = ConfigDict(from_attributes=True)


class PendingProgressOut(DepartmentProgressOut):
    department_name: str | None = None
    part_name: str | None = None
    pattern_code: str | None = None
    disa: str | None = None
    date_of_sampling: date | None = None


class CompletedTrialOut(BaseModel):
    trial_id: str
    department_id: int | None = None
    department_name: str | None = None
    completed_at: datetime
    remarks: str | None = None
    part_name: str | None = None
    pattern_code: str | None = None
    disa: str | None = None
    date_of_sampling: date | None = None
    status: str | None = None
