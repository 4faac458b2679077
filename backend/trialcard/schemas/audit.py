from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class AuditLogOut(BaseModel):
    audit_id: int
    user_id: int | None = None
    department_id: int | None = None
    trial_id: str | None = None
    action: str
    remarks: str | None = None
    action_timestamp: datetime
    model_config = ConfigDict(from_attributes=True)


class AuditReportItem(BaseModel):
    action: str
    count: int
