"""Pydantic schemas for the trial card API."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from .audit import AuditLogOut, AuditReportItem
from .auth import (
    DepartmentOut,
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    TokenClaims,
    UserCreate,
    UserSummary,
)
from .master_list import (
    BulkDelete,
    MasterCardCreate,
    MasterCardOut,
    MasterCardToggle,
    MasterCardUpdate,
)
from .progress import (
    CompletedTrialOut,
    DepartmentProgressApprove,
    DepartmentProgressCreate,
    DepartmentProgressForward,
    DepartmentProgressOut,
    PendingProgressOut,
)
from .stages import (
    MachineShopOut,
    MachineShopPayload,
    MaterialCorrectionOut,
    MaterialCorrectionPayload,
    MechanicalPropertiesOut,
    MechanicalPropertiesPayload,
    MetallurgicalInspectionOut,
    MetallurgicalInspectionPayload,
    SandPropertiesOut,
    SandPropertiesPayload,
    StagePayload,
    VisualInspectionOut,
    VisualInspectionPayload,
)
from .trials import DeletedTrialOut, NextTrialId, TrialCreate, TrialOut, TrialRef, TrialStatusUpdate

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Success wrapper shared by every JSON endpoint."""

    success: bool = True
    message: str | None = None
    data: T | None = None


class MessageOut(BaseModel):
    success: bool = True
    message: str
    data: Any | None = None
