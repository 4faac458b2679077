from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import audit, models, schemas
from ..auth import get_current_user
from ..database import get_db
from ..rbac import ROLE_ADMIN, ROLE_HOD

router = APIRouter(prefix="/api/audit", tags=["audit"])

REVIEWER_ROLES = (ROLE_ADMIN, ROLE_HOD)


@router.get("", response_model=schemas.Envelope[list[schemas.AuditLogOut]])
async def list_logs(
    user_id: int | None = None,
    trial_id: str | None = None,
    db: Session = Depends(get_db),
    current_user: schemas.TokenClaims = Depends(get_current_user),
):
    query = db.query(models.AuditLog)
    if current_user.role in REVIEWER_ROLES:
        if user_id:
            query = query.filter(models.AuditLog.user_id == user_id)
    else:
        query = query.filter(models.AuditLog.user_id == current_user.user_id)
    if trial_id:
        query = query.filter(models.AuditLog.trial_id == trial_id)
    logs = query.order_by(
        models.AuditLog.action_timestamp.desc(), models.AuditLog.audit_id.desc()
    ).all()
    return {"success": True, "data": logs}


@router.get("/report", response_model=schemas.Envelope[list[schemas.AuditReportItem]])
async def audit_report(
    start: datetime,
    end: datetime,
    user_id: int | None = None,
    department_id: int | None = None,
    db: Session = Depends(get_db),
    current_user: schemas.TokenClaims = Depends(get_current_user),
):
    if current_user.role not in REVIEWER_ROLES:
        user_id = current_user.user_id
        department_id = None
    data = audit.generate_report(db, start, end, user_id, department_id)
    return {"success": True, "data": data}
