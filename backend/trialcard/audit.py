from datetime import datetime, timezone
from sqlalchemy.orm import Session
from sqlalchemy import func
from . import models


def log_action(
    db: Session,
    user_id: int | None,
    department_id: int | None,
    action: str,
    remarks: str | None = None,
    trial_id: str | None = None,
    commit: bool = True,
):
    log = models.AuditLog(
        user_id=user_id,
        department_id=department_id,
        trial_id=trial_id,
        action=action,
        remarks=remarks,
        action_timestamp=datetime.now(timezone.utc),
    )
    db.add(log)
    if commit:
        db.commit()
        db.refresh(log)
    return log


def generate_report(
    db: Session,
    start: datetime,
    end: datetime,
    user_id: int | None = None,
    department_id: int | None = None,
):
    query = db.query(models.AuditLog).filter(
        models.AuditLog.action_timestamp >= start,
        models.AuditLog.action_timestamp <= end,
    )
    if user_id:
        query = query.filter(models.AuditLog.user_id == user_id)
    if department_id:
        query = query.filter(models.AuditLog.department_id == department_id)
    rows = (
        query.with_entities(models.AuditLog.action, func.count(models.AuditLog.audit_id))
        .group_by(models.AuditLog.action)
        .all()
    )
    return [{"action": r[0], "count": r[1]} for r in rows]
