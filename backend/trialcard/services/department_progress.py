"""Hand-offs of a trial between departments and their approvals."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from .. import audit, models, schemas, tasks
from ..config import Settings
from ..errors import Forbidden, NotFoundOrClosed, ValidationFailed
from ..rbac import DEPARTMENTS, ROLE_HOD, ROLE_USER
from .trial_lifecycle import validate_open_for_submission

# purpose: route department progress rows between a department's users and its HOD
# status: active
# depends_on: models.DepartmentProgress, models.AuditLog, tasks

_logger = logging.getLogger(__name__)

APPROVED = "approved"
PENDING = "pending"


def _notify_assignee(settings: Settings, db: Session, username: str, trial_id: str) -> None:
    user = db.query(models.User).filter(models.User.username == username).first()
    if user is None or not user.email:
        _logger.info("No email on file for %s; skipping progress notification", username)
        return
    tasks.enqueue_email(
        settings,
        user.email,
        f"Trial {trial_id} assigned to you",
        f"Trial {trial_id} is waiting for you. Please check the progress by "
        "logging into the application.",
    )


def _get_progress(db: Session, progress_id: int) -> models.DepartmentProgress:
    progress = db.get(models.DepartmentProgress, progress_id)
    if progress is None:
        raise NotFoundOrClosed("Department progress not found")
    return progress


def _first_user(db: Session, department_id: int, role: str) -> models.User | None:
    return (
        db.query(models.User)
        .filter(
            models.User.department_id == department_id,
            models.User.role == role,
            models.User.is_active.is_(True),
        )
        .order_by(models.User.user_id)
        .first()
    )


def create_progress(
    db: Session,
    settings: Settings,
    payload: schemas.DepartmentProgressCreate,
    actor: schemas.TokenClaims,
) -> models.DepartmentProgress:
    validate_open_for_submission(db, payload.trial_id)
    if db.get(models.Department, payload.department_id) is None:
        raise ValidationFailed("Department does not exist")
    if db.query(models.User).filter(models.User.username == payload.username).first() is None:
        raise ValidationFailed("Assigned user does not exist")

    # only the approve step moves a row out of pending
    progress = models.DepartmentProgress(**payload.model_dump(exclude_none=True), approval_status=PENDING)
    db.add(progress)
    audit.log_action(
        db,
        actor.user_id,
        actor.department_id,
        "Department progress created",
        f"Department progress for trial {payload.trial_id} assigned to "
        f"{payload.username} by {actor.username}",
        trial_id=payload.trial_id,
        commit=False,
    )
    db.commit()
    db.refresh(progress)
    _notify_assignee(settings, db, progress.username, progress.trial_id)
    return progress


def forward_progress(
    db: Session,
    settings: Settings,
    payload: schemas.DepartmentProgressForward,
    actor: schemas.TokenClaims,
) -> models.DepartmentProgress:
    """Pass a progress row on to whoever acts next.

    An HOD sends it to the first user of the next department; a user sends it
    up to their own department's HOD. The caller's role comes from its token.
    """

    progress = _get_progress(db, payload.progress_id)

    if actor.role == ROLE_HOD:
        next_department = progress.department_id + 1
        if db.get(models.Department, next_department) is None:
            raise ValidationFailed("No next department to forward to")
        target = _first_user(db, next_department, ROLE_USER)
        if target is None:
            raise ValidationFailed("No user found for the department.")
        progress.department_id = next_department
    elif actor.role == ROLE_USER:
        target = _first_user(db, progress.department_id, ROLE_HOD)
        if target is None:
            raise ValidationFailed("No HOD found for the department.")
    else:
        raise Forbidden("Only HOD or User roles can forward progress")

    progress.username = target.username
    progress.approval_status = PENDING
    if payload.remarks is not None:
        progress.remarks = payload.remarks
    audit.log_action(
        db,
        actor.user_id,
        actor.department_id,
        "Department progress updated",
        f"Trial {progress.trial_id} forwarded to {target.username} by {actor.username}",
        trial_id=progress.trial_id,
        commit=False,
    )
    db.commit()
    db.refresh(progress)
    _notify_assignee(settings, db, progress.username, progress.trial_id)
    return progress


def approve_progress(
    db: Session,
    payload: schemas.DepartmentProgressApprove,
    actor: schemas.TokenClaims,
) -> models.DepartmentProgress:
    progress = _get_progress(db, payload.progress_id)
    progress.approval_status = APPROVED
    if payload.remarks is not None:
        progress.remarks = payload.remarks
    audit.log_action(
        db,
        actor.user_id,
        actor.department_id,
        "Department progress approved",
        f"Department progress for trial {progress.trial_id} approved by {actor.username}",
        trial_id=progress.trial_id,
        commit=False,
    )
    db.commit()
    db.refresh(progress)
    return progress


def list_for_trial(db: Session, trial_id: str | None) -> list[models.DepartmentProgress]:
    if not trial_id:
        raise ValidationFailed("trial_id query parameter is required")
    return (
        db.query(models.DepartmentProgress)
        .filter(models.DepartmentProgress.trial_id == trial_id)
        .order_by(models.DepartmentProgress.progress_id)
        .all()
    )


def pending_for_user(db: Session, username: str) -> list[schemas.PendingProgressOut]:
    rows = (
        db.query(models.DepartmentProgress, models.Trial)
        .join(models.Trial, models.Trial.trial_id == models.DepartmentProgress.trial_id)
        .filter(
            models.DepartmentProgress.username == username,
            models.DepartmentProgress.approval_status == PENDING,
            models.Trial.deleted_at.is_(None),
        )
        .order_by(models.DepartmentProgress.completed_at.desc())
        .all()
    )
    return [
        schemas.PendingProgressOut(
            **schemas.DepartmentProgressOut.model_validate(progress).model_dump(),
            department_name=DEPARTMENTS.get(progress.department_id),
            part_name=trial.part_name,
            pattern_code=trial.pattern_code,
            disa=trial.disa,
            date_of_sampling=trial.date_of_sampling,
        )
        for progress, trial in rows
    ]


def completed_for_department(
    db: Session, department_id: int | None
) -> list[schemas.CompletedTrialOut]:
    """Trials the department has signed off, newest approval per trial."""

    rows = (
        db.query(models.AuditLog, models.Trial)
        .join(models.Trial, models.Trial.trial_id == models.AuditLog.trial_id)
        .filter(
            models.AuditLog.department_id == department_id,
            models.AuditLog.action == "Department progress approved",
            models.Trial.deleted_at.is_(None),
        )
        .order_by(models.AuditLog.action_timestamp.desc())
        .all()
    )
    seen: set[str] = set()
    completed = []
    for entry, trial in rows:
        if trial.trial_id in seen:
            continue
        seen.add(trial.trial_id)
        completed.append(
            schemas.CompletedTrialOut(
                trial_id=trial.trial_id,
                department_id=department_id,
                department_name=DEPARTMENTS.get(department_id),
                completed_at=entry.action_timestamp,
                remarks=entry.remarks,
                part_name=trial.part_name,
                pattern_code=trial.pattern_code,
                disa=trial.disa,
                date_of_sampling=trial.date_of_sampling,
                status=trial.status,
            )
        )
    return completed
