"""Trial status transitions and the open-for-submission gate."""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, timezone
from string import ascii_uppercase

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .. import audit, models, schemas, tasks
from ..config import Settings
from ..errors import NotFoundOrClosed, ValidationFailed
from ..rbac import ROLE_HOD

# purpose: own the only stateful trial logic: status changes and their audit trail
# status: active
# depends_on: models.Trial, models.AuditLog

_logger = logging.getLogger(__name__)

STATUS_OPEN = "OPEN"
STATUS_CLOSED = "CLOSED"

TRIALS_PER_SERIAL = 999
TRIAL_ID_PATTERN = re.compile(r"^FY(\d{2})-([A-Z]|TRIAL)(\d{3})$")


def update_status(
    db: Session,
    trial_id: str | None,
    new_status: str | None,
    actor: schemas.TokenClaims | None,
) -> None:
    """Set a trial's status and record who did it.

    The UPDATE and its audit row are committed together. The row is not re-read
    afterwards, so a concurrent writer to the same trial goes undetected.
    """

    if not trial_id or not new_status:
        raise ValidationFailed("Trial ID and status are required")

    try:
        result = db.execute(
            sa.update(models.Trial)
            .where(models.Trial.trial_id == trial_id)
            .values(status=new_status)
        )
        if result.rowcount == 0:
            _logger.warning("Status update for trial %s matched no rows", trial_id)
        if actor is not None and actor.user_id is not None:
            audit.log_action(
                db,
                actor.user_id,
                actor.department_id,
                "Trial updated",
                f"Trial {trial_id} updated by {actor.username} as {new_status}",
                trial_id=trial_id,
                commit=False,
            )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


def validate_open_for_submission(db: Session, trial_id: str | None) -> models.Trial:
    """Return the trial when it can still take stage submissions.

    Only the exact status ``CLOSED`` blocks; every other status counts as open.
    """

    trial = None
    if trial_id:
        trial = (
            db.query(models.Trial)
            .filter(models.Trial.trial_id == trial_id, models.Trial.deleted_at.is_(None))
            .first()
        )
    if trial is None or trial.status == STATUS_CLOSED:
        raise NotFoundOrClosed("Trial not found or closed")
    return trial


def format_trial_id(sequence: int, year: int) -> str:
    quotient, remainder = divmod(sequence - 1, TRIALS_PER_SERIAL)
    serial = ascii_uppercase[quotient] if quotient < len(ascii_uppercase) else "TRIAL"
    return f"FY{year % 100:02d}-{serial}{remainder + 1:03d}"


def parse_trial_id(trial_id: str) -> tuple[int, int] | None:
    """Return ``(two-digit year, sequence)`` for ids in the generated format."""

    match = TRIAL_ID_PATTERN.match(trial_id)
    if match is None:
        return None
    year, serial, number = match.groups()
    quotient = len(ascii_uppercase) if serial == "TRIAL" else ascii_uppercase.index(serial)
    return int(year), quotient * TRIALS_PER_SERIAL + int(number)


def _trial_exists(db: Session, trial_id: str) -> bool:
    return db.get(models.Trial, trial_id) is not None


def next_trial_id(db: Session, today: date | None = None) -> str:
    """Allocate the id after the highest one issued this year.

    Soft-deleted trials still hold their ids, and ids chosen by hand in the
    generated format advance the sequence too.
    """

    today = today or date.today()
    prefix = f"FY{today.year % 100:02d}-"
    highest = 0
    for (trial_id,) in db.query(models.Trial.trial_id).filter(models.Trial.trial_id.like(f"{prefix}%")):
        parsed = parse_trial_id(trial_id)
        if parsed is not None:
            highest = max(highest, parsed[1])
    candidate = format_trial_id(highest + 1, today.year)
    while _trial_exists(db, candidate):
        highest += 1
        if highest >= (len(ascii_uppercase) + 1) * TRIALS_PER_SERIAL:
            raise ValidationFailed(f"No trial ids left for {prefix[:-1]}")
        candidate = format_trial_id(highest + 1, today.year)
    return candidate


def get_trial(db: Session, trial_id: str | None) -> models.Trial:
    if not trial_id:
        raise ValidationFailed("trial_id query parameter is required")
    trial_id = trial_id.replace('"', "").replace("'", "")
    trial = (
        db.query(models.Trial)
        .filter(models.Trial.trial_id == trial_id, models.Trial.deleted_at.is_(None))
        .first()
    )
    if trial is None:
        raise NotFoundOrClosed("Trial not found")
    return trial


def list_trials(db: Session, status: str | None = None) -> list[models.Trial]:
    query = db.query(models.Trial).filter(models.Trial.deleted_at.is_(None))
    if status:
        query = query.filter(models.Trial.status == status)
    return query.order_by(models.Trial.created_at.desc()).all()


def create_trial(
    db: Session,
    settings: Settings,
    payload: schemas.TrialCreate,
    actor: schemas.TokenClaims,
) -> models.Trial:
    trial_id = payload.trial_id or next_trial_id(db)
    if _trial_exists(db, trial_id):
        raise ValidationFailed(f"Trial {trial_id} already exists")

    trial = models.Trial(
        **payload.model_dump(exclude={"trial_id"}),
        trial_id=trial_id,
        status=STATUS_OPEN,
    )
    db.add(trial)
    audit.log_action(
        db,
        actor.user_id,
        actor.department_id,
        "Trial created",
        f"Trial {trial_id} for {trial.part_name} created by {actor.username}",
        trial_id=trial_id,
        commit=False,
    )
    try:
        db.commit()
    except IntegrityError as exc:
        # another request took the id between the check and the insert
        db.rollback()
        raise ValidationFailed(f"Trial {trial_id} already exists") from exc
    db.refresh(trial)

    hod_emails = [
        email
        for (email,) in db.query(models.User.email)
        .filter(
            models.User.role == ROLE_HOD,
            models.User.is_active.is_(True),
            models.User.email.isnot(None),
        )
        .all()
    ]
    if hod_emails:
        tasks.enqueue_bulk_email(
            settings,
            hod_emails,
            f"New trial {trial_id}",
            f"Trial {trial_id} for part {trial.part_name} ({trial.pattern_code}) was created "
            f"by {actor.username}. Please check the progress by logging into the application.",
        )
    return trial


def _get_any(db: Session, trial_id: str | None) -> models.Trial | None:
    if not trial_id:
        raise ValidationFailed("Trial ID is required")
    return db.get(models.Trial, trial_id)


def soft_delete_trial(db: Session, trial_id: str | None, actor: schemas.TokenClaims) -> models.Trial:
    """Move a trial to the recycle bin. Its stage records and history are kept."""

    trial = _get_any(db, trial_id)
    if trial is None or trial.deleted_at is not None:
        raise NotFoundOrClosed("Trial not found")
    trial.deleted_at = datetime.now(timezone.utc)
    trial.deleted_by = actor.username
    audit.log_action(
        db,
        actor.user_id,
        actor.department_id,
        "Trial deleted",
        f"Trial {trial_id} moved to the recycle bin by {actor.username}",
        trial_id=trial_id,
        commit=False,
    )
    db.commit()
    db.refresh(trial)
    return trial


def restore_trial(db: Session, trial_id: str | None, actor: schemas.TokenClaims) -> models.Trial:
    trial = _get_any(db, trial_id)
    if trial is None or trial.deleted_at is None:
        raise NotFoundOrClosed("Trial not found in recycle bin")
    trial.deleted_at = None
    trial.deleted_by = None
    audit.log_action(
        db,
        actor.user_id,
        actor.department_id,
        "Trial restored",
        f"Trial {trial_id} restored by {actor.username}",
        trial_id=trial_id,
        commit=False,
    )
    db.commit()
    db.refresh(trial)
    return trial


def list_deleted_trials(db: Session) -> list[models.Trial]:
    return (
        db.query(models.Trial)
        .filter(models.Trial.deleted_at.isnot(None))
        .order_by(models.Trial.deleted_at.desc())
        .all()
    )
