"""One parameterized implementation behind every department stage resource."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel
from sqlalchemy.orm import Session

from .. import audit, models, schemas
from ..errors import NotFoundOrClosed, ValidationFailed
from ..rbac import (
    DEPT_MACHINE_SHOP,
    DEPT_MELTING,
    DEPT_METALLURGY,
    DEPT_METHODS,
    DEPT_QUALITY,
    DEPT_SAND,
    STAGE_UPDATE_ROLES,
)
from .trial_lifecycle import validate_open_for_submission


@dataclass(frozen=True)
class StageDefinition:
    key: str
    resource: str
    label: str
    model: type
    payload: type[BaseModel]
    out: type[BaseModel]
    departments: tuple[int, ...]
    update_roles: tuple[str, ...] = STAGE_UPDATE_ROLES


STAGES: tuple[StageDefinition, ...] = (
    StageDefinition(
        key="machine_shop",
        resource="machine-shop",
        label="Machine shop",
        model=models.MachineShopRecord,
        payload=schemas.MachineShopPayload,
        out=schemas.MachineShopOut,
        departments=(DEPT_METHODS, DEPT_MACHINE_SHOP),
    ),
    StageDefinition(
        key="material_correction",
        resource="material-correction",
        label="Material correction",
        model=models.MaterialCorrectionRecord,
        payload=schemas.MaterialCorrectionPayload,
        out=schemas.MaterialCorrectionOut,
        departments=(DEPT_METHODS, DEPT_MELTING),
    ),
    StageDefinition(
        key="metallurgical_inspection",
        resource="metallurgical-inspection",
        label="Metallurgical inspection",
        model=models.MetallurgicalInspectionRecord,
        payload=schemas.MetallurgicalInspectionPayload,
        out=schemas.MetallurgicalInspectionOut,
        departments=(DEPT_METHODS, DEPT_METALLURGY),
    ),
    StageDefinition(
        key="visual_inspection",
        resource="visual-inspection",
        label="Visual inspection",
        model=models.VisualInspectionRecord,
        payload=schemas.VisualInspectionPayload,
        out=schemas.VisualInspectionOut,
        departments=(DEPT_METHODS, DEPT_QUALITY),
    ),

    StageDefinition(
        key="sand_properties",
        resource="sand-properties",
        label="Sand properties",
        model=models.SandPropertiesRecord,
        payload=schemas.SandPropertiesPayload,
        out=schemas.SandPropertiesOut,
        departments=(DEPT_METHODS, DEPT_SAND),
    ),
    StageDefinition(
        key="mechanical_properties",
        resource="mechanical-properties",
        label="Mechanical properties",
        model=models.MechanicalPropertiesRecord,
        payload=schemas.MechanicalPropertiesPayload,
        out=schemas.MechanicalPropertiesOut,
        departments=(DEPT_METHODS, DEPT_METALLURGY),
    ),
)


def _find(db: Session, stage: StageDefinition, trial_id: str):
    return db.query(stage.model).filter(stage.model.trial_id == trial_id).first()


def create_record(
    db: Session,
    stage: StageDefinition,
    payload: schemas.StagePayload,
    actor: schemas.TokenClaims,
):
    validate_open_for_submission(db, payload.trial_id)
    if _find(db, stage, payload.trial_id) is not None:
        raise ValidationFailed(f"{stage.label} already recorded for trial {payload.trial_id}")

    record = stage.model(**payload.model_dump(exclude={"stage"}))
    db.add(record)
    audit.log_action(
        db,
        actor.user_id,
        actor.department_id,
        f"{stage.label} created",
        f"{stage.label} for trial {payload.trial_id} created by {actor.username}",
        trial_id=payload.trial_id,
        commit=False,
    )
    db.commit()
    db.refresh(record)
    return record


def update_record(
    db: Session,
    stage: StageDefinition,
    payload: schemas.StagePayload,
    actor: schemas.TokenClaims,
):
    record = _find(db, stage, payload.trial_id)
    if record is None:
        raise NotFoundOrClosed(f"No {stage.label.lower()} record for trial {payload.trial_id}")

    changes = payload.model_dump(exclude_unset=True, exclude={"stage", "trial_id"})
    for field, value in changes.items():
        setattr(record, field, value)
    audit.log_action(
        db,
        actor.user_id,
        actor.department_id,
        f"{stage.label} updated",
        f"{stage.label} for trial {payload.trial_id} updated by {actor.username}",
        trial_id=payload.trial_id,
        commit=False,
    )
    db.commit()
    db.refresh(record)
    return record


def list_records(db: Session, stage: StageDefinition):
    return db.query(stage.model).order_by(stage.model.created_at.desc()).all()


def get_by_trial(db: Session, stage: StageDefinition, trial_id: str | None):
    if not trial_id:
        raise ValidationFailed("trial_id query parameter is required")
    trial_id = trial_id.replace('"', "").replace("'", "")
    record = _find(db, stage, trial_id)
    if record is None:
        raise NotFoundOrClosed(f"No {stage.label.lower()} record for trial {trial_id}")
    return record
