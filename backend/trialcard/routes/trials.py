from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import schemas
from ..auth import get_current_user
from ..config import Settings, current_settings
from ..database import get_db
from ..rbac import DEPT_METHODS, STAGE_UPDATE_ROLES, authorize_department, authorize_roles
from ..services import trial_lifecycle

router = APIRouter(prefix="/api/trial", tags=["trials"])


@router.post("", status_code=201, response_model=schemas.Envelope[schemas.TrialOut])
async def create_trial(
    payload: schemas.TrialCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(current_settings),
    user: schemas.TokenClaims = Depends(authorize_department(DEPT_METHODS)),
):
    trial = trial_lifecycle.create_trial(db, settings, payload, user)
    return {"success": True, "message": "Trial created successfully", "data": trial}


@router.get("", response_model=schemas.Envelope[list[schemas.TrialOut]])
async def list_trials(
    status: str | None = None,
    db: Session = Depends(get_db),
    user: schemas.TokenClaims = Depends(get_current_user),
):
    return {"success": True, "data": trial_lifecycle.list_trials(db, status)}


@router.get("/id", response_model=schemas.Envelope[schemas.NextTrialId])
async def preview_trial_id(
    db: Session = Depends(get_db),
    user: schemas.TokenClaims = Depends(get_current_user),
):
    return {"success": True, "data": {"trialId": trial_lifecycle.next_trial_id(db)}}


@router.get("/trial_id", response_model=schemas.Envelope[schemas.TrialOut])
async def get_trial(
    trial_id: str | None = None,
    db: Session = Depends(get_db),
    user: schemas.TokenClaims = Depends(get_current_user),
):
    return {"success": True, "data": trial_lifecycle.get_trial(db, trial_id)}


@router.put(
    "/status",
    response_model=schemas.MessageOut,
    dependencies=[Depends(authorize_department(DEPT_METHODS))],
)
async def update_trial_status(
    body: schemas.TrialStatusUpdate,
    db: Session = Depends(get_db),
    user: schemas.TokenClaims = Depends(authorize_roles(*STAGE_UPDATE_ROLES)),
):
    trial_lifecycle.update_status(db, body.trial_id, body.status, user)
    return {"success": True, "message": "Trial status updated successfully"}


@router.delete(
    "",
    response_model=schemas.Envelope[schemas.DeletedTrialOut],
    dependencies=[Depends(authorize_department(DEPT_METHODS))],
)
async def delete_trial(
    body: schemas.TrialRef,
    db: Session = Depends(get_db),
    user: schemas.TokenClaims = Depends(authorize_roles(*STAGE_UPDATE_ROLES)),
):
    trial = trial_lifecycle.soft_delete_trial(db, body.trial_id, user)
    return {"success": True, "message": "Trial moved to recycle bin", "data": trial}


@router.get(
    "/deleted",
    response_model=schemas.Envelope[list[schemas.DeletedTrialOut]],
    dependencies=[Depends(authorize_department(DEPT_METHODS))],
)
async def list_deleted_trials(
    db: Session = Depends(get_db),
    user: schemas.TokenClaims = Depends(authorize_roles(*STAGE_UPDATE_ROLES)),
):
    return {"success": True, "data": trial_lifecycle.list_deleted_trials(db)}


@router.put(
    "/restore",
    response_model=schemas.Envelope[schemas.TrialOut],
    dependencies=[Depends(authorize_department(DEPT_METHODS))],
)
async def restore_trial(
    body: schemas.TrialRef,
    db: Session = Depends(get_db),
    user: schemas.TokenClaims = Depends(authorize_roles(*STAGE_UPDATE_ROLES)),
):
    trial = trial_lifecycle.restore_trial(db, body.trial_id, user)
    return {"success": True, "message": "Trial restored successfully", "data": trial}
