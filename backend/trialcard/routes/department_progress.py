from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import schemas
from ..auth import get_current_user
from ..config import Settings, current_settings
from ..database import get_db
from ..rbac import DEPT_METHODS, ROLE_ADMIN, ROLE_HOD, authorize_department, authorize_roles
from ..services import department_progress

router = APIRouter(prefix="/api/department-progress", tags=["department-progress"])


@router.post("", status_code=201, response_model=schemas.Envelope[schemas.DepartmentProgressOut])
async def create_progress(
    payload: schemas.DepartmentProgressCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(current_settings),
    user: schemas.TokenClaims = Depends(authorize_department(DEPT_METHODS)),
):
    progress = department_progress.create_progress(db, settings, payload, user)
    return {"success": True, "message": "Department progress created", "data": progress}


@router.put("/update", response_model=schemas.Envelope[schemas.DepartmentProgressOut])
async def forward_progress(
    payload: schemas.DepartmentProgressForward,
    db: Session = Depends(get_db),
    settings: Settings = Depends(current_settings),
    user: schemas.TokenClaims = Depends(get_current_user),
):
    progress = department_progress.forward_progress(db, settings, payload, user)
    return {
        "success": True,
        "message": f"Trial forwarded to {progress.username}",
        "data": progress,
    }


@router.put("/approve", response_model=schemas.Envelope[schemas.DepartmentProgressOut])
async def approve_progress(
    payload: schemas.DepartmentProgressApprove,
    db: Session = Depends(get_db),
    user: schemas.TokenClaims = Depends(authorize_roles(ROLE_HOD, ROLE_ADMIN)),
):
    progress = department_progress.approve_progress(db, payload, user)
    return {"success": True, "message": "Department progress approved", "data": progress}


@router.get("/get-progress", response_model=schemas.Envelope[list[schemas.DepartmentProgressOut]])
async def get_progress(
    trial_id: str | None = None,
    db: Session = Depends(get_db),
    user: schemas.TokenClaims = Depends(get_current_user),
):
    return {"success": True, "data": department_progress.list_for_trial(db, trial_id)}


@router.get("/pending", response_model=schemas.Envelope[list[schemas.PendingProgressOut]])
async def pending_progress(
    username: str | None = None,
    db: Session = Depends(get_db),
    user: schemas.TokenClaims = Depends(get_current_user),
):
    return {
        "success": True,
        "data": department_progress.pending_for_user(db, username or user.username),
    }


@router.get("/completed", response_model=schemas.Envelope[list[schemas.CompletedTrialOut]])
async def completed_trials(
    db: Session = Depends(get_db),
    user: schemas.TokenClaims = Depends(get_current_user),
):
    return {
        "success": True,
        "data": department_progress.completed_for_department(db, user.department_id),
    }
