"""Routers for the department stage records, one per entry in ``services.stages.STAGES``."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import schemas
from ..auth import get_current_user
from ..database import get_db
from ..rbac import authorize_department, authorize_roles
from ..services import stages
from ..services.stages import StageDefinition


def build_router(stage: StageDefinition) -> APIRouter:
    router = APIRouter(prefix=f"/api/{stage.resource}", tags=[stage.resource])
    department_guard = authorize_department(*stage.departments)
    role_guard = authorize_roles(*stage.update_roles)

    @router.post("", status_code=201, response_model=schemas.Envelope[stage.out])
    async def create_record(
        payload: stage.payload,
        db: Session = Depends(get_db),
        user: schemas.TokenClaims = Depends(department_guard),
    ):
        record = stages.create_record(db, stage, payload, user)
        return {"success": True, "message": f"{stage.label} created successfully", "data": record}

    @router.put(
        "",
        response_model=schemas.Envelope[stage.out],
        dependencies=[Depends(department_guard)],
    )
    async def update_record(
        payload: stage.payload,
        db: Session = Depends(get_db),
        user: schemas.TokenClaims = Depends(role_guard),
    ):
        record = stages.update_record(db, stage, payload, user)
        return {"success": True, "message": f"{stage.label} updated successfully", "data": record}

    @router.get("", response_model=schemas.Envelope[list[stage.out]])
    async def list_records(
        db: Session = Depends(get_db),
        user: schemas.TokenClaims = Depends(get_current_user),
    ):
        return {"success": True, "data": stages.list_records(db, stage)}

    @router.get("/trial_id", response_model=schemas.Envelope[stage.out])
    async def get_record(
        trial_id: str | None = None,
        db: Session = Depends(get_db),
        user: schemas.TokenClaims = Depends(get_current_user),
    ):
        return {"success": True, "data": stages.get_by_trial(db, stage, trial_id)}

    return router


routers = [build_router(stage) for stage in stages.STAGES]
