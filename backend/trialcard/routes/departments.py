from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db

router = APIRouter(prefix="/api/departments", tags=["departments"])


@router.get("", response_model=schemas.Envelope[list[schemas.DepartmentOut]])
async def list_departments(db: Session = Depends(get_db)):
    departments = db.query(models.Department).order_by(models.Department.department_id).all()
    return {"success": True, "data": departments}
