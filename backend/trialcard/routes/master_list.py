from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import audit, models, schemas
from ..auth import get_current_user
from ..database import get_db
from ..errors import NotFoundOrClosed, ValidationFailed
from ..rbac import DEPT_METHODS, authorize_department

router = APIRouter(prefix="/api/master-list", tags=["master-list"])

methods_only = authorize_department(DEPT_METHODS)


def _pattern_taken(db: Session, pattern_code: str, exclude_id: int | None = None) -> bool:
    query = db.query(models.MasterCard).filter(models.MasterCard.pattern_code == pattern_code)
    if exclude_id is not None:
        query = query.filter(models.MasterCard.id != exclude_id)
    return query.first() is not None


@router.get("", response_model=schemas.Envelope[list[schemas.MasterCardOut]])
async def list_master_cards(
    db: Session = Depends(get_db),
    user: schemas.TokenClaims = Depends(get_current_user),
):
    cards = db.query(models.MasterCard).order_by(models.MasterCard.id.desc()).all()
    return {"success": True, "data": cards}


@router.get("/search", response_model=schemas.Envelope[list[schemas.MasterCardOut]])
async def search_master_cards(
    pattern_code: str | None = None,
    db: Session = Depends(get_db),
    user: schemas.TokenClaims = Depends(get_current_user),
):
    if not pattern_code:
        raise ValidationFailed("pattern_code query parameter is required")
    cards = (
        db.query(models.MasterCard)
        .filter(models.MasterCard.pattern_code.ilike(f"%{pattern_code}%"))
        .order_by(models.MasterCard.pattern_code)
        .all()
    )
    return {"success": True, "data": cards}


@router.post("", status_code=201, response_model=schemas.Envelope[schemas.MasterCardOut])
async def create_master_card(
    payload: schemas.MasterCardCreate,
    db: Session = Depends(get_db),
    user: schemas.TokenClaims = Depends(methods_only),
):
    if _pattern_taken(db, payload.pattern_code):
        raise ValidationFailed(f"Pattern code {payload.pattern_code} already exists")
    card = models.MasterCard(**payload.model_dump(exclude_none=True))
    db.add(card)
    audit.log_action(
        db,
        user.user_id,
        user.department_id,
        "Master list created",
        f"Pattern {payload.pattern_code} added to master list by {user.username}",
        commit=False,
    )
    db.commit()
    db.refresh(card)
    return {"success": True, "message": "Master card created successfully", "data": card}


@router.put("/toggle-status", response_model=schemas.Envelope[schemas.MasterCardOut])
async def toggle_master_card(
    body: schemas.MasterCardToggle,
    db: Session = Depends(get_db),
    user: schemas.TokenClaims = Depends(methods_only),
):
    card = db.get(models.MasterCard, body.id)
    if card is None:
        raise NotFoundOrClosed("Master card not found")
    card.is_active = body.is_active
    state = "activated" if body.is_active else "deactivated"
    audit.log_action(
        db,
        user.user_id,
        user.department_id,
        "Master list status changed",
        f"Pattern {card.pattern_code} {state} by {user.username}",
        commit=False,
    )
    db.commit()
    db.refresh(card)
    return {"success": True, "message": f"Master card {state}", "data": card}


@router.put("/{card_id}", response_model=schemas.Envelope[schemas.MasterCardOut])
async def update_master_card(
    card_id: int,
    payload: schemas.MasterCardUpdate,
    db: Session = Depends(get_db),
    user: schemas.TokenClaims = Depends(methods_only),
):
    card = db.get(models.MasterCard, card_id)
    if card is None:
        raise NotFoundOrClosed("Master card not found")
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("pattern_code") and _pattern_taken(db, changes["pattern_code"], card_id):
        raise ValidationFailed(f"Pattern code {changes['pattern_code']} already exists")
    for field, value in changes.items():
        setattr(card, field, value)
    audit.log_action(
        db,
        user.user_id,
        user.department_id,
        "Master list updated",
        f"Pattern {card.pattern_code} updated by {user.username}",
        commit=False,
    )
    db.commit()
    db.refresh(card)
    return {"success": True, "message": "Master card updated successfully", "data": card}


@router.delete("/bulk", response_model=schemas.MessageOut)
async def bulk_delete_master_cards(
    body: schemas.BulkDelete,
    db: Session = Depends(get_db),
    user: schemas.TokenClaims = Depends(methods_only),
):
    cards = db.query(models.MasterCard).filter(models.MasterCard.id.in_(body.ids)).all()
    if not cards:
        raise NotFoundOrClosed("No matching master cards")
    codes = ", ".join(card.pattern_code for card in cards)
    for card in cards:
        db.delete(card)
    audit.log_action(
        db,
        user.user_id,
        user.department_id,
        "Master list deleted",
        f"Patterns {codes} removed by {user.username}",
        commit=False,
    )
    db.commit()
    return {
        "success": True,
        "message": f"{len(cards)} master card(s) deleted",
        "data": {"deleted": len(cards)},
    }
