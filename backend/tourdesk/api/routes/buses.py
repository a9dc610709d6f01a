from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tourdesk.api.deps import require_admin
from tourdesk.db.session import get_db
from tourdesk.models.bus import Bus
from tourdesk.models.destination import Destination
from tourdesk.models.seat_reservation import SeatReservation
from tourdesk.services.bus_layouts import layout_for_bus, render_layout

router = APIRouter()

class BusBody(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    type: str | None = Field(None, max_length=120)
    total_seats: int = Field(..., ge=1, le=120)
    description: str | None = None
    is_active: bool = True

class BusPatch(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=120)
    type: str | None = Field(None, max_length=120)
    total_seats: int | None = Field(None, ge=1, le=120)
    description: str | None = None
    is_active: bool | None = None

def _bus_dict(b: Bus) -> dict:
    layout = layout_for_bus(b)
    return {
        "id": b.id,
        "name": b.name,
        "type": b.type,
        "total_seats": b.total_seats,
        "description": b.description,
        "is_active": b.is_active,
        "layout": layout.key,
        "guide_seat": layout.guide_seat,
    }

def _get_bus(db: Session, bus_id: int) -> Bus:
    b = db.get(Bus, bus_id)
    if not b:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Bus not found")
    return b

@router.get("")
def list_buses(db: Session = Depends(get_db), active_only: bool = False):
    q = db.query(Bus)
    if active_only:
        q = q.filter(Bus.is_active == True)  # noqa: E712
    return [_bus_dict(b) for b in q.order_by(Bus.name).all()]

@router.post("", status_code=201, dependencies=[Depends(require_admin)])
def create_bus(payload: BusBody, db: Session = Depends(get_db)):
    b = Bus(**payload.model_dump())
    db.add(b)
    db.commit()
    db.refresh(b)
    return _bus_dict(b)

@router.get("/{bus_id}")
def bus_detail(bus_id: int, db: Session = Depends(get_db)):
    return _bus_dict(_get_bus(db, bus_id))

@router.put("/{bus_id}", dependencies=[Depends(require_admin)])
def update_bus(bus_id: int, payload: BusPatch, db: Session = Depends(get_db)):
    b = _get_bus(db, bus_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(b, field, value)
    db.commit()
    db.refresh(b)
    return _bus_dict(b)

@router.delete("/{bus_id}", dependencies=[Depends(require_admin)])
def delete_bus(bus_id: int, db: Session = Depends(get_db)):
    b = _get_bus(db, bus_id)
    in_use = db.query(Destination).filter(Destination.bus_id == b.id, Destination.is_active == True).count()  # noqa: E712
    if in_use:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Bus is assigned to active destinations")
    # reservations keep their bus, archived trips included
    if db.query(SeatReservation).filter(SeatReservation.bus_id == b.id).count():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Bus has seat reservations")
    db.delete(b)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Bus has seat reservations")
    return {"status": "deleted"}

@router.get("/{bus_id}/layout")
def bus_layout(bus_id: int, db: Session = Depends(get_db), mode: str = Query("default", pattern="^(default|none|reserved-only|all)$")):
    """Empty seat map of the bus model, for previews in the bus form."""
    return render_layout(layout_for_bus(_get_bus(db, bus_id)), mode=mode)
