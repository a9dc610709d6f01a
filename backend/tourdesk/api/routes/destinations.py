from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
import logging

from tourdesk.api.deps import require_admin
from tourdesk.db.session import get_db
from tourdesk.models.bus import Bus
from tourdesk.models.destination import Destination
from tourdesk.services import manifests, reservations
from tourdesk.services.bus_layouts import SelectMode, layout_for_bus, render_layout

router = APIRouter()
logger = logging.getLogger(__name__)

class DestinationBody(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    country: str = "Brasil"
    description: str | None = None
    price: float | None = Field(None, ge=0)
    bus_id: int | None = None
    travel_start: date | None = None
    travel_end: date | None = None
    departure_details: str | None = None
    return_details: str | None = None
    kids_policy: str | None = Field(None, pattern="^(yes|no)$")
    whatsapp_group_link: str | None = None
    guides: str | None = None
    drivers: str | None = None
    bus_company: str | None = None
    is_active: bool = True

class DestinationPatch(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    country: str | None = None
    description: str | None = None
    price: float | None = Field(None, ge=0)
    bus_id: int | None = None
    travel_start: date | None = None
    travel_end: date | None = None
    departure_details: str | None = None
    return_details: str | None = None
    kids_policy: str | None = Field(None, pattern="^(yes|no)$")
    whatsapp_group_link: str | None = None
    guides: str | None = None
    drivers: str | None = None
    bus_company: str | None = None
    is_active: bool | None = None

def _dest_dict(d: Destination) -> dict:
    return {
        "id": d.id,
        "name": d.name,
        "country": d.country,
        "description": d.description,
        "price": float(d.price) if d.price is not None else None,
        "bus_id": d.bus_id,
        "travel_start": d.travel_start.isoformat() if d.travel_start else None,
        "travel_end": d.travel_end.isoformat() if d.travel_end else None,
        "departure_details": d.departure_details,
        "return_details": d.return_details,
        "kids_policy": d.kids_policy,
        "whatsapp_group_link": d.whatsapp_group_link,
        "guides": d.guides,
        "drivers": d.drivers,
        "bus_company": d.bus_company,
        "is_active": d.is_active,
    }

def _check_bus(db: Session, bus_id: int | None):
    if bus_id is not None and not db.get(Bus, bus_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Bus not found")

@router.get("")
def list_destinations(db: Session = Depends(get_db), active_only: bool = False):
    q = db.query(Destination)
    if active_only:
        q = q.filter(Destination.is_active == True)  # noqa: E712
    return [_dest_dict(d) for d in q.order_by(Destination.travel_start, Destination.name).all()]

@router.post("", status_code=201, dependencies=[Depends(require_admin)])
def create_destination(payload: DestinationBody, db: Session = Depends(get_db)):
    _check_bus(db, payload.bus_id)
    d = Destination(**payload.model_dump())
    db.add(d)
    db.commit()
    db.refresh(d)
    return _dest_dict(d)

@router.get("/{destination_id}")
def destination_detail(destination_id: int, db: Session = Depends(get_db)):
    return _dest_dict(reservations.get_destination(db, destination_id))

@router.put("/{destination_id}", dependencies=[Depends(require_admin)])
def update_destination(destination_id: int, payload: DestinationPatch, db: Session = Depends(get_db)):
    d = reservations.get_destination(db, destination_id)
    data = payload.model_dump(exclude_unset=True)
    if "bus_id" in data:
        _check_bus(db, data["bus_id"])
    for field, value in data.items():
        setattr(d, field, value)
    db.commit()
    db.refresh(d)
    return _dest_dict(d)

@router.delete("/{destination_id}", dependencies=[Depends(require_admin)])
def delete_destination(destination_id: int, db: Session = Depends(get_db)):
    d = reservations.get_destination(db, destination_id)
    db.delete(d)
    db.commit()
    return {"status": "deleted"}

@router.get("/{destination_id}/seat-map", dependencies=[Depends(require_admin)])
def seat_map(
    destination_id: int,
    db: Session = Depends(get_db),
    mode: str = Query("reserved-only", pattern="^(default|none|reserved-only|all)$"),
    highlight: str | None = None,
):
    """Occupancy view: reserved seats carry the passenger name."""
    d = reservations.get_destination(db, destination_id)
    bus = reservations.destination_bus(db, d)
    names = reservations.seat_owner_names(db, d.id)
    return render_layout(
        layout_for_bus(bus),
        reserved_seats=list(names),
        highlighted_seat=highlight,
        mode=SelectMode.parse(mode),
        seat_info=names,
    )

@router.get("/{destination_id}/occupancy", dependencies=[Depends(require_admin)])
def destination_occupancy(destination_id: int, db: Session = Depends(get_db)):
    return reservations.occupancy(db, destination_id)

@router.get("/{destination_id}/unassigned", dependencies=[Depends(require_admin)])
def destination_unassigned(destination_id: int, db: Session = Depends(get_db)):
    return reservations.unassigned_passengers(db, destination_id)

@router.get("/{destination_id}/manifests/{kind}", dependencies=[Depends(require_admin)])
def destination_manifest(destination_id: int, kind: str, db: Session = Depends(get_db)):
    if kind not in manifests.KINDS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid PDF type")
    d = reservations.get_destination(db, destination_id)
    bus = db.get(Bus, d.bus_id) if d.bus_id else None
    if not bus and kind != "hotel":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Bus configuration not found for this destination")
    trip = manifests.ManifestTrip(
        name=d.name,
        country=d.country,
        bus_name=bus.name if bus else None,
        bus_type=bus.type if bus else None,
        guides=d.guides,
        drivers=d.drivers,
        bus_company=d.bus_company,
    )
    today = date.today()
    pdf = manifests.build_manifest(kind, trip, reservations.passenger_roster(db, d.id), today)
    filename = manifests.manifest_filename(kind, d.name, bus.name if bus else None, today)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
