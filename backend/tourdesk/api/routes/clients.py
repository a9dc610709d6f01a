from datetime import date, datetime, timedelta
import time
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from tourdesk.api.deps import get_current_identity, require_admin
from tourdesk.core.config import settings
from tourdesk.core.security import generate_approval_token
from tourdesk.db.session import get_db
from tourdesk.models.child import Child
from tourdesk.models.client import Client
from tourdesk.models.seat_reservation import SeatReservation
from tourdesk.schemas.seats import SeatSelectionBody
from tourdesk.services import reservations

router = APIRouter(dependencies=[Depends(require_admin)])
children_router = APIRouter(dependencies=[Depends(require_admin)])

# In-memory throttle store { (email, client_id): last_ts }
_last_seat_edit: dict[tuple[str, int], float] = {}

RELATIONSHIP_PATTERN = "^(filho|filha|filho\\(a\\)|cônjuge|pai|mãe|irmão|irmã|avô|avó|tio|tia|sobrinho|sobrinha|amigo|outro)$"

class ClientBody(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=120)
    last_name: str = Field(..., min_length=1, max_length=120)
    birthdate: date | None = None
    cpf: str | None = None
    rg: str | None = None
    phone: str | None = None
    email: EmailStr | None = None
    destination_id: int | None = None
    departure_location: str | None = None
    travel_price: float | None = Field(None, ge=0)
    discount_percentage: float | None = Field(None, ge=0, le=100)

class ClientPatch(BaseModel):
    first_name: str | None = Field(None, min_length=1, max_length=120)
    last_name: str | None = Field(None, min_length=1, max_length=120)
    birthdate: date | None = None
    cpf: str | None = None
    rg: str | None = None
    phone: str | None = None
    email: EmailStr | None = None
    destination_id: int | None = None
    departure_location: str | None = None
    travel_price: float | None = Field(None, ge=0)
    discount_percentage: float | None = Field(None, ge=0, le=100)
    is_cancelled: bool | None = None

class ChildBody(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    birthdate: date | None = None
    cpf: str | None = None
    rg: str | None = None
    relationship: str = Field("outro", pattern=RELATIONSHIP_PATTERN)
    price: float | None = Field(None, ge=0)

class ChildPatch(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    birthdate: date | None = None
    cpf: str | None = None
    rg: str | None = None
    relationship: str | None = Field(None, pattern=RELATIONSHIP_PATTERN)
    price: float | None = Field(None, ge=0)

def _client_dict(c: Client) -> dict:
    data = reservations.serialize_client(c)
    data.update({
        "cpf": c.cpf,
        "rg": c.rg,
        "phone": c.phone,
        "email": c.email,
        "destination_id": c.destination_id,
        "departure_location": c.departure_location,
        "discount_percentage": float(c.discount_percentage) if c.discount_percentage is not None else None,
        "approval_token": c.approval_token,
        "approval_expires_at": c.approval_expires_at.isoformat() if c.approval_expires_at else None,
        "approval_link": f"/approve/{c.approval_token}" if c.approval_token else None,
        "is_cancelled": c.is_cancelled,
    })
    return data

def _child_dict(ch: Child) -> dict:
    data = reservations.serialize_child(ch)
    data.update({"client_id": ch.client_id, "cpf": ch.cpf, "rg": ch.rg})
    return data

def _issue_token(c: Client):
    c.approval_token = generate_approval_token()
    c.approval_status = "pending"
    c.approval_expires_at = datetime.utcnow() + timedelta(days=settings.approval_link_days)

@router.get("")
def list_clients(db: Session = Depends(get_db), destination_id: int | None = None, include_cancelled: bool = False):
    q = db.query(Client).filter(Client.is_deleted == False)  # noqa: E712
    if destination_id is not None:
        q = q.filter(Client.destination_id == destination_id)
    if not include_cancelled:
        q = q.filter(Client.is_cancelled == False)  # noqa: E712
    return [_client_dict(c) for c in q.order_by(Client.first_name, Client.last_name).all()]

@router.post("", status_code=201)
def create_client(payload: ClientBody, db: Session = Depends(get_db), identity=Depends(get_current_identity)):
    email, _roles = identity
    if payload.destination_id is not None:
        reservations.get_destination(db, payload.destination_id)
    c = Client(**payload.model_dump(), created_by_email=email)
    _issue_token(c)
    db.add(c)
    db.commit()
    db.refresh(c)
    return _client_dict(c)

@router.get("/{client_id}")
def client_detail(client_id: int, db: Session = Depends(get_db)):
    c = reservations.get_client(db, client_id)
    data = _client_dict(c)
    data["children"] = [_child_dict(ch) for ch in reservations.children_of(db, c.id)]
    return data

@router.put("/{client_id}")
def update_client(client_id: int, payload: ClientPatch, db: Session = Depends(get_db)):
    c = reservations.get_client(db, client_id)
    data = payload.model_dump(exclude_unset=True)
    if data.get("destination_id") not in (None, c.destination_id):
        reservations.get_destination(db, data["destination_id"])
        if c.destination_id is not None and reservations.reserved_seats_of_client(db, c.destination_id, c.id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Release the client's seats before changing destination")
    for field, value in data.items():
        setattr(c, field, value)
    db.commit()
    db.refresh(c)
    return _client_dict(c)

@router.delete("/{client_id}")
def delete_client(client_id: int, db: Session = Depends(get_db)):
    """Soft delete; the family's seats are released."""
    c = reservations.get_client(db, client_id)
    db.query(SeatReservation).filter(SeatReservation.client_id == c.id).delete(synchronize_session=False)
    c.is_deleted = True
    c.deleted_at = datetime.utcnow()
    c.seat_number = None
    for ch in reservations.children_of(db, c.id):
        ch.seat_number = None
    db.commit()
    return {"status": "deleted"}

@router.post("/{client_id}/approval-link")
def reissue_approval_link(client_id: int, db: Session = Depends(get_db)):
    c = reservations.get_client(db, client_id)
    if c.approval_status == "approved":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Client already approved")
    _issue_token(c)
    db.commit()
    db.refresh(c)
    return _client_dict(c)

@router.get("/{client_id}/children")
def list_children(client_id: int, db: Session = Depends(get_db)):
    c = reservations.get_client(db, client_id)
    return [_child_dict(ch) for ch in reservations.children_of(db, c.id)]

@router.post("/{client_id}/children", status_code=201)
def add_child(client_id: int, payload: ChildBody, db: Session = Depends(get_db)):
    c = reservations.get_client(db, client_id)
    ch = Child(client_id=c.id, **payload.model_dump())
    db.add(ch)
    db.commit()
    db.refresh(ch)
    return _child_dict(ch)

@router.put("/{client_id}/seats")
def update_client_seats(client_id: int, payload: SeatSelectionBody, db: Session = Depends(get_db), identity=Depends(get_current_identity)):
    """Admin seat editor: replace the whole family's seats at once."""
    email, _roles = identity
    key = (email, client_id)
    now_ts = time.time()
    last = _last_seat_edit.get(key)
    if last and (now_ts - last) < settings.selection_throttle_seconds:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Too many seat changes, wait a moment")
    _last_seat_edit[key] = now_ts
    return reservations.replace_client_seats(db, client_id, payload.client_seat, payload.children_payload())

def _get_child(db: Session, child_id: int) -> Child:
    ch = db.get(Child, child_id)
    if not ch:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Companion not found")
    return ch

@children_router.put("/{child_id}")
def update_child(child_id: int, payload: ChildPatch, db: Session = Depends(get_db)):
    ch = _get_child(db, child_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(ch, field, value)
    db.commit()
    db.refresh(ch)
    return _child_dict(ch)

@children_router.delete("/{child_id}")
def delete_child(child_id: int, db: Session = Depends(get_db)):
    ch = _get_child(db, child_id)
    db.query(SeatReservation).filter(SeatReservation.child_id == ch.id).delete(synchronize_session=False)
    db.delete(ch)
    db.commit()
    return {"status": "deleted"}
