"""Row builders shared by the API tests."""
from datetime import date, datetime, timedelta

from tourdesk.core.security import create_access_token, generate_approval_token, get_password_hash
from tourdesk.db.session import SessionLocal
from tourdesk.models.bus import Bus
from tourdesk.models.child import Child
from tourdesk.models.client import Client
from tourdesk.models.destination import Destination
from tourdesk.models.seat_reservation import SeatReservation
from tourdesk.models.user import User


def _save(obj):
    db = SessionLocal()
    try:
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj.id
    finally:
        db.close()


def make_user(email: str, role: str = "admin", password: str = "testpass", is_active: bool = True) -> int:
    return _save(User(email=email, full_name=email.split("@")[0].title(), hashed_password=get_password_hash(password), role=role, is_active=is_active))


def headers_for(email: str = "admin@example.com", role: str = "admin", name: str | None = None) -> dict:
    token = create_access_token(subject=email, roles=[role], full_name=name or email.split("@")[0].title())
    return {"Authorization": f"Bearer {token}"}


def token_for(email: str, role: str) -> str:
    return create_access_token(subject=email, roles=[role])


def make_bus(type: str = "DD 64", total_seats: int = 64, name: str | None = None) -> int:
    return _save(Bus(name=name or f"{type} bus", type=type, total_seats=total_seats, is_active=True))


def make_destination(bus_id: int | None = None, name: str = "Gramado", kids_policy: str | None = None, is_active: bool = True, **kw) -> int:
    return _save(Destination(name=name, country="Brasil", bus_id=bus_id, kids_policy=kids_policy, is_active=is_active, **kw))


def make_client(
    destination_id: int | None,
    first_name: str = "Ana",
    last_name: str = "Souza",
    status: str = "pending",
    expires_in_days: int = 7,
    **kw,
) -> tuple[int, str]:
    token = generate_approval_token()
    client_id = _save(Client(
        first_name=first_name,
        last_name=last_name,
        destination_id=destination_id,
        approval_token=token,
        approval_status=status,
        approval_expires_at=datetime.utcnow() + timedelta(days=expires_in_days),
        travel_price=1500,
        **kw,
    ))
    return client_id, token


def make_child(client_id: int, name: str = "Pedro Souza", age_years: int = 10, relationship: str = "filho", birthdate: date | None = None, **kw) -> int:
    if birthdate is None:
        today = date.today()
        birthdate = date(today.year - age_years, 1, 1) if age_years else today
    return _save(Child(client_id=client_id, name=name, birthdate=birthdate, relationship=relationship, price=750, **kw))


def reserve(destination_id: int, bus_id: int, client_id: int, seat: str, child_id: int | None = None, name: str = "Outro Passageiro") -> int:
    return _save(SeatReservation(
        destination_id=destination_id,
        bus_id=bus_id,
        client_id=client_id,
        child_id=child_id,
        client_name=name,
        seat_number=seat,
        status="reserved",
        is_child=child_id is not None,
    ))


def load(model, obj_id):
    db = SessionLocal()
    try:
        return db.get(model, obj_id)
    finally:
        db.close()


def reservations_of(destination_id: int) -> list[SeatReservation]:
    db = SessionLocal()
    try:
        return db.query(SeatReservation).filter(SeatReservation.destination_id == destination_id).order_by(SeatReservation.seat_number).all()
    finally:
        db.close()
