"""Seat reservation rules shared by the public token flow and the admin screens."""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tourdesk.core.errors import ConflictError, DomainError, NotFoundError
from tourdesk.models.bus import Bus
from tourdesk.models.child import Child
from tourdesk.models.client import Client
from tourdesk.models.destination import Destination
from tourdesk.models.seat_reservation import SeatReservation
from tourdesk.services.bus_layouts import BusLayout, layout_for_bus
from tourdesk.services.passengers import build_passengers, can_choose_seat

logger = logging.getLogger(__name__)


# lookups

def get_destination(db: Session, destination_id: int | None) -> Destination:
    dest = db.get(Destination, destination_id) if destination_id is not None else None
    if not dest:
        raise NotFoundError("Destination not found")
    return dest


def get_client(db: Session, client_id: int) -> Client:
    client = db.get(Client, client_id)
    if not client or client.is_deleted:
        raise NotFoundError("Client not found")
    return client


def client_by_token(db: Session, token: str) -> Client:
    client = db.query(Client).filter(Client.approval_token == token, Client.is_deleted == False).first()  # noqa: E712
    if not client:
        raise NotFoundError("Invalid or expired token")
    return client


def destination_bus(db: Session, dest: Destination) -> Bus:
    bus = db.get(Bus, dest.bus_id) if dest.bus_id else None
    if not bus:
        raise DomainError("No bus configured for this destination")
    return bus


def children_of(db: Session, client_id: int) -> list[Child]:
    return db.query(Child).filter(Child.client_id == client_id).order_by(Child.id).all()


def reservations_for(db: Session, destination_id: int) -> list[SeatReservation]:
    return (
        db.query(SeatReservation)
        .filter(SeatReservation.destination_id == destination_id)
        .order_by(SeatReservation.id)
        .all()
    )


def reserved_seats(db: Session, destination_id: int, exclude_client_id: int | None = None) -> list[str]:
    q = db.query(SeatReservation.seat_number).filter(SeatReservation.destination_id == destination_id)
    if exclude_client_id is not None:
        q = q.filter(SeatReservation.client_id != exclude_client_id)
    return [row[0] for row in q.all()]


def seat_owner_names(db: Session, destination_id: int) -> dict[str, str]:
    return {r.seat_number: r.client_name for r in reservations_for(db, destination_id)}


# token state

def token_expired(client: Client, now: datetime | None = None) -> bool:
    """Expiry only applies while the approval is pending."""
    if client.approval_status == "approved":
        return False
    if client.approval_status == "expired":
        return True
    now = now or datetime.utcnow()
    return client.approval_expires_at is not None and client.approval_expires_at < now


def _eligible_children(children: Iterable[Child], kids_policy: str | None, today: date | None) -> list[Child]:
    return [c for c in children if can_choose_seat(c.birthdate, kids_policy, today)]


def seats_already_selected(client: Client, eligible_children: Iterable[Child]) -> bool:
    return bool(client.seat_number) and all(c.seat_number for c in eligible_children)


def serialize_client(client: Client) -> dict:
    return {
        "id": client.id,
        "first_name": client.first_name,
        "last_name": client.last_name,
        "birthdate": client.birthdate.isoformat() if client.birthdate else None,
        "travel_price": float(client.travel_price) if client.travel_price is not None else None,
        "seat_number": client.seat_number,
        "approval_status": client.approval_status,
    }


def serialize_child(child: Child) -> dict:
    return {
        "id": child.id,
        "name": child.name,
        "birthdate": child.birthdate.isoformat() if child.birthdate else None,
        "relationship": child.relationship,
        "price": float(child.price) if child.price is not None else None,
        "seat_number": child.seat_number,
    }


def serialize_reservation(r: SeatReservation) -> dict:
    return {
        "id": r.id,
        "destination_id": r.destination_id,
        "bus_id": r.bus_id,
        "client_id": r.client_id,
        "child_id": r.child_id,
        "client_name": r.client_name,
        "seat_number": r.seat_number,
        "status": r.status,
        "is_child": r.is_child,
        "reserved_at": r.reserved_at.isoformat() if r.reserved_at else None,
    }


def seat_selection_context(db: Session, token: str, today: date | None = None) -> dict:
    client = client_by_token(db, token)
    expired = token_expired(client)
    dest = db.get(Destination, client.destination_id) if client.destination_id else None
    children = children_of(db, client.id)
    kids_policy = dest.kids_policy if dest else None

    bus = None
    layout = None
    taken: list[str] = []
    if dest and dest.bus_id:
        bus_row = db.get(Bus, dest.bus_id)
        if bus_row:
            bus = {"id": bus_row.id, "name": bus_row.name, "type": bus_row.type, "total_seats": bus_row.total_seats}
            layout = layout_for_bus(bus_row).key
            taken = reserved_seats(db, dest.id)

    eligible = _eligible_children(children, kids_policy, today)
    passengers = build_passengers(client, eligible, kids_policy, today)
    return {
        "client": serialize_client(client),
        "children": [serialize_child(c) for c in children],
        "passengers": [{"id": p.id, "name": p.name, "kind": p.kind, "child_id": p.child_id} for p in passengers],
        "bus": bus,
        "layout": layout,
        "destination_name": dest.name if dest else None,
        "destination_kids_policy": kids_policy,
        "reserved_seats": taken,
        "valid": not expired,
        "expired": expired,
        "already_selected": seats_already_selected(client, eligible),
    }


# validation

def _check_layout(layout: BusLayout, seats: Iterable[str]) -> None:
    for seat in seats:
        if layout.is_guide(seat):
            raise DomainError(f"Seat {seat} is reserved for the tour guide")
        if not layout.has_seat(seat):
            raise DomainError(f"Seat {seat} does not exist on this bus")


def _check_duplicates(seats: list[str]) -> None:
    if len(set(seats)) != len(seats):
        raise DomainError("Cannot select the same seat for multiple people")


def _check_conflicts(taken: Iterable[str], seats: Iterable[str]) -> None:
    taken = set(taken)
    clash = [s for s in seats if s in taken]
    if clash:
        raise ConflictError(f"These seats are already reserved: {', '.join(clash)}")


def _resolve_children(children: list[Child], children_seats: list[dict]) -> list[tuple[Child, str]]:
    by_id = {c.id: c for c in children}
    pairs = []
    for entry in children_seats:
        child = by_id.get(entry.get("child_id"))
        if child is None:
            raise DomainError("Companion does not belong to this client")
        seat = str(entry.get("seat_number") or "").strip()
        if not seat:
            raise DomainError(f"Seat number is required for {child.name}")
        pairs.append((child, seat))
    return pairs


def _write_family(db: Session, dest: Destination, client: Client, client_seat: str, pairs: list[tuple[Child, str]]) -> list[SeatReservation]:
    rows = [
        SeatReservation(
            destination_id=dest.id,
            bus_id=dest.bus_id,
            client_id=client.id,
            client_name=client.full_name,
            seat_number=client_seat,
            status="reserved",
            is_child=False,
        )
    ]
    client.seat_number = client_seat
    for child, seat in pairs:
        # companions are stored under the parent's client id
        rows.append(SeatReservation(
            destination_id=dest.id,
            bus_id=dest.bus_id,
            client_id=client.id,
            child_id=child.id,
            client_name=child.name,
            seat_number=seat,
            status="reserved",
            is_child=True,
        ))
        child.seat_number = seat
    db.add_all(rows)
    return rows


def _commit_family(db: Session, rows: list[SeatReservation]) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Seat race lost on %s", [r.seat_number for r in rows])
        raise ConflictError("These seats were just reserved by someone else, please choose again")
    for r in rows:
        db.refresh(r)


# public token flow

def submit_token_selection(
    db: Session,
    token: str,
    client_seat: str | None,
    children_seats: list[dict] | None,
    today: date | None = None,
) -> dict:
    """Reserve every seat of one passenger group, all or nothing."""
    client_seat = str(client_seat or "").strip()
    if not client_seat:
        raise DomainError("Client seat number is required")
    client = client_by_token(db, token)
    if token_expired(client):
        raise DomainError("This link has expired")

    dest = get_destination(db, client.destination_id)
    children = children_of(db, client.id)
    eligible = _eligible_children(children, dest.kids_policy, today)
    if seats_already_selected(client, eligible) or reserved_seats_of_client(db, dest.id, client.id):
        raise DomainError("Seats already selected")
    bus = destination_bus(db, dest)

    pairs = _resolve_children(children, children_seats or [])
    eligible_ids = {c.id for c in eligible}
    for child, _seat in pairs:
        if child.id not in eligible_ids:
            raise DomainError(f"{child.name} is not eligible to choose a seat")
    missing = eligible_ids - {child.id for child, _seat in pairs}
    if missing:
        raise DomainError("Every passenger must have a seat")

    seats = [client_seat] + [seat for _child, seat in pairs]
    _check_duplicates(seats)
    _check_layout(layout_for_bus(bus), seats)
    _check_conflicts(reserved_seats(db, dest.id), seats)

    rows = _write_family(db, dest, client, client_seat, pairs)
    _commit_family(db, rows)
    logger.info("Client %s reserved seats %s on destination %s", client.id, seats, dest.id)
    return {
        "success": True,
        "client_seat": client_seat,
        "children_seats": [{"child_id": c.id, "seat_number": s} for c, s in pairs],
        "reservations": [serialize_reservation(r) for r in rows],
    }


def reserved_seats_of_client(db: Session, destination_id: int, client_id: int) -> list[str]:
    rows = (
        db.query(SeatReservation.seat_number)
        .filter(SeatReservation.destination_id == destination_id, SeatReservation.client_id == client_id)
        .all()
    )
    return [r[0] for r in rows]


# admin seat editor

def replace_client_seats(db: Session, client_id: int, client_seat: str | None, children_seats: list[dict] | None) -> dict:
    """Swap a family's seats in one transaction; companions left out lose theirs."""
    client_seat = str(client_seat or "").strip()
    if not client_seat:
        raise DomainError("Client seat number is required")
    client = get_client(db, client_id)
    dest = get_destination(db, client.destination_id)
    bus = destination_bus(db, dest)
    children = children_of(db, client.id)
    pairs = _resolve_children(children, children_seats or [])

    seats = [client_seat] + [seat for _child, seat in pairs]
    _check_duplicates(seats)
    _check_layout(layout_for_bus(bus), seats)
    _check_conflicts(reserved_seats(db, dest.id, exclude_client_id=client.id), seats)

    db.query(SeatReservation).filter(
        SeatReservation.destination_id == dest.id, SeatReservation.client_id == client.id
    ).delete(synchronize_session=False)
    for child in children:
        child.seat_number = None
    db.flush()
    rows = _write_family(db, dest, client, client_seat, pairs)
    _commit_family(db, rows)
    logger.info("Seats of client %s replaced with %s", client.id, seats)
    return {
        "success": True,
        "client_seat": client_seat,
        "children_seats": [{"child_id": c.id, "seat_number": s} for c, s in pairs],
        "reservations": [serialize_reservation(r) for r in rows],
    }


# single reservations

def _check_single_seat(db: Session, dest: Destination, seat_number: str, exclude_id: int | None = None) -> Bus:
    bus = destination_bus(db, dest)
    _check_layout(layout_for_bus(bus), [seat_number])
    q = db.query(SeatReservation).filter(
        SeatReservation.destination_id == dest.id, SeatReservation.seat_number == seat_number
    )
    if exclude_id is not None:
        q = q.filter(SeatReservation.id != exclude_id)
    if q.first():
        raise ConflictError("Seat is already reserved")
    return bus


def _commit_one(db: Session, row: SeatReservation) -> SeatReservation:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Seat is already reserved")
    db.refresh(row)
    return row


def _passenger_has_seat(db: Session, destination_id: int, client_id: int, child_id: int | None) -> bool:
    q = db.query(SeatReservation).filter(
        SeatReservation.destination_id == destination_id, SeatReservation.client_id == client_id
    )
    q = q.filter(SeatReservation.child_id == child_id) if child_id else q.filter(SeatReservation.child_id.is_(None))
    return q.first() is not None


def create_reservation(db: Session, destination_id: int, seat_number: str, client_id: int, child_id: int | None = None) -> SeatReservation:
    dest = get_destination(db, destination_id)
    seat_number = str(seat_number).strip()
    _check_single_seat(db, dest, seat_number)
    client = get_client(db, client_id)
    child = None
    if child_id is not None:
        child = db.get(Child, child_id)
        if not child or child.client_id != client.id:
            raise NotFoundError("Companion not found")
    if _passenger_has_seat(db, dest.id, client.id, child_id):
        raise DomainError("Passenger already has a seat on this trip")

    row = SeatReservation(
        destination_id=dest.id,
        bus_id=dest.bus_id,
        client_id=client.id,
        child_id=child.id if child else None,
        client_name=child.name if child else client.full_name,
        seat_number=seat_number,
        status="reserved",
        is_child=child is not None,
    )
    db.add(row)
    if child:
        child.seat_number = seat_number
    else:
        client.seat_number = seat_number
    return _commit_one(db, row)


def update_reservation(db: Session, reservation_id: int, seat_number: str | None = None, status: str | None = None) -> SeatReservation:
    row = db.get(SeatReservation, reservation_id)
    if not row:
        raise NotFoundError("Seat reservation not found")
    if seat_number is not None and str(seat_number) != row.seat_number:
        seat_number = str(seat_number).strip()
        dest = get_destination(db, row.destination_id)
        _check_single_seat(db, dest, seat_number, exclude_id=row.id)
        row.seat_number = seat_number
        owner = db.get(Child, row.child_id) if row.child_id else db.get(Client, row.client_id)
        if owner:
            owner.seat_number = seat_number
    if status is not None:
        row.status = status
    return _commit_one(db, row)


def delete_reservation(db: Session, reservation_id: int) -> None:
    row = db.get(SeatReservation, reservation_id)
    if not row:
        raise NotFoundError("Seat reservation not found")
    owner = db.get(Child, row.child_id) if row.child_id else db.get(Client, row.client_id)
    if owner and owner.seat_number == row.seat_number:
        owner.seat_number = None
    db.delete(row)
    db.commit()


def manual_reservation(
    db: Session,
    destination_id: int,
    seat_number: str,
    client_name: str,
    cpf_or_rg: str | None = None,
    departure_location: str | None = None,
    created_by: str | None = None,
) -> tuple[SeatReservation, Client]:
    """Walk-in passenger: create a minimal client and seat them."""
    dest = get_destination(db, destination_id)
    seat_number = str(seat_number).strip()
    _check_single_seat(db, dest, seat_number)
    name = (client_name or "").strip()
    if not name:
        raise DomainError("client_name is required")
    parts = name.split()
    first_name = parts[0]
    last_name = " ".join(parts[1:]) or first_name

    client = Client(
        first_name=first_name,
        last_name=last_name,
        cpf=cpf_or_rg,
        rg=cpf_or_rg,
        destination_id=dest.id,
        departure_location=departure_location,
        seat_number=seat_number,
        approval_status="approved",
        approval_date=datetime.utcnow(),
        created_by_email=created_by,
    )
    db.add(client)
    db.flush()
    row = SeatReservation(
        destination_id=dest.id,
        bus_id=dest.bus_id,
        client_id=client.id,
        client_name=name,
        seat_number=seat_number,
        status="reserved",
        is_child=False,
    )
    db.add(row)
    _commit_one(db, row)
    db.refresh(client)
    return row, client


def assign_existing(
    db: Session,
    destination_id: int,
    seat_number: str,
    client_id: int,
    passenger_type: str = "client",
    child_id: int | None = None,
) -> SeatReservation:
    if passenger_type == "companion" and not child_id:
        raise DomainError("child_id is required for companions")
    if passenger_type not in ("client", "companion"):
        raise DomainError("passenger_type must be 'client' or 'companion'")
    return create_reservation(
        db,
        destination_id,
        seat_number,
        client_id,
        child_id=child_id if passenger_type == "companion" else None,
    )


# views over a destination

def travelling_clients(db: Session, destination_id: int) -> list[Client]:
    return (
        db.query(Client)
        .filter(
            Client.destination_id == destination_id,
            Client.is_deleted == False,  # noqa: E712
            Client.is_cancelled == False,  # noqa: E712
        )
        .order_by(Client.first_name, Client.last_name)
        .all()
    )


def unassigned_passengers(db: Session, destination_id: int) -> list[dict]:
    get_destination(db, destination_id)
    rows = reservations_for(db, destination_id)
    seated_clients = {r.client_id for r in rows if r.child_id is None}
    seated_children = {r.child_id for r in rows if r.child_id is not None}
    out = []
    for client in travelling_clients(db, destination_id):
        if client.id not in seated_clients:
            out.append({
                "id": str(client.id),
                "name": client.full_name,
                "type": "client",
                "client_id": client.id,
                "child_id": None,
                "cpf": client.cpf,
                "rg": client.rg,
                "departure_location": client.departure_location,
            })
        for child in children_of(db, client.id):
            if child.id not in seated_children:
                out.append({
                    "id": f"child-{child.id}",
                    "name": child.name,
                    "type": "companion",
                    "client_id": client.id,
                    "child_id": child.id,
                    "cpf": child.cpf,
                    "rg": child.rg,
                    "departure_location": client.departure_location,
                })
    return out


def reservations_with_clients(db: Session, destination_id: int) -> list[dict]:
    out = []
    for r in reservations_for(db, destination_id):
        data = serialize_reservation(r)
        client = db.get(Client, r.client_id)
        data["client"] = serialize_client(client) if client else None
        if r.child_id:
            child = db.get(Child, r.child_id)
            data["child"] = serialize_child(child) if child else None
        out.append(data)
    return out


def passenger_roster(db: Session, destination_id: int) -> list[dict]:
    """Everyone travelling on a destination, client rows followed by their companions."""
    seats: dict[tuple[int, int | None], str] = {
        (r.client_id, r.child_id): r.seat_number for r in reservations_for(db, destination_id)
    }
    roster = []
    for client in travelling_clients(db, destination_id):
        roster.append({
            "name": client.full_name,
            "cpf": client.cpf,
            "rg": client.rg,
            "birthdate": client.birthdate,
            "seat_number": seats.get((client.id, None)) or client.seat_number,
            "departure_location": client.departure_location,
            "client_id": client.id,
            "relationship": None,
            "is_child": False,
        })
        for child in children_of(db, client.id):
            roster.append({
                "name": child.name,
                "cpf": child.cpf,
                "rg": child.rg,
                "birthdate": child.birthdate,
                "seat_number": seats.get((client.id, child.id)) or child.seat_number,
                "departure_location": client.departure_location,
                "client_id": client.id,
                "relationship": child.relationship,
                "is_child": True,
            })
    return roster


def occupancy(db: Session, destination_id: int) -> dict:
    dest = get_destination(db, destination_id)
    bus = destination_bus(db, dest)
    layout = layout_for_bus(bus)
    reservable = layout.reservable_seats
    taken = set(reserved_seats(db, dest.id)) & set(reservable)
    total = len(reservable)
    return {
        "destination_id": dest.id,
        "bus_id": bus.id,
        "layout": layout.key,
        "total_seats": total,
        "reserved": len(taken),
        "available": total - len(taken),
        "load_factor": round(len(taken) / total, 4) if total else 0.0,
    }
