from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tourdesk.api.deps import get_current_identity, require_admin
from tourdesk.db.session import get_db
from tourdesk.models.seat_reservation import SeatReservation
from tourdesk.schemas.seats import AssignExisting, ManualReservation, ReservationCreate, ReservationUpdate
from tourdesk.services import reservations

router = APIRouter(dependencies=[Depends(require_admin)])

@router.get("")
def list_reservations(db: Session = Depends(get_db)):
    rows = db.query(SeatReservation).order_by(SeatReservation.destination_id, SeatReservation.id).all()
    return [reservations.serialize_reservation(r) for r in rows]

@router.get("/destination/{destination_id}")
def reservations_by_destination(destination_id: int, db: Session = Depends(get_db)):
    return [reservations.serialize_reservation(r) for r in reservations.reservations_for(db, destination_id)]

@router.get("/destination/{destination_id}/with-clients")
def reservations_with_clients(destination_id: int, db: Session = Depends(get_db)):
    return reservations.reservations_with_clients(db, destination_id)

@router.post("", status_code=201)
def create_reservation(payload: ReservationCreate, db: Session = Depends(get_db)):
    r = reservations.create_reservation(db, payload.destination_id, payload.seat_number, payload.client_id, payload.child_id)
    return reservations.serialize_reservation(r)

@router.post("/manual", status_code=201)
def manual_reservation(payload: ManualReservation, db: Session = Depends(get_db), identity=Depends(get_current_identity)):
    email, _roles = identity
    r, client = reservations.manual_reservation(
        db,
        payload.destination_id,
        payload.seat_number,
        payload.client_name,
        cpf_or_rg=payload.cpf_or_rg,
        departure_location=payload.departure_location,
        created_by=email,
    )
    return {"reservation": reservations.serialize_reservation(r), "client": reservations.serialize_client(client)}

@router.post("/assign-existing", status_code=201)
def assign_existing(payload: AssignExisting, db: Session = Depends(get_db)):
    r = reservations.assign_existing(
        db,
        payload.destination_id,
        payload.seat_number,
        payload.client_id,
        passenger_type=payload.passenger_type,
        child_id=payload.child_id,
    )
    return {"reservation": reservations.serialize_reservation(r)}

@router.put("/{reservation_id}")
def update_reservation(reservation_id: int, payload: ReservationUpdate, db: Session = Depends(get_db)):
    r = reservations.update_reservation(db, reservation_id, seat_number=payload.seat_number, status=payload.status)
    return reservations.serialize_reservation(r)

@router.delete("/{reservation_id}", status_code=204)
def delete_reservation(reservation_id: int, db: Session = Depends(get_db)):
    reservations.delete_reservation(db, reservation_id)
