from pydantic import BaseModel, Field

class ChildSeat(BaseModel):
    child_id: int
    seat_number: str = Field(..., min_length=1, max_length=8)

class SeatSelectionBody(BaseModel):
    # Optional so that a missing client seat yields the domain message instead of a 422
    client_seat: str | None = None
    children_seats: list[ChildSeat] = []

    def children_payload(self) -> list[dict]:
        return [c.model_dump() for c in self.children_seats]

class ReservationCreate(BaseModel):
    destination_id: int
    seat_number: str = Field(..., min_length=1, max_length=8)
    client_id: int
    child_id: int | None = None

class ReservationUpdate(BaseModel):
    seat_number: str | None = Field(None, min_length=1, max_length=8)
    status: str | None = Field(None, pattern="^(reserved|confirmed|cancelled)$")

class ManualReservation(BaseModel):
    destination_id: int
    seat_number: str = Field(..., min_length=1, max_length=8)
    client_name: str = Field(..., min_length=1)
    cpf_or_rg: str | None = None
    departure_location: str | None = None

class AssignExisting(BaseModel):
    destination_id: int
    seat_number: str = Field(..., min_length=1, max_length=8)
    client_id: int
    passenger_type: str = Field("client", pattern="^(client|companion)$")
    child_id: int | None = None
