from sqlalchemy import String, Integer, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime

from tourdesk.models.base import Base

class SeatReservation(Base):
    __tablename__ = "seat_reservations"
    __table_args__ = (UniqueConstraint("destination_id", "seat_number", name="uq_destination_seat"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    destination_id: Mapped[int] = mapped_column(ForeignKey("destinations.id", ondelete="CASCADE"), index=True)
    bus_id: Mapped[int] = mapped_column(ForeignKey("buses.id"))
    # Always the family's client id, also for companions, so manifests can group families
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id", ondelete="CASCADE"), index=True)
    child_id: Mapped[int | None] = mapped_column(ForeignKey("children.id", ondelete="CASCADE"), nullable=True)
    client_name: Mapped[str] = mapped_column(String(255))
    seat_number: Mapped[str] = mapped_column(String(8))
    status: Mapped[str] = mapped_column(String(16), default="reserved")
    is_child: Mapped[bool] = mapped_column(Boolean, default=False)
    reserved_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
