from sqlalchemy import String, Integer, Date, Numeric, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from datetime import date

from tourdesk.models.base import Base

class Child(Base):
    """Companion travelling under a client (child, spouse, parent...)."""
    __tablename__ = "children"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(255))
    birthdate: Mapped[date | None] = mapped_column(Date, nullable=True)
    cpf: Mapped[str | None] = mapped_column(String(32), nullable=True)
    rg: Mapped[str | None] = mapped_column(String(32), nullable=True)
    relationship: Mapped[str] = mapped_column(String(32), default="outro")  # filho | filha | cônjuge | ...
    price: Mapped[float | None] = mapped_column(Numeric(10, 2), nullable=True)
    seat_number: Mapped[str | None] = mapped_column(String(8), nullable=True)
