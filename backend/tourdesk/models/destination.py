from sqlalchemy import String, Integer, Boolean, DateTime, Date, Numeric, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, date

from tourdesk.models.base import Base

class Destination(Base):
    __tablename__ = "destinations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), index=True)
    country: Mapped[str] = mapped_column(String(120), default="Brasil")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[float | None] = mapped_column(Numeric(10, 2), nullable=True)
    bus_id: Mapped[int | None] = mapped_column(ForeignKey("buses.id", ondelete="SET NULL"), nullable=True)
    travel_start: Mapped[date | None] = mapped_column(Date, nullable=True)
    # Destination is archived by housekeeping once this date has passed
    travel_end: Mapped[date | None] = mapped_column(Date, nullable=True)
    departure_details: Mapped[str | None] = mapped_column(String(255), nullable=True)
    return_details: Mapped[str | None] = mapped_column(String(255), nullable=True)
    kids_policy: Mapped[str | None] = mapped_column(String(8), nullable=True)  # yes | no | NULL
    whatsapp_group_link: Mapped[str | None] = mapped_column(String(512), nullable=True)
    guides: Mapped[str | None] = mapped_column(String(255), nullable=True)
    drivers: Mapped[str | None] = mapped_column(String(255), nullable=True)
    bus_company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
