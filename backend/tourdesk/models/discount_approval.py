from sqlalchemy import String, Integer, DateTime, Numeric, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime

from tourdesk.models.base import Base

class DiscountApprovalRequest(Base):
    __tablename__ = "discount_approval_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id", ondelete="CASCADE"), index=True)
    requested_discount_type: Mapped[str] = mapped_column(String(16))  # 3 | 5 | custom
    requested_discount_value: Mapped[float] = mapped_column(Numeric(10, 2))
    status: Mapped[str] = mapped_column(String(16), default="pending", index=True)  # pending | approved | rejected
    requested_by_email: Mapped[str] = mapped_column(String(255), index=True)
    requested_by_name: Mapped[str] = mapped_column(String(255))
    decided_by_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    max_discount_percentage_allowed: Mapped[float | None] = mapped_column(Numeric(5, 2), nullable=True)
    approval_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
