import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import String, DateTime, Numeric, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class OrderStatus(Base):
    __tablename__ = "order_statuses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # orders.id; one status per order by convention only, no FK constraint
    collect_id: Mapped[str] = mapped_column(String(36), index=True)
    order_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(18, 2), nullable=True)
    transaction_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(18, 2), nullable=True)
    payment_mode: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    payment_details: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    # Gateway collect request id, also exposed to users as the custom order id
    bank_reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    payment_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)  # PENDING | SUCCESS | COMPLETED | FAILED | REFUNDED
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    payment_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )
