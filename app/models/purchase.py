"""Purchase model - one row per PIX payment attempt."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, DateTime, Integer, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.fsm.states import PurchaseStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PurchaseRecord(Base):
    """
    Purchase attempt and its payment status.
    The row id is sent to the gateway as external_id and comes back in webhooks.
    """

    __tablename__ = "purchase_histories"
    __table_args__ = (
        Index("ix_purchase_histories_phone_created_at", "phone_number", "created_at"),
        CheckConstraint(
            "status IN ('Generated', 'Succeeded', 'Failed', 'Expired')",
            name="ck_purchase_histories_status",
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    customer_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Digits only, 11 chars (DDD + number)
    phone_number: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
    )

    # Gateway's id_transaction; unique among non-null values
    external_transaction_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        unique=True,
        nullable=True,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        default=PurchaseStatus.GENERATED.value,
        nullable=False,
        index=True,
    )

    # Minor currency units (centavos)
    amount_paid: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        nullable=False,
        index=True,
    )

    # Client-side status polls
    verification_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<PurchaseRecord {self.id} {self.status}>"
