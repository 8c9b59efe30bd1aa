"""
Purchase History Service - status polling, admin listing and manual corrections.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import InvalidTransitionError, NotFoundError
from app.fsm.states import PurchaseStatus, can_transition
from app.models.purchase import PurchaseRecord
from app.services.validation import normalize_phone

logger = logging.getLogger(__name__)


def month_range(month: int, year: int) -> Tuple[datetime, datetime]:
    """Start (inclusive) and end (exclusive) of a calendar month in UTC."""
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        end = datetime(year, month + 1, 1, tzinfo=timezone.utc)
    return start, end


class PurchaseHistoryService:
    """Queries and corrections over purchase records."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def poll_status(self, transaction_id: str) -> str:
        """
        Status for the shopper's polling loop.
        Unknown ids read as GENERATED; the charge may just not be committed yet.
        """
        result = await self.db.execute(
            update(PurchaseRecord)
            .where(PurchaseRecord.external_transaction_id == transaction_id)
            .values(verification_count=PurchaseRecord.verification_count + 1)
            .returning(PurchaseRecord.status)
        )
        status = result.scalar_one_or_none()

        if status is None:
            logger.debug(f"No purchase for transaction {transaction_id}. Reporting Generated.")
            return PurchaseStatus.GENERATED.value

        return status

    async def list_history(
        self,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> List[PurchaseRecord]:
        query = select(PurchaseRecord)

        if name:
            query = query.where(PurchaseRecord.customer_name.ilike(f"%{name}%"))
        if phone:
            query = query.where(PurchaseRecord.phone_number == normalize_phone(phone))
        if month and year:
            start, end = month_range(month, year)
            query = query.where(
                PurchaseRecord.created_at >= start,
                PurchaseRecord.created_at < end,
            )

        result = await self.db.execute(query.order_by(PurchaseRecord.created_at.desc()))
        return list(result.scalars().all())

    async def correct_status(self, purchase_id: int, new_status: PurchaseStatus) -> PurchaseRecord:
        """Manual status change by the admin; only forward moves are allowed."""
        result = await self.db.execute(
            select(PurchaseRecord).where(PurchaseRecord.id == purchase_id).with_for_update()
        )
        record = result.scalar_one_or_none()
        if not record:
            raise NotFoundError("Purchase", purchase_id)

        current = PurchaseStatus(record.status)
        if not can_transition(current, new_status):
            raise InvalidTransitionError(current.value, new_status.value)

        record.status = new_status.value
        await self.db.flush()

        logger.info(f"Purchase {purchase_id} manually moved from {current.value} to {new_status.value}")
        return record
