"""
Fraud Guard - per-phone purchase attempt limits over sliding windows.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import RateLimitError
from app.models.purchase import PurchaseRecord

logger = logging.getLogger(__name__)


class FraudGuard:
    """Counts prior attempts (any status) for a phone number. Read-only."""

    MAX_ATTEMPTS_PER_HOUR = 3
    MAX_ATTEMPTS_PER_MONTH = 5
    HOUR_WINDOW = timedelta(hours=1)
    MONTH_WINDOW = timedelta(days=30)

    async def _count_since(self, db: AsyncSession, phone_number: str, since: datetime) -> int:
        result = await db.execute(
            select(func.count(PurchaseRecord.id)).where(
                PurchaseRecord.phone_number == phone_number,
                PurchaseRecord.created_at >= since,
            )
        )
        return result.scalar_one()

    async def count_attempts(
        self,
        db: AsyncSession,
        phone_number: str,
        now: Optional[datetime] = None,
    ) -> Tuple[int, int]:
        """Return (attempts in the last hour, attempts in the last 30 days)."""
        now = now or datetime.now(timezone.utc)
        last_hour = await self._count_since(db, phone_number, now - self.HOUR_WINDOW)
        last_month = await self._count_since(db, phone_number, now - self.MONTH_WINDOW)
        return last_hour, last_month

    async def check(
        self,
        db: AsyncSession,
        phone_number: str,
        now: Optional[datetime] = None,
    ) -> None:
        """Raise RateLimitError when either window is full."""
        last_hour, last_month = await self.count_attempts(db, phone_number, now)
        if last_hour >= self.MAX_ATTEMPTS_PER_HOUR or last_month >= self.MAX_ATTEMPTS_PER_MONTH:
            logger.warning(
                f"Purchase attempt blocked for phone ...{phone_number[-4:]}: "
                f"{last_hour} last hour, {last_month} last 30 days"
            )
            raise RateLimitError(phone_number, last_hour, last_month)
