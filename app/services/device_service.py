"""
Device Service - admin push notification registrations.
"""

import logging
from typing import Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.admin_device import AdminDevice

logger = logging.getLogger(__name__)


class DeviceService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def register(self, token: str) -> Tuple[AdminDevice, bool]:
        """Get or create a device by token. Returns (device, created)."""
        result = await self.db.execute(select(AdminDevice).where(AdminDevice.token == token))
        device = result.scalar_one_or_none()
        if device:
            return device, False

        device = AdminDevice(token=token)
        try:
            async with self.db.begin_nested():
                self.db.add(device)
                await self.db.flush()
        except IntegrityError:
            # Registered concurrently by another request
            result = await self.db.execute(select(AdminDevice).where(AdminDevice.token == token))
            return result.scalar_one(), False

        logger.info(f"New admin device registered for notifications: ...{token[-8:]}")
        return device, True
