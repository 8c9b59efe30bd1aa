"""
Purchase Service - creates a purchase record and its PIX charge as one unit.
"""

import asyncio
import functools
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Set
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.exceptions import PersistenceError
from app.fsm.states import PurchaseStatus
from app.models.purchase import PurchaseRecord
from app.services.fraud_guard import FraudGuard
from app.services.notification_service import PushNotifier
from app.services.ondapay_client import ChargeResult, OndaPayClient
from app.services.validation import ValidatedPurchase

logger = logging.getLogger(__name__)

DUE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Strong references to notifications started after the caller went away
_background_tasks: Set[asyncio.Task] = set()


@dataclass
class PurchaseResult:
    """What the shopper needs to pay: the QR code and when it stops working."""

    purchase_id: int
    external_id: str
    qr_code: Optional[str]
    qr_code_base64: Optional[str]
    expires_at: datetime

    @property
    def expiration_timestamp(self) -> int:
        """Epoch milliseconds, as the storefront's countdown expects."""
        return int(self.expires_at.timestamp() * 1000)


class PurchaseService:
    """Transaction orchestrator for new PIX purchases."""

    QR_CODE_TTL = timedelta(minutes=30)

    def __init__(
        self,
        session_factory: async_sessionmaker,
        gateway: OndaPayClient,
        notifier: PushNotifier,
        webhook_url: str,
        gateway_timezone: str = "America/Sao_Paulo",
        fraud_guard: Optional[FraudGuard] = None,
    ):
        self.session_factory = session_factory
        self.gateway = gateway
        self.notifier = notifier
        self.webhook_url = webhook_url
        self.gateway_tz = ZoneInfo(gateway_timezone)
        self.fraud_guard = fraud_guard or FraudGuard()

    def _build_charge_payload(
        self,
        record: PurchaseRecord,
        purchase: ValidatedPurchase,
        expires_at: datetime,
    ) -> Dict[str, Any]:
        return {
            "amount": float(purchase.amount_major),
            "external_id": str(record.id),
            "webhook": self.webhook_url,
            "description": f"{purchase.product_title} - {purchase.product_description}",
            "dueDate": expires_at.astimezone(self.gateway_tz).strftime(DUE_DATE_FORMAT),
            "payer": {
                "name": purchase.customer_name,
                "document": purchase.cpf,
                "email": purchase.email,
            },
        }

    async def _create_atomically(self, purchase: ValidatedPurchase) -> PurchaseResult:
        """
        Rate check, insert, charge and id update inside one DB transaction.
        Any exception rolls everything back, so no record outlives a failed charge.
        """
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    await self.fraud_guard.check(session, purchase.phone_number)

                    record = PurchaseRecord(
                        customer_name=purchase.customer_name,
                        phone_number=purchase.phone_number,
                        amount_paid=purchase.amount_minor,
                        status=PurchaseStatus.GENERATED.value,
                    )
                    session.add(record)
                    await session.flush()

                    expires_at = datetime.now(timezone.utc) + self.QR_CODE_TTL
                    payload = self._build_charge_payload(record, purchase, expires_at)

                    charge: ChargeResult = await self.gateway.create_charge(payload)

                    record.external_transaction_id = charge.external_transaction_id
                    await session.flush()
                    purchase_id = record.id
        except SQLAlchemyError as e:
            logger.error(f"Purchase persistence failed, rolled back: {e}", exc_info=True)
            raise PersistenceError(str(e)) from e

        logger.info(f"Purchase {purchase_id} created with charge {charge.external_transaction_id}")

        return PurchaseResult(
            purchase_id=purchase_id,
            external_id=charge.external_transaction_id,
            qr_code=charge.qr_code,
            qr_code_base64=charge.qr_code_base64,
            expires_at=expires_at,
        )

    async def create_purchase(self, purchase: ValidatedPurchase) -> PurchaseResult:
        """
        Create a purchase and its PIX charge.

        The atomic unit runs in its own task: a caller that goes away mid-way
        does not interrupt it, it still commits or rolls back.
        """
        unit = asyncio.ensure_future(self._create_atomically(purchase))
        try:
            result = await asyncio.shield(unit)
        except asyncio.CancelledError:
            unit.add_done_callback(functools.partial(self._finish_detached, purchase.customer_name))
            raise

        # Outside the unit: a failed notification never undoes the purchase
        await self.notifier.notify_new_attempt(purchase.customer_name)

        return result

    def _finish_detached(self, customer_name: str, unit: asyncio.Task) -> None:
        """Settle a unit whose caller was cancelled: log failures, still notify on success."""
        if unit.cancelled():
            return

        error = unit.exception()
        if error is not None:
            logger.error(
                f"Purchase for {customer_name} failed after the caller disconnected: {error}",
                exc_info=error,
            )
            return

        logger.info(f"Purchase {unit.result().purchase_id} completed after the caller disconnected")
        task = asyncio.ensure_future(self.notifier.notify_new_attempt(customer_name))
        _background_tasks.add(task)
        task.add_done_callback(_background_tasks.discard)
