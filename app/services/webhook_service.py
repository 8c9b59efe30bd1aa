"""
Webhook Service - verifies OndaPay callbacks and confirms paid purchases.
"""

import hashlib
import hmac
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.exceptions import MalformedPayloadError, NotFoundError, PersistenceError, SignatureError
from app.fsm.states import PurchaseStatus
from app.models.purchase import PurchaseRecord
from app.services.notification_service import PushNotifier

logger = logging.getLogger(__name__)

PAID_STATUS = "PAID_OUT"

# external_id is our purchase_histories.id, a 32-bit INTEGER column
EXTERNAL_ID_RE = re.compile(r"[0-9]{1,10}")
MAX_PURCHASE_ID = 2**31 - 1

ACK_OK = "ok"
ACK_ALREADY_PROCESSED = "already_processed"
ACK_IGNORED = "ignored"


@dataclass
class WebhookAck:
    status: str
    purchase_id: Optional[int] = None

    def as_response(self) -> Dict[str, str]:
        return {"status": self.status}


def compute_signature(raw_body: bytes, secret: str) -> str:
    return hmac.new(secret.encode(), raw_body, hashlib.sha256).hexdigest()


def verify_ondapay_signature(raw_body: bytes, signature: Optional[str], secret: str) -> bool:
    """Verify the HMAC-SHA256 hex signature over the exact raw body."""
    if not signature:
        return False
    expected = compute_signature(raw_body, secret)
    return hmac.compare_digest(expected.encode(), signature.strip().lower().encode())


class WebhookService:
    """Reconciles gateway callbacks with purchase records."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        notifier: PushNotifier,
        webhook_secret: str,
        skip_unsigned: bool = False,
    ):
        self.session_factory = session_factory
        self.notifier = notifier
        self.webhook_secret = webhook_secret
        # Only honoured without a secret, for local development
        self.skip_unsigned = skip_unsigned

    def _verify(self, signature: Optional[str], raw_body: bytes) -> None:
        if not self.webhook_secret:
            if self.skip_unsigned:
                logger.warning("OndaPay webhook secret not configured. Skipping verification (allow-unsigned enabled).")
                return
            raise SignatureError("webhook secret not configured")

        if not signature:
            raise SignatureError("signature header missing")

        if not verify_ondapay_signature(raw_body, signature, self.webhook_secret):
            raise SignatureError("signature mismatch")

    @staticmethod
    def _parse(raw_body: bytes, parsed_body: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        if parsed_body is None:
            try:
                parsed_body = json.loads(raw_body)
            except ValueError as e:
                raise MalformedPayloadError("body is not valid JSON") from e

        if not isinstance(parsed_body, dict):
            raise MalformedPayloadError("body is not a JSON object")

        missing = [k for k in ("status", "transaction_id", "external_id") if not parsed_body.get(k)]
        if missing:
            raise MalformedPayloadError(f"missing fields: {', '.join(missing)}")

        if not isinstance(parsed_body["status"], str):
            raise MalformedPayloadError("status must be a string")

        external_id = str(parsed_body["external_id"]).strip()
        if not EXTERNAL_ID_RE.fullmatch(external_id) or int(external_id) > MAX_PURCHASE_ID:
            raise MalformedPayloadError(f"external_id '{external_id[:32]}' is not a purchase id")

        return {**parsed_body, "external_id": int(external_id)}

    async def handle_callback(
        self,
        signature: Optional[str],
        raw_body: bytes,
        parsed_body: Optional[Dict[str, Any]] = None,
    ) -> WebhookAck:
        """
        Process one callback delivery.

        Deliveries are at-least-once and may repeat out of order: only the first
        paid callback for a purchase transitions it and notifies.
        """
        self._verify(signature, raw_body)
        payload = self._parse(raw_body, parsed_body)

        status = payload["status"]
        transaction_id = str(payload["transaction_id"])
        purchase_id = payload["external_id"]

        if status.upper() != PAID_STATUS:
            logger.info(f"Webhook status '{status}' for purchase {purchase_id}. No action needed.")
            return WebhookAck(ACK_IGNORED, purchase_id)

        try:
            async with self.session_factory() as session:
                async with session.begin():
                    # Compare-and-swap: concurrent duplicates race on this single UPDATE
                    result = await session.execute(
                        update(PurchaseRecord)
                        .where(
                            PurchaseRecord.id == purchase_id,
                            PurchaseRecord.status == PurchaseStatus.GENERATED.value,
                        )
                        .values(status=PurchaseStatus.SUCCEEDED.value)
                    )
                    transitioned = result.rowcount == 1

                    row = (
                        await session.execute(
                            select(
                                PurchaseRecord.customer_name,
                                PurchaseRecord.status,
                                PurchaseRecord.external_transaction_id,
                            ).where(PurchaseRecord.id == purchase_id)
                        )
                    ).one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Webhook persistence failed for purchase {purchase_id}: {e}", exc_info=True)
            raise PersistenceError(str(e)) from e

        if row is None:
            logger.warning(f"Webhook for unknown purchase {purchase_id} (transaction {transaction_id})")
            raise NotFoundError("Purchase", purchase_id)

        customer_name, current_status, stored_transaction_id = row

        if stored_transaction_id and stored_transaction_id != transaction_id:
            logger.warning(
                f"Webhook transaction {transaction_id} differs from stored "
                f"{stored_transaction_id} for purchase {purchase_id}"
            )

        if not transitioned:
            if PurchaseStatus(current_status).is_terminal:
                logger.info(f"Purchase {purchase_id} already marked as paid")
                return WebhookAck(ACK_ALREADY_PROCESSED, purchase_id)

            logger.warning(
                f"Paid webhook for purchase {purchase_id} in status {current_status}; "
                "needs manual correction"
            )
            return WebhookAck(ACK_IGNORED, purchase_id)

        logger.info(f"Purchase {purchase_id} marked as paid")
        await self.notifier.notify_payment_confirmed(customer_name)

        return WebhookAck(ACK_OK, purchase_id)
