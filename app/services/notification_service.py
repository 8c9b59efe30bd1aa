"""
Push Notification Service - Firebase Cloud Messaging fan-out to admin devices.
"""

import asyncio
import base64
import json
import logging
from typing import List, Optional

import firebase_admin
from firebase_admin import credentials, messaging
from firebase_admin import exceptions as firebase_exceptions
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.models.admin_device import AdminDevice

logger = logging.getLogger(__name__)

# Errors meaning the registration token will never work again
PERMANENT_TOKEN_ERRORS = (
    messaging.UnregisteredError,
    messaging.SenderIdMismatchError,
    firebase_exceptions.InvalidArgumentError,
)


def init_firebase_app(credentials_base64: str) -> Optional[firebase_admin.App]:
    """Initialize the Firebase Admin SDK from a base64-encoded service account JSON."""
    if not credentials_base64:
        logger.warning("FIREBASE_CREDENTIALS_BASE64 not set. Push notifications disabled.")
        return None

    try:
        service_account = json.loads(base64.b64decode(credentials_base64).decode("utf-8"))
        app = firebase_admin.initialize_app(credentials.Certificate(service_account))
    except Exception as e:
        logger.error(f"Failed to initialize Firebase Admin SDK: {e}. Push notifications disabled.")
        return None

    logger.info("Firebase Admin SDK initialized")
    return app


class PushNotifier:
    """Sends a notification to every registered admin device."""

    def __init__(self, session_factory: async_sessionmaker, firebase_app: Optional[firebase_admin.App]):
        self.session_factory = session_factory
        self.firebase_app = firebase_app

    @property
    def enabled(self) -> bool:
        return self.firebase_app is not None

    async def _load_tokens(self) -> List[str]:
        async with self.session_factory() as session:
            result = await session.execute(select(AdminDevice.token))
            return list(result.scalars().all())

    async def _prune_tokens(self, tokens: List[str]) -> None:
        async with self.session_factory() as session:
            async with session.begin():
                await session.execute(delete(AdminDevice).where(AdminDevice.token.in_(tokens)))
        logger.info(f"Pruned {len(tokens)} invalid device token(s)")

    async def notify(self, title: str, body: str) -> int:
        """
        Best-effort fan-out. Returns how many devices accepted the message.
        Never raises; purchase and webhook flows must not depend on it.
        """
        if not self.enabled:
            logger.info(f"Push disabled, skipping notification: {title}")
            return 0

        try:
            tokens = await self._load_tokens()
            if not tokens:
                logger.info("No admin devices registered. Skipping notification.")
                return 0

            message = messaging.MulticastMessage(
                notification=messaging.Notification(title=title, body=body),
                tokens=tokens,
            )
            # The SDK call is blocking
            response = await asyncio.to_thread(
                messaging.send_each_for_multicast, message, app=self.firebase_app
            )

            logger.info(
                f"Push '{title}' sent: {response.success_count} succeeded, "
                f"{response.failure_count} failed"
            )

            invalid = []
            for token, send_response in zip(tokens, response.responses):
                if send_response.success:
                    continue
                if isinstance(send_response.exception, PERMANENT_TOKEN_ERRORS):
                    invalid.append(token)
                else:
                    logger.warning(f"Transient push failure: {send_response.exception}")

            if invalid:
                await self._prune_tokens(invalid)

            return response.success_count

        except Exception as e:
            logger.error(f"Push notification failed: {e}", exc_info=True)
            return 0

    async def notify_new_attempt(self, customer_name: str) -> int:
        return await self.notify(
            "Nova Tentativa de Venda!",
            f"{customer_name} gerou um QR Code para pagamento.",
        )

    async def notify_payment_confirmed(self, customer_name: str) -> int:
        return await self.notify(
            "Venda Paga com Sucesso!",
            f"O pagamento de {customer_name} foi confirmado.",
        )
