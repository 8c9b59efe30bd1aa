import hmac
from typing import Optional

from fastapi import Cookie, Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.config import settings
from app.database import get_session_factory
from app.services.notification_service import PushNotifier
from app.services.ondapay_client import OndaPayClient
from app.services.purchase_service import PurchaseService
from app.services.webhook_service import WebhookService


def is_valid_admin_key(key: Optional[str]) -> bool:
    valid_key = settings.admin_api_key
    if not key or not valid_key:
        return False
    return hmac.compare_digest(key.encode(), valid_key.encode())


async def get_admin_user(
    x_admin_key: Optional[str] = Header(None, alias="X-Admin-Key"),
    admin_key_cookie: Optional[str] = Cookie(None, alias="admin_key"),
) -> str:
    """
    Validate the Admin Key from Header or Cookie.
    Returns the key if valid, raises 401 otherwise.
    """
    key = x_admin_key or admin_key_cookie

    if not key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sua sessão expirou, faça o login novamente.",
        )

    if not is_valid_admin_key(key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin key",
        )

    return key


def get_gateway_client(request: Request) -> OndaPayClient:
    return request.app.state.gateway_client


def get_notifier(request: Request) -> PushNotifier:
    return request.app.state.notifier


def get_purchase_service(
    session_factory: async_sessionmaker = Depends(get_session_factory),
    gateway: OndaPayClient = Depends(get_gateway_client),
    notifier: PushNotifier = Depends(get_notifier),
) -> PurchaseService:
    return PurchaseService(
        session_factory=session_factory,
        gateway=gateway,
        notifier=notifier,
        webhook_url=settings.webhook_url,
        gateway_timezone=settings.gateway_timezone,
    )


def get_webhook_service(
    session_factory: async_sessionmaker = Depends(get_session_factory),
    notifier: PushNotifier = Depends(get_notifier),
) -> WebhookService:
    return WebhookService(
        session_factory=session_factory,
        notifier=notifier,
        webhook_secret=settings.ondapay_webhook_secret,
        skip_unsigned=settings.ondapay_webhook_allow_unsigned,
    )
