"""Services package."""

from app.services.token_cache import GatewayTokenCache
from app.services.ondapay_client import OndaPayClient, ChargeResult
from app.services.fraud_guard import FraudGuard
from app.services.notification_service import PushNotifier
from app.services.purchase_service import PurchaseService, PurchaseResult
from app.services.webhook_service import WebhookService, WebhookAck
from app.services.purchase_history_service import PurchaseHistoryService
from app.services.device_service import DeviceService

__all__ = [
    "GatewayTokenCache",
    "OndaPayClient",
    "ChargeResult",
    "FraudGuard",
    "PushNotifier",
    "PurchaseService",
    "PurchaseResult",
    "WebhookService",
    "WebhookAck",
    "PurchaseHistoryService",
    "DeviceService",
]
