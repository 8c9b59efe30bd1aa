"""
OndaPay Webhook Handler.
Verifies signatures and confirms paid PIX charges.
"""

import logging

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_webhook_service
from app.exceptions import MalformedPayloadError, NotFoundError, SignatureError
from app.services.webhook_service import WebhookService

router = APIRouter()
logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-OndaPay-Signature"


@router.post("/ondapay-webhook")
async def ondapay_webhook(
    request: Request,
    service: WebhookService = Depends(get_webhook_service),
):
    """
    Handle OndaPay payment callbacks.

    The signature covers the raw body bytes, so the body is passed through
    untouched; only PAID_OUT changes state.
    """
    body = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER)

    try:
        ack = await service.handle_callback(signature, body)
    except (SignatureError, MalformedPayloadError, NotFoundError) as e:
        logger.warning(
            f"OndaPay webhook rejected: {e}",
            extra={"extra": {
                "client_host": request.client.host if request.client else None,
                "user_agent": request.headers.get("user-agent"),
                "body_length": len(body),
            }},
        )
        raise

    return ack.as_response()
