"""
Checkout Endpoints.
PIX QR code generation and shopper-side payment status polling.
"""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_purchase_service
from app.database import get_db
from app.services.purchase_history_service import PurchaseHistoryService
from app.services.purchase_service import PurchaseService
from app.services.validation import validate_purchase_request

router = APIRouter()
logger = logging.getLogger(__name__)


class QRCodeRequest(BaseModel):
    """Storefront checkout form. Field names match the storefront's JSON."""

    model_config = ConfigDict(populate_by_name=True)

    value: Optional[Union[int, float, str]] = None
    name: Optional[str] = Field(None, alias="nome")
    phone: Optional[str] = Field(None, alias="telefone")
    cpf: Optional[str] = None
    email: Optional[str] = None
    product_title: Optional[str] = Field(None, alias="productTitle")
    product_description: Optional[str] = Field(None, alias="productDescription")


class StatusCheckRequest(BaseModel):
    id: Optional[str] = None


@router.post("/gerarqrcode")
async def generate_qr_code(
    request: QRCodeRequest,
    service: PurchaseService = Depends(get_purchase_service),
):
    """
    Validate the checkout form and issue a PIX QR code.

    Errors map through the app's exception handlers: 400 validation,
    429 too many attempts, 502/503 gateway trouble.
    """
    purchase = validate_purchase_request(
        value=request.value,
        name=request.name,
        phone=request.phone,
        cpf=request.cpf,
        email=request.email,
        product_title=request.product_title,
        product_description=request.product_description,
    )

    result = await service.create_purchase(purchase)

    logger.info(f"QR code generated (OndaPay): {result.external_id}")

    return {
        "id": result.external_id,
        "qr_code": result.qr_code,
        "qr_code_base64": result.qr_code_base64,
        "expirationTimestamp": result.expiration_timestamp,
    }


@router.post("/check-local-status")
async def check_local_status(
    request: StatusCheckRequest,
    db: AsyncSession = Depends(get_db),
):
    """Report the stored status for a gateway transaction id."""
    if not request.id:
        raise HTTPException(status_code=400, detail="ID da transação não fornecido.")

    service = PurchaseHistoryService(db)
    status = await service.poll_status(request.id)

    return {"id": request.id, "status": status}
