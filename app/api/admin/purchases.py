"""
Admin Purchase Endpoints.
Purchase history browsing and manual status correction.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_admin_user
from app.database import get_db
from app.fsm.states import PurchaseStatus
from app.models.purchase import PurchaseRecord
from app.services.purchase_history_service import PurchaseHistoryService

router = APIRouter()
logger = logging.getLogger(__name__)


class StatusCorrectionRequest(BaseModel):
    status: PurchaseStatus


def serialize_purchase(record: PurchaseRecord) -> Dict[str, Any]:
    return {
        "id": record.id,
        "nome": record.customer_name,
        "telefone": record.phone_number,
        "transactionId": record.external_transaction_id,
        "status": record.status,
        "valorPago": record.amount_paid,
        "dataTransacao": record.created_at.isoformat() if record.created_at else None,
        "checkCount": record.verification_count,
    }


@router.get("/purchase-history")
async def get_purchase_history(
    nome: Optional[str] = None,
    telefone: Optional[str] = None,
    mes: Optional[int] = Query(None, ge=1, le=12),
    ano: Optional[int] = Query(None, ge=2000, le=9999),
    db: AsyncSession = Depends(get_db),
    _: str = Depends(get_admin_user),
):
    """List purchases, newest first."""
    service = PurchaseHistoryService(db)
    records = await service.list_history(name=nome, phone=telefone, month=mes, year=ano)
    return [serialize_purchase(r) for r in records]


@router.patch("/purchase-history/{purchase_id}/status")
async def correct_purchase_status(
    purchase_id: int,
    request: StatusCorrectionRequest,
    db: AsyncSession = Depends(get_db),
    _: str = Depends(get_admin_user),
):
    """
    Manually move a purchase forward, e.g. when a paid charge's webhook
    never arrived or a QR code lapsed unpaid.
    """
    service = PurchaseHistoryService(db)
    record = await service.correct_status(purchase_id, request.status)
    return serialize_purchase(record)
