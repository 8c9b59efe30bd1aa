"""
Admin Device Endpoints.
Registers browsers/phones that receive sale notifications.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_admin_user
from app.database import get_db
from app.services.device_service import DeviceService

router = APIRouter()
logger = logging.getLogger(__name__)


class DeviceRequest(BaseModel):
    token: Optional[str] = None


@router.post("/devices")
async def register_device(
    request: DeviceRequest,
    db: AsyncSession = Depends(get_db),
    _: str = Depends(get_admin_user),
):
    if not request.token:
        raise HTTPException(status_code=400, detail="Token não fornecido.")

    service = DeviceService(db)
    _device, created = await service.register(request.token)

    if created:
        return JSONResponse(status_code=201, content={"message": "Dispositivo registrado com sucesso."})
    return {"message": "Dispositivo já estava registrado."}
