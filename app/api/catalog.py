"""
Public Catalog Endpoints.
Product listing and the browser-side Firebase config.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.models.product import Product

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/products")
async def list_products(db: AsyncSession = Depends(get_db)):
    """Products in display order."""
    result = await db.execute(select(Product).order_by(Product.order_index.asc(), Product.id.asc()))
    return [
        {
            "id": p.id,
            "title": p.title,
            "price": p.price,
            "image": p.image,
            "description": p.description,
            "orderIndex": p.order_index,
        }
        for p in result.scalars().all()
    ]


@router.get("/firebase-config")
async def firebase_config():
    """Public web-push config for the admin panel. Contains no secrets."""
    config = {
        "apiKey": settings.firebase_api_key,
        "authDomain": settings.firebase_auth_domain,
        "projectId": settings.firebase_project_id,
        "storageBucket": settings.firebase_storage_bucket,
        "messagingSenderId": settings.firebase_messaging_sender_id,
        "appId": settings.firebase_app_id,
        "vapidKey": settings.firebase_vapid_key,
    }

    missing = [k for k, v in config.items() if not v]
    if missing:
        logger.warning(f"Firebase config missing: {', '.join(missing)}")
        if settings.is_production:
            raise HTTPException(status_code=500, detail="Configuração do Firebase incompleta no servidor.")

    return config
