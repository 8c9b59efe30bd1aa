"""
FastAPI application entry point.
Configures routes, middleware, and lifecycle events.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.database import async_session_maker, close_db
from app.exceptions import (
    AuthError,
    GatewayError,
    InvalidTransitionError,
    MalformedPayloadError,
    NotFoundError,
    PersistenceError,
    RateLimitError,
    SignatureError,
    ValidationError,
)
from app.logging_config import configure_logging
from app.redis import RedisClient
from app.services.notification_service import PushNotifier, init_firebase_app
from app.services.ondapay_client import OndaPayClient, fetch_access_token
from app.services.token_cache import GatewayTokenCache

from app.api.checkout import router as checkout_router
from app.api.catalog import router as catalog_router
from app.api.webhooks.ondapay import router as ondapay_router
from app.api.admin.auth import router as admin_auth_router
from app.api.admin.purchases import router as purchases_router
from app.api.admin.devices import router as devices_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifecycle manager."""
    # Startup
    configure_logging()
    logger.info("Starting up storefront...")

    try:
        RedisClient.get_client()
    except Exception as e:
        logger.warning(f"Failed to initialize Redis: {e}")

    http_client = httpx.AsyncClient(
        base_url=settings.ondapay_api_url,
        timeout=settings.gateway_timeout_seconds,
    )
    token_cache = GatewayTokenCache(
        lambda: fetch_access_token(
            http_client,
            settings.ondapay_client_id,
            settings.ondapay_client_secret,
        )
    )
    app.state.token_cache = token_cache
    app.state.gateway_client = OndaPayClient(token_cache, http_client)
    app.state.notifier = PushNotifier(
        async_session_maker,
        init_firebase_app(settings.firebase_credentials_base64),
    )

    try:
        await token_cache.get_token()
    except AuthError as e:
        logger.error(f"Could not warm OndaPay token at startup: {e}")

    yield

    # Shutdown
    await http_client.aclose()
    await RedisClient.close()
    await close_db()
    logger.info("Shutting down...")


app = FastAPI(
    title="Storefront",
    description="PIX storefront backend",
    version="1.0.0",
    lifespan=lifespan,
    debug=settings.debug,
)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return _error(400, exc.message)


@app.exception_handler(RateLimitError)
async def rate_limit_handler(request: Request, exc: RateLimitError):
    return _error(
        429,
        "Você já tentou pagar muitas vezes, procure seu vendedor ou tente novamente depois de algumas horas.",
    )


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    logger.error(f"Gateway auth failure: {exc.detail}")
    return _error(503, "Serviço de pagamento indisponível. Tente novamente em instantes.")


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError):
    logger.error(f"Gateway error: {exc.message} ({exc.status_code}): {exc.detail}")
    if not settings.is_production and exc.detail:
        return _error(502, exc.detail)
    return _error(502, "Erro ao gerar o QR code. Tente novamente.")


@app.exception_handler(SignatureError)
async def signature_error_handler(request: Request, exc: SignatureError):
    return _error(401, "Assinatura inválida.")


@app.exception_handler(MalformedPayloadError)
async def malformed_payload_handler(request: Request, exc: MalformedPayloadError):
    return _error(400, "Dados do webhook incompletos.")


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error(404, f"{exc.resource} not found")


@app.exception_handler(InvalidTransitionError)
async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
    return _error(409, str(exc))


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    return _error(500, "Erro interno. Tente novamente.")


# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"status": "error", "message": "Internal Server Error"},
    )


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins if settings.is_production else ["*"],
    allow_credentials=settings.is_production,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "env": settings.app_env,
    }


# Storefront routes
app.include_router(checkout_router, tags=["checkout"])
app.include_router(catalog_router, prefix="/api", tags=["catalog"])

# Webhook routes
app.include_router(ondapay_router, tags=["webhooks"])

# Admin routes
app.include_router(admin_auth_router, tags=["admin"])
app.include_router(purchases_router, prefix="/api", tags=["admin"])
app.include_router(devices_router, prefix="/api", tags=["admin"])
