"""
Admin Login Endpoints.
Cookie-based admin session with brute-force protection in Redis.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel
from redis.asyncio.client import Redis
from redis.exceptions import RedisError

from app.api.deps import is_valid_admin_key
from app.config import settings
from app.redis import get_redis

router = APIRouter()
logger = logging.getLogger(__name__)

MAX_LOGIN_ATTEMPTS = 5
LOGIN_WINDOW_SECONDS = 15 * 60
ADMIN_COOKIE = "admin_key"
SESSION_MAX_AGE = 8 * 60 * 60


class LoginRequest(BaseModel):
    password: str


def _attempts_key(request: Request) -> str:
    host = request.client.host if request.client else "unknown"
    return f"admin_login_attempts:{host}"


async def _record_failure(redis: Redis, key: str) -> int:
    attempts = await redis.incr(key)
    if attempts == 1:
        await redis.expire(key, LOGIN_WINDOW_SECONDS)
    return attempts


@router.post("/admin-panel/login")
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    redis: Redis = Depends(get_redis),
):
    """Exchange the admin password for a session cookie."""
    key = _attempts_key(request)

    try:
        attempts = int(await redis.get(key) or 0)
    except RedisError as e:
        logger.warning(f"Login limiter unavailable, allowing attempt: {e}")
        attempts = 0

    if attempts >= MAX_LOGIN_ATTEMPTS:
        raise HTTPException(
            status_code=429,
            detail="Muitas tentativas de login. Tente novamente em 15 minutos.",
        )

    if not is_valid_admin_key(body.password):
        try:
            await _record_failure(redis, key)
        except RedisError as e:
            logger.warning(f"Could not record failed login: {e}")
        logger.warning(f"Failed admin login from {key.split(':', 1)[1]}")
        raise HTTPException(status_code=401, detail="Invalid Password")

    try:
        await redis.delete(key)
    except RedisError as e:
        logger.warning(f"Could not reset login attempts: {e}")

    response.set_cookie(
        key=ADMIN_COOKIE,
        value=body.password,
        httponly=True,
        max_age=SESSION_MAX_AGE,
        path="/",
        samesite="strict",
        secure=settings.is_production,
    )
    logger.info("Admin login successful")
    return {"status": "ok"}


@router.post("/admin-panel/logout")
async def logout(response: Response):
    response.delete_cookie(ADMIN_COOKIE, path="/")
    return {"status": "ok"}
