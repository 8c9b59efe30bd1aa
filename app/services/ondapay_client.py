"""
OndaPay Client - PIX charge creation against the OndaPay API.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from app.exceptions import AuthError, GatewayError
from app.services.token_cache import GatewayTokenCache

logger = logging.getLogger(__name__)

LOGIN_PATH = "/api/v1/login"
PIX_DEPOSIT_PATH = "/api/v1/deposit/pix"


@dataclass
class ChargeResult:
    """Result of creating a PIX charge."""

    external_transaction_id: str
    qr_code: Optional[str] = None
    qr_code_base64: Optional[str] = None


def extract_error_detail(response: httpx.Response) -> str:
    """
    Pull the gateway's own error message out of a failed response.
    OndaPay reports errors as {"msg": {"field": "message", ...}} or {"msg": "message"}.
    """
    try:
        data = response.json()
    except ValueError:
        return response.text[:500]

    if isinstance(data, dict):
        msg = data.get("msg")
        if isinstance(msg, dict) and msg:
            return str(next(iter(msg.values())))
        if msg:
            return str(msg)
    return response.text[:500]


async def fetch_access_token(
    http_client: httpx.AsyncClient,
    client_id: str,
    client_secret: str,
) -> str:
    """Exchange client credentials for a bearer token."""
    try:
        response = await http_client.post(
            LOGIN_PATH,
            json={},
            headers={
                "client_id": client_id,
                "client_secret": client_secret,
                "Content-Type": "application/json",
            },
        )
    except httpx.HTTPError as e:
        raise AuthError(f"login request failed: {e}") from e

    if response.status_code not in (200, 201):
        detail = extract_error_detail(response)
        logger.error(f"OndaPay login error {response.status_code}: {detail}")
        raise AuthError(f"login rejected with {response.status_code}: {detail}")

    try:
        token = response.json().get("token")
    except ValueError:
        token = None
    if not token:
        raise AuthError("login response carried no token")
    return token


class OndaPayClient:
    """Thin wrapper over the PIX deposit endpoint."""

    def __init__(self, token_cache: GatewayTokenCache, http_client: httpx.AsyncClient):
        self.token_cache = token_cache
        self.http_client = http_client

    async def _post_charge(self, payload: Dict[str, Any], token: str) -> httpx.Response:
        try:
            return await self.http_client.post(
                PIX_DEPOSIT_PATH,
                json=payload,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Content-Type": "application/json",
                },
            )
        except httpx.TimeoutException as e:
            raise GatewayError("gateway request timed out", detail=str(e)) from e
        except httpx.HTTPError as e:
            raise GatewayError("gateway request failed", detail=str(e)) from e

    async def create_charge(self, payload: Dict[str, Any]) -> ChargeResult:
        """
        Create a PIX charge.

        A 401 means the cached token went stale: renew it once and retry.
        Any other failure, or a second 401, is a GatewayError.
        """
        token = await self.token_cache.get_token()
        response = await self._post_charge(payload, token)

        if response.status_code == 401:
            logger.info("OndaPay token expired. Renewing and retrying once...")
            token = await self.token_cache.get_token(force_new=True)
            response = await self._post_charge(payload, token)

        if response.status_code not in (200, 201):
            detail = extract_error_detail(response)
            logger.error(f"OndaPay charge error {response.status_code}: {detail}")
            raise GatewayError(
                "charge creation rejected",
                detail=detail,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise GatewayError("gateway returned invalid JSON", detail=response.text[:500]) from e

        transaction_id = data.get("id_transaction")
        if not transaction_id:
            raise GatewayError("gateway response missing id_transaction", detail=str(data)[:500])

        return ChargeResult(
            external_transaction_id=str(transaction_id),
            qr_code=data.get("qrcode"),
            qr_code_base64=data.get("qrcode_base64"),
        )
