"""
Gateway Token Cache - process-wide bearer token with single-flight refresh.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from app.exceptions import AuthError

logger = logging.getLogger(__name__)

TokenFetcher = Callable[[], Awaitable[str]]


class GatewayTokenCache:
    """
    Holds the gateway bearer token.

    The token's expiry is not tracked locally: it is good until the gateway
    answers 401, at which point the client asks for `force_new=True`.
    Concurrent callers during a miss share one pending refresh.
    """

    def __init__(self, fetch_token: TokenFetcher):
        self._fetch_token = fetch_token
        self._token: Optional[str] = None
        self._pending: Optional["asyncio.Task[str]"] = None
        # Bumped per issued refresh; only the latest one may touch _token
        self._generation = 0

    @property
    def cached_token(self) -> Optional[str]:
        return self._token

    async def get_token(self, force_new: bool = False) -> str:
        """Return the cached token, refreshing it when absent or when forced."""
        if self._token and not force_new:
            return self._token

        if force_new or self._pending is None:
            self._generation += 1
            task = asyncio.ensure_future(self._refresh(self._generation))
            task.add_done_callback(self._clear_pending)
            self._pending = task
        else:
            task = self._pending

        # A cancelled caller must not cancel the refresh other callers wait on
        return await asyncio.shield(task)

    async def _refresh(self, generation: int) -> str:
        try:
            token = await self._fetch_token()
        except AuthError:
            if generation == self._generation:
                self._token = None
            logger.error("Gateway token refresh failed; cache cleared")
            raise
        except Exception as e:
            if generation == self._generation:
                self._token = None
            logger.error(f"Gateway token refresh failed: {e}")
            raise AuthError(str(e)) from e

        if generation != self._generation:
            # Superseded by a forced renewal; hand the token to our own waiters only
            logger.debug("Discarding superseded gateway token refresh")
            return token

        self._token = token
        logger.info("Gateway token obtained/renewed")
        return token

    def _clear_pending(self, task: "asyncio.Task[str]") -> None:
        if self._pending is task:
            self._pending = None
        # Mark the exception as retrieved when every waiter was cancelled
        if not task.cancelled():
            task.exception()
