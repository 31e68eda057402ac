"""
http.py – Async HTTP client built on *aiohttp* with per-request timeouts,
          optional 429 / 5xx back-off and per-instance default headers.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from email.utils import parsedate_to_datetime
from typing import Any, Dict, Mapping, Optional

import aiohttp

logger = logging.getLogger(__name__)


class HttpClient:
    """
    Thin wrapper over *aiohttp.ClientSession* adding:

    * global & per-request headers (keeps user-agent in one place)
    * a total timeout per request
    * exponential back-off **with jitter** for 429 / 5xx / connection errors,
      only when *max_retries* > 1
    * async context-manager support

    Statuses outside *retry_for_status* (404 included) raise
    :class:`aiohttp.ClientResponseError` straight away so callers can
    classify them. Timeouts surface as :class:`asyncio.TimeoutError`.
    """

    def __init__(
        self,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 10.0,
        max_retries: int = 1,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        default_headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        self._external_session = session
        self._timeout = timeout
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._max_delay = max_delay
        self._own_session: Optional[aiohttp.ClientSession] = None
        self._default_headers: Dict[str, str] = dict(default_headers or {})

    # ---------------------------------------------- #
    # Async context-manager
    async def __aenter__(self) -> "HttpClient":  # noqa: D401
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: D401
        await self.close()

    # ---------------------------------------------- #
    # Session management
    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._external_session:
            return self._external_session
        if self._own_session is None or self._own_session.closed:
            timeout = aiohttp.ClientTimeout(total=self._timeout)
            self._own_session = aiohttp.ClientSession(timeout=timeout)
        return self._own_session

    async def close(self) -> None:
        if self._own_session and not self._own_session.closed:
            await self._own_session.close()
            self._own_session = None

    # ---------------------------------------------- #
    # Internal helpers
    @staticmethod
    def _parse_retry_after(header_val: str | None) -> Optional[float]:
        """Return seconds given a Retry-After header value."""
        if not header_val:
            return None
        header_val = header_val.strip()
        # seconds
        if header_val.isdigit():
            return float(header_val)
        # HTTP-date
        try:
            retry_at = parsedate_to_datetime(header_val).timestamp()
        except (TypeError, ValueError):
            return None
        return max(0.0, retry_at - time.time())

    def _merge_headers(self, extra: Mapping[str, str] | None) -> Dict[str, str]:
        merged: Dict[str, str] = {**self._default_headers}
        if extra:
            merged.update(extra)
        return merged

    def _backoff(self, attempt: int, retry_after: Optional[float]) -> float:
        if retry_after is not None:
            return retry_after
        exponential = min(self._base_delay * 2 ** (attempt - 1), self._max_delay)
        return exponential + random.uniform(0, self._base_delay)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        retry_for_status: tuple[int, ...] = (429, 500, 502, 503, 504),
        **kwargs,
    ) -> aiohttp.ClientResponse:
        """Perform a request, retrying only retryable failures; returns the response."""
        session = await self._ensure_session()

        headers = self._merge_headers(kwargs.pop("headers", None))
        kwargs["headers"] = headers

        for attempt in range(1, self._max_retries + 1):
            last_attempt = attempt == self._max_retries
            try:
                resp = await session.request(method, url, **kwargs)
            except aiohttp.ClientConnectionError as e:
                if last_attempt:
                    logger.error("HTTP %s %s failed after %d attempt(s): %s", method, url, attempt, e)
                    raise
                sleep_seconds = self._backoff(attempt, None)
                logger.warning(
                    "HTTP %s %s connection error (attempt %d/%d – retry in %.1fs): %s",
                    method, url, attempt, self._max_retries, sleep_seconds, e,
                )
                await asyncio.sleep(sleep_seconds)
                continue

            if resp.status < 400:
                return resp

            error = aiohttp.ClientResponseError(
                resp.request_info,
                resp.history,
                status=resp.status,
                message=resp.reason or f"status {resp.status}",
                headers=resp.headers,
            )
            retry_after = self._parse_retry_after(resp.headers.get("Retry-After"))
            resp.release()

            if resp.status not in retry_for_status or last_attempt:
                raise error

            sleep_seconds = self._backoff(attempt, retry_after)
            logger.warning(
                "HTTP %s %s returned %d (attempt %d/%d – retry in %.1fs)",
                method, url, resp.status, attempt, self._max_retries, sleep_seconds,
            )
            await asyncio.sleep(sleep_seconds)

        # Should never hit here
        raise RuntimeError("Unreachable retry loop")

    # ---------------------------------------------- #
    # Public helpers
    async def get_json(self, url: str, **kwargs) -> Any:
        async with await self._request("GET", url, **kwargs) as resp:
            return await resp.json(content_type=None)
