"""HTTP access to the scheduling provider with retry and error classification.

Transient failures (5xx, transport errors) are retried with exponential
backoff: after failed attempt ``k`` the client sleeps
``retry_delay_ms * 2 ** (k - 1)`` before trying again. Everything else,
rate limiting included, is raised after a single attempt.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from . import metrics
from .config import ClientConfig
from .errors import ConfigurationError, NetworkError, TransportError, classify_status

logger = logging.getLogger(__name__)

BODY_PREVIEW_CHARS = 500

Sleep = Callable[[float], Awaitable[Any]]


@dataclass
class RetryState:
    attempt: int = 1
    last_error: Optional[TransportError] = None
    delay_ms: int = 0


class ResilientClient:
    def __init__(
        self,
        config: ClientConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Optional[Sleep] = None,
    ) -> None:
        if not config.api_key:
            raise ConfigurationError("API key is required for CronJobManager")
        self.config = config
        self.debug = config.debug
        self._sleep = sleep or asyncio.sleep
        self._http = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout_ms / 1000.0,
            headers={
                "Authorization": f"Bearer {config.api_key}",
                "Content-Type": "application/json",
            },
            transport=transport,
        )

    async def __aenter__(self) -> "ResilientClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def closed(self) -> bool:
        return self._http.is_closed

    def enable_debug(self) -> None:
        self.debug = True

    def disable_debug(self) -> None:
        self.debug = False

    async def call(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        method = method.upper()
        state = RetryState(delay_ms=self.config.retry_delay_ms)
        while True:
            try:
                return await self._attempt(method, path, params, body)
            except TransportError as exc:
                state.last_error = exc
                if not exc.retryable or state.attempt >= self.config.retry_attempts:
                    break
                logger.warning(
                    "%s %s failed on attempt %d/%d (%s), retrying in %dms",
                    method,
                    path,
                    state.attempt,
                    self.config.retry_attempts,
                    exc,
                    state.delay_ms,
                )
                metrics.api_retries_total.inc()
                await self._sleep(state.delay_ms / 1000.0)
                state.attempt += 1
                state.delay_ms *= 2

        metrics.api_errors_total.labels(kind=type(state.last_error).__name__).inc()
        raise state.last_error

    async def _attempt(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]],
        body: Optional[Dict[str, Any]],
    ) -> Any:
        if self.debug:
            logger.info("[CronJobManager] %s %s params=%s", method, path, params)

        start = time.monotonic()
        try:
            response = await self._http.request(method, path, params=params, json=body)
        except httpx.TransportError as exc:
            metrics.api_requests_total.labels(method=method, status="error").inc()
            if self.debug:
                logger.info("[CronJobManager] Transport failure: %r", exc)
            raise NetworkError(str(exc) or type(exc).__name__) from exc
        finally:
            metrics.api_request_latency_seconds.observe(time.monotonic() - start)

        metrics.api_requests_total.labels(method=method, status=str(response.status_code)).inc()
        if self.debug:
            logger.info(
                "[CronJobManager] Response: %s %s",
                response.status_code,
                response.text[:BODY_PREVIEW_CHARS],
            )

        if response.is_success:
            return _decode(response)
        raise classify_status(response.status_code, _error_message(response))


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _error_message(response: httpx.Response) -> Optional[str]:
    try:
        data = response.json()
    except ValueError:
        return response.text.strip() or None
    if isinstance(data, dict):
        for key in ("message", "error", "detail"):
            if isinstance(data.get(key), str):
                return data[key]
    return None
