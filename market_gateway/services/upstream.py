# =============================================================================
# Upstream HTTP — Shared POST Helper & Classified Errors
# =============================================================================
#
# Every third-party analysis service we proxy is called the same way: POST a
# JSON body, expect a JSON object back. This module owns that call and
# translates httpx failures into a small error hierarchy the route layer
# can map to HTTP status codes:
#
#   UpstreamError
#   ├── UpstreamStatusError   — service answered with a non-2xx status
#   ├── UpstreamTimeout       — no answer within the timeout
#   └── UpstreamUnavailable   — connection refused, DNS, reset, ...
#
# DESIGN DECISION: No retries here. The agentic service can take minutes
# per request; a silent retry would double the user's wait. Retrying is
# left to the caller.
# =============================================================================

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from market_gateway.services.normalizer import InvalidUpstreamFormat

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """Base class for failures talking to an upstream service."""

    def __init__(self, service: str, message: str) -> None:
        super().__init__(message)
        self.service = service


class UpstreamStatusError(UpstreamError):
    """The upstream service responded with a non-2xx status."""

    def __init__(self, service: str, status_code: int, detail: str) -> None:
        super().__init__(
            service, f"{service} service error: {status_code} - {detail}",
        )
        self.status_code = status_code
        self.detail = detail


class UpstreamTimeout(UpstreamError):
    """The upstream service did not respond in time."""


class UpstreamUnavailable(UpstreamError):
    """No response was received (network failure)."""


async def post_json(
    client: httpx.AsyncClient,
    url: str,
    payload: dict[str, Any],
    *,
    service: str,
    timeout: float,
) -> dict[str, Any]:
    """
    POST `payload` as JSON and return the decoded JSON object.

    Raises:
        UpstreamStatusError: non-2xx response.
        UpstreamTimeout: the request timed out.
        UpstreamUnavailable: any other transport failure.
        InvalidUpstreamFormat: the body is not a JSON object.
    """
    start_time = time.monotonic()

    try:
        response = await client.post(url, json=payload, timeout=timeout)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        detail = _error_detail(e.response)
        logger.error(
            "%s request failed (%dms): status=%d, error=%s",
            service, _elapsed_ms(start_time), e.response.status_code, detail,
        )
        raise UpstreamStatusError(
            service, e.response.status_code, detail,
        ) from e
    except httpx.TimeoutException as e:
        logger.error(
            "%s request timed out after %dms", service, _elapsed_ms(start_time),
        )
        raise UpstreamTimeout(
            service, f"Request to {service} service timed out. Please try again.",
        ) from e
    except httpx.RequestError as e:
        logger.error(
            "%s request failed (%dms): no response (%s)",
            service, _elapsed_ms(start_time), e,
        )
        raise UpstreamUnavailable(
            service,
            f"No response from {service} service. Please try again later.",
        ) from e

    try:
        body = response.json()
    except ValueError as e:
        raise InvalidUpstreamFormat(
            f"{service} service returned a non-JSON body"
        ) from e
    if not isinstance(body, dict):
        raise InvalidUpstreamFormat(
            f"{service} service returned {type(body).__name__}, expected an object"
        )

    logger.info(
        "%s request succeeded (%dms)", service, _elapsed_ms(start_time),
    )
    return body


def _error_detail(response: httpx.Response) -> str:
    """Best-effort error message from an upstream error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            if body.get(key):
                return str(body[key])
    return response.reason_phrase


def _elapsed_ms(start_time: float) -> int:
    return int((time.monotonic() - start_time) * 1000)
