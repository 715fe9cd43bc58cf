"""
Retrying HTTP fetch used for every upstream call.

- One request per attempt (retries + 1 attempts), each under its own deadline.
- 429 and 5xx are retried, honouring Retry-After when present.
- Other 4xx fail immediately.
- Network errors and timeouts are retried with linear backoff.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings
from app.core.errors import (
    UpstreamConnectionError,
    UpstreamError,
    UpstreamHTTPError,
    UpstreamTimeoutError,
)

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": "SpaceNow-AstroFeed/1.0 (+https://nasa.gov)",
    "Accept": "application/json",
}


def _retry_after_ms(response: httpx.Response) -> float:
    """Retry-After in milliseconds, 0 when absent or not numeric."""
    value = response.headers.get("Retry-After")
    if not value:
        return 0
    try:
        return float(value) * 1000
    except ValueError:
        return 0


async def _backoff(wait_ms: float) -> None:
    await asyncio.sleep(wait_ms / 1000)


def _is_retryable(status: int) -> bool:
    return status == 429 or status >= 500


async def fetch_with_retry(
    url: str,
    *,
    method: str = "GET",
    headers: Optional[Dict[str, str]] = None,
    params: Optional[Dict[str, Any]] = None,
    body: Any = None,
    timeout_ms: Optional[int] = None,
    retries: int = 2,
    backoff_base_ms: int = 800,
    client: Optional[httpx.AsyncClient] = None,
) -> httpx.Response:
    """
    Perform one logical request against an upstream API.

    Returns the first 2xx response. Raises an UpstreamError subclass once
    attempts are exhausted or a non-retryable status is received.
    """
    if timeout_ms is None:
        timeout_ms = settings.nasa_timeout_ms
    request_headers = {**DEFAULT_HEADERS, **(headers or {})}

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(follow_redirects=True)

    last_error: Optional[UpstreamError] = None
    try:
        for attempt in range(retries + 1):
            has_next = attempt < retries
            try:
                response = await asyncio.wait_for(
                    client.request(
                        method,
                        url,
                        params=params,
                        headers=request_headers,
                        content=body,
                        timeout=timeout_ms / 1000,
                    ),
                    timeout=timeout_ms / 1000,
                )
            except (asyncio.TimeoutError, httpx.TimeoutException):
                last_error = UpstreamTimeoutError(
                    f"Timeout after {timeout_ms}ms for {url}", url=url
                )
            except httpx.HTTPError as e:
                last_error = UpstreamConnectionError(f"Request to {url} failed: {e}", url=url)
            else:
                if response.is_success:
                    return response

                text = response.text
                last_error = UpstreamHTTPError(
                    f"HTTP {response.status_code} - {text or response.reason_phrase}",
                    status=response.status_code,
                    url=url,
                )
                if not _is_retryable(response.status_code):
                    raise last_error

                if has_next:
                    wait_ms = _retry_after_ms(response) or backoff_base_ms * (attempt + 1)
                    logger.warning(
                        f"Upstream {response.status_code} from {url}, "
                        f"retrying in {wait_ms:.0f}ms (attempt {attempt + 1}/{retries + 1})"
                    )
                    await _backoff(wait_ms)
                continue

            if has_next:
                wait_ms = backoff_base_ms * (attempt + 1)
                logger.warning(f"{last_error}; retrying in {wait_ms}ms (attempt {attempt + 1}/{retries + 1})")
                await _backoff(wait_ms)

        logger.error(f"Giving up on {url}: {last_error}")
        raise last_error
    finally:
        if owns_client:
            await client.aclose()
