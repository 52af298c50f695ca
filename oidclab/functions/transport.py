"""Outbound HTTP for sub functions, via one httpx.AsyncClient per request."""

import logging
from typing import Optional, Union

import httpx

from oidclab.config import config
from oidclab.exceptions import FunctionError

logger = logging.getLogger(__name__)


async def send_request(
    method: str,
    url: str,
    headers: Optional[dict] = None,
    content: Optional[Union[str, bytes]] = None,
    timeout_seconds: Optional[float] = None,
) -> httpx.Response:
    """Send one request and return the fully read response.

    Non-2xx responses are returned, not raised; callers decide what an error is.

    Raises:
        FunctionError: on timeout or any transport-level failure.
    """
    timeout = timeout_seconds if timeout_seconds else config.http_timeout_seconds
    logger.debug("[transport] %s %s", method.upper(), url)
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            return await client.request(method.upper(), url, headers=headers, content=content)
    except httpx.TimeoutException:
        raise FunctionError(f"Request timed out after {int(timeout * 1000)}ms")
    except httpx.HTTPError as exc:
        raise FunctionError(f"Request failed: {exc}") from exc
