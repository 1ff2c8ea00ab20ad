"""Shared HTTP plumbing for remote embedding and generation backends."""

from typing import Any, Dict, Optional

import httpx

from ..modules.common.exceptions import ProviderError
from .logging import get_logger

logger = get_logger(__name__)


async def post_json(
    backend: str,
    url: str,
    payload: Dict[str, Any],
    *,
    headers: Optional[Dict[str, str]] = None,
    params: Optional[Dict[str, str]] = None,
    timeout: float = 30.0,
    client: Optional[httpx.AsyncClient] = None,
) -> Any:
    """POST a JSON payload and return the decoded JSON response.

    Args:
        backend: Backend name used in error messages
        url: Endpoint URL
        payload: JSON body
        headers: Extra request headers
        params: Query string parameters
        timeout: Request timeout in seconds
        client: Shared client; a short-lived one is created when omitted

    Returns:
        Decoded JSON body

    Raises:
        ProviderError: On transport failure, timeout, non-2xx status or a body that is not JSON
    """
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout) as owned_client:
                response = await owned_client.post(url, json=payload, headers=headers, params=params)
        else:
            response = await client.post(url, json=payload, headers=headers, params=params, timeout=timeout)
    except httpx.HTTPError as exc:
        raise ProviderError(backend, f"request failed: {exc}") from exc

    if response.is_error:
        raise ProviderError(backend, f"HTTP {response.status_code} {response.reason_phrase}")

    try:
        return response.json()
    except ValueError as exc:
        raise ProviderError(backend, "response body is not valid JSON") from exc


def bearer_headers(api_key: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
