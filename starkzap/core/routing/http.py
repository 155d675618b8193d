"""Shared HTTP helper for swap and bridge venue APIs."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from ..errors import RouteProviderError
from ...config import settings


def error_message_from_payload(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    for key in ("error", "message"):
        value = payload.get(key)
        if isinstance(value, str):
            return value
        if isinstance(value, dict) and isinstance(value.get("message"), str):
            return value["message"]
    return None


async def request_json(
    provider: str,
    label: str,
    method: str,
    url: str,
    *,
    params: Optional[Dict[str, Any]] = None,
    json: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout_s: Optional[float] = None,
) -> Any:
    """Issue one request and return the decoded JSON body.

    Every failure (transport, non-2xx, non-JSON) becomes a single
    ``RouteProviderError`` whose message starts with ``label``.
    """
    merged_headers = {"content-type": "application/json", **(headers or {})}
    try:
        async with httpx.AsyncClient(timeout=timeout_s or settings.http_timeout_seconds) as client:
            response = await client.request(method, url, params=params, json=json, headers=merged_headers)
    except httpx.RequestError as exc:
        raise RouteProviderError(f"{label} failed: {exc}", provider=provider) from exc

    try:
        payload = response.json()
    except ValueError as exc:
        if not response.is_success:
            raise RouteProviderError(f"{label} failed ({response.status_code})", provider=provider) from exc
        raise RouteProviderError(f"{label} returned a non-JSON response", provider=provider) from exc

    if not response.is_success:
        message = f"{label} failed ({response.status_code})"
        detail = error_message_from_payload(payload)
        raise RouteProviderError(f"{message}: {detail}" if detail else message, provider=provider)
    return payload
