"""
HTTP helpers.

This module centralizes the minimal HTTP client logic used by the hub and SondeHub clients.

Design goals:
- Small surface area (GET JSON, POST JSON).
- Deterministic defaults (timeout + User-Agent).
- Translate every httpx failure into `UpstreamError` so callers only handle one type.
"""

from __future__ import annotations

from typing import Any

import httpx

from sondealert.core.errors import UpstreamError


DEFAULT_USER_AGENT = "sondealert/0.1.0 (+https://sondehub.org)"


def _request_headers(headers: dict[str, str] | None) -> dict[str, str]:
    request_headers = {"User-Agent": DEFAULT_USER_AGENT}
    if headers:
        request_headers.update(headers)
    return request_headers


def _check_status(resp: httpx.Response) -> None:
    # Any status >= 300 is a failure for both APIs.
    if resp.status_code >= 300:
        body = resp.text[:200]
        raise UpstreamError(
            f"unexpected status {resp.status_code} from {resp.request.url}: {body}",
            url=str(resp.request.url),
            status_code=resp.status_code,
        )


def get_json(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 15,
) -> Any:
    """GET `url` and return the decoded JSON response.

    Raises:
        UpstreamError: On transport errors, timeouts, status >= 300 or a non-JSON body.
    """
    try:
        with httpx.Client(timeout=timeout_seconds) as client:
            resp = client.get(url, params=params, headers=_request_headers(headers))
            _check_status(resp)
            return resp.json()
    except httpx.HTTPError as exc:
        raise UpstreamError(f"GET {url} failed: {exc}", url=url) from exc
    except ValueError as exc:
        raise UpstreamError(f"GET {url} returned invalid JSON: {exc}", url=url) from exc


def post_json(
    url: str,
    *,
    payload: dict[str, Any],
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 15,
) -> Any:
    """POST `payload` as a JSON body and return the decoded JSON response (or None if empty).

    Used for Home Assistant service calls and event firing.

    Raises:
        UpstreamError: On transport errors, timeouts, status >= 300 or a non-JSON body.
    """
    try:
        with httpx.Client(timeout=timeout_seconds) as client:
            resp = client.post(url, json=payload, headers=_request_headers(headers))
            _check_status(resp)
            if not resp.content:
                return None
            return resp.json()
    except httpx.HTTPError as exc:
        raise UpstreamError(f"POST {url} failed: {exc}", url=url) from exc
    except ValueError as exc:
        raise UpstreamError(f"POST {url} returned invalid JSON: {exc}", url=url) from exc
