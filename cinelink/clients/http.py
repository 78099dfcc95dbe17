"""Shared request helper that maps transport failures onto the error taxonomy."""
from __future__ import annotations

import logging
import time
from typing import Any, Dict

import requests
from requests import Response

from cinelink.errors import NotFoundError, UnavailableError, UpstreamError, UpstreamTimeoutError

LOGGER = logging.getLogger(__name__)


def request_json(
    session: requests.Session,
    method: str,
    url: str,
    *,
    upstream: str,
    timeout: float,
    not_found_is_miss: bool = True,
    **kwargs: Any,
) -> Dict[str, Any]:
    """Issue one HTTP call and return its JSON object body.

    Raises :class:`UpstreamTimeoutError` on timeout, :class:`UnavailableError`
    on connection failures and 5xx answers, :class:`NotFoundError` on 404 when
    ``not_found_is_miss`` is set and :class:`UpstreamError` for anything else
    that is not a JSON object.
    """

    started = time.perf_counter()
    try:
        response = session.request(method, url, timeout=timeout, **kwargs)
    except requests.Timeout as exc:
        LOGGER.warning("upstream timeout", extra={"upstream": upstream, "detail": str(exc)})
        raise UpstreamTimeoutError(
            f"Request timeout - {upstream} did not answer within {timeout}s", upstream=upstream
        ) from exc
    except requests.RequestException as exc:
        LOGGER.warning("upstream unreachable", extra={"upstream": upstream, "detail": str(exc)})
        raise UnavailableError(
            f"{upstream} is temporarily unavailable", upstream=upstream
        ) from exc

    elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
    _raise_for_status(response, upstream=upstream, not_found_is_miss=not_found_is_miss)
    LOGGER.debug(
        "upstream call",
        extra={"upstream": upstream, "status": response.status_code, "elapsed_ms": elapsed_ms},
    )

    try:
        payload = response.json()
    except ValueError as exc:
        LOGGER.error("upstream returned non-JSON body", extra={"upstream": upstream})
        raise UpstreamError(f"{upstream} returned a non-JSON response", upstream=upstream) from exc
    if not isinstance(payload, dict):
        raise UpstreamError(f"{upstream} returned an unexpected payload", upstream=upstream)
    return payload


def _raise_for_status(response: Response, *, upstream: str, not_found_is_miss: bool) -> None:
    """Raise descriptive errors for non-2xx responses."""

    if response.ok:
        return
    status = response.status_code
    detail = (response.text or "")[:200]
    LOGGER.error(
        "upstream request failed",
        extra={"upstream": upstream, "status": status, "detail": detail},
    )
    if status == 404 and not_found_is_miss:
        raise NotFoundError(f"{upstream} has no match for this request", upstream=upstream)
    if status >= 500:
        raise UnavailableError(f"{upstream} is temporarily unavailable", upstream=upstream)
    raise UpstreamError(f"{upstream} error ({status})", upstream=upstream)
