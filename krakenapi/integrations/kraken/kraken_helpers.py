from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, Mapping

import httpx

from krakenapi.logging.logger import get_logger

log = get_logger(__name__)


def _format_decimal(value: float | int) -> str:
    """
    Render a number in plain positional notation with the shortest digits that
    round-trip, e.g. 37500.0 -> '37500', 1e-08 -> '0.00000001'.
    """
    return format(Decimal(repr(float(value))).normalize(), "f")


def _join_csv(values: Iterable[str] | str) -> str:
    """Join identifiers into the comma delimited list the API expects."""
    if isinstance(values, str):
        return values
    return ",".join(value.strip() for value in values if value and value.strip())


def _set_if(params: Dict[str, str], key: str, value: object) -> None:
    """
    Set an optional parameter. Empty strings, zero and False mean "not set";
    True is sent as 'true'.
    """
    if value is None or value is False or value == "" or value == 0:
        return
    if value is True:
        params[key] = "true"
    elif isinstance(value, float):
        params[key] = _format_decimal(value)
    else:
        params[key] = str(value)


def _http_get(client: httpx.Client, url: str, params: Mapping[str, str], headers: Mapping[str, str]) -> bytes:
    """
    Perform a GET request and return the raw body.

    Raises:
        httpx.HTTPStatusError on non-2xx responses.
        httpx.RequestError on connection/timeout errors.
    """
    try:
        response = client.get(url, params=dict(params), headers=dict(headers))
        response.raise_for_status()
        return response.content
    except httpx.HTTPStatusError as exc:
        log.warning(
            "[KRAKEN][HTTP] GET fails: url=%s status=%s body=%s",
            url,
            exc.response.status_code if exc.response is not None else "n/a",
            exc.response.text if exc.response is not None else "n/a",
        )
        raise
    except httpx.RequestError as exc:
        log.warning("[KRAKEN][HTTP] GET request error: url=%s error=%s", url, str(exc))
        raise


def _http_post_form(client: httpx.Client, url: str, body: str, headers: Mapping[str, str]) -> bytes:
    """
    POST an already-encoded form body and return the raw body.

    The body is sent byte for byte as given: it must match what was signed.

    Raises:
        httpx.HTTPStatusError on non-2xx responses.
        httpx.RequestError on connection/timeout errors.
    """
    try:
        response = client.post(url, content=body.encode("utf-8"), headers=dict(headers))
        response.raise_for_status()
        return response.content
    except httpx.HTTPStatusError as exc:
        log.warning(
            "[KRAKEN][HTTP] POST fails: url=%s status=%s body=%s",
            url,
            exc.response.status_code if exc.response is not None else "n/a",
            exc.response.text if exc.response is not None else "n/a",
        )
        raise
    except httpx.RequestError as exc:
        log.warning("[KRAKEN][HTTP] POST request error: url=%s error=%s", url, str(exc))
        raise
