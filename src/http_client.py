"""HTTP helpers with a uniform upstream error type."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Literal

import requests
from requests.adapters import HTTPAdapter

from .config import BUSY_STATUS, USER_AGENT
from .errors import StarError

logger = logging.getLogger(__name__)

ProviderErrorCode = Literal["NETWORK", "BUSY", "NOT_FOUND", "UPSTREAM", "BAD_RESPONSE"]

_SESSION = requests.Session()
_SESSION.mount("http://", HTTPAdapter(pool_connections=4, pool_maxsize=4))
_SESSION.mount("https://", HTTPAdapter(pool_connections=4, pool_maxsize=4))


@dataclass
class ProviderError(StarError):
    provider: str
    code: ProviderErrorCode
    message: str
    status: int | None = None

    def __str__(self) -> str:
        return self.message


def map_status_to_code(status: int) -> ProviderErrorCode:
    if status == BUSY_STATUS:
        return "BUSY"
    if status == 404:
        return "NOT_FOUND"
    return "UPSTREAM"


def fetch(
    url: str,
    provider: str,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 20.0,
) -> requests.Response:
    merged = {"User-Agent": USER_AGENT}
    merged.update(headers or {})
    logger.debug("GET %s params=%s", url, params)
    try:
        response = _SESSION.get(url, params=params, headers=merged, timeout=timeout_seconds)
    except requests.Timeout as error:
        raise ProviderError(provider, "BUSY", f"{provider} did not answer in {timeout_seconds:g}s, try again later.") from error
    except requests.RequestException as error:
        raise ProviderError(provider, "NETWORK", f"{provider} request failed: {error}") from error

    if not response.ok:
        raise ProviderError(
            provider,
            map_status_to_code(response.status_code),
            f"{provider} request failed with status {response.status_code} {response.reason or ''}".rstrip(),
            response.status_code,
        )
    return response


def decode_legacy(body: bytes) -> str:
    # GBK pages; gb18030 is a superset and untranslatable bytes are dropped.
    return body.decode("gb18030", errors="ignore")


def fetch_text(
    url: str,
    provider: str,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 20.0,
    legacy_encoding: bool = False,
) -> str:
    response = fetch(url, provider, params=params, headers=headers, timeout_seconds=timeout_seconds)
    if legacy_encoding:
        return decode_legacy(response.content)
    return response.text


def fetch_json(
    url: str,
    provider: str,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 20.0,
) -> Any:
    raw = fetch_text(url, provider, params=params, headers=headers, timeout_seconds=timeout_seconds)
    try:
        return json.loads(raw)
    except json.JSONDecodeError as error:
        raise ProviderError(provider, "BAD_RESPONSE", f"{provider} returned non-JSON content.") from error
