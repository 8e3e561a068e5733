"""
HTTP transport for the Stripe API.
"""

from __future__ import annotations

import logging
import time
from typing import Any, List, Mapping, Optional, Protocol, Tuple

import requests

from .config import StripeConfig
from .errors import APIConnectionError

__all__ = [
    "RequestsTransport",
    "Transport",
    "encode_params",
]

_RETRYABLE_METHODS = frozenset({"GET", "DELETE"})
_INITIAL_BACKOFF_SECONDS = 0.5
_MAX_BACKOFF_SECONDS = 2.0


class Transport(Protocol):
    def send(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, Any]],
        *,
        api_key: str,
    ) -> Tuple[int, str]:
        ...


def _encode_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _flatten(prefix: str, value: Any, out: List[Tuple[str, str]]) -> None:
    if value is None:
        return
    if hasattr(value, "as_params"):
        value = value.as_params()
    if isinstance(value, Mapping):
        for key, inner in value.items():
            _flatten(f"{prefix}[{key}]", inner, out)
    elif isinstance(value, (list, tuple)):
        for index, inner in enumerate(value):
            _flatten(f"{prefix}[{index}]", inner, out)
    else:
        out.append((prefix, _encode_scalar(value)))


def encode_params(params: Optional[Mapping[str, Any]]) -> List[Tuple[str, str]]:
    """
    Flatten nested parameters into form pairs, e.g. ``card[number]=4242...``.

    ``None`` values are dropped; objects exposing ``as_params()`` are expanded.
    """
    pairs: List[Tuple[str, str]] = []
    for key, value in (params or {}).items():
        _flatten(str(key), value, pairs)
    return pairs


class RequestsTransport:
    """
    Sends authenticated requests through a :class:`requests.Session`.

    Connection failures on GET and DELETE are retried up to
    ``config.max_network_retries`` times. POST is never retried.
    """

    def __init__(
        self,
        config: StripeConfig,
        *,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config
        self.session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        headers = {"User-Agent": self.config.user_agent, "Accept": "application/json"}
        if self.config.api_version:
            headers["Stripe-Version"] = self.config.api_version
        return headers

    def send(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, Any]],
        *,
        api_key: str,
    ) -> Tuple[int, str]:
        method = method.upper()
        url = self.config.url_for(path)
        pairs = encode_params(params)
        request_kwargs: dict[str, Any] = {
            "auth": (api_key, ""),
            "headers": self._headers(),
            "timeout": self.config.timeout_seconds,
        }
        if method == "POST":
            request_kwargs["data"] = pairs
        else:
            request_kwargs["params"] = pairs

        attempts = 1
        if method in _RETRYABLE_METHODS:
            attempts += self.config.max_network_retries

        logging.info("Sending %s request to %s", method, url)
        attempt = 1
        while True:
            try:
                response = self.session.request(method, url, **request_kwargs)
                break
            except (requests.ConnectionError, requests.Timeout) as exc:
                if attempt >= attempts:
                    raise APIConnectionError(
                        f"Could not connect to the Stripe API at {url}: {exc}"
                    ) from exc
                delay = min(
                    _INITIAL_BACKOFF_SECONDS * (2 ** (attempt - 1)),
                    _MAX_BACKOFF_SECONDS,
                )
                logging.warning(
                    "Connection to %s failed (attempt %d of %d), retrying in %.1fs: %s",
                    url,
                    attempt,
                    attempts,
                    delay,
                    exc,
                )
                time.sleep(delay)
                attempt += 1
            except requests.RequestException as exc:
                raise APIConnectionError(
                    f"Request to the Stripe API at {url} failed: {exc}"
                ) from exc

        logging.debug("Stripe API responded to %s %s with %d", method, url, response.status_code)
        return response.status_code, response.text
