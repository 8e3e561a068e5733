"""
Process-wide default client used when an operation is not given one.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Optional

from .config import ConfigError
from .errors import AuthenticationError

if TYPE_CHECKING:
    from .client import StripeClient

__all__ = [
    "clear_default_client",
    "get_default_client",
    "resolve_client",
    "set_default_client",
]

_lock = threading.Lock()
_default_client: Optional["StripeClient"] = None


def set_default_client(client: "StripeClient", *, replace: bool = False) -> "StripeClient":
    """
    Install ``client`` as the process-wide default.

    The default is meant to be set once at startup; a second call raises
    :class:`ConfigError` unless ``replace=True``.
    """
    global _default_client
    with _lock:
        if _default_client is not None and not replace:
            raise ConfigError(
                "A default Stripe client is already configured; pass replace=True to swap it"
            )
        _default_client = client
    return client


def get_default_client() -> Optional["StripeClient"]:
    return _default_client


def clear_default_client() -> None:
    global _default_client
    with _lock:
        _default_client = None


def resolve_client(client: Optional["StripeClient"] = None) -> "StripeClient":
    if client is not None:
        return client
    if _default_client is None:
        raise AuthenticationError(
            "No API key provided. Call stripe_lite.configure(api_key=...) "
            "or pass client= explicitly."
        )
    return _default_client
