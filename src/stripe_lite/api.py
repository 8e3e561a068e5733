"""
Public, high-level helpers for setting up the Stripe client.
"""

from __future__ import annotations

from typing import Mapping, Optional

import requests

from .core.client import StripeClient
from .core.config import ConfigError, StripeConfig, StripeParameters, load_stripe_config
from .core.defaults import get_default_client, set_default_client
from .core.transport import Transport

__all__ = [
    "configure",
    "create_client",
]


def create_client(
    *,
    config: Optional[StripeConfig] = None,
    session: Optional[requests.Session] = None,
    transport: Optional[Transport] = None,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    parameters: Optional[StripeParameters] = None,
    api_key: Optional[str] = None,
    api_base: Optional[str] = None,
    api_version: Optional[str] = None,
    timeout_seconds: Optional[float | int | str] = None,
    max_network_retries: Optional[int | str] = None,
) -> StripeClient:
    """
    Construct a :class:`StripeClient`.

    Callers either supply a ready-made :class:`StripeConfig` or let the helper
    assemble one from environment data and keyword arguments.
    """
    if config is not None:
        extras = (
            overrides,
            base,
            parameters,
            api_key,
            api_base,
            api_version,
            timeout_seconds,
            max_network_retries,
        )
        if any(item is not None and item != {} for item in extras):
            raise ValueError(
                "Provide either a pre-built StripeConfig or individual parameters, not both."
            )
        cfg = config
    else:
        cfg = load_stripe_config(
            env_file=env_file,
            overrides=overrides,
            base=base,
            parameters=parameters,
            api_key=api_key,
            api_base=api_base,
            api_version=api_version,
            timeout_seconds=timeout_seconds,
            max_network_retries=max_network_retries,
        )
    return StripeClient(cfg, transport=transport, session=session)


def configure(
    *,
    replace: bool = False,
    config: Optional[StripeConfig] = None,
    session: Optional[requests.Session] = None,
    transport: Optional[Transport] = None,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    parameters: Optional[StripeParameters] = None,
    api_key: Optional[str] = None,
    api_base: Optional[str] = None,
    api_version: Optional[str] = None,
    timeout_seconds: Optional[float | int | str] = None,
    max_network_retries: Optional[int | str] = None,
) -> StripeClient:
    """
    Build a client and install it as the process-wide default.

    Meant to run once at startup; later calls raise
    :class:`~stripe_lite.core.config.ConfigError` unless ``replace=True``.
    """
    if not replace and get_default_client() is not None:
        raise ConfigError(
            "A default Stripe client is already configured; pass replace=True to swap it"
        )
    client = create_client(
        config=config,
        session=session,
        transport=transport,
        env_file=env_file,
        overrides=overrides,
        base=base,
        parameters=parameters,
        api_key=api_key,
        api_base=api_base,
        api_version=api_version,
        timeout_seconds=timeout_seconds,
        max_network_retries=max_network_retries,
    )
    return set_default_client(client, replace=replace)
