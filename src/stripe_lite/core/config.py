"""
Configuration objects and helpers for the Stripe client.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional
from urllib.parse import urlparse

from .errors import ErrorKind, StripeError

__all__ = [
    "ConfigError",
    "StripeConfig",
    "StripeParameters",
    "load_env_file",
    "load_stripe_config",
    "read_env_file",
]

DEFAULT_API_BASE = "https://api.stripe.com"
DEFAULT_TIMEOUT_SECONDS = 80
DEFAULT_USER_AGENT = "stripe-lite/0.1.0"

_PARAMETER_TO_ENV_KEY = {
    "api_key": "STRIPE_API_KEY",
    "api_base": "STRIPE_API_BASE",
    "api_version": "STRIPE_API_VERSION",
    "timeout_seconds": "STRIPE_TIMEOUT_SECONDS",
    "max_network_retries": "STRIPE_MAX_NETWORK_RETRIES",
}


def read_env_file(path: Optional[str]) -> Dict[str, str]:
    """
    Parse the ``KEY=VALUE`` lines of a ``.env`` file.

    A missing file (or ``path=None``) reads as empty. Comments, ``export``
    prefixes and one pair of surrounding quotes are dropped.
    """
    if path is None:
        return {}
    try:
        lines = Path(path).read_text(encoding="utf-8").splitlines()
    except FileNotFoundError:
        return {}

    values: Dict[str, str] = {}
    for line in lines:
        line = line.strip()
        if line.startswith("export "):
            line = line[len("export "):]
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key or key.startswith("#"):
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
            value = value[1:-1]
        values[key] = value
    return values


def load_env_file(
    path: Optional[str] = ".env",
    *,
    environ: Optional[MutableMapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Copy the settings of a ``.env`` file into ``environ`` (``os.environ`` by
    default) without replacing keys it already has. Returns the result.
    """
    target: MutableMapping[str, str] = os.environ if environ is None else environ
    for key, value in read_env_file(path).items():
        target.setdefault(key, value)
    return dict(target)


@dataclass(frozen=True)
class StripeParameters:
    """
    Explicit parameter bundle for constructing :class:`StripeConfig`.
    """

    api_key: Optional[str] = None
    api_base: Optional[str] = None
    api_version: Optional[str] = None
    timeout_seconds: Optional[float | int | str] = None
    max_network_retries: Optional[int | str] = None

    def as_overrides(self) -> Dict[str, str]:
        overrides: Dict[str, str] = {}
        for field_name, env_key in _PARAMETER_TO_ENV_KEY.items():
            value = getattr(self, field_name)
            if value is None:
                continue
            overrides[env_key] = str(value)
        return overrides


class ConfigError(StripeError):
    """Raised when the supplied configuration is invalid."""

    kind = ErrorKind.CONFIG


def _normalize_api_base(raw: str) -> str:
    value = raw.strip().rstrip("/")
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"STRIPE_API_BASE must be an http(s) URL, got '{raw}'")
    return value


def _parse_timeout(raw: str) -> float:
    try:
        timeout = float(raw)
    except ValueError as exc:
        raise ConfigError(
            f"STRIPE_TIMEOUT_SECONDS must be a number, got '{raw}'"
        ) from exc
    if timeout <= 0:
        raise ConfigError("STRIPE_TIMEOUT_SECONDS must be greater than zero")
    return timeout


def _parse_retries(raw: str) -> int:
    try:
        retries = int(raw)
    except ValueError as exc:
        raise ConfigError(
            f"STRIPE_MAX_NETWORK_RETRIES must be an integer, got '{raw}'"
        ) from exc
    if retries < 0:
        raise ConfigError("STRIPE_MAX_NETWORK_RETRIES must not be negative")
    return retries


@dataclass(frozen=True)
class StripeConfig:
    api_key: Optional[str] = None
    api_base: str = DEFAULT_API_BASE
    api_version: Optional[str] = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_network_retries: int = 0
    user_agent: str = DEFAULT_USER_AGENT

    def __repr__(self) -> str:
        key = "None" if self.api_key is None else "'***'"
        return (
            f"StripeConfig(api_key={key}, api_base={self.api_base!r}, "
            f"api_version={self.api_version!r}, timeout_seconds={self.timeout_seconds!r}, "
            f"max_network_retries={self.max_network_retries!r})"
        )

    def url_for(self, path: str) -> str:
        return f"{self.api_base}/{path.lstrip('/')}"

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "StripeConfig":
        # A missing key is not a configuration error; the first request
        # reports it as an authentication failure instead.
        api_key = (values.get("STRIPE_API_KEY") or "").strip() or None

        api_base = _normalize_api_base(values.get("STRIPE_API_BASE", DEFAULT_API_BASE))
        api_version = (values.get("STRIPE_API_VERSION") or "").strip() or None
        timeout_seconds = _parse_timeout(
            values.get("STRIPE_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS))
        )
        max_network_retries = _parse_retries(values.get("STRIPE_MAX_NETWORK_RETRIES", "0"))

        return cls(
            api_key=api_key,
            api_base=api_base,
            api_version=api_version,
            timeout_seconds=timeout_seconds,
            max_network_retries=max_network_retries,
        )

    @classmethod
    def from_env(
        cls,
        *,
        env_file: Optional[str] = ".env",
        overrides: Optional[Mapping[str, str]] = None,
        base: Optional[Mapping[str, str]] = None,
        parameters: Optional[StripeParameters] = None,
        **explicit: Any,
    ) -> "StripeConfig":
        unknown = set(explicit) - set(_PARAMETER_TO_ENV_KEY)
        if unknown:
            raise TypeError(f"Unknown Stripe parameter(s): {', '.join(sorted(unknown))}")

        merged_overrides = dict(overrides or {})
        if parameters is not None:
            merged_overrides.update(parameters.as_overrides())
        merged_overrides.update(StripeParameters(**explicit).as_overrides())

        # process environment, then the .env file, then explicit values
        settings = dict(os.environ if base is None else base)
        load_env_file(env_file, environ=settings)
        settings.update(merged_overrides)
        return cls.from_mapping(settings)


def load_stripe_config(
    *,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    parameters: Optional[StripeParameters] = None,
    api_key: Optional[str] = None,
    api_base: Optional[str] = None,
    api_version: Optional[str] = None,
    timeout_seconds: Optional[float | int | str] = None,
    max_network_retries: Optional[int | str] = None,
) -> StripeConfig:
    """
    Convenience wrapper that mirrors :meth:`StripeConfig.from_env`.

    Settings can come from environment variables, a ``.env`` file, keyword
    arguments, or any combination of the three.
    """
    return StripeConfig.from_env(
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
