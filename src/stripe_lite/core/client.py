"""
Client that performs API calls and turns the responses into snapshots.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional

import requests

from .collection import Collection
from .config import StripeConfig
from .decoder import decode, decode_as, decode_list
from .errors import AuthenticationError, DecodingError, classify_error
from .transport import RequestsTransport, Transport

__all__ = ["StripeClient"]


def _parse_json(status: int, body: str) -> Any:
    try:
        return json.loads(body)
    except (TypeError, ValueError) as exc:
        raise DecodingError(
            f"Invalid JSON in API response: {body!r}",
            http_status=status,
            http_body=body,
        ) from exc


class StripeClient:
    """
    Sends requests through a :class:`Transport` and decodes what comes back.

    Holds no state besides its configuration and transport, so one instance
    can be shared freely.
    """

    def __init__(
        self,
        config: Optional[StripeConfig] = None,
        *,
        transport: Optional[Transport] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        if transport is not None and session is not None:
            raise ValueError("Provide either a transport or a session, not both.")
        self.config = config or StripeConfig()
        self.transport = transport or RequestsTransport(self.config, session=session)

    def __repr__(self) -> str:
        return f"StripeClient(api_base={self.config.api_base!r})"

    def _send(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, Any]],
        requested_id: Optional[str],
    ) -> Any:
        api_key = self.config.api_key
        if not api_key:
            raise AuthenticationError(
                "No API key provided. Set STRIPE_API_KEY or pass api_key= to the configuration."
            )

        status, body = self.transport.send(method.upper(), path, params, api_key=api_key)
        if not 200 <= status < 300:
            error = classify_error(status, body, requested_id=requested_id)
            logging.info(
                "Stripe API rejected %s %s with %d (%s)",
                method.upper(),
                path,
                status,
                error.kind.value,
            )
            raise error
        return _parse_json(status, body)

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        expect: Any = None,
        requested_id: Optional[str] = None,
    ) -> Any:
        """
        Perform one call and decode the response.

        ``expect`` restricts the decoded result to a class or tuple of classes;
        anything else raises :class:`DecodingError`.
        """
        payload = self._send(method, path, params, requested_id)
        if expect is None:
            return decode(payload, client=self)
        return decode_as(payload, expect, client=self)

    def request_list(
        self,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        item_type: Any,
        seen_before: Optional[int] = None,
    ) -> Collection:
        """
        Fetch one page. ``seen_before`` counts the elements of earlier pages so
        a reported total can end the paging without cursors.
        """
        payload = self._send("get", path, params, None)
        page = decode_list(payload, item_type, client=self)
        return Collection(
            page.items,
            item_type=item_type,
            path=page.url or path,
            params=params,
            total_count=page.total_count,
            has_more=page.has_more,
            client=self,
            seen_before=seen_before,
        )
