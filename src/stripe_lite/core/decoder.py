"""
Decoding of API payloads into typed snapshots.

Payloads are dispatched on their ``object`` field to one decoder per variant;
embedded objects go through the same dispatch. A payload that does not match
the expected shape raises :class:`DecodingError` and nothing partial is
returned.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Tuple, Type, TypeVar

from .errors import DecodingError
from .resources import (
    Card,
    Charge,
    Customer,
    DeletedResource,
    Plan,
    Subscription,
    UnknownObject,
)

if TYPE_CHECKING:
    from .client import StripeClient

__all__ = [
    "ListPage",
    "decode",
    "decode_as",
    "decode_list",
]

T = TypeVar("T")

_MISSING = object()


def _describe(value: Any) -> str:
    return type(value).__name__


def _field(payload: Mapping[str, Any], key: str, kind: Tuple[type, ...], where: str, *, required: bool) -> Any:
    value = payload.get(key, _MISSING)
    if value is _MISSING or value is None:
        if required:
            raise DecodingError(f"{where}: required field '{key}' is missing")
        return None
    # bool is an int subclass but never a valid integer field
    if isinstance(value, bool) and bool not in kind:
        raise DecodingError(f"{where}.{key}: expected {kind[0].__name__}, got bool")
    if not isinstance(value, kind):
        raise DecodingError(f"{where}.{key}: expected {kind[0].__name__}, got {_describe(value)}")
    return value


def _str(payload: Mapping[str, Any], key: str, where: str, *, required: bool = False) -> Optional[str]:
    return _field(payload, key, (str,), where, required=required)


def _int(payload: Mapping[str, Any], key: str, where: str, *, required: bool = False) -> Optional[int]:
    return _field(payload, key, (int,), where, required=required)


def _bool(payload: Mapping[str, Any], key: str, where: str, *, required: bool = False) -> Optional[bool]:
    return _field(payload, key, (bool,), where, required=required)


def _nested(
    payload: Mapping[str, Any],
    key: str,
    expected: Type[T],
    where: str,
    client: Optional["StripeClient"],
    *,
    required: bool = False,
) -> Optional[T]:
    value = _field(payload, key, (dict,), where, required=required)
    if value is None:
        return None
    return decode_as(value, expected, client=client)


def _decode_card(payload: Mapping[str, Any], client: Optional["StripeClient"]) -> Card:
    where = "card"
    return Card(
        last4=_str(payload, "last4", where, required=True),
        exp_month=_int(payload, "exp_month", where, required=True),
        exp_year=_int(payload, "exp_year", where, required=True),
        id=_str(payload, "id", where),
        type=_str(payload, "type", where),
        fingerprint=_str(payload, "fingerprint", where),
        country=_str(payload, "country", where),
        name=_str(payload, "name", where),
        cvc_check=_str(payload, "cvc_check", where),
        address_line1=_str(payload, "address_line1", where),
        address_line2=_str(payload, "address_line2", where),
        address_city=_str(payload, "address_city", where),
        address_state=_str(payload, "address_state", where),
        address_zip=_str(payload, "address_zip", where),
        address_country=_str(payload, "address_country", where),
    )


def _decode_plan(payload: Mapping[str, Any], client: Optional["StripeClient"]) -> Plan:
    where = "plan"
    return Plan(
        id=_str(payload, "id", where, required=True),
        amount=_int(payload, "amount", where, required=True),
        currency=_str(payload, "currency", where, required=True),
        interval=_str(payload, "interval", where, required=True),
        name=_str(payload, "name", where, required=True),
        livemode=_bool(payload, "livemode", where),
        interval_count=_int(payload, "interval_count", where),
        trial_period_days=_int(payload, "trial_period_days", where),
        created=_int(payload, "created", where),
        _client=client,
    )


def _decode_subscription(payload: Mapping[str, Any], client: Optional["StripeClient"]) -> Subscription:
    where = "subscription"
    return Subscription(
        customer=_str(payload, "customer", where, required=True),
        plan=_nested(payload, "plan", Plan, where, client, required=True),
        status=_str(payload, "status", where, required=True),
        id=_str(payload, "id", where),
        start=_int(payload, "start", where),
        current_period_start=_int(payload, "current_period_start", where),
        current_period_end=_int(payload, "current_period_end", where),
        cancel_at_period_end=_bool(payload, "cancel_at_period_end", where),
        canceled_at=_int(payload, "canceled_at", where),
        ended_at=_int(payload, "ended_at", where),
        trial_start=_int(payload, "trial_start", where),
        trial_end=_int(payload, "trial_end", where),
        quantity=_int(payload, "quantity", where),
        _client=client,
    )


def _decode_charge(payload: Mapping[str, Any], client: Optional["StripeClient"]) -> Charge:
    where = "charge"
    return Charge(
        id=_str(payload, "id", where, required=True),
        created=_int(payload, "created", where, required=True),
        amount=_int(payload, "amount", where, required=True),
        currency=_str(payload, "currency", where, required=True),
        refunded=_bool(payload, "refunded", where, required=True),
        livemode=_bool(payload, "livemode", where),
        paid=_bool(payload, "paid", where),
        amount_refunded=_int(payload, "amount_refunded", where),
        card=_nested(payload, "card", Card, where, client),
        customer=_str(payload, "customer", where),
        description=_str(payload, "description", where),
        fee=_int(payload, "fee", where),
        failure_message=_str(payload, "failure_message", where),
        failure_code=_str(payload, "failure_code", where),
        disputed=_bool(payload, "disputed", where),
        _client=client,
    )


def _decode_customer(payload: Mapping[str, Any], client: Optional["StripeClient"]) -> Customer:
    where = "customer"
    return Customer(
        id=_str(payload, "id", where, required=True),
        created=_int(payload, "created", where, required=True),
        livemode=_bool(payload, "livemode", where),
        description=_str(payload, "description", where),
        email=_str(payload, "email", where),
        active_card=_nested(payload, "active_card", Card, where, client),
        subscription=_nested(payload, "subscription", Subscription, where, client),
        account_balance=_int(payload, "account_balance", where),
        delinquent=_bool(payload, "delinquent", where),
        _client=client,
    )


def _decode_deleted(payload: Mapping[str, Any], client: Optional["StripeClient"]) -> DeletedResource:
    where = "deleted object"
    return DeletedResource(
        id=_str(payload, "id", where, required=True),
        object=_str(payload, "object", where) or "",
        deleted=True,
        _client=client,
    )


_DECODERS: Dict[str, Callable[[Mapping[str, Any], Optional["StripeClient"]], Any]] = {
    "card": _decode_card,
    "charge": _decode_charge,
    "customer": _decode_customer,
    "list": lambda payload, client: _decode_list(payload, client),
    "plan": _decode_plan,
    "subscription": _decode_subscription,
}


def decode(payload: Any, *, client: Optional["StripeClient"] = None) -> Any:
    """
    Decode ``payload`` into the snapshot type named by its ``object`` field.

    Deleted objects become :class:`DeletedResource`, lists become a
    :class:`ListPage` of decoded elements, and unrecognised object types
    become :class:`UnknownObject` carrying the raw payload.
    """
    if not isinstance(payload, Mapping):
        raise DecodingError(f"Expected a JSON object, got {_describe(payload)}")

    if payload.get("deleted") is True:
        return _decode_deleted(payload, client)

    object_name = payload.get("object")
    if not isinstance(object_name, str):
        raise DecodingError(f"Payload has no 'object' discriminator: {dict(payload)!r}")

    decoder = _DECODERS.get(object_name)
    if decoder is None:
        raw_id = payload.get("id")
        return UnknownObject(
            object=object_name,
            raw=dict(payload),
            id=raw_id if isinstance(raw_id, str) else None,
        )
    return decoder(payload, client)


def decode_as(payload: Any, expected: Any, *, client: Optional["StripeClient"] = None) -> Any:
    """
    Decode ``payload`` and check it is an instance of ``expected`` (a class or
    a tuple of classes).
    """
    result = decode(payload, client=client)
    if not isinstance(result, expected):
        names = expected if isinstance(expected, tuple) else (expected,)
        wanted = " or ".join(cls.__name__ for cls in names)
        found = getattr(result, "object", None) or getattr(result, "object_name", _describe(result))
        raise DecodingError(f"Expected a {wanted} payload, got '{found}'")
    return result


class ListPage:
    """The decoded parts of a ``list`` payload."""

    __slots__ = ("items", "total_count", "has_more", "url")

    def __init__(
        self,
        items: List[Any],
        total_count: Optional[int],
        has_more: Optional[bool],
        url: Optional[str],
    ) -> None:
        self.items = items
        self.total_count = total_count
        self.has_more = has_more
        self.url = url


def decode_list(
    payload: Any,
    item_type: Type[T],
    *,
    client: Optional["StripeClient"] = None,
) -> ListPage:
    """
    Decode a list response whose elements must all be ``item_type``.

    Older API versions answer with a bare JSON array; it is accepted as a page
    without count or cursor information.
    """
    if isinstance(payload, list):
        items = [decode_as(item, item_type, client=client) for item in payload]
        return ListPage(items, None, None, None)

    if not isinstance(payload, Mapping):
        raise DecodingError(f"Expected a list payload, got {_describe(payload)}")
    if payload.get("object") != "list":
        raise DecodingError(f"Expected a list payload, got '{payload.get('object')}'")

    return _page_from(payload, lambda item: decode_as(item, item_type, client=client))


def _decode_list(payload: Mapping[str, Any], client: Optional["StripeClient"]) -> ListPage:
    return _page_from(payload, lambda item: decode(item, client=client))


def _page_from(payload: Mapping[str, Any], decode_item: Callable[[Any], Any]) -> ListPage:
    where = "list"
    data = _field(payload, "data", (list,), where, required=True)
    items = [decode_item(item) for item in data]
    total_count = _int(payload, "total_count", where)
    if total_count is None:
        total_count = _int(payload, "count", where)
    return ListPage(
        items=items,
        total_count=total_count,
        has_more=_bool(payload, "has_more", where),
        url=_str(payload, "url", where),
    )
