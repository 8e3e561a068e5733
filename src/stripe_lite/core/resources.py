"""
Typed snapshots of Stripe resources and the operations they support.

Every snapshot is a frozen dataclass describing the resource as one API call
returned it. Operations never mutate a snapshot; they return a new one.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Mapping, Optional, Tuple
from urllib.parse import quote

from .defaults import resolve_client
from .errors import InvalidRequestError

if TYPE_CHECKING:
    from .client import StripeClient
    from .collection import Collection

__all__ = [
    "APIResource",
    "Card",
    "CardDetails",
    "Charge",
    "Customer",
    "DeletedResource",
    "Plan",
    "Subscription",
    "UnknownObject",
]


def _merge_params(params: Optional[Mapping[str, Any]], extra: Mapping[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = dict(params or {})
    merged.update(extra)
    return merged


def _typed_deleted(snapshot: Any, object_name: str) -> Any:
    # v1 answers for deleted customers without an ``object`` field
    if isinstance(snapshot, DeletedResource) and not snapshot.object:
        return replace(snapshot, object=object_name)
    return snapshot


def _to_datetime(timestamp: Optional[int]) -> Optional[datetime]:
    if timestamp is None:
        return None
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


@dataclass(frozen=True)
class CardDetails:
    """
    Card fields submitted when creating a charge or a customer.

    Only the fields that are set are sent. The number is masked in ``repr``.
    """

    number: Optional[str] = None
    exp_month: Optional[int] = None
    exp_year: Optional[int] = None
    cvc: Optional[str] = None
    name: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    address_city: Optional[str] = None
    address_state: Optional[str] = None
    address_zip: Optional[str] = None
    address_country: Optional[str] = None

    def __repr__(self) -> str:
        masked = None if self.number is None else f"****{self.number[-4:]}"
        return (
            f"CardDetails(number={masked!r}, exp_month={self.exp_month!r}, "
            f"exp_year={self.exp_year!r}, name={self.name!r})"
        )

    def as_params(self) -> Dict[str, Any]:
        return {
            key: value
            for key, value in self.__dict__.items()
            if value is not None
        }


@dataclass(frozen=True)
class Card:
    """A card as the API returns it: masked, never the full number."""

    last4: str
    exp_month: int
    exp_year: int
    id: Optional[str] = None
    type: Optional[str] = None
    fingerprint: Optional[str] = None
    country: Optional[str] = None
    name: Optional[str] = None
    cvc_check: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    address_city: Optional[str] = None
    address_state: Optional[str] = None
    address_zip: Optional[str] = None
    address_country: Optional[str] = None


class APIResource:
    object_name: ClassVar[str] = ""
    endpoint: ClassVar[str] = ""

    id: Optional[str]
    _client: Optional["StripeClient"]

    @property
    def key(self) -> Tuple[str, Optional[str]]:
        """The ``(object, id)`` pair identifying the remote entity."""
        return (self.object_name, self.id)

    def same_entity(self, other: object) -> bool:
        """True when ``other`` is a snapshot of the same remote entity."""
        return (
            isinstance(other, APIResource)
            and other.id is not None
            and self.key == other.key
        )

    @classmethod
    def instance_path_for(cls, id: Optional[str]) -> str:
        if not isinstance(id, str) or not id.strip():
            raise InvalidRequestError(
                f"Could not determine which URL to request: {cls.__name__} "
                f"instance has invalid ID: {id!r}",
                param="id",
            )
        return f"{cls.endpoint}/{quote(id, safe='')}"

    @property
    def instance_path(self) -> str:
        return self.instance_path_for(self.id)

    def _bound_client(self) -> "StripeClient":
        return resolve_client(self._client)


class CreatableResource(APIResource):
    @classmethod
    def create(
        cls,
        params: Optional[Mapping[str, Any]] = None,
        *,
        client: Optional["StripeClient"] = None,
        **kwargs: Any,
    ):
        return resolve_client(client).request(
            "post",
            cls.endpoint,
            _merge_params(params, kwargs),
            expect=cls,
        )


class RetrievableResource(APIResource):
    @classmethod
    def retrieve(cls, id: str, *, client: Optional["StripeClient"] = None):
        """
        Fetch a fresh snapshot. Deletable resources that were deleted come
        back as :class:`DeletedResource`.
        """
        path = cls.instance_path_for(id)
        expect: Any = cls
        if issubclass(cls, DeletableResource):
            expect = (cls, DeletedResource)
        snapshot = resolve_client(client).request("get", path, expect=expect, requested_id=id)
        return _typed_deleted(snapshot, cls.object_name)


class UpdatableResource(APIResource):
    def update(self, params: Optional[Mapping[str, Any]] = None, **kwargs: Any):
        """Send a partial update; fields not mentioned keep their values."""
        return self._bound_client().request(
            "post",
            self.instance_path,
            _merge_params(params, kwargs),
            expect=type(self),
            requested_id=self.id,
        )


class DeletableResource(APIResource):
    def delete(self) -> "DeletedResource":
        deleted = self._bound_client().request(
            "delete",
            self.instance_path,
            expect=DeletedResource,
            requested_id=self.id,
        )
        return _typed_deleted(deleted, self.object_name)


class ListableResource(APIResource):
    @classmethod
    def all(
        cls,
        params: Optional[Mapping[str, Any]] = None,
        *,
        client: Optional["StripeClient"] = None,
        **kwargs: Any,
    ) -> "Collection":
        """Fetch one page, most recent first unless the params say otherwise."""
        return resolve_client(client).request_list(
            cls.endpoint,
            _merge_params(params, kwargs),
            item_type=cls,
        )


@dataclass(frozen=True)
class Plan(CreatableResource, RetrievableResource, DeletableResource, ListableResource):
    object_name: ClassVar[str] = "plan"
    endpoint: ClassVar[str] = "/v1/plans"

    id: str
    amount: int
    currency: str
    interval: str
    name: str
    livemode: Optional[bool] = None
    interval_count: Optional[int] = None
    trial_period_days: Optional[int] = None
    created: Optional[int] = None
    _client: Optional["StripeClient"] = field(default=None, repr=False, compare=False)


@dataclass(frozen=True)
class Subscription(APIResource):
    """
    A customer's single subscription. It is reached through its customer and
    has no endpoint of its own.
    """

    object_name: ClassVar[str] = "subscription"

    customer: str
    plan: Plan
    status: str
    id: Optional[str] = None
    start: Optional[int] = None
    current_period_start: Optional[int] = None
    current_period_end: Optional[int] = None
    cancel_at_period_end: Optional[bool] = None
    canceled_at: Optional[int] = None
    ended_at: Optional[int] = None
    trial_start: Optional[int] = None
    trial_end: Optional[int] = None
    quantity: Optional[int] = None
    _client: Optional["StripeClient"] = field(default=None, repr=False, compare=False)

    @property
    def is_canceled(self) -> bool:
        return self.status == "canceled"

    @property
    def key(self) -> Tuple[str, Optional[str]]:
        # Subscriptions without an id are identified through their customer.
        return (self.object_name, self.id or self.customer)


@dataclass(frozen=True)
class Charge(CreatableResource, RetrievableResource, ListableResource):
    object_name: ClassVar[str] = "charge"
    endpoint: ClassVar[str] = "/v1/charges"

    id: str
    created: int
    amount: int
    currency: str
    refunded: bool
    livemode: Optional[bool] = None
    paid: Optional[bool] = None
    amount_refunded: Optional[int] = None
    card: Optional[Card] = None
    customer: Optional[str] = None
    description: Optional[str] = None
    fee: Optional[int] = None
    failure_message: Optional[str] = None
    failure_code: Optional[str] = None
    disputed: Optional[bool] = None
    _client: Optional["StripeClient"] = field(default=None, repr=False, compare=False)

    @property
    def created_at(self) -> datetime:
        return _to_datetime(self.created)

    @property
    def amount_refundable(self) -> int:
        if self.refunded:
            return 0
        return self.amount - (self.amount_refunded or 0)

    def refund(self, amount: Optional[int] = None) -> "Charge":
        """
        Refund the charge, fully unless ``amount`` is given.

        The API rejects refunding an already refunded charge with
        :class:`InvalidRequestError`.
        """
        return self._bound_client().request(
            "post",
            f"{self.instance_path}/refund",
            {"amount": amount},
            expect=Charge,
            requested_id=self.id,
        )


@dataclass(frozen=True)
class Customer(
    CreatableResource,
    RetrievableResource,
    UpdatableResource,
    DeletableResource,
    ListableResource,
):
    object_name: ClassVar[str] = "customer"
    endpoint: ClassVar[str] = "/v1/customers"

    id: str
    created: int
    livemode: Optional[bool] = None
    description: Optional[str] = None
    email: Optional[str] = None
    active_card: Optional[Card] = None
    subscription: Optional[Subscription] = None
    account_balance: Optional[int] = None
    delinquent: Optional[bool] = None
    _client: Optional["StripeClient"] = field(default=None, repr=False, compare=False)

    @property
    def created_at(self) -> datetime:
        return _to_datetime(self.created)

    @property
    def subscription_path(self) -> str:
        return f"{self.instance_path}/subscription"

    def update_subscription(
        self,
        params: Optional[Mapping[str, Any]] = None,
        **kwargs: Any,
    ) -> Subscription:
        """
        Subscribe the customer to a plan, replacing the plan of an existing
        subscription instead of adding a second one.
        """
        return self._bound_client().request(
            "post",
            self.subscription_path,
            _merge_params(params, kwargs),
            expect=Subscription,
            requested_id=self.id,
        )

    def cancel_subscription(self, at_period_end: Optional[bool] = None) -> Subscription:
        """
        Cancel the customer's subscription.

        Canceling a subscription that is already canceled is left to the API,
        which answers with an error; the subscription is never reactivated.
        """
        return self._bound_client().request(
            "delete",
            self.subscription_path,
            {"at_period_end": at_period_end},
            expect=Subscription,
            requested_id=self.id,
        )


@dataclass(frozen=True)
class DeletedResource(APIResource):
    """Terminal snapshot returned by ``delete()``."""

    id: str
    object: str
    deleted: bool = True
    _client: Optional["StripeClient"] = field(default=None, repr=False, compare=False)

    @property
    def key(self) -> Tuple[str, Optional[str]]:
        return (self.object, self.id)


@dataclass(frozen=True)
class UnknownObject:
    object: str
    raw: Mapping[str, Any]
    id: Optional[str] = None
