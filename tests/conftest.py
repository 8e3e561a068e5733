"""Pytest configuration and fixtures."""

import itertools
import json
import re
import uuid
from typing import Any, Dict, List, Optional, Tuple

import pytest

from stripe_lite import StripeClient, StripeConfig, clear_default_client
from stripe_lite.core.defaults import set_default_client
from stripe_lite.core.transport import encode_params

TEST_API_KEY = "sk_test_fake"


def luhn_valid(number: str) -> bool:
    digits = [int(ch) for ch in number if ch.isdigit()]
    if len(digits) < 12 or len(digits) != len(number):
        return False
    total = 0
    for index, digit in enumerate(reversed(digits)):
        if index % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def unflatten(pairs: List[Tuple[str, str]]) -> Dict[str, Any]:
    """Rebuild nested params from ``card[number]`` style form keys."""
    result: Dict[str, Any] = {}
    for key, value in pairs:
        parts = re.findall(r"[^\[\]]+", key)
        target = result
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        target[parts[-1]] = value
    return result


class ApiFailure(Exception):
    def __init__(self, status: int, error_type: Optional[str], message: str, param: Optional[str] = None, **extra: Any):
        super().__init__(message)
        self.status = status
        self.body = {"error": {"type": error_type, "message": message}}
        if param is not None:
            self.body["error"]["param"] = param
        self.body["error"].update(extra)


class FakeStripeAPI:
    """
    In-memory stand-in for the v1 API speaking the transport contract.

    Parameters travel through the same form encoding the real transport uses,
    so everything arrives as strings.
    """

    def __init__(self) -> None:
        self.charges: Dict[str, Dict[str, Any]] = {}
        self.customers: Dict[str, Dict[str, Any]] = {}
        self.plans: Dict[str, Dict[str, Any]] = {}
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []
        self._clock = itertools.count(1_700_000_000)
        self._routes = [
            ("POST", r"/v1/charges", self._create_charge),
            ("GET", r"/v1/charges", self._list_charges),
            ("GET", r"/v1/charges/([^/]+)", self._retrieve_charge),
            ("POST", r"/v1/charges/([^/]+)/refund", self._refund_charge),
            ("POST", r"/v1/customers", self._create_customer),
            ("GET", r"/v1/customers", self._list_customers),
            ("GET", r"/v1/customers/([^/]+)", self._retrieve_customer),
            ("POST", r"/v1/customers/([^/]+)", self._update_customer),
            ("DELETE", r"/v1/customers/([^/]+)", self._delete_customer),
            ("POST", r"/v1/customers/([^/]+)/subscription", self._update_subscription),
            ("DELETE", r"/v1/customers/([^/]+)/subscription", self._cancel_subscription),
            ("POST", r"/v1/plans", self._create_plan),
            ("GET", r"/v1/plans", self._list_plans),
            ("GET", r"/v1/plans/([^/]+)", self._retrieve_plan),
            ("DELETE", r"/v1/plans/([^/]+)", self._delete_plan),
        ]

    # transport contract

    def send(self, method, path, params, *, api_key):
        decoded = unflatten(encode_params(params))
        self.calls.append((method, path, decoded))
        if api_key != TEST_API_KEY:
            return 401, json.dumps(
                {"error": {"type": "invalid_request_error", "message": f"Invalid API Key provided: {api_key[:4]}****"}}
            )
        for route_method, pattern, handler in self._routes:
            match = re.fullmatch(pattern, path)
            if route_method == method and match:
                try:
                    return 200, json.dumps(handler(decoded, *match.groups()))
                except ApiFailure as failure:
                    return failure.status, json.dumps(failure.body)
        return 404, json.dumps(
            {"error": {"type": "invalid_request_error", "message": f"Unrecognized request URL ({method}: {path})"}}
        )

    # helpers

    def _now(self) -> int:
        return next(self._clock)

    @staticmethod
    def _require(params, name):
        if name not in params or params[name] == "":
            raise ApiFailure(400, "invalid_request_error", f"Missing required param: {name}.", param=name)
        return params[name]

    @staticmethod
    def _int_param(params, name):
        try:
            return int(params[name])
        except ValueError:
            raise ApiFailure(400, "invalid_request_error", f"Invalid integer: {params[name]}", param=name) from None

    @staticmethod
    def _list(objects, url, params):
        ordered = sorted(objects, key=lambda obj: obj["_seq"], reverse=True)
        count = int(params.get("count", params.get("limit", 10)))
        start = int(params.get("offset", 0))
        if "starting_after" in params:
            ids = [obj["id"] for obj in ordered]
            start = ids.index(params["starting_after"]) + 1
        page = ordered[start:start + count]
        return {
            "object": "list",
            "url": url,
            "count": len(ordered),
            "data": [FakeStripeAPI._public(obj) for obj in page],
        }

    @staticmethod
    def _public(obj):
        return {key: value for key, value in obj.items() if not key.startswith("_")}

    def _card(self, raw):
        if not isinstance(raw, dict):
            raise ApiFailure(400, "invalid_request_error", "Invalid card object", param="card")
        number = raw.get("number", "")
        if not luhn_valid(number):
            raise ApiFailure(
                402, "card_error", "Your card number is incorrect", param="number", code="incorrect_number"
            )
        for name in ("exp_month", "exp_year"):
            if name not in raw:
                raise ApiFailure(402, "card_error", f"Missing {name}", param=name, code="invalid_expiry")
        card = {
            "object": "card",
            "last4": number[-4:],
            "type": "Visa" if number.startswith("4") else "Unknown",
            "exp_month": int(raw["exp_month"]),
            "exp_year": int(raw["exp_year"]),
            "fingerprint": uuid.uuid5(uuid.NAMESPACE_OID, number).hex[:16],
            "country": "US",
            "name": raw.get("name"),
            "cvc_check": "pass" if raw.get("cvc") else None,
            "address_line1": raw.get("address_line1"),
            "address_line2": raw.get("address_line2"),
            "address_country": raw.get("address_country"),
        }
        return card

    def _get(self, store, kind, object_id):
        obj = store.get(object_id)
        if obj is None:
            raise ApiFailure(404, "invalid_request_error", f"No such {kind}: {object_id}", param="id")
        return obj

    # charges

    def _create_charge(self, params):
        self._require(params, "amount")
        amount = self._int_param(params, "amount")
        currency = self._require(params, "currency")
        if amount < 50:
            raise ApiFailure(400, "invalid_request_error", "Amount must be at least 50 cents", param="amount")
        card = None
        customer_id = params.get("customer")
        if customer_id is not None:
            customer = self._get(self.customers, "customer", customer_id)
            card = customer["active_card"]
        if "card" in params:
            card = self._card(params["card"])
        if card is None:
            raise ApiFailure(400, "invalid_request_error", "You must supply either a card or a customer id", param="card")
        charge = {
            "id": f"ch_{uuid.uuid4().hex[:14]}",
            "object": "charge",
            "created": self._now(),
            "livemode": False,
            "paid": True,
            "amount": amount,
            "currency": currency,
            "refunded": False,
            "amount_refunded": 0,
            "fee": 33,
            "card": card,
            "customer": customer_id,
            "description": params.get("description"),
            "failure_message": None,
            "disputed": False,
            "_seq": len(self.charges),
        }
        self.charges[charge["id"]] = charge
        return self._public(charge)

    def _list_charges(self, params):
        return self._list(self.charges.values(), "/v1/charges", params)

    def _retrieve_charge(self, params, charge_id):
        return self._public(self._get(self.charges, "charge", charge_id))

    def _refund_charge(self, params, charge_id):
        charge = self._get(self.charges, "charge", charge_id)
        if charge["refunded"]:
            raise ApiFailure(400, "invalid_request_error", f"Charge {charge_id} has already been refunded.")
        refundable = charge["amount"] - charge["amount_refunded"]
        amount = self._int_param(params, "amount") if "amount" in params else refundable
        if amount > refundable:
            raise ApiFailure(
                400,
                "invalid_request_error",
                f"Refund amount ({amount}) is greater than unrefunded amount on charge ({refundable})",
                param="amount",
            )
        charge["amount_refunded"] += amount
        charge["refunded"] = charge["amount_refunded"] == charge["amount"]
        return self._public(charge)

    # plans

    def _create_plan(self, params):
        plan_id = self._require(params, "id")
        for name in ("amount", "currency", "interval", "name"):
            self._require(params, name)
        if plan_id in self.plans:
            raise ApiFailure(400, "invalid_request_error", "Plan already exists.", param="id")
        plan = {
            "id": plan_id,
            "object": "plan",
            "livemode": False,
            "amount": self._int_param(params, "amount"),
            "currency": params["currency"],
            "interval": params["interval"],
            "interval_count": 1,
            "name": params["name"],
            "trial_period_days": None,
            "_seq": len(self.plans),
        }
        self.plans[plan_id] = plan
        return self._public(plan)

    def _list_plans(self, params):
        return self._list(self.plans.values(), "/v1/plans", params)

    def _retrieve_plan(self, params, plan_id):
        return self._public(self._get(self.plans, "plan", plan_id))

    def _delete_plan(self, params, plan_id):
        self._get(self.plans, "plan", plan_id)
        del self.plans[plan_id]
        return {"id": plan_id, "object": "plan", "deleted": True}

    # customers

    def _subscribe(self, customer, plan_id):
        plan = self.plans.get(plan_id)
        if plan is None:
            raise ApiFailure(400, "invalid_request_error", f"No such plan: {plan_id}", param="plan")
        now = self._now()
        current = customer.get("subscription")
        if current is not None and current["status"] != "canceled":
            current["plan"] = self._public(plan)
            current["cancel_at_period_end"] = False
            return current
        subscription = {
            "object": "subscription",
            "customer": customer["id"],
            "plan": self._public(plan),
            "status": "active",
            "start": now,
            "current_period_start": now,
            "current_period_end": now + 30 * 24 * 3600,
            "cancel_at_period_end": False,
            "canceled_at": None,
            "ended_at": None,
            "trial_start": None,
            "trial_end": None,
            "quantity": 1,
        }
        customer["subscription"] = subscription
        return subscription

    def _live_customer(self, customer_id):
        customer = self._get(self.customers, "customer", customer_id)
        if customer.get("deleted"):
            raise ApiFailure(404, "invalid_request_error", f"No such customer: {customer_id}", param="id")
        return customer

    def _create_customer(self, params):
        customer = {
            "id": f"cus_{uuid.uuid4().hex[:14]}",
            "object": "customer",
            "created": self._now(),
            "livemode": False,
            "description": params.get("description"),
            "email": params.get("email"),
            "active_card": self._card(params["card"]) if "card" in params else None,
            "subscription": None,
            "account_balance": 0,
            "delinquent": False,
            "_seq": len(self.customers),
        }
        if "plan" in params:
            self._subscribe(customer, params["plan"])
        self.customers[customer["id"]] = customer
        return self._public(customer)

    def _list_customers(self, params):
        live = [customer for customer in self.customers.values() if not customer.get("deleted")]
        return self._list(live, "/v1/customers", params)

    def _retrieve_customer(self, params, customer_id):
        customer = self._get(self.customers, "customer", customer_id)
        if customer.get("deleted"):
            return {"id": customer_id, "deleted": True}
        return self._public(customer)

    def _update_customer(self, params, customer_id):
        customer = self._live_customer(customer_id)
        for name in ("description", "email"):
            if name in params:
                customer[name] = params[name] or None
        if "card" in params:
            customer["active_card"] = self._card(params["card"])
        if "plan" in params:
            self._subscribe(customer, params["plan"])
        return self._public(customer)

    def _delete_customer(self, params, customer_id):
        self._live_customer(customer_id)
        self.customers[customer_id]["deleted"] = True
        return {"id": customer_id, "deleted": True}

    def _update_subscription(self, params, customer_id):
        customer = self._live_customer(customer_id)
        return self._subscribe(customer, self._require(params, "plan"))

    def _cancel_subscription(self, params, customer_id):
        customer = self._live_customer(customer_id)
        subscription = customer.get("subscription")
        if subscription is None:
            raise ApiFailure(
                400,
                "invalid_request_error",
                f"Customer {customer_id} does not have a subscription",
            )
        if params.get("at_period_end") == "true":
            subscription["cancel_at_period_end"] = True
            return subscription
        now = self._now()
        subscription.update(status="canceled", canceled_at=now, ended_at=now)
        customer["subscription"] = None
        return subscription


@pytest.fixture
def fake_api() -> FakeStripeAPI:
    return FakeStripeAPI()


@pytest.fixture
def client(fake_api) -> StripeClient:
    return StripeClient(StripeConfig(api_key=TEST_API_KEY), transport=fake_api)


@pytest.fixture
def default_client(client):
    """Install ``client`` as the process-wide default for one test."""
    set_default_client(client, replace=True)
    yield client
    clear_default_client()


@pytest.fixture
def card_params() -> dict:
    return {
        "name": "Python User",
        "cvc": "100",
        "address_line1": "12 Main Street",
        "address_line2": "Palo Alto",
        "address_country": "USA",
        "number": "4242424242424242",
        "exp_month": 3,
        "exp_year": 2030,
    }


@pytest.fixture
def charge_params(card_params) -> dict:
    return {"amount": 100, "currency": "usd", "card": card_params}


@pytest.fixture
def customer_params(card_params) -> dict:
    return {"description": "Python Customer", "card": card_params}


@pytest.fixture
def plan_params() -> dict:
    return {
        "id": f"PLAN-{uuid.uuid4()}",
        "amount": 100,
        "currency": "usd",
        "interval": "month",
        "name": "Python Plan",
    }
