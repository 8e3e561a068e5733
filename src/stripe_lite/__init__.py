"""
Public facade for the stripe-lite client.

The most useful pieces are re-exported here so integrators can
``from stripe_lite import ...`` without navigating the package.
"""

from .api import configure, create_client
from .core import (
    APIConnectionError,
    APIError,
    AuthenticationError,
    Card,
    CardDetails,
    CardError,
    Charge,
    Collection,
    ConfigError,
    Customer,
    DecodingError,
    DeletedResource,
    ErrorKind,
    InvalidRequestError,
    NotFoundError,
    Plan,
    RequestsTransport,
    StripeClient,
    StripeConfig,
    StripeError,
    StripeParameters,
    Subscription,
    Transport,
    UnknownObject,
    clear_default_client,
    get_default_client,
    load_env_file,
    load_stripe_config,
)

__all__ = (
    "APIConnectionError",
    "APIError",
    "AuthenticationError",
    "Card",
    "CardDetails",
    "CardError",
    "Charge",
    "Collection",
    "ConfigError",
    "Customer",
    "DecodingError",
    "DeletedResource",
    "ErrorKind",
    "InvalidRequestError",
    "NotFoundError",
    "Plan",
    "RequestsTransport",
    "StripeClient",
    "StripeConfig",
    "StripeError",
    "StripeParameters",
    "Subscription",
    "Transport",
    "UnknownObject",
    "clear_default_client",
    "configure",
    "create_client",
    "get_default_client",
    "load_env_file",
    "load_stripe_config",
)
