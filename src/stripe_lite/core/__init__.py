"""
Core primitives: configuration, transport, decoding and the resource model.
"""

from .client import StripeClient
from .collection import Collection
from .config import (
    ConfigError,
    StripeConfig,
    StripeParameters,
    load_env_file,
    load_stripe_config,
    read_env_file,
)
from .decoder import decode, decode_as, decode_list
from .defaults import (
    clear_default_client,
    get_default_client,
    resolve_client,
    set_default_client,
)
from .errors import (
    APIConnectionError,
    APIError,
    AuthenticationError,
    CardError,
    DecodingError,
    ErrorKind,
    InvalidRequestError,
    NotFoundError,
    StripeError,
    classify_error,
)
from .resources import (
    APIResource,
    Card,
    CardDetails,
    Charge,
    Customer,
    DeletedResource,
    Plan,
    Subscription,
    UnknownObject,
)
from .transport import RequestsTransport, Transport, encode_params

__all__ = [
    "APIConnectionError",
    "APIError",
    "APIResource",
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
    "classify_error",
    "clear_default_client",
    "decode",
    "decode_as",
    "decode_list",
    "encode_params",
    "get_default_client",
    "load_env_file",
    "load_stripe_config",
    "read_env_file",
    "resolve_client",
    "set_default_client",
]
