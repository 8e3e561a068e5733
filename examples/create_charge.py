"""
Minimal script that uses the public API to create (and optionally refund) a charge.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Iterable, Tuple

from stripe_lite import (
    CardDetails,
    CardError,
    Charge,
    ConfigError,
    StripeError,
    create_client,
)


def _override(value: str) -> Tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError("Overrides must look like KEY=VALUE")
    key, val = value.split("=", 1)
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError("Override key must not be empty")
    return key, val


def _build_overrides(pairs: Iterable[Tuple[str, str]]) -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, value in pairs:
        overrides[key] = value
    return overrides


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a test charge using the SDK API")
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing STRIPE_* settings",
    )
    parser.add_argument(
        "--set",
        action="append",
        type=_override,
        metavar="KEY=VALUE",
        default=None,
        help="Override an environment variable without editing the .env file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )
    parser.add_argument("--api-key", help="Secret API key (default: STRIPE_API_KEY)")
    parser.add_argument("--amount", type=int, default=100, help="Amount in cents (default: 100)")
    parser.add_argument("--currency", default="usd", help="ISO currency code (default: usd)")
    parser.add_argument(
        "--card-number",
        default="4242424242424242",
        help="Card number to charge (default: the 4242 test card)",
    )
    parser.add_argument("--exp-month", type=int, default=12)
    parser.add_argument("--exp-year", type=int, default=2030)
    parser.add_argument(
        "--refund",
        action="store_true",
        help="Refund the charge right after creating it",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )

    try:
        client = create_client(
            env_file=args.env_file,
            overrides=_build_overrides(args.set or ()),
            api_key=args.api_key,
        )
    except (ConfigError, ValueError) as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    card = CardDetails(
        number=args.card_number,
        exp_month=args.exp_month,
        exp_year=args.exp_year,
    )
    try:
        charge = Charge.create(
            amount=args.amount,
            currency=args.currency,
            card=card,
            client=client,
        )
    except CardError as exc:
        logging.error("Card rejected (field %s): %s", exc.param, exc.message)
        return 1
    except StripeError as exc:
        logging.error("Charge failed [%s]: %s", exc.kind.value, exc)
        return 1

    logging.info("Created charge %s for %d %s", charge.id, charge.amount, charge.currency)

    if not args.refund:
        return 0

    try:
        refunded = charge.refund()
    except StripeError as exc:
        logging.error("Refund failed [%s]: %s", exc.kind.value, exc)
        return 1

    logging.info("Charge %s refunded: %s", refunded.id, refunded.refunded)
    return 0


if __name__ == "__main__":
    sys.exit(main())
