#!/usr/bin/env python
"""FixedFloat command line: quotes, orders and rate exports.

Usage:
    python scripts/ff.py currencies
    python scripts/ff.py price BTC ETH 0.5 [--direction to] [--type fixed]
    python scripts/ff.py create BTC ETH <to_address> 0.5 [--extra-id TAG] [--refund-address ADDR]
    python scripts/ff.py order <id> <token>
    python scripts/ff.py emergency <id> <token> EXCHANGE|REFUND [--address ADDR]
    python scripts/ff.py email <id> <token> <email>
    python scripts/ff.py qr <id> <token>
    python scripts/ff.py rates [--type fixed|float]

Credentials come from FF_API_KEY / FF_API_SECRET or ~/.fixedfloat_config.json
(not needed for `rates`).
"""
import argparse
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from fixedfloat.api import DIRECTIONS, EMERGENCY_CHOICES, RATE_TYPES
from fixedfloat.client import FixedFloatClient
from fixedfloat.config import ClientConfig
from fixedfloat.errors import FixedFloatError
from fixedfloat.logging_setup import setup_logging
from fixedfloat.order import CurrencyLeg
from fixedfloat.secrets import FixedFloatCredentials, load_credentials


def print_json(data):
    print(json.dumps(data, indent=2, ensure_ascii=False))


def print_order(order):
    snap = order.snapshot
    print(f"Order {snap.id} [{snap.status}]")
    src, dst = order.from_leg, order.to_leg
    if isinstance(src, CurrencyLeg) and isinstance(dst, CurrencyLeg):
        print(f"  {src.amount} {src.ccy} -> {dst.amount} {dst.ccy}")
    if snap.address:
        print(f"  Deposit address: {snap.address}")
    if snap.to_address:
        print(f"  Receive address: {snap.to_address}")
    print(f"  Token: {snap.token}")


def build_parser():
    parser = argparse.ArgumentParser(description="FixedFloat exchange CLI")
    parser.add_argument("--config", help="Path to YAML config file")
    parser.add_argument("--credentials", help="Path to JSON credentials file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log requests to stderr")

    sub = parser.add_subparsers(dest="cmd")

    sub.add_parser("currencies")

    price = sub.add_parser("price")
    price.add_argument("from_ccy")
    price.add_argument("to_ccy")
    price.add_argument("amount")
    price.add_argument("--direction", choices=DIRECTIONS, default="from")
    price.add_argument("--type", dest="order_type", choices=RATE_TYPES, default="float")

    create = sub.add_parser("create")
    create.add_argument("from_ccy")
    create.add_argument("to_ccy")
    create.add_argument("to_address")
    create.add_argument("amount")
    create.add_argument("--direction", choices=DIRECTIONS, default="from")
    create.add_argument("--type", dest="order_type", choices=RATE_TYPES, default="float")
    create.add_argument("--extra-id")
    create.add_argument("--refund-address")
    create.add_argument("--refund-extra-id")

    order = sub.add_parser("order")
    order.add_argument("order_id")
    order.add_argument("token")
    order.add_argument("--json", action="store_true", help="Print raw order data")

    emergency = sub.add_parser("emergency")
    emergency.add_argument("order_id")
    emergency.add_argument("token")
    emergency.add_argument("choice", choices=EMERGENCY_CHOICES)
    emergency.add_argument("--address")

    email = sub.add_parser("email")
    email.add_argument("order_id")
    email.add_argument("token")
    email.add_argument("email")

    qr = sub.add_parser("qr")
    qr.add_argument("order_id")
    qr.add_argument("token")

    rates = sub.add_parser("rates")
    rates.add_argument("--type", dest="rate_type", choices=RATE_TYPES, default="float")

    return parser


def run(client, args):
    if args.cmd == "currencies":
        print_json(client.get_currencies())
    elif args.cmd == "price":
        print_json(client.get_price(args.from_ccy, args.to_ccy, args.amount, args.direction, args.order_type))
    elif args.cmd == "create":
        order = client.create_order(
            args.from_ccy, args.to_ccy, args.to_address, args.amount, args.direction, args.order_type,
            extra_id=args.extra_id, refund_address=args.refund_address, refund_extra_id=args.refund_extra_id,
        )
        print_order(order)
    elif args.cmd == "order":
        order = client.get_order(args.order_id, args.token)
        if args.json:
            print_json(order.to_dict())
        else:
            print_order(order)
    elif args.cmd == "emergency":
        print_json(client.set_emergency(args.order_id, args.token, args.choice, args.address))
    elif args.cmd == "email":
        print_json(client.set_email_notification(args.order_id, args.token, args.email))
    elif args.cmd == "qr":
        for code in client.get_qr_codes(args.order_id, args.token):
            marker = "*" if code.get("checked") else " "
            print(f"[{marker}] {code.get('title')}: {code.get('src', '')[:60]}...")
    elif args.cmd == "rates":
        print(client.get_rates_xml(args.rate_type))


def main():
    parser = build_parser()
    args = parser.parse_args()

    if not args.cmd:
        parser.print_help()
        return

    config = ClientConfig.from_yaml(args.config) if args.config else ClientConfig()
    if args.verbose:
        setup_logging(log_file=None, level="DEBUG", enable_console=True)

    try:
        if args.cmd == "rates":
            # public export: placeholder credentials, nothing is signed
            creds = FixedFloatCredentials(api_key="public", api_secret="public")
        else:
            creds = load_credentials(args.credentials)

        with FixedFloatClient.from_config(config, creds) as client:
            run(client, args)
    except FixedFloatError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
