"""
Fetch one account's transactions from the bank and print them as JSON.

Meant to be run once per account per sync cycle by cron or a scheduler:

    python -m app.cli --account-id 42 --from-date 2024-01-01

Authorization and jws tokens default to BANK_AUTHORIZATION / BANK_JWS.
"""
import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Optional

from pydantic import ValidationError

from app.logging_setup import configure_logging
from app.services.bank_service import fetch_transactions
from app.services.errors import TransactionFetchError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fetch an account's transactions back to a cutoff date")
    parser.add_argument("--account-id", type=int, required=True, help="Bank account id")
    parser.add_argument("--from-date", required=True, help="Cutoff date, e.g. 2024-01-01")
    parser.add_argument(
        "--authorization",
        default=os.getenv("BANK_AUTHORIZATION"),
        help="Authorization header value (default: $BANK_AUTHORIZATION)",
    )
    parser.add_argument("--jws", default=os.getenv("BANK_JWS"), help="jws token, if the bank issued one (default: $BANK_JWS)")
    parser.add_argument("--page", type=int, default=1, help="First page to fetch (default: 1)")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.authorization:
        parser.error("--authorization is required (or set BANK_AUTHORIZATION)")

    configure_logging()
    logger.info("cli_fetch_started", extra={"account_id": args.account_id, "from_date": args.from_date, "page": args.page})

    try:
        transactions = asyncio.run(
            fetch_transactions(args.from_date, args.authorization, args.jws, args.account_id, page=args.page)
        )
    except ValidationError as e:
        parser.error(f"invalid arguments: {e}")
    except TransactionFetchError as e:
        logger.error("cli_fetch_failed", extra={"account_id": args.account_id, **e.to_dict()})
        return 1

    json.dump(transactions, sys.stdout, indent=2)
    sys.stdout.write("\n")
    logger.info("cli_fetch_done", extra={"account_id": args.account_id, "count": len(transactions)})
    return 0


if __name__ == "__main__":
    sys.exit(main())
