"""Command-line access to the counterfactual bill pipeline.

Run from the repository root::

    python -m api.cli create-account --utility-account-id ua_123
    python -m api.cli statements --utility-account-id ua_123
    python -m api.cli calculate --utility-statement-id us_456 [--billing-account-id ...]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from typing import Optional, Sequence

from api.deps import open_service

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
log = logging.getLogger("api.cli")


def _print_json(value) -> None:
    print(json.dumps(value, indent=2, default=str))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Estimate what a utility statement would have cost without solar."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create-account", help="Create or update the billing account for a utility account")
    create.add_argument("--utility-account-id", required=True)

    statements = sub.add_parser("statements", help="List the most recent utility statements")
    statements.add_argument("--utility-account-id", required=True)

    calculate = sub.add_parser("calculate", help="Run the counterfactual calculation for a statement")
    calculate.add_argument("--utility-statement-id", required=True)
    calculate.add_argument("--billing-account-id", default=None)

    return parser


def run(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    with open_service() as service:
        if args.command == "create-account":
            _print_json(asdict(service.create_billing_account(args.utility_account_id)))
        elif args.command == "statements":
            _print_json([asdict(s) for s in service.list_statements(args.utility_account_id)])
        elif args.command == "calculate":
            result = service.calculate(args.utility_statement_id, args.billing_account_id)
            _print_json(asdict(result))


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    try:
        run()
    except Exception as exc:
        log.exception("Command failed: %s", exc)
        sys.exit(1)
