"""Payroll hold command line interface.

Usage:
    python -m payroll_hold.cli init-db
    python -m payroll_hold.cli serve --port 8000
    python -m payroll_hold.cli snapshot --employee-id X [--as-of 2024-05-01]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import date
from typing import Callable
from uuid import UUID

import uvicorn

from payroll_hold.config import get_settings
from payroll_hold.database import create_schema, dispose_engine, get_session, init_engine
from payroll_hold.errors import NotFound
from payroll_hold.logging_config import configure_logging
from payroll_hold.services import CallerContext, WithdrawalService

# Local operator identity for read-only admin commands
OPERATOR = CallerContext.admin(UUID(int=0))


def parse_uuid(s: str) -> UUID:
    """Parse UUID string."""
    return UUID(s)


class PayrollHoldCli:
    """Operational commands for the payroll hold service."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="payroll-hold",
            description="Payroll hold operational tools",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        subparsers.add_parser(
            "init-db",
            help="Create database tables for DATABASE_URL",
        )

        serve = subparsers.add_parser(
            "serve",
            help="Run the HTTP API with uvicorn",
        )
        serve.add_argument("--host", type=str, help="Bind address (default: HOST)")
        serve.add_argument("--port", type=int, help="Bind port (default: PORT)")
        serve.add_argument(
            "--reload",
            action="store_true",
            help="Reload on code changes",
        )

        snapshot = subparsers.add_parser(
            "snapshot",
            help="Print an employee's hold account view as JSON",
        )
        snapshot.add_argument(
            "--employee-id",
            type=parse_uuid,
            required=True,
            help="Employee ID",
        )
        snapshot.add_argument(
            "--as-of",
            type=date.fromisoformat,
            help="Evaluation date (ISO format, default: today)",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        configure_logging(get_settings())

        handlers: dict[str, Callable[[argparse.Namespace], int]] = {
            "init-db": self._cmd_init_db,
            "serve": self._cmd_serve,
            "snapshot": self._cmd_snapshot,
        }

        handler = handlers.get(parsed.command)
        if handler:
            return handler(parsed)

        print(f"Unknown command: {parsed.command}", file=sys.stderr)
        return 1

    def _cmd_init_db(self, args: argparse.Namespace) -> int:
        """Create all tables."""

        async def _init() -> None:
            engine, _ = init_engine()
            try:
                await create_schema(engine)
            finally:
                await dispose_engine()

        asyncio.run(_init())
        print(f"Schema created for {get_settings().database_url}")
        return 0

    def _cmd_serve(self, args: argparse.Namespace) -> int:
        """Run the API server."""
        settings = get_settings()
        uvicorn.run(
            "payroll_hold.api.app:create_app",
            factory=True,
            host=args.host or settings.host,
            port=args.port or settings.port,
            reload=args.reload or settings.debug,
        )
        return 0

    def _cmd_snapshot(self, args: argparse.Namespace) -> int:
        """Print the hold account view."""

        async def _snapshot() -> dict[str, str | None]:
            try:
                async with get_session() as session:
                    view = await WithdrawalService(session).snapshot(
                        OPERATOR, args.employee_id, args.as_of
                    )
            finally:
                await dispose_engine()
            return {
                "employee_id": str(view.employee_id),
                "as_of": view.as_of.isoformat(),
                "total_accrued": str(view.total_accrued),
                "matured": str(view.matured),
                "lifetime_withdrawn": str(view.lifetime_withdrawn),
                "pending_amount": str(view.pending_amount),
                "hold_balance": str(view.hold_balance),
                "withdrawable": str(view.withdrawable),
                "next_maturity_date": (
                    view.next_maturity_date.isoformat() if view.next_maturity_date else None
                ),
            }

        try:
            result = asyncio.run(_snapshot())
        except NotFound as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1

        print(json.dumps(result, indent=2))
        return 0


def main() -> int:
    """CLI entry point."""
    cli = PayrollHoldCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
