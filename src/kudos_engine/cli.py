"""Kudos engine command line interface.

Provides operational tools for:
- Schema creation
- Demo data seeding
- Quota period reset
- Balance queries

Usage:
    python -m kudos_engine.cli init-db
    python -m kudos_engine.cli seed
    python -m kudos_engine.cli reset-quotas [--role Staff]
    python -m kudos_engine.cli balance --code E0001
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any, Callable

from kudos_engine.config import configure_logging
from kudos_engine.database import create_tables, dispose_engine, get_session
from kudos_engine.models.enums import EmployeeRole
from kudos_engine.services.catalog_service import CatalogService
from kudos_engine.services.employee_service import EmployeeService
from kudos_engine.services.errors import KudosError
from kudos_engine.services.ledger_service import LedgerService
from kudos_engine.services.level_service import level_for_points
from kudos_engine.services.quota_service import QuotaService

SYSTEM_ACTOR = "cli"

SEED_CATEGORIES: list[dict[str, Any]] = [
    {"name": "Teamwork", "description": "Collaboration and team spirit", "color": "#3B82F6"},
    {"name": "Innovation", "description": "Creative ideas and solutions", "color": "#8B5CF6"},
    {"name": "Customer Service", "description": "Outstanding customer care", "color": "#10B981"},
    {"name": "Integrity", "description": "Honesty and ethical behavior", "color": "#F59E0B"},
    {"name": "Leadership", "description": "Guiding and inspiring others", "color": "#EF4444"},
    {"name": "Hard Work", "description": "Dedication and perseverance", "color": "#06B6D4"},
]

SEED_EMPLOYEES: list[dict[str, Any]] = [
    {"employee_code": "E0001", "fullname": "John Smith", "position": "Manager",
     "business_unit": "HQ", "department": "Operations", "branch": "Central", "role": "Admin"},
    {"employee_code": "E0002", "fullname": "Jane Doe", "position": "Supervisor",
     "business_unit": "Site", "department": "Marketing", "branch": "Central",
     "role": "MiddleManagement"},
    {"employee_code": "E0003", "fullname": "Bob Wilson", "position": "Staff",
     "business_unit": "Site", "department": "Operations", "branch": "Central", "role": "Staff"},
    {"employee_code": "E0004", "fullname": "Alice Brown", "position": "Staff",
     "business_unit": "Site", "department": "Marketing", "branch": "North", "role": "Staff"},
    {"employee_code": "E0005", "fullname": "Charlie Davis", "position": "Executive",
     "business_unit": "HQ", "department": "Executive", "branch": "Central", "role": "Executive"},
]

SEED_REWARDS: list[dict[str, Any]] = [
    {"name": "Noise-cancelling Headphones", "category": "Electronics", "points_cost": 5000,
     "stock": 5, "is_physical": True, "min_level_required": "OUTSTANDING"},
    {"name": "Coffee Gift Card", "category": "Vouchers", "points_cost": 500,
     "stock": 50, "is_physical": False},
    {"name": "Wireless Earbuds", "category": "Electronics", "points_cost": 3500,
     "stock": 10, "is_physical": True},
    {"name": "Streaming Subscription (3 months)", "category": "Vouchers", "points_cost": 800,
     "stock": 30, "is_physical": False},
    {"name": "Company Merchandise Bag", "category": "Merchandise", "points_cost": 200,
     "stock": 100, "is_physical": True},
]


class KudosCli:
    """Kudos engine command line interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="python -m kudos_engine.cli",
            description="Kudos engine operational tools",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        subparsers.add_parser("init-db", help="Create database tables")
        subparsers.add_parser("seed", help="Load categories, demo employees and rewards")

        reset = subparsers.add_parser(
            "reset-quotas",
            help="Start a new period: reset giving quotas to role allowances",
        )
        reset.add_argument(
            "--role",
            choices=[r.value for r in EmployeeRole],
            help="Only reset this role (default: all roles)",
        )

        balance = subparsers.add_parser("balance", help="Show an employee's points")
        balance.add_argument(
            "--code",
            required=True,
            help="Employee code",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        handlers: dict[str, Callable[[argparse.Namespace], Any]] = {
            "init-db": self._cmd_init_db,
            "seed": self._cmd_seed,
            "reset-quotas": self._cmd_reset_quotas,
            "balance": self._cmd_balance,
        }

        handler = handlers.get(parsed.command)
        if handler is None:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1

        try:
            return asyncio.run(self._run_async(handler, parsed))
        except KudosError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1

    async def _run_async(self, handler: Callable[[argparse.Namespace], Any], args) -> int:
        try:
            return await handler(args)
        finally:
            await dispose_engine()

    async def _cmd_init_db(self, args: argparse.Namespace) -> int:
        """Create all tables."""
        await create_tables()
        print("Tables created.")
        return 0

    async def _cmd_seed(self, args: argparse.Namespace) -> int:
        """Load reference and demo data; existing rows are left alone."""
        async with get_session() as session:
            quotas = QuotaService(session)
            for role in EmployeeRole:
                await quotas.get_allowance(role)

            catalog = CatalogService(session)
            existing = {c.name for c in await catalog.list_categories(include_inactive=True)}
            for category in SEED_CATEGORIES:
                if category["name"] not in existing:
                    await catalog.create_category(**category, actor_id=SYSTEM_ACTOR)

            result = await EmployeeService(session).import_rows(
                SEED_EMPLOYEES, actor_id=SYSTEM_ACTOR
            )

            _, total = await catalog.list_rewards(limit=1)
            if total == 0:
                for reward in SEED_REWARDS:
                    await catalog.create_reward(**reward, actor_id=SYSTEM_ACTOR)

        print(f"Categories: {len(SEED_CATEGORIES)} ensured")
        print(f"Employees:  {len(result.created)} created, {len(result.skipped)} skipped")
        print(f"Rewards:    {'created' if total == 0 else 'already present'}")
        return 0

    async def _cmd_reset_quotas(self, args: argparse.Namespace) -> int:
        """Reset quotas for a new period."""
        async with get_session() as session:
            count = await QuotaService(session).reset_period(SYSTEM_ACTOR, args.role)
        print(f"Reset quota for {count} employee(s) ({args.role or 'all roles'}).")
        return 0

    async def _cmd_balance(self, args: argparse.Namespace) -> int:
        """Print an employee's counters and level."""
        async with get_session() as session:
            employee = await EmployeeService(session).lookup(args.code)
            received = await LedgerService(session).lifetime_points_received(employee.employee_id)

        level = level_for_points(received)
        print(f"Employee:        {employee.employee_code} {employee.fullname}")
        print(f"Role:            {employee.role} ({employee.status})")
        print(f"Quota remaining: {employee.quota_remaining}")
        print(f"Points balance:  {employee.points_balance}")
        print(f"Level:           {level.name} ({received} pts received)")
        return 0


def main() -> int:
    """CLI entry point."""
    configure_logging()
    cli = KudosCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
