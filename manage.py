#!/usr/bin/env python3
"""
StockLedger management CLI.

Usage:
    python manage.py migrate     Apply pending database migrations
    python manage.py status      Show applied and pending migrations
    python manage.py verify      Run schema and inventory integrity checks
    python manage.py reconcile   Compare the movement ledger with on-hand stock
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from stockledger.application import get_stock_movement_service
from stockledger.config import configure_logging
from stockledger.infrastructure.storage.sqlite import close_pool
from stockledger.infrastructure.storage.sqlite.migrations import (
    get_migration_status,
    initialize_database,
    verify_schema_integrity,
)


def _db_path(args: argparse.Namespace) -> Path | None:
    return Path(args.db_path) if args.db_path else None


def cmd_migrate(args: argparse.Namespace) -> None:
    """Apply all pending migrations."""
    results = asyncio.run(
        initialize_database(_db_path(args), create_backup_before=not args.no_backup)
    )
    if not results:
        print("Database is up to date.")
        return

    for result in results:
        state = "ok" if result.success else f"FAILED ({result.error})"
        print(f"  v{result.version} {result.name}: {state} [{result.execution_time_ms} ms]")

    if not all(r.success for r in results):
        sys.exit(1)


def cmd_status(args: argparse.Namespace) -> None:
    """Print migration status."""
    status = asyncio.run(get_migration_status(_db_path(args)))
    if not status["exists"]:
        print("Database does not exist yet. Run 'migrate' first.")
    else:
        print(f"Current version: {status['current_version']}")
    print(f"Applied: {', '.join(status['applied_migrations']) or '-'}")
    print(f"Pending: {', '.join(status['pending_migrations']) or '-'}")


def cmd_verify(args: argparse.Namespace) -> None:
    """Run integrity checks and exit non-zero if any fail."""
    checks = asyncio.run(verify_schema_integrity(_db_path(args)))
    failed = False
    for check in checks:
        print(f"  {check['check']}: {check['status']}")
        failed = failed or check["status"] != "PASS"
    if failed:
        sys.exit(1)


async def _reconcile(product_id: int, warehouse_id: int) -> dict:
    try:
        report = await get_stock_movement_service().reconcile(product_id, warehouse_id)
        return report.to_dict()
    finally:
        await close_pool()


def cmd_reconcile(args: argparse.Namespace) -> None:
    """Print a reconciliation report as JSON."""
    report = asyncio.run(_reconcile(args.product, args.warehouse))
    print(json.dumps(report, indent=2))
    if not report["is_consistent"]:
        sys.exit(1)


def main() -> None:
    configure_logging()

    parser = argparse.ArgumentParser(
        description="StockLedger management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # migrate
    p_migrate = sub.add_parser("migrate", help="Apply pending migrations")
    p_migrate.add_argument("--db-path", help="Database file (default: from settings)")
    p_migrate.add_argument("--no-backup", action="store_true", help="Skip the pre-migration backup")
    p_migrate.set_defaults(func=cmd_migrate)

    # status
    p_status = sub.add_parser("status", help="Show migration status")
    p_status.add_argument("--db-path", help="Database file (default: from settings)")
    p_status.set_defaults(func=cmd_status)

    # verify
    p_verify = sub.add_parser("verify", help="Run integrity checks")
    p_verify.add_argument("--db-path", help="Database file (default: from settings)")
    p_verify.set_defaults(func=cmd_verify)

    # reconcile
    p_reconcile = sub.add_parser("reconcile", help="Reconcile ledger against on-hand")
    p_reconcile.add_argument("--product", type=int, required=True, help="Product id")
    p_reconcile.add_argument("--warehouse", type=int, required=True, help="Warehouse id")
    p_reconcile.set_defaults(func=cmd_reconcile)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
