#!/usr/bin/env python3
"""
POS sync agent management CLI.

Usage:
    python manage.py serve         Start the API server
    python manage.py migrate       Apply database migrations
    python manage.py status        Show connectivity and queue state
    python manage.py sync          Drain the queue and refresh cached state
    python manage.py dead-letters  List operations that failed permanently
    python manage.py clear-errors  Purge dead-lettered operations
    python manage.py retry ID      Requeue one dead-lettered operation
"""

import argparse
import asyncio
import sys
from collections.abc import Awaitable, Callable

from possync.application.services import SyncServices, build_services
from possync.config import configure_logging, get_settings
from possync.core.exceptions import PosSyncError


async def _with_services(
    action: Callable[[SyncServices], Awaitable[None]],
) -> None:
    """Run one action against a started container, without the background monitor."""
    services = build_services()
    await services.start(monitor=False)
    try:
        await action(services)
    finally:
        await services.stop()


def _run(action: Callable[[SyncServices], Awaitable[None]]) -> None:
    configure_logging(json=False)
    try:
        asyncio.run(_with_services(action))
    except PosSyncError as e:
        print(f"Error [{e.code}]: {e.message}")
        sys.exit(1)


def cmd_serve(args: argparse.Namespace) -> None:
    """Start the API server."""
    import uvicorn

    settings = get_settings()
    host = args.host or settings.api.host
    port = args.port or settings.api.port

    print(f"Starting POS sync agent on {host}:{port}...")
    uvicorn.run(
        "possync.api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=args.reload,
    )


def cmd_migrate(args: argparse.Namespace) -> None:
    """Apply pending migrations."""
    from possync.infrastructure.storage.sqlite.migrations import (
        get_migration_status,
        initialize_database,
    )

    configure_logging(json=False)
    db_path = get_settings().storage.db_path

    async def migrate() -> None:
        results = await initialize_database(db_path, create_backup_before=not args.no_backup)
        failed = [r for r in results if not r.success]
        if failed:
            print(f"Migration {failed[0].version} failed: {failed[0].error}")
            sys.exit(1)
        if results:
            print(f"Applied: {', '.join(f'{r.version}_{r.name}' for r in results)}")
        else:
            print("Database is up to date.")
        status = await get_migration_status(db_path)
        print(f"Schema version: {status['current_version']} ({db_path})")

    asyncio.run(migrate())


def cmd_status(args: argparse.Namespace) -> None:
    """Show connectivity and queue state."""

    async def status(services: SyncServices) -> None:
        current = await services.coordinator.get_status()
        print(f"Terminal:     {services.settings.terminal_id}")
        print(f"Remote:       {services.settings.remote.base_url}")
        print(f"Online:       {'yes' if current.is_online else 'no'}")
        if current.forced_offline:
            print("              (forced offline)")
        print(f"Pending:      {current.pending_count}")
        print(f"Dead letters: {current.error_count}")
        last = current.last_sync_at.isoformat() if current.last_sync_at else "never"
        print(f"Last sync:    {last}")

    _run(status)


def cmd_sync(args: argparse.Namespace) -> None:
    """Drain the queue and refresh every cached scope."""

    async def sync(services: SyncServices) -> None:
        report = await services.coordinator.force_sync()
        drain = report.drain
        if drain.skipped:
            print(f"Drain skipped: {drain.reason}")
        else:
            print(
                f"Synced {drain.succeeded}, dead-lettered {drain.dead_lettered}, "
                f"{drain.remaining} remaining."
            )
            if drain.retry_in is not None:
                print(f"Remote unavailable, next retry in {drain.retry_in:.0f}s.")
        if report.refreshed_scopes or report.failed_scopes:
            print(
                f"Refreshed {len(report.refreshed_scopes)} cached scope(s), "
                f"{len(report.failed_scopes)} failed."
            )

    _run(sync)


def cmd_dead_letters(args: argparse.Namespace) -> None:
    """List dead-lettered operations."""

    async def dead_letters(services: SyncServices) -> None:
        operations = services.queue.dead_letters()
        if not operations:
            print("No dead-lettered operations.")
            return
        for op in operations:
            print(
                f"{op.id}  {op.kind.value} {op.entity_kind.value}  "
                f"attempts={op.attempt_count}  {op.last_error or ''}"
            )

    _run(dead_letters)


def cmd_clear_errors(args: argparse.Namespace) -> None:
    """Purge dead-lettered operations."""

    async def clear(services: SyncServices) -> None:
        cleared = await services.coordinator.clear_errors()
        print(f"Cleared {cleared} dead-lettered operation(s).")

    _run(clear)


def cmd_retry(args: argparse.Namespace) -> None:
    """Requeue a dead-lettered operation."""

    async def retry(services: SyncServices) -> None:
        op = await services.coordinator.retry_dead_letter(args.op_id)
        print(f"Requeued {op.id}.")

    _run(retry)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="POS sync agent management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # serve
    p_serve = sub.add_parser("serve", help="Start the API server")
    p_serve.add_argument("--host", default=None, help="Bind host (default: from settings)")
    p_serve.add_argument(
        "--port", type=int, default=None, help="Bind port (default: from settings)"
    )
    p_serve.add_argument("--reload", action="store_true", help="Reload on code changes")
    p_serve.set_defaults(func=cmd_serve)

    # migrate
    p_migrate = sub.add_parser("migrate", help="Apply database migrations")
    p_migrate.add_argument("--no-backup", action="store_true", help="Skip the pre-migration backup")
    p_migrate.set_defaults(func=cmd_migrate)

    # status
    p_status = sub.add_parser("status", help="Show connectivity and queue state")
    p_status.set_defaults(func=cmd_status)

    # sync
    p_sync = sub.add_parser("sync", help="Drain the queue and refresh cached state")
    p_sync.set_defaults(func=cmd_sync)

    # dead-letters
    p_dead = sub.add_parser("dead-letters", help="List dead-lettered operations")
    p_dead.set_defaults(func=cmd_dead_letters)

    # clear-errors
    p_clear = sub.add_parser("clear-errors", help="Purge dead-lettered operations")
    p_clear.set_defaults(func=cmd_clear_errors)

    # retry
    p_retry = sub.add_parser("retry", help="Requeue a dead-lettered operation")
    p_retry.add_argument("op_id", help="Operation id")
    p_retry.set_defaults(func=cmd_retry)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
