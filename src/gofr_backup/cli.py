"""Backup management CLI for GOFR projects.

Single entry point for creating, validating, restoring and scheduling
backups of the configured datastore.

USAGE:
    Backups:
      gofr-backup create <full|incremental|differential>
      gofr-backup list [--type TYPE] [--status STATUS] [--limit N]
      gofr-backup show <backup-id>
      gofr-backup validate <backup-id>
      gofr-backup restore <backup-id>
      gofr-backup delete <backup-id>
      gofr-backup cleanup
      gofr-backup stats

    Schedules:
      gofr-backup schedules list [--active-only]
      gofr-backup schedules add <name> <type> "<cron>" [--retention-days N] [--inactive]
      gofr-backup schedules update <schedule-id> [--name N] [--type T] [--cron C] [--retention-days N]
      gofr-backup schedules activate|deactivate|delete|run <schedule-id>

    Service:
      gofr-backup run        Start the scheduler and block until SIGINT/SIGTERM

ENVIRONMENT VARIABLES:
    GOFR_BACKUP_DATABASE_URL   Datastore URL (falls back to DATABASE_URL)
    GOFR_BACKUP_ARTIFACT_DIR   Artifact directory (default: /backups)
    GOFR_BACKUP_LEDGER_BACKEND Ledger backend: memory, file (default: file)
    GOFR_BACKUP_LEDGER_PATH    JSON ledger file (default: <artifact dir>/ledger.json)

    Global options go before the command:
      gofr-backup --format json list --type full
"""

import argparse
import json
import logging
import signal
import sys
import threading
from datetime import datetime
from typing import Any, List, Optional

from gofr_backup.config import BackupSettings
from gofr_backup.engine import BackupEngine
from gofr_backup.exceptions import GofrBackupError
from gofr_backup.logger import create_logger
from gofr_backup.models import BackupFilter

BACKUP_TYPES = ["full", "incremental", "differential"]
BACKUP_STATUSES = ["pending", "in_progress", "completed", "failed"]


def build_engine(env_file: Optional[str] = None, verbose: bool = False) -> BackupEngine:
    """Create an engine from the environment (quiet logging unless verbose)"""
    settings = BackupSettings.from_env(env_file=env_file)
    logger = create_logger(
        name="gofr-backup",
        level=logging.DEBUG if verbose else logging.WARNING,
    )
    return BackupEngine.from_settings(settings, logger=logger)


def format_size(size: Optional[int]) -> str:
    """Human-readable byte count"""
    if size is None:
        return "-"
    value = float(size)
    for unit in ["B", "KB", "MB", "GB"]:
        if value < 1024 or unit == "GB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def format_time(moment: Optional[datetime]) -> str:
    return moment.strftime("%Y-%m-%d %H:%M:%S") if moment else "-"


def print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


# ============================================================================
# Backup commands
# ============================================================================


def cmd_create(engine: BackupEngine, backup_type: str, format: str = "table") -> int:
    result = engine.create_backup(backup_type)
    if format == "json":
        print_json(result.to_dict())
        return 0
    print(f"Created {result.type.value} backup: {result.id}")
    print(f"  File: {result.file_path}")
    print(f"  Size: {format_size(result.size)}")
    print(f"  Duration: {result.duration_ms} ms")
    print(f"  Checksum: {result.checksum}")
    return 0


def cmd_list(
    engine: BackupEngine,
    backup_type: Optional[str] = None,
    status: Optional[str] = None,
    limit: Optional[int] = None,
    format: str = "table",
) -> int:
    backups = engine.list_backups(BackupFilter(type=backup_type, status=status, limit=limit))

    if format == "json":
        print_json([b.to_dict() for b in backups])
        return 0

    if not backups:
        print("No backups found")
        return 0

    print(f"\n{'ID':<38} {'Type':<13} {'Status':<12} {'Size':<10} {'Created':<20}")
    print("-" * 95)
    for b in backups:
        print(
            f"{b.id:<38} {b.type.value:<13} {b.status.value:<12} "
            f"{format_size(b.file_size):<10} {format_time(b.created_at):<20}"
        )
    print(f"\nTotal: {len(backups)} backups")
    return 0


def cmd_show(engine: BackupEngine, backup_id: str, format: str = "table") -> int:
    info = engine.get_backup(backup_id)
    if format == "json":
        print_json(info.to_dict())
        return 0
    print(f"ID: {info.id}")
    print(f"Type: {info.type.value}")
    print(f"Status: {info.status.value}")
    print(f"File: {info.file_path}")
    print(f"Size: {format_size(info.file_size)}")
    print(f"Checksum: {info.checksum or '-'}")
    print(f"Created: {format_time(info.created_at)}")
    print(f"Completed: {format_time(info.completed_at)}")
    if info.error_message:
        print(f"Error: {info.error_message}")
    return 0


def cmd_validate(engine: BackupEngine, backup_id: str, format: str = "table") -> int:
    result = engine.validate_backup(backup_id)
    if format == "json":
        print_json(result.to_dict())
    elif result.is_valid:
        print(f"Backup {backup_id} is VALID")
        print(f"  Size: {format_size(result.file_size)}")
        print(f"  Checksum: {result.checksum}")
    else:
        print(f"Backup {backup_id} is INVALID - {result.error_message}")
    return 0 if result.is_valid else 1


def cmd_restore(engine: BackupEngine, backup_id: str, format: str = "table") -> int:
    result = engine.restore_from_backup(backup_id)
    if format == "json":
        print_json(result.to_dict())
        return 0
    print(f"Restored backup {backup_id} in {result.duration_ms} ms")
    print(f"  Restore log: {result.id}")
    print(f"  Objects restored: {len(result.restored_objects)}")
    for name in result.restored_objects:
        print(f"    {name}")
    return 0


def cmd_delete(engine: BackupEngine, backup_id: str) -> int:
    if not engine.delete_backup(backup_id):
        print(f"ERROR: Backup '{backup_id}' not found", file=sys.stderr)
        return 1
    print(f"Backup '{backup_id}' has been deleted")
    return 0


def cmd_cleanup(engine: BackupEngine, format: str = "table") -> int:
    removed = engine.cleanup_old_backups()
    if format == "json":
        print_json({"removed": removed})
    else:
        print(f"Removed {removed} expired backups")
    return 0


def cmd_stats(engine: BackupEngine, format: str = "table") -> int:
    stats = engine.get_backup_statistics()
    if format == "json":
        print_json({t.value: s.to_dict() for t, s in stats.items()})
        return 0

    if not stats:
        print("No backups found")
        return 0

    print(f"\n{'Type':<13} {'Total':>6} {'OK':>6} {'Failed':>7} {'Avg ms':>10} {'Size':>10}  {'Last success':<20}")
    print("-" * 80)
    for backup_type, s in sorted(stats.items(), key=lambda item: item[0].value):
        avg = f"{s.avg_duration_ms:.0f}" if s.avg_duration_ms is not None else "-"
        print(
            f"{backup_type.value:<13} {s.total_backups:>6} {s.successful_backups:>6} {s.failed_backups:>7} "
            f"{avg:>10} {format_size(s.total_size_bytes):>10}  {format_time(s.last_successful_backup):<20}"
        )
    return 0


# ============================================================================
# Schedule commands
# ============================================================================


def print_schedule(schedule, format: str = "table") -> None:
    if format == "json":
        print_json(schedule.to_dict())
        return
    state = "active" if schedule.is_active else "inactive"
    print(f"Schedule '{schedule.name}' ({state})")
    print(f"  ID: {schedule.id}")
    print(f"  Type: {schedule.type.value}")
    print(f"  Cron: {schedule.cron_expression}")
    print(f"  Retention: {schedule.retention_days} days")
    print(f"  Next run: {format_time(schedule.next_run_at)}")


def cmd_schedules_list(engine: BackupEngine, active_only: bool = False, format: str = "table") -> int:
    schedules = engine.list_schedules(active_only=active_only)

    if format == "json":
        print_json([s.to_dict() for s in schedules])
        return 0

    if not schedules:
        print("No schedules found")
        return 0

    print(f"\n{'Name':<22} {'ID':<38} {'Type':<13} {'Cron':<16} {'Active':<7} {'Last run':<20}")
    print("-" * 120)
    for s in schedules:
        active = "yes" if s.is_active else "no"
        print(
            f"{s.name:<22} {s.id:<38} {s.type.value:<13} {s.cron_expression:<16} "
            f"{active:<7} {format_time(s.last_run_at):<20}"
        )
    print(f"\nTotal: {len(schedules)} schedules")
    return 0


def cmd_schedules_add(
    engine: BackupEngine,
    name: str,
    backup_type: str,
    cron_expression: str,
    retention_days: Optional[int] = None,
    inactive: bool = False,
    format: str = "table",
) -> int:
    schedule = engine.create_schedule(
        name,
        backup_type,
        cron_expression,
        retention_days=retention_days,
        is_active=not inactive,
    )
    print_schedule(schedule, format)
    return 0


def cmd_schedules_update(engine: BackupEngine, args: argparse.Namespace) -> int:
    changes = {
        "name": args.name,
        "backup_type": args.type,
        "cron_expression": args.cron,
        "retention_days": args.retention_days,
    }
    changes = {key: value for key, value in changes.items() if value is not None}
    if not changes:
        print("ERROR: Nothing to update", file=sys.stderr)
        return 1
    schedule = engine.update_schedule(args.schedule_id, **changes)
    print_schedule(schedule, args.format)
    return 0


def cmd_schedules_run(engine: BackupEngine, schedule_id: str, format: str = "table") -> int:
    result = engine.run_schedule_now(schedule_id)
    if format == "json":
        print_json(result.to_dict())
    else:
        print(f"Created {result.type.value} backup: {result.id}")
    return 0


def cmd_schedules_delete(engine: BackupEngine, schedule_id: str) -> int:
    if not engine.delete_schedule(schedule_id):
        print(f"ERROR: Schedule '{schedule_id}' not found", file=sys.stderr)
        return 1
    print(f"Schedule '{schedule_id}' has been deleted")
    return 0


# ============================================================================
# Service
# ============================================================================


def cmd_run(engine: BackupEngine) -> int:
    """Run the scheduler until SIGINT or SIGTERM"""
    stop = threading.Event()

    def handle_shutdown(signum, frame):
        print(f"Received signal {signum}, shutting down...", file=sys.stderr)
        stop.set()

    signal.signal(signal.SIGTERM, handle_shutdown)
    signal.signal(signal.SIGINT, handle_shutdown)

    registered = engine.start()
    print(f"Backup scheduler running with {registered} schedules. Press Ctrl+C to stop.")
    try:
        while not stop.is_set():
            stop.wait(1.0)
    finally:
        engine.shutdown()
    return 0


# ============================================================================
# Argument parsing
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gofr-backup",
        description="Backup and restore management CLI for GOFR projects",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
EXAMPLES:
  Take a full backup:
    %(prog)s create full

  List the last 10 completed backups as JSON:
    %(prog)s --format json list --status completed --limit 10

  Nightly full backup kept for 14 days:
    %(prog)s schedules add nightly full "0 2 * * *" --retention-days 14
        """,
    )

    parser.add_argument(
        "--env-file",
        help="Load settings from this .env file (OS environment still wins)",
    )
    parser.add_argument(
        "--format",
        choices=["table", "json"],
        default="table",
        help="Output format. Table for humans, JSON for scripts. Default: %(default)s",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging output for debugging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command", required=False)

    create = subparsers.add_parser("create", help="Create a backup")
    create.add_argument("type", choices=BACKUP_TYPES, help="Backup type")

    list_parser = subparsers.add_parser("list", help="List backups, newest first")
    list_parser.add_argument("--type", choices=BACKUP_TYPES, help="Filter by backup type")
    list_parser.add_argument("--status", choices=BACKUP_STATUSES, help="Filter by status")
    list_parser.add_argument("--limit", type=int, help="Maximum number of backups to show")

    for name, help_text in [
        ("show", "Show one backup"),
        ("validate", "Verify a backup's size and checksum"),
        ("restore", "Restore the datastore from a backup"),
        ("delete", "Delete a backup and its artifact"),
    ]:
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("backup_id", help="Backup ID (from 'list')")

    subparsers.add_parser("cleanup", help="Delete backups past their retention")
    subparsers.add_parser("stats", help="Per-type backup statistics")
    subparsers.add_parser("run", help="Run the scheduler in the foreground")

    # -------------------------------------------------------------------------
    # SCHEDULES subcommand
    # -------------------------------------------------------------------------
    schedules_parser = subparsers.add_parser(
        "schedules",
        help="Manage backup schedules",
        description="Create, list, and manage cron-driven backup schedules",
    )
    schedules_sub = schedules_parser.add_subparsers(dest="subcommand", help="Schedule operation", required=False)

    schedules_list = schedules_sub.add_parser("list", help="List schedules")
    schedules_list.add_argument("--active-only", action="store_true", help="Only show active schedules")

    schedules_add = schedules_sub.add_parser("add", help="Create a schedule")
    schedules_add.add_argument("name", help="Unique schedule name")
    schedules_add.add_argument("type", choices=BACKUP_TYPES, help="Backup type")
    schedules_add.add_argument("cron", help="Cron expression, 5 fields or 6 with leading seconds")
    schedules_add.add_argument("--retention-days", type=int, help="Retention for backups from this schedule")
    schedules_add.add_argument("--inactive", action="store_true", help="Store without activating")

    schedules_update = schedules_sub.add_parser("update", help="Change a schedule")
    schedules_update.add_argument("schedule_id", help="Schedule ID")
    schedules_update.add_argument("--name", help="New name")
    schedules_update.add_argument("--type", choices=BACKUP_TYPES, help="New backup type")
    schedules_update.add_argument("--cron", help="New cron expression")
    schedules_update.add_argument("--retention-days", type=int, help="New retention in days")

    for name, help_text in [
        ("activate", "Activate a schedule"),
        ("deactivate", "Deactivate a schedule"),
        ("delete", "Delete a schedule"),
        ("run", "Run a schedule's backup now"),
    ]:
        sub = schedules_sub.add_parser(name, help=help_text)
        sub.add_argument("schedule_id", help="Schedule ID (from 'schedules list')")

    parser.set_defaults(schedules_parser=schedules_parser)
    return parser


def dispatch(engine: BackupEngine, args: argparse.Namespace) -> int:
    fmt = args.format

    if args.command == "create":
        return cmd_create(engine, args.type, fmt)
    elif args.command == "list":
        return cmd_list(engine, args.type, args.status, args.limit, fmt)
    elif args.command == "show":
        return cmd_show(engine, args.backup_id, fmt)
    elif args.command == "validate":
        return cmd_validate(engine, args.backup_id, fmt)
    elif args.command == "restore":
        return cmd_restore(engine, args.backup_id, fmt)
    elif args.command == "delete":
        return cmd_delete(engine, args.backup_id)
    elif args.command == "cleanup":
        return cmd_cleanup(engine, fmt)
    elif args.command == "stats":
        return cmd_stats(engine, fmt)
    elif args.command == "run":
        return cmd_run(engine)

    elif args.command == "schedules":
        if args.subcommand == "list":
            return cmd_schedules_list(engine, args.active_only, fmt)
        elif args.subcommand == "add":
            return cmd_schedules_add(
                engine, args.name, args.type, args.cron, args.retention_days, args.inactive, fmt
            )
        elif args.subcommand == "update":
            return cmd_schedules_update(engine, args)
        elif args.subcommand == "activate":
            print_schedule(engine.activate_schedule(args.schedule_id), fmt)
            return 0
        elif args.subcommand == "deactivate":
            print_schedule(engine.deactivate_schedule(args.schedule_id), fmt)
            return 0
        elif args.subcommand == "delete":
            return cmd_schedules_delete(engine, args.schedule_id)
        elif args.subcommand == "run":
            return cmd_schedules_run(engine, args.schedule_id, fmt)

    return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "schedules" and not args.subcommand:
        args.schedules_parser.print_help()
        return 1

    try:
        engine = build_engine(args.env_file, args.verbose)
        return dispatch(engine, args)
    except GofrBackupError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
