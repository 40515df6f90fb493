"""Command-line interface for the housekeeping scheduling engine."""

import argparse
import json
import sys
from datetime import date
from typing import Optional

from hkplanner.config import DistributorType, EngineConfig, load_config, validate_config
from hkplanner.domain.catalog import TemplateCatalog, load_catalog
from hkplanner.domain.models import Room, RoomStatus, ScheduleRule
from hkplanner.domain.roster import StaffRoster, load_rooms, load_roster
from hkplanner.exceptions import HKPlannerError
from hkplanner.scheduling.generator import run_initial_setup
from hkplanner.scheduling.recurring import RecurringRuleEngine
from hkplanner.storage.sql_store import SqlTaskStore
from hkplanner.storage.task_store import InMemoryTaskStore, TaskStore
from hkplanner.utils.logger import configure_logging
from hkplanner.validation.validator import ScheduleValidator, validate_setup


def create_sample_rooms(count: int = 10, floors: int = 2) -> list[Room]:
    """Create sample rooms for demo runs.

    Args:
        count: Number of rooms to create.
        floors: Floors the rooms are spread across.
    """
    room_types = ["standard", "standard", "deluxe", "suite", "family", "accessible"]
    per_floor = max(1, -(-count // floors))

    rooms = []
    for i in range(count):
        floor = i // per_floor + 1
        number = f"{floor}{i % per_floor + 1:02d}"
        rooms.append(
            Room(
                id=f"room-{number}",
                number=number,
                room_type=room_types[i % len(room_types)],
                status=RoomStatus.AVAILABLE,
                property_id="demo-property",
            )
        )
    return rooms


def _parse_date(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value) if value else None


def _build_config(args: argparse.Namespace) -> EngineConfig:
    config = load_config(args.config) if args.config else EngineConfig()
    if getattr(args, "days", None) is not None:
        config.window_days = args.days
    if getattr(args, "seed", None) is not None:
        config.random_seed = args.seed
    if getattr(args, "distributor", None):
        config.distributor = DistributorType(args.distributor)
    if getattr(args, "database", None):
        config.database_url = args.database
    if getattr(args, "log_level", None):
        config.log_level = args.log_level
    validate_config(config)
    configure_logging(config.log_level)
    return config


def _build_inputs(args: argparse.Namespace) -> tuple[TemplateCatalog, StaffRoster, list[Room]]:
    catalog = load_catalog(args.catalog) if args.catalog else TemplateCatalog.default()
    roster = load_roster(args.staff) if args.staff else StaffRoster.default()
    rooms = load_rooms(args.rooms) if getattr(args, "rooms", None) else create_sample_rooms(
        getattr(args, "room_count", 10)
    )
    return catalog, roster, rooms


def _build_store(config: EngineConfig) -> TaskStore:
    if config.database_url:
        return SqlTaskStore(config.database_url)
    return InMemoryTaskStore()


def _print_report(report: dict) -> None:
    status = "PASSED" if report["isValid"] else "FAILED"
    print(f"\n  Setup validation: {status}")
    for issue in report["issues"]:
        print(f"    - {issue}")
    stats = report["statistics"]
    print(f"    Templates: {stats['totalTemplates']}, Staff: {stats['totalStaff']}, "
          f"Scheduled tasks: {stats['totalScheduledTasks']}, Active days: {stats['activeDays']}")


def run_setup(args: argparse.Namespace) -> int:
    """Run the bulk initial setup over the rolling window."""
    config = _build_config(args)
    catalog, roster, rooms = _build_inputs(args)
    store = _build_store(config)
    start = _parse_date(args.start) or date.today()

    print(f"Generating {config.window_days}-day schedule for {len(rooms)} rooms "
          f"and {len(roster)} staff starting {start.isoformat()}...")

    summary = run_initial_setup(
        rooms,
        catalog=catalog,
        roster=roster,
        config=config,
        store=store,
        start_date=start,
    )
    stats = summary.result.get_summary()

    print(f"\n  Templates: {summary.templates_created}")
    print(f"  Staff: {summary.staff_created}")
    print(f"  Scheduled tasks: {summary.schedules_created}")
    print(f"  Active days: {stats['active_days']}/{config.window_days}")
    if stats["skipped_days"]:
        print(f"  Skipped days (no staff): {', '.join(stats['skipped_days'])}")
    if stats["failed_days"]:
        print(f"  Failed days: {', '.join(stats['failed_days'])}")
    for name, count in sorted(stats["tasks_by_staff"].items()):
        print(f"    {name}: {count} tasks")

    validator = ScheduleValidator(roster)
    result = validator.validate(summary.result.tasks, summary.result.over_capacity)
    if result.is_valid:
        print("\n  Validation: PASSED")
    else:
        print(f"\n  Validation: FAILED ({len(result.errors)} errors)")
        for error in result.errors[:5]:
            print(f"    - {error}")
        if len(result.errors) > 5:
            print(f"    ... and {len(result.errors) - 5} more errors")

    report = validate_setup(catalog, roster, store, as_of=start)
    _print_report(report.to_dict())

    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    return 0


def run_recurring(args: argparse.Namespace) -> int:
    """Evaluate the recurring schedule rules for one day."""
    config = _build_config(args)
    catalog, roster, rooms = _build_inputs(args)
    store = _build_store(config)
    on_date = _parse_date(args.date) or date.today()

    rules = None
    if args.rules:
        with open(args.rules, encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("rules", [])
        rules = [ScheduleRule.from_dict(r) for r in data]

    engine = RecurringRuleEngine(catalog, roster, rules=rules, config=config, store=store)
    result = engine.run(rooms, on_date)

    print(f"Recurring rules for {on_date.isoformat()}: {result.scheduled_count} tasks scheduled")
    for warning in result.warnings:
        print(f"  ! {warning}")
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    return 0


def run_validate(args: argparse.Namespace) -> int:
    """Print the setup validation report for a task database."""
    configure_logging(args.log_level)
    catalog = load_catalog(args.catalog) if args.catalog else TemplateCatalog.default()
    roster = load_roster(args.staff) if args.staff else StaffRoster.default()
    store = SqlTaskStore(args.database)
    as_of = _parse_date(args.as_of) or date.today()

    report = validate_setup(catalog, roster, store, as_of=as_of)
    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        _print_report(report.to_dict())
    return 0 if report.is_valid else 1


def _add_input_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--catalog", type=str, help="Template catalog JSON file (default: built-in)")
    parser.add_argument("--staff", type=str, help="Staff roster JSON file (default: built-in)")
    parser.add_argument("--rooms", type=str, help="Room directory JSON file")
    parser.add_argument(
        "--room-count", "-n",
        type=int,
        default=10,
        help="Number of sample rooms when no room file is given (default: 10)",
    )
    parser.add_argument("--config", type=str, help="Engine configuration JSON file")
    parser.add_argument("--database", type=str, help="SQLAlchemy database URL for the task store")
    parser.add_argument("--seed", type=int, help="Random seed for the occupancy fallback")
    parser.add_argument(
        "--distributor",
        choices=[d.value for d in DistributorType],
        help="Room-to-staff distributor (default: greedy)",
    )
    parser.add_argument("--json", action="store_true", help="Also print the summary as JSON")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="hkplanner - Housekeeping Task Scheduling Engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s setup                          7-day setup with built-in templates and staff
  %(prog)s setup --days 14 --seed 42      14-day setup, reproducible occupancy
  %(prog)s setup --database sqlite:///hk.db --rooms rooms.json

  %(prog)s recurring --date 2024-01-15    Run recurring rules for a day
  %(prog)s validate --database sqlite:///hk.db
        """,
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level; overrides the configuration file (default: INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    setup_parser = subparsers.add_parser("setup", help="Bulk-generate the rolling window")
    _add_input_arguments(setup_parser)
    setup_parser.add_argument("--days", "-d", type=int, help="Window length in days (default: 7)")
    setup_parser.add_argument("--start", type=str, help="First day of the window (YYYY-MM-DD)")

    recurring_parser = subparsers.add_parser("recurring", help="Run recurring schedule rules")
    _add_input_arguments(recurring_parser)
    recurring_parser.add_argument("--date", type=str, help="Day to evaluate (YYYY-MM-DD)")
    recurring_parser.add_argument("--rules", type=str, help="Schedule rules JSON file")

    validate_parser = subparsers.add_parser("validate", help="Validate a task database")
    validate_parser.add_argument("--database", type=str, required=True, help="SQLAlchemy database URL")
    validate_parser.add_argument("--catalog", type=str, help="Template catalog JSON file")
    validate_parser.add_argument("--staff", type=str, help="Staff roster JSON file")
    validate_parser.add_argument("--as-of", type=str, help="Earliest date considered (YYYY-MM-DD)")
    validate_parser.add_argument("--json", action="store_true", help="Print the report as JSON")

    args = parser.parse_args(argv)

    try:
        if args.command == "setup":
            return run_setup(args)
        elif args.command == "recurring":
            return run_recurring(args)
        elif args.command == "validate":
            return run_validate(args)
        else:
            parser.print_help()
            return 1
    except HKPlannerError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
