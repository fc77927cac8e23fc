"""
Savings Tracker - Main Entry Point.

Allowance-to-savings planner. Declares a daily allowance per plan,
records purchases and computes how much should be saved each day.

Usage:
    python main.py [--data <file>] [--verbose] <command> [options]

Example:
    python main.py create-plan "Laptop" --start 2024-01-01 --end 2024-06-28 --goal 30000
    python main.py start-day 1704067200000 --allowance 500
    python main.py status
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional

from savings_tracker import __version__
from savings_tracker.config import get_settings
from savings_tracker.excel_generator import ExcelReporter
from savings_tracker.planner import PlanManager, PlanNotFoundError
from savings_tracker.schema import GOAL_MET, Plan, PlanReport
from savings_tracker.storage import DocumentStore
from savings_tracker.validator import InputValidator, InvalidInputError

logger = logging.getLogger(__name__)
validator = InputValidator()


def print_header() -> None:
    """Prints the application header."""
    print("=" * 60)
    print("  Savings Tracker - Allowance to Savings Planner")
    print(f"  Version: {__version__}")
    print("=" * 60)
    print()


def print_plan(plan: Plan, report: PlanReport) -> None:
    """
    Prints a single plan's status block.

    Args:
        plan: Plan to print.
        report: Reporting view of the plan.
    """
    mode = plan.mode.value.title()
    print(f"  {plan.name}  [{plan.id}]")
    print("  " + "-" * 40)
    if plan.use_end_date:
        print(f"  Schedule:          {plan.start_date} to {plan.end_date}")
    else:
        print(f"  Schedule:          from {plan.start_date} (no end date)")
    print(f"  Mode:              {mode}"
          f"{' + Penalty' if plan.penalty_mode else ''}")
    if plan.goal > 0:
        print(f"  Goal:              {validator.format_php(plan.goal)} "
              f"({report.progress_percentage}%)")
    print(f"  Total Saved:       {validator.format_php(plan.total_saved)}")
    print(f"  Penalty Debt:      {validator.format_php(plan.penalty_debt)}")
    if report.qualifying_days_left is not None:
        print(f"  Days Left:         {report.calendar_days_left} "
              f"({report.qualifying_days_left} business days)")
    for idx, exclusion in enumerate(plan.exclusions):
        print(f"  Excluded [{idx}]:      {exclusion.start} to {exclusion.end}")
    if plan.day_active:
        print(f"  Today's Target:    {validator.format_php(plan.daily_savings_goal)}")
        print(f"  Remaining Today:   {validator.format_php(plan.remaining_allowance)}")
        print(f"  Spent Today:       {validator.format_php(plan.daily_spent)}")
    else:
        print("  Set today's allowance to see target.")
    if report.projection == GOAL_MET:
        print(f"  Projection:        {GOAL_MET}")
    elif report.projection is not None:
        print(f"  Projection:        {report.projection.isoformat()}")
    for idx, product in enumerate(plan.products):
        print(f"  Product [{idx}]:       {product.name} {validator.format_php(product.price)}")
    print()


def print_status(manager: PlanManager, reference_date: Optional[date]) -> None:
    """Prints every plan and the overall savings total."""
    document = manager.document
    if not document.plans:
        print("  No plans yet. Create one with 'create-plan'.")
        print()
    for plan in document.plans:
        print_plan(plan, manager.plan_report(plan.id, reference_date))

    print("  TOTAL SAVINGS")
    print("  " + "-" * 40)
    print(f"  {validator.format_php(document.total_savings)}")
    print()


def build_parser() -> argparse.ArgumentParser:
    """Builds the command-line parser."""
    parser = argparse.ArgumentParser(
        description="Savings Tracker - Allowance to Savings Planner"
    )
    parser.add_argument(
        "--data",
        type=Path,
        default=None,
        help="Path to the savings document (default: from settings)"
    )
    parser.add_argument(
        "--today",
        type=date.fromisoformat,
        default=None,
        help="Override today's date (YYYY-MM-DD)"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Show all plans")
    sub.add_parser("agree-tos", help="Accept the terms of service")

    create = sub.add_parser("create-plan", help="Create a savings plan")
    create.add_argument("name")
    create.add_argument("--start", required=True, help="Start date")
    create.add_argument("--end", default=None, help="End date (omit for indefinite)")
    create.add_argument("--goal", default=None, help="Savings goal")

    edit = sub.add_parser("edit-plan", help="Edit a plan's name, dates and goal")
    edit.add_argument("plan_id")
    edit.add_argument("name")
    edit.add_argument("--start", required=True, help="Start date")
    edit.add_argument("--end", default=None, help="End date (omit for indefinite)")
    edit.add_argument("--goal", default=None, help="Savings goal")

    delete = sub.add_parser("delete-plan", help="Delete a plan")
    delete.add_argument("plan_id")

    mode = sub.add_parser("mode", help="Switch target mode")
    mode.add_argument("plan_id")
    mode.add_argument("mode", choices=["estimate", "manual"])

    penalty = sub.add_parser("penalty", help="Turn penalty mode on or off")
    penalty.add_argument("plan_id")
    penalty.add_argument("state", choices=["on", "off"])

    exclude = sub.add_parser("exclude", help="Add an exclusion range")
    exclude.add_argument("plan_id")
    exclude.add_argument("start")
    exclude.add_argument("end")

    unexclude = sub.add_parser("unexclude", help="Remove an exclusion range")
    unexclude.add_argument("plan_id")
    unexclude.add_argument("index", type=int)

    product = sub.add_parser("add-product", help="Add a catalog product")
    product.add_argument("plan_id")
    product.add_argument("name")
    product.add_argument("price")

    start = sub.add_parser("start-day", help="Set today's allowance")
    start.add_argument("plan_id")
    start.add_argument("--allowance", required=True)
    start.add_argument("--target", default=None, help="Manual savings target")

    spend = sub.add_parser("spend", help="Record a purchase")
    spend.add_argument("plan_id")
    spend.add_argument("amount")

    buy = sub.add_parser("buy", help="Buy a catalog product")
    buy.add_argument("plan_id")
    buy.add_argument("index", type=int)

    export = sub.add_parser("export", help="Export an Excel report")
    export.add_argument(
        "--output-dir",
        type=Path,
        default=Path("output"),
        help="Output directory for reports (default: output/)"
    )

    return parser


def run_command(manager: PlanManager, args: argparse.Namespace) -> int:
    """
    Executes a parsed command against the manager.

    Args:
        manager: Plan manager with the loaded document.
        args: Parsed command-line arguments.

    Returns:
        Exit code.
    """
    today = args.today
    command = args.command

    if command == "status":
        print_status(manager, today)
    elif command == "agree-tos":
        manager.agree_to_terms()
        print("  ✓ Terms of service accepted")
    elif command == "create-plan":
        plan = manager.create_plan(args.name, args.start, args.goal, args.end)
        print(f"  ✓ Created plan '{plan.name}' with id {plan.id}")
    elif command == "edit-plan":
        plan = manager.update_plan(
            args.plan_id, args.name, args.start, args.goal, args.end
        )
        print(f"  ✓ Plan '{plan.name}' updated")
    elif command == "delete-plan":
        manager.delete_plan(args.plan_id)
        print(f"  ✓ Plan {args.plan_id} deleted")
    elif command == "mode":
        plan = manager.set_mode(args.plan_id, args.mode)
        print(f"  ✓ Mode set to {plan.mode.value.title()}")
    elif command == "penalty":
        manager.set_penalty_mode(args.plan_id, args.state == "on")
        print(f"  ✓ Penalty mode {args.state}")
    elif command == "exclude":
        exclusions = manager.add_exclusion(args.plan_id, args.start, args.end)
        print(f"  ✓ {len(exclusions)} exclusion range(s)")
    elif command == "unexclude":
        exclusions = manager.remove_exclusion(args.plan_id, args.index)
        print(f"  ✓ {len(exclusions)} exclusion range(s)")
    elif command == "add-product":
        product = manager.add_product(args.plan_id, args.name, args.price)
        print(f"  ✓ Added {product.name} at {validator.format_php(product.price)}")
    elif command == "start-day":
        plan = manager.start_day(args.plan_id, args.allowance, args.target, today)
        print(f"  ✓ Day started. Today's Target: "
              f"{validator.format_php(plan.daily_savings_goal)}")
    elif command in ("spend", "buy"):
        if command == "spend":
            result = manager.record_purchase(args.plan_id, args.amount, today)
        else:
            result = manager.buy_product(args.plan_id, args.index, today)
        if result is None:
            print("  Nothing recorded.")
        else:
            if result.exceeded_allowance:
                print("  ⚠️  This exceeds your remaining allowance.")
            print(f"  ✓ Spent {validator.format_php(result.amount)}. "
                  f"Remaining: {validator.format_php(result.remaining)}")
    elif command == "export":
        reporter = ExcelReporter()
        output_path = args.output_dir / reporter.generate_filename()
        reporter.generate_report(manager.portfolio_report(today), output_path)
        print(f"  ✓ Excel report saved: {output_path}")

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code.
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    settings = get_settings()
    store = DocumentStore(args.data or settings.data_file, settings)

    print_header()
    try:
        manager = PlanManager(store, settings)
        manager.refresh(args.today)
        return run_command(manager, args)
    except InvalidInputError as e:
        print("  ❌ INVALID INPUT:")
        for error in e.errors:
            print(f"     {error}")
        return 1
    except PlanNotFoundError as e:
        print(f"\n  ❌ ERROR: {e}")
        return 1
    except ValueError as e:
        logger.debug("Failed to process command", exc_info=True)
        print(f"\n  ❌ ERROR: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
