"""Batch recomputation CLI.

Usage:
  python -m jornadas.cli regenerate --from 2025-12-01 --to 2025-12-15
  python -m jornadas.cli regenerate --from 2025-12-01 --to 2025-12-31 --shard 0/4
  python -m jornadas.cli regenerate --from 2025-12-01 --to 2025-12-31 --start-after 1200 --max-pages 5
  python -m jornadas.cli day --date 2025-12-20 --dry-run
  python -m jornadas.cli half-month --year 2025 --month 12 --half 2
"""

import argparse
import asyncio
import logging
import sys
from datetime import date, datetime

from dotenv import load_dotenv

# Environment must be loaded before the settings module is imported
load_dotenv()

from jornadas.common.constants import DATE_FORMAT  # noqa: E402
from jornadas.common.exceptions import AppException, ProcessingError  # noqa: E402
from jornadas.config import settings  # noqa: E402
from jornadas.database import async_session_factory, engine  # noqa: E402
from jornadas.processing.schemas import ProcessingReport  # noqa: E402
from jornadas.processing.service import PeriodRecomputer, parse_shard  # noqa: E402

logger = logging.getLogger("jornadas.cli")


def _parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD")


def _configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jornadas",
        description="Recompute work days, overtime and compliance from punches",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--employee", dest="employee_ids", type=int, action="append",
                        help="Restrict to this employee id (repeatable)")
    common.add_argument("--shard", type=str,
                        help="Process only shard i of n, as 'i/n'")
    common.add_argument("--start-after", type=int,
                        help="Resume after this employee id (cursor of a previous run)")
    common.add_argument("--max-pages", type=int,
                        help="Stop after this many employee pages")
    common.add_argument("--dry-run", action="store_true",
                        help="Derive everything but write nothing")

    regen = sub.add_parser("regenerate", parents=[common],
                           help="Recompute a date window")
    regen.add_argument("--from", dest="date_from", type=_parse_date, required=True,
                       help="Start date (YYYY-MM-DD)")
    regen.add_argument("--to", dest="date_to", type=_parse_date, required=True,
                       help="End date (YYYY-MM-DD), inclusive")

    day = sub.add_parser("day", parents=[common], help="Recompute one day")
    day.add_argument("--date", type=_parse_date, required=True,
                     help="Day to recompute (YYYY-MM-DD)")

    half = sub.add_parser("half-month", parents=[common],
                          help="Recompute a payroll half-month")
    half.add_argument("--year", type=int, required=True)
    half.add_argument("--month", type=int, required=True, choices=range(1, 13))
    half.add_argument("--half", type=int, required=True, choices=(1, 2))

    return parser


async def run(args: argparse.Namespace) -> ProcessingReport:
    options = dict(
        employee_ids=args.employee_ids,
        shard=parse_shard(args.shard) if args.shard else None,
        start_after=args.start_after,
        max_pages=args.max_pages,
        dry_run=args.dry_run,
    )
    try:
        async with async_session_factory() as db:
            recomputer = PeriodRecomputer.for_session(db, settings)
            if args.command == "regenerate":
                return await recomputer.regenerate_period(
                    args.date_from, args.date_to, **options
                )
            if args.command == "day":
                return await recomputer.process_day(args.date, **options)
            return await recomputer.regenerate_half_month(
                args.year, args.month, args.half, **options
            )
    finally:
        await engine.dispose()


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging()

    try:
        report = asyncio.run(run(args))
    except ProcessingError as exc:
        logger.error("%s: %s", exc.title, exc.detail)
        return 1
    except AppException as exc:
        logger.error("%s: %s %s", exc.title, exc.detail, exc.errors or "")
        return 2

    print(report.model_dump_json(indent=2))
    if not report.completed:
        logger.info("Run stopped early; resume with --start-after %s", report.next_cursor)
    return 1 if report.errors else 0


if __name__ == "__main__":
    sys.exit(main())
