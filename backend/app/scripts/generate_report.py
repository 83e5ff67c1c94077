"""
Generate Patient Report Script
==============================
Builds the Word and PDF summary reports from the registrations table.

Run with:
    python -m app.scripts.generate_report
    python -m app.scripts.generate_report --from 2024-01-01 --to 2024-01-31T23:59:59

Prints {"wordFilePath": ..., "pdfFilePath": ...} on success.
"""

import argparse
import asyncio
import json
import sys
from datetime import datetime
from typing import List, Optional

from app.core.database import get_session_local, close_db
from app.core.exceptions import ReportError
from app.core.logging_config import logger
from app.modules.reports.report_pipeline import report_pipeline
from app.schemas.report import DateRange


def _parse_timestamp(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an ISO-8601 timestamp: {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate the patient summary report (Word + PDF)")
    parser.add_argument("--from", dest="date_from", type=_parse_timestamp, default=None,
                        help="Inclusive start of the created_at window (ISO-8601)")
    parser.add_argument("--to", dest="date_to", type=_parse_timestamp, default=None,
                        help="Inclusive end of the created_at window (ISO-8601)")
    return parser


async def generate(date_range: DateRange) -> dict:
    session_factory = get_session_local()
    try:
        async with session_factory() as session:
            paths = await report_pipeline.generate_report_from_db(session, date_range)
    finally:
        await close_db()
    return paths.to_response()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    date_range = DateRange(from_=args.date_from, to=args.date_to)

    try:
        result = asyncio.run(generate(date_range))
    except ReportError as e:
        logger.error(f"Report generation failed: {e.code}: {e.message}")
        print(json.dumps({"success": False, **e.to_dict()}, default=str, ensure_ascii=False))
        return 1

    print(json.dumps({"success": True, "filePaths": result}, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
