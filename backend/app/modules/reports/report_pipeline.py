"""
Report Pipeline
===============
records -> StatisticsSummary -> (Word, PDF) -> uploads/report-<token>.{docx,pdf}

The summary and the timestamp token are computed once and handed to both
renderers. The renderers run concurrently; the files are written only
when both succeed.

Usage:
    from app.modules.reports.report_pipeline import report_pipeline

    paths = await report_pipeline.generate_report(records, DateRange(from_=start, to=end))
    paths.to_response()  # {"wordFilePath": "uploads/...docx", "pdfFilePath": "uploads/...pdf"}
"""

import asyncio
import time
from datetime import datetime
from typing import Any, AsyncIterable, Iterable, Optional, Tuple, Union

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    InputRangeInvalidError,
    NoMatchingRecordsError,
    ReportError,
    ReportGenerationError,
)
from app.core.logging_config import logger, generate_report_id, reset_report_id, set_report_id
from app.modules.reports.aggregator import aggregate, aggregate_stream
from app.modules.reports.classifier import JobClassifier
from app.modules.reports.pdf_generator import ReportPDFGenerator, pdf_generator as default_pdf_generator
from app.modules.reports.sources import stream_registrations
from app.modules.reports.storage import ReportStorage, report_storage as default_storage
from app.modules.reports.word_generator import ReportWordGenerator, word_generator as default_word_generator
from app.schemas.report import DateRange, ReportFilePaths, ReportFormat, StatisticsSummary


Records = Union[Iterable[Any], AsyncIterable[Any]]


def validate_range(date_range: Optional[DateRange]) -> DateRange:
    """Reject one-sided and reversed ranges; None becomes the unbounded range"""
    date_range = date_range or DateRange()
    if date_range.is_partial:
        raise InputRangeInvalidError(
            "Date range must have both 'from' and 'to', or neither",
            **{"from": date_range.from_, "to": date_range.to},
        )
    if date_range.is_bounded and date_range.from_ > date_range.to:
        raise InputRangeInvalidError(
            "Date range 'from' is after 'to'",
            **{"from": date_range.from_, "to": date_range.to},
        )
    return date_range


class ReportPipeline:
    """Runs one report request end to end"""

    def __init__(
        self,
        storage: Optional[ReportStorage] = None,
        word_generator: Optional[ReportWordGenerator] = None,
        pdf_generator: Optional[ReportPDFGenerator] = None,
        classifier: Optional[JobClassifier] = None,
        empty_fallback_to_now: Optional[bool] = None,
    ):
        self.storage = storage or default_storage
        self.word_generator = word_generator or default_word_generator
        self.pdf_generator = pdf_generator or default_pdf_generator
        self.classifier = classifier
        self.empty_fallback_to_now = (
            settings.REPORT_EMPTY_FALLBACK_TO_NOW if empty_fallback_to_now is None else empty_fallback_to_now
        )

    async def generate_report(
        self,
        records: Records,
        date_range: Optional[DateRange] = None,
        now: Optional[datetime] = None,
    ) -> ReportFilePaths:
        """
        Aggregate records and write the Word and PDF reports.

        Args:
            records: Sync or async iterable of objects with created_at, gender, job, other_job
            date_range: Inclusive window on created_at; None or empty means all records
            now: Processing time, used for the timestamp token (defaults to the clock)

        Returns:
            Both relative paths plus the shared timestamp token

        Raises:
            InputRangeInvalidError, NoMatchingRecordsError, RenderError,
            ReportGenerationError, StorageWriteError
        """
        report_id_token = set_report_id(generate_report_id())
        try:
            return await self._generate(records, date_range, now or datetime.now())
        finally:
            reset_report_id(report_id_token)

    async def _generate(
        self,
        records: Records,
        date_range: Optional[DateRange],
        now: datetime,
    ) -> ReportFilePaths:
        started = time.perf_counter()

        try:
            date_range = validate_range(date_range)

            if hasattr(records, "__aiter__"):
                summary = await aggregate_stream(records, date_range, self.classifier)
            else:
                summary = aggregate(records, date_range, self.classifier)
            logger.log_report_event("aggregated", f"{summary.total} records", total=summary.total)

            date_from, date_to = self.resolve_window(summary, date_range, now)
            timestamp_token = self.storage.mint_timestamp_token(now)

            word_bytes, pdf_bytes = await self._render_both(summary, date_from, date_to)
            logger.log_report_event("rendered", f"token {timestamp_token}")

            artifacts = await self.storage.write_artifacts(timestamp_token, {
                ReportFormat.DOCUMENT: word_bytes,
                ReportFormat.PRINT: pdf_bytes,
            })
        except ReportError as e:
            logger.log_error_with_context(e, "report pipeline", error_code=e.code)
            raise

        paths = {artifact.format: artifact.relative_path for artifact in artifacts}
        logger.log_performance("report generation", (time.perf_counter() - started) * 1000, threshold_ms=10000)
        logger.log_report_event("completed", f"{paths[ReportFormat.DOCUMENT]}, {paths[ReportFormat.PRINT]}")

        return ReportFilePaths(
            word_file_path=paths[ReportFormat.DOCUMENT],
            pdf_file_path=paths[ReportFormat.PRINT],
            timestamp_token=timestamp_token,
            artifacts=artifacts,
        )

    async def generate_report_from_db(
        self,
        session: AsyncSession,
        date_range: Optional[DateRange] = None,
        now: Optional[datetime] = None,
    ) -> ReportFilePaths:
        """Stream registrations from the database, narrowed by the range, into generate_report"""
        date_range = validate_range(date_range)
        return await self.generate_report(stream_registrations(session, date_range), date_range, now)

    def resolve_window(
        self,
        summary: StatisticsSummary,
        date_range: DateRange,
        now: datetime,
    ) -> Tuple[datetime, datetime]:
        """Dates for the report title; summary dates first, then the requested bounds"""
        if summary.date_from is not None and summary.date_to is not None:
            return summary.date_from, summary.date_to
        if date_range.is_bounded:
            return date_range.from_, date_range.to
        if self.empty_fallback_to_now:
            logger.warning("[Reports] No records and no range; titling the report with the processing time")
            return now, now
        raise NoMatchingRecordsError()

    async def _render_both(
        self,
        summary: StatisticsSummary,
        date_from: datetime,
        date_to: datetime,
    ) -> Tuple[bytes, bytes]:
        loop = asyncio.get_running_loop()
        results = await asyncio.gather(
            # python-docx is CPU-bound and synchronous
            loop.run_in_executor(None, self.word_generator.render, summary, date_from, date_to),
            self.pdf_generator.render(summary, date_from, date_to),
            return_exceptions=True,
        )

        for artifact, result in zip((ReportFormat.DOCUMENT, ReportFormat.PRINT), results):
            if isinstance(result, ReportError):
                raise result
            if isinstance(result, Exception):
                raise ReportGenerationError(artifact.value, f"{type(result).__name__}: {result}") from result
            if isinstance(result, BaseException):
                raise result

        return results[0], results[1]


# Singleton instance
report_pipeline = ReportPipeline()
