"""
Statistics Aggregator
Reduces a stream of patient records to one StatisticsSummary in a single pass.
"""

from datetime import datetime
from typing import Any, AsyncIterable, Iterable, Optional

from app.core.logging_config import logger
from app.models.registration import Gender
from app.modules.reports.classifier import JobClassifier, get_classifier
from app.schemas.report import DateRange, StatisticsSummary, to_naive_utc


def _value(field: Any) -> Any:
    """Enum members and raw strings compare the same way"""
    return getattr(field, "value", field)


class StatisticsAccumulator:
    """
    Running counts for one report request.

    Every contribution is a count, a min or a max, so the order in which
    records arrive does not change the result.
    """

    def __init__(self, date_range: Optional[DateRange] = None, classifier: Optional[JobClassifier] = None):
        self.date_range = date_range or DateRange()
        self.classifier = classifier or get_classifier()

        self.total = 0
        self.women = 0
        self.men = 0
        self.unemployed = 0
        self.pensioners = 0
        self.disabled = 0
        self.earliest: Optional[datetime] = None
        self.latest: Optional[datetime] = None

    def add(self, record: Any) -> bool:
        """
        Count one record if it falls inside the range.

        Accepts anything exposing created_at, gender, job and other_job
        (PatientRecord, Registration rows).

        Returns:
            Whether the record participated
        """
        # ORM rows skip PatientRecord validation; PostgreSQL may hand back aware values
        created_at = to_naive_utc(record.created_at)
        if not self.date_range.contains(created_at):
            return False

        self.total += 1

        gender = _value(record.gender)
        if gender == Gender.FEMALE.value:
            self.women += 1
        elif gender == Gender.MALE.value:
            self.men += 1

        flags = self.classifier.classify(_value(record.job), record.other_job)
        self.unemployed += flags.is_unemployed
        self.pensioners += flags.is_pensioner
        self.disabled += flags.is_disabled

        if self.earliest is None or created_at < self.earliest:
            self.earliest = created_at
        if self.latest is None or created_at > self.latest:
            self.latest = created_at

        return True

    def summary(self) -> StatisticsSummary:
        if self.total == 0:
            date_from = date_to = None
        elif self.date_range.is_bounded:
            date_from, date_to = self.date_range.from_, self.date_range.to
        else:
            date_from, date_to = self.earliest, self.latest

        return StatisticsSummary(
            total=self.total,
            women=self.women,
            men=self.men,
            unemployed=self.unemployed,
            pensioners=self.pensioners,
            disabled=self.disabled,
            date_from=date_from,
            date_to=date_to,
        )


def aggregate(
    records: Iterable[Any],
    date_range: Optional[DateRange] = None,
    classifier: Optional[JobClassifier] = None,
) -> StatisticsSummary:
    """Summarize a synchronous record sequence"""
    accumulator = StatisticsAccumulator(date_range, classifier)
    seen = 0
    for record in records:
        seen += 1
        accumulator.add(record)

    summary = accumulator.summary()
    logger.info(f"[Aggregator] {summary.total} of {seen} records participated")
    return summary


async def aggregate_stream(
    records: AsyncIterable[Any],
    date_range: Optional[DateRange] = None,
    classifier: Optional[JobClassifier] = None,
) -> StatisticsSummary:
    """Summarize an async record stream (e.g. a database cursor) in one pass"""
    accumulator = StatisticsAccumulator(date_range, classifier)
    seen = 0
    async for record in records:
        seen += 1
        accumulator.add(record)

    summary = accumulator.summary()
    logger.info(f"[Aggregator] {summary.total} of {seen} streamed records participated")
    return summary
