"""Database-backed record stream for the report pipeline."""

from typing import AsyncIterator, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.registration import Registration
from app.schemas.report import DateRange, PatientRecord


def build_registrations_query(date_range: Optional[DateRange] = None):
    """Select only the columns the aggregator reads, narrowed to an inclusive range"""
    stmt = select(
        Registration.created_at,
        Registration.gender,
        Registration.job,
        Registration.other_job,
    )
    if date_range is not None and date_range.is_bounded:
        stmt = stmt.where(
            Registration.created_at >= date_range.from_,
            Registration.created_at <= date_range.to,
        )
    return stmt


async def stream_registrations(
    session: AsyncSession,
    date_range: Optional[DateRange] = None,
) -> AsyncIterator[PatientRecord]:
    """Yield each matching registration once, straight off the cursor"""
    result = await session.stream(build_registrations_query(date_range))
    try:
        async for row in result:
            yield PatientRecord.model_validate(dict(row._mapping))
    finally:
        await result.close()
