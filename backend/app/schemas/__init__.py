# Pydantic schemas
from app.schemas.report import (
    PatientRecord,
    DateRange,
    StatisticsSummary,
    ReportFormat,
    ReportArtifact,
    ReportFilePaths,
)

__all__ = [
    "PatientRecord",
    "DateRange",
    "StatisticsSummary",
    "ReportFormat",
    "ReportArtifact",
    "ReportFilePaths",
]
