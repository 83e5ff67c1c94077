from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from typing import Optional, List
from datetime import datetime, timezone
from enum import Enum

from app.models.registration import Gender, JobStatus


def to_naive_utc(moment: Optional[datetime]) -> Optional[datetime]:
    """Aware timestamps become naive UTC, matching the naive UTC created_at column"""
    if moment is None or moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


# ==================== Input Schemas ====================

class PatientRecord(BaseModel):
    """The slice of a registration the report pipeline reads"""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    created_at: datetime
    gender: Optional[Gender] = None
    job: Optional[JobStatus] = None
    other_job: Optional[str] = None

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, v: datetime) -> datetime:
        return to_naive_utc(v)


class DateRange(BaseModel):
    """
    Inclusive [from, to] window on created_at.

    Both bounds or neither; a range with one bound is treated as
    unbounded by the aggregator and rejected by the pipeline entry point.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: Optional[datetime] = Field(default=None, alias="from")
    to: Optional[datetime] = None

    @field_validator("from_", "to")
    @classmethod
    def normalize_bounds(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)

    @property
    def is_bounded(self) -> bool:
        return self.from_ is not None and self.to is not None

    @property
    def is_partial(self) -> bool:
        return (self.from_ is None) != (self.to is None)

    def contains(self, moment: datetime) -> bool:
        """True when the moment falls inside the range; unbounded ranges contain everything"""
        if not self.is_bounded:
            return True
        moment = to_naive_utc(moment)
        return self.from_ <= moment <= self.to


# ==================== Statistics ====================

class StatisticsSummary(BaseModel):
    """Counts and date span for one report request; immutable once built"""
    model_config = ConfigDict(frozen=True)

    total: int = Field(0, ge=0)
    women: int = Field(0, ge=0)
    men: int = Field(0, ge=0)
    unemployed: int = Field(0, ge=0)
    pensioners: int = Field(0, ge=0)
    disabled: int = Field(0, ge=0)

    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None

    @model_validator(mode="after")
    def check_invariants(self) -> "StatisticsSummary":
        if self.women + self.men > self.total:
            raise ValueError("women + men cannot exceed total")
        for name in ("unemployed", "pensioners", "disabled"):
            if getattr(self, name) > self.total:
                raise ValueError(f"{name} cannot exceed total")
        if self.total == 0 and (self.date_from is not None or self.date_to is not None):
            raise ValueError("an empty summary has no date span")
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("date_from must not be after date_to")
        return self

    def counts(self) -> List[int]:
        """Counts in report column order: total, women, men, unemployed, pensioners, disabled"""
        return [self.total, self.women, self.men, self.unemployed, self.pensioners, self.disabled]


# ==================== Output Schemas ====================

class ReportFormat(str, Enum):
    """The two artifact kinds produced per request"""
    DOCUMENT = "document"
    PRINT = "print"

    @property
    def extension(self) -> str:
        return "docx" if self is ReportFormat.DOCUMENT else "pdf"


class ReportArtifact(BaseModel):
    """One written report file"""
    model_config = ConfigDict(frozen=True)

    format: ReportFormat
    relative_path: str
    timestamp_token: str


class ReportFilePaths(BaseModel):
    """Paths handed back to the caller, relative to the output root"""
    model_config = ConfigDict(populate_by_name=True)

    word_file_path: str = Field(..., serialization_alias="wordFilePath")
    pdf_file_path: str = Field(..., serialization_alias="pdfFilePath")
    timestamp_token: str = Field(..., serialization_alias="timestampToken")
    artifacts: List[ReportArtifact] = Field(default_factory=list)

    def to_response(self) -> dict:
        """Shape returned to API callers"""
        return self.model_dump(by_alias=True, include={"word_file_path", "pdf_file_path"})
