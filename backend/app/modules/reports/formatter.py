"""
Report text shared by the Word and PDF generators.

Both generators take every visible string from ReportContent, so the two
artifacts cannot drift apart.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Tuple

from app.schemas.report import StatisticsSummary


@dataclass(frozen=True)
class ReportColumn:
    key: str
    label: str


# Order matches StatisticsSummary.counts()
REPORT_COLUMNS: Tuple[ReportColumn, ...] = (
    ReportColumn("total", "Jami"),
    ReportColumn("women", "Ayollar"),
    ReportColumn("men", "Erkaklar"),
    ReportColumn("unemployed", "Ishsizlar"),
    ReportColumn("pensioners", "Nafaqaxo'rlar"),
    ReportColumn("disabled", "Nogironlar"),
)

WARNING_TEXT = "Diqqat!!!"

DISCLAIMER_TEXT = (
    "Ushbu ko'rinishda oddiy jadval tuzilib, tizimda hisobot yaratish qanday "
    "ishlashi taxminan ko'rsatilmoqda. Albatta, har bir mijozga tizim orqali "
    "o'ziga xohishga mos hisobotlarni yaratish imkoniyati beriladi. "
    "Bu faqat namuna hisobot shakli."
)

ATTENTION_COLOR = "FF0000"


def format_report_date(moment: datetime) -> str:
    """DD.MM.YYYY on the timestamp's own calendar date"""
    return f"{moment.day:02d}.{moment.month:02d}.{moment.year:04d}"


def build_title(date_from: datetime, date_to: datetime) -> str:
    return (
        f"{format_report_date(date_from)} - {format_report_date(date_to)} "
        f"oraliqda kelgan patsientlar bo'yicha hisobot"
    )


def column_labels() -> List[str]:
    return [column.label for column in REPORT_COLUMNS]


def column_values(stats: StatisticsSummary) -> List[str]:
    # Plain str(): no thousands separators
    return [str(getattr(stats, column.key)) for column in REPORT_COLUMNS]


@dataclass(frozen=True)
class ReportContent:
    """Every string that appears in a rendered report, in reading order"""
    title: str
    labels: Tuple[str, ...]
    values: Tuple[str, ...]
    warning: str
    disclaimer: str

    def text_blocks(self) -> List[str]:
        return [self.title, *self.labels, *self.values, self.warning, self.disclaimer]


def build_report_content(stats: StatisticsSummary, date_from: datetime, date_to: datetime) -> ReportContent:
    return ReportContent(
        title=build_title(date_from, date_to),
        labels=tuple(column_labels()),
        values=tuple(column_values(stats)),
        warning=WARNING_TEXT,
        disclaimer=DISCLAIMER_TEXT,
    )
