"""
Patient Reports - Test Configuration and Fixtures
"""
import os
from datetime import datetime, timedelta
from typing import AsyncGenerator, Callable, List, Optional

import pytest
import pytest_asyncio
from faker import Faker
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Set testing environment
os.environ['ENVIRONMENT'] = 'testing'
os.environ['LOG_LEVEL'] = 'WARNING'
os.environ['LOG_FILE'] = ''
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite://'

from app.core.database import Base
from app.core.exceptions import RenderEngineUnavailableError
from app.models.registration import Gender, JobStatus, Registration
from app.modules.reports.pdf_generator import PrintEngine, PrintOptions, ReportPDFGenerator
from app.modules.reports.storage import ReportStorage
from app.schemas.report import PatientRecord

fake = Faker()


# ==================== Records ====================

@pytest.fixture
def make_record() -> Callable[..., PatientRecord]:
    """Factory for patient records; unspecified fields get neutral values"""
    def _make(
        created_at: Optional[datetime] = None,
        gender: Optional[Gender] = Gender.MALE,
        job: Optional[JobStatus] = JobStatus.EMPLOYED,
        other_job: Optional[str] = None,
    ) -> PatientRecord:
        return PatientRecord(
            created_at=created_at or fake.date_time_between(start_date='-1y', end_date='now'),
            gender=gender,
            job=job,
            other_job=other_job,
        )
    return _make


@pytest.fixture
def sample_records(make_record) -> List[PatientRecord]:
    """
    10 records: 6 women, 4 men, 2 unemployed by job,
    1 pensioner via free text, nobody disabled.
    """
    start = datetime(2024, 3, 1, 9, 30)
    genders = [Gender.FEMALE] * 6 + [Gender.MALE] * 4
    records = []
    for i, gender in enumerate(genders):
        job = JobStatus.EMPLOYED
        other_job = None
        if i in (0, 5):
            job = JobStatus.UNEMPLOYED
        if i == 7:
            job = JobStatus.OTHER
            other_job = "nafaqaxo'r"
        records.append(make_record(
            created_at=start + timedelta(days=i, hours=i),
            gender=gender,
            job=job,
            other_job=other_job,
        ))
    return records


# ==================== Print Engine ====================

class FakePrintEngine(PrintEngine):
    """Stands in for headless Chromium; echoes the markup into the 'PDF'"""

    def __init__(self, fail_launch: bool = False, render_error: Optional[Exception] = None):
        self.fail_launch = fail_launch
        self.render_error = render_error
        self.launched = False
        self.shut_down = False
        self.markup: Optional[str] = None
        self.options: Optional[PrintOptions] = None

    async def launch(self) -> None:
        if self.fail_launch:
            raise RenderEngineUnavailableError("chromium executable not found")
        self.launched = True

    async def render_to_pdf(self, markup: str, options: PrintOptions) -> bytes:
        self.markup = markup
        self.options = options
        if self.render_error is not None:
            raise self.render_error
        return b"%PDF-1.7\n" + markup.encode("utf-8")

    async def shutdown(self) -> None:
        self.shut_down = True


@pytest.fixture
def print_engines() -> List[FakePrintEngine]:
    """Every fake engine created during the test, in creation order"""
    return []


@pytest.fixture
def make_pdf_generator(print_engines) -> Callable[..., ReportPDFGenerator]:
    def _make(**engine_kwargs) -> ReportPDFGenerator:
        def factory() -> FakePrintEngine:
            engine = FakePrintEngine(**engine_kwargs)
            print_engines.append(engine)
            return engine
        return ReportPDFGenerator(engine_factory=factory, options=PrintOptions(render_timeout_ms=1000))
    return _make


@pytest.fixture
def fake_pdf_generator(make_pdf_generator) -> ReportPDFGenerator:
    return make_pdf_generator()


# ==================== Storage ====================

@pytest.fixture
def storage(tmp_path) -> ReportStorage:
    """Storage rooted in a per-test temp directory"""
    return ReportStorage(output_root=tmp_path, uploads_dir="uploads")


# ==================== Database ====================

@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database per test"""
    engine = create_async_engine(
        'sqlite+aiosqlite://',
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def seeded_session(db_session: AsyncSession) -> AsyncSession:
    """Registrations spread over January and February 2024"""
    rows = [
        Registration(first_name=fake.first_name(), last_name=fake.last_name(), phone=fake.phone_number(),
                     gender=Gender.FEMALE, job=JobStatus.PENSIONER, created_at=datetime(2024, 1, 5, 10, 0)),
        Registration(first_name=fake.first_name(), last_name=fake.last_name(), phone=fake.phone_number(),
                     gender=Gender.MALE, job=JobStatus.OTHER, other_job="Nogiron",
                     created_at=datetime(2024, 1, 20, 12, 0)),
        Registration(first_name=fake.first_name(), last_name=fake.last_name(), phone=fake.phone_number(),
                     gender=Gender.FEMALE, job=JobStatus.OTHER, other_job="ishsiz",
                     created_at=datetime(2024, 1, 31, 23, 59, 59)),
        Registration(first_name=fake.first_name(), last_name=fake.last_name(), phone=fake.phone_number(),
                     gender=Gender.MALE, job=JobStatus.EMPLOYED, created_at=datetime(2024, 2, 1, 0, 0)),
        Registration(first_name=fake.first_name(), last_name=fake.last_name(), phone=fake.phone_number(),
                     gender=None, job=JobStatus.UNEMPLOYED, created_at=datetime(2024, 2, 14, 8, 15)),
    ]
    db_session.add_all(rows)
    await db_session.commit()
    return db_session
