from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Text, Index
from datetime import datetime
import uuid
import enum

from app.core.database import Base


class Gender(str, enum.Enum):
    """Patient gender as captured on the registration form"""
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class JobStatus(str, enum.Enum):
    """Employment status; OTHER means the free-text other_job field applies"""
    EMPLOYED = "employed"
    UNEMPLOYED = "unemployed"
    PENSIONER = "pensioner"
    DISABLED = "disabled"
    OTHER = "other"


class Registration(Base):
    """Patient registration - owned by the registrations service, read-only here"""
    __tablename__ = "registrations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)

    gender = Column(SQLEnum(Gender, values_callable=lambda e: [m.value for m in e]), nullable=True)
    job = Column(SQLEnum(JobStatus, values_callable=lambda e: [m.value for m in e]), nullable=True)
    other_job = Column(Text, nullable=True)  # Free text, user-entered

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_registrations_created_at", "created_at"),
    )

    def __repr__(self):
        return f"<Registration {self.id} {self.created_at}>"
