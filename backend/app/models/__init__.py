# Re-export all models for convenient imports
from app.models.registration import Registration, Gender, JobStatus

__all__ = [
    "Registration",
    "Gender",
    "JobStatus",
]
