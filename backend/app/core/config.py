from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import Optional
from pathlib import Path


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "Patient Registration Reports"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""  # Empty disables the rotating file handler

    # ==========================================
    # Database
    # ==========================================
    DATABASE_URL: str = "sqlite+aiosqlite:///./registrations.db"
    DB_ECHO: bool = False

    # ==========================================
    # Report Output
    # ==========================================
    REPORT_OUTPUT_ROOT: str = "."  # Returned file paths are relative to this root
    REPORT_UPLOADS_DIR: str = "uploads"
    REPORT_FILE_PREFIX: str = "report"
    REPORT_TIMESTAMP_FORMAT: str = "%Y-%m-%d-%H-%M-%S"
    # Unbounded range with no records: render with the processing time instead of failing
    REPORT_EMPTY_FALLBACK_TO_NOW: bool = False

    # ==========================================
    # Classifier
    # ==========================================
    CLASSIFIER_RULES_PATH: str = ""  # Empty uses the bundled classifier_rules.yml

    # ==========================================
    # Print Engine (headless Chromium)
    # ==========================================
    PRINT_ENGINE_LAUNCH_TIMEOUT_MS: int = 30000
    PRINT_RENDER_TIMEOUT_MS: int = 30000
    PRINT_PAGE_FORMAT: str = "A4"
    PRINT_PAGE_MARGIN: str = "0.5in"

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        v = v.lower()
        if v not in ("development", "production", "testing"):
            raise ValueError(f"Invalid ENVIRONMENT: {v}. Must be 'development', 'production' or 'testing'")
        return v

    @field_validator("REPORT_TIMESTAMP_FORMAT")
    @classmethod
    def validate_timestamp_format(cls, v: str) -> str:
        # Tokens end up in file names
        for forbidden in ("/", "\\", ":", " "):
            if forbidden in v:
                raise ValueError(f"REPORT_TIMESTAMP_FORMAT must not contain {forbidden!r}")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings

    @property
    def OUTPUT_ROOT(self) -> Path:
        return Path(self.REPORT_OUTPUT_ROOT)

    @property
    def CLASSIFIER_RULES_FILE(self) -> Optional[Path]:
        return Path(self.CLASSIFIER_RULES_PATH) if self.CLASSIFIER_RULES_PATH else None


settings = Settings()
