"""
Custom Exceptions for Patient Reports
=====================================

Every failure of the report pipeline surfaces as one of these, so callers
can tell a bad request apart from a broken renderer or a full disk.

Usage:
    from app.core.exceptions import ReportError, RenderTimeoutError

    try:
        paths = await report_pipeline.generate_report(records, date_range)
    except ReportError as e:
        logger.error(f"Report generation failed: {e.code}: {e.message}")
        raise
"""

from typing import Optional, Any, Dict


class ReportError(Exception):
    """Base exception for all report pipeline errors"""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Input Errors
# ============================================

class InputRangeInvalidError(ReportError):
    """Date range has only one bound, or its bounds are reversed"""

    def __init__(self, message: str = "Date range must have both bounds or none", **details):
        super().__init__(message, code="INPUT_RANGE_INVALID", details=details)


class NoMatchingRecordsError(ReportError):
    """No records participated and no range was supplied, so the report has no dates"""

    def __init__(self, message: str = "No records matched and no date range was supplied"):
        super().__init__(message, code="NO_MATCHING_RECORDS")


class ClassifierConfigError(ReportError):
    """Classifier rule table is missing or malformed"""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(
            message,
            code="CLASSIFIER_CONFIG_INVALID",
            details={"source": source} if source else None
        )


# ============================================
# Rendering Errors
# ============================================

class RenderError(ReportError):
    """Base class for print engine failures"""
    pass


class RenderEngineUnavailableError(RenderError):
    """Headless rendering engine could not be started"""

    def __init__(self, reason: str):
        super().__init__(
            f"Print engine unavailable: {reason}",
            code="RENDER_ENGINE_UNAVAILABLE",
            details={"reason": reason}
        )


class RenderTimeoutError(RenderError):
    """Page content did not settle or capture did not finish in time"""

    def __init__(self, timeout_ms: int, stage: str = "render"):
        super().__init__(
            f"Print engine timed out during {stage} after {timeout_ms}ms",
            code="RENDER_TIMEOUT",
            details={"timeout_ms": timeout_ms, "stage": stage}
        )


class ReportGenerationError(ReportError):
    """Document rendering failed for a reason outside the known taxonomy"""

    def __init__(self, artifact: str, reason: str):
        super().__init__(
            f"Failed to render {artifact} report: {reason}",
            code="REPORT_GENERATION_FAILED",
            details={"artifact": artifact}
        )


# ============================================
# Storage Errors
# ============================================

class StorageWriteError(ReportError):
    """Output directory could not be created, an artifact could not be written, or file names would be unsafe"""

    def __init__(self, path: str, reason: str):
        super().__init__(
            f"Failed to write '{path}': {reason}",
            code="STORAGE_WRITE_FAILURE",
            details={"path": path}
        )
