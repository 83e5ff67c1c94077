"""
Report Storage - output directory, file naming and the paired write.

One timestamp token is minted per request and names both files:

    uploads/report-2024-03-05-14-07-09.docx
    uploads/report-2024-03-05-14-07-09.pdf

Two requests in the same second share a token and the later pair
overwrites the earlier one.
"""

import re
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Union

import aiofiles
import aiofiles.os

from app.core.config import settings
from app.core.exceptions import StorageWriteError
from app.core.logging_config import logger
from app.schemas.report import ReportArtifact, ReportFormat


_UNSAFE_TOKEN = re.compile(r"[\s/\\:]")


class ReportStorage:
    """Writes report artifacts under <output_root>/<uploads_dir>"""

    def __init__(
        self,
        output_root: Optional[Union[str, Path]] = None,
        uploads_dir: Optional[str] = None,
        file_prefix: Optional[str] = None,
        timestamp_format: Optional[str] = None,
    ):
        self.output_root = Path(output_root) if output_root is not None else settings.OUTPUT_ROOT
        self.uploads_dir = uploads_dir or settings.REPORT_UPLOADS_DIR
        self.file_prefix = file_prefix or settings.REPORT_FILE_PREFIX
        self.timestamp_format = timestamp_format or settings.REPORT_TIMESTAMP_FORMAT

        sample = datetime(2000, 12, 31, 23, 59, 59).strftime(self.timestamp_format)
        if not sample or _UNSAFE_TOKEN.search(sample):
            raise StorageWriteError(
                str(self.base_dir),
                f"timestamp format {self.timestamp_format!r} does not give filesystem-safe names",
            )

    @property
    def base_dir(self) -> Path:
        return self.output_root / self.uploads_dir

    def mint_timestamp_token(self, now: Optional[datetime] = None) -> str:
        """Second-resolution, filesystem-safe token for one request"""
        token = (now or datetime.now()).strftime(self.timestamp_format)
        self._check_token(token)
        return token

    def assign_filename(self, timestamp_token: str, kind: ReportFormat) -> str:
        self._check_token(timestamp_token)
        return f"{self.file_prefix}-{timestamp_token}.{kind.extension}"

    def relative_path(self, filename: str) -> str:
        """Path relative to the output root, always with forward slashes"""
        return Path(self.uploads_dir, filename).as_posix()

    def prepare_output(self) -> Path:
        """Create the uploads directory if needed"""
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageWriteError(str(self.base_dir), e.strerror or str(e)) from e
        return self.base_dir

    async def write_artifacts(
        self,
        timestamp_token: str,
        payloads: Dict[ReportFormat, bytes],
    ) -> List[ReportArtifact]:
        """
        Write every payload or none of them.

        Each payload goes to a hidden temp file first; the temp files are
        moved into place only after all writes succeed. On failure every
        temp file and every already-moved file of this batch is removed.

        Raises:
            StorageWriteError: directory creation, write or rename failed
        """
        base_dir = self.prepare_output()

        staged: Dict[ReportFormat, Path] = {}
        placed: List[Path] = []
        try:
            for kind, data in payloads.items():
                final_path = base_dir / self.assign_filename(timestamp_token, kind)
                temp_path = final_path.with_name(f".{final_path.name}.tmp")
                staged[kind] = temp_path
                async with aiofiles.open(temp_path, "wb") as f:
                    await f.write(data)

            artifacts = []
            for kind, temp_path in staged.items():
                final_path = base_dir / self.assign_filename(timestamp_token, kind)
                await aiofiles.os.replace(temp_path, final_path)
                placed.append(final_path)
                artifacts.append(ReportArtifact(
                    format=kind,
                    relative_path=self.relative_path(final_path.name),
                    timestamp_token=timestamp_token,
                ))
        except OSError as e:
            await self._discard([*staged.values(), *placed])
            failed = getattr(e, "filename", None) or str(base_dir)
            logger.error(f"[ReportStorage] Write failed for token {timestamp_token}: {e}")
            raise StorageWriteError(str(failed), e.strerror or str(e)) from e

        logger.info(
            f"[ReportStorage] Wrote {len(artifacts)} artifacts: "
            + ", ".join(a.relative_path for a in artifacts)
        )
        return artifacts

    @staticmethod
    async def _discard(paths: List[Path]) -> None:
        for path in paths:
            if await aiofiles.os.path.exists(path):
                try:
                    await aiofiles.os.remove(path)
                except OSError as e:
                    logger.warning(f"[ReportStorage] Could not remove partial artifact {path}: {e}")

    @staticmethod
    def _check_token(token: str) -> None:
        if not token or _UNSAFE_TOKEN.search(token):
            raise ValueError(f"Timestamp token is not filesystem-safe: {token!r}")


# Singleton instance
report_storage = ReportStorage()
