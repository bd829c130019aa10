"""Downloadable CSV files."""

import asyncio
import logging
import tempfile
from dataclasses import dataclass
from os import PathLike
from pathlib import Path

from fastapi import Response
from fastapi.responses import FileResponse
from starlette.background import BackgroundTask

from store_audit.core.config import settings

logger = logging.getLogger(__name__)

CSV_MEDIA_TYPE = "text/csv;charset=utf-8"


async def release_after(path: str | PathLike[str], delay: float) -> None:
    """Delete a staged file once the client has had time to start reading it."""
    await asyncio.sleep(delay)
    Path(path).unlink(missing_ok=True)
    logger.debug("csv_download_released", extra={"path": str(path)})


@dataclass(frozen=True)
class CsvDownload:
    """CSV content with the filename it should be saved under."""

    filename: str
    content: str
    media_type: str = CSV_MEDIA_TYPE

    @property
    def content_disposition(self) -> str:
        return f'attachment; filename="{self.filename}"'

    def to_response(self) -> Response:
        """Attachment response carrying the CSV content."""
        return Response(
            content=self.content,
            media_type=self.media_type,
            headers={"Content-Disposition": self.content_disposition},
        )

    def stage(
        self,
        directory: str | PathLike[str] | None = None,
        release_delay: float | None = None,
    ) -> FileResponse:
        """
        Write the content to a temporary file and serve it.

        The file is deleted by a background task a fixed delay after the
        response has been sent.

        Args:
            directory: Staging directory (defaults to EXPORT_STAGING_DIR, then the system temp dir)
            release_delay: Seconds to keep the file (defaults to DOWNLOAD_RELEASE_DELAY_SECONDS)
        """
        directory = directory or settings.EXPORT_STAGING_DIR
        delay = settings.DOWNLOAD_RELEASE_DELAY_SECONDS if release_delay is None else release_delay

        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            newline="",
            suffix=".csv",
            dir=directory,
            delete=False,
        ) as handle:
            handle.write(self.content)
            staged_path = handle.name

        logger.debug("csv_download_staged", extra={"path": staged_path, "download_name": self.filename})
        return FileResponse(
            staged_path,
            media_type=self.media_type,
            filename=self.filename,
            background=BackgroundTask(release_after, staged_path, delay),
        )

    def save(self, path: str | PathLike[str]) -> Path:
        """Write the content to ``path`` and return it."""
        target = Path(path)
        target.write_text(self.content, encoding="utf-8", newline="")
        return target
