"""Directory report sink implementation."""

import logging
import mimetypes
import re
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from ui_harness.reporting.base import ReportSink
from ui_harness.reporting.directory.config import DirectorySinkConfig

log = logging.getLogger(__name__)

UNSAFE_CHARACTERS = re.compile(r"[^A-Za-z0-9._-]+")


def file_name_for(name: str, mime_type: str) -> str:
    """Build a filesystem-safe file name for an attachment.

    >>> file_name_for("login test_failure_1700000000000", "image/png")
    'login_test_failure_1700000000000.png'
    """
    stem = UNSAFE_CHARACTERS.sub("_", name).strip("_") or "attachment"
    extension = mimetypes.guess_extension(mime_type) or ".bin"
    return f"{stem}{extension}"


def write_new_file(directory: Path, file_name: str, data: bytes) -> Path:
    """Write data under a name not yet taken in the directory.

    A taken name gets a numeric suffix, e.g. `shot-1.png` after `shot.png`.
    """
    stem, suffix = Path(file_name).stem, Path(file_name).suffix
    target = directory / file_name
    counter = 0
    while True:
        try:
            with target.open("xb") as file:
                file.write(data)
        except FileExistsError:
            counter += 1
            target = directory / f"{stem}-{counter}{suffix}"
            continue
        return target


@dataclass(frozen=True, kw_only=True)
class DirectoryReportSink(ReportSink):
    """Writes every attachment as a file under one directory."""

    path: Path

    @classmethod
    @contextmanager
    def from_config(
        cls, config: DirectorySinkConfig
    ) -> Generator["DirectoryReportSink", None, None]:
        """Create the output directory and yield a sink writing into it."""
        config.path.mkdir(parents=True, exist_ok=True)
        log.info("Writing attachments to %s", config.path)
        yield cls(path=config.path)

    def attach(self, name: str, mime_type: str, data: bytes) -> None:
        """Write the attachment to <path>/<name>.<ext> without overwriting."""
        target = write_new_file(self.path, file_name_for(name, mime_type), data)
        log.debug("Stored attachment %s (%d bytes)", target, len(data))
