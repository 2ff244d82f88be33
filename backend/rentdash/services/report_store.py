"""
Report Store - keeps the latest ParsedReport as a single named JSON blob.
READ/WRITE.

load() distinguishes "nothing stored" (None) from a stored report whose
fields happen to be empty.
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from rentdash.config import get_settings
from rentdash.services.parsed_report import ParsedReport

logger = logging.getLogger(__name__)


class ReportStoreError(Exception):
    """The stored blob exists but cannot be read or written."""


class ReportStore:
    def __init__(self, directory: Union[str, Path], name: str):
        self.directory = Path(directory)
        self.name = name

    @property
    def path(self) -> Path:
        return self.directory / self.name

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Optional[ParsedReport]:
        """Return the stored report, or None when nothing has been stored."""
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(f"[STORE] Failed to read {self.path}: {e}")
            raise ReportStoreError(f"Failed to read stored report: {e}") from e
        if not isinstance(data, dict):
            raise ReportStoreError("Stored report is not a JSON object")
        return ParsedReport.from_dict(data)

    def save(self, report: ParsedReport):
        """Write the report, replacing any previous blob in one step."""
        payload = json.dumps(report.to_dict(), ensure_ascii=False)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=".tmp-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"[STORE] Failed to save {self.path}: {e}")
            raise ReportStoreError(f"Failed to save report: {e}") from e
        logger.info(f"[STORE] Saved report ({len(report.months)} periods) to {self.path}")

    def delete(self) -> bool:
        """Remove the blob. Returns False when there was nothing to remove."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise ReportStoreError(f"Failed to delete report: {e}") from e
        logger.info(f"[STORE] Deleted {self.path}")
        return True


def get_report_store() -> ReportStore:
    """Store configured from settings (used as a FastAPI dependency)."""
    settings = get_settings()
    return ReportStore(settings.storage_dir, settings.report_blob_name)
