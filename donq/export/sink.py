"""DONQ — Export Sink.

Append-only mirror of approved donations. CSV mode appends one line; workbook
mode loads the whole .xlsx, appends a row and saves it again, so its cost
grows with the file. Writes to the same file are serialized by a per-path lock.
"""

import csv
import threading
from pathlib import Path
from typing import Callable, Dict

from openpyxl import Workbook, load_workbook

from donq.core.errors import ExportWriteError
from donq.core.logging import get_logger
from donq.export.config_store import ExportConfiguration
from donq.models.donation_models import EXPORT_COLUMNS, DonationRecord

logger = get_logger("export.sink")

SHEET_NAME = "Donations"

_registry_lock = threading.Lock()
_path_locks: Dict[Path, threading.Lock] = {}


def lock_for(path: Path) -> threading.Lock:
    """Return the process-wide lock guarding writes to ``path``."""
    with _registry_lock:
        lock = _path_locks.get(path)
        if lock is None:
            lock = _path_locks[path] = threading.Lock()
        return lock


class ExportSink:
    """Appends approved donations to the configured export file."""

    def __init__(self, config_provider: Callable[[], ExportConfiguration]):
        self._config_provider = config_provider

    def append_approved(self, record: DonationRecord) -> Path:
        """Write one row for ``record`` and return the file written."""
        config = self._config_provider()
        target = config.output_file
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with lock_for(target):
                if config.format == "spreadsheet":
                    self._append_workbook(target, record)
                else:
                    self._append_csv(target, record)
        except ExportWriteError:
            raise
        except Exception as e:
            # openpyxl raises a mix of zipfile/KeyError/InvalidFileException
            raise ExportWriteError(
                f"Could not export donation {record.id} to {target}: {e}",
                str(target),
            ) from e

        logger.info(
            f"Exported donation to {config.format}",
            extra={"donation_id": record.id, "path": str(target)},
        )
        return target

    def _append_csv(self, target: Path, record: DonationRecord) -> None:
        with target.open("a", newline="", encoding="utf-8") as handle:
            csv.writer(handle).writerow(record.export_row())

    def _append_workbook(self, target: Path, record: DonationRecord) -> None:
        if target.exists():
            workbook = load_workbook(target)
            if SHEET_NAME in workbook.sheetnames:
                sheet = workbook[SHEET_NAME]
            else:
                sheet = workbook.create_sheet(SHEET_NAME)
                sheet.append(EXPORT_COLUMNS)
        else:
            workbook = Workbook()
            sheet = workbook.active
            sheet.title = SHEET_NAME
            sheet.append(EXPORT_COLUMNS)
        sheet.append(record.export_row())
        workbook.save(target)
