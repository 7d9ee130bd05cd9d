"""Durable, session-scoped record of rename and revert operations."""

import datetime
import json
import logging
import os
import threading
from pathlib import Path
from typing import List, Optional, Union

from .errors import JournalError
from .models import ChangeLog, ChangeLogEntry, OperationKind

logger = logging.getLogger(__name__)

METADATA_DIR = ".smart_renamer"
LOGS_DIR = "logs"


def logs_dir(base_dir: Path) -> Path:
    return Path(base_dir) / METADATA_DIR / LOGS_DIR


def make_session_id(start_time: datetime.datetime) -> str:
    return start_time.strftime("%Y%m%d%H%M%S%f")


class ChangeJournal:
    """Append-only journal for one run.

    Entries are appended under a lock. Every append rewrites the JSON
    document atomically so an interrupted run still leaves a readable
    journal; ``close`` stamps the end time and reports any write failure.
    A disabled journal accepts appends and writes nothing.
    """

    def __init__(self, base_dir: Union[str, Path], enabled: bool = True):
        self.base_dir = Path(base_dir)
        self.enabled = enabled
        start_time = datetime.datetime.now()
        self.changelog = ChangeLog(session_id=make_session_id(start_time), start_time=start_time)
        self.path = logs_dir(self.base_dir) / f"changes_{self.session_id}.json"
        self._lock = threading.Lock()
        self._error: Optional[Exception] = None
        self._closed = False

    @property
    def session_id(self) -> str:
        return self.changelog.session_id

    @property
    def entries(self) -> List[ChangeLogEntry]:
        with self._lock:
            return list(self.changelog.entries)

    def log_operation(
        self,
        original_path: Union[str, Path],
        new_path: Union[str, Path],
        success: bool,
        error: Optional[str] = None,
        operation: OperationKind = OperationKind.RENAME,
    ) -> Optional[ChangeLogEntry]:
        """Record an operation whose outcome is known."""
        if not self.enabled:
            return None

        original = Path(original_path).absolute()
        try:
            relative = original.relative_to(self.base_dir.absolute())
        except ValueError:
            relative = Path(original.name)

        entry = ChangeLogEntry(
            timestamp=datetime.datetime.now(),
            operation=operation,
            original_path=str(original),
            new_path=str(Path(new_path).absolute()),
            base_dir=str(self.base_dir.absolute()),
            relative_path=str(relative),
            success=success,
            error=str(error) if error else None,
        )
        with self._lock:
            if self._closed:
                raise JournalError(f"Journal {self.path} is already closed")
            self.changelog.entries.append(entry)
            self._flush()
        return entry

    def close(self) -> Optional[Path]:
        """Finalize the journal.

        Returns:
            Path of the written journal, or None when disabled

        Raises:
            JournalError: When the journal could not be written
        """
        if not self.enabled:
            return None
        with self._lock:
            if self._closed:
                return self.path
            self.changelog.end_time = datetime.datetime.now()
            self._flush()
            self._closed = True
            error = self._error
        if error is not None:
            raise JournalError(f"Failed to write log file {self.path}: {error}") from error
        logger.info(f"Change journal written to {self.path}")
        return self.path

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _flush(self) -> None:
        tmp_path = self.path.with_suffix(".json.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(self.changelog.to_dict(), f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Failed to write to log file: {e}")
            self._error = e


def load_journal(path: Union[str, Path]) -> ChangeLog:
    """Read a journal artifact back.

    Raises:
        JournalError: When the file is missing or malformed
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return ChangeLog.from_dict(data)
    except OSError as e:
        raise JournalError(f"Failed to read log file {path}: {e}") from e
    except (json.JSONDecodeError, KeyError, ValueError) as e:
        raise JournalError(f"Failed to parse log file {path}: {e}") from e


def list_journals(base_dir: Union[str, Path]) -> List[Path]:
    """Journal files under ``base_dir``, newest first."""
    directory = logs_dir(Path(base_dir))
    if not directory.is_dir():
        return []
    return sorted(directory.glob("changes_*.json"), reverse=True)
