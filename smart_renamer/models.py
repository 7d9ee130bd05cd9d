"""Data model shared by the scan, suggestion, rename and journal stages."""

import datetime
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, NamedTuple, Optional


class FileState(str, Enum):
    """Lifecycle of a single file through one run."""
    SCANNED = "scanned"
    NAME_REQUESTED = "name_requested"
    NAME_ACCEPTED = "name_accepted"
    NAME_REJECTED = "name_rejected"
    RENAMED = "renamed"
    RENAME_FAILED = "rename_failed"
    NOT_RENAMED = "not_renamed"


class OperationKind(str, Enum):
    RENAME = "rename"
    REVERT = "revert"


class Approval(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    APPROVE_ALL = "approve_all"


@dataclass
class FileRecord:
    """Per-file metadata, derived context and suggested-name state."""
    name: str
    unchanged_path: Path
    path: Path
    size: int = 0
    formatted_size: str = ""
    context: str = ""
    new_name: str = ""
    failed_reason: str = ""
    retry_reason: str = ""
    attempts: int = 0
    state: FileState = FileState.SCANNED

    @property
    def failed(self) -> bool:
        return bool(self.failed_reason)

    @property
    def extension(self) -> str:
        return Path(self.name).suffix


@dataclass
class FolderNode:
    """In-memory snapshot of one scanned directory."""
    name: str
    path: Path
    files: List[FileRecord] = field(default_factory=list)
    children: List["FolderNode"] = field(default_factory=list)

    def iter_files(self) -> Iterator[FileRecord]:
        """Yield every file in the subtree, depth-first in tree order."""
        yield from self.files
        for child in self.children:
            yield from child.iter_files()

    def iter_folders(self) -> Iterator["FolderNode"]:
        yield self
        for child in self.children:
            yield from child.iter_folders()

    def file_count(self) -> int:
        return sum(1 for _ in self.iter_files())


@dataclass
class Job:
    """Everything one run needs to know."""
    root: Path
    prompt: str
    output: Optional[Path] = None
    workers: int = 4
    timeout_per_call: float = 30.0
    retries: int = 3
    dry_run: bool = True
    auto_approve: bool = False
    organize: bool = False
    logging_enabled: bool = True
    case: str = "snake"
    vision: bool = False
    max_file_size: int = 10 * 1024 * 1024
    max_content_length: int = 5000
    read_context: bool = True

    @property
    def output_root(self) -> Path:
        if self.output is not None:
            return self.output
        return self.root / ".smart_renamer" / "renamed"


class ProcessResult(NamedTuple):
    """Outcome of one file in the rename phase."""
    original_path: Path
    new_path: Path
    success: bool
    error: Optional[str] = None
    changed: bool = False


@dataclass(frozen=True)
class ChangeLogEntry:
    """One journaled operation."""
    timestamp: datetime.datetime
    operation: OperationKind
    original_path: str
    new_path: str
    base_dir: str
    relative_path: str
    success: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict:
        data = {
            "timestamp": self.timestamp.isoformat(),
            "operation": self.operation.value,
            "original_path": self.original_path,
            "new_path": self.new_path,
            "base_dir": self.base_dir,
            "relative_path": self.relative_path,
            "success": self.success,
        }
        if self.error:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "ChangeLogEntry":
        return cls(
            timestamp=datetime.datetime.fromisoformat(data["timestamp"]),
            operation=OperationKind(data.get("operation", OperationKind.RENAME.value)),
            original_path=data["original_path"],
            new_path=data["new_path"],
            base_dir=data.get("base_dir", ""),
            relative_path=data.get("relative_path", ""),
            success=bool(data.get("success", False)),
            error=data.get("error"),
        )


@dataclass
class ChangeLog:
    """Session-scoped list of journaled operations."""
    session_id: str
    start_time: datetime.datetime
    end_time: Optional[datetime.datetime] = None
    entries: List[ChangeLogEntry] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "session_id": self.session_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "entries": [entry.to_dict() for entry in self.entries],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "ChangeLog":
        end_time = data.get("end_time")
        return cls(
            session_id=data["session_id"],
            start_time=datetime.datetime.fromisoformat(data["start_time"]),
            end_time=datetime.datetime.fromisoformat(end_time) if end_time else None,
            entries=[ChangeLogEntry.from_dict(item) for item in data.get("entries", [])],
        )
