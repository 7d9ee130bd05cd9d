"""Applying suggested names safely.

Sources are never touched. Phase one copies every scanned file into the
output root (mirrored, or bucketed by category); phase two renames the
copies. A dry run computes exactly the same destinations without writing
anything.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Set

from .approval import ApprovalGate, AutoApproveOracle
from .categories import category_for
from .errors import RenameError, SetupError
from .journal import ChangeJournal
from .models import FileRecord, FileState, FolderNode, ProcessResult
from .utils import copy_file, unique_path

logger = logging.getLogger(__name__)


class SafeProcessor:
    """Materializes a suggested-name tree into an output root and renames the copies."""

    def __init__(
        self,
        tree: FolderNode,
        output: Path,
        dry_run: bool = True,
        organize: bool = False,
        gate: Optional[ApprovalGate] = None,
        journal: Optional[ChangeJournal] = None,
    ):
        self.tree = tree
        self.output = Path(output)
        self.dry_run = dry_run
        self.organize = organize
        self.gate = gate or ApprovalGate(AutoApproveOracle(), auto_approve=True)
        self.journal = journal
        self._working: Dict[int, Path] = {}
        self._copy_errors: Dict[int, str] = {}
        self._occupied: Set[Path] = set()

    def layout_path(self, record: FileRecord) -> Path:
        """Where a file lands in the output root before renaming."""
        if self.organize:
            return self.output / category_for(record.name) / record.name
        try:
            relative = record.unchanged_path.relative_to(self.tree.path)
        except ValueError:
            relative = Path(record.name)
        return self.output / relative

    def process(self) -> List[ProcessResult]:
        """Run both phases and return one result per scanned file.

        Raises:
            SetupError: When the output root cannot be created
        """
        logger.info("Starting safe mode processing")
        self._working.clear()
        self._copy_errors.clear()
        self._occupied.clear()

        if not self.dry_run:
            try:
                self.output.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.error(f"Failed to create output directory: {e}")
                raise SetupError(f"Failed to create output directory {self.output}: {e}") from e
            logger.info(f"Created output directory: {self.output}")

        self._materialize()

        logger.info("Starting file processing phase")
        results = [self._rename(record) for record in self.tree.iter_files()]
        logger.info("Completed file processing phase")
        return results

    def _materialize(self) -> None:
        """Copy phase; in a dry run only the destinations are computed."""
        claimed: Set[Path] = set()
        for record in self.tree.iter_files():
            dest = unique_path(self.layout_path(record), claimed)
            claimed.add(dest)

            if not self.dry_run:
                try:
                    copy_file(record.unchanged_path, dest)
                except RenameError as e:
                    self._copy_errors[id(record)] = str(e)
                    continue
                record.path = dest
            self._working[id(record)] = dest
            self._occupied.add(dest)

    def _rename(self, record: FileRecord) -> ProcessResult:
        if id(record) in self._copy_errors:
            error = self._copy_errors[id(record)]
            record.state = FileState.RENAME_FAILED
            self._log(record.unchanged_path, self.layout_path(record), False, error)
            return ProcessResult(record.unchanged_path, record.unchanged_path, False, error)

        current = self._working[id(record)]
        if not record.new_name or record.new_name == current.name:
            logger.info(f"No new name generated for {record.name}")
            record.state = FileState.NOT_RENAMED
            return ProcessResult(record.unchanged_path, record.unchanged_path, True)

        occupied = self._occupied - {current}
        dest = unique_path(current.parent / record.new_name, occupied)

        if self.dry_run:
            logger.info(f"Dry run: Would rename {record.name} to {dest.name}")
            self._move_claim(current, dest)
            return ProcessResult(record.unchanged_path, dest, True, changed=True)

        if not self.gate.request(record.name, dest.name):
            record.state = FileState.NOT_RENAMED
            return ProcessResult(record.unchanged_path, current, True)

        try:
            current.rename(dest)
        except OSError as e:
            logger.error(f"Failed to rename file {record.name} to {dest.name}: {e}")
            record.state = FileState.RENAME_FAILED
            error = f"failed to rename file: {e}"
            self._log(record.unchanged_path, dest, False, error)
            return ProcessResult(record.unchanged_path, dest, False, error)

        logger.info(f"Successfully renamed file {record.name} to {dest.name}")
        self._move_claim(current, dest)
        record.path = dest
        record.state = FileState.RENAMED
        self._log(record.unchanged_path, dest, True)
        return ProcessResult(record.unchanged_path, dest, True, changed=True)

    def _move_claim(self, current: Path, dest: Path) -> None:
        self._occupied.discard(current)
        self._occupied.add(dest)

    def _log(self, original: Path, new: Path, success: bool, error: Optional[str] = None) -> None:
        if self.journal is not None and not self.dry_run:
            self.journal.log_operation(original, new, success, error)


def summarize(results: List[ProcessResult]) -> Dict[str, int]:
    """Count renamed, failed and unchanged files."""
    summary = {"renamed": 0, "failed": 0, "unchanged": 0}
    for result in results:
        if not result.success:
            summary["failed"] += 1
        elif result.changed:
            summary["renamed"] += 1
        else:
            summary["unchanged"] += 1
    return summary
