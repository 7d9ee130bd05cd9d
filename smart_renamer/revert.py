"""Restoring pre-rename names from a change journal.

Planning is a pure function over the journal's entries; only
``execute_revert`` touches the filesystem, and it only ever writes inside a
fresh revert directory, never over a live file.
"""

import logging
from pathlib import Path
from typing import List, NamedTuple, Optional, Union

from .approval import ApprovalGate, AutoApproveOracle
from .errors import RenameError
from .journal import METADATA_DIR, ChangeJournal, load_journal
from .models import ChangeLog, ChangeLogEntry, OperationKind, ProcessResult
from .utils import copy_file

logger = logging.getLogger(__name__)


class RevertAction(NamedTuple):
    """Copy ``source`` (the renamed file) to ``target`` (its original name)."""
    source: Path
    target: Path
    entry: ChangeLogEntry


def journal_base_dir(changelog: ChangeLog) -> Path:
    """Base directory recorded by the journal's first entry."""
    if not changelog.entries:
        return Path(".")
    first = changelog.entries[0]
    return Path(first.base_dir) if first.base_dir else Path(first.original_path).parent


def revert_dir_for(base_dir: Path, session_id: str) -> Path:
    return Path(base_dir) / METADATA_DIR / "reverted" / session_id


def plan_revert(changelog: ChangeLog, revert_dir: Path) -> List[RevertAction]:
    """One action per successful rename; failed entries have nothing to undo."""
    actions = []
    for entry in changelog.entries:
        if entry.operation is not OperationKind.RENAME or not entry.success:
            continue
        relative = Path(entry.relative_path) if entry.relative_path else Path(Path(entry.original_path).name)
        if relative.is_absolute() or ".." in relative.parts:
            relative = Path(Path(entry.original_path).name)
        actions.append(RevertAction(Path(entry.new_path), Path(revert_dir) / relative, entry))
    return actions


def execute_revert(actions: List[RevertAction], gate: ApprovalGate, journal: ChangeJournal) -> List[ProcessResult]:
    """Perform the copies and journal each one as a ``revert`` operation."""
    results = []
    for action in actions:
        if not gate.request(action.source.name, action.target.name):
            results.append(ProcessResult(action.source, action.source, True))
            continue
        try:
            copy_file(action.source, action.target)
        except RenameError as e:
            journal.log_operation(action.source, action.target, False, str(e), OperationKind.REVERT)
            results.append(ProcessResult(action.source, action.target, False, str(e)))
            continue
        journal.log_operation(action.source, action.target, True, operation=OperationKind.REVERT)
        logger.info(f"Reverted: {action.source.name} to {action.target}")
        results.append(ProcessResult(action.source, action.target, True, changed=True))
    return results


class RevertResult(NamedTuple):
    revert_dir: Path
    actions: List[RevertAction]
    results: List[ProcessResult]
    journal_path: Optional[Path]


def process_revert(
    journal_path: Union[str, Path],
    oracle=None,
    auto_approve: bool = False,
    logging_enabled: bool = True,
    dry_run: bool = False,
) -> RevertResult:
    """Replay a journal into a fresh revert directory.

    Raises:
        JournalError: When the journal cannot be read or the new one written
    """
    logger.info(f"Loading changes file {journal_path}")
    changelog = load_journal(journal_path)
    base_dir = journal_base_dir(changelog)

    journal = ChangeJournal(base_dir, enabled=logging_enabled and not dry_run)
    revert_dir = revert_dir_for(base_dir, journal.session_id)
    actions = plan_revert(changelog, revert_dir)
    logger.info(f"Planned {len(actions)} reverts into {revert_dir}")

    if dry_run:
        results = [ProcessResult(a.source, a.target, True, changed=True) for a in actions]
        return RevertResult(revert_dir, actions, results, None)

    gate = ApprovalGate(oracle or AutoApproveOracle(), auto_approve=auto_approve)
    results = execute_revert(actions, gate, journal)
    written = journal.close()
    logger.info(f"Revert operation completed. Files have been placed in: {revert_dir}")
    return RevertResult(revert_dir, actions, results, written)
