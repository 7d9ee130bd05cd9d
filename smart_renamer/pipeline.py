"""One end-to-end run: scan, suggest, apply, journal."""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional

from .approval import ApprovalGate, AutoApproveOracle
from .decoders import DecoderRegistry
from .journal import ChangeJournal
from .models import FolderNode, Job, ProcessResult
from .processor import SafeProcessor, summarize
from .suggest import NameSuggestionEngine
from .tree import TreeBuilder

logger = logging.getLogger(__name__)


class RunReport(NamedTuple):
    tree: FolderNode
    results: List[ProcessResult]
    summary: Dict[str, int]
    output: Path
    journal_path: Optional[Path]


def run(job: Job, client, oracle=None, registry: Optional[DecoderRegistry] = None) -> RunReport:
    """Run the whole pipeline for ``job``.

    Raises:
        SetupError: When the scan root or output root is unusable
        JournalError: When the journal could not be written; renames stay done
    """
    builder = TreeBuilder(
        max_file_size=job.max_file_size,
        max_content_length=job.max_content_length,
        registry=registry,
        read_context=job.read_context,
    )
    engine = NameSuggestionEngine(
        client,
        job.prompt,
        workers=job.workers,
        timeout=job.timeout_per_call,
        retries=job.retries,
        case=job.case,
        vision=job.vision,
    )

    with ThreadPoolExecutor(max_workers=max(1, job.workers)) as pool:
        tree = builder.build(job.root, executor=pool)
        engine.run(tree, executor=pool)

    journal = ChangeJournal(tree.path, enabled=job.logging_enabled and not job.dry_run)
    gate = ApprovalGate(oracle or AutoApproveOracle(), auto_approve=job.auto_approve)
    processor = SafeProcessor(
        tree,
        job.output_root,
        dry_run=job.dry_run,
        organize=job.organize,
        gate=gate,
        journal=journal,
    )
    results = processor.process()
    journal_path = journal.close()

    summary = summarize(results)
    logger.info(f"Run finished: {summary['renamed']} renamed, {summary['failed']} failed, "
                f"{summary['unchanged']} unchanged")
    return RunReport(tree, results, summary, job.output_root, journal_path)
