"""Asking the completion service for new file names.

Each folder is handled in two phases: an initial batch with one request per
file, then up to ``retries`` retry batches for the files that failed. A
retry batch only starts after the previous batch is fully collected.
Results are written back by index, so the tree order never depends on
completion order.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, NamedTuple, Optional

from . import naming
from .errors import CompletionError, ValidationError
from .models import FileRecord, FileState, FolderNode
from .providers import is_image_file

logger = logging.getLogger(__name__)

RETRY_NOTE = ("This is a retry for this file because it failed file validation last time "
              "for the reason: {reason}\nPlease check the file context and try again.\n")


class Suggestion(NamedTuple):
    index: int
    name: str
    error: Optional[str] = None
    invalid: bool = False


class NameSuggestionEngine:
    """Fills ``FileRecord.new_name`` for every file of a tree."""

    def __init__(
        self,
        client,
        prompt: str,
        workers: int = 4,
        timeout: Optional[float] = None,
        retries: int = 3,
        case: str = "snake",
        vision: bool = False,
    ):
        self.client = client
        self.prompt = prompt
        self.workers = max(1, workers)
        self.timeout = timeout
        self.retries = max(0, retries)
        self.case = case
        self.vision = vision
        self._merge_lock = threading.Lock()

    def run(self, root: FolderNode, executor: Optional[ThreadPoolExecutor] = None) -> FolderNode:
        """Suggest names for the whole tree, folder by folder, depth-first."""
        logger.info(f"AI processing configuration - Workers: {self.workers}, "
                    f"Timeout: {self.timeout}, Retries: {self.retries}")
        if executor is not None:
            self._process_folder(root, executor)
        else:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                self._process_folder(root, pool)
        return root

    def _process_folder(self, folder: FolderNode, pool: ThreadPoolExecutor) -> None:
        logger.info(f"Processing folder: {folder.name}")
        files = folder.files

        if files:
            self._dispatch(files, list(range(len(files))), pool)

            for attempt in range(1, self.retries + 1):
                failed = [i for i, record in enumerate(files) if record.failed]
                if not failed:
                    break
                logger.info(f"Retry attempt {attempt}/{self.retries} for {len(failed)} files in {folder.name}")
                self._dispatch(files, failed, pool)

            for record in files:
                if record.failed:
                    logger.warning(f"No valid name for {record.name} after "
                                   f"{record.attempts} attempts: {record.failed_reason}")
                    record.new_name = ""

        for child in folder.children:
            self._process_folder(child, pool)

    def _dispatch(self, files: List[FileRecord], indices: List[int], pool: ThreadPoolExecutor) -> None:
        """Submit one batch and wait for all of it."""
        futures = {}
        for index in indices:
            record = files[index]
            record.state = FileState.NAME_REQUESTED
            record.attempts += 1
            futures[pool.submit(self.suggest, index, record)] = index

        for future in as_completed(futures):
            result = future.result()
            with self._merge_lock:
                self._merge(files[result.index], result)

    def _merge(self, record: FileRecord, result: Suggestion) -> None:
        if result.error is None:
            record.new_name = result.name
            record.failed_reason = ""
            record.state = FileState.NAME_ACCEPTED
            logger.info(f"Generated new name for {record.name}: {result.name}")
            return

        record.new_name = ""
        record.failed_reason = result.error
        record.state = FileState.NAME_REJECTED
        if result.invalid:
            record.retry_reason = result.error
        logger.warning(f"Failed to process file {record.name}: {result.error}")

    @staticmethod
    def request_content(record: FileRecord) -> str:
        """The file's context, followed by the latest validation failure if any."""
        if not record.retry_reason:
            return record.context
        return record.context + "\n\n" + RETRY_NOTE.format(reason=record.retry_reason)

    def suggest(self, index: int, record: FileRecord) -> Suggestion:
        """Ask for one name and run it through the naming pipeline."""
        image_path = record.path if self.vision and is_image_file(record.path) else None
        content = self.request_content(record)
        try:
            raw = self.client.complete(self.prompt, content, image_path=image_path, timeout=self.timeout)
        except CompletionError as e:
            return Suggestion(index, "", str(e))

        try:
            name = naming.process_response(raw, record.name, self.case)
        except ValidationError as e:
            return Suggestion(index, "", e.reason, invalid=True)
        return Suggestion(index, name)
