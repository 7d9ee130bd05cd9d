"""Building the in-memory folder tree for a scan root.

Directory listings and per-file decoding run on a shared thread pool. A
listing task only reports what it found; the coordinating thread submits
the follow-up work, so no worker ever waits on another worker and a pool of
any size makes progress.
"""

import logging
import os
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .decoders import DecoderRegistry, default_registry
from .errors import DecodeError, ScanError, SetupError
from .models import FileRecord, FolderNode
from .utils import format_size, is_skipped_name

logger = logging.getLogger(__name__)

CONTEXT_TEMPLATE = "Content: {content}\nFile: {name}\nFolder: {folder}\nType: {ext}\nSize: {size}"


def list_directory(path: Path) -> Tuple[List[Path], List[Path]]:
    """Return (subdirectories, files) of ``path``, sorted by name."""
    subdirs, files = [], []
    try:
        with os.scandir(path) as entries:
            for entry in sorted(entries, key=lambda e: e.name):
                if is_skipped_name(entry.name):
                    continue
                if entry.is_dir(follow_symlinks=False):
                    subdirs.append(Path(entry.path))
                elif entry.is_file():
                    files.append(Path(entry.path))
    except OSError as e:
        raise ScanError(f"cannot list {path}: {e}") from e
    return subdirs, files


class TreeBuilder:
    """Walks a directory and produces a ``FolderNode`` snapshot."""

    def __init__(
        self,
        max_file_size: int = 10 * 1024 * 1024,
        max_content_length: int = 5000,
        registry: Optional[DecoderRegistry] = None,
        read_context: bool = True,
    ):
        self.max_file_size = max_file_size
        self.max_content_length = max_content_length
        self.registry = registry or default_registry()
        self.read_context = read_context

    def build(self, root: Path, workers: int = 4, executor: Optional[ThreadPoolExecutor] = None) -> FolderNode:
        """Scan ``root`` and return its tree.

        Raises:
            SetupError: When the root itself cannot be read
        """
        root = Path(root).expanduser().resolve()
        if not root.is_dir():
            raise SetupError(f"Scan root is not a readable directory: {root}")
        try:
            listing = list_directory(root)
        except ScanError as e:
            raise SetupError(str(e)) from e

        logger.info(f"Scanning directory: {root}")
        if executor is not None:
            return self._build(root, listing, executor)
        with ThreadPoolExecutor(max_workers=max(1, workers)) as pool:
            return self._build(root, listing, pool)

    def _build(self, root: Path, listing, pool: ThreadPoolExecutor) -> FolderNode:
        root_node = FolderNode(name=root.name, path=root)
        # slots hold files by index until all decoders finish; None means dropped
        slots: Dict[int, List[Optional[FileRecord]]] = {}
        children: Dict[int, List[Optional[FolderNode]]] = {}
        pending: Dict[Future, Tuple] = {}

        def expand(node: FolderNode, subdirs: List[Path], files: List[Path]) -> None:
            slots[id(node)] = [None] * len(files)
            children[id(node)] = [None] * len(subdirs)
            for index, file_path in enumerate(files):
                future = pool.submit(self.scan_file, file_path)
                pending[future] = ("file", node, index)
            for index, dir_path in enumerate(subdirs):
                child = FolderNode(name=dir_path.name, path=dir_path)
                future = pool.submit(list_directory, dir_path)
                pending[future] = ("dir", node, index, child)

        nodes = {id(root_node): root_node}
        expand(root_node, *listing)

        while pending:
            done, _ = wait(list(pending), return_when=FIRST_COMPLETED)
            for future in done:
                task = pending.pop(future)
                kind, parent, index = task[0], task[1], task[2]
                if kind == "file":
                    slots[id(parent)][index] = future.result()
                    continue
                child = task[3]
                try:
                    subdirs, files = future.result()
                except ScanError as e:
                    logger.error(f"Skipping directory {child.path}: {e}")
                    continue
                children[id(parent)][index] = child
                nodes[id(child)] = child
                expand(child, subdirs, files)

        for node_id, node in nodes.items():
            node.files = [record for record in slots[node_id] if record is not None]
            node.children = [child for child in children[node_id] if child is not None]

        logger.info(f"Scanned {root_node.file_count()} files under {root}")
        return root_node

    def scan_file(self, path: Path) -> Optional[FileRecord]:
        """Stat and decode one file; returns None when the file is dropped."""
        try:
            size = path.stat().st_size
        except OSError as e:
            logger.error(f"Failed to get file info for {path}: {e}")
            return None

        if size > self.max_file_size:
            logger.warning(f"Skipping {path}: {format_size(size)} exceeds the size limit")
            return None

        formatted = format_size(size)
        content = ""
        if self.read_context:
            try:
                content = self.registry.decode(path)
            except DecodeError as e:
                logger.warning(f"Failed to decode {path}: {e}")
                content = f"[Could not read the content of {path.name}]"
            except ScanError as e:
                logger.error(f"Failed to read {path}: {e}")
                return None

        context = CONTEXT_TEMPLATE.format(
            content=content[: self.max_content_length],
            name=path.name,
            folder=path.parent,
            ext=path.suffix,
            size=formatted,
        )
        logger.debug(f"Processed file: {path.name} (size: {formatted})")
        return FileRecord(
            name=path.name,
            unchanged_path=path,
            path=path,
            size=size,
            formatted_size=formatted,
            context=context,
        )
