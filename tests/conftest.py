"""Shared fixtures and fakes for the test suite."""

import re
import threading
from pathlib import Path

import pytest

from smart_renamer.errors import CompletionError
from smart_renamer.models import Approval, FileRecord, FolderNode

FILE_LINE = re.compile(r"^File: (.+)$", re.MULTILINE)


class FakeCompletionClient:
    """Answers from a name → response mapping; records every call."""

    def __init__(self, responses=None, default="renamed_file.txt"):
        self.responses = responses or {}
        self.default = default
        self.calls = []
        self._lock = threading.Lock()

    def complete(self, system_prompt, user_content, image_path=None, timeout=None):
        match = FILE_LINE.search(user_content)
        name = match.group(1) if match else ""
        with self._lock:
            self.calls.append({"name": name, "content": user_content,
                               "image_path": image_path, "timeout": timeout})
        response = self.responses.get(name, self.default)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(user_content)
        return response

    def calls_for(self, name):
        return [call for call in self.calls if call["name"] == name]


class ScriptedOracle:
    """Returns queued answers in order and records the questions."""

    def __init__(self, answers=None):
        self.answers = list(answers or [])
        self.questions = []

    def ask(self, old_name, new_name):
        self.questions.append((old_name, new_name))
        if self.answers:
            return self.answers.pop(0)
        return Approval.APPROVE


def make_record(path: Path, context: str = "") -> FileRecord:
    return FileRecord(
        name=path.name,
        unchanged_path=path,
        path=path,
        size=path.stat().st_size if path.exists() else 0,
        context=context or f"Content: sample\nFile: {path.name}",
    )


@pytest.fixture
def sample_tree(tmp_path):
    """A small directory with a nested folder and a hidden file."""
    root = tmp_path / "inbox"
    (root / "nested").mkdir(parents=True)
    (root / "report.pdf").write_bytes(b"%PDF-1.4 not really a pdf")
    (root / "notes.txt").write_text("Quarterly planning notes", encoding="utf-8")
    (root / ".DS_Store").write_bytes(b"\x00\x01")
    (root / "nested" / "draft.md").write_text("# Draft\nA draft document", encoding="utf-8")
    return root


@pytest.fixture
def flat_tree(tmp_path):
    """Two text files in one folder, already wrapped in a FolderNode."""
    root = tmp_path / "flat"
    root.mkdir()
    first = root / "a.txt"
    second = root / "b.txt"
    first.write_text("first file", encoding="utf-8")
    second.write_text("second file", encoding="utf-8")
    node = FolderNode(name=root.name, path=root, files=[make_record(first), make_record(second)])
    return node


@pytest.fixture
def fake_client():
    return FakeCompletionClient()


@pytest.fixture
def completion_error():
    return CompletionError("timed out")
