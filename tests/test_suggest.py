"""Tests for the name suggestion engine."""

import itertools

from smart_renamer.errors import CompletionError
from smart_renamer.models import FileState, FolderNode
from smart_renamer.suggest import NameSuggestionEngine

from conftest import FILE_LINE, FakeCompletionClient, make_record


def echo_name(content):
    return "renamed_" + FILE_LINE.search(content).group(1)


class TestNameSuggestionEngine:
    """Test cases for NameSuggestionEngine."""

    def test_accepted_names(self, flat_tree):
        client = FakeCompletionClient({"a.txt": "First Notes.txt", "b.txt": "```second_notes.txt```"})
        NameSuggestionEngine(client, "prompt", workers=2).run(flat_tree)

        first, second = flat_tree.files
        assert first.new_name == "first_notes.txt"
        assert second.new_name == "second_notes.txt"
        assert first.state is FileState.NAME_ACCEPTED
        assert first.attempts == 1
        assert not first.failed

    def test_invalid_name_is_retried_exactly_n_times(self, flat_tree):
        client = FakeCompletionClient({"a.txt": "CON.txt", "b.txt": "good.txt"})
        NameSuggestionEngine(client, "prompt", retries=3).run(flat_tree)

        failing, passing = flat_tree.files
        assert len(client.calls_for("a.txt")) == 4
        assert len(client.calls_for("b.txt")) == 1
        assert failing.attempts == 4
        assert failing.new_name == ""
        assert failing.state is FileState.NAME_REJECTED
        assert "reserved" in failing.failed_reason
        assert passing.new_name == "good.txt"

    def test_retry_context_carries_reason(self, flat_tree):
        client = FakeCompletionClient({"a.txt": "has space?.txt"})
        NameSuggestionEngine(client, "prompt", retries=1).run(flat_tree)

        first_call, retry_call = client.calls_for("a.txt")
        assert "This is a retry" not in first_call["content"]
        assert retry_call["content"].startswith(first_call["content"] + "\n\nThis is a retry for this file")
        assert "characters" in retry_call["content"]

    def test_retry_context_keeps_only_latest_reason(self, flat_tree):
        answers = itertools.chain(["CON.txt", "no extension"], itertools.repeat("has space?.txt"))
        client = FakeCompletionClient({"a.txt": lambda content: next(answers)})
        record = flat_tree.files[0]
        original_context = record.context

        NameSuggestionEngine(client, "prompt", retries=3).run(flat_tree)

        calls = client.calls_for("a.txt")
        assert len(calls) == 4
        for call in calls[1:]:
            assert call["content"].count("This is a retry") == 1
            assert call["content"].startswith(original_context)
        assert "reserved" in calls[1]["content"]
        assert "no file extension" in calls[2]["content"]
        assert "reserved" not in calls[2]["content"]
        assert record.context == original_context

    def test_extensionless_original_is_renamed(self, tmp_path):
        target = tmp_path / "Makefile"
        target.write_text("all:\n\tgcc main.c")
        root = FolderNode(name=tmp_path.name, path=tmp_path, files=[make_record(target)])
        client = FakeCompletionClient({"Makefile": "build_rules"})

        NameSuggestionEngine(client, "prompt", retries=2).run(root)

        record = root.files[0]
        assert record.new_name == "build_rules"
        assert record.attempts == 1
        assert record.state is FileState.NAME_ACCEPTED

    def test_recovers_on_retry(self, flat_tree):
        answers = itertools.chain(["no extension here"], itertools.repeat("meeting_notes.txt"))
        client = FakeCompletionClient({"a.txt": lambda content: next(answers), "b.txt": "b_notes.txt"})
        NameSuggestionEngine(client, "prompt", retries=3).run(flat_tree)

        record = flat_tree.files[0]
        assert record.new_name == "meeting_notes.txt"
        assert record.attempts == 2
        assert record.state is FileState.NAME_ACCEPTED

    def test_completion_errors_are_retried(self, flat_tree, completion_error):
        client = FakeCompletionClient({"a.txt": completion_error, "b.txt": "ok.txt"})
        NameSuggestionEngine(client, "prompt", retries=2).run(flat_tree)

        record = flat_tree.files[0]
        assert len(client.calls_for("a.txt")) == 3
        assert record.failed_reason == "timed out"
        # transport failures are not validation failures
        assert record.retry_reason == ""
        assert all("This is a retry" not in call["content"] for call in client.calls_for("a.txt"))

    def test_zero_retries(self, flat_tree):
        client = FakeCompletionClient(default="CON.txt")
        NameSuggestionEngine(client, "prompt", retries=0).run(flat_tree)
        assert len(client.calls) == 2

    def test_timeout_is_passed_per_call(self, flat_tree):
        client = FakeCompletionClient()
        NameSuggestionEngine(client, "prompt", timeout=5.0).run(flat_tree)
        assert {call["timeout"] for call in client.calls} == {5.0}

    def test_many_workers_keep_results_in_place(self, tmp_path):
        records = []
        for i in range(30):
            path = tmp_path / f"file{i:02d}.txt"
            path.write_text(str(i))
            records.append(make_record(path))
        root = FolderNode(name=tmp_path.name, path=tmp_path, files=records)

        client = FakeCompletionClient(default=echo_name)
        NameSuggestionEngine(client, "prompt", workers=8).run(root)

        for record in root.files:
            assert record.new_name == f"renamed_{record.name}"
        assert len(client.calls) == 30

    def test_children_are_processed(self, tmp_path, flat_tree):
        child_dir = tmp_path / "child"
        child_dir.mkdir()
        (child_dir / "c.txt").write_text("child file")
        flat_tree.children.append(FolderNode(name="child", path=child_dir,
                                             files=[make_record(child_dir / "c.txt")]))

        client = FakeCompletionClient(default=echo_name)
        NameSuggestionEngine(client, "prompt").run(flat_tree)
        assert flat_tree.children[0].files[0].new_name == "renamed_c.txt"

    def test_vision_sends_images_only(self, tmp_path):
        image = tmp_path / "photo.png"
        image.write_bytes(b"\x89PNG")
        text = tmp_path / "notes.txt"
        text.write_text("notes")
        root = FolderNode(name=tmp_path.name, path=tmp_path, files=[make_record(image), make_record(text)])

        client = FakeCompletionClient(default=echo_name)
        NameSuggestionEngine(client, "prompt", vision=True).run(root)

        assert client.calls_for("photo.png")[0]["image_path"] == image
        assert client.calls_for("notes.txt")[0]["image_path"] is None

    def test_suggest_reports_validation_reason(self, flat_tree):
        client = FakeCompletionClient(default="LPT1.txt")
        engine = NameSuggestionEngine(client, "prompt")
        suggestion = engine.suggest(0, flat_tree.files[0])
        assert suggestion.invalid
        assert "reserved" in suggestion.error

    def test_suggest_reports_completion_error(self, flat_tree):
        client = FakeCompletionClient(default=CompletionError("empty response from AI"))
        suggestion = NameSuggestionEngine(client, "prompt").suggest(1, flat_tree.files[1])
        assert suggestion.index == 1
        assert not suggestion.invalid
        assert suggestion.error == "empty response from AI"
