"""Tests for the command line front end."""

import json

import pytest

from smart_renamer import cli
from smart_renamer.errors import SetupError

from conftest import FakeCompletionClient


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"logging": {"enabled": True, "log_path": str(tmp_path / "run.log")}}))
    return path


class TestParser:
    """Test cases for argument parsing."""

    def test_defaults_to_dry_run(self):
        args = cli.build_parser().parse_args(["-d", "files"])
        assert args.dry_run is True
        assert args.auto_approve is None
        assert args.log is None

    def test_apply_and_flags(self):
        args = cli.build_parser().parse_args(["-d", "files", "--apply", "-y", "--no-log", "-o", "-p", "images"])
        assert args.dry_run is False
        assert args.auto_approve is True
        assert args.log is False
        assert args.organize is True
        assert args.prompt == "images"


class TestMain:
    """Test cases for main."""

    def setup_method(self):
        self.client = FakeCompletionClient({"notes.txt": "Planning Notes.txt"})

    def test_dir_is_required(self):
        with pytest.raises(SystemExit):
            cli.main([])

    def test_missing_directory(self, tmp_path):
        assert cli.main(["-d", str(tmp_path / "missing")]) == 1

    def test_dry_run(self, monkeypatch, sample_tree, config_file):
        monkeypatch.setattr(cli, "create_client", lambda ai_config: self.client)
        assert cli.main(["-d", str(sample_tree), "-c", str(config_file)]) == 0
        assert not (sample_tree / ".smart_renamer").exists()

    def test_apply(self, monkeypatch, sample_tree, config_file):
        monkeypatch.setattr(cli, "create_client", lambda ai_config: self.client)
        assert cli.main(["-d", str(sample_tree), "-c", str(config_file), "--apply", "-y"]) == 0
        assert (sample_tree / ".smart_renamer" / "renamed" / "planning_notes.txt").exists()
        assert list((sample_tree / ".smart_renamer" / "logs").glob("changes_*.json"))

    def test_setup_error(self, monkeypatch, sample_tree, config_file):
        def fail(ai_config):
            raise SetupError("DEEPSEEK_API_KEY not found in environment or .env file")

        monkeypatch.setattr(cli, "create_client", fail)
        assert cli.main(["-d", str(sample_tree), "-c", str(config_file)]) == 1

    def test_revert_unknown_journal(self, tmp_path):
        assert cli.main(["-r", str(tmp_path / "changes_none.json")]) == 1

    def test_revert(self, monkeypatch, sample_tree, config_file):
        monkeypatch.setattr(cli, "create_client", lambda ai_config: self.client)
        cli.main(["-d", str(sample_tree), "-c", str(config_file), "--apply", "-y"])
        journal = next((sample_tree / ".smart_renamer" / "logs").glob("changes_*.json"))

        assert cli.main(["-r", str(journal), "-y"]) == 0
        reverted = list((sample_tree / ".smart_renamer" / "reverted").rglob("notes.txt"))
        assert len(reverted) == 1
