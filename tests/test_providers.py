"""Tests for provider selection and the completion client."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from smart_renamer.errors import CompletionError, SetupError
from smart_renamer.providers import (
    CompletionClient,
    Provider,
    create_client,
    image_to_data_url,
    is_image_file,
    resolve_api_key,
)


def response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class TestProvider:
    """Test cases for the Provider enum."""

    def test_parse(self):
        assert Provider.parse("") is Provider.DEEPSEEK
        assert Provider.parse(None) is Provider.DEEPSEEK
        assert Provider.parse(" OpenRouter ") is Provider.OPENROUTER
        assert Provider.parse("ollama") is Provider.OLLAMA

    def test_parse_unknown(self):
        with pytest.raises(SetupError):
            Provider.parse("gemini")

    def test_ollama_host(self, monkeypatch):
        monkeypatch.setenv("OLLAMA_HOST", "gpu-box:11434")
        assert Provider.OLLAMA.base_url == "http://gpu-box:11434/v1"
        monkeypatch.delenv("OLLAMA_HOST")
        assert Provider.OLLAMA.base_url == "http://localhost:11434/v1"

    def test_env_vars(self):
        assert Provider.DEEPSEEK.env_var == "DEEPSEEK_API_KEY"
        assert Provider.OPENROUTER.env_var == "OPENROUTER_API_KEY"
        assert Provider.OLLAMA.env_var is None


class TestApiKeys:
    """Test cases for resolve_api_key."""

    def test_configured_key_wins(self, monkeypatch):
        monkeypatch.setenv("DEEPSEEK_API_KEY", "from-env")
        assert resolve_api_key(Provider.DEEPSEEK, "from-config") == "from-config"

    def test_environment_key(self, monkeypatch):
        monkeypatch.setenv("OPENROUTER_API_KEY", "from-env")
        assert resolve_api_key(Provider.OPENROUTER) == "from-env"

    def test_missing_key(self, monkeypatch):
        monkeypatch.setattr("smart_renamer.providers.load_dotenv", lambda *args, **kwargs: False)
        monkeypatch.delenv("DEEPSEEK_API_KEY", raising=False)
        with pytest.raises(SetupError):
            resolve_api_key(Provider.DEEPSEEK)

    def test_ollama_needs_no_key(self, monkeypatch):
        assert resolve_api_key(Provider.OLLAMA) == "ollama"


class TestCompletionClient:
    """Test cases for CompletionClient."""

    def setup_method(self):
        self.openai = MagicMock()
        self.client = CompletionClient(Provider.DEEPSEEK, client=self.openai, max_tokens=100)

    def test_default_model(self):
        assert self.client.model == "deepseek-chat"

    def test_complete(self):
        self.openai.chat.completions.create.return_value = response("  quarterly_report.pdf \n")

        result = self.client.complete("system", "Content: q1 numbers", timeout=12.5)

        assert result == "quarterly_report.pdf"
        kwargs = self.openai.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "deepseek-chat"
        assert kwargs["max_tokens"] == 100
        assert kwargs["timeout"] == 12.5
        assert kwargs["messages"] == [
            {"role": "system", "content": "system"},
            {"role": "user", "content": "Content: q1 numbers"},
        ]

    def test_request_failure(self):
        self.openai.chat.completions.create.side_effect = RuntimeError("connection reset")
        with pytest.raises(CompletionError, match="connection reset"):
            self.client.complete("system", "context")

    @pytest.mark.parametrize("content", ["", "   ", None])
    def test_empty_answer(self, content):
        self.openai.chat.completions.create.return_value = response(content)
        with pytest.raises(CompletionError):
            self.client.complete("system", "context")

    def test_no_choices(self):
        self.openai.chat.completions.create.return_value = SimpleNamespace(choices=[])
        with pytest.raises(CompletionError):
            self.client.complete("system", "context")

    def test_image_message(self, tmp_path):
        image = tmp_path / "photo.png"
        image.write_bytes(b"\x89PNG\r\n")
        self.openai.chat.completions.create.return_value = response("sunset.png")

        self.client.complete("system", "context", image_path=image)

        user = self.openai.chat.completions.create.call_args.kwargs["messages"][1]
        assert user["content"][0] == {"type": "text", "text": "context"}
        assert user["content"][1]["image_url"]["url"].startswith("data:image/png;base64,")

    def test_unreadable_image(self, tmp_path):
        with pytest.raises(CompletionError):
            self.client.complete("system", "context", image_path=tmp_path / "missing.png")


class TestHelpers:
    """Test cases for image helpers and client creation."""

    def test_is_image_file(self, tmp_path):
        assert is_image_file(tmp_path / "a.JPG")
        assert not is_image_file(tmp_path / "a.pdf")

    def test_data_url(self, tmp_path):
        image = tmp_path / "a.jpg"
        image.write_bytes(b"abc")
        assert image_to_data_url(image) == "data:image/jpeg;base64,YWJj"

    def test_create_ollama_client(self):
        client = create_client({"provider": "ollama", "model": "qwen2.5", "temperature": 0.5})
        assert client.provider is Provider.OLLAMA
        assert client.model == "qwen2.5"
        assert client.temperature == 0.5
        assert client.max_tokens is None
