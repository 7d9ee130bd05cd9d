"""Completion service providers.

All three providers speak the OpenAI chat-completions protocol, so one
client class covers them; the ``Provider`` enum only decides the endpoint
and where the credentials come from.
"""

import base64
import logging
import mimetypes
import os
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv
from openai import OpenAI

from .errors import CompletionError, SetupError

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".gif"}


class Provider(str, Enum):
    DEEPSEEK = "deepseek"
    OLLAMA = "ollama"
    OPENROUTER = "openrouter"

    @property
    def base_url(self) -> str:
        if self is Provider.OLLAMA:
            host = os.getenv("OLLAMA_HOST", "http://localhost:11434").rstrip("/")
            if not host.startswith(("http://", "https://")):
                host = "http://" + host
            return host + "/v1"
        if self is Provider.OPENROUTER:
            return "https://openrouter.ai/api/v1"
        return "https://api.deepseek.com"

    @property
    def env_var(self) -> Optional[str]:
        if self is Provider.OLLAMA:
            return None
        return f"{self.value.upper()}_API_KEY"

    @property
    def default_model(self) -> str:
        if self is Provider.OLLAMA:
            return "llama3.2"
        if self is Provider.OPENROUTER:
            return "openai/gpt-4o-mini"
        return "deepseek-chat"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Provider":
        """Map a configured provider name to a variant; empty means DeepSeek.

        Raises:
            SetupError: When the name is not a known provider
        """
        if not value:
            logger.info("No AI provider set, defaulting to deepseek")
            return cls.DEEPSEEK
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise SetupError(f"Invalid AI provider: {value}") from None


def is_image_file(path: Path) -> bool:
    return Path(path).suffix.lower() in IMAGE_EXTENSIONS


def image_to_data_url(path: Path) -> str:
    mime_type = mimetypes.guess_type(str(path))[0] or "image/png"
    encoded = base64.b64encode(Path(path).read_bytes()).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def resolve_api_key(provider: Provider, configured: str = "") -> str:
    """Configured key first, then the provider's environment variable.

    Raises:
        SetupError: When a provider that needs a key has none
    """
    if provider is Provider.OLLAMA:
        return configured or "ollama"
    if configured:
        return configured
    load_dotenv()
    api_key = os.getenv(provider.env_var)
    if not api_key:
        logger.error(f"{provider.env_var} not found in environment or .env file")
        raise SetupError(f"{provider.env_var} not found in environment or .env file")
    logger.info(f"Found {provider.value} API key in environment variable")
    return api_key


class CompletionClient:
    """OpenAI-compatible chat completion client for one provider."""

    def __init__(
        self,
        provider: Provider,
        model: str = "",
        api_key: str = "",
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
        client: Optional[OpenAI] = None,
    ):
        self.provider = provider
        self.model = model or provider.default_model
        self.temperature = temperature
        self.max_tokens = max_tokens
        if client is not None:
            self.client = client
        else:
            key = resolve_api_key(provider, api_key)
            try:
                self.client = OpenAI(base_url=provider.base_url, api_key=key)
            except (ValueError, TypeError) as e:
                logger.error(f"AI client initialization failed: {e}")
                raise SetupError(f"AI client initialization failed: {e}") from e
        logger.info(f"Using {provider.value} as AI provider with model {self.model}")

    def build_messages(self, system_prompt: str, user_content: str,
                       image_path: Optional[Path] = None) -> List[Dict]:
        messages = [{"role": "system", "content": system_prompt}]
        if image_path is not None:
            messages.append({
                "role": "user",
                "content": [
                    {"type": "text", "text": user_content},
                    {"type": "image_url", "image_url": {"url": image_to_data_url(image_path)}},
                ],
            })
        else:
            messages.append({"role": "user", "content": user_content})
        return messages

    def complete(self, system_prompt: str, user_content: str,
                 image_path: Optional[Path] = None, timeout: Optional[float] = None) -> str:
        """Get completion from the AI model.

        Raises:
            CompletionError: When the request fails or the answer is empty
        """
        try:
            messages = self.build_messages(system_prompt, user_content, image_path)
        except OSError as e:
            raise CompletionError(f"cannot read image {image_path}: {e}") from e

        kwargs = {"model": self.model, "messages": messages, "temperature": self.temperature}
        if self.max_tokens:
            kwargs["max_tokens"] = self.max_tokens
        if timeout:
            kwargs["timeout"] = timeout

        try:
            response = self.client.chat.completions.create(**kwargs)
        except Exception as e:
            logger.error(f"AI completion request failed: {e}")
            raise CompletionError(f"AI completion request failed: {e}") from e

        if not response.choices:
            raise CompletionError("empty response from AI")
        content = response.choices[0].message.content
        if not content or not content.strip():
            raise CompletionError("empty response from AI")
        return content.strip()


def create_client(ai_config: Dict) -> CompletionClient:
    """Build a completion client from the ``ai`` section of the config."""
    provider = Provider.parse(ai_config.get("provider"))
    return CompletionClient(
        provider,
        model=ai_config.get("model", ""),
        api_key=ai_config.get("api_key", ""),
        temperature=ai_config.get("temperature", 0.2),
        max_tokens=ai_config.get("max_tokens") or None,
    )
