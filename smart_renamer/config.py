"""Configuration, built-in prompts and logging setup."""

import copy
import json
import logging
from pathlib import Path
from typing import Dict, Optional, Union

from dotenv import load_dotenv

from .models import Job
from .utils import parse_size

CONFIG_DIR = Path.home() / ".smart_renamer"
CONFIG_PATH = CONFIG_DIR / "config.json"
LOG_PATH = CONFIG_DIR / "smart_renamer.log"

logger = logging.getLogger(__name__)

# Prompt templates (single source of truth for naming conventions)
DEFAULT_PROMPT = """You are a desktop organizer that creates nice names for files from their context.
Follow the snake case naming convention.
Only respond with the new name and the file extension. Do not change the file extension.
Do not include spaces, paths or any explanation."""

RESEARCH_PROMPT = """You name research papers and technical documents.
Produce a name in the form author_year_short_title using the first author's surname,
the publication year and two to five words of the title.
Only respond with the new name and the file extension. Do not change the file extension."""

IMAGES_PROMPT = """You name images from what they show.
Describe the main subject and setting in three to six words joined by underscores.
Only respond with the new name and the file extension. Do not change the file extension."""

BUILTIN_PROMPTS = {
    "default": DEFAULT_PROMPT,
    "research": RESEARCH_PROMPT,
    "images": IMAGES_PROMPT,
}

DEFAULT_CONFIG = {
    "output": "",
    "case": "snake",
    "ai": {
        "provider": "deepseek",
        "model": "",
        "api_key": "",
        "vision": {
            "enabled": False,
        },
        "max_tokens": 100,
        "temperature": 0.2,
        "prompt": "",
    },
    "file_handling": {
        "max_size": "10MB",
        "auto_approve": False,
    },
    "content_extraction": {
        "max_content_length": 5000,
        "read_context": True,
    },
    "performance": {
        "ai": {
            "workers": 4,
            "timeout": "30s",
            "retries": 3,
        },
    },
    "logging": {
        "enabled": True,
        "log_path": "",
    },
}


def _merge_defaults(config: Dict, defaults: Dict) -> bool:
    """Add missing default keys in place; returns True when anything was added."""
    updated = False
    for key, value in defaults.items():
        if key not in config:
            config[key] = copy.deepcopy(value)
            updated = True
        elif isinstance(value, dict) and isinstance(config[key], dict):
            updated = _merge_defaults(config[key], value) or updated
    return updated


def _migrate(config: Dict) -> bool:
    """Migrate renamed keys."""
    ai = config.get("ai")
    if isinstance(ai, dict) and "ai_model" in ai and "model" not in ai:
        ai["model"] = ai.pop("ai_model")
        return True
    return False


def load_config(path: Optional[Union[str, Path]] = None) -> Dict:
    """Load configuration or create default if not exists."""
    load_dotenv()
    config_path = Path(path).expanduser() if path else CONFIG_PATH

    if not config_path.exists():
        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(config_path, "w") as f:
                json.dump(DEFAULT_CONFIG, f, indent=2)
        except OSError as e:
            logger.warning(f"Cannot write default config file: {e}")
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        with open(config_path, "r") as f:
            config = json.load(f)
    except json.JSONDecodeError as e:
        logger.warning(f"Invalid JSON in config file: {e}, using defaults")
        return copy.deepcopy(DEFAULT_CONFIG)
    except PermissionError as e:
        logger.warning(f"Cannot read config file: {e}, using defaults")
        return copy.deepcopy(DEFAULT_CONFIG)

    if not isinstance(config, dict):
        logger.warning("Config file does not hold an object, using defaults")
        return copy.deepcopy(DEFAULT_CONFIG)

    updated = _migrate(config)
    updated = _merge_defaults(config, DEFAULT_CONFIG) or updated
    if updated:
        try:
            with open(config_path, "w") as f:
                json.dump(config, f, indent=2)
        except OSError as e:
            logger.warning(f"Cannot update config file: {e}")
    return config


def parse_duration(value) -> float:
    """Parse ``"30s"``, ``"2m"``, ``"500ms"`` or a number of seconds."""
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip().lower()
    for suffix, factor in (("ms", 0.001), ("s", 1.0), ("m", 60.0), ("h", 3600.0)):
        if text.endswith(suffix):
            return float(text[: -len(suffix)]) * factor
    return float(text)


def resolve_prompt(config: Dict, prompt: Optional[str] = None) -> str:
    """Configured prompt wins, then a named or custom prompt, then the default."""
    configured = config.get("ai", {}).get("prompt")
    if configured:
        return configured
    if prompt:
        return BUILTIN_PROMPTS.get(prompt.strip().lower(), prompt)
    return DEFAULT_PROMPT


def build_job(config: Dict, root: Union[str, Path], **overrides) -> Job:
    """Combine config values and command line overrides into a ``Job``.

    Overrides set to None are ignored.
    """
    ai = config["ai"]
    performance = config["performance"]["ai"]
    root = Path(root).expanduser().resolve()
    output = config.get("output")

    job = Job(
        root=root,
        prompt=resolve_prompt(config, overrides.pop("prompt", None)),
        output=Path(output).expanduser() if output else None,
        workers=int(performance.get("workers") or 4),
        timeout_per_call=parse_duration(performance.get("timeout") or "30s"),
        retries=int(performance.get("retries", 3)),
        auto_approve=bool(config["file_handling"].get("auto_approve", False)),
        logging_enabled=bool(config["logging"].get("enabled", True)),
        case=config.get("case") or "snake",
        vision=bool(ai.get("vision", {}).get("enabled", False)),
        max_file_size=parse_size(config["file_handling"].get("max_size") or "10MB"),
        max_content_length=int(config["content_extraction"].get("max_content_length", 5000)),
        read_context=bool(config["content_extraction"].get("read_context", True)),
    )
    for key, value in overrides.items():
        if value is not None:
            setattr(job, key, value)
    return job


def setup_logging(log_path: Optional[Union[str, Path]] = None, level: int = logging.INFO) -> Path:
    """Send log records to a file, the way the CLI runs."""
    path = Path(log_path).expanduser() if log_path else LOG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=path,
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    return path
