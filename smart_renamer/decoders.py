"""Content decoders keyed by file extension.

A decoder is any callable ``decode(path) -> str`` that raises
``DecodeError`` on failure. The registry falls back to reading raw bytes as
text when no decoder is registered for an extension.
"""

import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional

from pypdf import PdfReader
from tinytag import TinyTag

from .errors import DecodeError, ScanError, SmartRenamerError

logger = logging.getLogger(__name__)

Decoder = Callable[[Path], str]

TEXT_EXTENSIONS = [".txt", ".md", ".py", ".js", ".html", ".css", ".json", ".csv", ".xml",
                   ".yaml", ".yml", ".log", ".ini", ".cfg", ".conf", ".sql", ".go", ".rs"]
PDF_EXTENSIONS = [".pdf"]
AUDIO_EXTENSIONS = [".mp3", ".ogg", ".flac", ".m4a", ".wav", ".opus", ".wma", ".aiff"]
BINARY_EXTENSIONS = [".png", ".jpg", ".jpeg", ".gif", ".webp", ".bmp", ".tiff", ".heic",
                     ".mp4", ".mkv", ".avi", ".mov", ".webm", ".zip", ".gz", ".7z"]

PDF_PAGES = 2


def read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="ignore")
    except OSError as e:
        raise ScanError(f"cannot read {path}: {e}") from e


def read_pdf(path: Path) -> str:
    """Extract text from the first pages, which carry most of the naming context."""
    try:
        reader = PdfReader(str(path))
        pages = []
        for page in reader.pages[:PDF_PAGES]:
            pages.append(page.extract_text() or "")
        return "\n".join(pages)
    except Exception as e:
        raise DecodeError(f"cannot extract text from {path}: {e}") from e


def read_audio_tags(path: Path) -> str:
    try:
        tag = TinyTag.get(str(path))
    except Exception as e:
        raise DecodeError(f"cannot read tags from {path}: {e}") from e

    metadata = []
    for label, value in [
        ("Title", tag.title),
        ("Album", tag.album),
        ("Artist", tag.artist),
        ("Album Artist", tag.albumartist),
        ("Composer", tag.composer),
        ("Genre", tag.genre),
        ("Year", tag.year),
        ("Track", tag.track),
        ("Disc", tag.disc),
        ("Comment", tag.comment),
    ]:
        if value:
            metadata.append(f"{label}: {value}")
    if tag.duration:
        metadata.append(f"Duration: {tag.duration:.0f}s")
    return "\n".join(metadata)


def describe_binary(path: Path) -> str:
    return f"[Binary file with extension {path.suffix.lower()}]"


def read_raw(path: Path) -> str:
    try:
        return path.read_bytes().decode("utf-8", errors="ignore")
    except OSError as e:
        raise ScanError(f"cannot read {path}: {e}") from e


class DecoderRegistry:
    """Maps lower-case extensions to decoders."""

    def __init__(self, fallback: Decoder = read_raw):
        self._decoders: Dict[str, Decoder] = {}
        self.fallback = fallback

    def register(self, extensions: Iterable[str], decoder: Decoder) -> None:
        for ext in extensions:
            ext = ext.lower()
            if not ext.startswith("."):
                ext = "." + ext
            self._decoders[ext] = decoder

    def get(self, path: Path) -> Optional[Decoder]:
        return self._decoders.get(path.suffix.lower())

    def decode(self, path: Path) -> str:
        """Decode a file.

        Raises:
            ScanError: When the file cannot be read at all
            DecodeError: When the decoder cannot make sense of it
        """
        decoder = self.get(path) or self.fallback
        try:
            return decoder(path)
        except SmartRenamerError:
            raise
        except Exception as e:
            raise DecodeError(f"decoder failed for {path}: {e}") from e


def default_registry() -> DecoderRegistry:
    registry = DecoderRegistry()
    registry.register(TEXT_EXTENSIONS, read_text)
    registry.register(PDF_EXTENSIONS, read_pdf)
    registry.register(AUDIO_EXTENSIONS, read_audio_tags)
    registry.register(BINARY_EXTENSIONS, describe_binary)
    return registry
