"""Turning a raw model response into a safe file name.

The pipeline order is fixed:

1. ``refine_name`` strips reasoning blocks, whitespace, newlines and
   markdown fences.
2. ``validate_filename`` checks the refined name structurally.
3. ``ensure_extension`` forces the original file's extension.
4. ``convert_case`` applies the naming convention to the stem.

``finalize_name`` runs steps 3-4 on an already validated name and validates
the result once more, so a name that reaches the rename phase always passes
the validity predicate.
"""

import re
from pathlib import Path
from typing import List, Tuple

from .errors import ValidationError

INVALID_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
MAX_FILENAME_LENGTH = 255

RESERVED_NAMES = {
    "CON", "PRN", "AUX", "NUL",
    "COM1", "COM2", "COM3", "COM4", "COM5", "COM6", "COM7", "COM8", "COM9",
    "LPT1", "LPT2", "LPT3", "LPT4", "LPT5", "LPT6", "LPT7", "LPT8", "LPT9",
}

CASES = ("snake", "kebab", "camel", "pascal")

_THINK_BLOCK = re.compile(r"<think>.*?</think>", re.IGNORECASE | re.DOTALL)
_WORD_SEPARATORS = re.compile(r"[_\-\s]+")
_CASE_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def refine_name(raw: str) -> str:
    """Strip reasoning blocks, whitespace and markdown fences from a response."""
    name = _THINK_BLOCK.sub("", raw or "")
    name = name.replace("\n", "").replace("\r", "").replace("\t", "").replace(" ", "")
    # ```plaintext must go before the bare fence
    name = name.replace("```plaintext", "")
    name = name.replace("```", "")
    name = name.replace("`", "")
    return name


def check_filename(name: str, require_extension: bool = True) -> Tuple[bool, str]:
    """
    Check a file name against the structural rules.

    Returns:
        (True, "") when valid, otherwise (False, reason)
    """
    if not name or not name.strip():
        return False, "the name is empty"
    if len(name) > MAX_FILENAME_LENGTH:
        return False, f"the name is longer than {MAX_FILENAME_LENGTH} characters"
    if name != name.strip() or name.startswith(".") or name.endswith("."):
        return False, "the name starts or ends with a space or a period"
    if " " in name:
        return False, "the name contains spaces"
    if INVALID_CHARS.search(name):
        return False, 'the name contains one of the characters <>:"/\\|?* or a control character'
    stem = name.split(".", 1)[0]
    if stem.upper() in RESERVED_NAMES:
        return False, f"{stem} is a reserved device name"
    if require_extension and not Path(name).suffix:
        return False, "the name has no file extension"
    return True, ""


def is_valid_filename(name: str, require_extension: bool = True) -> bool:
    return check_filename(name, require_extension)[0]


def validate_filename(name: str, require_extension: bool = True) -> str:
    """Return ``name`` unchanged or raise ``ValidationError`` with the reason."""
    valid, reason = check_filename(name, require_extension)
    if not valid:
        raise ValidationError(name, reason)
    return name


def ensure_extension(name: str, original_name: str) -> str:
    """Force ``name`` to carry the extension of ``original_name``.

    Appends it if missing, replaces it if different, drops it if the
    original has none.
    """
    original_ext = Path(original_name).suffix
    current_ext = Path(name).suffix
    stem = name[: -len(current_ext)] if current_ext else name
    return stem + original_ext


def split_words(text: str) -> List[str]:
    words = []
    for chunk in _WORD_SEPARATORS.split(text):
        words.extend(part for part in _CASE_BOUNDARY.split(chunk) if part)
    return words


def convert_case(text: str, case: str) -> str:
    """Convert ``text`` to snake, kebab, camel or pascal case.

    Unknown cases leave the text as it is.
    """
    if not text or case not in CASES:
        return text

    words = [word.lower() for word in split_words(text)]
    if not words:
        return text

    if case == "snake":
        return "_".join(words)
    if case == "kebab":
        return "-".join(words)
    if case == "pascal":
        return "".join(word[:1].upper() + word[1:] for word in words)
    return words[0] + "".join(word[:1].upper() + word[1:] for word in words[1:])


def finalize_name(name: str, original_name: str, case: str) -> str:
    """Apply extension correction and case conversion to a validated name."""
    name = ensure_extension(name, original_name)
    ext = Path(name).suffix
    stem = name[: -len(ext)] if ext else name
    final = (convert_case(stem, case) + ext).strip()
    final = re.sub(r"\s+", "", final)
    return validate_filename(final, require_extension=bool(Path(original_name).suffix))


def process_response(raw: str, original_name: str, case: str) -> str:
    """Run the whole pipeline; raises ``ValidationError`` on a bad name."""
    refined = refine_name(raw)
    validate_filename(refined, require_extension=bool(Path(original_name).suffix))
    return finalize_name(refined, original_name, case)
