"""Error taxonomy for Smart Renamer.

Only ``SetupError`` aborts a run. Every other error is scoped to a single
file (or a single directory branch) and is logged, recorded, or retried.
"""


class SmartRenamerError(Exception):
    """Base error for the project."""


class SetupError(SmartRenamerError):
    """Run cannot start: unreadable scan root, output root, missing credentials."""


class ScanError(SmartRenamerError):
    """A file or directory could not be listed or stat'ed."""


class DecodeError(SmartRenamerError):
    """A content decoder failed for a file."""


class CompletionError(SmartRenamerError):
    """The completion service timed out, failed or returned nothing."""


class ValidationError(SmartRenamerError):
    """A suggested name is structurally invalid."""

    def __init__(self, name: str, reason: str):
        super().__init__(f"invalid file name {name!r}: {reason}")
        self.name = name
        self.reason = reason


class RenameError(SmartRenamerError):
    """A filesystem copy or rename failed."""


class JournalError(SmartRenamerError):
    """The change journal could not be written or read."""
