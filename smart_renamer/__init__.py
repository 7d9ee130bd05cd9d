"""AI-powered bulk file renaming with a revertible change journal.

Scans a directory, asks a completion service for a name per file,
validates the suggestions, applies them to a safe copy of the tree and
journals every change so it can be undone.
"""

__version__ = "0.1.0"
