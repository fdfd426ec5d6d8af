# chess_patterns/exceptions.py
"""
Defines custom exceptions and warnings for the chess-patterns engine.

Centralizing exceptions in this module prevents circular dependencies that can
arise when different components need to catch errors defined in others. A clear
exception hierarchy, with a common `ChessPatternsError` base, allows callers to
catch everything the engine raises with a single clause.

Only the parsing stage raises. Extraction, classification, matching and
prediction are total over well-formed input and degrade to empty or default
results instead of throwing.
"""

from typing import Optional


class ChessPatternsError(Exception):
    """Base class for all application-specific, catchable errors."""
    pass


class SequenceError(ChessPatternsError):
    """Base class for errors related to turning a raw record into a move sequence."""
    pass


class MalformedSequenceError(SequenceError):
    """
    Raised when a move-notation record contains a token that cannot be played.

    The pipeline is aborted at the first offending token; nothing is skipped.

    Attributes:
        offset: The 0-based index of the failing token among the record's move
                tokens. `-1` means the failure happened before the first move
                (for example an invalid starting FEN).
        token: The raw text of the failing token, when there is one.
    """
    def __init__(self, message: str, offset: int, token: Optional[str] = None):
        super().__init__(message)
        self.offset = offset
        self.token = token

    def __str__(self) -> str:
        base = super().__str__()
        if self.token is None:
            return f"{base} (offset {self.offset})"
        return f"{base} (offset {self.offset}, token '{self.token}')"


class CorpusError(ChessPatternsError):
    """Base class for errors related to loading or storing signature corpora."""
    pass


class CorpusReadError(CorpusError):
    """Raised when a corpus file cannot be read or does not hold valid entries."""
    pass


class CorpusWriteError(CorpusError):
    """Raised when a corpus cannot be written, or an entry would overwrite another."""
    pass


class PgnServiceError(ChessPatternsError):
    """
    Raised for file I/O errors when reading PGN files.

    This typically wraps lower-level exceptions like `FileNotFoundError` or `IOError`.
    """
    pass


class ConfigurationError(ChessPatternsError):
    """Raised when the engine is wired with an inconsistent configuration."""
    pass


class ChessPatternsWarning(UserWarning):
    """Base class for warnings emitted by the engine."""
    pass


class DegenerateSignatureWarning(ChessPatternsWarning):
    """
    Emitted when a signature is extracted from a sequence with no activity.

    The signature is still produced (all magnitudes zero, default archetype)
    and flagged with `is_degenerate`; it is never rejected.
    """
    pass
