# chess_sync/exceptions.py
"""
Defines custom exceptions for the Chess Sync application.

Centralizing exceptions in this module prevents circular dependencies that can
arise when different components need to catch errors defined in others. A clear
exception hierarchy, with a common `ChessSyncError` base, allows for flexible
and specific error handling throughout the application.
"""

from typing import Optional


class ChessSyncError(Exception):
    """Base class for all application-specific, catchable errors."""
    pass


class PgnError(ChessSyncError):
    """Base class for errors related to PGN (Portable Game Notation) handling."""
    pass


class PgnParsingError(PgnError):
    """
    Raised when the rules-aware parser rejects a game's movetext.

    This covers illegal moves, malformed movetext and PGN text in which no
    game could be found at all. The timing extractor treats it as the signal
    to switch to pattern-based extraction; it never crosses the extractor's
    public boundary.
    """
    pass


class ArchiveError(ChessSyncError):
    """Base class for errors raised while talking to the remote game archive."""
    pass


class ArchiveFetchError(ArchiveError):
    """
    Raised when an archive listing or a monthly archive cannot be retrieved.

    Attributes:
        url: The archive URL that failed.
        status_code: The HTTP status returned by the server, if any.
    """
    def __init__(self, message: str, url: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class PersistenceError(ChessSyncError):
    """Base class for errors related to the game store."""
    pass
