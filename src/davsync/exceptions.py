"""
Exception hierarchy for davsync.

Only ConfigInvalid is expected to reach the command line; the sync core turns
every other error into a failed TransferOutcome for the item at hand.
"""

from pathlib import Path
from typing import Optional, Union


class DavSyncError(Exception):
    """Base exception for all davsync errors."""

    pass


class ConfigInvalid(DavSyncError):
    """Raised when the configuration is missing, unparseable or incomplete."""

    pass


class TransportError(DavSyncError):
    """Raised when a request could not be completed (connection, TLS, timeout)."""

    pass


class RemoteStatusError(DavSyncError):
    """Raised when the server answers with an unexpected status code."""

    def __init__(self, status_code: int, reason: Optional[str] = None) -> None:
        self.status_code = status_code
        self.reason = reason or ""
        message = f"HTTP {status_code}"
        if self.reason:
            message += f" {self.reason}"
        super().__init__(message)


class PathMissing(DavSyncError):
    """Raised when a local input path does not exist."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        super().__init__(f"PathMissing: '{path}' does not exist")
