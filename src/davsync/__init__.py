"""
davsync - Additively sync files and folders to a WebDAV server

License: MIT License
"""

__version__ = "1.0.0"

# Public API exports
from davsync.config import RemoteConfig, get_remote_config, load_config
from davsync.exceptions import (
    ConfigInvalid,
    DavSyncError,
    PathMissing,
    RemoteStatusError,
    TransportError,
)
from davsync.models import OutcomeStatus, SyncReport, TransferOutcome
from davsync.protocols.webdav import RemoteProbe, WebDAVTransport
from davsync.sync import (
    DirectoryCache,
    DirectoryCreator,
    FileUploader,
    SyncDriver,
    TreeWalker,
)
from davsync.utils import encode_remote_path

__all__ = [
    "__version__",
    "RemoteConfig",
    "get_remote_config",
    "load_config",
    "ConfigInvalid",
    "DavSyncError",
    "PathMissing",
    "RemoteStatusError",
    "TransportError",
    "OutcomeStatus",
    "SyncReport",
    "TransferOutcome",
    "RemoteProbe",
    "WebDAVTransport",
    "DirectoryCache",
    "DirectoryCreator",
    "FileUploader",
    "SyncDriver",
    "TreeWalker",
    "encode_remote_path",
]
