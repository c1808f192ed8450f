"""
Additive WebDAV sync for davsync.

Creates remote collections as needed and uploads local files that are not yet
present remotely. Nothing remote is ever overwritten or deleted, and a failure
on one item never stops the others.
"""

import logging
import os
import time
from pathlib import Path
from threading import Lock
from typing import Iterable, Iterator, List, Optional, Set

from davsync.exceptions import PathMissing, RemoteStatusError, TransportError
from davsync.models import (
    OutcomeStatus,
    RemoteKind,
    SyncReport,
    TargetKind,
    TransferOutcome,
    UploadTarget,
)
from davsync.protocols.webdav import RemoteProbe, WebDAVTransport, collection_path
from davsync.utils import (
    calculate_remote_path,
    encode_remote_path,
    is_within,
    join_remote,
    parent_remote_path,
    split_remote_path,
)

logger = logging.getLogger(__name__)

MKCOL_CREATED_STATUSES = (201,)
# 405 Method Not Allowed: the collection is already there
MKCOL_EXISTS_STATUSES = (405,)
PUT_SUCCESS_STATUSES = (200, 201, 204)


class DirectoryCache:
    """Remote collections known to exist during one run, keyed by encoded path."""

    def __init__(self) -> None:
        self._known: Set[str] = set()
        self._lock = Lock()

    def has(self, path: str) -> bool:
        with self._lock:
            return path in self._known

    def mark(self, path: str) -> None:
        with self._lock:
            self._known.add(path)


class DirectoryCreator:
    """
    Ensures a remote collection and all of its ancestors exist.

    Prefixes are resolved left to right: cached prefixes cost nothing, the
    rest are probed and created when absent. A failed creation stops the
    descent.
    """

    def __init__(
        self,
        transport: WebDAVTransport,
        cache: DirectoryCache,
        probe: Optional[RemoteProbe] = None,
        settle_delay: float = 0.0,
    ) -> None:
        self.transport = transport
        self.cache = cache
        self.probe = probe or RemoteProbe(transport)
        self.settle_delay = settle_delay

    def ensure(self, remote_dir: str) -> TransferOutcome:
        """
        Make sure remote_dir exists, creating missing segments.

        Args:
            remote_dir: Raw (unencoded) remote relative directory path.

        Returns:
            CREATED if any segment had to be created, ALREADY_EXISTS if all of
            them were there already, FAILED at the first segment that could
            not be created. A failed outcome carries that segment's prefix as
            its remote_path, so callers can block everything below it.
        """
        remote_dir = join_remote(remote_dir)
        created_any = False
        prefix: List[str] = []

        for segment in split_remote_path(remote_dir):
            prefix.append(segment)
            encoded = encode_remote_path(prefix)

            if self.cache.has(encoded):
                continue

            if self.probe.exists(encoded, RemoteKind.COLLECTION):
                self.cache.mark(encoded)
                self._settle()
                continue

            try:
                created = self._create(encoded)
            except (RemoteStatusError, TransportError) as e:
                failed_at = "/".join(prefix)
                return TransferOutcome.failure(
                    RemoteKind.COLLECTION,
                    failed_at,
                    f"could not create '{failed_at}': {e}",
                )
            self.cache.mark(encoded)
            created_any = created_any or created
            self._settle()

        if created_any:
            return TransferOutcome.created(RemoteKind.COLLECTION, remote_dir)
        return TransferOutcome.already_exists(RemoteKind.COLLECTION, remote_dir)

    def _create(self, encoded: str) -> bool:
        """MKCOL one collection. Returns False if the server says it already exists."""
        response = self.transport.mkcol(collection_path(encoded))
        if response.status_code in MKCOL_CREATED_STATUSES:
            return True
        if response.status_code in MKCOL_EXISTS_STATUSES:
            logger.debug("Collection '%s' already existed (MKCOL 405)", encoded)
            return False
        raise RemoteStatusError(response.status_code, response.reason)

    def _settle(self) -> None:
        if self.settle_delay > 0:
            time.sleep(self.settle_delay)


class FileUploader:
    """Uploads single files, skipping those already present remotely."""

    def __init__(
        self, transport: WebDAVTransport, probe: Optional[RemoteProbe] = None
    ) -> None:
        self.transport = transport
        self.probe = probe or RemoteProbe(transport)

    def upload(self, local_file: Path, remote_path: str) -> TransferOutcome:
        """
        Upload local_file to remote_path unless it already exists.

        Args:
            local_file: Local file to read.
            remote_path: Raw (unencoded) remote relative path.

        Returns:
            ALREADY_EXISTS, CREATED, or FAILED with the reason.
        """
        remote_path = join_remote(remote_path)
        encoded = encode_remote_path(remote_path)

        if self.probe.exists(encoded, RemoteKind.FILE):
            return TransferOutcome.already_exists(
                RemoteKind.FILE, remote_path, local_file
            )

        try:
            with open(local_file, "rb") as f:
                response = self.transport.put(encoded, f)
        except (OSError, TransportError) as e:
            return TransferOutcome.failure(
                RemoteKind.FILE, remote_path, str(e), local_file
            )

        if response.status_code not in PUT_SUCCESS_STATUSES:
            error = RemoteStatusError(response.status_code, response.reason)
            return TransferOutcome.failure(
                RemoteKind.FILE, remote_path, str(error), local_file
            )
        return TransferOutcome.created(RemoteKind.FILE, remote_path, local_file)


def iter_local_files(local_root: Path) -> Iterator[Path]:
    """
    Yield every regular file under local_root, depth first.

    Directory and file names are visited in sorted order so repeated runs
    over an unchanged tree produce the same sequence. Symlinked directories
    are not followed.
    """
    for dirpath, dirnames, filenames in os.walk(local_root):
        dirnames.sort()
        for name in sorted(filenames):
            path = Path(dirpath) / name
            if path.is_file():
                yield path


class TreeWalker:
    """Uploads a local directory tree below a remote root collection."""

    def __init__(self, creator: DirectoryCreator, uploader: FileUploader) -> None:
        self.creator = creator
        self.uploader = uploader

    def walk(self, local_root: Path, remote_root: str) -> List[TransferOutcome]:
        """
        Upload every file under local_root to the matching path under remote_root.

        The root collection is ensured first; if that fails nothing else is
        attempted and the single failed outcome is returned. Then every
        parent collection of a discovered file is ensured, in discovery
        order, and finally the files are uploaded. Files below a collection
        that could not be ensured are reported as SKIPPED without any request.

        Args:
            local_root: Local directory to upload.
            remote_root: Raw remote relative path the directory maps to.

        Returns:
            Outcomes in processing order: collections, then files.
        """
        remote_root = join_remote(remote_root)
        root_outcome = self._ensure(remote_root)
        outcomes: List[TransferOutcome] = [root_outcome]
        if root_outcome.failed:
            return outcomes

        entries = [
            (local_file, calculate_remote_path(local_file, local_root, remote_root))
            for local_file in iter_local_files(local_root)
        ]

        ensured: Set[str] = {remote_root}
        failed_dirs: List[str] = []

        for _, remote_path in entries:
            remote_dir = parent_remote_path(remote_path)
            if remote_dir in ensured:
                continue
            if _first_within(remote_dir, failed_dirs) is not None:
                continue
            dir_outcome = self._ensure(remote_dir)
            outcomes.append(dir_outcome)
            if dir_outcome.failed:
                failed_dirs.append(dir_outcome.remote_path)
            else:
                ensured.add(remote_dir)

        for local_file, remote_path in entries:
            blocked_by = _first_within(parent_remote_path(remote_path), failed_dirs)
            if blocked_by is not None:
                outcome = TransferOutcome.skipped(
                    RemoteKind.FILE,
                    remote_path,
                    f"parent collection '{blocked_by}' could not be created",
                    local_file,
                )
            else:
                outcome = self.uploader.upload(local_file, remote_path)
            log_outcome(outcome)
            outcomes.append(outcome)

        return outcomes

    def _ensure(self, remote_dir: str) -> TransferOutcome:
        outcome = self.creator.ensure(remote_dir)
        log_outcome(outcome)
        return outcome


def _first_within(remote_dir: str, failed_dirs: Iterable[str]) -> Optional[str]:
    for failed in failed_dirs:
        if is_within(remote_dir, failed):
            return failed
    return None


class SyncDriver:
    """
    Dispatches each command line path to the right uploader.

    Files are uploaded under their base name, directories are walked under
    their base name with a fresh DirectoryCache, and missing paths are
    reported without touching the network.
    """

    def __init__(self, transport: WebDAVTransport, settle_delay: float = 0.0) -> None:
        self.transport = transport
        self.probe = RemoteProbe(transport)
        self.uploader = FileUploader(transport, self.probe)
        self.settle_delay = settle_delay

    def sync(self, paths: Iterable[Path]) -> SyncReport:
        """Process every path in order and collect the outcomes."""
        report = SyncReport()
        for path in paths:
            report.extend(self.sync_one(UploadTarget.classify(Path(path))))
        return report

    def sync_one(self, target: UploadTarget) -> List[TransferOutcome]:
        if target.kind is TargetKind.FILE:
            logger.debug("Uploading file %s", target.path)
            outcome = self.uploader.upload(target.path, target.remote_name)
            log_outcome(outcome)
            return [outcome]

        if target.kind is TargetKind.DIRECTORY:
            logger.debug("Uploading directory %s", target.path)
            creator = DirectoryCreator(
                self.transport, DirectoryCache(), self.probe, self.settle_delay
            )
            walker = TreeWalker(creator, self.uploader)
            return walker.walk(target.path, target.remote_name)

        outcome = TransferOutcome.failure(
            RemoteKind.FILE,
            target.path.name,
            str(PathMissing(target.path)),
            target.path,
        )
        log_outcome(outcome)
        return [outcome]


def log_outcome(outcome: TransferOutcome) -> None:
    """Report one outcome through the davsync logger."""
    label = "directory" if outcome.kind is RemoteKind.COLLECTION else "file"
    source = f"{outcome.local_path} → " if outcome.local_path is not None else ""
    target = outcome.remote_path

    if outcome.status is OutcomeStatus.CREATED:
        verb = "Created" if outcome.kind is RemoteKind.COLLECTION else "Uploaded"
        logger.info("%s %s: %s%s", verb, label, source, target)
    elif outcome.status is OutcomeStatus.ALREADY_EXISTS:
        logger.info("Exists, skipping %s: %s%s", label, source, target)
    elif outcome.status is OutcomeStatus.SKIPPED:
        logger.warning("Skipped %s: %s%s (%s)", label, source, target, outcome.reason)
    else:
        logger.error("Failed %s: %s%s (%s)", label, source, target, outcome.reason)
