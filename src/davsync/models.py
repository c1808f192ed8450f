"""
Data models for davsync.

Upload targets, per-item transfer outcomes and the aggregated sync report.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional


class TargetKind(Enum):
    """What a local input path turned out to be."""

    FILE = "file"
    DIRECTORY = "directory"
    MISSING = "missing"


class RemoteKind(Enum):
    """Kind of remote resource being probed or transferred."""

    FILE = "file"
    COLLECTION = "collection"


class OutcomeStatus(Enum):
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class UploadTarget:
    """A local file or directory supplied on the command line."""

    path: Path
    kind: TargetKind

    @classmethod
    def classify(cls, path: Path) -> "UploadTarget":
        if path.is_file():
            kind = TargetKind.FILE
        elif path.is_dir():
            kind = TargetKind.DIRECTORY
        else:
            kind = TargetKind.MISSING
        return cls(path=path, kind=kind)

    @property
    def remote_name(self) -> str:
        """Base name used as the remote relative path for this target."""
        if self.path.name in ("", ".", ".."):
            return self.path.resolve().name
        return self.path.name


@dataclass(frozen=True)
class TransferOutcome:
    """Result of one file upload or one directory ensure."""

    status: OutcomeStatus
    kind: RemoteKind
    remote_path: str
    local_path: Optional[Path] = None
    reason: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status is OutcomeStatus.FAILED

    @classmethod
    def created(
        cls, kind: RemoteKind, remote_path: str, local_path: Optional[Path] = None
    ) -> "TransferOutcome":
        return cls(OutcomeStatus.CREATED, kind, remote_path, local_path)

    @classmethod
    def already_exists(
        cls, kind: RemoteKind, remote_path: str, local_path: Optional[Path] = None
    ) -> "TransferOutcome":
        return cls(OutcomeStatus.ALREADY_EXISTS, kind, remote_path, local_path)

    @classmethod
    def skipped(
        cls,
        kind: RemoteKind,
        remote_path: str,
        reason: str,
        local_path: Optional[Path] = None,
    ) -> "TransferOutcome":
        return cls(OutcomeStatus.SKIPPED, kind, remote_path, local_path, reason)

    @classmethod
    def failure(
        cls,
        kind: RemoteKind,
        remote_path: str,
        reason: str,
        local_path: Optional[Path] = None,
    ) -> "TransferOutcome":
        return cls(OutcomeStatus.FAILED, kind, remote_path, local_path, reason)


@dataclass
class SyncReport:
    """Ordered outcomes of one sync run."""

    outcomes: List[TransferOutcome] = field(default_factory=list)

    def extend(self, outcomes: List[TransferOutcome]) -> None:
        self.outcomes.extend(outcomes)

    @property
    def failed(self) -> List[TransferOutcome]:
        return [o for o in self.outcomes if o.failed]

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)

    def counts(self) -> Dict[OutcomeStatus, int]:
        """Number of outcomes per status, every status present."""
        totals = {status: 0 for status in OutcomeStatus}
        for outcome in self.outcomes:
            totals[outcome.status] += 1
        return totals
