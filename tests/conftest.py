"""
Shared pytest fixtures for davsync tests.
"""

import json
import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, Dict, Generator, List, Set, Tuple

import pytest

from davsync.exceptions import TransportError


@dataclass
class FakeResponse:
    status_code: int
    reason: str = ""


class FakeTransport:
    """
    In-memory WebDAV server standing in for WebDAVTransport.

    Paths are the encoded relative paths the core sends. Collections are
    stored without trailing slash. Every call is recorded as (method, path).
    """

    def __init__(self) -> None:
        self.files: Dict[str, bytes] = {}
        self.collections: Set[str] = set()
        self.calls: List[Tuple[str, str]] = []
        self.mkcol_status: Dict[str, int] = {}
        self.put_status: Dict[str, int] = {}
        self.unreachable: Set[str] = set()

    def _record(self, method: str, path: str) -> str:
        self.calls.append((method, path))
        key = path.strip("/")
        if key in self.unreachable:
            raise TransportError(f"{method} {path} failed: connection refused")
        return key

    def _parent_exists(self, key: str) -> bool:
        parent = key.rsplit("/", 1)[0] if "/" in key else ""
        return parent == "" or parent in self.collections

    def head(self, path: str) -> FakeResponse:
        key = self._record("HEAD", path)
        return FakeResponse(200, "OK") if key in self.files else FakeResponse(404)

    def propfind(self, path: str, depth: str = "0") -> FakeResponse:
        key = self._record("PROPFIND", path)
        if key in self.collections:
            return FakeResponse(207, "Multi-Status")
        return FakeResponse(404, "Not Found")

    def mkcol(self, path: str) -> FakeResponse:
        key = self._record("MKCOL", path)
        if key in self.mkcol_status:
            return FakeResponse(self.mkcol_status[key], "Forced")
        if key in self.collections:
            return FakeResponse(405, "Method Not Allowed")
        if not self._parent_exists(key):
            return FakeResponse(409, "Conflict")
        self.collections.add(key)
        return FakeResponse(201, "Created")

    def put(self, path: str, stream: IO[bytes]) -> FakeResponse:
        key = self._record("PUT", path)
        if key in self.put_status:
            return FakeResponse(self.put_status[key], "Forced")
        if not self._parent_exists(key):
            return FakeResponse(409, "Conflict")
        self.files[key] = stream.read()
        return FakeResponse(201, "Created")

    def calls_for(self, method: str) -> List[str]:
        return [path for m, path in self.calls if m == method]

    def network_calls_under(self, prefix: str) -> List[Tuple[str, str]]:
        return [(m, p) for m, p in self.calls if p.strip("/").startswith(prefix)]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_transport() -> FakeTransport:
    """Empty in-memory WebDAV server."""
    return FakeTransport()


@pytest.fixture
def sample_config() -> Dict[str, Any]:
    """Sample configuration for testing."""
    return {
        "webdav_url": "https://dav.example.org/remote.php/webdav/",
        "username": "alice",
        "password": "s3cret",
        "ignore_ssl": False,
        "bindings": {
            "backup": {
                "webdav_url": "https://backup.example.org/dav",
                "username": "backup-user",
                "ignore_ssl": "true",
                "timeout": 15,
            },
        },
    }


@pytest.fixture
def config_file(temp_dir: Path, sample_config: Dict[str, Any]) -> Path:
    """Create a temporary config file."""
    config_path = temp_dir / ".davsync.json"
    with open(config_path, "w") as f:
        json.dump(sample_config, f)
    return config_path


@pytest.fixture
def sample_file_structure(temp_dir: Path) -> Path:
    """Create a sample project tree for testing."""
    project = temp_dir / "project"
    (project / "src").mkdir(parents=True)
    (project / "docs" / "guide").mkdir(parents=True)

    (project / "readme.txt").write_text("read me")
    (project / "src" / "main.go").write_text("package main")
    (project / "src" / "util.go").write_text("package main")
    (project / "docs" / "guide" / "intro.md").write_text("# Intro")

    return project


@pytest.fixture
def isolated_home(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point Path.home() at an empty directory so no real global config is read."""
    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: home))
    monkeypatch.delenv("DAVSYNC_PASSWORD", raising=False)
    return home



@pytest.fixture(autouse=True)
def reset_davsync_logger() -> Generator[None, None, None]:
    """Drop handlers installed by setup_logging so tests stay independent."""
    yield
    logger = logging.getLogger("davsync")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
