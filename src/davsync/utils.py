"""
Utility functions for davsync.

Contains helper functions for remote path encoding, path calculations and display.
"""

import os
from pathlib import Path
from typing import List, Sequence, Union
from urllib.parse import quote


def encode_segment(segment: str) -> str:
    """
    Percent-encode a single remote path segment.

    Unreserved characters (letters, digits, ``-``, ``_``, ``.``, ``~``) pass
    through; every other UTF-8 byte becomes ``%XX`` with uppercase hex, a
    literal ``/`` included. Undecodable bytes from a local file name (held as
    surrogate escapes) are encoded as the original raw bytes.

    Args:
        segment: One path segment, without separators.

    Returns:
        The encoded segment.
    """
    return quote(segment, safe="", errors="surrogateescape")


def split_remote_path(path: Union[str, Sequence[str]]) -> List[str]:
    """
    Split a remote relative path into its non-empty segments.

    Strings are split on ``/``; sequences are taken as already split. Empty
    and ``.`` segments are dropped.
    """
    segments = path.split("/") if isinstance(path, str) else list(path)
    return [s for s in segments if s and s != "."]


def encode_remote_path(path: Union[str, Sequence[str]]) -> str:
    """
    Encode a relative remote path segment by segment.

    The ``/`` separators between segments are kept as-is, so the result can be
    appended to the base WebDAV URL. Deterministic and total: the same input
    always yields the same output, which is what lets an existence probe find
    a resource created earlier in the run.

    Args:
        path: ``/``-joined relative path, or a sequence of raw segments.

    Returns:
        Encoded relative path without leading or trailing slash.
    """
    return "/".join(encode_segment(s) for s in split_remote_path(path))


def join_remote(*parts: str) -> str:
    """Join raw remote path fragments with ``/``, normalizing empty fragments."""
    segments: List[str] = []
    for part in parts:
        segments.extend(split_remote_path(part))
    return "/".join(segments)


def calculate_remote_path(
    local_path: Path, local_basepath: Path, remote_root: str
) -> str:
    """
    Calculate the raw (not yet encoded) remote path of a local file.

    Args:
        local_path: Local file path.
        local_basepath: Local directory being uploaded.
        remote_root: Remote relative directory the basepath maps to.

    Returns:
        Remote relative path string using ``/`` separators.

    Raises:
        ValueError: If local_path is not within local_basepath.
    """
    relative_path = local_path.absolute().relative_to(local_basepath.absolute())
    rel_path_str = str(relative_path).replace(os.sep, "/")
    return join_remote(remote_root, rel_path_str)


def parent_remote_path(remote_path: str) -> str:
    """Return the remote parent directory of a relative path ("" for top level)."""
    segments = split_remote_path(remote_path)
    return "/".join(segments[:-1])


def is_within(remote_path: str, remote_dir: str) -> bool:
    """Check whether remote_path equals remote_dir or lies below it."""
    return remote_path == remote_dir or remote_path.startswith(remote_dir + "/")


def format_elapsed(elapsed: float) -> str:
    """
    Format a duration in seconds as ``1d 2h 3m 4.56s``.

    Leading zero units are omitted; seconds are always shown.
    """
    days = int(elapsed // 86400)
    hours = int((elapsed % 86400) // 3600)
    minutes = int((elapsed % 3600) // 60)
    seconds = elapsed % 60

    time_parts = []
    if days > 0:
        time_parts.append(f"{days}d")
    if hours > 0 or days > 0:
        time_parts.append(f"{hours}h")
    if minutes > 0 or hours > 0 or days > 0:
        time_parts.append(f"{minutes}m")
    time_parts.append(f"{seconds:.2f}s")
    return " ".join(time_parts)
