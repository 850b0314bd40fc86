# /*
# Copyright 2026 The Kubeflow Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Deterministic content fingerprint of a directory tree."""

from __future__ import annotations

import hashlib
import os
from collections.abc import Iterable, Iterator
from pathlib import Path, PurePosixPath

from notebooks_infra.errors import DirectoryNotFound

HASH_LENGTH = 8
_CHUNK_SIZE = 1 << 16


def _normalize_exclusions(excluded: Iterable[str]) -> tuple[str, ...]:
    """Turn exclusion entries into clean relative POSIX prefixes."""
    prefixes = []
    for entry in excluded:
        entry = entry.strip().strip("/")
        if entry.startswith("./"):
            entry = entry[2:]
        if entry:
            prefixes.append(PurePosixPath(entry).as_posix())
    return tuple(prefixes)


def is_excluded(rel_path: str, excluded: tuple[str, ...]) -> bool:
    """Check whether a relative path falls under any excluded prefix.

    Args:
        rel_path: POSIX path relative to the hashed directory.
        excluded: Normalized exclusion prefixes.

    Returns:
        True if the path equals or lies beneath an excluded prefix.
    """
    return any(rel_path == prefix or rel_path.startswith(prefix + "/") for prefix in excluded)


def iter_files(directory: Path, excluded: tuple[str, ...] = ()) -> Iterator[str]:
    """Yield relative POSIX paths of regular files, skipping excluded subtrees.

    Symbolic links are neither followed nor hashed.
    """
    for root, dirs, files in os.walk(directory, followlinks=False):
        rel_root = Path(root).relative_to(directory).as_posix()
        rel_root = "" if rel_root == "." else rel_root + "/"
        dirs[:] = [d for d in dirs if not is_excluded(rel_root + d, excluded)]
        for name in files:
            rel = rel_root + name
            path = Path(root) / name
            if path.is_symlink() or not path.is_file() or is_excluded(rel, excluded):
                continue
            yield rel


def file_digest(path: Path) -> str:
    """Compute the SHA-256 hex digest of a file's content."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def content_hash(directory: Path | str, excluded: Iterable[str] = ()) -> str:
    """Fingerprint the content of a directory tree.

    Each regular file contributes a ``<sha256>  ./<relative path>`` line; the
    lines are sorted by the raw bytes of the relative path, hashed together,
    and the result is truncated to eight hex characters. Timestamps,
    permissions, and filesystem enumeration order do not influence the result.

    Args:
        directory: Root of the tree to hash.
        excluded: Relative subpaths whose contents are ignored.

    Returns:
        An 8-character lowercase hex string.

    Raises:
        DirectoryNotFound: If *directory* does not exist or is not a directory.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise DirectoryNotFound(f"Directory does not exist: {directory}")

    prefixes = _normalize_exclusions(excluded)
    # paths are hashed as raw filesystem bytes so undecodable names survive
    entries = sorted(
        (os.fsencode(rel), file_digest(directory / rel)) for rel in iter_files(directory, prefixes)
    )
    combined = hashlib.sha256()
    for rel, digest in entries:
        combined.update(digest.encode() + b"  ./" + rel + b"\n")
    return combined.hexdigest()[:HASH_LENGTH]
