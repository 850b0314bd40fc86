"""Unit tests for directory content hashing."""

import hashlib
import os
import sys

import pytest

from notebooks_infra.errors import DirectoryNotFound
from notebooks_infra.hashing import content_hash, is_excluded


def _write(root, rel, content):
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


@pytest.fixture
def source(tmp_path):
    root = tmp_path / "src"
    _write(root, "a.txt", "alpha")
    _write(root, "b.txt", "bravo")
    _write(root, "c.txt", "charlie")
    return root


def test_hash_format(source):
    """Test that the hash is eight lowercase hex characters."""
    digest = content_hash(source)
    assert len(digest) == 8
    assert all(ch in "0123456789abcdef" for ch in digest)


def test_hash_matches_sha256sum_listing(tmp_path):
    """Test compatibility with hashing a sorted ``sha256sum`` listing."""
    _write(tmp_path, "a.txt", "hello")
    line = f"{hashlib.sha256(b'hello').hexdigest()}  ./a.txt\n"
    assert content_hash(tmp_path) == hashlib.sha256(line.encode()).hexdigest()[:8]


@pytest.mark.skipif(sys.platform == "darwin", reason="filesystem requires UTF-8 names")
def test_undecodable_file_names_are_hashed_as_bytes(tmp_path):
    """Test that a non-UTF-8 file name is hashed by its raw bytes."""
    with open(os.path.join(os.fsencode(tmp_path), b"caf\xe9.txt"), "wb") as f:
        f.write(b"latin")
    line = hashlib.sha256(b"latin").hexdigest().encode() + b"  ./caf\xe9.txt\n"
    assert content_hash(tmp_path) == hashlib.sha256(line).hexdigest()[:8]


def test_hash_is_stable(source):
    """Test that repeated hashing of unchanged content agrees."""
    assert content_hash(source) == content_hash(source)


def test_content_change_changes_hash(source):
    """Test that editing a file produces a different hash."""
    before = content_hash(source)
    (source / "b.txt").write_text("bravo!")
    assert content_hash(source) != before


def test_rename_changes_hash(source):
    """Test that paths are part of the fingerprint."""
    before = content_hash(source)
    (source / "c.txt").rename(source / "d.txt")
    assert content_hash(source) != before


def test_timestamps_and_permissions_do_not_matter(source):
    """Test that only content and paths are hashed."""
    before = content_hash(source)
    target = source / "a.txt"
    os.utime(target, (0, 0))
    target.chmod(0o600)
    assert content_hash(source) == before


def test_excluded_subtrees_are_ignored(source):
    """Test that excluded directories never influence the hash."""
    before = content_hash(source, excluded=("node_modules", "dist"))
    _write(source, "node_modules/pkg/index.js", "module.exports = 1")
    _write(source, "dist/bundle.js", "compiled")
    assert content_hash(source, excluded=("node_modules", "dist")) == before
    assert content_hash(source) != before


def test_exclusion_matches_whole_path_components(source):
    """Test that a sibling sharing a prefix is still hashed."""
    before = content_hash(source, excluded=("dist",))
    _write(source, "distribution.txt", "kept")
    assert content_hash(source, excluded=("dist",)) != before


def test_exclusion_entries_are_normalized(source):
    """Test that ``./dist/`` and ``dist`` exclude the same subtree."""
    _write(source, "dist/bundle.js", "compiled")
    assert content_hash(source, excluded=("./dist/",)) == content_hash(source, excluded=("dist",))


def test_symlinks_are_skipped(source):
    """Test that symbolic links are neither followed nor hashed."""
    before = content_hash(source)
    (source / "link.txt").symlink_to(source / "a.txt")
    assert content_hash(source) == before


def test_empty_directory(tmp_path):
    """Test that an empty tree still produces a hash."""
    assert content_hash(tmp_path) == hashlib.sha256(b"").hexdigest()[:8]


def test_missing_directory(tmp_path):
    """Test that a missing source directory is reported."""
    with pytest.raises(DirectoryNotFound):
        content_hash(tmp_path / "missing")


def test_file_instead_of_directory(tmp_path):
    """Test that a regular file is not accepted as a directory."""
    path = _write(tmp_path, "file.txt", "x")
    with pytest.raises(DirectoryNotFound):
        content_hash(path)


@pytest.mark.parametrize(
    ("rel_path", "excluded", "expected"),
    [
        ("node_modules", ("node_modules",), True),
        ("node_modules/pkg/index.js", ("node_modules",), True),
        ("src/node_modules/x.js", ("node_modules",), False),
        ("node_modules_extra/x.js", ("node_modules",), False),
        ("src/app.ts", (), False),
    ],
)
def test_is_excluded(rel_path, excluded, expected):
    assert is_excluded(rel_path, excluded) is expected
