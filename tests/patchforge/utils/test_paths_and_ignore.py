import pytest

from patchforge.errors import PathViolation
from patchforge.utils.ignore import get_ignore_spec
from patchforge.utils.paths import normalized_path, relative_posix


def test_normalized_path_enforces_containment(tmp_path):
    base = str(tmp_path.resolve())
    with pytest.raises(PathViolation, match="Path traversal attempt detected"):
        normalized_path(base, "../evil.txt")
    with pytest.raises(PathViolation, match="Path traversal attempt detected"):
        normalized_path(base, "a/../../evil.txt")
    with pytest.raises(PathViolation, match="Path traversal attempt detected"):
        # Windows-style separators
        normalized_path(base, "a\\..\\..\\evil.txt")


def test_normalized_path_allows_valid_paths(tmp_path):
    base = str(tmp_path.resolve())
    assert normalized_path(base, "a/b/c.txt").startswith(base)
    assert normalized_path(base, "a/b/../b/c.txt").startswith(base)


def test_normalized_path_existence_check(tmp_path):
    base = str(tmp_path.resolve())
    (tmp_path / "d").mkdir()
    (tmp_path / "d" / "f.txt").write_text("x")
    resolved = normalized_path(base, "d/f.txt", check_exists=True)
    assert relative_posix(base, resolved) == "d/f.txt"
    with pytest.raises(PathViolation, match="File not found"):
        normalized_path(base, "d/missing.txt", check_exists=True)
    with pytest.raises(PathViolation, match="File not found"):
        normalized_path(base, "d", check_exists=True)


def test_empty_and_absolute_paths_are_refused(tmp_path):
    base = str(tmp_path.resolve())
    with pytest.raises(PathViolation):
        normalized_path(base, "")
    with pytest.raises(PathViolation):
        normalized_path(base, "/etc/passwd")


def test_ignore_spec_always_ignores_git(tmp_path):
    spec = get_ignore_spec(str(tmp_path))
    assert spec.match_file(".git/config")
    assert not spec.match_file("src/main.py")


def test_ignore_spec_reads_nearest_gitignore_upward(tmp_path):
    (tmp_path / ".gitignore").write_text("*.tmp\n")
    sub = tmp_path / "pkg" / "sub"
    sub.mkdir(parents=True)
    spec = get_ignore_spec(str(sub))
    assert spec.match_file("scratch.tmp")
    assert not spec.match_file("keep.py")


def test_ignore_spec_reads_patchforgeignore(tmp_path):
    (tmp_path / ".patchforgeignore").write_text("vendor/\n")
    spec = get_ignore_spec(str(tmp_path))
    assert spec.match_file("vendor/lib.py")
    assert not spec.match_file("src/lib.py")
