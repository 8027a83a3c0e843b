"""Tests for source file collection."""

import warnings
from pathlib import Path

from tokenprint.core.loader import DEFAULT_IGNORE_PATTERNS, IGNORE_FILENAME, IgnoreRules, collect_files


def _touch(root: Path, *names: str) -> None:
    for name in names:
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("x = 1\n")


class TestIgnoreRules:
    """Test gitignore-style exclusion."""

    def test_default_patterns(self, tmp_path):
        """Test that default patterns are loaded."""
        rules = IgnoreRules(tmp_path)
        assert "__pycache__/" in rules.patterns
        assert rules.should_ignore(tmp_path / "__pycache__" / "mod.py")
        assert rules.should_ignore(tmp_path / ".venv" / "lib" / "site.py")
        assert not rules.should_ignore(tmp_path / "pkg" / "mod.py")

    def test_without_defaults(self, tmp_path):
        """Test that defaults can be disabled."""
        rules = IgnoreRules(tmp_path, use_defaults=False)
        assert rules.patterns == []
        assert not rules.should_ignore(tmp_path / "build" / "mod.py")

    def test_ignore_file(self, tmp_path):
        """Test reading patterns from the ignore file."""
        (tmp_path / IGNORE_FILENAME).write_text("# generated code\nlegacy/\n*_pb2.py\n\n")
        rules = IgnoreRules(tmp_path, use_defaults=False)
        assert rules.patterns == ["legacy/", "*_pb2.py"]
        assert rules.should_ignore(tmp_path / "legacy" / "old.py")
        assert rules.should_ignore(tmp_path / "api" / "service_pb2.py")
        assert not rules.should_ignore(tmp_path / "api" / "service.py")

    def test_extra_patterns_deduplicated(self, tmp_path):
        """Test that extra patterns are merged without duplicates."""
        rules = IgnoreRules(tmp_path, patterns=["venv/", "fixtures/"])
        assert rules.patterns.count("venv/") == 1
        assert len(rules.patterns) == len(DEFAULT_IGNORE_PATTERNS) + 1

    def test_no_deprecation_warnings(self, tmp_path):
        """Test that compiling the patterns uses a current pathspec factory."""
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            rules = IgnoreRules(tmp_path, patterns=["generated/", "*_pb2.py"])
            assert rules.should_ignore(tmp_path / "generated" / "models.py")
        assert not [w for w in caught if issubclass(w.category, DeprecationWarning)]

    def test_outside_root(self, tmp_path):
        """Test that paths outside the root are never ignored."""
        rules = IgnoreRules(tmp_path / "project")
        assert not rules.should_ignore(tmp_path / "__pycache__" / "mod.py")


class TestCollectFiles:
    """Test collect_files."""

    def test_collects_sorted_python_files(self, tmp_path):
        """Test suffix filtering and ordering."""
        _touch(tmp_path, "b.py", "a.py", "pkg/c.py", "notes.txt")
        files = collect_files(tmp_path)
        assert [p.relative_to(tmp_path).as_posix() for p in files] == ["a.py", "b.py", "pkg/c.py"]

    def test_default_exclusions(self, tmp_path):
        """Test that build and cache directories are skipped."""
        _touch(tmp_path, "main.py", "build/lib/main.py", "__pycache__/main.py", ".venv/x.py")
        files = collect_files(tmp_path)
        assert files == [tmp_path / "main.py"]

    def test_exclude_patterns(self, tmp_path):
        """Test configured exclusions."""
        _touch(tmp_path, "main.py", "tests/test_main.py")
        files = collect_files(tmp_path, exclude=["tests/"])
        assert files == [tmp_path / "main.py"]

    def test_ignore_file(self, tmp_path):
        """Test that the ignore file is honored."""
        _touch(tmp_path, "main.py", "generated/models.py")
        (tmp_path / IGNORE_FILENAME).write_text("generated/\n")
        assert collect_files(tmp_path) == [tmp_path / "main.py"]

    def test_include_paths(self, tmp_path):
        """Test that only include paths are searched."""
        _touch(tmp_path, "src/a.py", "scripts/b.py")
        files = collect_files(tmp_path, include=["src", "missing"])
        assert files == [tmp_path / "src" / "a.py"]

    def test_overlapping_includes(self, tmp_path):
        """Test that overlapping include paths do not duplicate files."""
        _touch(tmp_path, "src/a.py")
        files = collect_files(tmp_path, include=[".", "src", "src/a.py"])
        assert files == [tmp_path / "src" / "a.py"]

    def test_suffixes(self, tmp_path):
        """Test custom suffixes."""
        _touch(tmp_path, "a.py", "b.pyi")
        assert collect_files(tmp_path, suffixes=[".pyi"]) == [tmp_path / "b.pyi"]

    def test_single_file(self, tmp_path):
        """Test a file passed as root."""
        _touch(tmp_path, "a.py", "a.txt")
        assert collect_files(tmp_path / "a.py") == [tmp_path / "a.py"]
        assert collect_files(tmp_path / "a.txt") == []
