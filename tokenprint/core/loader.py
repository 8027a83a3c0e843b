"""Source file collection with gitignore-style exclusion."""

from pathlib import Path
from typing import Iterable, List, Optional, Union

import pathspec

from ..utils.logging_setup import get_logger

logger = get_logger(__name__)

IGNORE_FILENAME = ".tokenprintignore"

DEFAULT_IGNORE_PATTERNS = [
    "__pycache__/",
    ".git/",
    ".hg/",
    ".svn/",
    ".tox/",
    ".mypy_cache/",
    ".pytest_cache/",
    ".ruff_cache/",
    "venv/",
    ".venv/",
    "build/",
    "dist/",
    "*.egg-info/",
    "node_modules/",
]


class IgnoreRules:
    """Gitignore-style patterns relative to a root directory.

    Patterns come from the defaults, a ``.tokenprintignore`` file in the root
    and any extra patterns (e.g. ``paths.exclude`` from the config).
    """

    def __init__(self, root: Union[str, Path], patterns: Optional[Iterable[str]] = None,
                 use_defaults: bool = True):
        self.root = Path(root).absolute()
        collected: List[str] = list(DEFAULT_IGNORE_PATTERNS) if use_defaults else []

        ignore_file = self.root / IGNORE_FILENAME
        if ignore_file.is_file():
            file_patterns = ignore_file.read_text(encoding="utf-8").splitlines()
            collected.extend(file_patterns)
            logger.debug(f"Loaded {len(file_patterns)} patterns from {ignore_file}")

        collected.extend(patterns or [])

        # Dedupe, drop blanks and comments
        self.patterns = list(dict.fromkeys(
            p.strip() for p in collected if p.strip() and not p.strip().startswith("#")
        ))
        self.spec = pathspec.GitIgnoreSpec.from_lines(self.patterns)

    def should_ignore(self, path: Union[str, Path]) -> bool:
        path = Path(path)
        try:
            rel_path = path.absolute().relative_to(self.root)
        except ValueError:
            # Outside the root
            return False

        path_str = rel_path.as_posix()
        if self.spec.match_file(path_str):
            return True

        # A file under an ignored directory is ignored too
        parts = path_str.split("/")
        return any(self.spec.match_file("/".join(parts[:i]) + "/") for i in range(1, len(parts)))


def collect_files(
    root: Union[str, Path],
    include: Optional[List[str]] = None,
    exclude: Optional[List[str]] = None,
    suffixes: Optional[List[str]] = None,
) -> List[Path]:
    """Collect source files under ``root``.

    Args:
        root: Root directory (or a single file)
        include: Paths to search, relative to root
        exclude: Extra gitignore-style patterns to skip
        suffixes: File suffixes to keep

    Returns:
        Sorted, de-duplicated list of file paths
    """
    root = Path(root)
    suffixes = suffixes or [".py"]

    if root.is_file():
        return [root] if root.suffix in suffixes else []

    rules = IgnoreRules(root, exclude)
    files = set()

    for inc in include or ["."]:
        base = root / inc
        if not base.exists():
            logger.warning(f"Include path does not exist: {base}")
            continue

        if base.is_file():
            candidates = [base]
        else:
            candidates = [p for p in base.rglob("*") if p.is_file()]

        for path in candidates:
            if path.suffix in suffixes and not rules.should_ignore(path):
                files.add(path)

    logger.debug(f"Collected {len(files)} files under {root}")
    return sorted(files)
