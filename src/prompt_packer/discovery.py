from __future__ import annotations

import os
import stat
from pathlib import Path
from typing import TYPE_CHECKING

import pathspec

from prompt_packer.classifier import is_eligible_text
from prompt_packer.config import DEFAULT_IGNORE_PATTERNS, SYSTEM_IGNORE_DIRS
from prompt_packer.exceptions import RootNotFoundError
from prompt_packer.logging import logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from prompt_packer.settings import PackerSettings


def relpath(path: Path, root: Path) -> str:
    """Send the relative path of path from root.

    Args:
        path (Path): the path to "relativise"
        root (Path): the root to relativise from

    Returns:
        str: the relative path from root to path, with POSIX separators.
            If path is not under root, returns the original path as a string.
    """
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


def normalize_globs(globs: Sequence[str]) -> list[str]:
    """Normalize a sequence of path glob patterns.

    Strip whitespace, replace backslashes with forward slashes, drop empty
    patterns and duplicates while keeping the first occurrence order.

    Args:
        globs (Sequence[str]): the glob patterns to normalize

    Returns:
        list[str]: the normalized glob patterns
    """
    out: list[str] = []
    seen: set[str] = set()
    for g in globs:
        g2 = (g or "").strip().replace("\\", "/")
        if not g2 or g2 in seen:
            continue
        seen.add(g2)
        out.append(g2)
    return out


def build_ignore_spec(user_patterns: Sequence[str]) -> pathspec.PathSpec:
    """Compile the user ignore globs together with the default ignore set.

    Args:
        user_patterns (Sequence[str]): extra ignore globs from the configuration

    Returns:
        pathspec.PathSpec: a matcher with gitignore-style wildcard semantics
    """
    patterns = normalize_globs([*user_patterns, *DEFAULT_IGNORE_PATTERNS])
    return pathspec.PathSpec.from_lines("gitwildmatch", patterns)


def ensure_root(root: Path) -> Path:
    """Resolve `root` and check that it is an existing directory.

    Args:
        root (Path): the project root given by the caller

    Raises:
        RootNotFoundError: if `root` does not exist or is not a directory

    Returns:
        Path: the absolute, resolved root
    """
    resolved = root.expanduser().resolve()
    if not resolved.is_dir():
        raise RootNotFoundError(root=root)
    return resolved


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def _log_walk_error(error: OSError) -> None:
    logger.warning("Skipping inaccessible directory %s: %s", error.filename, error.strerror)


def _prune_dirs(current: str, dirs: list[str]) -> None:
    """Drop hidden, system and symlinked directories from an `os.walk` listing in place."""
    dirs[:] = sorted(
        d
        for d in dirs
        if d not in SYSTEM_IGNORE_DIRS and not _is_hidden(d) and not Path(current, d).is_symlink()
    )


def discover(root: Path, settings: PackerSettings) -> list[Path]:
    """Collect the eligible text files under `root`.

    A file survives when it is not hidden, does not match an ignore glob
    (configured patterns plus the defaults), is a regular file that is not a
    symlink, is no larger than `settings.max_file_size`, and is classified as
    text by `is_eligible_text`. Entries that cannot be inspected are logged and
    skipped.

    Args:
        root (Path): the project root to walk
        settings (PackerSettings): supplies `ignore_patterns` and `max_file_size`

    Raises:
        RootNotFoundError: if `root` does not exist or is not a directory

    Returns:
        list[Path]: absolute paths of the eligible files, sorted by path
    """
    repo = ensure_root(root)
    spec = build_ignore_spec(settings.ignore_patterns)

    results: list[Path] = []
    for current, dirs, files in os.walk(repo, onerror=_log_walk_error):
        _prune_dirs(current, dirs)
        for name in sorted(files):
            if _is_hidden(name):
                continue
            p = Path(current) / name
            if spec.match_file(relpath(p, repo)):
                continue
            try:
                st = p.lstat()
            except OSError as e:
                logger.warning("Skipping inaccessible file %s: %s", str(p), e)
                continue
            if not stat.S_ISREG(st.st_mode):
                continue
            if st.st_size > settings.max_file_size:
                continue
            if is_eligible_text(p):
                results.append(p)
    logger.info("Discovered %d eligible files under %s", len(results), str(repo))
    return sorted(results)


def list_directories(root: Path) -> set[str]:
    """Collect every directory under `root`, relative and with POSIX separators.

    Only hidden directories and the fixed system directories (VCS, build
    output, caches, IDE folders) are skipped; user ignore globs do not apply.
    The result only feeds the full-tree rendering, never the selection.

    Args:
        root (Path): the project root to walk

    Returns:
        set[str]: relative directory paths such as "src" or "src/utils"
    """
    repo = root.resolve()
    dirs_found: set[str] = set()
    for current, dirs, _files in os.walk(repo, onerror=_log_walk_error):
        _prune_dirs(current, dirs)
        dirs_found.update(relpath(Path(current) / d, repo) for d in dirs)
    return dirs_found
