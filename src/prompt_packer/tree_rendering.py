from __future__ import annotations

import os
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from prompt_packer.classifier import is_eligible_text
from prompt_packer.discovery import list_directories, relpath

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Sequence

SELECTED_SYMBOL = "✓"
NOT_SELECTED_SYMBOL = "✗"
DIR_EMOJI = "📂"
UNSELECTED_TEXT_MARKER = " 📁 (contains text files but not selected)"
NON_TEXT_MARKER = " 📁 (contains non-text or ignored files)"
EMPTY_MARKER = " (empty)"


def _ancestors(rel_paths: Iterable[str]) -> set[str]:
    """Every proper ancestor directory of the given relative paths."""
    out: set[str] = set()
    for rel in rel_paths:
        out.update(str(p) for p in PurePosixPath(rel).parents if str(p) != ".")
    return out


def _link(tree: dict[str, set[str]], dirs: set[str], rel: str, *, is_dir: bool) -> None:
    """Register `rel` and its ancestor chain in the parent -> children map."""
    parts = rel.split("/")
    current = ""
    for part in parts[:-1]:
        parent = current
        current = f"{current}/{part}" if current else part
        dirs.add(current)
        tree.setdefault(parent, set()).add(current)
    if is_dir:
        dirs.add(rel)
    tree.setdefault("/".join(parts[:-1]), set()).add(rel)


def directory_marker(directory: Path, *, has_listed_files: bool) -> str:
    """Describe a directory that holds none of the listed files.

    Args:
        directory (Path): absolute path of the directory
        has_listed_files (bool): whether any listed file lives below the directory

    Returns:
        str: a marker telling apart unselected text files, non-text or ignored files
            and empty directories; an empty string when no marker applies
    """
    if has_listed_files:
        return ""
    try:
        with os.scandir(directory) as it:
            entries = list(it)
    except OSError:
        return ""
    regular = [e for e in entries if e.is_file()]
    if regular:
        if any(is_eligible_text(Path(e.path)) for e in regular):
            return UNSELECTED_TEXT_MARKER
        return NON_TEXT_MARKER
    if not entries:
        return EMPTY_MARKER
    return ""


def render_directory_tree(
    files: Sequence[Path],
    root: Path,
    *,
    selected: Collection[str] | None = None,
    show_all: bool = False,
) -> str:
    """Render files and their directories as a box-drawing tree.

    With `show_all`, every directory returned by `list_directories` is shown
    too, and each line carries a selection symbol. Without it, only the
    ancestors of `files` appear. When `selected` is None no selection
    annotation is written at all.

    Example (`show_all=False`, one selected file):

        project/
        └── 📂 src/
            └── main.py ✓

    Args:
        files (Sequence[Path]): absolute paths of the files to show
        root (Path): the project root, rendered as the first line
        selected (Collection[str] | None): relative paths of the selected files
        show_all (bool): render the full project structure

    Returns:
        str: the tree, lines joined with newlines and no trailing newline
    """
    tree: dict[str, set[str]] = {}
    dirs: set[str] = set()
    listed = {relpath(f, root) for f in files}
    for rel in listed:
        _link(tree, dirs, rel, is_dir=False)
    if show_all:
        for rel_dir in list_directories(root):
            _link(tree, dirs, rel_dir, is_dir=True)

    dirs_with_files = _ancestors(listed)
    selected_set = set(selected) if selected is not None else None
    dirs_with_selection = _ancestors(selected_set or ())

    lines: list[str] = [f"{root.name}/"]
    visited: set[str] = set()

    def walk(dir_path: str, prefix: str) -> None:
        if dir_path in visited:
            return
        visited.add(dir_path)
        items = sorted(tree.get(dir_path, ()), key=lambda p: (p not in dirs, PurePosixPath(p).name))
        for idx, item in enumerate(items):
            last = idx == len(items) - 1
            is_dir = item in dirs
            name = PurePosixPath(item).name
            display = f"{name}/" if is_dir else name
            if is_dir:
                display += directory_marker(root / item, has_listed_files=item in dirs_with_files)

            if selected_set is not None:
                if is_dir:
                    hit = item in dirs_with_selection or item in selected_set
                    if show_all:
                        symbol = SELECTED_SYMBOL if hit else NOT_SELECTED_SYMBOL
                        display = f"{DIR_EMOJI} {display} {symbol}"
                    else:
                        display = f"{DIR_EMOJI} {display}"
                else:
                    symbol = SELECTED_SYMBOL if item in selected_set else (NOT_SELECTED_SYMBOL if show_all else "")
                    display = f"{display} {symbol}" if symbol else display

            lines.append(prefix + ("└── " if last else "├── ") + display)
            if is_dir:
                walk(item, prefix + ("    " if last else "│   "))

    walk("", "")
    return "\n".join(lines)
