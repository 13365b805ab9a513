from pathlib import Path

import pytest

from prompt_packer.tree_rendering import render_directory_tree


@pytest.mark.unit
def test_selected_only_tree_shows_ancestors_of_selection(project: Path) -> None:
    root = project.resolve()

    tree = render_directory_tree([root / "a" / "x.ts"], root, selected={"a/x.ts"})

    assert tree == "proj/\n└── 📂 a/\n    └── x.ts ✓"


@pytest.mark.unit
def test_full_tree_annotates_selection(project: Path) -> None:
    root = project.resolve()
    files = [root / "a" / "x.ts", root / "b" / "readme"]

    tree = render_directory_tree(files, root, selected={"a/x.ts"}, show_all=True)

    assert tree.splitlines() == [
        "proj/",
        "├── 📂 a/ ✓",
        "│   └── x.ts ✓",
        "└── 📂 b/ ✗",
        "    └── readme ✗",
    ]


@pytest.mark.unit
def test_tree_without_selection_has_no_annotations(project: Path) -> None:
    root = project.resolve()
    files = [root / "a" / "x.ts", root / "b" / "readme"]

    tree = render_directory_tree(files, root, show_all=True)

    assert tree.splitlines() == ["proj/", "├── a/", "│   └── x.ts", "└── b/", "    └── readme"]


@pytest.mark.unit
def test_full_tree_marks_directories_without_listed_files(project: Path) -> None:
    root = project.resolve()
    (root / "assets").mkdir()
    (root / "assets" / "logo.png").write_bytes(b"\x89PNG\x00")
    (root / "empty").mkdir()
    (root / "notes").mkdir()
    (root / "notes" / "todo.txt").write_text("later\n", encoding="utf-8")
    (root / "only_dirs" / "inner").mkdir(parents=True)

    tree = render_directory_tree([root / "a" / "x.ts"], root, show_all=True)
    lines = tree.splitlines()

    assert "├── assets/ 📁 (contains non-text or ignored files)" in lines
    assert "├── empty/ (empty)" in lines
    assert "├── notes/ 📁 (contains text files but not selected)" in lines
    assert "└── only_dirs/" in lines
    assert "    └── inner/ (empty)" in lines


@pytest.mark.unit
def test_directories_sort_before_files_then_by_name(tmp_path: Path) -> None:
    root = tmp_path / "proj"
    for rel in ["zeta.py", "alpha.py", "lib/b.py", "docs/a.md"]:
        f = root / rel
        f.parent.mkdir(parents=True, exist_ok=True)
        f.write_text("x", encoding="utf-8")
    files = [root / rel for rel in ["zeta.py", "alpha.py", "lib/b.py", "docs/a.md"]]

    tree = render_directory_tree(files, root)

    assert tree.splitlines() == [
        "proj/",
        "├── docs/",
        "│   └── a.md",
        "├── lib/",
        "│   └── b.py",
        "├── alpha.py",
        "└── zeta.py",
    ]
