from __future__ import annotations

import asyncio
import signal
import sys
from functools import partial
from pathlib import Path

import pytest

from prompt_packer import __version__, cli
from prompt_packer.corpus import CancellationToken, read_files_in_batches
from prompt_packer.discovery import discover
from prompt_packer.selection import SelectionTree
from prompt_packer.settings import OutputFormat, PackerSettings


def _tree(root: Path) -> SelectionTree:
    tree = SelectionTree(root, partial(discover, settings=PackerSettings()), debounce_seconds=0)
    tree.refresh()
    return tree


@pytest.mark.unit
def test_parse_args_pack_options(tmp_path: Path) -> None:
    max_file_size = 2048
    options = cli.parse_args(
        [
            "pack",
            "--root",
            str(tmp_path),
            "--format",
            "xml",
            "--max-file-size",
            str(max_file_size),
            "--ignore",
            "*.log",
            "--ignore",
            "build/**",
            "--exclude",
            "tests",
            "--no-file-stats",
            "--full-tree",
            "--output",
            "out.md",
        ],
    )

    assert options.command == "pack"
    assert options.root == tmp_path
    assert options.format is OutputFormat.XML
    assert options.ignore == ["*.log", "build/**"]
    assert options.exclude == ["tests"]
    assert options.full_tree is True
    assert options.output == Path("out.md")
    assert options.settings_overrides() == {
        "ignore_patterns": ["*.log", "build/**"],
        "max_file_size": max_file_size,
        "output_format": OutputFormat.XML,
        "include_file_stats": False,
        "estimate_tokens": None,
    }


@pytest.mark.unit
def test_parse_args_requires_a_command(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.parse_args([])

    assert exc_info.value.code == 2
    assert "command" in capsys.readouterr().err


@pytest.mark.unit
def test_parse_args_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.parse_args(["--version"])

    assert exc_info.value.code == 0
    assert __version__ in capsys.readouterr().out


@pytest.mark.unit
def test_resolve_target_relative_to_root(tmp_path: Path) -> None:
    root = tmp_path.resolve()

    assert cli.resolve_target(root, "src/app.py") == root / "src" / "app.py"
    assert cli.resolve_target(root, str(root / "x")) == root / "x"


@pytest.mark.unit
def test_apply_selection_only_keeps_listed_paths(project: Path) -> None:
    root = project.resolve()
    tree = _tree(root)

    cli.apply_selection(tree, root, only=["b"], exclude=[])

    assert tree.selected_files() == [root / "b" / "readme"]


@pytest.mark.unit
def test_apply_selection_exclude_unchecks_subtree(project: Path) -> None:
    root = project.resolve()
    tree = _tree(root)

    cli.apply_selection(tree, root, only=[], exclude=["a/x.ts"])

    assert tree.selected_files() == [root / "b" / "readme"]
    node = tree.find(root / "a")
    assert node is not None
    assert node.is_checked is False


@pytest.mark.unit
def test_apply_selection_ignores_unknown_paths(project: Path) -> None:
    root = project.resolve()
    tree = _tree(root)

    cli.apply_selection(tree, root, only=[], exclude=["missing.py"])

    assert tree.selected_files() == [root / "a" / "x.ts", root / "b" / "readme"]


@pytest.mark.unit
@pytest.mark.skipif(sys.platform == "win32", reason="asyncio signal handlers need a Unix event loop")
def test_run_cancellable_turns_sigint_into_cancelled_build(tmp_path: Path) -> None:
    files = []
    for name in ["a.py", "b.py", "c.py"]:
        f = tmp_path / name
        f.write_text(name, encoding="utf-8")
        files.append(f)
    token = CancellationToken()

    def interrupt_after_first_batch(message: str) -> None:
        if message.startswith("Processed 1/"):
            signal.raise_signal(signal.SIGINT)

    records = asyncio.run(
        cli.run_cancellable(
            read_files_in_batches(files, tmp_path, batch_size=1, progress=interrupt_after_first_batch, token=token),
            token,
        ),
    )

    assert records is None
    assert token.is_cancellation_requested


@pytest.mark.unit
def test_run_cancellable_returns_the_build_result(tmp_path: Path) -> None:
    f = tmp_path / "a.py"
    f.write_text("x", encoding="utf-8")
    token = CancellationToken()

    records = asyncio.run(cli.run_cancellable(read_files_in_batches([f], tmp_path, token=token), token))

    assert records is not None
    assert [r.rel for r in records] == ["a.py"]
    assert not token.is_cancellation_requested
