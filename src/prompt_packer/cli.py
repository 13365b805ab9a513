"""
prompt-packer: pack selected project files into one prompt for an LLM.

Overview
--------
The project root is walked for eligible text files (ignore globs, size cap,
text detection). Every eligible file starts selected; `--only` and
`--exclude` adjust the selection the way checkboxes in a file tree would
(selecting a directory selects everything below it). The selection is then
rendered as a single document: overview statistics, the top file types, a
directory tree and the content of every selected file.

Usage
-----
    - List what would be packed:
        prompt-packer files --root . --exclude tests

    - Copy the packed prompt to the clipboard, showing the whole tree:
        prompt-packer pack --root . --only src --full-tree

    - Write an XML-wrapped prompt to a file:
        prompt-packer pack --format xml --output prompt.xml

    - Print only the project tree:
        prompt-packer tree
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

from prompt_packer import __version__
from prompt_packer.corpus import CancellationToken
from prompt_packer.discovery import relpath
from prompt_packer.exceptions import NothingSelectedError, PromptPackerError
from prompt_packer.logging import logger, redirect_logging
from prompt_packer.selection import CheckState
from prompt_packer.session import PackerSession
from prompt_packer.settings import CommandOptions, OutputFormat, load_settings
from prompt_packer.sinks import ClipboardSink, FileSink, StreamViewer

if TYPE_CHECKING:
    from collections.abc import Coroutine, Sequence

    from prompt_packer.selection import Node, SelectionTree

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CANCELLED = 130

T = TypeVar("T")


def _add_common_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument("--root", type=Path, default=Path.cwd(), help="Project root.")
    p.add_argument("--config", type=Path, default=None, help="YAML configuration file.")
    p.add_argument("--log-file", type=str, default="", help="Log file path.")
    p.add_argument(
        "--ignore",
        action="append",
        default=[],
        help="Extra ignore glob (repeatable).",
    )
    p.add_argument(
        "--max-file-size",
        type=int,
        default=None,
        help="Skip files larger than this many bytes.",
    )
    p.add_argument(
        "--only",
        action="append",
        default=[],
        help="Select only this file or directory (repeatable).",
    )
    p.add_argument(
        "--exclude",
        action="append",
        default=[],
        help="Deselect this file or directory (repeatable).",
    )


def _add_document_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--format",
        choices=[f.value for f in OutputFormat],
        default=None,
        help="Output format.",
    )
    p.add_argument("--no-file-stats", action="store_true", help="Omit per-file size and line count.")
    p.add_argument("--no-token-estimate", action="store_true", help="Omit the token estimate.")
    p.add_argument("--full-tree", action="store_true", help="Show the full project structure.")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="prompt-packer",
        description="Pack selected project files into a single LLM prompt.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = p.add_subparsers(dest="command", required=True)

    files = sub.add_parser("files", help="List the selected files.")
    _add_common_arguments(files)

    tree = sub.add_parser("tree", help="Print the full project tree.")
    _add_common_arguments(tree)
    tree.add_argument("--clipboard", action="store_true", help="Copy the tree to the clipboard.")

    pack = sub.add_parser("pack", help="Pack the selection to the clipboard or a file.")
    _add_common_arguments(pack)
    _add_document_arguments(pack)
    pack.add_argument("--output", type=Path, default=None, help="Write to this file instead of the clipboard.")

    preview = sub.add_parser("preview", help="Print the packed prompt.")
    _add_common_arguments(preview)
    _add_document_arguments(preview)
    return p


def parse_args(argv: Sequence[str] | None = None) -> CommandOptions:
    args = build_parser().parse_args(argv)
    return CommandOptions(**vars(args))


def resolve_target(root: Path, raw: str) -> Path:
    """Turn a command line path into the absolute path used by the selection tree."""
    p = Path(raw).expanduser()
    if not p.is_absolute():
        p = root / p
    return p.resolve()


def apply_selection(tree: SelectionTree, root: Path, only: Sequence[str], exclude: Sequence[str]) -> None:
    """Apply `--only` and `--exclude` to a freshly built tree.

    With `only`, everything is deselected first and the given nodes are
    checked. Nodes listed in `exclude` are unchecked afterwards. Paths that
    are not in the tree are logged and ignored.

    Args:
        tree (SelectionTree): the tree to update
        root (Path): the resolved project root
        only (Sequence[str]): files or directories to select exclusively
        exclude (Sequence[str]): files or directories to deselect
    """
    changes: list[tuple[Node, CheckState]] = []
    for raw, state in [*((o, CheckState.CHECKED) for o in only), *((e, CheckState.UNCHECKED) for e in exclude)]:
        node = tree.find(resolve_target(root, raw))
        if node is None:
            logger.warning("Path %s is not an eligible file or directory; ignored", raw)
            continue
        changes.append((node, state))
    if only:
        tree.deselect_all()
    if changes:
        tree.apply_checkbox_events(changes)


async def run_cancellable(
    build: Coroutine[Any, Any, T],
    token: CancellationToken,
) -> T:
    """Await `build` with SIGINT routed to `token`.

    While `build` runs, Ctrl-C requests cancellation instead of raising
    KeyboardInterrupt, so the batch reader stops at its next batch boundary
    and a pack or preview returns None. Where the event loop cannot install signal
    handlers (Windows, or a thread other than the main one), SIGINT keeps its
    default behaviour.
    """
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, token.cancel)
    except (NotImplementedError, RuntimeError, ValueError):
        installed = False
    else:
        installed = True
    try:
        return await build
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGINT)


def _run_pack(session: PackerSession, options: CommandOptions, token: CancellationToken) -> int:
    sink = FileSink(options.output) if options.output is not None else ClipboardSink()
    result = asyncio.run(run_cancellable(session.pack(sink, token=token), token))
    if result is None:
        print("File processing cancelled.", file=sys.stderr)
        return EXIT_CANCELLED
    print(result.summary)
    return EXIT_OK


def _run_preview(session: PackerSession, token: CancellationToken) -> int:
    result = asyncio.run(run_cancellable(session.preview(StreamViewer(), token=token), token))
    if result is None:
        print("File processing cancelled.", file=sys.stderr)
        return EXIT_CANCELLED
    return EXIT_OK


def _run_tree(session: PackerSession, options: CommandOptions) -> int:
    if options.clipboard:
        session.copy_tree_only(ClipboardSink())
        print("📁 Directory tree copied to clipboard!")
    else:
        print(session.packer.tree_only(session.root))
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    options = parse_args(argv)
    if options.log_file:
        redirect_logging(options.log_file)

    token = CancellationToken()
    session: PackerSession | None = None
    try:
        settings = load_settings(
            options.root,
            options.config,
            debounce_seconds=0,
            **options.settings_overrides(),
        )
        session = PackerSession(options.root, settings)
        apply_selection(session.tree, session.root, options.only, options.exclude)
        if options.full_tree:
            session.toggle_full_tree()

        if options.command == "files":
            for f in session.tree.selected_files():
                print(relpath(f, session.root))
            return EXIT_OK
        if options.command == "tree":
            return _run_tree(session, options)
        if options.command == "pack":
            return _run_pack(session, options, token)
        return _run_preview(session, token)
    except NothingSelectedError as e:
        print(str(e), file=sys.stderr)
        return EXIT_OK
    except PromptPackerError as e:
        logger.error("prompt-packer failed: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
    except KeyboardInterrupt:
        token.cancel()
        print("Cancelled.", file=sys.stderr)
        return EXIT_CANCELLED
    finally:
        if session is not None:
            session.close()


if __name__ == "__main__":
    raise SystemExit(main())
