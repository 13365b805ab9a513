"""Entry points turning a selection into a delivered prompt document."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from prompt_packer.config import CorpusStats
from prompt_packer.corpus import compute_stats, format_size, read_files_in_batches
from prompt_packer.discovery import discover, ensure_root
from prompt_packer.exceptions import NothingSelectedError
from prompt_packer.logging import logger
from prompt_packer.output_construction import format_count, render_document
from prompt_packer.tree_rendering import render_directory_tree

if TYPE_CHECKING:
    from collections.abc import Sequence

    from prompt_packer.corpus import CancellationToken, ProgressFn
    from prompt_packer.settings import PackerSettings
    from prompt_packer.sinks import DocumentSink, Viewer

PREVIEW_LANGUAGE = "markdown"


class PackResult(BaseModel):
    """A generated document with the statistics it was built from."""

    model_config = ConfigDict(frozen=True)

    document: str
    stats: CorpusStats
    summary: str


class SelectionSummary(BaseModel):
    """Figures shown next to the selection tree."""

    model_config = ConfigDict(frozen=True)

    file_count: int
    total_size: str
    total_tokens: str
    full_tree: bool


def _log_progress(message: str) -> None:
    logger.info(message)


class PromptPacker:
    """Build prompt documents from selected files and hand them to sinks."""

    def __init__(self, settings: PackerSettings) -> None:
        self.settings = settings

    def eligible_files(self, root: Path) -> list[Path]:
        return discover(root, self.settings)

    async def build(
        self,
        files: Sequence[Path],
        root: Path,
        *,
        full_tree: bool = False,
        progress: ProgressFn | None = None,
        token: CancellationToken | None = None,
    ) -> tuple[str, CorpusStats] | None:
        """Read the files and render the document.

        Args:
            files (Sequence[Path]): absolute paths of the selected files
            root (Path): the project root
            full_tree (bool): render the whole filtered project structure
            progress (ProgressFn | None): receives milestone messages
            token (CancellationToken | None): cancellation flag to observe

        Raises:
            RootNotFoundError: if `root` does not exist or is not a directory

        Returns:
            tuple[str, CorpusStats] | None: the document and its statistics,
                or None if the build was cancelled
        """
        report = progress or _log_progress
        repo = ensure_root(root)
        report("Processing files...")
        records = await read_files_in_batches(
            files,
            repo,
            batch_size=self.settings.batch_size,
            progress=report,
            token=token,
        )
        if records is None:
            return None

        report("Generating output...")
        stats = compute_stats(records)
        full_tree_files = self.eligible_files(repo) if full_tree else None
        document = render_document(
            records,
            stats,
            repo,
            settings=self.settings,
            full_tree_files=full_tree_files,
        )
        return document, stats

    async def pack_and_deliver(
        self,
        files: Sequence[Path],
        root: Path,
        sink: DocumentSink,
        *,
        full_tree: bool = False,
        progress: ProgressFn | None = None,
        token: CancellationToken | None = None,
    ) -> PackResult | None:
        """Build the document and hand it to `sink`.

        Returns:
            PackResult | None: the delivered document, or None if cancelled

        Raises:
            SinkDeliveryError: if the sink rejects the document
        """
        built = await self.build(files, root, full_tree=full_tree, progress=progress, token=token)
        if built is None:
            return None
        document, stats = built
        (progress or _log_progress)("Finalizing...")
        sink.deliver(document)
        summary = f"✅ {stats.total_files} files packed to {sink.name}! (Approx. size: {format_size(len(document))})"
        logger.info(summary)
        return PackResult(document=document, stats=stats, summary=summary)

    async def pack_and_preview(
        self,
        files: Sequence[Path],
        root: Path,
        viewer: Viewer,
        *,
        full_tree: bool = False,
        progress: ProgressFn | None = None,
        token: CancellationToken | None = None,
    ) -> PackResult | None:
        """Build the document and show it in `viewer`, tagged as markdown.

        Raises:
            NothingSelectedError: if `files` is empty

        Returns:
            PackResult | None: the previewed document, or None if cancelled
        """
        if not files:
            raise NothingSelectedError
        built = await self.build(files, root, full_tree=full_tree, progress=progress, token=token)
        if built is None:
            return None
        document, stats = built
        (progress or _log_progress)("Finalizing...")
        viewer.show(document, PREVIEW_LANGUAGE)
        return PackResult(document=document, stats=stats, summary="🔎 Preview generated.")

    def tree_only(self, root: Path) -> str:
        """Render the full filtered project tree without selection annotations."""
        repo = ensure_root(root)
        return render_directory_tree(self.eligible_files(repo), repo, show_all=True)

    def copy_tree_only(self, root: Path, sink: DocumentSink) -> str:
        """Deliver the full filtered project tree to `sink`.

        Returns:
            str: the delivered tree

        Raises:
            SinkDeliveryError: if the sink rejects the tree
        """
        tree = self.tree_only(root)
        sink.deliver(tree)
        logger.info("Directory tree delivered to %s", sink.name)
        return tree


def selection_summary(files: Sequence[Path], *, full_tree: bool) -> SelectionSummary:
    """Summarize a selection from file sizes on disk.

    Unreadable files count as zero bytes. Tokens are estimated from bytes,
    four per token, rounded up.

    Args:
        files (Sequence[Path]): absolute paths of the selected files
        full_tree (bool): the current full-tree flag

    Returns:
        SelectionSummary: display-ready figures
    """
    total = 0
    for f in files:
        try:
            total += Path(f).stat().st_size
        except OSError as e:
            logger.warning("Cannot stat %s: %s", str(f), e)
    tokens = -(-total // 4)
    return SelectionSummary(
        file_count=len(files),
        total_size=format_size(total),
        total_tokens=f"~{format_count(tokens)}",
        full_tree=full_tree,
    )
