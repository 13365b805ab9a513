from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING

from prompt_packer.discovery import discover, ensure_root
from prompt_packer.logging import logger
from prompt_packer.packer import PromptPacker, selection_summary
from prompt_packer.selection import SelectionTree

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from prompt_packer.corpus import CancellationToken, ProgressFn
    from prompt_packer.packer import PackResult, SelectionSummary
    from prompt_packer.selection import Node
    from prompt_packer.settings import PackerSettings
    from prompt_packer.sinks import DocumentSink, Viewer

    StatsListener = Callable[[SelectionSummary], None]


class PackerSession:
    """One project root with its selection tree, packer and stats display.

    The stats listener receives a `SelectionSummary` every time the
    (debounced) selection changes, and again on `show()`.
    """

    def __init__(
        self,
        root: Path,
        settings: PackerSettings,
        *,
        stats_listener: StatsListener | None = None,
    ) -> None:
        self.root = ensure_root(root)
        self.settings = settings
        self.packer = PromptPacker(settings)
        self.tree = SelectionTree(
            self.root,
            partial(discover, settings=settings),
            debounce_seconds=settings.debounce_seconds,
        )
        self._stats_listener = stats_listener
        self._latest: SelectionSummary | None = None
        self.tree.on_selection_changed(self._push_stats)
        self.tree.refresh()

    def _push_stats(self, files: list[Path], full_tree: bool) -> None:  # noqa: FBT001
        self._latest = selection_summary(files, full_tree=full_tree)
        if self._stats_listener is not None:
            self._stats_listener(self._latest)

    def show(self) -> SelectionSummary:
        """Push the current figures again, as when the stats view becomes visible."""
        self.tree.close()
        summary = selection_summary(self.tree.selected_files(), full_tree=self.tree.full_tree)
        self._latest = summary
        if self._stats_listener is not None:
            self._stats_listener(summary)
        return summary

    @property
    def latest_stats(self) -> SelectionSummary | None:
        return self._latest

    def refresh(self) -> None:
        self.tree.refresh()

    def select_all(self) -> None:
        self.tree.select_all()

    def deselect_all(self) -> None:
        self.tree.deselect_all()

    def clear(self) -> None:
        """Deselect everything; the selection is not restored afterwards."""
        self.tree.deselect_all()
        logger.info("Selection cleared")

    def toggle(self, node: Node) -> None:
        self.tree.toggle(node)

    def toggle_path(self, path: Path) -> bool:
        return self.tree.toggle_path(path)

    def toggle_full_tree(self) -> bool:
        enabled = self.tree.toggle_full_tree()
        logger.info("Show full project structure: %s", "Enabled" if enabled else "Disabled")
        return enabled

    async def pack(
        self,
        sink: DocumentSink,
        *,
        progress: ProgressFn | None = None,
        token: CancellationToken | None = None,
    ) -> PackResult | None:
        return await self.packer.pack_and_deliver(
            self.tree.selected_files(),
            self.root,
            sink,
            full_tree=self.tree.full_tree,
            progress=progress,
            token=token,
        )

    async def preview(
        self,
        viewer: Viewer,
        *,
        progress: ProgressFn | None = None,
        token: CancellationToken | None = None,
    ) -> PackResult | None:
        return await self.packer.pack_and_preview(
            self.tree.selected_files(),
            self.root,
            viewer,
            full_tree=self.tree.full_tree,
            progress=progress,
            token=token,
        )

    def copy_tree_only(self, sink: DocumentSink) -> str:
        return self.packer.copy_tree_only(self.root, sink)

    def close(self) -> None:
        self.tree.close()
