"""In-memory selection tree mirroring the discovered files.

Every node stores one of two states. A file's state is set directly; a
directory's state is either forced onto its whole subtree (top-down) or
recomputed from its children (bottom-up), where a directory is checked as soon
as any child is checked.
"""

from __future__ import annotations

import weakref
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from prompt_packer.events import Debouncer, SimpleEmitter
from prompt_packer.logging import logger

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

    DiscoverFn = Callable[[Path], list[Path]]
    SelectionListener = Callable[[list[Path], bool], None]

TREE_CHANGED = "tree_changed"
SELECTION_CHANGED = "selection_changed"


class CheckState(Enum):
    """Stored checkbox state of a node."""

    CHECKED = "checked"
    UNCHECKED = "unchecked"

    def flipped(self) -> CheckState:
        return CheckState.UNCHECKED if self is CheckState.CHECKED else CheckState.CHECKED


class Node:
    """One file or directory of the selection tree.

    A node owns its children. The link back to the parent is a weak
    reference and is only used to walk upwards.
    """

    def __init__(
        self,
        path: Path,
        *,
        is_directory: bool,
        parent: Node | None = None,
        checked: CheckState = CheckState.CHECKED,
    ) -> None:
        self.path = path
        self.is_directory = is_directory
        self.checked = checked
        self.children: list[Node] = []
        self._parent = weakref.ref(parent) if parent is not None else None

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def parent(self) -> Node | None:
        return self._parent() if self._parent is not None else None

    @property
    def is_checked(self) -> bool:
        return self.checked is CheckState.CHECKED

    def walk(self) -> Iterator[Node]:
        """Yield this node and its descendants, depth first, in child order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def __repr__(self) -> str:
        kind = "dir" if self.is_directory else "file"
        return f"Node({kind} {self.path}, {self.checked.value})"


def _sort_key(node: Node) -> tuple[bool, str]:
    return (not node.is_directory, node.name)


def _sort_recursive(nodes: list[Node]) -> None:
    nodes.sort(key=_sort_key)
    for node in nodes:
        _sort_recursive(node.children)


class SelectionTree:
    """Selection state over the eligible files of one project root.

    Mutations notify two kinds of listeners: tree-changed listeners are called
    immediately, selection-changed listeners receive `(selected_files, full_tree)`
    once per debounce window.
    """

    def __init__(
        self,
        root: Path,
        discover: DiscoverFn | None = None,
        *,
        debounce_seconds: float = 0.05,
    ) -> None:
        self.root = root
        self._discover = discover
        self._roots: list[Node] = []
        self._index: dict[Path, Node] = {}
        self._full_tree = False
        self._events = SimpleEmitter()
        self._debouncer = Debouncer(debounce_seconds, self._deliver_selection)

    # ------------------------------------------------------------------ queries

    @property
    def roots(self) -> list[Node]:
        return list(self._roots)

    @property
    def full_tree(self) -> bool:
        return self._full_tree

    def find(self, path: Path) -> Node | None:
        """Look a node up by its absolute path."""
        return self._index.get(Path(path))

    def iter_nodes(self) -> Iterator[Node]:
        for root in self._roots:
            yield from root.walk()

    def selected_files(self) -> list[Path]:
        """Absolute paths of the checked file nodes, in tree order.

        Directory states are ignored: only files count as selected.
        """
        return [n.path for n in self.iter_nodes() if not n.is_directory and n.is_checked]

    # ---------------------------------------------------------------- listeners

    def on_tree_changed(self, callback: Callable[[], None]) -> Callable[[], None]:
        return self._events.on(TREE_CHANGED, callback)

    def on_selection_changed(self, callback: SelectionListener) -> Callable[[], None]:
        """Register a listener for debounced `(selected_files, full_tree)` updates.

        Mutations made inside a running event loop are delivered on that loop.
        Otherwise, with a non-zero delay, the listener runs on a timer thread.

        Args:
            callback: called with the current selection and full-tree flag.

        Returns:
            A function removing the listener.
        """
        return self._events.on(SELECTION_CHANGED, callback)

    def flush_notifications(self) -> None:
        """Deliver a pending selection notification now instead of after the delay."""
        self._debouncer.flush()

    def close(self) -> None:
        """Drop a pending selection notification."""
        self._debouncer.cancel()

    def _deliver_selection(self) -> None:
        self._events.emit(SELECTION_CHANGED, self.selected_files(), self._full_tree)

    def _changed(self) -> None:
        self._events.emit(TREE_CHANGED)
        if self._events.has_listeners(SELECTION_CHANGED):
            self._debouncer.schedule()

    # ------------------------------------------------------------------- build

    def refresh(self) -> None:
        """Rediscover the files under the root and rebuild the tree from scratch."""
        if self._discover is None:
            msg = "SelectionTree.refresh needs a discover function"
            raise RuntimeError(msg)
        self.build(self._discover(self.root))

    def build(self, paths: Iterable[Path]) -> None:
        """Rebuild the whole tree from absolute file paths.

        Previous nodes and their states are discarded; every node starts
        checked. Directories come before files in each directory, then names
        sort lexicographically.

        Args:
            paths: absolute file paths under `self.root`
        """
        self._roots = []
        self._index = {}
        for path in paths:
            file_path = Path(path)
            try:
                parts = file_path.relative_to(self.root).parts
            except ValueError:
                logger.warning("Ignoring %s: not under %s", str(file_path), str(self.root))
                continue
            siblings = self._roots
            parent: Node | None = None
            current = self.root
            for i, part in enumerate(parts):
                current = current / part
                node = self._index.get(current)
                if node is None:
                    node = Node(current, is_directory=i < len(parts) - 1, parent=parent)
                    siblings.append(node)
                    self._index[current] = node
                parent = node
                siblings = node.children
        _sort_recursive(self._roots)
        self._changed()

    # --------------------------------------------------------------- mutations

    def _set_down(self, node: Node, state: CheckState) -> None:
        for n in node.walk():
            n.checked = state

    def recompute_ancestors(self, node: Node) -> None:
        """Recompute the state of every ancestor of `node`, nearest first.

        A directory is checked if any of its children is checked, unchecked
        otherwise.
        """
        current = node.parent
        while current is not None:
            any_checked = any(child.is_checked for child in current.children)
            current.checked = CheckState.CHECKED if any_checked else CheckState.UNCHECKED
            current = current.parent

    def set_subtree(self, node: Node, state: CheckState) -> None:
        """Force `state` on `node` and all its descendants, then fix up the ancestors."""
        self._set_down(node, state)
        self.recompute_ancestors(node)
        self._changed()

    def toggle(self, node: Node) -> None:
        """Flip the state of `node`, propagating down for directories."""
        self.set_subtree(node, node.checked.flipped())

    def toggle_path(self, path: Path) -> bool:
        """Toggle the node at `path`.

        Returns:
            bool: False when no node has this path, True otherwise.
        """
        node = self.find(path)
        if node is None:
            return False
        self.toggle(node)
        return True

    def apply_checkbox_event(self, node: Node, state: CheckState) -> None:
        """Apply a state reported by an external checkbox widget."""
        self.apply_checkbox_events([(node, state)])

    def apply_checkbox_events(self, changes: Iterable[tuple[Node, CheckState]]) -> None:
        """Apply several checkbox changes, notifying listeners once."""
        for node, state in changes:
            self._set_down(node, state)
            self.recompute_ancestors(node)
        self._changed()

    def select_all(self) -> None:
        for root in self._roots:
            self._set_down(root, CheckState.CHECKED)
        self._changed()

    def deselect_all(self) -> None:
        for root in self._roots:
            self._set_down(root, CheckState.UNCHECKED)
        self._changed()

    def toggle_full_tree(self) -> bool:
        """Flip the full-tree flag carried by selection notifications.

        Returns:
            bool: the new value of the flag
        """
        self._full_tree = not self._full_tree
        self._changed()
        return self._full_tree
