from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Protocol

import pyperclip

from prompt_packer.exceptions import SinkDeliveryError

if TYPE_CHECKING:
    from pathlib import Path
    from typing import TextIO


class DocumentSink(Protocol):
    """Destination that receives a finished document."""

    name: str

    def deliver(self, text: str) -> None: ...


class Viewer(Protocol):
    """Read-only presentation of a document, tagged with a language for highlighting."""

    def show(self, text: str, language: str) -> None: ...


class ClipboardSink:
    """Copy documents to the system clipboard."""

    name = "clipboard"

    def deliver(self, text: str) -> None:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            raise SinkDeliveryError(sink=self.name, reason=str(e)) from e


class FileSink:
    """Write documents to a file, replacing its content."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.name = str(path)

    def deliver(self, text: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise SinkDeliveryError(sink=self.name, reason=str(e)) from e


class StreamViewer:
    """Print documents to a text stream, stdout by default."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def show(self, text: str, language: str) -> None:  # noqa: ARG002
        stream = self._stream or sys.stdout
        stream.write(text)
        if not text.endswith("\n"):
            stream.write("\n")
        stream.flush()
