from __future__ import annotations

import asyncio
import threading
from collections import Counter
from pathlib import Path
from typing import TYPE_CHECKING

from prompt_packer.config import NO_EXTENSION, CorpusStats, FileRecord, estimate_tokens
from prompt_packer.discovery import relpath
from prompt_packer.logging import logger

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    ProgressFn = Callable[[str], None]

BATCH_SIZE = 50
BATCH_PAUSE_SECONDS = 0.001
SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


class CancellationToken:
    """Cooperative cancellation flag shared between a caller and a running build."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancellation_requested(self) -> bool:
        return self._event.is_set()


def count_lines(text: str) -> int:
    """Count newline separated segments: "" is 1 line, "a\\nb\\n" is 3."""
    return text.count("\n") + 1


def format_size(num_bytes: int) -> str:
    """Format a byte count with binary units.

    Values keep at most two decimals and drop trailing zeros
    (e.g. 1536 -> "1.5 KB", 2048 -> "2 KB", 0 -> "0 B").

    Args:
        num_bytes (int): the size in bytes

    Returns:
        str: the human readable size
    """
    if num_bytes <= 0:
        return "0 B"
    exponent = 0
    while exponent < len(SIZE_UNITS) - 1 and num_bytes >= 1024 ** (exponent + 1):
        exponent += 1
    value = f"{num_bytes / 1024**exponent:.2f}".rstrip("0").rstrip(".")
    return f"{value} {SIZE_UNITS[exponent]}"


def read_file_record(path: Path, root: Path) -> FileRecord:
    """Read one file and measure it.

    Args:
        path (Path): absolute path of the file
        root (Path): the project root used for the relative path

    Returns:
        FileRecord: the decoded content with its size, line count and extension.
            Line endings are kept as they are on disk.
    """
    content = path.read_bytes().decode("utf-8", errors="replace")
    size = path.stat().st_size
    return FileRecord(
        rel=relpath(path, root),
        content=content,
        size=size,
        lines=count_lines(content),
        extension=path.suffix,
    )


async def _read_or_skip(path: Path, root: Path) -> FileRecord | None:
    try:
        return await asyncio.to_thread(read_file_record, path, root)
    except OSError as e:
        logger.warning("Skipped file due to read error: %s - %s", str(path), e)
        return None


async def read_files_in_batches(
    files: Sequence[Path],
    root: Path,
    *,
    batch_size: int = BATCH_SIZE,
    progress: ProgressFn | None = None,
    token: CancellationToken | None = None,
) -> list[FileRecord] | None:
    """Read files in fixed-size concurrent batches.

    All reads of a batch run concurrently and the next batch starts once they
    have all completed. Cancellation is checked before each batch and once
    more after the last one; in-flight reads are never interrupted.

    Args:
        files (Sequence[Path]): absolute paths to read
        root (Path): the project root used for relative paths
        batch_size (int): number of concurrent reads per batch
        progress (ProgressFn | None): receives "Processed i/n files..." after each batch
        token (CancellationToken | None): cancellation flag to observe

    Returns:
        list[FileRecord] | None: records sorted by relative path, or None when cancelled.
            Unreadable files are left out.
    """
    records: list[FileRecord] = []
    total = len(files)
    for start in range(0, total, batch_size):
        if token is not None and token.is_cancellation_requested:
            logger.info("File processing cancelled after %d/%d files", start, total)
            return None
        batch = files[start : start + batch_size]
        results = await asyncio.gather(*(_read_or_skip(Path(f), root) for f in batch))
        records.extend(r for r in results if r is not None)
        if progress is not None:
            progress(f"Processed {start + len(batch)}/{total} files...")
        await asyncio.sleep(BATCH_PAUSE_SECONDS)

    if token is not None and token.is_cancellation_requested:
        logger.info("File processing cancelled")
        return None
    return sorted(records, key=lambda r: r.rel)


def compute_stats(records: Sequence[FileRecord]) -> CorpusStats:
    """Aggregate size, line and token statistics.

    The token estimate is the sum of the per-file estimates, not an estimate
    of the summed lengths.

    Args:
        records (Sequence[FileRecord]): the files of the document

    Returns:
        CorpusStats: totals and an extension histogram; files without an extension
            are counted under "no extension"
    """
    by_type: Counter[str] = Counter()
    for rec in records:
        by_type[rec.extension or NO_EXTENSION] += 1
    return CorpusStats(
        total_files=len(records),
        total_size=sum(r.size for r in records),
        total_lines=sum(r.lines for r in records),
        estimated_tokens=sum(estimate_tokens(r.content) for r in records),
        files_by_type=dict(by_type),
    )
