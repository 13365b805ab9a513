from __future__ import annotations

from typing import TYPE_CHECKING

from prompt_packer.config import SPECIAL_FILENAMES, TEXT_EXTENSIONS

if TYPE_CHECKING:
    from pathlib import Path

SNIFF_BYTES = 512
PRINTABLE_RATIO = 0.8
_WHITESPACE = frozenset({0x09, 0x0A, 0x0D})


def is_printable_sample(chunk: bytes) -> bool:
    """Decide whether a byte prefix looks like text.

    An empty prefix is text. Any null byte makes it binary. Otherwise more than
    80% of the bytes must be printable ASCII (0x20-0x7E) or tab, LF, CR.

    Args:
        chunk (bytes): the leading bytes of a file

    Returns:
        bool: True if the sample looks like text, False otherwise
    """
    if not chunk:
        return True
    if 0 in chunk:
        return False
    printable = sum(1 for b in chunk if 0x20 <= b <= 0x7E or b in _WHITESPACE)
    return printable / len(chunk) > PRINTABLE_RATIO


def sniff_text(path: Path, nbytes: int = SNIFF_BYTES) -> bool:
    """Check whether the first `nbytes` bytes of a file look like text.

    Args:
        path (Path): path to test.
        nbytes (int, optional): number of bytes to sample. Defaults to 512.

    Returns:
        bool: True if the sample looks like text, False otherwise or if the file cannot be read.
    """
    try:
        with path.open("rb") as f:
            chunk = f.read(nbytes)
    except OSError:
        return False
    return is_printable_sample(chunk)


def is_eligible_text(path: Path) -> bool:
    """Check if a file is a text file eligible for the prompt document.

    Known text extensions and well-known extension-less names (Dockerfile,
    README, ...) are accepted without opening the file. Anything else is
    sniffed with `sniff_text`.

    Args:
        path (Path): the file path to classify

    Returns:
        bool: True if the file is eligible text, False otherwise
    """
    ext = path.suffix.lower()
    if ext in TEXT_EXTENSIONS:
        return True
    if not ext and path.name.lower() in SPECIAL_FILENAMES:
        return True
    return sniff_text(path)
