"""Text-file sniffing, UTF-8 sanitizing and truncation."""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILE_BYTES = 5 * 1024 * 1024
SNIFF_BYTES = 512
TRUNCATION_MARKER = "...(truncated)"

# Bytes that show up in text files: tab, LF, FF, CR, ESC
_TEXT_CONTROL = {0x09, 0x0A, 0x0C, 0x0D, 0x1B}


def looks_like_text(sample: bytes) -> bool:
    """Heuristic: no NUL bytes and few control characters."""
    if not sample:
        return True
    if b"\x00" in sample:
        return False

    try:
        sample.decode("utf-8")
        return True
    except UnicodeDecodeError as exc:
        # A multi-byte sequence cut off by the sniff window is still text
        if exc.start >= len(sample) - 3 and exc.reason == "unexpected end of data":
            return True

    control = sum(1 for b in sample if b < 0x20 and b not in _TEXT_CONTROL)
    return control / len(sample) < 0.1


def is_text_file(path: Path) -> bool:
    """Read the first bytes of ``path`` and decide whether it is text."""
    with open(path, "rb") as f:
        sample = f.read(SNIFF_BYTES)
    return looks_like_text(sample)


def sanitize_text(data: bytes) -> str:
    """Decode UTF-8, replacing invalid byte runs with U+FFFD."""
    return data.decode("utf-8", errors="replace")


def read_text_file(path: Path, max_bytes: int = DEFAULT_MAX_FILE_BYTES) -> str:
    """
    Read a text file for inclusion in a prompt.

    At most ``max_bytes`` are kept; longer files get the truncation marker.

    Raises:
        OSError: If the file cannot be read
    """
    with open(path, "rb") as f:
        if max_bytes > 0:
            data = f.read(max_bytes + 1)
        else:
            data = f.read()

    if max_bytes > 0 and len(data) > max_bytes:
        logger.debug("Truncating %s at %d bytes", path.name, max_bytes)
        return sanitize_text(data[:max_bytes]) + TRUNCATION_MARKER
    return sanitize_text(data)
