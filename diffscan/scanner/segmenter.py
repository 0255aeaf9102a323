"""
Content Segmenter
=================
Splits one diff line into scan units no larger than a byte limit.

The content is encoded as UTF-8 and read in windows of ``max_bytes``.
When a window ends inside a multi-byte character the boundary backs off
to the start of that character, so a unit may be shorter than the limit
but always decodes on its own.
"""
from typing import Iterator

from diffscan.core.constants import CONTENT_CHUNK_BYTE_SIZE
from diffscan.core.errors import SegmentationError
from diffscan.models.diff import Line
from diffscan.models.finding import ScanUnit


def _is_continuation(byte: int) -> bool:
    # UTF-8 continuation bytes look like 0b10xxxxxx
    return byte & 0xC0 == 0x80


def segment_line(
    line: Line,
    file_path: str,
    max_bytes: int = CONTENT_CHUNK_BYTE_SIZE,
) -> Iterator[ScanUnit]:
    """
    Yield ScanUnits covering ``line.content`` in order.

    Concatenating the yielded contents reproduces the line exactly.
    Whitespace-only lines yield nothing.

    Raises
    ------
    SegmentationError
        If ``max_bytes`` cannot hold a single character of the content.
    """
    if max_bytes < 1:
        raise SegmentationError(f"chunk size must be positive, got {max_bytes}")
    if not line.content.strip():
        return

    data = line.content.encode("utf-8")

    start = 0
    while start < len(data):
        end = min(start + max_bytes, len(data))
        while end > start and end < len(data) and _is_continuation(data[end]):
            end -= 1
        if end == start:
            raise SegmentationError(
                f"{file_path}:{line.lnum_new}: a character at byte {start} "
                f"is wider than the {max_bytes}-byte chunk size"
            )
        yield ScanUnit(
            content=data[start:end].decode("utf-8"),
            file_path=file_path,
            line_number=line.lnum_new,
        )
        start = end
