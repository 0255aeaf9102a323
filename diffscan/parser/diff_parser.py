"""
Unified Diff Parser
===================
Converts raw multi-file unified diff text into ordered FileDiff models.

Pipeline:
    1. Split text into lines (a trailing newline does not add a line)
    2. "diff ..." opens a new FileDiff; header lines before the first hunk
       are kept verbatim in FileDiff.extended
    3. "--- " / "+++ " pairs give the old/new paths (a/ b/ prefixes dropped)
    4. "@@ -a,b +c,d @@ section" opens a Hunk
    5. Hunk body lines are consumed until the header's old/new counts are
       used up, so a deleted line that reads "-- x" is never taken for a
       file header

Contract:
    - DETERMINISTIC: same text → same FileDiffs, always.
    - Malformed hunk headers and unknown body markers raise ParseError.
    - Empty input yields an empty list.
    - One pass; every call builds fresh models.
"""
import re
import logging
from typing import List, Optional, Tuple

from diffscan.core.errors import ParseError
from diffscan.models.diff import FileDiff, Hunk, Line, LineType

logger = logging.getLogger(__name__)

DEV_NULL = "/dev/null"

# @@ -oldStart[,oldLen] +newStart[,newLen] @@ [section]
_HUNK_HEADER = re.compile(r"^@@ -(\S+) \+(\S+) @@(?: ?(.*))?$")
_HUNK_RANGE = re.compile(r"^(\d+)(?:,(\d+))?$")

_MARKERS = {
    " ": LineType.UNCHANGED,
    "+": LineType.ADDED,
    "-": LineType.DELETED,
}


def _parse_range(raw: str, line_number: int) -> Tuple[int, int]:
    """Parse "start[,length]"; an omitted length means 1."""
    match = _HUNK_RANGE.match(raw)
    if not match:
        raise ParseError(f"malformed hunk range {raw!r}", line_number)
    start = int(match.group(1))
    length = int(match.group(2)) if match.group(2) is not None else 1
    return start, length


def parse_hunk_header(header: str, line_number: int = 0) -> Hunk:
    """
    Parse one "@@ ... @@" line into an empty Hunk.

    Parameters
    ----------
    header : str
        The raw hunk header line.
    line_number : int
        1-based position of the header in the input, used in errors.
    """
    match = _HUNK_HEADER.match(header)
    if not match:
        raise ParseError(f"malformed hunk header {header!r}", line_number)
    old_start, old_len = _parse_range(match.group(1), line_number)
    new_start, new_len = _parse_range(match.group(2), line_number)
    section = (match.group(3) or "").strip() or None
    return Hunk(
        start_line_old=old_start,
        line_length_old=old_len,
        start_line_new=new_start,
        line_length_new=new_len,
        section=section,
        lines=[],
    )


def parse_file_path(raw: str) -> str:
    """Strip the a/ or b/ prefix, quotes and any trailing timestamp."""
    path = raw.split("\t", 1)[0].rstrip()
    if len(path) >= 2 and path.startswith('"') and path.endswith('"'):
        path = path[1:-1]
    if path == DEV_NULL:
        return path
    if path.startswith(("a/", "b/")):
        path = path[2:]
    return path


class _DiffParser:
    """Single-use cursor over the lines of one diff text."""

    def __init__(self, text: str) -> None:
        lines = text.split("\n")
        if text.endswith("\n"):
            lines.pop()
        self.lines = lines
        self.pos = 0
        self.files: List[FileDiff] = []
        self.current: Optional[FileDiff] = None
        self.lnum_diff = 0

    def _start_file(self, first_header: Optional[str] = None) -> FileDiff:
        fd = FileDiff(extended=[first_header] if first_header is not None else [])
        self.files.append(fd)
        self.current = fd
        self.lnum_diff = 0
        return fd

    def _is_path_pair(self) -> bool:
        line = self.lines[self.pos]
        return (
            line.startswith("--- ")
            and self.pos + 1 < len(self.lines)
            and self.lines[self.pos + 1].startswith("+++ ")
        )

    def parse(self) -> List[FileDiff]:
        while self.pos < len(self.lines):
            line = self.lines[self.pos]

            if line.startswith("diff "):
                self._start_file(line)
                self.pos += 1
                continue

            if self._is_path_pair():
                fd = self.current
                # Plain "diff -u" output has no "diff" line between files
                if fd is None or fd.hunks or fd.path_old or fd.path_new:
                    fd = self._start_file()
                fd.path_old = parse_file_path(line[4:])
                fd.path_new = parse_file_path(self.lines[self.pos + 1][4:])
                self.pos += 2
                continue

            if line.startswith("@@"):
                if self.current is None:
                    raise ParseError("hunk header before any file header", self.pos + 1)
                hunk = parse_hunk_header(line, self.pos + 1)
                self.pos += 1
                self._parse_hunk_body(hunk)
                self.current.hunks.append(hunk)
                continue

            if self.current is None:
                # Preamble such as a commit message
                self.pos += 1
                continue

            if not self.current.hunks:
                self.current.extended.append(line)
                self.pos += 1
                continue

            if line.startswith("\\") or not line.strip():
                self.pos += 1
                continue

            # "-- " is the signature separator of format-patch output
            if line[0] in _MARKERS and line != "-- ":
                raise ParseError("hunk body has more lines than its header declares", self.pos + 1)

            logger.debug("Ignoring trailer line %d: %r", self.pos + 1, line)
            self.pos += 1

        return self.files

    def _parse_hunk_body(self, hunk: Hunk) -> None:
        old_remaining = hunk.line_length_old
        new_remaining = hunk.line_length_new
        lnum_old = hunk.start_line_old
        lnum_new = hunk.start_line_new

        while self.pos < len(self.lines) and (old_remaining > 0 or new_remaining > 0):
            raw = self.lines[self.pos]
            if raw.startswith("\\"):
                # "\ No newline at end of file"
                self.pos += 1
                continue

            # Some tools strip the space from blank context lines
            marker, content = (raw[0], raw[1:]) if raw else (" ", "")
            line_type = _MARKERS.get(marker)
            if line_type is None:
                raise ParseError(f"unexpected line marker {marker!r} in hunk body", self.pos + 1)

            self.lnum_diff += 1
            if line_type is LineType.UNCHANGED:
                line = Line(type=line_type, content=content, lnum_old=lnum_old,
                            lnum_new=lnum_new, lnum_diff=self.lnum_diff)
                lnum_old += 1
                lnum_new += 1
                old_remaining -= 1
                new_remaining -= 1
            elif line_type is LineType.ADDED:
                line = Line(type=line_type, content=content, lnum_new=lnum_new,
                            lnum_diff=self.lnum_diff)
                lnum_new += 1
                new_remaining -= 1
            else:
                line = Line(type=line_type, content=content, lnum_old=lnum_old,
                            lnum_diff=self.lnum_diff)
                lnum_old += 1
                old_remaining -= 1

            if old_remaining < 0 or new_remaining < 0:
                raise ParseError("hunk body has more lines than its header declares", self.pos + 1)

            hunk.lines.append(line)
            self.pos += 1

        if old_remaining > 0 or new_remaining > 0:
            logger.debug(
                "Diff ended inside a hunk (%d old / %d new lines missing)",
                old_remaining, new_remaining,
            )

        while self.pos < len(self.lines) and self.lines[self.pos].startswith("\\"):
            self.pos += 1


def parse_diff(text: str) -> List[FileDiff]:
    """
    Parse raw unified diff text into an ordered list of FileDiff models.

    Parameters
    ----------
    text : str
        Output of ``git diff`` / ``git show`` / ``diff -u``.

    Returns
    -------
    List[FileDiff]
        One entry per file section, in input order. Empty for empty input.

    Raises
    ------
    ParseError
        On malformed hunk headers or hunk bodies.
    """
    if not text:
        return []
    files = _DiffParser(text).parse()
    logger.debug("Parsed %d file diffs", len(files))
    return files
