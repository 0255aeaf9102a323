"""
Diff Models
===========
Pydantic models for a parsed multi-file unified diff.

Structure:
    FileDiff  — one file section: paths, extended headers, hunks
    Hunk      — one @@ block: old/new ranges, optional section heading, lines
    Line      — one body line with its marker stripped

Line numbering:
    lnum_old   — line number in the old file (0 for ADDED lines)
    lnum_new   — line number in the new file (0 for DELETED lines)
    lnum_diff  — 1-based position of the line among all body lines of the
                 file's hunks; never resets between hunks of one file

Models are built once by the parser; only the diff filter mutates them,
and only by removing lines, hunks or files.
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


class LineType(str, Enum):
    UNCHANGED = "unchanged"
    ADDED = "added"
    DELETED = "deleted"


class Line(BaseModel):
    type: LineType
    content: str
    lnum_old: int = 0
    lnum_new: int = 0
    lnum_diff: int = 0


class Hunk(BaseModel):
    start_line_old: int
    line_length_old: int
    start_line_new: int
    line_length_new: int
    section: Optional[str] = None
    lines: List[Line] = []


class FileDiff(BaseModel):
    path_old: str = ""
    path_new: str = ""
    hunks: List[Hunk] = []
    extended: List[str] = []

    @property
    def is_new_file(self) -> bool:
        return self.path_old == "/dev/null"

    @property
    def is_deleted_file(self) -> bool:
        return self.path_new == "/dev/null"
