"""
Diff Filter
===========
Prunes parsed FileDiffs down to the content worth sending to the scanner.

    filter_file_diffs — keep only ADDED lines with non-whitespace content,
                        then drop hunks and files left empty
    filter_by_path    — apply the repository's file inclusion / exclusion
                        glob lists to FileDiff.path_new

Globs use fnmatch syntax (`*`, `?`, `[...]`) plus `{a,b}` alternation,
which is expanded before matching and may nest.

Only newly introduced content is scanned (and billed) remotely. Lines are
removed, never retyped; relative order is preserved.
"""
import fnmatch
import logging
from typing import List, Sequence

from diffscan.models.diff import FileDiff, Hunk, Line, LineType

logger = logging.getLogger(__name__)


def _keep_line(line: Line) -> bool:
    return line.type is LineType.ADDED and line.content.strip() != ""


def _filter_hunks(hunks: List[Hunk]) -> List[Hunk]:
    kept = []
    for hunk in hunks:
        hunk.lines = [line for line in hunk.lines if _keep_line(line)]
        if hunk.lines:
            kept.append(hunk)
    return kept


def filter_file_diffs(file_diffs: List[FileDiff]) -> List[FileDiff]:
    """Prune in place and return the FileDiffs that still have added content."""
    kept = []
    for fd in file_diffs:
        fd.hunks = _filter_hunks(fd.hunks)
        if fd.hunks:
            kept.append(fd)
    logger.debug("Kept %d of %d file diffs with added content", len(kept), len(file_diffs))
    return kept


def expand_braces(pattern: str) -> List[str]:
    """
    "*.{js,ts}" → ["*.js", "*.ts"]

    Only the first top-level group is split per call; the alternatives are
    expanded recursively. Unbalanced braces are left as literal text.
    """
    depth = 0
    start = -1
    commas: List[int] = []
    for i, ch in enumerate(pattern):
        if ch == "{":
            if depth == 0:
                start = i
                commas = []
            depth += 1
        elif ch == "," and depth == 1:
            commas.append(i)
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                if not commas:
                    # "{x}" is not an alternation
                    continue
                prefix, suffix = pattern[:start], pattern[i + 1:]
                bounds = [start] + commas + [i]
                expanded = []
                for left, right in zip(bounds, bounds[1:]):
                    expanded.extend(expand_braces(prefix + pattern[left + 1:right] + suffix))
                return expanded
    return [pattern]


def _matches_any(path: str, patterns: Sequence[str]) -> bool:
    return any(
        fnmatch.fnmatchcase(path, expanded)
        for pattern in patterns
        for expanded in expand_braces(pattern)
    )


def filter_by_path(
    file_diffs: List[FileDiff],
    include: Sequence[str] = (),
    exclude: Sequence[str] = (),
) -> List[FileDiff]:
    """
    Keep files matching any inclusion glob, then drop files matching any
    exclusion glob. An empty list disables that step.
    """
    if include:
        file_diffs = [fd for fd in file_diffs if _matches_any(fd.path_new, include)]
    if exclude:
        excluded = [fd.path_new for fd in file_diffs if _matches_any(fd.path_new, exclude)]
        if excluded:
            logger.info("Excluding %d files by config: %s", len(excluded), ", ".join(excluded[:5]))
        file_diffs = [fd for fd in file_diffs if not _matches_any(fd.path_new, exclude)]
    return file_diffs
