"""
Diff Locator
============
Resolves a new-side line number to the hunk of a file diff that covers it.

GitHub only accepts pull request review comments on lines that appear in
the diff, so each hunk's new-side range [start, start + length - 1] is
registered in an IntervalIndex keyed per file path.
"""
import logging
from typing import Dict, List, Optional

from diffscan.core.errors import RangeOverlapError
from diffscan.models.diff import FileDiff, Hunk
from diffscan.utils.interval_index import IntervalIndex

logger = logging.getLogger(__name__)


class DiffLocator:

    def __init__(self, file_diffs: List[FileDiff]) -> None:
        self._hunks: Dict[str, List[Hunk]] = {}
        self._index: Dict[str, IntervalIndex[int]] = {}
        for fd in file_diffs:
            if not fd.path_new or fd.is_deleted_file:
                continue
            index = self._index.setdefault(fd.path_new, IntervalIndex())
            hunks = self._hunks.setdefault(fd.path_new, [])
            for hunk in fd.hunks:
                if hunk.line_length_new <= 0:
                    continue
                left = hunk.start_line_new
                right = hunk.start_line_new + hunk.line_length_new - 1
                try:
                    index.add_range(left, right, len(hunks))
                except RangeOverlapError:
                    logger.warning(
                        "Skipping overlapping hunk %d-%d in %s", left, right, fd.path_new
                    )
                    continue
                hunks.append(hunk)

    def hunk_for(self, path: str, line_number: int) -> Optional[Hunk]:
        index = self._index.get(path)
        if index is None:
            return None
        position = index.get(line_number)
        if position is None:
            return None
        return self._hunks[path][position]

    def contains(self, path: str, line_number: int) -> bool:
        return self.hunk_for(path, line_number) is not None
