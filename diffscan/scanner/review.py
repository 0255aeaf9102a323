"""
Review Stage
============
FileDiffs + detector policy + exclusions → ordered review comments.

Pipeline:
    1. Segment every added line (file → hunk → line → chunk order)
    2. Scan all units through the BatchScanner
    3. Keep findings the FindingClassifier confirms
    4. Render one Comment per confirmed finding

Comment order always follows unit discovery order.
"""
import logging
from typing import List, Mapping, Sequence

from diffscan.core.constants import (
    CONTENT_CHUNK_BYTE_SIZE,
    DEFAULT_MAX_CONCURRENT_SCANS,
    MAX_ITEMS_PER_SCAN_REQUEST,
)
from diffscan.models.comment import Comment
from diffscan.models.diff import FileDiff
from diffscan.models.finding import Confidence, ScanUnit
from diffscan.scanner.batch_scanner import BatchScanner, SubmitFn
from diffscan.scanner.classifier import FindingClassifier
from diffscan.scanner.comment_generator import build_comment
from diffscan.scanner.segmenter import segment_line

logger = logging.getLogger(__name__)


def collect_scan_units(
    file_diffs: Sequence[FileDiff],
    chunk_size: int = CONTENT_CHUNK_BYTE_SIZE,
) -> List[ScanUnit]:
    units: List[ScanUnit] = []
    for fd in file_diffs:
        for hunk in fd.hunks:
            for line in hunk.lines:
                units.extend(segment_line(line, fd.path_new, chunk_size))
    return units


async def review_diff(
    file_diffs: Sequence[FileDiff],
    policy: Mapping[str, Confidence],
    exclusions: Sequence[str],
    submit: SubmitFn,
    *,
    chunk_size: int = CONTENT_CHUNK_BYTE_SIZE,
    max_items: int = MAX_ITEMS_PER_SCAN_REQUEST,
    max_concurrency: int = DEFAULT_MAX_CONCURRENT_SCANS,
) -> List[Comment]:
    """
    Scan the added content of ``file_diffs`` and return review comments.

    Parameters
    ----------
    file_diffs : Sequence[FileDiff]
        Filtered diffs (ADDED lines only).
    policy : Mapping[str, Confidence]
        Detector name → minimum confidence bucket.
    exclusions : Sequence[str]
        Token exclusion entries, exact strings or regexes.
    submit : SubmitFn
        Remote scan capability bound to the detector policy.

    Raises
    ------
    SegmentationError, RemoteScanError
        Fatal for the whole diff; no comments are produced.
    """
    units = collect_scan_units(file_diffs, chunk_size)
    logger.info("Scanning %d content chunks from %d files", len(units), len(file_diffs))
    if not units:
        return []

    scanner = BatchScanner(submit, max_items=max_items, max_concurrency=max_concurrency)
    results = await scanner.scan(units)

    classifier = FindingClassifier(policy, exclusions)
    confirmed = classifier.classify(results)
    raw_count = sum(len(r.findings) for r in results)
    logger.info("Confirmed %d of %d raw findings", len(confirmed), raw_count)

    return [build_comment(c.finding, c.unit) for c in confirmed]
