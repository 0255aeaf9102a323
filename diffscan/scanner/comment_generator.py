"""
Comment Generator
=================
Renders a confirmed finding as a review comment that never repeats the
sensitive fragment: only its first two characters survive, followed by up
to eight mask characters.
"""
from diffscan.models.comment import Comment
from diffscan.models.finding import Finding, ScanUnit

MASK_CHAR = "*"
VISIBLE_PREFIX = 2
MAX_MASK_LENGTH = 8


def blur_content(fragment: str) -> str:
    """
    "4242-4242-4242-4242" → "42********"

    Fragments too short to keep a prefix without revealing them whole are
    masked entirely.
    """
    if len(fragment) <= VISIBLE_PREFIX:
        return MASK_CHAR * len(fragment)
    mask_length = min(MAX_MASK_LENGTH, len(fragment) - VISIBLE_PREFIX)
    return fragment[:VISIBLE_PREFIX] + MASK_CHAR * mask_length


def detector_label(finding: Finding) -> str:
    return finding.display_name or finding.detector


def comment_title(finding: Finding) -> str:
    return f"Detected {detector_label(finding)}"


def comment_body(finding: Finding) -> str:
    return f"Suspicious content detected ({blur_content(finding.fragment)}, type {detector_label(finding)})"


def build_comment(finding: Finding, unit: ScanUnit) -> Comment:
    return Comment(
        title=comment_title(finding),
        body=comment_body(finding),
        file_path=unit.file_path,
        line_number=unit.line_number,
    )
