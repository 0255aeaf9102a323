"""
Finding Models
==============
Contracts between the segmenter, the remote scan client and the classifier.

    Confidence  — ordinal likelihood bucket reported by the scan service
    ScanUnit    — one bounded fragment of added-line content (one API item)
    Finding     — one raw detection inside a ScanUnit
    ScanResult  — a ScanUnit paired with every Finding returned for it
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel


class Confidence(str, Enum):
    VERY_UNLIKELY = "VERY_UNLIKELY"
    UNLIKELY = "UNLIKELY"
    POSSIBLE = "POSSIBLE"
    LIKELY = "LIKELY"
    VERY_LIKELY = "VERY_LIKELY"


class ScanUnit(BaseModel):
    content: str
    file_path: str
    line_number: int


class Finding(BaseModel):
    detector: str
    fragment: str
    confidence: Confidence
    byte_range: Optional[Tuple[int, int]] = None
    # name the service reported, the configured displayName when one is set
    display_name: Optional[str] = None


@dataclass
class ScanResult:
    """A scan unit and the findings the remote service reported for it."""
    unit: ScanUnit
    findings: List[Finding] = field(default_factory=list)
