"""
Finding Classifier
==================
Decides which raw findings are reported.

A finding is confirmed when:
    1. its detector is configured in the policy (others drop silently)
    2. its confidence ranks >= the detector's minimum, using
       VERY_UNLIKELY < UNLIKELY < POSSIBLE < LIKELY < VERY_LIKELY
    3. its fragment matches no token exclusion entry, either exactly or as
       a regular expression (re.search)

Position is kept at line granularity: (file path, line number) of the
scan unit the finding came from.
"""
import re
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Pattern, Sequence

from diffscan.models.finding import Confidence, Finding, ScanResult, ScanUnit

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Confidence ordering (immutable, built once)
# ---------------------------------------------------------------------------
CONFIDENCE_RANK: Mapping[Confidence, int] = MappingProxyType({
    Confidence.VERY_UNLIKELY: 0,
    Confidence.UNLIKELY:      1,
    Confidence.POSSIBLE:      2,
    Confidence.LIKELY:        3,
    Confidence.VERY_LIKELY:   4,
})


@dataclass(frozen=True)
class ConfirmedFinding:
    """A finding that passed the policy, with its source unit."""
    finding: Finding
    unit: ScanUnit

    @property
    def file_path(self) -> str:
        return self.unit.file_path

    @property
    def line_number(self) -> int:
        return self.unit.line_number


@dataclass(frozen=True)
class _Exclusion:
    text: str
    pattern: Optional[Pattern[str]]

    def matches(self, fragment: str) -> bool:
        if fragment == self.text:
            return True
        return self.pattern is not None and self.pattern.search(fragment) is not None


def compile_exclusions(entries: Iterable[str]) -> List[_Exclusion]:
    """Compile exclusion entries; invalid regexes fall back to exact match."""
    compiled = []
    for entry in entries:
        try:
            pattern = re.compile(entry)
        except re.error as e:
            logger.warning("Token exclusion %r is not a valid regex (%s); using exact match", entry, e)
            pattern = None
        compiled.append(_Exclusion(text=entry, pattern=pattern))
    return compiled


class FindingClassifier:

    def __init__(
        self,
        policy: Mapping[str, Confidence],
        exclusions: Sequence[str] = (),
        ranking: Mapping[Confidence, int] = CONFIDENCE_RANK,
    ) -> None:
        self.policy = dict(policy)
        self.ranking = ranking
        self._exclusions = compile_exclusions(exclusions)

    def is_excluded(self, fragment: str) -> bool:
        return any(ex.matches(fragment) for ex in self._exclusions)

    def is_confirmed(self, finding: Finding) -> bool:
        minimum = self.policy.get(finding.detector)
        if minimum is None:
            return False
        if self.ranking[finding.confidence] < self.ranking[minimum]:
            return False
        if self.is_excluded(finding.fragment):
            logger.debug("Finding for %s suppressed by token exclusion list", finding.detector)
            return False
        return True

    def classify(self, results: Iterable[ScanResult]) -> List[ConfirmedFinding]:
        """Confirmed findings in scan-unit order, then finding order."""
        confirmed = []
        for result in results:
            for finding in result.findings:
                if self.is_confirmed(finding):
                    confirmed.append(ConfirmedFinding(finding=finding, unit=result.unit))
        return confirmed
