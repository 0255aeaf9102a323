"""
Diff Reviewer Base
==================
Capability set every code host implements: load config, produce the diff,
publish comments. The pipeline depends only on this interface.
"""
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from diffscan.clients.github_client import GithubClient
from diffscan.models.comment import Comment, RunState
from diffscan.models.diff import FileDiff
from diffscan.models.scan_config import ScanConfig
from diffscan.parser.diff_filter import filter_file_diffs
from diffscan.parser.diff_parser import parse_diff

logger = logging.getLogger(__name__)


class DiffReviewer(ABC):

    name = "generic"

    def __init__(self, github: GithubClient) -> None:
        self.github = github

    @abstractmethod
    def load_config(self) -> ScanConfig:
        """Read host coordinates from the environment and the repo config file."""

    @abstractmethod
    def get_raw_diff(self) -> str:
        """Return the unified diff text to review."""

    def get_diff(self) -> List[FileDiff]:
        """Parsed diff reduced to added, non-blank lines."""
        logger.debug("Getting diff from %s", self.name)
        raw = self.get_raw_diff()
        file_diffs = parse_diff(raw)
        return filter_file_diffs(file_diffs)

    @abstractmethod
    async def write_comments(self, comments: Sequence[Comment]) -> Optional[RunState]:
        """Publish ``comments`` to the host."""
