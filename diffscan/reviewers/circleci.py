"""
CircleCI Reviewer
=================
Runs inside a CircleCI job for a GitHub-hosted pull request. Computes the
diff with git and reports each finding as a pull request review comment.

Inputs:
    CIRCLE_WORKING_DIRECTORY — repository root (defaults to the cwd)
    CIRCLE_PROJECT_USERNAME / CIRCLE_PROJECT_REPONAME — repository
    CIRCLE_SHA1             — commit under test
    CIRCLE_PULL_REQUEST     — https://github.com/<owner>/<repo>/pull/<n>
    EVENT_BEFORE            — commit checked by the previous run, if any

CircleCI has no check-run surface, so any finding fails the step by raising
SensitiveContentFound after the comments are written.
"""
import os
import logging
import subprocess
from typing import List, Optional, Sequence

from diffscan.clients.github_client import GithubClient
from diffscan.core.config import load_scan_config, require_env
from diffscan.core.constants import UNKNOWN_COMMIT_SHA
from diffscan.core.errors import AnnotationPostError, ConfigError, DiffSourceError, SensitiveContentFound
from diffscan.models.comment import CheckRequest, Comment
from diffscan.models.diff import FileDiff
from diffscan.models.scan_config import ScanConfig
from diffscan.reviewers.base import DiffReviewer
from diffscan.utils.diff_locator import DiffLocator

logger = logging.getLogger(__name__)


def pull_request_number(url: str) -> int:
    """Trailing number of a pull request URL."""
    try:
        return int(url.rstrip("/").rsplit("/", 1)[-1])
    except ValueError as e:
        raise ConfigError(f"invalid pull request URL: {url}") from e


class CircleCIReviewer(DiffReviewer):

    name = "CircleCI"

    def __init__(self, github: GithubClient) -> None:
        super().__init__(github)
        self.workspace_path = ""
        self.base_sha = ""
        self.pr: Optional[CheckRequest] = None
        self.file_diffs: List[FileDiff] = []

    def load_config(self) -> ScanConfig:
        logger.debug("Loading configuration")
        self.workspace_path = os.getenv("CIRCLE_WORKING_DIRECTORY") or os.getcwd()
        self.base_sha = os.getenv("EVENT_BEFORE", "")
        self.pr = CheckRequest(
            owner=require_env("CIRCLE_PROJECT_USERNAME"),
            repo=require_env("CIRCLE_PROJECT_REPONAME"),
            sha=require_env("CIRCLE_SHA1"),
            pull_request=pull_request_number(require_env("CIRCLE_PULL_REQUEST")),
        )
        return load_scan_config(self.workspace_path)

    def _git(self, *args: str) -> str:
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.workspace_path or None,
                check=True,
                capture_output=True,
                text=True,
            )
        except (subprocess.CalledProcessError, OSError) as e:
            stderr = getattr(e, "stderr", "") or str(e)
            logger.error("git %s failed: %s", " ".join(args), stderr.strip())
            raise DiffSourceError(f"git {args[0]} failed: {stderr.strip()}") from e
        return result.stdout

    def get_raw_diff(self) -> str:
        if self.pr is None:
            raise ConfigError("load_config must run before get_raw_diff")
        head = self.pr.sha
        if not self.base_sha or self.base_sha == UNKNOWN_COMMIT_SHA:
            # First push of a new branch: review the head commit alone
            logger.info("Getting diff for new branch push event")
            self._git("fetch", "origin", head, "--depth=2")
            return self._git("show", head, "--format=")
        logger.info("Getting diff between %s and %s", self.base_sha[:7], head[:7])
        self._git("fetch", "origin", self.base_sha, "--depth=1")
        return self._git("diff", self.base_sha, head)

    def get_diff(self) -> List[FileDiff]:
        self.file_diffs = super().get_diff()
        return self.file_diffs

    async def write_comments(self, comments: Sequence[Comment]) -> None:
        if not comments:
            return
        if self.pr is None:
            raise ConfigError("load_config must run before write_comments")

        locator = DiffLocator(self.file_diffs)
        for comment in comments:
            if not locator.contains(comment.file_path, comment.line_number):
                logger.warning(
                    "Skipping comment on %s:%d, line is not part of the diff",
                    comment.file_path, comment.line_number,
                )
                continue
            try:
                await self.github.create_review_comment(
                    self.pr.owner,
                    self.pr.repo,
                    self.pr.pull_request,
                    commit_id=self.pr.sha,
                    path=comment.file_path,
                    line=comment.line_number,
                    body=comment.body,
                )
            except AnnotationPostError as e:
                logger.error("Error writing comment to pull request: %s", e)

        # fail the CircleCI step
        raise SensitiveContentFound(f"{len(comments)} potentially sensitive items found")
