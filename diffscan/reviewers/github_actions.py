"""
GitHub Actions Reviewer
=======================
Runs inside a GitHub Actions job and reports through a check run.

Inputs:
    GITHUB_WORKSPACE    — repository root holding .nightfalldlp/config.json
    GITHUB_EVENT_PATH   — webhook payload; gives owner, repo and head SHA
    nightfalldlp_raw_diff.txt — raw diff written by an earlier workflow step
"""
import json
import logging
from typing import Any, Dict, Optional, Sequence

from diffscan.agents.annotation_poster import AnnotationPoster
from diffscan.clients.github_client import GithubClient
from diffscan.core.config import load_scan_config, require_env
from diffscan.core.constants import RAW_DIFF_FILE_NAME
from diffscan.core.errors import ConfigError, DiffSourceError
from diffscan.models.comment import CheckRequest, Comment, RunState
from diffscan.models.scan_config import ScanConfig
from diffscan.reviewers.base import DiffReviewer

logger = logging.getLogger(__name__)


def check_request_from_event(event: Dict[str, Any]) -> CheckRequest:
    """
    Extract check coordinates from a pull_request or push event payload.

    The pull request head SHA is preferred; push events fall back to
    head_commit.id.
    """
    repository = event.get("repository") or {}
    pull_request = event.get("pull_request") or {}
    sha = (pull_request.get("head") or {}).get("sha") or (event.get("head_commit") or {}).get("id")
    owner = (repository.get("owner") or {}).get("login")
    repo = repository.get("name")
    if not (owner and repo and sha):
        raise ConfigError("GitHub event file is missing repository owner, name or commit SHA")
    return CheckRequest(
        owner=owner,
        repo=repo,
        sha=sha,
        pull_request=pull_request.get("number") or 0,
    )


class GithubActionsReviewer(DiffReviewer):

    name = "GitHub Actions"

    def __init__(self, github: GithubClient, diff_path: str = RAW_DIFF_FILE_NAME) -> None:
        super().__init__(github)
        self.diff_path = diff_path
        self.check_request: Optional[CheckRequest] = None

    def load_config(self) -> ScanConfig:
        logger.debug("Loading configuration")
        workspace_path = require_env("GITHUB_WORKSPACE")
        event_path = require_env("GITHUB_EVENT_PATH")
        try:
            with open(event_path, "r", encoding="utf-8") as f:
                event = json.load(f)
        except (OSError, ValueError) as e:
            logger.error("Error getting GitHub event file")
            raise ConfigError(f"cannot read GitHub event file {event_path}: {e}") from e
        self.check_request = check_request_from_event(event)
        return load_scan_config(workspace_path)

    def get_raw_diff(self) -> str:
        try:
            with open(self.diff_path, "r", encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            logger.error("Error getting the raw diff from %s", self.diff_path)
            raise DiffSourceError(f"cannot read raw diff {self.diff_path}: {e}") from e

    async def write_comments(self, comments: Sequence[Comment]) -> RunState:
        if self.check_request is None:
            raise ConfigError("load_config must run before write_comments")
        poster = AnnotationPoster(self.github, self.check_request)
        state = await poster.post(comments)
        logger.info(
            "Check run %d %s (%s): %d annotations posted",
            state.run_id, state.status, state.conclusion, state.annotations_posted,
        )
        return state
