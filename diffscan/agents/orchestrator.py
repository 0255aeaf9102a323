"""
Orchestrator
============
Drives one review run end to end:

    load config → get diff → path filter → scan + classify → write comments

One run owns all of its diff, scan-unit and finding collections; nothing
is shared between runs.
"""
import os
import logging
from typing import Callable, Mapping, Optional

from diffscan.clients.github_client import GithubClient
from diffscan.clients.nightfall_client import NightfallClient
from diffscan.core.config import require_env
from diffscan.core.errors import ConfigError
from diffscan.models.comment import RunState
from diffscan.models.finding import Confidence
from diffscan.parser.diff_filter import filter_by_path
from diffscan.reviewers.base import DiffReviewer
from diffscan.reviewers.circleci import CircleCIReviewer
from diffscan.reviewers.github_actions import GithubActionsReviewer
from diffscan.scanner.review import review_diff

logger = logging.getLogger(__name__)

ScanClientFactory = Callable[[str, Mapping[str, Confidence], Mapping[str, str]], NightfallClient]


def is_github_actions(env: Optional[Mapping[str, str]] = None) -> bool:
    env = os.environ if env is None else env
    return env.get("GITHUB_ACTIONS") == "true"


def create_reviewer(github: GithubClient, env: Optional[Mapping[str, str]] = None) -> DiffReviewer:
    """Pick the host variant for the CI environment we are running in."""
    env = os.environ if env is None else env
    if is_github_actions(env):
        return GithubActionsReviewer(github)
    if env.get("CIRCLECI") == "true":
        return CircleCIReviewer(github)
    raise ConfigError("current environment unknown; expected GitHub Actions or CircleCI")


class Orchestrator:

    def __init__(
        self,
        reviewer: DiffReviewer,
        api_key: str,
        scan_client_factory: ScanClientFactory = NightfallClient,
    ) -> None:
        self.reviewer = reviewer
        self.api_key = api_key
        self.scan_client_factory = scan_client_factory

    async def run(self) -> Optional[RunState]:
        config = self.reviewer.load_config()
        file_diffs = self.reviewer.get_diff()
        file_diffs = filter_by_path(
            file_diffs, config.file_inclusion_list, config.file_exclusion_list
        )
        logger.info("Reviewing %d changed files with %d detectors", len(file_diffs), len(config.detectors))

        policy = config.policy
        async with self.scan_client_factory(self.api_key, policy, config.display_names) as scan_client:
            comments = await review_diff(
                file_diffs,
                policy,
                config.token_exclusion_list,
                scan_client.submit,
                max_concurrency=config.max_concurrency,
            )

        logger.info("Writing %d comments via %s", len(comments), self.reviewer.name)
        return await self.reviewer.write_comments(comments)


async def run_from_env(env: Optional[Mapping[str, str]] = None) -> Optional[RunState]:
    """Build the reviewer and clients from the environment and run once."""
    github_token = require_env("NIGHTFALL_GITHUB_TOKEN")
    api_key = require_env("NIGHTFALL_API_KEY")
    async with GithubClient(github_token) as github:
        reviewer = create_reviewer(github, env)
        return await Orchestrator(reviewer, api_key).run()
