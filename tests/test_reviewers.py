"""
Unit Tests — Diff Reviewers
===========================
GitHub Actions and CircleCI host variants with mocked git and GitHub.
"""
import asyncio
import json
import subprocess
from unittest.mock import AsyncMock, MagicMock

import pytest

from diffscan.agents.orchestrator import create_reviewer
from diffscan.core.errors import AnnotationPostError, ConfigError, DiffSourceError, SensitiveContentFound
from diffscan.models.comment import Comment
from diffscan.reviewers import circleci
from diffscan.reviewers.circleci import CircleCIReviewer, pull_request_number
from diffscan.reviewers.github_actions import GithubActionsReviewer, check_request_from_event

CONFIG = {"detectors": [{"nightfallDetector": "API_KEY", "minConfidence": "LIKELY"}]}

RAW_DIFF = """diff --git a/app.py b/app.py
--- a/app.py
+++ b/app.py
@@ -1,2 +1,3 @@
 import os
+KEY = "sk_live_abcdef123456"
 print(os)
"""

PR_EVENT = {
    "repository": {"name": "shop", "owner": {"login": "acme"}},
    "pull_request": {"number": 7, "head": {"sha": "f" * 40}},
}


def _workspace(tmp_path):
    (tmp_path / ".nightfalldlp").mkdir()
    (tmp_path / ".nightfalldlp" / "config.json").write_text(json.dumps(CONFIG))
    return tmp_path


def _comment(line, path="app.py"):
    return Comment(title="Detected API_KEY", body="Suspicious content detected (sk********, type API_KEY)",
                   file_path=path, line_number=line)


# ==========================================
# Host selection
# ==========================================

class TestCreateReviewer:

    def test_github_actions(self):
        assert isinstance(create_reviewer(MagicMock(), {"GITHUB_ACTIONS": "true"}), GithubActionsReviewer)

    def test_circleci(self):
        assert isinstance(create_reviewer(MagicMock(), {"CIRCLECI": "true"}), CircleCIReviewer)

    def test_unknown(self):
        with pytest.raises(ConfigError):
            create_reviewer(MagicMock(), {"GITLAB_CI": "true"})


# ==========================================
# GitHub Actions
# ==========================================

class TestGithubActions:

    def test_pull_request_event(self):
        request = check_request_from_event(PR_EVENT)
        assert (request.owner, request.repo, request.sha, request.pull_request) == ("acme", "shop", "f" * 40, 7)

    def test_push_event(self):
        event = {"repository": PR_EVENT["repository"], "head_commit": {"id": "e" * 40}}
        assert check_request_from_event(event).sha == "e" * 40

    def test_incomplete_event(self):
        with pytest.raises(ConfigError):
            check_request_from_event({"repository": {"name": "shop"}})

    def test_load_config_and_diff(self, tmp_path, monkeypatch):
        workspace = _workspace(tmp_path)
        event_path = tmp_path / "event.json"
        event_path.write_text(json.dumps(PR_EVENT))
        diff_path = tmp_path / "raw.diff"
        diff_path.write_text(RAW_DIFF)
        monkeypatch.setenv("GITHUB_WORKSPACE", str(workspace))
        monkeypatch.setenv("GITHUB_EVENT_PATH", str(event_path))

        reviewer = GithubActionsReviewer(MagicMock(), diff_path=str(diff_path))
        config = reviewer.load_config()
        file_diffs = reviewer.get_diff()

        assert list(config.policy) == ["API_KEY"]
        assert reviewer.check_request.sha == "f" * 40
        assert [line.lnum_new for line in file_diffs[0].hunks[0].lines] == [2]

    def test_unreadable_event(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GITHUB_WORKSPACE", str(_workspace(tmp_path)))
        monkeypatch.setenv("GITHUB_EVENT_PATH", str(tmp_path / "missing.json"))
        with pytest.raises(ConfigError):
            GithubActionsReviewer(MagicMock()).load_config()

    def test_missing_raw_diff(self, tmp_path):
        reviewer = GithubActionsReviewer(MagicMock(), diff_path=str(tmp_path / "nope.txt"))
        with pytest.raises(DiffSourceError):
            reviewer.get_raw_diff()

    def test_write_comments_posts_check_run(self):
        github = AsyncMock()
        github.create_check_run.return_value = 5
        reviewer = GithubActionsReviewer(github)
        reviewer.check_request = check_request_from_event(PR_EVENT)

        state = asyncio.run(reviewer.write_comments([_comment(2)]))

        github.create_check_run.assert_awaited_once()
        assert state.conclusion == "failure"
        assert state.annotations_posted == 1


# ==========================================
# CircleCI
# ==========================================

@pytest.fixture
def circle_env(tmp_path, monkeypatch):
    monkeypatch.setenv("CIRCLE_WORKING_DIRECTORY", str(_workspace(tmp_path)))
    monkeypatch.setenv("CIRCLE_PROJECT_USERNAME", "acme")
    monkeypatch.setenv("CIRCLE_PROJECT_REPONAME", "shop")
    monkeypatch.setenv("CIRCLE_SHA1", "b" * 40)
    monkeypatch.setenv("CIRCLE_PULL_REQUEST", "https://github.com/acme/shop/pull/12")
    monkeypatch.setenv("EVENT_BEFORE", "a" * 40)
    return tmp_path


@pytest.fixture
def fake_git(monkeypatch):
    calls = []

    def run(cmd, **kwargs):
        calls.append(cmd)
        stdout = RAW_DIFF if cmd[1] in ("diff", "show") else ""
        return subprocess.CompletedProcess(cmd, 0, stdout=stdout, stderr="")

    monkeypatch.setattr(circleci.subprocess, "run", run)
    return calls


class TestCircleCI:

    def test_pull_request_number(self):
        assert pull_request_number("https://github.com/acme/shop/pull/12") == 12
        assert pull_request_number("https://github.com/acme/shop/pull/12/") == 12
        with pytest.raises(ConfigError):
            pull_request_number("https://github.com/acme/shop")

    def test_diff_between_commits(self, circle_env, fake_git):
        reviewer = CircleCIReviewer(MagicMock())
        reviewer.load_config()
        file_diffs = reviewer.get_diff()

        assert fake_git == [
            ["git", "fetch", "origin", "a" * 40, "--depth=1"],
            ["git", "diff", "a" * 40, "b" * 40],
        ]
        assert reviewer.pr.pull_request == 12
        assert file_diffs[0].path_new == "app.py"

    def test_new_branch_uses_head_commit(self, circle_env, fake_git, monkeypatch):
        monkeypatch.setenv("EVENT_BEFORE", "0" * 40)
        reviewer = CircleCIReviewer(MagicMock())
        reviewer.load_config()
        reviewer.get_raw_diff()
        assert fake_git == [
            ["git", "fetch", "origin", "b" * 40, "--depth=2"],
            ["git", "show", "b" * 40, "--format="],
        ]

    def test_git_failure(self, circle_env, monkeypatch):
        def run(cmd, **kwargs):
            raise subprocess.CalledProcessError(128, cmd, stderr="fatal: bad object")

        monkeypatch.setattr(circleci.subprocess, "run", run)
        reviewer = CircleCIReviewer(MagicMock())
        reviewer.load_config()
        with pytest.raises(DiffSourceError, match="bad object"):
            reviewer.get_raw_diff()

    def test_write_comments_fails_step(self, circle_env, fake_git):
        github = AsyncMock()
        reviewer = CircleCIReviewer(github)
        reviewer.load_config()
        reviewer.get_diff()

        # line 9 is outside the diff and cannot carry a review comment
        with pytest.raises(SensitiveContentFound):
            asyncio.run(reviewer.write_comments([_comment(2), _comment(9)]))

        github.create_review_comment.assert_awaited_once_with(
            "acme", "shop", 12,
            commit_id="b" * 40,
            path="app.py",
            line=2,
            body="Suspicious content detected (sk********, type API_KEY)",
        )

    def test_comment_failure_still_fails_step(self, circle_env, fake_git):
        github = AsyncMock()
        github.create_review_comment.side_effect = AnnotationPostError("403")
        reviewer = CircleCIReviewer(github)
        reviewer.load_config()
        reviewer.get_diff()
        with pytest.raises(SensitiveContentFound):
            asyncio.run(reviewer.write_comments([_comment(2)]))

    def test_no_comments_passes(self, circle_env):
        github = AsyncMock()
        assert asyncio.run(CircleCIReviewer(github).write_comments([])) is None
        github.create_review_comment.assert_not_awaited()
