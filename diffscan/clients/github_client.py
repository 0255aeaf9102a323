"""
GitHub Client
=============
Async httpx wrapper for the GitHub REST endpoints the reviewers need:

    POST  /repos/{owner}/{repo}/check-runs
    PATCH /repos/{owner}/{repo}/check-runs/{check_run_id}
    POST  /repos/{owner}/{repo}/pulls/{pull_number}/comments

Failures raise AnnotationPostError.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from diffscan.core.config import GITHUB_API_URL, HTTP_TIMEOUT
from diffscan.core.constants import CHECK_STATUS_IN_PROGRESS
from diffscan.core.errors import AnnotationPostError
from diffscan.models.comment import CheckRunUpdate

logger = logging.getLogger(__name__)

# Additions and unchanged lines live on the right side of a PR diff
COMMENT_SIDE_RIGHT = "RIGHT"


class GithubClient:

    def __init__(
        self,
        github_token: str = "",
        base_url: str = GITHUB_API_URL,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "diffscan",
        }
        if github_token:
            self.headers["Authorization"] = f"token {github_token}"
        self._client = client or httpx.AsyncClient(timeout=HTTP_TIMEOUT)

    async def __aenter__(self) -> "GithubClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.request(method, url, json=body, headers=self.headers)
            response.raise_for_status()
            return response.json() if response.content else {}
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            logger.error("GitHub %s %s failed with HTTP %d", method, path, status_code)
            raise AnnotationPostError(f"GitHub {method} {path} returned HTTP {status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("GitHub %s %s failed: %s", method, path, e)
            raise AnnotationPostError(f"GitHub {method} {path} failed: {e}") from e

    async def create_check_run(self, owner: str, repo: str, head_sha: str, name: str) -> int:
        data = await self._request("POST", f"/repos/{owner}/{repo}/check-runs", {
            "name": name,
            "head_sha": head_sha,
            "status": CHECK_STATUS_IN_PROGRESS,
        })
        try:
            return int(data["id"])
        except (KeyError, TypeError, ValueError) as e:
            raise AnnotationPostError("GitHub check run response has no id") from e

    async def update_check_run(
        self, owner: str, repo: str, run_id: int, update: CheckRunUpdate
    ) -> None:
        await self._request("PATCH", f"/repos/{owner}/{repo}/check-runs/{run_id}", update.to_payload())

    async def create_review_comment(
        self,
        owner: str,
        repo: str,
        pull_number: int,
        commit_id: str,
        path: str,
        line: int,
        body: str,
    ) -> None:
        await self._request("POST", f"/repos/{owner}/{repo}/pulls/{pull_number}/comments", {
            "commit_id": commit_id,
            "path": path,
            "line": line,
            "side": COMMENT_SIDE_RIGHT,
            "body": body,
        })
