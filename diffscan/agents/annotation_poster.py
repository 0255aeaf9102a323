"""
Annotation Poster
=================
Publishes review comments as annotations on a GitHub check run.

State machine:
    CREATED      — one create call opens an in_progress run on the head SHA
    no comments  — one terminal update: completed / success, 0-count summary
    comments     — ceil(total / cap) updates:
                     * first batches-1 are intermediate (annotations only,
                       run stays in_progress); failures are logged and skipped
                     * last one is terminal: completed / failure, summary,
                       branding image; a failure here is raised

Updates against one run are strictly sequential and never retried.
"""
import logging
import math
from typing import List, Optional, Protocol, Sequence

from diffscan.core.constants import (
    CHECK_CONCLUSION_FAILURE,
    CHECK_CONCLUSION_SUCCESS,
    CHECK_STATUS_COMPLETED,
    CHECK_STATUS_IN_PROGRESS,
    IMAGE_ALT,
    IMAGE_URL,
    MAX_ANNOTATIONS_PER_REQUEST,
    SUMMARY_TEMPLATE,
)
from diffscan.core.errors import AnnotationPostError
from diffscan.models.comment import (
    Annotation,
    CheckRequest,
    CheckRunImage,
    CheckRunOutput,
    CheckRunUpdate,
    Comment,
    RunState,
)

logger = logging.getLogger(__name__)


class ChecksAPI(Protocol):
    async def create_check_run(self, owner: str, repo: str, head_sha: str, name: str) -> int:
        ...

    async def update_check_run(
        self, owner: str, repo: str, run_id: int, update: CheckRunUpdate
    ) -> None:
        ...


def _branding() -> List[CheckRunImage]:
    return [CheckRunImage(alt=IMAGE_ALT, image_url=IMAGE_URL)]


class AnnotationPoster:

    def __init__(
        self,
        checks: ChecksAPI,
        request: CheckRequest,
        max_annotations: int = MAX_ANNOTATIONS_PER_REQUEST,
    ) -> None:
        if max_annotations < 1:
            raise ValueError(f"max_annotations must be positive, got {max_annotations}")
        self.checks = checks
        self.request = request
        self.max_annotations = max_annotations

    def _update(
        self,
        summary: str,
        annotations: Sequence[Annotation] = (),
        status: Optional[str] = None,
        conclusion: Optional[str] = None,
        images: Sequence[CheckRunImage] = (),
    ) -> CheckRunUpdate:
        return CheckRunUpdate(
            name=self.request.name,
            status=status,
            conclusion=conclusion,
            output=CheckRunOutput(
                title=self.request.name,
                summary=summary,
                annotations=list(annotations),
                images=list(images),
            ),
        )

    async def _send(self, run_id: int, update: CheckRunUpdate) -> None:
        await self.checks.update_check_run(self.request.owner, self.request.repo, run_id, update)

    async def post(self, comments: Sequence[Comment]) -> RunState:
        """
        Open a check run and publish ``comments`` to it.

        Returns
        -------
        RunState
            The completed run, with the number of annotations the host
            accepted and the number of intermediate batches it rejected.

        Raises
        ------
        AnnotationPostError
            If the run cannot be created or the terminal update fails.
        """
        req = self.request
        logger.debug("Writing %d annotations to GitHub", len(comments))
        run_id = await self.checks.create_check_run(req.owner, req.repo, req.sha, req.name)
        logger.info("Created check run %d (%s) on %s", run_id, CHECK_STATUS_IN_PROGRESS, req.sha)

        summary = SUMMARY_TEMPLATE.format(count=len(comments))

        if not comments:
            await self._send(run_id, self._update(
                summary,
                status=CHECK_STATUS_COMPLETED,
                conclusion=CHECK_CONCLUSION_SUCCESS,
                images=_branding(),
            ))
            return RunState(
                run_id=run_id,
                status=CHECK_STATUS_COMPLETED,
                conclusion=CHECK_CONCLUSION_SUCCESS,
            )

        annotations = [Annotation.from_comment(c) for c in comments]
        cap = self.max_annotations
        batches = math.ceil(len(annotations) / cap)
        posted = 0
        failed = 0

        for i in range(batches - 1):
            batch = annotations[i * cap:(i + 1) * cap]
            try:
                await self._send(run_id, self._update(summary, batch))
                posted += len(batch)
            except AnnotationPostError as e:
                failed += 1
                logger.warning("Unable to write %d annotations to GitHub: %s", len(batch), e)

        remaining = annotations[(batches - 1) * cap:]
        try:
            await self._send(run_id, self._update(
                summary,
                remaining,
                status=CHECK_STATUS_COMPLETED,
                conclusion=CHECK_CONCLUSION_FAILURE,
                images=_branding(),
            ))
        except AnnotationPostError:
            logger.error(
                "Unable to update check run to failed and submit %d annotations", len(remaining)
            )
            raise
        posted += len(remaining)

        return RunState(
            run_id=run_id,
            status=CHECK_STATUS_COMPLETED,
            conclusion=CHECK_CONCLUSION_FAILURE,
            annotations_posted=posted,
            failed_batches=failed,
        )
