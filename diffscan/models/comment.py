"""
Comment and Annotation Models
=============================
Pydantic models for publishing confirmed findings to the code host.

Fields:
    Comment.title        — "Detected <detector>"
    Comment.body         — redacted message, never the raw fragment
    Annotation           — GitHub check-run annotation payload
    CheckRequest         — coordinates of the commit being checked
    CheckRunUpdate       — body of one PATCH /check-runs/{id} call
    RunState             — terminal outcome returned by the annotation poster
"""
from typing import List, Optional

from pydantic import BaseModel

from diffscan.core.constants import ANNOTATION_LEVEL_FAILURE, DEFAULT_CHECK_NAME


class Comment(BaseModel):
    title: str
    body: str
    file_path: str
    line_number: int


class Annotation(BaseModel):
    path: str
    start_line: int
    end_line: int
    title: str = ""
    message: str
    annotation_level: str = ANNOTATION_LEVEL_FAILURE

    @classmethod
    def from_comment(cls, comment: Comment) -> "Annotation":
        return cls(
            path=comment.file_path,
            start_line=comment.line_number,
            end_line=comment.line_number,
            title=comment.title,
            message=comment.body,
        )


class CheckRunImage(BaseModel):
    alt: str
    image_url: str


class CheckRunOutput(BaseModel):
    title: str
    summary: str
    annotations: List[Annotation] = []
    images: List[CheckRunImage] = []


class CheckRunUpdate(BaseModel):
    name: str
    status: Optional[str] = None
    conclusion: Optional[str] = None
    output: CheckRunOutput

    def to_payload(self) -> dict:
        """Request body with unset status/conclusion and empty lists omitted."""
        payload = self.model_dump(exclude_none=True)
        output = payload["output"]
        for key in ("annotations", "images"):
            if not output.get(key):
                output.pop(key, None)
        return payload


class CheckRequest(BaseModel):
    owner: str
    repo: str
    sha: str
    pull_request: int = 0
    name: str = DEFAULT_CHECK_NAME


class RunState(BaseModel):
    run_id: int
    status: str
    conclusion: str
    annotations_posted: int = 0
    failed_batches: int = 0
