"""Shared pydantic models — the contract between clients, pipeline and main.py."""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel, to_pascal

DEFAULT_TITLE = "Automated Pull Request from CI"


class ApiResponse(BaseModel):
    """Outcome of a single HTTP call. Carries both success and failure."""

    model_config = ConfigDict(frozen=True)

    status_code: int  # 0 when the request never reached the server
    body: str
    success: bool
    error: str | None = None
    location: str | None = None  # Location header, set by 201 Created replies


# ---------------------------------------------------------------------------
# SCM-Manager resources
# ---------------------------------------------------------------------------


class _ScmResource(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class ScmUser(_ScmResource):
    name: str | None = None
    display_name: str | None = None
    mail: str | None = None


class Branch(_ScmResource):
    name: str
    revision: str | None = None
    default_branch: bool = False


class Reviewer(_ScmResource):
    id: str
    approved: bool = False


class PullRequest(_ScmResource):
    """SCM-Manager v2 pull request resource. `id` is assigned server-side."""

    id: str | None = None
    source: str | None = None
    target: str | None = None
    title: str | None = None
    description: str | None = None
    status: str | None = None  # DRAFT | OPEN | MERGED | REJECTED
    reviewer: list[Reviewer] | None = None
    labels: list[str] | None = None
    should_delete_source_branch: bool | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: object) -> object:
        return str(value) if isinstance(value, int) else value

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class PullRequestOptions(BaseModel):
    """Everything a pipeline step can say about the pull request it wants."""

    model_config = ConfigDict(frozen=True)

    source_branch: str | None = None
    target_branch: str = "main"
    title: str | None = None  # None or empty -> DEFAULT_TITLE
    description: str | None = None  # None -> templated text with build metadata
    status: str | None = None  # DRAFT | OPEN
    reviewers: list[str] = []
    labels: list[str] = []
    should_delete_source_branch: bool | None = None
    show_branches: bool = False
    build_number: str | None = None
    job_name: str | None = None


class PipelineOutput(BaseModel):
    """Returned by the pipeline entry point for downstream steps to publish."""

    model_config = ConfigDict(frozen=True)

    pr_id: str
    pr_url: str
    build_description: str  # "PR #<id>: <title>"
    pull_request: PullRequest

    def as_env(self) -> dict[str, str]:
        return {"SCM_PR_ID": self.pr_id, "SCM_PR_URL": self.pr_url}


# ---------------------------------------------------------------------------
# ActiveMQ / Jolokia
# ---------------------------------------------------------------------------


class QueueInfo(BaseModel):
    """Snapshot of the gauges the broker reports for one queue."""

    model_config = ConfigDict(frozen=True, alias_generator=to_pascal, populate_by_name=True)

    name: str
    queue_size: int = 0
    consumer_count: int = 0
    enqueue_count: int = 0
    dequeue_count: int = 0


class QueueFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    error: str


class QueueReport(BaseModel):
    """Per-queue details: the reads that worked and the ones that did not."""

    model_config = ConfigDict(frozen=True)

    queues: list[QueueInfo] = Field(default_factory=list)
    failures: list[QueueFailure] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures
