"""Pull request creation as a CI pipeline step."""

import logging

from buildhooks.clients.scm import ScmManagerClient
from buildhooks.errors import PipelineError
from buildhooks.models import DEFAULT_TITLE, PipelineOutput, PullRequest, PullRequestOptions, Reviewer
from buildhooks.settings import ScmSettings

logger = logging.getLogger(__name__)

_REQUIRED_SETTINGS = ("url", "api_token", "namespace", "repository")


def default_description(build_number: str | None, job_name: str | None) -> str:
    return (
        "This PR was created automatically by the CI pipeline.\n\n"
        f"Build: {build_number or 'unknown'}\n"
        f"Job: {job_name or 'unknown'}"
    )


def map_reviewers(reviewer_ids: list[str]) -> list[Reviewer]:
    return [Reviewer(id=reviewer_id, approved=False) for reviewer_id in reviewer_ids]


def build_pull_request(options: PullRequestOptions) -> PullRequest:
    """Assemble the SCM-Manager payload, applying defaults for anything omitted."""
    pull_request = PullRequest(
        source=options.source_branch,
        target=options.target_branch or "main",
        title=options.title or DEFAULT_TITLE,
        description=options.description or default_description(options.build_number, options.job_name),
        status=options.status or None,
        reviewer=map_reviewers(options.reviewers) if options.reviewers else None,
        labels=list(options.labels) if options.labels else None,
        should_delete_source_branch=options.should_delete_source_branch,
    )
    if not pull_request.source:
        raise PipelineError("Source branch is required (source_branch)")
    return pull_request


def create_pull_request_in_pipeline(
    settings: ScmSettings,
    options: PullRequestOptions,
    client: ScmManagerClient | None = None,
) -> PipelineOutput:
    """Run the full create-PR step: auth, repo check, optional branch list, create.

    Raises PipelineError for anything that should fail the build. Publishing
    the returned PR id/URL to later pipeline steps is up to the caller.
    """
    missing = [name for name in _REQUIRED_SETTINGS if not getattr(settings, name)]
    if missing:
        raise PipelineError(
            f"Missing configuration. Required: {', '.join(_REQUIRED_SETTINGS)} (missing: {', '.join(missing)})"
        )

    namespace, repository = settings.namespace, settings.repository
    client = client or ScmManagerClient.from_settings(settings)

    try:
        if client.test_authentication() is None:
            raise PipelineError("API token authentication failed")

        if not client.repository_exists(namespace, repository):
            raise PipelineError(f"Repository {namespace}/{repository} not found")

        if options.show_branches:
            client.list_branches(namespace, repository)

        pull_request = build_pull_request(options)
        created = client.create_pull_request(namespace, repository, pull_request)
        if created is None:
            raise PipelineError("Pull request could not be created")
        if not created.id:
            raise PipelineError("Server did not return an id for the new pull request")
    except Exception as exc:
        raise PipelineError(f"Failed to create pull request: {exc}") from exc

    title = created.title or pull_request.title
    logger.info("Pull request #%s created", created.id)
    return PipelineOutput(
        pr_id=created.id,
        pr_url=client.pull_request_url(namespace, repository, created.id),
        build_description=f"PR #{created.id}: {title}",
        pull_request=created,
    )
