"""Shared test fixtures."""

import pytest

from buildhooks.models import PullRequest, PullRequestOptions
from buildhooks.settings import ScmSettings

SCM_URL = "https://scm.example.com/scm"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep SCM_*/ACTIVEMQ_* from the developer's shell out of the tests."""
    for name in (
        "SCM_URL",
        "SCM_API_TOKEN",
        "SCM_NAMESPACE",
        "SCM_REPOSITORY",
        "ACTIVEMQ_HOST",
        "ACTIVEMQ_PORT",
        "ACTIVEMQ_BROKER_NAME",
        "ACTIVEMQ_USERNAME",
        "ACTIVEMQ_PASSWORD",
        "ACTIVEMQ_SCHEME",
        "BUILDHOOKS_PROFILE",
        "BRANCH_NAME",
        "BUILD_NUMBER",
        "JOB_NAME",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def scm_settings() -> ScmSettings:
    return ScmSettings(  # type: ignore[call-arg]
        url=SCM_URL,
        api_token="scm_token_abc",
        namespace="team",
        repository="project",
    )


@pytest.fixture
def pr_options() -> PullRequestOptions:
    return PullRequestOptions(
        source_branch="feature/login",
        target_branch="develop",
        title="Add login form",
        build_number="17",
        job_name="project/feature-login",
    )


@pytest.fixture
def pull_request() -> PullRequest:
    return PullRequest(source="feature/login", target="develop", title="Add login form")
