"""SCM-Manager v2 REST API client."""

import json
import logging

from pydantic import ValidationError

from buildhooks.clients.base import ApiClient
from buildhooks.models import ApiResponse, Branch, PullRequest, ScmUser
from buildhooks.settings import ScmSettings

logger = logging.getLogger(__name__)

PULL_REQUEST_CONTENT_TYPE = "application/vnd.scmm-pullRequest+json;v=2"


class ScmManagerClient(ApiClient):
    def __init__(self, base_url: str, api_token: str, timeout: float = 30) -> None:
        super().__init__(base_url, headers={"Authorization": f"Bearer {api_token}"}, timeout=timeout)

    @classmethod
    def from_settings(cls, settings: ScmSettings) -> "ScmManagerClient":
        if not settings.url or not settings.api_token:
            raise RuntimeError("SCM-Manager URL and API token are required. Set SCM_URL and SCM_API_TOKEN.")
        return cls(settings.url, settings.api_token.get_secret_value())

    def _log_failure(self, what: str, response: ApiResponse) -> None:
        logger.error("%s failed. Status: %d", what, response.status_code)
        logger.error("Response: %s", response.body)

    def test_authentication(self) -> ScmUser | None:
        """Return the user behind the API token, or None if the token is rejected."""
        logger.info("Checking API token against %s", self._base_url)
        response = self._execute("/v2/me")
        if not response.success:
            self._log_failure("Authentication", response)
            return None
        try:
            user = ScmUser.model_validate_json(response.body)
        except ValidationError as exc:
            logger.error("Authentication returned an unreadable body: %s", exc)
            return None
        logger.info("Authenticated as: %s", user.display_name)
        logger.info("Email: %s", user.mail)
        return user

    def repository_exists(self, namespace: str, repository: str) -> bool:
        return self._execute(f"/v2/repositories/{namespace}/{repository}").success

    def list_branches(self, namespace: str, repository: str) -> list[Branch]:
        """Return the repository's branches. Empty on any error; this call is informational."""
        logger.info("Loading branches for %s/%s", namespace, repository)
        response = self._execute(f"/v2/repositories/{namespace}/{repository}/branches")
        if not response.success:
            logger.warning("Could not load branches: %s", response.body)
            return []
        try:
            data = json.loads(response.body)
            nodes = (data.get("_embedded") or {}).get("branches") or []
            branches = [Branch.model_validate(node) for node in nodes]
        except (ValueError, AttributeError) as exc:
            logger.warning("Could not parse branches: %s", exc)
            return []
        for branch in branches:
            logger.info("  - %s", branch.name)
        return branches

    def create_pull_request(self, namespace: str, repository: str, data: PullRequest) -> PullRequest | None:
        """POST a new pull request.

        Raises ValueError if source, target or title is missing; nothing is sent
        in that case. Returns None when the server refuses the request, leaving
        reporting to the caller.
        """
        for field in ("source", "target", "title"):
            if not getattr(data, field):
                raise ValueError(f"Required field '{field}' is missing")

        logger.info("Creating pull request for %s/%s", namespace, repository)
        response = self._execute(
            f"/v2/pull-requests/{namespace}/{repository}",
            method="POST",
            body=data.to_payload(),
            content_type=PULL_REQUEST_CONTENT_TYPE,
        )
        if not response.success:
            self._log_failure("Pull request creation", response)
            return None

        if response.body.strip():
            try:
                created = PullRequest.model_validate_json(response.body)
            except ValidationError as exc:
                logger.error("Pull request created but response is unreadable: %s", exc)
                return None
        else:
            # SCM-Manager answers 201 with an empty body; the id is the last Location segment
            pr_id = response.location.rstrip("/").rsplit("/", 1)[-1] if response.location else None
            created = data.model_copy(update={"id": pr_id})

        logger.info("Pull request #%s created: %s", created.id, created.title)
        logger.info("%s -> %s", created.source or data.source, created.target or data.target)
        if created.id:
            logger.info("URL: %s", self.pull_request_url(namespace, repository, created.id))
        return created

    def pull_request_url(self, namespace: str, repository: str, pr_id: str) -> str:
        return f"{self._base_url}/repo/{namespace}/{repository}/pull-request/{pr_id}"
