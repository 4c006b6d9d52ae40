"""Shared request executor for the HTTP clients."""

import logging

import httpx

from buildhooks.models import ApiResponse

logger = logging.getLogger(__name__)

JSON = "application/json"


class ApiClient:
    """One synchronous HTTP call per operation against a fixed base URL.

    `_execute` never raises for transport or HTTP errors. Callers inspect the
    returned ApiResponse instead.
    """

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str] | None = None,
        auth: tuple[str, str] | None = None,
        timeout: float = 30,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._headers = {"Accept": JSON, **(headers or {})}
        self._auth = auth
        self._timeout = timeout

    @property
    def base_url(self) -> str:
        return self._base_url

    def _execute(
        self,
        path: str,
        method: str = "GET",
        body: dict | None = None,
        content_type: str = JSON,
        auth: tuple[str, str] | None = None,
    ) -> ApiResponse:
        url = f"{self._base_url}{path}"
        headers = {**self._headers, "Content-Type": content_type}
        payload = body if body is not None and method in ("POST", "PUT") else None
        logger.debug("%s %s", method, url)
        try:
            response = httpx.request(
                method,
                url,
                headers=headers,
                json=payload,
                auth=auth or self._auth,
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            logger.debug("%s %s failed: %s", method, url, exc)
            return ApiResponse(status_code=0, body=f"Connection error: {exc}", success=False, error=str(exc))

        status = response.status_code
        logger.debug("%s %s -> %d", method, url, status)
        if status < 400:
            return ApiResponse(
                status_code=status,
                body=response.text,
                success=True,
                location=response.headers.get("Location"),
            )
        return ApiResponse(
            status_code=status,
            body=response.text or f"HTTP {status}",
            success=False,
            error=f"HTTP {status}",
        )
