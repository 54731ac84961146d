from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterator, TypeVar

import requests

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GitHubApiError(RuntimeError):
    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class GitHubAuthError(GitHubApiError):
    """The token was rejected or lacks the required permissions."""


class GitHubRateLimitError(GitHubApiError):
    def __init__(self, message: str, status: int | None = None, reset_at: datetime | None = None) -> None:
        super().__init__(message, status=status)
        self.reset_at = reset_at


class GitHubNetworkError(GitHubApiError):
    """Transient connectivity failure that survived every retry attempt."""


def _reset_time(headers: Any) -> datetime | None:
    reset = headers.get("X-RateLimit-Reset") if headers is not None else None
    if not reset:
        return None
    try:
        return datetime.fromtimestamp(int(reset), tz=timezone.utc)
    except (TypeError, ValueError):
        return None


def _raise_for_status(resp: requests.Response, what: str) -> None:
    status = resp.status_code
    if status < 400:
        return
    body = resp.text or ""
    rate_limited = (
        status == 429
        or "rate limit" in body.lower()
        or resp.headers.get("X-RateLimit-Remaining") == "0"
    )
    if status in (403, 429) and rate_limited:
        raise GitHubRateLimitError(
            f"{what} failed: GitHub API rate limit exceeded",
            status=status,
            reset_at=_reset_time(resp.headers),
        )
    if status in (401, 403):
        raise GitHubAuthError(f"{what} failed: authentication rejected ({status})", status=status)
    raise GitHubApiError(f"{what} failed: {status} {body[:500]}", status=status)


@dataclass
class GitHubClient:
    token: str
    api_base_url: str = "https://api.github.com"
    user_agent: str = "activity-report"
    timeout_s: float = 60.0
    max_attempts: int = 3
    backoff_base_s: float = 1.0
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def _headers(self, accept: str = "application/vnd.github+json") -> dict[str, str]:
        headers = {
            "Accept": accept,
            "User-Agent": self.user_agent,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _with_retry(self, what: str, call: Callable[[], T]) -> T:
        """Run call, retrying transient network failures with exponential backoff.

        Attempt n failing with a connection error or timeout sleeps
        backoff_base_s * 2**n before the next attempt. HTTP-level failures are
        raised by the caller and never retried here.
        """
        attempt = 1
        while True:
            try:
                return call()
            except (requests.ConnectionError, requests.Timeout) as exc:
                if attempt >= self.max_attempts:
                    raise GitHubNetworkError(
                        f"{what} failed after {attempt} attempts: {exc}"
                    ) from exc
                delay = self.backoff_base_s * (2**attempt)
                logger.warning(
                    "Retry %d/%d after network error on %s: %s (waiting %.0fs)",
                    attempt,
                    self.max_attempts,
                    what,
                    exc,
                    delay,
                )
                self.sleep(delay)
                attempt += 1

    def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = self.api_base_url.rstrip("/") + path

        def call() -> Any:
            resp = requests.get(url, headers=self._headers(), params=params, timeout=self.timeout_s)
            _raise_for_status(resp, f"GET {path}")
            return resp.json()

        return self._with_retry(f"GET {path}", call)

    def get_text(self, path: str) -> str:
        """Fetch a repository file body using the raw media type."""
        url = self.api_base_url.rstrip("/") + path

        def call() -> str:
            resp = requests.get(
                url,
                headers=self._headers(accept="application/vnd.github.raw"),
                timeout=self.timeout_s,
            )
            _raise_for_status(resp, f"GET {path}")
            return resp.text

        return self._with_retry(f"GET {path}", call)

    def paginate(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        *,
        items_key: str | None = None,
        per_page: int = 100,
        max_pages: int = 50,
    ) -> Iterator[Any]:
        params = dict(params or {})
        params["per_page"] = per_page
        page = 1
        while page <= max_pages:
            params["page"] = page
            data = self.get(path, params=params)
            if items_key is not None and isinstance(data, dict):
                data = data.get(items_key)
            if not isinstance(data, list):
                return
            if not data:
                return
            for item in data:
                yield item
            if len(data) < per_page:
                return
            page += 1

    def graphql(self, query: str, variables: dict[str, Any] | None = None) -> Any:
        url = self.api_base_url.rstrip("/") + "/graphql"
        payload = {"query": query, "variables": variables or {}}

        def call() -> Any:
            resp = requests.post(url, headers=self._headers(), json=payload, timeout=self.timeout_s)
            _raise_for_status(resp, "GraphQL")
            return resp.json()

        data = self._with_retry("GraphQL", call)
        errors = data.get("errors")
        if errors:
            if any(str(e.get("type", "")).upper() == "RATE_LIMITED" for e in errors):
                raise GitHubRateLimitError("GraphQL failed: GitHub API rate limit exceeded")
            messages = "; ".join(str(e.get("message", e)) for e in errors)
            raise GitHubApiError(f"GraphQL errors: {messages}")
        return data.get("data")
