"""GitHub pull request access: diff visibility, links and publishing.

Usage:
    client    = GitHubClient(token="ghp_xxx", repository="owner/name")
    diff      = PullRequestDiff.load(client, 42)        # DiffVisibility + LinkBuilder
    publisher = GitHubPublisher(client, 42, diff.head_sha)
"""

import logging
import re
from typing import Any

import requests

from sonar_pr_report.models import CommitState, SourceFile

GITHUB_API_URL = "https://api.github.com"
PER_PAGE = 100
STATUS_DESCRIPTION_LIMIT = 140
GLOBAL_COMMENT_MARKER = "<!-- sonar-pr-report -->"

HUNK_HEADER_PATTERN = re.compile(
    r"^@@ -\d+(?:,\d+)? \+(?P<head_start>\d+)(?:,(?P<head_count>\d+))? @@"
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class GitHubError(Exception):
    """Base exception for all GitHub client errors."""


class GitHubAuthenticationError(GitHubError):
    """Raised on HTTP 401 or 403: bad token or missing permission."""


class GitHubNotFoundError(GitHubError):
    """Raised on HTTP 404: repository or pull request not found."""


class GitHubNetworkError(GitHubError):
    """Raised on connection timeout or unreachable server."""


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class GitHubClient:
    """Thin wrapper around the GitHub REST API, scoped to one repository."""

    def __init__(self, token: str, repository: str, api_url: str = GITHUB_API_URL,
                 timeout: int = 30) -> None:
        self.api_url = api_url.rstrip("/")
        self.repository = repository
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({
            "Authorization": f"token {token}",
            "Accept": "application/vnd.github+json",
        })

    def repo_endpoint(self, path: str) -> str:
        return f"/repos/{self.repository}{path}"

    def get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        return self.request("GET", endpoint, params=params)

    def get_paginated(self, endpoint: str, params: dict[str, Any] | None = None) -> list:
        """Fetch every page of a list endpoint (``page`` / ``per_page``)."""
        results: list = []
        page = 1
        while True:
            items = self.request("GET", endpoint,
                                 params={**(params or {}), "per_page": PER_PAGE, "page": page}) or []
            results.extend(items)
            if len(items) < PER_PAGE:
                return results
            page += 1

    def request(self, method: str, endpoint: str, params: dict[str, Any] | None = None,
                json: Any = None) -> Any:
        """Send a request and return the parsed JSON body (None when empty).

        Raises:
            GitHubAuthenticationError: HTTP 401 / 403
            GitHubNotFoundError:       HTTP 404
            GitHubError:               Any other non-2xx response
            GitHubNetworkError:        Timeout or connection failure
        """
        url = f"{self.api_url}{endpoint}"
        logger.debug("%s %s", method, url)
        try:
            response = self._session.request(method, url, params=params, json=json,
                                             timeout=self._timeout)
        except requests.exceptions.Timeout as exc:
            raise GitHubNetworkError(
                f"Request timed out after {self._timeout}s while contacting '{url}'"
            ) from exc
        except requests.exceptions.ConnectionError as exc:
            raise GitHubNetworkError(f"Unable to reach GitHub at '{self.api_url}'") from exc

        if response.status_code in (401, 403):
            raise GitHubAuthenticationError(
                f"GitHub refused {method} {url} ({response.status_code}), check the token and its scopes."
            )
        if response.status_code == 404:
            raise GitHubNotFoundError(f"Resource not found: {url}")
        if not response.ok:
            raise GitHubError(
                f"Unexpected response {response.status_code} from {url}: {response.text[:200]}"
            )

        if response.status_code == 204 or not response.content:
            return None
        return response.json()


# ---------------------------------------------------------------------------
# Diff visibility and links
# ---------------------------------------------------------------------------

def patch_visible_lines(patch: str | None) -> set[int]:
    """Head-side line numbers covered by the hunks of a unified diff patch.

    Added and context lines can carry a review comment; removed lines cannot.
    """
    visible: set[int] = set()
    if not patch:
        return visible

    head_line = None
    for text in patch.splitlines():
        match = HUNK_HEADER_PATTERN.match(text)
        if match:
            head_line = int(match.group("head_start"))
            continue
        if head_line is None or text.startswith("\\") or text.startswith("-"):
            continue
        visible.add(head_line)
        head_line += 1
    return visible


class PullRequestDiff:
    """Files and lines of a pull request, and blob links at its head commit."""

    def __init__(self, html_url: str, head_sha: str, files: dict[str, set[int]]) -> None:
        self.html_url = html_url.rstrip("/")
        self.head_sha = head_sha
        self.files = files

    @classmethod
    def load(cls, client: GitHubClient, number: int | str) -> "PullRequestDiff":
        pull = client.get(client.repo_endpoint(f"/pulls/{number}"))
        changed = client.get_paginated(client.repo_endpoint(f"/pulls/{number}/files"))
        files = {
            f["filename"]: patch_visible_lines(f.get("patch"))
            for f in changed
            if f.get("status") != "removed"
        }
        logger.debug("PR #%s touches %d file(s)", number, len(files))
        return cls(pull["base"]["repo"]["html_url"], pull["head"]["sha"], files)

    def has_file(self, file: SourceFile) -> bool:
        return file.path in self.files

    def has_line(self, file: SourceFile, line: int) -> bool:
        return line in self.files.get(file.path, ())

    def url_for(self, file: SourceFile, line: int) -> str:
        return f"{self.html_url}/blob/{self.head_sha}/{file.path}#L{line}"


# ---------------------------------------------------------------------------
# Publisher
# ---------------------------------------------------------------------------

class GitHubPublisher:
    """Post review comments and the commit status of a pull request."""

    def __init__(self, client: GitHubClient, number: int | str, head_sha: str,
                 status_context: str = "sonarqube") -> None:
        self._client = client
        self.number = number
        self.head_sha = head_sha
        self.status_context = status_context
        self._existing_inline: set[tuple[str, int, str]] | None = None

    def post_inline_comment(self, file: SourceFile, line: int, text: str) -> None:
        if self._existing_inline is None:
            comments = self._client.get_paginated(self._client.repo_endpoint(f"/pulls/{self.number}/comments"))
            self._existing_inline = {(c.get("path"), c.get("line"), c.get("body")) for c in comments}

        if (file.path, line, text) in self._existing_inline:
            logger.debug("Inline comment already present on %s:%d", file.path, line)
            return

        self._client.request("POST", self._client.repo_endpoint(f"/pulls/{self.number}/comments"), json={
            "body": text,
            "commit_id": self.head_sha,
            "path": file.path,
            "line": line,
            "side": "RIGHT",
        })
        self._existing_inline.add((file.path, line, text))
        logger.info("Posted inline comment on %s:%d", file.path, line)

    def post_aggregated_comment(self, body: str | None) -> None:
        comments = self._client.get_paginated(self._client.repo_endpoint(f"/issues/{self.number}/comments"))
        previous = [c for c in comments if GLOBAL_COMMENT_MARKER in (c.get("body") or "")]

        if body is None:
            for comment in previous:
                self._delete_comment(comment["id"])
            return

        marked = f"{body}\n{GLOBAL_COMMENT_MARKER}"
        if previous:
            first, stale = previous[0], previous[1:]
            for comment in stale:
                self._delete_comment(comment["id"])
            if first.get("body") != marked:
                self._client.request("PATCH", self._client.repo_endpoint(f"/issues/comments/{first['id']}"),
                                     json={"body": marked})
                logger.info("Updated global comment %s on PR #%s", first["id"], self.number)
            return

        created = self._client.request("POST", self._client.repo_endpoint(f"/issues/{self.number}/comments"),
                                       json={"body": marked})
        logger.info("Posted global comment %s on PR #%s", created.get("id") if created else "?", self.number)

    def post_status(self, state: CommitState, message: str) -> None:
        self._client.request("POST", self._client.repo_endpoint(f"/statuses/{self.head_sha}"), json={
            "state": state.value,
            "description": message[:STATUS_DESCRIPTION_LIMIT],
            "context": self.status_context,
        })
        logger.info("Set status %s on %s: %s", state.value, self.head_sha[:7], message)

    def _delete_comment(self, comment_id: int) -> None:
        self._client.request("DELETE", self._client.repo_endpoint(f"/issues/comments/{comment_id}"))
        logger.info("Deleted global comment %s on PR #%s", comment_id, self.number)
