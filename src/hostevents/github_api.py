import time
import requests
from dataclasses import dataclass
from typing import Optional, Dict, Any, List, Tuple

from .config import DEFAULT_API_URL, DEFAULT_REQUEST_TIMEOUT, DEFAULT_TIMEOUT_SECONDS, MAX_PER_PAGE
from .errors import ResolutionTimeout, UpstreamFetchFailure
from .pagination import PageInfo, fetch_all, page_info_from_headers


@dataclass(frozen=True)
class PullRequestSummary:
    number: int
    head_sha: str

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "PullRequestSummary":
        number = data.get("number") if isinstance(data, dict) else None
        head = (data.get("head") or {}) if isinstance(data, dict) else {}
        sha = head.get("sha") if isinstance(head, dict) else None
        if not isinstance(number, int) or isinstance(number, bool) or not isinstance(sha, str):
            raise UpstreamFetchFailure(f"unexpected pull request shape: {data!r:.200}")
        return cls(number=number, head_sha=sha)


class Deadline:
    """Wall-clock budget shared by every API call made for one event."""

    def __init__(self, seconds: float = DEFAULT_TIMEOUT_SECONDS):
        self.seconds = seconds
        self._expires_at = time.monotonic() + seconds

    def remaining(self) -> float:
        return max(0.0, self._expires_at - time.monotonic())

    def expired(self) -> bool:
        return self.remaining() <= 0.0

    def check(self) -> None:
        if self.expired():
            raise ResolutionTimeout(f"deadline of {self.seconds:g}s exceeded")


class GitHubClient:
    def __init__(
        self,
        token: str,
        *,
        api_url: str = DEFAULT_API_URL,
        per_page: int = MAX_PER_PAGE,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        deadline: Optional[Deadline] = None,
        session: Optional[requests.Session] = None,
    ):
        if not token:
            raise ValueError("a GitHub token is required")
        self.api_url = api_url.rstrip("/")
        self.per_page = per_page
        self.request_timeout = request_timeout
        self.deadline = deadline or Deadline()
        self._session = session or requests.Session()
        self._session.headers.update({
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "host-event-handler/0.1",
        })

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._session.close()

    def _get(self, path: str, params: Dict[str, Any]) -> requests.Response:
        url = f"{self.api_url}{path}"
        self.deadline.check()
        timeout = max(min(self.request_timeout, self.deadline.remaining()), 0.001)
        try:
            r = self._session.get(url, params=params, timeout=timeout)
        except requests.Timeout as exc:
            self.deadline.check()
            raise UpstreamFetchFailure(f"GET {url} timed out", url=url) from exc
        except requests.RequestException as exc:
            raise UpstreamFetchFailure(f"GET {url} failed: {exc}", url=url) from exc

        # the per-request timeout bounds each socket read, not the whole response
        self.deadline.check()

        if not r.ok:
            raise UpstreamFetchFailure(
                f"GET {url} returned {r.status_code}: {r.text[:200]}",
                status=r.status_code,
                url=url,
            )
        return r

    def list_pull_requests(
        self, owner: str, name: str, page: int, state: str = "open"
    ) -> Tuple[List[PullRequestSummary], PageInfo]:
        r = self._get(
            f"/repos/{owner}/{name}/pulls",
            {"state": state, "page": page, "per_page": self.per_page},
        )
        try:
            data = r.json()
        except ValueError as exc:
            raise UpstreamFetchFailure(f"invalid JSON from {r.url}", status=r.status_code, url=r.url) from exc
        if not isinstance(data, list):
            raise UpstreamFetchFailure(f"expected a list of pull requests from {r.url}", url=r.url)

        return [PullRequestSummary.from_api(item) for item in data], page_info_from_headers(r.headers)

    def get_pull_requests(self, owner: str, name: str) -> List[PullRequestSummary]:
        """All open pull requests of ``owner/name``, in API order."""
        prs = fetch_all(lambda page: self.list_pull_requests(owner, name, page))
        self.deadline.check()
        return prs
