"""Shared test fixtures."""

import logging

import httpx
import pytest

from pkgtrust.analyzers.github import GitHubFetcher
from pkgtrust.config import Settings

API = "https://api.github.com/repos/acme/widget"
REPO_URL = "https://github.com/acme/widget"
RAW_PACKAGE_JSON = "https://raw.githubusercontent.com/acme/widget/main/package.json"


class FakeUpstream:
    """Routes requests by scheme://host/path to canned JSON responses.

    A route body may be a callable taking the request, for responses that
    depend on query parameters. Unknown routes answer 404.
    """

    def __init__(self) -> None:
        self.routes: dict[str, tuple[int, object, dict]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, url: str, body=None, status: int = 200, headers: dict | None = None) -> None:
        self.routes[url] = (status, body, headers or {})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        if key not in self.routes:
            return httpx.Response(404, json={"message": "Not Found"})

        status, body, headers = self.routes[key]
        if callable(body):
            body = body(request)
        return httpx.Response(status, json=body, headers=headers)

    def requested_paths(self) -> list[str]:
        return [request.url.path for request in self.requests]


def entry(name: str, type_: str = "file", download_url: str | None = None) -> dict:
    """A GitHub contents API item."""
    return {
        "name": name,
        "path": name,
        "type": type_,
        "size": 0 if type_ == "dir" else 120,
        "download_url": download_url,
        "sha": "abc123",
    }


def add_healthy_repo(upstream: FakeUpstream, contributors_url: str | None = f"{API}/contributors") -> None:
    """Register every route of a well-kept repository.

    Expected scores: BusFactor 1.0, Correctness 1.0, RampUp 0.75,
    ResponsiveMaintainer 1.0, License 1.0, PinnedDependencies 0.5,
    PRReview 0.5, NetScore 0.91.
    """
    upstream.add(API, {
        "full_name": "acme/widget",
        "stargazers_count": 420,
        "forks_count": 37,
        "open_issues_count": 0,
        "license": {"key": "mit", "name": "MIT License", "spdx_id": "MIT"},
        "updated_at": "2026-09-30T12:00:00Z",
        "contributors_url": contributors_url,
    })

    def issues(request: httpx.Request) -> list[dict]:
        if request.url.params["state"] == "open":
            return [{"number": 11}, {"number": 12}, {"number": 13, "pull_request": {}}]
        return [{"number": n} for n in range(1, 6)]

    upstream.add(f"{API}/issues", issues)
    upstream.add(f"{API}/contributors", [{"login": f"dev{i}"} for i in range(12)])
    upstream.add(f"{API}/contents", [
        entry("README.md"),
        entry("CONTRIBUTING.md"),
        entry("src", "dir"),
        entry("test", "dir"),
        entry("package.json", download_url=RAW_PACKAGE_JSON),
        entry(".travis.yml"),
    ])
    upstream.add(RAW_PACKAGE_JSON, {
        "name": "widget",
        "dependencies": {"react": "17.0.2", "lodash": "^4.17.21"},
        "devDependencies": {"jest": "26.6.3", "typescript": "~4.1.3"},
    })
    upstream.add(f"{API}/pulls", [
        {"number": 1, "merged_at": "2026-09-01T00:00:00Z"},
        {"number": 2, "merged_at": "2026-09-02T00:00:00Z"},
        {"number": 3, "merged_at": None},
    ])
    upstream.add(f"{API}/pulls/1/reviews", [{"id": 1, "state": "APPROVED"}])
    upstream.add(f"{API}/pulls/2/reviews", [])


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def client(upstream: FakeUpstream) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))


@pytest.fixture
def settings() -> Settings:
    return Settings(github_token="test-token")


@pytest.fixture
def fetcher(settings: Settings, client: httpx.AsyncClient) -> GitHubFetcher:
    return GitHubFetcher.from_settings(settings, client=client)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo logging configuration done by the CLI or logging tests."""
    yield
    logger = logging.getLogger("pkgtrust")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
