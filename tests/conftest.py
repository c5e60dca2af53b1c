"""
Shared fixtures for the repository server test suite.

FakeGitHubClient stands in for GitHubClient: it keeps repositories in
memory, answers the handful of REST endpoints the tools use, and records
every call so tests can assert on what was (or was not) sent upstream.
"""

import re
from typing import Any, Dict, List, Optional, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest

from mcp_server_repo.config import TwitterCredentials
from mcp_server_repo.core.handlers import CallToolHandler
from mcp_server_repo.error_handling import reset_error_stats
from mcp_server_repo.github.client import UpstreamResponse

OWNER = "octo"

NOT_FOUND = {"message": "Not Found"}

_REPO = re.compile(r"^/repos/(?P<owner>[^/]+)/(?P<name>[^/]+)(?P<rest>/.*)?$")
_USER = re.compile(r"^/users/(?P<username>[^/]+)$")


def make_repo(owner: str, name: str, description: str = "", private: bool = False) -> Dict[str, Any]:
    return {
        "name": name,
        "full_name": f"{owner}/{name}",
        "html_url": f"https://github.com/{owner}/{name}",
        "description": description or None,
        "private": private,
        "stargazers_count": 0,
        "forks_count": 0,
        "watchers_count": 0,
    }


class FakeGitHubClient:
    """In-memory GitHub with just enough REST surface for the tools."""

    def __init__(self, owner: str = OWNER):
        self.owner = owner
        self.repos: Dict[str, Dict[str, Any]] = {}
        self.users: Dict[str, Dict[str, Any]] = {}
        self.collaborators: Dict[str, Dict[str, str]] = {}
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []
        self.overrides: Dict[Tuple[str, str], UpstreamResponse] = {}

    def add_repo(self, name: str, description: str = "", private: bool = False) -> Dict[str, Any]:
        repo = make_repo(self.owner, name, description, private)
        self.repos[name] = repo
        return repo

    def calls_to(self, method: str, endpoint: Optional[str] = None) -> List[Tuple[str, str, Dict[str, Any]]]:
        return [
            call
            for call in self.calls
            if call[0] == method and (endpoint is None or call[1] == endpoint)
        ]

    async def request(self, method: str, endpoint: str, **kwargs) -> UpstreamResponse:
        self.calls.append((method, endpoint, kwargs))
        if (method, endpoint) in self.overrides:
            return self.overrides[(method, endpoint)]
        return self._dispatch(method, endpoint, kwargs.get("json") or {})

    async def get(self, endpoint: str, **kwargs) -> UpstreamResponse:
        return await self.request("GET", endpoint, **kwargs)

    async def post(self, endpoint: str, **kwargs) -> UpstreamResponse:
        return await self.request("POST", endpoint, **kwargs)

    async def patch(self, endpoint: str, **kwargs) -> UpstreamResponse:
        return await self.request("PATCH", endpoint, **kwargs)

    async def put(self, endpoint: str, **kwargs) -> UpstreamResponse:
        return await self.request("PUT", endpoint, **kwargs)

    async def delete(self, endpoint: str, **kwargs) -> UpstreamResponse:
        return await self.request("DELETE", endpoint, **kwargs)

    def _dispatch(self, method: str, endpoint: str, body: Dict[str, Any]) -> UpstreamResponse:
        if endpoint == "/user/repos":
            if method == "GET":
                return UpstreamResponse(200, list(self.repos.values()))
            if body["name"] in self.repos:
                return UpstreamResponse(
                    422, {"message": "Repository creation failed.", "errors": []}
                )
            repo = self.add_repo(body["name"], body.get("description", ""), body.get("private", False))
            return UpstreamResponse(201, dict(repo))

        user = _USER.match(endpoint)
        if user:
            data = self.users.get(user["username"])
            return UpstreamResponse(200, data) if data else UpstreamResponse(404, NOT_FOUND)

        match = _REPO.match(endpoint)
        if not match or match["owner"] != self.owner:
            return UpstreamResponse(404, NOT_FOUND)
        name, rest = match["name"], match["rest"] or ""
        repo = self.repos.get(name)
        if repo is None:
            return UpstreamResponse(404, NOT_FOUND)

        if rest == "":
            if method == "GET":
                return UpstreamResponse(200, dict(repo))
            if method == "DELETE":
                del self.repos[name]
                return UpstreamResponse(204)
            if method == "PATCH":
                if "description" in body:
                    repo["description"] = body["description"]
                if "private" in body:
                    repo["private"] = body["private"]
                if "name" in body:
                    del self.repos[name]
                    repo.update(make_repo(self.owner, body["name"], repo["description"], repo["private"]))
                    self.repos[body["name"]] = repo
                return UpstreamResponse(200, dict(repo))

        if rest.startswith("/collaborators/"):
            username = rest.rsplit("/", 1)[1]
            members = self.collaborators.setdefault(name, {})
            if method == "PUT":
                if username in members:
                    return UpstreamResponse(204)
                members[username] = body.get("permission", "push")
                return UpstreamResponse(201, {"id": 1, "permissions": members[username]})
            if method == "DELETE":
                members.pop(username, None)
                return UpstreamResponse(204)

        if rest == "/issues" and method == "POST":
            return UpstreamResponse(
                201, {"number": 1, "html_url": f"{repo['html_url']}/issues/1", "title": body["title"]}
            )

        if rest == "/traffic/views" and method == "GET":
            return UpstreamResponse(200, {"count": 0, "uniques": 0, "views": []})

        return UpstreamResponse(404, NOT_FOUND)


def aiohttp_response(status: int, text: str = "", links: Optional[dict] = None) -> MagicMock:
    """A MagicMock shaped like aiohttp.ClientResponse."""
    response = MagicMock()
    response.status = status
    response.text = AsyncMock(return_value=text)
    response.links = links or {}
    return response


def mock_session(response: MagicMock, method: str = "request") -> MagicMock:
    """A MagicMock aiohttp session whose ``method`` yields ``response``."""
    session = MagicMock()
    getattr(session, method).return_value.__aenter__.return_value = response
    getattr(session, method).return_value.__aexit__.return_value = False
    return session


@pytest.fixture(autouse=True)
def clean_error_stats():
    reset_error_stats()
    yield
    reset_error_stats()


@pytest.fixture
def fake_github() -> FakeGitHubClient:
    return FakeGitHubClient()


@pytest.fixture
def handler(fake_github) -> CallToolHandler:
    return CallToolHandler(fake_github, OWNER)


@pytest.fixture
def twitter_credentials() -> TwitterCredentials:
    return TwitterCredentials(
        api_key="key",
        api_secret="secret",
        access_token="token",
        access_secret="token-secret",
    )


@pytest.fixture
def github_env() -> Dict[str, str]:
    return {"GITHUB_TOKEN": "ghp_" + "a" * 36, "GITHUB_REPO_OWNER": OWNER}
