"""GitHub API client and authentication"""

import asyncio
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import aiohttp

from ..error_handling import (
    ErrorKind,
    OperationContext,
    UpstreamError,
    classify_status,
    upstream_message,
)

logger = logging.getLogger(__name__)

USER_AGENT = "MCP-Repo-Server/0.1.0"


@dataclass
class UpstreamResponse:
    """Status, decoded body and pagination links of one upstream call."""

    status: int
    data: Any = None
    next_url: Optional[str] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def raise_for_status(
    response: UpstreamResponse,
    operation: str,
    context: OperationContext = OperationContext.DEFAULT,
) -> None:
    """Raise UpstreamError for any non-2xx response."""
    kind = classify_status(response.status, context)
    if kind is None:
        return
    message = upstream_message(response.data, f"HTTP {response.status}")
    logger.debug(f"{operation} failed with {response.status} ({kind.value}): {message}")
    raise UpstreamError(
        f"{operation} failed: {message}",
        kind=kind,
        status=response.status,
        operation=operation,
    )


def connection_error(operation: str, error: Exception) -> UpstreamError:
    """No response at all is reported like an upstream server failure."""
    logger.error(f"{operation} failed without a response: {error!r}")
    return UpstreamError(
        f"{operation} failed: upstream unreachable ({type(error).__name__})",
        kind=ErrorKind.SERVER,
        status=0,
        operation=operation,
    )


async def read_response(response: aiohttp.ClientResponse) -> UpstreamResponse:
    """Decode an aiohttp response into an UpstreamResponse."""
    text = await response.text()
    data: Any = None
    if text:
        try:
            data = json.loads(text)
        except ValueError:
            data = text
    next_link = response.links.get("next") if response.links else None
    next_url = str(next_link.get("url")) if next_link else None
    return UpstreamResponse(status=response.status, data=data, next_url=next_url)


@dataclass
class GitHubClient:
    """GitHub API client with bearer authentication."""

    token: str
    session: aiohttp.ClientSession
    base_url: str = "https://api.github.com"
    headers: Dict[str, str] = field(init=False)

    def __post_init__(self):
        if not self._is_valid_github_token(self.token):
            logger.warning("⚠️ GitHub token format appears invalid")
        self.base_url = self.base_url.rstrip("/")
        self.headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": USER_AGENT,
        }

    @staticmethod
    def _is_valid_github_token(token: str) -> bool:
        """Validate GitHub token format"""
        if not token or len(token.strip()) == 0:
            return False

        patterns = [
            r"^ghp_[a-zA-Z0-9]{36}$",  # Personal access tokens (classic)
            r"^github_pat_[a-zA-Z0-9_]{82}$",  # Fine-grained personal access tokens
            r"^ghs_[a-zA-Z0-9]{36}$",  # GitHub App installation tokens
            r"^gho_[a-zA-Z0-9]{36}$",  # OAuth app tokens
        ]

        return any(re.match(pattern, token.strip()) for pattern in patterns)

    def url_for(self, endpoint: str) -> str:
        if endpoint.startswith("http://") or endpoint.startswith("https://"):
            return endpoint
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    async def request(self, method: str, endpoint: str, **kwargs) -> UpstreamResponse:
        """Make a request to the GitHub API and decode the response."""
        url = self.url_for(endpoint)
        logger.debug(f"GitHub {method} {url}")
        try:
            async with self.session.request(
                method, url, headers=self.headers, **kwargs
            ) as response:
                return await read_response(response)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise connection_error(f"GitHub {method} {endpoint}", e) from e

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
