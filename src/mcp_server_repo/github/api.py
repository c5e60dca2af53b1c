"""GitHub API operations for the MCP repository server"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..error_handling import ErrorKind, OperationContext, UpstreamError
from .client import GitHubClient, raise_for_status

logger = logging.getLogger(__name__)

LIST_PAGE_SIZE = 100


@dataclass
class ManageResult:
    """Outcome of manage_repository: what happened and the current details."""

    message: str
    created: bool = False
    updated: bool = False
    details: Dict[str, Any] = field(default_factory=dict)


def _repo_path(owner: str, repo_name: str) -> str:
    return f"/repos/{owner}/{repo_name}"


def _summarize(repo: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "name": repo.get("name"),
        "fullName": repo.get("full_name"),
        "url": repo.get("html_url"),
        "description": repo.get("description") or "",
        "private": repo.get("private", False),
        "stars": repo.get("stargazers_count", 0),
        "forks": repo.get("forks_count", 0),
        "watchers": repo.get("watchers_count", 0),
    }


async def check_repo_exists(client: GitHubClient, owner: str, repo_name: str) -> bool:
    """Check if a repository exists. A 404 is a normal ``False`` result."""
    logger.info(f"Checking if repository {owner}/{repo_name} exists")
    response = await client.get(_repo_path(owner, repo_name))
    if response.status == 404:
        return False
    raise_for_status(
        response, "Checking repository existence", OperationContext.EXISTENCE_CHECK
    )
    return True


async def get_repository(client: GitHubClient, owner: str, repo_name: str) -> Dict[str, Any]:
    response = await client.get(_repo_path(owner, repo_name))
    if response.status == 404:
        raise UpstreamError(
            f'Repository "{owner}/{repo_name}" not found.',
            kind=ErrorKind.NOT_FOUND,
            status=404,
            operation="Fetching repository",
        )
    raise_for_status(response, "Fetching repository")
    return response.data


async def _post_repository(
    client: GitHubClient, repo_name: str, description: str, private: bool
) -> Dict[str, Any]:
    logger.info(f"Creating repository {repo_name} (private={private})")
    response = await client.post(
        "/user/repos",
        json={"name": repo_name, "description": description or "", "private": private},
    )
    raise_for_status(response, "Creating repository")
    logger.info(f"Repository {repo_name} created at {response.data['html_url']}")
    return response.data


async def create_repository(
    client: GitHubClient,
    repo_name: str,
    description: str = "",
    private: bool = False,
) -> str:
    """
    Create a repository under the authenticated account.

    No existence check is made here; a name clash surfaces as the upstream
    422 client error.

    Returns:
        The html url of the new repository.
    """
    repo = await _post_repository(client, repo_name, description, private)
    return repo["html_url"]


async def manage_repository(
    client: GitHubClient,
    owner: str,
    repo_name: str,
    description: str = "",
    private: Optional[bool] = None,
) -> ManageResult:
    """
    Create the repository if it is absent, otherwise reconcile its description.

    An existing repository is authoritative: its description is only
    replaced by a non-empty description that differs from the stored one,
    and it is never cleared by an empty one.
    """
    description = description or ""
    if not await check_repo_exists(client, owner, repo_name):
        repo = await _post_repository(client, repo_name, description, bool(private))
        return ManageResult(
            message=f'Repository "{repo_name}" created at: {repo["html_url"]}',
            created=True,
            details=_summarize(repo),
        )

    repo = await get_repository(client, owner, repo_name)
    current = repo.get("description") or ""
    if description and description != current:
        logger.info(f"Updating description of {owner}/{repo_name}")
        response = await client.patch(
            _repo_path(owner, repo_name), json={"description": description}
        )
        raise_for_status(response, "Updating repository description")
        return ManageResult(
            message=f'Repository "{repo_name}" already exists. Description updated.',
            updated=True,
            details=_summarize(response.data),
        )

    return ManageResult(
        message=f'Repository "{repo_name}" already exists. No changes made.',
        details=_summarize(repo),
    )


async def list_repositories(client: GitHubClient) -> List[str]:
    """Names of the authenticated user's repositories, in upstream order."""
    names: List[str] = []
    endpoint: Optional[str] = "/user/repos"
    params: Optional[Dict[str, Any]] = {"per_page": LIST_PAGE_SIZE}
    while endpoint:
        response = await client.get(endpoint, params=params)
        raise_for_status(response, "Listing repositories")
        names.extend(repo["name"] for repo in response.data or [])
        # the next link already carries the query string
        endpoint = response.next_url
        params = None
    return names


async def delete_repository(client: GitHubClient, owner: str, repo_name: str) -> str:
    logger.info(f"Deleting repository {owner}/{repo_name}")
    response = await client.delete(_repo_path(owner, repo_name))
    raise_for_status(response, "Deleting repository")
    return f'Repository "{owner}/{repo_name}" deleted.'


async def view_repository(client: GitHubClient, owner: str, repo_name: str) -> Dict[str, Any]:
    """Full upstream repository object. Absence is a NOT_FOUND failure."""
    return await get_repository(client, owner, repo_name)


async def add_collaborator(
    client: GitHubClient,
    owner: str,
    repo_name: str,
    username: str,
    permission: str = "push",
) -> str:
    logger.info(f"Adding {username} to {owner}/{repo_name} with {permission} permission")
    response = await client.put(
        f"{_repo_path(owner, repo_name)}/collaborators/{username}",
        json={"permission": permission},
    )
    raise_for_status(response, "Adding collaborator")
    if response.status == 201:
        return (
            f'Invitation sent to "{username}" for "{owner}/{repo_name}" '
            f"with {permission} permission."
        )
    return f'"{username}" is a collaborator on "{owner}/{repo_name}" with {permission} permission.'


async def remove_collaborator(
    client: GitHubClient, owner: str, repo_name: str, username: str
) -> str:
    logger.info(f"Removing {username} from {owner}/{repo_name}")
    response = await client.delete(
        f"{_repo_path(owner, repo_name)}/collaborators/{username}"
    )
    raise_for_status(response, "Removing collaborator")
    return f'Collaborator "{username}" removed from "{owner}/{repo_name}".'


async def set_repository_visibility(
    client: GitHubClient, owner: str, repo_name: str, visibility: str
) -> str:
    response = await client.patch(
        _repo_path(owner, repo_name), json={"private": visibility == "private"}
    )
    raise_for_status(response, "Changing repository visibility")
    return f'Repository "{owner}/{repo_name}" is now {visibility}.'


async def rename_repository(
    client: GitHubClient, owner: str, repo_name: str, new_name: str
) -> str:
    """Rename a repository and return its new ``owner/name`` identifier."""
    response = await client.patch(_repo_path(owner, repo_name), json={"name": new_name})
    raise_for_status(response, "Renaming repository")
    data = response.data or {}
    return data.get("full_name") or f"{owner}/{new_name}"


async def create_issue(
    client: GitHubClient, owner: str, repo_name: str, title: str, body: str = ""
) -> Dict[str, Any]:
    response = await client.post(
        f"{_repo_path(owner, repo_name)}/issues",
        json={"title": title, "body": body or ""},
    )
    raise_for_status(response, "Creating issue")
    return {"number": response.data.get("number"), "url": response.data["html_url"]}


async def get_repository_traffic(
    client: GitHubClient, owner: str, repo_name: str
) -> Dict[str, Any]:
    """Daily view counts for the last two weeks, with fields renamed."""
    response = await client.get(f"{_repo_path(owner, repo_name)}/traffic/views")
    raise_for_status(response, "Fetching repository traffic")
    data = response.data or {}
    return {
        "totalCount": data.get("count", 0),
        "totalUniques": data.get("uniques", 0),
        "views": [
            {
                "timestamp": view.get("timestamp"),
                "count": view.get("count", 0),
                "uniques": view.get("uniques", 0),
            }
            for view in data.get("views", [])
        ],
    }


async def get_user_details(client: GitHubClient, username: str) -> Dict[str, Any]:
    response = await client.get(f"/users/{username}")
    if response.status == 404:
        raise UpstreamError(
            f'User "{username}" not found.',
            kind=ErrorKind.NOT_FOUND,
            status=404,
            operation="Fetching user details",
        )
    raise_for_status(response, "Fetching user details")
    user = response.data
    return {
        "login": user.get("login"),
        "name": user.get("name"),
        "company": user.get("company"),
        "blog": user.get("blog"),
        "location": user.get("location"),
        "bio": user.get("bio"),
        "publicRepos": user.get("public_repos", 0),
        "followers": user.get("followers", 0),
        "following": user.get("following", 0),
        "url": user.get("html_url"),
        "createdAt": user.get("created_at"),
    }
