"""Tool call handlers for the MCP repository server"""

import logging
import os
import time
from typing import Any, Dict, List, Optional

from mcp.types import TextContent

from ..envelope import render_text, to_text_content
from ..error_handling import RepoToolError, record_error_metric
from ..github import api as github_api
from ..github.client import GitHubClient
from ..github.models import (
    AddCollaborator,
    CheckRepoExists,
    CreateIssue,
    CreateRepository,
    DeleteRepository,
    GetRepositoryTraffic,
    GetUserDetails,
    ListRepositories,
    ManageRepository,
    RemoveCollaborator,
    RenameRepository,
    SetRepositoryVisibility,
    ViewRepository,
)
from ..social import api as social_api
from ..social.client import TwitterClient
from ..social.models import CreatePost
from .tools import RepoTools, ToolCategory, ToolDefinition, ToolRegistry, ToolRouter

logger = logging.getLogger(__name__)


class CallToolHandler:
    """Centralized tool call handler using the router system"""

    def __init__(
        self,
        github_client: GitHubClient,
        owner: str,
        twitter_client: Optional[TwitterClient] = None,
    ):
        self.github = github_client
        self.owner = owner
        self.twitter = twitter_client
        self.registry = ToolRegistry()
        self.router = ToolRouter(self.registry)
        self._setup_handlers()

    def _setup_handlers(self):
        """Register every action this process can serve"""
        for tool_def in self._github_tools():
            self.registry.register(tool_def)
        if self.twitter is not None:
            for tool_def in self._social_tools():
                self.registry.register(tool_def)
        else:
            logger.info("Social posting disabled: createPost not registered")
        logger.info(f"Initialized tool registry with {len(self.registry.tools)} tools")

    def _github_tools(self) -> List[ToolDefinition]:
        def github_tool(name, description, schema, handler):
            return ToolDefinition(
                name=name,
                category=ToolCategory.GITHUB,
                description=description,
                schema=schema,
                handler=handler,
            )

        return [
            github_tool(
                RepoTools.CHECK_REPO_EXISTS,
                "Check if a GitHub repository exists",
                CheckRepoExists,
                self.check_repo_exists,
            ),
            github_tool(
                RepoTools.CREATE_REPOSITORY,
                "Create a new GitHub repository",
                CreateRepository,
                self.create_repository,
            ),
            github_tool(
                RepoTools.MANAGE_REPOSITORY,
                "Manage a GitHub repository: create or update description, retrieve details",
                ManageRepository,
                self.manage_repository,
            ),
            github_tool(
                RepoTools.LIST_REPOSITORIES,
                "List all GitHub repositories for the user",
                ListRepositories,
                self.list_repositories,
            ),
            github_tool(
                RepoTools.DELETE_REPOSITORY,
                "Delete a GitHub repository",
                DeleteRepository,
                self.delete_repository,
            ),
            github_tool(
                RepoTools.VIEW_REPOSITORY,
                "View details of a GitHub repository",
                ViewRepository,
                self.view_repository,
            ),
            github_tool(
                RepoTools.SET_REPOSITORY_VISIBILITY,
                "Make a GitHub repository public or private",
                SetRepositoryVisibility,
                self.set_repository_visibility,
            ),
            github_tool(
                RepoTools.RENAME_REPOSITORY,
                "Rename a GitHub repository",
                RenameRepository,
                self.rename_repository,
            ),
            github_tool(
                RepoTools.ADD_COLLABORATOR,
                "Add a collaborator to a GitHub repository",
                AddCollaborator,
                self.add_collaborator,
            ),
            github_tool(
                RepoTools.REMOVE_COLLABORATOR,
                "Remove a collaborator from a GitHub repository",
                RemoveCollaborator,
                self.remove_collaborator,
            ),
            github_tool(
                RepoTools.CREATE_ISSUE,
                "Create an issue in a GitHub repository",
                CreateIssue,
                self.create_issue,
            ),
            github_tool(
                RepoTools.GET_REPOSITORY_TRAFFIC,
                "Get daily view counts for a GitHub repository",
                GetRepositoryTraffic,
                self.get_repository_traffic,
            ),
            github_tool(
                RepoTools.GET_USER_DETAILS,
                "Get the public profile of a GitHub user",
                GetUserDetails,
                self.get_user_details,
            ),
        ]

    def _social_tools(self) -> List[ToolDefinition]:
        return [
            ToolDefinition(
                name=RepoTools.CREATE_POST,
                category=ToolCategory.SOCIAL,
                description="Create a post on X formerly known as Twitter",
                schema=CreatePost,
                handler=self.create_post,
            ),
        ]

    # GitHub handlers

    async def check_repo_exists(self, params: CheckRepoExists) -> str:
        exists = await github_api.check_repo_exists(self.github, self.owner, params.repo_name)
        if exists:
            return f'Repository "{params.repo_name}" exists.'
        return f'Repository "{params.repo_name}" does not exist.'

    async def create_repository(self, params: CreateRepository) -> str:
        url = await github_api.create_repository(
            self.github, params.repo_name, params.description or "", params.private
        )
        return f"Repository created at: {url}"

    async def manage_repository(self, params: ManageRepository) -> str:
        private = params.options.private if params.options else None
        result = await github_api.manage_repository(
            self.github, self.owner, params.repo_name, params.description or "", private
        )
        return f"{result.message}\nDetails:\n{render_text(result.details)}"

    async def list_repositories(self, params: ListRepositories) -> str:
        names = await github_api.list_repositories(self.github)
        return "Repositories:\n" + "\n".join(names)

    async def delete_repository(self, params: DeleteRepository) -> str:
        return await github_api.delete_repository(self.github, self.owner, params.repo_name)

    async def view_repository(self, params: ViewRepository) -> str:
        details = await github_api.view_repository(self.github, self.owner, params.repo_name)
        return f'Details for repository "{params.repo_name}":\n{render_text(details)}'

    async def set_repository_visibility(self, params: SetRepositoryVisibility) -> str:
        return await github_api.set_repository_visibility(
            self.github, self.owner, params.repo_name, params.visibility
        )

    async def rename_repository(self, params: RenameRepository) -> str:
        full_name = await github_api.rename_repository(
            self.github, self.owner, params.repo_name, params.new_name
        )
        return f'Repository "{self.owner}/{params.repo_name}" renamed to {full_name}'

    async def add_collaborator(self, params: AddCollaborator) -> str:
        return await github_api.add_collaborator(
            self.github,
            self.owner,
            params.repo_name,
            params.collaborator_username,
            params.permission,
        )

    async def remove_collaborator(self, params: RemoveCollaborator) -> str:
        return await github_api.remove_collaborator(
            self.github, self.owner, params.repo_name, params.collaborator_username
        )

    async def create_issue(self, params: CreateIssue) -> str:
        issue = await github_api.create_issue(
            self.github, self.owner, params.repo_name, params.title, params.body or ""
        )
        return f"Issue #{issue['number']} created at: {issue['url']}"

    async def get_repository_traffic(self, params: GetRepositoryTraffic) -> Dict[str, Any]:
        return await github_api.get_repository_traffic(
            self.github, self.owner, params.repo_name
        )

    async def get_user_details(self, params: GetUserDetails) -> Dict[str, Any]:
        return await github_api.get_user_details(self.github, params.username)

    # Social handlers

    async def create_post(self, params: CreatePost) -> str:
        post = await social_api.create_post(self.twitter, params.status)
        return f"Posted: {post['text']}\nPost ID: {post['id']}"

    async def call_tool(self, name: str, arguments: Any) -> Dict[str, Any]:
        """
        Main tool call entry point shared by every transport.

        Returns the result envelope. Every failure is raised as a
        RepoToolError after being logged and counted.
        """
        request_id = os.urandom(4).hex()
        logger.info(f"🔧 [{request_id}] Tool call: {name}", extra={"action": name})
        logger.debug(f"🔧 [{request_id}] Arguments: {arguments}")

        start_time = time.time()
        try:
            envelope = await self.router.route_tool_call(name, arguments)
        except RepoToolError as e:
            duration_ms = round((time.time() - start_time) * 1000, 1)
            record_error_metric(e, action=name)
            logger.warning(
                f"❌ [{request_id}] Tool '{name}' failed ({e.kind.value}): {e.message}",
                extra={"action": name, "error_kind": e.kind.value, "duration_ms": duration_ms},
            )
            raise

        duration_ms = round((time.time() - start_time) * 1000, 1)
        logger.info(
            f"✅ [{request_id}] Tool '{name}' completed in {duration_ms}ms",
            extra={"action": name, "duration_ms": duration_ms},
        )
        return envelope

    async def call_tool_content(self, name: str, arguments: Any) -> List[TextContent]:
        """MCP flavour of call_tool: the envelope as TextContent blocks."""
        return to_text_content(await self.call_tool(name, arguments))
