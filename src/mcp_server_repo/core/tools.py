"""Tool registry and routing system for the MCP repository server"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from mcp.types import Tool
from pydantic import BaseModel, ValidationError

from ..envelope import build_envelope
from ..error_handling import ToolValidationError, UnsupportedActionError

logger = logging.getLogger(__name__)


class RepoTools(str, Enum):
    """Enumeration of all available actions (wire names)"""

    # GitHub repository lifecycle
    CHECK_REPO_EXISTS = "checkRepoExists"
    CREATE_REPOSITORY = "createRepository"
    MANAGE_REPOSITORY = "manageRepository"
    LIST_REPOSITORIES = "listRepositories"
    DELETE_REPOSITORY = "deleteRepository"
    VIEW_REPOSITORY = "viewRepository"
    SET_REPOSITORY_VISIBILITY = "setRepositoryVisibility"
    RENAME_REPOSITORY = "renameRepository"

    # Collaboration, issues and analytics
    ADD_COLLABORATOR = "addCollaborator"
    REMOVE_COLLABORATOR = "removeCollaborator"
    CREATE_ISSUE = "createIssue"
    GET_REPOSITORY_TRAFFIC = "getRepositoryTraffic"
    GET_USER_DETAILS = "getUserDetails"

    # Social posting
    CREATE_POST = "createPost"


class ToolCategory(str, Enum):
    """Tool categories for organization and routing"""

    GITHUB = "github"
    SOCIAL = "social"


@dataclass
class ToolDefinition:
    """Complete tool definition with metadata"""

    name: str
    category: ToolCategory
    description: str
    schema: Type[BaseModel]
    handler: Callable[[Any], Awaitable[Any]]


def format_validation_error(name: str, error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "arguments"
        problems.append(f"{location}: {item['msg']}")
    return f"Invalid arguments for {name}: " + "; ".join(problems)


class ToolRegistry:
    """Central registry for all actions the server exposes"""

    def __init__(self):
        self.tools: Dict[str, ToolDefinition] = {}

    def register(self, tool_def: ToolDefinition):
        """Register a tool in the registry"""
        name = tool_def.name.value if isinstance(tool_def.name, Enum) else tool_def.name
        tool_def.name = name
        self.tools[name] = tool_def
        logger.debug(f"Registered tool: {name} ({tool_def.category.value})")

    def get_tool(self, name: str) -> Optional[ToolDefinition]:
        """Get tool definition by name"""
        return self.tools.get(name)

    def names(self) -> List[str]:
        return list(self.tools)

    def list_tools(self) -> List[Tool]:
        """Get all tools as MCP Tool objects"""
        return [
            Tool(
                name=tool_def.name,
                description=tool_def.description,
                inputSchema=tool_def.schema.model_json_schema(by_alias=True),
            )
            for tool_def in self.tools.values()
        ]

    def get_tools_by_category(self, category: ToolCategory) -> List[ToolDefinition]:
        """Get all tools in a specific category"""
        return [
            tool_def for tool_def in self.tools.values() if tool_def.category == category
        ]


class ToolRouter:
    """Validates arguments and dispatches a tool call to exactly one handler"""

    def __init__(self, registry: ToolRegistry):
        self.registry = registry

    def validate(self, name: str, arguments: Any) -> BaseModel:
        """
        Look up the action and validate its argument bag.

        Raises:
            UnsupportedActionError: the name is not registered.
            ToolValidationError: the arguments do not match the schema.
        """
        tool_def = self.registry.get_tool(name)
        if tool_def is None:
            raise UnsupportedActionError(name)
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise ToolValidationError(
                f"Invalid arguments for {name}: expected an object, got {type(arguments).__name__}"
            )
        try:
            return tool_def.schema.model_validate(arguments)
        except ValidationError as e:
            raise ToolValidationError(format_validation_error(name, e)) from e

    async def route_tool_call(self, name: str, arguments: Any) -> Dict[str, Any]:
        """Route a tool call to its handler and wrap the result in an envelope"""
        params = self.validate(name, arguments)
        tool_def = self.registry.tools[name]
        result = await tool_def.handler(params)
        return build_envelope(result)
