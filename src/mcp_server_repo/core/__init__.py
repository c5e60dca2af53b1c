"""Tool registry, routing and action handlers"""

from .handlers import CallToolHandler
from .tools import RepoTools, ToolCategory, ToolDefinition, ToolRegistry, ToolRouter

__all__ = [
    "CallToolHandler",
    "RepoTools",
    "ToolCategory",
    "ToolDefinition",
    "ToolRegistry",
    "ToolRouter",
]
