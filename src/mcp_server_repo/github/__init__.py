"""GitHub repository operations for the MCP repository server"""

from .client import GitHubClient, UpstreamResponse, raise_for_status

__all__ = ["GitHubClient", "UpstreamResponse", "raise_for_status"]
