"""Social platform posting for the MCP repository server"""

from .api import MAX_STATUS_LENGTH, create_post, truncate_status
from .client import TwitterClient

__all__ = ["MAX_STATUS_LENGTH", "TwitterClient", "create_post", "truncate_status"]
