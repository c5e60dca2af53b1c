"""Social posting operations"""

import logging
from typing import Any, Dict

from ..error_handling import (
    ErrorKind,
    OperationContext,
    UpstreamError,
    classify_status,
    upstream_message,
)
from .client import TwitterClient

logger = logging.getLogger(__name__)

MAX_STATUS_LENGTH = 280
TRUNCATED_LENGTH = 275
TRUNCATION_MARKER = "..."


def truncate_status(status: str) -> str:
    """Cut statuses over the platform limit to 275 characters plus a marker."""
    if len(status) > MAX_STATUS_LENGTH:
        return status[:TRUNCATED_LENGTH] + TRUNCATION_MARKER
    return status


async def create_post(client: TwitterClient, status: str) -> Dict[str, Any]:
    """
    Publish a text status.

    Returns:
        ``{"id": ..., "text": ...}`` for the created post, where ``text`` is
        what was actually sent after truncation.

    Raises:
        UpstreamError: AUTH on 401/403, RATE_LIMITED on 429, CLIENT or
            SERVER for anything else the platform rejects.
    """
    text = truncate_status(status)
    if text != status:
        logger.info(f"Status truncated from {len(status)} to {len(text)} characters")

    response = await client.post_json("/2/tweets", {"text": text})
    kind = classify_status(response.status, OperationContext.SOCIAL_POST)
    if kind is not None:
        if kind == ErrorKind.AUTH:
            message = "Twitter API: Authentication failed. Please check your API keys and tokens."
        elif kind == ErrorKind.RATE_LIMITED:
            message = "Twitter API: Rate limit exceeded. Please try again later."
        else:
            message = f"Twitter API: {upstream_message(response.data, f'HTTP {response.status}')}"
        logger.error(f"Post rejected with {response.status}: {message}")
        raise UpstreamError(message, kind=kind, status=response.status, operation="Creating post")

    data = (response.data or {}).get("data") or {}
    if not data.get("id"):
        raise UpstreamError(
            "Failed to create post: No response data",
            kind=ErrorKind.SERVER,
            status=response.status,
            operation="Creating post",
        )
    logger.info(f"Posted status {data['id']}")
    return {"id": data["id"], "text": data.get("text", text)}
