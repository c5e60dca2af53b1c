"""Pydantic models for social posting tools"""

from ..github.models import NonEmptyStr, ToolArguments


class CreatePost(ToolArguments):
    status: NonEmptyStr
