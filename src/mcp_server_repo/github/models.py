"""Pydantic models for GitHub repository tools"""

from typing import Annotated, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, StringConstraints
from pydantic.alias_generators import to_camel

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def _not_dot_segment(value: str) -> str:
    if value in (".", ".."):
        raise ValueError("must not be \".\" or \"..\"")
    return value


# Names end up as URL path segments, so anything that could form a
# separator or a relative segment is rejected before a request is built.
RepoName = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True, min_length=1, max_length=100, pattern=r"^[A-Za-z0-9._-]+$"
    ),
    AfterValidator(_not_dot_segment),
]
UserName = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True, min_length=1, max_length=39, pattern=r"^[A-Za-z0-9-]+$"
    ),
]


class ToolArguments(BaseModel):
    """Base for tool argument schemas: camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CheckRepoExists(ToolArguments):
    repo_name: RepoName


class CreateRepository(ToolArguments):
    repo_name: RepoName
    description: Optional[str] = ""
    private: bool = False


class RepositoryOptions(ToolArguments):
    private: Optional[bool] = None


class ManageRepository(ToolArguments):
    repo_name: RepoName
    description: Optional[str] = ""
    options: Optional[RepositoryOptions] = None


class ListRepositories(ToolArguments):
    pass


class DeleteRepository(ToolArguments):
    repo_name: RepoName


class ViewRepository(ToolArguments):
    repo_name: RepoName


class AddCollaborator(ToolArguments):
    repo_name: RepoName
    collaborator_username: UserName
    permission: Literal["pull", "push", "admin"] = "push"


class RemoveCollaborator(ToolArguments):
    repo_name: RepoName
    collaborator_username: UserName


class SetRepositoryVisibility(ToolArguments):
    repo_name: RepoName
    visibility: Literal["public", "private"]


class RenameRepository(ToolArguments):
    repo_name: RepoName
    new_name: RepoName


class CreateIssue(ToolArguments):
    repo_name: RepoName
    title: NonEmptyStr
    body: Optional[str] = ""


class GetRepositoryTraffic(ToolArguments):
    repo_name: RepoName


class GetUserDetails(ToolArguments):
    username: UserName
