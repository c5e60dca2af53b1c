"""Interactive prompt client for the ``/tool/<action>`` endpoints."""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import aiohttp
import click

logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "http://localhost:3001"


class ToolCallError(Exception):
    """The server answered a tool call with a non-2xx status."""

    def __init__(self, action: str, status: int, message: str):
        super().__init__(f"{action} failed: {status} {message}")
        self.action = action
        self.status = status
        self.message = message


class ToolClient:
    """Posts argument bags to a running server and returns the first text block."""

    def __init__(self, session: aiohttp.ClientSession, server_url: str = DEFAULT_SERVER_URL):
        self.session = session
        self.server_url = server_url.rstrip("/")

    async def call_tool(self, action: str, arguments: Dict[str, Any]) -> str:
        url = f"{self.server_url}/tool/{action}"
        logger.debug(f"POST {url} {arguments}")
        async with self.session.post(url, json=arguments) as response:
            if response.status >= 400:
                raise ToolCallError(action, response.status, await response.text())
            result = await response.json()
        content = result.get("content") or []
        if content and content[0].get("text"):
            return content[0]["text"]
        return result.get("message") or "No response content."


# (field, prompt text, required) per menu entry
Field = Tuple[str, str, bool]


@dataclass
class MenuEntry:
    action: str
    fields: List[Field]
    convert: Optional[Callable[[Dict[str, Any]], Dict[str, Any]]] = None


def _manage_arguments(answers: Dict[str, Any]) -> Dict[str, Any]:
    private = answers.pop("private", "")
    if private:
        answers["options"] = {"private": private.lower() in ("y", "yes", "true")}
    return answers


MENU: Dict[str, MenuEntry] = {
    "check": MenuEntry("checkRepoExists", [("repoName", "Repository name", True)]),
    "create": MenuEntry(
        "createRepository",
        [("repoName", "Repository name", True), ("description", "Description", False)],
    ),
    "manage": MenuEntry(
        "manageRepository",
        [
            ("repoName", "Repository name", True),
            ("description", "Description", False),
            ("private", "Private if created? (y/n)", False),
        ],
        convert=_manage_arguments,
    ),
    "list": MenuEntry("listRepositories", []),
    "view": MenuEntry("viewRepository", [("repoName", "Repository name", True)]),
    "delete": MenuEntry("deleteRepository", [("repoName", "Repository name", True)]),
    "visibility": MenuEntry(
        "setRepositoryVisibility",
        [("repoName", "Repository name", True), ("visibility", "public or private", True)],
    ),
    "rename": MenuEntry(
        "renameRepository",
        [("repoName", "Repository name", True), ("newName", "New name", True)],
    ),
    "add-collaborator": MenuEntry(
        "addCollaborator",
        [
            ("repoName", "Repository name", True),
            ("collaboratorUsername", "Collaborator username", True),
            ("permission", "Permission (pull/push/admin)", False),
        ],
    ),
    "remove-collaborator": MenuEntry(
        "removeCollaborator",
        [
            ("repoName", "Repository name", True),
            ("collaboratorUsername", "Collaborator username", True),
        ],
    ),
    "issue": MenuEntry(
        "createIssue",
        [("repoName", "Repository name", True), ("title", "Title", True), ("body", "Body", False)],
    ),
    "traffic": MenuEntry("getRepositoryTraffic", [("repoName", "Repository name", True)]),
    "user": MenuEntry("getUserDetails", [("username", "Username", True)]),
    "post": MenuEntry("createPost", [("status", "Status text", True)]),
}


def collect_arguments(entry: MenuEntry, ask: Callable[..., str] = click.prompt) -> Dict[str, Any]:
    """Prompt for each field; optional fields left blank are omitted."""
    answers: Dict[str, Any] = {}
    for name, text, required in entry.fields:
        if required:
            value = ask(text)
        else:
            value = ask(f"{text} (optional)", default="", show_default=False)
        value = value.strip()
        if value:
            answers[name] = value
    if entry.convert is not None:
        answers = entry.convert(answers)
    return answers


async def run_prompt(server_url: str) -> None:
    """Loop over the menu until the user quits."""
    choices = ", ".join(MENU)
    async with aiohttp.ClientSession() as session:
        client = ToolClient(session, server_url)
        while True:
            choice = click.prompt(f"Choose action: {choices} | quit").strip().lower()
            if choice in ("quit", "exit", "q"):
                return
            entry = MENU.get(choice)
            if entry is None:
                click.secho("❌ Invalid action.", fg="red")
                continue
            arguments = collect_arguments(entry)
            try:
                message = await client.call_tool(entry.action, arguments)
            except ToolCallError as e:
                click.secho(f"❌ Error: {e}", fg="red")
            except aiohttp.ClientError as e:
                click.secho(f"❌ Could not reach {server_url}: {e}", fg="red")
            else:
                click.secho(f"\n✅ {message}\n", fg="green")
