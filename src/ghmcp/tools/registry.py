"""Static tool registry.

Contains the GitHub tool descriptors advertised by ``tools/list`` and a
small read-only registry around them.  The descriptors are the contract of
what ``tools/call`` accepts; :mod:`ghmcp.tools.routes` must stay in
lock-step with them.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any

from ghmcp.protocol.models import ToolDescriptor

LIVE_EVENTS_TOOL = "github_live_events"


def _string(description: str, **extra: Any) -> dict[str, Any]:
    return {"type": "string", "description": description, **extra}


def _boolean(description: str, **extra: Any) -> dict[str, Any]:
    return {"type": "boolean", **extra, "description": description}


def _repo_props() -> dict[str, Any]:
    return {
        "owner": _string("Repository owner"),
        "repo": _string("Repository name"),
    }


def _paging() -> dict[str, Any]:
    return {
        "per_page": {"type": "number", "default": 30, "maximum": 100},
        "page": {"type": "number", "default": 1},
    }


def _direction() -> dict[str, Any]:
    return {"type": "string", "enum": ["asc", "desc"], "default": "desc"}


def _labels_or_users(description: str) -> dict[str, Any]:
    return {"type": "array", "items": {"type": "string"}, "description": description}


def _schema(properties: dict[str, Any], required: Iterable[str] = ()) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "object", "properties": properties}
    required = list(required)
    if required:
        schema["required"] = required
    return schema


def _tool(name: str, description: str, schema: dict[str, Any]) -> ToolDescriptor:
    return ToolDescriptor(name=name, description=description, input_schema=schema)


# ---------------------------------------------------------------------------
# Repository tools
# ---------------------------------------------------------------------------

_REPOSITORY_TOOLS = [
    _tool(
        "github_get_repository",
        "Get detailed information about a GitHub repository",
        _schema(_repo_props(), ["owner", "repo"]),
    ),
    _tool(
        "github_list_repositories",
        "List repositories for a user or organization",
        _schema(
            {
                "username": _string("Username or organization"),
                "type": {"type": "string", "enum": ["all", "owner", "member"], "default": "all"},
                "sort": {
                    "type": "string",
                    "enum": ["created", "updated", "pushed", "full_name"],
                    "default": "updated",
                },
                "direction": _direction(),
                **_paging(),
            },
            ["username"],
        ),
    ),
    _tool(
        "github_search_repositories",
        "Search for repositories on GitHub",
        _schema(
            {
                "q": _string("Search query"),
                "sort": {
                    "type": "string",
                    "enum": ["stars", "forks", "help-wanted-issues", "updated"],
                    "default": "best-match",
                },
                "order": _direction(),
                **_paging(),
            },
            ["q"],
        ),
    ),
    _tool(
        "github_create_repository",
        "Create a new repository",
        _schema(
            {
                "name": _string("Repository name"),
                "description": _string("Repository description"),
                "homepage": _string("Repository homepage URL"),
                "private": _boolean("Create private repository", default=False),
                "has_issues": _boolean("Enable issues", default=True),
                "has_projects": _boolean("Enable projects", default=True),
                "has_wiki": _boolean("Enable wiki", default=True),
                "has_downloads": _boolean("Enable downloads", default=True),
                "is_template": _boolean("Create as template repository", default=False),
                "team_id": {"type": "number", "description": "Team ID for organization repositories"},
                "auto_init": _boolean("Initialize with README", default=False),
                "gitignore_template": _string("Gitignore template name"),
                "license_template": _string("License template name"),
                "allow_squash_merge": _boolean("Allow squash merge", default=True),
                "allow_merge_commit": _boolean("Allow merge commit", default=True),
                "allow_rebase_merge": _boolean("Allow rebase merge", default=True),
                "allow_auto_merge": _boolean("Allow auto merge", default=False),
                "delete_branch_on_merge": _boolean("Delete head branch on merge", default=False),
            },
            ["name"],
        ),
    ),
    _tool(
        "github_fork_repository",
        "Fork a repository",
        _schema(
            {**_repo_props(), "organization": _string("Optional organization to fork to")},
            ["owner", "repo"],
        ),
    ),
]

# ---------------------------------------------------------------------------
# File and content tools
# ---------------------------------------------------------------------------

_CONTENT_TOOLS = [
    _tool(
        "github_get_file_contents",
        "Get contents of a file from a repository",
        _schema(
            {
                **_repo_props(),
                "path": _string("File path"),
                "ref": _string("Branch, tag, or commit SHA"),
            },
            ["owner", "repo", "path"],
        ),
    ),
    _tool(
        "github_create_or_update_file",
        "Create or update a file in a repository",
        _schema(
            {
                **_repo_props(),
                "path": _string("File path"),
                "message": _string("Commit message"),
                "content": _string("File content (base64 encoded)"),
                "sha": _string("SHA of file being replaced (for updates)"),
                "branch": _string("Branch name"),
            },
            ["owner", "repo", "path", "message", "content"],
        ),
    ),
    _tool(
        "github_delete_file",
        "Delete a file from a repository",
        _schema(
            {
                **_repo_props(),
                "path": _string("File path"),
                "message": _string("Commit message"),
                "sha": _string("SHA of the file to delete"),
                "branch": _string("Branch name"),
            },
            ["owner", "repo", "path", "message", "sha"],
        ),
    ),
]

# ---------------------------------------------------------------------------
# Commit and branch tools
# ---------------------------------------------------------------------------

_COMMIT_TOOLS = [
    _tool(
        "github_list_commits",
        "List commits in a repository",
        _schema(
            {
                **_repo_props(),
                "sha": _string("SHA or branch to start listing commits from"),
                "path": _string("Only commits containing this file path"),
                "author": _string("GitHub username or email address"),
                "since": _string("ISO 8601 date format: YYYY-MM-DDTHH:MM:SSZ"),
                "until": _string("ISO 8601 date format: YYYY-MM-DDTHH:MM:SSZ"),
                **_paging(),
            },
            ["owner", "repo"],
        ),
    ),
    _tool(
        "github_get_commit",
        "Get a specific commit",
        _schema({**_repo_props(), "ref": _string("Commit SHA")}, ["owner", "repo", "ref"]),
    ),
    _tool(
        "github_compare_commits",
        "Compare two commits",
        _schema(
            {
                **_repo_props(),
                "base": _string("Base commit SHA"),
                "head": _string("Head commit SHA"),
            },
            ["owner", "repo", "base", "head"],
        ),
    ),
]

_BRANCH_TOOLS = [
    _tool(
        "github_list_branches",
        "List branches in a repository",
        _schema(
            {
                **_repo_props(),
                "protected": {"type": "boolean", "description": "Return only protected branches"},
                **_paging(),
            },
            ["owner", "repo"],
        ),
    ),
    _tool(
        "github_get_branch",
        "Get a specific branch",
        _schema({**_repo_props(), "branch": _string("Branch name")}, ["owner", "repo", "branch"]),
    ),
    _tool(
        "github_create_branch",
        "Create a new branch",
        _schema(
            {
                **_repo_props(),
                "ref": _string("New branch name"),
                "sha": _string("SHA to create branch from"),
            },
            ["owner", "repo", "ref", "sha"],
        ),
    ),
]

# ---------------------------------------------------------------------------
# Issue and pull request tools
# ---------------------------------------------------------------------------

_ISSUE_TOOLS = [
    _tool(
        "github_list_issues",
        "List issues in a repository",
        _schema(
            {
                **_repo_props(),
                "milestone": _string("Milestone number or title"),
                "state": {"type": "string", "enum": ["open", "closed", "all"], "default": "open"},
                "assignee": _string("Username of assignee"),
                "creator": _string("Username of creator"),
                "mentioned": _string("Username mentioned in issues"),
                "labels": _string("Comma-separated list of label names"),
                "sort": {
                    "type": "string",
                    "enum": ["created", "updated", "comments"],
                    "default": "created",
                },
                "direction": _direction(),
                "since": _string("ISO 8601 date format"),
                **_paging(),
            },
            ["owner", "repo"],
        ),
    ),
    _tool(
        "github_get_issue",
        "Get a specific issue",
        _schema(
            {**_repo_props(), "issue_number": {"type": "number", "description": "Issue number"}},
            ["owner", "repo", "issue_number"],
        ),
    ),
    _tool(
        "github_create_issue",
        "Create a new issue",
        _schema(
            {
                **_repo_props(),
                "title": _string("Issue title"),
                "body": _string("Issue body"),
                "assignees": _labels_or_users("Usernames to assign"),
                "milestone": {"type": "number", "description": "Milestone number"},
                "labels": _labels_or_users("Label names"),
            },
            ["owner", "repo", "title"],
        ),
    ),
    _tool(
        "github_update_issue",
        "Update an issue",
        _schema(
            {
                **_repo_props(),
                "issue_number": {"type": "number", "description": "Issue number"},
                "title": _string("Issue title"),
                "body": _string("Issue body"),
                "state": {"type": "string", "enum": ["open", "closed"]},
                "assignees": _labels_or_users("Usernames to assign"),
                "labels": _labels_or_users("Label names"),
            },
            ["owner", "repo", "issue_number"],
        ),
    ),
]

_PULL_REQUEST_TOOLS = [
    _tool(
        "github_list_pull_requests",
        "List pull requests in a repository",
        _schema(
            {
                **_repo_props(),
                "state": {"type": "string", "enum": ["open", "closed", "all"], "default": "open"},
                "head": _string("Filter by head branch"),
                "base": _string("Filter by base branch"),
                "sort": {
                    "type": "string",
                    "enum": ["created", "updated", "popularity"],
                    "default": "created",
                },
                "direction": _direction(),
                **_paging(),
            },
            ["owner", "repo"],
        ),
    ),
    _tool(
        "github_get_pull_request",
        "Get a specific pull request",
        _schema(
            {**_repo_props(), "pull_number": {"type": "number", "description": "Pull request number"}},
            ["owner", "repo", "pull_number"],
        ),
    ),
    _tool(
        "github_create_pull_request",
        "Create a new pull request",
        _schema(
            {
                **_repo_props(),
                "title": _string("Pull request title"),
                "head": _string("Head branch name"),
                "base": _string("Base branch name"),
                "body": _string("Pull request body"),
                "maintainer_can_modify": {"type": "boolean", "description": "Allow maintainers to edit"},
                "draft": {"type": "boolean", "description": "Create as draft"},
            },
            ["owner", "repo", "title", "head", "base"],
        ),
    ),
    _tool(
        "github_update_pull_request",
        "Update a pull request",
        _schema(
            {
                **_repo_props(),
                "pull_number": {"type": "number", "description": "Pull request number"},
                "title": _string("Pull request title"),
                "body": _string("Pull request body"),
                "state": {"type": "string", "enum": ["open", "closed"]},
                "base": _string("Base branch name"),
            },
            ["owner", "repo", "pull_number"],
        ),
    ),
    _tool(
        "github_merge_pull_request",
        "Merge a pull request",
        _schema(
            {
                **_repo_props(),
                "pull_number": {"type": "number", "description": "Pull request number"},
                "commit_title": _string("Commit title"),
                "commit_message": _string("Commit message"),
                "merge_method": {
                    "type": "string",
                    "enum": ["merge", "squash", "rebase"],
                    "default": "merge",
                },
            },
            ["owner", "repo", "pull_number"],
        ),
    ),
]

# ---------------------------------------------------------------------------
# User, search, and real-time tools
# ---------------------------------------------------------------------------

_USER_TOOLS = [
    _tool(
        "github_get_user",
        "Get information about a user",
        _schema({"username": _string("GitHub username")}, ["username"]),
    ),
    _tool(
        "github_get_authenticated_user",
        "Get information about the authenticated user",
        _schema({}),
    ),
]

_SEARCH_TOOLS = [
    _tool(
        "github_search_code",
        "Search for code in repositories",
        _schema(
            {
                "q": _string("Search query"),
                "sort": {"type": "string", "enum": ["indexed"], "description": "Sort field"},
                "order": _direction(),
                **_paging(),
            },
            ["q"],
        ),
    ),
    _tool(
        "github_search_issues",
        "Search for issues and pull requests",
        _schema(
            {
                "q": _string("Search query"),
                "sort": {
                    "type": "string",
                    "enum": [
                        "comments",
                        "reactions",
                        "reactions-+1",
                        "reactions--1",
                        "reactions-smile",
                        "reactions-thinking_face",
                        "reactions-heart",
                        "reactions-tada",
                        "interactions",
                        "created",
                        "updated",
                    ],
                    "description": "Sort field",
                },
                "order": _direction(),
                **_paging(),
            },
            ["q"],
        ),
    ),
]

_REALTIME_TOOLS = [
    _tool(
        LIVE_EVENTS_TOOL,
        "Subscribe to live events from a GitHub repository using SSE",
        _schema(_repo_props(), ["owner", "repo"]),
    ),
]

GITHUB_TOOLS: tuple[ToolDescriptor, ...] = (
    *_REPOSITORY_TOOLS,
    *_CONTENT_TOOLS,
    *_COMMIT_TOOLS,
    *_BRANCH_TOOLS,
    *_ISSUE_TOOLS,
    *_PULL_REQUEST_TOOLS,
    *_USER_TOOLS,
    *_SEARCH_TOOLS,
    *_REALTIME_TOOLS,
)


class ToolRegistry:
    """Read-only, name-keyed catalog of :class:`ToolDescriptor` objects."""

    def __init__(self, tools: Iterable[ToolDescriptor]) -> None:
        self._tools: dict[str, ToolDescriptor] = {}
        for tool in tools:
            if tool.name in self._tools:
                msg = f"duplicate tool name: {tool.name}"
                raise ValueError(msg)
            self._tools[tool.name] = tool

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolDescriptor]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def get(self, name: str) -> ToolDescriptor | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def to_wire(self) -> list[dict[str, Any]]:
        """Serialize every descriptor in registration order for ``tools/list``."""
        return [tool.to_wire() for tool in self._tools.values()]


def build_default_registry() -> ToolRegistry:
    """Return a ``ToolRegistry`` pre-loaded with the GitHub tools."""
    return ToolRegistry(GITHUB_TOOLS)
