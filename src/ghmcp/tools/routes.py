"""Static route table — tool name to HTTP endpoint.

Each :class:`ToolRoute` names the HTTP verb and path template for one tool.
Template fields are filled from the tool arguments; every remaining argument
travels as query parameters on ``GET`` and as a JSON body otherwise.

The table must stay in lock-step with :mod:`ghmcp.tools.registry`;
:func:`verify_routes` checks that every tool has a route and that every
required argument is consumed.
"""

from __future__ import annotations

import string
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict

from ghmcp.tools.registry import LIVE_EVENTS_TOOL

if TYPE_CHECKING:
    from ghmcp.tools.registry import ToolRegistry

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]

_FORMATTER = string.Formatter()


@dataclass(frozen=True)
class HttpCall:
    """A fully resolved HTTP call, relative to the API base URL."""

    method: HttpMethod
    path: str
    params: dict[str, Any] = field(default_factory=dict)
    json: dict[str, Any] | None = None


class ToolRoute(BaseModel):
    """How one tool maps onto the HTTP API."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["http", "stream"] = "http"
    method: HttpMethod = "GET"
    path: str
    slash_params: tuple[str, ...] = ()
    """Path fields whose ``/`` separators are kept (e.g. file paths)."""
    value_templates: dict[str, str] = {}
    """Rewrites applied to forwarded arguments, e.g. ``{"ref": "refs/heads/{ref}"}``."""

    @property
    def path_params(self) -> list[str]:
        return [name for _, name, _, _ in _FORMATTER.parse(self.path) if name]

    def resolve_path(self, arguments: dict[str, Any]) -> str:
        """Interpolate path fields from *arguments*, URL-quoting each segment."""
        values: dict[str, str] = {}
        for name in self.path_params:
            safe = "/" if name in self.slash_params else ""
            values[name] = quote(_segment(arguments[name]), safe=safe)
        return self.path.format(**values)

    def build(self, arguments: dict[str, Any]) -> HttpCall:
        """Resolve *arguments* into an :class:`HttpCall`."""
        path = self.resolve_path(arguments)
        consumed = set(self.path_params)
        remaining = {
            key: value
            for key, value in arguments.items()
            if key not in consumed and value is not None
        }
        for key, template in self.value_templates.items():
            if key in remaining:
                remaining[key] = template.format(**{key: remaining[key]})

        if self.method == "GET":
            return HttpCall(method=self.method, path=path, params=remaining)
        return HttpCall(method=self.method, path=path, json=remaining or None)


def _segment(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


_REPO = "/api/repos/{owner}/{repo}"

ROUTES: dict[str, ToolRoute] = {
    # Repository
    "github_get_repository": ToolRoute(path=_REPO),
    "github_list_repositories": ToolRoute(path="/api/users/{username}/repos"),
    "github_search_repositories": ToolRoute(path="/api/search/repositories"),
    "github_create_repository": ToolRoute(method="POST", path="/api/user/repos"),
    "github_fork_repository": ToolRoute(method="POST", path=f"{_REPO}/forks"),
    # Files
    "github_get_file_contents": ToolRoute(
        path=f"{_REPO}/contents/{{path}}", slash_params=("path",)
    ),
    "github_create_or_update_file": ToolRoute(
        method="PUT", path=f"{_REPO}/contents/{{path}}", slash_params=("path",)
    ),
    "github_delete_file": ToolRoute(
        method="DELETE", path=f"{_REPO}/contents/{{path}}", slash_params=("path",)
    ),
    # Commits
    "github_list_commits": ToolRoute(path=f"{_REPO}/commits"),
    "github_get_commit": ToolRoute(path=f"{_REPO}/commits/{{ref}}"),
    "github_compare_commits": ToolRoute(path=f"{_REPO}/compare/{{base}}...{{head}}"),
    # Branches
    "github_list_branches": ToolRoute(path=f"{_REPO}/branches"),
    "github_get_branch": ToolRoute(path=f"{_REPO}/branches/{{branch}}"),
    "github_create_branch": ToolRoute(
        method="POST",
        path=f"{_REPO}/git/refs",
        value_templates={"ref": "refs/heads/{ref}"},
    ),
    # Issues
    "github_list_issues": ToolRoute(path=f"{_REPO}/issues"),
    "github_get_issue": ToolRoute(path=f"{_REPO}/issues/{{issue_number}}"),
    "github_create_issue": ToolRoute(method="POST", path=f"{_REPO}/issues"),
    "github_update_issue": ToolRoute(method="PATCH", path=f"{_REPO}/issues/{{issue_number}}"),
    # Pull requests
    "github_list_pull_requests": ToolRoute(path=f"{_REPO}/pulls"),
    "github_get_pull_request": ToolRoute(path=f"{_REPO}/pulls/{{pull_number}}"),
    "github_create_pull_request": ToolRoute(method="POST", path=f"{_REPO}/pulls"),
    "github_update_pull_request": ToolRoute(method="PATCH", path=f"{_REPO}/pulls/{{pull_number}}"),
    "github_merge_pull_request": ToolRoute(
        method="PUT", path=f"{_REPO}/pulls/{{pull_number}}/merge"
    ),
    # Users
    "github_get_user": ToolRoute(path="/api/users/{username}"),
    "github_get_authenticated_user": ToolRoute(path="/api/user"),
    # Search
    "github_search_code": ToolRoute(path="/api/search/code"),
    "github_search_issues": ToolRoute(path="/api/search/issues"),
    # Real-time
    LIVE_EVENTS_TOOL: ToolRoute(kind="stream", path="/sse/github/{owner}/{repo}"),
}


def subscription_key(arguments: dict[str, Any]) -> str:
    """Resource identity of a live-event subscription (``owner/repo``)."""
    return f"{arguments['owner']}/{arguments['repo']}"


def verify_routes(registry: ToolRegistry, routes: dict[str, ToolRoute] | None = None) -> list[str]:
    """Return a list of mismatches between *registry* and the route table.

    An empty list means every tool is routed, every route names a tool, every
    path field is a required argument, and every required argument is consumed.
    """
    routes = ROUTES if routes is None else routes
    problems: list[str] = []

    for name in sorted(set(routes) - set(registry.names())):
        problems.append(f"route for unregistered tool: {name}")

    for tool in registry:
        route = routes.get(tool.name)
        if route is None:
            problems.append(f"tool without route: {tool.name}")
            continue
        required = set(tool.required)
        path_params = set(route.path_params)
        for param in sorted(path_params - required):
            problems.append(f"{tool.name}: path field '{param}' is not a required argument")
        consumed = path_params if route.kind == "stream" else set(tool.properties) | path_params
        for param in sorted(required - consumed):
            problems.append(f"{tool.name}: required argument '{param}' is not consumed")
        for param in sorted(set(route.value_templates) - set(tool.properties)):
            problems.append(f"{tool.name}: rewrite for undeclared argument '{param}'")

    return problems
