"""Tool catalog — descriptors, HTTP routes, and argument validation."""

from ghmcp.tools.registry import GITHUB_TOOLS, LIVE_EVENTS_TOOL, ToolRegistry, build_default_registry
from ghmcp.tools.routes import ROUTES, HttpCall, ToolRoute, subscription_key, verify_routes
from ghmcp.tools.validation import validate_arguments

__all__ = [
    "GITHUB_TOOLS",
    "LIVE_EVENTS_TOOL",
    "ROUTES",
    "HttpCall",
    "ToolRegistry",
    "ToolRoute",
    "build_default_registry",
    "subscription_key",
    "validate_arguments",
    "verify_routes",
]
