"""ghmcp — GitHub tools over a Model Context Protocol stdio bridge."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from ghmcp.config import BridgeSettings as BridgeSettings
    from ghmcp.server import BridgeServer as BridgeServer

_LAZY_EXPORTS = {
    "BridgeServer": "ghmcp.server",
    "BridgeSettings": "ghmcp.config",
}


def __getattr__(name: str) -> object:
    module_path = _LAZY_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'ghmcp' has no attribute {name!r}")
