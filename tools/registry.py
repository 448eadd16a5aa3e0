"""
Name → tool lookup, populated by scanning the tools/ package.

Any concrete TranscriptionTool subclass defined in a module under tools/
is instantiated once and registered under its `name`. The process-wide
instance from get_registry() backs the /tools HTTP routes.
"""

import importlib
import inspect
import logging
import pkgutil
from typing import Any

from tools.base import TranscriptionTool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Tools keyed by name.

    Usage:
        registry = ToolRegistry()
        registry.discover()
        result = registry.get("transcribe_audio")(file_path="/audio/take.wav")
    """

    def __init__(self) -> None:
        self._tools: dict[str, TranscriptionTool] = {}

    def register(self, tool: TranscriptionTool) -> None:
        """Add a tool. Raises ValueError if its name is taken."""
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool

    def get(self, name: str) -> TranscriptionTool | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return sorted(self._tools)

    def list_tools(self) -> list[dict[str, Any]]:
        """Schemas of all registered tools, ordered by name."""
        return [self._tools[name].to_dict() for name in self.names()]

    def discover(self, package_name: str = "tools") -> int:
        """Register every concrete tool class found under `package_name`.

        Walks subpackages recursively. A class counts only in the module
        that defines it, so re-exports are not registered twice. Modules
        that fail to import are logged and skipped.

        Returns:
            Number of tools registered by this call.
        """
        try:
            package = importlib.import_module(package_name)
        except ImportError:
            logger.warning("Tool package %s not importable", package_name)
            return 0
        if not hasattr(package, "__path__"):
            return 0

        count = 0
        for _finder, module_name, _is_pkg in pkgutil.walk_packages(
            list(package.__path__), prefix=f"{package_name}."
        ):
            try:
                module = importlib.import_module(module_name)
            except ImportError as exc:
                logger.warning("Skipping tool module %s: %s", module_name, exc)
                continue

            for _attr, cls in inspect.getmembers(module, inspect.isclass):
                if cls.__module__ != module.__name__ or inspect.isabstract(cls):
                    continue
                if issubclass(cls, TranscriptionTool):
                    self.register(cls())
                    count += 1

        logger.debug("Discovered %d tool(s) in %s", count, package_name)
        return count

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools


_registry: ToolRegistry | None = None


def get_registry() -> ToolRegistry:
    """Process-wide registry, discovered on first use."""
    global _registry
    if _registry is None:
        _registry = ToolRegistry()
        _registry.discover()
    return _registry
