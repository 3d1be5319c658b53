import importlib
import pkgutil

from assistant_relay.tools import definitions
from assistant_relay.tools.tool_models import ToolSpec


class ToolRegistry:
    """Central tool registry that dynamically discovers tools in the 'definitions' package."""

    _cached_tools: dict[str, ToolSpec] | None = None

    @classmethod
    def _discover_tools(cls) -> dict[str, ToolSpec]:
        if cls._cached_tools is not None:
            return cls._cached_tools

        tools: dict[str, ToolSpec] = {}
        for _, module_name, is_pkg in pkgutil.walk_packages(
            definitions.__path__, prefix="assistant_relay.tools.definitions."
        ):
            if is_pkg:
                continue

            module = importlib.import_module(module_name)

            # Look for a 'tool' attribute that is a ToolSpec.
            tool_spec = getattr(module, "tool", None)
            if isinstance(tool_spec, ToolSpec):
                if tool_spec.name in tools:
                    raise ValueError(
                        f"Duplicate tool name detected: {tool_spec.name} "
                        f"(module {module_name})"
                    )
                tools[tool_spec.name] = tool_spec

        cls._cached_tools = tools
        return tools

    @classmethod
    def get_tool(cls, name: str) -> ToolSpec | None:
        return cls._discover_tools().get(name)

    @classmethod
    def all_tools(cls) -> dict[str, ToolSpec]:
        return dict(cls._discover_tools())

    @classmethod
    def list_all_tools(cls) -> list[str]:
        return list(cls._discover_tools().keys())

    @classmethod
    def openai_definitions(cls) -> list[dict]:
        return [spec.openai_definition() for spec in cls._discover_tools().values()]
