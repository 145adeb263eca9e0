"""
ToolRegistry - The Body for the computer-use agent.

Maps tool names to tool instances and executes them. Every call returns a
ToolResult: unknown names and tool exceptions are folded into failures so
nothing raised by a tool ever reaches the sampling loop.
"""

import time
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from core.errors import ToolError
from core.tool_base import BaseTool, ToolFailure, ToolResult, ToolSpec


class ToolRegistry:
    """
    Read-only tool executor - the 'Body'.

    Built once from a fixed list. A later tool with the same name replaces
    an earlier one. Safe to share between loops.
    """

    def __init__(self, tools: Iterable[BaseTool]):
        """
        Initialize the tool registry.

        Args:
            tools: Tool instances to register
        """
        self._registry: Dict[str, BaseTool] = {}
        for tool in tools:
            self._registry[tool.describe().name] = tool

    def list_tools(self) -> List[str]:
        """List all available tool names."""
        return list(self._registry.keys())

    def describe_all(self) -> List[ToolSpec]:
        """Specs of every registered tool, one each."""
        return [tool.describe() for tool in self._registry.values()]

    def run(self, name: str, tool_input: Optional[Dict[str, Any]] = None) -> ToolResult:
        """
        Execute a tool by name.

        Args:
            name: The tool name requested by the model
            tool_input: The input dict from the tool_use block

        Returns:
            The tool's result, or a ToolFailure describing what went wrong
        """
        tool = self._registry.get(name)
        if tool is None:
            logger.warning("Model requested unknown tool {!r}", name)
            return ToolFailure(error=f"{name} is invalid")

        start = time.time()
        try:
            result = tool.execute(**(tool_input or {}))
        except ToolError as e:
            logger.warning("Tool {} rejected input: {}", name, e.message)
            return ToolFailure(error=e.message)
        except Exception as e:
            logger.exception("Tool {} failed unexpectedly", name)
            return ToolFailure(error=f"Unknown error: {e}")

        latency = (time.time() - start) * 1000
        logger.debug("Tool {} finished in {:.0f}ms", name, latency)
        return result

    dispatch = run
