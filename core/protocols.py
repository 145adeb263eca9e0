"""
Protocol definitions for the computer-use agent.

These protocols define the contracts between components, enabling:
- Dependency injection
- Easy mocking for tests
- Swappable implementations (e.g., different LLM providers)

Following Dependency Inversion Principle (DIP): depend on abstractions, not concretions.
"""

from typing import Any, Dict, List, Optional, Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from core.context import AssistantResponse, ContentBlock, Message
    from core.tool_base import ToolResult, ToolSpec


class LLMClient(Protocol):
    """
    Abstraction for any LLM provider (Anthropic, Groq, Mock).

    One synchronous request/response call per turn. Transport errors are
    raised as-is; the sampling loop does not catch them.
    """

    def create_message(
        self,
        *,
        model: str,
        system: str,
        messages: List["Message"],
        tools: List["ToolSpec"],
        max_tokens: int,
    ) -> "AssistantResponse":
        """
        Send the conversation to the model.

        Args:
            model: Model identifier
            system: Full system prompt
            messages: The conversation so far
            tools: Specs of the tools the model may call
            max_tokens: Response size limit

        Returns:
            The model's response with its content blocks in order
        """
        ...


class ToolExecutor(Protocol):
    """
    The Body interface - executes tools by name.
    """

    def describe_all(self) -> List["ToolSpec"]:
        """Specs of every available tool."""
        ...

    def run(self, name: str, tool_input: Optional[Dict[str, Any]] = None) -> "ToolResult":
        """
        Execute a tool by name.

        Never raises: failures come back as a ToolResult with `error` set.
        """
        ...


class LoopObserver(Protocol):
    """
    Listener for in-flight information from the sampling loop.

    Every hook is called synchronously, in the order events happen. A slow
    observer slows the loop down.
    """

    def on_api_response(self, response: "AssistantResponse") -> None:
        """Called once per LLM call with the full response."""
        ...

    def on_output(self, block: "ContentBlock") -> None:
        """Called for every content block of every assistant response, in order."""
        ...

    def on_tool_output(self, result: "ToolResult", tool_use_id: str) -> None:
        """Called right after each tool execution."""
        ...
