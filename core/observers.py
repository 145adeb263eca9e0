"""
Ready-made LoopObserver implementations.

- NullObserver: ignores everything (the loop's default)
- CallbackObserver: forwards each event to an optional plain callable
- LoggingObserver: logs events through loguru, never image payloads
"""

from typing import Any, Callable, Optional

from loguru import logger

from core.context import AssistantResponse, ContentBlock, TextBlock, ToolUseBlock
from core.tool_base import ToolResult


class NullObserver:
    """Observer that does nothing."""

    def on_api_response(self, response: AssistantResponse) -> None:
        pass

    def on_output(self, block: ContentBlock) -> None:
        pass

    def on_tool_output(self, result: ToolResult, tool_use_id: str) -> None:
        pass


class CallbackObserver:
    """
    Adapts three optional callables to the LoopObserver protocol.

    Args:
        on_output: Called with every assistant content block
        on_tool_output: Called with (result, tool_use_id) after each tool call
        on_api_response: Called with every AssistantResponse
    """

    def __init__(
        self,
        on_output: Optional[Callable[[ContentBlock], Any]] = None,
        on_tool_output: Optional[Callable[[ToolResult, str], Any]] = None,
        on_api_response: Optional[Callable[[AssistantResponse], Any]] = None,
    ):
        self._on_output = on_output
        self._on_tool_output = on_tool_output
        self._on_api_response = on_api_response

    def on_api_response(self, response: AssistantResponse) -> None:
        if self._on_api_response:
            self._on_api_response(response)

    def on_output(self, block: ContentBlock) -> None:
        if self._on_output:
            self._on_output(block)

    def on_tool_output(self, result: ToolResult, tool_use_id: str) -> None:
        if self._on_tool_output:
            self._on_tool_output(result, tool_use_id)


class LoggingObserver:
    """Logs assistant text, tool calls and tool results."""

    def on_api_response(self, response: AssistantResponse) -> None:
        logger.debug(
            "[API Response] id={} stop_reason={} usage={}",
            response.id, response.stop_reason, response.usage,
        )

    def on_output(self, block: ContentBlock) -> None:
        if isinstance(block, TextBlock):
            logger.info("[Assistant] {}", block.text)
        elif isinstance(block, ToolUseBlock):
            logger.info("[Tool Use] {} {}", block.name, block.input)

    def on_tool_output(self, result: ToolResult, tool_use_id: str) -> None:
        logger.info(
            "[Tool Result] id={} output={!r} error={!r} has_image={}",
            tool_use_id,
            (result.output or "")[:200],
            result.error,
            bool(result.base64_image),
        )
