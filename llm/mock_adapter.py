"""
Mock LLM adapter for running without an API key.

Two modes:
- Scripted: replays a fixed list of responses, one per call (tests, demos)
- Pattern: simulates the model with keyword matching on the last request
"""

import itertools
import re
from typing import Iterable, List, Optional, Sequence, Union

from core.context import (
    ROLE_USER,
    AssistantResponse,
    ContentBlock,
    Message,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from core.tool_base import ToolSpec

ScriptedResponse = Union[AssistantResponse, Sequence[ContentBlock]]


class MockLLMAdapter:
    """
    Mock adapter for testing without an actual LLM.

    Implements the LLMClient protocol.

    Args:
        responses: Optional scripted responses. When given, each call returns
                   the next one and raises RuntimeError once they run out.
    """

    def __init__(self, responses: Optional[Iterable[ScriptedResponse]] = None):
        self._scripted = list(responses) if responses is not None else None
        self._ids = itertools.count(1)
        self.calls: List[dict] = []

    def create_message(
        self,
        *,
        model: str,
        system: str,
        messages: List[Message],
        tools: List[ToolSpec],
        max_tokens: int,
    ) -> AssistantResponse:
        """
        Return the next scripted response, or a pattern-based one.
        """
        self.calls.append({
            "model": model,
            "system": system,
            "message_count": len(messages),
            "tools": [spec.name for spec in tools],
            "max_tokens": max_tokens,
        })

        if self._scripted is not None:
            if not self._scripted:
                raise RuntimeError("MockLLMAdapter ran out of scripted responses")
            response = self._scripted.pop(0)
            if isinstance(response, AssistantResponse):
                return response
            return AssistantResponse(content=list(response), model=model, stop_reason=self._stop_reason(response))

        content = self._mock_decide(messages, {spec.name for spec in tools})
        return AssistantResponse(content=content, model=model, stop_reason=self._stop_reason(content))

    @staticmethod
    def _stop_reason(content: Sequence[ContentBlock]) -> str:
        return "tool_use" if any(isinstance(b, ToolUseBlock) for b in content) else "end_turn"

    def _tool_use(self, name: str, **tool_input) -> ToolUseBlock:
        return ToolUseBlock(id=f"toolu_mock_{next(self._ids):04d}", name=name, input=tool_input)

    def _mock_decide(self, messages: List[Message], available: set) -> List[ContentBlock]:
        """
        Mock decision logic for testing without API key.

        Pattern-based matching to simulate tool selection. Once the last
        message holds tool results, the mock reports them and stops.
        """
        last = messages[-1]

        # Tool results came back: summarise and end the turn
        if last.role == ROLE_USER and not isinstance(last.content, str):
            results = [b for b in last.content if isinstance(b, ToolResultBlock)]
            if results:
                lines = []
                for result in results:
                    texts = [c.text for c in result.content if isinstance(c, TextBlock)]
                    images = len(result.images())
                    status = "failed" if result.is_error else "succeeded"
                    summary = " ".join(texts)[:200] or f"{images} image(s)"
                    lines.append(f"Tool call {result.tool_use_id} {status}: {summary}")
                return [TextBlock(text="Mock mode: " + "\n".join(lines))]

        user_input = " ".join(b.text for b in last.blocks if isinstance(b, TextBlock))
        user_lower = user_input.lower()
        quoted = re.search(r"['\"]([^'\"]+)['\"]", user_input)

        # Screenshot / screen inspection
        if "computer" in available and ("screenshot" in user_lower or "screen" in user_lower):
            return [
                TextBlock(text="Let me take a screenshot."),
                self._tool_use("computer", action="screenshot"),
            ]

        # Mouse position
        if "computer" in available and ("cursor" in user_lower or "mouse position" in user_lower):
            return [self._tool_use("computer", action="cursor_position")]

        # View a file or directory
        path_match = re.search(r"(/[\w./-]+)", user_input)
        if "str_replace_editor" in available and path_match and ("view" in user_lower or "show" in user_lower):
            return [self._tool_use("str_replace_editor", command="view", path=path_match.group(1))]

        # Shell commands
        if "bash" in available and quoted and ("run" in user_lower or "bash" in user_lower or "command" in user_lower):
            return [self._tool_use("bash", command=quoted.group(1))]

        if "bash" in available and ("directory" in user_lower or "pwd" in user_lower):
            return [self._tool_use("bash", command="pwd")]

        return [TextBlock(text="Mock mode: Unknown command")]
