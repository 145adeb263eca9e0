"""
Groq LLM adapter.

Wraps the Groq client to implement the LLMClient protocol. Groq speaks the
OpenAI chat format, so the block-based conversation is translated:
- tool_use blocks become assistant `tool_calls`
- tool_result blocks become `role="tool"` messages
- images in tool results become a short text note (tool messages are text only)
"""

import json
from typing import Any, Dict, List, Optional

from groq import Groq

from core.context import (
    ROLE_ASSISTANT,
    AssistantResponse,
    ContentBlock,
    ImageBlock,
    Message,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from core.tool_base import ToolSpec


def _tool_result_text(block: ToolResultBlock) -> str:
    """Flatten a tool result into the text of a chat `tool` message."""
    parts = []
    for item in block.content:
        if isinstance(item, TextBlock):
            parts.append(item.text)
        elif isinstance(item, ImageBlock):
            parts.append(f"[{item.media_type} screenshot captured]")
    text = "\n".join(parts) or "(no output)"
    if block.is_error:
        return f"Error: {text}"
    return text


def to_chat_messages(system: str, messages: List[Message]) -> List[Dict[str, Any]]:
    """
    Translate the conversation into OpenAI-style chat messages.

    Args:
        system: System prompt
        messages: Block-based conversation

    Returns:
        List of chat message dicts
    """
    chat: List[Dict[str, Any]] = [{"role": "system", "content": system}]

    for message in messages:
        if isinstance(message.content, str):
            chat.append({"role": message.role, "content": message.content})
            continue

        if message.role == ROLE_ASSISTANT:
            text = "".join(b.text for b in message.content if isinstance(b, TextBlock))
            tool_calls = [
                {
                    "id": b.id,
                    "type": "function",
                    "function": {"name": b.name, "arguments": json.dumps(b.input)},
                }
                for b in message.content
                if isinstance(b, ToolUseBlock)
            ]
            entry: Dict[str, Any] = {"role": "assistant", "content": text or None}
            if tool_calls:
                entry["tool_calls"] = tool_calls
            chat.append(entry)
            continue

        for block in message.content:
            if isinstance(block, ToolResultBlock):
                chat.append({
                    "role": "tool",
                    "tool_call_id": block.tool_use_id,
                    "content": _tool_result_text(block),
                })
            elif isinstance(block, TextBlock):
                chat.append({"role": "user", "content": block.text})

    return chat


def _parse_arguments(raw: Optional[str]) -> Dict[str, Any]:
    """Decode tool call arguments; malformed JSON is passed to the tool as-is."""
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return {"raw_arguments": raw}
    return parsed if isinstance(parsed, dict) else {"value": parsed}


class GroqAdapter:
    """
    Adapter for Groq LLM API.

    Implements the LLMClient protocol for use with the Brain.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        temperature: float = 0.0,
        client: Optional[Groq] = None,
    ):
        """
        Initialize the Groq adapter.

        Args:
            api_key: Groq API key
            temperature: Sampling temperature (0.0 for deterministic)
            client: Pre-built client (used in tests)
        """
        self.client = client or Groq(api_key=api_key)
        self.temperature = temperature

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
        Send the conversation to Groq with tools advertised as functions.

        Returns:
            The response translated back to core.context blocks
        """
        completion_kwargs: Dict[str, Any] = {
            "model": model,
            "messages": to_chat_messages(system, messages),
            "temperature": self.temperature,
            "max_tokens": max_tokens,
        }
        if tools:
            completion_kwargs["tools"] = [spec.to_function() for spec in tools]

        completion = self.client.chat.completions.create(**completion_kwargs)
        choice = completion.choices[0]

        content: List[ContentBlock] = []
        if choice.message.content:
            content.append(TextBlock(text=choice.message.content))
        for call in choice.message.tool_calls or []:
            content.append(ToolUseBlock(
                id=call.id,
                name=call.function.name,
                input=_parse_arguments(call.function.arguments),
            ))

        usage = {}
        if getattr(completion, "usage", None) is not None:
            usage = {
                "input_tokens": completion.usage.prompt_tokens,
                "output_tokens": completion.usage.completion_tokens,
            }

        return AssistantResponse(
            content=content,
            id=completion.id,
            model=completion.model,
            stop_reason=choice.finish_reason,
            usage=usage,
            raw=completion,
        )
