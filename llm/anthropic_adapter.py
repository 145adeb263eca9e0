"""
Anthropic LLM adapter.

Wraps the Anthropic client to implement the LLMClient protocol. Uses the
beta Messages endpoint so the Anthropic-defined computer, text editor and
bash tools are available.
"""

from typing import Any, Iterable, List, Optional

from anthropic import Anthropic

from core.constants import COMPUTER_USE_BETA_FLAG
from core.context import (
    AssistantResponse,
    ContentBlock,
    Message,
    RawBlock,
    TextBlock,
    ToolUseBlock,
)
from core.tool_base import ToolSpec


def _convert_block(block: Any) -> ContentBlock:
    """Turn an SDK content block into a core.context block."""
    if block.type == "text":
        return TextBlock(text=block.text)
    if block.type == "tool_use":
        return ToolUseBlock(id=block.id, name=block.name, input=dict(block.input or {}))
    return RawBlock(payload=block.model_dump(exclude_none=True))


class AnthropicAdapter:
    """
    Adapter for the Anthropic Messages API.

    Implements the LLMClient protocol for use with the Brain.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        betas: Iterable[str] = (COMPUTER_USE_BETA_FLAG,),
        client: Optional[Anthropic] = None,
    ):
        """
        Initialize the Anthropic adapter.

        Args:
            api_key: Anthropic API key
            base_url: Optional API base URL (defaults to ANTHROPIC_BASE_URL or the public API)
            betas: Beta flags sent with every request
            client: Pre-built client (used in tests)
        """
        self.client = client or Anthropic(api_key=api_key, base_url=base_url)
        self.betas = list(betas)

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
        Send the conversation to Claude.

        Returns:
            The response with SDK blocks converted to core.context blocks
        """
        response = self.client.beta.messages.create(
            model=model,
            system=system,
            max_tokens=max_tokens,
            messages=[message.to_param() for message in messages],
            tools=[spec.to_params() for spec in tools],
            betas=self.betas,
        )

        usage = {}
        if getattr(response, "usage", None) is not None:
            usage = {
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
            }

        return AssistantResponse(
            content=[_convert_block(block) for block in response.content],
            id=response.id,
            model=response.model,
            stop_reason=response.stop_reason,
            usage=usage,
            raw=response,
        )
