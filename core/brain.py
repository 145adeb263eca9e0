"""
Brain - The Decision Maker for the computer-use agent.

Takes the conversation + tool specs, asks the LLM what to do next.
Wraps an LLMClient so the sampling loop does not care which provider
answers.
"""

import time
from typing import List

from loguru import logger

from core.context import AssistantResponse, Message
from core.prompt_builder import build_system_prompt
from core.protocols import LLMClient
from core.tool_base import ToolSpec


class Brain:
    """
    Decision Maker - uses the LLM to choose the next tool calls.

    Stateless apart from the client it wraps.
    """

    def __init__(self, llm_client: LLMClient):
        """
        Initialize the Brain.

        Args:
            llm_client: LLM client implementing the LLMClient protocol
        """
        self.llm_client = llm_client

    def system_prompt(self, suffix: str = "") -> str:
        """Build the system prompt for one run."""
        return build_system_prompt(suffix)

    def decide(
        self,
        messages: List[Message],
        tools: List[ToolSpec],
        *,
        model: str,
        system: str,
        max_tokens: int,
    ) -> AssistantResponse:
        """
        Make one LLM call over the whole conversation.

        Errors from the provider are not caught here.

        Args:
            messages: Conversation so far
            tools: Specs of the available tools
            model: Model identifier
            system: System prompt
            max_tokens: Response size limit

        Returns:
            The model's response
        """
        start = time.time()
        response = self.llm_client.create_message(
            model=model,
            system=system,
            messages=messages,
            tools=tools,
            max_tokens=max_tokens,
        )
        latency = (time.time() - start) * 1000

        logger.info(
            "[Brain] {} responded in {:.0f}ms: {} block(s), {} tool call(s)",
            model, latency, len(response.content), len(response.tool_uses),
        )
        return response
