"""
SamplingLoop - the orchestrator of the computer-use agent.

Drives the conversation turn by turn:
    trim -> ask the Brain -> record the answer -> run requested tools -> repeat

The loop stops the first time the model answers without any tool_use
block. There is no iteration cap by default; wrap `run` in a caller-level
timeout if one is needed, or set LoopConfig.max_turns.
"""

from dataclasses import dataclass
from typing import List, Optional

from loguru import logger

from core.assembler import make_api_tool_result
from core.brain import Brain
from core.constants import IMAGE_REMOVAL_BATCH, MAX_OUTPUT_TOKENS
from core.context import ROLE_ASSISTANT, ROLE_USER, Message, ToolResultBlock, ToolUseBlock
from core.errors import MaxTurnsExceeded
from core.observers import NullObserver
from core.protocols import LoopObserver, ToolExecutor
from core.trimmer import filter_n_most_recent_images


@dataclass
class LoopConfig:
    """
    Per-run settings of the sampling loop.

    Attributes:
        model: Model identifier sent to the provider
        system_prompt_suffix: Extra text appended to the system prompt
        max_tokens: Response size limit per LLM call
        only_n_most_recent_images: Keep only this many tool result images
                                   (None or 0 disables trimming)
        image_removal_batch: Images are removed in multiples of this
        max_turns: Optional cap on LLM calls per run (None = unbounded)
    """
    model: str
    system_prompt_suffix: str = ""
    max_tokens: int = MAX_OUTPUT_TOKENS
    only_n_most_recent_images: Optional[int] = None
    image_removal_batch: int = IMAGE_REMOVAL_BATCH
    max_turns: Optional[int] = None


class SamplingLoop:
    """
    Multi-turn executor - maps Conversation -> (LLM -> Tools)* -> Conversation.

    Tool calls within one response run strictly one after another, in the
    order the model listed them, because they share the screen, the
    pointer and the filesystem.
    """

    def __init__(self, brain: Brain, body: ToolExecutor):
        """
        Initialize the loop.

        Args:
            brain: Decision maker wrapping the LLM client
            body: Tool executor (usually a ToolRegistry)
        """
        self.brain = brain
        self.body = body

    def run(
        self,
        messages: List[Message],
        config: LoopConfig,
        observer: Optional[LoopObserver] = None,
    ) -> List[Message]:
        """
        Run the conversation until the model stops calling tools.

        Args:
            messages: Conversation seeded with the user's request; appended to in place
            config: Loop settings
            observer: Optional listener for responses, blocks and tool results

        Returns:
            The same list, holding the complete conversation

        Raises:
            ValueError: if the conversation is empty
            MaxTurnsExceeded: if config.max_turns is set and reached
            Any error raised by the LLM client, unchanged
        """
        if not messages:
            raise ValueError("Conversation must start with at least one message")

        observer = observer or NullObserver()
        system = self.brain.system_prompt(config.system_prompt_suffix)
        turns = 0

        while True:
            if config.max_turns is not None and turns >= config.max_turns:
                raise MaxTurnsExceeded(f"Model still requesting tools after {turns} turns")

            # 1. TRIM - re-evaluated on every turn
            if config.only_n_most_recent_images:
                filter_n_most_recent_images(
                    messages,
                    config.only_n_most_recent_images,
                    config.image_removal_batch,
                )

            # 2. DECIDE (Brain)
            response = self.brain.decide(
                messages,
                self.body.describe_all(),
                model=config.model,
                system=system,
                max_tokens=config.max_tokens,
            )
            turns += 1
            observer.on_api_response(response)

            # 3. RECORD - the assistant turn is stored exactly as received
            messages.append(Message(role=ROLE_ASSISTANT, content=list(response.content)))

            # 4. ACT (Body)
            tool_results: List[ToolResultBlock] = []
            for block in response.content:
                observer.on_output(block)

                if isinstance(block, ToolUseBlock):
                    result = self.body.run(block.name, block.input)
                    tool_results.append(make_api_tool_result(result, block.id))
                    observer.on_tool_output(result, block.id)

            # 5. STOP when no tool was requested
            if not tool_results:
                logger.info("[Loop] Finished after {} turn(s), {} message(s)", turns, len(messages))
                return messages

            failed = sum(1 for r in tool_results if r.is_error)
            logger.info("[Loop] Turn {}: {} tool result(s), {} failed", turns, len(tool_results), failed)
            messages.append(Message(role=ROLE_USER, content=list(tool_results)))
