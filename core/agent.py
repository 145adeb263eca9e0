"""
ComputerUseClient - High-level facade for the computer-use agent.

Provides a simple interface to the agent's functionality.
Wires up the Brain, Body (ToolRegistry), and SamplingLoop.
"""

import os
from dataclasses import dataclass
from typing import List, Optional, Sequence

from dotenv import load_dotenv
from loguru import logger

from core.brain import Brain
from core.constants import (
    MAX_OUTPUT_TOKENS,
    PROVIDER_ANTHROPIC,
    PROVIDER_GROQ,
    PROVIDER_MOCK,
    PROVIDER_TO_DEFAULT_MODEL_NAME,
)
from core.context import Message
from core.errors import AgentConfigError
from core.loop import LoopConfig, SamplingLoop
from core.protocols import LLMClient, LoopObserver
from core.registry import ToolRegistry
from core.tool_base import BaseTool


# Load environment variables
load_dotenv()

SUPPORTED_PROVIDERS = (PROVIDER_ANTHROPIC, PROVIDER_GROQ, PROVIDER_MOCK)


def _env_int(name: str) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise AgentConfigError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class ClientOptions:
    """
    Settings for ComputerUseClient.

    Attributes:
        provider: "anthropic", "groq" or "mock"
        api_key: Key for the provider (not needed for mock)
        base_url: Optional Anthropic API base URL
        model: Model name (defaults per provider)
        system_prompt_suffix: Extra text appended to the system prompt
        max_tokens: Response size limit per LLM call
        only_n_most_recent_images: Keep only this many screenshots in context
        screenshots_dir: Archive every screenshot here when set
        display_num: X display number advertised to the model
        max_turns: Optional cap on LLM calls per request
    """
    provider: str = PROVIDER_ANTHROPIC
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    model: Optional[str] = None
    system_prompt_suffix: str = ""
    max_tokens: int = MAX_OUTPUT_TOKENS
    only_n_most_recent_images: Optional[int] = None
    screenshots_dir: Optional[str] = None
    display_num: Optional[int] = None
    max_turns: Optional[int] = None

    @property
    def model_name(self) -> str:
        return self.model or PROVIDER_TO_DEFAULT_MODEL_NAME[self.provider]

    @classmethod
    def from_env(cls, provider: Optional[str] = None) -> "ClientOptions":
        """
        Build options from environment variables (and .env).

        Args:
            provider: Overrides AGENT_PROVIDER. Without either, the provider
                falls back to whichever API key is present, then to mock mode.
        """
        provider = (provider or os.environ.get("AGENT_PROVIDER", "")).strip().lower()
        if not provider:
            if os.environ.get("ANTHROPIC_API_KEY"):
                provider = PROVIDER_ANTHROPIC
            elif os.environ.get("GROQ_API_KEY"):
                provider = PROVIDER_GROQ
            else:
                provider = PROVIDER_MOCK

        api_key = None
        if provider == PROVIDER_ANTHROPIC:
            api_key = os.environ.get("ANTHROPIC_API_KEY")
        elif provider == PROVIDER_GROQ:
            api_key = os.environ.get("GROQ_API_KEY")

        return cls(
            provider=provider,
            api_key=api_key,
            base_url=os.environ.get("ANTHROPIC_BASE_URL") or None,
            model=os.environ.get("AGENT_MODEL") or None,
            max_tokens=_env_int("AGENT_MAX_TOKENS") or MAX_OUTPUT_TOKENS,
            only_n_most_recent_images=_env_int("AGENT_ONLY_N_MOST_RECENT_IMAGES"),
            screenshots_dir=os.environ.get("AGENT_SCREENSHOTS_DIR") or None,
            display_num=_env_int("DISPLAY_NUM"),
        )


def create_llm_client(options: ClientOptions) -> LLMClient:
    """
    Build the adapter for the configured provider.

    Raises:
        AgentConfigError: for unknown providers or a missing API key
    """
    if options.provider not in SUPPORTED_PROVIDERS:
        raise AgentConfigError(
            f"Unsupported provider: {options.provider}. Choose one of: {', '.join(SUPPORTED_PROVIDERS)}"
        )

    if options.provider == PROVIDER_MOCK:
        from llm.mock_adapter import MockLLMAdapter
        return MockLLMAdapter()

    if not options.api_key:
        raise AgentConfigError(f"API key is required for provider {options.provider}")

    if options.provider == PROVIDER_ANTHROPIC:
        from llm.anthropic_adapter import AnthropicAdapter
        return AnthropicAdapter(api_key=options.api_key, base_url=options.base_url)

    from llm.groq_adapter import GroqAdapter
    return GroqAdapter(api_key=options.api_key)


def default_tools(options: ClientOptions) -> List[BaseTool]:
    """The computer, bash and editor tools."""
    from tools.bash_tools import BashTool
    from tools.computer_tools import ComputerTool
    from tools.editor_tools import EditTool
    from tools.screenshots import ScreenshotStore

    store = ScreenshotStore(options.screenshots_dir) if options.screenshots_dir else None
    return [
        ComputerTool(display_num=options.display_num, screenshot_store=store),
        BashTool(),
        EditTool(),
    ]


class ComputerUseClient:
    """
    High-level facade for the computer-use agent.

    Wires up all components and provides a simple send_message() interface.

    Args:
        options: Client settings (defaults to ClientOptions.from_env())
        tools: Tools to offer the model (defaults to computer, bash and editor)
        llm_client: Pre-built LLM client (skips provider selection)
        observer: Listener for responses, blocks and tool results
    """

    def __init__(
        self,
        options: Optional[ClientOptions] = None,
        tools: Optional[Sequence[BaseTool]] = None,
        llm_client: Optional[LLMClient] = None,
        observer: Optional[LoopObserver] = None,
    ):
        self.options = options or ClientOptions.from_env()
        if self.options.provider not in PROVIDER_TO_DEFAULT_MODEL_NAME:
            raise AgentConfigError(f"Unknown provider: {self.options.provider}")

        # Create LLM client
        llm_client = llm_client or create_llm_client(self.options)

        # Wire up components
        self.body = ToolRegistry(tools if tools is not None else default_tools(self.options))
        self.brain = Brain(llm_client)
        self.loop = SamplingLoop(self.brain, self.body)
        self.observer = observer

        logger.info(
            "ComputerUseClient initialized: provider={} model={} max_tokens={} tools={}",
            self.options.provider,
            self.options.model_name,
            self.options.max_tokens,
            self.body.list_tools(),
        )

    def loop_config(self) -> LoopConfig:
        return LoopConfig(
            model=self.options.model_name,
            system_prompt_suffix=self.options.system_prompt_suffix,
            max_tokens=self.options.max_tokens,
            only_n_most_recent_images=self.options.only_n_most_recent_images,
            max_turns=self.options.max_turns,
        )

    def send_message(self, message: str, observer: Optional[LoopObserver] = None) -> List[Message]:
        """
        Run one user request to completion.

        Each call starts a fresh conversation.

        Args:
            message: The user's request
            observer: Overrides the client's observer for this call

        Returns:
            The full conversation, ending with the model's final answer

        Raises:
            AgentConfigError: if the message is empty
        """
        if not message or not message.strip():
            raise AgentConfigError("Message cannot be empty")

        messages = [Message.user(message)]

        try:
            return self.loop.run(messages, self.loop_config(), observer or self.observer)
        except Exception:
            logger.exception("Error in send_message")
            raise
