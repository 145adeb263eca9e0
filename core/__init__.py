"""
Core module for the computer-use agent.

This module contains the core abstractions and implementations
for the agent architecture: the conversation model, the tool registry,
the result assembler, the image trimmer and the sampling loop.
"""

from core.protocols import LLMClient, ToolExecutor, LoopObserver
from core.context import (
    AssistantResponse,
    ImageBlock,
    Message,
    RawBlock,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from core.constants import IMAGE_REMOVAL_BATCH, MAX_OUTPUT_TOKENS, PROVIDER_TO_DEFAULT_MODEL_NAME
from core.errors import AgentConfigError, MaxTurnsExceeded, ToolError
from core.tool_base import BaseTool, CLIResult, ToolFailure, ToolResult, ToolSpec
from core.brain import Brain
from core.registry import ToolRegistry
from core.assembler import make_api_tool_result
from core.trimmer import filter_n_most_recent_images
from core.observers import CallbackObserver, LoggingObserver, NullObserver
from core.loop import LoopConfig, SamplingLoop
from core.agent import ClientOptions, ComputerUseClient

__all__ = [
    # Protocols
    "LLMClient",
    "ToolExecutor",
    "LoopObserver",
    # Context
    "AssistantResponse",
    "ImageBlock",
    "Message",
    "RawBlock",
    "TextBlock",
    "ToolResultBlock",
    "ToolUseBlock",
    # Constants
    "IMAGE_REMOVAL_BATCH",
    "MAX_OUTPUT_TOKENS",
    "PROVIDER_TO_DEFAULT_MODEL_NAME",
    # Errors
    "AgentConfigError",
    "MaxTurnsExceeded",
    "ToolError",
    # Tools
    "BaseTool",
    "CLIResult",
    "ToolFailure",
    "ToolResult",
    "ToolSpec",
    # Core classes
    "Brain",
    "ToolRegistry",
    "make_api_tool_result",
    "filter_n_most_recent_images",
    "CallbackObserver",
    "LoggingObserver",
    "NullObserver",
    "LoopConfig",
    "SamplingLoop",
    "ClientOptions",
    "ComputerUseClient",
]
