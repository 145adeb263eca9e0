"""
LLM adapters for the computer-use agent.

Provides adapters for different LLM providers that implement
the LLMClient protocol.
"""

from llm.anthropic_adapter import AnthropicAdapter
from llm.groq_adapter import GroqAdapter
from llm.mock_adapter import MockLLMAdapter

__all__ = [
    "AnthropicAdapter",
    "GroqAdapter",
    "MockLLMAdapter",
]
