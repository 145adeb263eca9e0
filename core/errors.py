"""
Exception types for the computer-use agent.

Only configuration problems and tool validation failures get their own
classes. Transport errors raised by the LLM SDKs are never wrapped.
"""


class ToolError(Exception):
    """
    Raised by a tool when its input is missing or invalid.

    The registry turns it into a failed ToolResult carrying the message,
    so the model sees exactly what went wrong.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AgentConfigError(ValueError):
    """Invalid client configuration (missing API key, unknown provider, empty message)."""


class MaxTurnsExceeded(RuntimeError):
    """Raised when LoopConfig.max_turns is set and the model keeps requesting tools."""
