"""
Tool base classes for the computer-use agent.

Provides:
- ToolSpec: the descriptor a tool advertises to the model
- Schema helpers for building JSON Schema inputs
- ToolResult and its CLIResult / ToolFailure variants
- BaseTool: the interface every tool implements
- maybe_truncate: clipping of long tool output

A ToolSpec can describe two kinds of tools:
- Anthropic-defined tools (computer, text editor, bash) that are advertised
  by `type` and `name` only, the schema is known to the model
- Custom tools advertised with a description and a JSON Schema

Both keep an input_schema so adapters for providers without built-in tool
types (Groq) can still advertise them as plain functions.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

from core.constants import MAX_RESPONSE_LENGTH, TRUNCATED_MESSAGE


# =============================================================================
# TOOL SPEC
# =============================================================================

@dataclass
class ToolSpec:
    """
    Specification for a tool using JSON Schema format.

    Attributes:
        name: The tool's registered name (unique within a registry)
        description: Human-readable description of what the tool does
        input_schema: JSON Schema defining the input parameters
        api_type: Anthropic tool type (e.g. "computer_20241022"), None for custom tools
        extra_params: Extra fields sent alongside an Anthropic-defined tool
                      (e.g. display size for the computer tool)
    """
    name: str
    description: str = ""
    input_schema: Dict[str, Any] = field(default_factory=lambda: {
        "type": "object",
        "properties": {},
        "required": []
    })
    api_type: Optional[str] = None
    extra_params: Dict[str, Any] = field(default_factory=dict)

    def to_params(self) -> Dict[str, Any]:
        """Render the spec in Anthropic Messages API form."""
        if self.api_type:
            params = {"type": self.api_type, "name": self.name}
            params.update({k: v for k, v in self.extra_params.items() if v is not None})
            return params

        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }

    def to_function(self) -> Dict[str, Any]:
        """Render the spec as an OpenAI-style function definition."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema,
            },
        }


# =============================================================================
# SCHEMA HELPERS - Make defining common parameter types easy
# =============================================================================

def string_param(description: str, enum: Optional[List[str]] = None) -> Dict[str, Any]:
    """Create a string parameter schema."""
    schema = {"type": "string", "description": description}
    if enum:
        schema["enum"] = enum
    return schema


def int_param(description: str, minimum: Optional[int] = None, maximum: Optional[int] = None) -> Dict[str, Any]:
    """Create an integer parameter schema."""
    schema = {"type": "integer", "description": description}
    if minimum is not None:
        schema["minimum"] = minimum
    if maximum is not None:
        schema["maximum"] = maximum
    return schema


def bool_param(description: str, default: Optional[bool] = None) -> Dict[str, Any]:
    """Create a boolean parameter schema."""
    schema = {"type": "boolean", "description": description}
    if default is not None:
        schema["default"] = default
    return schema


def array_param(description: str, item_type: str = "string") -> Dict[str, Any]:
    """Create an array parameter schema."""
    return {
        "type": "array",
        "description": description,
        "items": {"type": item_type}
    }


def make_schema(
    properties: Dict[str, Dict[str, Any]],
    required: Optional[List[str]] = None
) -> Dict[str, Any]:
    """
    Create a complete input schema.

    Args:
        properties: Dict mapping parameter names to their schemas
        required: List of required parameter names

    Returns:
        Complete JSON Schema object
    """
    return {
        "type": "object",
        "properties": properties,
        "required": required or []
    }


# =============================================================================
# TOOL RESULTS
# =============================================================================

@dataclass(frozen=True)
class ToolResult:
    """
    Outcome of one tool execution.

    A result with `error` set is a failure, whatever else it carries.
    `system` is a note for the model about the tool itself (e.g. a restart).
    """
    output: Optional[str] = None
    error: Optional[str] = None
    base64_image: Optional[str] = None
    media_type: Optional[str] = None
    system: Optional[str] = None

    def __bool__(self) -> bool:
        return any(getattr(self, f.name) for f in fields(self))

    @property
    def is_error(self) -> bool:
        return bool(self.error)


class CLIResult(ToolResult):
    """A ToolResult produced from command line output."""


class ToolFailure(ToolResult):
    """A ToolResult that represents a failure."""


# =============================================================================
# BASE TOOL
# =============================================================================

class BaseTool(ABC):
    """
    Interface every tool implements.

    The registry only ever calls `describe()` and `execute()`; how a tool
    does its work is opaque to the rest of the agent.
    """

    @abstractmethod
    def describe(self) -> ToolSpec:
        """Return the spec advertised to the model."""
        ...

    @abstractmethod
    def execute(self, **kwargs) -> ToolResult:
        """
        Run the tool.

        Raises:
            ToolError: if the input is missing or invalid
        """
        ...

    @property
    def name(self) -> str:
        return self.describe().name

    def to_params(self) -> Dict[str, Any]:
        return self.describe().to_params()


def maybe_truncate(content: str, truncate_after: Optional[int] = None) -> str:
    """Clip long tool output and tell the model it was clipped."""
    limit = MAX_RESPONSE_LENGTH if truncate_after is None else truncate_after
    if limit and len(content) > limit:
        return content[:limit] + TRUNCATED_MESSAGE
    return content
