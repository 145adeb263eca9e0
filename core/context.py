"""
Conversation data model for the computer-use agent.

Contains:
- Content blocks: TextBlock, ImageBlock, ToolUseBlock, ToolResultBlock, RawBlock
- Message: one user or assistant turn
- AssistantResponse: what an LLM adapter returns for one call

The conversation itself is a plain list of Messages. It is append-only:
the only in-place change ever made is dropping ImageBlocks from old
ToolResultBlocks (see core.trimmer).
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Iterator, List, Optional, Union


ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"


# =============================================================================
# CONTENT BLOCKS
# =============================================================================

@dataclass
class TextBlock:
    """Plain text from the user, the model, or a tool."""
    text: str
    type: ClassVar[str] = "text"

    def to_param(self) -> Dict[str, Any]:
        return {"type": "text", "text": self.text}


@dataclass
class ImageBlock:
    """Base64 encoded image, only ever found inside a ToolResultBlock."""
    data: str
    media_type: str = "image/png"
    source_type: str = "base64"
    type: ClassVar[str] = "image"

    def to_param(self) -> Dict[str, Any]:
        return {
            "type": "image",
            "source": {
                "type": self.source_type,
                "media_type": self.media_type,
                "data": self.data,
            },
        }


@dataclass
class ToolUseBlock:
    """A tool invocation requested by the model."""
    id: str
    name: str
    input: Dict[str, Any] = field(default_factory=dict)
    type: ClassVar[str] = "tool_use"

    def to_param(self) -> Dict[str, Any]:
        return {"type": "tool_use", "id": self.id, "name": self.name, "input": self.input}


@dataclass
class ToolResultBlock:
    """The loop's answer to exactly one ToolUseBlock."""
    tool_use_id: str
    content: List[Union[TextBlock, ImageBlock]] = field(default_factory=list)
    is_error: bool = False
    type: ClassVar[str] = "tool_result"

    def to_param(self) -> Dict[str, Any]:
        return {
            "type": "tool_result",
            "tool_use_id": self.tool_use_id,
            "content": [item.to_param() for item in self.content],
            "is_error": self.is_error,
        }

    def images(self) -> List[ImageBlock]:
        return [item for item in self.content if isinstance(item, ImageBlock)]


@dataclass
class RawBlock:
    """
    Any block type the agent does not act on (e.g. "thinking").

    Kept verbatim so the conversation can be sent back unchanged.
    """
    payload: Dict[str, Any]

    @property
    def type(self) -> str:
        return self.payload.get("type", "unknown")

    def to_param(self) -> Dict[str, Any]:
        return dict(self.payload)


ContentBlock = Union[TextBlock, ImageBlock, ToolUseBlock, ToolResultBlock, RawBlock]


# =============================================================================
# MESSAGES
# =============================================================================

@dataclass
class Message:
    """
    Single turn in the conversation.

    `content` is either a plain string (the caller's first request) or an
    ordered list of content blocks.
    """
    role: str  # "user" | "assistant"
    content: Union[str, List[ContentBlock]]

    @classmethod
    def user(cls, text: str) -> "Message":
        return cls(role=ROLE_USER, content=text)

    @property
    def blocks(self) -> List[ContentBlock]:
        """Content as a list of blocks (string content becomes one TextBlock)."""
        if isinstance(self.content, str):
            return [TextBlock(text=self.content)]
        return self.content

    def to_param(self) -> Dict[str, Any]:
        if isinstance(self.content, str):
            return {"role": self.role, "content": self.content}
        return {"role": self.role, "content": [block.to_param() for block in self.content]}


def iter_tool_results(messages: List[Message]) -> Iterator[ToolResultBlock]:
    """Yield every ToolResultBlock in conversation order."""
    for message in messages:
        if isinstance(message.content, str):
            continue
        for block in message.content:
            if isinstance(block, ToolResultBlock):
                yield block


# =============================================================================
# LLM RESPONSE
# =============================================================================

@dataclass
class AssistantResponse:
    """
    Normalized response of one reasoning call.

    `raw` keeps the provider's own response object for observers.
    """
    content: List[ContentBlock]
    id: Optional[str] = None
    model: Optional[str] = None
    stop_reason: Optional[str] = None
    usage: Dict[str, int] = field(default_factory=dict)
    raw: Any = None

    @property
    def tool_uses(self) -> List[ToolUseBlock]:
        return [block for block in self.content if isinstance(block, ToolUseBlock)]

    @property
    def text(self) -> str:
        return "".join(block.text for block in self.content if isinstance(block, TextBlock))
