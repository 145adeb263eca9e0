"""Shared fixtures for the agent tests."""
import pytest

from core.context import (
    ROLE_ASSISTANT,
    ROLE_USER,
    ImageBlock,
    Message,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from core.errors import ToolError
from core.tool_base import BaseTool, ToolResult, ToolSpec, make_schema, string_param
from llm.mock_adapter import MockLLMAdapter


class EchoTool(BaseTool):
    """Returns its `text` input as output."""

    def describe(self) -> ToolSpec:
        return ToolSpec(
            name="echo",
            description="Echo text back",
            input_schema=make_schema({"text": string_param("Text to echo")}, required=["text"]),
        )

    def execute(self, text=None, **kwargs) -> ToolResult:
        if text is None:
            raise ToolError("text is required for echo")
        return ToolResult(output=text)


class ScreenshotStubTool(BaseTool):
    """Returns a fake screenshot on every call."""

    def __init__(self):
        self.calls = 0

    def describe(self) -> ToolSpec:
        return ToolSpec(name="shot", description="Fake screenshot")

    def execute(self, **kwargs) -> ToolResult:
        self.calls += 1
        return ToolResult(base64_image=f"img{self.calls}", media_type="image/png")


class BoomTool(BaseTool):
    """Raises an unexpected error."""

    def describe(self) -> ToolSpec:
        return ToolSpec(name="boom", description="Always fails")

    def execute(self, **kwargs) -> ToolResult:
        raise RuntimeError("kaboom")


class RecordingObserver:
    """Records every loop event in order."""

    def __init__(self):
        self.events = []

    def on_api_response(self, response):
        self.events.append(("api_response", response))

    def on_output(self, block):
        self.events.append(("output", block))

    def on_tool_output(self, result, tool_use_id):
        self.events.append(("tool_output", result, tool_use_id))

    def kinds(self):
        return [event[0] for event in self.events]


def image_conversation(image_counts):
    """
    Build a conversation whose successive tool results carry the given
    numbers of images.
    """
    messages = [Message.user("start")]
    n = 0
    for i, count in enumerate(image_counts):
        tool_id = f"toolu_{i}"
        messages.append(Message(role=ROLE_ASSISTANT, content=[ToolUseBlock(id=tool_id, name="shot")]))
        content = [TextBlock(text=f"result {i}")]
        for _ in range(count):
            n += 1
            content.append(ImageBlock(data=f"img{n}"))
        messages.append(Message(role=ROLE_USER, content=[ToolResultBlock(tool_use_id=tool_id, content=content)]))
    return messages


def remaining_images(messages):
    """Data of every image still in tool results, oldest first."""
    out = []
    for message in messages:
        if isinstance(message.content, str):
            continue
        for block in message.content:
            if isinstance(block, ToolResultBlock):
                out.extend(image.data for image in block.images())
    return out


@pytest.fixture
def echo_tool():
    return EchoTool()


@pytest.fixture
def shot_tool():
    return ScreenshotStubTool()


@pytest.fixture
def boom_tool():
    return BoomTool()


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def scripted_llm():
    """Factory for a MockLLMAdapter replaying the given responses."""
    def _make(*responses):
        return MockLLMAdapter(responses=list(responses))
    return _make
