"""Unit tests for the LLM adapters, with mocked SDK clients."""
import json
from unittest.mock import MagicMock

import pytest

from core.constants import COMPUTER_USE_BETA_FLAG
from core.context import (
    AssistantResponse,
    ImageBlock,
    Message,
    RawBlock,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from core.tool_base import ToolSpec
from llm.anthropic_adapter import AnthropicAdapter
from llm.groq_adapter import GroqAdapter, to_chat_messages
from llm.mock_adapter import MockLLMAdapter

TOOLS = [
    ToolSpec(name="bash", api_type="bash_20241022"),
    ToolSpec(name="echo", description="Echo"),
]


def conversation():
    return [
        Message.user("list files"),
        Message(role="assistant", content=[
            TextBlock(text="Running ls"),
            ToolUseBlock(id="t1", name="bash", input={"command": "ls"}),
        ]),
        Message(role="user", content=[
            ToolResultBlock(tool_use_id="t1", content=[TextBlock(text="a.txt"), ImageBlock(data="abc")]),
        ]),
    ]


class TestAnthropicAdapter:

    @pytest.fixture
    def sdk(self):
        sdk = MagicMock()
        text = MagicMock(type="text", text="Let me look")
        tool_use = MagicMock(type="tool_use", id="toolu_1", input={"action": "screenshot"})
        tool_use.name = "computer"
        thinking = MagicMock(type="thinking")
        thinking.model_dump.return_value = {"type": "thinking", "thinking": "hmm"}
        sdk.beta.messages.create.return_value = MagicMock(
            id="msg_1",
            model="claude",
            stop_reason="tool_use",
            content=[thinking, text, tool_use],
            usage=MagicMock(input_tokens=10, output_tokens=5),
        )
        return sdk

    def test_request(self, sdk):
        adapter = AnthropicAdapter(client=sdk)
        adapter.create_message(model="claude", system="sys", messages=conversation(), tools=TOOLS, max_tokens=99)

        kwargs = sdk.beta.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude"
        assert kwargs["system"] == "sys"
        assert kwargs["max_tokens"] == 99
        assert kwargs["betas"] == [COMPUTER_USE_BETA_FLAG]
        assert kwargs["tools"][0] == {"type": "bash_20241022", "name": "bash"}
        assert kwargs["tools"][1]["description"] == "Echo"
        assert kwargs["messages"][0] == {"role": "user", "content": "list files"}
        assert kwargs["messages"][2]["content"][0]["tool_use_id"] == "t1"

    def test_response_conversion(self, sdk):
        response = AnthropicAdapter(client=sdk).create_message(
            model="claude", system="sys", messages=conversation(), tools=TOOLS, max_tokens=99
        )

        assert isinstance(response.content[0], RawBlock)
        assert response.content[0].type == "thinking"
        assert response.content[1] == TextBlock(text="Let me look")
        assert response.content[2] == ToolUseBlock(id="toolu_1", name="computer", input={"action": "screenshot"})
        assert response.usage == {"input_tokens": 10, "output_tokens": 5}
        assert response.stop_reason == "tool_use"


class TestGroqAdapter:

    def test_chat_translation(self):
        chat = to_chat_messages("sys", conversation())

        assert chat[0] == {"role": "system", "content": "sys"}
        assert chat[1] == {"role": "user", "content": "list files"}
        assert chat[2]["content"] == "Running ls"
        assert chat[2]["tool_calls"][0]["function"] == {"name": "bash", "arguments": json.dumps({"command": "ls"})}
        assert chat[3] == {
            "role": "tool",
            "tool_call_id": "t1",
            "content": "a.txt\n[image/png screenshot captured]",
        }

    def test_error_result_marked(self):
        messages = [Message(role="user", content=[
            ToolResultBlock(tool_use_id="t1", content=[TextBlock(text="bad")], is_error=True),
        ])]
        assert to_chat_messages("s", messages)[1]["content"] == "Error: bad"

    def test_create_message(self):
        sdk = MagicMock()
        tool_call = MagicMock(id="call_1")
        tool_call.function.name = "bash"
        tool_call.function.arguments = '{"command": "pwd"}'
        sdk.chat.completions.create.return_value = MagicMock(
            id="chat_1",
            model="llama",
            choices=[MagicMock(finish_reason="tool_calls", message=MagicMock(content=None, tool_calls=[tool_call]))],
            usage=MagicMock(prompt_tokens=3, completion_tokens=4),
        )

        response = GroqAdapter(client=sdk).create_message(
            model="llama", system="sys", messages=[Message.user("where am I")], tools=TOOLS, max_tokens=50
        )

        kwargs = sdk.chat.completions.create.call_args.kwargs
        assert kwargs["tools"][0]["function"]["name"] == "bash"
        assert kwargs["max_tokens"] == 50
        assert response.content == [ToolUseBlock(id="call_1", name="bash", input={"command": "pwd"})]
        assert response.usage == {"input_tokens": 3, "output_tokens": 4}

    def test_bad_arguments_passed_raw(self):
        sdk = MagicMock()
        tool_call = MagicMock(id="call_1")
        tool_call.function.name = "bash"
        tool_call.function.arguments = "{oops"
        sdk.chat.completions.create.return_value = MagicMock(
            choices=[MagicMock(message=MagicMock(content="hi", tool_calls=[tool_call]))],
        )

        response = GroqAdapter(client=sdk).create_message(
            model="llama", system="sys", messages=[Message.user("x")], tools=[], max_tokens=5
        )

        assert response.content[0] == TextBlock(text="hi")
        assert response.content[1].input == {"raw_arguments": "{oops"}
        assert "tools" not in sdk.chat.completions.create.call_args.kwargs


class TestMockLLMAdapter:

    def test_scripted_responses(self):
        scripted = AssistantResponse(content=[TextBlock(text="b")])
        adapter = MockLLMAdapter(responses=[[TextBlock(text="a")], scripted])
        kwargs = dict(model="m", system="s", messages=[Message.user("x")], tools=[], max_tokens=1)

        assert adapter.create_message(**kwargs).content == [TextBlock(text="a")]
        assert adapter.create_message(**kwargs) is scripted
        with pytest.raises(RuntimeError):
            adapter.create_message(**kwargs)
        assert len(adapter.calls) == 3

    @pytest.mark.parametrize("request_text,tool,tool_input", [
        ("Take a screenshot", "computer", {"action": "screenshot"}),
        ("Where is the cursor?", "computer", {"action": "cursor_position"}),
        ("View /etc/hostname", "str_replace_editor", {"command": "view", "path": "/etc/hostname"}),
        ("Run 'ls -la'", "bash", {"command": "ls -la"}),
        ("Show the current directory", "bash", {"command": "pwd"}),
    ])
    def test_pattern_mode(self, request_text, tool, tool_input):
        specs = [ToolSpec(name="computer"), ToolSpec(name="str_replace_editor"), ToolSpec(name="bash")]
        response = MockLLMAdapter().create_message(
            model="mock", system="s", messages=[Message.user(request_text)], tools=specs, max_tokens=1
        )
        assert response.tool_uses[0].name == tool
        assert response.tool_uses[0].input == tool_input
        assert response.stop_reason == "tool_use"

    def test_pattern_mode_summarises_results(self):
        messages = conversation()
        response = MockLLMAdapter().create_message(
            model="mock", system="s", messages=messages, tools=[], max_tokens=1
        )
        assert response.tool_uses == []
        assert response.text.startswith("Mock mode: Tool call t1 succeeded")

    def test_unknown_command(self):
        response = MockLLMAdapter().create_message(
            model="mock", system="s", messages=[Message.user("sing a song")], tools=[], max_tokens=1
        )
        assert response.text == "Mock mode: Unknown command"
