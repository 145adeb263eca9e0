"""Unit tests for the SamplingLoop."""
from unittest.mock import MagicMock

import pytest

from conftest import image_conversation
from core.brain import Brain
from core.context import (
    ROLE_ASSISTANT,
    ROLE_USER,
    AssistantResponse,
    Message,
    RawBlock,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from core.errors import MaxTurnsExceeded
from core.loop import LoopConfig, SamplingLoop
from core.registry import ToolRegistry
from core.trimmer import count_tool_result_images


def make_loop(llm, *tools):
    return SamplingLoop(Brain(llm), ToolRegistry(tools))


class TestSamplingLoop:
    """Tests for the turn-by-turn orchestration."""

    @pytest.fixture
    def config(self):
        return LoopConfig(model="test-model")

    def test_two_turn_run(self, scripted_llm, echo_tool, config):
        """One tool call then a plain answer gives four messages."""
        llm = scripted_llm(
            [TextBlock(text="echoing"), ToolUseBlock(id="toolu_1", name="echo", input={"text": "hi"})],
            [TextBlock(text="all done")],
        )
        messages = [Message.user("say hi")]

        result = make_loop(llm, echo_tool).run(messages, config)

        assert result is messages
        assert [m.role for m in result] == [ROLE_USER, ROLE_ASSISTANT, ROLE_USER, ROLE_ASSISTANT]
        tool_result = result[2].content[0]
        assert isinstance(tool_result, ToolResultBlock)
        assert tool_result.tool_use_id == "toolu_1"
        assert tool_result.content == [TextBlock(text="hi")]
        assert result[3].content == [TextBlock(text="all done")]

    def test_single_turn_without_tools(self, scripted_llm, echo_tool, config):
        llm = scripted_llm([TextBlock(text="nothing to do")])
        result = make_loop(llm, echo_tool).run([Message.user("hello")], config)
        assert len(result) == 2
        assert len(llm.calls) == 1

    def test_every_request_answered_in_order(self, scripted_llm, echo_tool, config):
        llm = scripted_llm(
            [
                ToolUseBlock(id="a", name="echo", input={"text": "1"}),
                TextBlock(text="between"),
                ToolUseBlock(id="b", name="missing", input={}),
                ToolUseBlock(id="c", name="echo", input={"text": "3"}),
            ],
            [TextBlock(text="done")],
        )

        result = make_loop(llm, echo_tool).run([Message.user("go")], config)

        requests = [b.id for b in result[1].content if isinstance(b, ToolUseBlock)]
        answers = result[2].content
        assert [a.tool_use_id for a in answers] == requests
        assert all(isinstance(a, ToolResultBlock) for a in answers)
        assert answers[1].is_error is True
        assert answers[1].content == [TextBlock(text="missing is invalid")]

    def test_tool_failure_does_not_stop_the_run(self, scripted_llm, boom_tool, config):
        llm = scripted_llm(
            [ToolUseBlock(id="t1", name="boom")],
            [TextBlock(text="recovered")],
        )

        result = make_loop(llm, boom_tool).run([Message.user("go")], config)

        assert result[2].content[0].is_error
        assert result[2].content[0].content == [TextBlock(text="Unknown error: kaboom")]
        assert result[-1].content == [TextBlock(text="recovered")]

    def test_transport_error_propagates(self, echo_tool, config):
        llm = MagicMock()
        llm.create_message.side_effect = ConnectionError("network down")
        messages = [Message.user("go")]

        with pytest.raises(ConnectionError):
            make_loop(llm, echo_tool).run(messages, config)

        assert messages == [Message.user("go")]

    def test_empty_conversation_rejected(self, scripted_llm, config):
        with pytest.raises(ValueError):
            make_loop(scripted_llm()).run([], config)

    def test_observer_event_order(self, scripted_llm, echo_tool, config, observer):
        llm = scripted_llm(
            [TextBlock(text="t"), ToolUseBlock(id="x", name="echo", input={"text": "hi"})],
            [TextBlock(text="done")],
        )

        make_loop(llm, echo_tool).run([Message.user("go")], config, observer)

        assert observer.kinds() == [
            "api_response", "output", "output", "tool_output",
            "api_response", "output",
        ]
        _, result, tool_use_id = observer.events[3]
        assert tool_use_id == "x"
        assert result.output == "hi"

    def test_assistant_content_kept_verbatim(self, scripted_llm, config):
        thinking = RawBlock(payload={"type": "thinking", "thinking": "hmm", "signature": "s"})
        llm = scripted_llm([thinking, TextBlock(text="answer")])

        result = make_loop(llm).run([Message.user("go")], config)

        assert result[1].content == [thinking, TextBlock(text="answer")]

    def test_request_parameters(self, echo_tool):
        llm = MagicMock()
        llm.create_message.return_value = AssistantResponse(content=[TextBlock(text="ok")])
        config = LoopConfig(model="m1", system_prompt_suffix="Be brief.", max_tokens=123)

        make_loop(llm, echo_tool).run([Message.user("go")], config)

        kwargs = llm.create_message.call_args.kwargs
        assert kwargs["model"] == "m1"
        assert kwargs["max_tokens"] == 123
        assert kwargs["system"].endswith(" Be brief.")
        assert [spec.name for spec in kwargs["tools"]] == ["echo"]

    def test_trims_before_every_call(self, scripted_llm, shot_tool):
        seen = []

        class CountingLLM:
            def __init__(self, inner):
                self.inner = inner

            def create_message(self, **kwargs):
                seen.append(count_tool_result_images(kwargs["messages"]))
                return self.inner.create_message(**kwargs)

        llm = CountingLLM(scripted_llm(
            [ToolUseBlock(id="s1", name="shot")],
            [ToolUseBlock(id="s2", name="shot")],
            [ToolUseBlock(id="s3", name="shot")],
            [TextBlock(text="done")],
        ))
        config = LoopConfig(model="m", only_n_most_recent_images=1, image_removal_batch=2)
        messages = image_conversation([1, 1])

        make_loop(llm, shot_tool).run(messages, config)

        assert seen == [2, 1, 2, 1]

    def test_no_trimming_when_disabled(self, scripted_llm, shot_tool, config):
        llm = scripted_llm([TextBlock(text="done")])
        messages = image_conversation([20])

        make_loop(llm, shot_tool).run(messages, config)

        assert count_tool_result_images(messages) == 20

    def test_max_turns(self, scripted_llm, echo_tool):
        llm = scripted_llm(*[[ToolUseBlock(id=f"t{i}", name="echo", input={"text": "x"})] for i in range(5)])
        config = LoopConfig(model="m", max_turns=3)

        with pytest.raises(MaxTurnsExceeded):
            make_loop(llm, echo_tool).run([Message.user("loop")], config)

        assert len(llm.calls) == 3
