"""Unit tests for the ComputerUseClient facade and its configuration."""
from unittest.mock import MagicMock, patch

import pytest

from core.agent import ClientOptions, ComputerUseClient, create_llm_client
from core.context import ROLE_ASSISTANT, Message, TextBlock, ToolUseBlock
from core.errors import AgentConfigError
from llm.mock_adapter import MockLLMAdapter

ENV_KEYS = [
    "AGENT_PROVIDER", "ANTHROPIC_API_KEY", "ANTHROPIC_BASE_URL", "GROQ_API_KEY", "AGENT_MODEL",
    "AGENT_MAX_TOKENS", "AGENT_ONLY_N_MOST_RECENT_IMAGES", "AGENT_SCREENSHOTS_DIR", "DISPLAY_NUM",
]


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


class TestClientOptions:

    def test_defaults_to_mock_without_keys(self, clean_env):
        options = ClientOptions.from_env()
        assert options.provider == "mock"
        assert options.model_name == "mock"

    def test_prefers_anthropic_key(self, clean_env):
        clean_env.setenv("ANTHROPIC_API_KEY", "sk-ant")
        clean_env.setenv("GROQ_API_KEY", "gsk")
        options = ClientOptions.from_env()
        assert options.provider == "anthropic"
        assert options.api_key == "sk-ant"
        assert options.model_name == "claude-3-5-sonnet-20241022"

    def test_groq_key(self, clean_env):
        clean_env.setenv("GROQ_API_KEY", "gsk")
        options = ClientOptions.from_env()
        assert options.provider == "groq"
        assert options.api_key == "gsk"

    def test_explicit_settings(self, clean_env):
        clean_env.setenv("AGENT_PROVIDER", "Groq")
        clean_env.setenv("GROQ_API_KEY", "gsk")
        clean_env.setenv("AGENT_MODEL", "custom")
        clean_env.setenv("AGENT_MAX_TOKENS", "2048")
        clean_env.setenv("AGENT_ONLY_N_MOST_RECENT_IMAGES", "3")
        clean_env.setenv("DISPLAY_NUM", "1")

        options = ClientOptions.from_env()

        assert options.provider == "groq"
        assert options.model_name == "custom"
        assert options.max_tokens == 2048
        assert options.only_n_most_recent_images == 3
        assert options.display_num == 1

    def test_provider_argument_overrides_environment(self, clean_env):
        clean_env.setenv("AGENT_PROVIDER", "anthropic")
        clean_env.setenv("ANTHROPIC_API_KEY", "sk-ant")
        clean_env.setenv("GROQ_API_KEY", "gsk")

        options = ClientOptions.from_env(provider="groq")

        assert options.provider == "groq"
        assert options.api_key == "gsk"

    def test_bad_integer(self, clean_env):
        clean_env.setenv("AGENT_MAX_TOKENS", "lots")
        with pytest.raises(AgentConfigError, match="AGENT_MAX_TOKENS"):
            ClientOptions.from_env()


class TestCreateLLMClient:

    def test_mock(self):
        assert isinstance(create_llm_client(ClientOptions(provider="mock")), MockLLMAdapter)

    def test_missing_key(self):
        with pytest.raises(AgentConfigError, match="API key is required"):
            create_llm_client(ClientOptions(provider="anthropic"))

    def test_unsupported_provider(self):
        with pytest.raises(AgentConfigError, match="Unsupported provider"):
            create_llm_client(ClientOptions(provider="bedrock", api_key="x"))

    @patch("llm.anthropic_adapter.Anthropic")
    def test_anthropic(self, mock_anthropic):
        client = create_llm_client(ClientOptions(provider="anthropic", api_key="sk", base_url="http://proxy"))
        mock_anthropic.assert_called_once_with(api_key="sk", base_url="http://proxy")
        assert client.client is mock_anthropic.return_value

    @patch("llm.groq_adapter.Groq")
    def test_groq(self, mock_groq):
        create_llm_client(ClientOptions(provider="groq", api_key="gsk"))
        mock_groq.assert_called_once_with(api_key="gsk")


class TestComputerUseClient:

    @pytest.fixture
    def make_client(self, echo_tool):
        def _make(*responses, **option_overrides):
            options = ClientOptions(provider="mock", **option_overrides)
            llm = MockLLMAdapter(responses=list(responses))
            return ComputerUseClient(options, tools=[echo_tool], llm_client=llm), llm
        return _make

    def test_send_message_runs_loop(self, make_client):
        client, llm = make_client(
            [ToolUseBlock(id="t1", name="echo", input={"text": "hi"})],
            [TextBlock(text="done")],
        )

        messages = client.send_message("echo hi")

        assert messages[0] == Message.user("echo hi")
        assert len(messages) == 4
        assert messages[-1].role == ROLE_ASSISTANT
        assert llm.calls[0]["tools"] == ["echo"]

    @pytest.mark.parametrize("text", ["", "   ", "\n"])
    def test_empty_message_rejected(self, make_client, text):
        client, llm = make_client()
        with pytest.raises(AgentConfigError, match="Message cannot be empty"):
            client.send_message(text)
        assert llm.calls == []

    def test_options_flow_into_loop(self, make_client):
        client, llm = make_client(
            [TextBlock(text="ok")],
            model="my-model", max_tokens=77, system_prompt_suffix="Be terse.",
        )

        client.send_message("go")

        assert llm.calls[0]["model"] == "my-model"
        assert llm.calls[0]["max_tokens"] == 77
        assert llm.calls[0]["system"].endswith(" Be terse.")

    def test_errors_propagate(self, echo_tool):
        llm = MagicMock()
        llm.create_message.side_effect = TimeoutError("slow")
        client = ComputerUseClient(ClientOptions(provider="mock"), tools=[echo_tool], llm_client=llm)

        with pytest.raises(TimeoutError):
            client.send_message("go")

    def test_observer_receives_events(self, make_client, observer):
        client, _ = make_client([TextBlock(text="ok")])
        client.send_message("go", observer=observer)
        assert observer.kinds() == ["api_response", "output"]

    def test_unknown_provider(self, echo_tool):
        with pytest.raises(AgentConfigError):
            ComputerUseClient(ClientOptions(provider="nope"), tools=[echo_tool])

    @patch("core.agent.default_tools")
    def test_default_tools_used(self, mock_default_tools, echo_tool):
        mock_default_tools.return_value = [echo_tool]
        client = ComputerUseClient(ClientOptions(provider="mock"))
        assert client.body.list_tools() == ["echo"]
        assert isinstance(client.brain.llm_client, MockLLMAdapter)
