"""
Tests for settings, model routing, the LLM client and prompt logging.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from conftest import run
from pydantic import BaseModel

from pulse.config import Settings
from pulse.llm import client as llm_client
from pulse.llm import prompt_logger
from pulse.llm.model_router import DEFAULT_CONFIG, MODEL_CONFIGS, get_model, get_node_config


class Answer(BaseModel):
    text: str


class TestSettings:

    def test_placeholder_key_is_not_a_backend(self):
        assert not Settings(openai_api_key=None).has_llm_backend
        assert not Settings(openai_api_key="  ").has_llm_backend
        assert not Settings(openai_api_key="mock_api_key_placeholder").has_llm_backend
        assert Settings(openai_api_key="sk-test").has_llm_backend

    def test_environment_flags(self):
        assert Settings(pulse_env="production").is_production
        assert Settings(pulse_env="development").is_development


class TestModelRouter:

    def test_complexity_levels(self):
        assert get_model("high") == MODEL_CONFIGS["high"]["model"]
        assert get_model("unknown") == DEFAULT_CONFIG["model"]

    def test_node_temperature_override(self):
        config = get_node_config("follow_ups", "low")
        assert config["temperature"] == 0.8
        assert config["model"] == MODEL_CONFIGS["low"]["model"]

    def test_model_override(self):
        config = get_node_config("follow_ups", "medium", model_override="gpt-4o")
        assert config["model"] == "gpt-4o"

    def test_returns_copy(self):
        config = get_node_config("other", "medium")
        config["temperature"] = 2.0
        assert MODEL_CONFIGS["medium"]["temperature"] != 2.0


class TestClient:

    def setup_method(self):
        llm_client.reset_client()

    def teardown_method(self):
        llm_client.reset_client()

    def test_get_client_without_key(self):
        with patch.object(llm_client, "settings", MagicMock(has_llm_backend=False)):
            with pytest.raises(llm_client.LLMNotConfiguredError):
                llm_client.get_client()

    def test_call_llm_passes_model_and_temperature(self):
        fake = MagicMock()
        fake.chat.completions.create = AsyncMock(return_value=Answer(text="hi"))
        fake_settings = MagicMock(follow_up_model=None)

        with patch.object(llm_client, "get_client", return_value=fake), \
                patch.object(llm_client, "settings", fake_settings):
            result = run(llm_client.call_llm(
                response_model=Answer,
                system_prompt="sys",
                user_prompt="user",
                node="follow_ups",
            ))

        assert result == Answer(text="hi")
        kwargs = fake.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == MODEL_CONFIGS["medium"]["model"]
        assert kwargs["temperature"] == 0.8
        assert kwargs["response_model"] is Answer
        assert kwargs["messages"][0] == {"role": "system", "content": "sys"}

    def test_call_llm_reraises(self):
        fake = MagicMock()
        fake.chat.completions.create = AsyncMock(side_effect=RuntimeError("boom"))

        with patch.object(llm_client, "get_client", return_value=fake), \
                patch.object(llm_client, "settings", MagicMock(follow_up_model=None)):
            with pytest.raises(RuntimeError, match="boom"):
                run(llm_client.call_llm(response_model=Answer, system_prompt="s", user_prompt="u"))


class TestPromptLogger:

    @pytest.fixture(autouse=True)
    def log_dir(self, tmp_path, monkeypatch):
        monkeypatch.setattr(prompt_logger, "LOG_DIR", tmp_path)
        prompt_logger.reset_session()
        yield tmp_path
        prompt_logger.enable_prompt_logging(False)
        prompt_logger.reset_session()

    def test_disabled_by_default(self):
        prompt_logger.enable_prompt_logging(False)
        assert prompt_logger.log_prompt(
            node="follow_ups", model="m", system_prompt="s", user_prompt="u", response_model="R",
        ) is None
        assert prompt_logger.get_session_log_dir() is None

    def test_writes_markdown(self):
        prompt_logger.enable_prompt_logging(True)
        path = prompt_logger.log_prompt(
            node="follow_ups",
            model="gpt-4.1-mini",
            system_prompt="You are helpful",
            user_prompt="Sports: IPL",
            response_model="FollowUpQuestionSet",
            response=Answer(text="Which team?"),
            config={"temperature": 0.8},
        )

        content = path.read_text(encoding="utf-8")
        assert path.name == "01_follow_ups.md"
        assert "Sports: IPL" in content
        assert "Which team?" in content
        assert "temperature=0.8" in content

    def test_logs_errors(self):
        prompt_logger.enable_prompt_logging(True)
        path = prompt_logger.log_prompt(
            node="follow_ups", model="m", system_prompt="s", user_prompt="u",
            response_model="R", error="rate limited",
        )
        assert "**ERROR:** rate limited" in path.read_text(encoding="utf-8")
