from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from chatbot_interactions.config.app_config import AppConfig
from chatbot_interactions.config.exercise_config import default_exercise, load_exercise
from chatbot_interactions.config.llm_config import LlmConfig
from chatbot_interactions.models import AgentType


def test_app_config_defaults() -> None:
    config = AppConfig.model_validate({})

    assert config.store_type == "in_memory"
    assert config.export_timezone == "UTC"


def test_log_level_is_normalised() -> None:
    assert AppConfig.model_validate({"log_level": "debug"}).log_level == "DEBUG"


@pytest.mark.parametrize(
    "field, value",
    [("app_env", "qa"), ("store_type", "redis"), ("store_timeout", 0), ("log_level", "loud")],
)
def test_app_config_rejects_invalid_values(field: str, value: object) -> None:
    with pytest.raises(ValidationError):
        AppConfig.model_validate({field: value})


def test_llm_config_is_disabled_without_key() -> None:
    config = LlmConfig.model_validate({"LLM_API_KEY": None})
    assert config.enabled is False
    assert LlmConfig.model_validate({"LLM_API_KEY": "sk-test"}).enabled is True


def test_llm_config_rejects_out_of_range_temperature() -> None:
    with pytest.raises(ValidationError):
        LlmConfig.model_validate({"LLM_TEMPERATURE": 1.5})


def test_load_exercise_from_camel_case_json(tmp_path) -> None:
    path = tmp_path / "exercise.json"
    path.write_text(
        json.dumps(
            {
                "chat": {"name": "Job interview", "description": "interview", "sendAllToChatbot": True},
                "exchanges": {
                    "exchangeList": [
                        {
                            "id": "q1",
                            "name": "Opening",
                            "assistant": {"id": "hr", "name": "Dana", "type": "assistant"},
                            "nbInteractions": 2,
                            "hardLimit": True,
                        }
                    ]
                },
            }
        ),
        encoding="utf-8",
    )

    exercise = load_exercise(path)

    assert exercise.chat.send_all_to_chatbot is True
    exchange = exercise.exchanges.exchange_list[0]
    assert (exchange.id, exchange.nb_interactions, exchange.hard_limit) == ("q1", 2, True)


def test_default_exercise_is_usable() -> None:
    exercise = default_exercise()
    assert exercise.exchanges.exchange_list
    assert all(e.assistant.type == AgentType.ASSISTANT for e in exercise.exchanges.exchange_list)
