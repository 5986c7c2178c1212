"""Exercise template configuration.

The exercise a participant works through is described by chat settings
(texts shown around the conversation) and an ordered list of exchange
templates.  The template is read from the JSON file named by
``EXERCISE_FILE``; when unset, a small built-in exercise is used so the
service can start without any configuration.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from loguru import logger
from pydantic import Field

from ..models.agent import Agent
from ..models.base import CamelModel
from ..models.enums import AgentType
from ..models.exchange import Exchange, ExchangesSettings
from .app_config import get_app_config

DEFAULT_USER = Agent(id="", name="Anonymous", type=AgentType.PARTICIPANT)

DEFAULT_ASSISTANT = Agent(
    id="assistant",
    name="Assistant",
    type=AgentType.ASSISTANT,
    description="A helpful conversation partner.",
)


class ChatSettings(CamelModel):
    """Texts and flags copied onto every new interaction."""

    name: str = "Interaction"
    description: str = "interaction"
    participant_instructions: str = ""
    participant_end_text: str = "Thank you for your participation."
    send_all_to_chatbot: bool = False


class ExerciseSettings(CamelModel):
    """Complete exercise template."""

    chat: ChatSettings = Field(default_factory=ChatSettings)
    exchanges: ExchangesSettings = Field(default_factory=ExchangesSettings)


def default_exercise() -> ExerciseSettings:
    """Return the built-in single-exchange exercise."""
    return ExerciseSettings(
        chat=ChatSettings(
            name="Warm-up conversation",
            description="warmup",
            participant_instructions="You will chat with an assistant. Press start when you are ready.",
        ),
        exchanges=ExchangesSettings(
            exchange_list=[
                Exchange(
                    id="exchange-1",
                    name="Introduction",
                    assistant=DEFAULT_ASSISTANT,
                    instructions="Greet the participant and ask how their day went.",
                    participant_cue="Say hello to the assistant.",
                    nb_interactions=3,
                    hard_limit=True,
                )
            ]
        ),
    )


def load_exercise(path: str | Path) -> ExerciseSettings:
    """Read and validate an exercise template from a JSON file."""
    text = Path(path).read_text(encoding="utf-8")
    exercise = ExerciseSettings.model_validate_json(text)
    logger.info(
        "Loaded exercise {!r} with {} exchanges from {}",
        exercise.chat.name,
        len(exercise.exchanges.exchange_list),
        path,
    )
    return exercise


@lru_cache()
def get_exercise_settings() -> ExerciseSettings:
    """Return the cached exercise template for this process."""
    exercise_file = get_app_config().exercise_file
    if exercise_file:
        return load_exercise(exercise_file)
    logger.info("No EXERCISE_FILE configured; using the built-in exercise")
    return default_exercise()
