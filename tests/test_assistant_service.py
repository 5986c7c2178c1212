from __future__ import annotations

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from chatbot_interactions.config.llm_config import LlmConfig
from chatbot_interactions.models import Message
from chatbot_interactions.services.assistant_service import AssistantService, build_prompt
from chatbot_interactions.services.state_machine import (
    advance_exchange,
    build_interaction_from_template,
    replace_exchange,
    resolve_participant,
    start_interaction,
)
from chatbot_interactions.utils.error_handler import AssistantError


class FakeLlm:
    def __init__(self, reply: str | Exception) -> None:
        self.reply = reply
        self.prompts: list = []

    async def ainvoke(self, prompt):
        self.prompts.append(prompt)
        if isinstance(self.reply, Exception):
            raise self.reply
        return AIMessage(content=self.reply)


@pytest.fixture
def in_second_exchange(exercise, participant_context):
    interaction = start_interaction(
        build_interaction_from_template(exercise, resolve_participant(participant_context))
    )
    first, second = interaction.exchanges.exchange_list
    first = first.with_message(Message.create(interaction.participant, "Good morning"))
    first = first.with_message(Message.create(first.assistant, "Morning!"))
    interaction = advance_exchange(replace_exchange(interaction, first.dismiss()))
    second = second.with_message(Message.create(interaction.participant, "A baguette please"))
    return replace_exchange(interaction, second)


@pytest.fixture
def service() -> AssistantService:
    return AssistantService(LlmConfig(LLM_API_KEY="test-key"))


def test_prompt_contains_only_current_exchange(in_second_exchange) -> None:
    exchange = in_second_exchange.active_exchange

    prompt = build_prompt(in_second_exchange, exchange)

    assert isinstance(prompt[0], SystemMessage)
    assert "Your name is Bob." in prompt[0].content
    assert "A friendly baker." in prompt[0].content
    assert [type(m) for m in prompt[1:]] == [HumanMessage]
    assert prompt[1].content == "A baguette please"


def test_prompt_with_full_history(in_second_exchange) -> None:
    interaction = in_second_exchange.model_copy(update={"send_all_to_chatbot": True})

    prompt = build_prompt(interaction, interaction.active_exchange)

    assert [type(m) for m in prompt[1:]] == [HumanMessage, AIMessage, HumanMessage]
    assert [m.content for m in prompt[1:]] == ["Good morning", "Morning!", "A baguette please"]


@pytest.mark.asyncio
async def test_reply_returns_stripped_text(service, in_second_exchange) -> None:
    service.llm = FakeLlm("  Coming right up.  ")

    text = await service.reply(in_second_exchange, in_second_exchange.active_exchange)

    assert text == "Coming right up."
    assert len(service.llm.prompts) == 1


@pytest.mark.asyncio
async def test_reply_failure_raises_assistant_error(service, in_second_exchange) -> None:
    service.llm = FakeLlm(RuntimeError("rate limited"))

    with pytest.raises(AssistantError):
        await service.reply(in_second_exchange, in_second_exchange.active_exchange)
