"""Service generating the simulated assistant's replies.

Uses LangChain's ChatOpenAI integration.  The conversation sent to the
model is the current exchange, or the whole visible history followed by
the current exchange when the interaction sets ``send_all_to_chatbot``.
"""

from __future__ import annotations

from loguru import logger
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from ..config.llm_config import LlmConfig, get_llm_config
from ..models.enums import AgentType
from ..models.exchange import Exchange
from ..models.interaction import Interaction
from ..models.message import Message
from ..prompts import ASSISTANT_SYSTEM_TEMPLATE, DEFAULT_SYSTEM_PROMPT
from ..utils.error_handler import AssistantError
from .state_machine import past_messages


def conversation_for(interaction: Interaction, exchange: Exchange) -> list[Message]:
    """Messages the assistant gets to see when answering in ``exchange``."""
    if interaction.send_all_to_chatbot:
        return [*past_messages(interaction), *exchange.messages]
    return list(exchange.messages)


def build_prompt(interaction: Interaction, exchange: Exchange) -> list[BaseMessage]:
    """Translate an exchange into LangChain chat messages."""
    system = ASSISTANT_SYSTEM_TEMPLATE.format(
        base_prompt=DEFAULT_SYSTEM_PROMPT,
        assistant_name=exchange.assistant.name,
        assistant_description=exchange.assistant.description or "-",
        instructions=exchange.instructions or "-",
    )
    messages: list[BaseMessage] = [SystemMessage(content=system)]
    for message in conversation_for(interaction, exchange):
        if message.sender.type == AgentType.PARTICIPANT:
            messages.append(HumanMessage(content=message.content))
        else:
            messages.append(AIMessage(content=message.content))
    return messages


class AssistantService:
    """Generates assistant turns with a ChatOpenAI model.

    The model is built from a single :class:`LlmConfig`.  When a
    ``base_url`` is configured the client talks to that OpenAI-compatible
    endpoint instead of the default one.
    """

    def __init__(self, llm_config: LlmConfig | None = None) -> None:
        self.llm_config = llm_config or get_llm_config()
        llm_kwargs: dict[str, object] = {
            "api_key": self.llm_config.api_key,
            "model": self.llm_config.model,
            "temperature": self.llm_config.temperature,
            "timeout": self.llm_config.timeout,
        }
        if self.llm_config.base_url:
            llm_kwargs["base_url"] = self.llm_config.base_url
        if self.llm_config.max_tokens:
            llm_kwargs["max_tokens"] = self.llm_config.max_tokens
        self.llm = ChatOpenAI(**llm_kwargs)

    async def reply(self, interaction: Interaction, exchange: Exchange) -> str:
        """Return the assistant's next message in ``exchange``.

        Raises
        ------
        AssistantError
            If the model call fails.
        """
        prompt = build_prompt(interaction, exchange)
        logger.debug(
            "Requesting assistant reply: exchange={} history={} messages",
            exchange.id,
            len(prompt) - 1,
        )
        try:
            result = await self.llm.ainvoke(prompt)
        except Exception as exc:
            logger.exception("Assistant generation failed")
            raise AssistantError("Assistant generation failed") from exc
        content = result.content
        if not isinstance(content, str):
            content = "".join(part.get("text", "") if isinstance(part, dict) else str(part) for part in content)
        return content.strip()
