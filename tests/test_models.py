from __future__ import annotations

from chatbot_interactions.models import (
    Agent,
    AgentType,
    Exchange,
    Interaction,
    LocalContext,
    Message,
    PermissionLevel,
    PersistedRecord,
    UserInteraction,
)

ASSISTANT = Agent(id="bot-1", name="Bob", type=AgentType.ASSISTANT)


def test_permission_ordering() -> None:
    assert PermissionLevel.ADMIN.gte(PermissionLevel.WRITE)
    assert PermissionLevel.WRITE.gte(PermissionLevel.WRITE)
    assert not PermissionLevel.READ.gte(PermissionLevel.WRITE)
    assert LocalContext(permission=PermissionLevel.ADMIN).is_admin
    assert not LocalContext(permission=PermissionLevel.WRITE).is_admin


def test_interaction_payload_uses_camel_case() -> None:
    interaction = Interaction(current_exchange=2, send_all_to_chatbot=True)

    payload = UserInteraction(interaction=interaction).to_payload()["interaction"]

    assert payload["currentExchange"] == 2
    assert payload["sendAllToChatbot"] is True
    assert payload["exchanges"] == {"exchangeList": []}


def test_record_parses_store_payload() -> None:
    record = PersistedRecord.model_validate(
        {
            "id": "rec-1",
            "type": "user-interaction",
            "member": {"id": "m-1"},
            "createdAt": "2024-01-01T10:00:00Z",
            "data": {"interaction": {"currentExchange": 1, "started": True}},
        }
    )

    assert record.data.interaction.current_exchange == 1
    assert record.creator_id is None


def test_message_keeps_raw_sent_at() -> None:
    message = Message.model_validate({"sender": ASSISTANT.to_payload(), "content": "hi", "sentAt": "yesterday"})
    assert message.sent_at == "yesterday"


def test_exchange_limit_counts_participant_turns_only(participant_context) -> None:
    from chatbot_interactions.services.state_machine import resolve_participant

    participant = resolve_participant(participant_context)
    exchange = Exchange(assistant=ASSISTANT, nb_interactions=2, hard_limit=True)
    exchange = exchange.with_message(Message.create(participant, "one"))
    exchange = exchange.with_message(Message.create(ASSISTANT, "reply"))
    assert exchange.participant_turns == 1
    assert not exchange.limit_reached

    exchange = exchange.with_message(Message.create(participant, "two"))
    assert exchange.limit_reached


def test_soft_limit_is_never_reached(participant_context) -> None:
    from chatbot_interactions.services.state_machine import resolve_participant

    exchange = Exchange(assistant=ASSISTANT, nb_interactions=1)
    exchange = exchange.with_message(Message.create(resolve_participant(participant_context), "one"))
    assert not exchange.limit_reached


def test_dismiss_is_idempotent() -> None:
    exchange = Exchange(assistant=ASSISTANT).dismiss()
    assert exchange.dismiss() is exchange
