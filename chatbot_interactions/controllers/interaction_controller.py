"""Participant endpoints driving the interaction lifecycle.

Every mutating route applies its transition locally, then waits for the
resulting store writes so that a store failure is reported to the caller.
The local interaction keeps its progress either way.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger

from ..models.exchange import Exchange
from ..models.interaction_request import SendMessageRequest, UpdateExchangeRequest
from ..models.interaction_response import InteractionResponse, LeaveResponse
from ..services.participant_session import BeforeLeaveEvent, ParticipantSession
from ..services.state_machine import derive_status, past_messages
from ..utils.error_handler import InteractionError
from .dependencies import get_participant_session

router = APIRouter(prefix="/interaction", tags=["Interaction"])


async def _respond(session: ParticipantSession) -> InteractionResponse:
    await session.sync.flush()
    interaction = session.interaction
    return InteractionResponse(
        interaction=interaction,
        status=derive_status(interaction),
        record_id=session.sync.record_id,
        past_messages=past_messages(interaction),
    )


def _unexpected(action: str, exc: Exception) -> HTTPException:
    logger.exception("Unhandled exception while trying to {}", action)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}",
    )


@router.get("", response_model=InteractionResponse)
async def get_interaction_endpoint(
    session: ParticipantSession = Depends(get_participant_session),
) -> InteractionResponse:
    """Return the caller's interaction, rehydrating or building it on first use."""
    try:
        await session.initialize()
        return await _respond(session)
    except InteractionError:
        raise
    except Exception as exc:
        raise _unexpected("load the interaction", exc) from exc


@router.post("/start", response_model=InteractionResponse)
async def start_interaction_endpoint(
    session: ParticipantSession = Depends(get_participant_session),
) -> InteractionResponse:
    try:
        await session.start()
        logger.info("Member {} started the interaction", session.context.member_id)
        return await _respond(session)
    except InteractionError:
        raise
    except Exception as exc:
        raise _unexpected("start the interaction", exc) from exc


@router.post("/next", response_model=InteractionResponse)
async def next_exchange_endpoint(
    session: ParticipantSession = Depends(get_participant_session),
) -> InteractionResponse:
    """Advance to the next exchange, completing the interaction after the last one."""
    try:
        await session.next_exchange()
        return await _respond(session)
    except InteractionError:
        raise
    except Exception as exc:
        raise _unexpected("advance the interaction", exc) from exc


@router.post("/dismiss", response_model=InteractionResponse)
async def dismiss_exchange_endpoint(
    session: ParticipantSession = Depends(get_participant_session),
) -> InteractionResponse:
    """Dismiss the current exchange and move on."""
    try:
        await session.dismiss_exchange()
        return await _respond(session)
    except InteractionError:
        raise
    except Exception as exc:
        raise _unexpected("dismiss the exchange", exc) from exc


@router.put("/exchanges/{exchange_id}", response_model=InteractionResponse)
async def update_exchange_endpoint(
    exchange_id: str,
    request: UpdateExchangeRequest,
    session: ParticipantSession = Depends(get_participant_session),
) -> InteractionResponse:
    """Replace the content of one exchange."""
    exchange: Exchange = request.exchange.model_copy(update={"id": exchange_id})
    try:
        await session.update_exchange(exchange)
        return await _respond(session)
    except InteractionError:
        raise
    except Exception as exc:
        raise _unexpected("update the exchange", exc) from exc


@router.post("/messages", response_model=InteractionResponse)
async def send_message_endpoint(
    request: SendMessageRequest,
    session: ParticipantSession = Depends(get_participant_session),
) -> InteractionResponse:
    """Post a participant message; the assistant answers when configured."""
    try:
        await session.send_message(request.content)
        return await _respond(session)
    except InteractionError:
        raise
    except Exception as exc:
        raise _unexpected("send the message", exc) from exc


@router.get("/leave", response_model=LeaveResponse)
async def before_leave_endpoint(
    session: ParticipantSession = Depends(get_participant_session),
) -> LeaveResponse:
    """Tell the host whether leaving now needs a confirmation."""
    try:
        await session.initialize()
    except InteractionError:
        raise
    except Exception as exc:
        raise _unexpected("check the interaction before leaving", exc) from exc
    event = session.before_leave(BeforeLeaveEvent())
    return LeaveResponse(warn=event.default_prevented, message=event.return_value)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def delete_interaction_endpoint(
    session: ParticipantSession = Depends(get_participant_session),
) -> None:
    """Delete the caller's record and start over with a fresh interaction."""
    try:
        await session.reset()
        return None
    except InteractionError:
        raise
    except Exception as exc:
        raise _unexpected("delete the interaction", exc) from exc
