"""Registry of participant sessions and their record stores.

One :class:`SessionManager` is created per application (see
:func:`chatbot_interactions.main.create_app`) and stored on ``app.state``.
It builds a :class:`ParticipantSession` the first time a member shows up
and hands the same session back on later requests.
"""

from __future__ import annotations

import asyncio
from typing import Optional
from zoneinfo import ZoneInfo

import httpx
from loguru import logger

from ..config.app_config import AppConfig, get_app_config
from ..config.exercise_config import ExerciseSettings, get_exercise_settings
from ..config.llm_config import LlmConfig, get_llm_config
from ..models.record import LocalContext
from ..store.base import RecordStore
from ..store.http_store import HttpRecordStore
from ..store.in_memory import InMemoryRecordBackend
from .aggregation import ExpansionState
from .assistant_service import AssistantService
from .participant_session import ParticipantSession, ReplyGenerator


class SessionManager:
    """Creates, caches and tears down participant sessions."""

    def __init__(
        self,
        app_config: AppConfig | None = None,
        llm_config: LlmConfig | None = None,
        exercise: ExerciseSettings | None = None,
        assistant: Optional[ReplyGenerator] = None,
        backend: InMemoryRecordBackend | None = None,
    ) -> None:
        self.app_config = app_config or get_app_config()
        self.exercise = exercise or get_exercise_settings()
        self.export_timezone = ZoneInfo(self.app_config.export_timezone)

        if assistant is None:
            llm_config = llm_config or get_llm_config()
            if llm_config.enabled:
                assistant = AssistantService(llm_config)
            else:
                logger.warning("LLM_API_KEY not set; assistant replies are disabled")
        self.assistant = assistant

        self._backend: InMemoryRecordBackend | None = None
        self._http: httpx.AsyncClient | None = None
        if self.app_config.store_type == "http":
            if not self.app_config.store_base_url:
                raise ValueError("STORE_BASE_URL is required when STORE_TYPE is http")
            self._http = httpx.AsyncClient(timeout=httpx.Timeout(self.app_config.store_timeout))
        else:
            self._backend = backend or InMemoryRecordBackend()

        # keyed by member id
        self._sessions: dict[str, ParticipantSession] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._views: dict[str, ExpansionState] = {}

    def store_for(self, context: LocalContext) -> RecordStore:
        """Return a record store acting on behalf of ``context``."""
        if self._backend is not None:
            return self._backend.for_actor(context)
        return HttpRecordStore(
            self.app_config.store_base_url,
            token=context.token or self.app_config.store_api_token,
            client=self._http,
        )

    async def session_for(self, context: LocalContext) -> ParticipantSession:
        """Return the caller's session, creating it on first use.

        A member has one session whatever permission they call with;
        concurrent first requests wait for the same session to be built.
        Anonymous callers get a fresh session every time; it is never
        synchronised with the store.
        """
        if not context.member_id:
            return await self._open_session(context)

        lock = self._locks.setdefault(context.member_id, asyncio.Lock())
        async with lock:
            session = self._sessions.get(context.member_id)
            if session is None:
                session = await self._open_session(context)
                self._sessions[context.member_id] = session
                logger.info("Opened session for member {} ({})", context.member_id, context.permission.value)
            elif (session.context.permission, session.context.token) != (context.permission, context.token):
                session.rebind(
                    session.context.model_copy(update={"permission": context.permission, "token": context.token}),
                    self.store_for(context),
                )
                logger.debug("Member {} now acting with {} permission", context.member_id, context.permission.value)
            return session

    async def _open_session(self, context: LocalContext) -> ParticipantSession:
        store = self.store_for(context)
        members = await store.get_members()
        context = context.model_copy(update={"members": members})
        return ParticipantSession(context, store, self.exercise, self.assistant)

    def expansion_for(self, context: LocalContext) -> ExpansionState:
        """View-local expand/collapse state of the caller's conversations table."""
        return self._views.setdefault(context.member_id, ExpansionState())

    def discard_sessions_for_record(self, record_id: str) -> int:
        """Drop sessions tracking ``record_id`` so they rebuild from scratch."""
        stale = [key for key, session in self._sessions.items() if session.sync.record_id == record_id]
        for key in stale:
            del self._sessions[key]
        if stale:
            logger.info("Discarded {} session(s) tracking deleted record {}", len(stale), record_id)
        return len(stale)

    async def close(self) -> None:
        """Wait for pending writes and release the HTTP connection pool."""
        for session in list(self._sessions.values()):
            try:
                await session.sync.flush()
            except Exception as exc:
                logger.warning("Pending write failed during shutdown: {}", exc)
        self._sessions.clear()
        if self._http is not None:
            await self._http.aclose()
            self._http = None
