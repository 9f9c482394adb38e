# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""SessionRepositoryRequest — the request view that resolves and commits sessions.

One view exists per pass of :class:`~sessionkit.session.filter.SessionRepositoryFilter`
over a request. Everything it learns about the session is kept in a
:class:`SessionRequestState` owned by that request; an error re-dispatch of
the same request builds a new view over the same state.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import structlog
from starlette.requests import HTTPConnection, Request
from starlette.types import Receive, Scope, Send

from sessionkit.kernel.exceptions import (
    NoSessionException,
    ResponseCommittedException,
    SessionStateException,
)
from sessionkit.logging.structlog_adapter import is_enabled_for
from sessionkit.session.response import SessionRepositoryResponse
from sessionkit.session.session import FlushMode, HttpSession, SaveMode, Session
from sessionkit.web.dispatch import RequestDispatcher

if TYPE_CHECKING:
    from sessionkit.session.ports.outbound import SessionIdResolver, SessionStore

SESSION_LOGGER_NAME = "sessionkit.session.SESSION_LOGGER"

logger = structlog.get_logger(SESSION_LOGGER_NAME)

SESSION_STORE_ATTR = "sessionkit.session.SessionStore"
INVALID_SESSION_ID_ATTR = SESSION_STORE_ATTR + ".invalid_session_id"
SESSION_REQUEST_ATTR = "sessionkit.session.SessionRepositoryRequest"


def _debug(event: str, **kw: Any) -> None:
    if is_enabled_for(SESSION_LOGGER_NAME, "DEBUG"):
        logger.debug(event, **kw)


class SessionRequestPhase(StrEnum):
    NOT_INTERCEPTED = "NOT_INTERCEPTED"
    INTERCEPTING = "INTERCEPTING"
    COMMITTED = "COMMITTED"


@dataclass
class SessionRequestState:
    """Session bookkeeping for one physical request.

    ``requested_session_id_valid`` is ``None`` until first determined and
    then frozen for the rest of the request.
    """

    requested_session_id: str | None = None
    requested_session: Session | None = None
    requested_session_cached: bool = False
    requested_session_id_valid: bool | None = None
    current_session: HttpSession | None = None
    invalidated_during_request: bool = False
    invalid_session_id: bool = False
    written_session_id: str | None = None
    session_id_expired: bool = False
    phase: SessionRequestPhase = SessionRequestPhase.NOT_INTERCEPTED
    pending_flushes: list[asyncio.Task[None]] = field(default_factory=list)

    def clear_requested_session_cache(self) -> None:
        self.requested_session_cached = False
        self.requested_session = None
        self.requested_session_id = None


class _SessionWrapper(HttpSession):
    """HttpSession that reports writes and invalidation back to the owning request."""

    def __init__(self, session: Session, request: SessionRepositoryRequest, *, is_new: bool) -> None:
        super().__init__(session, is_new=is_new)
        self._request = request

    def _changed(self) -> None:
        super()._changed()
        if self._request.flush_mode is FlushMode.IMMEDIATE:
            self._request.schedule_flush(self)

    def _read(self) -> None:
        if self._request.save_mode is SaveMode.ON_GET_ATTRIBUTE:
            self._modified = True

    async def invalidate(self) -> None:
        if self.invalidated:
            return
        await super().invalidate()
        await self._request.session_invalidated(self)


class SessionCommittingRequestDispatcher:
    """Dispatcher that commits the session before an include.

    An include hands control back to the caller, so a mutation made before it
    must be persisted before the included resource runs.
    """

    def __init__(self, delegate: RequestDispatcher, request: SessionRepositoryRequest) -> None:
        self._delegate = delegate
        self._request = request

    async def forward(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self._delegate.forward(scope, receive, send)

    async def error(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self._delegate.error(scope, receive, send)

    async def include(self, scope: Scope, receive: Receive) -> bytes:
        await self._request.commit_session()
        return await self._delegate.include(scope, receive)


class SessionRepositoryRequest(Request):
    """Starlette request that resolves its session lazily from a :class:`SessionStore`.

    Candidate ids come from the :class:`SessionIdResolver`; the first one the
    store knows wins, and the lookup runs at most once until the next commit.
    :attr:`response` is the committing ``send`` wrapper the downstream app
    must be given.
    """

    def __init__(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
        *,
        store: SessionStore,
        resolver: SessionIdResolver,
        session_state: SessionRequestState | None = None,
        flush_mode: FlushMode = FlushMode.ON_SAVE,
        save_mode: SaveMode = SaveMode.ON_SET_ATTRIBUTE,
    ) -> None:
        super().__init__(scope, receive)
        self._store = store
        self._resolver = resolver
        self._flush_mode = flush_mode
        self._save_mode = save_mode
        self._session_state = session_state if session_state is not None else SessionRequestState()
        self._response = SessionRepositoryResponse(self, send)

    @property
    def response(self) -> SessionRepositoryResponse:
        return self._response

    @property
    def session_state(self) -> SessionRequestState:
        return self._session_state

    @property
    def session_store(self) -> SessionStore:
        return self._store

    @property
    def flush_mode(self) -> FlushMode:
        return self._flush_mode

    @property
    def save_mode(self) -> SaveMode:
        return self._save_mode

    async def get_session(self, create: bool = True) -> HttpSession | None:
        """Return the request's session, resolving or creating it on first use.

        Raises:
            ResponseCommittedException: *create* is true, no session exists and
                the response is already committed, so the new id could not
                reach the client.
        """
        state = self._session_state
        if state.current_session is not None:
            return state.current_session

        requested = await self._get_requested_session()
        if requested is not None:
            if not state.invalid_session_id:
                requested.last_accessed_time = datetime.now(UTC)
                state.requested_session_id_valid = True
                current = _SessionWrapper(requested, self, is_new=False)
                state.current_session = current
                return current
        else:
            # No need to ask the store again if get_session(False) is repeated.
            _debug(
                "requested_session_not_found",
                requested_session_id=state.requested_session_id,
            )
            self._mark_invalid_session_id()

        if not create:
            return None
        if self._response.committed:
            raise ResponseCommittedException("Cannot create a session after the response has been committed")

        session = await self._store.create_session()
        session.last_accessed_time = datetime.now(UTC)
        _debug("session_created", session_id=session.id, stack_info=True)
        current = _SessionWrapper(session, self, is_new=True)
        state.current_session = current
        if self._flush_mode is FlushMode.IMMEDIATE:
            await self._store.save(session)
            current.mark_saved()
        return current

    async def get_requested_session_id(self) -> str | None:
        """The id the client presented, whether or not it matched a session."""
        if self._session_state.requested_session_id is None:
            await self._get_requested_session()
        return self._session_state.requested_session_id

    async def is_requested_session_id_valid(self) -> bool:
        state = self._session_state
        if state.requested_session_id_valid is None:
            requested = await self._get_requested_session()
            if requested is not None:
                requested.last_accessed_time = datetime.now(UTC)
            state.requested_session_id_valid = requested is not None
        return state.requested_session_id_valid

    async def change_session_id(self) -> str:
        session = await self.get_session(create=False)
        if session is None:
            raise NoSessionException("Cannot change session ID. There is no session associated with this request.")
        return session.change_session_id()

    def get_request_dispatcher(self, path: str) -> SessionCommittingRequestDispatcher:
        app = self.scope.get("app")
        if app is None:
            raise SessionStateException("No application in scope to dispatch to")
        return SessionCommittingRequestDispatcher(RequestDispatcher(app, path), self)

    async def session_invalidated(self, session: HttpSession) -> None:
        """Unbind an invalidated session and delete it from the store.

        An id changed but not yet saved is deleted along with the id the
        session was stored under.
        """
        await self._await_pending_flushes()
        state = self._session_state
        state.invalidated_during_request = True
        state.session_id_expired = False
        state.current_session = None
        state.clear_requested_session_cache()
        _debug("session_invalidated", session_id=session.id)
        await self._store.delete_by_id(session.id)
        if session.session.original_id != session.id:
            await self._store.delete_by_id(session.session.original_id)

    async def commit_session(self) -> None:
        """Persist the bound session and tell the client its id.

        Safe to call repeatedly: a session is only saved again when it changed
        since the last save (always, under ``SaveMode.ALWAYS``), and an id is
        written (or expired) at most once. Pending immediate flushes finish
        first and their errors propagate from here.
        """
        state = self._session_state
        state.phase = SessionRequestPhase.COMMITTED
        await self._await_pending_flushes()
        current = state.current_session

        if current is None:
            if state.invalidated_during_request and not state.session_id_expired:
                self._resolver.expire_session(self, self._response)
                state.session_id_expired = True
            return

        session = current.session
        state.clear_requested_session_cache()
        if current.modified or self._save_mode is SaveMode.ALWAYS:
            await self._store.save(session)
            current.mark_saved()
            _debug("session_saved", session_id=session.id)

        session_id = session.id
        if not await self.is_requested_session_id_valid() or session_id != await self.get_requested_session_id():
            if state.written_session_id != session_id:
                self._resolver.set_session_id(self, self._response, session_id)
                state.written_session_id = session_id

    def schedule_flush(self, session: HttpSession) -> None:
        """Save *session* as soon as the current task yields to the event loop."""
        task = asyncio.get_running_loop().create_task(self._flush(session))
        self._session_state.pending_flushes.append(task)

    async def _flush(self, session: HttpSession) -> None:
        if session.invalidated:
            return
        await self._store.save(session.session)
        session.mark_saved()
        _debug("session_flushed", session_id=session.id)

    async def _await_pending_flushes(self) -> None:
        pending = self._session_state.pending_flushes
        while pending:
            tasks = list(pending)
            pending.clear()
            results = await asyncio.gather(*tasks, return_exceptions=True)
            for result in results:
                if isinstance(result, BaseException):
                    raise result

    async def _get_requested_session(self) -> Session | None:
        state = self._session_state
        if not state.requested_session_cached:
            for session_id in self._resolver.resolve_session_ids(self):
                if not session_id:
                    continue
                if state.requested_session_id is None:
                    state.requested_session_id = session_id
                session = await self._store.find_by_id(session_id)
                if session is not None:
                    state.requested_session = session
                    state.requested_session_id = session_id
                    break
            state.requested_session_cached = True
        return state.requested_session

    def _mark_invalid_session_id(self) -> None:
        self._session_state.invalid_session_id = True
        if self._session_state.requested_session_id is not None:
            self.scope.setdefault("state", {})[INVALID_SESSION_ID_ATTR] = True


def get_session_request(request: HTTPConnection) -> SessionRepositoryRequest:
    """Return the session view the filter installed for *request*."""
    view = request.scope.get("state", {}).get(SESSION_REQUEST_ATTR)
    if view is None:
        raise SessionStateException("No SessionRepositoryFilter is handling this request")
    return view


async def get_session(request: HTTPConnection, create: bool = True) -> HttpSession | None:
    """Shortcut for ``get_session_request(request).get_session(create)``."""
    return await get_session_request(request).get_session(create)
