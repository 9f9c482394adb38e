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
"""SessionRepositoryFilter — binds requests to sessions held in a SessionStore."""

from __future__ import annotations

from starlette.types import ASGIApp, Receive, Scope, Send

from sessionkit.kernel.exceptions import ConfigurationException
from sessionkit.session.adapters.cookie import CookieSessionIdResolver
from sessionkit.session.ports.outbound import SessionIdResolver, SessionStore
from sessionkit.session.request import (
    INVALID_SESSION_ID_ATTR,
    SESSION_REQUEST_ATTR,
    SESSION_STORE_ATTR,
    SessionRepositoryRequest,
    SessionRequestPhase,
)
from sessionkit.session.session import FlushMode, SaveMode
from sessionkit.web.dispatch import DispatcherType, get_dispatcher_type
from sessionkit.web.filters import OncePerRequestFilter


class SessionRepositoryFilter(OncePerRequestFilter):
    """Pure ASGI middleware that puts sessions behind a pluggable store.

    Each request gets a :class:`SessionRepositoryRequest` (reachable from
    handlers through :func:`~sessionkit.session.request.get_session`) and the
    downstream app sends through that request's committing response. The
    session is committed when the response commits and once more when the
    app returns or fails.

    ``flush_mode`` decides when changes reach the store (at commit, or
    after every write) and ``save_mode`` which interactions make the session
    due for saving at commit.

    Usage::

        app = Starlette(
            routes=routes,
            middleware=[Middleware(SessionRepositoryFilter, store=InMemorySessionStore())],
        )
    """

    SESSION_STORE_ATTR = SESSION_STORE_ATTR
    INVALID_SESSION_ID_ATTR = INVALID_SESSION_ID_ATTR
    SESSION_REQUEST_ATTR = SESSION_REQUEST_ATTR

    def __init__(
        self,
        app: ASGIApp,
        store: SessionStore | None,
        session_id_resolver: SessionIdResolver | None = None,
        *,
        flush_mode: FlushMode = FlushMode.ON_SAVE,
        save_mode: SaveMode = SaveMode.ON_SET_ATTRIBUTE,
    ) -> None:
        super().__init__(app)
        if store is None:
            raise ConfigurationException("store cannot be None")
        if not isinstance(store, SessionStore):
            raise ConfigurationException(
                f"{type(store).__name__} does not implement SessionStore",
                context={"store": type(store).__name__},
            )
        self._store = store
        self.session_id_resolver = (
            session_id_resolver if session_id_resolver is not None else CookieSessionIdResolver()
        )
        self.flush_mode = FlushMode(flush_mode)
        self.save_mode = SaveMode(save_mode)

    @property
    def session_store(self) -> SessionStore:
        return self._store

    @property
    def session_id_resolver(self) -> SessionIdResolver:
        return self._resolver

    @session_id_resolver.setter
    def session_id_resolver(self, resolver: SessionIdResolver | None) -> None:
        if resolver is None:
            raise ConfigurationException("session_id_resolver cannot be None")
        if not isinstance(resolver, SessionIdResolver):
            raise ConfigurationException(
                f"{type(resolver).__name__} does not implement SessionIdResolver",
                context={"resolver": type(resolver).__name__},
            )
        self._resolver = resolver

    async def do_filter_internal(self, scope: Scope, receive: Receive, send: Send) -> None:
        state = scope["state"]
        state[SESSION_STORE_ATTR] = self._store

        previous: SessionRepositoryRequest | None = state.get(SESSION_REQUEST_ATTR)
        shared_state = None
        if previous is not None and get_dispatcher_type(scope) is DispatcherType.ERROR:
            shared_state = previous.session_state

        request = SessionRepositoryRequest(
            scope,
            receive,
            send,
            store=self._store,
            resolver=self._resolver,
            session_state=shared_state,
            flush_mode=self.flush_mode,
            save_mode=self.save_mode,
        )
        request.session_state.phase = SessionRequestPhase.INTERCEPTING
        state[SESSION_REQUEST_ATTR] = request

        try:
            await self.app(scope, receive, request.response)
        finally:
            try:
                await request.commit_session()
            finally:
                if previous is not None:
                    state[SESSION_REQUEST_ATTR] = previous
                else:
                    state.pop(SESSION_REQUEST_ATTR, None)
                    state.pop(SESSION_STORE_ATTR, None)

    async def do_filter_nested_error_dispatch(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.do_filter_internal(scope, receive, send)
