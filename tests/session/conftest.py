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
"""Recording collaborators shared by the session tests."""

from __future__ import annotations

from typing import Any

import pytest

from sessionkit.session.adapters.cookie import CookieSessionIdResolver
from sessionkit.session.adapters.memory import InMemorySessionStore
from sessionkit.session.session import Session


class _Recording:
    """Keeps this collaborator's calls plus a log shared with its peers."""

    def _init_recording(self, events: list[tuple[str, Any]] | None) -> None:
        self.calls: list[tuple[str, Any]] = []
        self._events = events if events is not None else []

    def _record(self, operation: str, value: Any) -> None:
        self.calls.append((operation, value))
        self._events.append((operation, value))

    def count(self, operation: str) -> int:
        return sum(1 for op, _ in self.calls if op == operation)


class RecordingStore(_Recording, InMemorySessionStore):
    """InMemorySessionStore that records every call as ``(operation, session_id)``."""

    def __init__(self, events: list[tuple[str, Any]] | None = None) -> None:
        InMemorySessionStore.__init__(self)
        self._init_recording(events)

    async def create_session(self) -> Session:
        session = await super().create_session()
        self._record("create_session", session.id)
        return session

    async def save(self, session: Session) -> None:
        self._record("save", session.id)
        await super().save(session)

    async def find_by_id(self, session_id: str) -> Session | None:
        self._record("find_by_id", session_id)
        return await super().find_by_id(session_id)

    async def delete_by_id(self, session_id: str) -> None:
        self._record("delete_by_id", session_id)
        await super().delete_by_id(session_id)

    async def seed(self, session_id: str, **attributes: Any) -> Session:
        """Store a session directly, without recording the call."""
        session = Session(session_id)
        for name, value in attributes.items():
            session.set_attribute(name, value)
        await InMemorySessionStore.save(self, session)
        return session


class RecordingResolver(_Recording, CookieSessionIdResolver):
    """Cookie resolver that records ``set_session_id`` and ``expire_session`` calls."""

    def __init__(self, events: list[tuple[str, Any]] | None = None) -> None:
        CookieSessionIdResolver.__init__(self, "SESSION")
        self._init_recording(events)

    def set_session_id(self, request: Any, response: Any, session_id: str) -> None:
        self._record("set_session_id", session_id)
        super().set_session_id(request, response, session_id)

    def expire_session(self, request: Any, response: Any) -> None:
        self._record("expire_session", None)
        super().expire_session(request, response)


@pytest.fixture
def events() -> list[tuple[str, Any]]:
    """Calls made on the store and the resolver, in order."""
    return []


@pytest.fixture
def store(events: list[tuple[str, Any]]) -> RecordingStore:
    return RecordingStore(events)


@pytest.fixture
def resolver(events: list[tuple[str, Any]]) -> RecordingResolver:
    return RecordingResolver(events)
