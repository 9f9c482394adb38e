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
"""In-memory session store with inactivity-based expiry."""

from __future__ import annotations

import asyncio
from datetime import timedelta

from sessionkit.session.session import DEFAULT_MAX_INACTIVE_INTERVAL, Session


class InMemorySessionStore:
    """In-memory session store guarded by an asyncio.Lock.

    Sessions are stored and handed out as copies, so changes made during a
    request are invisible to other requests until ``save()``.

    Suitable for development, testing, and single-process applications.
    """

    def __init__(self, default_max_inactive_interval: timedelta = DEFAULT_MAX_INACTIVE_INTERVAL) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = asyncio.Lock()
        self._default_max_inactive_interval = default_max_inactive_interval

    async def create_session(self) -> Session:
        """Return a new, unsaved session."""
        return Session(max_inactive_interval=self._default_max_inactive_interval)

    async def save(self, session: Session) -> None:
        """Store a copy of *session*, dropping the id it was last saved under if it changed."""
        async with self._lock:
            if session.id != session.original_id:
                self._sessions.pop(session.original_id, None)
            self._sessions[session.id] = session.copy()
        session.reset_original_id()

    async def find_by_id(self, session_id: str) -> Session | None:
        """Return a copy of the session, or ``None`` if missing or expired."""
        async with self._lock:
            saved = self._sessions.get(session_id)
            if saved is None:
                return None
            if saved.is_expired():
                del self._sessions[session_id]
                return None
            return saved.copy()

    async def delete_by_id(self, session_id: str) -> None:
        """Remove a session."""
        async with self._lock:
            self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._sessions)
