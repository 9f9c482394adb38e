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
"""Session store and session-id resolver protocols."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from sessionkit.session.session import Session


@runtime_checkable
class SessionStore(Protocol):
    """Abstract session persistence interface.

    All session backends (in-memory, Redis, etc.) must implement this protocol.
    ``save`` is an upsert and ``delete_by_id`` is a no-op for unknown ids.
    Concurrent saves of the same id are resolved by the store.
    """

    async def create_session(self) -> Session: ...

    async def save(self, session: Session) -> None: ...

    async def find_by_id(self, session_id: str) -> Session | None: ...

    async def delete_by_id(self, session_id: str) -> None: ...


@runtime_checkable
class SessionIdResolver(Protocol):
    """Carries the session id between client and server.

    ``request`` is a Starlette request; ``response`` is the committing
    response wrapper, which exposes ``headers``, ``set_cookie`` and
    ``delete_cookie``.
    """

    def resolve_session_ids(self, request: Any) -> list[str]: ...

    def set_session_id(self, request: Any, response: Any, session_id: str) -> None: ...

    def expire_session(self, request: Any, response: Any) -> None: ...
