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
"""Redis-backed session store."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta
from typing import Any

from sessionkit.session.session import DEFAULT_MAX_INACTIVE_INTERVAL, Session

_logger = logging.getLogger(__name__)

_KEY_PREFIX = "sessionkit:session:"


class RedisSessionStore:
    """Session store backed by ``redis.asyncio``.

    Each session is one JSON document, so attribute values must be
    JSON-serializable. Keys are prefixed with ``sessionkit:session:`` for
    namespace isolation and expire after the session's inactivity interval.
    """

    def __init__(
        self,
        client: Any,
        key_prefix: str = _KEY_PREFIX,
        default_max_inactive_interval: timedelta = DEFAULT_MAX_INACTIVE_INTERVAL,
    ) -> None:
        self._client = client
        self._key_prefix = key_prefix
        self._default_max_inactive_interval = default_max_inactive_interval

    def _key(self, session_id: str) -> str:
        return f"{self._key_prefix}{session_id}"

    async def create_session(self) -> Session:
        """Return a new, unsaved session."""
        return Session(max_inactive_interval=self._default_max_inactive_interval)

    async def save(self, session: Session) -> None:
        """Serialize and store the session, renaming its key if the id changed."""
        if session.id != session.original_id:
            await self._client.delete(self._key(session.original_id))
        raw = json.dumps(_to_document(session))
        seconds = int(session.max_inactive_interval.total_seconds())
        ttl = seconds if seconds > 0 else None
        await self._client.set(self._key(session.id), raw.encode(), ex=ttl)
        session.reset_original_id()

    async def find_by_id(self, session_id: str) -> Session | None:
        """Retrieve and deserialize a session; expired or corrupt entries read as missing."""
        raw = await self._client.get(self._key(session_id))
        if raw is None:
            return None
        try:
            session = _from_document(json.loads(raw))
        except (json.JSONDecodeError, TypeError, KeyError, ValueError):
            _logger.warning("Failed to deserialize session '%s'", session_id)
            return None
        if session.is_expired():
            await self.delete_by_id(session_id)
            return None
        return session

    async def delete_by_id(self, session_id: str) -> None:
        """Remove a session."""
        await self._client.delete(self._key(session_id))


def _to_document(session: Session) -> dict[str, Any]:
    return {
        "id": session.id,
        "creation_time": session.creation_time.isoformat(),
        "last_accessed_time": session.last_accessed_time.isoformat(),
        "max_inactive_interval": session.max_inactive_interval.total_seconds(),
        "attributes": {name: session.get_attribute(name) for name in session.get_attribute_names()},
    }


def _from_document(doc: dict[str, Any]) -> Session:
    session = Session(
        doc["id"],
        max_inactive_interval=timedelta(seconds=doc["max_inactive_interval"]),
        creation_time=datetime.fromisoformat(doc["creation_time"]),
    )
    session.last_accessed_time = datetime.fromisoformat(doc["last_accessed_time"])
    for name, value in doc["attributes"].items():
        session.set_attribute(name, value)
    return session
