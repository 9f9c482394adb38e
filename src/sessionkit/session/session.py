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
"""Session entity and the HttpSession view handed to request handlers."""

from __future__ import annotations

import functools
import uuid
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import Any, TypeVar

from sessionkit.kernel.exceptions import InvalidatedSessionException, MissingAttributeException

T = TypeVar("T")

DEFAULT_MAX_INACTIVE_INTERVAL = timedelta(seconds=1800)


class FlushMode(StrEnum):
    """When session changes are written to the store."""

    # Once, when the response commits.
    ON_SAVE = "ON_SAVE"
    # On creation and after every write through the session.
    IMMEDIATE = "IMMEDIATE"


class SaveMode(StrEnum):
    """Which interactions make a session due for saving at commit."""

    ON_SET_ATTRIBUTE = "ON_SET_ATTRIBUTE"
    ON_GET_ATTRIBUTE = "ON_GET_ATTRIBUTE"
    ALWAYS = "ALWAYS"


def generate_session_id() -> str:
    return str(uuid.uuid4())


class Session:
    """Map-backed session state as held by a session store.

    Request code never constructs one directly; stores hand them out from
    ``create_session()`` and ``find_by_id()``.

    A negative ``max_inactive_interval`` means the session never expires.
    """

    def __init__(
        self,
        session_id: str | None = None,
        *,
        max_inactive_interval: timedelta = DEFAULT_MAX_INACTIVE_INTERVAL,
        creation_time: datetime | None = None,
    ) -> None:
        self._id = session_id or generate_session_id()
        self._original_id = self._id
        self._attributes: dict[str, Any] = {}
        self._creation_time = creation_time or datetime.now(UTC)
        self._last_accessed_time = self._creation_time
        self._max_inactive_interval = max_inactive_interval

    @property
    def id(self) -> str:
        return self._id

    @property
    def original_id(self) -> str:
        """The id this session had when it was created or loaded."""
        return self._original_id

    def change_session_id(self) -> str:
        """Assign a fresh random id and return it."""
        self._id = generate_session_id()
        return self._id

    def reset_original_id(self) -> None:
        """Called by stores once the session is persisted under its current id."""
        self._original_id = self._id

    def get_attribute(self, name: str) -> Any | None:
        return self._attributes.get(name)

    def get_required_attribute(self, name: str) -> Any:
        """Return the attribute value or raise if it is missing."""
        value = self._attributes.get(name)
        if value is None:
            raise MissingAttributeException(f"Required attribute '{name}' is missing.")
        return value

    def get_attribute_or_default(self, name: str, default: T) -> Any | T:
        value = self._attributes.get(name)
        return value if value is not None else default

    def get_attribute_names(self) -> set[str]:
        return set(self._attributes)

    def set_attribute(self, name: str, value: Any) -> None:
        """Set an attribute; ``None`` removes it."""
        if value is None:
            self.remove_attribute(name)
        else:
            self._attributes[name] = value

    def remove_attribute(self, name: str) -> None:
        self._attributes.pop(name, None)

    @property
    def creation_time(self) -> datetime:
        return self._creation_time

    @property
    def last_accessed_time(self) -> datetime:
        return self._last_accessed_time

    @last_accessed_time.setter
    def last_accessed_time(self, value: datetime) -> None:
        self._last_accessed_time = value

    @property
    def max_inactive_interval(self) -> timedelta:
        return self._max_inactive_interval

    @max_inactive_interval.setter
    def max_inactive_interval(self, value: timedelta) -> None:
        self._max_inactive_interval = value

    def is_expired(self, now: datetime | None = None) -> bool:
        if self._max_inactive_interval < timedelta(0):
            return False
        now = now or datetime.now(UTC)
        return now - self._last_accessed_time > self._max_inactive_interval

    def copy(self) -> Session:
        """Return an independent copy whose original id is its current id."""
        other = Session(
            self._id,
            max_inactive_interval=self._max_inactive_interval,
            creation_time=self._creation_time,
        )
        other._attributes = dict(self._attributes)
        other._last_accessed_time = self._last_accessed_time
        return other

    def __repr__(self) -> str:
        return f"Session(id={self._id!r}, attributes={sorted(self._attributes)!r})"


def _requires_valid(method: Callable[..., Any]) -> Callable[..., Any]:
    @functools.wraps(method)
    def wrapper(self: HttpSession, *args: Any, **kwargs: Any) -> Any:
        if self._invalidated:
            raise InvalidatedSessionException(f"Session {self._session.id!r} has been invalidated")
        return method(self, *args, **kwargs)

    return wrapper


class HttpSession:
    """Wraps a :class:`Session` with the accessors request handlers use.

    Tracks whether the session was created during the current request
    (``is_new``), whether it changed since it was last saved (``modified``),
    and whether it has been invalidated. Once invalidated every accessor
    raises :class:`InvalidatedSessionException`.
    """

    def __init__(self, session: Session, *, is_new: bool = True) -> None:
        self._session = session
        self._is_new = is_new
        self._invalidated = False
        self._modified = True

    @property
    def session(self) -> Session:
        """The underlying store-level session."""
        return self._session

    @property
    def id(self) -> str:
        return self._session.id

    @property
    def is_new(self) -> bool:
        return self._is_new

    @property
    def invalidated(self) -> bool:
        return self._invalidated

    @property
    def modified(self) -> bool:
        return self._modified

    def mark_not_new(self) -> None:
        self._is_new = False

    def mark_saved(self) -> None:
        self._modified = False

    def _changed(self) -> None:
        """Runs after every write through this view."""
        self._modified = True

    def _read(self) -> None:
        """Runs after every attribute read through this view."""

    @_requires_valid
    def change_session_id(self) -> str:
        """Give the session a new id; the store drops the old one on save."""
        new_id = self._session.change_session_id()
        self._changed()
        return new_id

    @_requires_valid
    def get_attribute(self, name: str) -> Any | None:
        """Return the session attribute value, or ``None`` if absent."""
        value = self._session.get_attribute(name)
        self._read()
        return value

    @_requires_valid
    def get_required_attribute(self, name: str) -> Any:
        value = self._session.get_required_attribute(name)
        self._read()
        return value

    @_requires_valid
    def get_attribute_or_default(self, name: str, default: Any) -> Any:
        value = self._session.get_attribute_or_default(name, default)
        self._read()
        return value

    @_requires_valid
    def set_attribute(self, name: str, value: Any) -> None:
        """Set a session attribute. ``None`` removes it."""
        self._session.set_attribute(name, value)
        self._changed()

    @_requires_valid
    def remove_attribute(self, name: str) -> None:
        """Remove a session attribute if it exists."""
        if name in self._session.get_attribute_names():
            self._session.remove_attribute(name)
            self._changed()

    @_requires_valid
    def get_attribute_names(self) -> set[str]:
        return self._session.get_attribute_names()

    @_requires_valid
    def get_creation_time(self) -> datetime:
        return self._session.creation_time

    @_requires_valid
    def get_last_accessed_time(self) -> datetime:
        return self._session.last_accessed_time

    @_requires_valid
    def set_last_accessed_time(self, value: datetime) -> None:
        self._session.last_accessed_time = value
        self._changed()

    @_requires_valid
    def get_max_inactive_interval(self) -> timedelta:
        return self._session.max_inactive_interval

    @_requires_valid
    def set_max_inactive_interval(self, interval: timedelta) -> None:
        self._session.max_inactive_interval = interval
        self._changed()

    @_requires_valid
    def is_expired(self) -> bool:
        return self._session.is_expired()

    async def invalidate(self) -> None:
        """Mark the session invalidated. A second call is a no-op."""
        self._invalidated = True
