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
"""Cookie-based session id resolver."""

from __future__ import annotations

from typing import Any, Literal

_DEFAULT_COOKIE_NAME = "SESSION"


class CookieSessionIdResolver:
    """Reads the session id from a cookie and writes it back with ``Set-Cookie``.

    Every value of the named cookie is returned, in the order the client sent
    them, so a stale cookie scoped to a parent path cannot shadow a live one.
    """

    def __init__(
        self,
        cookie_name: str = _DEFAULT_COOKIE_NAME,
        *,
        path: str = "/",
        domain: str | None = None,
        max_age: int | None = None,
        secure: bool = False,
        httponly: bool = True,
        samesite: Literal["lax", "strict", "none"] | None = "lax",
    ) -> None:
        self._cookie_name = cookie_name
        self._path = path
        self._domain = domain
        self._max_age = max_age
        self._secure = secure
        self._httponly = httponly
        self._samesite = samesite

    @property
    def cookie_name(self) -> str:
        return self._cookie_name

    def resolve_session_ids(self, request: Any) -> list[str]:
        values: list[str] = []
        for header in request.headers.getlist("cookie"):
            for chunk in header.split(";"):
                name, sep, value = chunk.strip().partition("=")
                if not sep or name.strip() != self._cookie_name:
                    continue
                value = value.strip().strip('"')
                if value:
                    values.append(value)
        return values

    def set_session_id(self, request: Any, response: Any, session_id: str) -> None:
        response.set_cookie(
            key=self._cookie_name,
            value=session_id,
            max_age=self._max_age,
            path=self._path,
            domain=self._domain,
            secure=self._secure,
            httponly=self._httponly,
            samesite=self._samesite,
        )

    def expire_session(self, request: Any, response: Any) -> None:
        response.delete_cookie(
            key=self._cookie_name,
            path=self._path,
            domain=self._domain,
            secure=self._secure,
            httponly=self._httponly,
            samesite=self._samesite,
        )
