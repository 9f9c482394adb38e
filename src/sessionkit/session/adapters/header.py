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
"""Header-based session id resolver for API clients."""

from __future__ import annotations

from typing import Any

_DEFAULT_HEADER_NAME = "X-Auth-Token"


class HeaderSessionIdResolver:
    """Carries the session id in a request/response header.

    The client is told to drop its id by receiving the header with an empty
    value.
    """

    def __init__(self, header_name: str = _DEFAULT_HEADER_NAME) -> None:
        self._header_name = header_name

    @classmethod
    def x_auth_token(cls) -> HeaderSessionIdResolver:
        return cls("X-Auth-Token")

    @classmethod
    def authentication_info(cls) -> HeaderSessionIdResolver:
        return cls("Authentication-Info")

    @property
    def header_name(self) -> str:
        return self._header_name

    def resolve_session_ids(self, request: Any) -> list[str]:
        value = request.headers.get(self._header_name)
        return [value] if value else []

    def set_session_id(self, request: Any, response: Any, session_id: str) -> None:
        response.headers[self._header_name] = session_id

    def expire_session(self, request: Any, response: Any) -> None:
        response.headers[self._header_name] = ""
