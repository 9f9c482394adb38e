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
"""OnCommittedResponseWrapper — an ASGI ``send`` that notices the response commit."""

from __future__ import annotations

import abc
from datetime import datetime
from typing import Literal

import structlog
from starlette.datastructures import MutableHeaders
from starlette.responses import Response
from starlette.types import Message, Send

logger = structlog.get_logger("sessionkit.web")


class OnCommittedResponseWrapper(abc.ABC):
    """Stands in for the ASGI ``send`` callable of one response.

    The first message sent through the wrapper, whatever its type, commits the
    response. Just before that message is delegated, :meth:`on_response_committed`
    runs exactly once. Headers and cookies added to the wrapper before the
    commit are merged into the ``http.response.start`` message; after the
    commit they can no longer reach the client and are dropped.
    """

    def __init__(self, send: Send) -> None:
        self._send = send
        self._headers = MutableHeaders()
        self._committed = False
        self._on_committed_disabled = False
        self._status_code: int | None = None

    @property
    def committed(self) -> bool:
        return self._committed

    @property
    def status_code(self) -> int | None:
        """Status of the committed response, ``None`` before the commit."""
        return self._status_code

    @property
    def headers(self) -> MutableHeaders:
        """Pending headers, merged into the response when it starts."""
        return self._headers

    def set_cookie(
        self,
        key: str,
        value: str = "",
        max_age: int | None = None,
        expires: datetime | str | int | None = None,
        path: str | None = "/",
        domain: str | None = None,
        secure: bool = False,
        httponly: bool = False,
        samesite: Literal["lax", "strict", "none"] | None = "lax",
    ) -> None:
        if not self._accepts_cookie(key, samesite):
            return
        carrier = Response()
        carrier.set_cookie(
            key,
            value,
            max_age=max_age,
            expires=expires,
            path=path,
            domain=domain,
            secure=secure,
            httponly=httponly,
            samesite=samesite,
        )
        self._take_cookies(carrier)

    def delete_cookie(
        self,
        key: str,
        path: str = "/",
        domain: str | None = None,
        secure: bool = False,
        httponly: bool = False,
        samesite: Literal["lax", "strict", "none"] | None = "lax",
    ) -> None:
        if not self._accepts_cookie(key, samesite):
            return
        carrier = Response()
        carrier.delete_cookie(
            key,
            path=path,
            domain=domain,
            secure=secure,
            httponly=httponly,
            samesite=samesite,
        )
        self._take_cookies(carrier)

    def _accepts_cookie(self, key: str, samesite: str | None) -> bool:
        if samesite is not None and samesite.lower() not in ("strict", "lax", "none"):
            raise ValueError("samesite must be either 'strict', 'lax' or 'none'")
        if self._committed:
            logger.warning("cookie_dropped_after_commit", cookie=key)
            return False
        return True

    def _take_cookies(self, carrier: Response) -> None:
        for name, header in carrier.raw_headers:
            if name == b"set-cookie":
                self._headers.append("set-cookie", header.decode("latin-1"))

    def disable_on_response_committed(self) -> None:
        """Stop :meth:`on_response_committed` from firing."""
        self._on_committed_disabled = True

    @abc.abstractmethod
    async def on_response_committed(self) -> None:
        """Runs once, before the first message reaches the client."""
        ...

    async def __call__(self, message: Message) -> None:
        if not self._on_committed_disabled:
            self._on_committed_disabled = True
            await self.on_response_committed()

        if message["type"] == "http.response.start" and not self._committed:
            message = dict(message)
            message.setdefault("headers", [])
            target = MutableHeaders(scope=message)
            for key, value in self._headers.raw:
                target.append(key.decode("latin-1"), value.decode("latin-1"))
            self._status_code = message["status"]

        self._committed = True
        await self._send(message)
