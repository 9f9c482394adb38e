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
"""Internal re-dispatch of a request to another path of the same ASGI app.

A dispatch re-enters the application for the same physical request: the
nested scope is a shallow copy, so ``scope["state"]`` is shared with the
outer pass. The dispatch kind travels in the scope under
:data:`DISPATCHER_TYPE_KEY` so that filters can tell a re-entry apart from a
new request.
"""

from __future__ import annotations

from enum import StrEnum

from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

DISPATCHER_TYPE_KEY = "sessionkit.dispatcher_type"


class DispatcherType(StrEnum):
    REQUEST = "REQUEST"
    FORWARD = "FORWARD"
    INCLUDE = "INCLUDE"
    ERROR = "ERROR"


def get_dispatcher_type(scope: Scope) -> DispatcherType:
    """Return the dispatch kind of *scope*; a plain request has none recorded."""
    return DispatcherType(scope.get(DISPATCHER_TYPE_KEY, DispatcherType.REQUEST))


class RequestDispatcher:
    """Dispatches the current request to *path* within *app*."""

    def __init__(self, app: ASGIApp, path: str) -> None:
        if not path.startswith("/"):
            raise ValueError(f"Dispatch path must be absolute, got {path!r}")
        self._app = app
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def _nested_scope(self, scope: Scope, dispatcher_type: DispatcherType) -> Scope:
        path, _, query = self._path.partition("?")
        full_path = scope.get("root_path", "") + path
        nested = dict(scope)
        nested["path"] = full_path
        nested["raw_path"] = full_path.encode("latin-1")
        if query:
            nested["query_string"] = query.encode("latin-1")
        nested[DISPATCHER_TYPE_KEY] = dispatcher_type
        scope.setdefault("state", {})
        nested["state"] = scope["state"]
        return nested

    async def forward(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Let the target produce the whole response."""
        await self._app(self._nested_scope(scope, DispatcherType.FORWARD), receive, send)

    async def error(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Forward to an error handler, flagged as an error dispatch."""
        await self._app(self._nested_scope(scope, DispatcherType.ERROR), receive, send)

    async def include(self, scope: Scope, receive: Receive) -> bytes:
        """Run the target and return its body; its status and headers are ignored."""
        body: list[bytes] = []

        async def _capture(message: Message) -> None:
            if message["type"] == "http.response.body":
                chunk = message.get("body", b"")
                if chunk:
                    body.append(chunk)

        await self._app(self._nested_scope(scope, DispatcherType.INCLUDE), receive, _capture)
        return b"".join(body)


class DispatchResponse(Response):
    """Response that hands the request over to another path when sent.

    Returned from an endpoint, it forwards (or error-dispatches) through the
    application found in ``scope["app"]``.
    """

    def __init__(self, path: str, dispatcher_type: DispatcherType = DispatcherType.FORWARD) -> None:
        if dispatcher_type not in (DispatcherType.FORWARD, DispatcherType.ERROR):
            raise ValueError(f"DispatchResponse cannot perform a {dispatcher_type} dispatch")
        super().__init__()
        self.path = path
        self.dispatcher_type = dispatcher_type

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        dispatcher = RequestDispatcher(scope["app"], self.path)
        if self.dispatcher_type is DispatcherType.ERROR:
            await dispatcher.error(scope, receive, send)
        else:
            await dispatcher.forward(scope, receive, send)
