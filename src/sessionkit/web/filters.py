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
"""OncePerRequestFilter — pure ASGI middleware base that runs once per physical request.

Framework-agnostic: only the ASGI scope is inspected, so no Starlette request
object is built unless a subclass needs one.
"""

from __future__ import annotations

import abc
from fnmatch import fnmatch
from typing import ClassVar

from starlette.types import ASGIApp, Receive, Scope, Send

from sessionkit.kernel.exceptions import UnsupportedRequestException
from sessionkit.web.dispatch import DispatcherType, get_dispatcher_type

ALREADY_FILTERED_SUFFIX = ".FILTERED"


class OncePerRequestFilter(abc.ABC):
    """Abstract base class for filters that must run once per physical request.

    The first pass over a request stores a sentinel in ``scope["state"]``
    under :attr:`already_filtered_attribute_name`. Re-entries of the same
    request (forward and include dispatches) see the sentinel and go straight
    to the wrapped app; an error re-dispatch goes through
    :meth:`do_filter_nested_error_dispatch` instead. The sentinel is removed
    when the first pass ends, even if it fails.

    Attributes:
        url_patterns: Glob patterns that this filter applies to.
            If empty (default), the filter applies to *all* paths.
        exclude_patterns: Glob patterns to exclude even if ``url_patterns``
            matches.  Checked *after* ``url_patterns``.
        passthrough_scope_types: ASGI scope types handed to the app untouched.
            Any other non-HTTP scope is rejected.
    """

    url_patterns: ClassVar[list[str]] = []
    exclude_patterns: ClassVar[list[str]] = []
    passthrough_scope_types: ClassVar[tuple[str, ...]] = ("lifespan", "websocket")

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    @property
    def already_filtered_attribute_name(self) -> str:
        cls = type(self)
        return f"{cls.__module__}.{cls.__qualname__}{ALREADY_FILTERED_SUFFIX}"

    def should_not_filter(self, scope: Scope) -> bool:
        """Return ``True`` if the request path does not match this filter's patterns."""
        path: str = scope.get("path", "")

        # If url_patterns are set, at least one must match
        if self.url_patterns and not any(fnmatch(path, p) for p in self.url_patterns):
            return True

        return bool(
            self.exclude_patterns and any(fnmatch(path, p) for p in self.exclude_patterns)
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        scope_type = scope.get("type")
        if scope_type in self.passthrough_scope_types:
            await self.app(scope, receive, send)
            return
        if scope_type != "http" or not callable(receive) or not callable(send):
            raise UnsupportedRequestException(
                f"{type(self).__name__} just supports HTTP requests",
                context={"scope_type": scope_type},
            )

        state = scope.setdefault("state", {})
        attribute_name = self.already_filtered_attribute_name

        if state.get(attribute_name) is not None:
            if get_dispatcher_type(scope) is DispatcherType.ERROR:
                await self.do_filter_nested_error_dispatch(scope, receive, send)
                return
            # Proceed without invoking this filter...
            await self.app(scope, receive, send)
            return

        if self.should_not_filter(scope):
            await self.app(scope, receive, send)
            return

        state[attribute_name] = True
        try:
            await self.do_filter_internal(scope, receive, send)
        finally:
            state.pop(attribute_name, None)

    async def do_filter_nested_error_dispatch(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Handle an error dispatch nested in a request this filter already runs for.

        The default proceeds without filtering; subclasses override it to
        re-apply their wrapping.
        """
        await self.app(scope, receive, send)

    @abc.abstractmethod
    async def do_filter_internal(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Execute the filter logic.  Must ``await self.app(scope, receive, send)`` to proceed."""
        ...
