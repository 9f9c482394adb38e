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
"""sessionkit Session — server-side sessions behind a pluggable store.

Import concrete store and resolver types from the adapter package::

    from sessionkit.session.adapters.memory import InMemorySessionStore
    from sessionkit.session.adapters.redis import RedisSessionStore
    from sessionkit.session.adapters.cookie import CookieSessionIdResolver
    from sessionkit.session.adapters.header import HeaderSessionIdResolver
"""

from sessionkit.session.filter import SessionRepositoryFilter
from sessionkit.session.ports.outbound import SessionIdResolver, SessionStore
from sessionkit.session.request import (
    SessionRepositoryRequest,
    SessionRequestPhase,
    SessionRequestState,
    get_session,
    get_session_request,
)
from sessionkit.session.session import FlushMode, HttpSession, SaveMode, Session

__all__ = [
    "FlushMode",
    "HttpSession",
    "SaveMode",
    "Session",
    "SessionIdResolver",
    "SessionRepositoryFilter",
    "SessionRepositoryRequest",
    "SessionRequestPhase",
    "SessionRequestState",
    "SessionStore",
    "get_session",
    "get_session_request",
]
