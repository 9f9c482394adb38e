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
"""Tests for the cookie and header session id resolvers."""

from __future__ import annotations

from starlette.requests import Request
from starlette.types import Message

from sessionkit.session.adapters.cookie import CookieSessionIdResolver
from sessionkit.session.adapters.header import HeaderSessionIdResolver
from sessionkit.session.ports.outbound import SessionIdResolver
from sessionkit.web.response import OnCommittedResponseWrapper


class _Response(OnCommittedResponseWrapper):
    def __init__(self) -> None:
        self.sent: list[Message] = []

        async def _send(message: Message) -> None:
            self.sent.append(message)

        super().__init__(_send)

    async def on_response_committed(self) -> None:
        pass


def _request(*headers: tuple[str, str]) -> Request:
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": "/",
            "query_string": b"",
            "headers": [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in headers],
        }
    )


class TestCookieSessionIdResolver:
    def test_implements_protocol(self):
        assert isinstance(CookieSessionIdResolver(), SessionIdResolver)

    def test_no_cookie(self):
        assert CookieSessionIdResolver().resolve_session_ids(_request()) == []

    def test_reads_named_cookie(self):
        request = _request(("cookie", "theme=dark; SESSION=abc; lang=en"))
        assert CookieSessionIdResolver().resolve_session_ids(request) == ["abc"]

    def test_returns_every_value_in_order(self):
        request = _request(("cookie", "SESSION=first; SESSION=second"))
        assert CookieSessionIdResolver().resolve_session_ids(request) == ["first", "second"]

    def test_reads_multiple_cookie_headers(self):
        request = _request(("cookie", "SESSION=a"), ("cookie", "SESSION=b"))
        assert CookieSessionIdResolver().resolve_session_ids(request) == ["a", "b"]

    def test_custom_cookie_name(self):
        request = _request(("cookie", "SESSION=a; APPSESSION=b"))
        assert CookieSessionIdResolver("APPSESSION").resolve_session_ids(request) == ["b"]

    def test_empty_value_is_ignored(self):
        request = _request(("cookie", "SESSION=; other=1"))
        assert CookieSessionIdResolver().resolve_session_ids(request) == []

    def test_set_session_id_writes_cookie(self):
        response = _Response()
        CookieSessionIdResolver(secure=True, max_age=60).set_session_id(_request(), response, "abc")
        cookie = response.headers["set-cookie"]
        assert cookie.startswith("SESSION=abc")
        assert "HttpOnly" in cookie
        assert "Secure" in cookie
        assert "Max-Age=60" in cookie
        assert "Path=/" in cookie
        assert "SameSite=lax" in cookie

    def test_expire_session_clears_cookie(self):
        response = _Response()
        CookieSessionIdResolver().expire_session(_request(), response)
        cookie = response.headers["set-cookie"]
        assert cookie.startswith('SESSION=""')
        assert "Max-Age=0" in cookie


class TestHeaderSessionIdResolver:
    def test_implements_protocol(self):
        assert isinstance(HeaderSessionIdResolver(), SessionIdResolver)

    def test_reads_header(self):
        request = _request(("X-Auth-Token", "abc"))
        assert HeaderSessionIdResolver.x_auth_token().resolve_session_ids(request) == ["abc"]

    def test_missing_header(self):
        assert HeaderSessionIdResolver().resolve_session_ids(_request()) == []

    def test_set_session_id_writes_header(self):
        response = _Response()
        HeaderSessionIdResolver.authentication_info().set_session_id(_request(), response, "abc")
        assert response.headers["Authentication-Info"] == "abc"

    def test_expire_session_writes_empty_header(self):
        response = _Response()
        HeaderSessionIdResolver().expire_session(_request(), response)
        assert response.headers["X-Auth-Token"] == ""
