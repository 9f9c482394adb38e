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
"""Tests for OnCommittedResponseWrapper."""

from __future__ import annotations

from starlette.datastructures import Headers
from starlette.types import Message

from sessionkit.web.response import OnCommittedResponseWrapper


class _TrackingResponse(OnCommittedResponseWrapper):
    def __init__(self) -> None:
        self.sent: list[Message] = []
        self.hook_calls = 0
        self.sent_when_hooked: list[int] = []

        async def _send(message: Message) -> None:
            self.sent.append(message)

        super().__init__(_send)

    async def on_response_committed(self) -> None:
        self.hook_calls += 1
        self.sent_when_hooked.append(len(self.sent))
        self.headers["x-committed-by"] = "hook"


def _start(status: int = 200) -> Message:
    return {"type": "http.response.start", "status": status, "headers": [(b"content-type", b"text/plain")]}


def _body(data: bytes = b"", more: bool = False) -> Message:
    return {"type": "http.response.body", "body": data, "more_body": more}


class TestCommitHook:
    async def test_hook_runs_before_first_message(self):
        response = _TrackingResponse()
        assert not response.committed

        await response(_start())

        assert response.committed
        assert response.hook_calls == 1
        assert response.sent_when_hooked == [0]

    async def test_hook_runs_once(self):
        response = _TrackingResponse()

        await response(_start())
        await response(_body(b"a", more=True))
        await response(_body(b"b"))

        assert response.hook_calls == 1
        assert len(response.sent) == 3

    async def test_disabled_hook_never_runs(self):
        response = _TrackingResponse()
        response.disable_on_response_committed()

        await response(_start())

        assert response.hook_calls == 0
        assert response.committed

    async def test_status_code_recorded(self):
        response = _TrackingResponse()
        assert response.status_code is None

        await response(_start(404))

        assert response.status_code == 404


class TestPendingHeaders:
    async def test_headers_from_hook_reach_start_message(self):
        response = _TrackingResponse()

        await response(_start())

        headers = Headers(raw=response.sent[0]["headers"])
        assert headers["x-committed-by"] == "hook"
        assert headers["content-type"] == "text/plain"

    async def test_original_message_not_mutated(self):
        response = _TrackingResponse()
        message = _start()

        await response(message)

        assert message["headers"] == [(b"content-type", b"text/plain")]

    async def test_cookie_added_before_commit(self):
        response = _TrackingResponse()
        response.set_cookie("SESSION", "abc", httponly=True)

        await response(_start())

        cookies = Headers(raw=response.sent[0]["headers"]).getlist("set-cookie")
        assert len(cookies) == 1
        assert cookies[0].startswith("SESSION=abc")
        assert "HttpOnly" in cookies[0]
        assert "Path=/" in cookies[0]

    async def test_delete_cookie_expires_immediately(self):
        response = _TrackingResponse()
        response.delete_cookie("SESSION")

        await response(_start())

        cookie = Headers(raw=response.sent[0]["headers"]).getlist("set-cookie")[0]
        assert cookie.startswith("SESSION=")
        assert "Max-Age=0" in cookie

    async def test_only_cookie_headers_are_added(self):
        response = _TrackingResponse()
        response.set_cookie("SESSION", "abc", secure=True, samesite="strict")
        response.set_cookie("THEME", "dark", max_age=60)

        await response(_start())

        headers = Headers(raw=response.sent[0]["headers"])
        cookies = headers.getlist("set-cookie")
        assert [c.split("=")[0] for c in cookies] == ["SESSION", "THEME"]
        assert "Secure" in cookies[0]
        assert "SameSite=strict" in cookies[0]
        assert "Max-Age=60" in cookies[1]
        assert "content-length" not in headers

    async def test_cookie_after_commit_is_dropped(self):
        response = _TrackingResponse()
        await response(_start())

        response.set_cookie("SESSION", "late")

        assert response.headers.getlist("set-cookie") == []

    def test_invalid_samesite_rejected(self):
        import pytest

        response = _TrackingResponse()
        with pytest.raises(ValueError, match="samesite"):
            response.set_cookie("SESSION", "abc", samesite="sideways")  # type: ignore[arg-type]
