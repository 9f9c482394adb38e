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
"""Tests for session auto-configuration."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

import pytest
import structlog
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from sessionkit.core.config import Config
from sessionkit.kernel.exceptions import ConfigurationException
from sessionkit.session.adapters.cookie import CookieSessionIdResolver
from sessionkit.session.adapters.header import HeaderSessionIdResolver
from sessionkit.session.adapters.memory import InMemorySessionStore
from sessionkit.session.adapters.redis import RedisSessionStore
from sessionkit.session.auto_configuration import (
    session_id_resolver,
    session_middleware,
    session_modes,
    session_store,
)
from sessionkit.session.filter import SessionRepositoryFilter
from sessionkit.session.request import get_session
from sessionkit.session.session import FlushMode, SaveMode


def _config(**session) -> Config:
    return Config({"sessionkit": {"session": session}})


class TestSessionStore:
    async def test_memory_is_default(self):
        store = session_store(_config())
        assert isinstance(store, InMemorySessionStore)
        session = await store.create_session()
        assert session.max_inactive_interval == timedelta(seconds=1800)

    async def test_timeout_applied(self):
        store = session_store(_config(timeout=60))
        session = await store.create_session()
        assert session.max_inactive_interval == timedelta(seconds=60)

    def test_redis_store(self):
        store = session_store(_config(store="redis", redis_key_prefix="app:"))
        assert isinstance(store, RedisSessionStore)

    def test_redis_falls_back_to_memory_when_missing(self, monkeypatch):
        import importlib.util

        monkeypatch.setattr(importlib.util, "find_spec", lambda name: None)
        assert isinstance(session_store(_config(store="redis")), InMemorySessionStore)

    def test_unknown_store_rejected(self):
        with pytest.raises(ConfigurationException, match="Unknown session store"):
            session_store(_config(store="mongo"))


class TestSessionIdResolver:
    def test_cookie_is_default(self):
        assert isinstance(session_id_resolver(_config()), CookieSessionIdResolver)

    def test_header_resolver(self):
        resolver = session_id_resolver(_config(resolver="header", header_name="X-Session"))
        assert isinstance(resolver, HeaderSessionIdResolver)
        assert resolver.header_name == "X-Session"

    def test_unknown_resolver_rejected(self):
        with pytest.raises(ConfigurationException, match="Unknown session id resolver"):
            session_id_resolver(_config(resolver="query"))

    def test_invalid_same_site_rejected(self):
        with pytest.raises(ConfigurationException, match="cookie_same_site"):
            session_id_resolver(_config(cookie_same_site="sideways"))


class TestSessionModes:
    def test_defaults(self):
        assert session_modes(_config()) == (FlushMode.ON_SAVE, SaveMode.ON_SET_ATTRIBUTE)

    def test_names_are_case_insensitive(self):
        modes = session_modes(_config(flush_mode="immediate", save_mode="On_Get_Attribute"))
        assert modes == (FlushMode.IMMEDIATE, SaveMode.ON_GET_ATTRIBUTE)

    def test_unknown_mode_rejected(self):
        with pytest.raises(ConfigurationException, match="flush_mode 'eventually'"):
            session_modes(_config(flush_mode="eventually"))


class _RecordingLogging:
    def __init__(self) -> None:
        self.configured: list[Config] = []

    def configure(self, config: Config) -> None:
        self.configured.append(config)

    def get_logger(self, name: str) -> Any:
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        pass

    def is_enabled_for(self, name: str, level: str) -> bool:
        return False


class TestSessionMiddleware:
    def test_disabled_returns_none(self):
        assert session_middleware(_config(enabled=False)) is None

    def test_middleware_entry(self):
        store = InMemorySessionStore()
        entry = session_middleware(_config(), store=store)
        assert entry.cls is SessionRepositoryFilter
        assert entry.kwargs["store"] is store
        assert entry.kwargs["flush_mode"] is FlushMode.ON_SAVE
        assert entry.kwargs["save_mode"] is SaveMode.ON_SET_ATTRIBUTE

    def test_modes_reach_middleware_entry(self):
        entry = session_middleware(_config(flush_mode="immediate", save_mode="always"), store=InMemorySessionStore())
        assert entry.kwargs["flush_mode"] is FlushMode.IMMEDIATE
        assert entry.kwargs["save_mode"] is SaveMode.ALWAYS

    def test_logging_configured_first(self):
        port = _RecordingLogging()
        config = _config(enabled=False)
        assert session_middleware(config, logging_port=port) is None
        assert port.configured == [config]

    def test_logging_can_be_left_to_the_application(self):
        port = _RecordingLogging()
        config = Config({"sessionkit": {"logging": {"enabled": False}}})
        session_middleware(config, store=InMemorySessionStore(), logging_port=port)
        assert port.configured == []

    def test_configured_cookie_reaches_client(self):
        async def endpoint(request: Request) -> PlainTextResponse:
            session = await get_session(request)
            return PlainTextResponse(session.id)

        config = _config(cookie_name="APPSESSION", cookie_secure=True)
        app = Starlette(routes=[Route("/", endpoint)], middleware=[session_middleware(config)])

        resp = TestClient(app).get("/")

        cookie = resp.headers["set-cookie"]
        assert cookie.startswith(f"APPSESSION={resp.text}")
        assert "Secure" in cookie
