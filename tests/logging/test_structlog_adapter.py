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
"""Tests for StructlogAdapter and configure_logging."""

import logging

import pytest
import structlog

from sessionkit.core.config import Config
from sessionkit.logging.structlog_adapter import StructlogAdapter, configure_logging, is_enabled_for

SESSION_LOGGER = "sessionkit.session.SESSION_LOGGER"


@pytest.fixture(autouse=True)
def _restore_levels():
    names = (SESSION_LOGGER, "sessionkit.web")
    previous = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in previous.items():
        logging.getLogger(name).setLevel(level)


class TestStructlogAdapterConfigure:
    def test_configure_with_empty_config(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        assert adapter.root_level == "INFO"
        assert adapter.format == "console"

    def test_configure_reads_root_level(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({"sessionkit": {"logging": {"level": {"root": "debug"}}}}))
        assert adapter.root_level == "DEBUG"

    def test_configure_reads_format(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({"sessionkit": {"logging": {"format": "JSON"}}}))
        assert adapter.format == "json"

    def test_per_logger_levels_applied(self):
        config = Config({"sessionkit": {"logging": {"level": {"root": "INFO", SESSION_LOGGER: "DEBUG"}}}})
        adapter = StructlogAdapter()
        adapter.configure(config)
        assert adapter.logger_levels == {SESSION_LOGGER: "DEBUG"}
        assert logging.getLogger(SESSION_LOGGER).level == logging.DEBUG
        assert adapter.is_enabled_for(SESSION_LOGGER, "debug")

    def test_library_defaults(self):
        adapter = configure_logging(Config.from_file("does-not-exist.yaml"))
        assert adapter.root_level == "INFO"
        assert adapter.format == "console"


class TestStructlogAdapterLoggers:
    def test_get_logger_returns_usable_logger(self):
        adapter = configure_logging(Config({}))
        logger = adapter.get_logger("sessionkit.test")
        assert callable(getattr(logger, "info", None))
        assert callable(getattr(logger, "debug", None))

    def test_session_events_are_captured(self):
        configure_logging(Config({}))
        with structlog.testing.capture_logs() as logs:
            structlog.get_logger(SESSION_LOGGER).debug("session_created", session_id="abc")
        assert logs[0]["event"] == "session_created"
        assert logs[0]["session_id"] == "abc"
        assert logs[0]["log_level"] == "debug"

    def test_set_level(self):
        adapter = StructlogAdapter()
        adapter.set_level("sessionkit.web", "warning")
        assert logging.getLogger("sessionkit.web").level == logging.WARNING

    def test_debug_disabled_by_default(self):
        configure_logging(Config({}))
        logging.getLogger(SESSION_LOGGER).setLevel(logging.NOTSET)
        assert not is_enabled_for(SESSION_LOGGER, "DEBUG")
        assert is_enabled_for(SESSION_LOGGER, "INFO")

    def test_unknown_level_name_means_info(self):
        adapter = StructlogAdapter()
        adapter.set_level("sessionkit.web", "chatty")
        assert logging.getLogger("sessionkit.web").level == logging.INFO
