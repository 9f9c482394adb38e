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
"""StructlogAdapter — the LoggingPort implementation sessionkit configures itself with.

Events are emitted through structlog and routed to stdlib loggers, so the
stdlib level of a logger decides whether its events are rendered. Library
debug events (the session logger in particular) stay silent until a level
of ``DEBUG`` is configured for them under ``sessionkit.logging.level``.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from sessionkit.config.properties.logging import LoggingProperties
from sessionkit.core.config import Config

_LEVEL_SECTION = "sessionkit.logging.level"


def is_enabled_for(name: str, level: str) -> bool:
    """Whether the stdlib logger *name* currently accepts *level* events."""
    return logging.getLogger(name).isEnabledFor(_to_level(level))


def _to_level(level: str) -> int:
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO


class StructlogAdapter:
    """Configures structlog on top of stdlib logging from ``sessionkit.logging.*``.

    ``level.root`` sets the root level, every other key under ``level`` is a
    logger name with its own level, and ``format`` picks ``console`` or
    ``json`` rendering.
    """

    def __init__(self) -> None:
        self._root_level = "INFO"
        self._format = "console"
        self._logger_levels: dict[str, str] = {}

    @property
    def root_level(self) -> str:
        return self._root_level

    @property
    def format(self) -> str:
        return self._format

    @property
    def logger_levels(self) -> dict[str, str]:
        return dict(self._logger_levels)

    def configure(self, config: Config) -> None:
        props = config.bind(LoggingProperties)
        levels = {str(k): str(v).upper() for k, v in config.get_section(_LEVEL_SECTION).items()}
        self._root_level = levels.pop("root", "INFO")
        self._logger_levels = levels
        self._format = props.format.lower()

        self._setup_structlog()
        for name, level in self._logger_levels.items():
            self.set_level(name, level)

    def get_logger(self, name: str) -> Any:
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        logging.getLogger(name).setLevel(_to_level(level))

    def is_enabled_for(self, name: str, level: str) -> bool:
        return is_enabled_for(name, level)

    def _setup_structlog(self) -> None:
        processors: list[structlog.types.Processor] = [
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            # renders the creation trace attached to session_created
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
        ]
        if self._format == "json":
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.dev.ConsoleRenderer())

        structlog.configure(
            processors=processors,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        logging.basicConfig(
            format="%(message)s",
            stream=sys.stdout,
            level=_to_level(self._root_level),
            force=True,
        )


def configure_logging(config: Config) -> StructlogAdapter:
    """Configure library logging from *config* and return the adapter."""
    adapter = StructlogAdapter()
    adapter.configure(config)
    return adapter
