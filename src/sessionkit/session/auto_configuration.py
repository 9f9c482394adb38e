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
"""Session subsystem auto-configuration.

Builds the store, the id resolver and the Starlette middleware entry from
``sessionkit.session.*`` configuration.
"""

from __future__ import annotations

import importlib.util
import logging
from datetime import timedelta

from starlette.middleware import Middleware

from sessionkit.config.properties.logging import LoggingProperties
from sessionkit.config.properties.session import SessionProperties
from sessionkit.core.config import Config
from sessionkit.kernel.exceptions import ConfigurationException
from sessionkit.logging.port import LoggingPort
from sessionkit.logging.structlog_adapter import StructlogAdapter
from sessionkit.session.adapters.cookie import CookieSessionIdResolver
from sessionkit.session.adapters.header import HeaderSessionIdResolver
from sessionkit.session.adapters.memory import InMemorySessionStore
from sessionkit.session.filter import SessionRepositoryFilter
from sessionkit.session.ports.outbound import SessionIdResolver, SessionStore
from sessionkit.session.session import FlushMode, SaveMode

_logger = logging.getLogger(__name__)


def session_store(config: Config) -> SessionStore:
    """Create the configured store; ``redis`` falls back to memory when redis is not installed."""
    props = config.bind(SessionProperties)
    interval = timedelta(seconds=props.timeout)

    if props.store == "redis":
        if importlib.util.find_spec("redis") is not None:
            import redis.asyncio as aioredis

            from sessionkit.session.adapters.redis import RedisSessionStore

            client = aioredis.from_url(props.redis_url)  # type: ignore[no-untyped-call,unused-ignore]
            return RedisSessionStore(
                client=client,
                key_prefix=props.redis_key_prefix,
                default_max_inactive_interval=interval,
            )
        _logger.warning("Session store 'redis' requested but redis is not installed; using memory")
    elif props.store != "memory":
        raise ConfigurationException(f"Unknown session store '{props.store}'", context={"store": props.store})

    return InMemorySessionStore(default_max_inactive_interval=interval)


def session_id_resolver(config: Config) -> SessionIdResolver:
    props = config.bind(SessionProperties)

    if props.resolver == "header":
        return HeaderSessionIdResolver(props.header_name)
    if props.resolver != "cookie":
        raise ConfigurationException(
            f"Unknown session id resolver '{props.resolver}'", context={"resolver": props.resolver}
        )

    same_site = props.cookie_same_site.lower()
    if same_site not in ("lax", "strict", "none"):
        raise ConfigurationException(f"Invalid cookie_same_site '{props.cookie_same_site}'")
    return CookieSessionIdResolver(
        props.cookie_name,
        path=props.cookie_path,
        domain=props.cookie_domain,
        max_age=props.cookie_max_age,
        secure=props.cookie_secure,
        httponly=props.cookie_http_only,
        samesite=same_site,  # type: ignore[arg-type]
    )


def session_modes(config: Config) -> tuple[FlushMode, SaveMode]:
    props = config.bind(SessionProperties)
    try:
        return FlushMode(props.flush_mode.upper()), SaveMode(props.save_mode.upper())
    except ValueError as exc:
        raise ConfigurationException(
            f"Invalid session flush_mode '{props.flush_mode}' or save_mode '{props.save_mode}'",
            context={"flush_mode": props.flush_mode, "save_mode": props.save_mode},
        ) from exc


def session_middleware(
    config: Config,
    store: SessionStore | None = None,
    logging_port: LoggingPort | None = None,
) -> Middleware | None:
    """Return the ``SessionRepositoryFilter`` middleware entry, or ``None`` when sessions are disabled.

    Unless ``sessionkit.logging.enabled`` is false, *logging_port* (a
    :class:`StructlogAdapter` by default) is configured from *config* first.
    """
    if config.bind(LoggingProperties).enabled:
        (logging_port if logging_port is not None else StructlogAdapter()).configure(config)

    props = config.bind(SessionProperties)
    if not props.enabled:
        return None
    flush_mode, save_mode = session_modes(config)
    return Middleware(
        SessionRepositoryFilter,
        store=store if store is not None else session_store(config),
        session_id_resolver=session_id_resolver(config),
        flush_mode=flush_mode,
        save_mode=save_mode,
    )
