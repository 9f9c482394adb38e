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
"""Session subsystem configuration properties."""

from __future__ import annotations

from dataclasses import dataclass

from sessionkit.core.config import config_properties


@config_properties(prefix="sessionkit.session")
@dataclass
class SessionProperties:
    """Configuration for the session subsystem (sessionkit.session.*)."""

    enabled: bool = True
    store: str = "memory"
    timeout: int = 1800
    resolver: str = "cookie"
    cookie_name: str = "SESSION"
    cookie_path: str = "/"
    cookie_domain: str | None = None
    cookie_max_age: int | None = None
    cookie_secure: bool = False
    cookie_http_only: bool = True
    cookie_same_site: str = "lax"
    header_name: str = "X-Auth-Token"
    flush_mode: str = "on_save"
    save_mode: str = "on_set_attribute"
    redis_url: str = "redis://localhost:6379/0"
    redis_key_prefix: str = "sessionkit:session:"
