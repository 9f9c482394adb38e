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
"""sessionkit Web — once-per-request filtering, commit-aware responses and dispatch."""

from sessionkit.web.dispatch import (
    DISPATCHER_TYPE_KEY,
    DispatcherType,
    DispatchResponse,
    RequestDispatcher,
    get_dispatcher_type,
)
from sessionkit.web.filters import OncePerRequestFilter
from sessionkit.web.response import OnCommittedResponseWrapper

__all__ = [
    "DISPATCHER_TYPE_KEY",
    "DispatchResponse",
    "DispatcherType",
    "OnCommittedResponseWrapper",
    "OncePerRequestFilter",
    "RequestDispatcher",
    "get_dispatcher_type",
]
