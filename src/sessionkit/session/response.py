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
"""SessionRepositoryResponse — commits the session when the response commits."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.types import Send

from sessionkit.web.response import OnCommittedResponseWrapper

if TYPE_CHECKING:
    from sessionkit.session.request import SessionRepositoryRequest


class SessionRepositoryResponse(OnCommittedResponseWrapper):
    """Ensures the session is saved and its id written before headers go out."""

    def __init__(self, request: SessionRepositoryRequest, send: Send) -> None:
        super().__init__(send)
        self._request = request

    async def on_response_committed(self) -> None:
        await self._request.commit_session()
