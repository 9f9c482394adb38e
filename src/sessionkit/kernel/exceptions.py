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
"""Unified exception hierarchy for sessionkit.

All library exceptions inherit from SessionKitException, enabling unified
error handling across modules.

Categories:
- ConfigurationException: Missing or malformed collaborators at construction
- SessionStateException: Protocol misuse by request-handling code
- MissingAttributeException: A required session attribute is absent

Errors raised by session stores and identifier resolvers are never wrapped;
they propagate to the caller unchanged.
"""

from __future__ import annotations

# =============================================================================
# Base
# =============================================================================


class SessionKitException(Exception):
    """Base exception for all sessionkit errors.

    Carries an optional error code and context dict for structured error data.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "SESSION_001").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Configuration
# =============================================================================


class ConfigurationException(SessionKitException):
    """A required collaborator is missing or does not satisfy its contract."""


# =============================================================================
# Protocol misuse
# =============================================================================


class SessionStateException(SessionKitException):
    """Session API used in a state that does not allow the operation."""


class UnsupportedRequestException(SessionStateException):
    """The filter received something that is not an HTTP request/response pair."""


class ResponseCommittedException(SessionStateException):
    """A session cannot be created once the response has been committed."""


class NoSessionException(SessionStateException):
    """The operation needs a session but none is associated with the request."""


class InvalidatedSessionException(SessionStateException):
    """The session was invalidated earlier in the request."""


# =============================================================================
# Attributes
# =============================================================================


class MissingAttributeException(SessionKitException):
    """A required session attribute is missing."""
