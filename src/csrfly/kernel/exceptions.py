"""Unified exception hierarchy for csrfly.

All library exceptions inherit from CsrflyException, enabling unified
error handling across modules.

Categories:
- SecurityException: Authentication and authorization errors (CSRF rejections)
- InfrastructureException: Failures of the platform the library runs on
- SessionContractException: A collaborator broke the session contract
- ConfigurationException: Invalid settings detected at startup
"""

from __future__ import annotations

from typing import Any

# =============================================================================
# Base Exception
# =============================================================================


class CsrflyException(Exception):
    """Base exception for all csrfly errors.

    Carries an optional error code and context dict for structured error data.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "CSRF_TOKEN_INVALID").
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
# Security Exceptions
# =============================================================================


class SecurityException(CsrflyException):
    """Authentication and authorization errors."""


class ForbiddenException(SecurityException):
    """Caller is not allowed to perform the operation."""


class CsrfValidationException(ForbiddenException):
    """A state-changing request failed CSRF token validation.

    The client-visible message and code are always generic.  The specific
    failure ``reason`` is kept on the instance for server-side logging only
    and is deliberately left out of ``context``, which error responses render.
    """

    DEFAULT_MESSAGE = "Invalid or missing CSRF token"

    def __init__(self, reason: Any = None, message: str = DEFAULT_MESSAGE) -> None:
        super().__init__(message, code="CSRF_TOKEN_INVALID")
        self.reason = reason


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(CsrflyException):
    """Failures of the runtime platform: entropy source, storage, network."""


class TokenGenerationException(InfrastructureException):
    """The operating system could not supply secure random bytes."""


# =============================================================================
# Contract and Configuration Exceptions
# =============================================================================


class SessionContractException(CsrflyException):
    """The session object is missing or does not behave like a key-value store."""


class ConfigurationException(CsrflyException):
    """A configuration value is invalid."""
