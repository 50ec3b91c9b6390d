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
"""CSRF configuration properties (csrfly.security.csrf.*)."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from csrfly.core.config import Config, config_properties
from csrfly.kernel.exceptions import ConfigurationException

DEFAULT_SESSION_KEY: str = "_csrf"
DEFAULT_FIELD_NAME: str = "_csrf"
DEFAULT_HEADER_NAME: str = "x-csrf-token"
DEFAULT_SAFE_METHODS: frozenset[str] = frozenset({"GET", "HEAD", "OPTIONS"})

DEFAULT_TOKEN_BYTE_LENGTH: int = 32
"""256-bit tokens."""

MIN_TOKEN_BYTE_LENGTH: int = 16
MAX_TOKEN_BYTE_LENGTH: int = 64


@config_properties(prefix="csrfly.security.csrf")
@dataclass(frozen=True)
class CsrfProperties:
    """Process-wide CSRF settings, immutable once constructed.

    ``header_name`` is matched case-insensitively and stored lower-case.
    ``safe_methods`` accepts any iterable of method names and is stored as an
    upper-case ``frozenset``.
    """

    enabled: bool = True
    token_byte_length: int = DEFAULT_TOKEN_BYTE_LENGTH
    session_key: str = DEFAULT_SESSION_KEY
    field_name: str = DEFAULT_FIELD_NAME
    header_name: str = DEFAULT_HEADER_NAME
    safe_methods: frozenset[str] = field(default_factory=lambda: DEFAULT_SAFE_METHODS)

    def __post_init__(self) -> None:
        if isinstance(self.token_byte_length, bool) or not isinstance(self.token_byte_length, int):
            raise ConfigurationException(
                f"token_byte_length must be an integer, got {self.token_byte_length!r}",
                code="INVALID_CSRF_CONFIG",
            )
        if not MIN_TOKEN_BYTE_LENGTH <= self.token_byte_length <= MAX_TOKEN_BYTE_LENGTH:
            raise ConfigurationException(
                f"token_byte_length must be between {MIN_TOKEN_BYTE_LENGTH} and "
                f"{MAX_TOKEN_BYTE_LENGTH}, got {self.token_byte_length}",
                code="INVALID_CSRF_CONFIG",
            )

        for name in ("session_key", "field_name", "header_name"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ConfigurationException(
                    f"{name} must be a non-empty string",
                    code="INVALID_CSRF_CONFIG",
                )

        methods = _normalize_methods(self.safe_methods)
        if not methods:
            raise ConfigurationException(
                "safe_methods must name at least one HTTP method",
                code="INVALID_CSRF_CONFIG",
            )

        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "header_name", self.header_name.strip().lower())
        object.__setattr__(self, "safe_methods", methods)

    @property
    def display_header_name(self) -> str:
        """Header name in conventional capitalisation, e.g. ``X-Csrf-Token``."""
        return "-".join(part[:1].upper() + part[1:] for part in self.header_name.split("-"))

    def is_safe_method(self, method: str) -> bool:
        return method.upper() in self.safe_methods

    @classmethod
    def from_config(cls, config: Config) -> CsrfProperties:
        """Bind from ``csrfly.security.csrf`` in *config*."""
        return config.bind(cls)


def _normalize_methods(methods: Iterable[str] | str) -> frozenset[str]:
    if isinstance(methods, str):
        methods = methods.split(",")
    return frozenset(m.strip().upper() for m in methods if m and m.strip())
