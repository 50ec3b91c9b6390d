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
"""Token extraction — locate the submitted token in a request.

Locations are checked in a fixed order (body, header, query) and the first
non-empty string wins.  Lower-priority locations are never consulted once a
value is found, even if that value later fails validation.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from csrfly.security.csrf.properties import CsrfProperties


class TokenLocation(str, enum.Enum):
    """Where a submitted token was found."""

    BODY = "body"
    HEADER = "header"
    QUERY = "query"


@dataclass(frozen=True)
class ExtractedToken:
    value: str
    location: TokenLocation


@dataclass(frozen=True)
class CsrfRequest:
    """Framework-neutral view of an inbound request.

    All mappings are expected to be parsed already.  ``headers`` may be keyed
    in any casing.
    """

    method: str
    path: str = "/"
    body: Mapping[str, Any] = field(default_factory=dict)
    headers: Mapping[str, Any] = field(default_factory=dict)
    query: Mapping[str, Any] = field(default_factory=dict)


class TokenExtractor:
    """Finds a candidate CSRF token in body, header, or query string."""

    def __init__(self, properties: CsrfProperties | None = None) -> None:
        self._properties = properties or CsrfProperties()

    def extract(self, request: CsrfRequest) -> ExtractedToken | None:
        field_name = self._properties.field_name

        value = _string_value(request.body, field_name)
        if value is not None:
            return ExtractedToken(value, TokenLocation.BODY)

        value = _header_value(request.headers, self._properties.header_name)
        if value is not None:
            return ExtractedToken(value, TokenLocation.HEADER)

        value = _string_value(request.query, field_name)
        if value is not None:
            return ExtractedToken(value, TokenLocation.QUERY)

        return None


def _string_value(source: Mapping[str, Any] | None, key: str) -> str | None:
    if not source:
        return None
    value = source.get(key)
    if isinstance(value, str) and value:
        return value
    return None


def _header_value(headers: Mapping[str, Any] | None, name: str) -> str | None:
    """Case-insensitive header lookup; *name* is already lower-case."""
    if not headers:
        return None
    value = _string_value(headers, name)
    if value is not None:
        return value
    for key, candidate in headers.items():
        if isinstance(key, str) and key.lower() == name and isinstance(candidate, str) and candidate:
            return candidate
    return None
