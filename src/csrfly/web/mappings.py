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
"""Mapping decorators for class-based controllers.

``@request_mapping`` sets a controller's base path; ``@get_mapping`` and
friends attach a :class:`RouteMapping` to each handler method, which
:meth:`~csrfly.web.routing.RouteRegistry.register_controller` reads.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

T = TypeVar("T", bound=type)
F = TypeVar("F", bound=Callable[..., Any])

MAPPING_ATTR = "__csrfly_mapping__"
REQUEST_MAPPING_ATTR = "__csrfly_request_mapping__"


@dataclass(frozen=True)
class RouteMapping:
    method: str
    path: str = ""
    status_code: int = 200


def request_mapping(path: str) -> Callable[[T], T]:
    def decorator(cls: T) -> T:
        setattr(cls, REQUEST_MAPPING_ATTR, path.rstrip("/"))
        return cls

    return decorator


def _method_mapping(method: str) -> Callable[..., Callable[[F], F]]:
    def mapping(path: str = "", *, status_code: int = 200) -> Callable[[F], F]:
        def decorator(func: F) -> F:
            setattr(func, MAPPING_ATTR, RouteMapping(method, path, status_code))
            return func

        return decorator

    mapping.__name__ = mapping.__qualname__ = f"{method.lower()}_mapping"
    return mapping


get_mapping = _method_mapping("GET")
post_mapping = _method_mapping("POST")
put_mapping = _method_mapping("PUT")
patch_mapping = _method_mapping("PATCH")
delete_mapping = _method_mapping("DELETE")
