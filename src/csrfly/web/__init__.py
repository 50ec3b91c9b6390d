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
"""csrfly web — filter chain, routing, and error responses."""

from csrfly.web.filters import OncePerRequestFilter
from csrfly.web.mappings import (
    RouteMapping,
    delete_mapping,
    get_mapping,
    patch_mapping,
    post_mapping,
    put_mapping,
    request_mapping,
)
from csrfly.web.ordering import HIGHEST_PRECEDENCE, LOWEST_PRECEDENCE, get_order, order
from csrfly.web.ports.filter import CallNext, WebFilter
from csrfly.web.routing import RouteRegistry

__all__ = [
    "CallNext",
    "HIGHEST_PRECEDENCE",
    "LOWEST_PRECEDENCE",
    "OncePerRequestFilter",
    "RouteMapping",
    "RouteRegistry",
    "WebFilter",
    "delete_mapping",
    "get_mapping",
    "get_order",
    "order",
    "patch_mapping",
    "post_mapping",
    "put_mapping",
    "request_mapping",
]
