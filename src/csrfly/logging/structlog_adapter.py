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
"""StructlogAdapter — the default LoggingPort, rendering through structlog.

Settings::

    csrfly:
      logging:
        format: console        # or json
        level:
          root: INFO
          csrfly.security.csrf: DEBUG
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from csrfly.core.config import Config

_SHARED_PROCESSORS: tuple[structlog.types.Processor, ...] = (
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
)


def _level_number(level: str) -> int:
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO


class StructlogAdapter:
    def __init__(self) -> None:
        self._root_level = "INFO"
        self._format = "console"
        self._module_levels: dict[str, str] = {}

    def configure(self, config: Config) -> None:
        levels = dict(config.get_section("csrfly.logging.level"))
        self._root_level = str(levels.pop("root", "INFO")).upper()
        self._module_levels = {name: str(level).upper() for name, level in levels.items()}
        self._format = str(config.get("csrfly.logging.format", "console")).lower()

        renderer: structlog.types.Processor = (
            structlog.processors.JSONRenderer() if self._format == "json" else structlog.dev.ConsoleRenderer()
        )
        structlog.configure(
            processors=[*_SHARED_PROCESSORS, renderer],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        logging.basicConfig(
            format="%(message)s",
            stream=sys.stdout,
            level=_level_number(self._root_level),
            force=True,
        )

        for name, level in self._module_levels.items():
            self.set_level(name, level)

    def get_logger(self, name: str) -> Any:
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        logging.getLogger(name).setLevel(_level_number(level))
