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
"""Layered configuration: library defaults, YAML/TOML files, environment.

Keys are dotted paths (``csrfly.security.csrf.field-name``).  A value is
resolved, highest priority first, from:

1. an environment variable derived from the key
   (``csrfly.session.ttl`` -> ``CSRFLY_SESSION_TTL``),
2. the loaded files, later files overriding earlier ones,
3. the defaults declared on a bound dataclass.
"""

from __future__ import annotations

import dataclasses
import importlib.resources
import os
import re
import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar, get_origin, get_type_hints

import yaml  # type: ignore[import-untyped]

T = TypeVar("T")

_PLACEHOLDER_RE = re.compile(r"\$\{([^}]+)\}")
_MAX_PLACEHOLDER_DEPTH = 10

_CONFIG_PROPERTIES_ATTR = "__csrfly_config_prefix__"
_DEFAULTS_RESOURCE = "csrfly-defaults.yaml"
_DEFAULTS_SOURCE = f"{_DEFAULTS_RESOURCE} (library defaults)"

_MISSING = object()


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Declare the key prefix a dataclass binds to via :meth:`Config.bind`.

    Usage::

        @config_properties(prefix="csrfly.security.csrf")
        @dataclass(frozen=True)
        class CsrfProperties:
            field_name: str = "_csrf"
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _CONFIG_PROPERTIES_ATTR, prefix)
        return cls

    return decorator


def env_key_for(key: str) -> str:
    """Environment variable that overrides *key*."""
    return "CSRFLY_" + key.removeprefix("csrfly.").upper().replace(".", "_").replace("-", "_")


class Config:
    """Read-only view over merged configuration data."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}
        self._loaded_sources: list[str] = []

    @property
    def loaded_sources(self) -> list[str]:
        """Files merged into this config, in merge order."""
        return list(self._loaded_sources)

    @classmethod
    def defaults(cls) -> Config:
        """Config holding only the library defaults."""
        return cls._from_layers([(_DEFAULTS_SOURCE, _read_library_defaults())])

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        active_profiles: list[str] | None = None,
        load_defaults: bool = True,
    ) -> Config:
        """Load *path* on top of the library defaults.

        For each active profile a sibling ``{stem}-{profile}{suffix}`` file is
        merged on top, when it exists.  A missing *path* is not an error; the
        result then holds the defaults alone.
        """
        path = Path(path)
        layers: list[tuple[str, dict[str, Any]]] = []
        if load_defaults:
            layers.append((_DEFAULTS_SOURCE, _read_library_defaults()))

        if path.is_file():
            layers.append((str(path), _read_file(path)))
            for profile in active_profiles or []:
                overlay = path.with_name(f"{path.stem}-{profile}{path.suffix}")
                if overlay.is_file():
                    layers.append((f"{overlay} (profile: {profile})", _read_file(overlay)))

        return cls._from_layers(layers)

    @classmethod
    def _from_layers(cls, layers: list[tuple[str, dict[str, Any]]]) -> Config:
        merged: dict[str, Any] = {}
        for _, data in layers:
            merged = _deep_merge(merged, data)
        instance = cls(merged)
        instance._loaded_sources = [source for source, _ in layers]
        return instance

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value at dotted *key*, or *default*.

        ``${NAME}`` and ``${NAME:fallback}`` inside string values are
        replaced by the environment variable or config key ``NAME``.
        """
        env_val = os.environ.get(env_key_for(key))
        if env_val is not None:
            return env_val

        value = self._lookup(key)
        if value is None:
            return default
        if isinstance(value, str) and "${" in value:
            return self._resolve_placeholders(value)
        return value

    def get_section(self, prefix: str) -> dict[str, Any]:
        """Return the mapping stored under *prefix*, or an empty dict."""
        section = self._lookup(prefix)
        return section if isinstance(section, dict) else {}

    def bind(self, config_cls: type[T]) -> T:
        """Instantiate a ``@config_properties`` dataclass from this config.

        Each field is read from ``{prefix}.{field_name}`` or, failing that,
        its kebab-case spelling.  String values (environment overrides,
        placeholders) are converted to the field's annotated type.
        """
        prefix = getattr(config_cls, _CONFIG_PROPERTIES_ATTR, None)
        if prefix is None:
            raise ValueError(f"{config_cls.__name__} is not decorated with @config_properties")

        hints = get_type_hints(config_cls)
        kwargs: dict[str, Any] = {}
        for field in dataclasses.fields(config_cls):  # type: ignore[arg-type]
            for name in (field.name, field.name.replace("_", "-")):
                value = self.get(f"{prefix}.{name}", _MISSING)
                if value is not _MISSING:
                    kwargs[field.name] = _coerce(value, hints.get(field.name))
                    break

        return config_cls(**kwargs)

    def _lookup(self, key: str) -> Any:
        current: Any = self._data
        for part in key.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(part)
            if current is None:
                return None
        return current

    def _resolve_placeholders(self, value: str, depth: int = 0) -> str:
        if depth > _MAX_PLACEHOLDER_DEPTH:
            raise ValueError(f"Placeholders in {value!r} nest too deeply; check for circular references")

        def _replace(match: re.Match[str]) -> str:
            name, sep, fallback = match.group(1).partition(":")

            env_val = os.environ.get(name)
            if env_val is not None:
                return env_val

            referenced = self._lookup(name)
            if referenced is not None:
                text = str(referenced)
                return self._resolve_placeholders(text, depth + 1) if "${" in text else text

            if sep:
                return fallback
            raise ValueError(f"Cannot resolve placeholder '${{{match.group(1)}}}': not found in environment or config")

        return _PLACEHOLDER_RE.sub(_replace, value)


def _read_file(path: Path) -> dict[str, Any]:
    if path.suffix == ".toml":
        with open(path, "rb") as f:
            return tomllib.load(f)
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _read_library_defaults() -> dict[str, Any]:
    resource = importlib.resources.files("csrfly.resources").joinpath(_DEFAULTS_RESOURCE)
    with importlib.resources.as_file(resource) as p:
        return _read_file(p)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _coerce(value: Any, expected_type: Any) -> Any:
    if not isinstance(value, str):
        return value
    if expected_type is bool:
        return value.strip().lower() in ("true", "1", "yes", "on")
    if expected_type is int:
        return int(value)
    if expected_type is float:
        return float(value)
    if get_origin(expected_type) in (tuple, frozenset, list, set):
        return [part.strip() for part in value.split(",") if part.strip()]
    return value
