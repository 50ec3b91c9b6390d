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
"""Tests for Config loading, env overrides, placeholders, and binding."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest

from csrfly.core.config import Config, config_properties


@config_properties(prefix="app.limits")
@dataclass
class LimitsConfig:
    max_items: int = 10
    ratio: float = 0.5
    strict: bool = False
    tags: tuple[str, ...] = ()


class TestConfigGet:
    def test_dot_notation(self) -> None:
        config = Config({"a": {"b": {"c": 1}}})
        assert config.get("a.b.c") == 1
        assert config.get("a.b.missing", "x") == "x"
        assert config.get("a.b.c.d", "x") == "x"

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CSRFLY_SECURITY_CSRF_FIELD_NAME", "token")
        config = Config({"csrfly": {"security": {"csrf": {"field-name": "_csrf"}}}})
        assert config.get("csrfly.security.csrf.field-name") == "token"

    def test_placeholder_with_default(self) -> None:
        config = Config({"a": "${UNSET_VAR_FOR_TEST:fallback}"})
        assert config.get("a") == "fallback"

    def test_placeholder_references_config(self) -> None:
        config = Config({"a": "x", "b": "${a}-y"})
        assert config.get("b") == "x-y"

    def test_unresolvable_placeholder(self) -> None:
        with pytest.raises(ValueError):
            Config({"a": "${NOPE_NOT_SET}"}).get("a")

    def test_get_section(self) -> None:
        config = Config({"a": {"b": {"c": 1}}})
        assert config.get_section("a.b") == {"c": 1}
        assert config.get_section("a.z") == {}


class TestConfigFiles:
    def test_defaults_loaded(self) -> None:
        config = Config.defaults()
        assert config.get("csrfly.security.csrf.field-name") == "_csrf"
        assert config.get("csrfly.security.csrf.header-name") == "x-csrf-token"

    def test_yaml_file_overrides_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "app.yaml"
        path.write_text("csrfly:\n  security:\n    csrf:\n      field-name: csrf_token\n")
        config = Config.from_file(path)
        assert config.get("csrfly.security.csrf.field-name") == "csrf_token"
        assert config.get("csrfly.security.csrf.session-key") == "_csrf"
        assert str(path) in config.loaded_sources

    def test_toml_file(self, tmp_path: Path) -> None:
        path = tmp_path / "app.toml"
        path.write_text('[csrfly.security.csrf]\nheader-name = "x-xsrf-token"\n')
        config = Config.from_file(path, load_defaults=False)
        assert config.get("csrfly.security.csrf.header-name") == "x-xsrf-token"

    def test_profile_overlay(self, tmp_path: Path) -> None:
        (tmp_path / "app.yaml").write_text("csrfly:\n  session:\n    ttl: 60\n")
        (tmp_path / "app-prod.yaml").write_text("csrfly:\n  session:\n    ttl: 600\n")
        config = Config.from_file(tmp_path / "app.yaml", active_profiles=["prod"], load_defaults=False)
        assert config.get("csrfly.session.ttl") == 600

    def test_missing_file_keeps_defaults(self, tmp_path: Path) -> None:
        config = Config.from_file(tmp_path / "absent.yaml")
        assert config.get("csrfly.session.cookie-name") == "CSRFLY_SESSION"


class TestBind:
    def test_bind_snake_and_kebab_keys(self) -> None:
        config = Config({"app": {"limits": {"max_items": 5, "strict": True, "tags": ["a"]}}})
        bound = config.bind(LimitsConfig)
        assert bound == LimitsConfig(max_items=5, strict=True, tags=["a"])

        config = Config({"app": {"limits": {"max-items": 7}}})
        assert config.bind(LimitsConfig).max_items == 7

    def test_bind_coerces_env_strings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CSRFLY_APP_LIMITS_MAX_ITEMS", "42")
        monkeypatch.setenv("CSRFLY_APP_LIMITS_RATIO", "0.25")
        monkeypatch.setenv("CSRFLY_APP_LIMITS_STRICT", "yes")
        monkeypatch.setenv("CSRFLY_APP_LIMITS_TAGS", "a, b")
        bound = Config({}).bind(LimitsConfig)
        assert bound.max_items == 42
        assert bound.ratio == 0.25
        assert bound.strict is True
        assert bound.tags == ["a", "b"]

    def test_bind_requires_decorator(self) -> None:
        @dataclass
        class Plain:
            x: int = 1

        with pytest.raises(ValueError):
            Config({}).bind(Plain)
