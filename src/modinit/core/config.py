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
"""Type-safe configuration with YAML/TOML files, env vars, and dataclass binding."""

from __future__ import annotations

import dataclasses
import importlib.resources
import os
import re
import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar, cast, get_type_hints

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ValidationError

T = TypeVar("T")

_PLACEHOLDER_RE = re.compile(r"\$\{([^}]+)\}")

_CONFIG_PROPERTIES_ATTR = "__modinit_config_prefix__"


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Mark a class as bindable to a configuration prefix.

    Works with both dataclasses and Pydantic BaseModel subclasses. Pydantic
    models are validated with model_validate(), so a bad value fails the
    build before any source is scanned.

    Usage:
        @config_properties(prefix="modinit.logging")
        @dataclass
        class LoggingProperties:
            format: str = "console"
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _CONFIG_PROPERTIES_ATTR, prefix)
        return cls

    return decorator


class Config:
    """Hierarchical configuration with dot-notation access and env var overrides.

    Priority (highest wins):
    1. Environment variables (MODINIT_SECTION_KEY format)
    2. Configuration dict / YAML / TOML file values
    3. Packaged defaults
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}
        self._loaded_sources: list[str] = []

    @property
    def loaded_sources(self) -> list[str]:
        """List of config file paths that were loaded, in merge order."""
        return list(self._loaded_sources)

    def to_dict(self) -> dict[str, Any]:
        """Return a shallow copy of the raw configuration data."""
        return dict(self._data)

    @classmethod
    def from_sources(
        cls,
        base_dir: str | Path,
        active_profiles: list[str] | None = None,
        load_defaults: bool = True,
    ) -> Config:
        """Load and merge config from multiple sources.

        Merge order (later wins):
        1. Packaged defaults (modinit-defaults.yaml)
        2. [tool.modinit] in pyproject.toml
        3. config/modinit.yaml or config/modinit.toml
        4. modinit.yaml or modinit.toml (project root)
        5. Profile overlays: config/modinit-{profile}.yaml, modinit-{profile}.yaml
        6. Environment variables (handled at read time in get())
        """
        base_dir = Path(base_dir)
        data: dict[str, Any] = {}
        sources: list[str] = []

        if load_defaults:
            data = cls._load_defaults()
            sources.append("modinit-defaults.yaml (defaults)")

        pyproject = base_dir / "pyproject.toml"
        if pyproject.is_file():
            tool_data = cls._load_config_data(pyproject)
            if tool_data["modinit"]:
                data = cls._deep_merge(data, tool_data)
                sources.append(f"{pyproject} [tool.modinit]")

        for search_dir in (base_dir / "config", base_dir):
            for ext in (".yaml", ".toml"):
                candidate = search_dir / f"modinit{ext}"
                if candidate.is_file():
                    data = cls._deep_merge(data, cls._load_config_data(candidate))
                    sources.append(str(candidate))

        for profile in active_profiles or []:
            for search_dir in (base_dir / "config", base_dir):
                for ext in (".yaml", ".toml"):
                    candidate = search_dir / f"modinit-{profile}{ext}"
                    if candidate.is_file():
                        data = cls._deep_merge(data, cls._load_config_data(candidate))
                        sources.append(f"{candidate} (profile: {profile})")

        instance = cls(data)
        instance._loaded_sources = sources
        return instance

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        active_profiles: list[str] | None = None,
        load_defaults: bool = True,
    ) -> Config:
        """Load configuration from a single YAML or TOML file.

        Files following the modinit naming convention (modinit.yaml,
        modinit-dev.toml, ...) are delegated to :meth:`from_sources` so the
        config/ directory and profile overlays are honoured too.
        """
        path = Path(path)

        if path.stem == "modinit" or path.stem.startswith("modinit-"):
            return cls.from_sources(
                base_dir=path.parent,
                active_profiles=active_profiles,
                load_defaults=load_defaults,
            )

        data: dict[str, Any] = {}
        sources: list[str] = []

        if load_defaults:
            data = cls._load_defaults()
            sources.append("modinit-defaults.yaml (defaults)")

        if path.exists():
            data = cls._deep_merge(data, cls._load_config_data(path))
            sources.append(str(path))

            for profile in active_profiles or []:
                profile_path = path.parent / f"{path.stem}-{profile}{path.suffix}"
                if profile_path.exists():
                    data = cls._deep_merge(data, cls._load_config_data(profile_path))
                    sources.append(f"{profile_path} (profile: {profile})")

        instance = cls(data)
        instance._loaded_sources = sources
        return instance

    @staticmethod
    def _load_config_data(path: Path) -> dict[str, Any]:
        """Load config data from a YAML or TOML file.

        A pyproject.toml contributes only its ``[tool.modinit]`` table.
        """
        if path.suffix == ".toml":
            with open(path, "rb") as f:
                data = tomllib.load(f) or {}
            if path.name == "pyproject.toml":
                return {"modinit": data.get("tool", {}).get("modinit", {})}
            return data
        with open(path) as f:
            return yaml.safe_load(f) or {}

    @staticmethod
    def _load_defaults() -> dict[str, Any]:
        """Load the packaged defaults from modinit.resources."""
        defaults_file = importlib.resources.files("modinit.resources").joinpath("modinit-defaults.yaml")
        with importlib.resources.as_file(defaults_file) as p, open(p) as f:
            return yaml.safe_load(f) or {}

    @staticmethod
    def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Recursively merge override into base, with override values winning."""
        merged = dict(base)
        for key, value in override.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = Config._deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dot-notation key, checking env vars first.

        String values containing ``${...}`` placeholders are resolved:
        - ``${ENV_VAR}`` — resolved from environment variables
        - ``${config.key}`` — resolved from other config values
        - ``${key:default}`` — uses default if key/env not found
        """
        env_val = os.environ.get(self._env_key(key))
        if env_val is not None:
            return env_val

        parts = key.split(".")
        current: Any = self._data
        for part in parts:
            if isinstance(current, dict):
                current = current.get(part)
                if current is None:
                    return default
            else:
                return default

        if isinstance(current, str) and "${" in current:
            return self._resolve_placeholders(current)

        return current

    @staticmethod
    def _env_key(key: str) -> str:
        # modinit.generator.output_module -> MODINIT_GENERATOR_OUTPUT_MODULE
        env_base = key.removeprefix("modinit.")
        return "MODINIT_" + env_base.upper().replace(".", "_").replace("-", "_")

    def _resolve_placeholders(self, value: str, _depth: int = 0) -> str:
        """Resolve ``${...}`` placeholders in a string value.

        Guards against circular references with a max recursion depth.
        """
        if _depth > 10:
            raise ValueError(
                f"Max recursion depth exceeded resolving placeholders in '{value}'. Check for circular references."
            )

        def _replace(match: re.Match[str]) -> str:
            inner = match.group(1)

            if ":" in inner:
                ref_key, default_val = inner.split(":", 1)
            else:
                ref_key, default_val = inner, None

            env_val = os.environ.get(ref_key)
            if env_val is not None:
                return env_val

            current: Any = self._data
            for part in ref_key.split("."):
                if isinstance(current, dict):
                    current = current.get(part)
                    if current is None:
                        break
                else:
                    current = None
                    break

            if current is not None:
                resolved = str(current)
                if "${" in resolved:
                    resolved = self._resolve_placeholders(resolved, _depth + 1)
                return resolved

            if default_val is not None:
                return cast(str, default_val)

            raise ValueError(f"Cannot resolve placeholder '${{{inner}}}': not found in environment or config")

        return _PLACEHOLDER_RE.sub(_replace, value)

    def _resolve_values(self, value: Any) -> Any:
        """Resolve ``${...}`` placeholders in every string nested inside *value*."""
        if isinstance(value, str) and "${" in value:
            return self._resolve_placeholders(value)
        if isinstance(value, dict):
            return {key: self._resolve_values(item) for key, item in value.items()}
        if isinstance(value, list):
            return [self._resolve_values(item) for item in value]
        return value

    def get_section(self, prefix: str) -> dict[str, Any]:
        """Get all values under a prefix as a dict."""
        current: Any = self._data
        for part in prefix.split("."):
            if isinstance(current, dict):
                current = current.get(part, {})
            else:
                return {}
        return current if isinstance(current, dict) else {}

    def bind(self, config_cls: type[T]) -> T:
        """Bind configuration to a @config_properties dataclass or Pydantic model.

        Environment overrides for the section's own keys are applied on top
        of the file values, so ``MODINIT_GENERATOR_ENABLED=false`` works for
        bound properties as it does for :meth:`get`. String values have their
        ``${...}`` placeholders resolved before validation.
        """
        prefix = getattr(config_cls, _CONFIG_PROPERTIES_ATTR, None)
        if prefix is None:
            raise ValueError(f"{config_cls.__name__} is not decorated with @config_properties")

        section = dict(self.get_section(prefix))

        if isinstance(config_cls, type) and issubclass(config_cls, BaseModel):
            for name in config_cls.model_fields:
                env_val = os.environ.get(self._env_key(f"{prefix}.{name}"))
                if env_val is not None:
                    section[name] = env_val
            section = self._resolve_values(section)
            try:
                return config_cls.model_validate(section)
            except ValidationError as exc:
                raise ValueError(
                    f"Configuration validation failed for '{config_cls.__name__}' (prefix='{prefix}'):\n{exc}"
                ) from exc

        hints = get_type_hints(config_cls)
        kwargs: dict[str, Any] = {}
        for field in dataclasses.fields(config_cls):  # type: ignore[arg-type]
            env_val = os.environ.get(self._env_key(f"{prefix}.{field.name}"))
            if env_val is not None:
                section[field.name] = env_val
            if field.name in section:
                value = self._resolve_values(section[field.name])
                expected_type = hints.get(field.name)
                if expected_type is int and isinstance(value, str):
                    value = int(value)
                elif expected_type is float and isinstance(value, str):
                    value = float(value)
                elif expected_type is bool and isinstance(value, str):
                    value = value.lower() in ("true", "1", "yes")
                kwargs[field.name] = value

        return config_cls(**kwargs)
