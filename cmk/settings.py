"""Load build options for :class:`BuildConfig` from TOML, YAML or JSON files.

A settings file carries a single ``build`` table::

    [build]
    source = "cpplib"
    profile = "Release"
    generator = "Ninja"
    cflags = ["-fPIC"]
    link_libs = ["cpplib"]

    [build.definitions]
    BUILD_TESTING = false
    CMAKE_TOOLCHAIN_FILE = "{{env.EMSDK}}/upstream/emscripten/cmake/Modules/Platform/Emscripten.cmake"

``source`` is resolved relative to the settings file. String values may
reference environment variables as ``{{env.NAME}}``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping
import os
import re

import yaml

from core.config_loader import load_config_file, normalize_string_list

from .config import BuildConfig
from .errors import SettingsError


_PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([^{}]+?)\s*\}\}")

_ALLOWED_KEYS = {
    "source",
    "profile",
    "generator",
    "definitions",
    "cflags",
    "cxxflags",
    "link_libs",
}


@dataclass(slots=True)
class BuildSettings:
    source: Path
    profile: str = ""
    generator: str | None = None
    definitions: List[tuple[str, Any]] = field(default_factory=list)
    cflags: List[str] = field(default_factory=list)
    cxxflags: List[str] = field(default_factory=list)
    link_libs: List[str] = field(default_factory=list)

    def to_config(self) -> BuildConfig:
        config = BuildConfig(self.source)
        if self.profile:
            config.set_profile(self.profile)
        if self.generator:
            config.set_generator(self.generator)
        for key, value in self.definitions:
            config.define(key, value)
        for flag in self.cflags:
            config.add_compiler_flag(flag)
        for flag in self.cxxflags:
            config.add_cxx_compiler_flag(flag)
        return config


class _Substituter:
    def __init__(self, environ: Mapping[str, str], origin: Path) -> None:
        self._environ = environ
        self._origin = origin

    def resolve(self, value: Any, *, field_name: str) -> Any:
        if isinstance(value, str):
            return _PLACEHOLDER_PATTERN.sub(lambda match: self._lookup(match.group(1), field_name), value)
        if isinstance(value, list):
            return [self.resolve(item, field_name=field_name) for item in value]
        if isinstance(value, Mapping):
            return {key: self.resolve(item, field_name=f"{field_name}.{key}") for key, item in value.items()}
        return value

    def _lookup(self, path: str, field_name: str) -> str:
        namespace, _, name = path.partition(".")
        if namespace != "env" or not name:
            raise SettingsError(
                f"{self._origin}: unsupported placeholder '{{{{{path}}}}}' in {field_name}; use {{{{env.NAME}}}}"
            )
        if name not in self._environ:
            raise SettingsError(f"{self._origin}: environment variable {name} referenced by {field_name} is not set")
        return self._environ[name]


def _optional_string(section: Mapping[str, Any], key: str, origin: Path) -> str | None:
    value = section.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise SettingsError(f"{origin}: build.{key} must be a string")
    return value.strip() or None


def parse_build_settings(
    data: Mapping[str, Any],
    *,
    origin: Path,
    environ: Mapping[str, str] | None = None,
) -> BuildSettings:
    """Interpret the ``build`` table of a decoded settings mapping."""
    section = data.get("build")
    if not isinstance(section, Mapping):
        raise SettingsError(f"{origin}: missing [build] table")

    unknown = {str(key) for key in section if str(key) not in _ALLOWED_KEYS}
    if unknown:
        raise SettingsError(f"{origin}: build table contains unknown keys: {', '.join(sorted(unknown))}")

    substituter = _Substituter(os.environ if environ is None else environ, origin)
    resolved = {key: substituter.resolve(value, field_name=f"build.{key}") for key, value in section.items()}

    source = _optional_string(resolved, "source", origin)
    if source is None:
        raise SettingsError(f"{origin}: build.source is required")
    source_path = Path(source).expanduser()
    if not source_path.is_absolute():
        source_path = origin.parent / source_path

    definitions_section = resolved.get("definitions", {})
    if not isinstance(definitions_section, Mapping):
        raise SettingsError(f"{origin}: build.definitions must be a table")
    definitions: List[tuple[str, Any]] = []
    for key, value in definitions_section.items():
        if isinstance(value, (Mapping, list)):
            raise SettingsError(f"{origin}: definition {key} must be a scalar value")
        definitions.append((str(key), value))

    try:
        cflags = normalize_string_list(resolved.get("cflags"), field_name="build.cflags")
        cxxflags = normalize_string_list(resolved.get("cxxflags"), field_name="build.cxxflags")
        link_libs = normalize_string_list(resolved.get("link_libs"), field_name="build.link_libs")
    except TypeError as exc:
        raise SettingsError(f"{origin}: {exc}") from exc

    return BuildSettings(
        source=source_path,
        profile=_optional_string(resolved, "profile", origin) or "",
        generator=_optional_string(resolved, "generator", origin),
        definitions=definitions,
        cflags=cflags,
        cxxflags=cxxflags,
        link_libs=link_libs,
    )


def load_build_settings(path: Path, environ: Mapping[str, str] | None = None) -> BuildSettings:
    try:
        data = load_config_file(path)
    except OSError as exc:
        raise SettingsError(f"Cannot read settings file {path}: {exc.strerror or exc}") from exc
    except (ValueError, TypeError, yaml.YAMLError) as exc:
        raise SettingsError(f"Invalid settings file {path}: {exc}") from exc
    return parse_build_settings(data, origin=path, environ=environ)


__all__ = ["BuildSettings", "load_build_settings", "parse_build_settings"]
