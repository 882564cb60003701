"""Snapshot of the build-script environment that drives a CMake build."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping
import os

from .errors import ConfigurationError
from .targets import split_target_triple, triple_arch


TARGET_VAR = "TARGET"
HOST_VAR = "HOST"
OUT_DIR_VAR = "OUT_DIR"
TARGET_OS_VAR = "CARGO_CFG_TARGET_OS"
TARGET_ARCH_VAR = "CARGO_CFG_TARGET_ARCH"
TOOLCHAIN_FILE_VAR = "CMAKE_TOOLCHAIN_FILE"
SYSTEM_NAME_VAR = "CMAKE_SYSTEM_NAME"


def _require(env: Mapping[str, str], name: str) -> str:
    value = env.get(name)
    if value is None or not value.strip():
        raise ConfigurationError(f"Environment variable {name} is not defined")
    return value


@dataclass(frozen=True, slots=True)
class BuildEnvironment:
    target: str
    host: str
    out_dir: Path
    target_os: str | None = None
    target_arch: str | None = None
    toolchain_file: str | None = None
    system_name: str | None = None

    @classmethod
    def from_mapping(cls, env: Mapping[str, str] | None = None) -> "BuildEnvironment":
        """Read the build environment from ``env`` (defaults to ``os.environ``).

        Raises :class:`ConfigurationError` when the target, host or output
        directory is missing.
        """
        source = os.environ if env is None else env
        return cls(
            target=_require(source, TARGET_VAR),
            host=_require(source, HOST_VAR),
            out_dir=Path(_require(source, OUT_DIR_VAR)),
            target_os=source.get(TARGET_OS_VAR) or None,
            target_arch=source.get(TARGET_ARCH_VAR) or None,
            toolchain_file=source.get(TOOLCHAIN_FILE_VAR),
            system_name=source.get(SYSTEM_NAME_VAR),
        )

    @property
    def is_cross(self) -> bool:
        return self.target != self.host

    @property
    def has_toolchain_file(self) -> bool:
        return self.toolchain_file is not None

    @property
    def has_system_name(self) -> bool:
        return self.system_name is not None

    def target_os_arch(self) -> tuple[str, str]:
        """Return the target's ``(os, arch)``, falling back to the target triple.

        Each half is taken from its ``CARGO_CFG_TARGET_*`` variable when set and
        derived from the triple otherwise.
        """
        os_name, arch = self.target_os, self.target_arch
        if not (os_name and arch):
            derived = split_target_triple(self.target)
            if derived is not None:
                os_name = os_name or derived[0]
                arch = arch or derived[1]
            arch = arch or triple_arch(self.target)
        if not os_name:
            raise ConfigurationError(
                f"Cannot determine target OS for '{self.target}'; set {TARGET_OS_VAR}"
            )
        if not arch:
            raise ConfigurationError(
                f"Cannot determine target architecture for '{self.target}'; set {TARGET_ARCH_VAR}"
            )
        return os_name, arch


__all__ = [
    "BuildEnvironment",
    "HOST_VAR",
    "OUT_DIR_VAR",
    "SYSTEM_NAME_VAR",
    "TARGET_ARCH_VAR",
    "TARGET_OS_VAR",
    "TARGET_VAR",
    "TOOLCHAIN_FILE_VAR",
]
