"""Map a Rust-style target (os, arch) onto CMake's system name and processor."""
from __future__ import annotations

from typing import Dict, Tuple


# Exact (os, arch) pairs whose processor name differs from the Rust arch.
EXACT_SYSTEMS: Dict[Tuple[str, str], Tuple[str, str]] = {
    ("android", "arm"): ("Android", "armv7-a"),
    ("android", "x86"): ("Android", "i686"),
    ("macos", "aarch64"): ("Darwin", "arm64"),
    ("freebsd", "x86_64"): ("FreeBSD", "amd64"),
    ("ios", "aarch64"): ("iOS", "arm64"),
    ("linux", "powerpc"): ("Linux", "ppc"),
    ("linux", "powerpc64"): ("Linux", "ppc64"),
    ("linux", "powerpc64le"): ("Linux", "ppc64le"),
    ("openbsd", "x86_64"): ("OpenBSD", "amd64"),
    ("tvos", "aarch64"): ("tvOS", "arm64"),
    ("visionos", "aarch64"): ("visionOS", "arm64"),
    ("watchos", "aarch64"): ("watchOS", "arm64"),
    ("windows", "x86_64"): ("Windows", "AMD64"),
    ("windows", "x86"): ("Windows", "X86"),
    ("windows", "aarch64"): ("Windows", "ARM64"),
    ("emscripten", "wasm32"): ("Emscripten", "x86"),
}

# Operating systems whose arch passes through as the processor.
SYSTEM_NAMES: Dict[str, str] = {
    "android": "Android",
    "dragonfly": "DragonFly",
    "macos": "Darwin",
    "freebsd": "FreeBSD",
    "fuchsia": "Fuchsia",
    "haiku": "Haiku",
    "ios": "iOS",
    "linux": "Linux",
    "netbsd": "NetBSD",
    "openbsd": "OpenBSD",
    "solaris": "SunOS",
    "tvos": "tvOS",
    "visionos": "visionOS",
    "watchos": "watchOS",
    "none": "Generic",
}


def cmake_system_for(os_name: str, arch: str) -> Tuple[str, str]:
    """Return ``(CMAKE_SYSTEM_NAME, CMAKE_SYSTEM_PROCESSOR)`` for a target.

    Unknown pairs are returned unchanged.
    """
    exact = EXACT_SYSTEMS.get((os_name, arch))
    if exact is not None:
        return exact
    system_name = SYSTEM_NAMES.get(os_name)
    if system_name is not None:
        return system_name, arch
    return os_name, arch


_ARCH_ALIASES: Dict[str, str] = {
    "i386": "x86",
    "i586": "x86",
    "i686": "x86",
    "arm64": "aarch64",
    "arm64e": "aarch64",
}

_ARCH_PREFIXES: Tuple[Tuple[str, str], ...] = (
    ("armv", "arm"),
    ("armeb", "arm"),
    ("thumbv", "arm"),
    ("riscv64", "riscv64"),
    ("riscv32", "riscv32"),
)

# Checked in order: "androideabi" triples also carry a "linux" component.
_OS_COMPONENTS: Tuple[Tuple[str, str], ...] = (
    ("android", "android"),
    ("androideabi", "android"),
    ("darwin", "macos"),
    ("ios", "ios"),
    ("tvos", "tvos"),
    ("watchos", "watchos"),
    ("visionos", "visionos"),
    ("windows", "windows"),
    ("emscripten", "emscripten"),
    ("freebsd", "freebsd"),
    ("netbsd", "netbsd"),
    ("openbsd", "openbsd"),
    ("dragonfly", "dragonfly"),
    ("fuchsia", "fuchsia"),
    ("haiku", "haiku"),
    ("solaris", "solaris"),
    ("linux", "linux"),
    ("none", "none"),
)


def _normalize_arch(raw: str) -> str:
    alias = _ARCH_ALIASES.get(raw)
    if alias is not None:
        return alias
    for prefix, arch in _ARCH_PREFIXES:
        if raw.startswith(prefix):
            return arch
    return raw


def triple_arch(triple: str) -> str | None:
    """Return the Cargo-style architecture named by the first component of ``triple``."""
    parts = [part for part in triple.strip().lower().split("-") if part]
    return _normalize_arch(parts[0]) if parts else None


def split_target_triple(triple: str) -> Tuple[str, str] | None:
    """Derive Cargo-style ``(target_os, target_arch)`` names from ``triple``.

    Returns ``None`` when the triple names no recognised operating system.
    """
    parts = [part for part in triple.strip().lower().split("-") if part]
    if len(parts) < 2:
        return None
    arch = _normalize_arch(parts[0])
    components = set(parts[1:])
    for component, os_name in _OS_COMPONENTS:
        if component in components:
            return os_name, arch
    return None


__all__ = ["EXACT_SYSTEMS", "SYSTEM_NAMES", "cmake_system_for", "split_target_triple", "triple_arch"]
