"""Configure and build CMake projects from a dependent project's build script."""
from __future__ import annotations

from .config import BuildConfig, BuildPlan, BuildStep
from .directives import DirectiveWriter
from .environment import BuildEnvironment
from .errors import (
    BuildStepError,
    CmkError,
    ConfigurationError,
    ConfigureError,
    SettingsError,
    StepError,
)
from .targets import cmake_system_for, split_target_triple

__all__ = [
    "BuildConfig",
    "BuildEnvironment",
    "BuildPlan",
    "BuildStep",
    "BuildStepError",
    "CmkError",
    "ConfigurationError",
    "ConfigureError",
    "DirectiveWriter",
    "SettingsError",
    "StepError",
    "cmake_system_for",
    "split_target_triple",
]
