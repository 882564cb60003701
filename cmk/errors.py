"""Exception types raised while configuring and building a CMake project."""
from __future__ import annotations

from typing import Sequence

from core.command_runner import format_command


class CmkError(Exception):
    """Base class for all cmk failures."""


class ConfigurationError(CmkError):
    """A required environment value or build option is missing or invalid."""


class SettingsError(ConfigurationError):
    """A build settings file could not be interpreted."""


class StepError(CmkError):
    """An external CMake invocation could not be spawned or exited non-zero.

    ``returncode`` is ``None`` when the process never started; the
    originating :class:`OSError` is then chained as ``__cause__``.
    """

    step = "CMake step"

    def __init__(
        self,
        command: Sequence[str],
        *,
        returncode: int | None = None,
        reason: str | None = None,
    ) -> None:
        self.command = list(command)
        self.returncode = returncode
        self.reason = reason
        if returncode is not None:
            detail = f"exited with status {returncode}"
        else:
            detail = f"could not be started: {reason or 'unknown error'}"
        super().__init__(f"{self.step} {detail}: {format_command(self.command)}")


class ConfigureError(StepError):
    step = "CMake configure step"


class BuildStepError(StepError):
    step = "CMake build step"


__all__ = [
    "BuildStepError",
    "CmkError",
    "ConfigurationError",
    "ConfigureError",
    "SettingsError",
    "StepError",
]
