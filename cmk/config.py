"""Accumulate CMake build options, then configure and build a project."""
from __future__ import annotations

from dataclasses import dataclass, field
from os import PathLike, fspath
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple, Type
import os

from core.command_runner import CommandError, CommandRunner, SubprocessCommandRunner
from core.console import Console

from .directives import DirectiveWriter
from .environment import SYSTEM_NAME_VAR, TOOLCHAIN_FILE_VAR, BuildEnvironment
from .errors import BuildStepError, ConfigurationError, ConfigureError, StepError
from .targets import cmake_system_for


CMAKE = "cmake"
SYSTEM_PROCESSOR_VAR = "CMAKE_SYSTEM_PROCESSOR"
OUTPUT_DIRECTORY_VARS = (
    "CMAKE_ARCHIVE_OUTPUT_DIRECTORY",
    "CMAKE_RUNTIME_OUTPUT_DIRECTORY",
    "CMAKE_LIBRARY_OUTPUT_DIRECTORY",
)


def format_cmake_value(value: Any) -> str:
    if isinstance(value, bool):
        return "ON" if value else "OFF"
    if isinstance(value, PathLike):
        return fspath(value)
    return str(value)


@dataclass(slots=True)
class BuildStep:
    kind: str
    description: str
    command: List[str]
    env: Dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class BuildPlan:
    source_dir: Path
    bin_dir: Path
    lib_dir: Path
    definitions: List[Tuple[str, str]]
    steps: List[BuildStep]


_STEP_ERRORS: Dict[str, Type[StepError]] = {
    "configure": ConfigureError,
    "build": BuildStepError,
}


class BuildConfig:
    """Builder for a single configure-then-build run of a CMake project.

    Mutators return ``self`` so calls can be chained::

        lib_dir = BuildConfig("cpplib").set_profile("Release").define("BUILD_TESTING", False).build()
    """

    def __init__(self, source_path: str | PathLike[str]) -> None:
        self._source_path = Path(source_path)
        self._profile = ""
        self._generator: str | None = None
        self._definitions: List[Tuple[str, str]] = []
        self._cflags: List[str] = []
        self._cxxflags: List[str] = []
        self._defined_toolchain_file = False
        self._defined_system_name = False

    @property
    def source_path(self) -> Path:
        return self._source_path

    @property
    def profile(self) -> str:
        return self._profile

    @property
    def generator(self) -> str | None:
        return self._generator

    @property
    def definitions(self) -> Tuple[Tuple[str, str], ...]:
        return tuple(self._definitions)

    @property
    def compiler_flags(self) -> str:
        return " ".join(flag for flag in self._cflags if flag.strip())

    @property
    def cxx_compiler_flags(self) -> str:
        return " ".join(flag for flag in self._cxxflags if flag.strip())

    def saw_toolchain_file(self, environ: Mapping[str, str] | None = None) -> bool:
        """True once ``CMAKE_TOOLCHAIN_FILE`` was defined or is set in ``environ``.

        ``environ`` defaults to ``os.environ``; pass the mapping given to
        :meth:`plan` to ask about that run.
        """
        source = os.environ if environ is None else environ
        return self._defined_toolchain_file or TOOLCHAIN_FILE_VAR in source

    def saw_system_name(self, environ: Mapping[str, str] | None = None) -> bool:
        source = os.environ if environ is None else environ
        return self._defined_system_name or SYSTEM_NAME_VAR in source

    def set_generator(self, name: str) -> "BuildConfig":
        self._generator = name
        return self

    def set_profile(self, name: str) -> "BuildConfig":
        self._profile = name
        return self

    def define(self, key: str, value: Any) -> "BuildConfig":
        if key == TOOLCHAIN_FILE_VAR:
            self._defined_toolchain_file = True
        if key == SYSTEM_NAME_VAR:
            self._defined_system_name = True
        self._definitions.append((key, format_cmake_value(value)))
        return self

    def add_compiler_flag(self, flag: str) -> "BuildConfig":
        self._cflags.append(flag)
        return self

    def add_cxx_compiler_flag(self, flag: str) -> "BuildConfig":
        self._cxxflags.append(flag)
        return self

    def _declares_system_identity(self, environment: BuildEnvironment) -> bool:
        return (
            self._defined_toolchain_file
            or self._defined_system_name
            or environment.has_toolchain_file
            or environment.has_system_name
        )

    def _output_dirs(self, environment: BuildEnvironment) -> Tuple[Path, Path]:
        stem = self._source_path.stem
        if not stem or stem in {".", ".."}:
            raise ConfigurationError(
                f"Source path '{self._source_path}' has no final component to name its output directory"
            )
        root = environment.out_dir / stem
        return root / "bin", root / "lib"

    def _cross_definitions(self, environment: BuildEnvironment) -> List[Tuple[str, str]]:
        if not environment.is_cross or self._declares_system_identity(environment):
            return []
        os_name, arch = environment.target_os_arch()
        system_name, system_processor = cmake_system_for(os_name, arch)
        return [(SYSTEM_NAME_VAR, system_name), (SYSTEM_PROCESSOR_VAR, system_processor)]

    def _child_environment(self, environment: BuildEnvironment) -> Dict[str, str]:
        # CMake reads these from its environment; forward the values the
        # injection decision was made on.
        env: Dict[str, str] = {}
        if environment.toolchain_file is not None:
            env[TOOLCHAIN_FILE_VAR] = environment.toolchain_file
        if environment.system_name is not None:
            env[SYSTEM_NAME_VAR] = environment.system_name
        if self.compiler_flags:
            env["CFLAGS"] = self.compiler_flags
        if self.cxx_compiler_flags:
            env["CXXFLAGS"] = self.cxx_compiler_flags
        return env

    def plan(self, environ: Mapping[str, str] | None = None) -> BuildPlan:
        """Compute the configure and build commands without running them.

        ``environ`` defaults to ``os.environ``. Raises
        :class:`ConfigurationError` when a required value is missing.
        """
        environment = BuildEnvironment.from_mapping(environ)
        bin_dir, lib_dir = self._output_dirs(environment)
        definitions = [*self._definitions, *self._cross_definitions(environment)]
        env = self._child_environment(environment)

        configure: List[str] = [CMAKE]
        if self._generator:
            configure.extend(["-G", self._generator])
        for key, value in definitions:
            configure.extend(["-D", f"{key}={value}"])
        configure.extend(["-S", str(self._source_path), "-B", str(bin_dir)])
        for name in OUTPUT_DIRECTORY_VARS:
            configure.extend(["-D", f"{name}={lib_dir}"])
        if self._profile:
            configure.extend(["-D", f"CMAKE_BUILD_TYPE={self._profile}"])
        if "CFLAGS" in env:
            configure.extend(["-U", "CMAKE_C_FLAGS"])
        if "CXXFLAGS" in env:
            configure.extend(["-U", "CMAKE_CXX_FLAGS"])

        build: List[str] = [CMAKE, "--build", str(bin_dir), "--parallel"]
        if self._profile:
            build.extend(["--config", self._profile])

        steps = [
            BuildStep(kind="configure", description="Configure project", command=configure, env=dict(env)),
            BuildStep(kind="build", description="Build project", command=build, env=dict(env)),
        ]
        return BuildPlan(
            source_dir=self._source_path,
            bin_dir=bin_dir,
            lib_dir=lib_dir,
            definitions=definitions,
            steps=steps,
        )

    def build(
        self,
        environ: Mapping[str, str] | None = None,
        *,
        runner: CommandRunner | None = None,
        directives: DirectiveWriter | None = None,
        console: Console | None = None,
        announce: bool = False,
    ) -> Path:
        """Configure and build the project, then return the library directory.

        Each step runs exactly once; a failed configure step stops the run
        before the build step is spawned. Raises :class:`ConfigurationError`
        or a :class:`StepError` subclass.
        """
        plan = self.plan(environ)
        runner = runner or SubprocessCommandRunner()
        directives = directives or DirectiveWriter()
        console = console or Console()

        for step in plan.steps:
            self._run_step(step, runner=runner, directives=directives, console=console, announce=announce)

        directives.link_search(plan.lib_dir)
        return plan.lib_dir

    @staticmethod
    def _run_step(
        step: BuildStep,
        *,
        runner: CommandRunner,
        directives: DirectiveWriter,
        console: Console,
        announce: bool,
    ) -> None:
        formatted = runner.format_command(step.command)
        console.info(f"{step.description}: {formatted}")
        if step.env:
            console.debug(f"Child environment overrides: {step.env}")
        if announce:
            directives.warning(formatted)

        error_type = _STEP_ERRORS[step.kind]
        try:
            runner.run(step.command, env=step.env, note=step.description)
        except CommandError as exc:
            raise error_type(step.command, returncode=exc.returncode) from exc
        except OSError as exc:
            raise error_type(step.command, reason=exc.strerror or str(exc)) from exc


__all__ = ["BuildConfig", "BuildPlan", "BuildStep", "format_cmake_value"]
