"""Command line interface for cmk."""
from __future__ import annotations

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Iterable, List, Tuple
import shlex
import sys

from core.command_runner import RecordingCommandRunner, SubprocessCommandRunner
from core.console import Console

from .directives import DirectiveWriter
from .errors import ConfigurationError, StepError
from .settings import BuildSettings, load_build_settings
from .targets import cmake_system_for, split_target_triple


def _make_runner(dry_run: bool) -> SubprocessCommandRunner | RecordingCommandRunner:
    return RecordingCommandRunner() if dry_run else SubprocessCommandRunner()


def _parse_definitions(values: Iterable[str]) -> List[Tuple[str, str]]:
    definitions: List[Tuple[str, str]] = []
    for raw in values:
        key, sep, value = raw.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ConfigurationError(f"Invalid definition '{raw}'; expected KEY=VALUE")
        definitions.append((key, value))
    return definitions


def _split_flags(values: Iterable[str]) -> List[str]:
    flags: List[str] = []
    for raw in values:
        try:
            flags.extend(shlex.split(raw))
        except ValueError as exc:
            raise ConfigurationError(f"Invalid compiler flags '{raw}': {exc}") from exc
    return flags


def _emit_dry_run_output(runner: RecordingCommandRunner) -> None:
    for line in runner.iter_formatted():
        print(line, file=sys.stderr)


def _parse_arguments(argv: Iterable[str]) -> Namespace:
    parser = ArgumentParser(prog="cmk", description="Configure and build a CMake project from a build script")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser("build", help="Configure and build a CMake project")
    build_parser.add_argument("source", nargs="?", help="Path to the CMake source directory")
    build_parser.add_argument("-f", "--file", dest="settings_file", help="Build settings file (TOML, YAML or JSON)")
    build_parser.add_argument("-P", "--profile", help="Build profile, e.g. Release or Debug")
    build_parser.add_argument("-G", "--generator", help="CMake generator to use")
    build_parser.add_argument(
        "-D",
        dest="definitions",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Add a CMake cache definition (repeatable, order preserved)",
    )
    build_parser.add_argument(
        "--cflag",
        dest="cflags",
        action="append",
        default=[],
        metavar="FLAGS",
        help="Add C compiler flags; write --cflag=-O2 or quote several, e.g. --cflag \"-O2 -g\"",
    )
    build_parser.add_argument(
        "--cxxflag",
        dest="cxxflags",
        action="append",
        default=[],
        metavar="FLAGS",
        help="Add C++ compiler flags; same forms as --cflag",
    )
    build_parser.add_argument(
        "-l",
        "--link-lib",
        dest="link_libs",
        action="append",
        default=[],
        metavar="NAME",
        help="Library to link against once the build succeeds",
    )
    build_parser.add_argument("-n", "--dry-run", action="store_true", help="Print commands without executing them")
    build_parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")

    targets_parser = subparsers.add_parser("targets", help="Show the CMake system name and processor for a target")
    targets_parser.add_argument("os", nargs="?", help="Target operating system (e.g. linux, macos)")
    targets_parser.add_argument("arch", nargs="?", help="Target architecture (e.g. aarch64)")
    targets_parser.add_argument("--triple", help="Derive OS and architecture from a target triple")

    return parser.parse_args(list(argv))


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_arguments(sys.argv[1:] if argv is None else argv)

    if args.command == "build":
        return _handle_build(args)
    if args.command == "targets":
        return _handle_targets(args)
    raise ValueError(f"Unknown command: {args.command}")


def _resolve_settings(args: Namespace) -> BuildSettings:
    if args.settings_file:
        settings = load_build_settings(Path(args.settings_file))
        if args.source:
            settings.source = Path(args.source)
    elif args.source:
        settings = BuildSettings(source=Path(args.source))
    else:
        raise ConfigurationError("A source directory or --file is required")

    if args.profile:
        settings.profile = args.profile
    if args.generator:
        settings.generator = args.generator
    settings.definitions.extend(_parse_definitions(args.definitions))
    settings.cflags.extend(_split_flags(args.cflags))
    settings.cxxflags.extend(_split_flags(args.cxxflags))
    settings.link_libs.extend(args.link_libs)
    return settings


def _handle_build(args: Namespace) -> int:
    console = Console("debug" if args.verbose else "error")
    directives = DirectiveWriter()
    runner = _make_runner(args.dry_run)

    try:
        settings = _resolve_settings(args)
        config = settings.to_config()
        lib_dir = config.build(
            runner=runner,
            directives=directives,
            console=console,
            announce=args.verbose,
        )
    except ConfigurationError as exc:
        console.error(str(exc))
        return 2
    except StepError as exc:
        console.error(str(exc))
        return 1
    finally:
        if isinstance(runner, RecordingCommandRunner):
            _emit_dry_run_output(runner)

    for name in settings.link_libs:
        directives.link_lib(name)
    console.info(f"Libraries available in {lib_dir}")
    return 0


def _handle_targets(args: Namespace) -> int:
    if args.triple:
        derived = split_target_triple(args.triple)
        if derived is None:
            print(f"Error: cannot determine OS/architecture for '{args.triple}'", file=sys.stderr)
            return 2
        os_name, arch = derived
    elif args.os and args.arch:
        os_name, arch = args.os, args.arch
    else:
        print("Error: provide OS and ARCH, or --triple", file=sys.stderr)
        return 2

    system_name, processor = cmake_system_for(os_name, arch)
    print(f"CMAKE_SYSTEM_NAME={system_name}")
    print(f"CMAKE_SYSTEM_PROCESSOR={processor}")
    return 0


__all__ = ["main"]
