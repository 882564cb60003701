from __future__ import annotations

from types import SimpleNamespace
import os
import unittest
from unittest.mock import patch

from core.command_runner import (
    CommandError,
    RecordingCommandRunner,
    SubprocessCommandRunner,
    format_command,
)


class SubprocessCommandRunnerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.runner = SubprocessCommandRunner()

    def test_child_environment_layers_overrides(self) -> None:
        with patch.dict(os.environ, {"PATH": "/usr/bin", "CFLAGS": "-O0"}):
            merged = self.runner.child_environment({"CFLAGS": "-O2"})
            self.assertEqual(merged["PATH"], "/usr/bin")
            self.assertEqual(merged["CFLAGS"], "-O2")
            self.assertEqual(os.environ["CFLAGS"], "-O0")

    def test_child_environment_inherits_without_overrides(self) -> None:
        self.assertIsNone(self.runner.child_environment(None))
        self.assertIsNone(self.runner.child_environment({}))

    @patch("core.command_runner.subprocess.run")
    def test_run_streams_and_passes_environment(self, mock_run) -> None:
        mock_run.return_value = SimpleNamespace(returncode=0)
        result = self.runner.run(["cmake", "--version"], env={"CXXFLAGS": "-g"})

        self.assertTrue(result.streamed)
        args, kwargs = mock_run.call_args
        self.assertEqual(args[0], ["cmake", "--version"])
        self.assertEqual(kwargs["env"]["CXXFLAGS"], "-g")
        self.assertNotIn("capture_output", kwargs)

    @patch("core.command_runner.subprocess.run")
    def test_run_captures_output(self, mock_run) -> None:
        mock_run.return_value = SimpleNamespace(returncode=0, stdout="cmake version 3.28\n", stderr="")
        result = self.runner.run(["cmake", "--version"], stream=False)

        self.assertEqual(result.stdout, "cmake version 3.28\n")
        self.assertTrue(mock_run.call_args.kwargs["capture_output"])
        self.assertIsNone(mock_run.call_args.kwargs["env"])

    @patch("core.command_runner.subprocess.run")
    def test_non_zero_exit_raises(self, mock_run) -> None:
        mock_run.return_value = SimpleNamespace(returncode=3)
        with self.assertRaises(CommandError) as ctx:
            self.runner.run(["cmake", "--build", "out"])
        self.assertEqual(ctx.exception.returncode, 3)
        self.assertIn("exit code 3", str(ctx.exception))

    @patch("core.command_runner.subprocess.run")
    def test_non_zero_exit_without_check(self, mock_run) -> None:
        mock_run.return_value = SimpleNamespace(returncode=3)
        result = self.runner.run(["cmake"], check=False)
        self.assertEqual(result.returncode, 3)

    @patch("core.command_runner.subprocess.run", side_effect=FileNotFoundError(2, "No such file or directory"))
    def test_spawn_failure_propagates(self, _mock_run) -> None:
        with self.assertRaises(FileNotFoundError):
            self.runner.run(["cmake"])


class RecordingCommandRunnerTests(unittest.TestCase):
    def test_records_commands(self) -> None:
        runner = RecordingCommandRunner()
        runner.run(["cmake", "-S", "src dir"], env={"CFLAGS": "-O2 -g"}, note="Configure project")

        self.assertEqual(len(runner.commands), 1)
        record = runner.commands[0]
        self.assertEqual(record.command, ["cmake", "-S", "src dir"])
        self.assertEqual(record.env, {"CFLAGS": "-O2 -g"})
        self.assertEqual(
            list(runner.iter_formatted()),
            ["[dry-run] Configure project CFLAGS='-O2 -g' cmake -S 'src dir'"],
        )

    def test_scripted_returncodes(self) -> None:
        runner = RecordingCommandRunner(returncodes=[0, 5])
        runner.run(["first"])
        with self.assertRaises(CommandError):
            runner.run(["second"])
        self.assertEqual(runner.run(["third"]).returncode, 0)
        self.assertEqual([record.returncode for record in runner.commands], [0, 5, 0])

    def test_format_command_quotes(self) -> None:
        self.assertEqual(format_command(["cmake", "-D", "NAME=a b"]), "cmake -D 'NAME=a b'")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
