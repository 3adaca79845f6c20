"""
Unit tests for the mirrored build runner.

The build commands are small Python one-liners run with the current
interpreter; the host components are mocks or run against the in-memory
remote service.
"""

import io
import sys
from unittest.mock import Mock

import pytest

from tfsmirror.host import BuildNotifier, BuildWrapper
from tfsmirror.models import BuildResult, LocalResult
from tfsmirror.orchestration import BuildRunner, result_for_exit_code


def python_command(code):
    return [sys.executable, "-c", code]


def passthrough_wrapper():
    wrapper = Mock(spec=BuildWrapper)
    wrapper.decorate_output.side_effect = lambda local_build, stream, close_delegate=True: stream
    return wrapper


@pytest.mark.unit
class TestResultForExitCode:
    """Test cases for mapping exit codes to local outcomes."""

    @pytest.mark.parametrize(
        "return_code,expected",
        [
            (0, LocalResult.SUCCESS),
            (1, LocalResult.FAILURE),
            (2, LocalResult.FAILURE),
            (130, LocalResult.ABORTED),
            (-15, LocalResult.ABORTED),
        ],
    )
    def test_mapping(self, return_code, expected):
        """Test the outcome for typical exit codes."""
        assert result_for_exit_code(return_code) == expected


@pytest.mark.unit
class TestBuildRunner:
    """Test cases for running a build command."""

    def test_successful_build(self, local_build):
        """Test that output is forwarded and success is reported."""
        output = io.BytesIO()
        wrapper = passthrough_wrapper()
        notifier = Mock(spec=BuildNotifier)
        runner = BuildRunner(
            python_command("print('hello'); print('world')"), local_build, wrapper, notifier, output
        )

        return_code = runner.run()

        assert return_code == 0
        assert local_build.result == LocalResult.SUCCESS
        assert output.getvalue().splitlines() == [b"hello", b"world"]
        notifier.perform.assert_called_once_with(local_build)
        wrapper.close.assert_called_once()
        notifier.close.assert_called_once()

    def test_failed_build(self, local_build):
        """Test that a non-zero exit is a failure."""
        runner = BuildRunner(
            python_command("import sys; sys.exit(3)"),
            local_build,
            passthrough_wrapper(),
            Mock(spec=BuildNotifier),
            io.BytesIO(),
        )

        assert runner.run() == 3
        assert local_build.result == LocalResult.FAILURE

    def test_stderr_is_merged(self, local_build):
        """Test that the error stream is captured with the output."""
        output = io.BytesIO()
        runner = BuildRunner(
            python_command("import sys; sys.stderr.write('oops\\n')"),
            local_build,
            passthrough_wrapper(),
            Mock(spec=BuildNotifier),
            output,
        )

        runner.run()

        assert b"oops" in output.getvalue()

    def test_undecorated_output_is_not_closed(self, local_build):
        """Test that the caller's output stays open when it was not decorated."""
        output = io.BytesIO()
        runner = BuildRunner(
            python_command("pass"), local_build, passthrough_wrapper(), Mock(spec=BuildNotifier), output
        )

        runner.run()

        assert not output.closed

    def test_decorated_stream_is_closed_before_notify(self, local_build):
        """Test that the decorated stream is closed before the outcome is reported."""
        events = []
        decorated = Mock()
        decorated.close.side_effect = lambda: events.append("close")
        wrapper = Mock(spec=BuildWrapper)
        wrapper.decorate_output.return_value = decorated
        notifier = Mock(spec=BuildNotifier)
        notifier.perform.side_effect = lambda local_build: events.append("perform")
        runner = BuildRunner(python_command("print('x')"), local_build, wrapper, notifier, io.BytesIO())

        runner.run()

        assert events == ["close", "perform"]
        decorated.write.assert_called()
        assert wrapper.decorate_output.call_args[1]["close_delegate"] is False

    def test_interrupted_build(self, local_build):
        """Test that an interrupt stops the command and reports an abort."""
        decorated = Mock()
        decorated.write.side_effect = KeyboardInterrupt
        wrapper = Mock(spec=BuildWrapper)
        wrapper.decorate_output.return_value = decorated
        notifier = Mock(spec=BuildNotifier)
        runner = BuildRunner(
            python_command("import time\nprint('start', flush=True)\ntime.sleep(30)"),
            local_build,
            wrapper,
            notifier,
            io.BytesIO(),
        )

        return_code = runner.run()

        assert return_code == 130
        assert local_build.result == LocalResult.ABORTED
        assert runner.process.poll() is not None
        notifier.perform.assert_called_once_with(local_build)

    def test_missing_command(self, local_build):
        """Test that a command that cannot start is a failure."""
        runner = BuildRunner(
            ["definitely-not-a-real-build-tool"],
            local_build,
            passthrough_wrapper(),
            Mock(spec=BuildNotifier),
            io.BytesIO(),
        )

        runner.run()

        assert local_build.result == LocalResult.FAILURE

    def test_mirrors_to_remote(self, app_config, fake_service, local_build):
        """Test a complete mirrored run against the in-memory service."""
        service_factory = lambda server, transport: fake_service  # noqa: E731
        wrapper = BuildWrapper(app_config, service_factory)
        notifier = BuildNotifier(app_config, service_factory)
        output = io.BytesIO()
        runner = BuildRunner(python_command("print('built ok')"), local_build, wrapper, notifier, output)

        assert runner.run() == 0

        build = fake_service.builds[100]
        assert build.result == BuildResult.SUCCEEDED
        task_log = fake_service.log_text(next(
            r.log.id for r in fake_service.records() if r.type == "Task"
        ))
        assert task_log == "built ok\n"
        assert output.getvalue().strip() == b"built ok"
        assert not output.closed
        assert fake_service.closed
