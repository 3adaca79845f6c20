"""
BuildRunner: run a local build command while mirroring it remotely.

The runner ties the host components together for a single local build:
the wrapper queues the remote build and decorates the output, the command
runs with its merged stdout/stderr written through the decorated stream, and
the notifier reports the outcome once the stream has been closed.
"""

import logging
import subprocess
from pathlib import Path
from typing import BinaryIO, Optional, Sequence, Union

from ..host import BuildNotifier, BuildWrapper
from ..models.local import LocalBuildContext, LocalResult

logger = logging.getLogger(__name__)

# Exit code reported when the build is interrupted from the keyboard.
INTERRUPTED_EXIT_CODE = 130


def result_for_exit_code(return_code: int) -> LocalResult:
    """Map a process exit code to the outcome of the local build."""
    if return_code == 0:
        return LocalResult.SUCCESS
    if return_code < 0 or return_code == INTERRUPTED_EXIT_CODE:
        return LocalResult.ABORTED
    return LocalResult.FAILURE


class BuildRunner:
    """
    Runs one local build command with remote mirroring.
    """

    def __init__(
        self,
        command: Union[str, Sequence[str]],
        local_build: LocalBuildContext,
        wrapper: BuildWrapper,
        notifier: BuildNotifier,
        output: BinaryIO,
        cwd: Optional[Path] = None,
    ):
        """
        Args:
            command: Command line to run. A string is run through the shell.
            local_build: The local build being mirrored
            wrapper: Queues the remote build and decorates the output
            notifier: Reports the outcome when the build is done
            output: Binary destination of the build's console output
            cwd: Working directory of the command (default: current)
        """
        self.command = command
        self.local_build = local_build
        self.wrapper = wrapper
        self.notifier = notifier
        self.output = output
        self.cwd = cwd
        self.process: Optional[subprocess.Popen] = None

    def run(self) -> int:
        """
        Execute the build and report it.

        Returns:
            The exit code of the build command
        """
        stream = self.wrapper.decorate_output(self.local_build, self.output, close_delegate=False)
        return_code = -1
        try:
            return_code = self._execute(stream)
            self.local_build.result = result_for_exit_code(return_code)
        except KeyboardInterrupt:
            logger.warning(f"{self.local_build.display_name} interrupted, stopping the build...")
            self._terminate()
            return_code = INTERRUPTED_EXIT_CODE
            self.local_build.result = LocalResult.ABORTED
        except Exception as e:
            logger.error(f"An error occurred during the build: {e}", exc_info=True)
            self._terminate()
            self.local_build.result = LocalResult.FAILURE
        finally:
            self._close_stream(stream)
            self.notifier.perform(self.local_build)
            self.wrapper.close()
            self.notifier.close()

        logger.info(
            f"{self.local_build.display_name} finished with exit code {return_code} "
            f"({self.local_build.result.value})"
        )
        return return_code

    def _execute(self, stream: BinaryIO) -> int:
        shell = isinstance(self.command, str)
        logger.info(f"Starting build command: {self.command}")
        self.process = subprocess.Popen(
            self.command,
            cwd=self.cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            shell=shell,
        )
        logger.debug(f"Build process started with PID: {self.process.pid}")
        for line in self.process.stdout:
            stream.write(line)
        self.process.stdout.close()
        return self.process.wait()

    def _terminate(self) -> None:
        if self.process is None or self.process.poll() is not None:
            return
        logger.info(f"Terminating build process {self.process.pid}")
        self.process.terminate()
        try:
            self.process.wait(timeout=10)
        except subprocess.TimeoutExpired:
            logger.warning(f"Build process {self.process.pid} did not terminate, killing it")
            self.process.kill()
            self.process.wait()

    def _close_stream(self, stream: BinaryIO) -> None:
        # The undecorated output belongs to the caller.
        if stream is self.output:
            stream.flush()
        else:
            stream.close()
