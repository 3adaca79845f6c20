"""
Command-line interface for the tfsmirror build mirror.

Subcommands:
- run: run a local build command and mirror it to a remote build
- start: queue and start a remote build, printing its id
- finish: report the outcome of a local build to an earlier remote build

``start`` and ``finish`` let a build system that runs its steps in separate
processes mirror a single build: the id printed by ``start`` is handed to
``finish`` once the build is complete.
"""

import argparse
import logging
import os
import signal
import sys
from pathlib import Path
from typing import List, Optional

from .. import __version__
from ..config import get_config, set_config_path
from ..host import BuildNotifier, BuildWrapper
from ..models.config import AppConfig
from ..models.local import LocalBuildContext, LocalResult
from ..orchestration import BuildRunner
from ..scm import GitSourceControl
from ..service import create_service_from_config
from ..validation import (
    ValidationError,
    handle_cli_error,
    validate_enum_choice,
    validate_non_empty_string,
    validate_positive_integer,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging on stderr; stdout carries the build output."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stderr,
        force=True,
    )
    # httpx logs every request at INFO.
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tfsmirror",
        description="Mirror a local build into a remote TFS / Azure DevOps build.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        help="Path to the TOML configuration file (default: conf/config.toml).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    build_args = argparse.ArgumentParser(add_help=False)
    build_args.add_argument(
        "--project-name",
        type=str,
        help="Name of the local project (default: name of the working directory).",
    )
    build_args.add_argument(
        "--build-number",
        type=str,
        help="Number of the local build (default: $BUILD_NUMBER or 1).",
    )
    build_args.add_argument(
        "--branch-spec",
        action="append",
        dest="branch_specs",
        help="Branch specification reported to the remote build. Repeatable.",
    )

    subparsers = parser.add_subparsers(dest="command_name", required=True)

    run_parser = subparsers.add_parser(
        "run",
        parents=[build_args],
        help="Run a build command and mirror it.",
        description="Run a build command, mirroring its console output and outcome.",
    )
    run_parser.add_argument(
        "build_command",
        nargs=argparse.REMAINDER,
        help="Command to run after '--'. A single argument is run through the shell.",
    )

    subparsers.add_parser(
        "start",
        parents=[build_args],
        help="Queue and start a remote build, printing its id.",
    )

    finish_parser = subparsers.add_parser(
        "finish",
        parents=[build_args],
        help="Report the outcome of a local build to a remote build.",
    )
    finish_parser.add_argument(
        "--build-id",
        type=str,
        required=True,
        help="Id of the remote build printed by 'start'.",
    )
    finish_parser.add_argument(
        "--result",
        type=str,
        required=True,
        help=f"Outcome of the local build: {', '.join(r.value for r in LocalResult)}.",
    )
    return parser


def create_local_build(args: argparse.Namespace) -> LocalBuildContext:
    """
    Describe the local build from the command-line arguments and environment.

    Raises:
        ValidationError: If the project name or build number is invalid
    """
    cwd = Path.cwd()
    project_name = validate_non_empty_string(
        args.project_name or cwd.name, field_name="--project-name"
    )
    build_number = validate_positive_integer(
        args.build_number or os.environ.get("BUILD_NUMBER", "1"),
        min_value=1,
        field_name="--build-number",
    )
    return LocalBuildContext(
        project_name=project_name,
        number=build_number,
        source_control=GitSourceControl(cwd, branch_specs=args.branch_specs),
    )


def _load_config(required: bool) -> Optional[AppConfig]:
    try:
        return get_config()
    except FileNotFoundError as e:
        if not required:
            logger.warning(f"{e}; the build will run without remote mirroring")
            return None
        handle_cli_error(
            error=e,
            context="configuration loading",
            exit_code=1,
            include_traceback=False,
            logger=logger,
        )
    except Exception as e:
        handle_cli_error(
            error=e,
            context="configuration loading",
            exit_code=1,
            include_traceback=not isinstance(e, ValidationError),
            logger=logger,
        )


def _handle_termination(signum, frame):
    logger.info(f"Signal {signal.strsignal(signum)} received, stopping the build...")
    raise KeyboardInterrupt


def run_command_line(args: argparse.Namespace, local_build: LocalBuildContext) -> int:
    command: List[str] = list(args.build_command)
    if command and command[0] == "--":
        command = command[1:]
    if not command:
        handle_cli_error(
            error=ValidationError("No build command given", field_name="build_command"),
            context="argument validation",
            exit_code=2,
            logger=logger,
        )

    app_config = _load_config(required=False)
    wrapper = BuildWrapper(app_config, create_service_from_config)
    notifier = BuildNotifier(app_config, create_service_from_config)

    signal.signal(signal.SIGTERM, _handle_termination)
    runner = BuildRunner(
        command[0] if len(command) == 1 else command,
        local_build,
        wrapper,
        notifier,
        output=sys.stdout.buffer,
    )
    return runner.run()


def start_remote_build(args: argparse.Namespace, local_build: LocalBuildContext) -> int:
    app_config = _load_config(required=True)
    wrapper = BuildWrapper(app_config, create_service_from_config)
    try:
        facade = wrapper.start_remote_build(local_build, sys.stderr.buffer)
    finally:
        wrapper.close()
    if facade is None:
        return 1
    print(facade.get_remote_build_id())
    return 0


def finish_remote_build(args: argparse.Namespace, local_build: LocalBuildContext) -> int:
    try:
        build_id = validate_positive_integer(args.build_id, field_name="--build-id")
        result = validate_enum_choice(
            args.result, [r.value for r in LocalResult], field_name="--result"
        )
    except ValidationError as e:
        handle_cli_error(
            error=e,
            context="argument validation",
            exit_code=2,
            logger=logger,
        )
    local_build.result = LocalResult(result)

    app_config = _load_config(required=True)
    notifier = BuildNotifier(app_config, create_service_from_config)
    try:
        finished = notifier.perform(local_build, build_id=build_id)
    finally:
        notifier.close()
    return 0 if finished else 1


COMMANDS = {
    "run": run_command_line,
    "start": start_remote_build,
    "finish": finish_remote_build,
}


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Main command-line entry point.

    Raises:
        SystemExit: With the build's exit code for ``run``, or 0/1 for
            ``start`` and ``finish``; 1 or 2 on configuration or argument errors.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if args.config is not None:
        set_config_path(args.config)

    try:
        local_build = create_local_build(args)
    except ValidationError as e:
        handle_cli_error(
            error=e,
            context="argument validation",
            exit_code=2,
            logger=logger,
        )

    sys.exit(COMMANDS[args.command_name](args, local_build))


if __name__ == "__main__":
    main_cli()
