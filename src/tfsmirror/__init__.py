"""
tfsmirror: mirror local builds into TFS / Azure DevOps builds.

A local build (run by any CI tool or by hand) is represented on the remote
service as a build container: a build queued with the "do not run" option,
whose timeline carries a job record and a task record. The local build's
console output is streamed to that task's live console and logs, and the
build's state and result follow the local build.

The package is organized into specialized modules:
- config: Configuration management and validation
- models: Remote and local data structures
- validation: Input validation and error handling
- service: Client of the remote build service
- facade: Reconciliation of the remote build and its records
- shipping: Console log shipping pipeline
- scm: Source-control queries (branch and revision)
- host: Build wrapper and notifier
- orchestration: Running a mirrored build command
- cli: Command-line interface

Usage:
    From command line:
        tfsmirror run -- make all

    Programmatically:
        from tfsmirror import BuildFacadeFactory, create_service_from_config, get_config
        config = get_config()
        service = create_service_from_config(config.server, config.transport)
        facade = BuildFacadeFactory(service, config.build).get_build_on_tfs(build_id, local_build)
"""

__version__ = "1.0.0"

from .config import clear_config_cache, get_config, set_config_path
from .facade import BuildFacade, BuildFacadeFactory, BuildStateFacade
from .host import BuildNotifier, BuildWrapper
from .models import AppConfig, LocalBuildContext, LocalResult
from .orchestration import BuildRunner
from .service import RemoteBuildService, RestBuildService, create_service_from_config
from .shipping import RemoteConsoleLogAppender

__all__ = [
    "__version__",
    "AppConfig",
    "BuildFacade",
    "BuildFacadeFactory",
    "BuildNotifier",
    "BuildRunner",
    "BuildStateFacade",
    "BuildWrapper",
    "LocalBuildContext",
    "LocalResult",
    "RemoteBuildService",
    "RemoteConsoleLogAppender",
    "RestBuildService",
    "clear_config_cache",
    "create_service_from_config",
    "get_config",
    "set_config_path",
]
