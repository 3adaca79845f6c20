"""
Pytest configuration and shared fixtures for the tfsmirror test suite.

This module provides common fixtures, an in-memory remote build service and
test utilities for all test modules in the tfsmirror project.
"""

import copy
import shutil
import sys
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tfsmirror.models import (  # noqa: E402
    AgentQueue,
    Build,
    DefinitionRef,
    LocalBuildContext,
    LogRef,
    OrchestrationPlan,
    ProjectRef,
    TimelineRecord,
)
from tfsmirror.service.base import RemoteBuildService  # noqa: E402


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# In-memory remote service
# ============================================================================


class FakeBuildService(RemoteBuildService):
    """
    In-memory RemoteBuildService.

    Stored objects are copied on the way in and out, so tests observe the
    same fetch-modify-submit behaviour as against a real server. Every call
    is recorded in ``calls`` as ``(method_name, detail)``.
    """

    PROJECT_ID = "11111111-2222-3333-4444-555555555555"
    PROJECT_NAME = "MyProject"
    PLAN_ID = "plan-0001"
    TIMELINE_ID = "timeline-0001"

    def __init__(self):
        self.projects: Dict[str, ProjectRef] = {
            self.PROJECT_ID: ProjectRef(id=self.PROJECT_ID, name=self.PROJECT_NAME)
        }
        self.definitions: Dict[int, DefinitionRef] = {1: DefinitionRef(id=1, name="CI")}
        self.queues: List[AgentQueue] = [AgentQueue(name="Default", id=1)]
        self.builds: Dict[int, Build] = {}
        self.plans: Dict[str, OrchestrationPlan] = {
            self.PLAN_ID: OrchestrationPlan(plan_id=self.PLAN_ID, timeline_id=self.TIMELINE_ID)
        }
        self.timelines: Dict[str, List[TimelineRecord]] = {}
        self.logs: Dict[int, bytearray] = {}
        self.log_paths: Dict[int, str] = {}
        self.feed: List[tuple] = []
        self.queued: List[tuple] = []
        self.calls: List[tuple] = []
        self.closed = False
        self._next_log_id = 1
        self._next_build_id = 100
        self._lock = threading.Lock()

    # --- Helpers for tests ---

    def add_build(self, build_id: int = 7) -> Build:
        """Seed a queued build bound to the default plan."""
        build = Build(
            id=build_id,
            project=ProjectRef(id=self.PROJECT_ID, name=self.PROJECT_NAME),
            definition=DefinitionRef(id=1),
            orchestration_plan=OrchestrationPlan(
                plan_id=self.PLAN_ID, timeline_id=self.TIMELINE_ID
            ),
        )
        self.builds[build_id] = copy.deepcopy(build)
        return copy.deepcopy(build)

    def records(self, timeline_id: Optional[str] = None) -> List[TimelineRecord]:
        return copy.deepcopy(self.timelines.get(timeline_id or self.TIMELINE_ID, []))

    def log_text(self, log_id: int) -> str:
        return bytes(self.logs.get(log_id, b"")).decode("utf-8")

    def calls_to(self, name: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == name]

    def _record(self, name: str, detail=None) -> None:
        with self._lock:
            self.calls.append((name, detail))

    # --- RemoteBuildService ---

    def close(self) -> None:
        self.closed = True

    def get_build(self, build_id):
        self._record("get_build", build_id)
        return copy.deepcopy(self.builds[build_id])

    def update_build(self, build):
        self._record("update_build", build.id)
        self.builds[build.id] = copy.deepcopy(build)
        return copy.deepcopy(build)

    def get_plan(self, project_id, plan_id):
        self._record("get_plan", plan_id)
        return copy.deepcopy(self.plans[plan_id])

    def get_timeline_records(self, project_id, plan_id, timeline_id):
        self._record("get_timeline_records", timeline_id)
        if timeline_id not in self.timelines:
            return None
        return copy.deepcopy(self.timelines[timeline_id])

    def update_timeline_records(self, project_id, plan_id, timeline_id, records):
        self._record("update_timeline_records", (timeline_id, [r.id for r in records]))
        stored = self.timelines.setdefault(timeline_id, [])
        by_id = {record.id: index for index, record in enumerate(stored)}
        for record in records:
            if record.id in by_id:
                stored[by_id[record.id]] = copy.deepcopy(record)
            else:
                stored.append(copy.deepcopy(record))
        return copy.deepcopy(list(records))

    def create_log(self, project_id, plan_id, path):
        self._record("create_log", path)
        log_id = self._next_log_id
        self._next_log_id += 1
        self.logs[log_id] = bytearray()
        self.log_paths[log_id] = path
        return LogRef(id=log_id, path=path)

    def post_console_lines(self, project_id, plan_id, timeline_id, record_id, lines):
        self._record("post_console_lines", record_id)
        self.feed.append((record_id, list(lines)))

    def append_log(self, project_id, plan_id, log_id, content):
        self._record("append_log", log_id)
        self.logs.setdefault(log_id, bytearray()).extend(content)

    def get_projects(self):
        self._record("get_projects")
        return list(self.projects.values())

    def get_project(self, project):
        self._record("get_project", project)
        for ref in self.projects.values():
            if project in (ref.id, ref.name):
                return copy.deepcopy(ref)
        return None

    def get_definitions(self, project_id):
        return list(self.definitions.values())

    def get_definition(self, project_id, definition_id):
        self._record("get_definition", definition_id)
        return copy.deepcopy(self.definitions.get(definition_id))

    def get_queues(self):
        self._record("get_queues")
        return list(self.queues)

    def create_queue(self, name):
        self._record("create_queue", name)
        queue = AgentQueue(name=name, id=len(self.queues) + 1)
        self.queues.append(queue)
        return queue

    def queue_build(self, build, ignore_warnings=True):
        self._record("queue_build", ignore_warnings)
        self.queued.append((copy.deepcopy(build), ignore_warnings))
        queued = copy.deepcopy(build)
        queued.id = self._next_build_id
        self._next_build_id += 1
        queued.orchestration_plan = OrchestrationPlan(
            plan_id=self.PLAN_ID, timeline_id=self.TIMELINE_ID
        )
        self.builds[queued.id] = copy.deepcopy(queued)
        return queued


class RecordingFacade:
    """BuildFacade stand-in that records every batch it receives."""

    def __init__(self, block: Optional[threading.Event] = None):
        self.batches: List[List[str]] = []
        self.block = block
        self.entered = threading.Event()

    def append_job_log(self, lines: Sequence[str]) -> None:
        self.entered.set()
        if self.block is not None:
            self.block.wait()
        self.batches.append(list(lines))

    @property
    def lines(self) -> List[str]:
        return [line for batch in self.batches for line in batch]


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def fake_service():
    """Provide an empty in-memory remote build service."""
    return FakeBuildService()


@pytest.fixture
def recording_facade():
    """Provide a facade that records delivered batches."""
    return RecordingFacade()


@pytest.fixture
def local_build():
    """A local build with no outcome yet and no source control."""
    return LocalBuildContext(project_name="my-service", number=42)


@pytest.fixture
def sample_config_data():
    """Sample configuration data for testing."""
    return {
        "server": {
            "url": "https://tfs.example.com/tfs/DefaultCollection/",
            "username": "builder",
            "password_env": "TFSMIRROR_TEST_PASSWORD",
            "project": "MyProject",
            "build_definition": 1,
        },
        "shipping": {
            "interval_seconds": 0.5,
            "batch_size": 50,
            "shutdown_timeout": 5.0,
            "queue_capacity": 0,
        },
        "build": {
            "job_record_name": "Local Build",
            "worker_name": "ci-agent-1",
            "queue_name": "LocalMirrorQueue",
        },
        "transport": {
            "api_version": "2.0",
            "timeout_seconds": 10.0,
        },
    }


@pytest.fixture
def password_env(monkeypatch):
    """Export the password variable named in sample_config_data."""
    monkeypatch.setenv("TFSMIRROR_TEST_PASSWORD", "s3cret")
    return "s3cret"


@pytest.fixture
def config_files(temp_dir, sample_config_data):
    """Create a temporary configuration file for testing."""
    import toml

    config_file = temp_dir / "config.toml"
    with open(config_file, "w") as f:
        toml.dump(sample_config_data, f)

    return {
        "config": config_file,
        "dir": temp_dir,
    }


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically clear configuration cache after each test."""
    original_config_path = Path(__file__).parent.parent / "conf" / "config.toml"

    yield  # Run the test

    from tfsmirror.config import clear_config_cache, set_config_path

    clear_config_cache()
    set_config_path(original_config_path)


@pytest.fixture
def blocking_facade():
    """Provide a facade whose deliveries block until ``release`` is set."""
    release = threading.Event()
    facade = RecordingFacade(block=release)
    yield facade, release
    release.set()


@pytest.fixture
def app_config():
    """A loaded configuration pointing at the in-memory service's project."""
    from tfsmirror.models import (
        AppConfig,
        BuildRecordConfig,
        ServerConfig,
        ShippingConfig,
        TransportConfig,
    )

    return AppConfig(
        server=ServerConfig(
            url="https://tfs.example.com/tfs/DefaultCollection",
            username="builder",
            password="s3cret",
            project=FakeBuildService.PROJECT_NAME,
            build_definition=1,
        ),
        shipping=ShippingConfig(interval_seconds=0.01, batch_size=100, shutdown_timeout=5.0),
        build=BuildRecordConfig(),
        transport=TransportConfig(),
    )
