"""
Unit tests for the REST remote build service.

Requests are answered by an ``httpx.MockTransport`` so the tests check the
URLs, payloads and error translation without a server.
"""

import json

import httpx
import pytest

from tfsmirror.models import (
    AgentQueue,
    Build,
    BuildStatus,
    DefinitionRef,
    ProjectRef,
    RecordState,
    TimelineRecord,
    TransportConfig,
)
from tfsmirror.service import RestBuildService
from tfsmirror.validation import TransportError

BASE_URL = "https://tfs.example.com/tfs/DefaultCollection"
COLLECTION = "/tfs/DefaultCollection"
PLAN_PATH = f"{COLLECTION}/proj-1/_apis/distributedtask/hubs/build/plans/plan-1"


class Recorder:
    """Mock transport handler answering from a route table."""

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            return httpx.Response(404, json={"message": "not found"})
        status, body = self.routes[key]
        if isinstance(body, (dict, list)):
            return httpx.Response(status, json=body)
        return httpx.Response(status, content=body or b"")

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def make_service(routes=None, config=None):
    recorder = Recorder(routes)
    service = RestBuildService(
        BASE_URL + "/",
        "builder",
        "s3cret",
        transport_config=config,
        http_transport=httpx.MockTransport(recorder),
    )
    return service, recorder


@pytest.mark.unit
class TestRequests:
    """Test cases for request construction."""

    def test_basic_auth_and_api_version(self):
        """Test that every request carries credentials and the API version."""
        service, recorder = make_service({("GET", f"{COLLECTION}/_apis/projects"): (200, {"value": []})})

        service.get_projects()

        request = recorder.last
        assert request.headers["Authorization"].startswith("Basic ")
        assert request.url.params["api-version"] == "2.0"

    def test_api_version_is_configurable(self):
        """Test that the API version comes from the transport settings."""
        service, recorder = make_service(
            {("GET", f"{COLLECTION}/_apis/projects"): (200, {"value": []})},
            config=TransportConfig(api_version="5.1"),
        )

        service.get_projects()

        assert recorder.last.url.params["api-version"] == "5.1"

    def test_context_manager_closes_client(self):
        """Test that leaving the context closes the HTTP client."""
        service, _ = make_service()

        with service:
            pass

        assert service._client.is_closed


@pytest.mark.unit
class TestBuilds:
    """Test cases for build endpoints."""

    def test_get_build(self):
        """Test fetching and parsing a build."""
        body = {
            "id": 7,
            "project": {"id": "proj-1", "name": "MyProject"},
            "orchestrationPlan": {"planId": "plan-1"},
            "status": "notStarted",
            "uri": "vstfs:///Build/Build/7",
        }
        service, recorder = make_service({("GET", f"{COLLECTION}/_apis/build/builds/7"): (200, body)})

        build = service.get_build(7)

        assert build.id == 7
        assert build.project.id == "proj-1"
        assert build.orchestration_plan.plan_id == "plan-1"
        assert build.status == BuildStatus.NOT_STARTED
        assert build.extra == {"uri": "vstfs:///Build/Build/7"}

    def test_update_build(self):
        """Test that an update is a PATCH of the whole build under its project."""
        path = f"{COLLECTION}/proj-1/_apis/build/builds/7"
        service, recorder = make_service({("PATCH", path): (200, {"id": 7, "status": "inProgress"})})
        build = Build(id=7, project=ProjectRef(id="proj-1"), status=BuildStatus.IN_PROGRESS)

        updated = service.update_build(build)

        assert json.loads(recorder.last.content)["status"] == "inProgress"
        assert updated.status == BuildStatus.IN_PROGRESS

    def test_queue_build(self):
        """Test that queueing posts the descriptor with ignoreWarnings."""
        path = f"{COLLECTION}/proj-1/_apis/build/builds"
        reply = {"id": 100, "project": {"id": "proj-1"}, "orchestrationPlan": {"planId": "plan-9"}}
        service, recorder = make_service({("POST", path): (200, reply)})
        build = Build(
            project=ProjectRef(id="proj-1"),
            definition=DefinitionRef(id=1),
            queue=AgentQueue(name="Default", id=3),
            demands=[],
            queue_options="doNotRun",
        )

        queued = service.queue_build(build, ignore_warnings=True)

        assert recorder.last.url.params["ignoreWarnings"] == "true"
        payload = json.loads(recorder.last.content)
        assert payload["definition"] == {"id": 1}
        assert payload["queueOptions"] == "doNotRun"
        assert payload["demands"] == []
        assert "id" not in payload
        assert queued.id == 100
        assert queued.orchestration_plan.plan_id == "plan-9"


@pytest.mark.unit
class TestTimeline:
    """Test cases for plan, timeline and log endpoints."""

    def test_get_plan(self):
        """Test that the plan's timeline id is read."""
        service, _ = make_service(
            {("GET", PLAN_PATH): (200, {"planId": "plan-1", "timeline": {"id": "tl-1"}})}
        )

        plan = service.get_plan("proj-1", "plan-1")

        assert plan.timeline_id == "tl-1"

    def test_get_records(self):
        """Test that records are read from the value list."""
        body = {
            "count": 1,
            "value": [
                {
                    "id": "r1",
                    "type": "Job",
                    "state": "inProgress",
                    "startTime": "2024-05-01T10:00:00.1234567Z",
                    "log": {"id": 4, "path": "logs\\r1"},
                }
            ],
        }
        service, _ = make_service({("GET", f"{PLAN_PATH}/timelines/tl-1/records"): (200, body)})

        records = service.get_timeline_records("proj-1", "plan-1", "tl-1")

        assert len(records) == 1
        assert records[0].state == RecordState.IN_PROGRESS
        assert records[0].log.id == 4
        assert records[0].start_time.microsecond == 123456

    def test_get_records_of_missing_timeline(self):
        """Test that a timeline the server does not know has no records."""
        service, _ = make_service()

        assert service.get_timeline_records("proj-1", "plan-1", "tl-x") == []

    def test_update_records(self):
        """Test that records are sent as one batch."""
        path = f"{PLAN_PATH}/timelines/tl-1/records"
        service, recorder = make_service({("PATCH", path): (200, {"count": 0, "value": []})})
        records = [
            TimelineRecord(id="a", type="Job", state=RecordState.PENDING),
            TimelineRecord(id="b", type="Task", parent_id="a", order=1),
        ]

        service.update_timeline_records("proj-1", "plan-1", "tl-1", records)

        payload = json.loads(recorder.last.content)
        assert payload["count"] == 2
        assert [r["id"] for r in payload["value"]] == ["a", "b"]
        assert payload["value"][1]["parentId"] == "a"

    def test_create_log(self):
        """Test that a log is created with the requested path."""
        service, recorder = make_service(
            {("POST", f"{PLAN_PATH}/logs"): (200, {"id": 12, "path": "logs\\r1"})}
        )

        log = service.create_log("proj-1", "plan-1", "logs\\r1")

        assert json.loads(recorder.last.content) == {"path": "logs\\r1"}
        assert log.id == 12

    def test_append_log(self):
        """Test that log content is posted as raw bytes."""
        service, recorder = make_service({("POST", f"{PLAN_PATH}/logs/12"): (200, {})})

        service.append_log("proj-1", "plan-1", 12, b"hello\nworld\n")

        assert recorder.last.content == b"hello\nworld\n"
        assert recorder.last.headers["Content-Type"] == "application/octet-stream"

    def test_post_console_lines(self):
        """Test that console lines are posted to the record's feed."""
        path = f"{PLAN_PATH}/timelines/tl-1/records/r1/feed"
        service, recorder = make_service({("POST", path): (200, b"")})

        service.post_console_lines("proj-1", "plan-1", "tl-1", "r1", ["a", "b"])

        assert json.loads(recorder.last.content) == {"count": 2, "value": ["a", "b"]}


@pytest.mark.unit
class TestLookups:
    """Test cases for project, definition and queue endpoints."""

    def test_missing_project_is_none(self):
        """Test that an unknown project yields None."""
        service, _ = make_service()

        assert service.get_project("Nope") is None

    def test_project_name_is_escaped(self):
        """Test that project names are path-escaped."""
        path = f"{COLLECTION}/_apis/projects/My Project"
        service, recorder = make_service({("GET", path): (200, {"id": "p", "name": "My Project"})})

        project = service.get_project("My Project")

        assert project.name == "My Project"
        assert b"My%20Project" in recorder.last.url.raw_path

    def test_definition_lookup(self):
        """Test fetching a definition and the not-found case."""
        path = f"{COLLECTION}/proj-1/_apis/build/definitions/1"
        service, _ = make_service({("GET", path): (200, {"id": 1, "name": "CI"})})

        assert service.get_definition("proj-1", 1).name == "CI"
        assert service.get_definition("proj-1", 2) is None

    def test_queues(self):
        """Test listing and creating agent queues."""
        path = f"{COLLECTION}/_apis/build/queues"
        service, recorder = make_service({
            ("GET", path): (200, {"count": 0, "value": []}),
            ("POST", path): (200, {"id": 5, "name": "LocalMirrorQueue"}),
        })

        assert service.get_queues() == []
        queue = service.create_queue("LocalMirrorQueue")

        assert queue == AgentQueue(name="LocalMirrorQueue", id=5)
        assert json.loads(recorder.last.content) == {"name": "LocalMirrorQueue"}


@pytest.mark.unit
class TestErrors:
    """Test cases for translating HTTP failures."""

    def test_http_error(self):
        """Test that an error status becomes a TransportError with its code."""
        service, _ = make_service(
            {("GET", f"{COLLECTION}/_apis/build/builds/7"): (500, {"message": "boom"})}
        )

        with pytest.raises(TransportError) as exc_info:
            service.get_build(7)

        assert exc_info.value.status_code == 500
        assert "HTTP 500" in str(exc_info.value)

    def test_not_found_is_an_error_where_not_allowed(self):
        """Test that 404 is only tolerated for lookups."""
        service, _ = make_service()

        with pytest.raises(TransportError) as exc_info:
            service.get_build(7)

        assert exc_info.value.status_code == 404

    def test_network_error(self):
        """Test that connection failures become TransportError."""
        def unreachable(request):
            raise httpx.ConnectError("connection refused", request=request)

        service = RestBuildService(
            BASE_URL, "builder", "s3cret", http_transport=httpx.MockTransport(unreachable)
        )

        with pytest.raises(TransportError) as exc_info:
            service.get_projects()

        assert exc_info.value.status_code is None
        assert "connection refused" in str(exc_info.value)

    def test_invalid_json(self):
        """Test that a non-JSON body is reported as a TransportError."""
        service, _ = make_service({("GET", f"{COLLECTION}/_apis/projects"): (200, b"<html>")})

        with pytest.raises(TransportError):
            service.get_projects()
