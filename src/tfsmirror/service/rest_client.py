"""
REST implementation of the remote build service.

This module implements RemoteBuildService on top of ``httpx`` against the
build and distributed-task REST areas of a TFS / Azure DevOps collection.
All calls are synchronous; the facade drives them from the host's thread and
the log appender from its single delivery worker.
"""

import logging
import ssl
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import httpx

from ..models.config import TransportConfig
from ..models.remote import (
    AgentQueue,
    Build,
    DefinitionRef,
    LogRef,
    OrchestrationPlan,
    ProjectRef,
    TimelineRecord,
)
from ..validation import TransportError
from .base import RemoteBuildService

logger = logging.getLogger(__name__)

# Hub name of the distributed-task area used by build orchestration plans.
HUB_NAME = "build"

_TLS_VERSIONS = {
    "TLSv1.2": ssl.TLSVersion.TLSv1_2,
    "TLSv1.3": ssl.TLSVersion.TLSv1_3,
}


def build_ssl_context(config: TransportConfig) -> ssl.SSLContext:
    """
    Build the TLS context used to verify the server.

    Args:
        config: Transport settings; ``keystore_path`` is a PEM bundle of
            trusted certificates and ``security_protocol`` the minimum version

    Returns:
        A client-side SSL context
    """
    context = ssl.create_default_context(cafile=config.keystore_path)
    minimum = _TLS_VERSIONS.get(config.security_protocol)
    if minimum is not None:
        context.minimum_version = minimum
    logger.debug(
        f"TLS context: trust store {config.keystore_path or 'system'} "
        f"({config.trust_store_type}/{config.trust_manager_algorithm}), "
        f"protocol {config.security_protocol}"
    )
    return context


def _segment(value: Any) -> str:
    return quote(str(value), safe="")


class RestBuildService(RemoteBuildService):
    """
    RemoteBuildService backed by the service's REST API.

    Example:
        service = RestBuildService(
            "https://example.visualstudio.com/DefaultCollection",
            "builder", token,
        )
        build = service.get_build(42)
    """

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        transport_config: Optional[TransportConfig] = None,
        http_transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the REST client.

        Args:
            base_url: Collection-level URL of the server
            username: User name for basic authentication
            password: Password or personal access token
            transport_config: Proxy, TLS and timeout settings
            http_transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.config = transport_config or TransportConfig()
        self.api_version = self.config.api_version

        client_kwargs: Dict[str, Any] = {
            "base_url": self.base_url,
            "auth": httpx.BasicAuth(username, password),
            "timeout": self.config.timeout_seconds,
            "headers": {"Accept": "application/json"},
        }
        if http_transport is not None:
            client_kwargs["transport"] = http_transport
        else:
            client_kwargs["verify"] = build_ssl_context(self.config)
            if self.config.proxy_url:
                logger.info(f"Using proxy {self.config.proxy_url}")
                client_kwargs["proxy"] = self.config.proxy_url

        self._client = httpx.Client(**client_kwargs)

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._client.close()

    def __enter__(self) -> "RestBuildService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # --- Builds ---

    def get_build(self, build_id: int) -> Build:
        response = self._request("GET", f"_apis/build/builds/{_segment(build_id)}")
        return Build.from_dict(self._json(response))

    def update_build(self, build: Build) -> Build:
        if build.project is None:
            raise ValueError(f"Build {build.id} has no project")
        path = f"{_segment(build.project.id)}/_apis/build/builds/{_segment(build.id)}"
        response = self._request("PATCH", path, json=build.to_dict())
        return Build.from_dict(self._json(response))

    def queue_build(self, build: Build, ignore_warnings: bool = True) -> Build:
        if build.project is None:
            raise ValueError("Cannot queue a build without a project")
        path = f"{_segment(build.project.id)}/_apis/build/builds"
        response = self._request(
            "POST",
            path,
            params={"ignoreWarnings": str(ignore_warnings).lower()},
            json=build.to_dict(),
        )
        return Build.from_dict(self._json(response))

    # --- Orchestration plans and timelines ---

    def get_plan(self, project_id: str, plan_id: str) -> OrchestrationPlan:
        response = self._request("GET", self._plan_path(project_id, plan_id))
        return OrchestrationPlan.from_dict(self._json(response))

    def get_timeline_records(
        self, project_id: str, plan_id: str, timeline_id: str
    ) -> Optional[List[TimelineRecord]]:
        response = self._request(
            "GET",
            self._records_path(project_id, plan_id, timeline_id),
            allow_not_found=True,
        )
        if response is None:
            return []
        return [TimelineRecord.from_dict(item) for item in self._values(response)]

    def update_timeline_records(
        self,
        project_id: str,
        plan_id: str,
        timeline_id: str,
        records: Sequence[TimelineRecord],
    ) -> List[TimelineRecord]:
        payload = [record.to_dict() for record in records]
        response = self._request(
            "PATCH",
            self._records_path(project_id, plan_id, timeline_id),
            json={"count": len(payload), "value": payload},
        )
        return [TimelineRecord.from_dict(item) for item in self._values(response)]

    # --- Logs ---

    def create_log(self, project_id: str, plan_id: str, path: str) -> LogRef:
        # The returned log carries the server-assigned id; the request does not.
        response = self._request(
            "POST", f"{self._plan_path(project_id, plan_id)}/logs", json={"path": path}
        )
        return LogRef.from_dict(self._json(response))

    def post_console_lines(
        self,
        project_id: str,
        plan_id: str,
        timeline_id: str,
        record_id: str,
        lines: Sequence[str],
    ) -> None:
        path = (
            f"{self._plan_path(project_id, plan_id)}/timelines/{_segment(timeline_id)}"
            f"/records/{_segment(record_id)}/feed"
        )
        self._request("POST", path, json={"count": len(lines), "value": list(lines)})

    def append_log(self, project_id: str, plan_id: str, log_id: int, content: bytes) -> None:
        self._request(
            "POST",
            f"{self._plan_path(project_id, plan_id)}/logs/{_segment(log_id)}",
            content=content,
            headers={"Content-Type": "application/octet-stream"},
        )

    # --- Projects, definitions, queues ---

    def get_projects(self) -> List[ProjectRef]:
        response = self._request("GET", "_apis/projects")
        return [ProjectRef.from_dict(item) for item in self._values(response)]

    def get_project(self, project: str) -> Optional[ProjectRef]:
        response = self._request(
            "GET", f"_apis/projects/{_segment(project)}", allow_not_found=True
        )
        if response is None:
            return None
        return ProjectRef.from_dict(self._json(response))

    def get_definitions(self, project_id: str) -> List[DefinitionRef]:
        response = self._request("GET", f"{_segment(project_id)}/_apis/build/definitions")
        return [DefinitionRef.from_dict(item) for item in self._values(response)]

    def get_definition(self, project_id: str, definition_id: int) -> Optional[DefinitionRef]:
        response = self._request(
            "GET",
            f"{_segment(project_id)}/_apis/build/definitions/{_segment(definition_id)}",
            allow_not_found=True,
        )
        if response is None:
            return None
        return DefinitionRef.from_dict(self._json(response))

    def get_queues(self) -> List[AgentQueue]:
        response = self._request("GET", "_apis/build/queues")
        return [AgentQueue.from_dict(item) for item in self._values(response)]

    def create_queue(self, name: str) -> AgentQueue:
        response = self._request("POST", "_apis/build/queues", json={"name": name})
        return AgentQueue.from_dict(self._json(response))

    # --- Helpers ---

    def _plan_path(self, project_id: str, plan_id: str) -> str:
        return (
            f"{_segment(project_id)}/_apis/distributedtask/hubs/{HUB_NAME}"
            f"/plans/{_segment(plan_id)}"
        )

    def _records_path(self, project_id: str, plan_id: str, timeline_id: str) -> str:
        return (
            f"{self._plan_path(project_id, plan_id)}/timelines/{_segment(timeline_id)}/records"
        )

    def _request(
        self,
        method: str,
        path: str,
        allow_not_found: bool = False,
        params: Optional[Dict[str, str]] = None,
        **kwargs: Any,
    ) -> Optional[httpx.Response]:
        """
        Send a request and translate failures into TransportError.

        Args:
            method: HTTP method
            path: Path relative to the collection URL
            allow_not_found: Return None instead of raising on HTTP 404
            params: Extra query parameters (``api-version`` is always added)

        Returns:
            The response, or None for an allowed 404

        Raises:
            TransportError: On network errors or non-success status codes
        """
        query = {"api-version": self.api_version}
        if params:
            query.update(params)

        logger.debug(f"{method} {path}")
        try:
            response = self._client.request(method, path, params=query, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if allow_not_found and status == 404:
                logger.debug(f"{method} {path} returned 404")
                return None
            raise TransportError(
                f"{method} {path} failed with HTTP {status}: {e.response.text[:200]}",
                status_code=status,
            ) from e
        except httpx.RequestError as e:
            raise TransportError(f"{method} {path} failed: {e}") from e
        return response

    @staticmethod
    def _json(response: Optional[httpx.Response]) -> Dict[str, Any]:
        if response is None:
            raise TransportError("Expected a response body but got none")
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"Invalid JSON from {response.request.url}: {e}",
                status_code=response.status_code,
            ) from e

    @classmethod
    def _values(cls, response: Optional[httpx.Response]) -> List[Dict[str, Any]]:
        data = cls._json(response)
        if isinstance(data, list):
            return data
        return data.get("value") or []
