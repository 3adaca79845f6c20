"""
Facade for updating a remote build from the local build lifecycle.

All updates to the remote build go through this module. The facade only keeps
identifiers: every update fetches the current remote object, modifies the
fresh copy and submits it back, because the remote build may have been changed
by someone else since it was last seen.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from ..models.config import BuildRecordConfig
from ..models.local import LocalBuildContext
from ..models.remote import (
    JOB_RECORD_TYPE,
    TASK_RECORD_TYPE,
    Build,
    BuildStatus,
    RecordState,
    RemoteBuildRef,
    TimelineRecord,
    utc_now,
)
from ..scm import resolve_revision
from ..service.base import RemoteBuildService
from .results import to_build_result, to_task_result

logger = logging.getLogger(__name__)


class BuildFacade(ABC):
    """Lifecycle operations the host calls on a mirrored build."""

    @abstractmethod
    def start_build(self) -> None:
        """Mark the remote build as started."""

    @abstractmethod
    def finish_build(self) -> None:
        """Mark the remote build as finished with the local outcome."""

    @abstractmethod
    def start_all_task_records(self) -> None:
        """Mark every timeline record as in progress."""

    @abstractmethod
    def finish_all_task_records(self) -> None:
        """Mark every timeline record (and in-progress detail record) as completed."""

    @abstractmethod
    def append_job_log(self, lines: Sequence[str]) -> None:
        """Ship console lines to the remote build. Never raises."""

    @abstractmethod
    def get_remote_build_id(self) -> int:
        """Return the id of the remote build container."""


class BuildStateFacade(BuildFacade):
    """
    BuildFacade over a RemoteBuildService.

    Construction reconciles the remote timeline so that exactly one Job record
    and one Task record exist, each with its own log stream. Records that
    already exist are reused, which makes it safe to construct a facade again
    for the same remote build from a later step of the local build.
    """

    def __init__(
        self,
        build: Build,
        local_build: LocalBuildContext,
        service: RemoteBuildService,
        record_config: Optional[BuildRecordConfig] = None,
    ):
        """
        Attach to a remote build and reconcile its timeline records.

        Args:
            build: The remote build, freshly queued or fetched by id
            local_build: The local build being mirrored
            service: Client of the remote build service
            record_config: Labels for the Job record and the worker

        Raises:
            ValueError: If the build lacks its id, project or plan
            TransportError: If any remote call fails
        """
        self.ref = RemoteBuildRef.from_build(build)
        self.local_build = local_build
        self.service = service
        self.record_config = record_config or BuildRecordConfig()

        plan = service.get_plan(self.ref.project_id, self.ref.plan_id)
        if not plan.timeline_id:
            raise ValueError(f"Orchestration plan {self.ref.plan_id} has no timeline")
        self.timeline_id: str = plan.timeline_id

        records = self._query_records(self.timeline_id)

        job_record: Optional[TimelineRecord] = None
        task_record: Optional[TimelineRecord] = None
        for record in records:
            record_type = (record.type or "").lower()
            if record_type == JOB_RECORD_TYPE.lower():
                job_record = record
            elif record_type == TASK_RECORD_TYPE.lower():
                task_record = record

        if job_record is None:
            job_record = self._new_job_record()
            records.append(job_record)

        if task_record is None:
            task_record = self._new_task_record(job_record, order=1)
            records.append(task_record)

        job_record.name = self.record_config.job_record_name
        self._ensure_log(job_record)

        task_name = local_build.display_name
        task_record.name = task_name
        self._ensure_log(task_record)

        self._update_records(records, self.timeline_id)

        self.job_record_id: str = job_record.id
        self.task_record_id: str = task_record.id
        self.job_log_id: int = job_record.log.id
        self.task_log_id: int = task_record.log.id
        self.task_name: str = task_name

        logger.info(
            f"Attached to remote build {self.ref.build_id} "
            f"(job record {self.job_record_id}, task record {self.task_record_id})"
        )

    def get_remote_build_id(self) -> int:
        return self.ref.build_id

    def start_build(self) -> None:
        build = self._query_build()
        build.start_time = utc_now()
        build.status = BuildStatus.IN_PROGRESS
        self.service.update_build(build)
        logger.info(f"Remote build {self.ref.build_id} started")

    def finish_build(self) -> None:
        build = self._query_build()
        build.finish_time = utc_now()
        build.result = to_build_result(self.local_build.result)
        build.status = BuildStatus.COMPLETED

        source_version = resolve_revision(self.local_build.source_control)
        logger.info(f"Setting remote build sourceVersion to: {source_version}")
        build.source_version = source_version

        self.service.update_build(build)
        logger.info(f"Remote build {self.ref.build_id} finished with result {build.result.value}")

    def start_all_task_records(self) -> None:
        records = self._query_records(self.timeline_id)
        start_time = utc_now()

        for record in records:
            record.state = RecordState.IN_PROGRESS
            record.start_time = start_time
            record.worker_name = self.record_config.worker_name

        self._update_records(records, self.timeline_id)

    def finish_all_task_records(self) -> None:
        records = self._query_records(self.timeline_id)
        result = to_task_result(self.local_build.result)
        finish_time = utc_now()

        for record in records:
            record.state = RecordState.COMPLETED
            record.finish_time = finish_time
            record.result = result

            if record.details is None:
                continue

            details_id = record.details.id
            detail_records = self._query_records(details_id)
            for detail in detail_records:
                if detail.state == RecordState.IN_PROGRESS:
                    detail.state = RecordState.COMPLETED
                    detail.finish_time = finish_time
                    detail.result = result
            if detail_records:
                self._update_records(detail_records, details_id)

        self._update_records(records, self.timeline_id)

    def append_job_log(self, lines: Sequence[str]) -> None:
        """
        Post lines to the console feed, the Task log and the Job log.

        Each of the three deliveries is attempted even if another fails;
        failures are logged and never raised.
        """
        if not lines:
            return
        lines = list(lines)

        try:
            self.service.post_console_lines(
                self.ref.project_id,
                self.ref.plan_id,
                self.timeline_id,
                self.job_record_id,
                lines,
            )
        except Exception as e:
            logger.error(f"Failed to post console feed to the remote service: {e}")

        try:
            self.service.append_log(
                self.ref.project_id, self.ref.plan_id, self.task_log_id, _encode_lines(lines)
            )
        except Exception as e:
            logger.error(f"Failed to send task log to the remote service: {e}")

        prefix = f"[{self.task_name}] "
        try:
            self.service.append_log(
                self.ref.project_id,
                self.ref.plan_id,
                self.job_log_id,
                _encode_lines(prefix + line for line in lines),
            )
        except Exception as e:
            logger.error(f"Failed to send job log to the remote service: {e}")

    # --- Helpers ---

    def _query_build(self) -> Build:
        return self.service.get_build(self.ref.build_id)

    def _query_records(self, timeline_id: str) -> List[TimelineRecord]:
        records = self.service.get_timeline_records(
            self.ref.project_id, self.ref.plan_id, timeline_id
        )
        return list(records or [])

    def _update_records(self, records: List[TimelineRecord], timeline_id: str) -> None:
        self.service.update_timeline_records(
            self.ref.project_id, self.ref.plan_id, timeline_id, records
        )

    def _ensure_log(self, record: TimelineRecord) -> None:
        if record.log is not None:
            return
        log = self.service.create_log(
            self.ref.project_id, self.ref.plan_id, f"logs\\{record.id}"
        )
        logger.info(
            f"Set up {record.type} record log path: {log.path}, log id: {log.id}"
        )
        record.log = log

    @staticmethod
    def _new_job_record() -> TimelineRecord:
        return TimelineRecord(
            id=str(uuid.uuid4()),
            type=JOB_RECORD_TYPE,
            state=RecordState.PENDING,
        )

    @staticmethod
    def _new_task_record(job_record: TimelineRecord, order: int) -> TimelineRecord:
        return TimelineRecord(
            id=str(uuid.uuid4()),
            type=TASK_RECORD_TYPE,
            parent_id=job_record.id,
            order=order,
            state=RecordState.PENDING,
        )


def _encode_lines(lines) -> bytes:
    return "".join(f"{line}\n" for line in lines).encode("utf-8")
