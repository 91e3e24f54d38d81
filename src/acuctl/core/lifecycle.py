# SPDX-FileCopyrightText: Copyright (c) 2025 The acuctl Authors. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Deployment lifecycle: state machine and controller.

DeploymentLifecycle is a plain finite-state machine. Each external input
(upload result, registration, submission update, status tick) goes through
exactly one transition method, which returns the LifecycleEvents it produces
and touches nothing but the machine's own state. Tests drive it with
synthetic updates.

DeploymentController wires the machine to the collaborators: it uploads the
script, converts the config, writes the deployment record, submits through
the chain client and observes the per-job status subscription. deploy() is a
lazy generator; closing it or setting the cancel event ends the status
subscription.

Event order for one deployment:

    Uploaded -> Prepared -> Submit -> WaitingForMatch -> Matched | Acknowledged
             -> EnvironmentVariablesSet -> Started -> ExecutionDone -> Finalized

A dispatch error before WaitingForMatch raises SubmissionRejected and ends
the attempt. Nothing here retries.
"""

import dataclasses
import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from acuctl.contract import (
    ChainClient,
    DecodedDispatchError,
    DeploymentStatus,
    DispatchError,
    JobStatusKind,
    JobStatusUpdate,
    ScriptUploader,
    SubmissionUpdate,
)
from acuctl.core.convert import convert_config_to_job
from acuctl.core.deployments import DeploymentStore
from acuctl.core.schema import JobId, JobRegistration, ProjectConfig
from acuctl.core.utils import parse_job_id
from acuctl.errors import AcuctlError, SubmissionRejected, SubmissionTransportFailure
from acuctl.logging_utils import error, get_logger, log_status, step, success, waiting, warn

logger = get_logger(__name__)

_ORDER = {status: index for index, status in enumerate(DeploymentStatus)}

_LIFECYCLE_FOR_JOB_STATUS = {
    JobStatusKind.MATCHED: DeploymentStatus.MATCHED,
    JobStatusKind.ASSIGNED: DeploymentStatus.ACKNOWLEDGED,
    JobStatusKind.ENVIRONMENT_VARIABLES_SET: DeploymentStatus.ENVIRONMENT_VARIABLES_SET,
    JobStatusKind.STARTED: DeploymentStatus.STARTED,
    JobStatusKind.EXECUTION_DONE: DeploymentStatus.EXECUTION_DONE,
    JobStatusKind.FINALIZED: DeploymentStatus.FINALIZED,
}

DecodeDispatchError = Callable[[DispatchError], DecodedDispatchError]


@dataclass(frozen=True)
class LifecycleEvent:
    """A lifecycle transition and its payload.

    Payload keys by status:
        Uploaded: locator
        Prepared: registration
        Submit: tx_reference
        WaitingForMatch: job_ids
        Acknowledged: job_id, acknowledged
        Matched and later: job_id
    """

    status: DeploymentStatus
    data: dict[str, Any] = field(default_factory=dict)

    def describe(self) -> str:
        if self.status == DeploymentStatus.UPLOADED:
            return f"script uploaded to {self.data['locator']}"
        if self.status == DeploymentStatus.PREPARED:
            return "registration prepared"
        if self.status == DeploymentStatus.SUBMIT:
            return f"submitted in transaction {self.data['tx_reference']}"
        if self.status == DeploymentStatus.WAITING_FOR_MATCH:
            numbers = ", ".join(str(number) for _, number in self.data["job_ids"])
            return f"waiting for processors to match job(s) {numbers}"
        if self.status == DeploymentStatus.ACKNOWLEDGED:
            return f"job {self.data['job_id'][1]} acknowledged by {self.data['acknowledged']} processor(s)"
        return f"job {self.data['job_id'][1]} {self.status.value}"


class DeploymentLifecycle:
    """Finite-state machine for one deployment attempt.

    Attributes:
        state: Most advanced status entered so far (None before upload)
        failed: True once a dispatch error ended the attempt
        tx_reference: Submission transaction, once included in a block
        job_ids: Identifiers reported by the network, in event order
        job_states: Per-job (status, acknowledgement count)
    """

    def __init__(self):
        self.state: DeploymentStatus | None = None
        self.failed = False
        self.tx_reference: str | None = None
        self.job_ids: list[JobId] = []
        self.job_states: dict[JobId, tuple[DeploymentStatus, int | None]] = {}

    @property
    def submitted(self) -> bool:
        return self.tx_reference is not None

    @property
    def done(self) -> bool:
        """Nothing more will happen: failed, no jobs to watch, or all finalized."""
        if self.failed:
            return True
        if not self.submitted:
            return False
        return all(status == DeploymentStatus.FINALIZED for status, _ in self.job_states.values())

    def _enter(self, status: DeploymentStatus, **data: Any) -> LifecycleEvent:
        if self.state is None or _ORDER[status] > _ORDER[self.state]:
            self.state = status
        return LifecycleEvent(status=status, data=data)

    def _require(self, *allowed: DeploymentStatus | None) -> None:
        if self.failed:
            raise RuntimeError("Deployment attempt already failed")
        if self.state not in allowed:
            current = self.state.value if self.state else "start"
            raise RuntimeError(f"Unexpected transition from {current}")

    def uploaded(self, locator: str) -> list[LifecycleEvent]:
        self._require(None)
        return [self._enter(DeploymentStatus.UPLOADED, locator=locator)]

    def prepared(self, registration: JobRegistration) -> list[LifecycleEvent]:
        self._require(None, DeploymentStatus.UPLOADED)
        return [self._enter(DeploymentStatus.PREPARED, registration=registration)]

    def advance_submission(
        self,
        update: SubmissionUpdate,
        decode_error: DecodeDispatchError | None = None,
    ) -> list[LifecycleEvent]:
        """Apply one submission status update.

        Raises:
            SubmissionRejected: If the update carries a dispatch error
        """
        if self.submitted:
            # Late updates after inclusion (e.g. finalized) carry nothing new
            return []
        self._require(DeploymentStatus.PREPARED)

        if update.dispatch_error is not None:
            self.failed = True
            raise _rejection(update.dispatch_error, decode_error)

        if not update.included:
            return []

        self.tx_reference = update.tx_reference
        events = [self._enter(DeploymentStatus.SUBMIT, tx_reference=update.tx_reference)]

        job_ids = [parse_job_id(event.data[1]) for event in update.events if event.is_registration_stored]
        if job_ids:
            self.job_ids = job_ids
            self.job_states = {job_id: (DeploymentStatus.WAITING_FOR_MATCH, None) for job_id in job_ids}
            events.append(self._enter(DeploymentStatus.WAITING_FOR_MATCH, job_ids=list(job_ids)))
        return events

    def advance_job_status(self, update: JobStatusUpdate) -> list[LifecycleEvent]:
        """Apply one status subscription tick.

        A missing status (job not processed yet) and "open" produce nothing.
        Each job only moves forward; repeated or older statuses are ignored,
        except a changed acknowledgement count.
        """
        if not self.job_states:
            raise RuntimeError("No jobs are waiting for a match")
        if update.status is None:
            return []

        job_id = parse_job_id(update.job_id)
        if job_id not in self.job_states:
            logger.debug("Ignoring status for unknown job %s", job_id)
            return []

        target = _LIFECYCLE_FOR_JOB_STATUS.get(update.status.kind)
        if target is None:
            return []

        current, acknowledged = self.job_states[job_id]
        if update.status.kind == JobStatusKind.ASSIGNED:
            acknowledged = update.status.assigned or 0

        if _ORDER[target] < _ORDER[current]:
            return []
        if (target, acknowledged) == self.job_states[job_id]:
            return []

        self.job_states[job_id] = (target, acknowledged)
        if target == DeploymentStatus.ACKNOWLEDGED:
            return [self._enter(target, job_id=job_id, acknowledged=acknowledged)]
        return [self._enter(target, job_id=job_id)]


def _rejection(dispatch_error: DispatchError, decode_error: DecodeDispatchError | None) -> SubmissionRejected:
    if dispatch_error.is_module and decode_error is not None:
        decoded = decode_error(dispatch_error)
        return SubmissionRejected.from_module_error(decoded.section, decoded.name, decoded.docs)
    return SubmissionRejected(str(dispatch_error))


def _close(iterator: Any) -> None:
    close = getattr(iterator, "close", None)
    if close is not None:
        close()


class DeploymentController:
    """Drives one or more deployments through a chain client.

    Usage:
        controller = DeploymentController(chain, uploader=IpfsUploader.from_env())
        for event in controller.deploy(project):
            print(event.describe())
    """

    def __init__(
        self,
        chain: ChainClient,
        uploader: ScriptUploader | None = None,
        store: DeploymentStore | None = None,
    ):
        self.chain = chain
        self.uploader = uploader
        self.store = store

    def deploy(
        self,
        config: ProjectConfig,
        cancel: threading.Event | None = None,
        deployment_time: datetime | None = None,
    ) -> Iterator[LifecycleEvent]:
        """Upload, convert, record, submit and observe one deployment.

        Without an uploader, config.file_url is taken as an existing locator.

        Args:
            config: Project configuration
            cancel: Set to stop the status subscription at its next tick
            deployment_time: Record key (default: now)

        Yields:
            LifecycleEvents in lifecycle order

        Raises:
            InvalidExecutionType: From conversion, before anything is submitted
            SubmissionRejected: On a dispatch error
            SubmissionTransportFailure: If the submission could not be sent
        """
        if deployment_time is None:
            deployment_time = datetime.now(timezone.utc)
        lifecycle = DeploymentLifecycle()

        locator = self.uploader.upload(config.file_url) if self.uploader else config.file_url
        yield from self._emit(lifecycle.uploaded(locator))

        config = dataclasses.replace(config, file_url=locator)
        registration = convert_config_to_job(config)
        yield from self._emit(lifecycle.prepared(registration))

        if self.store is not None:
            self.store.create_record(deployment_time, config, registration)

        for event in self._submission_events(lifecycle, registration):
            if event.status == DeploymentStatus.WAITING_FOR_MATCH and self.store is not None:
                for job_id in event.data["job_ids"]:
                    self.store.attach_job_identifier(deployment_time, job_id)
            yield from self._emit([event])

        yield from self.observe(lifecycle, cancel)

    def submit(self, registration: JobRegistration) -> str:
        """Submit an already converted registration and wait for block inclusion.

        Returns:
            Transaction reference of the included submission
        """
        lifecycle = DeploymentLifecycle()
        lifecycle.prepared(registration)
        for event in self._submission_events(lifecycle, registration):
            self._log(event)
        assert lifecycle.tx_reference is not None
        return lifecycle.tx_reference

    def observe(
        self,
        lifecycle: DeploymentLifecycle,
        cancel: threading.Event | None = None,
    ) -> Iterator[LifecycleEvent]:
        """Follow the status subscription until every job is finalized or cancelled."""
        if lifecycle.done or (cancel is not None and cancel.is_set()):
            return

        waiting(f"Following {len(lifecycle.job_ids)} job(s) until finalized", logger)
        subscription = self.chain.subscribe_status(list(lifecycle.job_ids))
        try:
            for update in subscription:
                if cancel is not None and cancel.is_set():
                    warn("Status subscription cancelled", logger)
                    return
                yield from self._emit(lifecycle.advance_job_status(update))
                if lifecycle.done:
                    success("All jobs finalized", logger)
                    return
        finally:
            _close(subscription)

    def _submission_events(
        self,
        lifecycle: DeploymentLifecycle,
        registration: JobRegistration,
    ) -> Iterator[LifecycleEvent]:
        step("Submitting job registration", logger)
        updates = None
        received = False
        try:
            updates = iter(self.chain.submit(registration))
            for update in updates:
                received = True
                yield from lifecycle.advance_submission(update, self.chain.decode_dispatch_error)
                if update.included:
                    return
        except SubmissionRejected as e:
            error(f"Submission rejected: {e}", logger)
            raise
        except AcuctlError:
            raise
        except Exception as e:
            if received:
                raise
            raise SubmissionTransportFailure(f"Failed to build registration submission: {e}") from e
        finally:
            if updates is not None:
                _close(updates)

        raise SubmissionTransportFailure("Submission stream ended before the registration was included in a block")

    def _emit(self, events: list[LifecycleEvent]) -> Iterator[LifecycleEvent]:
        for event in events:
            self._log(event)
            yield event

    def _log(self, event: LifecycleEvent) -> None:
        log_status(event.status, event.describe(), logger)
