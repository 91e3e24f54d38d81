# SPDX-FileCopyrightText: Copyright (c) 2025 The acuctl Authors. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the deployment state machine and controller.

The chain is replaced by fake_chain.FakeChainClient, which replays scripted
submission and status updates.
"""

import dataclasses
import json
import threading

import pytest

from acuctl.contract import DeploymentStatus, DispatchError, JobStatusKind, SubmissionUpdate
from acuctl.core.convert import convert_config_to_job
from acuctl.core.deployments import DeploymentStore
from acuctl.core.lifecycle import DeploymentController, DeploymentLifecycle, LifecycleEvent
from acuctl.errors import InvalidExecutionType, SubmissionRejected, SubmissionTransportFailure

from conftest import NOW
from fake_chain import (
    ORIGIN,
    TX,
    FakeChainClient,
    FakeUploader,
    finalized,
    full_run,
    in_block,
    module_error,
    ready,
    status,
)

FULL_RUN = full_run(7)


def statuses(events: list[LifecycleEvent]) -> list[DeploymentStatus]:
    return [event.status for event in events]


@pytest.fixture
def prepared(onetime_project) -> DeploymentLifecycle:
    lifecycle = DeploymentLifecycle()
    lifecycle.uploaded("ipfs://QmHash")
    lifecycle.prepared(convert_config_to_job(onetime_project, now=NOW))
    return lifecycle


@pytest.fixture
def waiting(prepared) -> DeploymentLifecycle:
    prepared.advance_submission(in_block(7))
    return prepared


class TestLifecycleSubmission:
    """Submission updates: Submit then WaitingForMatch on block inclusion."""

    def test_ready_produces_nothing(self, prepared):
        assert prepared.advance_submission(ready()) == []
        assert not prepared.submitted

    def test_in_block_emits_submit_then_waiting(self, prepared):
        events = prepared.advance_submission(in_block(7))

        assert statuses(events) == [DeploymentStatus.SUBMIT, DeploymentStatus.WAITING_FOR_MATCH]
        assert events[0].data == {"tx_reference": TX}
        assert events[1].data == {"job_ids": [(ORIGIN, 7)]}
        assert prepared.state == DeploymentStatus.WAITING_FOR_MATCH
        assert prepared.tx_reference == TX

    def test_multiple_registrations_in_event_order(self, prepared):
        events = prepared.advance_submission(in_block(9, 8))

        assert events[1].data["job_ids"] == [(ORIGIN, 9), (ORIGIN, 8)]

    def test_unrelated_events_are_ignored(self, prepared):
        update = in_block(7)
        update.events.insert(0, update.events[0].model_copy(update={"section": "balances", "method": "Withdraw"}))

        events = prepared.advance_submission(update)

        assert events[1].data["job_ids"] == [(ORIGIN, 7)]

    def test_finalized_without_in_block_counts_as_included(self, prepared):
        events = prepared.advance_submission(
            SubmissionUpdate(tx_reference=TX, finalized=True, events=in_block(7).events)
        )

        assert statuses(events) == [DeploymentStatus.SUBMIT, DeploymentStatus.WAITING_FOR_MATCH]

    def test_updates_after_inclusion_are_ignored(self, waiting):
        assert waiting.advance_submission(finalized()) == []
        assert waiting.advance_submission(in_block(8)) == []
        assert waiting.job_ids == [(ORIGIN, 7)]

    def test_no_registration_event_is_done_after_submit(self, prepared):
        events = prepared.advance_submission(in_block())

        assert statuses(events) == [DeploymentStatus.SUBMIT]
        assert prepared.done


class TestLifecycleRejection:
    def test_module_error_is_decoded(self, prepared):
        chain = FakeChainClient()

        with pytest.raises(SubmissionRejected, match="acurastMarketplace.CapacityExceeded") as exc_info:
            prepared.advance_submission(module_error(), chain.decode_dispatch_error)

        assert exc_info.value.section == "acurastMarketplace"
        assert exc_info.value.name == "CapacityExceeded"
        assert exc_info.value.docs == "No processor has enough capacity."
        assert prepared.failed
        assert prepared.done
        assert prepared.state == DeploymentStatus.PREPARED

    def test_other_dispatch_error_uses_message(self, prepared):
        update = SubmissionUpdate(tx_reference=TX, dispatch_error=DispatchError(message="BadOrigin"))

        with pytest.raises(SubmissionRejected, match="BadOrigin"):
            prepared.advance_submission(update)

    def test_module_error_without_decoder(self, prepared):
        with pytest.raises(SubmissionRejected, match="Module"):
            prepared.advance_submission(module_error())

    def test_no_transitions_after_failure(self, prepared):
        with pytest.raises(SubmissionRejected):
            prepared.advance_submission(module_error())

        with pytest.raises(RuntimeError):
            prepared.advance_submission(in_block(7))


class TestLifecycleOrdering:
    def test_prepared_requires_upload_or_start(self, onetime_project):
        lifecycle = DeploymentLifecycle()
        lifecycle.prepared(convert_config_to_job(onetime_project, now=NOW))

        with pytest.raises(RuntimeError):
            lifecycle.uploaded("ipfs://QmHash")

    def test_submission_before_prepared_raises(self):
        with pytest.raises(RuntimeError):
            DeploymentLifecycle().advance_submission(in_block(7))

    def test_status_before_waiting_raises(self, prepared):
        with pytest.raises(RuntimeError):
            prepared.advance_job_status(status(7, JobStatusKind.MATCHED))


class TestLifecycleJobStatus:
    """Status ticks: forward-only per job, Acknowledged re-emitted on count change."""

    def test_full_run(self, waiting):
        events = [event for update in FULL_RUN for event in waiting.advance_job_status(update)]

        assert statuses(events) == [
            DeploymentStatus.MATCHED,
            DeploymentStatus.ACKNOWLEDGED,
            DeploymentStatus.ENVIRONMENT_VARIABLES_SET,
            DeploymentStatus.STARTED,
            DeploymentStatus.EXECUTION_DONE,
            DeploymentStatus.FINALIZED,
        ]
        assert events[1].data == {"job_id": (ORIGIN, 7), "acknowledged": 1}
        assert waiting.done

    @pytest.mark.parametrize("kind", [None, JobStatusKind.OPEN])
    def test_unprocessed_and_open_emit_nothing(self, waiting, kind):
        assert waiting.advance_job_status(status(7, kind)) == []
        assert waiting.state == DeploymentStatus.WAITING_FOR_MATCH

    def test_repeated_status_emits_once(self, waiting):
        first = waiting.advance_job_status(status(7, JobStatusKind.MATCHED))
        second = waiting.advance_job_status(status(7, JobStatusKind.MATCHED))

        assert statuses(first) == [DeploymentStatus.MATCHED]
        assert second == []

    def test_acknowledged_count_change_is_reported(self, waiting):
        events = []
        for count in (1, 1, 2, 3):
            events += waiting.advance_job_status(status(7, JobStatusKind.ASSIGNED, assigned=count))

        assert [event.data["acknowledged"] for event in events] == [1, 2, 3]

    def test_assigned_without_matched(self, waiting):
        events = waiting.advance_job_status(status(7, JobStatusKind.ASSIGNED, assigned=1))

        assert statuses(events) == [DeploymentStatus.ACKNOWLEDGED]

    def test_matched_after_assigned_is_ignored(self, waiting):
        waiting.advance_job_status(status(7, JobStatusKind.ASSIGNED, assigned=1))

        assert waiting.advance_job_status(status(7, JobStatusKind.MATCHED)) == []

    def test_unknown_job_is_ignored(self, waiting):
        assert waiting.advance_job_status(status(99, JobStatusKind.MATCHED)) == []

    def test_done_only_when_every_job_finalized(self, prepared):
        prepared.advance_submission(in_block(7, 8))

        prepared.advance_job_status(status(7, JobStatusKind.FINALIZED))
        assert not prepared.done

        prepared.advance_job_status(status(8, JobStatusKind.FINALIZED))
        assert prepared.done


class TestLifecycleEventDescribe:
    def test_describe_waiting(self):
        event = LifecycleEvent(DeploymentStatus.WAITING_FOR_MATCH, {"job_ids": [(ORIGIN, 7), (ORIGIN, 8)]})

        assert event.describe() == "waiting for processors to match job(s) 7, 8"

    def test_describe_acknowledged(self):
        event = LifecycleEvent(DeploymentStatus.ACKNOWLEDGED, {"job_id": (ORIGIN, 7), "acknowledged": 2})

        assert "2 processor(s)" in event.describe()


class TestDeploymentController:
    """End-to-end deploy() against the scripted chain."""

    def test_full_deployment(self, onetime_project, tmp_path, deployment_time):
        chain = FakeChainClient(submission=[ready(), in_block(7), finalized()], statuses=FULL_RUN)
        uploader = FakeUploader()
        store = DeploymentStore(tmp_path)
        controller = DeploymentController(chain, uploader=uploader, store=store)

        events = list(controller.deploy(onetime_project, deployment_time=deployment_time))

        assert statuses(events) == [
            DeploymentStatus.UPLOADED,
            DeploymentStatus.PREPARED,
            DeploymentStatus.SUBMIT,
            DeploymentStatus.WAITING_FOR_MATCH,
            DeploymentStatus.MATCHED,
            DeploymentStatus.ACKNOWLEDGED,
            DeploymentStatus.ENVIRONMENT_VARIABLES_SET,
            DeploymentStatus.STARTED,
            DeploymentStatus.EXECUTION_DONE,
            DeploymentStatus.FINALIZED,
        ]
        assert uploader.uploaded == ["./examples/ip.js"]
        assert chain.submitted[0].script == uploader.locator
        assert chain.subscribed == [[(ORIGIN, 7)]]
        assert chain.submission.closed
        assert chain.statuses.closed

        names = sorted(p.name for p in tmp_path.iterdir())
        assert names == ["test-1714566615123-7.json", "test-1714566615123.json"]
        with open(tmp_path / "test-1714566615123-7.json") as f:
            record = json.load(f)
        assert record["deploymentId"] == [ORIGIN, 7]
        assert record["config"]["fileUrl"] == uploader.locator

    def test_submission_stream_closed_after_inclusion(self, onetime_project):
        chain = FakeChainClient(submission=[ready(), in_block(7), finalized()])
        controller = DeploymentController(chain)

        list(controller.deploy(onetime_project))

        assert chain.submission.consumed == 2
        assert chain.submission.closed

    def test_without_uploader_uses_file_url(self, onetime_project):
        chain = FakeChainClient(submission=[in_block(7)])

        events = list(DeploymentController(chain).deploy(onetime_project))

        assert events[0].data == {"locator": "./examples/ip.js"}

    def test_rejection_stops_before_waiting(self, onetime_project, tmp_path, deployment_time):
        chain = FakeChainClient(submission=[ready(), module_error()])
        store = DeploymentStore(tmp_path)
        events = []

        with pytest.raises(SubmissionRejected, match="acurastMarketplace.CapacityExceeded: No processor"):
            for event in DeploymentController(chain, store=store).deploy(
                onetime_project, deployment_time=deployment_time
            ):
                events.append(event)

        assert statuses(events) == [DeploymentStatus.UPLOADED, DeploymentStatus.PREPARED]
        assert chain.subscribed == []
        assert chain.submission.closed
        assert [p.name for p in tmp_path.iterdir()] == ["test-1714566615123.json"]

    def test_submit_error_is_transport_failure(self, onetime_project):
        chain = FakeChainClient(submit_error=ConnectionError("connection refused"))

        with pytest.raises(SubmissionTransportFailure, match="connection refused"):
            list(DeploymentController(chain).deploy(onetime_project))

        assert chain.subscribed == []

    def test_stream_ending_early_is_transport_failure(self, onetime_project):
        chain = FakeChainClient(submission=[ready()])

        with pytest.raises(SubmissionTransportFailure, match="before the registration was included"):
            list(DeploymentController(chain).deploy(onetime_project))

    def test_invalid_execution_fails_before_submission(self, onetime_project):
        chain = FakeChainClient(submission=[in_block(7)])
        project = dataclasses.replace(onetime_project, execution={"type": "invalid"})

        with pytest.raises(InvalidExecutionType):
            list(DeploymentController(chain).deploy(project))

        assert chain.submitted == []

    def test_cancel_stops_subscription(self, onetime_project):
        chain = FakeChainClient(submission=[in_block(7)], statuses=FULL_RUN)
        cancel = threading.Event()
        events = []

        for event in DeploymentController(chain).deploy(onetime_project, cancel=cancel):
            events.append(event)
            if event.status == DeploymentStatus.MATCHED:
                cancel.set()

        assert events[-1].status == DeploymentStatus.MATCHED
        assert chain.statuses.closed

    def test_closing_generator_closes_subscription(self, onetime_project):
        chain = FakeChainClient(submission=[in_block(7)], statuses=FULL_RUN)
        events = DeploymentController(chain).deploy(onetime_project)

        for event in events:
            if event.status == DeploymentStatus.STARTED:
                break
        events.close()

        assert chain.statuses.closed

    def test_submit_returns_tx_reference(self, onetime_project):
        chain = FakeChainClient(submission=[ready(), in_block(7)])
        registration = convert_config_to_job(onetime_project, now=NOW)

        assert DeploymentController(chain).submit(registration) == TX
        assert chain.submitted == [registration]

    def test_logs_lifecycle_progress(self, onetime_project, caplog):
        chain = FakeChainClient(submission=[in_block(7)], statuses=FULL_RUN)

        with caplog.at_level("INFO", logger="acuctl.core.lifecycle"):
            list(DeploymentController(chain).deploy(onetime_project))

        assert "⏳ [WaitingForMatch] waiting for processors to match job(s) 7" in caplog.text
        assert "✓ All jobs finalized" in caplog.text

    def test_logs_rejection(self, onetime_project, caplog):
        chain = FakeChainClient(submission=[module_error()])

        with pytest.raises(SubmissionRejected):
            list(DeploymentController(chain).deploy(onetime_project))

        assert "✗ Submission rejected: acurastMarketplace.CapacityExceeded" in caplog.text
