# SPDX-FileCopyrightText: Copyright (c) 2025 The acuctl Authors. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Scripted chain client for lifecycle tests.

Replays fixed lists of contract models instead of talking to a node, and
records what the controller asked for so tests can assert on it.
"""

from collections.abc import Iterator, Sequence

from acuctl.contract import (
    ChainEvent,
    DecodedDispatchError,
    DispatchError,
    JobStatusKind,
    JobStatusUpdate,
    JobStatusValue,
    SubmissionUpdate,
)

ORIGIN = "5GrwvaEF5zXb26Fz9rcQpDWS57CtERHpNehXCPcNoHGKutQY"
TX = "0x8f3c2a"


def registration_stored(number: int, origin: str = ORIGIN) -> ChainEvent:
    return ChainEvent(section="acurast", method="JobRegistrationStored", data=[{}, [{"Acurast": origin}, str(number)]])


def ready() -> SubmissionUpdate:
    return SubmissionUpdate(tx_reference=TX)


def in_block(*job_numbers: int) -> SubmissionUpdate:
    return SubmissionUpdate(
        tx_reference=TX,
        in_block=True,
        events=[registration_stored(number) for number in job_numbers],
    )


def finalized() -> SubmissionUpdate:
    return SubmissionUpdate(tx_reference=TX, finalized=True)


def module_error() -> SubmissionUpdate:
    return SubmissionUpdate(
        tx_reference=TX,
        dispatch_error=DispatchError(is_module=True, module_index=40, error_index=3),
    )


def status(number: int, kind: JobStatusKind | None, assigned: int | None = None) -> JobStatusUpdate:
    value = JobStatusValue(kind=kind, assigned=assigned) if kind is not None else None
    return JobStatusUpdate(job_id=(ORIGIN, number), status=value)


class ScriptedIterator:
    """Iterator over fixed items that remembers whether it was closed."""

    def __init__(self, items: Sequence, fail_with: Exception | None = None):
        self._items = iter(items)
        self._fail_with = fail_with
        self.closed = False
        self.consumed = 0

    def __iter__(self) -> "ScriptedIterator":
        return self

    def __next__(self):
        if self.closed:
            raise StopIteration
        try:
            item = next(self._items)
        except StopIteration:
            if self._fail_with is not None:
                raise self._fail_with
            raise
        self.consumed += 1
        return item

    def close(self) -> None:
        self.closed = True


class FakeChainClient:
    """ChainClient replaying scripted submission and status updates."""

    def __init__(
        self,
        submission: Sequence[SubmissionUpdate] = (),
        statuses: Sequence[JobStatusUpdate] = (),
        submit_error: Exception | None = None,
        decoded: DecodedDispatchError | None = None,
    ):
        self.submission = ScriptedIterator(submission)
        self.statuses = ScriptedIterator(statuses)
        self.submit_error = submit_error
        self.decoded = decoded or DecodedDispatchError(
            section="acurastMarketplace",
            name="CapacityExceeded",
            docs=["No processor has enough capacity."],
        )
        self.submitted = []
        self.subscribed: list[list[tuple[str, int]]] = []

    def submit(self, registration) -> Iterator[SubmissionUpdate]:
        if self.submit_error is not None:
            raise self.submit_error
        self.submitted.append(registration)
        return self.submission

    def subscribe_status(self, job_ids) -> Iterator[JobStatusUpdate]:
        self.subscribed.append(list(job_ids))
        return self.statuses

    def decode_dispatch_error(self, error: DispatchError) -> DecodedDispatchError:
        return self.decoded


class FakeUploader:
    def __init__(self, locator: str = "ipfs://QmYwAPJzv5CZsnAzt8auVZRn"):
        self.locator = locator
        self.uploaded = []

    def upload(self, file_path) -> str:
        self.uploaded.append(file_path)
        return self.locator


def full_run(number: int) -> list[JobStatusUpdate]:
    """Status ticks of a job that goes all the way to finalized."""
    return [
        status(number, None),
        status(number, JobStatusKind.OPEN),
        status(number, JobStatusKind.MATCHED),
        status(number, JobStatusKind.ASSIGNED, assigned=1),
        status(number, JobStatusKind.ENVIRONMENT_VARIABLES_SET),
        status(number, JobStatusKind.STARTED),
        status(number, JobStatusKind.EXECUTION_DONE),
        status(number, JobStatusKind.FINALIZED),
    ]
