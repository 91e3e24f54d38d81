# SPDX-FileCopyrightText: Copyright (c) 2025 The acuctl Authors. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Protocols for the collaborators acuctl drives but does not implement.

Signing, transaction construction and subscription transport live behind
ChainClient. Any object with these methods works; the CLI builds one from the
`chain_client` setting (a `module:factory` path).
"""

from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from acuctl.contract.chain import DecodedDispatchError, DispatchError, JobStatusUpdate, SubmissionUpdate

if TYPE_CHECKING:
    from acuctl.core.schema import JobRegistration


class ChainClient(Protocol):
    """Submission and status access to the compute network."""

    def submit(self, registration: "JobRegistration") -> Iterator[SubmissionUpdate]:
        """Sign and send the registration, yielding every status update.

        Closing the returned iterator unsubscribes from further updates.
        Raising before the first update means the submission was never sent.
        """
        ...

    def subscribe_status(self, job_ids: Sequence[tuple[str, int]]) -> Iterator[JobStatusUpdate]:
        """Yield status ticks for the given jobs until closed."""
        ...

    def decode_dispatch_error(self, error: DispatchError) -> DecodedDispatchError:
        """Look a module error up in the runtime metadata."""
        ...


class ScriptUploader(Protocol):
    """Content-addressed storage for job scripts."""

    def upload(self, file_path: Path | str) -> str:
        """Upload a local script and return its content locator."""
        ...
