# SPDX-FileCopyrightText: Copyright (c) 2025 The acuctl Authors. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""Pydantic models for the values a chain client streams back to acuctl."""

from typing import Any

from pydantic import BaseModel, Field

from acuctl.contract.enums import JobStatusKind

# Pallet section and event name announcing a stored registration
REGISTRATION_STORED_SECTION = "acurast"
REGISTRATION_STORED_METHOD = "JobRegistrationStored"


class ChainEvent(BaseModel):
    """A runtime event included with a submission update."""

    section: str = Field(..., description="Pallet name, e.g. 'acurast'")
    method: str = Field(..., description="Event name, e.g. 'JobRegistrationStored'")
    data: list[Any] = Field(default_factory=list, description="Human-readable event arguments")

    @property
    def is_registration_stored(self) -> bool:
        return self.section == REGISTRATION_STORED_SECTION and self.method == REGISTRATION_STORED_METHOD


class DispatchError(BaseModel):
    """Raw dispatch error attached to a failed extrinsic."""

    is_module: bool = Field(False, description="True when the error comes from a pallet")
    module_index: int | None = Field(None, description="Pallet index for module errors")
    error_index: int | None = Field(None, description="Error index inside the pallet")
    message: str | None = Field(None, description="Human-readable form for non-module errors")

    def __str__(self) -> str:
        if self.message:
            return self.message
        if self.is_module:
            return f"Module {{ index: {self.module_index}, error: {self.error_index} }}"
        return "DispatchError"


class DecodedDispatchError(BaseModel):
    """Module error looked up in the runtime metadata."""

    section: str
    name: str
    docs: list[str] = Field(default_factory=list)


class SubmissionUpdate(BaseModel):
    """One status update of a submitted registration extrinsic."""

    tx_reference: str = Field(..., description="Transaction hash as hex")
    in_block: bool = False
    finalized: bool = False
    dispatch_error: DispatchError | None = None
    events: list[ChainEvent] = Field(default_factory=list)

    @property
    def included(self) -> bool:
        """Entered a block (finalized implies included)."""
        return self.in_block or self.finalized


class JobStatusValue(BaseModel):
    """Decoded `Some(status)` of a stored job."""

    kind: JobStatusKind
    assigned: int | None = Field(None, description="Acknowledgement count for assigned jobs")


class JobStatusUpdate(BaseModel):
    """One tick of the per-job status subscription.

    `status` is None while the network has not processed the job yet.
    """

    job_id: tuple[str, int]
    status: JobStatusValue | None = None
