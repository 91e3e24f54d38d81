# SPDX-FileCopyrightText: Copyright (c) 2025 The acuctl Authors. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Shared contract between acuctl and its chain and upload collaborators.

This package defines the Pydantic models a chain client streams back, the
lifecycle enums, and the Protocols a chain client and uploader implement.

Usage (chain client author):
    from acuctl.contract import ChainEvent, SubmissionUpdate, JobStatusUpdate, JobStatusValue

Usage (controller):
    from acuctl.contract import ChainClient, DeploymentStatus
"""

from acuctl.contract.chain import (
    ChainEvent,
    DecodedDispatchError,
    DispatchError,
    JobStatusUpdate,
    JobStatusValue,
    SubmissionUpdate,
)
from acuctl.contract.enums import DeploymentStatus, JobStatusKind
from acuctl.contract.protocols import ChainClient, ScriptUploader

__all__ = [
    "DeploymentStatus",
    "JobStatusKind",
    "ChainEvent",
    "DispatchError",
    "DecodedDispatchError",
    "SubmissionUpdate",
    "JobStatusValue",
    "JobStatusUpdate",
    "ChainClient",
    "ScriptUploader",
]
