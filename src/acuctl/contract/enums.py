# SPDX-FileCopyrightText: Copyright (c) 2025 The acuctl Authors. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""Canonical enum definitions for the deployment lifecycle and chain contract."""

from enum import Enum


class DeploymentStatus(str, Enum):
    """Lifecycle states of one deployment attempt, in emission order.

    We report when ENTERING a state. Matched and Acknowledged share a position:
    a job may skip Matched and be observed as assigned directly.
    """

    UPLOADED = "Uploaded"
    PREPARED = "Prepared"
    SUBMIT = "Submit"
    WAITING_FOR_MATCH = "WaitingForMatch"
    MATCHED = "Matched"
    ACKNOWLEDGED = "Acknowledged"
    ENVIRONMENT_VARIABLES_SET = "EnvironmentVariablesSet"
    STARTED = "Started"
    EXECUTION_DONE = "ExecutionDone"
    FINALIZED = "Finalized"


class JobStatusKind(str, Enum):
    """Decoded on-chain marketplace status of a stored job.

    open, matched and assigned mirror the marketplace pallet's job status.
    The remaining markers are supplied by chain clients that can observe the
    post-acknowledgement phases.
    """

    OPEN = "open"
    MATCHED = "matched"
    ASSIGNED = "assigned"
    ENVIRONMENT_VARIABLES_SET = "environment_variables_set"
    STARTED = "started"
    EXECUTION_DONE = "execution_done"
    FINALIZED = "finalized"
