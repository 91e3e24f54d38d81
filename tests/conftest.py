# SPDX-FileCopyrightText: Copyright (c) 2025 The acuctl Authors. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""Shared fixtures for acuctl tests."""

from datetime import datetime, timezone

import pytest

from acuctl.core.schema import (
    AssignmentStrategyConfig,
    OneTimeExecution,
    ProjectConfig,
    UsageLimit,
)

NOW = 1_700_000_000_000


@pytest.fixture
def onetime_project() -> ProjectConfig:
    """The project acuctl writes for a new one-time script."""
    return ProjectConfig(
        project_name="test",
        file_url="./examples/ip.js",
        network="canary",
        only_attested_devices=True,
        assignment_strategy=AssignmentStrategyConfig(type="Single"),
        execution=OneTimeExecution(max_execution_time_in_ms=5000),
        usage_limit=UsageLimit(max_memory=0, max_network_requests=0, max_storage=0),
        max_allowed_start_delay_in_ms=0,
        number_of_replicas=1,
        min_processor_reputation=0,
    )


@pytest.fixture
def deployment_time() -> datetime:
    return datetime(2024, 5, 1, 12, 30, 15, 123000, tzinfo=timezone.utc)
