# SPDX-FileCopyrightText: Copyright (c) 2025 The acuctl Authors. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Core modules for acuctl.

This package contains:
- schema: Frozen dataclass schemas (ProjectConfig, JobRegistration, Deployment)
- schedule: Schedule and reward resolution
- convert: ProjectConfig -> JobRegistration
- deployments: File-based deployment record store
- lifecycle: Deployment state machine and controller
- config: acurast.json / acuctl.yaml / .env loading
- upload: IPFS script upload
- utils: Duration parsing and job id helpers
"""

from .config import get_acuctl_setting, load_cli_config, load_project, save_project
from .convert import convert_config_to_job
from .deployments import DeploymentStore
from .lifecycle import DeploymentController, DeploymentLifecycle, LifecycleEvent
from .schedule import DEFAULT_MAX_ALLOWED_START_DELAY_MS, DEFAULT_REWARD, compute_schedule
from .schema import (
    AssignmentStrategy,
    AssignmentStrategyConfig,
    AssignmentStrategyVariant,
    CliConfig,
    Deployment,
    InstantMatchConfig,
    IntervalExecution,
    JobRegistration,
    JobSchedule,
    OneTimeExecution,
    ProjectConfig,
    UsageLimit,
)

__all__ = [
    # Config loading
    "load_cli_config",
    "load_project",
    "save_project",
    "get_acuctl_setting",
    # Schema types (frozen dataclasses)
    "ProjectConfig",
    "OneTimeExecution",
    "IntervalExecution",
    "UsageLimit",
    "AssignmentStrategyConfig",
    "InstantMatchConfig",
    "CliConfig",
    "JobRegistration",
    "JobSchedule",
    "AssignmentStrategy",
    "AssignmentStrategyVariant",
    "Deployment",
    # Conversion
    "compute_schedule",
    "convert_config_to_job",
    "DEFAULT_REWARD",
    "DEFAULT_MAX_ALLOWED_START_DELAY_MS",
    # Records
    "DeploymentStore",
    # Lifecycle
    "DeploymentController",
    "DeploymentLifecycle",
    "LifecycleEvent",
]
