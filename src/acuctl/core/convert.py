# SPDX-FileCopyrightText: Copyright (c) 2025 The acuctl Authors. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Project configuration -> canonical job registration.

convert_config_to_job() is deterministic for a given `now`; only start_time
and end_time depend on the wall clock when `now` is omitted. It either
returns a complete JobRegistration or raises, never a partial one.
"""

import logging

from acuctl.core.schedule import compute_schedule, now_ms, resolve_reward
from acuctl.core.schema import (
    AssignmentStrategy,
    AssignmentStrategyConfig,
    AssignmentStrategyVariant,
    JobRegistration,
    JobRegistrationExtra,
    JobRequirements,
    PlannedExecution,
    ProjectConfig,
    UsageLimit,
)
from acuctl.core.utils import to_unsigned_int
from acuctl.errors import InvalidSchedule

logger = logging.getLogger(__name__)

# Minimum viable allocation on the network
DEFAULT_MAX_MEMORY = 512
DEFAULT_MAX_NETWORK_REQUESTS = 10
DEFAULT_MAX_STORAGE = 100


def resolve_usage_limits(usage_limit: UsageLimit) -> tuple[int, int, int]:
    """Return (memory, network_requests, storage) with defaults applied.

    A limit of 0 is indistinguishable from an unset one and also gets the
    default; a zero ceiling is never submitted.
    """
    return (
        usage_limit.max_memory or DEFAULT_MAX_MEMORY,
        usage_limit.max_network_requests or DEFAULT_MAX_NETWORK_REQUESTS,
        usage_limit.max_storage or DEFAULT_MAX_STORAGE,
    )


def convert_assignment_strategy(strategy: AssignmentStrategyConfig) -> AssignmentStrategy:
    """Map the configured strategy to the registration variant.

    Single keeps a non-empty instant-match list in order. An empty or missing
    list means the match is negotiated on-chain. Competing never carries one.
    """
    if strategy.type == AssignmentStrategyVariant.COMPETING:
        return AssignmentStrategy(variant=AssignmentStrategyVariant.COMPETING.value)

    if strategy.instant_match:
        planned = [
            PlannedExecution(
                source=item.processor,
                start_delay=to_unsigned_int(item.max_allowed_start_delay_in_ms),
            )
            for item in strategy.instant_match
        ]
        return AssignmentStrategy(variant=AssignmentStrategyVariant.SINGLE.value, instant_match=planned)

    return AssignmentStrategy(variant=AssignmentStrategyVariant.SINGLE.value)


def convert_config_to_job(config: ProjectConfig, now: int | None = None) -> JobRegistration:
    """Convert a project configuration into a chain-ready registration.

    Args:
        config: Project configuration; file_url must already be the uploaded locator
        now: Start time in ms since the epoch (default: current time)

    Returns:
        JobRegistration ready for submission

    Raises:
        InvalidExecutionType: If the execution type is neither onetime nor interval
        InvalidSchedule: If the duration is not positive or no execution fits the window
    """
    schedule = compute_schedule(
        config.execution,
        now if now is not None else now_ms(),
        config.max_allowed_start_delay_in_ms,
    )
    if not schedule.is_valid:
        raise InvalidSchedule(config.project_name, schedule)
    memory, network_requests, storage = resolve_usage_limits(config.usage_limit)

    requirements = JobRequirements(
        assignment_strategy=convert_assignment_strategy(config.assignment_strategy),
        slots=max(1, config.number_of_replicas or 1),
        reward=resolve_reward(config.max_cost_per_execution),
        # 0 means "no minimum", not "minimum zero"
        min_reputation=config.min_processor_reputation or None,
    )

    registration = JobRegistration(
        script=config.file_url,
        allowed_sources=list(config.processor_whitelist) if config.processor_whitelist else None,
        allow_only_verified_sources=bool(config.only_attested_devices),
        schedule=schedule,
        memory=memory,
        network_requests=network_requests,
        storage=storage,
        required_modules=list(config.required_modules or []),
        extra=JobRegistrationExtra(requirements=requirements),
    )
    logger.debug(
        "Converted %s: %d execution(s), %d slot(s), reward %d",
        config.project_name,
        schedule.number_of_executions,
        requirements.slots,
        requirements.reward,
    )
    return registration
