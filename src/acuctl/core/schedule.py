# SPDX-FileCopyrightText: Copyright (c) 2025 The acuctl Authors. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Schedule and reward resolution.

Turns an execution description into absolute schedule fields and resolves the
economic defaults. Apart from now_ms() everything here is a pure function.

Zero and None are treated alike ("use the default") for the start delay and
the reward. This keeps the behaviour of existing acurast.json files, where 0
was written to mean "unset"; it also means a caller cannot ask for a literal
zero through these helpers.
"""

import time

from acuctl.core.schema import Execution, IntervalExecution, JobSchedule, OneTimeExecution
from acuctl.errors import InvalidExecutionType

# Smallest indivisible unit per execution (1 cACU = 10^9 units)
DEFAULT_REWARD = 1_000_000_000
DEFAULT_MAX_ALLOWED_START_DELAY_MS = 10_000


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def resolve_max_start_delay(max_allowed_start_delay_in_ms: int | None) -> int:
    return max_allowed_start_delay_in_ms or DEFAULT_MAX_ALLOWED_START_DELAY_MS


def resolve_reward(max_cost_per_execution: int | None) -> int:
    return max_cost_per_execution or DEFAULT_REWARD


def compute_schedule(
    execution: Execution,
    now: int,
    max_allowed_start_delay_in_ms: int | None = None,
) -> JobSchedule:
    """Compute the absolute schedule of a job starting at `now`.

    Args:
        execution: One-time or interval execution description
        now: Start time in milliseconds since the epoch
        max_allowed_start_delay_in_ms: Allowed start delay (default when unset or 0)

    Returns:
        JobSchedule with duration <= interval and end_time covering every execution

    Raises:
        InvalidExecutionType: If execution is neither one-time nor interval
    """
    max_start_delay = resolve_max_start_delay(max_allowed_start_delay_in_ms)

    if isinstance(execution, OneTimeExecution):
        duration = execution.max_execution_time_in_ms
        return JobSchedule(
            duration=duration,
            start_time=now,
            end_time=now + duration,
            interval=duration,
            max_start_delay=max_start_delay,
        )

    if isinstance(execution, IntervalExecution):
        interval = execution.interval_in_ms
        return JobSchedule(
            duration=interval,
            start_time=now,
            end_time=now + interval * execution.number_of_executions,
            interval=interval,
            max_start_delay=max_start_delay,
        )

    raise InvalidExecutionType(_execution_type(execution))


def _execution_type(execution: object) -> object:
    if isinstance(execution, dict):
        return execution.get("type")
    return getattr(execution, "type", execution)
