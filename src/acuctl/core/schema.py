# SPDX-FileCopyrightText: Copyright (c) 2025 The acuctl Authors. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Frozen dataclass schema definitions for projects, registrations and deployments.

Uses marshmallow_dataclass for type-safe configuration with validation.
All classes are frozen (immutable) after creation. Attributes are snake_case
in Python and camelCase in acurast.json and the deployment records.
"""

from dataclasses import field
from enum import Enum
from pathlib import Path
from typing import (
    Annotated,
    Any,
    ClassVar,
    Dict,
    List,
    Literal,
    Mapping,
    Optional,
    Tuple,
    Type,
    Union,
)

from marshmallow import EXCLUDE, Schema, ValidationError, fields, post_dump, validate
from marshmallow_dataclass import dataclass

from acuctl.errors import InvalidExecutionType

# (origin account, sequence number)
JobId = Tuple[str, int]


def camelcase(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


class CamelCaseSchema(Schema):
    """Base schema mapping snake_case attributes to camelCase JSON keys.

    None values are dropped on dump so unset optionals do not show up in
    records, matching what the network tooling writes.
    """

    class Meta:
        unknown = EXCLUDE

    def on_bind_field(self, field_name: str, field_obj: fields.Field) -> None:
        field_obj.data_key = camelcase(field_obj.data_key or field_name)

    @post_dump
    def remove_none(self, data: Dict[str, Any], **kwargs) -> Dict[str, Any]:
        return {key: value for key, value in data.items() if value is not None}


NON_NEGATIVE = {"validate": validate.Range(min=0)}


# ============================================================================
# Enums
# ============================================================================


class AssignmentStrategyVariant(str, Enum):
    SINGLE = "Single"
    COMPETING = "Competing"


class ExecutionType(str, Enum):
    ONETIME = "onetime"
    INTERVAL = "interval"


# ============================================================================
# Settings (acuctl.yaml)
# ============================================================================


@dataclass
class AcuctlSettings:
    """Workspace settings from acuctl.yaml (snake_case keys)."""

    deploy_dir: Optional[str] = None
    default_network: Optional[str] = None
    ipfs_url: Optional[str] = None
    rpc_url: Optional[str] = None
    chain_client: Optional[str] = None

    Schema: ClassVar[Type[Schema]] = Schema


# ============================================================================
# Project Configuration (acurast.json)
# ============================================================================


@dataclass(frozen=True, base_schema=CamelCaseSchema)
class OneTimeExecution:
    """Run once, for at most max_execution_time_in_ms."""

    max_execution_time_in_ms: int = field(metadata={"validate": validate.Range(min=1)})
    type: Literal["onetime"] = "onetime"

    Schema: ClassVar[Type[Schema]] = Schema


@dataclass(frozen=True, base_schema=CamelCaseSchema)
class IntervalExecution:
    """Run number_of_executions times, one every interval_in_ms."""

    interval_in_ms: int = field(metadata={"validate": validate.Range(min=1)})
    number_of_executions: int = field(metadata={"validate": validate.Range(min=1)})
    type: Literal["interval"] = "interval"

    Schema: ClassVar[Type[Schema]] = Schema


Execution = Union[OneTimeExecution, IntervalExecution]


class ExecutionField(fields.Field):
    """Marshmallow field for polymorphic execution deserialization based on type."""

    def _deserialize(
        self,
        value: Any,
        attr: Optional[str],
        data: Optional[Mapping[str, Any]],
        **kwargs,
    ) -> Execution:
        if isinstance(value, (OneTimeExecution, IntervalExecution)):
            return value

        if not isinstance(value, dict):
            raise ValidationError(f"Expected dict for execution, got {type(value).__name__}")

        execution_type = value.get("type")
        if execution_type == ExecutionType.ONETIME.value:
            return OneTimeExecution.Schema().load(value)
        if execution_type == ExecutionType.INTERVAL.value:
            return IntervalExecution.Schema().load(value)
        raise InvalidExecutionType(execution_type)

    def _serialize(self, value: Optional[Any], attr: Optional[str], obj: Any, **kwargs) -> Any:
        if isinstance(value, (OneTimeExecution, IntervalExecution)):
            return type(value).Schema().dump(value)
        return value


@dataclass(frozen=True, base_schema=CamelCaseSchema)
class UsageLimit:
    """Resource ceilings. None and 0 both mean "use the network default"."""

    max_memory: Optional[int] = field(default=None, metadata=NON_NEGATIVE)
    max_network_requests: Optional[int] = field(default=None, metadata=NON_NEGATIVE)
    max_storage: Optional[int] = field(default=None, metadata=NON_NEGATIVE)

    Schema: ClassVar[Type[Schema]] = Schema


@dataclass(frozen=True, base_schema=CamelCaseSchema)
class InstantMatchConfig:
    """A pre-approved processor and the start delay it agreed to."""

    processor: str
    max_allowed_start_delay_in_ms: int = field(default=0, metadata=NON_NEGATIVE)

    Schema: ClassVar[Type[Schema]] = Schema


@dataclass(frozen=True, base_schema=CamelCaseSchema)
class AssignmentStrategyConfig:
    type: Literal["Single", "Competing"] = "Single"
    instant_match: Optional[List[InstantMatchConfig]] = None

    Schema: ClassVar[Type[Schema]] = Schema


@dataclass(frozen=True, base_schema=CamelCaseSchema)
class ProjectConfig:
    """One project entry of acurast.json.

    file_url points at the bundled script until upload; afterwards the
    controller swaps in the content locator before conversion.
    """

    project_name: str
    file_url: str
    execution: Annotated[Execution, ExecutionField()]

    network: str = "canary"
    only_attested_devices: bool = True
    assignment_strategy: AssignmentStrategyConfig = field(default_factory=AssignmentStrategyConfig)
    usage_limit: UsageLimit = field(default_factory=UsageLimit)
    max_allowed_start_delay_in_ms: Optional[int] = field(default=None, metadata=NON_NEGATIVE)
    number_of_replicas: Optional[int] = field(default=None, metadata=NON_NEGATIVE)
    min_processor_reputation: Optional[int] = field(default=None, metadata=NON_NEGATIVE)
    max_cost_per_execution: Optional[int] = field(default=None, metadata=NON_NEGATIVE)
    required_modules: Optional[List[str]] = None
    include_environment_variables: Optional[List[str]] = None
    processor_whitelist: Optional[List[str]] = None

    Schema: ClassVar[Type[Schema]] = Schema


@dataclass(frozen=True, base_schema=CamelCaseSchema)
class CliConfig:
    """Root of acurast.json."""

    projects: Dict[str, ProjectConfig] = field(default_factory=dict)

    Schema: ClassVar[Type[Schema]] = Schema

    @classmethod
    def from_file(cls, path: Path) -> "CliConfig":
        with open(path) as f:
            return cls.Schema().loads(f.read())


# ============================================================================
# Job Registration (chain-ready)
# ============================================================================


@dataclass(frozen=True, base_schema=CamelCaseSchema)
class JobSchedule:
    """Absolute schedule in milliseconds."""

    duration: int
    start_time: int
    end_time: int
    interval: int
    max_start_delay: int

    Schema: ClassVar[Type[Schema]] = Schema

    @property
    def number_of_executions(self) -> int:
        if self.interval <= 0:
            return 0
        return (self.end_time - self.start_time) // self.interval

    @property
    def is_valid(self) -> bool:
        return (
            0 < self.duration <= self.interval
            and self.start_time < self.end_time
            and self.end_time - self.start_time >= self.interval
        )


@dataclass(frozen=True, base_schema=CamelCaseSchema)
class PlannedExecution:
    """Instant-match entry: the processor account and its start delay."""

    source: str
    start_delay: int

    Schema: ClassVar[Type[Schema]] = Schema


@dataclass(frozen=True, base_schema=CamelCaseSchema)
class AssignmentStrategy:
    """Single carries instant_match only when a match was pre-arranged."""

    variant: Literal["Single", "Competing"]
    instant_match: Optional[List[PlannedExecution]] = None

    Schema: ClassVar[Type[Schema]] = Schema


@dataclass(frozen=True, base_schema=CamelCaseSchema)
class JobRequirements:
    assignment_strategy: AssignmentStrategy
    slots: int
    reward: int
    min_reputation: Optional[int] = None

    Schema: ClassVar[Type[Schema]] = Schema


@dataclass(frozen=True, base_schema=CamelCaseSchema)
class JobRegistrationExtra:
    requirements: JobRequirements

    Schema: ClassVar[Type[Schema]] = Schema


@dataclass(frozen=True, base_schema=CamelCaseSchema)
class JobRegistration:
    """Canonical job registration handed to the chain client."""

    script: str
    allow_only_verified_sources: bool
    schedule: JobSchedule
    memory: int
    network_requests: int
    storage: int
    extra: JobRegistrationExtra
    required_modules: List[str] = field(default_factory=list)
    allowed_sources: Optional[List[str]] = None

    Schema: ClassVar[Type[Schema]] = Schema

    def to_dict(self) -> Dict[str, Any]:
        return self.Schema().dump(self)


# ============================================================================
# Deployment Record
# ============================================================================


@dataclass(frozen=True, base_schema=CamelCaseSchema)
class ProcessorAssignment:
    processor_id: str
    status: Literal["matched", "acknowledged", "failed"]

    Schema: ClassVar[Type[Schema]] = Schema


@dataclass(frozen=True, base_schema=CamelCaseSchema)
class Deployment:
    """Locally persisted snapshot of one deployment attempt."""

    deployed_at: str
    config: ProjectConfig
    registration: JobRegistration
    status: str = "init"
    assignments: List[ProcessorAssignment] = field(default_factory=list)
    deployment_id: Optional[JobId] = None

    Schema: ClassVar[Type[Schema]] = Schema
