"""
acuctl - Deployment controller for scripts on the Acurast compute network.

This package turns an acurast.json project into a chain-ready job
registration, submits it through a pluggable chain client and follows the
job from submission to finalization, keeping a local record of every
deployment.

Key modules:
- core.schema: Frozen dataclass definitions (ProjectConfig, JobRegistration, Deployment)
- core.convert: Config-to-job conversion
- core.schedule: Schedule and reward defaults
- core.deployments: Deployment record store
- core.lifecycle: Lifecycle state machine and DeploymentController
- contract: Chain client models, enums and protocols
- cli.main: Command line interface
- logging_utils: Logging configuration and lifecycle status styling

Usage:
    acuctl dry-run my-project
    acuctl deploy my-project
"""

__version__ = "0.3.0"

# Logging utilities (should be first)
from .logging_utils import setup_logging

from .contract import ChainClient, DeploymentStatus, ScriptUploader
from .core.config import load_cli_config, load_project
from .core.convert import convert_config_to_job
from .core.deployments import DeploymentStore
from .core.lifecycle import DeploymentController, DeploymentLifecycle, LifecycleEvent
from .core.schema import JobRegistration, ProjectConfig
from .errors import (
    AcuctlError,
    InvalidExecutionType,
    InvalidSchedule,
    SubmissionRejected,
    SubmissionTransportFailure,
)

__all__ = [
    # Version
    "__version__",
    # Logging
    "setup_logging",
    # Config
    "load_cli_config",
    "load_project",
    "ProjectConfig",
    "JobRegistration",
    # Conversion
    "convert_config_to_job",
    # Records
    "DeploymentStore",
    # Lifecycle
    "DeploymentController",
    "DeploymentLifecycle",
    "LifecycleEvent",
    "DeploymentStatus",
    # Collaborators
    "ChainClient",
    "ScriptUploader",
    # Errors
    "AcuctlError",
    "InvalidExecutionType",
    "InvalidSchedule",
    "SubmissionRejected",
    "SubmissionTransportFailure",
]
