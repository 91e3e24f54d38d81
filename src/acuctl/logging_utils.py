# SPDX-FileCopyrightText: Copyright (c) 2025 The acuctl Authors. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Logging for acuctl deployments.

Every lifecycle status has one emoji and one rich style. The controller logs
events with the emoji and the CLI prints them with both, so `acuctl deploy`
output and the debug log read the same way.
"""

import logging
import sys

from acuctl.contract.enums import DeploymentStatus

CHECK = "✓"
CROSS = "✗"
ROCKET = "🚀"
HOURGLASS = "⏳"
WARN = "⚠"

# status -> (emoji, rich style)
STATUS_STYLE: dict[DeploymentStatus, tuple[str, str]] = {
    DeploymentStatus.UPLOADED: ("📦", "cyan"),
    DeploymentStatus.PREPARED: ("⚙", "cyan"),
    DeploymentStatus.SUBMIT: (ROCKET, "bold cyan"),
    DeploymentStatus.WAITING_FOR_MATCH: (HOURGLASS, "yellow"),
    DeploymentStatus.MATCHED: ("🔗", "green"),
    DeploymentStatus.ACKNOWLEDGED: (CHECK, "green"),
    DeploymentStatus.ENVIRONMENT_VARIABLES_SET: ("🔧", "green"),
    DeploymentStatus.STARTED: ("▶", "green"),
    DeploymentStatus.EXECUTION_DONE: (CHECK, "green"),
    DeploymentStatus.FINALIZED: ("✨", "bold green"),
}


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def setup_logging(level: int = logging.INFO) -> None:
    """Send acuctl logs to stdout, replacing any earlier configuration.

    The CLI calls this twice: once at WARNING on startup and again at DEBUG
    for --verbose.
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )
    # IPFS uploads go through requests
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def format_status(status: DeploymentStatus, description: str, markup: bool = False) -> str:
    """Render one lifecycle event line, with rich markup for the console."""
    emoji, style = STATUS_STYLE[status]
    if markup:
        return f"[{style}]{emoji} {status.value}:[/] {description}"
    return f"{emoji} [{status.value}] {description}"


def log_status(status: DeploymentStatus, description: str, logger: logging.Logger | None = None) -> None:
    (logger or logging.getLogger()).info(format_status(status, description))


def _tagged(level: int, tag: str, message: str, logger: logging.Logger | None) -> None:
    (logger or logging.getLogger()).log(level, "%s %s", tag, message)


def success(message: str, logger: logging.Logger | None = None) -> None:
    _tagged(logging.INFO, CHECK, message, logger)


def error(message: str, logger: logging.Logger | None = None) -> None:
    _tagged(logging.ERROR, CROSS, message, logger)


def warn(message: str, logger: logging.Logger | None = None) -> None:
    _tagged(logging.WARNING, WARN, message, logger)


def step(message: str, logger: logging.Logger | None = None) -> None:
    """Submission progress that has no lifecycle status of its own."""
    _tagged(logging.INFO, ROCKET, message, logger)


def waiting(message: str, logger: logging.Logger | None = None) -> None:
    _tagged(logging.INFO, HOURGLASS, message, logger)
