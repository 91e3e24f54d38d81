# SPDX-FileCopyrightText: Copyright (c) 2025 The acuctl Authors. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Error classes for acuctl.

Conversion and submission errors are raised to the caller and never retried
here. The CLI renders them; library callers can layer their own retry policy
on top of SubmissionError.
"""

from typing import Any


class AcuctlError(Exception):
    """Base exception for acuctl."""


class ConfigError(AcuctlError):
    """acurast.json, acuctl.yaml or a required environment variable is missing or invalid."""


class InvalidExecutionType(AcuctlError):
    """Execution description is neither a one-time nor an interval run."""

    def __init__(self, execution_type: Any):
        self.execution_type = execution_type
        super().__init__(f"Invalid execution type: {execution_type!r}")


class InvalidSchedule(AcuctlError):
    """Computed schedule cannot run: non-positive duration or fewer than one execution."""

    def __init__(self, project_name: str, schedule: Any):
        self.project_name = project_name
        self.schedule = schedule
        super().__init__(
            f"Invalid schedule for {project_name}: duration {schedule.duration}ms, "
            f"interval {schedule.interval}ms, window {schedule.start_time}..{schedule.end_time}"
        )


class UploadError(AcuctlError):
    """Script could not be placed at a content-addressed location."""


class SubmissionError(AcuctlError):
    """Base for failures of a single submission attempt."""


class SubmissionRejected(SubmissionError):
    """The network's execution logic rejected the registration (dispatch error).

    Module errors carry section, name and docs. Other dispatch errors only
    carry the generic message.
    """

    def __init__(
        self,
        message: str,
        section: str | None = None,
        name: str | None = None,
        docs: str | None = None,
    ):
        self.section = section
        self.name = name
        self.docs = docs
        super().__init__(message)

    @classmethod
    def from_module_error(cls, section: str, name: str, docs: list[str]) -> "SubmissionRejected":
        joined = " ".join(docs)
        return cls(f"{section}.{name}: {joined}", section=section, name=name, docs=joined)


class SubmissionTransportFailure(SubmissionError):
    """Building or sending the submission raised before the network answered."""


class RecordAttachmentMiss(AcuctlError):
    """No deployment record exists for the requested deployment time.

    DeploymentStore.attach_job_identifier only raises it with strict=True.
    By default a missing record is a silent no-op.
    """
