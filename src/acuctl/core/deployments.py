# SPDX-FileCopyrightText: Copyright (c) 2025 The acuctl Authors. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
File-based store for deployment records.

Each deployment attempt gets one JSON file keyed by its creation time in
milliseconds:

    .acurast/deploy/{projectName}-{deploymentTimeMillis}.json

The record is written before submission completes. Once the network reports
the job identifier, a sibling file carrying it is written next to it:

    .acurast/deploy/{projectName}-{deploymentTimeMillis}-{jobNumber}.json

The pre-identifier file is never modified or deleted. Writes from one store
are serialized by a lock; there is no cross-process locking and writes are
not atomic.
"""

import json
import logging
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from marshmallow import ValidationError

from acuctl.core.schema import Deployment, JobId, JobRegistration, ProjectConfig
from acuctl.core.utils import job_id_to_number, parse_job_id
from acuctl.errors import InvalidExecutionType, RecordAttachmentMiss

logger = logging.getLogger(__name__)

ACURAST_BASE_PATH = Path(".acurast/deploy")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def deployment_key(deployment_time: datetime) -> str:
    """Milliseconds since the epoch as a string (naive datetimes are local time)."""
    if deployment_time.tzinfo is None:
        deployment_time = deployment_time.astimezone()
    return str((deployment_time - _EPOCH) // timedelta(milliseconds=1))


def _iso(deployment_time: datetime) -> str:
    return deployment_time.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class DeploymentStore:
    """Persists deployment records under base_path.

    Usage:
        store = DeploymentStore()
        store.create_record(deployed_at, config, registration)
        # ... once the job id is known ...
        store.attach_job_identifier(deployed_at, job_id)
    """

    def __init__(self, base_path: Path | str = ACURAST_BASE_PATH):
        self.base_path = Path(base_path)
        self._lock = threading.Lock()

    def record_path(self, project_name: str, deployment_time: datetime, job_id: Any = None) -> Path:
        name = f"{project_name}-{deployment_key(deployment_time)}"
        if job_id is not None:
            name += f"-{job_id_to_number(job_id)}"
        return self.base_path / f"{name}.json"

    def find_by_deployment_time(self, deployment_time: datetime) -> tuple[Path, dict[str, Any]] | None:
        """Find the record file for a deployment time.

        Returns:
            (path, raw JSON content) of the pre-identifier record, or None
        """
        if not self.base_path.is_dir():
            return None

        key = f"-{deployment_key(deployment_time)}"
        matches = [p for p in self.base_path.glob("*.json") if key in p.name]
        if not matches:
            return None

        # The unlabelled record has the shortest name
        path = min(matches, key=lambda p: (len(p.name), p.name))
        with open(path) as f:
            return path, json.load(f)

    def create_record(
        self,
        deployment_time: datetime,
        config: ProjectConfig,
        registration: JobRegistration,
    ) -> Path | None:
        """Write the initial record for a deployment.

        Returns:
            Path of the new record, or None if one already exists for this time
        """
        with self._lock:
            if self.find_by_deployment_time(deployment_time) is not None:
                logger.debug("Record for %s already exists", deployment_key(deployment_time))
                return None

            deployment = Deployment(
                deployed_at=_iso(deployment_time),
                config=config,
                registration=registration,
            )
            path = self.record_path(config.project_name, deployment_time)
            self._write(path, Deployment.Schema().dump(deployment))
            logger.info("Stored deployment record %s", path)
            return path

    def attach_job_identifier(
        self,
        deployment_time: datetime,
        job_id: JobId,
        strict: bool = False,
    ) -> Path | None:
        """Write a copy of the record carrying the job identifier.

        Args:
            deployment_time: Creation time of the deployment
            job_id: Identifier reported by the network
            strict: Raise RecordAttachmentMiss instead of ignoring a missing record

        Returns:
            Path of the identifier-bearing record, or None if there was no record
        """
        job_id = parse_job_id(job_id)
        with self._lock:
            existing = self.find_by_deployment_time(deployment_time)
            if existing is None:
                if strict:
                    raise RecordAttachmentMiss(f"No deployment record for {deployment_key(deployment_time)}")
                logger.debug("No record for %s, nothing to attach", deployment_key(deployment_time))
                return None

            path, content = existing
            new_path = path.with_name(f"{path.stem}-{job_id_to_number(job_id)}.json")
            self._write(new_path, {**content, "deploymentId": list(job_id)})
            logger.info("Attached job %s to %s", job_id_to_number(job_id), new_path.name)
            return new_path

    def store_deployment(
        self,
        deployment_time: datetime,
        config: ProjectConfig,
        registration: JobRegistration,
        job_id: JobId | None = None,
    ) -> Path | None:
        """Create the record, or attach job_id to an existing one."""
        created = self.create_record(deployment_time, config, registration)
        if created is None and job_id is not None:
            return self.attach_job_identifier(deployment_time, job_id)
        return created

    def load_record(self, path: Path | str) -> Deployment:
        with open(path) as f:
            return Deployment.Schema().loads(f.read())

    def list_records(self, project_name: str | None = None) -> list[tuple[Path, Deployment]]:
        """Load every record, optionally filtered by project, sorted by file name.

        Records that cannot be parsed are logged and skipped.
        """
        if not self.base_path.is_dir():
            return []

        records = []
        for path in sorted(self.base_path.glob("*.json")):
            try:
                deployment = self.load_record(path)
            except (json.JSONDecodeError, ValidationError, InvalidExecutionType) as e:
                # Partially written or hand-edited; the other records stay listable
                logger.warning("Skipping unreadable record %s: %s", path.name, e)
                continue
            if project_name is None or deployment.config.project_name == project_name:
                records.append((path, deployment))
        return records

    def _write(self, path: Path, content: dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(content, f, indent=2)
