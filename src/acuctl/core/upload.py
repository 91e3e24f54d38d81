# SPDX-FileCopyrightText: Copyright (c) 2025 The acuctl Authors. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
IPFS script upload.

Posts the bundled script to an IPFS HTTP API (`/api/v0/add`) and returns an
`ipfs://` locator. The hash is content-derived, so identical scripts map to
the same locator.

Configuration (environment or .env):
    ACURAST_IPFS_URL=https://api.ipfs.example.com
    ACURAST_IPFS_API_KEY=...
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import requests

from acuctl.core.config import get_env
from acuctl.errors import UploadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IpfsUploader:
    """Uploads scripts to an IPFS HTTP API.

    Usage:
        uploader = IpfsUploader.from_env()
        locator = uploader.upload("./dist/bundle.js")
    """

    api_url: str
    api_key: str | None = None
    timeout: float = 30.0

    @classmethod
    def from_env(cls, ipfs_url: str | None = None) -> "IpfsUploader":
        """Create an uploader from ACURAST_IPFS_URL / ACURAST_IPFS_API_KEY.

        Args:
            ipfs_url: Override for the API URL (e.g. from acuctl.yaml)

        Raises:
            ConfigError: If no API URL is configured
        """
        api_url = ipfs_url or get_env("ACURAST_IPFS_URL")
        return cls(api_url=api_url.rstrip("/"), api_key=get_env("ACURAST_IPFS_API_KEY", required=False))

    def upload(self, file_path: Path | str) -> str:
        """Upload a script and return its ipfs:// locator.

        Raises:
            UploadError: If the file is missing or the API call fails
        """
        file_path = Path(file_path)
        if not file_path.is_file():
            raise UploadError(f"Script not found: {file_path}")

        headers = {"X-API-KEY": self.api_key} if self.api_key else {}
        url = f"{self.api_url}/api/v0/add"

        try:
            with open(file_path, "rb") as f:
                response = requests.post(
                    url,
                    files={"file": (file_path.name, f)},
                    headers=headers,
                    timeout=self.timeout,
                )
        except requests.exceptions.RequestException as e:
            raise UploadError(f"Upload to {self.api_url} failed: {e}") from e

        if response.status_code != 200:
            raise UploadError(f"Upload to {self.api_url} failed: HTTP {response.status_code}")

        try:
            ipfs_hash = response.json()["Hash"]
        except (ValueError, KeyError) as e:
            raise UploadError(f"Unexpected upload response: {response.text[:200]}") from e

        logger.debug("Uploaded %s -> %s", file_path, ipfs_hash)
        return f"ipfs://{ipfs_hash}"
