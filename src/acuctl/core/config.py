# SPDX-FileCopyrightText: Copyright (c) 2025 The acuctl Authors. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Config loading and resolution with acuctl.yaml integration.

This module provides:
- load_cli_config(): Load acurast.json, apply workspace defaults, return typed CliConfig
- load_project(): Pick one ProjectConfig out of acurast.json
- save_project(): Add or replace a project in acurast.json
- get_acuctl_setting(): Get workspace-wide settings from acuctl.yaml
- get_env(): Read ACURAST_* variables (from the environment or .env)
- load_chain_client(): Build the chain client named by the `chain_client` setting
"""

import copy
import importlib
import json
import logging
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from acuctl.core.schema import AcuctlSettings, CliConfig, ProjectConfig
from acuctl.errors import ConfigError, InvalidExecutionType

logger = logging.getLogger(__name__)

ACURAST_CONFIG_PATH = Path("acurast.json")
SETTINGS_FILE = "acuctl.yaml"


def load_settings() -> dict[str, Any] | None:
    """
    Load workspace settings from acuctl.yaml if it exists.

    Searches for acuctl.yaml in:
    1. Current working directory
    2. Parent directories up to 2 levels

    Returns None if file doesn't exist (graceful degradation).
    """
    search_paths = [
        Path.cwd() / SETTINGS_FILE,
        Path.cwd().parent / SETTINGS_FILE,
        Path.cwd().parent.parent / SETTINGS_FILE,
    ]

    settings_path = None
    for path in search_paths:
        if path.exists():
            settings_path = path
            break

    if not settings_path:
        logger.debug("No acuctl.yaml found - using built-in defaults")
        return None

    try:
        with open(settings_path) as f:
            raw_settings = yaml.safe_load(f) or {}

        schema = AcuctlSettings.Schema()
        validated = schema.load(raw_settings)
        logger.debug(f"Loaded settings from {settings_path}")

        return schema.dump(validated)
    except Exception as e:
        logger.warning(f"Failed to load or validate acuctl.yaml: {e}")
        return None


def get_acuctl_setting(key: str, default: Any = None) -> Any:
    """
    Get a setting from acuctl.yaml.

    Args:
        key: Setting key (e.g., 'deploy_dir', 'chain_client')
        default: Default value if not found or unset

    Returns:
        Setting value or default if not found
    """
    settings = load_settings()
    if settings and settings.get(key) is not None:
        return settings[key]
    return default


def load_environment(env_file: Path | str = ".env") -> bool:
    """Load ACURAST_* variables from a .env file without overriding the environment."""
    return load_dotenv(env_file, override=False)


def get_env(name: str, required: bool = True) -> str | None:
    """
    Read an environment variable.

    Raises:
        ConfigError: If the variable is required and missing or empty
    """
    value = os.environ.get(name)
    if not value and required:
        raise ConfigError(f"Environment variable {name} is not set (add it to .env)")
    return value or None


def resolve_config_with_defaults(user_config: dict[str, Any], settings: dict[str, Any] | None) -> dict[str, Any]:
    """
    Resolve acurast.json content by applying workspace defaults.

    Currently applies default_network to projects that do not name a network.

    Args:
        user_config: acurast.json content as dict
        settings: Workspace settings from acuctl.yaml (or None)

    Returns:
        Resolved config dict with defaults applied
    """
    config = copy.deepcopy(user_config)

    if settings is None:
        return config

    default_network = settings.get("default_network")
    if default_network:
        for name, project in config.get("projects", {}).items():
            if "network" not in project:
                project["network"] = default_network
                logger.debug(f"Applied default network to {name}: {default_network}")

    return config


def load_cli_config(path: Path | str = ACURAST_CONFIG_PATH) -> CliConfig:
    """
    Load and validate acurast.json, applying workspace defaults.

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ConfigError: If the file is not valid JSON or fails validation
        InvalidExecutionType: If a project names an unknown execution type
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path} (run 'acuctl add-project' first)")

    try:
        with open(path) as f:
            user_config = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e

    resolved_config = resolve_config_with_defaults(user_config, load_settings())

    try:
        config = CliConfig.Schema().load(resolved_config)
    except InvalidExecutionType:
        raise
    except Exception as e:
        raise ConfigError(f"Invalid config in {path}: {e}") from e

    logger.debug(f"Loaded {len(config.projects)} project(s) from {path}")
    return config


def load_project(name: str | None = None, path: Path | str = ACURAST_CONFIG_PATH) -> ProjectConfig:
    """
    Load one project from acurast.json.

    Args:
        name: Project name; may be omitted when the file holds exactly one project
        path: Path to acurast.json

    Raises:
        ConfigError: If the project doesn't exist or the name is ambiguous
    """
    config = load_cli_config(path)

    if name is None:
        if len(config.projects) != 1:
            available = ", ".join(sorted(config.projects)) or "none"
            raise ConfigError(f"Specify a project name (available: {available})")
        return next(iter(config.projects.values()))

    if name not in config.projects:
        raise ConfigError(f'Project "{name}" not found in {path}')
    return config.projects[name]


def save_project(project: ProjectConfig, path: Path | str = ACURAST_CONFIG_PATH, overwrite: bool = False) -> None:
    """
    Add a project to acurast.json, creating the file if needed.

    Other projects are kept as written.

    Raises:
        ConfigError: If the project exists and overwrite is False
    """
    path = Path(path)
    raw: dict[str, Any] = {"projects": {}}
    if path.exists():
        with open(path) as f:
            raw = json.load(f)
        raw.setdefault("projects", {})

    if project.project_name in raw["projects"] and not overwrite:
        raise ConfigError(f'Project "{project.project_name}" already exists')

    raw["projects"][project.project_name] = ProjectConfig.Schema().dump(project)
    with open(path, "w") as f:
        json.dump(raw, f, indent=2)
    logger.info(f"Saved project {project.project_name} to {path}")


def load_chain_client(spec: str | None = None, **kwargs: Any) -> Any:
    """
    Build the chain client named by a `module:factory` path.

    Args:
        spec: Factory path (default: the `chain_client` setting)
        **kwargs: Passed to the factory (e.g. rpc_url)

    Raises:
        ConfigError: If no factory is configured or it cannot be imported
    """
    spec = spec or get_acuctl_setting("chain_client")
    if not spec:
        raise ConfigError("No chain client configured (set chain_client: 'module:factory' in acuctl.yaml)")

    module_name, _, attr = spec.partition(":")
    if not module_name or not attr:
        raise ConfigError(f"Invalid chain_client {spec!r}, expected 'module:factory'")

    try:
        factory = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as e:
        raise ConfigError(f"Cannot load chain client {spec!r}: {e}") from e

    return factory(**kwargs)
