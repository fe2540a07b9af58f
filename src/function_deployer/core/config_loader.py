"""
Configuration loading utilities.

This module provides functions to load and parse the deployment
configuration from JSON files in a project directory.

File Loading Order:
    1. config_deployment.json - Region, archives, pre-existing apps,
       runtime stack, container image, timeouts (required)
    2. config_credentials_azure.json - Subscription and service principal
       (optional; falls back to environment / ambient credentials)

Usage:
    from function_deployer.core.config_loader import load_deployment_config

    config = load_deployment_config(Path("config"))
"""

import json
import os
from pathlib import Path
from typing import Any, Dict

from .. import constants as CONSTANTS
from .context import AppReference, DeploymentConfig, RuntimeStack, SmokeTestConfig
from .exceptions import ConfigurationError


def _load_json_file(file_path: Path, required: bool = True) -> Dict[str, Any]:
    """
    Load a JSON file and return its contents as a dictionary.

    Args:
        file_path: Path to the JSON file
        required: If True, raise error when file is missing. If False, return empty dict.

    Returns:
        Parsed JSON content as dictionary

    Raises:
        ConfigurationError: If file is missing (when required) or has invalid JSON
    """
    if not file_path.exists():
        if required:
            raise ConfigurationError(
                f"Required configuration file not found: {file_path.name}",
                config_file=str(file_path)
            )
        return {}

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Invalid JSON in configuration file: {e}",
            config_file=str(file_path)
        )


def _require_keys(section: Dict[str, Any], keys: list, where: str, config_file: Path) -> None:
    if not isinstance(section, dict):
        raise ConfigurationError(
            f"'{where}' must be an object",
            config_file=str(config_file)
        )
    for key in keys:
        if key not in section or section[key] in (None, ""):
            raise ConfigurationError(
                f"Missing required field '{key}' in {where}",
                config_file=str(config_file)
            )


def _parse_app_reference(raw: Dict[str, Any], where: str, config_file: Path) -> AppReference:
    _require_keys(raw, ["name"], where, config_file)
    # The samples keep each pre-existing app in a group of the same name
    return AppReference(
        resource_group=raw.get("resource_group") or raw["name"],
        name=raw["name"]
    )


def _resolve_path(project_path: Path, value: str) -> Path:
    path = Path(value)
    if not path.is_absolute():
        path = project_path / path
    return path


def load_deployment_config(project_path: Path) -> DeploymentConfig:
    """
    Load config_deployment.json from a project directory.

    Relative archive paths are resolved against the project directory.

    Args:
        project_path: Directory containing config_deployment.json

    Returns:
        DeploymentConfig with all loaded settings

    Raises:
        ConfigurationError: If the file is missing, invalid or incomplete
    """
    config_file = project_path / CONSTANTS.CONFIG_DEPLOYMENT_FILE
    raw = _load_json_file(config_file, required=True)

    _require_keys(raw, CONSTANTS.REQUIRED_DEPLOYMENT_KEYS, CONSTANTS.CONFIG_DEPLOYMENT_FILE, config_file)
    _require_keys(raw["archives"], CONSTANTS.REQUIRED_ARCHIVE_KEYS, "archives", config_file)
    _require_keys(raw["existing_apps"], CONSTANTS.REQUIRED_EXISTING_APP_KEYS, "existing_apps", config_file)

    existing = raw["existing_apps"]
    prefixes = raw.get("name_prefixes", {})
    timeouts = raw.get("timeouts", {})
    delays = raw.get("delays", {})

    runtime_raw = raw.get("runtime_stack", {})
    runtime_stack = RuntimeStack(
        language=runtime_raw.get("language", CONSTANTS.DEFAULT_RUNTIME_LANGUAGE),
        version=runtime_raw.get("version", CONSTANTS.DEFAULT_RUNTIME_VERSION),
        linux_fx_version=runtime_raw.get("linux_fx_version", CONSTANTS.DEFAULT_LINUX_FX_VERSION),
    )

    new_app_raw = raw.get("new_app_runtime_stack", {})
    new_app_runtime_stack = RuntimeStack(
        language=new_app_raw.get("language", CONSTANTS.NEW_APP_RUNTIME_LANGUAGE),
        version=new_app_raw.get("version", CONSTANTS.NEW_APP_RUNTIME_VERSION),
        linux_fx_version=new_app_raw.get("linux_fx_version", CONSTANTS.NEW_APP_LINUX_FX_VERSION),
    )

    smoke_raw = raw.get("smoke_test", {})
    smoke_test = SmokeTestConfig(
        path=smoke_raw.get("path", CONSTANTS.SMOKE_TEST_PATH),
        payload=str(smoke_raw.get("payload", CONSTANTS.SMOKE_TEST_PAYLOAD)),
        expected=smoke_raw.get("expected", CONSTANTS.SMOKE_TEST_EXPECTED),
    )
    if smoke_test.expected is not None:
        smoke_test.expected = str(smoke_test.expected)

    operation_timeout = timeouts.get("operation_seconds", CONSTANTS.OPERATION_TIMEOUT_SECONDS)
    if operation_timeout <= 0:
        raise ConfigurationError(
            "timeouts.operation_seconds must be positive",
            config_file=str(config_file)
        )

    return DeploymentConfig(
        region=raw["region"],
        primary_archive=_resolve_path(project_path, raw["archives"]["primary"]),
        secondary_archive=_resolve_path(project_path, raw["archives"]["secondary"]),
        zip_deploy_app=_parse_app_reference(existing["zip_deploy"], "existing_apps.zip_deploy", config_file),
        runtime_switch_app=_parse_app_reference(existing["runtime_switch"], "existing_apps.runtime_switch", config_file),
        container_switch_app=_parse_app_reference(existing["container_switch"], "existing_apps.container_switch", config_file),
        container_image=raw["container_image"],
        runtime_stack=runtime_stack,
        new_app_runtime_stack=new_app_runtime_stack,
        mode=raw.get("mode", "INFO"),
        app1_name_prefix=prefixes.get("app1", CONSTANTS.APP1_NAME_PREFIX),
        app2_name_prefix=prefixes.get("app2", CONSTANTS.APP2_NAME_PREFIX),
        resource_group_name_prefix=prefixes.get("resource_group", CONSTANTS.RESOURCE_GROUP_NAME_PREFIX),
        operation_timeout_seconds=operation_timeout,
        warmup_delay_seconds=delays.get("warmup_seconds", CONSTANTS.WARMUP_DELAY_SECONDS),
        settle_delay_seconds=delays.get("settle_seconds", CONSTANTS.SETTLE_DELAY_SECONDS),
        smoke_test=smoke_test,
        cleanup_on_exit=bool(raw.get("cleanup_on_exit", False)),
    )


def load_credentials(project_path: Path) -> Dict[str, str]:
    """
    Load Azure credentials for the project.

    Credentials are read from config_credentials_azure.json when present.
    Otherwise the subscription is taken from AZURE_SUBSCRIPTION_ID and the
    identity is discovered by DefaultAzureCredential.

    Args:
        project_path: Path to the project directory

    Returns:
        Credential dictionary (may lack service principal fields)
    """
    credentials = _load_json_file(
        project_path / CONSTANTS.CONFIG_CREDENTIALS_AZURE_FILE,
        required=False
    )
    if not credentials.get("azure_subscription_id"):
        subscription_id = os.environ.get("AZURE_SUBSCRIPTION_ID", "").strip()
        if subscription_id:
            credentials["azure_subscription_id"] = subscription_id
    return credentials
