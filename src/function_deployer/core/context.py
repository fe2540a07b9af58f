"""
Deployment configuration and run-state classes.

All external resource references (region, pre-existing app names, image
tags, archives, timeouts) live in DeploymentConfig and are passed
explicitly to the workflow instead of being hard-coded in the steps.

Design Pattern: Dependency Injection
    - Configuration is loaded into DeploymentConfig at startup
    - DeploymentContext wraps config + the state produced by each step
    - Context is passed explicitly to every workflow step
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .. import constants as CONSTANTS


@dataclass(frozen=True)
class AppReference:
    """Identifies a function app by resource group and name."""

    resource_group: str
    name: str

    def __str__(self) -> str:
        return f"{self.resource_group}/{self.name}"


@dataclass(frozen=True)
class RuntimeStack:
    """
    The language/version/base-image triple a function app executes under.

    Attributes:
        language: Worker runtime (FUNCTIONS_WORKER_RUNTIME), e.g. "python"
        version: Functions host version (FUNCTIONS_EXTENSION_VERSION), e.g. "~4"
        linux_fx_version: Linux base image descriptor, e.g. "python|3.10"
    """

    language: str = CONSTANTS.DEFAULT_RUNTIME_LANGUAGE
    version: str = CONSTANTS.DEFAULT_RUNTIME_VERSION
    linux_fx_version: str = CONSTANTS.DEFAULT_LINUX_FX_VERSION


@dataclass(frozen=True)
class FunctionAppInfo:
    """
    The workflow's view of a function app.

    Attributes:
        name: Function App name
        resource_group: Resource group the app lives in
        location: Azure region
        plan_id: App Service Plan (server farm) resource ID, fixed at creation
        default_host_name: Public host name (<name>.azurewebsites.net)
        kind: Site kind as reported by Azure, e.g. "functionapp,linux"
        reserved: True for Linux apps
    """

    name: str
    resource_group: str
    location: str
    plan_id: str
    default_host_name: str
    kind: str = "functionapp,linux"
    reserved: bool = True


@dataclass
class SmokeTestConfig:
    """HTTP probe issued against a freshly deployed app."""

    path: str = CONSTANTS.SMOKE_TEST_PATH
    payload: str = CONSTANTS.SMOKE_TEST_PAYLOAD
    # None disables the response check; the value is still logged
    expected: Optional[str] = CONSTANTS.SMOKE_TEST_EXPECTED


@dataclass
class DeploymentConfig:
    """
    Parsed configuration from config_deployment.json.

    Attributes:
        region: Azure region for new resources
        primary_archive: Archive deployed to the newly created app #2
        secondary_archive: Archive deployed to the pre-existing zip deploy target
        zip_deploy_app: Pre-existing app receiving the secondary archive
        runtime_switch_app: Pre-existing app whose runtime stack is switched
        container_switch_app: Pre-existing app switched to a container image
        runtime_stack: Target runtime for the runtime switch
        new_app_runtime_stack: Runtime of the two apps created by the run
        container_image: Public Docker Hub image reference
        mode: "DEBUG" or "INFO"
        operation_timeout_seconds: Upper bound for every async operation
        warmup_delay_seconds: Delay between the two smoke-test requests
        settle_delay_seconds: Pause after the existing-app zip deploy
        cleanup_on_exit: Delete resource groups created by the run at the end
    """

    region: str
    primary_archive: Path
    secondary_archive: Path
    zip_deploy_app: AppReference
    runtime_switch_app: AppReference
    container_switch_app: AppReference
    container_image: str
    runtime_stack: RuntimeStack = field(default_factory=RuntimeStack)
    new_app_runtime_stack: RuntimeStack = field(default_factory=lambda: RuntimeStack(
        language=CONSTANTS.NEW_APP_RUNTIME_LANGUAGE,
        version=CONSTANTS.NEW_APP_RUNTIME_VERSION,
        linux_fx_version=CONSTANTS.NEW_APP_LINUX_FX_VERSION,
    ))
    mode: str = "INFO"
    app1_name_prefix: str = CONSTANTS.APP1_NAME_PREFIX
    app2_name_prefix: str = CONSTANTS.APP2_NAME_PREFIX
    resource_group_name_prefix: str = CONSTANTS.RESOURCE_GROUP_NAME_PREFIX
    operation_timeout_seconds: float = CONSTANTS.OPERATION_TIMEOUT_SECONDS
    warmup_delay_seconds: float = CONSTANTS.WARMUP_DELAY_SECONDS
    settle_delay_seconds: float = CONSTANTS.SETTLE_DELAY_SECONDS
    smoke_test: SmokeTestConfig = field(default_factory=SmokeTestConfig)
    cleanup_on_exit: bool = False


@dataclass
class GeneratedNames:
    """Fresh names for the resources created by one run."""

    app1: str
    app2: str
    resource_group: str


@dataclass
class DeploymentContext:
    """
    Encapsulates all state produced while the workflow runs.

    Lifecycle:
        1. Created by DeploymentWorkflow.run() with the loaded config
        2. Each step reads what earlier steps recorded and adds its own outputs
        3. A step failing with an untyped SDK error is reported against current_resource

    Attributes:
        config: Parsed DeploymentConfig
        names: Names generated by the first step
        apps: Function apps created or resolved so far, keyed by step role
        plan_id: Hosting plan shared by app #1 and app #2
        current_resource: (type, name) of the resource a step is working on
        completed_steps: Step ids that finished successfully, in order
        smoke_test_result: Value returned by the second smoke-test request
    """

    config: DeploymentConfig
    names: Optional[GeneratedNames] = None
    apps: Dict[str, FunctionAppInfo] = field(default_factory=dict)
    plan_id: Optional[str] = None
    current_resource: Optional[Tuple[str, str]] = None
    completed_steps: List[str] = field(default_factory=list)
    smoke_test_result: Optional[str] = None

    def require_names(self) -> GeneratedNames:
        if self.names is None:
            raise ValueError("Resource names have not been generated yet")
        return self.names

    def require_app(self, role: str) -> FunctionAppInfo:
        if role not in self.apps:
            raise ValueError(f"Function app '{role}' has not been created yet")
        return self.apps[role]
