"""
Deployment Orchestrator.

Runs the fixed, ordered pipeline of provisioning and deployment steps
against a ResourceManagementClient:

    1. generate_names       - fresh names for two apps and a resource group
    2. create_app1          - resource group + new hosting plan + app #1
    3. create_app2          - app #2 on app #1's plan and resource group
    4. zip_deploy_app2      - zip deploy the primary archive, smoke test it
    5. zip_deploy_existing  - zip deploy the secondary archive to an existing app
    6. switch_runtime       - switch an existing app's runtime stack
    7. switch_container     - switch an existing app to a container image

Steps run strictly one after another. Every asynchronous operation is
awaited (bounded by the configured timeout) before the next step starts.
The first failure aborts the pipeline; the raised DeploymentError names
the failing step in its ``step`` attribute.

Usage:
    from function_deployer.orchestrator.workflow import DeploymentWorkflow

    result = DeploymentWorkflow(config).run(provider)
"""

import time
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional

import requests
from azure.core.exceptions import AzureError

from function_deployer import constants as CONSTANTS
from function_deployer.core.context import (
    AppReference,
    DeploymentConfig,
    DeploymentContext,
    FunctionAppInfo,
    GeneratedNames,
)
from function_deployer.core.exceptions import (
    ConfigurationError,
    ContainerSwitchFailure,
    DeploymentError,
    DeploymentFailure,
    ResourceCreationFailure,
    RuntimeSwitchFailure,
)
from function_deployer.core.operations import DeploymentOperation
from function_deployer.core.protocols import ResourceManagementClient
from function_deployer.orchestrator.smoke_test import run_smoke_test
from function_deployer.orchestrator.teardown import TeardownScope
from function_deployer.providers.azure.naming import (
    hosting_plan_name,
    is_valid_function_app_name,
    is_valid_resource_group_name,
    random_resource_name,
)

logger = logging.getLogger("function_deployer")

STEP_GENERATE_NAMES = "generate_names"
STEP_CREATE_APP1 = "create_app1"
STEP_CREATE_APP2 = "create_app2"
STEP_ZIP_DEPLOY_APP2 = "zip_deploy_app2"
STEP_ZIP_DEPLOY_EXISTING = "zip_deploy_existing"
STEP_SWITCH_RUNTIME = "switch_runtime"
STEP_SWITCH_CONTAINER = "switch_container"

APP1 = "app1"
APP2 = "app2"
ZIP_DEPLOY_TARGET = "zip_deploy_target"
RUNTIME_SWITCH_TARGET = "runtime_switch_target"
CONTAINER_SWITCH_TARGET = "container_switch_target"

# Errors from the SDK and HTTP layers that a step wraps in its own failure type
_WRAPPED_ERRORS = (AzureError, requests.RequestException, OSError, ValueError)


@dataclass
class WorkflowStep:
    """
    One entry of the pipeline.

    Attributes:
        step_id: Identifier reported when the step fails
        description: Human-readable summary for logs
        action: Callable doing the work, reading/writing the context
        failure_type: Exception type used for errors not already typed
    """

    step_id: str
    description: str
    action: Callable[[DeploymentContext, ResourceManagementClient], None]
    failure_type: type = DeploymentError


@dataclass
class WorkflowResult:
    """Outcome of a successful run."""

    succeeded: bool
    completed_steps: List[str] = field(default_factory=list)
    names: Optional[GeneratedNames] = None
    apps: Dict[str, FunctionAppInfo] = field(default_factory=dict)
    plan_id: Optional[str] = None
    smoke_test_result: Optional[str] = None


def generate_run_names(config: DeploymentConfig) -> GeneratedNames:
    """
    Generate unique, platform-valid names for the resources of one run.

    Raises:
        ConfigurationError: If a configured prefix cannot produce a valid name
    """
    try:
        app1 = random_resource_name(config.app1_name_prefix, CONSTANTS.APP_NAME_MAX_LENGTH)
        app2 = random_resource_name(config.app2_name_prefix, CONSTANTS.APP_NAME_MAX_LENGTH)
        while app2 == app1:
            app2 = random_resource_name(config.app2_name_prefix, CONSTANTS.APP_NAME_MAX_LENGTH)
        resource_group = random_resource_name(
            config.resource_group_name_prefix,
            CONSTANTS.RESOURCE_GROUP_NAME_MAX_LENGTH
        )
    except ValueError as e:
        raise ConfigurationError(f"Cannot generate resource names: {e}") from e

    for app_name in (app1, app2):
        if not is_valid_function_app_name(app_name):
            raise ConfigurationError(f"Generated Function App name is invalid: {app_name}")
    if not is_valid_resource_group_name(resource_group):
        raise ConfigurationError(f"Generated Resource Group name is invalid: {resource_group}")

    return GeneratedNames(app1=app1, app2=app2, resource_group=resource_group)


def _timestamp(moment: Optional[datetime] = None) -> str:
    return (moment or datetime.now()).strftime(CONSTANTS.TIMESTAMP_FORMAT)


def _same_resource_id(left: Optional[str], right: Optional[str]) -> bool:
    # ARM resource IDs are case-insensitive
    return (left or "").lower() == (right or "").lower()


class DeploymentWorkflow:
    """
    Executes the deployment pipeline for one configuration.

    Attributes:
        config: Deployment configuration (region, archives, targets, timeouts)
    """

    def __init__(self, config: DeploymentConfig):
        if config is None:
            raise ValueError("config is required")
        self.config = config
        self._teardown: Optional[TeardownScope] = None

    def steps(self) -> List[WorkflowStep]:
        """Return the pipeline in execution order."""
        return [
            WorkflowStep(STEP_GENERATE_NAMES, "Generate resource names",
                         self._generate_names, ConfigurationError),
            WorkflowStep(STEP_CREATE_APP1, "Create function app with a new app service plan",
                         self._create_app1, ResourceCreationFailure),
            WorkflowStep(STEP_CREATE_APP2, "Create function app on the existing plan",
                         self._create_app2, ResourceCreationFailure),
            WorkflowStep(STEP_ZIP_DEPLOY_APP2, "Zip deploy to the new function app",
                         self._zip_deploy_app2, DeploymentFailure),
            WorkflowStep(STEP_ZIP_DEPLOY_EXISTING, "Zip deploy to an existing function app",
                         self._zip_deploy_existing, DeploymentFailure),
            WorkflowStep(STEP_SWITCH_RUNTIME, "Switch runtime stack of an existing function app",
                         self._switch_runtime, RuntimeSwitchFailure),
            WorkflowStep(STEP_SWITCH_CONTAINER, "Switch an existing function app to a container image",
                         self._switch_container, ContainerSwitchFailure),
        ]

    def run(self, client: ResourceManagementClient) -> WorkflowResult:
        """
        Run every step in order.

        Args:
            client: Authenticated ResourceManagementClient

        Returns:
            WorkflowResult with succeeded=True

        Raises:
            DeploymentError: The first step failure, with ``step`` set
        """
        if client is None:
            raise ValueError("client is required")

        context = DeploymentContext(config=self.config)

        with TeardownScope(enabled=self.config.cleanup_on_exit) as teardown:
            self._teardown = teardown
            for step in self.steps():
                self._run_step(step, context, client)

        logger.info(f"✓ Workflow completed: {len(context.completed_steps)} steps")
        return WorkflowResult(
            succeeded=True,
            completed_steps=list(context.completed_steps),
            names=context.names,
            apps=dict(context.apps),
            plan_id=context.plan_id,
            smoke_test_result=context.smoke_test_result,
        )

    def _run_step(self, step: WorkflowStep, context: DeploymentContext, client: ResourceManagementClient) -> None:
        logger.info(f"[{step.step_id}] {step.description}")
        context.current_resource = None
        try:
            step.action(context, client)
        except DeploymentError as e:
            if e.step is None:
                e.step = step.step_id
            logger.error(f"✗ Step '{step.step_id}' failed: {e.message}")
            raise
        except _WRAPPED_ERRORS as e:
            logger.error(f"✗ Step '{step.step_id}' failed: {type(e).__name__}: {e}")
            raise self._wrap_error(step, e, context) from e
        context.completed_steps.append(step.step_id)

    @staticmethod
    def _wrap_error(step: WorkflowStep, error: Exception, context: DeploymentContext) -> DeploymentError:
        if issubclass(step.failure_type, ResourceCreationFailure):
            if context.current_resource is not None:
                resource_type, resource_name = context.current_resource
                return ResourceCreationFailure(resource_type, resource_name, original_error=error, step=step.step_id)
            return DeploymentError(f"{step.description} failed: {error}", step=step.step_id, original_error=error)
        return step.failure_type(
            f"{step.description} failed: {error}",
            step=step.step_id,
            original_error=error
        )

    # ==========================================
    # Helpers
    # ==========================================

    def _await(self, client: ResourceManagementClient, operation: DeploymentOperation) -> DeploymentOperation:
        return client.await_completion(operation, self.config.operation_timeout_seconds)

    def _resolve_existing(self, context: DeploymentContext, client: ResourceManagementClient,
                          role: str, reference: AppReference) -> FunctionAppInfo:
        app = client.get_function_app_by_name(reference.resource_group, reference.name)
        context.apps[role] = app
        return app

    # ==========================================
    # Steps
    # ==========================================

    def _generate_names(self, context: DeploymentContext, client: ResourceManagementClient) -> None:
        context.names = generate_run_names(self.config)
        logger.info(
            f"  Names: app1={context.names.app1}, app2={context.names.app2}, "
            f"resource group={context.names.resource_group}"
        )

    def _create_app1(self, context: DeploymentContext, client: ResourceManagementClient) -> None:
        names = context.require_names()
        region = self.config.region

        logger.info(f"Creating function app {names.app1} in resource group {names.resource_group}...")

        context.current_resource = ("Resource Group", names.resource_group)
        client.create_resource_group(names.resource_group, region)
        self._teardown.register(
            f"resource group {names.resource_group}",
            lambda: client.delete_resource_group(names.resource_group)
        )

        plan_name = hosting_plan_name(names.app1)
        context.current_resource = ("App Service Plan", plan_name)
        plan_id = client.create_or_get_hosting_plan(names.resource_group, plan_name, region)
        context.current_resource = ("Function App", names.app1)
        app1 = client.create_function_app(
            names.resource_group, names.app1, region, plan_id,
            self.config.new_app_runtime_stack
        )
        context.apps[APP1] = app1
        context.plan_id = app1.plan_id or plan_id

        logger.info(f"Created function app {app1.name}")
        logger.info(f"  Host: {app1.default_host_name}")
        logger.info(f"  Region: {app1.location}")
        logger.info(f"  App Service Plan: {context.plan_id}")

    def _create_app2(self, context: DeploymentContext, client: ResourceManagementClient) -> None:
        names = context.require_names()
        app1 = context.require_app(APP1)

        logger.info(f"Creating another function app {names.app2}...")
        context.current_resource = ("Function App", names.app2)
        app2 = client.create_function_app(
            app1.resource_group, names.app2, app1.location, context.plan_id,
            self.config.new_app_runtime_stack
        )

        if not _same_resource_id(app2.plan_id, context.plan_id):
            raise ResourceCreationFailure(
                "Function App", names.app2,
                original_error=ValueError(f"bound to plan {app2.plan_id}, expected {context.plan_id}")
            )
        if app2.resource_group != app1.resource_group:
            raise ResourceCreationFailure(
                "Function App", names.app2,
                original_error=ValueError(f"created in {app2.resource_group}, expected {app1.resource_group}")
            )

        context.apps[APP2] = app2
        logger.info(f"Created function app {app2.name}")

    def _zip_deploy_app2(self, context: DeploymentContext, client: ResourceManagementClient) -> None:
        app2 = context.require_app(APP2)
        archive = self.config.primary_archive

        logger.info(f"Deploying {archive.name} to {app2.name} through ZIP deploy...")
        self._await(client, client.deploy_archive(app2, archive))

        context.smoke_test_result = run_smoke_test(
            app2.default_host_name,
            self.config.smoke_test,
            self.config.warmup_delay_seconds
        )

    def _zip_deploy_existing(self, context: DeploymentContext, client: ResourceManagementClient) -> None:
        app = self._resolve_existing(context, client, ZIP_DEPLOY_TARGET, self.config.zip_deploy_app)
        archive: Path = self.config.secondary_archive

        logger.info(f"Started async deploy of {archive.name} to {app.name} through ZIP deploy... at: {_timestamp()}")
        operation = self._await(client, client.deploy_archive(app, archive))
        logger.info(f"Deployed {archive.name} to app {app.name} at: {_timestamp(operation.finished_at)}")

        time.sleep(self.config.settle_delay_seconds)

    def _switch_runtime(self, context: DeploymentContext, client: ResourceManagementClient) -> None:
        app = self._resolve_existing(context, client, RUNTIME_SWITCH_TARGET, self.config.runtime_switch_app)
        stack = self.config.runtime_stack

        logger.info(f"Started change runtime to {stack.language} for {app.name} at: {_timestamp()}")
        operation = self._await(client, client.set_runtime_stack(app, stack))
        logger.info(f"Changed runtime to {stack.language} for {app.name} at: {_timestamp(operation.finished_at)}")

    def _switch_container(self, context: DeploymentContext, client: ResourceManagementClient) -> None:
        app = self._resolve_existing(context, client, CONTAINER_SWITCH_TARGET, self.config.container_switch_app)
        image = self.config.container_image

        logger.info(f"Started async deploy of docker container app {app.name} through docker deploy... at: {_timestamp()}")
        operation = self._await(client, client.set_container_image(app, image))
        logger.info(f"Deployed docker container app {app.name} at: {_timestamp(operation.finished_at)}")
