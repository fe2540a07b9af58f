"""
Azure Function App resource implementations.

This module contains the resource-level operations the workflow performs
against Azure through the management SDK.

Components Managed:
    - Resource Group: logical container for the apps created by a run
    - App Service Plan: Consumption (Y1 Dynamic, Linux) plan shared by apps
    - Storage Account: AzureWebJobsStorage for each new Function App
    - Function App: created on an existing plan, or resolved by name
    - Zip Deploy: Kudu async zipdeploy of a .zip file or app directory
    - Runtime Switch: linuxFxVersion + worker runtime app settings
    - Container Switch: linuxFxVersion DOCKER|<image> + registry app settings

Invariant:
    A Function App's plan is fixed at creation. Runtime and container
    switches only accept Linux apps and send the app's current kind,
    serverFarmId and location back unchanged, so only the runtime
    descriptor moves.

Every create function logs and re-raises SDK errors as the typed
failure for its step (ResourceCreationFailure, RuntimeSwitchFailure, ...).
"""

from typing import TYPE_CHECKING, Any, Dict
import logging

from azure.core.exceptions import (
    AzureError,
    ResourceNotFoundError,
    HttpResponseError,
    ClientAuthenticationError,
)

from function_deployer import constants as CONSTANTS
from function_deployer.core.context import FunctionAppInfo, RuntimeStack
from function_deployer.core.exceptions import (
    AuthenticationFailure,
    ContainerSwitchFailure,
    ResourceCreationFailure,
    RuntimeSwitchFailure,
)
from function_deployer.core.operations import DeploymentOperation, OperationKind
from function_deployer.providers.azure import deployment_helpers
from function_deployer.providers.azure.function_bundler import load_archive
from function_deployer.providers.azure.naming import site_host, storage_account_name

if TYPE_CHECKING:
    from pathlib import Path
    from function_deployer.providers.azure.provider import AzureProvider

logger = logging.getLogger("function_deployer")


# ==========================================
# Helper Functions
# ==========================================

def _to_app_info(site: Any, resource_group: str) -> FunctionAppInfo:
    """Convert an azure.mgmt.web Site into a FunctionAppInfo."""
    return FunctionAppInfo(
        name=site.name,
        resource_group=getattr(site, "resource_group", None) or resource_group,
        location=site.location,
        plan_id=site.server_farm_id,
        default_host_name=site.default_host_name or site_host(site.name),
        kind=site.kind or "functionapp,linux",
        reserved=bool(site.reserved),
    )


def _get_storage_connection_string(provider: 'AzureProvider', resource_group: str, account_name: str) -> str:
    """Get the storage account connection string for a Function App."""
    storage_keys = provider.clients["storage"].storage_accounts.list_keys(
        resource_group_name=resource_group,
        account_name=account_name
    )
    storage_key = storage_keys.keys[0].value

    return (
        f"DefaultEndpointsProtocol=https;"
        f"AccountName={account_name};"
        f"AccountKey={storage_key};"
        f"EndpointSuffix=core.windows.net"
    )


def _runtime_app_settings(stack: RuntimeStack) -> Dict[str, str]:
    return {
        "FUNCTIONS_WORKER_RUNTIME": stack.language,
        "FUNCTIONS_EXTENSION_VERSION": stack.version,
    }


def _update_app_settings(provider: 'AzureProvider', app: FunctionAppInfo, updates: Dict[str, str]) -> None:
    """Merge updates into the app's current application settings."""
    web = provider.clients["web"]
    current = web.web_apps.list_application_settings(
        resource_group_name=app.resource_group,
        name=app.name
    )
    properties = dict(current.properties or {})
    properties.update(updates)
    web.web_apps.update_application_settings(
        resource_group_name=app.resource_group,
        name=app.name,
        app_settings={"properties": properties}
    )


def _require_linux(app: FunctionAppInfo, failure_type: type) -> None:
    # linuxFxVersion has no effect on Windows apps
    if not app.reserved:
        logger.error(f"✗ Function App {app.name} is not a Linux app (kind={app.kind})")
        raise failure_type(f"Function App '{app.name}' is not a Linux app (kind={app.kind})")


def _site_envelope_with_linux_fx(app: FunctionAppInfo, linux_fx_version: str) -> dict:
    """
    Build a site envelope that sets linuxFxVersion.

    Location, kind, plan and the Linux flag are copied from the app as Azure
    reported them, so the update never moves the app or changes its OS.
    """
    return {
        "location": app.location,
        "kind": app.kind,
        "properties": {
            "serverFarmId": app.plan_id,
            "reserved": app.reserved,
            "siteConfig": {
                "linuxFxVersion": linux_fx_version,
            },
        },
    }


# ==========================================
# 1. Resource Group
# ==========================================

def create_resource_group(provider: 'AzureProvider', name: str, location: str) -> str:
    """
    Create (or update) a resource group.

    Args:
        provider: Initialized AzureProvider with clients
        name: Resource group name
        location: Azure region

    Returns:
        Resource group name

    Raises:
        ValueError: If provider is None
        AuthenticationFailure: If permission denied
        ResourceCreationFailure: If creation fails
    """
    if provider is None:
        raise ValueError("provider is required")

    logger.info(f"Creating Resource Group: {name} in {location}")

    try:
        group = provider.clients["resource"].resource_groups.create_or_update(
            resource_group_name=name,
            parameters={"location": location}
        )
        logger.info(f"✓ Resource Group created: {group.name}")
        return group.name
    except ClientAuthenticationError as e:
        logger.error(f"PERMISSION DENIED creating Resource Group: {e.message}")
        raise AuthenticationFailure(f"Permission denied creating Resource Group '{name}'", original_error=e) from e
    except AzureError as e:
        logger.error(f"Azure error creating Resource Group: {type(e).__name__}: {e}")
        raise ResourceCreationFailure("Resource Group", name, original_error=e) from e


def delete_resource_group(provider: 'AzureProvider', name: str) -> None:
    """
    Delete a resource group and wait for the deletion to finish.

    Args:
        provider: Initialized AzureProvider with clients
        name: Resource group name

    Raises:
        ValueError: If provider is None
        ClientAuthenticationError: If permission denied
    """
    if provider is None:
        raise ValueError("provider is required")

    logger.info(f"Deleting Resource Group: {name}")

    try:
        provider.clients["resource"].resource_groups.begin_delete(
            resource_group_name=name
        ).result()
        logger.info(f"✓ Resource Group deleted: {name}")
    except ResourceNotFoundError:
        logger.info(f"Resource Group already deleted: {name}")
    except ClientAuthenticationError as e:
        logger.error(f"PERMISSION DENIED deleting Resource Group: {e.message}")
        raise
    except AzureError as e:
        logger.error(f"Azure error deleting Resource Group: {type(e).__name__}: {e}")
        raise


# ==========================================
# 2. App Service Plan
# ==========================================

def create_or_get_app_service_plan(
    provider: 'AzureProvider',
    resource_group: str,
    name: str,
    location: str
) -> str:
    """
    Return the ID of an App Service Plan, creating it if it does not exist.

    New plans use the Consumption SKU (Y1 Dynamic) on Linux.

    Args:
        provider: Initialized AzureProvider with clients
        resource_group: Resource group name
        name: Plan name
        location: Azure region

    Returns:
        App Service Plan resource ID

    Raises:
        ValueError: If provider is None
        AuthenticationFailure: If permission denied
        ResourceCreationFailure: If creation fails
    """
    if provider is None:
        raise ValueError("provider is required")

    web = provider.clients["web"]

    try:
        try:
            existing = web.app_service_plans.get(
                resource_group_name=resource_group,
                name=name
            )
        except ResourceNotFoundError:
            existing = None

        if existing is not None:
            logger.info(f"App Service Plan already exists: {name}")
            return existing.id

        logger.info(f"Creating App Service Plan: {name}")
        poller = web.app_service_plans.begin_create_or_update(
            resource_group_name=resource_group,
            name=name,
            app_service_plan={
                "location": location,
                "sku": CONSTANTS.HOSTING_PLAN_SKU,
                "kind": "functionapp",
                "properties": {
                    "reserved": True  # Linux
                }
            }
        )
        plan = poller.result()
        logger.info(f"✓ App Service Plan created: {name}")
        return plan.id
    except ClientAuthenticationError as e:
        logger.error(f"PERMISSION DENIED creating App Service Plan: {e.message}")
        raise AuthenticationFailure(f"Permission denied creating App Service Plan '{name}'", original_error=e) from e
    except HttpResponseError as e:
        logger.error(f"Failed to create App Service Plan: {e.status_code} - {e.message}")
        raise ResourceCreationFailure("App Service Plan", name, original_error=e) from e
    except AzureError as e:
        logger.error(f"Azure error creating App Service Plan: {type(e).__name__}: {e}")
        raise ResourceCreationFailure("App Service Plan", name, original_error=e) from e


# ==========================================
# 3. Function App
# ==========================================

def _create_storage_account(provider: 'AzureProvider', resource_group: str, app_name: str, location: str) -> str:
    account_name = storage_account_name(app_name)
    logger.info(f"  Creating Storage Account: {account_name}")
    provider.clients["storage"].storage_accounts.begin_create(
        resource_group_name=resource_group,
        account_name=account_name,
        parameters={
            "location": location,
            "sku": {"name": CONSTANTS.STORAGE_ACCOUNT_SKU},
            "kind": "StorageV2",
        }
    ).result()
    return account_name


def create_function_app(
    provider: 'AzureProvider',
    resource_group: str,
    name: str,
    location: str,
    plan_id: str,
    runtime_stack: RuntimeStack
) -> FunctionAppInfo:
    """
    Create a Linux Function App on an existing App Service Plan.

    A dedicated storage account is created for AzureWebJobsStorage.

    Args:
        provider: Initialized AzureProvider with clients
        resource_group: Resource group name
        name: Function App name
        location: Azure region
        plan_id: App Service Plan resource ID the app is bound to
        runtime_stack: Initial runtime of the app

    Returns:
        FunctionAppInfo of the created app

    Raises:
        ValueError: If provider or plan_id is missing
        AuthenticationFailure: If permission denied
        ResourceCreationFailure: If creation fails
    """
    if provider is None:
        raise ValueError("provider is required")
    if not plan_id:
        raise ValueError("plan_id is required")

    logger.info(f"Creating Function App: {name}")

    try:
        account_name = _create_storage_account(provider, resource_group, name, location)
        connection_string = _get_storage_connection_string(provider, resource_group, account_name)

        app_settings = {
            "AzureWebJobsStorage": connection_string,
            # Remote build installs requirements.txt during zip deploy
            "SCM_DO_BUILD_DURING_DEPLOYMENT": "true",
            "ENABLE_ORYX_BUILD": "true",
        }
        app_settings.update(_runtime_app_settings(runtime_stack))

        params = {
            "location": location,
            "kind": "functionapp,linux",
            "properties": {
                "serverFarmId": plan_id,
                "reserved": True,  # Linux
                "httpsOnly": False,
                "siteConfig": {
                    "linuxFxVersion": runtime_stack.linux_fx_version,
                    "minTlsVersion": "1.2",
                    "appSettings": [
                        {"name": key, "value": value} for key, value in app_settings.items()
                    ],
                },
            },
        }

        site = provider.clients["web"].web_apps.begin_create_or_update(
            resource_group_name=resource_group,
            name=name,
            site_envelope=params
        ).result()

        logger.info(f"✓ Function App created: {name}")
        return _to_app_info(site, resource_group)
    except ClientAuthenticationError as e:
        logger.error(f"PERMISSION DENIED creating Function App: {e.message}")
        raise AuthenticationFailure(f"Permission denied creating Function App '{name}'", original_error=e) from e
    except HttpResponseError as e:
        logger.error(f"Failed to create Function App: {e.status_code} - {e.message}")
        raise ResourceCreationFailure("Function App", name, original_error=e) from e
    except AzureError as e:
        logger.error(f"Azure error creating Function App: {type(e).__name__}: {e}")
        raise ResourceCreationFailure("Function App", name, original_error=e) from e


def get_function_app(provider: 'AzureProvider', resource_group: str, name: str) -> FunctionAppInfo:
    """
    Resolve an existing Function App.

    Raises:
        ValueError: If provider is None
        AuthenticationFailure: If permission denied
        ResourceCreationFailure: If the app does not exist or cannot be read
    """
    if provider is None:
        raise ValueError("provider is required")

    try:
        site = provider.clients["web"].web_apps.get(
            resource_group_name=resource_group,
            name=name
        )
    except ResourceNotFoundError as e:
        logger.error(f"✗ Function App not found: {resource_group}/{name}")
        raise ResourceCreationFailure("Function App", name, original_error=e, action="resolve") from e
    except ClientAuthenticationError as e:
        logger.error(f"PERMISSION DENIED reading Function App: {e.message}")
        raise AuthenticationFailure(f"Permission denied reading Function App '{name}'", original_error=e) from e
    except AzureError as e:
        logger.error(f"Azure error reading Function App: {type(e).__name__}: {e}")
        raise ResourceCreationFailure("Function App", name, original_error=e, action="resolve") from e

    if site is None:
        logger.error(f"✗ Function App not found: {resource_group}/{name}")
        raise ResourceCreationFailure("Function App", name, action="resolve")

    return _to_app_info(site, resource_group)


# ==========================================
# 4. Deployments
# ==========================================

def begin_zip_deploy(provider: 'AzureProvider', app: FunctionAppInfo, archive: 'Path') -> DeploymentOperation:
    """
    Start a Kudu async zip deployment.

    Args:
        provider: Initialized AzureProvider with clients
        app: Target Function App
        archive: .zip file or Function App directory

    Returns:
        DeploymentOperation tracking the Kudu deployment
    """
    if provider is None:
        raise ValueError("provider is required")

    zip_content = load_archive(archive)
    username, password = deployment_helpers.get_publishing_credentials(
        provider.clients["web"], app.resource_group, app.name
    )
    poller = deployment_helpers.start_kudu_zip_deploy(app.name, zip_content, username, password)
    return DeploymentOperation(kind=OperationKind.ZIP_DEPLOY, app_name=app.name, handle=poller)


def begin_runtime_switch(provider: 'AzureProvider', app: FunctionAppInfo, stack: RuntimeStack) -> DeploymentOperation:
    """
    Start switching a Function App to another runtime stack.

    Worker runtime and host version are applied as app settings first,
    then the site is updated with the new linuxFxVersion. The returned
    operation tracks the site update.

    Raises:
        AuthenticationFailure: If permission denied
        RuntimeSwitchFailure: If the app is not a Linux app or the change cannot be started
    """
    if provider is None:
        raise ValueError("provider is required")

    logger.info(f"Switching runtime of {app.name} to {stack.language} {stack.version} ({stack.linux_fx_version})")
    _require_linux(app, RuntimeSwitchFailure)

    try:
        _update_app_settings(provider, app, _runtime_app_settings(stack))
        poller = provider.clients["web"].web_apps.begin_create_or_update(
            resource_group_name=app.resource_group,
            name=app.name,
            site_envelope=_site_envelope_with_linux_fx(app, stack.linux_fx_version)
        )
    except ClientAuthenticationError as e:
        logger.error(f"PERMISSION DENIED switching runtime: {e.message}")
        raise AuthenticationFailure(f"Permission denied updating Function App '{app.name}'", original_error=e) from e
    except AzureError as e:
        logger.error(f"Azure error switching runtime: {type(e).__name__}: {e}")
        raise RuntimeSwitchFailure(f"Failed to switch runtime of '{app.name}': {e}", original_error=e) from e

    return DeploymentOperation(kind=OperationKind.RUNTIME_SWITCH, app_name=app.name, handle=poller)


def begin_container_switch(provider: 'AzureProvider', app: FunctionAppInfo, image: str) -> DeploymentOperation:
    """
    Start switching a Function App to a public Docker Hub image.

    Raises:
        ValueError: If image is empty
        AuthenticationFailure: If permission denied
        ContainerSwitchFailure: If the app is not a Linux app or the change cannot be started
    """
    if provider is None:
        raise ValueError("provider is required")
    if not image:
        raise ValueError("image is required")

    logger.info(f"Switching {app.name} to container image {image}")
    _require_linux(app, ContainerSwitchFailure)

    try:
        _update_app_settings(provider, app, {
            "DOCKER_REGISTRY_SERVER_URL": CONSTANTS.DOCKER_HUB_REGISTRY_URL,
            "WEBSITES_ENABLE_APP_SERVICE_STORAGE": "false",
        })
        poller = provider.clients["web"].web_apps.begin_create_or_update(
            resource_group_name=app.resource_group,
            name=app.name,
            site_envelope=_site_envelope_with_linux_fx(app, f"DOCKER|{image}")
        )
    except ClientAuthenticationError as e:
        logger.error(f"PERMISSION DENIED switching container image: {e.message}")
        raise AuthenticationFailure(f"Permission denied updating Function App '{app.name}'", original_error=e) from e
    except AzureError as e:
        logger.error(f"Azure error switching container image: {type(e).__name__}: {e}")
        raise ContainerSwitchFailure(f"Failed to switch '{app.name}' to {image}: {e}", original_error=e) from e

    return DeploymentOperation(kind=OperationKind.CONTAINER_SWITCH, app_name=app.name, handle=poller)
