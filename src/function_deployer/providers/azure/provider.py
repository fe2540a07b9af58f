"""
Azure ResourceManagementClient implementation.

This module provides the Azure implementation of the ResourceManagementClient
protocol: credential selection, SDK client initialization, and the
capability methods the deployment workflow calls.

SDK Clients Initialized:
    - ResourceManagementClient: For Resource Group management
    - StorageManagementClient: For Function App storage accounts
    - WebSiteManagementClient: For App Service Plans and Function Apps

Usage:
    from function_deployer.providers.azure.provider import AzureProvider

    provider = AzureProvider()
    provider.initialize_clients(credentials)
    plan_id = provider.create_or_get_hosting_plan("my-rg", "my-plan", "westus")
"""

from pathlib import Path
from typing import Any, Dict, Optional

from azure.core.exceptions import ClientAuthenticationError

from function_deployer.core.context import FunctionAppInfo, RuntimeStack
from function_deployer.core.exceptions import AuthenticationFailure
from function_deployer.core.operations import DeploymentOperation, await_completion
from function_deployer.logger import logger
from function_deployer.providers.azure import function_apps


class AzureProvider:
    """
    Azure implementation of the ResourceManagementClient protocol.

    Attributes:
        name: Provider identifier ("azure")
        subscription_id: Subscription all resources are created in
        clients: Dictionary of initialized Azure SDK clients
    """

    name: str = "azure"

    def __init__(self):
        """Initialize Azure provider."""
        self._subscription_id: str = ""
        self._clients: Dict[str, Any] = {}
        self._initialized: bool = False

    @property
    def subscription_id(self) -> str:
        """Get the Azure subscription ID."""
        return self._subscription_id

    @property
    def clients(self) -> Dict[str, Any]:
        """Get the dictionary of Azure SDK clients."""
        if not self._initialized:
            raise RuntimeError("Provider not initialized. Call initialize_clients() first.")
        return self._clients

    def initialize_clients(self, credentials: dict) -> None:
        """
        Initialize Azure SDK clients.

        Args:
            credentials: Azure credentials dictionary with:
                - azure_subscription_id: Azure subscription ID (REQUIRED)
                - azure_tenant_id: Azure AD tenant ID (optional)
                - azure_client_id: Service principal client ID (optional)
                - azure_client_secret: Service principal secret (optional)

        Raises:
            AuthenticationFailure: If the subscription ID is missing
        """
        # Fail-fast: the subscription cannot be discovered reliably
        if not credentials.get("azure_subscription_id"):
            raise AuthenticationFailure(
                "Missing required credential 'azure_subscription_id'. "
                "Provide it in config_credentials_azure.json or AZURE_SUBSCRIPTION_ID."
            )
        self._subscription_id = credentials["azure_subscription_id"]

        credential = self._get_credential(credentials)
        self._initialize_sdk_clients(credential)

        self._initialized = True
        logger.info(f"Selected subscription: {self._subscription_id}")

    def _get_credential(self, credentials: dict) -> Any:
        """Get Azure credential for SDK clients."""
        from azure.identity import DefaultAzureCredential, ClientSecretCredential

        client_id = credentials.get("azure_client_id")
        client_secret = credentials.get("azure_client_secret")
        tenant_id = credentials.get("azure_tenant_id")

        if client_id and client_secret and tenant_id:
            return ClientSecretCredential(
                tenant_id=tenant_id,
                client_id=client_id,
                client_secret=client_secret
            )
        else:
            return DefaultAzureCredential()

    def _initialize_sdk_clients(self, credential: Any) -> None:
        """Initialize all required Azure SDK clients."""
        from azure.mgmt.resource import ResourceManagementClient
        from azure.mgmt.storage import StorageManagementClient
        from azure.mgmt.web import WebSiteManagementClient

        subscription_id = self._subscription_id

        self._clients["resource"] = ResourceManagementClient(credential=credential, subscription_id=subscription_id)
        self._clients["storage"] = StorageManagementClient(credential=credential, subscription_id=subscription_id)
        self._clients["web"] = WebSiteManagementClient(credential=credential, subscription_id=subscription_id)

    def verify_credentials(self) -> None:
        """
        Make one cheap authenticated call so bad credentials fail up front.

        Raises:
            AuthenticationFailure: If Azure rejects the credential
        """
        try:
            next(iter(self.clients["resource"].resource_groups.list(top=1)), None)
        except ClientAuthenticationError as e:
            logger.error(f"PERMISSION DENIED listing resource groups: {e.message}")
            raise AuthenticationFailure(
                f"Azure rejected the credential for subscription {self._subscription_id}",
                original_error=e
            ) from e

    # ==========================================
    # ResourceManagementClient capabilities
    # ==========================================

    def create_resource_group(self, name: str, location: str) -> str:
        return function_apps.create_resource_group(self, name, location)

    def create_or_get_hosting_plan(self, resource_group: str, name: str, location: str) -> str:
        return function_apps.create_or_get_app_service_plan(self, resource_group, name, location)

    def create_function_app(
        self,
        resource_group: str,
        name: str,
        location: str,
        plan_id: str,
        runtime_stack: Optional[RuntimeStack] = None
    ) -> FunctionAppInfo:
        return function_apps.create_function_app(
            self, resource_group, name, location, plan_id,
            runtime_stack or RuntimeStack()
        )

    def get_function_app_by_name(self, resource_group: str, name: str) -> FunctionAppInfo:
        return function_apps.get_function_app(self, resource_group, name)

    def deploy_archive(self, app: FunctionAppInfo, archive: Path) -> DeploymentOperation:
        return function_apps.begin_zip_deploy(self, app, archive)

    def set_runtime_stack(self, app: FunctionAppInfo, stack: RuntimeStack) -> DeploymentOperation:
        return function_apps.begin_runtime_switch(self, app, stack)

    def set_container_image(self, app: FunctionAppInfo, image: str) -> DeploymentOperation:
        return function_apps.begin_container_switch(self, app, image)

    def await_completion(self, operation: DeploymentOperation, timeout_seconds: float) -> DeploymentOperation:
        return await_completion(operation, timeout_seconds)

    def delete_resource_group(self, name: str) -> None:
        function_apps.delete_resource_group(self, name)
