"""
Unit tests for AzureProvider.

SDK constructors are patched at their import location; no network calls
are made.
"""

import pytest
from unittest.mock import MagicMock, patch

from azure.core.exceptions import ClientAuthenticationError

from function_deployer.core.context import RuntimeStack
from function_deployer.core.exceptions import AuthenticationFailure
from function_deployer.core.protocols import ResourceManagementClient
from function_deployer.providers.azure import AzureProvider

FUNCTION_APPS = "function_deployer.providers.azure.provider.function_apps"


@pytest.fixture
def sdk_clients():
    with patch("azure.mgmt.resource.ResourceManagementClient") as resource, \
         patch("azure.mgmt.storage.StorageManagementClient") as storage, \
         patch("azure.mgmt.web.WebSiteManagementClient") as web, \
         patch("azure.identity.DefaultAzureCredential") as default_cred, \
         patch("azure.identity.ClientSecretCredential") as secret_cred:
        yield {
            "resource": resource,
            "storage": storage,
            "web": web,
            "default_cred": default_cred,
            "secret_cred": secret_cred,
        }


@pytest.fixture
def provider(sdk_clients):
    provider = AzureProvider()
    provider.initialize_clients({"azure_subscription_id": "test-sub"})
    return provider


class TestInitialization:

    def test_satisfies_protocol(self):
        assert isinstance(AzureProvider(), ResourceManagementClient)

    def test_clients_before_initialization(self):
        with pytest.raises(RuntimeError, match="not initialized"):
            AzureProvider().clients

    def test_missing_subscription(self, sdk_clients):
        with pytest.raises(AuthenticationFailure, match="azure_subscription_id"):
            AzureProvider().initialize_clients({})

    def test_default_credential(self, provider, sdk_clients):
        assert provider.subscription_id == "test-sub"
        assert set(provider.clients) == {"resource", "storage", "web"}
        sdk_clients["default_cred"].assert_called_once()
        sdk_clients["secret_cred"].assert_not_called()
        sdk_clients["web"].assert_called_once_with(
            credential=sdk_clients["default_cred"].return_value, subscription_id="test-sub"
        )

    def test_service_principal_credential(self, sdk_clients):
        AzureProvider().initialize_clients({
            "azure_subscription_id": "test-sub",
            "azure_tenant_id": "tenant",
            "azure_client_id": "client",
            "azure_client_secret": "secret",
        })

        sdk_clients["secret_cred"].assert_called_once_with(
            tenant_id="tenant", client_id="client", client_secret="secret"
        )
        sdk_clients["default_cred"].assert_not_called()


class TestVerifyCredentials:

    def test_accepts_valid_credential(self, provider):
        provider.clients["resource"].resource_groups.list.return_value = iter([])
        provider.verify_credentials()

    def test_rejected_credential(self, provider):
        provider.clients["resource"].resource_groups.list.side_effect = ClientAuthenticationError(message="bad")

        with pytest.raises(AuthenticationFailure, match="test-sub"):
            provider.verify_credentials()


class TestCapabilities:

    @patch(FUNCTION_APPS)
    def test_create_function_app_defaults_runtime(self, mock_apps, provider):
        provider.create_function_app("rg", "app", "westus", "plan-id")

        mock_apps.create_function_app.assert_called_once_with(
            provider, "rg", "app", "westus", "plan-id", RuntimeStack()
        )

    @patch(FUNCTION_APPS)
    def test_delegation(self, mock_apps, provider):
        app = MagicMock()

        provider.create_or_get_hosting_plan("rg", "plan", "westus")
        provider.get_function_app_by_name("rg", "app")
        provider.set_container_image(app, "img")
        provider.delete_resource_group("rg")

        mock_apps.create_or_get_app_service_plan.assert_called_once_with(provider, "rg", "plan", "westus")
        mock_apps.get_function_app.assert_called_once_with(provider, "rg", "app")
        mock_apps.begin_container_switch.assert_called_once_with(provider, app, "img")
        mock_apps.delete_resource_group.assert_called_once_with(provider, "rg")
