"""
Unit tests for Azure Function App resource operations.

SDK clients are MagicMocks from the mock_provider fixture; assertions
check the request envelopes sent to azure-mgmt-web.
"""

import pytest
from dataclasses import replace
from unittest.mock import MagicMock, patch

from azure.core.exceptions import (
    ClientAuthenticationError,
    HttpResponseError,
    ResourceNotFoundError,
)

from conftest import PLAN_ID, make_app_info
from function_deployer.core.context import FunctionAppInfo, RuntimeStack
from function_deployer.core.exceptions import (
    AuthenticationFailure,
    ContainerSwitchFailure,
    ResourceCreationFailure,
    RuntimeSwitchFailure,
)
from function_deployer.core.operations import OperationKind
from function_deployer.providers.azure import function_apps


def _site(name="webapp1-abc", plan_id=PLAN_ID, kind="functionapp,linux", reserved=True):
    site = MagicMock()
    site.name = name
    site.resource_group = "rg-test"
    site.location = "westus"
    site.server_farm_id = plan_id
    site.default_host_name = f"{name}.azurewebsites.net"
    site.kind = kind
    site.reserved = reserved
    return site


class TestResourceGroup:

    def test_create(self, mock_provider):
        group = MagicMock()
        group.name = "rg1NEMV_abc"
        mock_provider.clients["resource"].resource_groups.create_or_update.return_value = group

        assert function_apps.create_resource_group(mock_provider, "rg1NEMV_abc", "westus") == "rg1NEMV_abc"
        mock_provider.clients["resource"].resource_groups.create_or_update.assert_called_once_with(
            resource_group_name="rg1NEMV_abc", parameters={"location": "westus"}
        )

    def test_create_permission_denied(self, mock_provider):
        mock_provider.clients["resource"].resource_groups.create_or_update.side_effect = (
            ClientAuthenticationError(message="denied")
        )
        with pytest.raises(AuthenticationFailure):
            function_apps.create_resource_group(mock_provider, "rg", "westus")

    def test_create_failure(self, mock_provider):
        mock_provider.clients["resource"].resource_groups.create_or_update.side_effect = (
            HttpResponseError(message="quota")
        )
        with pytest.raises(ResourceCreationFailure, match="Resource Group 'rg'"):
            function_apps.create_resource_group(mock_provider, "rg", "westus")

    def test_create_requires_provider(self):
        with pytest.raises(ValueError, match="provider is required"):
            function_apps.create_resource_group(None, "rg", "westus")

    def test_delete_waits_for_completion(self, mock_provider):
        function_apps.delete_resource_group(mock_provider, "rg")
        poller = mock_provider.clients["resource"].resource_groups.begin_delete.return_value
        poller.result.assert_called_once()

    def test_delete_missing_group_is_ignored(self, mock_provider):
        mock_provider.clients["resource"].resource_groups.begin_delete.side_effect = (
            ResourceNotFoundError(message="gone")
        )
        function_apps.delete_resource_group(mock_provider, "rg")

    def test_delete_error_propagates(self, mock_provider):
        mock_provider.clients["resource"].resource_groups.begin_delete.side_effect = (
            HttpResponseError(message="locked")
        )
        with pytest.raises(HttpResponseError):
            function_apps.delete_resource_group(mock_provider, "rg")


class TestAppServicePlan:

    def test_existing_plan_is_reused(self, mock_provider):
        web = mock_provider.clients["web"]
        web.app_service_plans.get.return_value = MagicMock(id=PLAN_ID)

        assert function_apps.create_or_get_app_service_plan(mock_provider, "rg", "plan", "westus") == PLAN_ID
        web.app_service_plans.begin_create_or_update.assert_not_called()

    def test_missing_plan_is_created_on_consumption_sku(self, mock_provider):
        web = mock_provider.clients["web"]
        web.app_service_plans.get.side_effect = ResourceNotFoundError(message="not found")
        web.app_service_plans.begin_create_or_update.return_value.result.return_value = MagicMock(id=PLAN_ID)

        assert function_apps.create_or_get_app_service_plan(mock_provider, "rg", "plan", "westus") == PLAN_ID

        kwargs = web.app_service_plans.begin_create_or_update.call_args.kwargs
        assert kwargs["app_service_plan"]["sku"] == {"name": "Y1", "tier": "Dynamic"}
        assert kwargs["app_service_plan"]["properties"]["reserved"] is True

    def test_create_failure(self, mock_provider):
        web = mock_provider.clients["web"]
        web.app_service_plans.get.return_value = None
        web.app_service_plans.begin_create_or_update.side_effect = HttpResponseError(message="quota")

        with pytest.raises(ResourceCreationFailure, match="App Service Plan"):
            function_apps.create_or_get_app_service_plan(mock_provider, "rg", "plan", "westus")


class TestCreateFunctionApp:

    @pytest.fixture
    def provider(self, mock_provider):
        keys = MagicMock()
        keys.keys = [MagicMock(value="storage-key")]
        mock_provider.clients["storage"].storage_accounts.list_keys.return_value = keys
        mock_provider.clients["web"].web_apps.begin_create_or_update.return_value.result.return_value = _site()
        return mock_provider

    def test_app_is_bound_to_given_plan(self, provider):
        stack = RuntimeStack("python", "~4", "python|3.11")

        app = function_apps.create_function_app(provider, "rg-test", "webapp1-abc", "westus", PLAN_ID, stack)

        assert app == make_app_info("webapp1-abc", "rg-test")
        envelope = provider.clients["web"].web_apps.begin_create_or_update.call_args.kwargs["site_envelope"]
        assert envelope["properties"]["serverFarmId"] == PLAN_ID
        assert envelope["properties"]["siteConfig"]["linuxFxVersion"] == "python|3.11"
        settings = {s["name"]: s["value"] for s in envelope["properties"]["siteConfig"]["appSettings"]}
        assert settings["FUNCTIONS_WORKER_RUNTIME"] == "python"
        assert settings["FUNCTIONS_EXTENSION_VERSION"] == "~4"
        assert "AccountKey=storage-key" in settings["AzureWebJobsStorage"]

    def test_storage_account_created(self, provider):
        function_apps.create_function_app(provider, "rg-test", "webapp1-abc", "westus", PLAN_ID, RuntimeStack())

        kwargs = provider.clients["storage"].storage_accounts.begin_create.call_args.kwargs
        assert kwargs["account_name"] == "webapp1abcst"
        assert kwargs["parameters"]["sku"] == {"name": "Standard_LRS"}

    def test_missing_plan_id(self, provider):
        with pytest.raises(ValueError, match="plan_id is required"):
            function_apps.create_function_app(provider, "rg-test", "webapp1-abc", "westus", "", RuntimeStack())

    def test_sdk_failure(self, provider):
        provider.clients["web"].web_apps.begin_create_or_update.side_effect = HttpResponseError(message="conflict")

        with pytest.raises(ResourceCreationFailure, match="Function App 'webapp1-abc'"):
            function_apps.create_function_app(provider, "rg-test", "webapp1-abc", "westus", PLAN_ID, RuntimeStack())


class TestGetFunctionApp:

    def test_resolves_app(self, mock_provider):
        mock_provider.clients["web"].web_apps.get.return_value = _site("functions-python")

        app = function_apps.get_function_app(mock_provider, "rg-test", "functions-python")

        assert app.name == "functions-python"
        assert app.plan_id == PLAN_ID

    def test_records_kind_and_os(self, mock_provider):
        mock_provider.clients["web"].web_apps.get.return_value = _site(
            "functions-win", kind="functionapp", reserved=False
        )

        app = function_apps.get_function_app(mock_provider, "rg-test", "functions-win")

        assert app.kind == "functionapp"
        assert app.reserved is False

    def test_not_found(self, mock_provider):
        mock_provider.clients["web"].web_apps.get.side_effect = ResourceNotFoundError(message="nope")

        with pytest.raises(ResourceCreationFailure, match="Failed to resolve Function App"):
            function_apps.get_function_app(mock_provider, "rg-test", "missing")


class TestSwitches:

    @pytest.fixture
    def app(self):
        return make_app_info("functions-node", "rg-node")

    def test_runtime_switch_keeps_plan_and_location(self, mock_provider, app):
        web = mock_provider.clients["web"]
        web.web_apps.list_application_settings.return_value = MagicMock(properties={"EXISTING": "1"})

        operation = function_apps.begin_runtime_switch(
            mock_provider, app, RuntimeStack("python", "~4", "python|3.11")
        )

        assert operation.kind == OperationKind.RUNTIME_SWITCH
        assert operation.handle is web.web_apps.begin_create_or_update.return_value
        envelope = web.web_apps.begin_create_or_update.call_args.kwargs["site_envelope"]
        assert envelope["location"] == app.location
        assert envelope["properties"]["serverFarmId"] == app.plan_id
        assert envelope["properties"]["siteConfig"]["linuxFxVersion"] == "python|3.11"
        settings = web.web_apps.update_application_settings.call_args.kwargs["app_settings"]["properties"]
        assert settings == {"EXISTING": "1", "FUNCTIONS_WORKER_RUNTIME": "python", "FUNCTIONS_EXTENSION_VERSION": "~4"}

    def test_runtime_switch_failure(self, mock_provider, app):
        mock_provider.clients["web"].web_apps.list_application_settings.side_effect = HttpResponseError(message="x")

        with pytest.raises(RuntimeSwitchFailure):
            function_apps.begin_runtime_switch(mock_provider, app, RuntimeStack())

    def test_container_switch_sets_docker_image(self, mock_provider, app):
        web = mock_provider.clients["web"]
        web.web_apps.list_application_settings.return_value = MagicMock(properties={})

        operation = function_apps.begin_container_switch(mock_provider, app, "example/image:latest")

        assert operation.kind == OperationKind.CONTAINER_SWITCH
        envelope = web.web_apps.begin_create_or_update.call_args.kwargs["site_envelope"]
        assert envelope["properties"]["siteConfig"]["linuxFxVersion"] == "DOCKER|example/image:latest"
        assert envelope["properties"]["serverFarmId"] == app.plan_id
        settings = web.web_apps.update_application_settings.call_args.kwargs["app_settings"]["properties"]
        assert settings["DOCKER_REGISTRY_SERVER_URL"] == "https://index.docker.io"

    def test_container_switch_requires_image(self, mock_provider, app):
        with pytest.raises(ValueError, match="image is required"):
            function_apps.begin_container_switch(mock_provider, app, "")

    def test_container_switch_failure(self, mock_provider, app):
        mock_provider.clients["web"].web_apps.begin_create_or_update.side_effect = HttpResponseError(message="x")
        mock_provider.clients["web"].web_apps.list_application_settings.return_value = MagicMock(properties={})

        with pytest.raises(ContainerSwitchFailure):
            function_apps.begin_container_switch(mock_provider, app, "example/image:latest")


class TestZipDeploy:

    @patch("function_deployer.providers.azure.function_apps.deployment_helpers")
    @patch("function_deployer.providers.azure.function_apps.load_archive", return_value=b"zip")
    def test_starts_kudu_deploy(self, mock_load, mock_helpers, mock_provider, tmp_path):
        app = make_app_info("webapp2-abc", "rg-test")
        mock_helpers.get_publishing_credentials.return_value = ("user", "pass")

        operation = function_apps.begin_zip_deploy(mock_provider, app, tmp_path / "app.zip")

        mock_load.assert_called_once_with(tmp_path / "app.zip")
        mock_helpers.start_kudu_zip_deploy.assert_called_once_with("webapp2-abc", b"zip", "user", "pass")
        assert operation.kind == OperationKind.ZIP_DEPLOY
        assert operation.handle is mock_helpers.start_kudu_zip_deploy.return_value


class TestSwitchTargets:
    """Switch envelopes mirror the resolved app instead of assuming a shape."""

    def test_kind_is_copied_from_app(self, mock_provider):
        app = FunctionAppInfo(
            name="functions-node",
            resource_group="rg-node",
            location="northeurope",
            plan_id=PLAN_ID,
            default_host_name="functions-node.azurewebsites.net",
            kind="functionapp,linux,container",
            reserved=True,
        )
        web = mock_provider.clients["web"]
        web.web_apps.list_application_settings.return_value = MagicMock(properties={})

        function_apps.begin_runtime_switch(mock_provider, app, RuntimeStack())

        envelope = web.web_apps.begin_create_or_update.call_args.kwargs["site_envelope"]
        assert envelope["kind"] == "functionapp,linux,container"
        assert envelope["location"] == "northeurope"
        assert envelope["properties"]["reserved"] is True

    @pytest.mark.parametrize("switch, argument, failure_type", [
        (function_apps.begin_runtime_switch, RuntimeStack(), RuntimeSwitchFailure),
        (function_apps.begin_container_switch, "example/image:latest", ContainerSwitchFailure),
    ])
    def test_windows_app_is_rejected(self, mock_provider, switch, argument, failure_type):
        windows_app = replace(make_app_info("functions-win", "rg-win"), kind="functionapp", reserved=False)

        with pytest.raises(failure_type, match="not a Linux app"):
            switch(mock_provider, windows_app, argument)

        mock_provider.clients["web"].web_apps.update_application_settings.assert_not_called()
        mock_provider.clients["web"].web_apps.begin_create_or_update.assert_not_called()
