import os
import sys
import pytest
from pathlib import Path
from unittest.mock import MagicMock

# Make the src layout importable without installing the package
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))

from function_deployer.core.context import AppReference, DeploymentConfig, FunctionAppInfo

PLAN_ID = "/subscriptions/test-sub/resourceGroups/rg-test/providers/Microsoft.Web/serverfarms/test-plan"


@pytest.fixture(scope="function", autouse=True)
def mock_env_vars(monkeypatch):
    """Remove Azure environment variables to prevent accidental cloud calls."""
    for name in ("AZURE_SUBSCRIPTION_ID", "AZURE_TENANT_ID", "AZURE_CLIENT_ID", "AZURE_CLIENT_SECRET"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def mock_sleep(monkeypatch):
    """Skip time.sleep calls to speed up tests."""
    monkeypatch.setattr("time.sleep", lambda x: None)


@pytest.fixture(scope="function")
def deployment_config(tmp_path):
    """
    Create a DeploymentConfig for tests.
    """
    return DeploymentConfig(
        region="westus",
        primary_archive=tmp_path / "primary",
        secondary_archive=tmp_path / "secondary.zip",
        zip_deploy_app=AppReference("functions-python", "functions-python"),
        runtime_switch_app=AppReference("functions-node", "functions-node"),
        container_switch_app=AppReference("functions-docker", "functions-docker"),
        container_image="example/azure-functions-python-square:latest",
    )


def make_app_info(name: str, resource_group: str, plan_id: str = PLAN_ID, location: str = "westus") -> FunctionAppInfo:
    return FunctionAppInfo(
        name=name,
        resource_group=resource_group,
        location=location,
        plan_id=plan_id,
        default_host_name=f"{name}.azurewebsites.net",
    )


@pytest.fixture
def mock_client():
    """
    Create a mock ResourceManagementClient.

    Created apps echo back the plan they were given; existing apps live on
    their own plan. Every operation completes immediately.
    """
    client = MagicMock()
    client.subscription_id = "test-sub"
    client.create_resource_group.side_effect = lambda name, location: name
    client.create_or_get_hosting_plan.return_value = PLAN_ID
    client.create_function_app.side_effect = (
        lambda rg, name, location, plan_id, runtime_stack=None: make_app_info(name, rg, plan_id, location)
    )
    client.get_function_app_by_name.side_effect = (
        lambda rg, name: make_app_info(name, rg, plan_id=f"/subscriptions/test-sub/resourceGroups/{rg}/providers/Microsoft.Web/serverfarms/{name}-plan")
    )
    client.await_completion.side_effect = lambda operation, timeout: operation
    return client


@pytest.fixture
def mock_provider():
    """Create a mock AzureProvider exposing SDK clients."""
    provider = MagicMock()
    provider.subscription_id = "test-sub"
    provider.clients = {
        "resource": MagicMock(),
        "storage": MagicMock(),
        "web": MagicMock(),
    }
    return provider


@pytest.fixture
def square_endpoint():
    """Fake requests.post answering like the deployed square function."""
    def _post(url, data=None, headers=None, timeout=None):
        response = MagicMock()
        response.status_code = 200
        response.text = f"{int(data) ** 2}\n"
        response.raise_for_status.return_value = None
        return response
    return MagicMock(side_effect=_post)
