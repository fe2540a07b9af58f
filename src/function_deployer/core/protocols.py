"""
Protocol definitions for the function app deployer.

The workflow talks to the cloud only through ResourceManagementClient.
Using Python's Protocol (structural subtyping) lets tests pass a plain
MagicMock or a hand-written fake while AzureProvider supplies the real
implementation.
"""

from pathlib import Path
from typing import Optional, Protocol, runtime_checkable, TYPE_CHECKING

if TYPE_CHECKING:
    from .context import FunctionAppInfo, RuntimeStack
    from .operations import DeploymentOperation


@runtime_checkable
class ResourceManagementClient(Protocol):
    """
    Capabilities the deployment workflow needs from a cloud provider.

    Every create/deploy call is effectful. deploy_archive, set_runtime_stack
    and set_container_image only start the remote change and return a
    DeploymentOperation, which the caller passes to await_completion.
    """

    @property
    def subscription_id(self) -> str:
        ...

    def create_resource_group(self, name: str, location: str) -> str:
        """Create a resource group and return its name."""
        ...

    def create_or_get_hosting_plan(self, resource_group: str, name: str, location: str) -> str:
        """Return the ID of the named plan, creating it if it does not exist."""
        ...

    def create_function_app(
        self,
        resource_group: str,
        name: str,
        location: str,
        plan_id: str,
        runtime_stack: Optional['RuntimeStack'] = None
    ) -> 'FunctionAppInfo':
        """Create a function app bound to an existing plan."""
        ...

    def get_function_app_by_name(self, resource_group: str, name: str) -> 'FunctionAppInfo':
        """Resolve a function app that already exists."""
        ...

    def deploy_archive(self, app: 'FunctionAppInfo', archive: Path) -> 'DeploymentOperation':
        """Start a zip deployment of a .zip file or function directory."""
        ...

    def set_runtime_stack(self, app: 'FunctionAppInfo', stack: 'RuntimeStack') -> 'DeploymentOperation':
        """Start switching the app to another runtime stack."""
        ...

    def set_container_image(self, app: 'FunctionAppInfo', image: str) -> 'DeploymentOperation':
        """Start switching the app to a public Docker Hub image."""
        ...

    def await_completion(self, operation: 'DeploymentOperation', timeout_seconds: float) -> 'DeploymentOperation':
        """Block until the operation completes, fails or times out."""
        ...

    def delete_resource_group(self, name: str) -> None:
        """Delete a resource group and everything in it."""
        ...
