"""
Core abstractions for the function app deployer.

Modules:
    protocols: ResourceManagementClient interface
    context: DeploymentConfig and DeploymentContext
    config_loader: Configuration loading utilities
    operations: DeploymentOperation and await_completion
    exceptions: Custom exception types for deployment operations

Usage:
    from function_deployer.core import DeploymentConfig, load_deployment_config

    config = load_deployment_config(Path("config"))
"""

from .protocols import ResourceManagementClient
from .context import (
    AppReference,
    DeploymentConfig,
    DeploymentContext,
    FunctionAppInfo,
    RuntimeStack,
    SmokeTestConfig,
)
from .config_loader import load_credentials, load_deployment_config
from .operations import DeploymentOperation, OperationKind, OperationState, await_completion
from .exceptions import (
    AuthenticationFailure,
    ConfigurationError,
    ContainerSwitchFailure,
    DeploymentError,
    DeploymentFailure,
    DeploymentTimeout,
    ResourceCreationFailure,
    RuntimeSwitchFailure,
)

__all__ = [
    # Protocols
    "ResourceManagementClient",
    # Context
    "AppReference",
    "DeploymentConfig",
    "DeploymentContext",
    "FunctionAppInfo",
    "RuntimeStack",
    "SmokeTestConfig",
    # Config
    "load_credentials",
    "load_deployment_config",
    # Operations
    "DeploymentOperation",
    "OperationKind",
    "OperationState",
    "await_completion",
    # Exceptions
    "AuthenticationFailure",
    "ConfigurationError",
    "ContainerSwitchFailure",
    "DeploymentError",
    "DeploymentFailure",
    "DeploymentTimeout",
    "ResourceCreationFailure",
    "RuntimeSwitchFailure",
]
