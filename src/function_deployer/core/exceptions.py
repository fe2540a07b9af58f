"""
Custom exceptions for the function app deployer.

This module defines a hierarchy of exceptions used throughout the deployment
workflow to provide clear, actionable error messages. Every error can carry
the identifier of the workflow step that raised it, so the top-level caller
can report which step aborted the pipeline.

Exception Hierarchy:
    DeploymentError (base)
    ├── ConfigurationError - Invalid or missing configuration
    ├── AuthenticationFailure - Credentials missing or rejected
    ├── ResourceCreationFailure - Failed to create/resolve a cloud resource
    ├── DeploymentFailure - Zip deployment reported failure
    │   └── DeploymentTimeout - Async operation not done within the timeout
    ├── RuntimeSwitchFailure - Runtime stack change reported failure
    └── ContainerSwitchFailure - Container image change reported failure
"""

from typing import Optional


class DeploymentError(Exception):
    """
    Base exception for all deployment-related errors.

    Attributes:
        message: Human-readable error description
        step: Optional workflow step identifier where the error occurred
        original_error: Optional underlying SDK or HTTP exception
    """

    def __init__(
        self,
        message: str,
        step: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        self.message = message
        self.step = step
        self.original_error = original_error
        super().__init__(message)

    def __str__(self) -> str:
        if self.step:
            return f"{self.message} [step={self.step}]"
        return self.message


class ConfigurationError(DeploymentError):
    """
    Raised when configuration is invalid or missing required fields.

    Example:
        >>> load_deployment_config(Path("missing"))
        ConfigurationError: Required configuration file not found: config_deployment.json (file: missing/config_deployment.json)
    """

    def __init__(self, message: str, config_file: Optional[str] = None):
        self.config_file = config_file
        if config_file:
            message = f"{message} (file: {config_file})"
        super().__init__(message)


class AuthenticationFailure(DeploymentError):
    """Raised when Azure credentials are missing or rejected."""


class ResourceCreationFailure(DeploymentError):
    """
    Raised when a cloud resource fails to create or cannot be resolved.

    Attributes:
        resource_type: Type of resource (e.g., "Function App", "App Service Plan")
        resource_name: Name of the resource that failed
        action: What was attempted ("create" or "resolve")
    """

    def __init__(
        self,
        resource_type: str,
        resource_name: str,
        original_error: Optional[Exception] = None,
        step: Optional[str] = None,
        action: str = "create"
    ):
        self.resource_type = resource_type
        self.resource_name = resource_name
        self.action = action

        message = f"Failed to {action} {resource_type} '{resource_name}'"
        if original_error:
            message += f": {original_error}"

        super().__init__(message, step=step, original_error=original_error)


class DeploymentFailure(DeploymentError):
    """Raised when a zip deployment (or its smoke test) reports failure."""


class DeploymentTimeout(DeploymentFailure):
    """
    Raised when an asynchronous operation does not complete in time.

    Distinct from a remote failure: the remote operation may still be
    running (or fail later) after the caller stops waiting.

    Attributes:
        timeout_seconds: The bound that was exceeded
    """

    def __init__(
        self,
        message: str,
        timeout_seconds: float,
        step: Optional[str] = None
    ):
        self.timeout_seconds = timeout_seconds
        super().__init__(message, step=step)


class RuntimeSwitchFailure(DeploymentError):
    """Raised when switching a function app's runtime stack fails."""


class ContainerSwitchFailure(DeploymentError):
    """Raised when switching a function app to a container image fails."""
