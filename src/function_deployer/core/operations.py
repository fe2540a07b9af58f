"""
Asynchronous operation tracking with a bounded wait.

Every long-running remote change (zip deploy, runtime switch, container
switch) is represented by a DeploymentOperation wrapping a handle with the
Azure LROPoller surface: wait(timeout), done() and result(). The Kudu
deployment poller exposes the same surface, so one await function covers
both.

State Machine:
    pending → in_progress → completed | failed | timed_out

A timeout only stops the wait. The remote operation is not cancelled and
may still finish or fail on its own.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Protocol, runtime_checkable

from .exceptions import (
    ContainerSwitchFailure,
    DeploymentError,
    DeploymentFailure,
    DeploymentTimeout,
    RuntimeSwitchFailure,
)

logger = logging.getLogger("function_deployer")


class OperationState(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class OperationKind(str, Enum):
    ZIP_DEPLOY = "zip_deploy"
    RUNTIME_SWITCH = "runtime_switch"
    CONTAINER_SWITCH = "container_switch"


_FAILURE_TYPES = {
    OperationKind.ZIP_DEPLOY: DeploymentFailure,
    OperationKind.RUNTIME_SWITCH: RuntimeSwitchFailure,
    OperationKind.CONTAINER_SWITCH: ContainerSwitchFailure,
}


@runtime_checkable
class AsyncHandle(Protocol):
    """The subset of azure.core.polling.LROPoller the workflow relies on."""

    def wait(self, timeout: Optional[float] = None) -> None:
        ...

    def done(self) -> bool:
        ...

    def result(self, timeout: Optional[float] = None) -> Any:
        ...


@dataclass
class DeploymentOperation:
    """
    One asynchronous transition applied to a function app.

    Attributes:
        kind: What the operation changes
        app_name: Target function app
        handle: Poller tracking the remote operation
        state: Current OperationState
        started_at: Wall-clock time the operation was issued
        finished_at: Wall-clock time the wait ended (any terminal state)
        result: Whatever the handle returned on completion
    """

    kind: OperationKind
    app_name: str
    handle: Any
    state: OperationState = OperationState.PENDING
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
    result: Any = None

    @property
    def failure_type(self) -> type:
        return _FAILURE_TYPES[self.kind]

    @property
    def is_terminal(self) -> bool:
        return self.state in (
            OperationState.COMPLETED,
            OperationState.FAILED,
            OperationState.TIMED_OUT,
        )


def await_completion(operation: DeploymentOperation, timeout_seconds: float) -> DeploymentOperation:
    """
    Block until the operation completes or the timeout elapses.

    Args:
        operation: The operation to wait for
        timeout_seconds: Upper bound for the wait

    Returns:
        The same operation, in state COMPLETED

    Raises:
        DeploymentTimeout: If the handle is not done after timeout_seconds
        DeploymentFailure / RuntimeSwitchFailure / ContainerSwitchFailure:
            If the remote operation reported failure
    """
    if operation.is_terminal:
        raise ValueError(f"Operation on {operation.app_name} already finished ({operation.state.value})")

    operation.state = OperationState.IN_PROGRESS
    logger.debug(f"Waiting up to {timeout_seconds}s for {operation.kind.value} on {operation.app_name}")

    try:
        operation.handle.wait(timeout_seconds)
    except DeploymentError:
        operation.state = OperationState.FAILED
        operation.finished_at = datetime.now()
        raise
    except Exception as e:
        operation.state = OperationState.FAILED
        operation.finished_at = datetime.now()
        raise operation.failure_type(
            f"{operation.kind.value} on {operation.app_name} failed: {e}",
            original_error=e
        ) from e

    if not operation.handle.done():
        operation.state = OperationState.TIMED_OUT
        operation.finished_at = datetime.now()
        raise DeploymentTimeout(
            f"{operation.kind.value} on {operation.app_name} did not complete within {timeout_seconds}s",
            timeout_seconds=timeout_seconds
        )

    try:
        operation.result = operation.handle.result()
    except DeploymentError:
        operation.state = OperationState.FAILED
        operation.finished_at = datetime.now()
        raise
    except Exception as e:
        operation.state = OperationState.FAILED
        operation.finished_at = datetime.now()
        raise operation.failure_type(
            f"{operation.kind.value} on {operation.app_name} failed: {e}",
            original_error=e
        ) from e

    operation.state = OperationState.COMPLETED
    operation.finished_at = datetime.now()
    return operation
