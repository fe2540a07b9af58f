"""
Deployment Orchestrator package.

Modules:
    workflow: DeploymentWorkflow and its ordered steps
    smoke_test: HTTP probe run after a zip deployment
    teardown: TeardownScope for resources created by a run
"""

from .workflow import DeploymentWorkflow, WorkflowResult, WorkflowStep, generate_run_names

__all__ = [
    "DeploymentWorkflow",
    "WorkflowResult",
    "WorkflowStep",
    "generate_run_names",
]
