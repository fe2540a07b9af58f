"""
Function App Deployer - CLI Entry Point.

Authenticates against Azure, prints the selected subscription and runs the
deployment workflow once. There are no command-line flags: the project
directory holding config_deployment.json (and optionally
config_credentials_azure.json) is read from FUNCTION_DEPLOYER_PROJECT,
defaulting to ./config.

Exit status is 0 when every step completed and 1 otherwise.
"""

import os
import sys
from pathlib import Path

from function_deployer import constants as CONSTANTS
from function_deployer.core.config_loader import load_credentials, load_deployment_config
from function_deployer.core.exceptions import DeploymentError
from function_deployer.logger import configure_logger, logger, print_stack_trace
from function_deployer.orchestrator.workflow import DeploymentWorkflow
from function_deployer.providers.azure.provider import AzureProvider


def get_project_path() -> Path:
    """Get the project directory from the environment."""
    value = os.environ.get(CONSTANTS.PROJECT_PATH_ENV_VAR, "").strip()
    return Path(value) if value else CONSTANTS.DEFAULT_PROJECT_PATH


def main() -> int:
    project_path = get_project_path()

    try:
        config = load_deployment_config(project_path)
        log = configure_logger(config.mode)

        # ==========================================
        # Authenticate
        # ==========================================
        provider = AzureProvider()
        provider.initialize_clients(load_credentials(project_path))
        provider.verify_credentials()

        result = DeploymentWorkflow(config).run(provider)
    except DeploymentError as e:
        logger.error(str(e))
        print_stack_trace()
        return 1
    except Exception as e:
        logger.error(f"Unexpected error: {type(e).__name__}: {e}")
        print_stack_trace()
        return 1

    log.info(f"Deployment finished: {', '.join(result.completed_steps)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
