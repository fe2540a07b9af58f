"""
Shared Azure deployment helpers.

This module provides the pieces of a Function App zip deployment that the
management SDK does not cover: publishing credentials, the Kudu async
zipdeploy upload and a poller for the resulting Kudu deployment.
"""

import time
import logging
from typing import Any, Callable, Optional, Tuple

import requests
from azure.core.exceptions import AzureError, ClientAuthenticationError

from function_deployer import constants as CONSTANTS
from function_deployer.core.exceptions import AuthenticationFailure, DeploymentFailure
from function_deployer.providers.azure.naming import scm_host


logger = logging.getLogger("function_deployer")

# Kudu DeployStatus values
KUDU_STATUS_PENDING = 0
KUDU_STATUS_BUILDING = 1
KUDU_STATUS_DEPLOYING = 2
KUDU_STATUS_FAILED = 3
KUDU_STATUS_SUCCESS = 4

KUDU_STATUS_NAMES = {
    KUDU_STATUS_PENDING: "pending",
    KUDU_STATUS_BUILDING: "building",
    KUDU_STATUS_DEPLOYING: "deploying",
    KUDU_STATUS_FAILED: "failed",
    KUDU_STATUS_SUCCESS: "success",
}


def get_publishing_credentials(
    web_client: Any,
    resource_group: str,
    app_name: str
) -> Tuple[str, str]:
    """
    Get the Kudu publishing credentials for a Function App.

    Args:
        web_client: Azure WebSiteManagementClient
        resource_group: Resource group name
        app_name: Function App name

    Returns:
        (publishing_user_name, publishing_password)

    Raises:
        AuthenticationFailure: If the caller may not read publishing credentials
        DeploymentFailure: If the credentials cannot be retrieved
    """
    logger.info(f"  Getting publish credentials for {app_name}...")
    try:
        creds = web_client.web_apps.begin_list_publishing_credentials(
            resource_group_name=resource_group,
            name=app_name
        ).result()
    except ClientAuthenticationError as e:
        logger.error(f"PERMISSION DENIED getting publish credentials: {e.message}")
        raise AuthenticationFailure(
            f"Permission denied reading publishing credentials for {app_name}",
            original_error=e
        ) from e
    except AzureError as e:
        logger.error(f"Failed to get publishing credentials: {e}")
        raise DeploymentFailure(
            f"Failed to get publishing credentials for {app_name}: {e}",
            original_error=e
        ) from e
    return creds.publishing_user_name, creds.publishing_password


class KuduDeploymentPoller:
    """
    Tracks an async Kudu zip deployment.

    Exposes the LROPoller surface (wait/done/result/status) so it can be
    awaited exactly like an Azure SDK long-running operation.

    Attributes:
        status_url: Kudu deployment URL returned in the Location header
        app_name: Target Function App (for logging)
    """

    def __init__(
        self,
        status_url: str,
        auth: Tuple[str, str],
        app_name: str,
        poll_interval: float = CONSTANTS.KUDU_POLL_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic
    ):
        self.status_url = status_url
        self.app_name = app_name
        self._auth = auth
        self._poll_interval = poll_interval
        self._clock = clock
        self._status_code = KUDU_STATUS_PENDING
        self._complete = False
        self._deployment: Optional[dict] = None

    def status(self) -> str:
        return KUDU_STATUS_NAMES.get(self._status_code, str(self._status_code))

    def done(self) -> bool:
        return self._complete

    def _poll(self, request_timeout: float) -> None:
        try:
            response = requests.get(
                self.status_url,
                auth=self._auth,
                timeout=request_timeout
            )
        except requests.Timeout:
            # A slow status endpoint is not a failed deployment
            logger.debug(f"  Kudu status poll for {self.app_name} timed out after {request_timeout:.0f}s")
            return
        except requests.RequestException as e:
            logger.error(f"Network error polling Kudu deployment for {self.app_name}: {e}")
            raise DeploymentFailure(
                f"Kudu status poll failed for {self.app_name}: {e}",
                original_error=e
            ) from e

        if response.status_code == 404:
            # Deployment not registered yet
            return
        if response.status_code not in (200, 202):
            raise DeploymentFailure(
                f"Kudu status poll failed for {self.app_name}: "
                f"{response.status_code} - {response.text}"
            )

        deployment = response.json()
        self._deployment = deployment
        self._status_code = deployment.get("status", KUDU_STATUS_PENDING)
        self._complete = bool(deployment.get("complete")) or self._status_code in (
            KUDU_STATUS_FAILED,
            KUDU_STATUS_SUCCESS,
        )
        logger.debug(f"  Kudu deployment for {self.app_name}: {self.status()}")

    def wait(self, timeout: Optional[float] = None) -> None:
        """
        Poll until the deployment is complete or the timeout elapses.

        Status requests and sleeps are both cut to the time left, so the
        call returns no later than the deadline.
        """
        deadline = None if timeout is None else self._clock() + timeout
        while not self._complete:
            request_timeout = CONSTANTS.KUDU_STATUS_REQUEST_TIMEOUT_SECONDS
            if deadline is not None:
                remaining = deadline - self._clock()
                if remaining <= 0:
                    return
                request_timeout = min(request_timeout, remaining)

            self._poll(request_timeout)
            if self._complete:
                return

            pause = self._poll_interval
            if deadline is not None:
                remaining = deadline - self._clock()
                if remaining <= 0:
                    return
                pause = min(pause, remaining)
            time.sleep(pause)

    def result(self, timeout: Optional[float] = None) -> Optional[dict]:
        """
        Return the Kudu deployment record.

        Raises:
            DeploymentFailure: If Kudu reported the deployment as failed
        """
        if not self._complete:
            self.wait(timeout)
        if self._status_code == KUDU_STATUS_FAILED:
            message = (self._deployment or {}).get("status_text") or "deployment failed"
            raise DeploymentFailure(f"Kudu zip deploy to {self.app_name} failed: {message}")
        return self._deployment


def start_kudu_zip_deploy(
    app_name: str,
    zip_content: bytes,
    publish_username: str,
    publish_password: str
) -> KuduDeploymentPoller:
    """
    Upload a ZIP package to a Function App via Kudu async zipdeploy.

    Uses ?isAsync=true so the upload returns immediately with a Location
    header pointing at the deployment record, which the returned poller
    follows until the deployment finishes.

    Args:
        app_name: Name of the Azure Function App
        zip_content: ZIP file content (bytes)
        publish_username: Publishing username from Function App credentials
        publish_password: Publishing password from Function App credentials

    Returns:
        KuduDeploymentPoller for the started deployment

    Raises:
        DeploymentFailure: If Kudu rejects the upload or is unreachable
    """
    kudu_url = f"https://{scm_host(app_name)}/api/zipdeploy?isAsync=true"
    auth = (publish_username, publish_password)

    logger.info(f"  Deploying via Kudu async zip deploy to {app_name}...")

    try:
        response = requests.post(
            kudu_url,
            data=zip_content,
            auth=auth,
            headers={"Content-Type": "application/zip"},
            timeout=CONSTANTS.HTTP_REQUEST_TIMEOUT_SECONDS
        )
    except requests.RequestException as e:
        logger.error(f"Network error during Kudu deploy: {e}")
        raise DeploymentFailure(f"Kudu zip deploy network error: {e}", original_error=e) from e

    if response.status_code not in (200, 202):
        logger.error(f"Kudu deploy failed: {response.status_code} - {response.text}")
        raise DeploymentFailure(
            f"Kudu zip deploy failed: {response.status_code} - {response.text}"
        )

    status_url = response.headers.get("Location") or f"https://{scm_host(app_name)}/api/deployments/latest"
    logger.info(f"  ✓ ZIP uploaded, deployment tracked at {status_url}")
    return KuduDeploymentPoller(status_url, auth, app_name)

