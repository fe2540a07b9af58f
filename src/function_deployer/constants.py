from pathlib import Path

# ==========================================
# 1. Configuration Filenames
# ==========================================
CONFIG_DEPLOYMENT_FILE = "config_deployment.json"
CONFIG_CREDENTIALS_AZURE_FILE = "config_credentials_azure.json"

PROJECT_PATH_ENV_VAR = "FUNCTION_DEPLOYER_PROJECT"
DEFAULT_PROJECT_PATH = Path("config")

# Keys required in config_deployment.json
REQUIRED_DEPLOYMENT_KEYS = ["region", "archives", "existing_apps", "container_image"]
REQUIRED_ARCHIVE_KEYS = ["primary", "secondary"]
REQUIRED_EXISTING_APP_KEYS = ["zip_deploy", "runtime_switch", "container_switch"]

# ==========================================
# 2. Resource Naming
# ==========================================
APP1_NAME_PREFIX = "webapp1-"
APP2_NAME_PREFIX = "webapp2-"
RESOURCE_GROUP_NAME_PREFIX = "rg1NEMV_"
APP_NAME_MAX_LENGTH = 20
RESOURCE_GROUP_NAME_MAX_LENGTH = 24

SITE_DNS_SUFFIX = ".azurewebsites.net"
SCM_DNS_SUFFIX = ".scm.azurewebsites.net"

# ==========================================
# 3. Azure Defaults
# ==========================================
DEFAULT_REGION = "westus"

# Consumption plan for Function Apps
HOSTING_PLAN_SKU = {"name": "Y1", "tier": "Dynamic"}

DEFAULT_RUNTIME_LANGUAGE = "python"
DEFAULT_RUNTIME_VERSION = "~4"
DEFAULT_LINUX_FX_VERSION = "python|3.10"

# withPublicDockerHubImage equivalent
DOCKER_HUB_REGISTRY_URL = "https://index.docker.io"

# ==========================================
# 4. Timing
# ==========================================
OPERATION_TIMEOUT_SECONDS = 300
WARMUP_DELAY_SECONDS = 5
SETTLE_DELAY_SECONDS = 25
KUDU_POLL_INTERVAL_SECONDS = 5
HTTP_REQUEST_TIMEOUT_SECONDS = 300
# Per-request bound for Kudu status polls; never longer than the time left
KUDU_STATUS_REQUEST_TIMEOUT_SECONDS = 30

TIMESTAMP_FORMAT = "%Y/%m/%d %H:%M:%S"

# ==========================================
# 5. Smoke Test
# ==========================================
SMOKE_TEST_PATH = "/api/square"
SMOKE_TEST_PAYLOAD = "926"
SMOKE_TEST_EXPECTED = "857476"

# ==========================================
# 6. New Function Apps
# ==========================================
# Runtime of the apps created by the run
NEW_APP_RUNTIME_LANGUAGE = "python"
NEW_APP_RUNTIME_VERSION = "~4"
NEW_APP_LINUX_FX_VERSION = "python|3.11"

STORAGE_ACCOUNT_SKU = "Standard_LRS"
STORAGE_ACCOUNT_MAX_LENGTH = 24
