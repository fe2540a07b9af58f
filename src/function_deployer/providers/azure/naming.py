"""
Azure resource naming conventions.

This module generates fresh, collision-free names for the resources a run
creates and checks names against Azure naming restrictions.

Naming Restrictions:
    - Function Apps: 2-60 chars, alphanumeric and hyphens,
      no leading or trailing hyphen (the name becomes a DNS label)
    - Resource Groups: 1-90 chars, alphanumeric, underscores, hyphens,
      periods and parentheses, must not end with a period

Usage:
    from function_deployer.providers.azure.naming import random_resource_name

    name = random_resource_name("webapp1-", 20)  # "webapp1-3f9c0a1b2d4e"
"""

import re
import secrets

from function_deployer import constants as CONSTANTS

_FUNCTION_APP_PATTERN = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?$")
_RESOURCE_GROUP_PATTERN = re.compile(r"^[\w\-.()]*[\w\-()]$")

FUNCTION_APP_MIN_LENGTH = 2
FUNCTION_APP_MAX_LENGTH = 60
RESOURCE_GROUP_MAX_LENGTH = 90

# Random part never shorter than this, so truncation cannot eat uniqueness
MIN_RANDOM_CHARS = 6


def random_resource_name(prefix: str, max_length: int) -> str:
    """
    Generate a random resource name with a fixed prefix.

    The random part is lowercase hex so it is valid for every resource
    type used here.

    Args:
        prefix: Leading part of the name (e.g., "webapp1-")
        max_length: Total length of the returned name

    Returns:
        prefix + random hex, exactly max_length characters long

    Raises:
        ValueError: If max_length leaves fewer than MIN_RANDOM_CHARS random characters
    """
    random_chars = max_length - len(prefix)
    if random_chars < MIN_RANDOM_CHARS:
        raise ValueError(
            f"max_length {max_length} leaves only {random_chars} random characters "
            f"after prefix '{prefix}' (need at least {MIN_RANDOM_CHARS})"
        )
    return prefix + secrets.token_hex((random_chars + 1) // 2)[:random_chars]


def is_valid_function_app_name(name: str) -> bool:
    """Check a Function App name against Azure site naming rules."""
    if not FUNCTION_APP_MIN_LENGTH <= len(name) <= FUNCTION_APP_MAX_LENGTH:
        return False
    return bool(_FUNCTION_APP_PATTERN.match(name))


def is_valid_resource_group_name(name: str) -> bool:
    """Check a Resource Group name against Azure naming rules."""
    if not 1 <= len(name) <= RESOURCE_GROUP_MAX_LENGTH:
        return False
    return bool(_RESOURCE_GROUP_PATTERN.match(name))


def site_host(app_name: str) -> str:
    """Public host name of a Function App."""
    return f"{app_name}{CONSTANTS.SITE_DNS_SUFFIX}"


def scm_host(app_name: str) -> str:
    """Kudu (SCM) host name of a Function App."""
    return f"{app_name}{CONSTANTS.SCM_DNS_SUFFIX}"


def hosting_plan_name(app_name: str) -> str:
    """
    App Service Plan name for a Function App created with a new plan.

    Pattern: {app_name}-plan
    """
    return f"{app_name}-plan"


def storage_account_name(app_name: str) -> str:
    """
    Storage Account name backing a Function App.

    Azure storage account naming restrictions:
    - 3-24 characters
    - Lowercase alphanumeric only (no hyphens)
    """
    base_name = re.sub(r"[^a-z0-9]", "", app_name.lower())
    return f"{base_name}st"[:CONSTANTS.STORAGE_ACCOUNT_MAX_LENGTH]
