"""
Azure provider package.

This package contains the Azure implementation of ResourceManagementClient
backed by azure-mgmt-web, azure-mgmt-resource and azure-mgmt-storage, plus
the Kudu zip deployment helpers.
"""

from function_deployer.providers.azure.provider import AzureProvider

__all__ = ["AzureProvider"]
