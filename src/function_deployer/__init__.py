"""
Azure Function App deployment workflow.

Provisions a hosting plan and function apps through the Azure management
API, zip-deploys code, switches a runtime stack and deploys a container
image, one step at a time.
"""

__version__ = "0.1.0"
