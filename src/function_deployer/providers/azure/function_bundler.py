"""
Azure Function Bundler - ZIP packaging for zip deploy.

Zip deploy accepts a single archive. An archive source can be either a
prebuilt .zip file, which is sent as-is, or a Function App directory
(Python v2 programming model), which is zipped in memory.

Directory bundles always contain:
    - function_app.py and any other files in the directory
    - requirements.txt (default: azure-functions)
    - host.json (default: Functions v2 host with extension bundle 4.x)

Usage:
    from function_deployer.providers.azure.function_bundler import load_archive

    zip_bytes = load_archive(Path("function_apps/python_square"))
"""

import io
import json
import os
import zipfile
import logging
from pathlib import Path

from function_deployer.core.exceptions import DeploymentFailure

logger = logging.getLogger("function_deployer")

DEFAULT_REQUIREMENTS = "azure-functions\n"

DEFAULT_HOST_JSON = {
    "version": "2.0",
    "logging": {
        "applicationInsights": {
            "samplingSettings": {
                "isEnabled": True
            }
        }
    },
    "extensionBundle": {
        "id": "Microsoft.Azure.Functions.ExtensionBundle",
        "version": "[4.*, 5.0.0)"
    }
}

# Build and packaging files that never belong in the deployed app
_EXCLUDED_FILES = {"Dockerfile", ".dockerignore", "local.settings.json"}
_EXCLUDED_DIRS = {"__pycache__", ".venv", ".git", ".python_packages"}


class BundleError(DeploymentFailure):
    """Raised when an archive source cannot be packaged."""


def _add_default_files(zf: zipfile.ZipFile, app_dir: Path) -> None:
    """Add requirements.txt and host.json defaults when the app has none."""
    if not (app_dir / "requirements.txt").exists():
        zf.writestr("requirements.txt", DEFAULT_REQUIREMENTS)
    if not (app_dir / "host.json").exists():
        zf.writestr("host.json", json.dumps(DEFAULT_HOST_JSON, indent=2))


def bundle_function_app(app_dir: Path) -> bytes:
    """
    Zip a Function App directory in memory.

    Args:
        app_dir: Directory containing function_app.py

    Returns:
        ZIP bytes with the app files at the archive root

    Raises:
        BundleError: If the directory has no function_app.py
    """
    if not (app_dir / "function_app.py").exists():
        raise BundleError(f"No function_app.py found in {app_dir}")

    logger.info(f"  Bundling function app from {app_dir.name}...")

    zip_buffer = io.BytesIO()
    with zipfile.ZipFile(zip_buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        for root, dirs, files in os.walk(app_dir):
            dirs[:] = sorted(d for d in dirs if d not in _EXCLUDED_DIRS)
            for file in sorted(files):
                if file in _EXCLUDED_FILES or file.endswith(".pyc"):
                    continue
                file_path = Path(root) / file
                zf.write(file_path, str(file_path.relative_to(app_dir)))
        _add_default_files(zf, app_dir)

    return zip_buffer.getvalue()


def load_archive(source: Path) -> bytes:
    """
    Return deployable ZIP bytes for an archive source.

    Args:
        source: A .zip file or a Function App directory

    Returns:
        ZIP bytes

    Raises:
        BundleError: If the source is missing or not a valid archive
    """
    if source.is_dir():
        return bundle_function_app(source)

    if not source.exists():
        raise BundleError(f"Archive not found: {source}")

    if not zipfile.is_zipfile(source):
        raise BundleError(f"Not a ZIP archive: {source}")

    return source.read_bytes()
