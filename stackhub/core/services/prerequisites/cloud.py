"""
L3 Detection — Cloud CLI credentials.

Azure and GCP tools may be installed but not logged in. When the CLI
asks for an interactive login, fall back to service-principal / service
account credentials from the environment.
"""

from __future__ import annotations

import logging
import os

from stackhub.core.services.prerequisites.tool_version import run_bin

logger = logging.getLogger(__name__)

GCP_SERVICE_ACCOUNTS_HELP = "https://cloud.google.com/docs/authentication/getting-started"
AZURE_SDK_AUTH_HELP = "https://docs.microsoft.com/en-us/go/azure/azure-sdk-go-authorization"

_ARM_VARS = ("ARM_CLIENT_ID", "ARM_CLIENT_SECRET", "ARM_SUBSCRIPTION_ID", "ARM_TENANT_ID")
_STORAGE_KEY_VARS = ("AZURE_STORAGE_ACCESS_KEY", "AZURE_STORAGE_KEY")


def check_azure() -> str | None:
    """Verify ``az`` works, logging in with a service principal if asked."""
    output, error = run_bin("az", "storage", "account", "list", "-o", "table")
    if error is None:
        return None
    if "az login" not in output:
        return error

    tenant_id = os.environ.get("AZURE_TENANT_ID", "")
    if not tenant_id:
        return f"AZURE_TENANT_ID is not set, see {AZURE_SDK_AUTH_HELP}"
    client_id = os.environ.get("AZURE_CLIENT_ID", "")
    if not client_id:
        return f"AZURE_CLIENT_ID is not set, see {AZURE_SDK_AUTH_HELP}"
    secret = os.environ.get("AZURE_CLIENT_SECRET") or os.environ.get("AZURE_CERTIFICATE_PATH", "")
    if not secret:
        return f"No AZURE_CLIENT_SECRET, nor AZURE_CERTIFICATE_PATH is set, see {AZURE_SDK_AUTH_HELP}"

    _, error = run_bin(
        "az", "login", "--service-principal",
        "--tenant", tenant_id, "--username", client_id, "--password", secret,
    )
    return error


def setup_terraform_azure_env() -> None:
    """Export Terraform ``ARM_*`` variables from their ``AZURE_*`` twins."""
    if os.environ.get("ARM_CLIENT_ID"):
        return
    if not os.environ.get("ARM_ACCESS_KEY"):
        for var in _STORAGE_KEY_VARS:
            key = os.environ.get(var)
            if key:
                logger.debug("Setting ARM_ACCESS_KEY from %s", var)
                os.environ["ARM_ACCESS_KEY"] = key
                return

    for var in _ARM_VARS:
        source = "AZURE" + var[3:]
        value = os.environ.get(source)
        if value:
            logger.debug("Setting %s from %s", var, source)
            os.environ[var] = value
        else:
            logger.warning("Unable to set %s: no %s env var set", var, source)


def check_gcp() -> str | None:
    """Verify ``gcloud`` has an active account, activating one if needed."""
    output, error = run_bin("gcloud", "auth", "list")
    if error:
        return error
    if "gcloud auth login" not in output:
        return None

    credentials = os.environ.get("GOOGLE_APPLICATION_CREDENTIALS", "")
    if not credentials:
        return f"GOOGLE_APPLICATION_CREDENTIALS is not set, see {GCP_SERVICE_ACCOUNTS_HELP}"

    _, error = run_bin("gcloud", "auth", "activate-service-account", "--key-file", credentials)
    return error
