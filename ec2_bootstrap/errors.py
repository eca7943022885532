"""Exceptions raised by the provisioning workflow."""

from typing import Optional

class ProvisionError(Exception):
    """Base class for every error that aborts a provisioning run."""

class ConfigurationError(ProvisionError):
    """The configuration file is missing or lacks a required key."""

class ProvisioningClientError(ProvisionError):
    """The AWS SDK cannot load the service models the workflow needs."""

class CredentialsError(ProvisionError):
    """AWS credentials are absent, expired or rejected."""

class ProviderCallError(ProvisionError):
    """An AWS API call or waiter did not succeed."""

    def __init__(self, operation: str, cause: Optional[Exception] = None):
        self.operation = operation
        self.cause = cause
        message = f"{operation} failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
