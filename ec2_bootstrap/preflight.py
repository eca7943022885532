"""
Preflight Checks

Make sure the AWS SDK can serve the workflow and that the caller's
credentials are valid before anything is created.
"""

from dataclasses import dataclass
import logging
from typing import Any, Iterable, Optional, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ec2_bootstrap.errors import ConfigurationError, CredentialsError, ProvisioningClientError

logger = logging.getLogger(__name__)

REQUIRED_SERVICES = ('sts', 'ec2', 's3')

@dataclass(frozen=True)
class CallerIdentity:
    """Identity returned by STS for the active credentials"""
    account: str
    arn: str
    user_id: str

@dataclass
class AwsClients:
    """Region-bound clients used by the provisioning steps"""
    ec2: Any
    s3: Any
    sts: Any

def create_session(region: str) -> boto3.Session:
    """Create a boto3 session bound to the configured region."""
    return boto3.Session(region_name=region)

def create_clients(session: boto3.Session) -> AwsClients:
    """Create the EC2, S3 and STS clients from one session so every call shares a region."""
    try:
        return AwsClients(
            ec2=session.client('ec2'),
            s3=session.client('s3'),
            sts=session.client('sts'),
        )
    except BotoCoreError as e:
        raise ConfigurationError(f"Cannot create AWS clients for region {session.region_name!r}: {e}")

def check_provisioning_client(session: boto3.Session, services: Iterable[str] = REQUIRED_SERVICES) -> None:
    """
    Verify the AWS SDK has models for every service the workflow calls.

    This check is local and issues no API request.

    Args:
        session: Boto3 session
        services: Service names that must be available

    Raises:
        ProvisioningClientError: If a service model cannot be loaded
    """
    try:
        available = set(session.get_available_services())
    except BotoCoreError as e:
        raise ProvisioningClientError(f"AWS SDK is not usable: {e}")

    missing = [service for service in services if service not in available]
    if missing:
        raise ProvisioningClientError(f"AWS SDK is missing service models: {', '.join(missing)}")

    logger.info("✓ AWS SDK found")

def check_credentials(session: boto3.Session, sts_client: Any) -> CallerIdentity:
    """
    Verify credentials resolve and are accepted by STS.

    Args:
        session: Boto3 session used to resolve credentials
        sts_client: Boto3 STS client

    Returns:
        CallerIdentity of the active credentials

    Raises:
        CredentialsError: If no credentials resolve or STS rejects them
    """
    if session.get_credentials() is None:
        raise CredentialsError("Invalid AWS credentials! No credentials could be resolved")

    try:
        response = sts_client.get_caller_identity()
    except (ClientError, BotoCoreError) as e:
        raise CredentialsError(f"Invalid AWS credentials! {e}")

    identity = CallerIdentity(
        account=response['Account'],
        arn=response['Arn'],
        user_id=response['UserId'],
    )
    logger.info(f"✓ AWS Credentials valid ({identity.arn})")
    return identity

def run_preflight(
    session: boto3.Session,
    clients: Optional[AwsClients] = None
) -> Tuple[AwsClients, CallerIdentity]:
    """
    Run both preflight checks.

    The SDK check makes no API call, so a broken SDK aborts the run before
    AWS is contacted. Clients are created only once the SDK check passes.

    Args:
        session: Boto3 session bound to the target region
        clients: Pre-built clients; created from the session if omitted

    Returns:
        Tuple of (clients, caller_identity)
    """
    check_provisioning_client(session)
    if clients is None:
        clients = create_clients(session)
    identity = check_credentials(session, clients.sts)
    return clients, identity
