"""
Provisioning Workflow

Run the provisioning steps in order. Each step must succeed before the next
one starts; the first failure propagates to the caller and nothing already
created is rolled back.
"""

import logging
import time
from typing import Callable, Optional

import boto3

from ec2_bootstrap.bucket import create_bucket
from ec2_bootstrap.config import ProvisionConfig
from ec2_bootstrap.instance import ensure_instance
from ec2_bootstrap.keypair import ensure_key_pair
from ec2_bootstrap.preflight import AwsClients, create_session, run_preflight
from ec2_bootstrap.security_group import ensure_security_group
from ec2_bootstrap.summary import ProvisionSummary

logger = logging.getLogger(__name__)

def log_section(title: str) -> None:
    logger.info("")
    logger.info("=" * 80)
    logger.info(title)
    logger.info("=" * 80)

def provision(
    config: ProvisionConfig,
    session: Optional[boto3.Session] = None,
    clients: Optional[AwsClients] = None,
    clock: Callable[[], float] = time.time
) -> ProvisionSummary:
    """
    Provision the key pair, security group, bucket and instance.

    Args:
        config: Provisioning parameters
        session: Boto3 session; one bound to config.region is created if omitted
        clients: Pre-built clients; created from the session if omitted
        clock: Source of the current epoch time for the bucket name

    Returns:
        ProvisionSummary describing the provisioned resources

    Raises:
        ProvisionError: On the first step that fails
    """
    if session is None:
        session = create_session(config.region)

    log_section("Preflight Checks")
    clients, _ = run_preflight(session, clients)

    log_section("Key Pair")
    key_pair = ensure_key_pair(clients.ec2, config.key_pair_name, config.key_dir)

    log_section("Security Group")
    security_group = ensure_security_group(clients.ec2, config.security_group_name)

    log_section("S3 Bucket")
    bucket_name = create_bucket(clients.s3, config.bucket_prefix, config.region, clock=clock)

    log_section("EC2 Instance")
    instance = ensure_instance(
        clients.ec2,
        instance_name=config.instance_name,
        ami_id=config.ami_id,
        instance_type=config.instance_type,
        key_name=key_pair.key_name,
        security_group_id=security_group.group_id,
        timeout=config.wait_timeout,
    )

    return ProvisionSummary(
        instance_name=instance.instance_name,
        instance_id=instance.instance_id,
        public_ip=instance.public_ip,
        security_group_id=security_group.group_id,
        key_pair_name=key_pair.key_name,
        bucket_name=bucket_name,
        region=config.region,
    )
