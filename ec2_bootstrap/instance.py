"""
EC2 Instance Provisioning

Reuse the instance carrying the configured Name tag, or launch one and wait
until it is running.
"""

from dataclasses import dataclass
import logging
import math
from typing import Any, Optional

from botocore.exceptions import BotoCoreError, ClientError

from ec2_bootstrap.errors import ProviderCallError

logger = logging.getLogger(__name__)

WAITER_DELAY = 15

# Terminated and shutting-down instances are never reused
LIVE_INSTANCE_STATES = ['pending', 'running', 'stopping', 'stopped']

@dataclass(frozen=True)
class InstanceResult:
    """Outcome of the instance step"""
    instance_name: str
    instance_id: str
    public_ip: Optional[str]
    created: bool

def find_instance(ec2_client: Any, instance_name: str) -> Optional[str]:
    """
    Find a live instance tagged Name=<instance_name>.

    Args:
        ec2_client: Boto3 EC2 client
        instance_name: Value of the Name tag

    Returns:
        Instance id, or None if no live instance carries the tag
    """
    try:
        response = ec2_client.describe_instances(
            Filters=[
                {'Name': 'tag:Name', 'Values': [instance_name]},
                {'Name': 'instance-state-name', 'Values': LIVE_INSTANCE_STATES},
            ]
        )
    except (ClientError, BotoCoreError) as e:
        raise ProviderCallError('DescribeInstances', e)

    for reservation in response.get('Reservations', []):
        for instance in reservation.get('Instances', []):
            return instance['InstanceId']
    return None

def launch_instance(
    ec2_client: Any,
    instance_name: str,
    ami_id: str,
    instance_type: str,
    key_name: str,
    security_group_id: str
) -> str:
    """
    Launch exactly one instance tagged with the given name.

    Args:
        ec2_client: Boto3 EC2 client
        instance_name: Value of the Name tag
        ami_id: Machine image id
        instance_type: EC2 instance type
        key_name: Key pair name
        security_group_id: Security group id

    Returns:
        Id of the launched instance
    """
    logger.info("Launching new EC2 Instance...")
    logger.info(f"  AMI: {ami_id}")
    logger.info(f"  Instance Type: {instance_type}")

    try:
        response = ec2_client.run_instances(
            ImageId=ami_id,
            InstanceType=instance_type,
            MinCount=1,
            MaxCount=1,
            KeyName=key_name,
            SecurityGroupIds=[security_group_id],
            TagSpecifications=[
                {
                    'ResourceType': 'instance',
                    'Tags': [{'Key': 'Name', 'Value': instance_name}],
                }
            ],
        )
    except (ClientError, BotoCoreError) as e:
        raise ProviderCallError('RunInstances', e)

    instance_id = response['Instances'][0]['InstanceId']
    logger.info(f"Instance launched: {instance_id}")
    return instance_id

def wait_for_instance_running(ec2_client: Any, instance_id: str, timeout: int) -> None:
    """
    Block until the instance is running or the timeout runs out.

    Args:
        ec2_client: Boto3 EC2 client
        instance_id: Instance to wait for
        timeout: Maximum time to wait in seconds

    Raises:
        ProviderCallError: If the instance fails to reach running in time
    """
    logger.info(f"Waiting for instance {instance_id} to be running (timeout {timeout}s)...")

    try:
        waiter = ec2_client.get_waiter('instance_running')
        waiter.wait(
            InstanceIds=[instance_id],
            WaiterConfig={
                'Delay': WAITER_DELAY,
                'MaxAttempts': max(1, math.ceil(timeout / WAITER_DELAY)),
            }
        )
    except (ClientError, BotoCoreError) as e:
        raise ProviderCallError('Waiting for instance_running', e)

    logger.info("✓ Instance is running")

def get_public_ip(ec2_client: Any, instance_id: str) -> Optional[str]:
    """
    Return the public IPv4 address of an instance, or None if it has none.
    """
    try:
        response = ec2_client.describe_instances(InstanceIds=[instance_id])
    except (ClientError, BotoCoreError) as e:
        raise ProviderCallError('DescribeInstances', e)

    reservations = response.get('Reservations', [])
    if not reservations or not reservations[0].get('Instances'):
        raise ProviderCallError(f"DescribeInstances returned no instance for {instance_id}")

    return reservations[0]['Instances'][0].get('PublicIpAddress')

def ensure_instance(
    ec2_client: Any,
    instance_name: str,
    ami_id: str,
    instance_type: str,
    key_name: str,
    security_group_id: str,
    timeout: int
) -> InstanceResult:
    """
    Ensure an instance with the Name tag exists and look up its public address.

    Returns:
        InstanceResult
    """
    instance_id = find_instance(ec2_client, instance_name)
    created = instance_id is None

    if instance_id:
        logger.info(f"EC2 instance already exists: {instance_id}")
    else:
        instance_id = launch_instance(
            ec2_client,
            instance_name,
            ami_id,
            instance_type,
            key_name,
            security_group_id
        )
        wait_for_instance_running(ec2_client, instance_id, timeout)

    public_ip = get_public_ip(ec2_client, instance_id)
    logger.info(f"Public IP: {public_ip}")

    return InstanceResult(
        instance_name=instance_name,
        instance_id=instance_id,
        public_ip=public_ip,
        created=created,
    )
