"""
Security Group Provisioning

Ensure the named security group exists. Ingress rules are attached only when
the group is created; an existing group is used as-is.
"""

from dataclasses import dataclass
import logging
from typing import Any, Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from ec2_bootstrap.errors import ProviderCallError

logger = logging.getLogger(__name__)

SECURITY_GROUP_DESCRIPTION = 'Auto SG for EC2 creation script'
INGRESS_PORTS = (22, 80)
INGRESS_CIDR = '0.0.0.0/0'

@dataclass(frozen=True)
class SecurityGroupResult:
    """Outcome of the security group step"""
    group_name: str
    group_id: str
    created: bool

def find_security_group(ec2_client: Any, group_name: str) -> Optional[str]:
    """
    Look up a security group id by name.

    A failed query is treated the same as an empty one: the group is
    considered absent and will be created.

    Args:
        ec2_client: Boto3 EC2 client
        group_name: Security group name

    Returns:
        Group id, or None if no group was found
    """
    try:
        response = ec2_client.describe_security_groups(GroupNames=[group_name])
    except (ClientError, BotoCoreError) as e:
        logger.debug(f"Security group lookup failed: {e}")
        return None

    groups = response.get('SecurityGroups', [])
    if not groups:
        return None
    return groups[0].get('GroupId')

def ingress_permissions() -> List[Dict[str, Any]]:
    """TCP rules opened on a newly created group."""
    return [
        {
            'IpProtocol': 'tcp',
            'FromPort': port,
            'ToPort': port,
            'IpRanges': [{'CidrIp': INGRESS_CIDR}],
        }
        for port in INGRESS_PORTS
    ]

def create_security_group(ec2_client: Any, group_name: str) -> str:
    """
    Create the security group and open SSH and HTTP to all sources.

    Args:
        ec2_client: Boto3 EC2 client
        group_name: Security group name

    Returns:
        Id of the new group

    Raises:
        ProviderCallError: If creation or rule attachment fails
    """
    try:
        response = ec2_client.create_security_group(
            GroupName=group_name,
            Description=SECURITY_GROUP_DESCRIPTION,
        )
    except (ClientError, BotoCoreError) as e:
        raise ProviderCallError('CreateSecurityGroup', e)

    group_id = response['GroupId']

    try:
        ec2_client.authorize_security_group_ingress(
            GroupId=group_id,
            IpPermissions=ingress_permissions(),
        )
    except (ClientError, BotoCoreError) as e:
        raise ProviderCallError('AuthorizeSecurityGroupIngress', e)

    return group_id

def ensure_security_group(ec2_client: Any, group_name: str) -> SecurityGroupResult:
    """
    Ensure the security group exists.

    Args:
        ec2_client: Boto3 EC2 client
        group_name: Security group name

    Returns:
        SecurityGroupResult
    """
    group_id = find_security_group(ec2_client, group_name)
    if group_id:
        logger.info(f"Security Group already exists: {group_name} ({group_id})")
        return SecurityGroupResult(group_name=group_name, group_id=group_id, created=False)

    logger.info("Creating Security Group...")
    group_id = create_security_group(ec2_client, group_name)
    logger.info(f"✓ Security Group created: {group_id}")

    return SecurityGroupResult(group_name=group_name, group_id=group_id, created=True)
