"""
SSH Reachability

Optional post-provisioning check that the instance accepts SSH logins with the
key pair written on creation.
"""

import logging
import time
from pathlib import Path
from typing import Union

import paramiko

from ec2_bootstrap.errors import ProvisionError

logger = logging.getLogger(__name__)

def verify_ssh_connectivity(
    host: str,
    username: str,
    key_filename: Union[str, Path],
    max_attempts: int = 10,
    delay: int = 30
) -> None:
    """
    Verify SSH connectivity to the instance.

    Args:
        host: Instance public IP address
        username: SSH username (ec2-user for Amazon Linux)
        key_filename: Path to SSH private key file
        max_attempts: Maximum number of connection attempts
        delay: Delay between attempts in seconds

    Raises:
        ProvisionError: If no attempt succeeds
    """
    logger.info(f"Verifying SSH connectivity to {host}...")

    ssh_client = paramiko.SSHClient()
    ssh_client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

    try:
        for attempt in range(1, max_attempts + 1):
            try:
                logger.info(f"SSH connection attempt {attempt}/{max_attempts}")
                ssh_client.connect(
                    hostname=host,
                    username=username,
                    key_filename=str(key_filename),
                    timeout=10,
                    banner_timeout=10
                )
                logger.info("✓ SSH connection established successfully")
                return
            except (paramiko.SSHException, OSError) as e:
                if attempt < max_attempts:
                    logger.warning(f"SSH connection failed: {e}. Retrying in {delay}s...")
                    time.sleep(delay)
                else:
                    logger.error(f"Failed to establish SSH connection after {max_attempts} attempts")
                    raise ProvisionError(f"SSH connection to {host} failed: {e}")
    finally:
        ssh_client.close()
