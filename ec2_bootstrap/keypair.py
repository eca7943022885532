"""
Key Pair Provisioning

Ensure the named EC2 key pair exists. The private key is only available at
creation time, so it is written to disk exactly once.
"""

from dataclasses import dataclass
import logging
import os
from pathlib import Path
from typing import Any, Optional

from botocore.exceptions import BotoCoreError, ClientError

from ec2_bootstrap.errors import ProviderCallError, ProvisionError

logger = logging.getLogger(__name__)

# Owner read-only
KEY_FILE_MODE = 0o400

@dataclass(frozen=True)
class KeyPairResult:
    """Outcome of the key pair step"""
    key_name: str
    created: bool
    key_file: Optional[Path] = None

def key_pair_exists(ec2_client: Any, key_name: str) -> bool:
    """
    Check whether a key pair with the given name exists in the region.

    Args:
        ec2_client: Boto3 EC2 client
        key_name: Key pair name

    Returns:
        True if the key pair exists

    Raises:
        ProviderCallError: If the lookup fails for any reason other than not found
    """
    try:
        response = ec2_client.describe_key_pairs(KeyNames=[key_name])
    except ClientError as e:
        if e.response['Error']['Code'] == 'InvalidKeyPair.NotFound':
            return False
        raise ProviderCallError('DescribeKeyPairs', e)
    except BotoCoreError as e:
        raise ProviderCallError('DescribeKeyPairs', e)

    return bool(response.get('KeyPairs'))

def check_key_file_writable(key_file: Path) -> None:
    """
    Make sure the private key can be saved before the key pair is created,
    since AWS returns the key material only once.

    Raises:
        ProvisionError: If the key directory cannot be created or the file cannot be written
    """
    try:
        key_file.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ProvisionError(f"Cannot create key directory {key_file.parent}: {e}")

    if key_file.exists():
        if not os.access(key_file, os.W_OK):
            raise ProvisionError(f"Private key file {key_file} already exists and is not writable")
    elif not os.access(key_file.parent, os.W_OK):
        raise ProvisionError(f"Key directory {key_file.parent} is not writable")

def save_private_key(key_material: str, key_file: Path) -> Path:
    """
    Write private key material and restrict it to owner read-only.

    Args:
        key_material: Private key in PEM format
        key_file: Destination path

    Returns:
        Path to the written key file

    Raises:
        ProvisionError: If the file cannot be written or its mode cannot be set
    """
    try:
        key_file.parent.mkdir(parents=True, exist_ok=True)
        with open(key_file, 'w') as f:
            f.write(key_material)
        os.chmod(key_file, KEY_FILE_MODE)
    except OSError as e:
        raise ProvisionError(f"Failed to save private key to {key_file}: {e}")

    logger.info(f"Private key saved to: {key_file}")
    return key_file

def ensure_key_pair(ec2_client: Any, key_name: str, key_dir: Path = Path('.')) -> KeyPairResult:
    """
    Ensure the key pair exists, creating it and saving its private key if absent.

    Args:
        ec2_client: Boto3 EC2 client
        key_name: Key pair name
        key_dir: Directory for the <key_name>.pem file

    Returns:
        KeyPairResult
    """
    if key_pair_exists(ec2_client, key_name):
        logger.info(f"Key Pair already exists: {key_name}")
        return KeyPairResult(key_name=key_name, created=False)

    key_file = Path(key_dir) / f"{key_name}.pem"
    check_key_file_writable(key_file)

    logger.info("Creating Key Pair...")
    try:
        response = ec2_client.create_key_pair(KeyName=key_name)
    except (ClientError, BotoCoreError) as e:
        raise ProviderCallError('CreateKeyPair', e)

    key_file = save_private_key(response['KeyMaterial'], key_file)
    logger.info(f"✓ Key Pair created: {key_file}")

    return KeyPairResult(key_name=key_name, created=True, key_file=key_file)
