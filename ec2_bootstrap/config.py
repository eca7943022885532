"""
Configuration Loading

Read the provisioning parameters from a KEY=VALUE env file.
"""

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Dict, Optional, Union

from dotenv import dotenv_values

from ec2_bootstrap.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = 'config.env'
DEFAULT_WAIT_TIMEOUT = 600
DEFAULT_SSH_USER = 'ec2-user'

# Env file key -> ProvisionConfig field
REQUIRED_KEYS = {
    'AWS_REGION': 'region',
    'KEY_PAIR_NAME': 'key_pair_name',
    'SECURITY_GROUP_NAME': 'security_group_name',
    'S3_BUCKET_PREFIX': 'bucket_prefix',
    'INSTANCE_NAME': 'instance_name',
    'AMI_ID': 'ami_id',
    'INSTANCE_TYPE': 'instance_type',
}

@dataclass(frozen=True)
class ProvisionConfig:
    """Parameters for a single provisioning run"""
    region: str
    key_pair_name: str
    security_group_name: str
    bucket_prefix: str
    instance_name: str
    ami_id: str
    instance_type: str
    wait_timeout: int = DEFAULT_WAIT_TIMEOUT
    key_dir: Path = Path('.')
    ssh_user: str = DEFAULT_SSH_USER

    @property
    def key_file(self) -> Path:
        """Local path of the private key written when the key pair is created."""
        return self.key_dir / f"{self.key_pair_name}.pem"

def _parse_timeout(raw: Optional[str]) -> int:
    if not raw:
        return DEFAULT_WAIT_TIMEOUT
    try:
        timeout = int(raw)
    except ValueError:
        raise ConfigurationError(f"WAIT_TIMEOUT must be an integer number of seconds, got {raw!r}")
    if timeout <= 0:
        raise ConfigurationError(f"WAIT_TIMEOUT must be positive, got {timeout}")
    return timeout

def config_from_mapping(values: Dict[str, Optional[str]]) -> ProvisionConfig:
    """
    Build a ProvisionConfig from raw env file values.

    Only presence is checked. Values are passed through untouched and any
    invalid one surfaces later as a failed AWS call.

    Args:
        values: Mapping of env file keys to values

    Returns:
        ProvisionConfig

    Raises:
        ConfigurationError: If any required key is absent or empty
    """
    missing = [key for key in REQUIRED_KEYS if not values.get(key)]
    if missing:
        raise ConfigurationError(f"Missing required configuration keys: {', '.join(missing)}")

    fields = {field: values[key].strip() for key, field in REQUIRED_KEYS.items()}

    return ProvisionConfig(
        **fields,
        wait_timeout=_parse_timeout(values.get('WAIT_TIMEOUT')),
        key_dir=Path(values.get('KEY_DIR') or '.'),
        ssh_user=values.get('SSH_USER') or DEFAULT_SSH_USER,
    )

def load_config(path: Union[str, Path] = DEFAULT_CONFIG_FILE) -> ProvisionConfig:
    """
    Load the provisioning configuration from an env file.

    Args:
        path: Path to the KEY=VALUE configuration file

    Returns:
        ProvisionConfig

    Raises:
        ConfigurationError: If the file does not exist or a required key is missing
    """
    config_path = Path(path)
    if not config_path.is_file():
        raise ConfigurationError(f"{config_path} not found!")

    logger.info(f"Loading configuration from {config_path}")
    config = config_from_mapping(dotenv_values(config_path))

    logger.info(f"  Region: {config.region}")
    logger.info(f"  Key Pair: {config.key_pair_name}")
    logger.info(f"  Security Group: {config.security_group_name}")
    logger.info(f"  Bucket Prefix: {config.bucket_prefix}")
    logger.info(f"  Instance Name: {config.instance_name}")
    logger.info(f"  AMI ID: {config.ami_id}")
    logger.info(f"  Instance Type: {config.instance_type}")

    return config
