"""
S3 Bucket Provisioning

A new bucket is created on every run. The name carries the creation time in
epoch seconds, so runs never reuse a bucket.
"""

import logging
import time
from typing import Any, Callable, Dict

from botocore.exceptions import BotoCoreError, ClientError

from ec2_bootstrap.errors import ProviderCallError

logger = logging.getLogger(__name__)

# S3 rejects an explicit LocationConstraint for this region
DEFAULT_S3_REGION = 'us-east-1'

def bucket_name_for(prefix: str, now: float) -> str:
    """Return <prefix>-<epoch seconds>."""
    return f"{prefix}-{int(now)}"

def create_bucket_params(bucket_name: str, region: str) -> Dict[str, Any]:
    params: Dict[str, Any] = {'Bucket': bucket_name}
    if region != DEFAULT_S3_REGION:
        params['CreateBucketConfiguration'] = {'LocationConstraint': region}
    return params

def create_bucket(
    s3_client: Any,
    prefix: str,
    region: str,
    clock: Callable[[], float] = time.time
) -> str:
    """
    Create a uniquely named bucket.

    Args:
        s3_client: Boto3 S3 client
        prefix: Bucket name prefix
        region: Region the bucket is created in
        clock: Source of the current epoch time

    Returns:
        Name of the created bucket

    Raises:
        ProviderCallError: If S3 rejects the request
    """
    bucket_name = bucket_name_for(prefix, clock())
    logger.info(f"Creating S3 bucket: {bucket_name}")

    try:
        s3_client.create_bucket(**create_bucket_params(bucket_name, region))
    except (ClientError, BotoCoreError) as e:
        raise ProviderCallError('CreateBucket', e)

    logger.info("✓ S3 bucket created")
    return bucket_name
