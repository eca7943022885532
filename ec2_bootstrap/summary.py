"""
Summary Report

Render the identifiers produced by a run and persist them.
"""

from dataclasses import asdict, dataclass
import json
import logging
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_SUMMARY_FILE = 'summary.txt'

@dataclass(frozen=True)
class ProvisionSummary:
    """Resources provisioned or reused by a run"""
    instance_name: str
    instance_id: str
    public_ip: Optional[str]
    security_group_id: str
    key_pair_name: str
    bucket_name: str
    region: str

def render_summary(summary: ProvisionSummary) -> str:
    """Render the summary record in its fixed field order."""
    lines = [
        f"EC2 Instance Name: {summary.instance_name}",
        f"EC2 Instance ID: {summary.instance_id}",
        f"Public IP: {summary.public_ip}",
        f"Security Group ID: {summary.security_group_id}",
        f"Key Pair: {summary.key_pair_name}",
        f"S3 Bucket: {summary.bucket_name}",
        f"AWS Region: {summary.region}",
    ]
    return '\n'.join(lines) + '\n'

def write_summary(summary: ProvisionSummary, path: Union[str, Path] = DEFAULT_SUMMARY_FILE) -> str:
    """
    Write the summary record, replacing any previous one.

    Args:
        summary: Summary to write
        path: Destination file

    Returns:
        The rendered text
    """
    text = render_summary(summary)
    with open(path, 'w') as f:
        f.write(text)
    logger.info(f"Summary saved to: {path}")
    return text

def write_state_file(summary: ProvisionSummary, path: Union[str, Path]) -> None:
    """Write the summary values as JSON."""
    with open(path, 'w') as f:
        json.dump(asdict(summary), f, indent=2)
    logger.info(f"State saved to: {path}")

def display_summary(text: str) -> None:
    """Echo the summary record to the console."""
    print("-" * 33)
    print("           SUMMARY")
    print("-" * 33)
    print(text, end='')
