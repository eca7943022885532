#!/usr/bin/env python3
"""
Provisioning Script

Provision a key pair, security group, S3 bucket and EC2 instance from a
config.env file and write a summary of the result.
"""

import argparse
from dataclasses import replace
import logging
import sys
from typing import List, Optional

from ec2_bootstrap.config import DEFAULT_CONFIG_FILE, load_config
from ec2_bootstrap.errors import ProvisionError
from ec2_bootstrap.provision import log_section, provision
from ec2_bootstrap.ssh import verify_ssh_connectivity
from ec2_bootstrap.summary import (
    DEFAULT_SUMMARY_FILE,
    display_summary,
    write_state_file,
    write_summary,
)

logger = logging.getLogger(__name__)

DEFAULT_LOG_FILE = 'provision.log'

def configure_logging(log_file: str = DEFAULT_LOG_FILE, verbose: bool = False) -> None:
    """Log to stdout and to a file."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file)
        ],
        force=True
    )
    # botocore is very chatty at DEBUG
    logging.getLogger('botocore').setLevel(logging.INFO)

def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description='Provision a key pair, security group, S3 bucket and EC2 instance'
    )

    parser.add_argument(
        '--config',
        type=str,
        default=DEFAULT_CONFIG_FILE,
        help=f'Path to KEY=VALUE configuration file (default: {DEFAULT_CONFIG_FILE})'
    )

    parser.add_argument(
        '--summary-file',
        type=str,
        default=DEFAULT_SUMMARY_FILE,
        help=f'Output file for the summary record (default: {DEFAULT_SUMMARY_FILE})'
    )

    parser.add_argument(
        '--state-file',
        type=str,
        default=None,
        help='Optional JSON file receiving the same values as the summary'
    )

    parser.add_argument(
        '--wait-timeout',
        type=int,
        default=None,
        help='Seconds to wait for a new instance to reach running (overrides WAIT_TIMEOUT)'
    )

    parser.add_argument(
        '--verify-ssh',
        action='store_true',
        help='After provisioning, check the instance accepts SSH with the saved key'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        default=DEFAULT_LOG_FILE,
        help=f'Log file (default: {DEFAULT_LOG_FILE})'
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable debug logging'
    )

    args = parser.parse_args(argv)
    if args.wait_timeout is not None and args.wait_timeout <= 0:
        parser.error('--wait-timeout must be positive')
    return args

def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)
    configure_logging(args.log_file, args.verbose)

    logger.info("=" * 80)
    logger.info("Starting Provisioning")
    logger.info("=" * 80)
    logger.info(f"Config File: {args.config}")
    logger.info(f"Summary File: {args.summary_file}")

    try:
        log_section("Loading Configuration")
        config = load_config(args.config)
        if args.wait_timeout is not None:
            config = replace(config, wait_timeout=args.wait_timeout)

        summary = provision(config)

        log_section("Saving Summary")
        text = write_summary(summary, args.summary_file)
        if args.state_file:
            write_state_file(summary, args.state_file)

        if args.verify_ssh:
            log_section("Verifying SSH")
            if not summary.public_ip:
                logger.warning("Instance has no public IP - skipping SSH check")
            elif not config.key_file.exists():
                logger.warning(f"Private key {config.key_file} not found locally - skipping SSH check")
            else:
                verify_ssh_connectivity(summary.public_ip, config.ssh_user, config.key_file)

        display_summary(text)
        return 0

    except ProvisionError as e:
        logger.error("")
        logger.error("=" * 80)
        logger.error(f"PROVISIONING FAILED ({type(e).__name__})")
        logger.error("=" * 80)
        logger.error(f"Error: {e}")
        logger.error("=" * 80)
        logger.error("Resources created before the failure were not removed")
        return 1

    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1

if __name__ == '__main__':
    sys.exit(main())
