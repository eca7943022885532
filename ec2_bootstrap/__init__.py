"""
EC2 Bootstrap

Idempotently provision a key pair, security group, S3 bucket and EC2 instance
in a single AWS region, then write a summary of what was provisioned.
"""

__version__ = "0.1.0"
