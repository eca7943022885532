from pathlib import Path

import boto3
from botocore.stub import Stubber
import pytest

from aws_stubs import REGION
from ec2_bootstrap.config import ProvisionConfig
from ec2_bootstrap.preflight import AwsClients


@pytest.fixture(autouse=True)
def no_ambient_aws(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ('AWS_PROFILE', 'AWS_DEFAULT_PROFILE', 'AWS_ACCESS_KEY_ID', 'AWS_SECRET_ACCESS_KEY', 'AWS_SESSION_TOKEN'):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def session() -> boto3.Session:
    return boto3.Session(
        aws_access_key_id='testing',
        aws_secret_access_key='testing',
        region_name=REGION,
    )


@pytest.fixture
def clients(session: boto3.Session) -> AwsClients:
    return AwsClients(
        ec2=session.client('ec2'),
        s3=session.client('s3'),
        sts=session.client('sts'),
    )


@pytest.fixture
def ec2_stub(clients: AwsClients):
    with Stubber(clients.ec2) as stubber:
        yield stubber


@pytest.fixture
def s3_stub(clients: AwsClients):
    with Stubber(clients.s3) as stubber:
        yield stubber


@pytest.fixture
def sts_stub(clients: AwsClients):
    with Stubber(clients.sts) as stubber:
        yield stubber


@pytest.fixture
def config(tmp_path: Path) -> ProvisionConfig:
    return ProvisionConfig(
        region=REGION,
        key_pair_name='demo-key',
        security_group_name='demo-sg',
        bucket_prefix='demo-bkt',
        instance_name='demo-vm',
        ami_id='ami-0123456789abcdef0',
        instance_type='t3.micro',
        wait_timeout=60,
        key_dir=tmp_path,
    )
