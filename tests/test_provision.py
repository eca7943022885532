"""End-to-end tests of the provisioning workflow against stubbed AWS clients."""

import os
from pathlib import Path
import stat

import pytest

from aws_stubs import (
    REGION,
    instance,
    stub_bucket_created,
    stub_describe_instance,
    stub_identity,
    stub_instance_launched,
    stub_instance_lookup,
    stub_key_pair_created,
    stub_key_pair_found,
    stub_security_group_created,
    stub_security_group_found,
)
from ec2_bootstrap.errors import ProviderCallError, ProvisioningClientError
from ec2_bootstrap.provision import provision


def _assert_drained(*stubs) -> None:
    for stub in stubs:
        stub.assert_no_pending_responses()


def test_fresh_account(config, session, clients, ec2_stub, s3_stub, sts_stub, tmp_path: Path) -> None:
    stub_identity(sts_stub)
    stub_key_pair_created(ec2_stub, 'demo-key')
    stub_security_group_created(ec2_stub, 'demo-sg', 'sg-0aaa')
    stub_bucket_created(s3_stub, 'demo-bkt-1700000000')
    stub_instance_lookup(ec2_stub, 'demo-vm')
    stub_instance_launched(ec2_stub, 'demo-vm', 'i-0new', config.ami_id, config.instance_type, 'demo-key', 'sg-0aaa')
    stub_describe_instance(ec2_stub, 'i-0new', state='running')
    stub_describe_instance(ec2_stub, 'i-0new', public_ip='198.51.100.20')

    summary = provision(config, session=session, clients=clients, clock=lambda: 1700000000.4)

    assert summary.instance_name == 'demo-vm'
    assert summary.instance_id == 'i-0new'
    assert summary.public_ip == '198.51.100.20'
    assert summary.security_group_id == 'sg-0aaa'
    assert summary.key_pair_name == 'demo-key'
    assert summary.bucket_name == 'demo-bkt-1700000000'
    assert summary.region == REGION

    key_file = tmp_path / 'demo-key.pem'
    assert stat.S_IMODE(os.stat(key_file).st_mode) == 0o400
    _assert_drained(ec2_stub, s3_stub, sts_stub)


def test_repeat_run_reuses_everything_but_the_bucket(config, session, clients, ec2_stub, s3_stub, sts_stub, tmp_path: Path) -> None:
    stub_identity(sts_stub)
    stub_key_pair_found(ec2_stub, 'demo-key')
    stub_security_group_found(ec2_stub, 'demo-sg', 'sg-0aaa')
    stub_bucket_created(s3_stub, 'demo-bkt-1700000042')
    stub_instance_lookup(ec2_stub, 'demo-vm', instance('i-0new', public_ip='198.51.100.20'))
    stub_describe_instance(ec2_stub, 'i-0new', public_ip='198.51.100.20')

    summary = provision(config, session=session, clients=clients, clock=lambda: 1700000042)

    assert summary.instance_id == 'i-0new'
    assert summary.security_group_id == 'sg-0aaa'
    assert summary.bucket_name == 'demo-bkt-1700000042'
    assert not (tmp_path / 'demo-key.pem').exists()
    _assert_drained(ec2_stub, s3_stub, sts_stub)


def test_missing_sdk_stops_before_any_call(config, session, clients, ec2_stub, s3_stub, sts_stub, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(session, 'get_available_services', lambda: [])

    with pytest.raises(ProvisioningClientError):
        provision(config, session=session, clients=clients)


def test_failure_stops_later_steps(config, session, clients, ec2_stub, s3_stub, sts_stub) -> None:
    stub_identity(sts_stub)
    stub_key_pair_found(ec2_stub, 'demo-key')
    stub_security_group_found(ec2_stub, 'demo-sg', 'sg-0aaa')
    s3_stub.add_client_error(
        'create_bucket',
        service_error_code='IllegalLocationConstraintException',
        http_status_code=400,
    )

    with pytest.raises(ProviderCallError, match='CreateBucket'):
        provision(config, session=session, clients=clients, clock=lambda: 1700000000)

    # No instance lookup was queued, so reaching that step would have raised a stub error
    _assert_drained(ec2_stub, s3_stub, sts_stub)
