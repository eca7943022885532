"""Tests for the key pair step."""

import os
from pathlib import Path
import stat

from botocore.config import Config
import pytest

from aws_stubs import KEY_MATERIAL, stub_key_pair_created, stub_key_pair_found
from ec2_bootstrap import keypair
from ec2_bootstrap.errors import ProviderCallError, ProvisionError
from ec2_bootstrap.keypair import ensure_key_pair


def test_existing_key_pair_writes_nothing(clients, ec2_stub, tmp_path: Path) -> None:
    stub_key_pair_found(ec2_stub, 'demo-key')

    result = ensure_key_pair(clients.ec2, 'demo-key', tmp_path)

    assert not result.created
    assert result.key_file is None
    assert list(tmp_path.iterdir()) == []
    ec2_stub.assert_no_pending_responses()


def test_new_key_pair_is_saved_owner_read_only(clients, ec2_stub, tmp_path: Path) -> None:
    stub_key_pair_created(ec2_stub, 'demo-key')

    result = ensure_key_pair(clients.ec2, 'demo-key', tmp_path)

    assert result.created
    assert result.key_file == tmp_path / 'demo-key.pem'
    assert result.key_file.read_text() == KEY_MATERIAL
    assert stat.S_IMODE(os.stat(result.key_file).st_mode) == 0o400
    ec2_stub.assert_no_pending_responses()


def test_unwritable_key_location_fails_before_create(clients, ec2_stub, tmp_path: Path) -> None:
    not_a_dir = tmp_path / 'keys'
    not_a_dir.write_text('')
    ec2_stub.add_client_error('describe_key_pairs', service_error_code='InvalidKeyPair.NotFound', http_status_code=400)

    with pytest.raises(ProvisionError, match='Cannot create key directory'):
        ensure_key_pair(clients.ec2, 'demo-key', not_a_dir)

    # No CreateKeyPair response was queued, so a create call would have raised a stub error
    ec2_stub.assert_no_pending_responses()


def test_stale_read_only_key_file_fails_before_create(clients, ec2_stub, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    stale = tmp_path / 'demo-key.pem'
    stale.write_text('old key')
    stale.chmod(0o400)
    # Root can write regardless of mode
    monkeypatch.setattr(keypair.os, 'access', lambda path, mode: False)
    ec2_stub.add_client_error('describe_key_pairs', service_error_code='InvalidKeyPair.NotFound', http_status_code=400)

    with pytest.raises(ProvisionError, match='already exists and is not writable'):
        ensure_key_pair(clients.ec2, 'demo-key', tmp_path)

    ec2_stub.assert_no_pending_responses()
    assert stale.read_text() == 'old key'


def test_describe_failure_other_than_not_found(clients, ec2_stub, tmp_path: Path) -> None:
    ec2_stub.add_client_error('describe_key_pairs', service_error_code='UnauthorizedOperation', http_status_code=403)

    with pytest.raises(ProviderCallError, match='DescribeKeyPairs'):
        ensure_key_pair(clients.ec2, 'demo-key', tmp_path)


def test_unreachable_endpoint_is_a_provider_error(session, tmp_path: Path) -> None:
    ec2_client = session.client(
        'ec2',
        endpoint_url='http://127.0.0.1:9',
        config=Config(retries={'total_max_attempts': 1}, connect_timeout=1),
    )

    with pytest.raises(ProviderCallError, match='DescribeKeyPairs'):
        ensure_key_pair(ec2_client, 'demo-key', tmp_path)
