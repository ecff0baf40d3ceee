"""Tests for the Glacier backend."""
import io

import pytest

from vaultbridge.core.hashing import compute_checksum
from vaultbridge.errors import IntegrityFailureError, InvalidArgumentError, ObjectNotFoundError, TransportError
from vaultbridge.models import JobStatus
from vaultbridge.storage import GlacierStorage
from conftest import client_error


def test_upload_archive(glacier_storage, glacier_client):
    stream = io.BytesIO(b"archive")
    checksum = compute_checksum(stream)

    result = glacier_storage.upload_archive("desc", stream, checksum)

    assert result['archive_id'] in glacier_client.archives
    assert result['checksum'] == checksum
    assert result['location'].startswith('/-/vaults/test-vault/')


def test_upload_archive_checksum_rejected(glacier_storage):
    with pytest.raises(IntegrityFailureError):
        glacier_storage.upload_archive("desc", io.BytesIO(b"archive"), "f" * 64)


def test_other_invalid_parameter_is_transport_error(glacier_client):
    """Only checksum complaints count as integrity failures"""
    def upload_archive(**kwargs):
        raise client_error('InvalidParameterValueException', 'Invalid vault name', 'UploadArchive')

    glacier_client.upload_archive = upload_archive
    storage = GlacierStorage(vault='v', client=glacier_client)

    with pytest.raises(TransportError) as exc_info:
        storage.upload_archive("desc", io.BytesIO(b"x"), "0" * 64)
    assert not isinstance(exc_info.value, IntegrityFailureError)
    assert exc_info.value.code == 'InvalidParameterValueException'


def test_initiate_job_parameters(glacier_client):
    storage = GlacierStorage(vault='test-vault', client=glacier_client, tier='Bulk')
    archive_id = storage.upload_archive("d", io.BytesIO(b"x"), compute_checksum(io.BytesIO(b"x")))['archive_id']

    storage.initiate_retrieval_job(archive_id)

    params = glacier_client.calls[-1][1]
    assert params == {
        'vaultName': 'test-vault',
        'jobParameters': {'Type': 'archive-retrieval', 'ArchiveId': archive_id, 'Tier': 'Bulk'},
    }


def test_describe_job_maps_status(glacier_storage, glacier_client):
    archive_id = glacier_storage.upload_archive(
        "d", io.BytesIO(b"x"), compute_checksum(io.BytesIO(b"x")))['archive_id']
    job_id = glacier_storage.initiate_retrieval_job(archive_id)

    pending = glacier_storage.describe_job(job_id)
    assert pending.status is JobStatus.IN_PROGRESS
    assert pending.archive_id == archive_id

    glacier_client.finish_job(job_id)
    done = glacier_storage.describe_job(job_id)
    assert done.status is JobStatus.SUCCEEDED


def test_describe_unknown_job(glacier_storage):
    with pytest.raises(ObjectNotFoundError):
        glacier_storage.describe_job("missing")


def test_delete_archive_returns_http_status(glacier_storage):
    archive_id = glacier_storage.upload_archive(
        "d", io.BytesIO(b"x"), compute_checksum(io.BytesIO(b"x")))['archive_id']
    assert glacier_storage.delete_archive(archive_id) == 204


def test_invalid_tier_rejected(glacier_client):
    with pytest.raises(InvalidArgumentError):
        GlacierStorage(vault='v', client=glacier_client, tier='Instant')


def test_requires_vault(glacier_client, monkeypatch):
    monkeypatch.setattr('vaultbridge.config.Config.GLACIER_VAULT', None)
    with pytest.raises(InvalidArgumentError):
        GlacierStorage(client=glacier_client)
