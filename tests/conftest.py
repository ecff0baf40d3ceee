"""
Pytest configuration and shared fixtures.
"""

import hashlib
import io
import tempfile
import shutil
import uuid
import pytest

from botocore.exceptions import ClientError

from vaultbridge.core import ColdStore, HotStore, TickClock
from vaultbridge.storage import FilesystemStorage, FilesystemVault, GlacierStorage, S3Storage


CONTENT_TYPES = {
    '.png': 'image/png',
    '.pdf': 'application/pdf',
    '.txt': 'text/plain',
    '.json': 'application/json',
}


def client_error(code: str, message: str, operation: str) -> ClientError:
    return ClientError({'Error': {'Code': code, 'Message': message}}, operation)


class FakeClock(TickClock):
    """Tick clock driven by a counter instead of the wall clock"""

    def __init__(self, start: int = 1000):
        self.current = start - 1
        super().__init__(time_ns=self._next_ns)

    def _next_ns(self) -> int:
        self.current += 1
        return self.current * 100


class FakePaginator:
    def __init__(self, client, page_size):
        self.client = client
        self.page_size = page_size

    def paginate(self, Bucket, Prefix=''):
        self.client.calls.append(('list_objects_v2', {'Bucket': Bucket, 'Prefix': Prefix}))
        keys = sorted(k for k in self.client.objects if k.startswith(Prefix))
        if not keys:
            yield {'KeyCount': 0}
            return
        for i in range(0, len(keys), self.page_size):
            yield {
                'Contents': [
                    {'Key': k, 'ETag': self.client.objects[k]['ETag']}
                    for k in keys[i:i + self.page_size]
                ]
            }


class FakeS3Client:
    """
    In-memory stand-in for a boto3 S3 client.
    Records every call in self.calls as (operation, params).
    """

    def __init__(self, page_size: int = 2):
        self.objects = {}
        self.calls = []
        self.page_size = page_size

    def put_object(self, Bucket, Key, Body, **kwargs):
        self.calls.append(('put_object', {'Bucket': Bucket, 'Key': Key, **kwargs}))
        self.objects[Key] = {
            'Body': bytes(Body),
            'ETag': f'"{hashlib.md5(Body).hexdigest()}"',
            **kwargs,
        }
        return {'ETag': self.objects[Key]['ETag']}

    def _lookup(self, key, operation):
        if key not in self.objects:
            raise client_error('NoSuchKey', 'The specified key does not exist.', operation)
        return self.objects[key]

    def get_object(self, Bucket, Key):
        self.calls.append(('get_object', {'Bucket': Bucket, 'Key': Key}))
        obj = self._lookup(Key, 'GetObject')
        return {'Body': io.BytesIO(obj['Body']), 'ContentType': obj.get('ContentType')}

    def download_file(self, Bucket, Key, Filename):
        self.calls.append(('download_file', {'Bucket': Bucket, 'Key': Key, 'Filename': Filename}))
        if Key not in self.objects:
            raise client_error('404', 'Not Found', 'HeadObject')
        with open(Filename, 'wb') as f:
            f.write(self.objects[Key]['Body'])

    def delete_object(self, Bucket, Key):
        self.calls.append(('delete_object', {'Bucket': Bucket, 'Key': Key}))
        self.objects.pop(Key, None)
        return {}

    def copy_object(self, Bucket, Key, CopySource):
        self.calls.append(('copy_object', {'Bucket': Bucket, 'Key': Key, 'CopySource': CopySource}))
        source = self._lookup(CopySource['Key'], 'CopyObject')
        self.objects[Key] = dict(source)
        return {}

    def get_paginator(self, operation):
        assert operation == 'list_objects_v2'
        return FakePaginator(self, self.page_size)


class FakeGlacierClient:
    """
    In-memory stand-in for a boto3 Glacier client.

    Verifies upload checksums (plain SHA-256) like the real vault does for
    single-MiB archives. Jobs stay InProgress until finish_job() is called.
    """

    def __init__(self):
        self.archives = {}
        self.jobs = {}
        self.calls = []
        self.outputs = []

    def upload_archive(self, vaultName, archiveDescription, checksum, body):
        self.calls.append(('upload_archive', {'vaultName': vaultName, 'archiveDescription': archiveDescription,
                                              'checksum': checksum}))
        content = body.read()
        actual = hashlib.sha256(content).hexdigest()
        if actual != checksum:
            raise client_error('InvalidParameterValueException',
                               f'Checksum mismatch: expected {checksum}, got {actual}', 'UploadArchive')
        archive_id = uuid.uuid4().hex
        self.archives[archive_id] = {'content': content, 'description': archiveDescription}
        return {'archiveId': archive_id, 'checksum': checksum,
                'location': f'/-/vaults/{vaultName}/archives/{archive_id}'}

    def initiate_job(self, vaultName, jobParameters):
        self.calls.append(('initiate_job', {'vaultName': vaultName, 'jobParameters': jobParameters}))
        archive_id = jobParameters['ArchiveId']
        if archive_id not in self.archives:
            raise client_error('ResourceNotFoundException', f'Archive not found: {archive_id}', 'InitiateJob')
        job_id = uuid.uuid4().hex
        self.jobs[job_id] = {'ArchiveId': archive_id, 'StatusCode': 'InProgress', 'Completed': False}
        return {'jobId': job_id, 'location': f'/-/vaults/{vaultName}/jobs/{job_id}'}

    def finish_job(self, job_id, status='Succeeded', message=None):
        self.jobs[job_id].update({'StatusCode': status, 'Completed': True, 'StatusMessage': message or status})

    def describe_job(self, vaultName, jobId):
        self.calls.append(('describe_job', {'vaultName': vaultName, 'jobId': jobId}))
        if jobId not in self.jobs:
            raise client_error('ResourceNotFoundException', f'Job not found: {jobId}', 'DescribeJob')
        return {'JobId': jobId, 'Action': 'ArchiveRetrieval', **self.jobs[jobId]}

    def get_job_output(self, vaultName, jobId):
        self.calls.append(('get_job_output', {'vaultName': vaultName, 'jobId': jobId}))
        job = self.jobs.get(jobId)
        if job is None:
            raise client_error('ResourceNotFoundException', f'Job not found: {jobId}', 'GetJobOutput')
        if job['StatusCode'] != 'Succeeded':
            raise client_error('InvalidParameterValueException', 'The job is not currently available for download',
                               'GetJobOutput')
        body = io.BytesIO(self.archives[job['ArchiveId']]['content'])
        self.outputs.append(body)
        return {'body': body, 'status': 200}

    def delete_archive(self, vaultName, archiveId):
        self.calls.append(('delete_archive', {'vaultName': vaultName, 'archiveId': archiveId}))
        if archiveId not in self.archives:
            raise client_error('ResourceNotFoundException', f'Archive not found: {archiveId}', 'DeleteArchive')
        del self.archives[archiveId]
        return {'ResponseMetadata': {'HTTPStatusCode': 204}}

    def operations(self):
        return [name for name, _ in self.calls]


@pytest.fixture
def temp_dir():
    """Fixture that provides a temporary directory and cleans it up after test"""
    tmp = tempfile.mkdtemp()
    yield tmp
    shutil.rmtree(tmp)


@pytest.fixture
def content_types():
    return dict(CONTENT_TYPES)


@pytest.fixture
def s3_client():
    return FakeS3Client()


@pytest.fixture
def glacier_client():
    return FakeGlacierClient()


@pytest.fixture
def s3_storage(s3_client):
    return S3Storage(bucket='test-bucket', client=s3_client, region='us-east-1')


@pytest.fixture
def glacier_storage(glacier_client):
    return GlacierStorage(vault='test-vault', client=glacier_client, tier='Standard')


@pytest.fixture
def hot_store(s3_storage, content_types):
    """Hot store over the fake S3 client with a deterministic clock"""
    return HotStore(s3_storage, content_types=content_types, clock=FakeClock())


@pytest.fixture
def fs_hot_store(temp_dir, content_types):
    """Hot store over the filesystem backend"""
    return HotStore(FilesystemStorage(base_path=temp_dir), content_types=content_types, clock=FakeClock())


@pytest.fixture
def cold_store(glacier_storage):
    """Cold store over the fake Glacier client"""
    return ColdStore(glacier_storage)


@pytest.fixture
def vault(temp_dir):
    return FilesystemVault(base_path=temp_dir)
