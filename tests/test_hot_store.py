"""Tests for the hot store client."""
from pathlib import Path

import pytest

from vaultbridge.core import HotStore
from vaultbridge.errors import InvalidArgumentError, ObjectNotFoundError
from vaultbridge.storage import S3Storage


def test_upload_returns_generated_key(hot_store, s3_client):
    """Upload stores under category/timestamp/name"""
    key = hot_store.upload("images", "cat.png", b"\x89PNG data")

    assert key == "images/1000/cat.png"
    assert s3_client.objects[key]['Body'] == b"\x89PNG data"


def test_upload_sets_headers(hot_store, s3_client):
    """Content type comes from the name, cache control from max_age"""
    key = hot_store.upload("docs", "Report.PDF", b"%PDF-1.7")

    params = s3_client.calls[-1][1]
    assert params['Key'] == key
    assert params['ContentType'] == 'application/pdf'
    assert params['CacheControl'] == 'max-age=2592000, must-revalidate'
    assert 'ACL' not in params


def test_public_upload_requests_public_read(hot_store, s3_client):
    hot_store.upload("images", "cat.png", b"data", is_public=True)
    assert s3_client.calls[-1][1]['ACL'] == 'public-read'


def test_unknown_extension_uploads_as_octet_stream(hot_store, s3_client):
    hot_store.upload("misc", "blob.weird", b"data")
    assert s3_client.calls[-1][1]['ContentType'] == 'application/octet-stream'


def test_repeated_uploads_do_not_overwrite(hot_store, s3_client):
    """Same category and name twice gives two objects"""
    first = hot_store.upload("images", "cat.png", b"v1")
    second = hot_store.upload("images", "cat.png", b"v2")

    assert first != second
    assert hot_store.fetch(first) == b"v1"
    assert hot_store.fetch(second) == b"v2"


def test_repeated_uploads_with_real_clock_are_distinct(s3_storage, content_types):
    """The default clock never hands out the same timestamp twice"""
    store = HotStore(s3_storage, content_types=content_types)
    keys = {store.upload("images", "cat.png", b"x") for _ in range(100)}
    assert len(keys) == 100


@pytest.mark.parametrize("content", [b"", None, bytearray()])
def test_upload_empty_content_makes_no_call(hot_store, s3_client, content):
    """Empty or missing content fails before reaching the store"""
    with pytest.raises(InvalidArgumentError):
        hot_store.upload("images", "cat.png", content)
    assert s3_client.calls == []


@pytest.mark.parametrize("name", ["", "  ", None])
def test_upload_blank_name_makes_no_call(hot_store, s3_client, name):
    with pytest.raises(InvalidArgumentError):
        hot_store.upload("images", name, b"data")
    assert s3_client.calls == []


def test_round_trip_is_byte_exact(hot_store):
    """Fetching the returned key gives back exactly what was uploaded"""
    payload = bytes(range(256)) * 40
    key = hot_store.upload("bin", "all-bytes.bin", payload)
    assert hot_store.fetch(key) == payload


def test_fetch_to_path(hot_store, temp_dir):
    """fetch_to_path writes the object and creates parent directories"""
    key = hot_store.upload("docs", "notes.txt", b"remember the milk")
    target = Path(temp_dir) / "out" / "nested" / "notes.txt"

    result = hot_store.fetch_to_path(key, target)

    assert result == target
    assert target.read_bytes() == b"remember the milk"


def test_fetch_missing_key(hot_store):
    with pytest.raises(ObjectNotFoundError):
        hot_store.fetch("images/1/missing.png")


def test_copy_creates_new_key(hot_store):
    """Copy places the object under a freshly generated key"""
    source = hot_store.upload("images", "cat.png", b"meow")
    dest = hot_store.copy("thumbnails", "cat-small.png", source)

    assert dest.startswith("thumbnails/")
    assert dest.endswith("/cat-small.png")
    assert hot_store.fetch(dest) == b"meow"
    assert hot_store.fetch(source) == b"meow"


def test_copy_missing_source(hot_store):
    with pytest.raises(ObjectNotFoundError):
        hot_store.copy("thumbnails", "x.png", "images/1/nope.png")


def test_copy_validates_arguments(hot_store, s3_client):
    with pytest.raises(InvalidArgumentError):
        hot_store.copy("thumbnails", "", "images/1/cat.png")
    with pytest.raises(InvalidArgumentError):
        hot_store.copy("thumbnails", "cat.png", " ")
    assert s3_client.calls == []


def test_delete(hot_store):
    key = hot_store.upload("images", "cat.png", b"meow")
    hot_store.delete(key)
    with pytest.raises(ObjectNotFoundError):
        hot_store.fetch(key)


def test_list_follows_pagination(hot_store):
    """All keys under the prefix are listed, across pages"""
    keys = [hot_store.upload("images", f"img{i}.png", f"img{i}".encode()) for i in range(5)]
    hot_store.upload("docs", "a.txt", b"a")

    listing = hot_store.list("images/")

    assert sorted(listing) == sorted(keys)
    assert all(etag.startswith('"') for etag in listing.values())


def test_get_uri(s3_client, content_types):
    """URIs come from the public base URL or the backend"""
    backend = S3Storage(bucket='media', client=s3_client, region='sa-east-1')
    assert HotStore(backend, content_types=content_types).get_uri("images/1/cat.png") == \
        "https://media.s3.sa-east-1.amazonaws.com/images/1/cat.png"

    store = HotStore(backend, content_types=content_types, public_base_url="https://cdn.example.com/")
    assert store.get_uri("images/1/cat.png") == "https://cdn.example.com/images/1/cat.png"


def test_filesystem_backend_round_trip(fs_hot_store, temp_dir):
    """The filesystem backend supports the same operations"""
    key = fs_hot_store.upload("images", "cat.png", b"meow", is_public=True)
    copy_key = fs_hot_store.copy("backup", "cat.png", key)

    assert fs_hot_store.fetch(key) == b"meow"
    assert set(fs_hot_store.list()) == {key, copy_key}
    assert fs_hot_store.get_uri(key).startswith("file://")

    metadata = fs_hot_store.backend.get_metadata(key)
    assert metadata['content_type'] == 'image/png'
    assert metadata['public'] is True

    fs_hot_store.delete(key)
    assert list(fs_hot_store.list()) == [copy_key]
