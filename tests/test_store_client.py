"""Unit tests for HttpObjectStore."""

import json

import httpx
import pytest
from unittest.mock import AsyncMock

from cli.store_client import HttpObjectStore, error_from_response
from common.types import ObjectRecord
from explorer.exceptions import (
    AuthRejectedError,
    MalformedInputError,
    NetworkUnreachableError,
    NotFoundError,
    TransferFailedError,
)

LISTING = {
    'entries': [
        {
            'name': 'test-blob-1',
            'properties': {'content-type': 'text/plain', 'content-length': 8, 'last-modified': '2024-01-01T00:00:00Z'},
        },
    ]
}


def make_store(config, handler):
    store = HttpObjectStore(config)
    store.session = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url='http://test')
    return store


@pytest.fixture
def keyed_config(temp_config):
    temp_config.data['account_key'] = 'secret-key'
    return temp_config


@pytest.mark.asyncio
async def test_list_containers_sends_key_and_filter(keyed_config):
    seen = {}

    def handler(request):
        seen['auth'] = request.headers.get('Authorization')
        seen['prefix'] = request.url.params.get('prefix')
        seen['request_id'] = request.headers.get('X-Request-ID')
        return httpx.Response(200, json={'entries': [{'name': 'testcontainer'}]})

    store = make_store(keyed_config, handler)

    response = await store.list_containers('test')

    assert [e.name for e in response.entries] == ['testcontainer']
    assert seen['auth'] == 'Bearer secret-key'
    assert seen['prefix'] == 'test'
    assert seen['request_id']


@pytest.mark.asyncio
async def test_no_auth_header_without_key(temp_config):
    seen = {}

    def handler(request):
        seen['auth'] = request.headers.get('Authorization')
        return httpx.Response(200, json={'entries': []})

    await make_store(temp_config, handler).list_containers()

    assert seen['auth'] is None


@pytest.mark.asyncio
async def test_list_objects_parses_properties(keyed_config):
    def handler(request):
        assert request.url.path == '/containers/testcontainer/objects'
        assert request.url.params['prefix'] == 'mydir1/'
        assert request.url.params['delimited'] == 'false'
        return httpx.Response(200, json=LISTING)

    response = await make_store(keyed_config, handler).list_objects('testcontainer', 'mydir1/', delimited=False)

    assert response.entries[0].properties.content_length == 8
    assert response.entries[0].properties.content_type == 'text/plain'


@pytest.mark.asyncio
async def test_listing_retries_server_errors(keyed_config, monkeypatch):
    call_count = 0

    def handler(request):
        nonlocal call_count
        call_count += 1
        if call_count < 3:
            return httpx.Response(500, json={'detail': 'Server error', 'code': 'INTERNAL_ERROR'})
        return httpx.Response(200, json={'entries': []})

    sleep = AsyncMock()
    monkeypatch.setattr('cli.store_client.asyncio.sleep', sleep)

    await make_store(keyed_config, handler).list_child_prefixes('testcontainer', '')

    assert call_count == 3
    assert [c.args[0] for c in sleep.await_args_list] == [1, 2]


@pytest.mark.asyncio
async def test_listing_gives_up_after_max_retries(keyed_config, monkeypatch):
    keyed_config.data['max_retries'] = 1
    monkeypatch.setattr('cli.store_client.asyncio.sleep', AsyncMock())

    def handler(request):
        return httpx.Response(503, json={'detail': 'Unavailable', 'code': 'INTERNAL_ERROR'})

    with pytest.raises(TransferFailedError):
        await make_store(keyed_config, handler).list_containers()


@pytest.mark.asyncio
async def test_writes_are_not_retried(keyed_config):
    call_count = 0

    def handler(request):
        nonlocal call_count
        call_count += 1
        return httpx.Response(500, json={'detail': 'Server error', 'code': 'INTERNAL_ERROR'})

    with pytest.raises(TransferFailedError):
        await make_store(keyed_config, handler).create_container('newcontainer')

    assert call_count == 1


@pytest.mark.asyncio
@pytest.mark.parametrize('status, code, expected', [
    (401, 'AUTHENTICATION_FAILED', AuthRejectedError),
    (403, 'LINK_EXPIRED', AuthRejectedError),
    (404, 'CONTAINER_NOT_FOUND', NotFoundError),
    (400, 'INVALID_OBJECT_KEY', MalformedInputError),
    (409, 'CONTAINER_EXISTS', TransferFailedError),
])
async def test_error_mapping(keyed_config, status, code, expected):
    def handler(request):
        return httpx.Response(status, json={'detail': 'Rejected', 'code': code})

    with pytest.raises(expected) as exc_info:
        await make_store(keyed_config, handler).delete_container('testcontainer')

    assert code in str(exc_info.value)


def test_error_without_json_body():
    response = httpx.Response(502, text='Bad gateway')

    error = error_from_response(response)

    assert isinstance(error, TransferFailedError)
    assert str(error) == 'Bad gateway'


@pytest.mark.asyncio
async def test_connection_error_is_network_unreachable(keyed_config):
    def handler(request):
        raise httpx.ConnectError("Connection refused")

    with pytest.raises(NetworkUnreachableError):
        await make_store(keyed_config, handler).list_containers()


@pytest.mark.asyncio
async def test_upload_streams_file(keyed_config, sample_file):
    seen = {}

    def handler(request):
        seen['path'] = request.url.path
        seen['body'] = request.content
        seen['content_type'] = request.headers['Content-Type']
        return httpx.Response(201, json={'name': 'uploads/test.txt'})

    handle = await make_store(keyed_config, handler).upload_object('testcontainer', 'uploads/test.txt', str(sample_file))
    await handle.completion

    assert seen['path'] == '/containers/testcontainer/objects/uploads/test.txt'
    assert seen['body'] == sample_file.read_bytes()
    assert seen['content_type'] == 'text/plain'
    assert handle.progress.percent == 100.0


@pytest.mark.asyncio
async def test_upload_missing_file_fails(keyed_config, tmp_path):
    def handler(request):
        return httpx.Response(201, json={'name': 'x'})

    handle = await make_store(keyed_config, handler).upload_object('c', 'x', str(tmp_path / 'missing.txt'))

    with pytest.raises(TransferFailedError):
        await handle.completion


@pytest.mark.asyncio
async def test_download_writes_file(keyed_config, tmp_path):
    def handler(request):
        return httpx.Response(200, content=b'blob one')

    target = tmp_path / 'out.bin'
    obj = ObjectRecord('test-blob-1', 8, 'text/plain', None, 'testcontainer')

    handle = await make_store(keyed_config, handler).download_object_to_file(obj, str(target))
    await handle.completion

    assert target.read_bytes() == b'blob one'
    assert handle.progress.percent == 100.0


@pytest.mark.asyncio
async def test_download_missing_object(keyed_config, tmp_path):
    def handler(request):
        return httpx.Response(404, json={'detail': 'Object not found', 'code': 'OBJECT_NOT_FOUND'})

    obj = ObjectRecord('gone', 8, 'text/plain', None, 'testcontainer')
    handle = await make_store(keyed_config, handler).download_object_to_file(obj, str(tmp_path / 'gone'))

    with pytest.raises(NotFoundError):
        await handle.completion


@pytest.mark.asyncio
async def test_link_then_copy(keyed_config):
    link = 'http://test/containers/testcontainer/objects/test-blob-1?se=1&sig=abc'

    def handler(request):
        if request.method == 'POST':
            assert request.url.path == '/containers/testcontainer/links/test-blob-1'
            assert request.url.params['expiry'] == '60'
            return httpx.Response(200, json={'uri': link, 'expires_at': '2030-01-01T00:00:00Z'})
        assert request.url.path == '/containers/testcontainer2/copies/copied'
        assert json.loads(request.content) == {'source_uri': link}
        return httpx.Response(201, json={'name': 'copied', 'properties': {'content-length': 8}})

    store = make_store(keyed_config, handler)
    obj = ObjectRecord('test-blob-1', 8, 'text/plain', None, 'testcontainer')

    uri = await store.resolve_temporary_link(obj, 60)
    handle = await store.copy_object(uri, 'testcontainer2', 'copied')
    await handle.completion

    assert uri == link
    assert handle.progress.snapshot().completed_bytes == 8


@pytest.mark.asyncio
async def test_close_session(keyed_config):
    store = make_store(keyed_config, lambda request: httpx.Response(200))

    await store.close()

    assert store.session.is_closed
