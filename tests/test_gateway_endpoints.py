"""Tests for the storage gateway API endpoints."""

import time
from urllib.parse import urlparse

import pytest
from fastapi.testclient import TestClient

from gateway.auth import LinkSigner
from gateway.config import GatewaySettings
from gateway.main import create_app

ACCOUNT_KEY = 'gateway-test-key'
AUTH = {'Authorization': f'Bearer {ACCOUNT_KEY}'}


@pytest.fixture
def settings(tmp_path):
    return GatewaySettings(
        storage_root=tmp_path / 'containers',
        account_key=ACCOUNT_KEY,
        link_secret='link-secret',
        public_url='http://testserver',
    )


@pytest.fixture
def client(settings):
    """Create FastAPI test client over an empty storage root."""
    return TestClient(create_app(settings))


@pytest.fixture
def populated(client):
    """Client with 'testcontainer' holding a root object and two nested ones."""
    client.put('/containers/testcontainer', headers=AUTH)
    for key, body in [
        ('test-blob-1', b'blob one'),
        ('mydir1/test-blob-5.mp3', b'ID3 five'),
        ('mydir1/mydir2/test-blob-4.mp3', b'ID3 nested four'),
    ]:
        response = client.put(
            f'/containers/testcontainer/objects/{key}',
            content=body,
            headers={**AUTH, 'Content-Type': 'audio/mpeg' if key.endswith('.mp3') else 'text/plain'},
        )
        assert response.status_code == 201
    return client


def path_and_query(uri):
    parsed = urlparse(uri)
    return f'{parsed.path}?{parsed.query}'


def test_root_endpoint(client):
    """Test health check endpoint."""
    response = client.get('/')
    assert response.status_code == 200
    assert response.json()['status'] == 'running'


def test_requests_without_key_rejected(client):
    response = client.get('/containers')

    assert response.status_code == 401
    assert response.json()['code'] == 'AUTHENTICATION_FAILED'


def test_wrong_key_rejected(client):
    response = client.get('/containers', headers={'Authorization': 'Bearer nope'})

    assert response.status_code == 401


def test_auth_disabled_without_account_key(tmp_path):
    open_settings = GatewaySettings(tmp_path, None, 'secret', 'http://testserver')
    client = TestClient(create_app(open_settings))

    assert client.get('/containers').status_code == 200


def test_container_lifecycle(client):
    assert client.put('/containers/testcontainer', headers=AUTH).status_code == 201
    assert client.put('/containers/testcontainer2', headers=AUTH).status_code == 201

    listing = client.get('/containers', headers=AUTH).json()
    assert [e['name'] for e in listing['entries']] == ['testcontainer', 'testcontainer2']
    assert listing['entries'][0]['properties']['last-modified']

    filtered = client.get('/containers', params={'prefix': 'testcontainer2'}, headers=AUTH).json()
    assert [e['name'] for e in filtered['entries']] == ['testcontainer2']

    assert client.delete('/containers/testcontainer2', headers=AUTH).status_code == 204
    assert client.delete('/containers/testcontainer2', headers=AUTH).status_code == 404


def test_duplicate_container_conflicts(client):
    client.put('/containers/testcontainer', headers=AUTH)

    response = client.put('/containers/testcontainer', headers=AUTH)

    assert response.status_code == 409
    assert response.json()['code'] == 'CONTAINER_EXISTS'


def test_invalid_container_name(client):
    response = client.put('/containers/Bad_Name', headers=AUTH)

    assert response.status_code == 400
    assert response.json()['code'] == 'INVALID_CONTAINER_NAME'


def test_delimited_listing(populated):
    prefixes = populated.get('/containers/testcontainer/prefixes', params={'prefix': ''}, headers=AUTH).json()
    assert [e['name'] for e in prefixes['entries']] == ['mydir1/']

    nested = populated.get('/containers/testcontainer/prefixes', params={'prefix': 'mydir1/'}, headers=AUTH).json()
    assert [e['name'] for e in nested['entries']] == ['mydir1/mydir2/']

    root = populated.get('/containers/testcontainer/objects', params={'prefix': ''}, headers=AUTH).json()
    assert [e['name'] for e in root['entries']] == ['test-blob-1']
    assert root['entries'][0]['properties']['content-length'] == 8
    assert root['entries'][0]['properties']['content-type'] == 'text/plain'


def test_flat_listing(populated):
    response = populated.get(
        '/containers/testcontainer/objects',
        params={'prefix': 'mydir1/', 'delimited': 'false'},
        headers=AUTH,
    )

    assert [e['name'] for e in response.json()['entries']] == [
        'mydir1/mydir2/test-blob-4.mp3',
        'mydir1/test-blob-5.mp3',
    ]


def test_listing_unknown_container(client):
    response = client.get('/containers/missing/objects', headers=AUTH)

    assert response.status_code == 404
    assert response.json()['code'] == 'CONTAINER_NOT_FOUND'


def test_download_with_account_key(populated):
    response = populated.get('/containers/testcontainer/objects/mydir1/test-blob-5.mp3', headers=AUTH)

    assert response.status_code == 200
    assert response.content == b'ID3 five'
    assert response.headers['content-type'].startswith('audio/mpeg')
    assert response.headers['content-length'] == '8'


def test_download_missing_object(populated):
    response = populated.get('/containers/testcontainer/objects/nothing-here', headers=AUTH)

    assert response.status_code == 404
    assert response.json()['code'] == 'OBJECT_NOT_FOUND'


def test_upload_rejects_directory_key(populated):
    response = populated.put('/containers/testcontainer/objects/dir/', content=b'x', headers=AUTH)

    assert response.status_code == 400
    assert response.json()['code'] == 'INVALID_OBJECT_KEY'


def test_overwrite_replaces_object(populated):
    populated.put('/containers/testcontainer/objects/test-blob-1', content=b'replaced', headers=AUTH)

    response = populated.get('/containers/testcontainer/objects/test-blob-1', headers=AUTH)

    assert response.content == b'replaced'


def test_delete_object(populated):
    assert populated.delete('/containers/testcontainer/objects/test-blob-1', headers=AUTH).status_code == 204
    assert populated.delete('/containers/testcontainer/objects/test-blob-1', headers=AUTH).status_code == 404


def test_link_grants_read_without_key(populated):
    link = populated.post(
        '/containers/testcontainer/links/mydir1/test-blob-5.mp3',
        params={'expiry': 60},
        headers=AUTH,
    ).json()

    assert link['uri'].startswith('http://testserver/containers/testcontainer/objects/mydir1/test-blob-5.mp3?se=')
    response = populated.get(path_and_query(link['uri']))
    assert response.status_code == 200
    assert response.content == b'ID3 five'


def test_tampered_link_rejected(populated):
    link = populated.post('/containers/testcontainer/links/test-blob-1', headers=AUTH).json()
    tampered = path_and_query(link['uri']).replace('test-blob-1', 'mydir1/test-blob-5.mp3')

    response = populated.get(tampered)

    assert response.status_code == 401


def test_expired_link_rejected(populated):
    old_signer = LinkSigner('link-secret', 'http://testserver', clock=lambda: time.time() - 3600)
    uri, _ = old_signer.issue('testcontainer', 'test-blob-1', 60)

    response = populated.get(path_and_query(uri))

    assert response.status_code == 403
    assert response.json()['code'] == 'LINK_EXPIRED'


def test_link_for_missing_object(populated):
    response = populated.post('/containers/testcontainer/links/missing', headers=AUTH)

    assert response.status_code == 404


def test_link_expiry_bounds(populated):
    response = populated.post('/containers/testcontainer/links/test-blob-1', params={'expiry': 0}, headers=AUTH)

    assert response.status_code == 422


def test_copy_between_containers(populated):
    populated.put('/containers/testcontainer2', headers=AUTH)
    link = populated.post('/containers/testcontainer/links/mydir1/test-blob-5.mp3', headers=AUTH).json()

    response = populated.put(
        '/containers/testcontainer2/copies/test-blob-5.mp3',
        json={'source_uri': link['uri']},
        headers=AUTH,
    )

    assert response.status_code == 201
    assert response.json()['properties']['content-length'] == 8
    copied = populated.get('/containers/testcontainer2/objects/test-blob-5.mp3', headers=AUTH)
    assert copied.content == b'ID3 five'
    assert copied.headers['content-type'].startswith('audio/mpeg')


def test_copy_onto_itself(populated):
    link = populated.post('/containers/testcontainer/links/test-blob-1', headers=AUTH).json()

    response = populated.put(
        '/containers/testcontainer/copies/test-blob-1',
        json={'source_uri': link['uri']},
        headers=AUTH,
    )

    assert response.status_code == 201
    assert populated.get('/containers/testcontainer/objects/test-blob-1', headers=AUTH).content == b'blob one'


def test_copy_rejects_foreign_link(populated):
    populated.put('/containers/testcontainer2', headers=AUTH)

    response = populated.put(
        '/containers/testcontainer2/copies/x',
        json={'source_uri': 'http://elsewhere/some/file'},
        headers=AUTH,
    )

    assert response.status_code == 401


def test_request_id_echoed(client):
    response = client.get('/', headers={'X-Request-ID': 'req-123'})

    assert response.headers['X-Request-ID'] == 'req-123'
