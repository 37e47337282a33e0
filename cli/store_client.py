"""HTTP ObjectStore that talks to the storage gateway."""

import asyncio
import mimetypes
import os
import uuid
from typing import Optional
from urllib.parse import quote

import httpx

from cli.config import Config
from common.constants import TRANSFER_CHUNK_SIZE_BYTES
from common.logging_config import get_logger
from common.protocol import CopyObjectRequest, ErrorResponse, LinkResponse, ListingEntry, ListingResponse
from common.types import ObjectRecord
from explorer.exceptions import (
    AuthRejectedError,
    ExplorerError,
    MalformedInputError,
    NetworkUnreachableError,
    NotFoundError,
    TransferFailedError,
)
from explorer.store import ObjectStore, ProgressHandle, TransferHandle

logger = get_logger(__name__)

NETWORK_GUIDANCE = (
    "Cannot reach the storage gateway. Check your network connection, "
    "the account name and the gateway endpoint."
)


def map_transport_error(error: httpx.HTTPError) -> ExplorerError:
    """Translate an httpx transport failure into the explorer error taxonomy."""
    if isinstance(error, httpx.ConnectError):
        return NetworkUnreachableError(NETWORK_GUIDANCE)
    if isinstance(error, httpx.TimeoutException):
        return TransferFailedError("Request timed out. The gateway may be overloaded.")
    return TransferFailedError(f"HTTP error: {error}")


def error_from_response(response: httpx.Response) -> ExplorerError:
    """
    Map an error response to the explorer error taxonomy.

    Args:
        response: Response with status >= 400

    Returns:
        Exception instance carrying the gateway's detail and code
    """
    try:
        error = ErrorResponse.model_validate(response.json())
        detail, code = error.detail, error.code
    except ValueError:
        detail, code = response.text or 'Unknown error', 'UNKNOWN'

    message = f"{detail} (Code: {code})" if code != 'UNKNOWN' else detail
    if response.status_code in (401, 403):
        return AuthRejectedError(message)
    if response.status_code == 404:
        return NotFoundError(message)
    if code == 'INVALID_OBJECT_KEY':
        return MalformedInputError(message)
    return TransferFailedError(message)


class HttpObjectStore(ObjectStore):
    """ObjectStore over the gateway's HTTP API, with retries on listing reads."""

    def __init__(self, config: Config, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize store client.

        Args:
            config: Configuration instance
            transport: Optional httpx transport (tests pass a MockTransport or ASGITransport)
        """
        self.config = config
        self.session = httpx.AsyncClient(
            base_url=config.get_base_url(),
            timeout=config.get_timeout(),
            transport=transport,
        )
        logger.info(f"Initialized HttpObjectStore [base_url={config.get_base_url()}]")

    def _headers(self) -> dict:
        headers = {'X-Request-ID': str(uuid.uuid4())}
        account_key = self.config.get_account_key()
        if account_key:
            headers['Authorization'] = f'Bearer {account_key}'
        return headers

    @staticmethod
    def _object_path(container: str, key: str, collection: str = "objects") -> str:
        return f"/containers/{quote(container)}/{collection}/{quote(key, safe='/')}"

    async def _request(self, method: str, endpoint: str, retry: bool = False, **kwargs) -> httpx.Response:
        """
        Make an HTTP request and raise explorer errors for failures.

        Args:
            method: HTTP method
            endpoint: API endpoint path
            retry: Retry 5xx responses with exponential backoff (idempotent reads only)
            **kwargs: Additional arguments passed to httpx

        Returns:
            Successful response
        """
        retry_config = self.config.get_retry_config()
        max_retries = retry_config['max_retries'] if retry else 0
        backoff = retry_config['retry_backoff_multiplier']
        headers = {**self._headers(), **kwargs.pop('headers', {})}
        request_id = headers['X-Request-ID']

        logger.debug(f"Making request: {method} {endpoint} [request_id={request_id}]")

        for attempt in range(max_retries + 1):
            try:
                response = await self.session.request(method, endpoint, headers=headers, **kwargs)
            except httpx.HTTPError as e:
                logger.error(f"Request failed: {method} {endpoint} error={type(e).__name__} [request_id={request_id}]")
                raise map_transport_error(e) from e

            logger.debug(f"Response received: {method} {endpoint} status={response.status_code} [request_id={request_id}]")

            if response.status_code >= 500 and attempt < max_retries:
                delay = backoff ** attempt
                logger.warning(
                    f"Server error (attempt {attempt + 1}/{max_retries + 1}): "
                    f"{method} {endpoint} status={response.status_code}, retrying in {delay}s [request_id={request_id}]"
                )
                await asyncio.sleep(delay)
                continue

            if response.status_code >= 400:
                logger.warning(f"Request rejected: {method} {endpoint} status={response.status_code} [request_id={request_id}]")
                raise error_from_response(response)
            return response

        raise TransferFailedError(f"Max retries exceeded: {method} {endpoint}")

    async def list_containers(self, name_filter: Optional[str] = None) -> ListingResponse:
        params = {'prefix': name_filter} if name_filter else {}
        response = await self._request('GET', '/containers', retry=True, params=params)
        return ListingResponse.model_validate(response.json())

    async def create_container(self, name: str) -> None:
        await self._request('PUT', f"/containers/{quote(name)}")

    async def delete_container(self, name: str) -> None:
        await self._request('DELETE', f"/containers/{quote(name)}")

    async def list_child_prefixes(self, container: str, prefix: str) -> ListingResponse:
        response = await self._request(
            'GET',
            f"/containers/{quote(container)}/prefixes",
            retry=True,
            params={'prefix': prefix},
        )
        return ListingResponse.model_validate(response.json())

    async def list_objects(self, container: str, prefix: str, delimited: bool = True) -> ListingResponse:
        response = await self._request(
            'GET',
            f"/containers/{quote(container)}/objects",
            retry=True,
            params={'prefix': prefix, 'delimited': 'true' if delimited else 'false'},
        )
        return ListingResponse.model_validate(response.json())

    async def upload_object(self, container: str, key: str, local_path: str) -> TransferHandle:
        progress = ProgressHandle()
        completion = asyncio.create_task(self._upload(container, key, local_path, progress))
        return TransferHandle(progress=progress, completion=completion)

    async def _upload(self, container: str, key: str, local_path: str, progress: ProgressHandle) -> None:
        try:
            file_size = os.path.getsize(local_path)
        except OSError as e:
            raise TransferFailedError(f"Cannot read {local_path}: {e}") from e
        progress.set_total(file_size)

        async def file_stream():
            with open(local_path, 'rb') as f:
                while True:
                    chunk = f.read(TRANSFER_CHUNK_SIZE_BYTES)
                    if not chunk:
                        break
                    progress.advance(len(chunk))
                    yield chunk

        headers = {
            'Content-Type': mimetypes.guess_type(local_path)[0] or 'application/octet-stream',
            'Content-Length': str(file_size),
        }
        await self._request('PUT', self._object_path(container, key), content=file_stream(), headers=headers)
        progress.finish()

    async def download_object_to_file(self, obj: ObjectRecord, local_path: str) -> TransferHandle:
        progress = ProgressHandle(total_bytes=obj.size)
        completion = asyncio.create_task(self._download(obj, local_path, progress))
        return TransferHandle(progress=progress, completion=completion)

    async def _download(self, obj: ObjectRecord, local_path: str, progress: ProgressHandle) -> None:
        url = self._object_path(obj.container, obj.name)
        try:
            async with self.session.stream('GET', url, headers=self._headers()) as response:
                if response.status_code >= 400:
                    await response.aread()
                    raise error_from_response(response)

                total_size = int(response.headers.get('Content-Length', obj.size))
                progress.set_total(total_size)
                with open(local_path, 'wb') as f:
                    async for chunk in response.aiter_bytes(chunk_size=TRANSFER_CHUNK_SIZE_BYTES):
                        f.write(chunk)
                        progress.advance(len(chunk))
        except httpx.HTTPError as e:
            raise map_transport_error(e) from e
        except OSError as e:
            raise TransferFailedError(f"Cannot write {local_path}: {e}") from e
        progress.finish()

    async def resolve_temporary_link(self, obj: ObjectRecord, expiry_seconds: int) -> str:
        response = await self._request(
            'POST',
            self._object_path(obj.container, obj.name, collection="links"),
            params={'expiry': expiry_seconds},
        )
        return LinkResponse.model_validate(response.json()).uri

    async def copy_object(self, source_uri: str, target_container: str, target_key: str) -> TransferHandle:
        progress = ProgressHandle()
        completion = asyncio.create_task(self._copy(source_uri, target_container, target_key, progress))
        return TransferHandle(progress=progress, completion=completion)

    async def _copy(self, source_uri: str, target_container: str, target_key: str, progress: ProgressHandle) -> None:
        response = await self._request(
            'PUT',
            self._object_path(target_container, target_key, collection="copies"),
            json=CopyObjectRequest(source_uri=source_uri).model_dump(),
        )
        copied = ListingEntry.model_validate(response.json())
        progress.set_total(copied.properties.content_length or 0)
        progress.finish()

    async def delete_object(self, container: str, key: str) -> None:
        await self._request('DELETE', self._object_path(container, key))

    async def close(self) -> None:
        await self.session.aclose()
