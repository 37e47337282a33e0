"""Object transfer, link and copy API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request, Response, status
from fastapi.responses import StreamingResponse

from common.constants import DEFAULT_LINK_EXPIRY_SECONDS
from common.logging_config import get_logger
from common.protocol import CopyObjectRequest, LinkResponse, ListingEntry
from gateway.auth import LinkSigner, check_account_key, verify_account_key
from gateway.config import MAX_LINK_EXPIRY_SECONDS
from gateway.dependencies import get_signer, get_storage
from gateway.storage import FileStorage

logger = get_logger(__name__)

router = APIRouter(prefix="/containers/{container}", tags=["Objects"])


@router.put(
    "/objects/{key:path}",
    response_model=ListingEntry,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(verify_account_key)],
)
async def upload_object(
    container: str,
    key: str,
    request: Request,
    storage: FileStorage = Depends(get_storage)
):
    """
    Upload an object from the raw request body.

    Parameters:
        - Content-Type header: Stored as the object's content type
        - Authorization header: Bearer <account_key> (when configured)

    Returns:
        - The stored object's listing entry

    Raises:
        - 400: Invalid object key
        - 404: Container not found
    """
    meta = await storage.write_object(
        container,
        key,
        request.stream(),
        content_type=request.headers.get("content-type"),
    )
    return meta.to_entry()


@router.get("/objects/{key:path}")
async def download_object(
    container: str,
    key: str,
    request: Request,
    se: Optional[str] = Query(None, description="Link expiry (unix seconds)"),
    sig: Optional[str] = Query(None, description="Link signature"),
    authorization: Optional[str] = Header(None),
    storage: FileStorage = Depends(get_storage),
    signer: LinkSigner = Depends(get_signer)
):
    """
    Stream an object's data.

    Accepts either the account key or a signed link (``se`` and ``sig``).

    Raises:
        - 401: Missing or wrong credentials
        - 403: Link signature mismatch or expired link
        - 404: Container or object not found
    """
    if se is not None or sig is not None:
        signer.verify(container, key, se or "", sig or "")
    else:
        check_account_key(request.app.state.settings.account_key, authorization)

    meta = storage.get_meta(container, key)
    return StreamingResponse(
        storage.read_object_streaming(container, key),
        media_type=meta.content_type,
        headers={"Content-Length": str(meta.size)},
    )


@router.delete(
    "/objects/{key:path}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(verify_account_key)],
)
async def delete_object(container: str, key: str, storage: FileStorage = Depends(get_storage)):
    """
    Delete an object.

    Raises:
        - 404: Container or object not found
    """
    storage.delete_object(container, key)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/links/{key:path}", response_model=LinkResponse, dependencies=[Depends(verify_account_key)])
async def create_link(
    container: str,
    key: str,
    expiry: int = Query(DEFAULT_LINK_EXPIRY_SECONDS, ge=1, le=MAX_LINK_EXPIRY_SECONDS),
    storage: FileStorage = Depends(get_storage),
    signer: LinkSigner = Depends(get_signer)
):
    """
    Issue a signed, time-bounded read link for an object.

    Returns:
        - uri: Link granting read access without the account key
        - expires_at: When the link stops working

    Raises:
        - 404: Container or object not found
    """
    storage.get_meta(container, key)
    uri, expires_at = signer.issue(container, key, expiry)
    logger.info(f"Issued link [container={container}] [key={key}] expiry={expiry}s")
    return LinkResponse(uri=uri, expires_at=expires_at)


@router.put(
    "/copies/{key:path}",
    response_model=ListingEntry,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(verify_account_key)],
)
async def copy_object(
    container: str,
    key: str,
    body: CopyObjectRequest,
    storage: FileStorage = Depends(get_storage),
    signer: LinkSigner = Depends(get_signer)
):
    """
    Server-side copy from a signed link into ``container`` under ``key``.

    Raises:
        - 403: Source link invalid or expired
        - 404: Source object or target container not found
    """
    source_container, source_key = signer.resolve(body.source_uri)
    meta = storage.copy_object(source_container, source_key, container, key)
    return meta.to_entry()
