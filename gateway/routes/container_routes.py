"""Container and listing API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from common.protocol import ListingEntry, ListingResponse
from gateway.auth import verify_account_key
from gateway.dependencies import get_storage
from gateway.storage import FileStorage

router = APIRouter(prefix="/containers", tags=["Containers"], dependencies=[Depends(verify_account_key)])


@router.get("", response_model=ListingResponse)
async def list_containers(
    prefix: Optional[str] = Query(None, description="Container name prefix"),
    storage: FileStorage = Depends(get_storage)
):
    """
    List containers.

    Parameters:
        - prefix: Only containers whose name starts with this value
        - Authorization header: Bearer <account_key> (when configured)

    Returns:
        - entries: One entry per container, sorted by name
    """
    return ListingResponse(entries=storage.list_containers(prefix))


@router.put("/{container}", status_code=status.HTTP_201_CREATED)
async def create_container(container: str, storage: FileStorage = Depends(get_storage)):
    """
    Create a container.

    Raises:
        - 400: Invalid container name
        - 409: Container already exists
    """
    storage.create_container(container)
    return Response(status_code=status.HTTP_201_CREATED)


@router.delete("/{container}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_container(container: str, storage: FileStorage = Depends(get_storage)):
    """
    Delete a container and every object in it.

    Raises:
        - 404: Container not found
    """
    storage.delete_container(container)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{container}/prefixes", response_model=ListingResponse)
async def list_child_prefixes(
    container: str,
    prefix: str = Query("", description="Listing prefix; empty for the root"),
    storage: FileStorage = Depends(get_storage)
):
    """
    List the delimiter-segmented prefixes directly under ``prefix``.

    Returns:
        - entries: One entry per child prefix, each ending in '/'
    """
    names = storage.list_child_prefixes(container, prefix)
    return ListingResponse(entries=[ListingEntry(name=name) for name in names])


@router.get("/{container}/objects", response_model=ListingResponse)
async def list_objects(
    container: str,
    prefix: str = Query("", description="Key prefix"),
    delimited: bool = Query(True, description="Only objects directly under the prefix"),
    storage: FileStorage = Depends(get_storage)
):
    """
    List objects whose key starts with ``prefix``.

    Returns:
        - entries: Objects with content-type, content-length and last-modified properties
    """
    objects = storage.list_objects(container, prefix, delimited)
    return ListingResponse(entries=[meta.to_entry() for meta in objects])
