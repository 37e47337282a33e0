"""FastAPI dependencies resolving per-app state."""

from fastapi import Request

from gateway.auth import LinkSigner
from gateway.storage import FileStorage


def get_storage(request: Request) -> FileStorage:
    return request.app.state.storage


def get_signer(request: Request) -> LinkSigner:
    return request.app.state.signer
