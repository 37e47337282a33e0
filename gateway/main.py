"""Entry point for the storage gateway service."""

import time
import uuid
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.logging_config import get_logger, setup_logging
from gateway.auth import LinkSigner
from gateway.config import GATEWAY_HOST, GATEWAY_PORT, GatewaySettings
from gateway.exceptions import (
    AuthenticationFailedError,
    ContainerExistsError,
    ContainerNotFoundError,
    GatewayError,
    InvalidContainerNameError,
    InvalidObjectKeyError,
    LinkExpiredError,
    ObjectNotFoundError,
)
from gateway.routes import container_router, object_router
from gateway.storage import FileStorage

setup_logging('gateway')
logger = get_logger('gateway.main')


def _error_response(request: Request, exc: Exception, status_code: int, code: str) -> JSONResponse:
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"{type(exc).__name__}: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return JSONResponse(status_code=status_code, content={"detail": str(exc), "code": code})


async def container_not_found_handler(request: Request, exc: ContainerNotFoundError):
    return _error_response(request, exc, status.HTTP_404_NOT_FOUND, "CONTAINER_NOT_FOUND")


async def object_not_found_handler(request: Request, exc: ObjectNotFoundError):
    return _error_response(request, exc, status.HTTP_404_NOT_FOUND, "OBJECT_NOT_FOUND")


async def container_exists_handler(request: Request, exc: ContainerExistsError):
    return _error_response(request, exc, status.HTTP_409_CONFLICT, "CONTAINER_EXISTS")


async def authentication_failed_handler(request: Request, exc: AuthenticationFailedError):
    return _error_response(request, exc, status.HTTP_401_UNAUTHORIZED, "AUTHENTICATION_FAILED")


async def link_expired_handler(request: Request, exc: LinkExpiredError):
    return _error_response(request, exc, status.HTTP_403_FORBIDDEN, "LINK_EXPIRED")


async def invalid_object_key_handler(request: Request, exc: InvalidObjectKeyError):
    return _error_response(request, exc, status.HTTP_400_BAD_REQUEST, "INVALID_OBJECT_KEY")


async def invalid_container_name_handler(request: Request, exc: InvalidContainerNameError):
    return _error_response(request, exc, status.HTTP_400_BAD_REQUEST, "INVALID_CONTAINER_NAME")


async def gateway_exception_handler(request: Request, exc: GatewayError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Gateway exception: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc), "code": "INTERNAL_ERROR"}
    )


async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(
        f"Request started: {request.method} {request.url.path} [request_id={request_id}]"
    )

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


def create_app(settings: Optional[GatewaySettings] = None) -> FastAPI:
    """
    Build a gateway application.

    Args:
        settings: Gateway settings; read from the environment when omitted

    Returns:
        FastAPI app with storage, link signer and error handlers installed
    """
    settings = settings or GatewaySettings.from_environment()

    app = FastAPI(
        title="CloudExplorer Storage Gateway",
        description="Container and object storage over HTTP with signed links",
        version="1.0.0"
    )
    app.state.settings = settings
    app.state.storage = FileStorage(settings.storage_root)
    app.state.signer = LinkSigner(settings.link_secret, settings.public_url)

    app.middleware("http")(log_requests)

    app.add_exception_handler(ContainerNotFoundError, container_not_found_handler)
    app.add_exception_handler(ObjectNotFoundError, object_not_found_handler)
    app.add_exception_handler(ContainerExistsError, container_exists_handler)
    app.add_exception_handler(AuthenticationFailedError, authentication_failed_handler)
    app.add_exception_handler(LinkExpiredError, link_expired_handler)
    app.add_exception_handler(InvalidObjectKeyError, invalid_object_key_handler)
    app.add_exception_handler(InvalidContainerNameError, invalid_container_name_handler)
    app.add_exception_handler(GatewayError, gateway_exception_handler)

    app.include_router(container_router)
    app.include_router(object_router)

    @app.get("/")
    async def root():
        """
        Root endpoint for health check.
        """
        return {"message": "CloudExplorer Storage Gateway", "status": "running"}

    logger.info(f"Gateway configured [storage_root={settings.storage_root}] [auth={'on' if settings.account_key else 'off'}]")
    return app


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "gateway.main:create_app",
        factory=True,
        host=GATEWAY_HOST,
        port=GATEWAY_PORT,
    )


if __name__ == "__main__":
    main()
