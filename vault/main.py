"""Entry point for the Vault service."""

import json
import time
import uuid
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.logging_config import setup_logging
from vault import config
from vault.exceptions import (
    FileRecordNotFoundError,
    InternalError,
    PayloadTooLargeError,
    StorageError,
    ValidationError,
    VaultException,
)
from vault.object_store import MinioObjectStore
from vault.routes.file_routes import router as file_router
from vault.routes.upload_routes import router as upload_router
from vault.schemas.common import ErrorResponse
from vault.service_locator import VaultServices, build_services, get_services, has_services, set_services

logger = setup_logging('vault')

app = FastAPI(
    title="Vault Upload Service",
    description="File upload service backed by an S3-compatible object store",
    version="1.0.0"
)

# Exception class -> (HTTP status, error code, log with traceback)
ERROR_RESPONSES = {
    ValidationError: (status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR", False),
    FileRecordNotFoundError: (status.HTTP_404_NOT_FOUND, "FILE_NOT_FOUND", False),
    PayloadTooLargeError: (status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "PAYLOAD_TOO_LARGE", False),
    StorageError: (status.HTTP_502_BAD_GATEWAY, "STORAGE_ERROR", True),
    InternalError: (status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", True),
    VaultException: (status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", True),
}


def load_snapshot(services: VaultServices, snapshot_path: str) -> None:
    path = Path(snapshot_path)
    if not path.exists():
        logger.info(f"No metadata snapshot at {path}")
        return
    try:
        data = json.loads(path.read_text())
        services.metadata_index.import_snapshot(data)
    except (OSError, ValueError, KeyError) as e:
        logger.error(f"Failed to load metadata snapshot {path}: {e}", exc_info=True)


def save_snapshot(services: VaultServices, snapshot_path: str) -> None:
    path = Path(snapshot_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(services.metadata_index.export_snapshot(), indent=2))
        logger.info(f"Metadata snapshot written to {path}")
    except OSError as e:
        logger.error(f"Failed to write metadata snapshot {path}: {e}", exc_info=True)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    """
    Tag each request with an id and log its outcome and latency.
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    started = time.perf_counter()

    logger.info(f"{request.method} {request.url.path} started [request_id={request_id}]")
    response = await call_next(request)
    elapsed = time.perf_counter() - started
    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} "
        f"in {elapsed:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id
    return response


async def vault_error_handler(request: Request, exc: VaultException):
    """
    Render a VaultException as {"detail", "code"} with the status mapped
    to the nearest registered exception class.
    """
    for exc_class in type(exc).__mro__:
        if exc_class in ERROR_RESPONSES:
            status_code, code, with_traceback = ERROR_RESPONSES[exc_class]
            break
    else:
        status_code, code, with_traceback = ERROR_RESPONSES[VaultException]

    request_id = getattr(request.state, 'request_id', 'unknown')
    message = f"{type(exc).__name__}: {exc} [request_id={request_id}] path={request.url.path}"
    if with_traceback:
        logger.error(message, exc_info=exc)
    else:
        logger.warning(message)

    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(detail=str(exc), code=code).model_dump()
    )


for _exc_class in ERROR_RESPONSES:
    app.add_exception_handler(_exc_class, vault_error_handler)


@app.on_event("startup")
async def startup_event():
    """
    Build the metadata index and object-store gateway, then start background tasks.
    """
    logger.info("Vault service starting up...")

    if not has_services():
        object_store = MinioObjectStore(
            endpoint=config.S3_ENDPOINT,
            access_key=config.S3_ACCESS_KEY,
            secret_key=config.S3_SECRET_KEY,
            bucket=config.S3_BUCKET,
            secure=config.S3_SECURE,
            region=config.S3_REGION,
            server_side_encryption=config.S3_SERVER_SIDE_ENCRYPTION,
            environment=config.VAULT_ENVIRONMENT,
        )
        set_services(build_services(object_store))

    services = get_services()

    try:
        await services.object_store.ensure_bucket()
    except StorageError as e:
        logger.error(f"Object store not ready at startup: {e}")

    if config.SNAPSHOT_PATH:
        load_snapshot(services, config.SNAPSHOT_PATH)

    await services.cleaner.start()


@app.on_event("shutdown")
async def shutdown_event():
    """
    Stop background tasks and optionally snapshot the index.
    """
    logger.info("Vault service shutting down...")

    services = get_services()
    await services.cleaner.stop()

    if config.SNAPSHOT_PATH:
        save_snapshot(services, config.SNAPSHOT_PATH)


app.include_router(upload_router)
app.include_router(file_router)


@app.get("/")
async def root():
    return {"message": "Vault Upload Service API", "status": "running"}


@app.get("/health")
async def health_check():
    """
    Liveness probe for container orchestration.
    """
    return {"status": "healthy", "service": "vault"}


def main() -> None:
    uvicorn.run(
        "vault.main:app",
        host=config.VAULT_HOST,
        port=config.VAULT_PORT,
    )


if __name__ == "__main__":
    main()
