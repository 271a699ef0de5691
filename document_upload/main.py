import asyncio
import logging
import os
import threading
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, File, Form, HTTPException, Request, Response, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse

from document_upload.config import Settings, get_settings
from document_upload.metrics import UploadMetrics, build_meter_provider
from document_upload.models import ApiError, HealthResponse, UploadRequest, UploadResponse
from document_upload.service import DocumentUploadService, FileValidationError, UploadFailedError
from document_upload.storage import LocalFileStorage
from document_upload.validation import FileValidator

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    logging.getLogger("document_upload").setLevel(level.upper())


def declared_size(file: UploadFile) -> int:
    if file.size is not None:
        return file.size
    stream = file.file
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


def create_app(settings: Settings | None = None, metrics: UploadMetrics | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    meter_provider = None
    if metrics is None:
        meter_provider = build_meter_provider(settings)
        metrics = UploadMetrics(meter_provider)

    storage = LocalFileStorage(settings.storage_dir, settings.temp_dir)
    validator = FileValidator(
        max_size_bytes=settings.max_file_size_bytes,
        allowed_extensions=settings.allowed_extensions,
    )
    service = DocumentUploadService(validator, storage, metrics)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        logger.info("Starting %s (environment: %s)", settings.service_name, settings.app_env)
        storage.init()
        yield
        logger.info("Application is shutting down...")
        if meter_provider is not None:
            meter_provider.shutdown()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description=settings.api_description,
        lifespan=lifespan,
    )
    app.state.upload_service = service

    def error_response(status_code: int, message: str, details: str | None = None) -> JSONResponse:
        error = ApiError(message=message, details=details, status_code=status_code)
        return JSONResponse(
            status_code=status_code,
            content=error.model_dump(by_alias=True, exclude_none=True),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(_: Request, exc: RequestValidationError):
        missing_fields = [
            ".".join(str(item) for item in error["loc"] if item != "body")
            for error in exc.errors()
            if error.get("type") == "missing"
        ]
        if missing_fields:
            message = f"missing parameters: {', '.join(missing_fields)}"
        else:
            message = "invalid request parameters"
        return error_response(400, message)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(_: Request, exc: HTTPException):
        message = str(exc.detail) if exc.detail else "request failed"
        return error_response(exc.status_code, message)

    @app.exception_handler(FileValidationError)
    async def file_validation_exception_handler(_: Request, exc: FileValidationError):
        logger.warning("Validation error during upload: %s", exc.message)
        return error_response(400, exc.message)

    @app.exception_handler(UploadFailedError)
    async def upload_failed_exception_handler(_: Request, exc: UploadFailedError):
        cause = exc.__cause__ or exc
        logger.error("Unexpected error during document upload: %s", cause)
        return error_response(500, "An error occurred while processing the upload.", str(cause))

    @app.exception_handler(Exception)
    async def unexpected_exception_handler(request: Request, exc: Exception):
        logger.error("Unexpected error handling %s %s", request.method, request.url.path, exc_info=exc)
        return error_response(500, "An error occurred while processing the upload.", str(exc))

    @app.get("/", include_in_schema=False)
    def root() -> RedirectResponse:
        return RedirectResponse(url=app.docs_url or "/openapi.json")

    @app.get("/health")
    def health() -> JSONResponse:
        checks = {
            "storage": os.access(storage.root, os.W_OK),
            "temp": os.access(storage.temp, os.W_OK),
        }
        healthy = all(checks.values())
        return JSONResponse(
            status_code=200 if healthy else 503,
            content={
                "status": "Healthy" if healthy else "Unhealthy",
                "checks": {name: "Healthy" if ok else "Unhealthy" for name, ok in checks.items()},
            },
        )

    @app.get("/api/documents/health", response_model=HealthResponse, tags=["Document Upload"])
    def documents_health() -> HealthResponse:
        logger.debug("Health check requested")
        return HealthResponse(
            status="Healthy",
            timestamp=datetime.now(timezone.utc),
            service=settings.service_name,
            version=settings.service_version,
        )

    @app.post(
        "/api/documents/upload",
        response_model=UploadResponse,
        status_code=201,
        tags=["Document Upload"],
        summary="Upload a document",
        responses={400: {"model": ApiError}, 500: {"model": ApiError}},
    )
    async def upload_document(
        response: Response,
        file: UploadFile | None = File(None),
        description: str | None = Form(None),
    ):
        if file is None:
            logger.warning("Upload request received with null file")
            raise HTTPException(status_code=400, detail="File is required")

        logger.info("Received upload request for file: %s", file.filename)

        request = UploadRequest(
            filename=file.filename or "",
            stream=file.file,
            size=declared_size(file),
            content_type=file.content_type,
            description=description,
        )
        cancel = threading.Event()
        try:
            result = await run_in_threadpool(service.upload, request, cancel)
        except asyncio.CancelledError:
            cancel.set()
            raise

        logger.info("Upload completed successfully for file ID: %s", result.id)
        response.headers["Location"] = f"/api/documents/{result.id}"
        return result

    return app


app = create_app()


def main() -> None:
    import uvicorn

    uvicorn.run("document_upload.main:app", host="0.0.0.0", port=int(os.environ.get("PORT", 8080)))


if __name__ == "__main__":
    main()
