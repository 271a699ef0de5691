import logging
import threading
import time

from document_upload.metrics import UploadMetrics
from document_upload.models import UploadRequest, UploadResponse
from document_upload.storage import FileStorage
from document_upload.validation import Validator, file_extension

logger = logging.getLogger(__name__)


class FileValidationError(Exception):
    """The upload was rejected by validation; the client can correct it."""

    def __init__(self, message: str, errors: tuple[str, ...] = ()):
        super().__init__(message)
        self.message = message
        self.errors = errors


class UploadFailedError(Exception):
    """Storing a validated upload failed. The cause is chained."""


class DocumentUploadService:
    def __init__(self, validator: Validator, storage: FileStorage, metrics: UploadMetrics):
        self.validator = validator
        self.storage = storage
        self.metrics = metrics

    def upload(self, request: UploadRequest, cancel: threading.Event | None = None) -> UploadResponse:
        started = time.perf_counter()
        ext = file_extension(request.filename)

        logger.info("Starting document upload for file: %s", request.filename)

        result = self.validator.validate(request)
        if not result.is_valid:
            error_message = "; ".join(result.errors)
            logger.warning("File validation failed for %s: %s", request.filename, error_message)
            self.metrics.record_validation_error(ext, error_message)
            raise FileValidationError(f"File validation failed: {error_message}", result.errors)

        try:
            response = self.storage.save(request, cancel)
        except Exception as exc:
            elapsed_ms = (time.perf_counter() - started) * 1000
            self.metrics.record_upload_error(ext, type(exc).__name__)
            logger.exception(
                "Failed to upload document %s after %.1fms", request.filename, elapsed_ms
            )
            raise UploadFailedError("Failed to save the uploaded file.") from exc

        elapsed_ms = (time.perf_counter() - started) * 1000
        self.metrics.record_upload(ext, response.file_size, elapsed_ms)
        logger.info(
            "Successfully uploaded document %s with ID %s in %.1fms",
            request.filename,
            response.id,
            elapsed_ms,
        )
        return response
