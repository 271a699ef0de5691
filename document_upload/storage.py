import logging
import threading
from datetime import datetime, timezone
from pathlib import Path, PurePath
from typing import Protocol
from uuid import uuid4

from document_upload.models import UploadRequest, UploadResponse
from document_upload.validation import raw_extension

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class UploadCancelledError(Exception):
    """Raised when the caller cancels a copy that is still in progress."""


class FileStorage(Protocol):
    def init(self) -> None: ...

    def save(self, upload: UploadRequest, cancel: threading.Event | None = None) -> UploadResponse: ...

    def exists(self, file_name: str) -> bool: ...

    def delete(self, file_name: str) -> bool: ...


class LocalFileStorage:
    def __init__(self, root_dir: str, temp_dir: str):
        self.root = Path(root_dir)
        self.temp = Path(temp_dir)

    def init(self) -> None:
        for directory in (self.root, self.temp):
            if directory.is_dir():
                continue
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError:
                logger.exception("Failed to create required directory %s", directory)
                raise
            logger.info("Created directory: %s", directory)

    def _path_for(self, file_name: str) -> Path:
        if not file_name or PurePath(file_name).name != file_name:
            raise ValueError(f"Invalid stored file name: {file_name!r}")
        return self.root / file_name

    def save(self, upload: UploadRequest, cancel: threading.Event | None = None) -> UploadResponse:
        file_id = uuid4().hex
        suffix = raw_extension(upload.filename)
        file_name = f"{file_id}{suffix}"
        target = self.root / file_name

        logger.info("Saving file %s as %s", upload.filename, file_name)

        created = False
        total = 0
        try:
            with target.open("xb") as f:
                created = True
                while True:
                    if cancel is not None and cancel.is_set():
                        raise UploadCancelledError(f"Upload of {upload.filename} was cancelled")
                    chunk = upload.stream.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    f.write(chunk)
                    total += len(chunk)
        except BaseException:
            logger.error("Failed to save file %s as %s", upload.filename, file_name)
            if created:
                self._remove_partial(target)
            raise

        logger.info("Successfully saved file %s with ID %s", file_name, file_id)
        return UploadResponse(
            id=file_id,
            file_name=file_name,
            original_file_name=upload.filename,
            file_size=total,
            content_type=upload.content_type,
            uploaded_at=datetime.now(timezone.utc),
            storage_path=str(target),
        )

    def _remove_partial(self, target: Path) -> None:
        try:
            target.unlink(missing_ok=True)
        except OSError:
            logger.warning("Failed to clean up partial file %s", target, exc_info=True)

    def exists(self, file_name: str) -> bool:
        return self._path_for(file_name).is_file()

    def delete(self, file_name: str) -> bool:
        path = self._path_for(file_name)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning("File %s not found for deletion", file_name)
            return False
        except OSError:
            logger.exception("Failed to delete file %s", file_name)
            raise
        logger.info("Deleted file %s", file_name)
        return True
