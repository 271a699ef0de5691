import logging
import os
from pathlib import PurePath
from typing import Protocol

from document_upload.models import UploadRequest, ValidationResult

logger = logging.getLogger(__name__)

if os.name == "nt":
    INVALID_FILENAME_CHARS = frozenset('<>:"/\\|?*') | frozenset(chr(i) for i in range(32))
else:
    INVALID_FILENAME_CHARS = frozenset("/\x00")


def raw_extension(filename: str | None) -> str:
    """Extension of the last path component, dot included, original case.

    A leading dot counts, so ``.pdf`` has the extension ``.pdf``; a trailing
    dot yields no extension.
    """
    name = PurePath(filename or "").name
    dot = name.rfind(".")
    if dot < 0 or dot == len(name) - 1:
        return ""
    return name[dot:]


def file_extension(filename: str | None) -> str:
    return raw_extension(filename).lower()


class Validator(Protocol):
    def validate(self, upload: UploadRequest | None) -> ValidationResult: ...


class FileValidator:
    def __init__(self, *, max_size_bytes: int, allowed_extensions: list[str]):
        self.max_size_bytes = max_size_bytes
        self.allowed_extensions = [ext.lower() for ext in allowed_extensions]

    @property
    def max_size_mb(self) -> int:
        return self.max_size_bytes // 1024 // 1024

    def validate(self, upload: UploadRequest | None) -> ValidationResult:
        if upload is None:
            return ValidationResult(False, ("File is required and cannot be empty.",))

        errors: list[str] = []

        if upload.size <= 0:
            errors.append(
                f"File is required and cannot be empty. Maximum allowed size is {self.max_size_mb} MB."
            )
        elif upload.size > self.max_size_bytes:
            errors.append(f"File size exceeds maximum allowed size of {self.max_size_mb} MB.")

        ext = file_extension(upload.filename)
        if ext not in self.allowed_extensions:
            errors.append(
                f"File type '{ext}' is not allowed. Allowed types: {', '.join(self.allowed_extensions)}"
            )

        name = upload.filename or ""
        if not name.strip() or any(ch in INVALID_FILENAME_CHARS for ch in name):
            errors.append("Invalid file name.")

        is_valid = not errors
        logger.info("File validation result for %s: %s", upload.filename, is_valid)
        return ValidationResult(is_valid, tuple(errors))
