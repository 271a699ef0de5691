from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class UploadResponse(CamelModel):
    id: str
    file_name: str
    original_file_name: str
    file_size: int
    content_type: str | None = None
    uploaded_at: datetime
    storage_path: str


class ApiError(CamelModel):
    message: str
    details: str | None = None
    status_code: int = 400


class HealthResponse(CamelModel):
    status: str
    timestamp: datetime
    service: str
    version: str


@dataclass
class UploadRequest:
    """A single uploaded file as handed to the upload pipeline.

    ``size`` is the declared length of ``stream``; validation trusts it and
    storage reports the number of bytes actually copied.
    """

    filename: str
    stream: BinaryIO
    size: int
    content_type: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: tuple[str, ...] = ()
