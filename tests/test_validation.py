import io

import pytest

from document_upload.models import UploadRequest
from document_upload.validation import FileValidator, file_extension

MAX_BYTES = 100 * 1024 * 1024


def make_upload(filename: str, size: int) -> UploadRequest:
    return UploadRequest(filename=filename, stream=io.BytesIO(), size=size, content_type="application/pdf")


@pytest.fixture
def validator():
    return FileValidator(max_size_bytes=MAX_BYTES, allowed_extensions=[".pdf", ".docx", ".doc", ".txt"])


def test_valid_file(validator):
    result = validator.validate(make_upload("report.pdf", 2048))
    assert result.is_valid
    assert result.errors == ()


def test_extension_check_is_case_insensitive(validator):
    assert validator.validate(make_upload("REPORT.PDF", 10)).is_valid


def test_absent_file(validator):
    result = validator.validate(None)
    assert not result.is_valid
    assert result.errors == ("File is required and cannot be empty.",)


@pytest.mark.parametrize("size", [0, MAX_BYTES + 1, 200 * 1024 * 1024])
def test_size_outside_limits_mentions_limit(validator, size):
    result = validator.validate(make_upload("report.pdf", size))
    assert not result.is_valid
    assert any("100 MB" in error for error in result.errors)


def test_size_equal_to_limit_is_allowed(validator):
    assert validator.validate(make_upload("report.pdf", MAX_BYTES)).is_valid


def test_disallowed_extension_lists_allowed_types(validator):
    result = validator.validate(make_upload("tool.exe", 10))
    assert not result.is_valid
    assert result.errors == ("File type '.exe' is not allowed. Allowed types: .pdf, .docx, .doc, .txt",)


def test_missing_extension_is_rejected(validator):
    result = validator.validate(make_upload("README", 10))
    assert "File type '' is not allowed" in result.errors[0]


@pytest.mark.parametrize("filename", ["   ", "dir/report.pdf", "bad\x00name.pdf"])
def test_invalid_file_names(validator, filename):
    result = validator.validate(make_upload(filename, 10))
    assert not result.is_valid
    assert "Invalid file name." in result.errors


def test_all_rules_are_accumulated(validator):
    result = validator.validate(make_upload("dir/huge.exe", MAX_BYTES + 1))
    assert len(result.errors) == 3
    assert "100 MB" in result.errors[0]
    assert "not allowed" in result.errors[1]
    assert result.errors[2] == "Invalid file name."


@pytest.mark.parametrize(
    "filename, expected",
    [(".pdf", ".pdf"), ("archive.tar.TXT", ".txt"), ("dir.d/README", ""), ("trailing.", "")],
)
def test_file_extension(filename, expected):
    assert file_extension(filename) == expected


def test_dot_named_file_uses_whole_name_as_extension(validator):
    assert validator.validate(make_upload(".pdf", 10)).is_valid
