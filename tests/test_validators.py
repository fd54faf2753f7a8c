"""
Tests for upload and URL validation
"""
import base64

import pytest

from petlens.core.models import ERROR_MESSAGES, ErrorKind, UploadedFile
from petlens.core.validators import (
    MAX_UPLOAD_BYTES,
    create_validation_error,
    describe_upload,
    detect_image_mime,
    validate_file,
)


PNG_1X1 = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mP8"
    "/w8AAgMBgN6M6vQAAAAASUVORK5CYII="
)


class TestValidateFile:
    """Test validate_file()"""

    def test_accepts_supported_image(self):
        """JPG, PNG and WEBP within the size cap pass"""
        for mime_type in ("image/jpeg", "image/png", "image/webp"):
            assert validate_file(UploadedFile(mime_type=mime_type, size_bytes=1000)).ok

    def test_rejects_other_types(self):
        """GIF is not an accepted upload type"""
        result = validate_file(UploadedFile(mime_type="image/gif", size_bytes=1000))
        assert not result.ok
        assert result.error_kind == ErrorKind.INVALID_TYPE
        assert result.message == ERROR_MESSAGES[ErrorKind.INVALID_TYPE]

    def test_rejects_large_files(self):
        """Files above 10 MiB fail with file_too_large"""
        result = validate_file(UploadedFile(mime_type="image/png", size_bytes=11 * 1024 * 1024))
        assert result.error_kind == ErrorKind.FILE_TOO_LARGE

    def test_limit_is_inclusive(self):
        """A file of exactly the cap passes"""
        assert validate_file(UploadedFile(mime_type="image/png", size_bytes=MAX_UPLOAD_BYTES)).ok

    def test_type_checked_before_size(self):
        """An oversized file of the wrong type reports the type"""
        result = validate_file(UploadedFile(mime_type="image/gif", size_bytes=MAX_UPLOAD_BYTES * 2))
        assert result.error_kind == ErrorKind.INVALID_TYPE

    def test_custom_limit(self):
        """The cap can be lowered per call"""
        result = validate_file(UploadedFile(mime_type="image/png", size_bytes=2048), max_bytes=1024)
        assert result.error_kind == ErrorKind.FILE_TOO_LARGE


class TestCreateValidationError:
    """Test create_validation_error()"""

    def test_every_kind_has_a_message(self):
        """Each error kind maps to its fixed message"""
        for kind in ErrorKind:
            result = create_validation_error(kind)
            assert not result.ok
            assert result.error_kind == kind
            assert result.message == ERROR_MESSAGES[kind]


class TestDetectImageMime:
    """Test detect_image_mime()"""

    def test_signatures(self):
        """Magic bytes identify the format"""
        assert detect_image_mime(PNG_1X1) == "image/png"
        assert detect_image_mime(b"\xff\xd8\xff\xe0" + b"\x00" * 8) == "image/jpeg"
        assert detect_image_mime(b"RIFF\x00\x00\x00\x00WEBPVP8 ") == "image/webp"
        assert detect_image_mime(b"GIF89a" + b"\x00" * 6) == "image/gif"

    def test_signature_wins_over_name(self):
        """A misnamed PNG is still a PNG"""
        assert detect_image_mime(PNG_1X1, "photo.jpg") == "image/png"

    def test_falls_back_to_name(self):
        """Unknown bytes use the file extension"""
        assert detect_image_mime(b"garbage", "x.WEBP") == "image/webp"
        assert detect_image_mime(b"garbage", "x.jpeg") == "image/jpeg"

    def test_unknown(self):
        """Unknown bytes and names give None"""
        assert detect_image_mime(b"garbage", "notes.txt") is None


class TestDescribeUpload:
    """Test describe_upload()"""

    def test_describes_file(self, tmp_path):
        """Type and size come from the file on disk"""
        image_path = tmp_path / "cat.png"
        image_path.write_bytes(PNG_1X1)
        upload = describe_upload(str(image_path))
        assert upload.mime_type == "image/png"
        assert upload.size_bytes == len(PNG_1X1)
        assert upload.name == "cat.png"

    def test_unknown_content(self, tmp_path):
        """Unrecognized files get a generic type and fail validation"""
        path = tmp_path / "notes.txt"
        path.write_text("hello", encoding="utf-8")
        upload = describe_upload(str(path))
        assert upload.mime_type == "application/octet-stream"
        assert validate_file(upload).error_kind == ErrorKind.INVALID_TYPE

    def test_missing_file(self, tmp_path):
        """Missing files raise FileNotFoundError"""
        with pytest.raises(FileNotFoundError):
            describe_upload(str(tmp_path / "missing.png"))
