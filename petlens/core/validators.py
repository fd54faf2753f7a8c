"""
Input validation - uploaded files and pasted image URLs
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from .models import ErrorKind, UploadedFile, ValidationResult
from .resolver import prepare_image_url

MAX_UPLOAD_MB = 10
MAX_UPLOAD_BYTES = MAX_UPLOAD_MB * 1024 * 1024
ACCEPTED_FILE_TYPES = ".jpg,.jpeg,.png,.webp"
ACCEPTED_MIME_TYPES = frozenset({"image/jpeg", "image/png", "image/webp"})

_EXTENSION_MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".gif": "image/gif",
    ".bmp": "image/bmp",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
}


def create_validation_error(kind: ErrorKind) -> ValidationResult:
    """Failing result carrying the fixed user-facing message for `kind`"""
    return ValidationResult.failure(kind)


def validate_file(file: UploadedFile, max_bytes: int = MAX_UPLOAD_BYTES) -> ValidationResult:
    """
    Check an uploaded file's type and size

    Args:
        file: Uploaded file metadata
        max_bytes: Size cap in bytes

    Returns:
        ValidationResult (`invalid_type` is reported before `file_too_large`)
    """
    if file.mime_type not in ACCEPTED_MIME_TYPES:
        return create_validation_error(ErrorKind.INVALID_TYPE)

    if file.size_bytes > max_bytes:
        return create_validation_error(ErrorKind.FILE_TOO_LARGE)

    return ValidationResult.success()


def validate_image_url(url: str) -> ValidationResult:
    """Validate a pasted URL or snippet without keeping the resolved URL"""
    return prepare_image_url(url).validation


def detect_image_mime(data: bytes, name_hint: str = "") -> Optional[str]:
    """Guess an image MIME type from the file signature, then the file name"""
    header = data[:12]
    if header.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if header.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if header.startswith(b"RIFF") and header[8:12] == b"WEBP":
        return "image/webp"
    if header[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    if header.startswith(b"BM"):
        return "image/bmp"
    if header[:4] in (b"II*\x00", b"MM\x00*"):
        return "image/tiff"

    lower_name = (name_hint or "").lower()
    for extension, mime_type in _EXTENSION_MIME_TYPES.items():
        if lower_name.endswith(extension):
            return mime_type
    return None


def describe_upload(path: str) -> UploadedFile:
    """
    Build upload metadata for a local file

    Raises:
        FileNotFoundError: If the file does not exist
    """
    file_path = Path(path).expanduser().resolve()
    if not file_path.is_file():
        raise FileNotFoundError(f"Image not found: {file_path}")

    with file_path.open("rb") as handle:
        header = handle.read(12)

    return UploadedFile(
        mime_type=detect_image_mime(header, name_hint=file_path.name) or "application/octet-stream",
        size_bytes=file_path.stat().st_size,
        name=file_path.name,
    )
