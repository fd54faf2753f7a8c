"""
Data models for petlens
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """User-visible failure categories"""
    INVALID_TYPE = "invalid_type"
    FILE_TOO_LARGE = "file_too_large"
    INVALID_URL = "invalid_url"
    CORS_BLOCKED = "cors_blocked"
    IMAGE_LOAD_FAILED = "image_load_failed"
    CLASSIFICATION_FAILED = "classification_failed"


ERROR_MESSAGES = {
    ErrorKind.INVALID_TYPE: "Please upload JPG, PNG, or WEBP images only.",
    ErrorKind.FILE_TOO_LARGE: "Image exceeds 10MB. Choose a smaller file.",
    ErrorKind.INVALID_URL: "Enter a valid absolute image URL (http/https).",
    ErrorKind.CORS_BLOCKED: (
        "This URL blocks browser access (CORS). Upload the image directly instead."
    ),
    ErrorKind.IMAGE_LOAD_FAILED: "Could not load image from this source. Try another image.",
    ErrorKind.CLASSIFICATION_FAILED: "Model prediction failed. Refresh and try again.",
}


@dataclass
class ValidationResult:
    """Outcome of a validation step"""
    ok: bool
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None

    @classmethod
    def success(cls) -> "ValidationResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, kind: ErrorKind) -> "ValidationResult":
        return cls(ok=False, error_kind=kind, message=ERROR_MESSAGES[kind])


@dataclass
class PreparedImageUrl:
    """Result of resolving raw user input into a fetchable image URL"""
    normalized_url: Optional[str]
    ok: bool
    error_kind: Optional[ErrorKind] = None
    extracted_from_wrapper: bool = False
    message: Optional[str] = None

    @property
    def validation(self) -> ValidationResult:
        if self.ok:
            return ValidationResult.success()
        return ValidationResult(ok=False, error_kind=self.error_kind, message=self.message)

    def __str__(self):
        if not self.ok:
            return f"Unresolved ({self.error_kind.value if self.error_kind else 'unknown'})"
        suffix = " (unwrapped)" if self.extracted_from_wrapper else ""
        return f"{self.normalized_url}{suffix}"


@dataclass
class UploadedFile:
    """Metadata of a user-supplied image file"""
    mime_type: str
    size_bytes: int
    name: str = ""


@dataclass
class PredictionResult:
    """Classifier output for one image"""
    label: str
    probability_percent: float
    timestamp: float = field(default_factory=time.time)

    def __str__(self):
        return f"{self.label} ({self.probability_percent:.1f}%)"


@dataclass
class ClassificationOutcome:
    """End-to-end result of classifying an upload or a URL"""
    ok: bool
    source: str
    prediction: Optional[PredictionResult] = None
    error: Optional[ValidationResult] = None
    resolved_url: Optional[str] = None
    extracted_from_wrapper: bool = False

    def to_dict(self) -> dict:
        payload = {
            "ok": self.ok,
            "source": self.source,
            "resolved_url": self.resolved_url,
            "extracted_from_wrapper": self.extracted_from_wrapper,
        }
        if self.prediction is not None:
            payload["label"] = self.prediction.label
            payload["probability_percent"] = self.prediction.probability_percent
        if self.error is not None:
            payload["error"] = self.error.error_kind.value if self.error.error_kind else None
            payload["message"] = self.error.message
        return payload
