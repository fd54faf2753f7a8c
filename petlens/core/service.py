"""
Main service class for petlens
"""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from .classifier import ClassificationError, ImageClassifier
from .config import PetLensSettings, get_settings
from .image_fetcher import ImageFetcher, ImageLoadError
from .models import ClassificationOutcome, ErrorKind, ValidationResult
from .resolver import prepare_image_url
from .validators import describe_upload, validate_file

logger = logging.getLogger("petlens")


class ClassifierBusyError(RuntimeError):
    """Raised when a classification is requested while another is in flight."""


class PetLens:
    """Classify uploaded files or pasted image URLs as Cat, Dog or Unknown"""

    def __init__(
        self,
        settings: Optional[PetLensSettings] = None,
        fetcher: Optional[ImageFetcher] = None,
        classifier: Optional[ImageClassifier] = None,
    ):
        """
        Initialize service

        Args:
            settings: Runtime settings (defaults to the process-wide instance)
            fetcher: Image fetcher for URL input
            classifier: Image classifier
        """
        self.settings = settings or get_settings()
        self.fetcher = fetcher or ImageFetcher(
            timeout=self.settings.fetch_timeout,
            max_bytes=self.settings.max_upload_bytes,
            user_agent=self.settings.user_agent,
        )
        self.classifier = classifier or ImageClassifier(
            model_path=self.settings.model_path,
            input_size=self.settings.model_input_size,
            unknown_threshold=self.settings.unknown_threshold,
        )
        self._lock = threading.Lock()

    def classify_upload(self, path: str) -> ClassificationOutcome:
        """
        Classify a local image file

        Args:
            path: Path to a JPG, PNG or WEBP file

        Returns:
            ClassificationOutcome

        Raises:
            FileNotFoundError: If the file does not exist
            ClassifierBusyError: If another classification is in flight
        """
        upload = describe_upload(path)
        validation = validate_file(upload, max_bytes=self.settings.max_upload_bytes)
        if not validation.ok:
            return ClassificationOutcome(ok=False, source="upload", error=validation)

        image_bytes = Path(path).expanduser().read_bytes()
        return self._classify_bytes(lambda: image_bytes, source="upload")

    def classify_url(self, raw_input: str) -> ClassificationOutcome:
        """
        Resolve, fetch and classify a pasted URL or snippet

        Raises:
            ClassifierBusyError: If another classification is in flight
        """
        prepared = prepare_image_url(raw_input)
        if not prepared.ok or not prepared.normalized_url:
            return ClassificationOutcome(ok=False, source="url", error=prepared.validation)

        normalized_url = prepared.normalized_url
        outcome = self._classify_bytes(
            lambda: self.fetcher.fetch([normalized_url]),
            source="url",
        )
        outcome.resolved_url = normalized_url
        outcome.extracted_from_wrapper = prepared.extracted_from_wrapper
        return outcome

    def _classify_bytes(self, load_bytes, source: str) -> ClassificationOutcome:
        if not self._lock.acquire(blocking=False):
            raise ClassifierBusyError("A classification is already in progress.")

        try:
            image_bytes = load_bytes()
            prediction = self.classifier.classify(image_bytes)
        except ImageLoadError as exc:
            logger.warning("Image load failed (%s): %s", source, exc)
            return ClassificationOutcome(
                ok=False,
                source=source,
                error=ValidationResult.failure(exc.kind),
            )
        except ClassificationError as exc:
            logger.error("Classification failed (%s): %s", source, exc)
            return ClassificationOutcome(
                ok=False,
                source=source,
                error=ValidationResult.failure(ErrorKind.CLASSIFICATION_FAILED),
            )
        finally:
            self._lock.release()

        return ClassificationOutcome(ok=True, source=source, prediction=prediction)
