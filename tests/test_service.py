"""
Tests for the PetLens service
"""
import io

import pytest
from PIL import Image

from petlens.core.classifier import ImageClassifier
from petlens.core.config import PetLensSettings
from petlens.core.image_fetcher import ImageLoadError, SourceBlockedError
from petlens.core.models import ErrorKind
from petlens.core.service import ClassifierBusyError, PetLens


def _image_bytes(image_format="PNG"):
    buffer = io.BytesIO()
    Image.new("RGB", (64, 48), (90, 90, 90)).save(buffer, format=image_format)
    return buffer.getvalue()


class _FakeFetcher:
    def __init__(self, data=None, error=None):
        self.data = data
        self.error = error
        self.requested = []

    def fetch(self, urls):
        self.requested.append(list(urls))
        if self.error is not None:
            raise self.error
        return self.data


def _service(fetcher=None, probabilities=(0.88, 0.07, 0.05), predict_fn=None):
    classifier = ImageClassifier(
        "unused.keras",
        predict_fn=predict_fn or (lambda batch: list(probabilities)),
    )
    return PetLens(
        settings=PetLensSettings(),
        fetcher=fetcher or _FakeFetcher(data=_image_bytes()),
        classifier=classifier,
    )


class TestClassifyUrl:
    """Test PetLens.classify_url()"""

    def test_wrapped_url(self):
        """The unwrapped URL is fetched and reported"""
        fetcher = _FakeFetcher(data=_image_bytes())
        outcome = _service(fetcher).classify_url(
            "https://www.google.com/imgres?imgurl=https%3A%2F%2Fcdn.example%2Fcat.png"
        )
        assert outcome.ok
        assert outcome.source == "url"
        assert outcome.prediction.label == "Cat"
        assert outcome.prediction.probability_percent == 88.0
        assert outcome.resolved_url == "https://cdn.example/cat.png"
        assert outcome.extracted_from_wrapper
        assert fetcher.requested == [["https://cdn.example/cat.png"]]

    def test_invalid_input_is_not_fetched(self):
        """Unresolvable input fails before any request"""
        fetcher = _FakeFetcher(data=_image_bytes())
        outcome = _service(fetcher).classify_url("not a url")
        assert not outcome.ok
        assert outcome.error.error_kind == ErrorKind.INVALID_URL
        assert fetcher.requested == []

    def test_blocked_source(self):
        """Transport failures are reported as cors_blocked"""
        fetcher = _FakeFetcher(error=SourceBlockedError("refused"))
        outcome = _service(fetcher).classify_url("https://example.com/cat.jpg")
        assert outcome.error.error_kind == ErrorKind.CORS_BLOCKED
        assert outcome.resolved_url == "https://example.com/cat.jpg"

    def test_load_failure(self):
        """Unusable responses are reported as image_load_failed"""
        fetcher = _FakeFetcher(error=ImageLoadError("empty"))
        outcome = _service(fetcher).classify_url("https://example.com/cat.jpg")
        assert outcome.error.error_kind == ErrorKind.IMAGE_LOAD_FAILED

    def test_undecodable_bytes(self):
        """Bytes that are not an image are reported as image_load_failed"""
        fetcher = _FakeFetcher(data=b"<html>not an image</html>")
        outcome = _service(fetcher).classify_url("https://example.com/cat.jpg")
        assert outcome.error.error_kind == ErrorKind.IMAGE_LOAD_FAILED

    def test_model_failure(self):
        """Predictor errors are reported as classification_failed"""
        def predict(batch):
            raise RuntimeError("model exploded")

        outcome = _service(predict_fn=predict).classify_url("https://example.com/cat.jpg")
        assert not outcome.ok
        assert outcome.error.error_kind == ErrorKind.CLASSIFICATION_FAILED

    def test_busy_service_rejects_new_requests(self):
        """Only one classification runs at a time"""
        service = _service()
        service._lock.acquire()
        try:
            with pytest.raises(ClassifierBusyError):
                service.classify_url("https://example.com/cat.jpg")
        finally:
            service._lock.release()
        assert service.classify_url("https://example.com/cat.jpg").ok

    def test_to_dict(self):
        """Outcomes serialize to flat dictionaries"""
        outcome = _service().classify_url("https://example.com/cat.jpg")
        payload = outcome.to_dict()
        assert payload["ok"] is True
        assert payload["label"] == "Cat"
        assert payload["resolved_url"] == "https://example.com/cat.jpg"
        assert "error" not in payload


class TestClassifyUpload:
    """Test PetLens.classify_upload()"""

    def test_png_upload(self, tmp_path):
        """Accepted files are classified from disk"""
        path = tmp_path / "pet.png"
        path.write_bytes(_image_bytes())
        outcome = _service(probabilities=(0.1, 0.85, 0.05)).classify_upload(str(path))
        assert outcome.ok
        assert outcome.source == "upload"
        assert outcome.prediction.label == "Dog"
        assert outcome.resolved_url is None

    def test_gif_upload_rejected(self, tmp_path):
        """GIF files fail validation before classification"""
        path = tmp_path / "pet.gif"
        path.write_bytes(_image_bytes(image_format="GIF"))
        outcome = _service().classify_upload(str(path))
        assert not outcome.ok
        assert outcome.error.error_kind == ErrorKind.INVALID_TYPE

    def test_oversized_upload_rejected(self, tmp_path):
        """Files above the configured cap fail with file_too_large"""
        path = tmp_path / "pet.png"
        path.write_bytes(_image_bytes())
        service = _service()
        service.settings = PetLensSettings(max_upload_bytes=10)
        outcome = service.classify_upload(str(path))
        assert outcome.error.error_kind == ErrorKind.FILE_TOO_LARGE

    def test_missing_upload(self, tmp_path):
        """Missing files raise FileNotFoundError"""
        with pytest.raises(FileNotFoundError):
            _service().classify_upload(str(tmp_path / "missing.png"))
