"""
Cat/Dog/Unknown classification of image bytes
"""
from __future__ import annotations

import io
import logging
import threading
from typing import Any, Callable, Optional, Sequence, Tuple

import numpy as np
from PIL import Image, UnidentifiedImageError

from .image_fetcher import ImageLoadError
from .models import PredictionResult

logger = logging.getLogger("petlens")

CLASS_LABELS = ("Cat", "Dog", "Unknown")
UNKNOWN_CLASS_INDEX = 2
UNKNOWN_CONFIDENCE_THRESHOLD = 0.46
MODEL_INPUT_SIZE = 224

PredictFn = Callable[[np.ndarray], Sequence[float]]


class ClassificationError(RuntimeError):
    """Raised when the model cannot be loaded or produces unusable output."""


def resolve_prediction(
    probabilities: Sequence[float],
    threshold: float = UNKNOWN_CONFIDENCE_THRESHOLD,
) -> Tuple[str, float]:
    """
    Pick a label from class probabilities

    A Cat/Dog winner below `threshold` is reported as Unknown; the
    confidence stays that of the winning class.

    Returns:
        (label, probability percent rounded to one decimal)
    """
    values = [float(value) for value in probabilities]
    if len(values) < len(CLASS_LABELS):
        raise ClassificationError(
            f"Unexpected model output: received {len(values)} values."
        )

    max_index = 0
    for index in range(1, len(values)):
        if values[index] > values[max_index]:
            max_index = index

    max_probability = values[max_index]
    if max_index != UNKNOWN_CLASS_INDEX and max_probability < threshold:
        max_index = UNKNOWN_CLASS_INDEX

    label = CLASS_LABELS[max_index] if max_index < len(CLASS_LABELS) else "Unknown"
    return label, round(max_probability * 100, 1)


def prepare_model_input(image_bytes: bytes, input_size: int = MODEL_INPUT_SIZE) -> np.ndarray:
    """
    Decode, centre-crop and resize an image into a model batch

    Cropping to a square first avoids distorting non-square photos.

    Raises:
        ImageLoadError: If the bytes are not a decodable image
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            image = image.convert("RGB")
            width, height = image.size
            crop_size = min(width, height)
            left = (width - crop_size) // 2
            top = (height - crop_size) // 2
            image = image.crop((left, top, left + crop_size, top + crop_size))
            image = image.resize((input_size, input_size), Image.Resampling.BILINEAR)
            array = np.asarray(image, dtype=np.float32) / 255.0
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise ImageLoadError("Unable to decode image bytes.") from exc

    return np.expand_dims(array, axis=0)


class ImageClassifier:
    """Classify images with a lazily loaded model"""

    def __init__(
        self,
        model_path: str,
        input_size: int = MODEL_INPUT_SIZE,
        unknown_threshold: float = UNKNOWN_CONFIDENCE_THRESHOLD,
        predict_fn: Optional[PredictFn] = None,
    ):
        """
        Initialize classifier

        Args:
            model_path: Path to a saved Keras model
            input_size: Square input edge expected by the model
            unknown_threshold: Minimum Cat/Dog confidence
            predict_fn: Optional callable mapping a batch to class probabilities;
                skips model loading when given
        """
        self.model_path = model_path
        self.input_size = input_size
        self.unknown_threshold = unknown_threshold
        self._predict_fn = predict_fn
        self._load_lock = threading.Lock()

    def preload(self) -> None:
        """Load the model now instead of on the first classification"""
        self._get_predict_fn()

    def classify(self, image_bytes: bytes) -> PredictionResult:
        """
        Classify raw image bytes

        Raises:
            ImageLoadError: If the bytes cannot be decoded
            ClassificationError: If the model fails
        """
        batch = prepare_model_input(image_bytes, self.input_size)
        predict = self._get_predict_fn()
        try:
            output = predict(batch)
        except Exception as exc:
            raise ClassificationError(f"Model prediction failed: {exc}") from exc

        probabilities = np.asarray(output, dtype=np.float32).reshape(-1)
        label, percent = resolve_prediction(probabilities.tolist(), self.unknown_threshold)
        logger.debug("Prediction %s (%.1f%%)", label, percent)
        return PredictionResult(label=label, probability_percent=percent)

    def _get_predict_fn(self) -> PredictFn:
        if self._predict_fn is not None:
            return self._predict_fn
        with self._load_lock:
            if self._predict_fn is None:
                self._predict_fn = self._load_keras_model()
        return self._predict_fn

    def _load_keras_model(self) -> PredictFn:
        try:
            import tensorflow as tf
        except Exception as exc:  # pragma: no cover - optional dependency
            raise ClassificationError(
                "tensorflow is required for the bundled model (pip install petlens[model])."
            ) from exc

        logger.info("Loading classifier model from %s", self.model_path)
        try:
            model: Any = tf.keras.models.load_model(self.model_path)
        except Exception as exc:
            raise ClassificationError(f"Unable to load model: {self.model_path}") from exc

        def predict(batch: np.ndarray) -> Sequence[float]:
            return model.predict(batch, verbose=0)[0]

        return predict
