"""
PetLens - classify cat and dog photos from uploads or pasted image URLs

This is the main public API module.
"""

from .core.models import ErrorKind, PreparedImageUrl, ValidationResult
from .core.resolver import prepare_image_url
from .core.service import PetLens
from .core.validators import validate_file, validate_image_url

__version__ = "0.1.0"
__all__ = [
    "ErrorKind",
    "PetLens",
    "PreparedImageUrl",
    "ValidationResult",
    "prepare_image_url",
    "validate_file",
    "validate_image_url",
]
