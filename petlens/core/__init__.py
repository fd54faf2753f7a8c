"""
PetLens - classify cat and dog photos from uploads or pasted image URLs

This package resolves messy user input (redirect links, markup snippets,
encoded CDN URLs) into a direct image URL, fetches it, and runs a
Cat/Dog/Unknown classifier over the image.
"""

__version__ = "0.1.0"
__author__ = "PetLens"
__license__ = "MIT"

from .models import ErrorKind, PreparedImageUrl, UploadedFile, ValidationResult
from .resolver import prepare_image_url
from .service import PetLens

__all__ = [
    "ErrorKind",
    "PetLens",
    "PreparedImageUrl",
    "UploadedFile",
    "ValidationResult",
    "prepare_image_url",
]
