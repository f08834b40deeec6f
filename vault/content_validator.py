"""Content sniffing and best-effort image re-encoding."""

import logging
from io import BytesIO
from typing import Dict, Optional

import filetype
from PIL import Image, UnidentifiedImageError

from common.constants import (
    JPEG_QUALITY,
    MAX_IMAGE_DIMENSION,
    PNG_COMPRESS_LEVEL,
    REENCODE_EXEMPT_TYPES,
    WEBP_QUALITY,
)

logger = logging.getLogger(__name__)

# One encoder per declared type; the output keeps the declared content type.
_ENCODERS: Dict[str, tuple] = {
    "image/jpeg": ("JPEG", {"quality": JPEG_QUALITY, "progressive": True, "optimize": True}),
    "image/png": ("PNG", {"compress_level": PNG_COMPRESS_LEVEL, "optimize": True}),
    "image/webp": ("WEBP", {"quality": WEBP_QUALITY}),
}


class ContentValidator:
    """
    Detects the real type of uploaded bytes and shrinks oversized images.
    """

    def __init__(self, max_dimension: int = MAX_IMAGE_DIMENSION):
        self.max_dimension = max_dimension

    def sniff(self, data: bytes) -> Optional[str]:
        """
        Detect the MIME type from the content's magic number.

        Args:
            data: File content

        Returns:
            Detected MIME type, or None when the content carries no known
            signature (plain text, for example)
        """
        kind = filetype.guess(data)
        if kind is None:
            return None
        return kind.mime

    def should_reencode(self, mime_type: str) -> bool:
        return mime_type.startswith("image/") and mime_type not in REENCODE_EXEMPT_TYPES

    def reencode(self, data: bytes, mime_type: str) -> bytes:
        """
        Fit an image inside max_dimension x max_dimension and re-encode it once
        in its declared format.

        Never raises: any failure returns the original bytes.

        Args:
            data: Original image bytes
            mime_type: Declared MIME type

        Returns:
            Re-encoded bytes, or data unchanged
        """
        encoder = _ENCODERS.get(mime_type)
        if encoder is None:
            return data

        image_format, options = encoder
        try:
            with Image.open(BytesIO(data)) as image:
                if getattr(image, "is_animated", False):
                    return data

                image.thumbnail((self.max_dimension, self.max_dimension))

                if image_format == "JPEG" and image.mode not in ("RGB", "L"):
                    image = image.convert("RGB")

                output = BytesIO()
                image.save(output, format=image_format, **options)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.warning(f"Image optimization failed, keeping original bytes: {e}")
            return data
        except Exception as e:
            logger.warning(f"Unexpected error optimizing image, keeping original bytes: {e}")
            return data

        return output.getvalue()
