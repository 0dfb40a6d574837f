"""
Image re-orientation backed by Pillow.

Pixel data is rotated/flipped according to the EXIF orientation tag so the
image displays upright without relying on viewers honouring the tag.
"""

import io
import logging

from PIL import Image, ImageOps

from .config import DEFAULT_JPEG_QUALITY
from .exceptions import TranscodeError

logger = logging.getLogger(__name__)

EXIF_ORIENTATION_TAG = 0x0112

# Multi-Picture JPEGs are written back as their primary JPEG frame
JPEG_FORMATS = ("JPEG", "MPO")


class ImageTranscoder:
    """Re-encodes images with their EXIF orientation applied to the pixels."""

    def __init__(self, jpeg_quality: int = DEFAULT_JPEG_QUALITY):
        self.jpeg_quality = jpeg_quality

    def reorient(self, data: bytes) -> bytes:
        """
        Auto-orient an encoded image.

        Args:
            data: Encoded image bytes

        Returns:
            Encoded image bytes in the same format (MPO as plain JPEG),
            orientation normalized

        Raises:
            TranscodeError: If the data cannot be decoded or re-encoded
        """
        if not data:
            raise TranscodeError(message="Cannot reorient empty image data")

        image_format = None
        try:
            with Image.open(io.BytesIO(data)) as image:
                image_format = image.format
                orientation = image.getexif().get(EXIF_ORIENTATION_TAG, 1)
                image.load()
                if image_format == "MPO" and getattr(image, "n_frames", 1) > 1:
                    logger.info(f"Keeping primary frame only, dropping {image.n_frames - 1} secondary MPO frame(s)")
                oriented = ImageOps.exif_transpose(image)
                output = self._encode(oriented, image_format, image.info)
        except TranscodeError:
            raise
        except Exception as e:
            raise TranscodeError(
                message=f"Failed to reorient image: {e}",
                image_format=image_format,
                original_exception=e,
            )

        logger.debug(
            f"Reoriented {image_format} image (orientation {orientation})",
            extra={"metrics": {"bytes_in": len(data), "bytes_out": len(output)}},
        )
        return output

    def _encode(self, image: Image.Image, image_format: str, source_info: dict) -> bytes:
        if not image_format:
            raise TranscodeError(message="Unable to determine source image format")

        params = {}
        icc_profile = source_info.get("icc_profile")
        if icc_profile:
            params["icc_profile"] = icc_profile
        # exif_transpose leaves the updated EXIF block (orientation removed) in info
        exif = image.info.get("exif")
        if exif:
            params["exif"] = exif
        if image_format in JPEG_FORMATS:
            params["quality"] = self.jpeg_quality
            image_format = "JPEG"

        buffer = io.BytesIO()
        image.save(buffer, format=image_format, **params)
        return buffer.getvalue()
