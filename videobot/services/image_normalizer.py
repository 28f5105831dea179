"""Validation and resizing of user photos before generation.

The normalizer works purely on bytes: it decodes the image with Pillow,
rejects photos whose shorter side is below ``min_dimension``, classifies the
orientation, downscales so the larger side is at most ``target_size`` and
re-encodes the result as JPEG.  It never touches the caller's input.
"""
from __future__ import annotations

import base64
import io
import logging

from PIL import Image, ImageOps, UnidentifiedImageError

from videobot.errors import ImageTooSmall, UnreadableImage
from videobot.models import NormalizedImage, Orientation

logger = logging.getLogger(__name__)

# Lower qualities tried, in order, when the data URI is over budget
_FALLBACK_QUALITIES = (72, 64, 56)


class ImageNormalizer:
    def __init__(
        self,
        *,
        min_dimension: int = 200,
        target_size: int = 1024,
        quality: int = 80,
        landscape_ratio: str = "1280:720",
        portrait_ratio: str = "720:1280",
        max_data_uri_bytes: int = 5_000_000,
    ) -> None:
        self.min_dimension = min_dimension
        self.target_size = target_size
        self.quality = quality
        self.max_data_uri_bytes = max_data_uri_bytes
        self._ratios = {
            Orientation.LANDSCAPE: landscape_ratio,
            Orientation.PORTRAIT: portrait_ratio,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def normalize(self, raw: bytes) -> NormalizedImage:
        """Validate *raw* image bytes and return a resized JPEG.

        Raises
        ------
        UnreadableImage
            Pillow cannot decode the bytes.
        ImageTooSmall
            The shorter side is below ``min_dimension``.
        """

        try:
            with Image.open(io.BytesIO(raw)) as opened:
                opened.load()
                # Sizes below refer to the photo as displayed, not as stored
                img = ImageOps.exif_transpose(opened)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
            raise UnreadableImage(f"Cannot decode image: {exc}") from exc

        with img:
            width, height = img.size
            if width <= 0 or height <= 0:
                raise UnreadableImage(f"Invalid image size {width}x{height}")
            if min(width, height) < self.min_dimension:
                raise ImageTooSmall(width, height, self.min_dimension)

            orientation = Orientation.classify(width, height)
            new_size = self.fit_size(width, height)
            rgb = img.convert("RGB")
            if new_size != (width, height):
                rgb = rgb.resize(new_size, Image.Resampling.LANCZOS)
                logger.debug("Resized image %sx%s -> %sx%s", width, height, *new_size)

        payload = self._encode_within_budget(rgb)
        return NormalizedImage(
            width=new_size[0],
            height=new_size[1],
            orientation=orientation,
            payload=payload,
        )

    def aspect_ratio(self, orientation: Orientation) -> str:
        """Return the provider ratio string for *orientation*."""

        return self._ratios[orientation]

    def fit_size(self, width: int, height: int) -> tuple[int, int]:
        """Scale (width, height) so the larger side is at most ``target_size``."""

        longest = max(width, height)
        if longest <= self.target_size:
            return width, height
        scale = self.target_size / longest
        if width >= height:
            return self.target_size, max(1, round(height * scale))
        return max(1, round(width * scale)), self.target_size

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _encode_within_budget(self, img: Image.Image) -> bytes:
        payload = _encode_jpeg(img, self.quality)
        if _data_uri_length(payload) <= self.max_data_uri_bytes:
            return payload

        for quality in _FALLBACK_QUALITIES:
            if quality >= self.quality:
                continue
            payload = _encode_jpeg(img, quality)
            if _data_uri_length(payload) <= self.max_data_uri_bytes:
                logger.info("Re-encoded image at quality %s to fit the payload limit", quality)
                return payload

        logger.warning(
            "Image payload still %s bytes after re-encoding (limit %s)",
            _data_uri_length(payload),
            self.max_data_uri_bytes,
        )
        return payload


# ------------------------------------------------------------------
# Helper functions
# ------------------------------------------------------------------

def _encode_jpeg(img: Image.Image, quality: int) -> bytes:
    buffer = io.BytesIO()
    img.save(buffer, format="JPEG", quality=quality, optimize=True)
    return buffer.getvalue()


def _data_uri_length(payload: bytes) -> int:
    # "data:image/jpeg;base64," prefix plus base64 body
    return len("data:image/jpeg;base64,") + len(base64.b64encode(payload))
