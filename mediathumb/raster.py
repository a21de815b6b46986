"""
RasterDecoder - Decodes standard bitmap formats into an RGB/RGBA image.
"""

import logging
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from .classifier import RASTER_FORMATS
from .errors import DecodeError


class RasterDecoder:
    """
    Decodes JPEG, PNG, GIF, WebP, BMP and TIFF files using Pillow.
    """

    def __init__(
        self,
        max_image_pixels: int = 16_777_216 * 4,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize raster decoder.

        Args:
            max_image_pixels: Largest width * height accepted
            logger: Optional logger instance
        """
        self.max_image_pixels = max_image_pixels
        self.logger = logger or logging.getLogger(__name__)

    def decode(self, path: str, target_edge: Optional[int] = None) -> Image.Image:
        """
        Decode a raster file.

        Args:
            path: Path to the image file
            target_edge: Optional final longest edge; lets JPEG decode at a
                reduced scale that is still at least this large

        Returns:
            Fully loaded image in RGB or RGBA mode

        Raises:
            DecodeError: On malformed, unrecognized or oversized input
        """
        try:
            with Image.open(path) as img:
                if img.format not in RASTER_FORMATS:
                    raise DecodeError('raster', f"Unrecognized raster format {img.format}", path)

                width, height = img.size
                if width * height > self.max_image_pixels:
                    raise DecodeError(
                        'raster',
                        f"Image too large ({width}x{height} exceeds {self.max_image_pixels} pixels)",
                        path
                    )

                if target_edge and img.format == 'JPEG':
                    img.draft('RGB', self._draft_box(img.size, target_edge))

                img.load()
                self.logger.debug(f"Decoded {img.format} {img.size} {img.mode}: {path}")
                img = ImageOps.exif_transpose(img)
                return self._convert_color_mode(img)
        except DecodeError:
            raise
        except Image.DecompressionBombError as e:
            raise DecodeError('raster', f"Image too large ({e})", path) from e
        except (UnidentifiedImageError, OSError, ValueError, SyntaxError) as e:
            raise DecodeError('raster', f"Cannot decode image ({e})", path) from e

    @staticmethod
    def _draft_box(size, target_edge: int):
        """Box whose longest side is target_edge, in the source orientation."""
        width, height = size
        scale = target_edge / max(width, height)
        return max(1, int(width * scale)), max(1, int(height * scale))

    def _convert_color_mode(self, img: Image.Image) -> Image.Image:
        """Normalize to RGB, or RGBA when the source carries transparency."""
        if img.mode in ('RGB', 'RGBA'):
            return img
        if img.mode in ('LA', 'PA'):
            return img.convert('RGBA')
        if img.mode == 'P':
            if 'transparency' in img.info:
                return img.convert('RGBA')
            return img.convert('RGB')
        if img.mode.startswith('I;16') or img.mode == 'I':
            # 16-bit greyscale: scale down to 8 bits before widening
            return img.convert('I').point(lambda v: v * (1 / 256)).convert('L').convert('RGB')
        return img.convert('RGB')
