"""
ImageEncoder - Serializes the final image to the output format.
"""

import io
import logging
from typing import Optional, Tuple

from PIL import Image

from .errors import EncodeError


class ImageEncoder:
    """
    Encodes images with Pillow; WebP by default.
    """

    CONTENT_TYPES = {
        'WEBP': 'image/webp',
        'JPEG': 'image/jpeg',
        'PNG': 'image/png',
    }

    def __init__(
        self,
        output_format: str = 'WEBP',
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize encoder.

        Args:
            output_format: Pillow format name (WEBP, JPEG or PNG)
            logger: Optional logger instance
        """
        output_format = output_format.upper()
        if output_format not in self.CONTENT_TYPES:
            raise ValueError(f"Unsupported output format: {output_format}")
        self.output_format = output_format
        self.logger = logger or logging.getLogger(__name__)

    @property
    def content_type(self) -> str:
        return self.CONTENT_TYPES[self.output_format]

    def encode(self, img: Image.Image, quality: int) -> Tuple[bytes, str]:
        """
        Encode an image.

        Args:
            img: Image to encode
            quality: Encoder quality 1-100 (ignored for PNG)

        Returns:
            Tuple of (encoded_bytes, content_type)

        Raises:
            EncodeError: On zero dimensions or encoder failure
        """
        width, height = img.size
        if width <= 0 or height <= 0:
            raise EncodeError(f"Cannot encode image with dimensions {width}x{height}")

        output = io.BytesIO()
        try:
            if self.output_format == 'WEBP':
                img = self._convert_color_mode(img, keep_alpha=True)
                img.save(output, format='WEBP', quality=quality, method=4)
            elif self.output_format == 'JPEG':
                img = self._convert_color_mode(img, keep_alpha=False)
                img.save(output, format='JPEG', quality=quality, optimize=True)
            else:
                img = self._convert_color_mode(img, keep_alpha=True)
                img.save(output, format='PNG', optimize=True)
        except (OSError, ValueError, KeyError) as e:
            raise EncodeError(f"{self.output_format} encoder failed ({e})") from e

        data = output.getvalue()
        self.logger.debug(f"Encoded {width}x{height} {self.output_format} q={quality}: {len(data)} bytes")
        return data, self.content_type

    def _convert_color_mode(self, img: Image.Image, keep_alpha: bool) -> Image.Image:
        """Convert to RGB/RGBA; without alpha support, flatten onto white."""
        if img.mode in ('RGBA', 'LA', 'P'):
            if img.mode != 'RGBA':
                img = img.convert('RGBA')
            if keep_alpha:
                return img
            background = Image.new('RGB', img.size, (255, 255, 255))
            background.paste(img, mask=img.split()[-1])
            return background
        elif img.mode != 'RGB':
            return img.convert('RGB')
        return img
