"""
Resizer - Scales images to a size bucket while preserving aspect ratio.
"""

import logging
from typing import Optional, Tuple

from PIL import Image


class Resizer:
    """
    Downscales so the longest edge equals a bucket's maximum edge.
    """

    def __init__(
        self,
        resample: Image.Resampling = Image.Resampling.LANCZOS,
        reducing_gap: Optional[float] = 3.0,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize resizer.

        Args:
            resample: Resampling filter (default: LANCZOS)
            reducing_gap: Pillow's two-step reduction gap (None disables)
            logger: Optional logger instance
        """
        if resample == Image.Resampling.NEAREST:
            raise ValueError("Nearest-neighbour resampling is not allowed for downscaling")
        self.resample = resample
        self.reducing_gap = reducing_gap
        self.logger = logger or logging.getLogger(__name__)

    @staticmethod
    def target_size(size: Tuple[int, int], max_edge: int) -> Tuple[int, int]:
        """
        Output dimensions for fitting ``size`` into ``max_edge``.

        The longest edge becomes max_edge, the other is rounded to the nearest
        pixel (at least 1). Sources already within max_edge are unchanged.
        """
        width, height = size
        longest = max(width, height)
        if longest <= max_edge:
            return width, height
        if width >= height:
            return max_edge, max(1, round(height * max_edge / width))
        return max(1, round(width * max_edge / height)), max_edge

    def fit(self, image: Image.Image, max_edge: int) -> Image.Image:
        """
        Fit an image within a square of ``max_edge``; never upscales.

        Args:
            image: Source image
            max_edge: Maximum output edge in pixels

        Returns:
            The resized image, or the source itself when no resize is needed
        """
        size = self.target_size(image.size, max_edge)
        if size == image.size:
            return image

        self.logger.debug(f"Resizing {image.size} -> {size}")
        return image.resize(size, self.resample, reducing_gap=self.reducing_gap)
