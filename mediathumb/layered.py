"""
LayeredImageFlattener - Composites the visible layers of a PSD document.

Parsing is delegated to psd-tools; compositing is done here so the rules are
explicit: visible pixel layers only, bottom to top, normal alpha-over
blending with layer opacity, clipped to the document canvas.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from PIL import Image
from psd_tools import PSDImage
from psd_tools.constants import BlendMode

from .errors import DecodeError


@dataclass
class LayerImage:
    """
    One pixel layer ready for compositing.

    Attributes:
        name: Layer name (for logging)
        image: Layer pixels, any Pillow mode
        left: Canvas x of the layer's top-left corner (may be negative)
        top: Canvas y of the layer's top-left corner (may be negative)
        visible: False for hidden layers or layers inside hidden groups
        opacity: 0-255
        blend_mode: Name of the layer's blend mode
    """
    name: str
    image: Image.Image
    left: int = 0
    top: int = 0
    visible: bool = True
    opacity: int = 255
    blend_mode: str = 'normal'

    @property
    def bbox(self) -> Tuple[int, int, int, int]:
        return (self.left, self.top, self.left + self.image.width, self.top + self.image.height)


def composite_layers(
    canvas_size: Tuple[int, int],
    layers: Iterable[LayerImage],
    logger: Optional[logging.Logger] = None
) -> Image.Image:
    """
    Composite layers bottom-to-top onto a transparent canvas.

    Args:
        canvas_size: (width, height) of the document
        layers: Layers ordered bottom first
        logger: Optional logger instance

    Returns:
        RGBA image of exactly canvas_size
    """
    logger = logger or logging.getLogger(__name__)
    canvas = Image.new('RGBA', canvas_size, (0, 0, 0, 0))
    canvas_w, canvas_h = canvas_size

    for layer in layers:
        if not layer.visible:
            logger.debug(f"Skipping hidden layer {layer.name!r}")
            continue
        if layer.blend_mode != 'normal':
            logger.debug(f"Layer {layer.name!r}: blend mode {layer.blend_mode} composited as normal")

        left, top, right, bottom = layer.bbox
        clip = (max(left, 0), max(top, 0), min(right, canvas_w), min(bottom, canvas_h))
        if clip[0] >= clip[2] or clip[1] >= clip[3]:
            continue

        tile = layer.image.convert('RGBA')
        if (clip[0], clip[1], clip[2], clip[3]) != (left, top, right, bottom):
            tile = tile.crop((clip[0] - left, clip[1] - top, clip[2] - left, clip[3] - top))

        if layer.opacity < 255:
            alpha = tile.getchannel('A').point(lambda a: a * layer.opacity // 255)
            tile.putalpha(alpha)

        canvas.alpha_composite(tile, dest=(clip[0], clip[1]))

    return canvas


class LayeredImageFlattener:
    """
    Flattens PSD/PSB documents into a single RGBA image.
    """

    def __init__(
        self,
        max_image_pixels: int = 16_777_216 * 4,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize flattener.

        Args:
            max_image_pixels: Largest canvas area accepted
            logger: Optional logger instance
        """
        self.max_image_pixels = max_image_pixels
        self.logger = logger or logging.getLogger(__name__)

    def flatten(self, path: str) -> Image.Image:
        """
        Decode a layered document and composite its visible layers.

        Args:
            path: Path to the PSD file

        Returns:
            RGBA image sized to the document canvas

        Raises:
            DecodeError: On corrupt canvas metadata or layer data
        """
        try:
            psd = PSDImage.open(path)
        except Exception as e:
            raise DecodeError('layered', f"Cannot parse document ({e})", path) from e

        width, height = psd.width, psd.height
        if width <= 0 or height <= 0:
            raise DecodeError('layered', f"Invalid canvas size {width}x{height}", path)
        if width * height > self.max_image_pixels:
            raise DecodeError(
                'layered',
                f"Canvas too large ({width}x{height} exceeds {self.max_image_pixels} pixels)",
                path
            )

        try:
            layers = self.read_layers(psd)
            if not layers:
                self.logger.debug(f"No layer records, using merged image: {path}")
                return self._merged_image(psd, path)
            visible = sum(1 for layer in layers if layer.visible)
            self.logger.debug(f"Compositing {visible}/{len(layers)} visible layers: {path}")
            return composite_layers((width, height), layers, self.logger)
        except DecodeError:
            raise
        except Exception as e:
            raise DecodeError('layered', f"Corrupt layer data ({e})", path) from e

    def read_layers(self, psd) -> List[LayerImage]:
        """Collect pixel layers, bottom first; groups contribute only their children."""
        layers = []
        for layer in psd.descendants():
            if layer.is_group():
                continue
            image = layer.topil()
            if image is None:
                continue
            layers.append(LayerImage(
                name=layer.name,
                image=image,
                left=layer.left,
                top=layer.top,
                visible=layer.is_visible(),
                opacity=layer.opacity,
                blend_mode=self._blend_mode_name(layer.blend_mode),
            ))
        return layers

    @staticmethod
    def _blend_mode_name(mode) -> str:
        if mode in (BlendMode.NORMAL, BlendMode.PASS_THROUGH):
            return 'normal'
        return getattr(mode, 'name', str(mode)).lower()

    def _merged_image(self, psd, path: str) -> Image.Image:
        merged = psd.topil()
        if merged is None:
            raise DecodeError('layered', "Document has neither layers nor merged image data", path)
        return merged.convert('RGBA')
