"""
FormatClassifier - Picks a decode strategy from file content.

The extension is never trusted: each strategy is tried with a cheap probe of
the decoder that would handle it, so a mislabeled file lands in the decoder
that can actually read it, and anything no decoder accepts is UNSUPPORTED.
"""

import logging
import struct
from typing import Optional

import av
from av.error import FFmpegError
from PIL import Image, UnidentifiedImageError

from .errors import NotFound
from .models import MediaKind


RASTER_FORMATS = {'JPEG', 'PNG', 'GIF', 'WEBP', 'BMP', 'TIFF'}

PSD_SIGNATURE = b'8BPS'
PSD_DEPTHS = {1, 8, 16, 32}

SNIFF_BYTES = 512


def _is_psd_header(head: bytes) -> bool:
    """Check a PSD/PSB file header for sane canvas metadata."""
    if len(head) < 26 or head[:4] != PSD_SIGNATURE:
        return False
    version, channels, height, width, depth = struct.unpack('>H6xHIIH', head[4:24])
    return (
        version in (1, 2)
        and 1 <= channels <= 56
        and height > 0
        and width > 0
        and depth in PSD_DEPTHS
    )


def _is_video_container(head: bytes) -> bool:
    """Recognize the container signatures PyAV is asked to probe."""
    if len(head) >= 12 and head[4:8] == b'ftyp':
        return True                                      # MP4 / MOV / 3GP / M4V
    if head[:4] == b'\x1a\x45\xdf\xa3':
        return True                                      # Matroska / WebM
    if head[:4] == b'RIFF' and head[8:12] == b'AVI ':
        return True
    if head[:3] == b'FLV':
        return True
    if head[:4] in (b'\x00\x00\x01\xba', b'\x00\x00\x01\xb3'):
        return True                                      # MPEG-PS / MPEG-1/2 ES
    if head[:4] == b'\x30\x26\xb2\x75':
        return True                                      # ASF / WMV
    if head[:4] == b'OggS':
        return True
    if len(head) > 188 and head[0] == 0x47 and head[188] == 0x47:
        return True                                      # MPEG-TS
    return False


class FormatClassifier:
    """
    Classifies a file as RASTER, LAYERED, VIDEO or UNSUPPORTED.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize classifier.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(__name__)

    def classify(self, path: str) -> MediaKind:
        """
        Classify a file by probing its content.

        Args:
            path: Path to the file

        Returns:
            The decode strategy; UNSUPPORTED when nothing can decode it

        Raises:
            NotFound: If the file cannot be read
        """
        head = self._read_head(path)

        if _is_psd_header(head):
            kind = MediaKind.LAYERED
        elif self._probe_raster(path):
            kind = MediaKind.RASTER
        elif _is_video_container(head) and self._probe_video(path):
            kind = MediaKind.VIDEO
        else:
            kind = MediaKind.UNSUPPORTED

        self.logger.debug(f"Classified {path} as {kind.value}")
        return kind

    def _read_head(self, path: str) -> bytes:
        try:
            with open(path, 'rb') as f:
                return f.read(SNIFF_BYTES)
        except OSError as e:
            raise NotFound(f"Cannot read asset ({e.strerror})", path) from e

    def _probe_raster(self, path: str) -> bool:
        """Header-only Pillow open; true for the raster formats we decode."""
        try:
            with Image.open(path) as img:
                return img.format in RASTER_FORMATS
        except Image.DecompressionBombError as e:
            # header parsed fine; the decoder reports the size as a typed error
            self.logger.debug(f"Raster probe: oversized image {path}: {e}")
            return True
        except (UnidentifiedImageError, OSError, ValueError, SyntaxError) as e:
            self.logger.debug(f"Raster probe rejected {path}: {e}")
            return False

    def _probe_video(self, path: str) -> bool:
        """Open the container with PyAV and look for a video stream."""
        try:
            with av.open(path) as container:
                return len(container.streams.video) > 0
        except (FFmpegError, OSError, ValueError) as e:
            self.logger.debug(f"Video probe rejected {path}: {e}")
            return False
