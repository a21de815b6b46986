"""
Models - Per-request data model for the thumbnail pipeline.

Nothing here is shared between requests: each instance is created, used and
dropped inside one pipeline invocation.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from PIL import Image

from .errors import InvalidParameter


class MediaKind(Enum):
    """Decode strategy chosen by the classifier."""
    RASTER = 'raster'
    LAYERED = 'layered'
    VIDEO = 'video'
    UNSUPPORTED = 'unsupported'


class RequestMode(Enum):
    """Thumbnail requests are resized to a bucket; media requests are not."""
    THUMBNAIL = 'thumbnail'
    MEDIA = 'media'


class SizeBucket(Enum):
    """Named size tier; the edge length for each lives in PipelineConfig."""
    SMALL = 'small'
    MEDIUM = 'medium'
    LARGE = 'large'

    @classmethod
    def parse(cls, value: Optional[str]) -> 'SizeBucket':
        """
        Parse a ``size`` query value.

        Args:
            value: Raw query value, or None/empty when absent

        Returns:
            The matching bucket, MEDIUM when no value was given

        Raises:
            InvalidParameter: If the value names no bucket
        """
        if value is None or value == '':
            return cls.MEDIUM
        try:
            return cls(value.strip().lower())
        except ValueError:
            choices = ', '.join(b.value for b in cls)
            raise InvalidParameter(f"Invalid size {value!r}, expected one of: {choices}")


@dataclass(frozen=True)
class MediaAsset:
    """
    Snapshot of a source file taken at the start of a request.

    Attributes:
        path: Absolute path to the source file
        kind: Decode strategy selected by the classifier
        last_modified: Filesystem mtime (epoch seconds) captured before decoding
        size: File size in bytes
    """
    path: str
    kind: MediaKind
    last_modified: float
    size: int = 0


@dataclass(frozen=True)
class ThumbnailRequest:
    """
    What the caller asked for.

    Attributes:
        mode: Thumbnail (resize to bucket) or Media (native resolution)
        size: Size bucket, only meaningful in Thumbnail mode
    """
    mode: RequestMode = RequestMode.THUMBNAIL
    size: Optional[SizeBucket] = None

    def __post_init__(self):
        if self.mode is RequestMode.THUMBNAIL and self.size is None:
            object.__setattr__(self, 'size', SizeBucket.MEDIUM)
        elif self.mode is RequestMode.MEDIA and self.size is not None:
            object.__setattr__(self, 'size', None)

    @classmethod
    def thumbnail(cls, size: Optional[str] = None) -> 'ThumbnailRequest':
        """Build a Thumbnail-mode request from a raw ``size`` query value."""
        return cls(RequestMode.THUMBNAIL, SizeBucket.parse(size))

    @classmethod
    def media(cls) -> 'ThumbnailRequest':
        return cls(RequestMode.MEDIA)


@dataclass(frozen=True)
class ThumbnailResult:
    """
    Encoded output of one request. Never persisted.

    Attributes:
        data: Encoded image bytes
        content_type: MIME type of ``data``
        last_modified: Source mtime captured at the start of the request
        width: Output width in pixels
        height: Output height in pixels
    """
    data: bytes
    content_type: str
    last_modified: float
    width: int
    height: int


@dataclass
class FrameCandidate:
    """
    A decoded video keyframe under consideration as the representative frame.

    Attributes:
        timestamp: Presentation time in seconds
        image: Decoded RGB frame
        score: Filled in by the FrameScorer
    """
    timestamp: float
    image: Image.Image
    score: Optional[float] = None
