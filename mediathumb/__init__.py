"""
Media thumbnail server

Renders thumbnails and previews of raster images, layered PSD documents and
videos stored on a shared filesystem, on demand and without a cache:
    /thumbnail/<file>?size=small|medium|large   resized to a size bucket
    /media/<file>                                native resolution
    /raw/<file>                                  original bytes

Caching is left to a reverse proxy in front of the server.
"""

__version__ = "1.0.0"

from .errors import (
    PipelineError,
    NotFound,
    UnsupportedFormat,
    InvalidParameter,
    DecodeError,
    EncodeError,
    PipelineCancelled,
    PipelineTimeout,
)
from .models import (
    MediaAsset,
    MediaKind,
    RequestMode,
    SizeBucket,
    ThumbnailRequest,
    ThumbnailResult,
    FrameCandidate,
)
from .config import PipelineConfig
from .classifier import FormatClassifier
from .raster import RasterDecoder
from .layered import LayeredImageFlattener, LayerImage, composite_layers
from .video import VideoFrameExtractor
from .scoring import FrameScorer
from .resizer import Resizer
from .encoder import ImageEncoder
from .pipeline import ThumbnailPipeline
from .workers import CancelToken, Job, WorkerPool
from .storage import AssetStore
from .service import ThumbnailService

__all__ = [
    "PipelineError",
    "NotFound",
    "UnsupportedFormat",
    "InvalidParameter",
    "DecodeError",
    "EncodeError",
    "PipelineCancelled",
    "PipelineTimeout",
    "MediaAsset",
    "MediaKind",
    "RequestMode",
    "SizeBucket",
    "ThumbnailRequest",
    "ThumbnailResult",
    "FrameCandidate",
    "PipelineConfig",
    "FormatClassifier",
    "RasterDecoder",
    "LayeredImageFlattener",
    "LayerImage",
    "composite_layers",
    "VideoFrameExtractor",
    "FrameScorer",
    "Resizer",
    "ImageEncoder",
    "ThumbnailPipeline",
    "CancelToken",
    "Job",
    "WorkerPool",
    "AssetStore",
    "ThumbnailService",
]
