"""
ThumbnailPipeline - Sequences classify, decode, resize and encode per request.
"""

import logging
import os
import stat
from typing import Optional, Tuple

from PIL import Image

from .classifier import FormatClassifier
from .config import PipelineConfig
from .encoder import ImageEncoder
from .errors import NotFound, UnsupportedFormat
from .layered import LayeredImageFlattener
from .models import MediaAsset, MediaKind, RequestMode, ThumbnailRequest, ThumbnailResult
from .raster import RasterDecoder
from .resizer import Resizer
from .scoring import FrameScorer
from .video import VideoFrameExtractor


class ThumbnailPipeline:
    """
    Turns one source asset into one encoded image.

    Holds only configuration and stateless stage objects, so a single
    instance serves any number of concurrent requests.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize pipeline and its stages.

        Args:
            config: Pipeline configuration (default: PipelineConfig())
            logger: Optional logger instance
        """
        self.config = config or PipelineConfig()
        self.logger = logger or logging.getLogger(__name__)

        self.classifier = FormatClassifier()
        self.raster = RasterDecoder(max_image_pixels=self.config.max_image_pixels)
        self.flattener = LayeredImageFlattener(max_image_pixels=self.config.max_image_pixels)
        self.extractor = VideoFrameExtractor(candidate_count=self.config.candidate_count)
        self.scorer = FrameScorer(
            target_luma=self.config.target_luma,
            brightness_weight=self.config.brightness_weight,
            entropy_weight=self.config.entropy_weight,
        )
        self.resizer = Resizer()
        self.encoder = ImageEncoder(output_format=self.config.output_format)

        self._decoders = {
            MediaKind.RASTER: self._decode_raster,
            MediaKind.LAYERED: self._decode_layered,
            MediaKind.VIDEO: self._decode_video,
        }

    def stat(self, path: str) -> Tuple[float, int]:
        """
        Read the asset's modification time and size.

        Returns:
            Tuple of (mtime, size_bytes)

        Raises:
            NotFound: If the asset is missing, not a regular file or unreadable
        """
        try:
            st = os.stat(path)
        except OSError as e:
            raise NotFound(f"Asset not found ({e.strerror})", path) from e
        if not stat.S_ISREG(st.st_mode):
            raise NotFound("Asset is not a regular file", path)
        if not os.access(path, os.R_OK):
            raise NotFound("Asset is not readable", path)
        return st.st_mtime, st.st_size

    def prepare(self, path: str, request: ThumbnailRequest) -> MediaAsset:
        """
        Snapshot and classify an asset before any decoding.

        The mtime is captured here, at the start of the request, and carried
        into the result unchanged.

        Raises:
            NotFound: If the asset is missing
            UnsupportedFormat: If no decoder accepts the content
        """
        mtime, size = self.stat(path)
        kind = self.classifier.classify(path)
        if kind is MediaKind.UNSUPPORTED:
            raise UnsupportedFormat("No decoder for this file", path)
        return MediaAsset(path=path, kind=kind, last_modified=mtime, size=size)

    def run(self, asset: MediaAsset, request: ThumbnailRequest, cancel=None) -> ThumbnailResult:
        """
        Decode, resize and encode a prepared asset.

        Args:
            asset: Result of prepare()
            request: Mode and size bucket
            cancel: Optional CancelToken checked between stages

        Returns:
            ThumbnailResult carrying the mtime captured by prepare()

        Raises:
            PipelineError: The first stage failure; nothing partial is returned
        """
        decode = self._decoders.get(asset.kind)
        if decode is None:
            raise UnsupportedFormat(f"No decoder for kind {asset.kind.value}", asset.path)

        self._checkpoint(cancel)
        edge = self.config.edge_for(request)
        img = decode(asset, edge, cancel)

        self._checkpoint(cancel)
        if request.mode is RequestMode.THUMBNAIL:
            img = self.resizer.fit(img, edge)

        self._checkpoint(cancel)
        data, content_type = self.encoder.encode(img, self.config.quality_for(request))
        width, height = img.size
        del img

        size_label = request.size.value if request.size else 'native'
        self.logger.info(
            f"Rendered {os.path.basename(asset.path)} [{asset.kind.value}, "
            f"{request.mode.value}/{size_label}] -> {width}x{height}, {len(data)} bytes"
        )
        return ThumbnailResult(
            data=data,
            content_type=content_type,
            last_modified=asset.last_modified,
            width=width,
            height=height,
        )

    def generate(self, path: str, request: ThumbnailRequest, cancel=None) -> ThumbnailResult:
        """prepare() and run() in one call, on the current thread."""
        return self.run(self.prepare(path, request), request, cancel)

    @staticmethod
    def _checkpoint(cancel) -> None:
        if cancel is not None:
            cancel.raise_if_cancelled()

    def _decode_raster(self, asset: MediaAsset, edge: Optional[int], cancel) -> Image.Image:
        return self.raster.decode(asset.path, target_edge=edge)

    def _decode_layered(self, asset: MediaAsset, edge: Optional[int], cancel) -> Image.Image:
        return self.flattener.flatten(asset.path)

    def _decode_video(self, asset: MediaAsset, edge: Optional[int], cancel) -> Image.Image:
        candidates = self.extractor.iter_candidates(asset.path, cancel=cancel)
        try:
            winner = self.scorer.select(candidates)
        finally:
            candidates.close()
        return winner.image
