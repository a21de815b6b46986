"""
ThumbnailService - Request-level entry point used by the web layer and CLI.

Resolution, stat and classification happen on the calling thread; decoding
and encoding run on the worker pool.
"""

import logging
from typing import Optional

from .config import PipelineConfig
from .models import MediaKind, ThumbnailRequest, ThumbnailResult
from .pipeline import ThumbnailPipeline
from .storage import AssetStore
from .workers import CancelToken, Job, WorkerPool


class ThumbnailService:
    """
    Ties the asset store, pipeline and worker pool together.
    """

    def __init__(
        self,
        store: AssetStore,
        pipeline: ThumbnailPipeline,
        pool: WorkerPool,
        request_timeout: Optional[float] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize service.

        Args:
            store: Asset store for filename resolution
            pipeline: Thumbnail pipeline
            pool: Worker pool for decode/encode work
            request_timeout: Seconds before a job is cancelled (None waits forever)
            logger: Optional logger instance
        """
        self.store = store
        self.pipeline = pipeline
        self.pool = pool
        self.request_timeout = request_timeout
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_config(cls, root_path: str, config: PipelineConfig,
                    logger: Optional[logging.Logger] = None) -> 'ThumbnailService':
        """Build a service with its store, pipeline and pool from configuration."""
        return cls(
            store=AssetStore(root_path, layout=config.asset_layout),
            pipeline=ThumbnailPipeline(config),
            pool=WorkerPool(config.light_workers, config.heavy_workers),
            request_timeout=config.request_timeout,
            logger=logger,
        )

    def last_modified(self, filename: str) -> float:
        """
        Source mtime for a filename, without decoding anything.

        Raises:
            NotFound: If the asset is missing
        """
        mtime, _ = self.pipeline.stat(self.store.resolve(filename))
        return mtime

    def submit(self, filename: str, request: ThumbnailRequest,
               token: Optional[CancelToken] = None) -> Job:
        """
        Prepare an asset and queue its rendering.

        Raises:
            NotFound: If the asset is missing
            UnsupportedFormat: If no decoder accepts it
        """
        path = self.store.resolve(filename)
        asset = self.pipeline.prepare(path, request)
        heavy = asset.kind is MediaKind.VIDEO
        self.logger.debug(
            f"Queueing {filename} on {'heavy' if heavy else 'light'} pool ({self.pool.pending} pending)"
        )
        return self.pool.submit(self.pipeline.run, asset, request, heavy=heavy, token=token)

    def render(self, filename: str, request: ThumbnailRequest,
               token: Optional[CancelToken] = None) -> ThumbnailResult:
        """
        Render a filename and wait for the result.

        Raises:
            PipelineError: Any typed pipeline failure, PipelineTimeout included
        """
        job = self.submit(filename, request, token)
        return job.result(timeout=self.request_timeout)

    def shutdown(self) -> None:
        self.pool.shutdown(wait=False)
