"""
PipelineConfig - Tunables for decoding, scoring, resizing, encoding and the
worker pool, loaded from MEDIATHUMB_* environment variables.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .models import RequestMode, SizeBucket, ThumbnailRequest


DEFAULT_BUCKET_EDGES = {
    SizeBucket.SMALL: 150,
    SizeBucket.MEDIUM: 400,
    SizeBucket.LARGE: 1200,
}

OUTPUT_FORMATS = ('WEBP', 'JPEG', 'PNG')
ASSET_LAYOUTS = ('flat', 'sharded')


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value not in (None, '') else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value not in (None, '') else default


@dataclass
class PipelineConfig:
    """
    Configuration for the thumbnail pipeline.

    Attributes:
        bucket_edges: Maximum output edge (px) per size bucket
        thumbnail_quality: Encoder quality for Thumbnail mode
        media_quality: Encoder quality for Media mode
        output_format: Pillow format name of the output (WEBP, JPEG, PNG)
        candidate_count: Number of video keyframes considered (K)
        target_luma: Mid-range mean luma the brightness term rewards
        brightness_weight: Weight of the brightness-distance term
        entropy_weight: Weight of the histogram entropy term
        light_workers: Pool size for raster and layered decodes
        heavy_workers: Pool size for video decodes
        request_timeout: Seconds before a queued or running job is cancelled
        max_image_pixels: Largest raster/canvas area accepted for decoding
        asset_layout: 'flat' or 'sharded' (hash-prefixed subdirectories)
    """
    bucket_edges: Dict[SizeBucket, int] = field(
        default_factory=lambda: dict(DEFAULT_BUCKET_EDGES)
    )
    thumbnail_quality: int = 80
    media_quality: int = 95
    output_format: str = 'WEBP'
    candidate_count: int = 5
    target_luma: float = 128.0
    brightness_weight: float = 0.5
    entropy_weight: float = 0.5
    light_workers: int = 4
    heavy_workers: int = 2
    request_timeout: Optional[float] = 60.0
    max_image_pixels: int = 16_777_216 * 4
    asset_layout: str = 'flat'

    @classmethod
    def from_env(cls) -> 'PipelineConfig':
        """Create configuration from MEDIATHUMB_* environment variables."""
        timeout = _env_float('MEDIATHUMB_REQUEST_TIMEOUT', 60.0)
        return cls(
            bucket_edges={
                SizeBucket.SMALL: _env_int('MEDIATHUMB_SMALL_EDGE', DEFAULT_BUCKET_EDGES[SizeBucket.SMALL]),
                SizeBucket.MEDIUM: _env_int('MEDIATHUMB_MEDIUM_EDGE', DEFAULT_BUCKET_EDGES[SizeBucket.MEDIUM]),
                SizeBucket.LARGE: _env_int('MEDIATHUMB_LARGE_EDGE', DEFAULT_BUCKET_EDGES[SizeBucket.LARGE]),
            },
            thumbnail_quality=_env_int('MEDIATHUMB_THUMBNAIL_QUALITY', 80),
            media_quality=_env_int('MEDIATHUMB_MEDIA_QUALITY', 95),
            output_format=os.getenv('MEDIATHUMB_OUTPUT_FORMAT', 'WEBP').upper(),
            candidate_count=_env_int('MEDIATHUMB_CANDIDATE_COUNT', 5),
            target_luma=_env_float('MEDIATHUMB_TARGET_LUMA', 128.0),
            brightness_weight=_env_float('MEDIATHUMB_BRIGHTNESS_WEIGHT', 0.5),
            entropy_weight=_env_float('MEDIATHUMB_ENTROPY_WEIGHT', 0.5),
            light_workers=_env_int('MEDIATHUMB_LIGHT_WORKERS', 4),
            heavy_workers=_env_int('MEDIATHUMB_HEAVY_WORKERS', 2),
            request_timeout=timeout if timeout > 0 else None,
            max_image_pixels=_env_int('MEDIATHUMB_MAX_IMAGE_PIXELS', 16_777_216 * 4),
            asset_layout=os.getenv('MEDIATHUMB_ASSET_LAYOUT', 'flat').lower(),
        )

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        for bucket in SizeBucket:
            edge = self.bucket_edges.get(bucket)
            if edge is None:
                errors.append(f"Missing edge length for size bucket '{bucket.value}'")
            elif edge < 1:
                errors.append(f"Edge length for '{bucket.value}' must be positive, got {edge}")

        for name in ('thumbnail_quality', 'media_quality'):
            value = getattr(self, name)
            if not 1 <= value <= 100:
                errors.append(f"{name} must be between 1 and 100, got {value}")

        if self.output_format not in OUTPUT_FORMATS:
            errors.append(
                f"Unsupported output format {self.output_format!r} "
                f"(choose from {', '.join(OUTPUT_FORMATS)})"
            )
        if self.candidate_count < 1:
            errors.append("candidate_count must be at least 1")
        if not 0 <= self.target_luma <= 255:
            errors.append("target_luma must be between 0 and 255")
        if self.brightness_weight < 0 or self.entropy_weight < 0:
            errors.append("Scoring weights must not be negative")
        if self.brightness_weight + self.entropy_weight == 0:
            errors.append("At least one scoring weight must be positive")
        if self.light_workers < 1 or self.heavy_workers < 1:
            errors.append("Worker pools need at least one worker each")
        if self.max_image_pixels < 1:
            errors.append("max_image_pixels must be positive")
        if self.asset_layout not in ASSET_LAYOUTS:
            errors.append(
                f"Unknown asset layout {self.asset_layout!r} "
                f"(choose from {', '.join(ASSET_LAYOUTS)})"
            )

        return errors

    def edge_for(self, request: ThumbnailRequest) -> Optional[int]:
        """Maximum output edge for a request, or None when no resize applies."""
        if request.mode is RequestMode.MEDIA:
            return None
        return self.bucket_edges[request.size]

    def quality_for(self, request: ThumbnailRequest) -> int:
        """Encoder quality for a request's mode."""
        if request.mode is RequestMode.MEDIA:
            return self.media_quality
        return self.thumbnail_quality
