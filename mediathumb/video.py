"""
VideoFrameExtractor - Decodes a bounded set of candidate keyframes.

Candidates are produced lazily, one decoded keyframe at a time, so a caller
that keeps only the best frame so far never holds more than two buffers.
"""

import logging
from typing import Iterator, List, Optional, Set

import av
from av.error import FFmpegError

from .errors import DecodeError
from .models import FrameCandidate


class VideoFrameExtractor:
    """
    Extracts up to ``candidate_count`` keyframes spread evenly across a video.
    """

    def __init__(self, candidate_count: int = 5, logger: Optional[logging.Logger] = None):
        """
        Initialize extractor.

        Args:
            candidate_count: Maximum number of candidates (K)
            logger: Optional logger instance
        """
        self.candidate_count = candidate_count
        self.logger = logger or logging.getLogger(__name__)

    def target_times(self, duration: float) -> List[float]:
        """Evenly spaced midpoints across ``duration`` seconds."""
        k = self.candidate_count
        return [duration * (i + 0.5) / k for i in range(k)]

    def iter_candidates(self, path: str, cancel=None) -> Iterator[FrameCandidate]:
        """
        Yield decoded keyframe candidates.

        Seek targets come first, in timestamp order. When they produce fewer
        than K distinct keyframes (sparse keyframes, unknown duration or a
        failed seek), the stream is read from the start and keyframes not
        yet yielded follow in stream order, up to K in total.

        The container is opened inside the generator and closed when the
        generator finishes or is closed, so every call is independent.

        Args:
            path: Path to the video file
            cancel: Optional CancelToken checked before each decode

        Yields:
            FrameCandidate with timestamp and image, score unset

        Raises:
            DecodeError: If the container cannot be opened or holds no
                decodable keyframe
        """
        seen: Set[int] = set()
        produced = 0

        with self._open(path) as container:
            stream = self._video_stream(container, path)
            duration = self._duration(container, stream)
            if duration:
                try:
                    for candidate in self._seek_keyframes(container, stream, duration, cancel, seen):
                        produced += 1
                        yield candidate
                except FFmpegError as e:
                    self.logger.warning(
                        f"{path}: seeking stopped after {produced} candidates, "
                        f"reading keyframes in stream order: {e}"
                    )
            else:
                self.logger.debug(f"{path}: unknown duration, reading keyframes in stream order")

        if produced < self.candidate_count:
            # stream-order scan always starts from a fresh container
            with self._open(path) as container:
                stream = self._video_stream(container, path)
                try:
                    for candidate in self._stream_keyframes(
                        container, stream, cancel, seen, self.candidate_count - produced
                    ):
                        produced += 1
                        yield candidate
                except FFmpegError as e:
                    if produced == 0:
                        raise DecodeError('video', f"Cannot decode keyframes ({e})", path) from e
                    self.logger.warning(f"{path}: stopped after {produced} candidates: {e}")

        if produced == 0:
            raise DecodeError('video', "No decodable keyframe", path)

    @staticmethod
    def _open(path: str):
        try:
            return av.open(path)
        except (FFmpegError, OSError, ValueError) as e:
            raise DecodeError('video', f"Cannot open container ({e})", path) from e

    @staticmethod
    def _video_stream(container, path: str):
        if not container.streams.video:
            raise DecodeError('video', "No video stream found", path)
        stream = container.streams.video[0]
        stream.codec_context.skip_frame = 'NONKEY'
        return stream

    def _duration(self, container, stream) -> Optional[float]:
        """Duration in seconds from the stream, falling back to the container."""
        if stream.duration and stream.time_base:
            return float(stream.duration * stream.time_base)
        if container.duration:
            return container.duration / av.time_base
        return None

    def _seek(self, container, stream, offset: int) -> None:
        container.seek(offset, stream=stream, backward=True, any_frame=False)

    def _seek_keyframes(self, container, stream, duration: float, cancel,
                        seen: Set[int]) -> Iterator[FrameCandidate]:
        """Seek to each target time and decode the keyframe at or before it."""
        for target in self.target_times(duration):
            if cancel is not None:
                cancel.raise_if_cancelled()

            offset = int(target / stream.time_base)
            if stream.start_time:
                offset += stream.start_time
            self._seek(container, stream, offset)

            frame = next(container.decode(stream), None)
            if frame is None:
                continue
            key = frame.pts if frame.pts is not None else offset
            if key in seen:
                # several targets snapped to the same keyframe
                continue
            seen.add(key)
            yield self._candidate(frame, stream)

    def _stream_keyframes(self, container, stream, cancel, seen: Set[int],
                          limit: int) -> Iterator[FrameCandidate]:
        """Decode keyframes from the start, skipping those already yielded."""
        produced = 0
        for index, frame in enumerate(container.decode(stream)):
            if cancel is not None:
                cancel.raise_if_cancelled()
            key = frame.pts if frame.pts is not None else -1 - index
            if key in seen:
                continue
            seen.add(key)
            yield self._candidate(frame, stream)
            produced += 1
            if produced >= limit:
                break

    @staticmethod
    def _candidate(frame, stream) -> FrameCandidate:
        if frame.time is not None:
            timestamp = float(frame.time)
        elif frame.pts is not None:
            timestamp = float(frame.pts * stream.time_base)
        else:
            timestamp = 0.0
        if stream.start_time and stream.time_base:
            timestamp -= float(stream.start_time * stream.time_base)
        return FrameCandidate(timestamp=max(timestamp, 0.0), image=frame.to_image())
