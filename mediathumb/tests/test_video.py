"""Tests for VideoFrameExtractor."""

import pytest
from av.error import FFmpegError

from mediathumb.errors import DecodeError, PipelineCancelled
from mediathumb.scoring import FrameScorer
from mediathumb.video import VideoFrameExtractor
from mediathumb.workers import CancelToken


class TestVideoFrameExtractor:
    """Tests for VideoFrameExtractor."""

    def test_target_times(self):
        """Test targets are midpoints of K equal slices."""
        extractor = VideoFrameExtractor(candidate_count=4)

        assert extractor.target_times(8.0) == [1.0, 3.0, 5.0, 7.0]

    def test_candidates_bounded_and_distinct(self, sample_video, logger):
        """Test at most K distinct keyframes come back."""
        extractor = VideoFrameExtractor(candidate_count=5, logger=logger)

        candidates = list(extractor.iter_candidates(sample_video))

        assert 1 <= len(candidates) <= 5
        timestamps = [c.timestamp for c in candidates]
        assert len(set(timestamps)) == len(timestamps)
        assert all(0.0 <= t <= 2.0 for t in timestamps)
        assert all(c.image.size == (64, 48) for c in candidates)
        assert all(c.score is None for c in candidates)

    def test_single_keyframe(self, single_keyframe_video):
        """Test targets that snap to the same keyframe yield it once."""
        candidates = list(VideoFrameExtractor(candidate_count=5).iter_candidates(single_keyframe_video))

        assert 1 <= len(candidates) < 5

    def test_sparse_keyframes_all_used(self, make_video, gradient_image):
        """Test every keyframe is used when there are fewer than K, even past the last target."""
        path = make_video('sparse.mp4', [gradient_image.copy() for _ in range(100)], gop_size=96)

        candidates = list(VideoFrameExtractor(candidate_count=5).iter_candidates(path))

        timestamps = sorted(c.timestamp for c in candidates)
        assert len(candidates) == 2
        assert timestamps[0] == pytest.approx(0.0)
        assert timestamps[1] == pytest.approx(9.6, abs=0.05)

    def test_seek_failure_reads_stream_order(self, sample_video, mocker):
        """Test a failing seek falls back to the first K keyframes in stream order."""
        mocker.patch.object(VideoFrameExtractor, '_seek', side_effect=FFmpegError(-22, 'Invalid argument'))

        candidates = list(VideoFrameExtractor(candidate_count=2).iter_candidates(sample_video))

        timestamps = [c.timestamp for c in candidates]
        assert len(candidates) == 2
        assert timestamps[0] == pytest.approx(0.0)
        assert timestamps == sorted(timestamps)

    def test_each_call_is_independent(self, sample_video):
        """Test extracting twice gives the same candidates."""
        extractor = VideoFrameExtractor()

        first = [c.timestamp for c in extractor.iter_candidates(sample_video)]
        second = [c.timestamp for c in extractor.iter_candidates(sample_video)]

        assert first == second

    def test_selects_informative_frame(self, sample_video):
        """Test the gradient half of the clip beats the black half."""
        candidates = VideoFrameExtractor().iter_candidates(sample_video)

        best = FrameScorer().select(candidates)

        assert best.timestamp >= 0.9

    def test_not_a_video(self, sample_jpeg):
        """Test a still image is not accepted as a video."""
        with pytest.raises(DecodeError) as exc_info:
            list(VideoFrameExtractor().iter_candidates(sample_jpeg))

        assert exc_info.value.stage == 'video'

    def test_garbage_container(self, tmp_path):
        """Test unreadable container data raises DecodeError."""
        path = tmp_path / 'broken.mp4'
        path.write_bytes(b'\x00\x00\x00\x18ftypisom' + b'\xff' * 64)

        with pytest.raises(DecodeError):
            list(VideoFrameExtractor().iter_candidates(str(path)))

    def test_cancelled(self, sample_video):
        """Test a cancelled token stops extraction."""
        token = CancelToken()
        token.cancel()

        with pytest.raises(PipelineCancelled):
            list(VideoFrameExtractor().iter_candidates(sample_video, cancel=token))
