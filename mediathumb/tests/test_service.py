"""Tests for ThumbnailService."""

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from mediathumb.errors import NotFound, PipelineTimeout, UnsupportedFormat
from mediathumb.models import ThumbnailRequest
from mediathumb.service import ThumbnailService


@pytest.fixture
def service(media_root, config, logger):
    service = ThumbnailService.from_config(str(media_root), config, logger)
    yield service
    service.shutdown()


class TestThumbnailService:
    """Tests for ThumbnailService."""

    def test_render(self, service, sample_jpeg):
        """Test rendering by request filename."""
        result = service.render('photo.jpg', ThumbnailRequest.thumbnail('small'))

        assert max(result.width, result.height) == 16

    def test_video_goes_to_heavy_pool(self, service, sample_video):
        """Test video jobs are routed to the heavy pool."""
        job = service.submit('clip.mp4', ThumbnailRequest.thumbnail())

        result = job.result(timeout=30)

        assert job.heavy
        assert (result.width, result.height) == (32, 24)

    def test_concurrent_sizes_of_same_video(self, service, sample_video):
        """Test simultaneous small and large requests for one video are independent."""
        with ThreadPoolExecutor(max_workers=2) as executor:
            small = executor.submit(service.render, 'clip.mp4', ThumbnailRequest.thumbnail('small'))
            large = executor.submit(service.render, 'clip.mp4', ThumbnailRequest.thumbnail('large'))
            small, large = small.result(), large.result()

        assert (small.width, small.height) == (16, 12)
        assert (large.width, large.height) == (48, 36)
        assert small.last_modified == large.last_modified

    def test_errors_raised_before_queueing(self, service, unsupported_file, mocker):
        """Test missing and unsupported assets fail on the calling thread."""
        submit = mocker.spy(service.pool, 'submit')

        with pytest.raises(NotFound):
            service.render('missing.jpg', ThumbnailRequest.thumbnail())
        with pytest.raises(UnsupportedFormat):
            service.render('file.xyz', ThumbnailRequest.thumbnail())

        submit.assert_not_called()

    def test_timeout(self, service, sample_jpeg, mocker):
        """Test a slow job times out and is cancelled."""
        def slow(asset, request, cancel=None):
            while not cancel.cancelled:
                time.sleep(0.01)
            cancel.raise_if_cancelled()

        mocker.patch.object(service.pipeline, 'run', side_effect=slow)
        service.request_timeout = 0.05

        with pytest.raises(PipelineTimeout):
            service.render('photo.jpg', ThumbnailRequest.thumbnail())

    def test_logs_queue_depth(self, service, sample_jpeg, caplog):
        """Test queueing logs the pool and its backlog."""
        caplog.set_level(logging.DEBUG, logger='test')

        service.render('photo.jpg', ThumbnailRequest.thumbnail())

        assert 'photo.jpg on light pool (0 pending)' in caplog.text

    def test_last_modified(self, service, sample_jpeg):
        """Test mtime lookup without rendering."""
        assert service.last_modified('photo.jpg') == os.path.getmtime(sample_jpeg)
