"""
Web - Bottle application serving thumbnails, media previews and raw files.
"""

import logging
import os
from functools import wraps
from typing import Optional

from bottle import Bottle, HTTPResponse, abort, http_date, parse_date, request, static_file

from .errors import PipelineError
from .models import ThumbnailRequest, ThumbnailResult
from .service import ThumbnailService


DEFAULT_CACHE_MAX_AGE = 2592000

logger = logging.getLogger(__name__)


def is_not_modified(modified_time: float) -> bool:
    """True when the client's If-Modified-Since covers ``modified_time``."""
    ims = request.environ.get('HTTP_IF_MODIFIED_SINCE')
    if not ims:
        return False
    ims_time = parse_date(ims.split(';')[0].strip())
    if ims_time is None:
        return False
    return int(modified_time) <= ims_time


def pipeline_errors(func):
    """Decorate a view function to turn PipelineError into an HTTP error."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except PipelineError as e:
            if e.status >= 500:
                logger.error(f"{request.path}: {e.kind}: {e}")
            else:
                logger.warning(f"{request.path}: {e.kind}: {e}")
            abort(e.status, f"{e.kind}: {e.message}")
    return wrapper


def create_app(service: ThumbnailService, cache_max_age: int = DEFAULT_CACHE_MAX_AGE) -> Bottle:
    """
    Build the bottle application.

    Args:
        service: Thumbnail service handling /thumbnail and /media
        cache_max_age: Cache-Control max-age for rendered images

    Returns:
        Bottle WSGI application
    """
    app = Bottle()
    app.config['mediathumb.service'] = service

    def image_response(result: ThumbnailResult) -> HTTPResponse:
        return HTTPResponse(
            body=result.data,
            status=200,
            headers={
                'Content-Type': result.content_type,
                'Content-Length': str(len(result.data)),
                'Last-Modified': http_date(result.last_modified),
                'Cache-Control': f"public, max-age={cache_max_age}",
            },
        )

    def not_modified(filename: str) -> Optional[HTTPResponse]:
        mtime = service.last_modified(filename)
        if is_not_modified(mtime):
            return HTTPResponse(status=304, headers={'Last-Modified': http_date(mtime)})
        return None

    @app.route('/thumbnail/<filename:path>')
    @pipeline_errors
    def thumbnail(filename):
        """Resized preview; ?size=small|medium|large, default medium."""
        thumb_request = ThumbnailRequest.thumbnail(request.query.get('size'))
        cached = not_modified(filename)
        if cached is not None:
            return cached
        return image_response(service.render(filename, thumb_request))

    @app.route('/media/<filename:path>')
    @pipeline_errors
    def media(filename):
        """Native-resolution preview in the output format."""
        cached = not_modified(filename)
        if cached is not None:
            return cached
        return image_response(service.render(filename, ThumbnailRequest.media()))

    @app.route('/raw/<filename:path>')
    @pipeline_errors
    def raw(filename):
        """Original bytes as an attachment; no decoding involved."""
        relpath = service.store.relative(filename)
        return static_file(relpath, root=service.store.root_path, download=os.path.basename(relpath))

    @app.route('/')
    def main_page():
        return 'Media thumbnail server'

    return app
