#!/usr/bin/env python3
"""WSGI entry point: ``server:application`` for uwsgi/waitress, or run directly."""

import logging
import sys

import settings
from mediathumb.config import PipelineConfig
from mediathumb.service import ThumbnailService
from mediathumb.web import create_app

level = logging.getLevelName(settings.LOG_LEVEL)
logging.basicConfig(level=level, format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')
logging.getLogger('PIL').setLevel(logging.WARNING)
logging.getLogger('libav').setLevel(logging.ERROR)

config = PipelineConfig.from_env()
config_errors = config.validate()
if config_errors:
    for error in config_errors:
        logging.critical(error)
    sys.exit(1)

service = ThumbnailService.from_config(settings.BASE_DIR, config)
for error in service.store.validate():
    logging.warning(error)

app = application = create_app(service, cache_max_age=settings.CACHE_MAX_AGE)


if __name__ == '__main__':
    from bottle import run
    logging.info(f"Serving {settings.BASE_DIR} on {settings.HOST}:{settings.PORT}")

    try:
        run(app=application,
            host=settings.HOST,
            port=settings.PORT,
            server=settings.SERVER,
            debug=settings.DEBUG_APP,
            reloader=settings.DEBUG_APP
        )
    finally:
        service.shutdown()

    logging.info("Exiting.")
