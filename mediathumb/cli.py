"""
Command Line Interface for the media thumbnail server.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from .config import PipelineConfig
from .errors import PipelineError
from .models import ThumbnailRequest
from .pipeline import ThumbnailPipeline
from .service import ThumbnailService
from .storage import AssetStore
from .workers import WorkerPool


def setup_logging(verbose: bool) -> logging.Logger:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    logging.getLogger('PIL').setLevel(logging.WARNING)
    logging.getLogger('libav').setLevel(logging.ERROR)
    logging.getLogger('waitress').setLevel(logging.WARNING)

    return logging.getLogger('mediathumb')


def get_config(args: argparse.Namespace) -> PipelineConfig:
    """Get pipeline configuration from environment and CLI overrides."""
    config = PipelineConfig.from_env()

    if getattr(args, 'light_workers', None):
        config.light_workers = args.light_workers
    if getattr(args, 'heavy_workers', None):
        config.heavy_workers = args.heavy_workers
    if getattr(args, 'layout', None):
        config.asset_layout = args.layout
    if getattr(args, 'timeout', None) is not None:
        config.request_timeout = args.timeout if args.timeout > 0 else None

    return config


def cmd_serve(args: argparse.Namespace) -> int:
    """Execute serve command."""
    logger = setup_logging(args.verbose)
    from bottle import run
    from .web import create_app

    config = get_config(args)
    errors = config.validate()
    store = AssetStore(args.base_path, layout=config.asset_layout)
    errors.extend(store.validate())
    if errors:
        for error in errors:
            logger.error(error)
        return 1

    service = ThumbnailService(
        store=store,
        pipeline=ThumbnailPipeline(config),
        pool=WorkerPool(config.light_workers, config.heavy_workers),
        request_timeout=config.request_timeout,
    )

    app = create_app(service, cache_max_age=args.cache_max_age)

    logger.info(f"Media root: {store.root_path} ({config.asset_layout} layout)")
    logger.info(f"Workers: {config.light_workers} light, {config.heavy_workers} heavy")
    logger.info(f"Starting HTTP server at http://{args.bind}:{args.port}")

    try:
        run(app=app, host=args.bind, port=args.port, server=args.server, quiet=not args.verbose)
    finally:
        service.shutdown()
        logger.info("Exiting.")
    return 0


def cmd_render(args: argparse.Namespace) -> int:
    """Execute render command: one asset through the pipeline, on this thread."""
    logger = setup_logging(args.verbose)

    config = get_config(args)
    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(error)
        return 1

    if args.media:
        thumb_request = ThumbnailRequest.media()
    else:
        try:
            thumb_request = ThumbnailRequest.thumbnail(args.size)
        except PipelineError as e:
            logger.error(str(e))
            return 2

    pipeline = ThumbnailPipeline(config, logger)
    try:
        result = pipeline.generate(os.path.abspath(args.input), thumb_request)
    except PipelineError as e:
        logger.error(f"{e.kind}: {e}")
        return 1

    if args.output == '-':
        sys.stdout.buffer.write(result.data)
    else:
        with open(args.output, 'wb') as f:
            f.write(result.data)
        logger.info(
            f"Wrote {args.output}: {result.width}x{result.height} "
            f"{result.content_type} ({len(result.data)} bytes)"
        )
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog='mediathumb',
        description='Serve thumbnails of images, PSDs and videos from a shared filesystem',
    )
    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # Serve command
    serve_parser = subparsers.add_parser('serve', help='Run the HTTP server')
    serve_parser.add_argument('--base-path', required=True, help='Media root directory')
    serve_parser.add_argument('--bind', default='127.0.0.1', help='Bind address (default: 127.0.0.1)')
    serve_parser.add_argument('-p', '--port', type=int, default=8080, help='Port (default: 8080)')
    serve_parser.add_argument('--server', default='waitress',
                              help='Bottle server adapter (default: waitress)')
    serve_parser.add_argument('--layout', choices=['flat', 'sharded'],
                              help='Asset layout below the media root')
    serve_parser.add_argument('--light-workers', type=int, help='Raster/PSD worker threads')
    serve_parser.add_argument('--heavy-workers', type=int, help='Video worker threads')
    serve_parser.add_argument('--timeout', type=float, help='Request timeout in seconds (0 disables)')
    serve_parser.add_argument('--cache-max-age', type=int, default=2592000,
                              help='Cache-Control max-age in seconds')
    serve_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    # Render command
    render_parser = subparsers.add_parser('render', help='Render one file to disk')
    render_parser.add_argument('input', help='Source file')
    render_parser.add_argument('-o', '--output', required=True, help="Output file ('-' for stdout)")
    mode_group = render_parser.add_mutually_exclusive_group()
    mode_group.add_argument('-s', '--size', default='medium', help='small, medium or large (default: medium)')
    mode_group.add_argument('--media', action='store_true', help='Native resolution, no resize')
    render_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    return parser


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    if parsed_args.command == 'serve':
        return cmd_serve(parsed_args)
    elif parsed_args.command == 'render':
        return cmd_render(parsed_args)

    return 1
