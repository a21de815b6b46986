"""
Main entry point for running the package as a module.

Usage:
    python -m mediathumb serve --base-path /mnt/media --port 8080
    python -m mediathumb render photo.jpg --size small -o thumb.webp
    python -m mediathumb render design.psd --media -o preview.webp
"""

import sys
from .cli import main

if __name__ == '__main__':
    sys.exit(main())
