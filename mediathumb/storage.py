"""
AssetStore - Maps request filenames to files below the media root.
"""

import logging
import os
import re
from typing import Optional

from .errors import NotFound


HASH_KEY = re.compile(r'^[0-9a-fA-F]{32}$')
EXTENSION = re.compile(r'^[A-Za-z0-9]*$')


class AssetStore:
    """
    Resolves filenames to absolute paths, read-only.

    Two layouts are supported:
        flat:    <root>/<filename>, nested relative paths allowed
        sharded: <root>/<key[0:2]>/<key>.<ext>, where key is a 32-digit hex hash
    """

    def __init__(self, root_path: str, layout: str = 'flat', logger: Optional[logging.Logger] = None):
        """
        Initialize asset store.

        Args:
            root_path: Media root directory
            layout: 'flat' or 'sharded'
            logger: Optional logger instance
        """
        self.root_path = os.path.realpath(root_path)
        self.layout = layout
        self.logger = logger or logging.getLogger(__name__)

    def validate(self) -> list:
        """Return configuration errors (empty if valid)."""
        errors = []
        if not os.path.isdir(self.root_path):
            errors.append(f"Media root does not exist or is not a directory: {self.root_path}")
        if self.layout not in ('flat', 'sharded'):
            errors.append(f"Unknown asset layout: {self.layout}")
        return errors

    def resolve(self, filename: str) -> str:
        """
        Absolute path for a request filename.

        Raises:
            NotFound: If the name is malformed or points outside the root
        """
        if not filename or '\x00' in filename:
            raise NotFound("Empty or malformed filename")

        if self.layout == 'sharded':
            relpath = self._sharded_path(filename)
        else:
            relpath = filename.lstrip('/')

        path = os.path.realpath(os.path.join(self.root_path, relpath))
        if os.path.commonpath([self.root_path, path]) != self.root_path or path == self.root_path:
            self.logger.warning(f"Rejected path outside media root: {filename!r}")
            raise NotFound("Malformed path", filename)
        return path

    def relative(self, filename: str) -> str:
        """Path of a resolved file relative to the media root."""
        return os.path.relpath(self.resolve(filename), self.root_path)

    def _sharded_path(self, filename: str) -> str:
        key, _, ext = filename.partition('.')
        if not HASH_KEY.match(key):
            self.logger.debug(f"Malformed hash key {key!r}")
            raise NotFound("Malformed key", filename)
        if not EXTENSION.match(ext):
            self.logger.debug(f"Malformed ext: key={filename}, ext={ext}")
            raise NotFound("Malformed key", filename)
        return os.path.join(key[0:2], filename)
