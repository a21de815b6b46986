"""Process settings for server.py, read from the environment."""
import os

# Media root on the shared filesystem
BASE_DIR = os.getenv('MEDIATHUMB_BASE_DIR', '/code/media')

HOST = os.getenv('MEDIATHUMB_HOST', '0.0.0.0')
PORT = int(os.getenv('MEDIATHUMB_PORT', '8080'))

# Any bottle server adapter; waitress is multi-threaded
SERVER = os.getenv('MEDIATHUMB_SERVER', 'waitress')

LOG_LEVEL = os.getenv('MEDIATHUMB_LOG_LEVEL', 'INFO').upper()
DEBUG_APP = os.getenv('MEDIATHUMB_DEBUG', 'false').lower() in ('1', 'true', 'yes')

# Cache-Control max-age for rendered images, for the proxy in front of us
CACHE_MAX_AGE = int(os.getenv('MEDIATHUMB_CACHE_MAX_AGE', '2592000'))
