"""
Pytest fixtures for mediathumb tests.
"""

import io
import struct
import sys
import zlib
from wsgiref.util import setup_testing_defaults

import pytest
from PIL import Image


def write_video(path, images, fps=10, gop_size=5):
    """Encode PIL images into an MPEG-4 file with a keyframe every gop_size frames."""
    import av

    container = av.open(str(path), mode='w')
    stream = container.add_stream('mpeg4', rate=fps)
    stream.width, stream.height = images[0].size
    stream.pix_fmt = 'yuv420p'
    stream.codec_context.gop_size = gop_size

    for img in images:
        frame = av.VideoFrame.from_image(img).reformat(format='yuv420p')
        for packet in stream.encode(frame):
            container.mux(packet)
    for packet in stream.encode():
        container.mux(packet)
    container.close()
    return str(path)


def gradient_frame(size=(64, 48)):
    """Mid-grey vertical gradient: high entropy, mean luma near 128."""
    return Image.linear_gradient('L').resize(size).convert('RGB')


def black_frame(size=(64, 48)):
    return Image.new('RGB', size, (0, 0, 0))


@pytest.fixture
def config():
    """Fixture providing a pipeline config with small buckets for fast tests."""
    from mediathumb.config import PipelineConfig
    from mediathumb.models import SizeBucket

    return PipelineConfig(
        bucket_edges={
            SizeBucket.SMALL: 16,
            SizeBucket.MEDIUM: 32,
            SizeBucket.LARGE: 48,
        },
        light_workers=2,
        heavy_workers=2,
        request_timeout=30.0,
    )


@pytest.fixture
def media_root(tmp_path):
    """Fixture providing an empty media root directory."""
    root = tmp_path / 'media'
    root.mkdir()
    return root


@pytest.fixture
def sample_jpeg(media_root):
    """Fixture providing a 400x300 JPEG."""
    path = media_root / 'photo.jpg'
    img = Image.linear_gradient('L').resize((400, 300)).convert('RGB')
    img.save(path, format='JPEG', quality=90)
    return str(path)


@pytest.fixture
def large_jpeg(media_root):
    """Fixture providing a 4000x3000 JPEG."""
    path = media_root / 'large.jpg'
    img = Image.linear_gradient('L').resize((4000, 3000)).convert('RGB')
    img.save(path, format='JPEG', quality=80)
    return str(path)


@pytest.fixture
def sample_png(media_root):
    """Fixture providing a 120x80 PNG with transparency."""
    path = media_root / 'overlay.png'
    img = Image.new('RGBA', (120, 80), color=(255, 0, 0, 128))
    img.save(path, format='PNG')
    return str(path)


@pytest.fixture
def sample_gif(media_root):
    """Fixture providing a palette GIF."""
    path = media_root / 'anim.gif'
    img = Image.new('P', (60, 40), color=3)
    img.save(path, format='GIF')
    return str(path)


@pytest.fixture
def sample_webp(media_root):
    """Fixture providing a WebP image."""
    path = media_root / 'pic.webp'
    Image.new('RGB', (90, 30), color='blue').save(path, format='WEBP')
    return str(path)


@pytest.fixture
def sample_psd(media_root):
    """Fixture providing a PSD document created from a PIL image."""
    from psd_tools import PSDImage

    path = media_root / 'design.psd'
    img = Image.new('RGB', (80, 60), color=(0, 128, 255))
    psd = PSDImage.frompil(img)
    psd.save(str(path))
    return str(path)


@pytest.fixture
def make_psd(media_root):
    """
    Fixture providing a helper that writes a 40x30 three-layer PSD.

    Layers, bottom first: white background, 10x8 red logo at (4, 3) and a
    12x10 black draft layer at (20, 15) whose visibility is chosen per call.
    """
    from psd_tools import PSDImage
    from psd_tools.api.layers import PixelLayer

    def make(name='layered.psd', draft_visible=False):
        psd = PSDImage.new('RGB', (40, 30))
        layers = [
            ('background', Image.new('RGB', (40, 30), 'white'), 0, 0),
            ('logo', Image.new('RGB', (10, 8), (255, 0, 0)), 4, 3),
            ('draft', Image.new('RGB', (12, 10), (0, 0, 0)), 20, 15),
        ]
        for layer_name, img, left, top in layers:
            layer = PixelLayer.frompil(img, psd, layer_name, top, left)
            psd.append(layer)
        layer.visible = draft_visible

        path = media_root / name
        psd.save(str(path))
        return str(path)

    return make


@pytest.fixture
def oversized_png(media_root):
    """Fixture providing a PNG header declaring 20000x20000 pixels, with no pixel data."""
    def chunk(kind, data):
        body = kind + data
        return struct.pack('>I', len(data)) + body + struct.pack('>I', zlib.crc32(body))

    path = media_root / 'huge.png'
    ihdr = struct.pack('>IIBBBBB', 20000, 20000, 8, 2, 0, 0, 0)
    path.write_bytes(b'\x89PNG\r\n\x1a\n' + chunk(b'IHDR', ihdr) + chunk(b'IEND', b''))
    return str(path)


@pytest.fixture
def unsupported_file(media_root):
    """Fixture providing a file no decoder accepts."""
    path = media_root / 'file.xyz'
    path.write_bytes(b'this is not media, just some plain text\n' * 20)
    return str(path)


@pytest.fixture
def gradient_image():
    """Fixture providing a 64x48 high-information frame."""
    return gradient_frame()


@pytest.fixture
def black_image():
    """Fixture providing a 64x48 black frame."""
    return black_frame()


@pytest.fixture
def make_video(media_root):
    """Fixture providing a helper that writes a clip into the media root."""
    def make(name, frames, gop_size=5):
        return write_video(media_root / name, frames, gop_size=gop_size)
    return make


@pytest.fixture
def sample_video(media_root):
    """Fixture providing a 2s clip: 1s black, then 1s gradient."""
    frames = [black_frame() for _ in range(10)] + [gradient_frame() for _ in range(10)]
    return write_video(media_root / 'clip.mp4', frames)


@pytest.fixture
def single_keyframe_video(media_root):
    """Fixture providing a clip with one keyframe followed by predicted frames."""
    frames = [gradient_frame() for _ in range(20)]
    return write_video(media_root / 'still.mp4', frames, gop_size=100)


@pytest.fixture
def wsgi_get():
    """Fixture providing a helper that issues a GET to a WSGI app."""
    def get(app, path, query='', headers=None):
        environ = {
            'REQUEST_METHOD': 'GET',
            'PATH_INFO': path,
            'QUERY_STRING': query,
            'wsgi.input': io.BytesIO(b''),
            'wsgi.errors': sys.stderr,
        }
        for name, value in (headers or {}).items():
            environ['HTTP_' + name.upper().replace('-', '_')] = value
        setup_testing_defaults(environ)

        captured = {}

        def start_response(status, response_headers, exc_info=None):
            captured['status'] = int(status.split()[0])
            captured['headers'] = dict(response_headers)

        chunks = app(environ, start_response)
        try:
            body = b''.join(chunks)
        finally:
            if hasattr(chunks, 'close'):
                chunks.close()
        return captured['status'], captured['headers'], body

    return get


@pytest.fixture
def logger():
    """Fixture providing a logger."""
    import logging
    return logging.getLogger('test')
