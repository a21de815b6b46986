"""Tests for ImageEncoder."""

import io

import pytest
from PIL import Image

from mediathumb.encoder import ImageEncoder
from mediathumb.errors import EncodeError


class TestImageEncoder:
    """Tests for ImageEncoder."""

    def test_init_defaults(self):
        """Test default output is WebP."""
        encoder = ImageEncoder()

        assert encoder.output_format == 'WEBP'
        assert encoder.content_type == 'image/webp'

    def test_encode_webp(self):
        """Test encoding to WebP."""
        data, content_type = ImageEncoder().encode(Image.new('RGB', (50, 40), 'red'), 80)

        assert content_type == 'image/webp'
        result = Image.open(io.BytesIO(data))
        assert result.format == 'WEBP'
        assert result.size == (50, 40)

    def test_encode_webp_keeps_alpha(self):
        """Test WebP output keeps transparency."""
        img = Image.new('RGBA', (20, 20), (0, 255, 0, 0))

        data, _ = ImageEncoder().encode(img, 90)

        result = Image.open(io.BytesIO(data))
        assert result.mode == 'RGBA'

    def test_encode_jpeg_flattens_alpha(self):
        """Test JPEG output flattens transparency onto white."""
        img = Image.new('RGBA', (20, 20), (0, 0, 0, 0))

        data, content_type = ImageEncoder('jpeg').encode(img, 90)

        assert content_type == 'image/jpeg'
        result = Image.open(io.BytesIO(data))
        assert result.mode == 'RGB'
        assert result.getpixel((10, 10))[0] > 245

    def test_quality_changes_size(self):
        """Test lower quality gives smaller output."""
        img = Image.effect_noise((128, 128), 64).convert('RGB')
        encoder = ImageEncoder()

        low, _ = encoder.encode(img, 20)
        high, _ = encoder.encode(img, 95)

        assert len(low) < len(high)

    def test_zero_dimensions(self):
        """Test zero-size images raise EncodeError."""
        with pytest.raises(EncodeError):
            ImageEncoder().encode(Image.new('RGB', (0, 0)), 80)

    def test_unsupported_format(self):
        """Test unknown output formats are refused at construction."""
        with pytest.raises(ValueError):
            ImageEncoder('GIF')
