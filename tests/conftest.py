"""
Pytest configuration for local imports and shared image fixtures.
"""

# Standard Library
import io
import os
import sys

# PIP3 modules
import PIL.Image
import pytest

#============================================


def _ensure_repo_on_path() -> None:
	"""
	Ensure the repository root is on sys.path.
	"""
	repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
	if repo_root not in sys.path:
		sys.path.insert(0, repo_root)


_ensure_repo_on_path()


#============================================
def make_image_bytes(
	size: tuple[int, int],
	color: tuple[int, ...],
	image_format: str,
	mode: str = "RGB",
) -> bytes:
	"""
	Encode a solid color image.

	Args:
		size: (width, height) in pixels.
		color: Fill color.
		image_format: Pillow format name, "PNG" or "JPEG".
		mode: Pillow image mode.

	Returns:
		Encoded image bytes.
	"""
	image = PIL.Image.new(mode, size, color)
	buffer = io.BytesIO()
	image.save(buffer, format=image_format)
	return buffer.getvalue()


@pytest.fixture
def image_bytes():
	"""
	Factory fixture for encoded test images.
	"""
	return make_image_bytes


@pytest.fixture
def png_bytes() -> bytes:
	return make_image_bytes((200, 100), (255, 0, 0), "PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
	return make_image_bytes((100, 200), (0, 0, 255), "JPEG")
