from io import BytesIO

import pytest
from PIL import Image

from object_detect.core.errors import DetectError
from object_detect.utils.image_io import load_image_from_bytes, load_image_from_path


def encode(image: Image.Image, fmt: str = 'PNG') -> bytes:
    buf = BytesIO()
    image.save(buf, format=fmt)
    return buf.getvalue()


def test_load_image_from_bytes_converts_to_rgb():
    image = load_image_from_bytes(encode(Image.new('L', (8, 6))), max_bytes=1024 * 1024)

    assert image.mode == 'RGB'
    assert image.size == (8, 6)


def test_load_image_from_bytes_applies_exif_orientation():
    source = Image.new('RGB', (40, 20))
    exif = source.getexif()
    exif[0x0112] = 6  # rotate 90 CW on display

    buf = BytesIO()
    source.save(buf, format='JPEG', exif=exif.tobytes())

    image = load_image_from_bytes(buf.getvalue(), max_bytes=1024 * 1024)

    assert image.size == (20, 40)


@pytest.mark.parametrize(
    'payload, max_bytes, code',
    [
        (b'', 100, 'MISSING_IMAGE'),
        (b'x' * 200, 100, 'IMAGE_TOO_LARGE'),
        (b'garbage', 100, 'IMAGE_DECODE_FAILED'),
    ],
)
def test_load_image_from_bytes_errors(payload, max_bytes, code):
    with pytest.raises(DetectError) as info:
        load_image_from_bytes(payload, max_bytes=max_bytes)

    assert info.value.code == code


def test_load_image_from_path(tmp_path):
    path = tmp_path / 'photo.png'
    Image.new('RGBA', (5, 7)).save(path)

    image = load_image_from_path(path)

    assert image is not None
    assert image.mode == 'RGB'
    assert image.size == (5, 7)


def test_load_image_from_path_failure_yields_none(tmp_path):
    broken = tmp_path / 'broken.jpg'
    broken.write_bytes(b'not an image')

    assert load_image_from_path(broken) is None
    assert load_image_from_path(tmp_path / 'missing.jpg') is None
