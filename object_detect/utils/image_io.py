import logging
from io import BytesIO
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from object_detect.core.errors import DetectError

logger = logging.getLogger('object_detect.image_io')


def _normalize(image: Image.Image) -> Image.Image:
    image = ImageOps.exif_transpose(image)
    if image.mode != 'RGB':
        image = image.convert('RGB')
    return image


def load_image_from_bytes(image_bytes: bytes, max_bytes: int) -> Image.Image:
    if not image_bytes:
        raise DetectError('MISSING_IMAGE', 'Missing image upload (field name: image).', status_code=400)
    if len(image_bytes) > max_bytes:
        raise DetectError('IMAGE_TOO_LARGE', f'Image too large. Max {max_bytes} bytes.', status_code=413)

    try:
        image = Image.open(BytesIO(image_bytes))
        image.load()
    except Exception as exc:
        raise DetectError('IMAGE_DECODE_FAILED', 'Could not decode image.', status_code=400) from exc

    return _normalize(image)


def load_image_from_path(path: str | Path) -> Image.Image | None:
    file_path = Path(path)
    try:
        with Image.open(file_path) as image:
            image.load()
            return _normalize(image)
    except (OSError, UnidentifiedImageError) as exc:
        logger.warning('Could not load image path=%s error=%s', file_path.as_posix(), exc)
        return None
