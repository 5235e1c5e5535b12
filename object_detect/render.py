"""Raster overlay of detections on an aspect-fit image."""
import io

from PIL import Image, ImageDraw, ImageFont

from object_detect.core.geometry import aspect_fit, convert_bounding_box
from object_detect.core.postprocess import caption
from object_detect.core.types import DetectedObject, Size

BACKGROUND = (240, 240, 240)
BOX_COLOR = (255, 0, 0)
TEXT_COLOR = (255, 255, 255)
PLACEHOLDER_COLOR = (128, 128, 128)
LINE_WIDTH = 2
CAPTION_PADDING = 4
CAPTION_LIFT = 10


def _image_size(image: Image.Image) -> Size:
    width, height = image.size
    return Size(width=float(width), height=float(height))


def _draw_caption(draw: ImageDraw.ImageDraw, text: str, center_x: float, center_y: float, font) -> None:
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    text_w = right - left
    text_h = bottom - top
    box_w = text_w + 2 * CAPTION_PADDING
    box_h = text_h + 2 * CAPTION_PADDING
    x0 = center_x - box_w / 2
    y0 = center_y - box_h / 2
    draw.rectangle((x0, y0, x0 + box_w, y0 + box_h), fill=BOX_COLOR)
    draw.text((x0 + CAPTION_PADDING - left, y0 + CAPTION_PADDING - top), text, fill=TEXT_COLOR, font=font)


def render_overlay(image: Image.Image, detected_objects: list[DetectedObject], view_size: Size) -> Image.Image:
    canvas = Image.new('RGB', (int(view_size.width), int(view_size.height)), BACKGROUND)
    image_size = _image_size(image)
    fit = aspect_fit(image_size, view_size)

    scaled_w = max(1, int(round(fit.scaled_size.width)))
    scaled_h = max(1, int(round(fit.scaled_size.height)))
    resized = image.convert('RGB').resize((scaled_w, scaled_h), Image.Resampling.BILINEAR)
    canvas.paste(resized, (int(round(fit.offset_x)), int(round(fit.offset_y))))

    draw = ImageDraw.Draw(canvas)
    font = ImageFont.load_default()
    for detected in detected_objects:
        box = convert_bounding_box(detected.bounding_box, image_size, view_size)
        draw.rectangle((box.min_x, box.min_y, box.max_x, box.max_y), outline=BOX_COLOR, width=LINE_WIDTH)
        _draw_caption(draw, caption(detected), box.mid_x, box.min_y - CAPTION_LIFT, font)
    return canvas


def render_placeholder(view_size: Size) -> Image.Image:
    canvas = Image.new('RGB', (int(view_size.width), int(view_size.height)), BACKGROUND)
    draw = ImageDraw.Draw(canvas)
    font = ImageFont.load_default()
    text = 'Capture or select an image to detect objects'
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    x = (view_size.width - (right - left)) / 2 - left
    y = (view_size.height - (bottom - top)) / 2 - top
    draw.text((x, y), text, fill=PLACEHOLDER_COLOR, font=font)
    return canvas


def to_png_bytes(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format='PNG')
    return buffer.getvalue()
