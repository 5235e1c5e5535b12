"""Bounding box conversion between engine and display coordinates.

Engines report boxes normalized to the unit square with the origin at the
bottom-left corner. Display surfaces use pixels with the origin at the
top-left, and show the image aspect-fit (letterboxed) inside the view.
"""
from dataclasses import dataclass

from object_detect.core.types import Rect, Size


@dataclass(frozen=True)
class Letterbox:
    scale: float
    scaled_size: Size
    offset_x: float
    offset_y: float


def aspect_fit(image_size: Size, view_size: Size) -> Letterbox:
    scale_x = view_size.width / image_size.width
    scale_y = view_size.height / image_size.height
    scale = min(scale_x, scale_y)

    scaled = Size(width=image_size.width * scale, height=image_size.height * scale)
    offset_x = (view_size.width - scaled.width) / 2
    offset_y = (view_size.height - scaled.height) / 2
    return Letterbox(scale=scale, scaled_size=scaled, offset_x=offset_x, offset_y=offset_y)


def convert_bounding_box(box: Rect, image_size: Size, view_size: Size) -> Rect:
    """Map a normalized bottom-left box onto the letterboxed view in pixels."""
    fit = aspect_fit(image_size, view_size)
    scaled = fit.scaled_size

    x = box.min_x * scaled.width + fit.offset_x
    # flip: engine origin is bottom-left, view origin is top-left
    y = (1 - box.max_y) * scaled.height + fit.offset_y
    width = box.width * scaled.width
    height = box.height * scaled.height
    return Rect(x=x, y=y, width=width, height=height)


def pixel_xyxy_to_normalized(xyxy: list[float] | tuple[float, ...], image_size: tuple[int, int]) -> Rect:
    """Convert top-left pixel corners (x1, y1, x2, y2) to a normalized bottom-left box."""
    width, height = image_size
    x1, y1, x2, y2 = [float(value) for value in xyxy]
    x1 = max(0.0, min(float(width), x1))
    x2 = max(0.0, min(float(width), x2))
    y1 = max(0.0, min(float(height), y1))
    y2 = max(0.0, min(float(height), y2))
    return Rect(
        x=x1 / width,
        y=1 - y2 / height,
        width=(x2 - x1) / width,
        height=(y2 - y1) / height,
    )
