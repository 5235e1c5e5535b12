from PIL import Image

from object_detect.core.types import DetectedObject, Rect, Size
from object_detect.render import BACKGROUND, BOX_COLOR, render_overlay, render_placeholder


def test_render_overlay_letterboxes_and_strokes_boxes():
    image = Image.new('RGB', (1000, 500), color=(0, 0, 255))
    detected = DetectedObject(label='box', confidence=0.94, bounding_box=Rect(0.25, 0.35, 0.5, 0.55))

    canvas = render_overlay(image, [detected], Size(500, 500))

    assert canvas.size == (500, 500)
    # letterbox bands above and below the image keep the background
    assert canvas.getpixel((5, 5)) == BACKGROUND
    assert canvas.getpixel((5, 495)) == BACKGROUND
    # image content sits inside the band
    assert canvas.getpixel((5, 250)) == (0, 0, 255)
    # mapped box is (125, 150, 250, 137.5): its bottom-left edge is stroked
    assert canvas.getpixel((125, 250)) == BOX_COLOR
    assert canvas.getpixel((250, 287)) == BOX_COLOR
    # interior stays untouched
    assert canvas.getpixel((250, 230)) == (0, 0, 255)


def test_render_overlay_without_detections_only_draws_image():
    image = Image.new('RGB', (20, 20), color=(0, 255, 0))

    canvas = render_overlay(image, [], Size(20, 20))

    assert canvas.getcolors() == [(400, (0, 255, 0))]


def test_render_placeholder_matches_view_size():
    canvas = render_placeholder(Size(300, 200))

    assert canvas.size == (300, 200)
    assert canvas.getpixel((0, 0)) == BACKGROUND
