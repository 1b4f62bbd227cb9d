from io import BytesIO
from pathlib import Path
from uuid import uuid4

import pytest
from PIL import Image

from covercraft.engine.canvas import Canvas
from covercraft.engine.candidates import ImageCandidate
from covercraft.engine.compositor import Compositor, CompositeError, SourceImageError, load_source_image
from covercraft.engine.layout import CollageStyle, Rect, compute_layout

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)
YELLOW = (255, 255, 0, 255)
MAGENTA = (255, 0, 255, 255)
CYAN = (0, 255, 255, 255)


def _candidate(path: Path, name: str = "Item") -> ImageCandidate:
    return ImageCandidate(item_id=uuid4(), image=path, name=name)


def _corrupt(tmp_path, name="broken.png") -> Path:
    path = tmp_path / name
    path.write_bytes(b"definitely not an image")
    return path


def test_square_grid_places_quadrants_in_order(make_image):
    candidates = [
        _candidate(make_image("a", RED, (50, 50))),
        _candidate(make_image("b", GREEN, (120, 80))),
        _candidate(make_image("c", BLUE, (400, 400))),
        _candidate(make_image("d", YELLOW, (999, 10))),
    ]

    result = Compositor().compose(candidates, compute_layout(4, CollageStyle.SQUARE))

    assert result.size == (800, 800)
    assert result.layout_mode == "grid"
    assert result.image.getpixel((200, 200)) == RED
    assert result.image.getpixel((600, 200)) == GREEN
    assert result.image.getpixel((200, 600)) == BLUE
    assert result.image.getpixel((600, 600)) == YELLOW


def test_thumb_strip_uses_first_three_with_overlap(make_image):
    candidates = [
        _candidate(make_image("a", RED)),
        _candidate(make_image("b", GREEN)),
        _candidate(make_image("c", BLUE)),
        _candidate(make_image("d", YELLOW)),
    ]

    result = Compositor().compose(candidates, compute_layout(4, CollageStyle.THUMB))

    assert (result.width, result.height) == (1600, 900)
    assert result.image.getpixel((100, 450)) == RED
    # the second panel starts a third of the way in and covers the first
    assert result.image.getpixel((600, 450)) == GREEN
    assert result.image.getpixel((1200, 450)) == BLUE
    assert result.image.getpixel((1599, 899)) == BLUE
    colors = {color for _, color in result.image.getcolors(maxcolors=16)}
    assert YELLOW not in colors


def test_single_layout_returns_native_image(make_image):
    candidates = [_candidate(make_image("a", MAGENTA, (123, 45))), _candidate(make_image("b", CYAN))]

    result = Compositor().compose(candidates, compute_layout(2, CollageStyle.SQUARE))

    assert result.size == (123, 45)
    assert result.layout_mode == "single"
    assert result.image.getpixel((0, 0)) == MAGENTA


def test_too_few_candidates_for_grid_degrades_to_single(make_image):
    candidates = [
        _candidate(make_image("a", RED, (70, 30))),
        _candidate(make_image("b", GREEN)),
        _candidate(make_image("c", BLUE)),
    ]

    result = Compositor().compose(candidates, compute_layout(4, CollageStyle.SQUARE))

    assert result.size == (70, 30)
    assert result.layout_mode == "single"


def test_no_composite_layout_is_a_caller_error(make_image):
    with pytest.raises(ValueError):
        Compositor().compose([_candidate(make_image("a"))], compute_layout(0, CollageStyle.SQUARE))
    with pytest.raises(ValueError):
        Compositor().compose([], compute_layout(4, CollageStyle.SQUARE))


def test_abort_mode_raises_on_undecodable_source(tmp_path, make_image):
    candidates = [
        _candidate(make_image("a", RED)),
        _candidate(_corrupt(tmp_path)),
        _candidate(make_image("c", BLUE)),
        _candidate(make_image("d", YELLOW)),
    ]

    with pytest.raises(SourceImageError) as excinfo:
        Compositor(failure_mode="abort").compose(candidates, compute_layout(4, CollageStyle.SQUARE))

    assert isinstance(excinfo.value, CompositeError)
    assert excinfo.value.path == candidates[1].image


def test_abort_mode_raises_on_missing_file(tmp_path):
    missing = _candidate(tmp_path / "gone.png")

    with pytest.raises(SourceImageError):
        Compositor().compose([missing], compute_layout(1, CollageStyle.THUMB))


def test_placeholder_mode_fills_failed_cell(tmp_path, make_image):
    candidates = [
        _candidate(make_image("a", RED)),
        _candidate(_corrupt(tmp_path)),
        _candidate(make_image("c", BLUE)),
        _candidate(make_image("d", YELLOW)),
    ]
    compositor = Compositor(failure_mode="placeholder", placeholder_color=(10, 20, 30, 255))

    result = compositor.compose(candidates, compute_layout(4, CollageStyle.SQUARE))

    assert result.size == (800, 800)
    assert result.image.getpixel((200, 200)) == RED
    assert result.image.getpixel((600, 200)) == (10, 20, 30, 255)
    assert result.image.getpixel((200, 600)) == BLUE
    assert result.image.getpixel((600, 600)) == YELLOW


def test_placeholder_mode_single_failure_uses_canvas_size(tmp_path):
    compositor = Compositor(failure_mode="placeholder", placeholder_color=(1, 2, 3, 255))

    result = compositor.compose([_candidate(_corrupt(tmp_path))], compute_layout(1, CollageStyle.THUMB))

    assert result.size == (1600, 900)
    assert result.image.getpixel((800, 450)) == (1, 2, 3, 255)


def test_failure_policy_is_independent_of_layout(tmp_path, make_image):
    broken = _candidate(_corrupt(tmp_path))
    good = [_candidate(make_image(name, GREEN)) for name in ("b", "c")]

    with pytest.raises(SourceImageError):
        Compositor().compose([broken, *good], compute_layout(3, CollageStyle.THUMB))

    result = Compositor(failure_mode="placeholder").compose(
        [broken, *good], compute_layout(3, CollageStyle.THUMB)
    )
    assert result.image.getpixel((100, 450)) == (0, 0, 0, 255)


def test_unknown_failure_mode_is_rejected():
    with pytest.raises(ValueError):
        Compositor(failure_mode="skip")


def test_canvas_draws_replace_instead_of_blending():
    canvas = Canvas.allocate(10, 10)
    canvas.draw_scaled(Image.new("RGBA", (10, 10), RED), Rect(0, 0, 10, 10))
    canvas.draw_scaled(Image.new("RGBA", (10, 10), (0, 0, 255, 128)), Rect(0, 0, 10, 10))

    assert canvas.image.getpixel((5, 5)) == (0, 0, 255, 128)


def test_canvas_encode_round_trips_size():
    canvas = Canvas.allocate(32, 16)
    canvas.fill(Rect(0, 0, 32, 16), GREEN)

    for image_format in ("PNG", "JPEG"):
        data = canvas.encode(image_format)
        with Image.open(BytesIO(data)) as decoded:
            assert decoded.size == (32, 16)
            assert decoded.format == image_format


def test_load_source_image_reads_rgb_jpeg(tmp_path):
    path = tmp_path / "photo.jpg"
    Image.new("RGB", (30, 20), (200, 100, 50)).save(path, format="JPEG")

    image = load_source_image(path)

    assert image.size == (30, 20)
    assert image.mode == "RGB"


def test_single_cmyk_source_encodes_as_png(tmp_path):
    path = tmp_path / "print.jpg"
    Image.new("CMYK", (40, 30), (0, 255, 255, 0)).save(path, format="JPEG")

    result = Compositor().compose([_candidate(path)], compute_layout(1, CollageStyle.SQUARE))

    assert result.image.mode == "CMYK"
    with Image.open(BytesIO(result.to_bytes("PNG"))) as decoded:
        assert decoded.format == "PNG"
        assert decoded.size == (40, 30)
        assert decoded.mode == "RGBA"


def test_to_bytes_honours_format_and_quality(make_image):
    candidates = [_candidate(make_image(name, RED)) for name in "abcd"]
    result = Compositor().compose(candidates, compute_layout(4, CollageStyle.SQUARE))

    with Image.open(BytesIO(result.to_bytes("webp", quality=50))) as decoded:
        assert decoded.format == "WEBP"
        assert decoded.size == (800, 800)
