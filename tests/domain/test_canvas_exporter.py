"""Tests for PillowCanvasExporter rasterization."""

import io

import pytest
from PIL import Image

from sketchsite.canvas import CanvasExporter, PillowCanvasExporter
from sketchsite.canvas.exporter import MAX_DIMENSION, PADDING

pytestmark = pytest.mark.unit


@pytest.fixture
def exporter():
    return PillowCanvasExporter()


def test_implements_protocol(exporter):
    assert isinstance(exporter, CanvasExporter)


def test_image_is_cropped_to_shapes_plus_padding(exporter):
    snapshot = {"shapes": [{"id": "a", "type": "rect", "x": 100, "y": 50, "w": 200, "h": 80}]}

    raster = exporter.export_raster(snapshot)

    assert (raster.width, raster.height) == (200 + 2 * PADDING, 80 + 2 * PADDING)
    img = Image.open(io.BytesIO(raster.image_bytes))
    assert img.format == "PNG"
    assert img.size == (raster.width, raster.height)
    # Corner is background, rectangle outline is drawn at the padding offset
    assert img.getpixel((0, 0)) == (255, 255, 255)
    assert img.getpixel((PADDING, PADDING)) == (0, 0, 0)


def test_all_shape_kinds_render(exporter, sample_snapshot):
    snapshot = {
        "shapes": sample_snapshot["shapes"]
        + [
            {"id": "e", "type": "ellipse", "x": 10, "y": 300, "w": 40, "h": 40},
            {"id": "l", "type": "line", "points": [[0, 400], [300, 400]], "width": 2},
        ]
    }

    raster = exporter.export_raster(snapshot)

    assert raster is not None
    assert raster.height == 400 + 2 * PADDING


def test_selection_only_draws_selected_shapes(exporter, sample_snapshot):
    raster = exporter.export_raster(sample_snapshot, selection=["nav"])

    assert (raster.width, raster.height) == (400 + 2 * PADDING, 40 + 2 * PADDING)


def test_selection_matching_nothing_is_empty(exporter, sample_snapshot):
    assert exporter.export_raster(sample_snapshot, selection=["missing"]) is None


@pytest.mark.parametrize(
    "snapshot",
    [None, {}, {"shapes": None}, {"shapes": ["not a shape", {"type": "arrow"}]}, {"shapes": [{"type": "line", "points": []}]}],
)
def test_nothing_drawable_returns_none(exporter, snapshot):
    assert exporter.export_raster(snapshot) is None


def test_invalid_color_falls_back_to_black(exporter):
    snapshot = {"shapes": [{"type": "rect", "x": 0, "y": 0, "w": 10, "h": 10, "color": "not-a-color"}]}

    raster = exporter.export_raster(snapshot)

    img = Image.open(io.BytesIO(raster.image_bytes))
    assert img.getpixel((PADDING, PADDING)) == (0, 0, 0)


def test_huge_canvas_is_capped(exporter):
    snapshot = {"shapes": [{"type": "rect", "x": 0, "y": 0, "w": 20000, "h": 10}]}

    raster = exporter.export_raster(snapshot)

    assert raster.width == MAX_DIMENSION
