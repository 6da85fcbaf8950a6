"""Canvas export: turn an editor snapshot into a PNG for the model.

CanvasExporter is the seam to the drawing editor. PillowCanvasExporter
rasterizes the editor's JSON shape document:

    {"shapes": [
        {"id": "a", "type": "rect", "x": 10, "y": 10, "w": 200, "h": 80, "color": "#000000"},
        {"id": "b", "type": "ellipse", "x": 0, "y": 0, "w": 40, "h": 40},
        {"id": "c", "type": "line", "points": [[0, 0], [100, 0]], "width": 3},
        {"id": "d", "type": "text", "x": 20, "y": 30, "text": "hero section", "color": "#ef4444"}
    ]}
"""

import io
from collections.abc import Iterable
from typing import Any, Protocol, runtime_checkable

import structlog
from PIL import Image, ImageColor, ImageDraw

from sketchsite.schemas.generation import RasterImage

logger = structlog.get_logger(__name__)

PADDING = 32
MAX_DIMENSION = 4096
DEFAULT_STROKE = "#000000"
DEFAULT_LINE_WIDTH = 3
SUPPORTED_SHAPES = {"rect", "ellipse", "line", "text"}


@runtime_checkable
class CanvasExporter(Protocol):
    """Rasterizes a canvas snapshot. Returns None when there is nothing to draw."""

    def export_raster(
        self,
        snapshot: dict[str, Any] | None,
        selection: Iterable[str] | None = None,
    ) -> RasterImage | None: ...


def _shape_points(shape: dict) -> list[tuple[float, float]]:
    kind = shape.get("type")
    if kind == "line":
        return [(float(p[0]), float(p[1])) for p in shape.get("points", []) if len(p) >= 2]
    x = float(shape.get("x", 0))
    y = float(shape.get("y", 0))
    if kind == "text":
        # Rough box for the default bitmap font (6px per char, 11px line)
        text = str(shape.get("text", ""))
        return [(x, y), (x + 6 * max(len(text), 1), y + 11)]
    return [(x, y), (x + float(shape.get("w", 0)), y + float(shape.get("h", 0)))]


def _color(value: Any) -> tuple[int, int, int]:
    try:
        return ImageColor.getrgb(str(value))[:3]
    except ValueError:
        return ImageColor.getrgb(DEFAULT_STROKE)[:3]


class PillowCanvasExporter:
    """Draws supported shapes onto a white PNG cropped to their bounding box."""

    def __init__(self, padding: int = PADDING, background: str = "#ffffff"):
        self.padding = padding
        self.background = background

    def drawable_shapes(
        self,
        snapshot: dict[str, Any] | None,
        selection: Iterable[str] | None = None,
    ) -> list[dict]:
        if not snapshot:
            return []
        shapes = snapshot.get("shapes") or []
        wanted = set(selection) if selection is not None else None
        drawable = []
        for shape in shapes:
            if not isinstance(shape, dict) or shape.get("type") not in SUPPORTED_SHAPES:
                continue
            if wanted is not None and shape.get("id") not in wanted:
                continue
            if not _shape_points(shape):
                continue
            drawable.append(shape)
        return drawable

    def export_raster(
        self,
        snapshot: dict[str, Any] | None,
        selection: Iterable[str] | None = None,
    ) -> RasterImage | None:
        shapes = self.drawable_shapes(snapshot, selection)
        if not shapes:
            return None

        points = [pt for shape in shapes for pt in _shape_points(shape)]
        min_x = min(p[0] for p in points)
        min_y = min(p[1] for p in points)
        max_x = max(p[0] for p in points)
        max_y = max(p[1] for p in points)

        width = min(int(max_x - min_x) + 2 * self.padding, MAX_DIMENSION)
        height = min(int(max_y - min_y) + 2 * self.padding, MAX_DIMENSION)
        offset_x = self.padding - min_x
        offset_y = self.padding - min_y

        img = Image.new("RGB", (max(width, 1), max(height, 1)), self.background)
        draw = ImageDraw.Draw(img)

        for shape in shapes:
            color = _color(shape.get("color", DEFAULT_STROKE))
            line_width = int(shape.get("width", DEFAULT_LINE_WIDTH))
            pts = [(px + offset_x, py + offset_y) for px, py in _shape_points(shape)]
            kind = shape["type"]
            if kind == "rect":
                draw.rectangle(_box(pts), outline=color, width=line_width)
            elif kind == "ellipse":
                draw.ellipse(_box(pts), outline=color, width=line_width)
            elif kind == "line":
                if len(pts) == 1:
                    draw.point(pts, fill=color)
                else:
                    draw.line(pts, fill=color, width=line_width, joint="curve")
            elif kind == "text":
                draw.text(pts[0], str(shape.get("text", "")), fill=color)

        buf = io.BytesIO()
        img.save(buf, "PNG")
        logger.debug("canvas_rasterized", shapes=len(shapes), width=img.width, height=img.height)
        return RasterImage(image_bytes=buf.getvalue(), width=img.width, height=img.height)


def _box(pts: list[tuple[float, float]]) -> list[float]:
    (x0, y0), (x1, y1) = pts[0], pts[1]
    return [min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1)]
