"""Free-hand mask painting.

The masker shows the product image with a translucent canvas on top. The
user drags a round brush over the part of the product to keep; strokes are
painted white on an all-black raster, which is exported as a PNG data URL
and sent to the model alongside the product image.

The browser records strokes in canvas coordinates and posts them here;
``render_strokes`` replays them on a :class:`MaskCanvas` so the exported
mask is produced server side.
"""
import logging
from dataclasses import dataclass, field
from io import BytesIO
from typing import Iterable, List, Optional, Tuple

from PIL import Image, ImageDraw

from stylist.config import (
    DEFAULT_BRUSH_SIZE,
    MASKER_VIEWPORT_HEIGHT_RATIO,
    MASKER_VIEWPORT_WIDTH_RATIO,
    MAX_BRUSH_SIZE,
    MIN_BRUSH_SIZE,
)
from stylist.errors import ValidationError
from stylist.images import to_data_url

logger = logging.getLogger(__name__)

BLACK = 0
WHITE = 255

Point = Tuple[float, float]


@dataclass
class CanvasRect:
    """Bounding rectangle of the canvas in client (viewport) coordinates."""

    left: float = 0.0
    top: float = 0.0


@dataclass
class PointerEvent:
    """A mouse or touch event; touch events carry their touch points."""

    client_x: float = 0.0
    client_y: float = 0.0
    touches: Optional[List[Point]] = None


@dataclass
class Stroke:
    brush_size: int
    points: List[Point] = field(default_factory=list)


def clamp_brush_size(size: int) -> int:
    return max(MIN_BRUSH_SIZE, min(MAX_BRUSH_SIZE, int(size)))


def fit_canvas_size(image_size: Tuple[int, int], viewport_size: Tuple[int, int]) -> Tuple[int, int]:
    """Canvas size for an image shown in the masker.

    The image is scaled to fit 80% of the viewport width and 70% of its
    height, so the canvas keeps the product image's aspect ratio.
    """
    image_width, image_height = image_size
    viewport_width, viewport_height = viewport_size
    if image_width <= 0 or image_height <= 0:
        raise ValidationError("Image dimensions must be positive.")
    if viewport_width <= 0 or viewport_height <= 0:
        raise ValidationError("Viewport dimensions must be positive.")

    max_width = viewport_width * MASKER_VIEWPORT_WIDTH_RATIO
    max_height = viewport_height * MASKER_VIEWPORT_HEIGHT_RATIO
    ratio = min(max_width / image_width, max_height / image_height)
    return max(1, int(image_width * ratio)), max(1, int(image_height * ratio))


def get_coordinates(event: PointerEvent, rect: Optional[CanvasRect]) -> Point:
    """Translate a pointer event into canvas coordinates."""
    if rect is None:
        return 0.0, 0.0
    if event.touches:
        client_x, client_y = event.touches[0]
    else:
        client_x, client_y = event.client_x, event.client_y
    return client_x - rect.left, client_y - rect.top


class MaskCanvas:
    """A black raster the user paints white onto."""

    def __init__(self, width: int, height: int, brush_size: int = DEFAULT_BRUSH_SIZE):
        if width <= 0 or height <= 0:
            raise ValidationError("Canvas dimensions must be positive.")
        self.width = int(width)
        self.height = int(height)
        self.rect = CanvasRect()
        self._brush_size = clamp_brush_size(brush_size)
        self.is_drawing = False
        self._last_point: Optional[Point] = None
        self._image = Image.new("L", (self.width, self.height), BLACK)
        self._draw = ImageDraw.Draw(self._image)

    @classmethod
    def for_image(
        cls,
        image_size: Tuple[int, int],
        viewport_size: Tuple[int, int],
        brush_size: int = DEFAULT_BRUSH_SIZE,
    ) -> "MaskCanvas":
        width, height = fit_canvas_size(image_size, viewport_size)
        return cls(width, height, brush_size=brush_size)

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def brush_size(self) -> int:
        return self._brush_size

    @brush_size.setter
    def brush_size(self, value: int) -> None:
        self._brush_size = clamp_brush_size(value)

    def clear(self) -> None:
        self._draw.rectangle((0, 0, self.width, self.height), fill=BLACK)

    def start_drawing(self, x: float, y: float) -> None:
        self._last_point = (x, y)
        self.is_drawing = True

    def draw(self, x: float, y: float) -> None:
        if not self.is_drawing or self._last_point is None:
            return
        self._paint_segment(self._last_point, (x, y))
        self._last_point = (x, y)

    def stop_drawing(self) -> None:
        self._last_point = None
        self.is_drawing = False

    # Pointer-event front ends for the three drawing calls.
    def pointer_down(self, event: PointerEvent) -> None:
        self.start_drawing(*get_coordinates(event, self.rect))

    def pointer_move(self, event: PointerEvent) -> None:
        self.draw(*get_coordinates(event, self.rect))

    def pointer_up(self, event: Optional[PointerEvent] = None) -> None:
        self.stop_drawing()

    def _paint_segment(self, start: Point, end: Point) -> None:
        # Round caps on every segment give the round joins between them.
        width = self._brush_size
        radius = width / 2
        self._draw.line((start, end), fill=WHITE, width=width)
        for cx, cy in (start, end):
            self._draw.ellipse((cx - radius, cy - radius, cx + radius, cy + radius), fill=WHITE)

    def apply_stroke(self, stroke: Stroke) -> None:
        """Replay one recorded drag: press at the first point, move through the rest."""
        if not stroke.points:
            return
        self.brush_size = stroke.brush_size
        first, *rest = stroke.points
        self.start_drawing(*first)
        for x, y in rest:
            self.draw(x, y)
        self.stop_drawing()

    def to_image(self, size: Optional[Tuple[int, int]] = None) -> Image.Image:
        """The mask as a greyscale image, optionally scaled to ``size``."""
        image = self._image.copy()
        if size is not None and size != image.size:
            image = image.resize(size, Image.Resampling.NEAREST)
        return image

    def to_png(self, size: Optional[Tuple[int, int]] = None) -> bytes:
        buffer = BytesIO()
        self.to_image(size).save(buffer, format="PNG")
        return buffer.getvalue()

    def to_data_url(self, size: Optional[Tuple[int, int]] = None) -> str:
        return to_data_url(self.to_png(size), "image/png")

    def coverage(self) -> float:
        """Fraction of the canvas painted white."""
        histogram = self._image.histogram()
        return histogram[WHITE] / float(self.width * self.height)


def render_strokes(strokes: Iterable[Stroke], canvas_size: Tuple[int, int]) -> MaskCanvas:
    canvas = MaskCanvas(*canvas_size)
    count = 0
    for stroke in strokes:
        canvas.apply_stroke(stroke)
        count += 1
    logger.debug("Rendered %d strokes on a %dx%d mask", count, *canvas.size)
    return canvas


