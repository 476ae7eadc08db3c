# SPDX-License-Identifier: Apache-2.0
"""Page areas and drawing primitives.

An Area is a rectangular region of a page with a vertical write cursor.
Elements consume height from it and draw through it; the Area translates
area-local coordinates into page coordinates (origin top-left, y growing
downwards) before handing primitives to the page surface.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, Sequence, Union, runtime_checkable

from .errors import InsufficientSpace, InvalidSplit
from .models import BLACK, Color, Margins, MarginsLike, Position, Size

if TYPE_CHECKING:
    from .fonts import FontCache, FontData
    from .style import Style

# Tolerance for accumulated floating point error in height arithmetic
EPSILON = 1e-6


@dataclass(frozen=True)
class GlyphRun:
    """A run of text in a single font, ready to be drawn.

    Attributes:
        text: Text of the run
        font: Font to draw with
        font_size: Font size in points
        color: Fill color
        segments: (x offset, text) pieces; kerning is applied by placing
            each piece at its offset
    """

    text: str
    font: FontData
    font_size: float
    color: Color
    segments: tuple[tuple[float, str], ...]


@dataclass(frozen=True)
class LinePrimitive:
    """Open polyline in page coordinates."""

    points: tuple[Position, ...]
    color: Color = BLACK
    line_width: float = 1.0


@dataclass(frozen=True)
class RectPrimitive:
    """Rectangle in page coordinates (origin is the top-left corner)."""

    origin: Position
    size: Size
    stroke: Color | None = BLACK
    fill: Color | None = None
    line_width: float = 1.0


ShapePrimitive = Union[LinePrimitive, RectPrimitive]


@runtime_checkable
class PageSurface(Protocol):
    """Drawing target of one page."""

    @property
    def size(self) -> Size: ...

    def draw_glyph_run(self, position: Position, run: GlyphRun) -> None:
        """Draw a run with its baseline starting at position."""
        ...

    def draw_shape(self, primitive: ShapePrimitive) -> None: ...


class DrawingBuffer:
    """Surface that records draw calls for later replay.

    Used for all-or-nothing placement: content is drawn into the buffer and
    only replayed onto the page once it is known to fit.
    """

    def __init__(self, size: Size) -> None:
        self._size = size
        self._ops: list[tuple[Position | None, GlyphRun | ShapePrimitive]] = []

    @property
    def size(self) -> Size:
        return self._size

    def __len__(self) -> int:
        return len(self._ops)

    def draw_glyph_run(self, position: Position, run: GlyphRun) -> None:
        self._ops.append((position, run))

    def draw_shape(self, primitive: ShapePrimitive) -> None:
        self._ops.append((None, primitive))

    def replay(self, surface: PageSurface) -> None:
        """Draw all recorded operations onto another surface."""
        for position, item in self._ops:
            if isinstance(item, GlyphRun):
                assert position is not None
                surface.draw_glyph_run(position, item)
            else:
                surface.draw_shape(item)


class Area:
    """Mutable view over a rectangular region of a page.

    ``cursor_y`` is the amount of height already consumed; it only grows and
    never exceeds ``height``. Splitting and deriving areas returns new Area
    objects, so a child's cursor never moves its parent's.
    """

    def __init__(
        self,
        surface: PageSurface,
        origin: Position,
        size: Size,
        cursor_y: float = 0.0,
    ) -> None:
        if size.width < 0 or size.height < 0:
            raise ValueError(f"Area size must not be negative: {size}")
        self._surface = surface
        self._origin = origin
        self._width = size.width
        self._height = size.height
        self._cursor_y = min(cursor_y, size.height)

    @classmethod
    def for_surface(cls, surface: PageSurface) -> Area:
        """Area covering a whole page surface."""
        return cls(surface, Position(), surface.size)

    def __repr__(self) -> str:
        return (
            f"Area(origin=({self._origin.x:.2f}, {self._origin.y:.2f}), "
            f"size=({self._width:.2f}, {self._height:.2f}), cursor_y={self._cursor_y:.2f})"
        )

    @property
    def surface(self) -> PageSurface:
        return self._surface

    @property
    def origin(self) -> Position:
        return self._origin

    @property
    def width(self) -> float:
        return self._width

    @property
    def height(self) -> float:
        return self._height

    @property
    def size(self) -> Size:
        return Size(self._width, self._height)

    @property
    def cursor_y(self) -> float:
        return self._cursor_y

    def remaining_height(self) -> float:
        return self._height - self._cursor_y

    def remaining_width(self) -> float:
        return self._width

    def fits(self, height: float) -> bool:
        """Whether height can be consumed without overflowing."""
        return self._cursor_y + height <= self._height + EPSILON

    def add_height(self, height: float) -> None:
        """Consume vertical space.

        Raises:
            ValueError: If height is negative.
            InsufficientSpace: If the area has less room left; the cursor is
                not moved.
        """
        if height < 0:
            raise ValueError(f"Height must not be negative: {height}")
        if not self.fits(height):
            raise InsufficientSpace(height, self.remaining_height())
        self._cursor_y = min(self._cursor_y + height, self._height)

    # Derived areas

    def copy(self) -> Area:
        return Area(self._surface, self._origin, self.size, self._cursor_y)

    def body(self) -> Area:
        """Fresh area covering the unconsumed part below the cursor."""
        return Area(
            self._surface,
            Position(self._origin.x, self._origin.y + self._cursor_y),
            Size(self._width, self.remaining_height()),
        )

    def with_surface(self, surface: PageSurface) -> Area:
        """Same geometry drawing onto another surface."""
        return Area(surface, self._origin, self.size, self._cursor_y)

    def with_height(self, height: float) -> Area:
        """Same origin and width with a different height."""
        return Area(self._surface, self._origin, Size(self._width, height), 0.0)

    def offset(self, x: float, y: float) -> Area:
        """Area shrunk from the top-left corner by (x, y).

        The cursor keeps its page position; shrinking past it moves it to 0.
        """
        x = min(max(0.0, x), self._width)
        y = min(max(0.0, y), self._height)
        return Area(
            self._surface,
            Position(self._origin.x + x, self._origin.y + y),
            Size(self._width - x, self._height - y),
            max(0.0, self._cursor_y - y),
        )

    def with_margins(self, margins: MarginsLike) -> Area:
        """Area shrunk by margins, starting at the current cursor."""
        margins = Margins.coerce(margins)
        body = self.body()
        return Area(
            self._surface,
            Position(body.origin.x + margins.left, body.origin.y + margins.top),
            Size(
                max(0.0, body.width - margins.horizontal),
                max(0.0, body.height - margins.vertical),
            ),
        )

    def split_horizontally(self, at_x: float) -> tuple[Area, Area]:
        """Split into a left and a right area at ``at_x``.

        Both areas share this area's height and cursor.

        Raises:
            InvalidSplit: If at_x lies outside [0, width].
        """
        if at_x < 0 or at_x > self._width:
            raise InvalidSplit(f"Split position {at_x} outside [0, {self._width}]")
        left = Area(
            self._surface, self._origin, Size(at_x, self._height), self._cursor_y
        )
        right = Area(
            self._surface,
            Position(self._origin.x + at_x, self._origin.y),
            Size(self._width - at_x, self._height),
            self._cursor_y,
        )
        return left, right

    def split_columns(self, weights: Sequence[float]) -> list[Area]:
        """Split into columns whose widths are proportional to weights.

        Raises:
            InvalidSplit: If weights are empty, negative or sum to zero.
        """
        total = float(sum(weights))
        if not weights or total <= 0 or any(w < 0 for w in weights):
            raise InvalidSplit(f"Invalid column weights: {list(weights)}")
        columns: list[Area] = []
        rest = self
        remaining_weight = total
        for weight in weights[:-1]:
            at_x = rest.width * weight / remaining_weight
            column, rest = rest.split_horizontally(min(at_x, rest.width))
            columns.append(column)
            remaining_weight -= weight
        columns.append(rest)
        return columns

    # Drawing

    def _page_position(self, x: float, y: float) -> Position:
        return Position(self._origin.x + x, self._origin.y + y)

    def draw_text(
        self,
        font_cache: FontCache,
        baseline: Position,
        style: Style,
        text: str,
    ) -> None:
        """Draw text with its baseline at an area-local position."""
        if not text:
            return
        font = style.font(font_cache)
        run = GlyphRun(
            text=text,
            font=font,
            font_size=style.size,
            color=style.text_color,
            segments=tuple(font_cache.kerned_segments(font, text, style.size)),
        )
        self._surface.draw_glyph_run(self._page_position(baseline.x, baseline.y), run)

    def draw_line(
        self,
        points: Sequence[Position],
        color: Color = BLACK,
        line_width: float = 1.0,
    ) -> None:
        """Draw a polyline given in area-local coordinates."""
        self._surface.draw_shape(
            LinePrimitive(
                points=tuple(self._page_position(p.x, p.y) for p in points),
                color=color,
                line_width=line_width,
            )
        )

    def draw_rect(
        self,
        position: Position,
        size: Size,
        stroke: Color | None = BLACK,
        fill: Color | None = None,
        line_width: float = 1.0,
    ) -> None:
        """Draw a rectangle whose top-left corner is an area-local position."""
        self._surface.draw_shape(
            RectPrimitive(
                origin=self._page_position(position.x, position.y),
                size=size,
                stroke=stroke,
                fill=fill,
                line_width=line_width,
            )
        )
