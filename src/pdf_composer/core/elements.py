# SPDX-License-Identifier: Apache-2.0
"""Document elements and their render contract.

Every element implements ``render(area, context, style, resume=None)``.
An element draws at the top of the area it is given and reports the size
it used; the caller advances its own cursor. Progress across page breaks
lives in frozen resume values returned as ``RenderResult.remainder``:
rendering again with that value continues exactly where the previous page
stopped. Elements are never mutated while rendering.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional, Protocol, Sequence, runtime_checkable

from .area import EPSILON, Area, DrawingBuffer
from .context import OVERLONG_ERROR, RenderContext
from .errors import InvalidData, UnsupportedEncoding
from .models import BLACK, Color, Margins, MarginsLike, Position, Size, mm_to_pt
from .style import Style, StyledText, StyledTextLike, StyleLike
from .text_layout import LineWrapper, TextPosition, normalize_whitespace

logger = logging.getLogger(__name__)

LIST_INDENT = mm_to_pt(10)
BULLET_SPACE = mm_to_pt(2)
DEFAULT_BULLET = "–"


# =============================================================================
# Render contract
# =============================================================================


@dataclass(frozen=True)
class RenderResult:
    """Outcome of one render call.

    Attributes:
        size: Space used in the area
        remainder: Resume value for the unrendered rest, None when done
        progressed: False if nothing was placed and the state did not change
    """

    size: Size = Size()
    remainder: Any = None
    progressed: bool = True

    @property
    def has_more(self) -> bool:
        return self.remainder is not None


@runtime_checkable
class Element(Protocol):
    """Renderable unit of document content."""

    def render(
        self,
        area: Area,
        context: RenderContext,
        style: Style,
        resume: Any = None,
    ) -> RenderResult:
        """Render pending content into the area.

        Args:
            area: Area to draw into; its cursor is not moved.
            context: Fonts, hyphenation and layout policies.
            style: Style inherited from the parent.
            resume: Remainder of a previous render, or None to start.

        Returns:
            Used size and the remainder, if any.
        """
        ...


@dataclass(frozen=True)
class AtomicResume:
    """Atomic element that did not fit; render it again from the start."""


@dataclass(frozen=True)
class ParagraphResume:
    run_index: int
    offset: int

    @property
    def position(self) -> TextPosition:
        return TextPosition(self.run_index, self.offset)


@dataclass(frozen=True)
class BreakResume:
    remaining: float


@dataclass(frozen=True)
class PageBreakResume:
    pass


@dataclass(frozen=True)
class LinearLayoutResume:
    index: int
    child: Any = None


@dataclass(frozen=True)
class WrapperResume:
    """Remainder of a wrapped element.

    ``started`` is False while nothing of the element has been placed, so
    first-part decorations (bullets, the top edge of a frame) are still
    drawn where the element actually begins.
    """

    child: Any
    started: bool = True

    @classmethod
    def first_part(cls, resume: Optional[WrapperResume]) -> bool:
        return resume is None or not resume.started


@dataclass(frozen=True)
class TableResume:
    row: int


class Alignment(Enum):
    """Horizontal alignment of lines."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"

    def offset(self, available: float, width: float) -> float:
        if self is Alignment.CENTER:
            return max(0.0, (available - width) / 2)
        if self is Alignment.RIGHT:
            return max(0.0, available - width)
        return 0.0


def _encodable(context: RenderContext, style: Style, text: str) -> str:
    """Check glyph coverage, substituting the replacement character if set.

    Raises:
        UnsupportedEncoding: If a character has no glyph and no replacement
            character is configured (or the replacement has no glyph).
    """
    text = normalize_whitespace(text)
    cache = context.font_cache
    font = style.font(cache)
    missing = cache.missing_glyph(font, text)
    if missing is None:
        return text
    replacement = context.config.replacement_char
    if replacement is None:
        raise UnsupportedEncoding(text, missing, font.name)
    if cache.missing_glyph(font, replacement) is not None:
        raise UnsupportedEncoding(replacement, replacement, font.name)
    metrics = font.metrics
    result = "".join(
        char if metrics.glyph_for(ord(char)) is not None else replacement for char in text
    )
    logger.warning("Replaced characters without glyph in font %s: %r", font.name, text)
    return result


# =============================================================================
# Text elements
# =============================================================================


class Paragraph:
    """Wrapped text made of styled runs.

    Lines are produced by LineWrapper and placed top-down; the paragraph
    stops at the first line that does not fit and resumes with that line.
    """

    def __init__(
        self,
        text: StyledTextLike | Iterable[StyledTextLike] = (),
        alignment: Alignment = Alignment.LEFT,
        style: StyleLike | None = None,
    ) -> None:
        self._runs: list[StyledText] = []
        self._alignment = alignment
        self._style = Style.coerce(style)
        if isinstance(text, (str, StyledText)):
            self.push(text)
        else:
            for run in text:
                self.push(run)

    @property
    def runs(self) -> tuple[StyledText, ...]:
        return tuple(self._runs)

    @property
    def alignment(self) -> Alignment:
        return self._alignment

    @property
    def style(self) -> Style:
        return self._style

    def push(self, text: StyledTextLike) -> Paragraph:
        """Append a run."""
        self._runs.append(StyledText.coerce(text))
        return self

    def push_styled(self, text: str, style: StyleLike) -> Paragraph:
        """Append a run with its own style."""
        self._runs.append(StyledText(text, Style.coerce(style)))
        return self

    def aligned(self, alignment: Alignment) -> Paragraph:
        self._alignment = alignment
        return self

    def styled(self, style: StyleLike) -> Paragraph:
        """Set the paragraph-level style."""
        self._style = self._style.merged(style)
        return self

    def _cascaded_runs(self, context: RenderContext, style: Style) -> list[StyledText]:
        runs: list[StyledText] = []
        for run in self._runs:
            run_style = style.merged(run.style)
            runs.append(StyledText(_encodable(context, run_style, run.text), run_style))
        return runs

    def render(
        self,
        area: Area,
        context: RenderContext,
        style: Style,
        resume: ParagraphResume | None = None,
    ) -> RenderResult:
        style = style.merged(self._style)
        wrapper = LineWrapper(self._cascaded_runs(context, style), context)
        body = area.body()
        start = resume.position if resume is not None else None
        reject_overflow = context.config.overlong_words == OVERLONG_ERROR
        width = 0.0
        placed = False

        for line in wrapper.lines(body.width, start):
            too_wide = reject_overflow and line.width > body.width + EPSILON
            if too_wide or not body.fits(line.height):
                remainder = ParagraphResume(line.start.run, line.start.offset)
                return RenderResult(Size(width, body.cursor_y), remainder, placed)

            x = self._alignment.offset(body.width, line.width)
            baseline = body.cursor_y + line.ascent
            for fragment in line.fragments:
                body.draw_text(
                    context.font_cache,
                    Position(x + fragment.x, baseline),
                    fragment.text.style,
                    fragment.text.text,
                )
            body.add_height(line.height)
            width = max(width, line.width)
            placed = True

        return RenderResult(Size(width, body.cursor_y))


class Text:
    """A single line of text that is never wrapped."""

    def __init__(self, text: StyledTextLike, style: StyleLike | None = None) -> None:
        self._text = StyledText.coerce(text)
        self._style = Style.coerce(style)

    @property
    def text(self) -> StyledText:
        return self._text

    def render(
        self,
        area: Area,
        context: RenderContext,
        style: Style,
        resume: AtomicResume | None = None,
    ) -> RenderResult:
        style = style.merged(self._style).merged(self._text.style)
        text = _encodable(context, style, self._text.text)
        height = style.line_height(context.font_cache)
        body = area.body()
        if not body.fits(height):
            return RenderResult(Size(), AtomicResume(), progressed=False)
        body.draw_text(
            context.font_cache,
            Position(0.0, style.ascent(context.font_cache)),
            style,
            text,
        )
        return RenderResult(Size(style.text_width(context.font_cache, text), height))


# =============================================================================
# Spacing and page control
# =============================================================================


class Break:
    """Vertical space of a number of lines in the current style."""

    def __init__(self, lines: float = 1.0) -> None:
        if lines < 0:
            raise ValueError(f"lines must not be negative: {lines}")
        self._lines = float(lines)

    @property
    def lines(self) -> float:
        return self._lines

    def render(
        self,
        area: Area,
        context: RenderContext,
        style: Style,
        resume: BreakResume | None = None,
    ) -> RenderResult:
        if resume is not None:
            needed = resume.remaining
        else:
            needed = self._lines * style.line_height(context.font_cache)
        available = area.remaining_height()
        if needed <= available + EPSILON:
            return RenderResult(Size(0.0, min(needed, available)))
        return RenderResult(
            Size(0.0, available),
            BreakResume(needed - available),
            progressed=available > EPSILON,
        )


class PageBreak:
    """Forces the following content onto a new page."""

    def render(
        self,
        area: Area,
        context: RenderContext,
        style: Style,
        resume: PageBreakResume | None = None,
    ) -> RenderResult:
        if resume is None:
            return RenderResult(Size(), PageBreakResume())
        return RenderResult(Size())


# =============================================================================
# Shapes
# =============================================================================


class Rule:
    """Horizontal line across the area."""

    def __init__(self, line_width: float = 1.0, color: Color | None = None) -> None:
        if line_width <= 0:
            raise ValueError(f"line_width must be positive: {line_width}")
        self._line_width = line_width
        self._color = color

    def render(
        self,
        area: Area,
        context: RenderContext,
        style: Style,
        resume: AtomicResume | None = None,
    ) -> RenderResult:
        body = area.body()
        if not body.fits(self._line_width):
            return RenderResult(Size(), AtomicResume(), progressed=False)
        y = self._line_width / 2
        body.draw_line(
            [Position(0.0, y), Position(body.width, y)],
            self._color or style.text_color,
            self._line_width,
        )
        return RenderResult(Size(body.width, self._line_width))


class Rectangle:
    """Rectangle of a fixed size, optionally filled."""

    def __init__(
        self,
        size: Size,
        stroke: Color | None = BLACK,
        fill: Color | None = None,
        line_width: float = 1.0,
    ) -> None:
        if size.width < 0 or size.height < 0:
            raise ValueError(f"Rectangle size must not be negative: {size}")
        self._size = size
        self._stroke = stroke
        self._fill = fill
        self._line_width = line_width

    @property
    def size(self) -> Size:
        return self._size

    def render(
        self,
        area: Area,
        context: RenderContext,
        style: Style,
        resume: AtomicResume | None = None,
    ) -> RenderResult:
        body = area.body()
        if self._size.width > body.width + EPSILON or not body.fits(self._size.height):
            return RenderResult(Size(), AtomicResume(), progressed=False)
        body.draw_rect(Position(), self._size, self._stroke, self._fill, self._line_width)
        return RenderResult(self._size)


# =============================================================================
# Containers and wrappers
# =============================================================================


class LinearLayout:
    """Elements stacked vertically."""

    def __init__(self, elements: Iterable[Element] = ()) -> None:
        self._elements: list[Element] = list(elements)

    def __len__(self) -> int:
        return len(self._elements)

    @property
    def elements(self) -> tuple[Element, ...]:
        return tuple(self._elements)

    def push(self, element: Element) -> LinearLayout:
        self._elements.append(element)
        return self

    def render(
        self,
        area: Area,
        context: RenderContext,
        style: Style,
        resume: LinearLayoutResume | None = None,
    ) -> RenderResult:
        body = area.body()
        index = resume.index if resume is not None else 0
        child_resume = resume.child if resume is not None else None
        width = 0.0
        progressed = False

        while index < len(self._elements):
            result = self._elements[index].render(body, context, style, child_resume)
            body.add_height(result.size.height)
            width = max(width, result.size.width)
            progressed = progressed or result.progressed
            if result.has_more:
                remainder = LinearLayoutResume(index, result.remainder)
                return RenderResult(Size(width, body.cursor_y), remainder, progressed)
            index += 1
            child_resume = None

        return RenderResult(Size(width, body.cursor_y))


def _not_placed(resume: Optional[WrapperResume]) -> RenderResult:
    """Nothing placed: the wrapper stays in the state it was given."""
    pending = resume if resume is not None else WrapperResume(None, started=False)
    return RenderResult(Size(), pending, progressed=False)


def _wrap_result(
    result: RenderResult,
    size: Size,
    resume: Optional[WrapperResume],
    started: bool = True,
) -> RenderResult:
    if result.has_more and not result.progressed:
        return _not_placed(resume)
    remainder = WrapperResume(result.remainder, started) if result.has_more else None
    return RenderResult(size, remainder)


class StyledElement:
    """Applies a style to a wrapped element."""

    def __init__(self, element: Element, style: StyleLike) -> None:
        self._element = element
        self._style = Style.coerce(style)

    def render(
        self,
        area: Area,
        context: RenderContext,
        style: Style,
        resume: WrapperResume | None = None,
    ) -> RenderResult:
        child = resume.child if resume is not None else None
        result = self._element.render(area, context, style.merged(self._style), child)
        return _wrap_result(result, result.size, resume)


class PaddedElement:
    """Adds margins around a wrapped element on every page it spans."""

    def __init__(self, element: Element, padding: MarginsLike) -> None:
        self._element = element
        self._padding = Margins.coerce(padding)

    def render(
        self,
        area: Area,
        context: RenderContext,
        style: Style,
        resume: WrapperResume | None = None,
    ) -> RenderResult:
        if not area.body().fits(self._padding.vertical):
            return _not_placed(resume)
        child = resume.child if resume is not None else None
        inner = area.with_margins(self._padding)
        result = self._element.render(inner, context, style, child)
        size = Size(
            result.size.width + self._padding.horizontal,
            result.size.height + self._padding.vertical,
        )
        return _wrap_result(result, size, resume)


class FramedElement:
    """Draws a frame around a wrapped element.

    When the element spans pages the frame stays open at the page
    boundaries: the top edge is drawn on the first part only and the bottom
    edge on the last part only.
    """

    def __init__(
        self,
        element: Element,
        line_width: float = 1.0,
        color: Color | None = None,
    ) -> None:
        self._element = element
        self._line_width = line_width
        self._color = color

    def render(
        self,
        area: Area,
        context: RenderContext,
        style: Style,
        resume: WrapperResume | None = None,
    ) -> RenderResult:
        lw = self._line_width
        body = area.body()
        if not body.fits(2 * lw):
            return _not_placed(resume)
        child = resume.child if resume is not None else None
        inner = area.with_margins(Margins.all(lw))
        result = self._element.render(inner, context, style, child)
        if result.has_more and not result.progressed:
            return _not_placed(resume)

        height = result.size.height + 2 * lw
        color = self._color or style.text_color
        half = lw / 2
        left, right = half, body.width - half
        body.draw_line([Position(left, 0.0), Position(left, height)], color, lw)
        body.draw_line([Position(right, 0.0), Position(right, height)], color, lw)
        if WrapperResume.first_part(resume):
            body.draw_line([Position(0.0, half), Position(body.width, half)], color, lw)
        if not result.has_more:
            bottom = height - half
            body.draw_line([Position(0.0, bottom), Position(body.width, bottom)], color, lw)
        return _wrap_result(result, Size(body.width, height), resume)


# =============================================================================
# Lists
# =============================================================================


class BulletPoint:
    """Element indented with a bullet drawn before its first line."""

    def __init__(
        self,
        element: Element,
        bullet: str = DEFAULT_BULLET,
        indent: float = LIST_INDENT,
        bullet_space: float = BULLET_SPACE,
    ) -> None:
        self._element = element
        self._bullet = bullet
        self._indent = indent
        self._bullet_space = bullet_space

    @property
    def bullet(self) -> str:
        return self._bullet

    def render(
        self,
        area: Area,
        context: RenderContext,
        style: Style,
        resume: WrapperResume | None = None,
    ) -> RenderResult:
        child = resume.child if resume is not None else None
        body = area.body()
        inner = body.offset(min(self._indent, body.width), 0.0)
        result = self._element.render(inner, context, style, child)
        started = not WrapperResume.first_part(resume)
        if not started and result.progressed and result.size.height > 0:
            bullet = _encodable(context, style, self._bullet)
            width = style.text_width(context.font_cache, bullet)
            x = max(0.0, self._indent - width - self._bullet_space)
            body.draw_text(
                context.font_cache,
                Position(x, style.ascent(context.font_cache)),
                style,
                bullet,
            )
            started = True
        size = Size(result.size.width + self._indent, result.size.height)
        return _wrap_result(result, size, resume, started)


class UnorderedList:
    """List of elements marked with the same bullet."""

    def __init__(self, elements: Iterable[Element] = (), bullet: str = DEFAULT_BULLET) -> None:
        self._bullet = bullet
        self._layout = LinearLayout()
        for element in elements:
            self.push(element)

    def push(self, element: Element) -> UnorderedList:
        self._layout.push(BulletPoint(element, self._bullet))
        return self

    def render(
        self,
        area: Area,
        context: RenderContext,
        style: Style,
        resume: LinearLayoutResume | None = None,
    ) -> RenderResult:
        return self._layout.render(area, context, style, resume)


class OrderedList:
    """List of elements numbered from ``start`` ("1.", "2.", ...)."""

    def __init__(self, elements: Iterable[Element] = (), start: int = 1) -> None:
        self._next = start
        self._layout = LinearLayout()
        for element in elements:
            self.push(element)

    def push(self, element: Element) -> OrderedList:
        self._layout.push(BulletPoint(element, f"{self._next}."))
        self._next += 1
        return self

    def render(
        self,
        area: Area,
        context: RenderContext,
        style: Style,
        resume: LinearLayoutResume | None = None,
    ) -> RenderResult:
        return self._layout.render(area, context, style, resume)


# =============================================================================
# Tables
# =============================================================================


@dataclass(frozen=True)
class CellPlacement:
    """Where a cell sits in its table."""

    column: int
    row: int
    columns: int
    rows: int
    first_on_page: bool


class CellDecorator(Protocol):
    """Draws borders around table cells."""

    def prepare_cell(self, area: Area, placement: CellPlacement) -> Area:
        """Area for the cell content, shrunk by the space borders need."""
        ...

    def decorate_cell(
        self, area: Area, placement: CellPlacement, content_height: float, row_height: float
    ) -> None:
        """Draw the borders of a placed cell."""
        ...

    def extra_height(self, placement: CellPlacement) -> float:
        """Vertical space the borders add to the cell content."""
        ...

    def decorate_page_break(self, area: Area, y: float) -> None:
        """Close the table at the bottom of a page it continues from."""
        ...


class FrameCellDecorator:
    """Cell borders: inner lines, the outer frame, and lines at page breaks.

    Args:
        inner: Draw lines between cells.
        outer: Draw the frame around the table.
        cont: Draw a horizontal line where the table is split across pages.
    """

    def __init__(
        self,
        inner: bool = True,
        outer: bool = True,
        cont: bool = False,
        line_width: float = 1.0,
        color: Color = BLACK,
    ) -> None:
        self._inner = inner
        self._outer = outer
        self._cont = cont
        self._line_width = line_width
        self._color = color

    def _edges(self, placement: CellPlacement) -> Margins:
        """Line width per side where a line is drawn, 0 elsewhere."""
        lw = self._line_width
        if placement.row == 0:
            top = self._outer
        elif placement.first_on_page:
            top = self._cont
        else:
            top = self._inner
        left = self._outer if placement.column == 0 else self._inner
        right = self._outer and placement.column == placement.columns - 1
        bottom = self._outer and placement.row == placement.rows - 1
        return Margins(
            top=lw if top else 0.0,
            right=lw if right else 0.0,
            bottom=lw if bottom else 0.0,
            left=lw if left else 0.0,
        )

    def prepare_cell(self, area: Area, placement: CellPlacement) -> Area:
        return area.with_margins(self._edges(placement))

    def extra_height(self, placement: CellPlacement) -> float:
        return self._edges(placement).vertical

    def decorate_cell(
        self, area: Area, placement: CellPlacement, content_height: float, row_height: float
    ) -> None:
        edges = self._edges(placement)
        half = self._line_width / 2
        width = area.width
        if edges.top:
            area.draw_line([Position(0.0, half), Position(width, half)], self._color, self._line_width)
        if edges.bottom:
            y = row_height - half
            area.draw_line([Position(0.0, y), Position(width, y)], self._color, self._line_width)
        if edges.left:
            area.draw_line([Position(half, 0.0), Position(half, row_height)], self._color, self._line_width)
        if edges.right:
            x = width - half
            area.draw_line([Position(x, 0.0), Position(x, row_height)], self._color, self._line_width)

    def decorate_page_break(self, area: Area, y: float) -> None:
        if self._cont:
            area.draw_line(
                [Position(0.0, y), Position(area.width, y)], self._color, self._line_width
            )


class Table:
    """Rows of cell elements in weighted columns.

    Rows are placed whole: a row is committed only if every cell finishes
    in the remaining height, otherwise the row starts the next page.
    """

    def __init__(
        self,
        column_weights: Sequence[float],
        decorator: Optional[CellDecorator] = None,
    ) -> None:
        if not column_weights or any(w <= 0 for w in column_weights):
            raise InvalidData(f"Column weights must be positive: {list(column_weights)}")
        self._weights = [float(w) for w in column_weights]
        self._decorator = decorator
        self._rows: list[list[Element]] = []

    @classmethod
    def equal(cls, columns: int, decorator: Optional[CellDecorator] = None) -> Table:
        """Table with equally wide columns."""
        return cls([1.0] * columns, decorator)

    @property
    def column_count(self) -> int:
        return len(self._weights)

    @property
    def row_count(self) -> int:
        return len(self._rows)

    def set_cell_decorator(self, decorator: CellDecorator) -> Table:
        self._decorator = decorator
        return self

    def push_row(self, cells: Sequence[Element | StyledTextLike]) -> Table:
        """Append a row; strings become paragraphs.

        Raises:
            InvalidData: If the row length differs from the column count.
        """
        if len(cells) != len(self._weights):
            raise InvalidData(
                f"Row has {len(cells)} cells but the table has {len(self._weights)} columns"
            )
        row: list[Element] = []
        for cell in cells:
            if isinstance(cell, (str, StyledText)):
                row.append(Paragraph(cell))
            else:
                row.append(cell)
        self._rows.append(row)
        return self

    def render(
        self,
        area: Area,
        context: RenderContext,
        style: Style,
        resume: TableResume | None = None,
    ) -> RenderResult:
        body = area.body()
        start = resume.row if resume is not None else 0
        index = start

        while index < len(self._rows):
            row_height = self._render_row(body, context, style, index, index == start)
            if row_height is None:
                if self._decorator is not None and index > start:
                    self._decorator.decorate_page_break(body, body.cursor_y)
                logger.debug("Table row %d moves to the next page", index)
                return RenderResult(
                    Size(body.width, body.cursor_y), TableResume(index), index > start
                )
            body.add_height(row_height)
            index += 1

        return RenderResult(Size(body.width, body.cursor_y))

    def _render_row(
        self,
        body: Area,
        context: RenderContext,
        style: Style,
        index: int,
        first_on_page: bool,
    ) -> float | None:
        """Render a row and commit it if every cell fits.

        Returns:
            Row height, or None if the row does not fit.
        """
        buffer = DrawingBuffer(body.surface.size)
        columns = body.body().with_surface(buffer).split_columns(self._weights)
        placements: list[tuple[Area, CellPlacement, float]] = []
        row_height = 0.0

        for column, (cell, column_area) in enumerate(zip(self._rows[index], columns)):
            placement = CellPlacement(
                column, index, len(self._weights), len(self._rows), first_on_page
            )
            cell_area = column_area
            extra = 0.0
            if self._decorator is not None:
                cell_area = self._decorator.prepare_cell(column_area, placement)
                extra = self._decorator.extra_height(placement)
            result = cell.render(cell_area, context, style)
            if result.has_more:
                return None
            content_height = result.size.height
            placements.append((column_area, placement, content_height))
            row_height = max(row_height, content_height + extra)

        if not body.fits(row_height):
            return None
        if self._decorator is not None:
            for column_area, placement, content_height in placements:
                self._decorator.decorate_cell(column_area, placement, content_height, row_height)
        buffer.replay(body.surface)
        return row_height


