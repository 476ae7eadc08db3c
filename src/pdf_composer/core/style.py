# SPDX-License-Identifier: Apache-2.0
"""Text styles and styled text runs.

A Style only stores the fields that were set explicitly. Styles cascade by
override: ``parent.merged(child)`` keeps every parent field the child leaves
unset, so a document default style flows down through elements to the
individual runs of a paragraph.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Optional, Union

from .models import BLACK, Color

if TYPE_CHECKING:
    from .fonts import FontCache, FontData

DEFAULT_FONT_SIZE = 12.0
DEFAULT_LINE_SPACING = 1.0


class Effect(Enum):
    """Shorthand for bold/italic styles."""

    BOLD = "bold"
    ITALIC = "italic"


@dataclass(frozen=True)
class Style:
    """Immutable, cascading text style.

    Attributes:
        font_family: Name of a family registered in the FontCache
        font_size: Font size in points
        bold: Bold flag
        italic: Italic flag
        color: Text and stroke color
        line_spacing: Line height multiplier
        hyphenate: Allow hyphenation when the context has a hyphenator
    """

    font_family: Optional[str] = None
    font_size: Optional[float] = None
    bold: Optional[bool] = None
    italic: Optional[bool] = None
    color: Optional[Color] = None
    line_spacing: Optional[float] = None
    hyphenate: Optional[bool] = None

    def __post_init__(self) -> None:
        if self.font_size is not None and self.font_size <= 0:
            raise ValueError(f"font_size must be positive, got {self.font_size}")
        if self.line_spacing is not None and self.line_spacing <= 0:
            raise ValueError(f"line_spacing must be positive, got {self.line_spacing}")

    @classmethod
    def coerce(cls, value: StyleLike | None) -> Style:
        """Build a style from a Style, Color, Effect or None."""
        if value is None:
            return cls()
        if isinstance(value, Style):
            return value
        if isinstance(value, Color):
            return cls(color=value)
        if isinstance(value, Effect):
            return cls(bold=True) if value is Effect.BOLD else cls(italic=True)
        raise TypeError(f"Cannot build a Style from {type(value).__name__}")

    @classmethod
    def combine(cls, styles: Iterable[StyleLike]) -> Style:
        """Merge styles left to right."""
        result = cls()
        for style in styles:
            result = result.merged(style)
        return result

    def merged(self, child: StyleLike | None) -> Style:
        """Return this style overridden by every field the child sets."""
        child = Style.coerce(child)
        overrides = {
            f.name: getattr(child, f.name)
            for f in fields(child)
            if getattr(child, f.name) is not None
        }
        if not overrides:
            return self
        return replace(self, **overrides)

    def with_font_family(self, font_family: str) -> Style:
        return replace(self, font_family=font_family)

    def with_font_size(self, font_size: float) -> Style:
        return replace(self, font_size=font_size)

    def with_color(self, color: Color) -> Style:
        return replace(self, color=color)

    def with_line_spacing(self, line_spacing: float) -> Style:
        return replace(self, line_spacing=line_spacing)

    def with_hyphenation(self, hyphenate: bool = True) -> Style:
        return replace(self, hyphenate=hyphenate)

    def with_bold(self, bold: bool = True) -> Style:
        return replace(self, bold=bold)

    def with_italic(self, italic: bool = True) -> Style:
        return replace(self, italic=italic)

    # Resolved values

    @property
    def is_bold(self) -> bool:
        return bool(self.bold)

    @property
    def is_italic(self) -> bool:
        return bool(self.italic)

    @property
    def size(self) -> float:
        """Font size in points, defaulting to 12."""
        return self.font_size if self.font_size is not None else DEFAULT_FONT_SIZE

    @property
    def spacing(self) -> float:
        """Line spacing factor, defaulting to 1.0."""
        return self.line_spacing if self.line_spacing is not None else DEFAULT_LINE_SPACING

    @property
    def text_color(self) -> Color:
        return self.color if self.color is not None else BLACK

    @property
    def allows_hyphenation(self) -> bool:
        return self.hyphenate is not False

    # Metrics

    def font(self, font_cache: FontCache) -> FontData:
        """Resolve the concrete font for this style."""
        return font_cache.resolve(self.font_family, self)

    def text_width(
        self, font_cache: FontCache, text: str, previous: str | None = None
    ) -> float:
        """Width of text in points, including kerning."""
        return font_cache.text_width(self.font(font_cache), text, self.size, previous)

    def ascent(self, font_cache: FontCache) -> float:
        """Distance from the top of a line to the baseline, in points."""
        metrics = self.font(font_cache).metrics
        return metrics.ascent * self.size / metrics.units_per_em

    def glyph_height(self, font_cache: FontCache) -> float:
        """Ascent plus descent, in points."""
        metrics = self.font(font_cache).metrics
        return (metrics.ascent - metrics.descent) * self.size / metrics.units_per_em

    def line_height(self, font_cache: FontCache) -> float:
        """Height of one line including the line gap and spacing factor."""
        metrics = self.font(font_cache).metrics
        height = metrics.ascent - metrics.descent + metrics.line_gap
        return height * self.size / metrics.units_per_em * self.spacing


StyleLike = Union[Style, Color, Effect]


@dataclass(frozen=True)
class StyledText:
    """A piece of text with a style."""

    text: str
    style: Style = Style()

    @classmethod
    def coerce(cls, value: StyledTextLike) -> StyledText:
        if isinstance(value, StyledText):
            return value
        if isinstance(value, str):
            return cls(value)
        raise TypeError(f"Cannot build StyledText from {type(value).__name__}")

    def width(self, font_cache: FontCache) -> float:
        return self.style.text_width(font_cache, self.text)


StyledTextLike = Union[StyledText, str]
