# SPDX-License-Identifier: Apache-2.0
"""Layout core: geometry, fonts, styles, wrapping and elements."""

from .area import Area, DrawingBuffer, GlyphRun, LinePrimitive, PageSurface, RectPrimitive
from .context import OVERLONG_BREAK, OVERLONG_ERROR, LayoutConfig, RenderContext
from .decorators import PageDecorator, SimplePageDecorator
from .elements import (
    Alignment,
    Break,
    BulletPoint,
    CellDecorator,
    Element,
    FrameCellDecorator,
    FramedElement,
    LinearLayout,
    OrderedList,
    PaddedElement,
    PageBreak,
    Paragraph,
    Rectangle,
    RenderResult,
    Rule,
    StyledElement,
    Table,
    Text,
    UnorderedList,
)
from .errors import (
    DocumentEmpty,
    ElementTooLarge,
    InsufficientSpace,
    InvalidData,
    InvalidSplit,
    LayoutError,
    RenderError,
    UnknownFontFamily,
    UnsupportedEncoding,
    UnsupportedFontData,
)
from .fonts import Builtin, FontCache, FontData, FontFamily, FontMetrics, FontVariant, load_font_family
from .hyphenation import Hyphenator, PyphenHyphenator
from .models import BLACK, Color, Margins, PaperSize, Position, Size, mm_to_pt, pt_to_mm
from .style import Effect, Style, StyledText
from .text_layout import Line, LineWrapper, TextPosition

__all__ = [
    "BLACK",
    "OVERLONG_BREAK",
    "OVERLONG_ERROR",
    "Alignment",
    "Area",
    "Break",
    "Builtin",
    "BulletPoint",
    "CellDecorator",
    "Color",
    "DocumentEmpty",
    "DrawingBuffer",
    "Effect",
    "Element",
    "ElementTooLarge",
    "FontCache",
    "FontData",
    "FontFamily",
    "FontMetrics",
    "FontVariant",
    "FrameCellDecorator",
    "FramedElement",
    "GlyphRun",
    "Hyphenator",
    "InsufficientSpace",
    "InvalidData",
    "InvalidSplit",
    "LayoutConfig",
    "LayoutError",
    "Line",
    "LinePrimitive",
    "LineWrapper",
    "LinearLayout",
    "Margins",
    "OrderedList",
    "PaddedElement",
    "PageBreak",
    "PageDecorator",
    "PageSurface",
    "PaperSize",
    "Paragraph",
    "Position",
    "PyphenHyphenator",
    "RectPrimitive",
    "Rectangle",
    "RenderContext",
    "RenderError",
    "RenderResult",
    "Rule",
    "SimplePageDecorator",
    "Size",
    "Style",
    "StyledElement",
    "StyledText",
    "Table",
    "Text",
    "TextPosition",
    "UnknownFontFamily",
    "UnorderedList",
    "UnsupportedEncoding",
    "UnsupportedFontData",
    "load_font_family",
    "mm_to_pt",
    "pt_to_mm",
]
