# SPDX-License-Identifier: Apache-2.0
"""Shared fixtures.

Most layout tests use FixedMetrics: every glyph is 500 units wide on a
1000 unit em with ascent 800 and descent -200. At 10pt a character is 5pt
wide and a line is exactly 10pt high, so expected positions are exact.
"""

from __future__ import annotations

import io
from typing import Iterable, Optional

import pytest
from fontTools.fontBuilder import FontBuilder
from fontTools.pens.ttGlyphPen import TTGlyphPen

from pdf_composer.core.area import Area
from pdf_composer.core.context import LayoutConfig, RenderContext
from pdf_composer.core.fonts import FontCache, FontData, FontFamily
from pdf_composer.core.models import Size
from pdf_composer.core.style import Style
from pdf_composer.output.recording import RecordedPage, RecordingRenderer

FIXED_FAMILY = "fixed"


class FixedMetrics:
    """Monospaced fake font metrics."""

    units_per_em = 1000
    ascent = 800.0
    descent = -200.0
    line_gap = 0.0

    def __init__(
        self,
        advance: float = 500.0,
        kerning: Optional[dict[tuple[str, str], float]] = None,
        missing: Iterable[str] = (),
        name: str = "Fixed",
    ) -> None:
        self._advance = advance
        self._kerning = kerning or {}
        self._missing = set(missing)
        self.name = name

    def glyph_for(self, codepoint: int) -> int | None:
        if chr(codepoint) in self._missing:
            return None
        return codepoint

    def advance(self, glyph: int) -> float:
        return self._advance

    def kerning(self, left: int, right: int) -> float:
        return self._kerning.get((chr(left), chr(right)), 0.0)


class FakeHyphenator:
    """Hyphenator with fixed break points per word."""

    def __init__(self, points: dict[str, list[int]]) -> None:
        self._points = points
        self.queries: list[str] = []

    def break_points(self, word: str) -> list[int]:
        self.queries.append(word)
        return list(self._points.get(word, []))


def fixed_font(**kwargs) -> FontData:
    """FontData drawn as Courier in PDF output."""
    return FontData(metrics=FixedMetrics(**kwargs), standard_name="Courier")


def make_cache(**kwargs) -> FontCache:
    cache = FontCache()
    cache.add_family(FIXED_FAMILY, FontFamily(regular=fixed_font(**kwargs)))
    return cache


def make_area(width: float = 100.0, height: float = 100.0) -> tuple[Area, RecordedPage]:
    """Area over a recorded page of the given size."""
    page = RecordingRenderer().new_page(Size(width, height))
    return Area.for_surface(page), page


def build_test_font(kern_pairs: Optional[dict[tuple[str, str], int]] = None) -> bytes:
    """Build a small TrueType font in memory.

    Glyphs: space (250), A (600), V (600), a (500); upem 1000, ascent 800,
    descent -200. Kerning pairs are written as a GPOS kern feature.
    """
    glyph_order = [".notdef", "space", "A", "V", "a"]
    builder = FontBuilder(1000, isTTF=True)
    builder.setupGlyphOrder(glyph_order)
    builder.setupCharacterMap({32: "space", 65: "A", 86: "V", 97: "a"})

    pen = TTGlyphPen(None)
    pen.moveTo((0, 0))
    pen.lineTo((0, 500))
    pen.lineTo((400, 500))
    pen.lineTo((400, 0))
    pen.closePath()
    box = pen.glyph()
    empty = TTGlyphPen(None).glyph()
    builder.setupGlyf({".notdef": box, "space": empty, "A": box, "V": box, "a": box})

    builder.setupHorizontalMetrics(
        {".notdef": (500, 0), "space": (250, 0), "A": (600, 0), "V": (600, 0), "a": (500, 0)}
    )
    builder.setupHorizontalHeader(ascent=800, descent=-200)
    builder.setupNameTable(
        {"familyName": "Test Sans", "styleName": "Regular", "fullName": "Test Sans Regular"}
    )
    builder.setupOS2(sTypoAscender=800, sTypoDescender=-200, usWinAscent=800, usWinDescent=200)
    builder.setupPost()

    if kern_pairs:
        rules = "\n".join(
            f"    pos {left} {right} {value};" for (left, right), value in kern_pairs.items()
        )
        builder.addOpenTypeFeatures(f"languagesystem DFLT dflt;\nfeature kern {{\n{rules}\n}} kern;\n")

    buffer = io.BytesIO()
    builder.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def font_cache() -> FontCache:
    """Font cache with the fixed-width family as default."""
    return make_cache()


@pytest.fixture
def context(font_cache: FontCache) -> RenderContext:
    """Render context without hyphenation."""
    return RenderContext(font_cache)


@pytest.fixture
def style() -> Style:
    """10pt style: 5pt per character, 10pt per line."""
    return Style(font_size=10)


@pytest.fixture
def error_context(font_cache: FontCache) -> RenderContext:
    """Render context rejecting overlong words."""
    return RenderContext(font_cache, config=LayoutConfig(overlong_words="error"))


@pytest.fixture
def test_font_bytes() -> bytes:
    """TrueType font with an A-V kerning pair of -80 units."""
    return build_test_font({("A", "V"): -80})
