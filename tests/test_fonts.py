# SPDX-License-Identifier: Apache-2.0
"""Tests for font metrics and the font cache."""

from __future__ import annotations

import io
from pathlib import Path

import pytest
from fontTools.ttLib import TTFont

from conftest import build_test_font, fixed_font
from pdf_composer.core.errors import UnknownFontFamily, UnsupportedFontData
from pdf_composer.core.fonts import (
    Builtin,
    FontCache,
    FontData,
    FontFamily,
    FontVariant,
    StandardFontMetrics,
    TrueTypeMetrics,
    load_font_family,
)
from pdf_composer.core.style import Style

# =============================================================================
# TrueType metrics
# =============================================================================


class TestTrueTypeMetrics:
    """Tests for TrueTypeMetrics with a fontTools-built font."""

    def test_vertical_metrics(self, test_font_bytes: bytes) -> None:
        metrics = TrueTypeMetrics(test_font_bytes)
        assert metrics.units_per_em == 1000
        assert metrics.ascent == 800
        assert metrics.descent == -200

    def test_advances(self, test_font_bytes: bytes) -> None:
        metrics = TrueTypeMetrics(test_font_bytes)
        glyph_a = metrics.glyph_for(ord("A"))
        glyph_space = metrics.glyph_for(ord(" "))
        assert glyph_a is not None and glyph_space is not None
        assert metrics.advance(glyph_a) == 600
        assert metrics.advance(glyph_space) == 250

    def test_missing_glyph(self, test_font_bytes: bytes) -> None:
        assert TrueTypeMetrics(test_font_bytes).glyph_for(ord("Z")) is None

    def test_gpos_kerning(self, test_font_bytes: bytes) -> None:
        metrics = TrueTypeMetrics(test_font_bytes)
        glyph_a = metrics.glyph_for(ord("A"))
        glyph_v = metrics.glyph_for(ord("V"))
        assert metrics.kerning(glyph_a, glyph_v) == -80
        assert metrics.kerning(glyph_v, glyph_a) == 0

    def test_class_kerning_with_default_second_class(self) -> None:
        """Second glyphs outside ClassDef2 use the values of class 0."""
        font = TTFont(io.BytesIO(build_test_font({("[A]", "[V]"): -50})))
        subtable = font["GPOS"].table.LookupList.Lookup[0].SubTable[0]
        assert subtable.Format == 2
        first_class = subtable.ClassDef1.classDefs.get("A", 0)
        subtable.Class1Record[first_class].Class2Record[0].Value1.XAdvance = -30
        buffer = io.BytesIO()
        font.save(buffer)

        metrics = TrueTypeMetrics(buffer.getvalue())
        glyph_a = metrics.glyph_for(ord("A"))
        glyph_v = metrics.glyph_for(ord("V"))
        glyph_lower = metrics.glyph_for(ord("a"))
        assert metrics.kerning(glyph_a, glyph_v) == -50
        assert metrics.kerning(glyph_a, glyph_lower) == -30
        assert metrics.kerning(glyph_v, glyph_lower) == 0

    def test_font_without_kerning(self) -> None:
        metrics = TrueTypeMetrics(build_test_font())
        glyph_a = metrics.glyph_for(ord("A"))
        glyph_v = metrics.glyph_for(ord("V"))
        assert metrics.kerning(glyph_a, glyph_v) == 0

    def test_name(self, test_font_bytes: bytes) -> None:
        assert TrueTypeMetrics(test_font_bytes).name == "Test Sans Regular"

    def test_garbage_bytes(self) -> None:
        with pytest.raises(UnsupportedFontData) as exc_info:
            TrueTypeMetrics(b"not a font")
        assert exc_info.value.cause is not None


# =============================================================================
# Standard fonts
# =============================================================================


class TestStandardFontMetrics:
    """Tests for the standard PDF fonts."""

    def test_helvetica_width(self) -> None:
        metrics = StandardFontMetrics("Helvetica")
        glyph = metrics.glyph_for(ord("A"))
        assert glyph == ord("A")
        assert metrics.advance(glyph) == 667

    def test_courier_is_monospaced(self) -> None:
        metrics = StandardFontMetrics("Courier")
        widths = {metrics.advance(metrics.glyph_for(ord(c))) for c in "iWm "}
        assert widths == {600}

    def test_winansi_coverage(self) -> None:
        metrics = StandardFontMetrics("Times-Roman")
        assert metrics.glyph_for(ord("€")) == 0x80
        assert metrics.glyph_for(ord("あ")) is None

    def test_vertical_metrics(self) -> None:
        metrics = StandardFontMetrics("Helvetica")
        assert metrics.ascent > 0 > metrics.descent

    def test_unknown_name(self) -> None:
        with pytest.raises(UnsupportedFontData):
            StandardFontMetrics("NoSuchFont-Bold")

    def test_builtin_variant_names(self) -> None:
        assert Builtin.HELVETICA.font_name(FontVariant.BOLD_ITALIC) == "Helvetica-BoldOblique"
        assert Builtin.TIMES.font_name(FontVariant.REGULAR) == "Times-Roman"


# =============================================================================
# FontCache
# =============================================================================


class TestFontCache:
    """Tests for FontCache registration and resolution."""

    def test_first_family_is_default(self) -> None:
        cache = FontCache()
        cache.add_font_family("one", fixed_font())
        cache.add_font_family("two", fixed_font())
        assert cache.default_family == "one"
        assert cache.family_names() == ["one", "two"]

    def test_bold_italic_falls_back_to_regular(self) -> None:
        """A family with only regular resolves bold_italic without error."""
        cache = FontCache()
        regular = fixed_font()
        cache.add_font_family("fixed", regular)
        assert cache.resolve("fixed", Style(bold=True, italic=True)) is regular

    def test_exact_variant(self) -> None:
        cache = FontCache()
        regular, bold = fixed_font(), fixed_font(name="Bold")
        cache.add_font_family("fixed", regular, bold=bold)
        assert cache.resolve("fixed", Style(bold=True)) is bold
        assert cache.resolve("fixed", Style(italic=True)) is regular

    def test_default_family_for_none(self, font_cache: FontCache) -> None:
        assert font_cache.resolve(None, Style()).name == "Courier"

    def test_unknown_family(self, font_cache: FontCache) -> None:
        with pytest.raises(UnknownFontFamily) as exc_info:
            font_cache.resolve("missing", Style())
        assert exc_info.value.family_name == "missing"

    def test_empty_cache_has_no_default(self) -> None:
        with pytest.raises(UnknownFontFamily):
            FontCache().resolve(None, Style())

    def test_add_font_parses_bytes(self, test_font_bytes: bytes) -> None:
        cache = FontCache()
        font = cache.add_font("test", FontVariant.REGULAR, test_font_bytes)
        assert not font.is_standard
        assert font.raw_data == test_font_bytes

    def test_add_font_rejects_garbage(self) -> None:
        with pytest.raises(UnsupportedFontData):
            FontCache().add_font("bad", "regular", b"\x00\x01")

    def test_frozen_cache_is_read_only(self, font_cache: FontCache) -> None:
        font_cache.freeze()
        with pytest.raises(RuntimeError):
            font_cache.add_font_family("other", fixed_font())

    def test_glyph_width_and_kerning(self) -> None:
        font = fixed_font(kerning={("a", "v"): -100})
        cache = FontCache()
        cache.add_font_family("fixed", font)
        assert cache.glyph_width(font.metrics, ord("a")) == 500
        assert cache.kerning(font.metrics, ord("a"), ord("v")) == -100

    def test_text_width_includes_kerning(self) -> None:
        font = fixed_font(kerning={("a", "v"): -100})
        cache = FontCache()
        cache.add_font_family("fixed", font)
        assert cache.text_width(font, "av", 10) == pytest.approx(9.0)
        assert cache.text_width(font, "v", 10, previous="a") == pytest.approx(4.0)

    def test_kerned_segments(self) -> None:
        font = fixed_font(kerning={("a", "v"): -100})
        cache = FontCache()
        cache.add_font_family("fixed", font)
        assert cache.kerned_segments(font, "xavy", 10) == [(0.0, "xa"), (pytest.approx(9.0), "vy")]

    def test_missing_glyph(self) -> None:
        font = fixed_font(missing="é")
        assert FontCache().missing_glyph(font, "café") == "é"
        assert FontCache().missing_glyph(font, "cafe") is None

    def test_fonts_without_duplicates(self) -> None:
        cache = FontCache()
        cache.add_family("std", FontFamily.standard(Builtin.COURIER))
        assert len(cache.fonts()) == 4


# =============================================================================
# Font files
# =============================================================================


class TestLoadFontFamily:
    """Tests for load_font_family."""

    def test_loads_present_variants(self, tmp_path: Path, test_font_bytes: bytes) -> None:
        (tmp_path / "Test-Regular.ttf").write_bytes(test_font_bytes)
        (tmp_path / "Test-Bold.ttf").write_bytes(test_font_bytes)
        family = load_font_family(tmp_path, "Test")
        assert family.bold is not None
        assert family.italic is None
        assert family.get(FontVariant.REGULAR) is family.regular

    def test_missing_regular(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_font_family(tmp_path, "Test")

    def test_font_data_load(self, tmp_path: Path, test_font_bytes: bytes) -> None:
        path = tmp_path / "font.ttf"
        path.write_bytes(test_font_bytes)
        assert FontData.load(path).metrics.units_per_em == 1000
