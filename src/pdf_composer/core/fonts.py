# SPDX-License-Identifier: Apache-2.0
"""Font loading, metrics and the font cache.

TrueType/OpenType faces are parsed with fontTools; the 14 standard PDF
fonts use the AFM metrics bundled with reportlab. The layout core only sees
the FontMetrics protocol: advance widths, pair kerning, vertical metrics and
glyph coverage.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol, Union, runtime_checkable

from fontTools.ttLib import TTFont  # type: ignore[import-untyped]
from reportlab.pdfbase import pdfmetrics  # type: ignore[import-untyped]

from .errors import UnknownFontFamily, UnsupportedFontData

logger = logging.getLogger(__name__)

# GPOS lookup types
GPOS_PAIR_ADJUSTMENT = 2
GPOS_EXTENSION = 9


class FontVariant(str, Enum):
    """Style variant slot of a font family."""

    REGULAR = "regular"
    BOLD = "bold"
    ITALIC = "italic"
    BOLD_ITALIC = "bold_italic"

    @classmethod
    def from_flags(cls, bold: bool, italic: bool) -> FontVariant:
        """Select the variant for the given bold/italic flags."""
        if bold and italic:
            return cls.BOLD_ITALIC
        if bold:
            return cls.BOLD
        if italic:
            return cls.ITALIC
        return cls.REGULAR

    @property
    def file_suffix(self) -> str:
        """Suffix used in font file names (``LiberationSans-BoldItalic.ttf``)."""
        return {
            FontVariant.REGULAR: "Regular",
            FontVariant.BOLD: "Bold",
            FontVariant.ITALIC: "Italic",
            FontVariant.BOLD_ITALIC: "BoldItalic",
        }[self]


@runtime_checkable
class FontMetrics(Protocol):
    """Metrics interface consumed by the layout core.

    All values are in font units; divide by ``units_per_em`` and multiply by
    the font size to get points.
    """

    @property
    def name(self) -> str: ...

    @property
    def units_per_em(self) -> int: ...

    @property
    def ascent(self) -> float: ...

    @property
    def descent(self) -> float:
        """Distance below the baseline (negative)."""
        ...

    @property
    def line_gap(self) -> float: ...

    def glyph_for(self, codepoint: int) -> int | None:
        """Glyph id for a codepoint, or None if the font has no glyph."""
        ...

    def advance(self, glyph: int) -> float: ...

    def kerning(self, left: int, right: int) -> float:
        """Horizontal adjustment between two glyphs (may be negative)."""
        ...


class _ClassPairs:
    """Class-based pair adjustments (GPOS PairPos format 2)."""

    def __init__(
        self,
        coverage: set[int],
        first_classes: dict[int, int],
        second_classes: dict[int, int],
        values: list[list[float]],
    ) -> None:
        self._coverage = coverage
        self._first_classes = first_classes
        self._second_classes = second_classes
        self._values = values

    def get(self, left: int, right: int) -> float | None:
        if left not in self._coverage:
            return None
        # Glyphs missing from either class definition belong to class 0
        first = self._first_classes.get(left, 0)
        second = self._second_classes.get(right, 0)
        if first >= len(self._values) or second >= len(self._values[first]):
            return None
        value = self._values[first][second]
        return value or None


class TrueTypeMetrics:
    """FontMetrics backed by a fontTools ``TTFont``."""

    def __init__(self, data: bytes, font_number: int = 0) -> None:
        """Parse TrueType/OpenType font data.

        Args:
            data: Raw font file contents (TTF, OTF or TTC).
            font_number: Font index for TTC collections.

        Raises:
            UnsupportedFontData: If the data is not a usable scalable font.
        """
        try:
            font = TTFont(io.BytesIO(data), fontNumber=font_number)
        except Exception as exc:
            raise UnsupportedFontData("Failed to read font data", cause=exc) from exc

        try:
            units_per_em = int(font["head"].unitsPerEm)
            hhea = font["hhea"]
            hmtx = font["hmtx"]
            glyph_order = font.getGlyphOrder()
            best_cmap = font.getBestCmap() or {}
            name_table = font["name"] if "name" in font else None
            family_name = name_table.getDebugName(4) if name_table else None
            glyph_ids = {name: gid for gid, name in enumerate(glyph_order)}
            self._cmap = {
                cp: glyph_ids[name] for cp, name in best_cmap.items() if name in glyph_ids
            }
            self._advances = [
                float(hmtx.metrics.get(name, (0, 0))[0]) for name in glyph_order
            ]
            self._ascent = float(hhea.ascent)
            self._descent = float(hhea.descent)
            self._line_gap = float(hhea.lineGap)
            self._pairs: dict[tuple[int, int], float] = {}
            self._class_pairs: list[_ClassPairs] = []
            self._read_gpos_kerning(font, glyph_ids)
            self._read_kern_table(font, glyph_ids)
        except Exception as exc:
            raise UnsupportedFontData("Failed to read font tables", cause=exc) from exc
        finally:
            font.close()

        if units_per_em == 0:
            raise UnsupportedFontData("The font is not scalable (unitsPerEm is 0)")
        self._units_per_em = units_per_em
        self._name = family_name or "embedded"

    @property
    def name(self) -> str:
        return self._name

    @property
    def units_per_em(self) -> int:
        return self._units_per_em

    @property
    def ascent(self) -> float:
        return self._ascent

    @property
    def descent(self) -> float:
        return self._descent

    @property
    def line_gap(self) -> float:
        return self._line_gap

    def glyph_for(self, codepoint: int) -> int | None:
        return self._cmap.get(codepoint)

    def advance(self, glyph: int) -> float:
        if 0 <= glyph < len(self._advances):
            return self._advances[glyph]
        return 0.0

    def kerning(self, left: int, right: int) -> float:
        value = self._pairs.get((left, right))
        if value is not None:
            return value
        for pairs in self._class_pairs:
            class_value = pairs.get(left, right)
            if class_value is not None:
                return class_value
        return 0.0

    def _read_kern_table(self, font: TTFont, glyph_ids: dict[str, int]) -> None:
        """Read format 0 subtables of the legacy ``kern`` table."""
        if "kern" not in font:
            return
        for subtable in font["kern"].kernTables:
            if getattr(subtable, "format", None) != 0:
                continue
            for (left, right), value in subtable.kernTable.items():
                if left in glyph_ids and right in glyph_ids:
                    self._pairs.setdefault((glyph_ids[left], glyph_ids[right]), float(value))

    def _read_gpos_kerning(self, font: TTFont, glyph_ids: dict[str, int]) -> None:
        """Read pair adjustments of the GPOS ``kern`` feature."""
        if "GPOS" not in font:
            return
        table = font["GPOS"].table
        if table.FeatureList is None or table.LookupList is None:
            return

        lookup_indices: set[int] = set()
        for record in table.FeatureList.FeatureRecord:
            if record.FeatureTag == "kern":
                lookup_indices.update(record.Feature.LookupListIndex)

        for index in sorted(lookup_indices):
            lookup = table.LookupList.Lookup[index]
            for subtable in lookup.SubTable:
                lookup_type = lookup.LookupType
                if lookup_type == GPOS_EXTENSION:
                    lookup_type = subtable.ExtensionLookupType
                    subtable = subtable.ExtSubTable
                if lookup_type != GPOS_PAIR_ADJUSTMENT:
                    continue
                if subtable.Format == 1:
                    self._read_pair_format1(subtable, glyph_ids)
                elif subtable.Format == 2:
                    self._read_pair_format2(subtable, glyph_ids)

    def _read_pair_format1(self, subtable, glyph_ids: dict[str, int]) -> None:
        for first, pair_set in zip(subtable.Coverage.glyphs, subtable.PairSet):
            for record in pair_set.PairValueRecord:
                value = _x_advance(record.Value1)
                if value and first in glyph_ids and record.SecondGlyph in glyph_ids:
                    key = (glyph_ids[first], glyph_ids[record.SecondGlyph])
                    self._pairs.setdefault(key, value)

    def _read_pair_format2(self, subtable, glyph_ids: dict[str, int]) -> None:
        coverage = {glyph_ids[g] for g in subtable.Coverage.glyphs if g in glyph_ids}
        first_classes = {
            glyph_ids[g]: c for g, c in subtable.ClassDef1.classDefs.items() if g in glyph_ids
        }
        second_classes = {
            glyph_ids[g]: c for g, c in subtable.ClassDef2.classDefs.items() if g in glyph_ids
        }
        values = [
            [_x_advance(class2.Value1) for class2 in class1.Class2Record]
            for class1 in subtable.Class1Record
        ]
        self._class_pairs.append(
            _ClassPairs(coverage, first_classes, second_classes, values)
        )


def _x_advance(value_record) -> float:
    if value_record is None:
        return 0.0
    return float(getattr(value_record, "XAdvance", 0) or 0)


class StandardFontMetrics:
    """FontMetrics for one of the 14 standard PDF fonts.

    Widths come from the AFM files bundled with reportlab. Standard fonts use
    WinAnsiEncoding, so a character has a glyph iff it encodes to cp1252;
    the glyph id is the encoded byte. Kerning is not applied.
    """

    def __init__(self, name: str) -> None:
        try:
            font = pdfmetrics.getFont(name)
        except Exception as exc:
            raise UnsupportedFontData(f"Not a standard PDF font: {name}", cause=exc) from exc
        ascent, descent = pdfmetrics.getAscentDescent(name)
        self._name = name
        self._widths = [float(w) for w in font.widths]
        self._ascent = float(ascent)
        self._descent = float(descent)

    @property
    def name(self) -> str:
        return self._name

    @property
    def units_per_em(self) -> int:
        return 1000

    @property
    def ascent(self) -> float:
        return self._ascent

    @property
    def descent(self) -> float:
        return self._descent

    @property
    def line_gap(self) -> float:
        return 0.0

    def glyph_for(self, codepoint: int) -> int | None:
        try:
            encoded = chr(codepoint).encode("cp1252")
        except UnicodeEncodeError:
            return None
        return encoded[0]

    def advance(self, glyph: int) -> float:
        if 0 <= glyph < len(self._widths):
            return self._widths[glyph]
        return 0.0

    def kerning(self, left: int, right: int) -> float:
        return 0.0


class Builtin(Enum):
    """Standard PDF font families, mapped to their four variant names."""

    TIMES = ("Times-Roman", "Times-Bold", "Times-Italic", "Times-BoldItalic")
    HELVETICA = (
        "Helvetica",
        "Helvetica-Bold",
        "Helvetica-Oblique",
        "Helvetica-BoldOblique",
    )
    COURIER = ("Courier", "Courier-Bold", "Courier-Oblique", "Courier-BoldOblique")

    def font_name(self, variant: FontVariant) -> str:
        """Standard font name of a variant."""
        regular, bold, italic, bold_italic = self.value
        return {
            FontVariant.REGULAR: regular,
            FontVariant.BOLD: bold,
            FontVariant.ITALIC: italic,
            FontVariant.BOLD_ITALIC: bold_italic,
        }[variant]


@dataclass(frozen=True, eq=False)
class FontData:
    """Loaded metrics of one font face plus what the PDF writer needs.

    Attributes:
        metrics: Metrics provider used for layout
        raw_data: Font file bytes to embed (None for standard fonts)
        standard_name: Standard PDF font name (None for embedded fonts)
    """

    metrics: FontMetrics
    raw_data: bytes | None = None
    standard_name: str | None = None

    @property
    def name(self) -> str:
        """Human-readable font name."""
        return self.standard_name or self.metrics.name

    @property
    def is_standard(self) -> bool:
        """Whether this is one of the 14 standard PDF fonts."""
        return self.standard_name is not None

    @classmethod
    def from_bytes(cls, data: bytes, font_number: int = 0) -> FontData:
        """Parse TrueType/OpenType data for embedding."""
        return cls(metrics=TrueTypeMetrics(data, font_number), raw_data=bytes(data))

    @classmethod
    def load(cls, path: Path | str, font_number: int = 0) -> FontData:
        """Read and parse a font file."""
        return cls.from_bytes(Path(path).read_bytes(), font_number)

    @classmethod
    def standard(cls, name: str) -> FontData:
        """Use a standard PDF font (no embedding)."""
        return cls(metrics=StandardFontMetrics(name), standard_name=name)


FontSource = Union[FontData, bytes]


@dataclass(frozen=True)
class FontFamily:
    """Four style-variant slots; only ``regular`` is mandatory."""

    regular: FontData
    bold: FontData | None = None
    italic: FontData | None = None
    bold_italic: FontData | None = None

    def get(self, variant: FontVariant) -> FontData | None:
        """Font of a variant slot, without fallback."""
        return {
            FontVariant.REGULAR: self.regular,
            FontVariant.BOLD: self.bold,
            FontVariant.ITALIC: self.italic,
            FontVariant.BOLD_ITALIC: self.bold_italic,
        }[variant]

    @classmethod
    def standard(cls, builtin: Builtin) -> FontFamily:
        """Family made of the four variants of a standard PDF font."""
        return cls(
            regular=FontData.standard(builtin.font_name(FontVariant.REGULAR)),
            bold=FontData.standard(builtin.font_name(FontVariant.BOLD)),
            italic=FontData.standard(builtin.font_name(FontVariant.ITALIC)),
            bold_italic=FontData.standard(builtin.font_name(FontVariant.BOLD_ITALIC)),
        )


def load_font_family(directory: Path | str, name: str) -> FontFamily:
    """Load ``{name}-{Variant}.ttf`` files from a directory.

    Only the Regular file is required; missing variants fall back to it.

    Raises:
        FileNotFoundError: If the Regular file does not exist.
        UnsupportedFontData: If a file cannot be parsed.
    """
    directory = Path(directory)
    fonts: dict[FontVariant, FontData] = {}
    for variant in FontVariant:
        path = directory / f"{name}-{variant.file_suffix}.ttf"
        if path.exists():
            fonts[variant] = FontData.load(path)
        elif variant is FontVariant.REGULAR:
            raise FileNotFoundError(f"Font file not found: {path}")
        else:
            logger.warning("Font variant not found: %s. Using regular.", path.name)
    return FontFamily(
        regular=fonts[FontVariant.REGULAR],
        bold=fonts.get(FontVariant.BOLD),
        italic=fonts.get(FontVariant.ITALIC),
        bold_italic=fonts.get(FontVariant.BOLD_ITALIC),
    )


class FontCache:
    """Registry of font families keyed by family name.

    The first family added becomes the default family used by styles that
    do not name one. The cache is populated before rendering and frozen for
    the duration of a render pass.
    """

    def __init__(self) -> None:
        self._families: dict[str, dict[FontVariant, FontData]] = {}
        self._default_family: str | None = None
        self._frozen = False

    @property
    def default_family(self) -> str:
        """Name of the default family."""
        if self._default_family is None:
            raise UnknownFontFamily("<default>")
        return self._default_family

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """Make the cache read-only."""
        self._frozen = True

    def __contains__(self, family_name: object) -> bool:
        return family_name in self._families

    def family_names(self) -> list[str]:
        """Registered family names in registration order."""
        return list(self._families)

    def fonts(self) -> list[FontData]:
        """All registered fonts, without duplicates."""
        seen: dict[int, FontData] = {}
        for variants in self._families.values():
            for font in variants.values():
                seen.setdefault(id(font), font)
        return list(seen.values())

    def add_font(
        self,
        family_name: str,
        variant: FontVariant | str,
        font_data: FontSource,
    ) -> FontData:
        """Register one variant of a family.

        Args:
            family_name: Family key.
            variant: Variant slot.
            font_data: Parsed FontData or raw font bytes.

        Returns:
            The registered FontData.

        Raises:
            UnsupportedFontData: If raw bytes cannot be parsed.
            RuntimeError: If the cache is frozen.
        """
        if self._frozen:
            raise RuntimeError("FontCache is read-only while rendering")
        variant = FontVariant(variant)
        if isinstance(font_data, (bytes, bytearray)):
            font_data = FontData.from_bytes(bytes(font_data))
        self._families.setdefault(family_name, {})[variant] = font_data
        if self._default_family is None:
            self._default_family = family_name
        logger.debug("Added font %s (%s) to family %s", font_data.name, variant.value, family_name)
        return font_data

    def add_font_family(
        self,
        family_name: str,
        regular: FontSource,
        bold: FontSource | None = None,
        italic: FontSource | None = None,
        bold_italic: FontSource | None = None,
    ) -> None:
        """Register a family; absent variants fall back to regular."""
        self.add_font(family_name, FontVariant.REGULAR, regular)
        for variant, font_data in (
            (FontVariant.BOLD, bold),
            (FontVariant.ITALIC, italic),
            (FontVariant.BOLD_ITALIC, bold_italic),
        ):
            if font_data is not None:
                self.add_font(family_name, variant, font_data)

    def add_family(self, family_name: str, family: FontFamily) -> None:
        """Register all slots of a FontFamily."""
        self.add_font_family(
            family_name, family.regular, family.bold, family.italic, family.bold_italic
        )

    def resolve(self, family_name: str | None, style) -> FontData:
        """Select the font for a style.

        Args:
            family_name: Family key, or None for the default family.
            style: Object with ``is_bold`` and ``is_italic`` attributes.

        Returns:
            The exact variant, or the regular variant if it is missing.

        Raises:
            UnknownFontFamily: If the family was never registered.
        """
        name = family_name if family_name is not None else self.default_family
        variants = self._families.get(name)
        if variants is None or FontVariant.REGULAR not in variants:
            raise UnknownFontFamily(name)
        variant = FontVariant.from_flags(style.is_bold, style.is_italic)
        font = variants.get(variant)
        if font is None:
            logger.debug("Family %s has no %s variant, using regular", name, variant.value)
            font = variants[FontVariant.REGULAR]
        return font

    def glyph_width(self, metrics: FontMetrics, codepoint: int) -> float:
        """Advance width of a codepoint in font units (0 for missing glyphs)."""
        glyph = metrics.glyph_for(codepoint)
        if glyph is None:
            return 0.0
        return metrics.advance(glyph)

    def kerning(self, metrics: FontMetrics, left: int, right: int) -> float:
        """Kerning adjustment between two codepoints in font units."""
        left_glyph = metrics.glyph_for(left)
        right_glyph = metrics.glyph_for(right)
        if left_glyph is None or right_glyph is None:
            return 0.0
        return metrics.kerning(left_glyph, right_glyph)

    def text_width(
        self,
        font: FontData,
        text: str,
        font_size: float,
        previous: str | None = None,
    ) -> float:
        """Width of text in points, including pair kerning.

        Args:
            font: Font to measure with.
            text: Text to measure.
            font_size: Font size in points.
            previous: Character preceding ``text`` in the same run; the
                kerning pair between it and the first character is included.
        """
        metrics = font.metrics
        total = 0.0
        last = ord(previous) if previous else None
        for char in text:
            codepoint = ord(char)
            total += self.glyph_width(metrics, codepoint)
            if last is not None:
                total += self.kerning(metrics, last, codepoint)
            last = codepoint
        return total * font_size / metrics.units_per_em

    def kerned_segments(
        self, font: FontData, text: str, font_size: float
    ) -> list[tuple[float, str]]:
        """Split text where kerning applies.

        Returns:
            (x offset in points, segment) pairs; each segment is drawn as a
            plain run at its offset, which applies the kerning linearly.
        """
        metrics = font.metrics
        scale = font_size / metrics.units_per_em
        segments: list[tuple[float, str]] = []
        start_x = 0.0
        x = 0.0
        current = ""
        last: int | None = None
        for char in text:
            codepoint = ord(char)
            if last is not None:
                adjustment = self.kerning(metrics, last, codepoint)
                if adjustment:
                    segments.append((start_x, current))
                    x += adjustment * scale
                    start_x = x
                    current = ""
            current += char
            x += self.glyph_width(metrics, codepoint) * scale
            last = codepoint
        if current:
            segments.append((start_x, current))
        return segments

    def missing_glyph(self, font: FontData, text: str) -> str | None:
        """First character of text without a glyph in the font, if any."""
        metrics = font.metrics
        for char in text:
            if metrics.glyph_for(ord(char)) is None:
                return char
        return None
