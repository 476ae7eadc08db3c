# SPDX-License-Identifier: Apache-2.0
"""Layout error definitions."""

from __future__ import annotations


class LayoutError(Exception):
    """Base exception for layout and rendering errors."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class UnsupportedFontData(LayoutError):
    """Font bytes could not be parsed into metrics."""


class UnknownFontFamily(LayoutError):
    """A style references a font family that was never registered."""

    def __init__(self, family_name: str) -> None:
        super().__init__(f"Unknown font family: {family_name!r}")
        self.family_name = family_name


class UnsupportedEncoding(LayoutError):
    """A character has no glyph in the resolved font."""

    def __init__(self, text: str, char: str, font_name: str) -> None:
        super().__init__(
            f"Character {char!r} (U+{ord(char):04X}) in {text!r} "
            f"has no glyph in font {font_name}"
        )
        self.text = text
        self.char = char
        self.font_name = font_name


class InsufficientSpace(LayoutError):
    """Content does not fit into the remaining area.

    Control-flow signal inside the layout core; the pagination loop turns
    it into a page break or ElementTooLarge.
    """

    def __init__(self, requested: float, available: float) -> None:
        super().__init__(
            f"Requested {requested:.2f}pt but only {available:.2f}pt available"
        )
        self.requested = requested
        self.available = available


class ElementTooLarge(LayoutError):
    """Content cannot fit even on a fresh, empty page."""


class InvalidSplit(LayoutError):
    """An area split position lies outside the area."""


class InvalidData(LayoutError):
    """Element content is structurally invalid (e.g. table row length)."""


class DocumentEmpty(LayoutError):
    """A renderer was asked to write a document without pages."""


class RenderError(LayoutError):
    """The PDF backend failed to create or write page content."""
