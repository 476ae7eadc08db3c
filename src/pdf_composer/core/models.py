# SPDX-License-Identifier: Apache-2.0
"""Geometry and color models shared by the layout core.

All lengths are PostScript points (1/72 inch), the unit used by the PDF
backend. Layout coordinates have their origin at the top-left corner of a
page and grow downwards; the PDF renderer flips them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

POINTS_PER_MM = 72.0 / 25.4


def mm_to_pt(value: float) -> float:
    """Convert millimeters to points."""
    return float(value) * POINTS_PER_MM


def pt_to_mm(value: float) -> float:
    """Convert points to millimeters."""
    return float(value) / POINTS_PER_MM


@dataclass(frozen=True)
class Position:
    """A point relative to the top-left corner of an area.

    Attributes:
        x: Horizontal offset in points
        y: Vertical offset in points (downwards)
    """

    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Position) -> Position:
        return Position(self.x + other.x, self.y + other.y)


@dataclass(frozen=True)
class Size:
    """Width and height in points."""

    width: float = 0.0
    height: float = 0.0

    def stack_vertical(self, other: Size) -> Size:
        """Size of this box with another box placed below it."""
        return Size(max(self.width, other.width), self.height + other.height)

    def stack_horizontal(self, other: Size) -> Size:
        """Size of this box with another box placed to its right."""
        return Size(self.width + other.width, max(self.height, other.height))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Size:
        """Create from dictionary."""
        return cls(width=float(data["width"]), height=float(data["height"]))


class PaperSize(Enum):
    """Common paper sizes, stored as (width, height) in millimeters."""

    A4 = (210.0, 297.0)
    LEGAL = (216.0, 356.0)
    LETTER = (216.0, 279.0)

    @property
    def size(self) -> Size:
        """Paper size in points."""
        width, height = self.value
        return Size(mm_to_pt(width), mm_to_pt(height))


@dataclass(frozen=True)
class Margins:
    """Distances from the edges of an area, in points."""

    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0
    left: float = 0.0

    @classmethod
    def all(cls, value: float) -> Margins:
        """Same margin on all four sides."""
        return cls(value, value, value, value)

    @classmethod
    def vh(cls, vertical: float, horizontal: float) -> Margins:
        """Vertical (top/bottom) and horizontal (left/right) margins."""
        return cls(vertical, horizontal, vertical, horizontal)

    @classmethod
    def coerce(cls, value: MarginsLike) -> Margins:
        """Build margins from a number, a (v, h) pair or a (t, r, b, l) tuple."""
        if isinstance(value, Margins):
            return value
        if isinstance(value, (int, float)):
            return cls.all(float(value))
        values = tuple(float(v) for v in value)
        if len(values) == 2:
            return cls.vh(*values)
        if len(values) == 4:
            return cls(*values)
        raise ValueError(f"Expected 1, 2 or 4 margin values, got {len(values)}")

    @property
    def horizontal(self) -> float:
        """Sum of left and right margins."""
        return self.left + self.right

    @property
    def vertical(self) -> float:
        """Sum of top and bottom margins."""
        return self.top + self.bottom


MarginsLike = Union[Margins, float, int, tuple]


@dataclass(frozen=True)
class Color:
    """RGB color value.

    Attributes:
        r: Red component (0-255)
        g: Green component (0-255)
        b: Blue component (0-255)
    """

    r: int = 0
    g: int = 0
    b: int = 0

    def __post_init__(self) -> None:
        for component in (self.r, self.g, self.b):
            if not 0 <= component <= 255:
                raise ValueError(f"Color component out of range: {component}")

    @classmethod
    def greyscale(cls, value: int) -> Color:
        """Grey color with equal components."""
        return cls(value, value, value)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"r": self.r, "g": self.g, "b": self.b}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Color:
        """Create from dictionary."""
        return cls(
            r=int(data.get("r", 0)),
            g=int(data.get("g", 0)),
            b=int(data.get("b", 0)),
        )


BLACK = Color(0, 0, 0)
