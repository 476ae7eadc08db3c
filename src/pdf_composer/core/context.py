# SPDX-License-Identifier: Apache-2.0
"""Layout configuration and the per-render context."""

from __future__ import annotations

from dataclasses import dataclass, field

from .fonts import FontCache
from .hyphenation import Hyphenator
from .models import mm_to_pt
from .style import Style

# Policies for words wider than an empty line
OVERLONG_BREAK = "break"
OVERLONG_ERROR = "error"


@dataclass
class LayoutConfig:
    """Render policies.

    Attributes:
        overlong_words: What to do with a word wider than an empty line when
            it cannot be hyphenated. "break" splits it after the longest
            prefix that fits (at least one character); "error" keeps it
            whole, which fails the render with ElementTooLarge.
        replacement_char: Substitute for characters without a glyph. If None,
            such characters raise UnsupportedEncoding.
        hyphen_mark: Text appended to the first part of a hyphenated word.
        footer_height: Space reserved at the bottom of a page for a footer
            by SimplePageDecorator, in points.
    """

    overlong_words: str = OVERLONG_BREAK
    replacement_char: str | None = None
    hyphen_mark: str = "-"
    footer_height: float = field(default_factory=lambda: mm_to_pt(15))

    def __post_init__(self) -> None:
        if self.overlong_words not in (OVERLONG_BREAK, OVERLONG_ERROR):
            raise ValueError(
                f"overlong_words must be {OVERLONG_BREAK!r} or {OVERLONG_ERROR!r}, "
                f"got {self.overlong_words!r}"
            )
        if self.replacement_char is not None and len(self.replacement_char) != 1:
            raise ValueError("replacement_char must be a single character")
        if self.footer_height < 0:
            raise ValueError(f"footer_height must not be negative: {self.footer_height}")


@dataclass(frozen=True)
class RenderContext:
    """Read-only resources handed down the render call chain."""

    font_cache: FontCache
    hyphenator: Hyphenator | None = None
    config: LayoutConfig = field(default_factory=LayoutConfig)

    def hyphenates(self, style: Style) -> bool:
        """Whether words in this style may be hyphenated."""
        return self.hyphenator is not None and style.allows_hyphenation
