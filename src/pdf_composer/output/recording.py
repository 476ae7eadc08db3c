# SPDX-License-Identifier: Apache-2.0
"""In-memory renderer that records draw calls per page."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, BinaryIO

from pdf_composer.core.area import GlyphRun, LinePrimitive, PageSurface, RectPrimitive, ShapePrimitive
from pdf_composer.core.errors import DocumentEmpty
from pdf_composer.core.models import Position, Size


@dataclass
class RecordedText:
    """A glyph run drawn at a baseline position."""

    position: Position
    run: GlyphRun

    @property
    def text(self) -> str:
        return self.run.text


@dataclass
class RecordedPage:
    """Everything drawn on one page, in drawing order."""

    number: int
    size: Size
    texts: list[RecordedText] = field(default_factory=list)
    shapes: list[ShapePrimitive] = field(default_factory=list)
    finalized: bool = False

    def draw_glyph_run(self, position: Position, run: GlyphRun) -> None:
        self.texts.append(RecordedText(position, run))

    def draw_shape(self, primitive: ShapePrimitive) -> None:
        self.shapes.append(primitive)

    @property
    def text_lines(self) -> list[str]:
        """Texts grouped by baseline, top to bottom."""
        baselines: dict[float, list[RecordedText]] = {}
        for item in self.texts:
            baselines.setdefault(round(item.position.y, 4), []).append(item)
        return [
            "".join(item.text for item in sorted(items, key=lambda t: t.position.x))
            for _, items in sorted(baselines.items())
        ]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        shapes: list[dict[str, Any]] = []
        for shape in self.shapes:
            if isinstance(shape, LinePrimitive):
                shapes.append({
                    "type": "line",
                    "points": [[p.x, p.y] for p in shape.points],
                    "line_width": shape.line_width,
                })
            elif isinstance(shape, RectPrimitive):
                shapes.append({
                    "type": "rect",
                    "origin": [shape.origin.x, shape.origin.y],
                    "size": shape.size.to_dict(),
                })
        return {
            "number": self.number,
            "size": self.size.to_dict(),
            "texts": [
                {
                    "x": item.position.x,
                    "y": item.position.y,
                    "text": item.text,
                    "font": item.run.font.name,
                    "font_size": item.run.font_size,
                }
                for item in self.texts
            ],
            "shapes": shapes,
        }


class RecordingRenderer:
    """Renderer keeping pages as inspectable recordings.

    ``write`` emits the recordings as JSON, which makes layouts easy to
    diff without a PDF reader.
    """

    def __init__(self) -> None:
        self._pages: list[RecordedPage] = []
        self._title = ""

    @property
    def pages(self) -> list[RecordedPage]:
        return self._pages

    @property
    def page_count(self) -> int:
        return len(self._pages)

    @property
    def title(self) -> str:
        return self._title

    def set_title(self, title: str) -> None:
        self._title = title

    def new_page(self, size: Size) -> RecordedPage:
        page = RecordedPage(number=len(self._pages) + 1, size=size)
        self._pages.append(page)
        return page

    def finalize_page(self, surface: PageSurface) -> None:
        if isinstance(surface, RecordedPage):
            surface.finalized = True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"title": self._title, "pages": [page.to_dict() for page in self._pages]}

    def write(self, stream: BinaryIO) -> None:
        if not self._pages:
            raise DocumentEmpty("Cannot write a document without pages")
        stream.write(json.dumps(self.to_dict(), indent=2, ensure_ascii=False).encode("utf-8"))
