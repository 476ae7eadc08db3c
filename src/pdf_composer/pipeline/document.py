# SPDX-License-Identifier: Apache-2.0
"""Document root and the pagination loop."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Any, BinaryIO, Optional, Union

from pdf_composer.core.area import Area
from pdf_composer.core.context import LayoutConfig, RenderContext
from pdf_composer.core.decorators import PageDecorator, SimplePageDecorator
from pdf_composer.core.elements import Element
from pdf_composer.core.errors import ElementTooLarge, InsufficientSpace
from pdf_composer.core.fonts import FontCache, FontFamily, FontSource
from pdf_composer.core.hyphenation import Hyphenator
from pdf_composer.core.models import MarginsLike, PaperSize, Size
from pdf_composer.core.style import Style, StyleLike
from pdf_composer.output.base import Renderer
from pdf_composer.output.pdf_renderer import PdfRenderer

from .progress import STAGE_LAYOUT, STAGE_WRITE, ProgressCallback

logger = logging.getLogger(__name__)

DEFAULT_FAMILY = "default"


@dataclass
class RenderStats:
    """Summary of a layout pass."""

    pages: int = 0
    elements: int = 0
    page_breaks: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "pages": self.pages,
            "elements": self.elements,
            "page_breaks": self.page_breaks,
        }


class Document:
    """A document: fonts, default style, page setup and top-level elements.

    Example:
        >>> doc = Document(FontFamily.standard(Builtin.HELVETICA))
        >>> doc.set_title("Report")
        >>> doc.push(Paragraph("Hello"))
        >>> doc.render_to_file("report.pdf")
    """

    def __init__(
        self,
        font_family: FontFamily,
        family_name: str = DEFAULT_FAMILY,
        config: LayoutConfig | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        """Initialize Document.

        Args:
            font_family: Default font family; registered first, so styles
                without a family resolve to it.
            family_name: Name to register the default family under.
            config: Layout policies.
            progress_callback: Called after each finished page and once
                the output has been written.
        """
        self._font_cache = FontCache()
        self._font_cache.add_family(family_name, font_family)
        self._config = config or LayoutConfig()
        self._progress_callback = progress_callback
        self._elements: list[Element] = []
        self._style = Style()
        self._paper_size: Size = PaperSize.A4.size
        self._decorator: PageDecorator = SimplePageDecorator()
        self._hyphenator: Optional[Hyphenator] = None
        self._title = ""

    # Setup

    @property
    def font_cache(self) -> FontCache:
        return self._font_cache

    @property
    def config(self) -> LayoutConfig:
        return self._config

    @property
    def title(self) -> str:
        return self._title

    @property
    def paper_size(self) -> Size:
        return self._paper_size

    @property
    def style(self) -> Style:
        return self._style

    @property
    def elements(self) -> tuple[Element, ...]:
        return tuple(self._elements)

    def add_font_family(
        self,
        family_name: str,
        regular: FontSource,
        bold: FontSource | None = None,
        italic: FontSource | None = None,
        bold_italic: FontSource | None = None,
    ) -> str:
        """Register another family; returns its name for use in styles."""
        self._font_cache.add_font_family(family_name, regular, bold, italic, bold_italic)
        return family_name

    def set_title(self, title: str) -> None:
        self._title = title

    def set_paper_size(self, paper_size: Union[PaperSize, Size]) -> None:
        self._paper_size = paper_size.size if isinstance(paper_size, PaperSize) else paper_size

    def set_margins(self, margins: MarginsLike) -> None:
        """Use a SimplePageDecorator with these margins."""
        if isinstance(self._decorator, SimplePageDecorator):
            self._decorator.set_margins(margins)
        else:
            self._decorator = SimplePageDecorator(margins)

    def set_page_decorator(self, decorator: PageDecorator) -> None:
        self._decorator = decorator

    def set_style(self, style: StyleLike) -> None:
        self._style = Style.coerce(style)

    def set_font_size(self, font_size: float) -> None:
        self._style = self._style.with_font_size(font_size)

    def set_line_spacing(self, line_spacing: float) -> None:
        self._style = self._style.with_line_spacing(line_spacing)

    def set_hyphenator(self, hyphenator: Hyphenator | None) -> None:
        self._hyphenator = hyphenator

    def push(self, element: Element) -> None:
        """Append a top-level element."""
        self._elements.append(element)

    # Rendering

    def layout(self, renderer: Renderer) -> RenderStats:
        """Paginate all elements onto pages of the renderer.

        Every page is finalized before the next one starts. At least one
        page is produced, even for a document without elements.

        Raises:
            ElementTooLarge: If an element cannot be placed on an empty page
                or reports more height than its area has left.
            UnknownFontFamily: If a style names an unregistered family.
            UnsupportedEncoding: If text has no glyphs and no replacement
                character is configured.
        """
        self._font_cache.freeze()
        context = RenderContext(self._font_cache, self._hyphenator, self._config)
        renderer.set_title(self._title)
        stats = RenderStats(elements=len(self._elements))

        index = 0
        resume: Any = None
        page_number = 0
        while page_number == 0 or index < len(self._elements):
            page_number += 1
            surface = renderer.new_page(self._paper_size)
            area = self._decorator.decorate_page(
                context, Area.for_surface(surface), page_number, self._style
            )
            logger.debug("Page %d: body area %r", page_number, area)
            placed = False

            while index < len(self._elements):
                element = self._elements[index]
                result = element.render(area, context, self._style, resume)
                try:
                    area.add_height(result.size.height)
                except InsufficientSpace as exc:
                    raise ElementTooLarge(
                        f"{type(element).__name__} (element {index}) overflowed "
                        f"page {page_number}",
                        cause=exc,
                    ) from exc
                if result.progressed:
                    placed = True
                if result.has_more:
                    if not placed:
                        raise ElementTooLarge(
                            f"Could not fit {type(element).__name__} (element {index}) "
                            f"on page {page_number}"
                        )
                    resume = result.remainder
                    stats.page_breaks += 1
                    break
                index += 1
                resume = None

            renderer.finalize_page(surface)
            if self._progress_callback is not None:
                self._progress_callback(
                    STAGE_LAYOUT, index, len(self._elements), f"page {page_number}"
                )

        stats.pages = page_number
        logger.info("Laid out %d elements on %d pages", stats.elements, stats.pages)
        return stats

    def render(self, stream: BinaryIO) -> RenderStats:
        """Lay out the document and write it as PDF to a binary stream."""
        renderer = PdfRenderer()
        try:
            stats = self.layout(renderer)
            renderer.write(stream)
            if self._progress_callback is not None:
                self._progress_callback(
                    STAGE_WRITE, stats.pages, stats.pages, f"{stats.pages} pages written"
                )
        finally:
            renderer.close()
        return stats

    def render_to_file(self, path: Path | str) -> RenderStats:
        """Lay out the document and write it as PDF to a file."""
        buffer = BytesIO()
        stats = self.render(buffer)
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(buffer.getvalue())
        return stats
