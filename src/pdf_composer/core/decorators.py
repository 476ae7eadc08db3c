# SPDX-License-Identifier: Apache-2.0
"""Page decorators: margins, headers and footers."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol, runtime_checkable

from .area import Area
from .context import RenderContext
from .elements import Element
from .errors import ElementTooLarge
from .models import Margins, MarginsLike
from .style import Style

logger = logging.getLogger(__name__)

# Builds the header or footer element for a 1-based page number
ElementFactory = Callable[[int], Element]


@runtime_checkable
class PageDecorator(Protocol):
    """Prepares the body area of each page."""

    def decorate_page(
        self,
        context: RenderContext,
        area: Area,
        page_number: int,
        style: Style,
    ) -> Area:
        """Draw page furniture and return the area for body content.

        Called exactly once per page, before any body element is rendered.
        """
        ...


class SimplePageDecorator:
    """Uniform margins with an optional header and footer.

    The header is rendered at the top of the printable area and the body
    starts below it. The footer is rendered into a band of
    ``LayoutConfig.footer_height`` at the bottom, which the body never uses.
    """

    def __init__(
        self,
        margins: MarginsLike | None = None,
        header: Optional[ElementFactory] = None,
        footer: Optional[ElementFactory] = None,
    ) -> None:
        self._margins = Margins.coerce(margins) if margins is not None else Margins()
        self._header = header
        self._footer = footer

    @property
    def margins(self) -> Margins:
        return self._margins

    def set_margins(self, margins: MarginsLike) -> None:
        self._margins = Margins.coerce(margins)

    def set_header(self, header: ElementFactory) -> None:
        self._header = header

    def set_footer(self, footer: ElementFactory) -> None:
        self._footer = footer

    def decorate_page(
        self,
        context: RenderContext,
        area: Area,
        page_number: int,
        style: Style,
    ) -> Area:
        area = area.with_margins(self._margins)

        if self._footer is not None:
            band = min(context.config.footer_height, area.height)
            footer_area = area.offset(0.0, area.height - band)
            self._render_furniture(self._footer(page_number), footer_area, context, style, "footer")
            area = area.with_height(area.height - band)

        if self._header is not None:
            height = self._render_furniture(
                self._header(page_number), area, context, style, "header"
            )
            area.add_height(height)
            area = area.body()

        return area

    @staticmethod
    def _render_furniture(
        element: Element,
        area: Area,
        context: RenderContext,
        style: Style,
        kind: str,
    ) -> float:
        result = element.render(area, context, style)
        if result.has_more:
            raise ElementTooLarge(f"The page {kind} does not fit into {area.height:.2f}pt")
        logger.debug("Rendered page %s (%.2fpt)", kind, result.size.height)
        return result.size.height
