# SPDX-License-Identifier: Apache-2.0
"""Renderer protocol."""

from __future__ import annotations

from typing import BinaryIO, Protocol, runtime_checkable

from pdf_composer.core.area import PageSurface
from pdf_composer.core.models import Size


@runtime_checkable
class Renderer(Protocol):
    """Owner of the pages of one output document.

    The pagination loop asks for a surface per page, draws into it and
    finalizes it. ``write`` is only called after every page was finalized.
    """

    @property
    def page_count(self) -> int: ...

    def set_title(self, title: str) -> None: ...

    def new_page(self, size: Size) -> PageSurface: ...

    def finalize_page(self, surface: PageSurface) -> None: ...

    def write(self, stream: BinaryIO) -> None:
        """Write the finished document.

        Raises:
            DocumentEmpty: If no page was created.
        """
        ...
