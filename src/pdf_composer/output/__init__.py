# SPDX-License-Identifier: Apache-2.0
"""Renderers writing laid-out pages."""

from .base import Renderer
from .pdf_renderer import PdfPageSurface, PdfRenderer
from .recording import RecordedPage, RecordingRenderer

__all__ = [
    "PdfPageSurface",
    "PdfRenderer",
    "RecordedPage",
    "RecordingRenderer",
    "Renderer",
]
