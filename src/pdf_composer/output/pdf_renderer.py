# SPDX-License-Identifier: Apache-2.0
"""PDF output with pypdfium2.

Pages are built with PDFium's page object API: text objects for glyph
runs and path objects for lines and rectangles. Layout coordinates (origin
top-left, y down) are flipped into PDF user space (origin bottom-left).
Document metadata is written afterwards with pikepdf, since PDFium cannot
edit the info dictionary.
"""

from __future__ import annotations

import ctypes
import logging
from io import BytesIO
from typing import Any, BinaryIO

import pikepdf  # type: ignore[import-untyped]
import pypdfium2 as pdfium  # type: ignore[import-untyped]

from pdf_composer.core.area import GlyphRun, LinePrimitive, PageSurface, RectPrimitive, ShapePrimitive
from pdf_composer.core.errors import DocumentEmpty, RenderError
from pdf_composer.core.fonts import FontData
from pdf_composer.core.models import Color, Position, Size

logger = logging.getLogger(__name__)

# FPDF_FILLMODE_*
FILL_NONE = 0
FILL_WINDING = 2

PRODUCER = "pdf-composer"


def _wide_string(text: str) -> ctypes.Array:
    """Null-terminated UTF-16LE buffer (FPDF_WIDESTRING)."""
    encoded = text.encode("utf-16-le") + b"\x00\x00"
    buffer_type = ctypes.c_ushort * (len(encoded) // 2)
    return buffer_type.from_buffer_copy(encoded)


def _byte_buffer(data: bytes) -> ctypes.Array:
    """Unsigned byte buffer for font data; must outlive the document."""
    buffer_type = ctypes.c_ubyte * len(data)
    return buffer_type.from_buffer_copy(data)


class PdfPageSurface:
    """Page surface writing PDFium page objects."""

    def __init__(self, renderer: PdfRenderer, page: Any, size: Size) -> None:
        self._renderer = renderer
        self._page = page
        self._size = size

    @property
    def size(self) -> Size:
        return self._size

    @property
    def page(self) -> Any:
        return self._page

    def _flip(self, y: float) -> float:
        return self._size.height - y

    def draw_glyph_run(self, position: Position, run: GlyphRun) -> None:
        font_handle = self._renderer.font_handle(run.font)
        for dx, segment in run.segments:
            if not segment.strip():
                continue
            self._insert_text(
                font_handle,
                run.font_size,
                run.color,
                position.x + dx,
                self._flip(position.y),
                segment,
            )

    def _insert_text(
        self,
        font_handle: Any,
        font_size: float,
        color: Color,
        x: float,
        y: float,
        text: str,
    ) -> None:
        text_obj = pdfium.raw.FPDFPageObj_CreateTextObj(
            self._renderer.raw, font_handle, ctypes.c_float(font_size)
        )
        if not text_obj:
            raise RenderError(f"Failed to create text object for {text!r}")
        if not pdfium.raw.FPDFText_SetText(text_obj, _wide_string(text)):
            pdfium.raw.FPDFPageObj_Destroy(text_obj)
            raise RenderError(f"Failed to set text {text!r}")
        pdfium.raw.FPDFPageObj_SetFillColor(text_obj, color.r, color.g, color.b, 255)
        pdfium.raw.FPDFPageObj_Transform(
            text_obj,
            ctypes.c_double(1.0),
            ctypes.c_double(0.0),
            ctypes.c_double(0.0),
            ctypes.c_double(1.0),
            ctypes.c_double(x),
            ctypes.c_double(y),
        )
        pdfium.raw.FPDFPage_InsertObject(self._page.raw, text_obj)

    def draw_shape(self, primitive: ShapePrimitive) -> None:
        if isinstance(primitive, LinePrimitive):
            self._draw_line(primitive)
        elif isinstance(primitive, RectPrimitive):
            self._draw_rect(primitive)
        else:
            raise RenderError(f"Unsupported shape: {type(primitive).__name__}")

    def _draw_line(self, line: LinePrimitive) -> None:
        if len(line.points) < 2:
            return
        first, *rest = line.points
        path = pdfium.raw.FPDFPageObj_CreateNewPath(
            ctypes.c_float(first.x), ctypes.c_float(self._flip(first.y))
        )
        if not path:
            raise RenderError("Failed to create path object")
        for point in rest:
            pdfium.raw.FPDFPath_LineTo(
                path, ctypes.c_float(point.x), ctypes.c_float(self._flip(point.y))
            )
        color = line.color
        pdfium.raw.FPDFPageObj_SetStrokeColor(path, color.r, color.g, color.b, 255)
        pdfium.raw.FPDFPageObj_SetStrokeWidth(path, ctypes.c_float(line.line_width))
        pdfium.raw.FPDFPath_SetDrawMode(path, FILL_NONE, ctypes.c_int(1))
        pdfium.raw.FPDFPage_InsertObject(self._page.raw, path)

    def _draw_rect(self, rect_primitive: RectPrimitive) -> None:
        origin, size = rect_primitive.origin, rect_primitive.size
        rect = pdfium.raw.FPDFPageObj_CreateNewRect(
            ctypes.c_float(origin.x),
            ctypes.c_float(self._flip(origin.y + size.height)),
            ctypes.c_float(size.width),
            ctypes.c_float(size.height),
        )
        if not rect:
            raise RenderError("Failed to create rectangle object")
        fill, stroke = rect_primitive.fill, rect_primitive.stroke
        if fill is not None:
            pdfium.raw.FPDFPageObj_SetFillColor(rect, fill.r, fill.g, fill.b, 255)
        if stroke is not None:
            pdfium.raw.FPDFPageObj_SetStrokeColor(rect, stroke.r, stroke.g, stroke.b, 255)
            pdfium.raw.FPDFPageObj_SetStrokeWidth(rect, ctypes.c_float(rect_primitive.line_width))
        pdfium.raw.FPDFPath_SetDrawMode(
            rect,
            FILL_WINDING if fill is not None else FILL_NONE,
            ctypes.c_int(1 if stroke is not None else 0),
        )
        pdfium.raw.FPDFPage_InsertObject(self._page.raw, rect)


class PdfRenderer:
    """Renderer producing a PDF document with pypdfium2."""

    def __init__(self) -> None:
        self._pdf = pdfium.PdfDocument.new()
        self._title = ""
        self._page_count = 0
        self._font_handles: dict[int, Any] = {}
        # Font buffers are referenced by PDFium until the document is saved
        self._font_buffers: list[ctypes.Array] = []

    @property
    def raw(self) -> Any:
        """Raw FPDF_DOCUMENT handle."""
        return self._pdf.raw

    @property
    def page_count(self) -> int:
        return self._page_count

    def set_title(self, title: str) -> None:
        self._title = title

    def font_handle(self, font: FontData) -> Any:
        """Load a font into the document once and return its handle.

        Raises:
            RenderError: If PDFium rejects the font.
        """
        key = id(font)
        handle = self._font_handles.get(key)
        if handle is not None:
            return handle

        if font.is_standard:
            assert font.standard_name is not None
            handle = pdfium.raw.FPDFText_LoadStandardFont(
                self._pdf.raw, font.standard_name.encode("ascii")
            )
        else:
            if font.raw_data is None:
                raise RenderError(f"Font {font.name} has no data to embed")
            buffer = _byte_buffer(font.raw_data)
            self._font_buffers.append(buffer)
            # CID mode so that every codepoint of the font is reachable
            handle = pdfium.raw.FPDFText_LoadFont(
                self._pdf.raw,
                buffer,
                ctypes.c_uint(len(font.raw_data)),
                ctypes.c_int(pdfium.raw.FPDF_FONT_TRUETYPE),
                ctypes.c_int(1),
            )
        if not handle:
            raise RenderError(f"PDFium could not load font {font.name}")
        logger.debug("Loaded font %s into the PDF", font.name)
        self._font_handles[key] = handle
        return handle

    def new_page(self, size: Size) -> PdfPageSurface:
        try:
            page = self._pdf.new_page(size.width, size.height)
        except pdfium.PdfiumError as exc:
            raise RenderError("Failed to create page", cause=exc) from exc
        self._page_count += 1
        return PdfPageSurface(self, page, size)

    def finalize_page(self, surface: PageSurface) -> None:
        if not isinstance(surface, PdfPageSurface):
            raise RenderError(f"Not a PDF page surface: {type(surface).__name__}")
        try:
            surface.page.gen_content()
        except pdfium.PdfiumError as exc:
            raise RenderError("Failed to generate page content", cause=exc) from exc
        finally:
            surface.page.close()

    def to_bytes(self) -> bytes:
        """Serialize the document including its metadata.

        Raises:
            DocumentEmpty: If no page was created.
            RenderError: If serialization fails.
        """
        if self._page_count == 0:
            raise DocumentEmpty("Cannot write a document without pages")
        buffer = BytesIO()
        try:
            self._pdf.save(buffer)
        except pdfium.PdfiumError as exc:
            raise RenderError("Failed to save PDF", cause=exc) from exc
        return self._with_metadata(buffer.getvalue())

    def _with_metadata(self, pdf_bytes: bytes) -> bytes:
        output = BytesIO()
        try:
            with pikepdf.open(BytesIO(pdf_bytes)) as pdf:
                if self._title:
                    pdf.docinfo["/Title"] = self._title
                pdf.docinfo["/Producer"] = PRODUCER
                pdf.save(output)
        except pikepdf.PdfError as exc:
            raise RenderError("Failed to write document metadata", cause=exc) from exc
        return output.getvalue()

    def write(self, stream: BinaryIO) -> None:
        data = self.to_bytes()
        stream.write(data)
        logger.info("Wrote PDF with %d pages (%d bytes)", self._page_count, len(data))

    def close(self) -> None:
        self._pdf.close()
