# SPDX-License-Identifier: Apache-2.0
"""Tests for PDF output."""

from __future__ import annotations

from io import BytesIO
from pathlib import Path

import pikepdf
import pypdfium2 as pdfium
import pytest

from conftest import build_test_font
from pdf_composer.core.elements import FrameCellDecorator, PageBreak, Paragraph, Rectangle, Rule, Table
from pdf_composer.core.errors import DocumentEmpty
from pdf_composer.core.fonts import Builtin, FontData, FontFamily
from pdf_composer.core.models import Color, Size
from pdf_composer.output.pdf_renderer import PdfRenderer
from pdf_composer.pipeline.document import Document
from pdf_composer.pipeline.progress import STAGE_LAYOUT, STAGE_WRITE


def helvetica_document() -> Document:
    document = Document(FontFamily.standard(Builtin.HELVETICA))
    document.set_paper_size(Size(200, 150))
    document.set_margins(10)
    document.set_font_size(10)
    return document


def page_texts(data: bytes) -> list[str]:
    pdf = pdfium.PdfDocument(data)
    try:
        texts = []
        for page in pdf:
            textpage = page.get_textpage()
            texts.append(textpage.get_text_range())
            textpage.close()
            page.close()
        return texts
    finally:
        pdf.close()


class TestPdfOutput:
    """Tests for Document.render with the PDF renderer."""

    def test_page_count(self) -> None:
        document = helvetica_document()
        document.push(Paragraph("Hello world"))
        document.push(PageBreak())
        document.push(Paragraph(" ".join(["lorem ipsum dolor"] * 60)))
        stream = BytesIO()
        stats = document.render(stream)
        assert stats.pages >= 3
        pdf = pdfium.PdfDocument(stream.getvalue())
        try:
            assert len(pdf) == stats.pages
            width, height = pdf[0].get_size()
            assert (width, height) == (pytest.approx(200), pytest.approx(150))
        finally:
            pdf.close()

    def test_text_is_extractable(self) -> None:
        document = helvetica_document()
        document.push(Paragraph("Hello world"))
        stream = BytesIO()
        document.render(stream)
        assert "Hello world" in page_texts(stream.getvalue())[0]

    def test_title_and_producer(self) -> None:
        document = helvetica_document()
        document.set_title("Quarterly Report")
        document.push(Paragraph("Hello"))
        stream = BytesIO()
        document.render(stream)
        with pikepdf.open(BytesIO(stream.getvalue())) as pdf:
            assert str(pdf.docinfo["/Title"]) == "Quarterly Report"
            assert str(pdf.docinfo["/Producer"]) == "pdf-composer"

    def test_shapes(self) -> None:
        document = helvetica_document()
        document.push(Rule())
        document.push(Rectangle(Size(50, 20), fill=Color(200, 220, 240)))
        table = Table.equal(2, FrameCellDecorator()).push_row(["a", "b"]).push_row(["c", "d"])
        document.push(table)
        stream = BytesIO()
        document.render(stream)
        assert stream.getvalue().startswith(b"%PDF")

    def test_embedded_truetype_font(self) -> None:
        font = FontData.from_bytes(build_test_font({("A", "V"): -80}))
        document = Document(FontFamily(regular=font))
        document.set_paper_size(Size(200, 100))
        document.push(Paragraph("AVA aaa"))
        stream = BytesIO()
        stats = document.render(stream)
        pdf = pdfium.PdfDocument(stream.getvalue())
        try:
            assert len(pdf) == stats.pages == 1
        finally:
            pdf.close()

    def test_render_to_file(self, tmp_path: Path) -> None:
        document = helvetica_document()
        document.push(Paragraph("Hello"))
        path = tmp_path / "out" / "document.pdf"
        document.render_to_file(path)
        assert path.read_bytes().startswith(b"%PDF")

    def test_progress_stages(self) -> None:
        calls: list[tuple[str, int, int]] = []

        def progress(stage: str, current: int, total: int, message: str = "") -> None:
            calls.append((stage, current, total))

        document = Document(FontFamily.standard(Builtin.HELVETICA), progress_callback=progress)
        document.set_paper_size(Size(200, 150))
        document.push(Paragraph("Hello"))
        document.push(PageBreak())
        document.push(Paragraph("world"))
        stats = document.render(BytesIO())
        assert stats.pages == 2
        assert calls == [
            (STAGE_LAYOUT, 1, 3),
            (STAGE_LAYOUT, 3, 3),
            (STAGE_WRITE, 2, 2),
        ]


class TestPdfRenderer:
    """Tests for PdfRenderer directly."""

    def test_empty_document(self) -> None:
        renderer = PdfRenderer()
        try:
            with pytest.raises(DocumentEmpty):
                renderer.to_bytes()
        finally:
            renderer.close()

    def test_font_loaded_once(self) -> None:
        renderer = PdfRenderer()
        try:
            font = FontData.standard("Helvetica")
            assert renderer.font_handle(font) is renderer.font_handle(font)
        finally:
            renderer.close()

    def test_page_count(self) -> None:
        renderer = PdfRenderer()
        try:
            renderer.finalize_page(renderer.new_page(Size(100, 100)))
            renderer.finalize_page(renderer.new_page(Size(100, 100)))
            assert renderer.page_count == 2
            assert renderer.to_bytes().startswith(b"%PDF")
        finally:
            renderer.close()
