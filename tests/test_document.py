# SPDX-License-Identifier: Apache-2.0
"""Tests for the pagination loop."""

from __future__ import annotations

import json
from io import BytesIO

import pytest

from conftest import FakeHyphenator, fixed_font
from pdf_composer.core.area import LinePrimitive
from pdf_composer.core.context import LayoutConfig
from pdf_composer.core.decorators import SimplePageDecorator
from pdf_composer.core.elements import (
    FramedElement,
    PaddedElement,
    PageBreak,
    Paragraph,
    Rectangle,
    RenderResult,
    Text,
    UnorderedList,
)
from pdf_composer.core.errors import (
    DocumentEmpty,
    ElementTooLarge,
    InsufficientSpace,
    UnknownFontFamily,
)
from pdf_composer.core.fonts import FontFamily
from pdf_composer.core.models import Margins, PaperSize, Size
from pdf_composer.core.style import Style
from pdf_composer.output.recording import RecordingRenderer
from pdf_composer.pipeline.document import Document

WORDS = " ".join(f"w{i:02d}" for i in range(1, 22))


def make_document(paper: Size = Size(20, 100), config: LayoutConfig | None = None) -> Document:
    """Document with the fixed-width font at 10pt and no margins."""
    document = Document(FontFamily(regular=fixed_font()), config=config)
    document.set_paper_size(paper)
    document.set_font_size(10)
    return document


def layout(document: Document) -> RecordingRenderer:
    renderer = RecordingRenderer()
    document.layout(renderer)
    return renderer


# =============================================================================
# Pagination
# =============================================================================


class TestPagination:
    """Tests for splitting content over pages."""

    def test_paragraph_over_three_pages(self) -> None:
        """Ten one-word lines per page; the last page has the 21st word."""
        document = make_document()
        document.push(Paragraph(WORDS))
        renderer = layout(document)
        assert renderer.page_count == 3
        assert renderer.pages[0].text_lines == [f"w{i:02d}" for i in range(1, 11)]
        assert renderer.pages[2].text_lines == ["w21"]

    def test_stats(self) -> None:
        document = make_document()
        document.push(Paragraph(WORDS))
        stats = document.layout(RecordingRenderer())
        assert stats.to_dict() == {"pages": 3, "elements": 1, "page_breaks": 2}

    def test_every_page_finalized(self) -> None:
        document = make_document()
        document.push(Paragraph(WORDS))
        assert all(page.finalized for page in layout(document).pages)

    def test_elements_follow_each_other(self) -> None:
        document = make_document(Size(20, 30))
        document.push(Paragraph("aaa bbb"))
        document.push(Paragraph("ccc ddd"))
        pages = layout(document).pages
        assert [page.text_lines for page in pages] == [["aaa", "bbb", "ccc"], ["ddd"]]

    def test_empty_document_has_one_page(self) -> None:
        renderer = layout(make_document())
        assert renderer.page_count == 1
        assert renderer.pages[0].texts == []

    def test_page_size(self) -> None:
        document = make_document()
        document.set_paper_size(PaperSize.LETTER)
        assert layout(document).pages[0].size == PaperSize.LETTER.size


class TestPageBreaks:
    """Tests for PageBreak in the pagination loop."""

    def test_page_break_on_empty_page(self) -> None:
        document = make_document()
        document.push(PageBreak())
        document.push(Paragraph("aaa"))
        pages = layout(document).pages
        assert [page.text_lines for page in pages] == [[], ["aaa"]]

    def test_page_break_after_full_page(self) -> None:
        """A break at the bottom of a full page adds no blank page."""
        document = make_document(Size(20, 20))
        document.push(Paragraph("aaa bbb"))
        document.push(PageBreak())
        document.push(Paragraph("ccc"))
        pages = layout(document).pages
        assert [page.text_lines for page in pages] == [["aaa", "bbb"], ["ccc"]]


class TestWrappedElementsAtPageBottom:
    """Tests for wrapped elements that start on the next page."""

    def test_padding_moves_to_next_page(self) -> None:
        document = make_document(Size(40, 15))
        document.push(Paragraph("aaa"))
        document.push(PaddedElement(Paragraph(""), Margins.all(4)))
        renderer = layout(document)
        assert renderer.page_count == 2
        assert renderer.pages[0].text_lines == ["aaa"]

    def test_list_item_moves_with_its_bullet(self) -> None:
        document = make_document(Size(60, 20))
        document.push(Paragraph("aaa"))
        document.push(UnorderedList([Paragraph("x1"), Paragraph("y2")], bullet="*"))
        pages = layout(document).pages
        assert [page.text_lines for page in pages] == [["aaa", "*x1"], ["*y2"]]

    def test_frame_moves_with_its_top_edge(self) -> None:
        document = make_document(Size(60, 20))
        document.push(Paragraph("aaa"))
        document.push(FramedElement(Paragraph("bbb")))
        pages = layout(document).pages
        assert len(pages) == 2
        assert pages[0].shapes == []
        assert len(pages[1].shapes) == 4
        assert any(
            isinstance(shape, LinePrimitive) and all(p.y == 0.5 for p in shape.points)
            for shape in pages[1].shapes
        )
        assert pages[1].text_lines == ["bbb"]


class TestElementTooLarge:
    """Tests for content that cannot fit an empty page."""

    def test_tall_rectangle(self) -> None:
        document = make_document()
        document.push(Rectangle(Size(10, 200)))
        with pytest.raises(ElementTooLarge):
            document.layout(RecordingRenderer())

    def test_overlong_word_under_error_policy(self) -> None:
        document = make_document(config=LayoutConfig(overlong_words="error"))
        document.push(Paragraph("abcdefgh"))
        with pytest.raises(ElementTooLarge):
            document.layout(RecordingRenderer())

    def test_overflowing_size_is_reported(self) -> None:
        """An element claiming more height than the page has left."""

        class Oversized:
            def render(self, area, context, style, resume=None) -> RenderResult:
                return RenderResult(Size(10, area.remaining_height() + 5))

        document = make_document()
        document.push(Oversized())
        with pytest.raises(ElementTooLarge) as info:
            document.layout(RecordingRenderer())
        assert isinstance(info.value.cause, InsufficientSpace)

    def test_overlong_word_is_broken_by_default(self) -> None:
        document = make_document()
        document.push(Paragraph("abcdefgh"))
        assert layout(document).pages[0].text_lines == ["abcd", "efgh"]


# =============================================================================
# Page furniture and document settings
# =============================================================================


class TestDecoration:
    """Tests for margins, headers and footers."""

    def test_header_and_footer_on_every_page(self) -> None:
        document = make_document(config=LayoutConfig(footer_height=20))
        document.set_page_decorator(
            SimplePageDecorator(
                header=lambda number: Text(f"h{number}"),
                footer=lambda number: Text(f"f{number}"),
            )
        )
        document.push(Paragraph(" ".join(f"w{i:02d}" for i in range(1, 11))))
        pages = layout(document).pages
        # 100pt page: 10pt header, 20pt footer band, 7 body lines
        assert len(pages) == 2
        for number, page in enumerate(pages, start=1):
            assert page.text_lines[0] == f"h{number}"
            assert page.text_lines[-1] == f"f{number}"
        assert len(pages[0].text_lines) == 9
        footer = next(t for t in pages[0].texts if t.text == "f1")
        assert footer.position.y == pytest.approx(88)

    def test_margins(self) -> None:
        document = make_document(Size(40, 100))
        document.set_margins(10)
        document.push(Paragraph("aaa"))
        text = layout(document).pages[0].texts[0]
        assert (text.position.x, text.position.y) == (10, pytest.approx(18))

    def test_header_too_tall(self) -> None:
        document = make_document(Size(20, 5))
        document.set_page_decorator(SimplePageDecorator(header=lambda number: Text("h")))
        with pytest.raises(ElementTooLarge):
            document.layout(RecordingRenderer())


class TestDocumentSettings:
    """Tests for document-level state during layout."""

    def test_hyphenation(self) -> None:
        document = make_document(Size(40, 100))
        document.set_hyphenator(FakeHyphenator({"abcdef": [2, 4]}))
        document.push(Paragraph("xx abcdef"))
        assert layout(document).pages[0].text_lines == ["xx abcd-", "ef"]

    def test_unknown_font_family(self) -> None:
        document = make_document()
        document.push(Paragraph("aaa", style=Style(font_family="missing")))
        with pytest.raises(UnknownFontFamily):
            document.layout(RecordingRenderer())

    def test_second_family(self) -> None:
        document = make_document(Size(100, 100))
        family = document.add_font_family("wide", fixed_font(advance=1000, name="Wide"))
        document.push(Paragraph("aa", style=Style(font_family=family)))
        text = layout(document).pages[0].texts[0]
        assert text.run.font.metrics.name == "Wide"

    def test_font_cache_frozen_after_layout(self) -> None:
        document = make_document()
        document.layout(RecordingRenderer())
        with pytest.raises(RuntimeError):
            document.add_font_family("late", fixed_font())

    def test_title(self) -> None:
        document = make_document()
        document.set_title("Report")
        assert layout(document).title == "Report"

    def test_repeated_layout_is_identical(self) -> None:
        document = make_document()
        document.push(Paragraph(WORDS))
        document.push(PageBreak())
        document.push(Paragraph("aaa"))
        assert layout(document).to_dict() == layout(document).to_dict()

    def test_progress_callback(self) -> None:
        calls: list[tuple[str, int, int]] = []

        def progress(stage: str, current: int, total: int, message: str = "") -> None:
            calls.append((stage, current, total))

        document = Document(FontFamily(regular=fixed_font()), progress_callback=progress)
        document.set_paper_size(Size(20, 100))
        document.set_font_size(10)
        document.push(Paragraph(WORDS))
        document.layout(RecordingRenderer())
        assert calls == [("layout", 0, 1), ("layout", 0, 1), ("layout", 1, 1)]


class TestRecordingRenderer:
    """Tests for the JSON output of RecordingRenderer."""

    def test_write_json(self) -> None:
        document = make_document()
        document.push(Paragraph(WORDS))
        renderer = layout(document)
        stream = BytesIO()
        renderer.write(stream)
        data = json.loads(stream.getvalue())
        assert len(data["pages"]) == 3
        assert data["pages"][2]["texts"][0]["text"] == "w21"

    def test_write_without_pages(self) -> None:
        with pytest.raises(DocumentEmpty):
            RecordingRenderer().write(BytesIO())
