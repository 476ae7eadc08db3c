# SPDX-License-Identifier: Apache-2.0
"""Line wrapping for styled text runs.

This module provides the greedy word wrapper used by paragraphs:
- Word widths from font metrics, including pair kerning
- Breaks at inter-word spaces and run boundaries
- Hyphenation of overflowing words via a Hyphenator
- Forced breaks for words wider than an empty line
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Sequence

from .area import EPSILON
from .context import OVERLONG_ERROR, RenderContext
from .style import Style, StyledText

# A word with its trailing whitespace, or a run of leading whitespace
_TOKEN = re.compile(r"\S+\s*|\s+")

# Control whitespace is laid out as a plain space
_CONTROL_WHITESPACE = str.maketrans({"\t": " ", "\n": " ", "\r": " ", "\f": " ", "\v": " "})


def normalize_whitespace(text: str) -> str:
    """Replace tabs and line breaks with spaces."""
    return text.translate(_CONTROL_WHITESPACE)


@dataclass(frozen=True, order=True)
class TextPosition:
    """Position in a sequence of runs (run index, character offset)."""

    run: int = 0
    offset: int = 0


@dataclass(frozen=True)
class LineFragment:
    """A styled piece of a line placed at a horizontal offset."""

    text: StyledText
    x: float
    width: float


@dataclass(frozen=True)
class Line:
    """A wrapped line.

    Attributes:
        fragments: Pieces of the line in drawing order
        width: Width without trailing whitespace
        height: Line height (largest among the fragments)
        ascent: Distance from the top of the line to the baseline
        start: Position of the first character on the line
        end: Position after the last consumed character
    """

    fragments: tuple[LineFragment, ...]
    width: float
    height: float
    ascent: float
    start: TextPosition
    end: TextPosition

    @property
    def text(self) -> str:
        return "".join(fragment.text.text for fragment in self.fragments)


class _Piece:
    """Mutable fragment under construction."""

    __slots__ = ("run", "start", "end", "x", "width", "suffix")

    def __init__(self, run: int, start: int, x: float) -> None:
        self.run = run
        self.start = start
        self.end = start
        self.x = x
        self.width = 0.0
        self.suffix = ""


class _LineBuilder:
    def __init__(self, wrapper: LineWrapper, start: TextPosition) -> None:
        self._wrapper = wrapper
        self.start = start
        self.end = start
        self.pieces: list[_Piece] = []
        # x includes trailing whitespace, width does not
        self.x = 0.0
        self.width = 0.0
        self.has_word = False

    def measure(self, run: int, start: int, end: int) -> float:
        """Width of run text [start, end) appended to this line."""
        text = self._wrapper.runs[run].text
        previous = None
        if self.pieces and self.pieces[-1].run == run and self.pieces[-1].end == start:
            previous = text[start - 1]
        style = self._wrapper.runs[run].style
        return style.text_width(self._wrapper.font_cache, text[start:end], previous)

    def add(self, run: int, start: int, end: int, width: float, word: bool) -> None:
        if end <= start:
            return
        last = self.pieces[-1] if self.pieces else None
        if last is None or last.run != run or last.end != start or last.suffix:
            if last is None:
                self.start = TextPosition(run, start)
            last = _Piece(run, start, self.x)
            self.pieces.append(last)
        last.end = end
        last.width += width
        self.x += width
        if word:
            self.width = self.x
            self.has_word = True
        self.end = TextPosition(run, end)

    def add_hyphen(self, mark: str, width: float) -> None:
        self.pieces[-1].suffix = mark
        self.pieces[-1].width += width
        self.x += width
        self.width = self.x

    def finish(self) -> Line:
        fragments: list[LineFragment] = []
        height = 0.0
        ascent = 0.0
        cache = self._wrapper.font_cache
        for index, piece in enumerate(self.pieces):
            run = self._wrapper.runs[piece.run]
            text = run.text[piece.start : piece.end] + piece.suffix
            width = piece.width
            if index == len(self.pieces) - 1:
                text = text.rstrip(" ")
                width = max(0.0, self.width - piece.x)
            fragments.append(LineFragment(StyledText(text, run.style), piece.x, width))
            height = max(height, run.style.line_height(cache))
            ascent = max(ascent, run.style.ascent(cache))
        return Line(
            fragments=tuple(fragments),
            width=self.width,
            height=height,
            ascent=ascent,
            start=self.start,
            end=self.end,
        )


class LineWrapper:
    """Greedy wrapper turning styled runs into width-bounded lines.

    The runs' styles must already be fully cascaded. Wrapping is
    deterministic: ``lines(width, start)`` for the start position of any
    produced line yields the same remaining lines again, which is what
    lets a paragraph resume on a new page.
    """

    def __init__(self, runs: Sequence[StyledText], context: RenderContext) -> None:
        self.runs = [
            StyledText(normalize_whitespace(run.text), run.style) for run in runs
        ]
        self.context = context
        self.font_cache = context.font_cache

    def wrap(self, width: float, start: TextPosition | None = None) -> list[Line]:
        """All lines from start to the end of the text."""
        return list(self.lines(width, start))

    def lines(self, width: float, start: TextPosition | None = None) -> Iterator[Line]:
        """Lazily wrap the runs into lines of at most ``width`` points.

        Args:
            width: Available line width in points.
            start: Position to start from (a previous line's ``start``);
                None starts at the beginning.

        Yields:
            Lines in order. A line exceeds ``width`` only when it holds a word
            kept whole under the "error" policy or a single character wider
            than the line.
        """
        position = start or TextPosition()
        first_line = self._at_beginning(position)
        run_index, offset = position.run, position.offset
        builder = _LineBuilder(self, position)

        while run_index < len(self.runs):
            text = self.runs[run_index].text
            if offset >= len(text):
                run_index += 1
                offset = 0
                continue

            token_end = _TOKEN.match(text, offset).end()  # type: ignore[union-attr]
            word_end = offset + len(text[offset:token_end].rstrip())

            if word_end == offset and not builder.pieces and not first_line:
                # Leading whitespace of a wrapped line is not laid out
                offset = token_end
                builder.start = builder.end = TextPosition(run_index, offset)
                continue

            word_width = builder.measure(run_index, offset, word_end)
            if builder.x + word_width <= width + EPSILON:
                builder.add(run_index, offset, word_end, word_width, word=True)
                space_width = builder.measure(run_index, word_end, token_end)
                builder.add(run_index, word_end, token_end, space_width, word=False)
                offset = token_end
                continue

            split = self._split_word(builder, width, run_index, offset, word_end)
            if split is None:
                if builder.has_word:
                    # Retry the word on a fresh line
                    yield builder.finish()
                    first_line = False
                    builder = _LineBuilder(self, TextPosition(run_index, offset))
                    continue
                # Overlong word kept whole
                builder.add(run_index, offset, word_end, word_width, word=True)
                offset = word_end
            else:
                offset = split

            yield builder.finish()
            first_line = False
            builder = _LineBuilder(self, TextPosition(run_index, offset))

        if builder.pieces:
            yield builder.finish()

    def _at_beginning(self, position: TextPosition) -> bool:
        """Whether no text precedes the position."""
        return position.offset == 0 and not any(
            self.runs[index].text for index in range(min(position.run, len(self.runs)))
        )

    def _split_word(
        self,
        builder: _LineBuilder,
        width: float,
        run_index: int,
        start: int,
        end: int,
    ) -> int | None:
        """Put a prefix of an overflowing word on the current line.

        Returns:
            Offset where the rest of the word starts, or None if nothing was
            added to the line.
        """
        style = self.runs[run_index].style
        text = self.runs[run_index].text
        remaining = width - builder.x

        if self.context.hyphenates(style):
            mark = self.context.config.hyphen_mark
            for point in reversed(self.context.hyphenator.break_points(text[start:end])):  # type: ignore[union-attr]
                if point <= 0 or point >= end - start:
                    continue
                prefix_width = builder.measure(run_index, start, start + point)
                mark_width = self._mark_width(style, mark, text[start + point - 1])
                if prefix_width + mark_width <= remaining + EPSILON:
                    builder.add(run_index, start, start + point, prefix_width, word=True)
                    if mark:
                        builder.add_hyphen(mark, mark_width)
                    return start + point
            if builder.has_word:
                return None
            # An empty line force-breaks regardless of the overlong policy
            return self._force_break(builder, remaining, run_index, start, end)

        if builder.has_word or self.context.config.overlong_words == OVERLONG_ERROR:
            return None
        return self._force_break(builder, remaining, run_index, start, end)

    def _force_break(
        self,
        builder: _LineBuilder,
        remaining: float,
        run_index: int,
        start: int,
        end: int,
    ) -> int:
        """Add the longest prefix that fits, at least one character."""
        count = 1
        while start + count < end:
            if builder.measure(run_index, start, start + count + 1) > remaining + EPSILON:
                break
            count += 1
        builder.add(
            run_index,
            start,
            start + count,
            builder.measure(run_index, start, start + count),
            word=True,
        )
        return start + count

    def _mark_width(self, style: Style, mark: str, previous: str) -> float:
        if not mark:
            return 0.0
        return style.text_width(self.font_cache, mark, previous)
