# SPDX-License-Identifier: Apache-2.0
"""Hyphenation providers."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import pyphen  # type: ignore[import-untyped]


@runtime_checkable
class Hyphenator(Protocol):
    """Source of intra-word break candidates."""

    def break_points(self, word: str) -> list[int]:
        """Character offsets at which the word may be split, ascending."""
        ...


class PyphenHyphenator:
    """Hyphenator backed by pyphen's hunspell dictionaries."""

    def __init__(self, lang: str = "en_US", min_left: int = 2, min_right: int = 2) -> None:
        """Initialize PyphenHyphenator.

        Args:
            lang: Dictionary language (e.g. "en_US", "de_DE").
            min_left: Minimum characters before a break.
            min_right: Minimum characters after a break.

        Raises:
            KeyError: If pyphen has no dictionary for the language.
        """
        self._lang = lang
        self._pyphen = pyphen.Pyphen(lang=lang, left=min_left, right=min_right)

    @property
    def lang(self) -> str:
        return self._lang

    def break_points(self, word: str) -> list[int]:
        if not word:
            return []
        return sorted(self._pyphen.positions(word))
