# SPDX-License-Identifier: Apache-2.0
"""Progress reporting for document rendering.

Stages:
- ``layout``: once per finished page; ``current`` is the number of
  top-level elements completed so far, ``total`` the number of elements
- ``write``: once after the output has been written; ``current`` and
  ``total`` are both the page count
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

STAGE_LAYOUT = "layout"
STAGE_WRITE = "write"


@runtime_checkable
class ProgressCallback(Protocol):
    """Progress callback protocol."""

    def __call__(
        self,
        stage: str,
        current: int,
        total: int,
        message: str = "",
    ) -> None: ...
