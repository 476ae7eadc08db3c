# SPDX-License-Identifier: Apache-2.0
"""Document pagination package."""

from .document import Document, RenderStats
from .progress import STAGE_LAYOUT, STAGE_WRITE, ProgressCallback

__all__ = [
    "Document",
    "ProgressCallback",
    "RenderStats",
    "STAGE_LAYOUT",
    "STAGE_WRITE",
]
