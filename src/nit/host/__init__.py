"""In-process host: text buffers with line-tracking anchors."""
from __future__ import annotations

from nit.host.buffer import TextBuffer
from nit.host.workspace import Workspace

__all__ = ["TextBuffer", "Workspace"]
