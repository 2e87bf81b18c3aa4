"""CLI package.

The ``cli`` sub-package contains the Click application.  It drives a
``ReviewSession`` and renders results with rich; it holds no
annotation logic of its own.
"""
from __future__ import annotations
