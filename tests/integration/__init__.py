"""Integration tests.

These drive whole review sessions end to end: real files on disk, YAML
scripts and config, the CLI and the delivery chain.  Run only the fast
unit tests with ``pytest tests/unit/``.
"""
from __future__ import annotations
