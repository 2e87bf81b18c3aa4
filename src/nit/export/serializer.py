"""Serialize collected report items to plain dicts, JSON and YAML.

The serialized form is a list of flat dicts, one per annotation, in
report order::

    - document: /home/me/project/app.py
      line: 12
      kind: ISSUE
      text: Off-by-one in the loop bound
      context: 'for i in range(len(items) + 1):'
      exists: true
"""
from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

import yaml

from nit.export.collector import ReportItem


class ReportSerializer:
    """Convert ``ReportItem`` sequences into machine-readable formats."""

    def item_to_dict(self, item: ReportItem) -> dict[str, Any]:
        return {
            "document": item.document,
            "line": item.line,
            "kind": item.annotation.kind.value,
            "text": item.annotation.text,
            "context": item.annotation.original_context,
            "exists": item.exists,
        }

    def to_dicts(self, items: Sequence[ReportItem]) -> list[dict[str, Any]]:
        return [self.item_to_dict(item) for item in items]

    def to_json(self, items: Sequence[ReportItem], indent: int | None = 2) -> str:
        """Serialize *items* to a JSON array."""
        return json.dumps(self.to_dicts(items), indent=indent, ensure_ascii=False)

    def to_yaml(self, items: Sequence[ReportItem]) -> str:
        """Serialize *items* to a YAML sequence."""
        return yaml.safe_dump(
            self.to_dicts(items),
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
        )


__all__ = ["ReportSerializer"]
