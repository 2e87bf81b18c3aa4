#!/usr/bin/env python3
"""Example: Quickstart for nit-review

Open a file, annotate a few lines, edit the file around them and
export the review report.  The report goes to the in-memory register
sink so the example runs without a clipboard tool.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install nit-review
"""
from __future__ import annotations

import tempfile
from pathlib import Path

import nit
from nit.export.delivery import RegisterSink

SOURCE = """\
def total(items):
    result = 0
    for i in range(len(items) + 1):
        result += items[i]
    return result
"""


def main() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "totals.py"
        path.write_text(SOURCE, encoding="utf-8")

        register = RegisterSink()
        session = nit.ReviewSession(nit.NitConfig(sinks=("register",)), sinks=[register], cwd=tmp)
        key = session.open(path)

        session.add(key, 3, "ISSUE", "Off-by-one: the loop reads past the end")
        session.add(key, 1, "SUGGESTION", "Use sum(items)")

        # Insert a docstring; the loop annotation moves down with its line.
        session.workspace.insert_lines(key, 2, ['    """Return the sum of items."""'])
        jump = session.next(key, 1)
        print(f"Next annotation after line 1 is on line {jump.line}")

        result = session.export()
        print(result.text)


if __name__ == "__main__":
    main()
