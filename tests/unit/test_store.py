"""Unit tests for nit.store: AnnotationStore mutation, reconciliation and queries."""
from __future__ import annotations

from pathlib import Path

import pytest

from nit.errors import EmptyDocumentKeyError, InvalidKindError, LineOutOfRangeError
from nit.host import Workspace
from nit.models import AnnotationKind
from nit.store import AnnotationStore

DOC = "/docs/a.txt"
OTHER = "/docs/b.txt"


def _lines(store: AnnotationStore, key: str = DOC) -> dict[int, str]:
    return {line: annotation.text for line, annotation in store.items(key)}


def _workspace_store(
    tmp_path: Path, count: int, invalidate: bool = True
) -> tuple[Workspace, AnnotationStore, str]:
    workspace = Workspace(invalidate_on_delete=invalidate)
    key = workspace.open_text(tmp_path / "doc.txt", "".join(f"l{n}\n" for n in range(1, count + 1)))
    return workspace, AnnotationStore(workspace, workspace), key


# ===========================================================================
# add
# ===========================================================================


class TestAdd:
    def test_add_stores_annotation(self, fake_store: AnnotationStore) -> None:
        annotation = fake_store.add(DOC, 5, "ISSUE", "bug")
        assert annotation.kind is AnnotationKind.ISSUE
        assert fake_store.find(DOC, 5) is annotation

    def test_add_captures_stripped_context(self, fake_store: AnnotationStore) -> None:
        annotation = fake_store.add(DOC, 5, AnnotationKind.NOTE, "x")
        assert annotation.original_context == "content of line 5"

    def test_explicit_line_content_wins(self, fake_store: AnnotationStore) -> None:
        annotation = fake_store.add(DOC, 5, "NOTE", "x", line_content="  given\t")
        assert annotation.original_context == "given"

    def test_add_creates_anchor(self, fake_store: AnnotationStore, fake_host) -> None:
        annotation = fake_store.add(DOC, 5, "NOTE", "x")
        assert fake_host.query(annotation.anchor) == 5

    def test_add_overwrites_and_releases_previous_anchor(
        self, fake_store: AnnotationStore, fake_host
    ) -> None:
        first = fake_store.add(DOC, 5, "NOTE", "first")
        handle = first.anchor
        fake_store.add(DOC, 5, "ISSUE", "second")
        assert handle in fake_host.released
        assert first.anchor is None
        assert _lines(fake_store) == {5: "second"}

    def test_add_to_unopened_document_has_no_anchor(self, fake_store: AnnotationStore) -> None:
        annotation = fake_store.add("/docs/closed.txt", 300, "NOTE", "later")
        assert annotation.anchor is None
        assert annotation.original_context == ""
        assert fake_store.count("/docs/closed.txt") == 1

    @pytest.mark.parametrize("kind", ["BUG", "issue", "", "Note"])
    def test_invalid_kind_rejected(self, fake_store: AnnotationStore, kind: str) -> None:
        with pytest.raises(InvalidKindError, match="must be one of"):
            fake_store.add(DOC, 5, kind, "x")

    def test_empty_key_rejected(self, fake_store: AnnotationStore) -> None:
        with pytest.raises(EmptyDocumentKeyError):
            fake_store.add("", 5, "NOTE", "x")

    def test_empty_text_rejected(self, fake_store: AnnotationStore) -> None:
        with pytest.raises(ValueError):
            fake_store.add(DOC, 5, "NOTE", "")

    @pytest.mark.parametrize("line", [0, -1, 51])
    def test_line_out_of_range_rejected(self, fake_store: AnnotationStore, line: int) -> None:
        with pytest.raises(LineOutOfRangeError):
            fake_store.add(DOC, line, "NOTE", "x")

    def test_invalid_input_leaves_store_untouched(
        self, fake_store: AnnotationStore, fake_host
    ) -> None:
        fake_store.add(DOC, 5, "NOTE", "keep")
        before = fake_store.snapshot()
        created = len(fake_host.positions)
        for call in (
            lambda: fake_store.add(DOC, 5, "BAD", "x"),
            lambda: fake_store.add(DOC, 5, "NOTE", ""),
            lambda: fake_store.add(DOC, 99, "NOTE", "x"),
        ):
            with pytest.raises(ValueError):
                call()
        assert fake_store.snapshot() == before
        assert len(fake_host.positions) == created
        assert fake_host.released == []


# ===========================================================================
# delete / clear
# ===========================================================================


class TestDeleteAndClear:
    def test_delete_returns_annotation_and_releases(
        self, fake_store: AnnotationStore, fake_host
    ) -> None:
        annotation = fake_store.add(DOC, 5, "NOTE", "x")
        handle = annotation.anchor
        assert fake_store.delete(DOC, 5) is annotation
        assert handle in fake_host.released
        assert DOC not in fake_store

    def test_delete_missing_returns_none(self, fake_store: AnnotationStore) -> None:
        assert fake_store.delete(DOC, 5) is None

    def test_delete_follows_reconciled_line(self, fake_store: AnnotationStore, fake_host) -> None:
        annotation = fake_store.add(DOC, 5, "NOTE", "x")
        fake_host.positions[annotation.anchor] = 9
        assert fake_store.delete(DOC, 5) is None
        assert fake_store.delete(DOC, 9) is annotation

    def test_delete_empty_key_rejected(self, fake_store: AnnotationStore) -> None:
        with pytest.raises(EmptyDocumentKeyError):
            fake_store.delete("", 1)

    def test_clear_one_document(self, fake_store: AnnotationStore) -> None:
        fake_store.add(DOC, 1, "NOTE", "a")
        fake_store.add(DOC, 2, "NOTE", "b")
        fake_store.add(OTHER, 1, "NOTE", "c")
        assert fake_store.clear(DOC) == 2
        assert fake_store.documents() == [OTHER]

    def test_clear_all_releases_every_anchor(self, fake_store: AnnotationStore, fake_host) -> None:
        fake_store.add(DOC, 1, "NOTE", "a")
        fake_store.add(OTHER, 1, "NOTE", "b")
        assert fake_store.clear() == 2
        assert len(fake_store) == 0
        assert fake_host.positions == {}


# ===========================================================================
# reconcile
# ===========================================================================


class TestReconcile:
    def test_insert_above_moves_annotation_down(self, tmp_path: Path) -> None:
        workspace, store, key = _workspace_store(tmp_path, 15)
        store.add(key, 10, "ISSUE", "bug")
        workspace.insert_lines(key, 1, ["a", "b", "c"])
        assert _lines(store, key) == {13: "bug"}

    def test_deleted_line_removes_annotation(self, tmp_path: Path) -> None:
        workspace, store, key = _workspace_store(tmp_path, 20)
        store.add(key, 20, "NOTE", "tail")
        workspace.delete_lines(key, 16, 20)
        assert store.items(key) == []
        assert key not in store

    def test_collapsed_anchors_probe_forward(self, tmp_path: Path) -> None:
        workspace, store, key = _workspace_store(tmp_path, 20, invalidate=False)
        store.add(key, 5, "NOTE", "A")
        store.add(key, 6, "NOTE", "B")
        store.add(key, 7, "NOTE", "C")
        workspace.delete_lines(key, 5, 6)
        assert _lines(store, key) == {5: "A", 6: "B", 7: "C"}

    def test_probe_never_displaces_natural_placement(
        self, fake_store: AnnotationStore, fake_host
    ) -> None:
        a = fake_store.add(DOC, 5, "NOTE", "A")
        b = fake_store.add(DOC, 6, "NOTE", "B")
        c = fake_store.add(DOC, 7, "NOTE", "C")
        fake_host.positions[a.anchor] = 5
        fake_host.positions[b.anchor] = 5
        fake_host.positions[c.anchor] = 6
        assert _lines(fake_store) == {5: "A", 6: "C", 7: "B"}

    def test_probe_may_pass_end_of_document(self, fake_store: AnnotationStore, fake_host) -> None:
        a = fake_store.add(DOC, 49, "NOTE", "A")
        b = fake_store.add(DOC, 50, "NOTE", "B")
        fake_host.positions[a.anchor] = 50
        assert _lines(fake_store) == {50: "A", 51: "B"}

    def test_anchor_beyond_document_is_dropped(self, fake_store: AnnotationStore, fake_host) -> None:
        annotation = fake_store.add(DOC, 10, "NOTE", "x")
        handle = annotation.anchor
        fake_host.line_counts[DOC] = 8
        assert fake_store.items(DOC) == []
        assert handle in fake_host.released

    def test_unanchored_annotation_keeps_stored_line(
        self, fake_store: AnnotationStore, fake_host
    ) -> None:
        annotation = fake_store.add(DOC, 4, "NOTE", "x")
        fake_host.release(annotation.anchor)
        annotation.anchor = None
        assert _lines(fake_store) == {4: "x"}

    def test_unopened_document_is_untouched(self, fake_store: AnnotationStore, fake_host) -> None:
        annotation = fake_store.add(DOC, 4, "NOTE", "x")
        del fake_host.line_counts[DOC]
        fake_host.positions[annotation.anchor] = None
        fake_store.reconcile(DOC)
        assert _lines(fake_store) == {4: "x"}

    def test_reconcile_is_idempotent(self, fake_store: AnnotationStore, fake_host) -> None:
        for line in (3, 4, 5):
            fake_store.add(DOC, line, "NOTE", str(line))
        for handle in list(fake_host.positions):
            fake_host.positions[handle] = 3
        fake_store.reconcile(DOC)
        first = fake_store.snapshot()
        fake_store.reconcile(DOC)
        assert fake_store.snapshot() == first

    def test_reconcile_is_deterministic(self, host_factory) -> None:
        results = []
        for _ in range(2):
            host = host_factory({DOC: 50})
            store = AnnotationStore(host, host)
            for line in (10, 12, 14, 16):
                store.add(DOC, line, "NOTE", str(line))
            for handle in list(host.positions):
                host.positions[handle] = 11
            results.append(_lines(store))
        assert results[0] == results[1] == {11: "10", 12: "12", 13: "14", 14: "16"}

    def test_reconcile_preserves_count_when_all_in_range(
        self, fake_store: AnnotationStore, fake_host
    ) -> None:
        for line in range(1, 11):
            fake_store.add(DOC, line, "NOTE", str(line))
        for handle in list(fake_host.positions):
            fake_host.positions[handle] = 2
        fake_store.reconcile(DOC)
        assert fake_store.count(DOC) == 10

    def test_move_carries_annotations(self, tmp_path: Path) -> None:
        workspace, store, key = _workspace_store(tmp_path, 10)
        store.add(key, 2, "NOTE", "moved")
        store.add(key, 6, "NOTE", "stays")
        workspace.move_lines(key, 1, 3, 8)
        assert _lines(store, key) == {3: "stays", 7: "moved"}

    def test_reconcile_all_touches_every_document(
        self, fake_store: AnnotationStore, fake_host
    ) -> None:
        a = fake_store.add(DOC, 1, "NOTE", "a")
        b = fake_store.add(OTHER, 1, "NOTE", "b")
        fake_host.positions[a.anchor] = 7
        fake_host.positions[b.anchor] = None
        fake_store.reconcile_all()
        assert fake_store.documents() == [DOC]
        assert fake_store.count() == 1


# ===========================================================================
# restore / detach
# ===========================================================================


class TestLifecycle:
    def test_detach_freezes_lines(self, fake_store: AnnotationStore, fake_host) -> None:
        annotation = fake_store.add(DOC, 5, "NOTE", "x")
        fake_host.positions[annotation.anchor] = 8
        fake_store.detach(DOC)
        assert annotation.anchor is None
        del fake_host.line_counts[DOC]
        assert _lines(fake_store) == {8: "x"}

    def test_restore_reanchors(self, fake_store: AnnotationStore, fake_host) -> None:
        fake_store.add("/docs/new.txt", 7, "NOTE", "x")
        fake_host.line_counts["/docs/new.txt"] = 10
        fake_store.restore("/docs/new.txt")
        annotation = fake_store.find("/docs/new.txt", 7)
        assert annotation is not None
        assert fake_host.query(annotation.anchor) == 7

    def test_restore_drops_lines_past_end(self, fake_store: AnnotationStore, fake_host) -> None:
        fake_store.add("/docs/new.txt", 3, "NOTE", "in")
        fake_store.add("/docs/new.txt", 30, "NOTE", "out")
        fake_host.line_counts["/docs/new.txt"] = 10
        fake_store.restore("/docs/new.txt")
        assert _lines(fake_store, "/docs/new.txt") == {3: "in"}

    def test_restore_keeps_annotation_pushed_past_end(self, tmp_path: Path) -> None:
        workspace, store, key = _workspace_store(tmp_path, 3, invalidate=False)
        store.add(key, 2, "NOTE", "A")
        pushed = store.add(key, 3, "NOTE", "B")
        workspace.delete_lines(key, 2)
        assert _lines(store, key) == {2: "A", 3: "B"}
        workspace.open(tmp_path / "doc.txt")
        store.restore(key)
        assert _lines(store, key) == {2: "A", 3: "B"}
        assert store.count(key) == 2
        assert workspace.query(pushed.anchor) == 2

    def test_close_and_reopen_round_trip(self, make_file) -> None:
        path = make_file(count=10)
        workspace = Workspace()
        store = AnnotationStore(workspace, workspace)
        key = workspace.open(path)
        store.add(key, 4, "PRAISE", "nice")
        workspace.insert_lines(key, 1, ["top"])
        store.detach(key)
        workspace.close(key)
        workspace.open(path)
        store.restore(key)
        assert _lines(store, key) == {5: "nice"}


# ===========================================================================
# queries
# ===========================================================================


class TestQueries:
    def test_items_sorted(self, fake_store: AnnotationStore) -> None:
        for line in (9, 2, 5):
            fake_store.add(DOC, line, "NOTE", str(line))
        assert [line for line, _ in fake_store.items(DOC)] == [2, 5, 9]

    def test_snapshot_is_detached(self, fake_store: AnnotationStore) -> None:
        fake_store.add(DOC, 1, "NOTE", "a")
        snap = fake_store.snapshot()
        snap[DOC][1].text = "changed"
        snap[DOC][2] = snap[DOC][1]
        assert _lines(fake_store) == {1: "a"}
        assert snap[DOC][1].anchor is None

    def test_snapshot_single_document(self, fake_store: AnnotationStore) -> None:
        fake_store.add(DOC, 1, "NOTE", "a")
        fake_store.add(OTHER, 1, "NOTE", "b")
        assert list(fake_store.snapshot(OTHER)) == [OTHER]

    def test_count_and_len(self, fake_store: AnnotationStore) -> None:
        fake_store.add(DOC, 1, "NOTE", "a")
        fake_store.add(OTHER, 1, "NOTE", "b")
        fake_store.add(OTHER, 2, "NOTE", "c")
        assert fake_store.count(OTHER) == 2
        assert len(fake_store) == 3

    def test_count_reconciles_first(self, tmp_path: Path) -> None:
        workspace, store, key = _workspace_store(tmp_path, 20)
        store.add(key, 20, "NOTE", "tail")
        workspace.delete_lines(key, 16, 20)
        assert store.count() == 0
        assert store.count(key) == 0

    def test_repr(self, fake_store: AnnotationStore) -> None:
        fake_store.add(DOC, 1, "NOTE", "a")
        assert repr(fake_store) == "AnnotationStore(documents=1, annotations=1)"
