"""Tests for the table import: per-row linking rules, CSV and workbook codecs, and route."""

import pytest

from cattree.importer.parsers.detection import parse_upload
from cattree.importer.parsers.table import MalformedTableError, parse_table
from cattree.importer.parsers.workbook import parse_workbook
from cattree.models import TableRow
from tests.fixtures import build_shop_forest, forest_edges, make_workbook


def rows(*pairs: tuple[str, str]) -> list[TableRow]:
    return [TableRow(name=name, parent=parent) for name, parent in pairs]


class TestImportRows:
    async def test_sentinel_creates_root(self, import_service, projector):
        result = await import_service.import_rows(rows(("Shoes", "-")), "o")

        assert result.ok
        assert result.message == "Successfully added 1 categories."
        assert await forest_edges(projector, "o") == {("Shoes", None)}

    async def test_unseen_parent_becomes_placeholder_root(self, import_service, projector):
        await import_service.import_rows(rows(("Sneakers", "Shoes")), "o")

        assert await forest_edges(projector, "o") == {("Shoes", None), ("Sneakers", "Shoes")}

    async def test_placeholder_later_gets_own_parent(self, import_service, projector):
        await import_service.import_rows(
            rows(("Sneakers", "Shoes"), ("Shoes", "Clothes"), ("Clothes", "-")), "o"
        )

        assert await forest_edges(projector, "o") == {
            ("Clothes", None),
            ("Shoes", "Clothes"),
            ("Sneakers", "Shoes"),
        }

    async def test_parent_defined_first(self, import_service, projector):
        await import_service.import_rows(rows(("Food", "-"), ("Fruit", "Food")), "o")
        assert await forest_edges(projector, "o") == {("Food", None), ("Fruit", "Food")}

    async def test_existing_subject_with_sentinel_untouched(self, tree_service, import_service, projector):
        await build_shop_forest(tree_service, "o")
        before = await forest_edges(projector, "o")

        await import_service.import_rows(rows(("Shoes", "-")), "o")

        assert await forest_edges(projector, "o") == before

    async def test_existing_subject_and_parent_is_noop(self, tree_service, import_service, projector):
        """Both names exist: the row does not move the subject."""
        await build_shop_forest(tree_service, "o")
        before = await forest_edges(projector, "o")

        await import_service.import_rows(rows(("Hats", "Food")), "o")

        assert await forest_edges(projector, "o") == before

    async def test_existing_subject_new_parent_relinks(self, tree_service, import_service, projector):
        await build_shop_forest(tree_service, "o")

        await import_service.import_rows(rows(("Hats", "Accessories")), "o")

        edges = await forest_edges(projector, "o")
        assert ("Hats", "Accessories") in edges
        assert ("Accessories", None) in edges
        assert ("Hats", "Clothes") not in edges

    async def test_count_is_distinct_subjects(self, import_service, projector):
        result = await import_service.import_rows(
            rows(("A", "-"), ("B", "A"), ("A", "-"), ("C", "D")), "o"
        )
        # A, B, C are subjects; D is created as a placeholder but not counted.
        assert result.count == 3
        assert len(await projector.get_nodes("o")) == 4

    async def test_duplicate_subject_last_parent_wins(self, import_service, projector):
        await import_service.import_rows(
            rows(("Root", "-"), ("Leaf", "Elsewhere"), ("Leaf", "Root")), "o"
        )
        edges = await forest_edges(projector, "o")
        assert ("Leaf", "Root") in edges
        assert ("Elsewhere", None) not in edges

    async def test_self_referencing_row_stays_root(self, import_service, projector):
        await import_service.import_rows(rows(("Loop", "Loop")), "o")
        assert await forest_edges(projector, "o") == {("Loop", None)}

    async def test_owner_isolation(self, import_service, projector):
        await import_service.import_rows(rows(("Shoes", "-")), "a")
        assert await projector.get_nodes("b") == []


class TestRoundTrip:
    async def test_export_then_import_into_fresh_owner(
        self, tree_service, export_service, import_service, projector
    ):
        await build_shop_forest(tree_service, "original")
        await tree_service.add_child(["Food", "Hats"], "original")

        exported = await export_service.export_rows("original")
        result = await import_service.import_rows(exported, "copy")

        assert result.count == len(exported)
        assert await forest_edges(projector, "copy") == await forest_edges(projector, "original")

    async def test_round_trip_preserves_order(
        self, tree_service, export_service, import_service, renderer
    ):
        await build_shop_forest(tree_service, "original")
        await import_service.import_rows(await export_service.export_rows("original"), "copy")
        assert await renderer.render("copy") == await renderer.render("original")


class TestAtomicity:
    async def test_failed_import_leaves_nothing(self, import_service, category_store, projector, monkeypatch):
        calls = 0
        original_save = category_store.save

        async def flaky_save(node):
            nonlocal calls
            calls += 1
            if calls == 3:
                raise RuntimeError("disk on fire")
            return await original_save(node)

        monkeypatch.setattr(category_store, "save", flaky_save)

        with pytest.raises(RuntimeError):
            await import_service.import_rows(rows(("A", "-"), ("B", "-"), ("C", "-")), "o")

        assert await projector.get_nodes("o") == []


class TestParseTable:
    def test_parses_rows_after_header(self):
        content = b"Category,Parent Category\nShoes,-\nSneakers,Shoes\n"
        assert parse_table(content) == rows(("Shoes", "-"), ("Sneakers", "Shoes"))

    def test_tolerates_bom_and_blank_rows(self):
        content = "\ufeffCategory,Parent Category\n\nShoes,-\n,\nOnly\n".encode()
        assert parse_table(content) == rows(("Shoes", "-"))

    def test_wrong_header(self):
        with pytest.raises(MalformedTableError):
            parse_table(b"Name,Parent\nShoes,-\n")

    def test_empty_file(self):
        with pytest.raises(MalformedTableError):
            parse_table(b"")

    def test_not_utf8(self):
        with pytest.raises(MalformedTableError):
            parse_table(b"\xff\xfe\x00C\x00a")


class TestParseWorkbook:
    def test_reads_category_tree_sheet(self):
        content = make_workbook([("Shoes", "-"), ("Sneakers", "Shoes")])
        assert parse_workbook(content) == rows(("Shoes", "-"), ("Sneakers", "Shoes"))

    def test_skips_incomplete_rows_and_reads_numbers_as_text(self):
        content = make_workbook([("Shoes", "-"), ("Orphan", None), (None, None), (42, "Shoes")])
        assert parse_workbook(content) == rows(("Shoes", "-"), ("42", "Shoes"))

    def test_missing_sheet(self):
        content = make_workbook([("Shoes", "-")], sheet="Sheet1")
        with pytest.raises(MalformedTableError, match="Category Tree"):
            parse_workbook(content)

    def test_wrong_header(self):
        with pytest.raises(MalformedTableError):
            parse_workbook(make_workbook([("Shoes", "-")], header=("Name", "Parent")))

    def test_not_a_workbook(self):
        with pytest.raises(MalformedTableError):
            parse_workbook(b"Category,Parent Category\nShoes,-\n")


class TestParseUpload:
    def test_codec_chosen_by_extension(self):
        assert parse_upload("tree.XLSX", make_workbook([("Shoes", "-")])) == rows(("Shoes", "-"))
        assert parse_upload("tree.csv", b"Category,Parent Category\nShoes,-\n") == rows(("Shoes", "-"))

    def test_unsupported_extension(self):
        with pytest.raises(MalformedTableError):
            parse_upload("tree.xls", b"")


class TestImportRoute:
    async def test_upload_csv(self, client, projector):
        resp = await client.post(
            "/api/owners/chat-1/import",
            files={"file": ("tree.csv", b"Category,Parent Category\nShoes,-\nBoots,Shoes\n", "text/csv")},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["ok"] is True
        assert data["count"] == 2
        assert await forest_edges(projector, "chat-1") == {("Shoes", None), ("Boots", "Shoes")}

    async def test_malformed_upload(self, client):
        resp = await client.post(
            "/api/owners/chat-1/import",
            files={"file": ("tree.csv", b"garbage\n", "text/csv")},
        )
        assert resp.status_code == 422
        data = resp.json()
        assert data["ok"] is False
        assert data["error"] == "malformed_table"

    async def test_import_rows_json(self, client, projector):
        resp = await client.post(
            "/api/owners/chat-1/import/rows",
            json=[{"name": "Sneakers", "parent": "Shoes"}],
        )
        assert resp.status_code == 200
        assert resp.json()["message"] == "Successfully added 1 categories."
        assert await forest_edges(projector, "chat-1") == {("Shoes", None), ("Sneakers", "Shoes")}

    async def test_upload_workbook(self, client, projector):
        content = make_workbook([("Shoes", "-"), ("Boots", "Shoes")])
        resp = await client.post(
            "/api/owners/chat-1/import",
            files={"file": ("tree.xlsx", content, "application/octet-stream")},
        )
        assert resp.status_code == 200
        assert resp.json()["count"] == 2
        assert await forest_edges(projector, "chat-1") == {("Shoes", None), ("Boots", "Shoes")}

    async def test_unsupported_file_type(self, client, projector):
        resp = await client.post(
            "/api/owners/chat-1/import",
            files={"file": ("tree.txt", b"Category,Parent Category\nShoes,-\n", "text/plain")},
        )
        assert resp.status_code == 422
        assert resp.json()["error"] == "malformed_table"
        assert await projector.get_nodes("chat-1") == []
