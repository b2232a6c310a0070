"""Unit tests for serialization, migration and explicit save/open."""

import json
import math

import pytest

from ffe_budget.models import Document
from ffe_budget.models.project_info import DEFAULT_TERMS
from ffe_budget.services.persistence import (
    deserialize,
    deserialize_with_metadata,
    dumps_document,
    loads_document,
    serialize,
    serialize_document,
    suggested_filename,
)
from ffe_budget.utils import APIError, DocumentFormatError, FileAccessCancelled


pytestmark = pytest.mark.unit


def data_fields(document: Document) -> dict:
    """Everything except runtime presentation fields."""
    return {
        "projectInfo": document.project_info.to_json_dict(),
        "categories": [category.to_json_dict() for category in document.categories],
    }


def all_numbers(document: Document) -> list:
    numbers = [document.project_info.allowance, document.project_info.sales_tax_rate]
    for category in document.categories:
        for item in category.items:
            numbers.extend([item.quantity, item.unit_price])
    return numbers


class TestSerialize:
    """序列化測試."""

    def test_envelope(self, budget_document):
        payload = json.loads(dumps_document(serialize_document(budget_document)))

        assert payload["version"] == "1.0"
        assert "savedAt" in payload
        assert payload["projectInfo"]["salesTaxRate"] == 10.25
        item = payload["categories"][0]["items"][0]
        assert item["unitPrice"] == 170
        assert item["leadTime"] == ""
        assert item["specification"] == {"detailedDescription": "", "attachments": []}

    def test_icon_not_written(self, budget_document):
        budget_document.categories[0].apply_style()
        payload = serialize_document(budget_document).to_json_dict()

        category = payload["categories"][0]
        assert "iconKey" not in category
        assert "icon" not in category
        assert category["colorTag"] == "text-blue-600"

    def test_keeps_order(self, budget_document, make_item):
        budget_document.categories[0].items.insert(0, make_item(5))
        payload = serialize(budget_document.project_info, budget_document.categories).to_json_dict()
        assert [item["id"] for item in payload["categories"][0]["items"]] == [5, 101, 102]

    def test_suggested_filename(self):
        assert suggested_filename("My Hotel") == "my_hotel_budget.ffe"
        assert suggested_filename("") == "untitled_budget.ffe"
        assert suggested_filename("Café #2", ".csv") == "caf___2_budget.csv"


class TestRoundTrip:
    """存檔後再載入必須得到相同資料."""

    def test_round_trip(self, session):
        session.update_project_field("name", "Harbor Hotel")
        item_id = session.categories[0].items[0].id
        session.update_item_field("foh", item_id, "quantity", 4)
        session.update_item_field("foh", item_id, "unitPrice", "19.99")
        session.add_attachment("foh", item_id, "spec.pdf", "application/pdf", b"%PDF-1.4")
        session.add_category()

        text = dumps_document(serialize_document(session.document))
        loaded = loads_document(text)

        assert data_fields(loaded) == data_fields(session.document)

    def test_unknown_keys_preserved(self, budget_document):
        payload = serialize_document(budget_document).to_json_dict()
        payload["projectInfo"]["projectCode"] = "HH-01"
        payload["categories"][0]["items"][0]["isTaxable"] = True

        loaded = deserialize(payload)
        again = serialize_document(loaded).to_json_dict()

        assert again["projectInfo"]["projectCode"] == "HH-01"
        assert again["categories"][0]["items"][0]["isTaxable"] is True

    def test_metadata(self, budget_document):
        text = dumps_document(serialize_document(budget_document))
        loaded = deserialize_with_metadata(text)
        assert loaded.version == "1.0"
        assert loaded.saved_at is not None


class TestMigration:
    """舊版檔案相容性測試."""

    def test_old_file_gets_terms_and_specification(self, legacy_file_payload):
        document = deserialize(legacy_file_payload)

        assert document.project_info.terms == DEFAULT_TERMS
        item = document.categories[0].items[0]
        assert item.specification.detailed_description == ""
        assert item.specification.attachments == []

    def test_legacy_keys(self, legacy_file_payload):
        document = deserialize(legacy_file_payload)
        item = document.categories[0].items[0]

        assert item.manufacturer == "Knoll"
        assert item.description == "Lounge Chair"
        assert item.quantity == 4
        assert document.project_info.allowance == 500000

    def test_well_known_style_reapplied(self, legacy_file_payload):
        """內建分類忽略檔案中儲存的顏色."""
        category = deserialize(legacy_file_payload).categories[0]
        assert category.icon_key == "armchair"
        assert category.color_tag == "text-blue-600"

    def test_unknown_category_keeps_color_and_gets_generic_icon(self):
        payload = {
            "projectInfo": {},
            "categories": [{"id": "cat_1", "title": "Lighting", "colorTag": "text-pink-600", "items": []}],
        }
        category = deserialize(payload).categories[0]
        assert category.icon_key == "layout"
        assert category.color_tag == "text-pink-600"

    def test_items_not_a_list(self):
        payload = {
            "projectInfo": {"name": "X"},
            "categories": [{"id": "foh", "title": "FOH", "items": {"0": {"id": 1}}}],
        }
        assert deserialize(payload).categories[0].items == []

    def test_nested_items_flattened(self):
        payload = {
            "projectInfo": {},
            "categories": [{
                "id": "foh",
                "items": [[{"id": 1, "qty": 1}, {"id": 2, "qty": 2}], {"id": 3, "qty": 3}],
            }],
        }
        items = deserialize(payload).categories[0].items
        assert [item.id for item in items] == [1, 2, 3]
        assert [item.quantity for item in items] == [1, 2, 3]

    @pytest.mark.parametrize("bad", ["abc", None, "", "NaN", "-3", float("inf"), [1], {"a": 1}])
    def test_unparsable_numbers_become_zero(self, bad):
        payload = {
            "projectInfo": {"allowance": bad, "salesTaxRate": bad},
            "categories": [{"id": "foh", "items": [{"id": 1, "quantity": bad, "unitPrice": bad}]}],
        }
        document = deserialize(payload)
        numbers = all_numbers(document)
        assert numbers == [0, 0, 0, 0]
        assert not any(math.isnan(number) for number in numbers)

    def test_terms_as_text(self):
        payload = {"projectInfo": {"terms": "1. A\n2. B"}, "categories": []}
        assert deserialize(payload).project_info.terms == ["1. A", "2. B"]

    def test_duplicate_and_missing_ids_rekeyed(self, id_generator):
        payload = {
            "projectInfo": {},
            "categories": [
                {"id": "foh", "items": [{"id": 7}, {"id": 7}, {"desc": "no id"}]},
                {"id": "foh", "items": [{"id": "abc"}]},
                {"title": "No id", "items": []},
            ],
        }
        document = deserialize(payload, id_generator)

        item_ids = [item.id for _, item in document.iter_items()]
        category_ids = [category.id for category in document.categories]
        assert item_ids[0] == 7
        assert len(set(item_ids)) == 4
        assert category_ids[0] == "foh"
        assert len(set(category_ids)) == 3

    def test_legacy_attachment_fields(self):
        payload = {
            "projectInfo": {},
            "categories": [{
                "id": "foh",
                "items": [{
                    "id": 1,
                    "specification": {
                        "detailedDescription": "Spec",
                        "attachments": [{"id": 1700000000123.5, "name": "a.png", "type": "image/png", "size": 12}],
                    },
                }],
            }],
        }
        attachment = deserialize(payload).categories[0].items[0].specification.attachments[0]
        assert attachment.mime_type == "image/png"
        assert attachment.size_bytes == 12
        assert isinstance(attachment.id, str)

    @pytest.mark.parametrize("bad_id", [{"a": 1}, [1, 2], True])
    def test_unusable_attachment_id_is_replaced(self, bad_id):
        """附件 ID 無法使用時重新產生，不應導致整個檔案載入失敗."""
        payload = {
            "projectInfo": {},
            "categories": [{
                "id": "foh",
                "items": [{"id": 1, "qty": 2, "specs": {"attachments": [{"id": bad_id, "name": "a.png"}]}}],
            }],
        }

        item = deserialize(payload).categories[0].items[0]

        assert item.quantity == 2
        attachment = item.specification.attachments[0]
        assert attachment.name == "a.png"
        assert isinstance(attachment.id, str)
        assert attachment.id

    @pytest.mark.parametrize("payload", [
        {"categories": []},
        {"projectInfo": {}},
        {"projectInfo": None, "categories": []},
        [1, 2, 3],
        "not json at all",
        b"\xff\xfe\x00",
    ])
    def test_hard_failures(self, payload):
        with pytest.raises(DocumentFormatError):
            deserialize(payload)


class TestDocumentPersistenceService:
    """Save / Save As / Open 測試."""

    def test_save_uses_project_name_and_clears_dirty(self, session, persistence, file_manager):
        session.update_project_field("name", "Harbor Hotel")

        saved = persistence.save()

        assert saved.filename == "harbor_hotel_budget.ffe"
        assert (file_manager.documents_dir / saved.filename).is_file()
        assert session.is_dirty() is False
        assert persistence.current_target == saved.path

    def test_second_save_reuses_target(self, session, persistence):
        first = persistence.save("first")
        session.update_project_field("name", "Renamed")

        second = persistence.save("ignored")

        assert second.path == first.path

    def test_save_as_cancelled(self, session, persistence):
        session.update_project_field("name", "X")
        with pytest.raises(FileAccessCancelled):
            persistence.save_as("  ")
        assert session.is_dirty() is True

    def test_open_replaces_document(self, session, persistence, legacy_file):
        session.update_project_field("name", "Unsaved work")

        loaded = persistence.open(legacy_file.name)

        assert loaded.version == "0"
        assert session.project_info.name == "Old Project"
        assert session.is_dirty() is False
        assert persistence.current_target == legacy_file

    def test_open_corrupt_file_leaves_document(self, session, persistence, file_manager):
        (file_manager.documents_dir / "broken.ffe").write_text("{not json", encoding="utf-8")
        session.update_project_field("name", "Keep me")

        with pytest.raises(DocumentFormatError):
            persistence.open("broken.ffe")

        assert session.project_info.name == "Keep me"
        assert session.is_dirty() is True

    def test_open_missing_file(self, persistence):
        with pytest.raises(APIError) as exc_info:
            persistence.open("nope.ffe")
        assert exc_info.value.status_code == 404

    def test_open_bytes(self, session, persistence, legacy_file_payload):
        content = json.dumps(legacy_file_payload).encode("utf-8")

        persistence.open_bytes(content, "old.ffe")

        assert session.project_info.client == "Legacy Client"
        assert persistence.current_target is None

    def test_open_bytes_wrong_extension(self, persistence):
        with pytest.raises(APIError):
            persistence.open_bytes(b"{}", "budget.pdf")

    def test_export_bytes_does_not_clear_dirty(self, session, persistence):
        session.update_project_field("name", "Draft")
        payload = json.loads(persistence.export_bytes())
        assert payload["projectInfo"]["name"] == "Draft"
        assert session.is_dirty() is True
