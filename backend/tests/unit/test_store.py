"""Unit tests for snapshot stores."""

import pytest

from ffe_budget.store import FileSnapshotStore, InMemorySnapshotStore
from ffe_budget.utils import APIError


pytestmark = pytest.mark.unit


class TestInMemorySnapshotStore:
    def test_read_write_clear(self):
        store = InMemorySnapshotStore()
        assert store.read_snapshot("slot") is None

        store.write_snapshot("slot", "{}")
        store.write_snapshot("slot", '{"v": 2}')

        assert store.read_snapshot("slot") == '{"v": 2}'
        assert store.get_stats() == {"slots": 1}

        store.clear_snapshot("slot")
        store.clear_snapshot("slot")
        assert store.read_snapshot("slot") is None


class TestFileSnapshotStore:
    """檔案快照儲存測試."""

    def test_read_write_clear(self, temp_dir):
        store = FileSnapshotStore(temp_dir / "recovery")

        store.write_snapshot("ffe_autosave", '{"a": 1}')

        assert (temp_dir / "recovery" / "ffe_autosave.json").is_file()
        assert store.read_snapshot("ffe_autosave") == '{"a": 1}'
        assert store.get_stats() == {"slots": 1}

        store.clear_snapshot("ffe_autosave")
        assert store.read_snapshot("ffe_autosave") is None

    def test_overwrite_leaves_no_temp_files(self, temp_dir):
        store = FileSnapshotStore(temp_dir)
        store.write_snapshot("slot", "one")
        store.write_snapshot("slot", "two")

        assert store.read_snapshot("slot") == "two"
        assert [path.name for path in temp_dir.iterdir()] == ["slot.json"]

    @pytest.mark.parametrize("slot", ["../escape", "a/b", ""])
    def test_invalid_slot(self, temp_dir, slot):
        store = FileSnapshotStore(temp_dir)
        with pytest.raises(APIError):
            store.write_snapshot(slot, "x")
