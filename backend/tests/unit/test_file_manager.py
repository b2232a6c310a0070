"""Unit tests for FileManager and validators."""

import pytest

from ffe_budget.utils import APIError, AttachmentValidator, FileAccessCancelled, FileManager, FileValidator
from ffe_budget.utils.errors import ErrorCode


pytestmark = pytest.mark.unit


class TestFileManager:
    """檔案存取測試."""

    def test_pick_target_adds_extension(self, file_manager: FileManager):
        target = file_manager.pick_target("budget")
        assert target == file_manager.documents_dir / "budget.ffe"

    def test_pick_target_strips_directories(self, file_manager: FileManager):
        target = file_manager.pick_target("../../etc/hotel.ffe")
        assert target.parent == file_manager.documents_dir
        assert target.name == "hotel.ffe"

    @pytest.mark.parametrize("name", [None, "", "   "])
    def test_pick_target_cancelled(self, file_manager: FileManager, name):
        with pytest.raises(FileAccessCancelled):
            file_manager.pick_target(name)

    def test_pick_source_missing(self, file_manager: FileManager):
        with pytest.raises(APIError) as exc_info:
            file_manager.pick_source("missing.ffe")
        assert exc_info.value.error_code == ErrorCode.FILE_NOT_FOUND

    def test_write_then_read(self, file_manager: FileManager):
        target = file_manager.pick_target("a")
        file_manager.write_document(target, b'{"x": 1}')

        assert file_manager.read_document(target) == b'{"x": 1}'
        assert [entry["filename"] for entry in file_manager.list_documents()] == ["a.ffe"]

    def test_write_failure_keeps_previous_file(self, file_manager: FileManager, temp_dir):
        target = file_manager.pick_target("a")
        file_manager.write_document(target, b"original")

        with pytest.raises(APIError) as exc_info:
            file_manager.write_document(temp_dir / "no-such-dir" / "a.ffe", b"new")

        assert exc_info.value.error_code == ErrorCode.FILE_SAVE_FAILED
        assert target.read_bytes() == b"original"

    def test_read_too_large(self, temp_dir):
        manager = FileManager(temp_dir, max_file_size_bytes=4)
        path = temp_dir / "big.ffe"
        path.write_bytes(b"12345")

        with pytest.raises(APIError) as exc_info:
            manager.read_document(path)
        assert exc_info.value.status_code == 413


class TestFileValidator:
    def test_valid(self):
        assert FileValidator().validate_file("hotel.ffe", 10, "application/json")

    @pytest.mark.parametrize("filename, size, mime_type", [
        ("", 10, None),
        ("hotel.pdf", 10, None),
        ("hotel.ffe", 10, "image/png"),
        ("hotel.ffe", 0, None),
    ])
    def test_invalid(self, filename, size, mime_type):
        with pytest.raises(APIError):
            FileValidator().validate_file(filename, size, mime_type)

    def test_too_large(self):
        with pytest.raises(APIError) as exc_info:
            FileValidator(max_file_size_mb=1).validate_file("a.ffe", 2 * 1024 * 1024)
        assert exc_info.value.status_code == 413


class TestAttachmentValidator:
    def test_limits(self):
        validator = AttachmentValidator(max_attachment_size_mb=1)
        assert validator.validate_attachment("a.png", 100)
        with pytest.raises(APIError):
            validator.validate_attachment("a.png", 0)
        with pytest.raises(APIError):
            validator.validate_attachment("a.png", 2 * 1024 * 1024)
