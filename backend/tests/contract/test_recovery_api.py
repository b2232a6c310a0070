"""Contract tests for recovery draft endpoints."""

import pytest
from fastapi.testclient import TestClient


pytestmark = pytest.mark.contract

API_PREFIX = "/api/v1/recovery"


@pytest.fixture
def draft(session, autosave):
    """A meaningful document flushed to the recovery slot."""
    session.update_project_field("name", "Draft Hotel")
    session.update_item_field("foh", session.categories[0].items[0].id, "description", "Lounge Chair")
    autosave.flush()
    return autosave


class TestRecoveryEndpoints:
    def test_no_draft(self, client: TestClient):
        response = client.get(API_PREFIX)

        assert response.status_code == 200
        assert response.json()["data"] is None

    def test_draft_found(self, client: TestClient, draft):
        response = client.get(API_PREFIX)

        data = response.json()["data"]
        assert data["projectName"] == "Draft Hotel"
        assert data["categories"] == 1
        assert data["items"] == 1
        assert data["savedAt"]

    def test_untouched_template_is_not_offered(self, client: TestClient, autosave):
        autosave.flush()
        response = client.get(API_PREFIX)
        assert response.json()["data"] is None

    def test_resume_marks_dirty(self, client: TestClient, session, draft, persistence):
        persistence.new_document()

        response = client.post(f"{API_PREFIX}/resume")

        assert response.status_code == 200
        assert response.json()["data"] == {"projectName": "Draft Hotel", "dirty": True}
        assert session.project_info.name == "Draft Hotel"

    def test_resume_requires_confirmation_when_dirty(self, client: TestClient, session, draft):
        response = client.post(f"{API_PREFIX}/resume")
        assert response.status_code == 409

        response = client.post(f"{API_PREFIX}/resume", json={"confirm_discard": True})
        assert response.status_code == 200

    def test_resume_without_draft(self, client: TestClient):
        response = client.post(f"{API_PREFIX}/resume")
        assert response.status_code == 404
        assert response.json()["error_code"] == "NO_RECOVERY_DRAFT"

    def test_discard(self, client: TestClient, draft, snapshot_store):
        response = client.delete(API_PREFIX)

        assert response.status_code == 200
        assert snapshot_store.read_snapshot("test_autosave") is None
        assert client.get(API_PREFIX).json()["data"] is None
