"""Pytest configuration and fixtures."""

import json
import shutil
import tempfile
from pathlib import Path
from typing import Callable

import pytest
from fastapi.testclient import TestClient

from ffe_budget.api import dependencies
from ffe_budget.config import Settings
from ffe_budget.main import app
from ffe_budget.models import Category, Document, LineItem, ProjectInfo
from ffe_budget.services.autosave import AutoSaveService
from ffe_budget.services.document_service import DocumentSession
from ffe_budget.services.id_generator import IdGenerator
from ffe_budget.services.persistence import DocumentPersistenceService
from ffe_budget.services.scheduling import ManualScheduler
from ffe_budget.store import InMemorySnapshotStore
from ffe_budget.utils import FileManager


class StepClock:
    """Clock frozen at a fixed millisecond so id collisions are forced."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def temp_dir():
    """Create temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_settings(temp_dir: Path) -> Settings:
    return Settings(
        documents_dir=str(temp_dir / "documents"),
        recovery_dir=str(temp_dir / "recovery"),
        autosave_delay_seconds=1.0,
    )


@pytest.fixture
def id_generator() -> IdGenerator:
    """Id generator whose clock never advances."""
    return IdGenerator(clock=StepClock())


@pytest.fixture
def session(id_generator: IdGenerator, test_settings: Settings) -> DocumentSession:
    """Fresh session holding the blank template."""
    return DocumentSession(id_generator=id_generator, config=test_settings)


@pytest.fixture
def snapshot_store() -> InMemorySnapshotStore:
    return InMemorySnapshotStore()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def autosave(session, snapshot_store, scheduler, id_generator) -> AutoSaveService:
    """Started auto-save service driven by the manual scheduler."""
    service = AutoSaveService(
        session=session,
        store=snapshot_store,
        scheduler=scheduler,
        delay=1.0,
        slot="test_autosave",
        id_generator=id_generator,
    )
    service.start()
    yield service
    service.stop()


@pytest.fixture
def file_manager(temp_dir: Path) -> FileManager:
    return FileManager(documents_dir=temp_dir / "documents", max_file_size_bytes=1024 * 1024)


@pytest.fixture
def persistence(session, file_manager, id_generator) -> DocumentPersistenceService:
    return DocumentPersistenceService(session=session, file_manager=file_manager, id_generator=id_generator)


@pytest.fixture
def client(session, persistence, autosave):
    """FastAPI test client wired to the test session, files and snapshot store."""
    app.dependency_overrides[dependencies.get_session_dependency] = lambda: session
    app.dependency_overrides[dependencies.get_persistence_dependency] = lambda: persistence
    app.dependency_overrides[dependencies.get_autosave_dependency] = lambda: autosave
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_item() -> Callable[..., LineItem]:
    def _make(item_id: int, quantity: float = 1, unit_price: float = 0, **fields) -> LineItem:
        return LineItem(id=item_id, quantity=quantity, unit_price=unit_price, **fields)

    return _make


@pytest.fixture
def budget_document(make_item) -> Document:
    """One Front of House category: 50 × $170 and 46 × $225, 10.25% tax, $750,000 allowance."""
    return Document(
        project_info=ProjectInfo(
            name="Harbor Hotel",
            client="Development Group LLC",
            allowance=750000,
            sales_tax_rate=10.25,
        ),
        categories=[
            Category(
                id="foh",
                title="Front of House | Furniture & Equipment",
                items=[
                    make_item(101, 50, 170, manufacturer="Knoll", description="Lounge Chair"),
                    make_item(102, 46, 225, manufacturer="Hay", description="Side Table"),
                ],
            ),
        ],
    )


@pytest.fixture
def legacy_file_payload() -> dict:
    """File written before terms, specifications and camelCase item keys existed."""
    return {
        "projectInfo": {
            "name": "Old Project",
            "client": "Legacy Client",
            "allowance": "500000",
            "salesTaxRate": 8,
        },
        "categories": [
            {
                "id": "foh",
                "title": "Front of House",
                "color": "text-red-600",
                "icon": {"type": "Armchair"},
                "items": [
                    {
                        "id": 1700000000001,
                        "mfr": "Knoll",
                        "desc": "Lounge Chair",
                        "qty": "4",
                        "unitPrice": 1200,
                        "status": "Draft",
                    }
                ],
            }
        ],
    }


@pytest.fixture
def legacy_file(temp_dir: Path, legacy_file_payload: dict) -> Path:
    path = temp_dir / "documents" / "old_project_budget.ffe"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(legacy_file_payload), encoding="utf-8")
    return path
