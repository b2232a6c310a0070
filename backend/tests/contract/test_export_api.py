"""Contract tests for ledger export endpoints."""

import io

import pytest
from fastapi.testclient import TestClient
from openpyxl import load_workbook


pytestmark = pytest.mark.contract

API_PREFIX = "/api/v1/export"


@pytest.fixture
def loaded(session, budget_document):
    session.load_document(budget_document)
    return session


class TestExportCsvEndpoint:
    def test_csv_download(self, client: TestClient, loaded):
        response = client.get(f"{API_PREFIX}/csv")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="harbor_hotel_budget.csv"' in response.headers["content-disposition"]
        text = response.content.decode("utf-8-sig")
        assert "Lounge Chair" in text
        assert "Grand Total" in text
        assert "18850" in text


class TestExportXlsxEndpoint:
    def test_xlsx_download(self, client: TestClient, loaded):
        response = client.get(f"{API_PREFIX}/xlsx")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        assert 'filename="harbor_hotel_budget.xlsx"' in response.headers["content-disposition"]

        wb = load_workbook(io.BytesIO(response.content))
        ws = wb["Budget"]
        assert ws.cell(row=2, column=2).value == "Harbor Hotel"
        assert ws.cell(row=7, column=1).value == "Category"

    def test_export_does_not_touch_dirty_flag(self, client: TestClient, loaded):
        client.get(f"{API_PREFIX}/xlsx")
        assert loaded.is_dirty() is False
