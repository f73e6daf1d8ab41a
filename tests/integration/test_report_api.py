"""Integration tests for the report API endpoints."""
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from lab_report import views
from lab_report.domain.catalog import REPORT_COLUMNS
from lab_report.entrypoints.report_api import app, get_uow


@pytest.fixture
def client(uow):
    app.dependency_overrides[get_uow] = lambda: uow
    yield TestClient(app)
    app.dependency_overrides.pop(get_uow, None)


@pytest.fixture
def one_visit(load_documents):
    load_documents(
        labtests=[{"_id": "t-cbc", "code": "CBC", "name": "Complete Blood Count"}],
        patients=[{"_id": "p-1", "ln": "LN0001", "title": "นาย", "firstName": "Somchai",
                   "lastName": "Jaidee", "gender": "M", "age": 42}],
        visits=[{"_id": "v-1", "visitNumber": "VN001", "patientId": "p-1", "department": "OPD",
                 "visitDate": datetime(2024, 1, 1, 9, 30), "patientRights": "Cash"}],
        orders=[{"_id": "o-1", "visitNumber": "VN001", "totalAmount": 150,
                 "items": [{"code": "CBC", "name": "Complete Blood Count", "type": "individual"}]}],
    )


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_lab_report(client, one_visit):
    response = client.get(
        "/api/reports/data",
        params={"reportType": "lab", "dateFrom": "2024-01-01", "dateTo": "2024-01-31", "department": "all"},
    )

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"stats", "data"}
    assert set(body["stats"]) == {"todayPatients", "todayTests", "todayRevenue", "growth"}

    [row] = body["data"]
    assert row["visitNumber"] == "VN001"
    assert row["firstName"] == "Somchai"
    assert row["gender"] == "ชาย"
    assert row["rights"] == "Cash"
    assert list(row["labTests"]) == list(REPORT_COLUMNS)
    assert [column for column, value in row["labTests"].items() if value] == ["CBC"]


def test_structured_age_does_not_break_response(client, load_documents):
    load_documents(
        patients=[{"_id": "p-9", "ln": "LN0009", "age": {"years": 35}}],
        visits=[{"_id": "v-9", "visitNumber": "VN009", "patientId": "p-9",
                 "visitDate": datetime(2024, 1, 2, 9, 0)}],
    )

    response = client.get("/api/reports/data", params={"dateFrom": "2024-01-02", "dateTo": "2024-01-02"})

    assert response.status_code == 200
    assert response.json()["data"][0]["age"] == "{'years': 35}"


def test_other_report_types_are_rejected(client):
    response = client.get("/api/reports/data", params={"reportType": "financial"})

    assert response.status_code == 400


def test_report_generation_failure_returns_500(client, monkeypatch):
    def failing_report(*args, **kwargs):
        raise views.ReportGenerationError("database unavailable")

    monkeypatch.setattr(views, "get_lab_report", failing_report)

    response = client.get("/api/reports/data", params={"reportType": "lab"})

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to generate lab report"


def test_report_columns(client):
    response = client.get("/api/reports/lab/columns")

    assert response.status_code == 200
    assert response.json() == {"version": "2024.1", "columns": list(REPORT_COLUMNS)}
