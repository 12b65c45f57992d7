import io

import pandas as pd
import pytest

from conftest import make_transaction
from money_tracker.core.errors import ValidationFailed
from money_tracker.services.export_service import export_service


@pytest.fixture
def ledger(client, auth_headers):
    make_transaction(client, auth_headers, name="salary", price=200, datetime="2024-01-01T09:00:00Z")
    make_transaction(client, auth_headers, name="book", price=10, datetime="2024-01-02T09:00:00Z")
    make_transaction(client, auth_headers, name="groceries", price=-50, datetime="2024-01-03T09:00:00Z")


def test_summary_for_new_user(client, auth_headers):
    r = client.get("/api/transactions/summary", headers=auth_headers)

    assert r.status_code == 200
    assert r.json() == {"count": 0, "income": 0.0, "expenses": 0.0, "balance": 0.0, "latest": None}


def test_summary_totals(client, auth_headers, ledger):
    body = client.get("/api/transactions/summary", headers=auth_headers).json()

    assert body["count"] == 3
    assert body["income"] == 210
    assert body["expenses"] == 50
    assert body["balance"] == 160
    assert body["latest"]["name"] == "groceries"


def test_summary_only_counts_own_transactions(client, auth_headers, other_headers, ledger):
    body = client.get("/api/transactions/summary", headers=other_headers).json()

    assert body["count"] == 0


def test_export_csv(client, auth_headers, ledger):
    r = client.get("/api/transactions/export", params={"format": "csv", "sort": "oldest"}, headers=auth_headers)

    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert "transactions.csv" in r.headers["content-disposition"]
    df = pd.read_csv(io.BytesIO(r.content))
    assert list(df.columns) == ["id", "name", "description", "price", "datetime"]
    assert df["name"].tolist() == ["salary", "book", "groceries"]


def test_export_xlsx(client, auth_headers, ledger):
    r = client.get("/api/transactions/export", headers=auth_headers)

    assert r.status_code == 200
    df = pd.read_excel(io.BytesIO(r.content), engine="openpyxl")
    # Default sort is latest first
    assert df["price"].tolist() == [-50, 10, 200]


def test_export_rejects_unknown_format(client, auth_headers):
    r = client.get("/api/transactions/export", params={"format": "pdf"}, headers=auth_headers)

    assert r.status_code == 400
    assert r.json()["errors"][0]["field"] == "format"


def test_export_requires_authentication(client):
    assert client.get("/api/transactions/export").status_code == 401


def test_export_empty_frame_keeps_columns():
    df = export_service.to_frame([])

    assert list(df.columns) == ["id", "name", "description", "price", "datetime"]
    assert df.empty


def test_export_service_rejects_unknown_format():
    with pytest.raises(ValidationFailed):
        export_service.export([], "json")
