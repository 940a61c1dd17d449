import json
from datetime import date

import pytest

from kakeibo import api
from kakeibo.backends import MONTHS, TRANSACTIONS, LocalStore, RemoteStore
from kakeibo.backup import (
    backup_filename,
    dump_backup,
    export_data,
    load_backup,
    restore_data,
)
from kakeibo.config import load_config, set_budget, set_theme
from kakeibo.errors import FormatError, ValidationError
from tests.helpers.dynamo_stub import FakeTable

HEADER = "計算対象,日付,内容,金額（円）,保有金融機関,大項目,中項目,メモ,振替,ID"
JANUARY = "\n".join(
    [
        HEADER,
        "1,2026/01/25,給料 株式会社X,160000,(三井住友銀行),収入,給与,,0,a",
        "1,2026/01/05,イオン,-5491,WAON,食費,食料品,,0,b",
    ]
)


def _txn(**overrides) -> dict:
    record = {
        "month": "2026/01",
        "monthCategoryKey": "2026/01|||食費",
        "date": "2026/01/05",
        "content": "イオン",
        "amount": -5491,
        "institution": "WAON",
        "category": "食費",
        "subcategory": "食料品",
    }
    record.update(overrides)
    return record


def test_backup_filename():
    assert backup_filename(date(2026, 1, 22)) == "kakeibo_backup_2026-01-22.json"


def test_export_shape(backend):
    api.import_month(backend, JANUARY, target_month="2026-01")
    set_theme(backend, load_config(backend), "light")
    payload = export_data(backend)
    assert set(payload) == {"months", "transactions", "config"}
    assert [m["month"] for m in payload["months"]] == ["2026/01"]
    assert len(payload["transactions"]) == 2
    assert all("id" not in t for t in payload["transactions"])
    assert payload["config"]["theme"] == "light"
    assert payload["config"]["budgets"] == {"食費": 0}
    # The document is plain JSON.
    assert json.loads(dump_backup(payload)) == payload


def test_round_trip_between_backends(database_url):
    local = LocalStore(database_url)
    api.import_month(local, JANUARY, target_month="2026-01")
    set_budget(local, load_config(local), "食費", 30000)
    payload = json.loads(dump_backup(export_data(local)))

    remote = RemoteStore(FakeTable(), user_id="u1")
    report = restore_data(remote, payload)
    assert (report.months, report.transactions, report.skipped) == (1, 2, 0)
    assert report.config_restored

    assert api.load_summaries(remote) == api.load_summaries(local)
    assert load_config(remote) == load_config(local)
    food = api.expense_detail(remote, "2026-01", "食費")
    assert [t.amount for t in food.rows] == [-5491]


def test_restore_skips_invalid_records(backend):
    payload = {
        "months": [
            {"month": "2026/01", "income": 1000, "expenses": {"食費": 500}},
            {"month": "2026-02", "income": 1000},
            {"month": "2026/03", "income": "1000"},
            {"month": "2026/04"},
            "garbage",
        ],
        "transactions": [
            _txn(),
            _txn(amount="-5491"),
            _txn(month="26/01"),
            _txn(content="あ" * 300),
        ],
        "config": {
            "budgets": {"食費": 30000, "x" * 51: 1, "日用品": "many"},
            "fixed": ["住宅", 42, "y" * 51],
            "theme": "neon",
            "fontSize": 1.3,
        },
    }
    report = restore_data(backend, payload)
    assert report.months == 1
    assert report.skipped_months == 4
    assert report.transactions == 2
    assert report.skipped_transactions == 2
    assert report.skipped_config_entries == 5

    rows = backend.get_all(TRANSACTIONS)
    assert max(len(r["content"]) for r in rows) == 200
    cfg = load_config(backend)
    assert cfg.budgets == {"食費": 30000}
    assert cfg.fixed == ("住宅",)
    assert cfg.theme == "dark"
    assert cfg.font_scale == 1.3


def test_restore_derives_missing_detail_keys(backend):
    income = _txn(
        monthCategoryKey=None,
        amount=160000,
        institution="三井住友銀行",
        category="income",
        subcategory="給与",
    )
    del income["monthCategoryKey"]
    restore_data(backend, {"transactions": [income, _txn(monthCategoryKey=None)]})
    keys = sorted(r["monthCategoryKey"] for r in backend.get_all(TRANSACTIONS))
    assert keys == ["2026/01|||income|||給与（三井住友銀行）", "2026/01|||食費"]


def test_restore_replaces_transactions_of_backed_up_months(backend):
    api.import_month(backend, JANUARY, target_month="2026-01")
    restore_data(backend, {"transactions": [_txn(content="restored")]})
    rows = backend.get_by_index(TRANSACTIONS, "month", "2026/01")
    assert [r["content"] for r in rows] == ["restored"]
    # Months not in the backup keep their summaries.
    assert [m["month"] for m in backend.get_all(MONTHS)] == ["2026/01"]


def test_restore_rejects_non_object_documents(backend):
    with pytest.raises(ValidationError):
        restore_data(backend, [1, 2, 3])


def test_load_backup_rejects_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(FormatError):
        load_backup(path)
