import pytest

from kakeibo import api
from kakeibo.backends import MONTHS, TRANSACTIONS
from kakeibo.config import load_config
from kakeibo.errors import FormatError, RowError

HEADER = "計算対象,日付,内容,金額（円）,保有金融機関,大項目,中項目,メモ,振替,ID"
FILENAME = "収入・支出詳細_2025-12-25_2026-01-22.csv"


def _csv(*rows: str) -> str:
    return "\n".join([HEADER, *rows]) + "\n"


JANUARY = _csv(
    "1,2026/01/25,給料 株式会社X,160000,(三井住友銀行),収入,給与,,0,a",
    "1,2026/01/05,イオン,-5491,WAON,食費,食料品,,0,b",
    "1,2026/01/03,コンビニ,-800,三井住友銀行,食費,食料品,,0,c",
    "1,2026/01/10,家賃,-80000,三井住友銀行,住宅,家賃,,0,d",
)


def test_import_writes_summary_transactions_and_budgets(backend):
    report = api.import_month(backend, JANUARY, filename=FILENAME)
    assert report.committed
    assert report.month == "2026/01"
    assert (report.processed, report.skipped, report.transactions) == (4, 0, 4)
    assert not report.overwritten

    summary = api.get_summary(backend, "2026-01")
    assert summary == report.summary
    assert summary.income == 160000
    assert summary.expenses == {"食費": 6291, "住宅": 80000}
    assert len(backend.get_by_index(TRANSACTIONS, "month", "2026/01")) == 4
    assert load_config(backend).budgets == {"食費": 0, "住宅": 0}


def test_target_month_overrides_filename(backend):
    report = api.import_month(backend, JANUARY, filename=FILENAME, target_month="2025-12")
    assert report.month == "2025/12"
    assert list(api.load_summaries(backend)) == ["2025/12"]


def test_overwrite_declined_keeps_existing_data(backend):
    api.import_month(backend, JANUARY, target_month="2026-01")
    asked: list[str] = []

    def decline(month: str) -> bool:
        asked.append(month)
        return False

    replacement = _csv("1,2026/01/05,x,-1000,WAON,日用品,,,0,z")
    report = api.import_month(
        backend, replacement, target_month="2026-01", confirm_overwrite=decline
    )
    assert asked == ["2026/01"]
    assert not report.committed
    assert api.get_summary(backend, "2026-01").expenses == {"食費": 6291, "住宅": 80000}
    assert len(backend.get_all(TRANSACTIONS)) == 4


def test_overwrite_without_callback_keeps_existing_data(backend):
    api.import_month(backend, JANUARY, target_month="2026-01")
    report = api.import_month(backend, JANUARY, target_month="2026-01")
    assert not report.committed
    assert len(backend.get_all(TRANSACTIONS)) == 4


def test_overwrite_confirmed_replaces_month(backend):
    api.import_month(backend, JANUARY, target_month="2026-01")
    api.import_month(backend, _csv("1,2026/02/01,x,-700,WAON,食費,,,0,z"), target_month="2026-02")

    replacement = _csv("1,2026/01/05,x,-1000,WAON,日用品,,,0,z")
    report = api.import_month(
        backend, replacement, target_month="2026-01", confirm_overwrite=lambda _m: True
    )
    assert report.committed
    assert report.overwritten
    assert api.get_summary(backend, "2026-01").expenses == {"日用品": 1000}
    assert len(backend.get_by_index(TRANSACTIONS, "month", "2026/01")) == 1
    # Other months are untouched.
    assert len(backend.get_by_index(TRANSACTIONS, "month", "2026/02")) == 1


def test_orphan_transactions_are_reclaimed(backend):
    backend.batch_write(
        TRANSACTIONS,
        [
            {
                "month": "2026/01",
                "monthCategoryKey": "2026/01|||食費",
                "date": "2026/01/01",
                "content": "orphan",
                "amount": -1,
                "institution": "WAON",
                "category": "食費",
                "subcategory": "",
            }
        ],
    )
    report = api.import_month(backend, JANUARY, target_month="2026-01")
    assert report.committed
    assert not report.overwritten
    contents = {r["content"] for r in backend.get_by_index(TRANSACTIONS, "month", "2026/01")}
    assert "orphan" not in contents


def test_parse_errors_leave_storage_untouched(backend):
    api.import_month(backend, JANUARY, target_month="2026-01")
    bad = _csv("1,2026/01/05,x,-1000,WAON,日用品,,,0,z", "1,2026/01/06,y,???,WAON,日用品,,,0,z")
    with pytest.raises(RowError):
        api.import_month(backend, bad, target_month="2026-01", confirm_overwrite=lambda _m: True)
    assert api.get_summary(backend, "2026-01").expenses == {"食費": 6291, "住宅": 80000}


def test_file_with_only_skipped_rows_is_rejected(backend):
    text = _csv("0,2026/01/05,x,-1000,WAON,食費,,,0,a", "1,2026/01/06,y,-1,WAON,,,,1,b")
    with pytest.raises(FormatError):
        api.import_month(backend, text, target_month="2026-01")
    assert backend.get_all(MONTHS) == []


def test_file_with_only_point_rows_is_rejected(backend):
    text = _csv(
        "1,2026/01/05,楽天ポイント,300,楽天,収入,,,0,a",
        "0,2026/01/06,x,-1000,WAON,食費,,,0,b",
    )
    with pytest.raises(FormatError, match="no income or expense rows"):
        api.import_month(backend, text, target_month="2026-01")
    assert backend.get_all(MONTHS) == []
    assert backend.get_all(TRANSACTIONS) == []
    assert api.load_summaries(backend) == {}


def test_import_file_decodes_shift_jis(backend, tmp_path):
    path = tmp_path / "mf_202601.csv"
    path.write_bytes(JANUARY.encode("cp932"))
    report = api.import_file(backend, path)
    assert report.month == "2026/01"
    assert report.summary.income == 160000


def test_detail_lookups(backend):
    api.import_month(backend, JANUARY, target_month="2026-01")

    food = api.expense_detail(backend, "2026-01", "食費")
    assert [t.date for t in food.rows] == ["2026/01/03", "2026/01/05"]
    assert (food.total, food.count) == (6291, 2)

    salary = api.income_detail(backend, "2026/01", "給与（三井住友銀行）")
    assert [t.amount for t in salary.rows] == [160000]
    assert salary.rows[0].is_income

    bank = api.institution_detail(backend, "2026-01", "三井住友銀行")
    assert [t.content for t in bank.income] == ["給料 株式会社X"]
    assert [t.content for t in bank.expense] == ["コンビニ", "家賃"]
    assert (bank.income_total, bank.expense_total, bank.count) == (160000, 80800, 3)

    assert api.expense_detail(backend, "2026-01", "趣味").count == 0


def test_load_summaries_sorted_by_month(backend):
    api.import_month(backend, JANUARY, target_month="2026-03")
    api.import_month(backend, JANUARY, target_month="2025-11")
    assert list(api.load_summaries(backend)) == ["2025/11", "2026/03"]


def test_clear_all_data_resets_everything(backend):
    api.import_month(backend, JANUARY, target_month="2026-01")
    cfg = api.clear_all_data(backend)
    assert cfg == load_config(backend)
    assert cfg.budgets == {}
    assert backend.get_all(MONTHS) == []
    assert backend.get_all(TRANSACTIONS) == []
