import pytest

from kakeibo.aggregate import (
    EXPENSE_COLORS,
    INCOME_COLOR,
    MonthAccumulator,
    aggregate_text,
    expense_color,
)
from kakeibo.errors import FormatError, RowError
from kakeibo.models import Expense, FlowEdge, Income, Point, Skip

HEADER = "計算対象,日付,内容,金額（円）,保有金融機関,大項目,中項目,メモ,振替,ID"


def _csv(*rows: str) -> str:
    return "\n".join([HEADER, *rows]) + "\n"


SALARY_AND_GROCERIES = _csv(
    "1,2026/01/25,給料 株式会社X,160000,(三井住友銀行),収入,給与,,0,a",
    "1,2026/01/05,イオン,-5491,WAON,食費,食料品,,0,b",
)


def test_salary_and_groceries_summary():
    batch = aggregate_text(SALARY_AND_GROCERIES, "2026-01")
    s = batch.summary
    assert s.month == "2026/01"
    assert s.income == 160000
    assert s.income_detail == {"給与（三井住友銀行）": 160000}
    assert s.expenses == {"食費": 5491}
    assert s.total_expense == 5491
    assert s.balance == 154509
    assert s.points == 0
    assert s.flows == (
        FlowEdge("給与（三井住友銀行）", "三井住友銀行", 160000, INCOME_COLOR),
        FlowEdge("WAON", "食費", 5491, EXPENSE_COLORS[0]),
    )
    assert s.node_column == {
        "給与（三井住友銀行）": 0,
        "三井住友銀行": 1,
        "WAON": 1,
        "食費": 2,
    }
    assert batch.processed == 2
    assert batch.skipped == 0


def test_transactions_carry_detail_keys():
    batch = aggregate_text(SALARY_AND_GROCERIES, "2026/01")
    income, expense = batch.transactions
    assert income.category == "income"
    assert income.subcategory == "給与"
    assert income.month_category_key == "2026/01|||income|||給与（三井住友銀行）"
    assert income.is_income
    assert expense.month_category_key == "2026/01|||食費"
    assert expense.amount == -5491
    assert not expense.is_income


def test_income_detail_sums_to_income_and_points_stay_out():
    text = _csv(
        "1,2026/01/25,給料,160000,三井住友銀行,収入,給与,,0,a",
        "1,2026/01/25,通勤手当,12000,三井住友銀行,収入,交通費,,0,b",
        "1,2026/01/26,臨時,3000,楽天銀行,収入,臨時収入,,0,c",
        "1,2026/01/27,楽天ポイント,450,楽天カード,収入,,,0,d",
        "0,2026/01/28,除外,-9999,WAON,食費,,,0,e",
        "1,2026/01/29,振替,-50000,三井住友銀行,,,,1,f",
    )
    batch = aggregate_text(text, "2026-01")
    s = batch.summary
    assert s.income == 175000
    assert sum(s.income_detail.values()) == s.income
    assert s.income_detail == {
        "給与（三井住友銀行）": 160000,
        "交通費支給（三井住友銀行）": 12000,
        "その他収入（楽天銀行）": 3000,
    }
    assert s.points == 450
    assert s.expenses == {}
    assert batch.processed == 4
    assert batch.skipped == 2
    # Points are counted but never stored as transactions.
    assert len(batch.transactions) == 3


def test_small_edges_are_pruned_but_totals_keep_them():
    text = _csv(
        "1,2026/01/25,給料,160000,三井住友銀行,収入,給与,,0,a",
        "1,2026/01/26,返金,99,楽天銀行,収入,臨時収入,,0,b",
        "1,2026/01/05,コンビニ,-499,WAON,食費,,,0,c",
        "1,2026/01/06,スーパー,-500,楽天カード,食費,,,0,d",
    )
    s = aggregate_text(text, "2026-01").summary
    assert s.income == 160099
    assert s.expenses == {"食費": 999}
    assert [(e.source, e.target) for e in s.flows] == [
        ("給与（三井住友銀行）", "三井住友銀行"),
        ("楽天カード", "食費"),
    ]


def test_expense_edges_sorted_desc_with_stable_ties_and_palette_order():
    text = _csv(
        "1,2026/01/25,給料,300000,三井住友銀行,収入,給与,,0,a",
        "1,2026/01/05,a,-1000,WAON,食費,,,0,b",
        "1,2026/01/05,b,-8000,楽天カード,住宅,,,0,c",
        "1,2026/01/05,c,-1000,楽天カード,日用品,,,0,d",
        "1,2026/01/05,d,-200,WAON,趣味,,,0,e",
    )
    flows = aggregate_text(text, "2026-01").summary.flows
    assert [(e.source, e.target, e.amount) for e in flows] == [
        ("給与（三井住友銀行）", "三井住友銀行", 300000),
        ("楽天カード", "住宅", 8000),
        ("WAON", "食費", 1000),
        ("楽天カード", "日用品", 1000),
    ]
    assert flows[0].color == INCOME_COLOR
    assert [e.color for e in flows[1:]] == [expense_color(0), expense_color(1), expense_color(2)]
    assert INCOME_COLOR not in EXPENSE_COLORS


def test_expense_color_cycles_through_palette():
    assert expense_color(len(EXPENSE_COLORS)) == expense_color(0)


def test_same_edge_amounts_accumulate():
    text = _csv(
        "1,2026/01/05,a,-300,WAON,食費,,,0,a",
        "1,2026/01/06,b,-300,WAON,食費,,,0,b",
    )
    s = aggregate_text(text, "2026-01").summary
    assert s.flows == (FlowEdge("WAON", "食費", 600, expense_color(0)),)


def test_row_error_names_the_failing_line():
    text = _csv(
        "1,2026/01/05,a,-300,WAON,食費,,,0,a",
        "1,2026/01/06,b,oops,WAON,食費,,,0,b",
    )
    with pytest.raises(RowError) as exc_info:
        aggregate_text(text, "2026-01")
    assert exc_info.value.row_index == 2
    assert str(exc_info.value).startswith("row 2:")


def test_missing_amount_column_is_a_format_error():
    with pytest.raises(FormatError):
        aggregate_text("日付,内容\n2026/01/05,x\n", "2026-01")


def test_invalid_month_is_rejected():
    with pytest.raises(ValueError):
        aggregate_text(SALARY_AND_GROCERIES, "2026-13")


def test_accumulator_counts_outcomes():
    acc = MonthAccumulator(month="2026/02")
    acc.add(Skip("transfer"))
    acc.add(Point(10))
    acc.add(Income(amount=1000, label="給与", institution="A銀行"))
    acc.add(Expense(amount=-600, category="食費", subcategory="", institution="A銀行"))
    assert (acc.processed, acc.skipped) == (3, 1)
    s = acc.summary()
    assert s.points == 10
    assert s.node_column["A銀行"] == 1
    assert [(e.source, e.target) for e in s.flows] == [
        ("給与（A銀行）", "A銀行"),
        ("A銀行", "食費"),
    ]


def test_zero_amount_row_is_recorded_as_expense():
    batch = aggregate_text(
        _csv(
            "1,2026/01/05,調整,0,WAON,食費,食料品,,0,a",
            "1,2026/01/06,イオン,-800,WAON,食費,食料品,,0,b",
        ),
        "2026-01",
    )
    assert [t.amount for t in batch.transactions] == [0, -800]
    assert batch.transactions[0].month_category_key == "2026/01|||食費"
    assert batch.summary.expenses == {"食費": 800}
    # 800 is below the expense edge threshold; the zero row adds nothing to it.
    assert batch.summary.flows == ()
    assert not batch.is_empty


def test_zero_amount_alone_still_makes_a_month():
    batch = aggregate_text(_csv("1,2026/01/05,調整,0,WAON,食費,,,0,a"), "2026-01")
    assert batch.summary.expenses == {"食費": 0}
    assert batch.summary.flows == ()
    assert batch.processed == 1
    assert not batch.is_empty


def test_points_alone_make_an_empty_batch():
    batch = aggregate_text(_csv("1,2026/01/05,楽天ポイント,300,楽天,収入,,,0,a"), "2026-01")
    assert batch.summary.points == 300
    assert batch.processed == 1
    assert batch.is_empty
