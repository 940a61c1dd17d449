import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from kakeibo import cli, term_ui

HEADER = "計算対象,日付,内容,金額（円）,保有金融機関,大項目,中項目,メモ,振替,ID"
JANUARY = "\n".join(
    [
        HEADER,
        "1,2026/01/25,給料 株式会社X,160000,(三井住友銀行),収入,給与,,0,a",
        "1,2026/01/05,イオン,-5491,WAON,食費,食料品,,0,b",
        "1,2026/01/03,コンビニ,-800,三井住友銀行,食費,食料品,,0,c",
        "1,2026/01/10,家賃,-80000,三井住友銀行,住宅,家賃,,0,d",
    ]
)

runner = CliRunner()


@pytest.fixture(autouse=True)
def _cli_env(tmp_path: Path, database_url: str, monkeypatch: pytest.MonkeyPatch) -> None:
    # Run from an empty directory so no developer .env is picked up.
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATABASE_URL", database_url)
    # The runner swaps stderr per invocation; keep the package logger quiet.
    monkeypatch.setattr(cli, "configure_logging", lambda *_a, **_k: None)


@pytest.fixture
def csv_file(tmp_path: Path) -> Path:
    path = tmp_path / "収入・支出詳細_2025-12-25_2026-01-22.csv"
    path.write_bytes(JANUARY.encode("cp932"))
    return path


def _import(csv_file: Path) -> None:
    result = runner.invoke(cli.app, ["import", str(csv_file), "--yes"])
    assert result.exit_code == 0, result.output


def test_import_with_yes_uses_resolved_month(csv_file):
    result = runner.invoke(cli.app, ["import", str(csv_file), "--yes"])
    assert result.exit_code == 0, result.output
    assert "Imported 2026/01: 4 transactions (processed 4, skipped 0)" in result.output

    result = runner.invoke(cli.app, ["months"])
    assert result.exit_code == 0
    assert "2026/01" in result.output
    assert "¥160,000" in result.output


def test_import_prompts_for_month_and_overwrite(csv_file, monkeypatch):
    _import(csv_file)
    seen: dict[str, str] = {}

    def fake_month(default: str, *, filename: str | None = None) -> str:
        seen["default"] = default
        return "2026-01"

    monkeypatch.setattr(term_ui, "confirm_target_month", fake_month)
    monkeypatch.setattr(term_ui, "confirm_overwrite", lambda month: False)

    result = runner.invoke(cli.app, ["import", str(csv_file)])
    assert result.exit_code == 0, result.output
    assert seen["default"] == "2026-01"
    assert "Kept existing data for 2026/01" in result.output


def test_import_canceled_at_month_prompt(csv_file, monkeypatch):
    monkeypatch.setattr(term_ui, "confirm_target_month", lambda *_a, **_k: None)
    result = runner.invoke(cli.app, ["import", str(csv_file)])
    assert result.exit_code == 1
    assert "Import canceled." in result.output


def test_import_reports_errors_on_one_line(tmp_path):
    bad = tmp_path / "bad.csv"
    bad.write_text("日付,内容\n2026/01/05,x\n", encoding="utf-8")
    result = runner.invoke(cli.app, ["import", str(bad), "--yes", "--month", "2026-01"])
    assert result.exit_code == 1
    assert "Error: amount column not found" in result.output

    result = runner.invoke(cli.app, ["import", str(tmp_path / "missing.csv"), "--yes"])
    assert result.exit_code == 1
    assert "Error: File not found" in result.output


def test_show_and_detail(csv_file):
    _import(csv_file)
    result = runner.invoke(cli.app, ["show", "2026-01"])
    assert result.exit_code == 0, result.output
    assert "貯蓄率   46%" in result.output
    assert "給与（三井住友銀行）" in result.output

    result = runner.invoke(cli.app, ["detail", "2026-01", "--category", "食費"])
    assert result.exit_code == 0, result.output
    assert "2件\t¥6,291" in result.output

    result = runner.invoke(cli.app, ["detail", "2026-01", "--institution", "三井住友銀行"])
    assert result.exit_code == 0, result.output
    assert "3件" in result.output

    result = runner.invoke(cli.app, ["detail", "2026-01"])
    assert result.exit_code == 1


def test_show_unknown_or_invalid_month(csv_file):
    result = runner.invoke(cli.app, ["show", "2026-02"])
    assert result.exit_code == 1
    assert "Error: no data for 2026-02" in result.output

    result = runner.invoke(cli.app, ["show", "2026-13"])
    assert result.exit_code == 1
    assert "Error: invalid month" in result.output


def test_flow_and_trend_print_geometry_json(csv_file):
    _import(csv_file)
    result = runner.invoke(cli.app, ["flow", "2026-01"])
    assert result.exit_code == 0, result.output
    flow = json.loads(result.output)
    assert flow["width"] == 960
    assert len(flow["bands"]) == 4

    result = runner.invoke(cli.app, ["trend", "--year", "2026"])
    assert result.exit_code == 0, result.output
    trend = json.loads(result.output)
    assert trend["months"][0] == "2026/01"
    assert len(trend["trend"]["xs"]) == 12
    assert trend["yearTable"]["totalIncome"] == 160000
    assert trend["savingsRate"][0]["rate"] == 46

    result = runner.invoke(cli.app, ["trend", "--rolling", "2026-01"])
    assert result.exit_code == 0, result.output
    rolling = json.loads(result.output)
    assert rolling["months"][-1] == "2026/01"
    assert rolling["trend"]["labels"][-1]["highlighted"] is True


def test_export_restore_and_clear(csv_file, tmp_path):
    _import(csv_file)
    out = tmp_path / "backup.json"
    result = runner.invoke(cli.app, ["export", "--output", str(out)])
    assert result.exit_code == 0, result.output
    assert json.loads(out.read_text(encoding="utf-8"))["months"][0]["month"] == "2026/01"

    result = runner.invoke(cli.app, ["clear", "--yes"])
    assert result.exit_code == 0
    assert "No data." in runner.invoke(cli.app, ["months"]).output

    result = runner.invoke(cli.app, ["restore", str(out)])
    assert result.exit_code == 0, result.output
    assert "Restored 1 months and 4 transactions (0 invalid records skipped)" in result.output


def test_clear_asks_for_confirmation(csv_file):
    _import(csv_file)
    result = runner.invoke(cli.app, ["clear"], input="n\n")
    assert result.exit_code == 1
    assert "2026/01" in runner.invoke(cli.app, ["months"]).output


def test_config_commands():
    result = runner.invoke(cli.app, ["config", "budget", "食費", "30000"])
    assert result.exit_code == 0, result.output
    assert "budget\t食費\t¥30,000" in result.output

    result = runner.invoke(cli.app, ["config", "fixed", "サブスク"])
    assert "サブスク" in result.output

    result = runner.invoke(cli.app, ["config", "theme", "light"])
    assert "theme\tlight" in result.output

    result = runner.invoke(cli.app, ["config", "font", "large"])
    assert "font\t1.3" in result.output

    result = runner.invoke(cli.app, ["config", "theme", "sepia"])
    assert result.exit_code == 1
    assert "Error: theme must be one of dark, light" in result.output

    result = runner.invoke(cli.app, ["config", "show"])
    assert "theme\tlight" in result.output
