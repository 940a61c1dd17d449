"""CLI for the ``kakeibo`` package.

Command handlers (``cmd_*``) return a process exit status and print
``Error: <cause>`` to stderr on failure; the Typer commands below only parse
arguments and delegate. Environment variables (``KAKEIBO_BACKEND``,
``DATABASE_URL`` and the remote-store settings) are loaded from a local
``.env`` using ``python-dotenv`` before any command runs. Business logic lives
in ``kakeibo.api`` and related modules.
"""

from __future__ import annotations

import json
import sys
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv
from typer.models import ArgumentInfo

from . import api, backup, reports
from . import config as config_ops
from .backends import get_backend
from .backends.base import StorageBackend
from .errors import KakeiboError
from .ingest.month_resolver import resolve_target_month
from .ingest.utils import read_export_text
from .keys import month_key
from .layout.axis import format_yen
from .layout.chart import layout_bar_line
from .layout.flow import layout_flow
from .logging_setup import configure_logging, get_logger
from .settings import Settings

TREND_WIDTH, TREND_HEIGHT = 780, 260
FV_WIDTH, FV_HEIGHT = 440, 200

_logger = get_logger("kakeibo.cli")


# ---- Small module-level helpers used by CLI commands -------------------------


def _backend() -> StorageBackend:
    return get_backend(Settings.from_env())


def _error(exc: Exception) -> int:
    _logger.debug("command failed", exc_info=exc)
    print(f"Error: {exc}", file=sys.stderr)
    return 1


def _dump_json(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


# ---- Command handlers ---------------------------------------------------------


def cmd_import(
    csv_path: Path,
    *,
    month: str | None = None,
    assume_yes: bool = False,
) -> int:
    """Import one export file, confirming the target month and any overwrite."""

    from . import term_ui

    try:
        text = read_export_text(csv_path)
    except FileNotFoundError:
        print(f"Error: File not found: {csv_path}", file=sys.stderr)
        return 1
    except KakeiboError as e:
        return _error(e)

    target = month
    if target is None:
        suggested = resolve_target_month(csv_path.name)
        if assume_yes:
            target = suggested
        else:
            target = term_ui.confirm_target_month(suggested, filename=csv_path.name)
            if target is None:
                print("Import canceled.")
                return 1

    confirm = (lambda _m: True) if assume_yes else term_ui.confirm_overwrite
    try:
        report = api.import_month(
            _backend(),
            text,
            filename=csv_path.name,
            target_month=target,
            confirm_overwrite=confirm,
        )
    except (KakeiboError, ValueError) as e:
        return _error(e)

    if not report.committed:
        print(f"Kept existing data for {report.month}; nothing imported.")
        return 0
    verb = "Replaced" if report.overwritten else "Imported"
    print(
        f"{verb} {report.month}: {report.transactions} transactions "
        f"(processed {report.processed}, skipped {report.skipped})"
    )
    return 0


def cmd_months() -> int:
    try:
        summaries = api.load_summaries(_backend())
    except (KakeiboError, ValueError) as e:
        return _error(e)
    if not summaries:
        print("No data.")
        return 0
    for m, s in summaries.items():
        print(
            f"{m}\tincome {format_yen(s.income)}\texpense {format_yen(s.total_expense)}"
            f"\tbalance {format_yen(s.balance)}"
        )
    return 0


def cmd_show(month: str) -> int:
    """Print KPIs, income and expense breakdown of one month."""

    try:
        backend = _backend()
        summary = api.get_summary(backend, month)
        cfg = config_ops.load_config(backend)
    except (KakeiboError, ValueError) as e:
        return _error(e)
    if summary is None:
        print(f"Error: no data for {month}", file=sys.stderr)
        return 1

    k = reports.month_kpis(summary, cfg.fixed)
    print(f"== {k.month} ==")
    print(f"収入     {format_yen(k.income)}")
    print(f"支出     {format_yen(k.expense)} (固定 {format_yen(k.fixed)} / 変動 {format_yen(k.variable)})")
    print(f"残高     {format_yen(k.balance)}")
    print(f"貯蓄率   {k.savings_rate}%")
    print(f"ポイント {format_yen(k.points)}")

    print("\n-- 収入 --")
    for row in reports.income_breakdown(summary):
        print(f"{row.label}\t{format_yen(row.amount)}\t{row.share}%")

    breakdown = reports.expense_breakdown(summary, cfg)
    for title, rows, total in (
        ("固定費", breakdown.fixed, breakdown.fixed_total),
        ("変動費", breakdown.variable, breakdown.variable_total),
    ):
        print(f"\n-- {title} --")
        for r in rows:
            budget = format_yen(r.budget) if r.budget else "-"
            sign = "+" if r.difference >= 0 else ""
            print(f"{r.category}\t{budget}\t{format_yen(r.actual)}\t{sign}{format_yen(r.difference)}")
        print(f"小計\t\t{format_yen(total)}")
    return 0


def cmd_detail(
    month: str,
    *,
    category: str | None = None,
    income: str | None = None,
    institution: str | None = None,
) -> int:
    chosen = [v for v in (category, income, institution) if v is not None]
    if len(chosen) != 1:
        print("Error: pass exactly one of --category, --income, --institution", file=sys.stderr)
        return 1
    try:
        backend = _backend()
        if institution is not None:
            inst = api.institution_detail(backend, month, institution)
            if not inst.count:
                print("No transactions.")
                return 0
            for title, rows in (("収入", inst.income), ("支出", inst.expense)):
                if rows:
                    print(f"-- {title} --")
                for t in rows:
                    label = t.subcategory if t.is_income else t.category
                    print(f"{t.date}\t{t.content}\t{format_yen(abs(t.amount))}\t{label}")
            print(
                f"{inst.count}件\t{format_yen(inst.income_total)} / {format_yen(inst.expense_total)}"
            )
            return 0
        detail = (
            api.expense_detail(backend, month, category)
            if category is not None
            else api.income_detail(backend, month, income or "")
        )
    except (KakeiboError, ValueError) as e:
        return _error(e)

    if not detail.count:
        print("No transactions.")
        return 0
    for t in detail.rows:
        print(f"{t.date}\t{t.content}\t{format_yen(abs(t.amount))}\t{t.institution}")
    print(f"{detail.count}件\t{format_yen(detail.total)}")
    return 0


def cmd_trend(*, year: str | None = None, rolling: str | None = None) -> int:
    """Print trend chart geometry and the year table as JSON."""

    try:
        backend = _backend()
        summaries = api.load_summaries(backend)
        cfg = config_ops.load_config(backend)
        if rolling is not None:
            months = reports.rolling_months(month_key(rolling))
            highlight = reports.month_label(month_key(rolling))
        else:
            years = reports.available_years(summaries)
            chosen = year or (years[-1] if years else None)
            if chosen is None:
                print("Error: no data", file=sys.stderr)
                return 1
            months = reports.calendar_months(chosen)
            highlight = None
    except (KakeiboError, ValueError) as e:
        return _error(e)

    table = reports.year_table(summaries, months)
    _dump_json(
        {
            "months": months,
            "trend": asdict(
                layout_bar_line(
                    reports.trend_points(summaries, months),
                    TREND_WIDTH,
                    TREND_HEIGHT,
                    highlight=highlight,
                )
            ),
            "fixedVariable": asdict(
                layout_bar_line(
                    reports.fixed_variable_points(summaries, months, cfg.fixed),
                    FV_WIDTH,
                    FV_HEIGHT,
                    highlight=highlight,
                )
            ),
            "savingsRate": [asdict(p) for p in reports.savings_rate_points(summaries, months)],
            "yearTable": {
                "rows": [asdict(r) | {"balance": r.balance} for r in table.rows],
                "totalIncome": table.total_income,
                "totalExpense": table.total_expense,
                "totalBalance": table.total_balance,
            },
        }
    )
    return 0


def cmd_flow(month: str) -> int:
    try:
        summary = api.get_summary(_backend(), month)
    except (KakeiboError, ValueError) as e:
        return _error(e)
    if summary is None:
        print(f"Error: no data for {month}", file=sys.stderr)
        return 1
    _dump_json(asdict(layout_flow(summary.flows, summary.node_column)))
    return 0


def cmd_export(output: Path | None = None) -> int:
    target = output or Path(backup.backup_filename(date.today()))
    try:
        payload = backup.export_data(_backend())
        target.write_text(backup.dump_backup(payload), encoding="utf-8")
    except (KakeiboError, ValueError, OSError) as e:
        return _error(e)
    print(f"Wrote {target} ({len(payload['months'])} months)")
    return 0


def cmd_restore(json_path: Path) -> int:
    try:
        payload = backup.load_backup(json_path)
        report = backup.restore_data(_backend(), payload)
    except FileNotFoundError:
        print(f"Error: File not found: {json_path}", file=sys.stderr)
        return 1
    except (KakeiboError, ValueError) as e:
        return _error(e)
    print(
        f"Restored {report.months} months and {report.transactions} transactions"
        f" ({report.skipped} invalid records skipped)"
    )
    return 0


def cmd_clear(*, assume_yes: bool = False) -> int:
    if not assume_yes and not typer.confirm("Delete ALL months, transactions and settings?"):
        print("Canceled.")
        return 1
    try:
        api.clear_all_data(_backend())
    except (KakeiboError, ValueError) as e:
        return _error(e)
    print("All data deleted.")
    return 0


def _print_config(cfg: config_ops.Config) -> None:
    print(f"theme\t{cfg.theme}")
    print(f"font\t{cfg.font_scale}")
    print(f"fixed\t{', '.join(cfg.fixed)}")
    for k, v in sorted(cfg.budgets.items()):
        print(f"budget\t{k}\t{format_yen(v)}")


def cmd_config(action: str, *args: Any) -> int:
    """Apply one Config operation (``show``, ``budget``, ``fixed``, ``theme``, ``font``)."""

    ops = {
        "budget": config_ops.set_budget,
        "fixed": config_ops.toggle_fixed,
        "theme": config_ops.set_theme,
        "font": config_ops.set_font_scale,
    }
    try:
        backend = _backend()
        cfg = config_ops.load_config(backend)
        if action != "show":
            cfg = ops[action](backend, cfg, *args)
    except (KakeiboError, ValueError) as e:
        return _error(e)
    _print_config(cfg)
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Household ledger: import monthly CSV exports, review summaries, and lay out "
        "trend and flow charts. Loads settings from a local .env before running."
    ),
)
config_app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="Show or change budgets, fixed categories, theme and font size.",
)
app.add_typer(config_app, name="config")

# Module-level argument objects to satisfy ruff B008 (no calls in parameter
# defaults).
CSV_PATH_ARGUMENT: ArgumentInfo = typer.Argument(
    ..., help="Path to the exported CSV file", dir_okay=False, file_okay=True
)
MONTH_ARGUMENT: ArgumentInfo = typer.Argument(..., help="Accounting month, YYYY-MM")


def _exit(code: int) -> None:
    if code:
        raise typer.Exit(code)


@app.command("import")
def import_cmd(
    csv_path: Annotated[Path, CSV_PATH_ARGUMENT],
    *,
    month: str | None = typer.Option(
        None, "--month", "-m", help="Target month (YYYY-MM); skips the month prompt."
    ),
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Accept the detected month and overwrite without asking."
    ),
) -> None:
    """Import an export file as one accounting month."""

    _exit(cmd_import(csv_path, month=month, assume_yes=yes))


@app.command("months")
def months_cmd() -> None:
    """List stored months with their totals."""

    _exit(cmd_months())


@app.command("show")
def show_cmd(month: Annotated[str, MONTH_ARGUMENT]) -> None:
    """Show KPIs and breakdowns of one month."""

    _exit(cmd_show(month))


@app.command("detail")
def detail_cmd(
    month: Annotated[str, MONTH_ARGUMENT],
    *,
    category: str | None = typer.Option(None, help="Expense category (大項目)."),
    income: str | None = typer.Option(None, help="Income detail label, e.g. 給与（三井住友銀行）."),
    institution: str | None = typer.Option(None, help="Institution name (保有金融機関)."),
) -> None:
    """List the transactions behind one category, income label or institution."""

    _exit(cmd_detail(month, category=category, income=income, institution=institution))


@app.command("trend")
def trend_cmd(
    *,
    year: str | None = typer.Option(None, help="Calendar year (defaults to the latest)."),
    rolling: str | None = typer.Option(
        None, help="Show the 12 months ending at this month (YYYY-MM) instead of a year."
    ),
) -> None:
    """Print trend chart geometry and the year table as JSON."""

    _exit(cmd_trend(year=year, rolling=rolling))


@app.command("flow")
def flow_cmd(month: Annotated[str, MONTH_ARGUMENT]) -> None:
    """Print the flow diagram geometry of one month as JSON."""

    _exit(cmd_flow(month))


@app.command("export")
def export_cmd(
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Output path (default kakeibo_backup_YYYY-MM-DD.json)."
    ),
) -> None:
    """Write every month, transaction and setting to a JSON backup."""

    _exit(cmd_export(output))


@app.command("restore")
def restore_cmd(json_path: Annotated[Path, typer.Argument(help="Backup JSON file")]) -> None:
    """Load a JSON backup; invalid records are skipped."""

    _exit(cmd_restore(json_path))


@app.command("clear")
def clear_cmd(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Delete all data and reset settings."""

    _exit(cmd_clear(assume_yes=yes))


@config_app.command("show")
def config_show_cmd() -> None:
    """Print the current settings."""

    _exit(cmd_config("show"))


@config_app.command("budget")
def config_budget_cmd(
    category: Annotated[str, typer.Argument(help="Expense category")],
    amount: Annotated[int, typer.Argument(help="Monthly budget in yen")],
) -> None:
    """Set the monthly budget of a category."""

    _exit(cmd_config("budget", category, amount))


@config_app.command("fixed")
def config_fixed_cmd(category: Annotated[str, typer.Argument(help="Expense category")]) -> None:
    """Toggle whether a category counts as a fixed cost."""

    _exit(cmd_config("fixed", category))


@config_app.command("theme")
def config_theme_cmd(theme: Annotated[str, typer.Argument(help="dark or light")]) -> None:
    _exit(cmd_config("theme", theme))


@config_app.command("font")
def config_font_cmd(size: Annotated[str, typer.Argument(help="small, medium or large")]) -> None:
    _exit(cmd_config("font", size))


@app.callback()
def _root(
    log_level: str | None = typer.Option(
        None, "--log-level", help="Logging level (falls back to KAKEIBO_LOG_LEVEL, then INFO)."
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging.
    """

    # Load environment from .env in CWD (override=False to keep existing env)
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    # Central logging setup so child loggers inherit configuration
    configure_logging(log_level)


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m kakeibo.cli`
    app()
