from datetime import datetime

from pydantic import BaseModel
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from refinement import settings

# 通常のConsoleオブジェクト
console = Console(width=settings.console_width)
# エラー出力用のConsoleオブジェクト
error_console = Console(width=settings.console_width, stderr=True)


def console_print_all(*args, **kwargs):
    console.print(*args, **kwargs)


def console_print_error(message: str):
    error_console.print(Panel(message, style="red"), markup=False, highlight=False)


def prepare_table_common(title: str, title_style: str = "bold") -> Table:
    table = Table(title=title, title_style=title_style)
    table.add_column("項目", style="cyan", no_wrap=True)
    table.add_column("値", overflow="fold")

    # ローカルマシンに設定されているタイムゾーンを取得
    local_tz = datetime.now().astimezone().tzinfo
    table.caption = f"取得日時: {datetime.now(tz=local_tz).strftime('%Y-%m-%d %H:%M:%S')}"
    table.caption_justify = "left"
    return table


def display_info_full(any_info: BaseModel, title: str = "詳細", table_title: str = ""):
    """
    pydanticモデルの情報を整形して表示します。
    """
    table = prepare_table_common(table_title)

    for key, value in any_info.model_dump().items():
        table.add_row(key, str(value))

    console_print_all(Panel(table, title=title, border_style="white"))


def display_change_report(report: str):
    """
    変更レポートを表示します。パスに[]が含まれることがあるのでmarkupは無効にする。
    """
    if not report:
        return
    console_print_all(report, markup=False, highlight=False, soft_wrap=True)


def display_target_summary(changed: list[str], unchanged: list[str]):
    """
    ターゲットの変更有無の件数をまとめて表示します。
    """
    table = prepare_table_common("ターゲット集計")
    table.add_row("changed", str(len(changed)))
    table.add_row("unchanged", str(len(unchanged)))
    console_print_all(Panel(table, title="refinement", border_style="green"))
