"""
Validate 命令实现

验证构建配置的命令。
"""

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ...config import validate_config


console = Console()


def validate_command(
    base_path: str = typer.Argument(".", help="项目根目录"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="配置文件路径"),
    json_output: bool = typer.Option(False, "--json", help="输出 JSON 格式的错误信息"),
) -> None:
    """验证构建配置

    检查配置文件的语法、字段类型和正则表达式。

    示例:
        pharkit validate
        pharkit validate ./project -c build.yaml --json
    """
    source = config or str(base_path)
    errors = validate_config(Path(base_path), config)

    if json_output:
        # JSON 格式输出
        error_data = {
            "source": source,
            "valid": not errors,
            "errors": errors,
            "error_count": len(errors),
        }
        typer.echo(json.dumps(error_data, ensure_ascii=False, indent=2, default=str))
        if errors:
            raise typer.Exit(1)
        return

    console.print(f"正在验证配置: [cyan]{source}[/cyan]")

    if not errors:
        console.print("[green]✓ 配置验证通过[/green]")
        return

    # 人类可读格式
    console.print(f"[red]配置验证失败 ({len(errors)} 个错误):[/red]")
    console.print()

    # 创建错误表格
    table = Table(title="验证错误")
    table.add_column("位置", style="cyan", no_wrap=True)
    table.add_column("错误信息", style="red")
    table.add_column("输入值", style="yellow")

    for error in errors:
        location = " -> ".join(str(item) for item in error.get('loc', []))
        message = error.get('msg', '未知错误')
        input_value = str(error.get('input', ''))

        if len(input_value) > 47:
            input_value = input_value[:47] + "..."

        table.add_row(
            location or "根级别",
            message,
            input_value or "-"
        )

    console.print(table)
    raise typer.Exit(1)
