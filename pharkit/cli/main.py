"""
pharkit CLI 主入口

提供命令行接口，支持 build/validate/inspect/extract 等命令。
"""

import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..config import ConfigError
from ..utils import configure_logging
from .commands import build, validate, inspect, extract


# 创建主应用
app = typer.Typer(
    name="pharkit",
    help="pharkit - PHP 项目 phar 归档构建工具",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# 控制台输出
console = Console()

# 全局选项
def version_callback(value: bool) -> None:
    """显示版本信息"""
    if value:
        console.print(f"pharkit v{__version__}")
        raise typer.Exit()


def verbose_callback(verbose: bool) -> None:
    """配置详细输出"""
    configure_logging(level="DEBUG" if verbose else "INFO")


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="显示版本信息"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        callback=verbose_callback,
        help="启用详细输出"
    )
) -> None:
    """pharkit - PHP 项目 phar 归档构建工具

    使用 --help 查看可用命令的详细信息。
    """
    pass


# 注册子命令
app.command("build", help="构建 phar 归档")(build.build_command)
app.command("validate", help="验证构建配置")(validate.validate_command)
app.command("inspect", help="检查 phar 归档信息")(inspect.inspect_command)
app.command("extract", help="解压 phar 归档")(extract.extract_command)


@app.command("info")
def info_command() -> None:
    """显示系统信息"""
    from ..build.compressor import CompressorFactory
    from ..config.schema import SignatureAlgorithm

    console.print("[bold]pharkit 系统信息[/bold]")
    console.print()

    # 版本信息
    table = Table(title="版本信息")
    table.add_column("组件", style="cyan")
    table.add_column("版本", style="green")

    table.add_row("pharkit", __version__)
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")

    console.print(table)
    console.print()

    # 支持的压缩方式
    modes_table = Table(title="支持的压缩方式")
    modes_table.add_column("方式", style="cyan")
    modes_table.add_column("状态", style="green")

    for mode in CompressorFactory.get_available_modes():
        modes_table.add_row(mode.value, "✓ 可用")

    console.print(modes_table)
    console.print()

    console.print("签名算法: " + ", ".join(algo.value for algo in SignatureAlgorithm))


@app.command("example")
def example_command(
    output: str = typer.Option(
        "build.json",
        "--output", "-o",
        help="输出配置文件路径（.json / .yaml / .yml）"
    )
) -> None:
    """生成示例配置文件"""
    from ..config import BuildOptions, save_config

    # 创建示例配置
    options = BuildOptions.from_dict({
        'base_path': Path.cwd(),
        'output': 'app.phar',
        'main': 'index.php',
        'directories': ['src', 'vendor'],
        'files': ['index.php'],
        'ignore': ['vendor/bin/', 'tests/'],
        'rules': [],
        'extensions': ['json'],
        'compress': 'gzip',
        'copy': ['README.md'],
        'clear': True,
    })

    try:
        save_config(options, output)
    except ConfigError as e:
        console.print(f"[red]生成示例配置失败: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"✓ 示例配置文件已生成: [green]{output}[/green]")
    console.print("请根据需要修改配置文件，然后运行:")
    console.print(f"  [cyan]pharkit build -c {output}[/cyan]")


if __name__ == "__main__":
    app()
