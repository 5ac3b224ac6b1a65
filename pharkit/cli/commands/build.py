"""
Build 命令实现

构建 phar 归档的核心命令。
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from ...config import load_options, ConfigError, ConfigValidationError
from ...config.schema import RemovalPolicy
from ...utils.logging import set_log_level, set_log_file, OutputLevel


console = Console()


def build_command(
    base_path: str = typer.Argument(".", help="项目根目录"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="配置文件路径，默认读取项目根目录下的 build.json"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="归档文件名，传入空字符串时只复制文件"),
    dist: Optional[str] = typer.Option(None, "--dist", "-d", help="输出目录"),
    main: Optional[str] = typer.Option(None, "--main", help="归档入口文件"),
    compress: Optional[str] = typer.Option(None, "--compress", help="压缩方式: none / gzip / bzip2"),
    clear: Optional[bool] = typer.Option(None, "--clear/--no-clear", help="构建前清空输出目录"),
    no_shebang: bool = typer.Option(False, "--no-shebang", help="默认 stub 不加 #!/usr/bin/env php"),
    strict: bool = typer.Option(False, "--strict", help="旧产物无法删除时终止构建"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="日志输出文件"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出详细调试日志 (DEBUG 级别)"),
) -> None:
    """构建 phar 归档

    命令行参数覆盖配置文件中的同名项。

    示例:
        pharkit build
        pharkit build ./project -c build.yaml --compress gzip
        pharkit build ./project -o "" -d public
    """
    from ...build.builder import Builder

    # 初始化日志：在任何输出前设置
    set_log_level(OutputLevel.DEBUG if verbose else OutputLevel.INFO)

    if log_file:
        try:
            set_log_file(log_file)
        except OSError:
            console.print(f"[yellow]无法写入日志文件: {log_file}[/yellow]")

    overrides = {
        'output': output,
        'dist': dist,
        'main': main,
        'compress': compress,
        'clear': clear,
        'shebang': False if no_shebang else None,
        'removal_policy': RemovalPolicy.STRICT.value if strict else None,
    }

    try:
        options = load_options(Path(base_path), config, overrides)
    except ConfigValidationError as e:
        console.print("[red]配置验证失败:[/red]")
        console.print(e.format_errors(), markup=False)
        raise typer.Exit(1)
    except ConfigError as e:
        console.print(f"[red]配置错误[/red]: {e}")
        raise typer.Exit(1)

    def progress_callback(stage: str, current: int, total: int, message: str = "") -> None:
        """进度回调函数，详细模式下显示进度"""
        if verbose and total > 0:
            percentage = (current / total) * 100
            if message:
                console.print(f"[blue]{stage}[/blue]: {message} ({percentage:.0f}%)")
            else:
                console.print(f"[blue]{stage}[/blue]: {percentage:.0f}%")

    result = Builder().build(options, progress_callback=progress_callback)

    if result.skipped:
        console.print(f"[yellow]{result.summary()}[/yellow]")
        return

    if not result.success:
        console.print(f"[red]✗ {result.summary()}[/red]")
        if log_file:
            console.print(f"[yellow]请检查日志文件 {log_file} 获取详细信息。[/yellow]")
        raise typer.Exit(1)

    console.print(f"[green]✓ {result.summary()}[/green]")
    if result.checksum_hex:
        console.print(f"[blue]MD5[/blue]: {result.checksum_hex}")
