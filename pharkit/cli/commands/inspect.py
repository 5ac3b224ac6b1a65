"""
Inspect 命令实现

显示 phar 归档的元数据、签名状态和 .md5sum 校验状态。
"""

import datetime
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ...build.checksum import HashCalculator, checksum_path, read_checksum_file
from ...build.phar import PharReader, PharError, PharInfo
from ...utils import format_size


console = Console()


def inspect_command(
    archive: str = typer.Argument(..., help="phar 归档路径"),
    json_output: bool = typer.Option(False, "--json", help="输出 JSON 格式"),
    show_files: bool = typer.Option(False, "--files", help="显示文件列表"),
) -> None:
    """检查 phar 归档

    显示归档别名、条目数、压缩方式、签名以及 .md5sum 校验结果。

    示例:
        pharkit inspect dist/app.phar
        pharkit inspect dist/app.phar --files
        pharkit inspect dist/app.phar --json
    """
    archive_path = Path(archive)

    if not archive_path.is_file():
        console.print(f"[red]归档文件不存在: {archive_path}[/red]")
        raise typer.Exit(1)

    try:
        info = PharReader(archive_path).parse()
    except PharError as e:
        console.print(f"[red]检查归档失败: {e}[/red]")
        raise typer.Exit(1)

    checksum_status = _checksum_status(archive_path)

    if json_output:
        data = info.to_dict()
        data['path'] = str(archive_path)
        data['size'] = archive_path.stat().st_size
        data['md5sum'] = checksum_status
        if not show_files:
            data.pop('files')
        typer.echo(json.dumps(data, ensure_ascii=False, indent=2))
        return

    _display_info(archive_path, info, checksum_status, show_files)


def _checksum_status(archive_path: Path) -> Optional[bool]:
    """旁路校验文件存在时返回是否一致，不存在时返回 None"""
    if not checksum_path(archive_path).is_file():
        return None
    expected = read_checksum_file(archive_path)
    return HashCalculator.hash_file(archive_path, "md5") == expected.lower()


def _display_info(archive_path: Path, info: PharInfo, checksum_status: Optional[bool], show_files: bool) -> None:
    """显示归档信息（人类可读格式）"""
    console.print("[bold]归档信息[/bold]")
    console.print()

    # 基本信息
    basic_table = Table(title="基本信息")
    basic_table.add_column("属性", style="cyan")
    basic_table.add_column("值", style="green")

    basic_table.add_row("路径", str(archive_path))
    basic_table.add_row("大小", format_size(archive_path.stat().st_size))
    basic_table.add_row("别名", info.alias or "-")
    basic_table.add_row("API 版本", info.api_version)
    basic_table.add_row("全局标志", f"0x{info.flags:08x}")
    basic_table.add_row("Stub 大小", format_size(len(info.stub)))
    basic_table.add_row("文件数", str(len(info.entries)))

    original = sum(entry.size for entry in info.entries)
    compressed = sum(entry.compressed_size for entry in info.entries)
    basic_table.add_row("原始大小", format_size(original))
    basic_table.add_row("压缩大小", format_size(compressed))
    if original:
        ratio = (1 - (compressed / max(1, original))) * 100
        basic_table.add_row("压缩率", f"{ratio:.1f}%")

    if info.signature_algorithm is not None:
        status = "[green]有效[/green]" if info.signature_valid else "[red]无效[/red]"
        basic_table.add_row("签名", f"{info.signature_algorithm.value} {status}")
        basic_table.add_row("签名值", info.signature_hex or "")
    else:
        basic_table.add_row("签名", "无")

    if checksum_status is None:
        basic_table.add_row("MD5 校验文件", "不存在")
    else:
        basic_table.add_row("MD5 校验文件", "[green]一致[/green]" if checksum_status else "[red]不一致[/red]")

    console.print(basic_table)
    console.print()

    # 文件列表
    if show_files and info.entries:
        files_table = Table(title=f"文件列表 ({len(info.entries)} 个文件)")
        files_table.add_column("路径", style="cyan")
        files_table.add_column("大小", style="green")
        files_table.add_column("压缩", style="magenta")
        files_table.add_column("权限", style="blue")
        files_table.add_column("修改时间", style="yellow")

        for entry in info.entries:
            mtime = datetime.datetime.fromtimestamp(entry.mtime).strftime("%Y-%m-%d %H:%M:%S")
            files_table.add_row(
                entry.name,
                format_size(entry.size),
                entry.compression.value,
                oct(entry.permissions),
                mtime,
            )

        console.print(files_table)
        console.print()
