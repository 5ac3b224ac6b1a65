"""
Extract 命令实现

解压 phar 归档内容的命令。
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from ...build.phar import PharReader, PharError
from ...utils import format_size


console = Console()


def extract_command(
    archive: str = typer.Argument(..., help="phar 归档路径"),
    output_dir: str = typer.Option("./extracted", "--output", "-o", help="输出目录"),
    force: bool = typer.Option(False, "--force", "-f", help="输出目录不为空时仍然解压"),
) -> None:
    """解压 phar 归档

    校验签名和每个条目的 CRC32 后，把全部条目写入输出目录。

    示例:
        pharkit extract dist/app.phar
        pharkit extract dist/app.phar -o out/
    """
    archive_path = Path(archive)
    output_path = Path(output_dir)

    if not archive_path.is_file():
        console.print(f"[red]归档文件不存在: {archive_path}[/red]")
        raise typer.Exit(1)

    if output_path.is_dir() and not force and any(output_path.iterdir()):
        console.print(f"[red]输出目录不为空: {output_path}[/red]")
        console.print("使用 --force 参数强制覆盖")
        raise typer.Exit(1)

    console.print(f"正在解压归档: [cyan]{archive_path}[/cyan]")
    console.print(f"输出目录: [cyan]{output_path}[/cyan]")

    reader = PharReader(archive_path)
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("读取归档...", total=None)
            info = reader.parse()
            if info.signature_algorithm is not None and not info.signature_valid:
                raise PharError("签名校验失败")

            progress.update(task, description=f"解压 {len(info.entries)} 个文件...")
            total = reader.extract_to(output_path)
    except (PharError, OSError) as e:
        console.print(f"[red]解压失败: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"✓ 解压完成: [green]{output_path}[/green] ({len(info.entries)} 个文件, {format_size(total)})")
