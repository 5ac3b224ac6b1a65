"""
路径工具

提供路径拼接、目录复制、目录清空等文件系统辅助函数。
"""

import os
import shutil
from pathlib import Path
from typing import Union

# 新建目录的默认权限
DEFAULT_DIR_PERMISSIONS = 0o755


def join_paths(first: Union[str, Path], *parts: Union[str, Path]) -> str:
    """拼接路径

    第一段只去掉末尾分隔符，其余各段去掉首尾分隔符，空段被丢弃。

    Args:
        first: 起始路径
        *parts: 追加的路径片段

    Returns:
        str: 拼接后的路径
    """
    head = str(first).rstrip('\\/')
    tail = [str(p).strip('\\/') for p in parts]
    tail = [p for p in tail if p]
    if not tail:
        return head + os.sep
    return head + os.sep + os.sep.join(tail)


def normalize_relative_path(path: Union[str, Path]) -> str:
    """规范化包内相对路径：统一正斜杠，去掉首尾分隔符"""
    return str(path).replace('\\', '/').strip('/')


def ensure_directory(path: Union[str, Path], permissions: int = DEFAULT_DIR_PERMISSIONS) -> Path:
    """确保目录存在

    Args:
        path: 目录路径
        permissions: 新建目录的权限位

    Returns:
        Path: 目录路径
    """
    dir_path = Path(path)
    dir_path.mkdir(mode=permissions, parents=True, exist_ok=True)
    return dir_path


def xcopy(source: Union[str, Path], dest: Union[str, Path], permissions: int = DEFAULT_DIR_PERMISSIONS) -> None:
    """复制文件、符号链接或整个目录树

    - 符号链接：在目标位置重建同样指向的链接
    - 普通文件：创建目标父目录后逐字节复制
    - 目录：递归镜像，新建目录使用给定权限

    重复复制到同一目标会覆盖之前的结果。

    Raises:
        FileNotFoundError: 源路径不存在
        OSError: 复制失败
    """
    source = Path(source)
    dest = Path(dest)

    if source.is_symlink():
        ensure_directory(dest.parent, permissions)
        if dest.is_symlink() or dest.is_file():
            dest.unlink()
        os.symlink(os.readlink(source), dest)
        return

    if source.is_file():
        ensure_directory(dest.parent, permissions)
        shutil.copyfile(source, dest)
        return

    if not source.is_dir():
        raise FileNotFoundError(f"复制源不存在: {source}")

    ensure_directory(dest, permissions)
    for entry in sorted(os.listdir(source)):
        if entry in ('.', '..'):
            continue
        xcopy(source / entry, dest / entry, permissions)


def clear_directory(path: Union[str, Path]) -> None:
    """清空目录下的全部内容，目录本身保留

    Args:
        path: 要清空的目录
    """
    dir_path = Path(path)
    for entry in dir_path.iterdir():
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()


def format_size(size_bytes: int) -> str:
    """格式化文件大小

    Args:
        size_bytes: 字节数

    Returns:
        str: 格式化的大小字符串
    """
    if size_bytes == 0:
        return "0 B"

    units = ["B", "KB", "MB", "GB", "TB"]
    unit_index = 0
    size = float(size_bytes)

    while size >= 1024.0 and unit_index < len(units) - 1:
        size /= 1024.0
        unit_index += 1

    if unit_index == 0:
        return f"{int(size)} {units[unit_index]}"
    else:
        return f"{size:.1f} {units[unit_index]}"
