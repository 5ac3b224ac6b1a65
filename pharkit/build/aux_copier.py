"""
附加文件复制

把 copy 列表中的文件或目录从项目目录复制到输出目录，与打包清单无关。
"""

from typing import Iterable

from ..config.schema import BuildOptions, CopyEntry
from ..utils.logging import debug, warning, LogStage
from ..utils.paths import xcopy


class AuxCopier:
    """附加文件复制器"""

    def copy(self, copy_entries: Iterable[CopyEntry], options: BuildOptions) -> int:
        """按配置顺序复制，源不存在时记录警告并跳过

        Returns:
            int: 实际复制的条目数

        Raises:
            OSError: 复制失败
        """
        copied = 0
        for entry in copy_entries:
            source = options.source_path(entry.source)
            dest = options.dest_path(entry.dest)

            if not (source.exists() or source.is_symlink()):
                warning(f"复制源不存在，已跳过: {entry.source}", stage=LogStage.COPY)
                continue

            debug(f"复制 {entry.source} -> {entry.dest}", stage=LogStage.COPY)
            xcopy(source, dest)
            copied += 1
        return copied
