"""
文件收集器

递归遍历项目目录，按路径过滤器与扩展名策略生成打包清单。
"""

import os
from pathlib import Path
from typing import Iterable, List, Optional, Set

from ..config.schema import BuildOptions, ExtensionPolicy, BUILTIN_EXTENSIONS
from ..utils.logging import debug, LogStage
from ..utils.paths import join_paths, normalize_relative_path
from .manifest import Manifest
from .path_filter import PathFilter


def file_extension(path: str) -> str:
    """取最后一个路径分量中最后一个点之后的部分，没有点时返回空串"""
    name = path.rsplit('/', 1)[-1]
    pos = name.rfind('.')
    return name[pos + 1:] if pos >= 0 else ''


class TreeWalker:
    """目录遍历器

    先对路径本身做过滤，被排除的目录不会再检查其子项。
    路径既不是文件也不是目录（悬空链接、无权限等）时直接跳过。
    """

    def __init__(
        self,
        base_path: Path,
        path_filter: PathFilter,
        extension_policy: ExtensionPolicy = ExtensionPolicy.ALLOWLIST,
        extensions: Iterable[str] = (),
        sort_entries: bool = True,
    ):
        self.base_path = Path(base_path)
        self.path_filter = path_filter
        self.extension_policy = extension_policy
        self.allowed_extensions: Set[str] = set(BUILTIN_EXTENSIONS) | set(extensions)
        self.sort_entries = sort_entries
        # 当前递归链上的目录真实路径，用于避免符号链接成环
        self._active_dirs: Set[str] = set()

    @classmethod
    def from_options(cls, options: BuildOptions, path_filter: Optional[PathFilter] = None) -> 'TreeWalker':
        return cls(
            base_path=options.base_path,
            path_filter=path_filter or PathFilter.from_options(options),
            extension_policy=options.extension_policy,
            extensions=options.extensions,
            sort_entries=options.sort_entries,
        )

    def accepts_extension(self, path: str) -> bool:
        """扩展名策略"""
        if self.extension_policy == ExtensionPolicy.ANY:
            return True
        return file_extension(path) in self.allowed_extensions

    def walk(self, configured_path: str, manifest: Manifest) -> None:
        """遍历路径并把接受的文件写入清单

        Args:
            configured_path: 相对于项目根目录的路径
            manifest: 累积结果的清单（原地修改）
        """
        path = normalize_relative_path(configured_path)

        if not self.path_filter.include(path):
            debug(f"已过滤: {path}", stage=LogStage.COLLECT)
            return

        real_path = Path(join_paths(self.base_path, path))

        if real_path.is_file():
            if self.accepts_extension(path):
                manifest[path] = real_path
            else:
                debug(f"扩展名不在允许列表中: {path}", stage=LogStage.COLLECT)
        elif real_path.is_dir():
            self._walk_directory(path, real_path, manifest)
        else:
            debug(f"跳过不可访问的路径: {path}", stage=LogStage.COLLECT)

    def _walk_directory(self, path: str, real_path: Path, manifest: Manifest) -> None:
        real_dir = os.path.realpath(real_path)
        if real_dir in self._active_dirs:
            debug(f"跳过循环链接目录: {path}", stage=LogStage.COLLECT)
            return

        try:
            children = self._list_directory(real_path)
        except OSError as e:
            # 无法读取的目录视为空目录
            debug(f"无法读取目录 {path}: {e}", stage=LogStage.COLLECT)
            return

        self._active_dirs.add(real_dir)
        try:
            for child in children:
                self.walk(f"{path}/{child}" if path else child, manifest)
        finally:
            self._active_dirs.discard(real_dir)

    def _list_directory(self, real_path: Path) -> List[str]:
        with os.scandir(real_path) as it:
            names = [entry.name for entry in it if entry.name not in ('.', '..')]
        if self.sort_entries:
            names.sort()
        return names


class ManifestBuilder:
    """清单构建器

    依次遍历配置的目录列表和文件列表，结果合并到同一个清单中。
    """

    def build(self, options: BuildOptions) -> Manifest:
        """构建清单

        Raises:
            ConfigError: 过滤规则无效
        """
        manifest = Manifest()
        walker = TreeWalker.from_options(options)

        for directory in options.directories:
            walker.walk(directory, manifest)

        for file in options.files:
            walker.walk(file, manifest)

        return manifest


def build_manifest(options: BuildOptions) -> Manifest:
    """便捷函数：构建打包清单"""
    return ManifestBuilder().build(options)
