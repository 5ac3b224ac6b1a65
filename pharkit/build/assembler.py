"""
归档组装器

把打包清单写成 phar 归档（附 .md5sum 校验文件），或在未指定输出文件名时
把清单中的文件原样复制到输出目录。
"""

import os
from pathlib import Path
from typing import Callable, Optional

from ..config.schema import BuildOptions, RemovalPolicy
from ..utils.logging import debug, info, success, warning, LogStage
from ..utils.paths import format_size, xcopy
from .build_context import BuildError, BuildResult
from .checksum import write_checksum_file
from .manifest import Manifest
from .phar import PharArchive
from .stub import create_default_stub, load_stub

ARTIFACT_PERMISSIONS = 0o755

# 组装进度回调：(已处理条目数, 条目总数)
AssembleProgress = Callable[[int, int], None]


class ArchiveAssembler:
    """归档组装器"""

    def __init__(self, progress: Optional[AssembleProgress] = None):
        self.progress = progress

    def assemble(self, manifest: Manifest, options: BuildOptions) -> BuildResult:
        """组装构建产物

        Raises:
            BuildError: strict 策略下旧产物无法删除
            PharError: 归档写入失败
            StubError: stub 无效或无法读取
            OSError: 复制或权限设置失败
        """
        if options.is_archive_mode:
            return self._assemble_archive(manifest, options)
        return self._copy_tree(manifest, options)

    def _notify(self, done: int, total: int) -> None:
        if self.progress:
            self.progress(done, total)

    def remove_stale_artifact(self, output_path: Path, policy: RemovalPolicy) -> None:
        """删除上一次构建留下的产物"""
        if not (output_path.exists() or output_path.is_symlink()):
            return
        try:
            output_path.unlink()
            debug(f"已删除旧产物: {output_path}", stage=LogStage.WRITE)
        except OSError as e:
            if policy == RemovalPolicy.STRICT:
                raise BuildError(f"无法删除旧产物 {output_path}: {e}") from e
            warning(f"无法删除旧产物 {output_path}: {e}", stage=LogStage.WRITE)

    def build_stub(self, options: BuildOptions) -> bytes:
        stub_path = options.stub_path()
        if stub_path is not None:
            debug(f"使用自定义 stub: {stub_path}", stage=LogStage.STUB)
            return load_stub(stub_path)
        return create_default_stub(options.main, shebang=options.shebang)

    def _assemble_archive(self, manifest: Manifest, options: BuildOptions) -> BuildResult:
        output_path = options.output_path
        assert output_path is not None

        self.remove_stale_artifact(output_path, options.removal_policy)

        info(f"写入归档: {output_path}", stage=LogStage.WRITE)
        archive = PharArchive(output_path, alias=options.archive_alias, signature=options.signature)
        archive.start_buffering()

        total = len(manifest)
        for index, entry in enumerate(manifest, 1):
            archive.add_file(entry.relative_path, entry.source_path)
            self._notify(index, total)

        archive.set_stub(self.build_stub(options))
        archive.set_compression(options.compress)
        debug(f"压缩方式: {options.compress.value}", stage=LogStage.COMPRESS)
        archive.stop_buffering()

        checksum = write_checksum_file(output_path)
        debug(f"MD5: {checksum}", stage=LogStage.HASH)
        os.chmod(output_path, ARTIFACT_PERMISSIONS)

        size = output_path.stat().st_size
        success(f"归档写入完成 - 大小: {format_size(size)}", stage=LogStage.WRITE)

        return BuildResult(
            success=True,
            total_files=total,
            output_path=output_path,
            size_bytes=size,
            checksum_hex=checksum,
        )

    def _copy_tree(self, manifest: Manifest, options: BuildOptions) -> BuildResult:
        info(f"复制文件到: {options.dist_path}", stage=LogStage.COPY)

        total = len(manifest)
        for index, entry in enumerate(manifest, 1):
            xcopy(entry.source_path, options.dest_path(entry.relative_path))
            self._notify(index, total)

        success(f"已复制 {total} 个文件", stage=LogStage.COPY)
        return BuildResult(success=True, total_files=total)
