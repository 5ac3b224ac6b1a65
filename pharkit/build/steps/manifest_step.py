"""
清单构建步骤模块

遍历配置的目录和文件，生成打包清单。
"""

from ...config.loader import ConfigError
from ...utils import format_size
from ...utils.logging import info, success, debug, error, LogStage
from pharkit.build.build_context import BuildContext, BuildError
from pharkit.build.collector import ManifestBuilder
from .build_step import BuildStep


class ManifestStep(BuildStep):
    """清单构建步骤"""

    def __init__(self):
        super().__init__("collect", "收集要打包的文件")
        self.builder = ManifestBuilder()

    def get_progress_range(self) -> tuple[int, int]:
        return (10, 40)

    def execute(self, context: BuildContext) -> None:
        info("收集文件", stage=LogStage.COLLECT)
        self.report_start(context)

        try:
            manifest = self.builder.build(context.options)
        except (ConfigError, OSError) as e:
            error(f"文件收集失败: {e}", stage=LogStage.COLLECT)
            raise BuildError(f"文件收集失败: {e}") from e

        total_size = manifest.total_size()
        context.manifest = manifest
        context.build_stats['total_files'] = len(manifest)
        context.build_stats['total_size'] = total_size

        success("文件收集完成", stage=LogStage.COLLECT)
        info(f"  文件数量: {len(manifest)}")
        info(f"  总大小: {format_size(total_size)}")

        # 在 DEBUG 级别输出前 20 个文件用于诊断
        for idx, entry in enumerate(manifest):
            if idx >= 20:
                debug(f"... 还有 {len(manifest) - 20} 个文件未列出", stage=LogStage.COLLECT)
                break
            debug(f"文件[{idx}]: {entry.relative_path}", stage=LogStage.COLLECT)

        self.report_done(context, f"找到 {len(manifest)} 个文件")
