"""
附加复制步骤模块

把 copy 列表复制到输出目录。
"""

from ...utils.logging import info, error, LogStage
from pharkit.build.aux_copier import AuxCopier
from pharkit.build.build_context import BuildContext, BuildError
from .build_step import BuildStep


class AuxCopyStep(BuildStep):
    """附加复制步骤"""

    def __init__(self):
        super().__init__("copy", "复制附加文件")
        self.copier = AuxCopier()

    def get_progress_range(self) -> tuple[int, int]:
        return (90, 100)

    def execute(self, context: BuildContext) -> None:
        entries = context.options.copy_entries
        if not entries:
            self.report_done(context, "跳过")
            return

        info(f"复制 {len(entries)} 个附加条目", stage=LogStage.COPY)
        self.report_start(context)

        try:
            copied = self.copier.copy(entries, context.options)
        except OSError as e:
            error(f"复制附加文件失败: {e}", stage=LogStage.COPY)
            raise BuildError(f"复制附加文件失败: {e}") from e

        self.report_done(context, f"已复制 {copied} 个条目")
