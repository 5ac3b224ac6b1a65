"""
输出目录清空步骤模块

配置 clear 为真时，在写入任何内容之前清空输出目录。
"""

from ...utils.logging import info, error, LogStage
from ...utils.paths import clear_directory
from pharkit.build.build_context import BuildContext, BuildError
from .build_step import BuildStep


class ClearDestinationStep(BuildStep):
    """输出目录清空步骤"""

    def __init__(self):
        super().__init__("clear", "清空输出目录")

    def get_progress_range(self) -> tuple[int, int]:
        return (5, 10)

    def execute(self, context: BuildContext) -> None:
        if not context.options.clear:
            self.report_done(context, "跳过")
            return

        dist = context.options.dist_path
        info(f"清空输出目录: {dist}", stage=LogStage.CLEAR)
        self.report_start(context, str(dist))

        try:
            clear_directory(dist)
        except OSError as e:
            error(f"清空输出目录失败: {e}", stage=LogStage.CLEAR)
            raise BuildError(f"清空输出目录失败: {e}") from e

        self.report_done(context)
