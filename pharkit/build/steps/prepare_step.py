"""
输出目录准备步骤模块

确保输出目录存在。
"""

from ...utils.logging import debug, error, LogStage
from ...utils.paths import ensure_directory
from pharkit.build.build_context import BuildContext, BuildError
from .build_step import BuildStep


class PrepareDestinationStep(BuildStep):
    """输出目录准备步骤"""

    def __init__(self):
        super().__init__("prepare", "准备输出目录")

    def get_progress_range(self) -> tuple[int, int]:
        return (0, 5)

    def execute(self, context: BuildContext) -> None:
        dist = context.options.dist_path
        self.report_start(context, str(dist))

        try:
            ensure_directory(dist)
        except OSError as e:
            error(f"无法创建输出目录 {dist}: {e}", stage=LogStage.PREPARE)
            raise BuildError(f"无法创建输出目录 {dist}: {e}") from e

        debug(f"输出目录: {dist}", stage=LogStage.PREPARE)
        self.report_done(context)
