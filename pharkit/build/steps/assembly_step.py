"""
归档组装步骤模块

把清单写成 phar 归档，或复制到输出目录。
"""

from ...utils.logging import error, LogStage
from pharkit.build.assembler import ArchiveAssembler
from pharkit.build.build_context import BuildContext, BuildError
from pharkit.build.phar import PharError
from pharkit.build.stub import StubError
from .build_step import BuildStep


class AssemblyStep(BuildStep):
    """归档组装步骤"""

    def __init__(self):
        super().__init__("assemble", "组装构建产物")

    def get_progress_range(self) -> tuple[int, int]:
        return (40, 90)

    def execute(self, context: BuildContext) -> None:
        if context.manifest is None:
            raise BuildError("缺少打包清单")

        start, end = self.get_progress_range()

        def on_progress(done: int, total: int) -> None:
            context.report(self.description, start + int(done / max(1, total) * (end - start)), f"{done}/{total}")

        self.report_start(context)
        assembler = ArchiveAssembler(progress=on_progress)

        try:
            context.result = assembler.assemble(context.manifest, context.options)
        except BuildError as e:
            error(str(e), stage=LogStage.WRITE)
            raise
        except (PharError, StubError, OSError) as e:
            error(f"组装构建产物失败: {e}", stage=LogStage.WRITE)
            raise BuildError(f"组装构建产物失败: {e}") from e

        self.report_done(context)
