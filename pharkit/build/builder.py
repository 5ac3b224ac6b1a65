"""
构建器主类

负责整个构建流程的协调，使用管道模式组织构建步骤。
"""

from typing import Optional, List

from ..config.schema import BuildOptions
from ..utils.logging import warning, LogStage
from .build_pipeline import BuildPipeline
from .build_context import BuildError, BuildResult, ProgressCallback


class Builder:
    """phar 构建器

    使用管道模式协调构建步骤，提供统一的构建接口。
    """

    def __init__(self):
        self.pipeline = BuildPipeline()

    def build(
        self,
        options: BuildOptions,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> BuildResult:
        """执行构建

        directories 与 files 均为空时不做任何文件系统操作，直接返回 skipped 结果。

        Args:
            options: 构建配置
            progress_callback: 进度回调函数

        Returns:
            BuildResult: 构建结果，失败时 success 为 False 并带有 error
        """
        if not options.has_inputs():
            warning("没有需要构建的内容：directories 和 files 均为空", stage=LogStage.INIT)
            return BuildResult(success=True, skipped=True)

        try:
            context = self.pipeline.execute(options, progress_callback)
        except BuildError as e:
            # 构建失败，返回失败结果
            return BuildResult(success=False, error=str(e))

        assert context.result is not None
        return context.result

    def get_pipeline(self) -> BuildPipeline:
        """获取构建管道，用于自定义构建流程"""
        return self.pipeline

    def validate_build_pipeline(self) -> List[str]:
        """验证构建管道的完整性

        Returns:
            List[str]: 验证错误列表，空列表表示验证通过
        """
        return self.pipeline.validate_pipeline()


def build(options: BuildOptions, progress_callback: Optional[ProgressCallback] = None) -> BuildResult:
    """便捷函数：使用默认管道构建"""
    return Builder().build(options, progress_callback)
