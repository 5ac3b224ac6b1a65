"""
构建管道模块

使用管道模式协调构建步骤的执行。
"""

import time
from typing import List, Optional

from ..config.schema import BuildOptions
from ..utils import format_size
from ..utils.logging import info, debug, success, error, LogStage
from .build_context import BuildContext, BuildError, BuildResult, ProgressCallback
from .steps.build_step import BuildStep
from .steps.prepare_step import PrepareDestinationStep
from .steps.clear_step import ClearDestinationStep
from .steps.manifest_step import ManifestStep
from .steps.assembly_step import AssemblyStep
from .steps.copy_step import AuxCopyStep


class BuildPipeline:
    """构建管道，负责协调构建步骤的执行"""

    def __init__(self):
        """初始化构建管道"""
        self._steps: List[BuildStep] = []

        # 初始化默认构建步骤
        self._init_default_steps()

    def _init_default_steps(self):
        """初始化默认的构建步骤"""
        self._steps = [
            PrepareDestinationStep(),
            ClearDestinationStep(),
            ManifestStep(),
            AssemblyStep(),
            AuxCopyStep(),
        ]

    def add_step(self, step: BuildStep, position: Optional[int] = None):
        """添加构建步骤"""
        if position is None:
            self._steps.append(step)
        else:
            self._steps.insert(position, step)

    def remove_step(self, step_name: str):
        """移除构建步骤"""
        self._steps = [step for step in self._steps if step.name != step_name]

    def get_steps(self) -> List[BuildStep]:
        """获取所有构建步骤"""
        return self._steps.copy()

    def execute(
        self,
        options: BuildOptions,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> BuildContext:
        """执行构建管道

        Args:
            options: 构建配置
            progress_callback: 进度回调函数

        Returns:
            BuildContext: 构建上下文，context.result 为构建结果

        Raises:
            BuildError: 构建失败
        """
        context = BuildContext(options=options, progress_callback=progress_callback)
        context.build_stats['start_time'] = time.time()

        target = options.output_path or options.dist_path
        info(f"开始构建: {target}", stage=LogStage.BUILD)
        debug(
            f"构建配置: compress={options.compress.value} directories={len(options.directories)} "
            f"files={len(options.files)} copy={len(options.copy_entries)}",
            stage=LogStage.BUILD,
        )

        try:
            # 依次执行每个构建步骤
            for step in self._steps:
                debug(f"执行步骤: {step.description}", stage=LogStage.BUILD)
                step.execute(context)
        except BuildError as e:
            context.build_stats['end_time'] = time.time()
            error(f"构建失败: {e}", stage=LogStage.BUILD)
            raise

        context.build_stats['end_time'] = time.time()
        elapsed = context.build_stats['end_time'] - context.build_stats['start_time']

        result = context.result or BuildResult(success=True)
        result.total_files = context.build_stats['total_files']
        result.elapsed_seconds = elapsed
        context.result = result

        success(f"构建成功: {target}", stage=LogStage.DONE)
        info(f"构建时间: {elapsed:.2f}秒")
        info(f"原始大小: {format_size(context.build_stats['total_size'])}")
        if result.size_bytes is not None:
            info(f"最终大小: {format_size(result.size_bytes)}")

        return context

    def validate_pipeline(self) -> List[str]:
        """验证构建管道的完整性

        Returns:
            List[str]: 验证错误列表，空列表表示验证通过
        """
        errors = []

        if not self._steps:
            errors.append("构建管道中没有步骤")
            return errors

        # 检查步骤的进度范围是否连续
        prev_end = 0
        for step in self._steps:
            start, end = step.get_progress_range()
            if start != prev_end:
                errors.append(f"步骤 '{step.name}' 的进度范围不连续: 期望起始 {prev_end}%, 实际 {start}%")
            if start >= end:
                errors.append(f"步骤 '{step.name}' 的进度范围无效: {start}% - {end}%")
            prev_end = end

        if prev_end != 100:
            errors.append(f"构建管道的总进度范围不是100%: {prev_end}%")

        return errors
