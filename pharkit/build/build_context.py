"""
构建上下文模块

定义构建过程中的共享数据结构和异常类。
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Any, Dict

from ..config.schema import BuildOptions
from ..utils.paths import format_size
from .manifest import Manifest

# 进度回调类型：(阶段名称, 当前进度, 总进度, 说明)
ProgressCallback = Callable[[str, int, int, str], None]


class BuildError(Exception):
    """构建错误"""
    pass


@dataclass
class BuildResult:
    """构建结果"""
    success: bool
    skipped: bool = False
    total_files: int = 0
    elapsed_seconds: float = 0.0
    output_path: Optional[Path] = None
    size_bytes: Optional[int] = None
    checksum_hex: Optional[str] = None
    error: Optional[str] = None

    def summary(self) -> str:
        """完成提示行"""
        if self.skipped:
            return "没有需要构建的内容"
        if not self.success:
            return f"构建失败: {self.error}"
        if self.output_path is not None:
            size = format_size(self.size_bytes or 0)
            return (
                f"构建完成，共 {self.total_files} 个文件，用时 {self.elapsed_seconds:.2f} 秒: "
                f"{self.output_path} ({size})"
            )
        return f"构建完成，共 {self.total_files} 个文件，用时 {self.elapsed_seconds:.2f} 秒"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'skipped': self.skipped,
            'total_files': self.total_files,
            'elapsed_seconds': round(self.elapsed_seconds, 3),
            'output_path': str(self.output_path) if self.output_path else None,
            'size_bytes': self.size_bytes,
            'checksum': self.checksum_hex,
            'error': self.error,
        }


@dataclass
class BuildContext:
    """构建上下文，包含构建过程中的共享数据"""
    options: BuildOptions
    progress_callback: Optional[ProgressCallback] = None

    # 构建过程中生成的数据
    manifest: Optional[Manifest] = None
    result: Optional[BuildResult] = None

    # 统计信息
    build_stats: Dict[str, Any] = field(default_factory=lambda: {
        'start_time': 0.0,
        'end_time': 0.0,
        'total_files': 0,
        'total_size': 0,
    })

    def report(self, stage: str, percent: int, detail: str = "") -> None:
        """通知进度回调"""
        if self.progress_callback:
            self.progress_callback(stage, percent, 100, detail)
