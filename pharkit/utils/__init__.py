"""通用工具模块"""

from .logging import (
    configure_logging,
    get_stage_logger,
    StageLogger,
    LogStage,
    OutputLevel,
)

from .paths import (
    join_paths,
    normalize_relative_path,
    ensure_directory,
    xcopy,
    clear_directory,
    format_size,
)

__all__ = [
    # 日志相关
    "configure_logging",
    "get_stage_logger",
    "StageLogger",
    "LogStage",
    "OutputLevel",

    # 路径相关
    "join_paths",
    "normalize_relative_path",
    "ensure_directory",
    "xcopy",
    "clear_directory",
    "format_size",
]
