"""
日志工具 - 统一输出门面

封装 Rich Console，提供带时间戳、级别和阶段标记的统一输出接口，
可选同时写入日志文件。
"""

import atexit
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union

from rich.console import Console
from rich.markup import escape


class OutputLevel:
    """输出级别常量"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"


class LogStage:
    """日志阶段标记"""
    INIT = "INIT"
    PREPARE = "PREPARE"
    CLEAR = "CLEAR"
    COLLECT = "COLLECT"
    COMPRESS = "COMPRESS"
    STUB = "STUB"
    WRITE = "WRITE"
    HASH = "HASH"
    COPY = "COPY"
    BUILD = "BUILD"
    DONE = "DONE"


_LEVEL_ORDER = {
    OutputLevel.DEBUG: 0,
    OutputLevel.INFO: 1,
    OutputLevel.SUCCESS: 1,
    OutputLevel.WARNING: 2,
    OutputLevel.ERROR: 3,
}

_LEVEL_STYLES = {
    OutputLevel.DEBUG: "dim",
    OutputLevel.INFO: "default",
    OutputLevel.SUCCESS: "green",
    OutputLevel.WARNING: "yellow",
    OutputLevel.ERROR: "red bold",
}


class OutputFacade:
    """输出门面

    统一封装所有输出操作。普通消息写 stdout，错误写 stderr，
    设置了日志文件时同时追加到文件（带日期）。
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._console = Console(highlight=False, log_path=False)
        self._error_console = Console(stderr=True, highlight=False, log_path=False)
        self._file_handle: Optional[Any] = None
        self._log_level = OutputLevel.INFO
        self._date_format = "%Y-%m-%d %H:%M:%S"
        self._time_format = "%H:%M:%S"

    def _get_timestamp(self, include_date: bool = False) -> str:
        now = datetime.now()
        return now.strftime(self._date_format if include_date else self._time_format)

    def _should_output(self, level: str) -> bool:
        current_level = _LEVEL_ORDER.get(self._log_level, 1)
        return _LEVEL_ORDER.get(level, 1) >= current_level

    def _format_message(self, message: str, level: str, stage: Optional[str] = None,
                        include_date: bool = False) -> str:
        timestamp = self._get_timestamp(include_date)
        if stage:
            return f"[{timestamp}] [{level}] [{stage}] {message}"
        return f"[{timestamp}] [{level}] {message}"

    def _emit(self, message: str, level: str, stage: Optional[str] = None) -> None:
        if not self._should_output(level):
            return

        with self._lock:
            console = self._error_console if level == OutputLevel.ERROR else self._console
            timestamp = self._get_timestamp()
            # 消息内容可能包含方括号（路径、正则），需转义避免被当作 markup
            if stage:
                markup = f"[dim]{timestamp}[/dim] [bold]{level}[/bold] [cyan]{stage}[/cyan] {escape(message)}"
            else:
                markup = f"[dim]{timestamp}[/dim] [bold]{level}[/bold] {escape(message)}"
            console.print(markup, style=_LEVEL_STYLES.get(level, "default"))

            self._write_to_file(message, level, stage)

    def _write_to_file(self, message: str, level: str, stage: Optional[str] = None) -> None:
        if not self._file_handle:
            return
        self._file_handle.write(self._format_message(message, level, stage, include_date=True) + "\n")
        self._file_handle.flush()

    def set_level(self, level: str) -> None:
        """设置输出级别"""
        with self._lock:
            if level in _LEVEL_ORDER:
                self._log_level = level

    def get_level(self) -> str:
        return self._log_level

    def set_log_file(self, file_path: Union[str, Path]) -> None:
        """设置日志文件（追加模式）

        Raises:
            OSError: 无法打开日志文件
        """
        with self._lock:
            self.close()
            log_path = Path(file_path)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_handle = open(log_path, 'a', encoding='utf-8')

    def debug(self, message: str, stage: Optional[str] = None) -> None:
        self._emit(message, OutputLevel.DEBUG, stage)

    def info(self, message: str, stage: Optional[str] = None) -> None:
        self._emit(message, OutputLevel.INFO, stage)

    def success(self, message: str, stage: Optional[str] = None) -> None:
        self._emit(message, OutputLevel.SUCCESS, stage)

    def warning(self, message: str, stage: Optional[str] = None) -> None:
        self._emit(message, OutputLevel.WARNING, stage)

    def error(self, message: str, stage: Optional[str] = None) -> None:
        self._emit(message, OutputLevel.ERROR, stage)

    def close(self) -> None:
        """关闭日志文件"""
        with self._lock:
            if self._file_handle:
                self._file_handle.close()
                self._file_handle = None


# 全局输出门面实例
_output_facade: Optional[OutputFacade] = None


def get_output_facade() -> OutputFacade:
    """获取全局输出门面实例"""
    global _output_facade
    if _output_facade is None:
        _output_facade = OutputFacade()
    return _output_facade


def debug(message: str, stage: Optional[str] = None) -> None:
    """调试信息输出"""
    get_output_facade().debug(message, stage)


def info(message: str, stage: Optional[str] = None) -> None:
    """普通信息输出"""
    get_output_facade().info(message, stage)


def success(message: str, stage: Optional[str] = None) -> None:
    """成功信息输出"""
    get_output_facade().success(message, stage)


def warning(message: str, stage: Optional[str] = None) -> None:
    """警告信息输出"""
    get_output_facade().warning(message, stage)


def error(message: str, stage: Optional[str] = None) -> None:
    """错误信息输出"""
    get_output_facade().error(message, stage)


def set_log_level(level: str) -> None:
    """设置全局日志级别"""
    get_output_facade().set_level(level)


def set_log_file(file_path: Union[str, Path]) -> None:
    """设置全局日志文件"""
    get_output_facade().set_log_file(file_path)


def close_logger() -> None:
    """关闭日志系统"""
    global _output_facade
    if _output_facade:
        _output_facade.close()
        _output_facade = None


class StageLogger:
    """绑定固定阶段的日志器"""

    def __init__(self, stage: str):
        self.stage = stage

    def debug(self, message: str) -> None:
        debug(message, self.stage)

    def info(self, message: str) -> None:
        info(message, self.stage)

    def success(self, message: str) -> None:
        success(message, self.stage)

    def warning(self, message: str) -> None:
        warning(message, self.stage)

    def error(self, message: str) -> None:
        error(message, self.stage)


def get_stage_logger(stage: str) -> StageLogger:
    """获取阶段日志器"""
    return StageLogger(stage)


def configure_logging(level: str = OutputLevel.INFO, log_file: Optional[Union[str, Path]] = None) -> None:
    """配置日志系统"""
    set_log_level(level)
    if log_file:
        set_log_file(log_file)


atexit.register(close_logger)
