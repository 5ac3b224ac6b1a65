"""配置和 Schema 模块

提供构建配置文件（JSON / YAML）的加载、合并、验证和保存功能。
"""

from .schema import (
    BuildOptions,
    CopyEntry,
    CompressMode,
    ExtensionPolicy,
    RemovalPolicy,
    SignatureAlgorithm,
    BUILTIN_EXTENSIONS,
)
from .loader import (
    ConfigLoader,
    ConfigValidationError,
    ConfigError,
    CONFIG_FILENAMES,
    merge_options,
    load_options,
    load_project_config,
    validate_config,
    save_config,
    config_loader
)

__all__ = [
    # 主要类
    "BuildOptions",
    "CopyEntry",
    "ConfigLoader",

    # 枚举与常量
    "CompressMode",
    "ExtensionPolicy",
    "RemovalPolicy",
    "SignatureAlgorithm",
    "BUILTIN_EXTENSIONS",
    "CONFIG_FILENAMES",

    # 异常类
    "ConfigError",
    "ConfigValidationError",

    # 便捷函数
    "merge_options",
    "load_options",
    "load_project_config",
    "validate_config",
    "save_config",

    # 单例
    "config_loader",
]
