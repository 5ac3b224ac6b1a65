"""
pharkit - PHP 项目 phar 归档构建工具

Packages a PHP project tree into a single phar archive.
"""

__version__ = "0.1.0"
__author__ = "Project Team"
__license__ = "MIT"

from .config.schema import BuildOptions
from .build.builder import Builder

__all__ = ["BuildOptions", "Builder", "__version__"]
