"""构建服务模块

提供 phar 归档构建的核心功能。
"""

from .builder import Builder, build
from .build_context import BuildContext, BuildError, BuildResult
from .build_pipeline import BuildPipeline
from .path_filter import PathFilter
from .manifest import Manifest, ManifestEntry
from .collector import TreeWalker, ManifestBuilder, build_manifest
from .assembler import ArchiveAssembler
from .aux_copier import AuxCopier
from .compressor import (
    Compressor,
    CompressorFactory,
    CompressionError,
    DecompressionError,
)
from .phar import PharArchive, PharReader, PharError
from .stub import StubError, create_default_stub
from .checksum import HashCalculator, write_checksum_file, read_checksum_file

__all__ = [
    # 主构建器
    "Builder",
    "build",
    "BuildContext",
    "BuildError",
    "BuildResult",
    "BuildPipeline",

    # 文件收集
    "PathFilter",
    "Manifest",
    "ManifestEntry",
    "TreeWalker",
    "ManifestBuilder",
    "build_manifest",

    # 组装
    "ArchiveAssembler",
    "AuxCopier",

    # 压缩相关
    "Compressor",
    "CompressorFactory",
    "CompressionError",
    "DecompressionError",

    # 归档格式
    "PharArchive",
    "PharReader",
    "PharError",
    "StubError",
    "create_default_stub",

    # 校验
    "HashCalculator",
    "write_checksum_file",
    "read_checksum_file",
]
