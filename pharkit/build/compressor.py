"""
条目压缩器

提供归档条目级别的压缩/解压接口，支持 none、gzip（raw deflate）和 bzip2。
"""

import bz2
import zlib
from abc import ABC, abstractmethod

from ..config.schema import CompressMode

# 条目标志位中的压缩标记
ENTRY_COMPRESSED_GZ = 0x00001000
ENTRY_COMPRESSED_BZ2 = 0x00002000
ENTRY_COMPRESSION_MASK = 0x0000F000


class CompressionError(Exception):
    """压缩相关错误"""
    pass


class DecompressionError(Exception):
    """解压相关错误"""
    pass


class Compressor(ABC):
    """压缩器抽象基类"""

    @abstractmethod
    def compress(self, data: bytes) -> bytes:
        """压缩单个条目的数据

        Raises:
            CompressionError: 压缩失败
        """
        pass

    @abstractmethod
    def decompress(self, data: bytes) -> bytes:
        """解压单个条目的数据

        Raises:
            DecompressionError: 解压失败
        """
        pass

    @abstractmethod
    def get_mode(self) -> CompressMode:
        """获取压缩方式"""
        pass

    @property
    @abstractmethod
    def flag(self) -> int:
        """写入条目标志位的压缩标记"""
        pass


class NoneCompressor(Compressor):
    """不压缩"""

    def compress(self, data: bytes) -> bytes:
        return data

    def decompress(self, data: bytes) -> bytes:
        return data

    def get_mode(self) -> CompressMode:
        return CompressMode.NONE

    @property
    def flag(self) -> int:
        return 0


class GzipCompressor(Compressor):
    """gzip 压缩器

    条目内保存的是不带 gzip/zlib 头的 raw deflate 数据，不含时间戳，
    相同输入总是得到相同输出。
    """

    def __init__(self, level: int = 9):
        self.level = min(9, max(1, level))

    def compress(self, data: bytes) -> bytes:
        try:
            compressor = zlib.compressobj(self.level, zlib.DEFLATED, -zlib.MAX_WBITS)
            return compressor.compress(data) + compressor.flush()
        except zlib.error as e:
            raise CompressionError(f"gzip 压缩失败: {e}") from e

    def decompress(self, data: bytes) -> bytes:
        try:
            return zlib.decompress(data, -zlib.MAX_WBITS)
        except zlib.error as e:
            raise DecompressionError(f"gzip 解压失败: {e}") from e

    def get_mode(self) -> CompressMode:
        return CompressMode.GZIP

    @property
    def flag(self) -> int:
        return ENTRY_COMPRESSED_GZ


class Bzip2Compressor(Compressor):
    """bzip2 压缩器"""

    def __init__(self, level: int = 9):
        self.level = min(9, max(1, level))

    def compress(self, data: bytes) -> bytes:
        try:
            return bz2.compress(data, self.level)
        except (OSError, ValueError) as e:
            raise CompressionError(f"bzip2 压缩失败: {e}") from e

    def decompress(self, data: bytes) -> bytes:
        try:
            return bz2.decompress(data)
        except (OSError, ValueError) as e:
            raise DecompressionError(f"bzip2 解压失败: {e}") from e

    def get_mode(self) -> CompressMode:
        return CompressMode.BZIP2

    @property
    def flag(self) -> int:
        return ENTRY_COMPRESSED_BZ2


class CompressorFactory:
    """压缩器工厂"""

    @staticmethod
    def create_compressor(mode: CompressMode, level: int = 9) -> Compressor:
        """创建压缩器，无法识别的方式降级为不压缩"""
        mode = CompressMode.parse(mode)
        if mode == CompressMode.GZIP:
            return GzipCompressor(level)
        if mode == CompressMode.BZIP2:
            return Bzip2Compressor(level)
        return NoneCompressor()

    @staticmethod
    def from_flags(flags: int) -> Compressor:
        """根据条目标志位选择解压器

        Raises:
            DecompressionError: 未知的压缩标记
        """
        compression = flags & ENTRY_COMPRESSION_MASK
        if compression == 0:
            return NoneCompressor()
        if compression == ENTRY_COMPRESSED_GZ:
            return GzipCompressor()
        if compression == ENTRY_COMPRESSED_BZ2:
            return Bzip2Compressor()
        raise DecompressionError(f"不支持的压缩标记: 0x{compression:08x}")

    @staticmethod
    def get_available_modes() -> list[CompressMode]:
        """获取可用的压缩方式列表"""
        return [CompressMode.NONE, CompressMode.GZIP, CompressMode.BZIP2]
