"""
哈希工具

计算归档签名与 .md5sum 校验文件。
"""

import hashlib
from pathlib import Path
from typing import Union

CHECKSUM_SUFFIX = ".md5sum"


class HashCalculator:
    """哈希计算器"""

    def __init__(self, algorithm: str = "md5"):
        """初始化哈希计算器

        Args:
            algorithm: 哈希算法名称
        """
        self.algorithm = algorithm.lower()
        if self.algorithm not in hashlib.algorithms_available:
            raise ValueError(f"不支持的哈希算法: {algorithm}")

        self._hasher = hashlib.new(self.algorithm)

    def update(self, data: Union[bytes, str]) -> None:
        """更新哈希数据"""
        if isinstance(data, str):
            data = data.encode('utf-8')
        self._hasher.update(data)

    def update_from_file(self, file_path: Path, chunk_size: int = 64 * 1024) -> None:
        """从文件更新哈希

        Raises:
            OSError: 文件读取失败
        """
        with open(file_path, 'rb') as f:
            while True:
                chunk = f.read(chunk_size)
                if not chunk:
                    break
                self._hasher.update(chunk)

    def hexdigest(self) -> str:
        """获取十六进制哈希值"""
        return self._hasher.hexdigest()

    def digest(self) -> bytes:
        """获取二进制哈希值"""
        return self._hasher.digest()

    @classmethod
    def hash_data(cls, data: Union[bytes, str], algorithm: str = "md5") -> str:
        """便捷方法：计算数据哈希"""
        calculator = cls(algorithm)
        calculator.update(data)
        return calculator.hexdigest()

    @classmethod
    def hash_file(cls, file_path: Path, algorithm: str = "md5") -> str:
        """便捷方法：计算文件哈希"""
        calculator = cls(algorithm)
        calculator.update_from_file(file_path)
        return calculator.hexdigest()


def checksum_path(artifact_path: Path) -> Path:
    """校验文件路径：<产物路径>.md5sum"""
    return artifact_path.with_name(artifact_path.name + CHECKSUM_SUFFIX)


def write_checksum_file(artifact_path: Path) -> str:
    """计算产物的 MD5 并写入旁路校验文件（小写十六进制，无换行）

    Returns:
        str: MD5 十六进制字符串
    """
    digest = HashCalculator.hash_file(artifact_path, "md5")
    checksum_path(artifact_path).write_text(digest, encoding='ascii')
    return digest


def read_checksum_file(artifact_path: Path) -> str:
    """读取旁路校验文件，忽略首尾空白"""
    return checksum_path(artifact_path).read_text(encoding='ascii').strip()
