"""
Phar 归档读写

写入格式（整数均为小端 32 位）：

    stub（截至 __HALT_COMPILER(); 并追加 " ?>\\r\\n"）
    manifest 长度（不含自身 4 字节）
    条目数 | API 版本(2 字节) | 全局标志 | 别名长度 | 别名 | 元数据长度(0)
    每个条目：名称长度 | 名称 | 原始大小 | 时间戳 | 压缩后大小 | CRC32 | 标志 | 元数据长度(0)
    条目数据（按 manifest 顺序）
    签名摘要 | 签名类型 | "GBMB"

写入先落到同目录的临时文件，完成后整体替换目标文件。
"""

import hashlib
import os
import struct
import tempfile
import time
import zlib
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from ..config.schema import CompressMode, SignatureAlgorithm, DEFAULT_MAIN
from ..utils.paths import ensure_directory, normalize_relative_path
from .compressor import (
    Compressor,
    CompressorFactory,
    CompressionError,
    DecompressionError,
)
from .stub import STUB_TERMINATOR, create_default_stub, find_halt_offset, normalize_stub

PHAR_API_VERSION = b"\x11\x10"
PHAR_HDR_COMPRESSED_GZ = 0x00001000
PHAR_HDR_COMPRESSED_BZ2 = 0x00002000
PHAR_HDR_SIGNATURE = 0x00010000
SIGNATURE_MAGIC = b"GBMB"
PERMISSION_MASK = 0o777
MAX_UINT32 = 0xFFFFFFFF

SIGNATURE_TYPES: Dict[SignatureAlgorithm, int] = {
    SignatureAlgorithm.MD5: 0x0001,
    SignatureAlgorithm.SHA1: 0x0002,
    SignatureAlgorithm.SHA256: 0x0003,
    SignatureAlgorithm.SHA512: 0x0004,
}
SIGNATURE_ALGORITHMS: Dict[int, SignatureAlgorithm] = {v: k for k, v in SIGNATURE_TYPES.items()}

_ENTRY_STRUCT = struct.Struct('<IIIIII')


class PharError(Exception):
    """归档读写错误"""
    pass


class ArchiveContainer(ABC):
    """归档容器接口"""

    @abstractmethod
    def add_file(self, name: str, source_path: Union[str, Path]) -> None:
        """添加条目，内容在写入时从源文件读取"""
        pass

    @abstractmethod
    def set_compression(self, mode: CompressMode) -> None:
        """设置全部条目的压缩方式"""
        pass

    @abstractmethod
    def set_stub(self, stub: bytes) -> None:
        """设置引导 stub"""
        pass

    @abstractmethod
    def start_buffering(self) -> None:
        """开始缓冲写入"""
        pass

    @abstractmethod
    def stop_buffering(self) -> None:
        """结束缓冲并写入最终文件"""
        pass


@dataclass
class _PendingEntry:
    source_path: Optional[Path] = None
    data: Optional[bytes] = None
    mtime: int = 0
    permissions: int = 0o644

    def read(self) -> bytes:
        if self.data is not None:
            return self.data
        assert self.source_path is not None
        try:
            with open(self.source_path, 'rb') as f:
                return f.read()
        except OSError as e:
            raise PharError(f"读取文件失败 {self.source_path}: {e}") from e


class PharArchive(ArchiveContainer):
    """Phar 归档写入器

    未处于缓冲状态时，每次修改都会立即写盘；处于缓冲状态时，
    修改只记录在内存中，stop_buffering() 时一次性写入。
    """

    def __init__(
        self,
        path: Union[str, Path],
        alias: Optional[str] = None,
        signature: SignatureAlgorithm = SignatureAlgorithm.SHA1,
    ):
        self.path = Path(path)
        self.alias = alias if alias is not None else self.path.name
        self.signature = SignatureAlgorithm(signature)
        self._entries: Dict[str, _PendingEntry] = {}
        self._stub: bytes = normalize_stub(create_default_stub(DEFAULT_MAIN))
        self._compressor: Compressor = CompressorFactory.create_compressor(CompressMode.NONE)
        self._buffering = False

    # --- 缓冲控制 ---

    def start_buffering(self) -> None:
        self._buffering = True

    def is_buffering(self) -> bool:
        return self._buffering

    def stop_buffering(self) -> None:
        self._buffering = False
        self.flush()

    def _changed(self) -> None:
        if not self._buffering:
            self.flush()

    # --- 内容 ---

    def add_file(self, name: str, source_path: Union[str, Path]) -> None:
        source_path = Path(source_path)
        try:
            stat = source_path.stat()
        except OSError as e:
            raise PharError(f"无法访问源文件 {source_path}: {e}") from e

        self._entries[self._entry_name(name)] = _PendingEntry(
            source_path=source_path,
            mtime=int(stat.st_mtime) & MAX_UINT32,
            permissions=stat.st_mode & PERMISSION_MASK,
        )
        self._changed()

    def add_from_string(self, name: str, data: Union[bytes, str], mtime: Optional[int] = None) -> None:
        if isinstance(data, str):
            data = data.encode('utf-8')
        self._entries[self._entry_name(name)] = _PendingEntry(
            data=data,
            mtime=int(time.time() if mtime is None else mtime) & MAX_UINT32,
        )
        self._changed()

    def set_stub(self, stub: Union[bytes, str]) -> None:
        if isinstance(stub, str):
            stub = stub.encode('utf-8')
        self._stub = normalize_stub(stub)
        self._changed()

    def get_stub(self) -> bytes:
        return self._stub

    def set_compression(self, mode: CompressMode) -> None:
        self._compressor = CompressorFactory.create_compressor(mode)
        self._changed()

    def get_compression(self) -> CompressMode:
        return self._compressor.get_mode()

    def count(self) -> int:
        return len(self._entries)

    def names(self) -> List[str]:
        return list(self._entries)

    @staticmethod
    def _entry_name(name: str) -> str:
        normalized = normalize_relative_path(name)
        if not normalized:
            raise PharError(f"无效的条目名称: {name!r}")
        return normalized

    # --- 写盘 ---

    def _pack_entries(self) -> Tuple[List[bytes], List[bytes]]:
        """读取并压缩全部条目，返回 (manifest 条目, 数据块)"""
        records = []
        payloads = []
        for name, pending in self._entries.items():
            raw = pending.read()
            try:
                payload = self._compressor.compress(raw)
            except CompressionError as e:
                raise PharError(f"压缩条目失败 {name}: {e}") from e

            if len(raw) > MAX_UINT32 or len(payload) > MAX_UINT32:
                raise PharError(f"条目过大: {name}")

            name_bytes = name.encode('utf-8')
            flags = (pending.permissions & PERMISSION_MASK) | self._compressor.flag
            records.append(
                struct.pack('<I', len(name_bytes)) + name_bytes + _ENTRY_STRUCT.pack(
                    len(raw),
                    pending.mtime,
                    len(payload),
                    zlib.crc32(raw) & MAX_UINT32,
                    flags,
                    0,
                )
            )
            payloads.append(payload)
        return records, payloads

    def _build_manifest(self, records: List[bytes]) -> bytes:
        global_flags = PHAR_HDR_SIGNATURE
        if records:
            mode = self._compressor.get_mode()
            if mode == CompressMode.GZIP:
                global_flags |= PHAR_HDR_COMPRESSED_GZ
            elif mode == CompressMode.BZIP2:
                global_flags |= PHAR_HDR_COMPRESSED_BZ2

        alias = self.alias.encode('utf-8')
        body = b''.join([
            struct.pack('<I', len(records)),
            PHAR_API_VERSION,
            struct.pack('<I', global_flags),
            struct.pack('<I', len(alias)),
            alias,
            struct.pack('<I', 0),
            *records,
        ])
        return struct.pack('<I', len(body)) + body

    def flush(self) -> None:
        """写入归档文件

        Raises:
            PharError: 读取源文件、压缩或写入失败
        """
        records, payloads = self._pack_entries()
        manifest = self._build_manifest(records)
        hasher = hashlib.new(self.signature.value)

        try:
            ensure_directory(self.path.parent)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
        except OSError as e:
            raise PharError(f"无法创建临时文件: {e}") from e

        try:
            with os.fdopen(fd, 'wb') as f:
                for chunk in (self._stub, manifest, *payloads):
                    f.write(chunk)
                    hasher.update(chunk)
                f.write(hasher.digest())
                f.write(struct.pack('<I', SIGNATURE_TYPES[self.signature]))
                f.write(SIGNATURE_MAGIC)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PharError(f"写入归档失败 {self.path}: {e}") from e


@dataclass
class PharEntryInfo:
    """归档条目信息"""
    name: str
    size: int
    mtime: int
    compressed_size: int
    crc32: int
    flags: int
    offset: int = 0

    @property
    def permissions(self) -> int:
        return self.flags & PERMISSION_MASK

    @property
    def compression(self) -> CompressMode:
        return CompressorFactory.from_flags(self.flags).get_mode()

    def to_dict(self) -> Dict[str, object]:
        return {
            'name': self.name,
            'size': self.size,
            'compressed_size': self.compressed_size,
            'mtime': self.mtime,
            'crc32': f"{self.crc32:08x}",
            'permissions': oct(self.permissions),
            'compression': self.compression.value,
        }


@dataclass
class PharInfo:
    """归档整体信息"""
    stub: bytes
    alias: str
    api_version: str
    flags: int
    entries: List[PharEntryInfo] = field(default_factory=list)
    signature_algorithm: Optional[SignatureAlgorithm] = None
    signature_hex: Optional[str] = None
    signature_valid: bool = False

    def to_dict(self) -> Dict[str, object]:
        return {
            'alias': self.alias,
            'api_version': self.api_version,
            'flags': f"0x{self.flags:08x}",
            'stub_size': len(self.stub),
            'file_count': len(self.entries),
            'signature': {
                'algorithm': self.signature_algorithm.value if self.signature_algorithm else None,
                'hash': self.signature_hex,
                'valid': self.signature_valid,
            },
            'files': [entry.to_dict() for entry in self.entries],
        }


class PharReader:
    """Phar 归档读取器"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._data: Optional[bytes] = None
        self._info: Optional[PharInfo] = None

    def _read_bytes(self) -> bytes:
        if self._data is None:
            try:
                self._data = self.path.read_bytes()
            except OSError as e:
                raise PharError(f"无法读取归档 {self.path}: {e}") from e
        return self._data

    def parse(self) -> PharInfo:
        """解析 stub、manifest 与签名

        Raises:
            PharError: 格式错误
        """
        if self._info is not None:
            return self._info

        data = self._read_bytes()
        pos = find_halt_offset(data)
        if pos < 0:
            raise PharError("不是有效的 phar 归档：缺少 __HALT_COMPILER();")

        terminator = STUB_TERMINATOR.rstrip(b"\r\n")
        if data.startswith(terminator, pos):
            pos += len(terminator)
        if data.startswith(b"\r\n", pos):
            pos += 2
        elif data.startswith(b"\n", pos):
            pos += 1
        stub = data[:pos]

        try:
            manifest_len, = struct.unpack_from('<I', data, pos)
            body_start = pos + 4
            body_end = body_start + manifest_len
            if body_end > len(data):
                raise PharError("manifest 长度超出文件范围")

            count, = struct.unpack_from('<I', data, body_start)
            api = data[body_start + 4:body_start + 6]
            flags, alias_len = struct.unpack_from('<II', data, body_start + 6)
            cursor = body_start + 14
            alias = data[cursor:cursor + alias_len].decode('utf-8')
            cursor += alias_len
            metadata_len, = struct.unpack_from('<I', data, cursor)
            cursor += 4 + metadata_len

            entries = []
            for _ in range(count):
                name_len, = struct.unpack_from('<I', data, cursor)
                cursor += 4
                name = data[cursor:cursor + name_len].decode('utf-8')
                cursor += name_len
                size, mtime, compressed_size, crc, entry_flags, entry_meta_len = _ENTRY_STRUCT.unpack_from(data, cursor)
                cursor += _ENTRY_STRUCT.size + entry_meta_len
                entries.append(PharEntryInfo(name, size, mtime, compressed_size, crc, entry_flags))
        except (struct.error, UnicodeDecodeError) as e:
            raise PharError(f"manifest 解析失败: {e}") from e

        if cursor != body_end:
            raise PharError("manifest 长度与内容不一致")

        offset = body_end
        for entry in entries:
            entry.offset = offset
            offset += entry.compressed_size

        info = PharInfo(
            stub=stub,
            alias=alias,
            api_version=f"{api[0] >> 4}.{api[0] & 0x0F}.{api[1] >> 4}",
            flags=flags,
            entries=entries,
        )

        if flags & PHAR_HDR_SIGNATURE:
            self._check_signature(data, offset, info)

        self._info = info
        return info

    def _check_signature(self, data: bytes, payload_end: int, info: PharInfo) -> None:
        if len(data) < payload_end + 8 or data[-4:] != SIGNATURE_MAGIC:
            raise PharError("缺少签名")
        sig_type, = struct.unpack_from('<I', data, len(data) - 8)
        algorithm = SIGNATURE_ALGORITHMS.get(sig_type)
        if algorithm is None:
            raise PharError(f"不支持的签名类型: 0x{sig_type:04x}")

        digest_size = hashlib.new(algorithm.value).digest_size
        digest_start = len(data) - 8 - digest_size
        if digest_start != payload_end:
            raise PharError("签名位置与条目数据不一致")

        expected = data[digest_start:len(data) - 8]
        actual = hashlib.new(algorithm.value, data[:digest_start]).digest()
        info.signature_algorithm = algorithm
        info.signature_hex = expected.hex()
        info.signature_valid = expected == actual

    def list_entries(self) -> List[PharEntryInfo]:
        return list(self.parse().entries)

    def get_entry(self, name: str) -> PharEntryInfo:
        for entry in self.parse().entries:
            if entry.name == name:
                return entry
        raise PharError(f"归档中不存在条目: {name}")

    def read_entry(self, name: str) -> bytes:
        """读取并解压条目内容，校验 CRC32

        Raises:
            PharError: 条目不存在、解压失败或校验失败
        """
        return self._read_entry(self.get_entry(name))

    def _read_entry(self, entry: PharEntryInfo) -> bytes:
        data = self._read_bytes()
        payload = data[entry.offset:entry.offset + entry.compressed_size]
        try:
            raw = CompressorFactory.from_flags(entry.flags).decompress(payload)
        except DecompressionError as e:
            raise PharError(f"解压条目失败 {entry.name}: {e}") from e

        if (zlib.crc32(raw) & MAX_UINT32) != entry.crc32 or len(raw) != entry.size:
            raise PharError(f"条目校验失败: {entry.name}")
        return raw

    def verify(self) -> bool:
        """校验签名和全部条目的 CRC32"""
        info = self.parse()
        if info.flags & PHAR_HDR_SIGNATURE and not info.signature_valid:
            return False
        try:
            for entry in info.entries:
                self._read_entry(entry)
        except PharError:
            return False
        return True

    def extract_to(self, output_dir: Union[str, Path]) -> int:
        """解压全部条目到目录

        Returns:
            int: 解压的总字节数

        Raises:
            PharError: 条目路径不安全或内容损坏
        """
        output_dir = ensure_directory(output_dir)
        total = 0
        for entry in self.parse().entries:
            parts = Path(entry.name).parts
            if '..' in parts or Path(entry.name).is_absolute():
                raise PharError(f"不安全的条目路径: {entry.name}")

            target = output_dir / entry.name
            ensure_directory(target.parent)
            raw = self._read_entry(entry)
            target.write_bytes(raw)
            if entry.permissions:
                os.chmod(target, entry.permissions)
            total += len(raw)
        return total
