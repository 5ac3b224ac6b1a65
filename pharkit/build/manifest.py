"""
打包清单

有序映射：包内相对路径 -> 源文件绝对路径。插入顺序即遍历顺序；
对已存在的相对路径再次写入时只替换源路径，位置不变。
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Union


@dataclass(frozen=True)
class ManifestEntry:
    """清单条目"""
    relative_path: str  # 包内路径，正斜杠分隔，无前导分隔符
    source_path: Path   # 源文件绝对路径

    def to_dict(self) -> Dict[str, str]:
        return {
            'path': self.relative_path,
            'source': str(self.source_path),
        }


class Manifest:
    """打包清单"""

    def __init__(self):
        self._entries: Dict[str, Path] = {}

    def add(self, relative_path: str, source_path: Union[str, Path]) -> None:
        """添加条目，相同相对路径后写入者生效"""
        self._entries[relative_path] = Path(source_path)

    def __setitem__(self, relative_path: str, source_path: Union[str, Path]) -> None:
        self.add(relative_path, source_path)

    def __getitem__(self, relative_path: str) -> Path:
        return self._entries[relative_path]

    def __contains__(self, relative_path: object) -> bool:
        return relative_path in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ManifestEntry]:
        for relative_path, source_path in self._entries.items():
            yield ManifestEntry(relative_path, source_path)

    def paths(self) -> List[str]:
        """按插入顺序返回全部相对路径"""
        return list(self._entries)

    def as_dict(self) -> Dict[str, Path]:
        return dict(self._entries)

    def total_size(self) -> int:
        """源文件总字节数（无法访问的文件计为 0）"""
        total = 0
        for source_path in self._entries.values():
            try:
                total += source_path.stat().st_size
            except OSError:
                pass
        return total

    def __repr__(self) -> str:
        return f"Manifest({len(self)} entries)"
