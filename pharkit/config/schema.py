"""
配置 Schema 定义

使用 Pydantic 定义构建配置模型。原始 JSON/YAML 字典只在加载边界出现，
之后统一转换为只读的 BuildOptions。
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from pydantic import BaseModel, Field, ValidationInfo, field_validator, model_validator

from ..utils.paths import join_paths

# 归档模式下始终允许的扩展名
BUILTIN_EXTENSIONS = ("php", "stub")

DEFAULT_OUTPUT = "app.phar"
DEFAULT_MAIN = "index.php"
DEFAULT_DIST = "dist"


class CompressMode(str, Enum):
    """归档条目压缩方式"""
    NONE = "none"
    GZIP = "gzip"
    BZIP2 = "bzip2"

    @classmethod
    def parse(cls, value: Any) -> "CompressMode":
        """解析配置值，无法识别的值一律降级为 none"""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.NONE
        return _COMPRESS_ALIASES.get(value.strip().lower(), cls.NONE)


_COMPRESS_ALIASES = {
    "none": CompressMode.NONE,
    "gz": CompressMode.GZIP,
    "gzip": CompressMode.GZIP,
    "bz2": CompressMode.BZIP2,
    "bzip2": CompressMode.BZIP2,
}


class ExtensionPolicy(str, Enum):
    """文件扩展名策略"""
    ALLOWLIST = "allowlist"  # 只接受 php/stub 以及 extensions 中的扩展名
    ANY = "any"              # 接受所有通过规则过滤的文件


class RemovalPolicy(str, Enum):
    """旧产物删除失败时的处理策略"""
    BEST_EFFORT = "best-effort"
    STRICT = "strict"


class SignatureAlgorithm(str, Enum):
    """归档签名算法"""
    MD5 = "md5"
    SHA1 = "sha1"
    SHA256 = "sha256"
    SHA512 = "sha512"


def _as_list(value: Any) -> Any:
    """单个字符串视为只有一项的列表"""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return value


class CopyEntry(BaseModel):
    """附加复制条目"""
    source: str = Field(..., description="源路径（相对于项目根目录）", min_length=1)
    dest: str = Field(..., description="目标路径（相对于输出目录）", min_length=1)

    model_config = {"frozen": True}


class BuildOptions(BaseModel):
    """构建配置主模型

    加载完成后不可修改。所有相对路径均以 base_path 为基准。
    """

    base_path: Path = Field(..., description="项目根目录")
    dist: Optional[Path] = Field(None, description="输出目录，默认 <base_path>/dist", validate_default=True)
    output: str = Field(DEFAULT_OUTPUT, description="归档文件名，为空时只复制文件不打包")
    alias: Optional[str] = Field(None, description="归档内部别名，默认与 output 相同")
    main: str = Field(DEFAULT_MAIN, description="归档入口文件", min_length=1)

    directories: List[str] = Field(default_factory=list, description="要打包的目录列表")
    files: List[str] = Field(default_factory=list, description="要打包的文件列表")
    rules: List[str] = Field(default_factory=list, description="包含规则（正则，任意位置匹配）")
    ignore: List[str] = Field(default_factory=list, description="忽略规则（正则，从路径开头匹配）")
    extensions: List[str] = Field(default_factory=list, description="额外允许的扩展名")
    extension_policy: ExtensionPolicy = Field(ExtensionPolicy.ALLOWLIST, description="扩展名策略")

    stub: Optional[str] = Field(None, description="自定义 stub 文件路径")
    shebang: bool = Field(True, description="默认 stub 是否带 #!/usr/bin/env php 行")
    compress: CompressMode = Field(CompressMode.NONE, description="压缩方式")
    signature: SignatureAlgorithm = Field(SignatureAlgorithm.SHA1, description="签名算法")

    copy_entries: List[CopyEntry] = Field(default_factory=list, alias="copy", description="附加复制列表")
    clear: bool = Field(False, description="构建前是否清空输出目录")
    removal_policy: RemovalPolicy = Field(RemovalPolicy.BEST_EFFORT, description="旧产物删除策略")
    sort_entries: bool = Field(True, description="遍历目录时是否按名称排序")

    model_config = {
        "extra": "forbid",
        "frozen": True,
        "populate_by_name": True,
    }

    @model_validator(mode='before')
    @classmethod
    def apply_exclude_synonym(cls, data: Any) -> Any:
        """exclude 是 ignore 的同义键，存在时覆盖 ignore"""
        if isinstance(data, dict) and 'exclude' in data:
            data = dict(data)
            data['ignore'] = data.pop('exclude')
        return data

    @field_validator('base_path')
    @classmethod
    def validate_base_path(cls, v: Path) -> Path:
        """项目根目录必须存在且为目录"""
        path = Path(v).expanduser().resolve()
        if not path.is_dir():
            raise ValueError(f"项目根目录不存在或不是目录: {path}")
        return path

    @field_validator('dist')
    @classmethod
    def resolve_dist(cls, v: Optional[Path], info: ValidationInfo) -> Optional[Path]:
        """相对输出目录以项目根目录为基准"""
        base_path = info.data.get('base_path')
        if base_path is None:
            return v
        if v is None:
            return Path(join_paths(base_path, DEFAULT_DIST))
        path = Path(v).expanduser()
        if not path.is_absolute():
            path = Path(join_paths(base_path, str(v)))
        return path

    @field_validator('output', mode='before')
    @classmethod
    def validate_output(cls, v: Any) -> Any:
        """null 和 false 都表示不打包"""
        if v is None or v is False:
            return ""
        return v

    @field_validator('output', 'main', 'alias', 'stub', mode='before')
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator('directories', 'files', 'rules', 'ignore', 'extensions', mode='before')
    @classmethod
    def coerce_list(cls, v: Any) -> Any:
        return _as_list(v)

    @field_validator('rules', 'ignore')
    @classmethod
    def validate_patterns(cls, v: List[str]) -> List[str]:
        """正则在加载时编译一次，配置错误立即失败"""
        for pattern in v:
            try:
                re.compile(pattern, re.IGNORECASE)
            except re.error as e:
                raise ValueError(f"无效的正则表达式 {pattern!r}: {e}")
        return v

    @field_validator('extensions')
    @classmethod
    def normalize_extensions(cls, v: List[str]) -> List[str]:
        cleaned = []
        for ext in v:
            ext = ext.strip().lstrip('.')
            if ext and ext not in cleaned:
                cleaned.append(ext)
        return cleaned

    @field_validator('compress', mode='before')
    @classmethod
    def parse_compress(cls, v: Any) -> CompressMode:
        return CompressMode.parse(v)

    @field_validator('copy_entries', mode='before')
    @classmethod
    def normalize_copy(cls, v: Any) -> Any:
        """列表项：源与目标相同；映射项：键为源，值为目标"""
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        if isinstance(v, dict):
            return [{'source': str(key), 'dest': value} for key, value in v.items()]
        entries = []
        for item in v:
            if isinstance(item, str):
                entries.append({'source': item, 'dest': item})
            else:
                entries.append(item)
        return entries

    # --- 便捷访问 ---

    @property
    def dist_path(self) -> Path:
        assert self.dist is not None
        return self.dist

    @property
    def is_archive_mode(self) -> bool:
        """output 为空时进入纯复制模式"""
        return bool(self.output)

    @property
    def output_path(self) -> Optional[Path]:
        if not self.is_archive_mode:
            return None
        return Path(join_paths(self.dist_path, self.output))

    @property
    def archive_alias(self) -> str:
        return self.alias or self.output

    def has_inputs(self) -> bool:
        return bool(self.directories or self.files)

    def allowed_extensions(self) -> Set[str]:
        return set(BUILTIN_EXTENSIONS) | set(self.extensions)

    def source_path(self, relative_path: str) -> Path:
        """项目内相对路径对应的绝对路径"""
        return Path(join_paths(self.base_path, relative_path))

    def dest_path(self, relative_path: str) -> Path:
        """输出目录内相对路径对应的绝对路径"""
        return Path(join_paths(self.dist_path, relative_path))

    def stub_path(self) -> Optional[Path]:
        if not self.stub:
            return None
        return self.source_path(self.stub)

    def to_dict(self) -> Dict[str, Any]:
        """转换为可写入配置文件的字典（不含 base_path）"""
        data = self.model_dump(mode='json', by_alias=True, exclude={'base_path'}, exclude_none=True)

        try:
            data['dist'] = self.dist_path.relative_to(self.base_path).as_posix()
        except ValueError:
            data['dist'] = str(self.dist_path)

        if all(entry.source == entry.dest for entry in self.copy_entries):
            data['copy'] = [entry.source for entry in self.copy_entries]
        else:
            data['copy'] = {entry.source: entry.dest for entry in self.copy_entries}
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BuildOptions':
        """从字典创建配置实例"""
        return cls.model_validate(data)

