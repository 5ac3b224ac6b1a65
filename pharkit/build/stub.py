"""
Stub 工具

生成默认的引导 stub，并把 stub 规范化为可写入归档的形式。
"""

import re
from pathlib import Path

HALT_COMPILER = b"__HALT_COMPILER();"
# 写入归档时 __HALT_COMPILER(); 之后固定追加的结束标记
STUB_TERMINATOR = b" ?>\r\n"
SHEBANG = "#!/usr/bin/env php\n"

_HALT_PATTERN = re.compile(re.escape(HALT_COMPILER), re.IGNORECASE)

DEFAULT_STUB_TEMPLATE = """<?php

Phar::mapPhar();
include 'phar://' . __FILE__ . '/{main}';

__HALT_COMPILER();
"""


class StubError(Exception):
    """Stub 错误"""
    pass


def create_default_stub(main: str, shebang: bool = True) -> bytes:
    """生成默认 stub

    执行归档时把自身映射为 phar:// 虚拟文件系统，然后载入入口文件。

    Args:
        main: 归档内的入口文件
        shebang: 是否在首行加入 #!/usr/bin/env php
    """
    main = main.replace('\\', '/').lstrip('/').replace("'", "\\'")
    stub = DEFAULT_STUB_TEMPLATE.format(main=main)
    if shebang:
        stub = SHEBANG + stub
    return stub.encode('utf-8')


def load_stub(stub_path: Path) -> bytes:
    """读取自定义 stub 的原始字节

    Raises:
        StubError: 文件不存在或无法读取
    """
    try:
        return Path(stub_path).read_bytes()
    except OSError as e:
        raise StubError(f"无法读取 stub 文件 {stub_path}: {e}") from e


def find_halt_offset(data: bytes) -> int:
    """返回 __HALT_COMPILER(); 之后的偏移量，找不到时返回 -1"""
    match = _HALT_PATTERN.search(data)
    if match is None:
        return -1
    return match.end()


def normalize_stub(stub: bytes) -> bytes:
    """截断到 __HALT_COMPILER(); 并追加结束标记

    Raises:
        StubError: stub 中缺少 __HALT_COMPILER();
    """
    end = find_halt_offset(stub)
    if end < 0:
        raise StubError("无效的 stub：缺少 __HALT_COMPILER();")
    return stub[:end] + STUB_TERMINATOR
