"""测试公共夹具"""

from pathlib import Path
from typing import Dict, Union

import pytest

from pharkit.config.loader import config_loader
from pharkit.config.schema import BuildOptions


def write_tree(root: Path, files: Dict[str, Union[str, bytes]]) -> Path:
    """按 {相对路径: 内容} 创建文件"""
    for relative_path, content in files.items():
        path = root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding='utf-8')
    return root


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """一个小型 PHP 项目"""
    root = tmp_path / "project"
    root.mkdir()
    write_tree(root, {
        "index.php": "<?php echo 'hello';\n",
        "src/App.php": "<?php class App {}\n",
        "src/Util/Str.php": "<?php class Str {}\n",
        "src/config.json": "{\"debug\": false}\n",
        "src/tests/AppTest.php": "<?php class AppTest {}\n",
        "assets/logo.txt": "logo",
        "assets/css/site.css": "body {}",
    })
    return root


@pytest.fixture
def make_options(project: Path):
    """按项目目录构造 BuildOptions"""
    def _make(**overrides) -> BuildOptions:
        return config_loader.load_from_dict(overrides, project)
    return _make


@pytest.fixture
def write_files():
    """返回 write_tree，便于测试内追加文件"""
    return write_tree
