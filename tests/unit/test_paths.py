"""
路径工具单元测试
"""

import os

import pytest

from pharkit.utils.paths import (
    clear_directory,
    ensure_directory,
    format_size,
    join_paths,
    normalize_relative_path,
    xcopy,
)


class TestJoinPaths:
    """路径拼接测试"""

    def test_trims_separators(self):
        assert join_paths("/base/", "/src/", "a.php") == os.sep.join(["/base", "src", "a.php"])

    def test_drops_empty_parts(self):
        assert join_paths("/base", "", "/", "a.php") == os.sep.join(["/base", "a.php"])

    def test_only_first(self):
        assert join_paths("/base/") == "/base" + os.sep


class TestNormalizeRelativePath:

    @pytest.mark.parametrize("raw,expected", [
        ("/src/", "src"),
        ("src\\Util\\Str.php", "src/Util/Str.php"),
        ("\\\\index.php", "index.php"),
        ("", ""),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_relative_path(raw) == expected


class TestXcopy:
    """xcopy 测试"""

    def test_copy_file_creates_parents(self, tmp_path):
        source = tmp_path / "a.txt"
        source.write_bytes(b"data")
        dest = tmp_path / "out" / "deep" / "a.txt"

        xcopy(source, dest)

        assert dest.read_bytes() == b"data"

    def test_copy_file_overwrites(self, tmp_path):
        source = tmp_path / "a.txt"
        source.write_text("new")
        dest = tmp_path / "b.txt"
        dest.write_text("old")

        xcopy(source, dest)

        assert dest.read_text() == "new"

    def test_copy_directory_mirrors_tree(self, tmp_path, write_files):
        source = write_files(tmp_path / "src", {"a.txt": "a", "sub/b.txt": "b", "sub/deeper/c.txt": "c"})
        (source / "empty").mkdir()
        dest = tmp_path / "dest"

        xcopy(source, dest)

        assert (dest / "a.txt").read_text() == "a"
        assert (dest / "sub/b.txt").read_text() == "b"
        assert (dest / "sub/deeper/c.txt").read_text() == "c"
        assert (dest / "empty").is_dir()

    def test_directory_permissions(self, tmp_path, write_files):
        source = write_files(tmp_path / "src", {"sub/a.txt": "a"})
        dest = tmp_path / "dest"
        old_umask = os.umask(0)
        try:
            xcopy(source, dest, permissions=0o750)
        finally:
            os.umask(old_umask)
        assert (dest / "sub").stat().st_mode & 0o777 == 0o750

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="需要符号链接支持")
    def test_symlink_is_recreated(self, tmp_path):
        target = tmp_path / "target.txt"
        target.write_text("t")
        link = tmp_path / "link.txt"
        try:
            link.symlink_to("target.txt")
        except OSError:
            pytest.skip("无法创建符号链接")

        dest = tmp_path / "out" / "link.txt"
        xcopy(link, dest)
        xcopy(link, dest)

        assert dest.is_symlink()
        assert os.readlink(dest) == "target.txt"

    def test_missing_source(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            xcopy(tmp_path / "missing", tmp_path / "dest")


class TestClearDirectory:
    """clear_directory 测试"""

    def test_removes_contents_keeps_root(self, tmp_path, write_files):
        root = write_files(tmp_path / "dist", {"old.txt": "x", "sub/nested.txt": "y"})

        clear_directory(root)

        assert root.is_dir()
        assert list(root.iterdir()) == []

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="需要符号链接支持")
    def test_symlinked_directory_is_unlinked_not_followed(self, tmp_path, write_files):
        outside = write_files(tmp_path / "outside", {"keep.txt": "k"})
        root = ensure_directory(tmp_path / "dist")
        try:
            (root / "link").symlink_to(outside, target_is_directory=True)
        except OSError:
            pytest.skip("无法创建符号链接")

        clear_directory(root)

        assert list(root.iterdir()) == []
        assert (outside / "keep.txt").exists()


class TestFormatSize:

    @pytest.mark.parametrize("size,expected", [
        (0, "0 B"),
        (512, "512 B"),
        (2048, "2.0 KB"),
        (5 * 1024 * 1024, "5.0 MB"),
    ])
    def test_format_size(self, size, expected):
        assert format_size(size) == expected
