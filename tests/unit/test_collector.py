"""
文件收集器单元测试

测试目录遍历、过滤规则、扩展名策略和清单合并。
"""

import os
from pathlib import Path

import pytest

from pharkit.build.collector import ManifestBuilder, TreeWalker, build_manifest, file_extension
from pharkit.build.manifest import Manifest, ManifestEntry
from pharkit.build.path_filter import PathFilter
from pharkit.config.schema import ExtensionPolicy


class TestFileExtension:
    """扩展名解析测试"""

    @pytest.mark.parametrize("path,expected", [
        ("a.php", "php"),
        ("src/a.tar.gz", "gz"),
        ("src/README", ""),
        ("src.d/README", ""),
        (".htaccess", "htaccess"),
    ])
    def test_file_extension(self, path, expected):
        assert file_extension(path) == expected


class TestManifest:
    """清单测试"""

    def test_last_write_wins_keeps_position(self):
        manifest = Manifest()
        manifest["a.php"] = "/one/a.php"
        manifest["b.php"] = "/one/b.php"
        manifest["a.php"] = "/two/a.php"

        assert manifest.paths() == ["a.php", "b.php"]
        assert manifest["a.php"] == Path("/two/a.php")
        assert len(manifest) == 2

    def test_iteration_yields_entries(self):
        manifest = Manifest()
        manifest.add("x.php", "/src/x.php")
        entries = list(manifest)
        assert entries == [ManifestEntry("x.php", Path("/src/x.php"))]
        assert entries[0].to_dict() == {'path': "x.php", 'source': str(Path("/src/x.php"))}


class TestTreeWalker:
    """目录遍历测试"""

    def test_scenario_ignored_subdirectory(self, project, make_options):
        """ignore=["tests"] 时 src/tests 整棵子树被跳过"""
        options = make_options(directories=["src"], ignore=["tests"])
        manifest = build_manifest(options)

        assert "src/App.php" in manifest
        assert "src/Util/Str.php" in manifest
        assert not any("tests" in path for path in manifest.paths())

    def test_excluded_directory_is_not_listed(self, project, make_options, monkeypatch):
        """被排除的目录不会被读取"""
        listed = []
        original = TreeWalker._list_directory

        def spy(self, real_path):
            listed.append(Path(real_path).name)
            return original(self, real_path)

        monkeypatch.setattr(TreeWalker, "_list_directory", spy)
        build_manifest(make_options(directories=["src"], ignore=["src/tests"]))

        assert "tests" not in listed
        assert "src" in listed

    def test_scenario_php_always_allowed(self, project, make_options, write_files):
        """extensions 只有 stub 时 .php 文件仍被接受"""
        write_files(project, {"run.php": "<?php\n"})
        manifest = build_manifest(make_options(files=["run.php"], extensions=["stub"]))

        assert manifest.paths() == ["run.php"]

    def test_allowlist_rejects_other_extensions(self, project, make_options):
        manifest = build_manifest(make_options(directories=["src", "assets"]))

        assert "src/config.json" not in manifest
        assert "assets/logo.txt" not in manifest
        assert "src/App.php" in manifest

    def test_extra_extensions(self, project, make_options):
        manifest = build_manifest(make_options(directories=["src"], extensions=[".json"]))
        assert "src/config.json" in manifest

    def test_any_policy_accepts_everything(self, project, make_options):
        manifest = build_manifest(make_options(directories=["assets"], extension_policy="any"))
        assert manifest.paths() == ["assets/css/site.css", "assets/logo.txt"]

    def test_sorted_traversal_order(self, project, make_options):
        manifest = build_manifest(make_options(directories=["src"]))
        assert manifest.paths() == [
            "src/App.php",
            "src/Util/Str.php",
            "src/tests/AppTest.php",
        ]

    def test_paths_are_normalized(self, project, make_options):
        manifest = build_manifest(make_options(directories=["/src/Util/"], files=["\\index.php"]))
        assert manifest.paths() == ["src/Util/Str.php", "index.php"]

    def test_source_paths_are_absolute(self, project, make_options):
        options = make_options(files=["index.php"])
        manifest = build_manifest(options)
        assert manifest["index.php"] == options.base_path / "index.php"
        assert manifest["index.php"].is_absolute()

    def test_missing_path_is_skipped(self, project, make_options):
        manifest = build_manifest(make_options(directories=["nope"], files=["missing.php"]))
        assert len(manifest) == 0

    def test_rules_filter_directories_too(self, project, make_options):
        """包含规则同样作用在目录路径上"""
        manifest = build_manifest(make_options(directories=["src"], rules=[r"\.php$"]))
        assert len(manifest) == 0

    def test_selection_is_deterministic(self, project, make_options):
        options = make_options(directories=["src", "assets"], files=["index.php"], extension_policy="any")
        first = build_manifest(options).as_dict()
        second = build_manifest(options).as_dict()
        assert first == second

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="需要符号链接支持")
    def test_symlink_loop_is_not_followed(self, project, make_options):
        loop = project / "src" / "Util" / "loop"
        try:
            loop.symlink_to(project / "src", target_is_directory=True)
        except OSError:
            pytest.skip("无法创建符号链接")

        manifest = build_manifest(make_options(directories=["src"], ignore=["tests"]))

        assert "src/App.php" in manifest
        assert "src/Util/Str.php" in manifest
        assert not any(path.startswith("src/Util/loop") for path in manifest.paths())

    def test_walker_without_options(self, project):
        walker = TreeWalker(project, PathFilter(), ExtensionPolicy.ALLOWLIST)
        manifest = Manifest()
        walker.walk("src/Util", manifest)
        assert manifest.paths() == ["src/Util/Str.php"]


class TestManifestBuilder:
    """清单构建测试"""

    def test_directories_then_files(self, project, make_options):
        manifest = ManifestBuilder().build(make_options(directories=["src/Util"], files=["index.php"]))
        assert manifest.paths() == ["src/Util/Str.php", "index.php"]

    def test_overlap_last_write_wins(self, project, make_options):
        manifest = ManifestBuilder().build(
            make_options(directories=["src/Util"], files=["src/Util/Str.php"])
        )
        assert manifest.paths() == ["src/Util/Str.php"]
