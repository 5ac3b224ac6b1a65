"""
构建管道单元测试

测试构建管道、构建步骤、构建上下文以及端到端构建场景。
"""

import hashlib
from unittest.mock import MagicMock, patch

import pytest

from pharkit.build.build_context import BuildContext, BuildError, BuildResult
from pharkit.build.build_pipeline import BuildPipeline
from pharkit.build.builder import Builder
from pharkit.build.checksum import read_checksum_file
from pharkit.build.phar import PharReader
from pharkit.build.steps.build_step import BuildStep


class MockBuildStep(BuildStep):
    """模拟构建步骤"""

    def __init__(self, name="mock", description="Mock step", progress_range=(0, 10), error=None):
        super().__init__(name, description)
        self._progress_range = progress_range
        self._error = error
        self.execute_called = False

    def get_progress_range(self):
        return self._progress_range

    def execute(self, context):
        self.execute_called = True
        if self._error is not None:
            raise self._error
        context.build_stats['mock_processed'] = True


class TestBuildContext:
    """BuildContext / BuildResult 测试"""

    def test_defaults(self, make_options):
        context = BuildContext(options=make_options())
        assert context.manifest is None
        assert context.result is None
        assert context.build_stats['total_files'] == 0

    def test_report(self, make_options):
        callback = MagicMock()
        context = BuildContext(options=make_options(), progress_callback=callback)
        context.report("收集", 30, "detail")
        callback.assert_called_once_with("收集", 30, 100, "detail")

    def test_summary(self, tmp_path):
        assert "没有需要构建的内容" in BuildResult(success=True, skipped=True).summary()
        assert "boom" in BuildResult(success=False, error="boom").summary()

        result = BuildResult(success=True, total_files=3, elapsed_seconds=0.5,
                             output_path=tmp_path / "app.phar", size_bytes=2048)
        summary = result.summary()
        assert "3" in summary
        assert "app.phar" in summary
        assert "2.0 KB" in summary

    def test_to_dict(self):
        data = BuildResult(success=True, total_files=1, checksum_hex="ab").to_dict()
        assert data['success'] is True
        assert data['checksum'] == "ab"
        assert data['output_path'] is None


class TestBuildPipeline:
    """BuildPipeline 测试"""

    def test_default_steps(self):
        pipeline = BuildPipeline()
        assert [step.name for step in pipeline.get_steps()] == ["prepare", "clear", "collect", "assemble", "copy"]
        assert pipeline.validate_pipeline() == []

    def test_add_and_remove_step(self):
        pipeline = BuildPipeline()
        step = MockBuildStep(name="extra", progress_range=(100, 110))
        pipeline.add_step(step)
        assert pipeline.get_steps()[-1] is step
        assert any("100%" in err for err in pipeline.validate_pipeline())

        pipeline.remove_step("extra")
        assert pipeline.validate_pipeline() == []

    def test_add_step_at_position(self):
        pipeline = BuildPipeline()
        step = MockBuildStep(name="first")
        pipeline.add_step(step, position=0)
        assert pipeline.get_steps()[0] is step

    def test_validate_gap(self):
        pipeline = BuildPipeline()
        pipeline.remove_step("clear")
        errors = pipeline.validate_pipeline()
        assert any("collect" in err for err in errors)

    def test_validate_empty(self):
        pipeline = BuildPipeline()
        for step in pipeline.get_steps():
            pipeline.remove_step(step.name)
        assert pipeline.validate_pipeline() == ["构建管道中没有步骤"]

    def test_step_error_propagates(self, make_options):
        pipeline = BuildPipeline()
        failing = MockBuildStep(name="fail", error=BuildError("boom"))
        pipeline.add_step(failing, position=0)

        with pytest.raises(BuildError):
            pipeline.execute(make_options(files=["index.php"]))
        assert failing.execute_called

    def test_progress_reaches_100(self, make_options):
        reported = []
        BuildPipeline().execute(
            make_options(files=["index.php"]),
            progress_callback=lambda stage, current, total, msg: reported.append(current),
        )
        assert reported[-1] == 100
        assert reported == sorted(reported)


class TestBuilder:
    """Builder 端到端测试"""

    def test_nothing_to_build(self, project, make_options):
        options = make_options(clear=True)
        result = Builder().build(options)

        assert result.success
        assert result.skipped
        assert not options.dist_path.exists()

    def test_archive_build(self, project, make_options):
        options = make_options(directories=["src"], files=["index.php"], ignore=["tests"], compress="gzip")
        result = Builder().build(options)

        assert result.success, result.error
        assert not result.skipped
        assert result.total_files == 3
        assert result.elapsed_seconds >= 0
        assert result.output_path == options.dist_path / "app.phar"
        assert read_checksum_file(result.output_path) == result.checksum_hex
        assert PharReader(result.output_path).verify()

    def test_clear_before_build(self, project, make_options, write_files):
        """clear 为真时旧文件被删除"""
        options = make_options(files=["index.php"], clear=True)
        write_files(options.dist_path, {"old.txt": "old", "old_dir/x.txt": "x"})

        result = Builder().build(options)

        assert result.success
        assert not (options.dist_path / "old.txt").exists()
        assert not (options.dist_path / "old_dir").exists()
        assert (options.dist_path / "app.phar").exists()

    def test_no_clear_keeps_files(self, project, make_options, write_files):
        options = make_options(files=["index.php"])
        write_files(options.dist_path, {"old.txt": "old"})
        Builder().build(options)
        assert (options.dist_path / "old.txt").exists()

    def test_gzip_builds_are_reproducible(self, project, make_options):
        """相同输入两次构建得到相同校验值"""
        options = make_options(directories=["src"], files=["index.php"], compress="gzip")

        first = Builder().build(options)
        second = Builder().build(options)

        assert first.checksum_hex == second.checksum_hex
        assert first.checksum_hex == hashlib.md5(options.output_path.read_bytes()).hexdigest()

    def test_copy_mode_with_copy_map(self, project, make_options):
        """纯复制模式下附加目录与源目录完全一致"""
        options = make_options(output="", files=["index.php"], copy={"assets": "assets"})
        result = Builder().build(options)

        assert result.success
        assert result.output_path is None

        source_root = options.base_path / "assets"
        dest_root = options.dist_path / "assets"
        source_files = sorted(p.relative_to(source_root) for p in source_root.rglob("*"))
        dest_files = sorted(p.relative_to(dest_root) for p in dest_root.rglob("*"))
        assert source_files == dest_files
        for relative in source_files:
            if (source_root / relative).is_file():
                assert (dest_root / relative).read_bytes() == (source_root / relative).read_bytes()
        assert (options.dist_path / "index.php").exists()

    def test_copy_runs_after_archive(self, project, make_options):
        options = make_options(files=["index.php"], copy=["assets/logo.txt"])
        Builder().build(options)
        assert (options.dist_path / "assets/logo.txt").read_text() == "logo"
        assert (options.dist_path / "app.phar").exists()

    def test_assembly_failure_becomes_result(self, project, make_options, write_files):
        write_files(project, {"bad_stub.php": "<?php echo 1;"})
        result = Builder().build(make_options(files=["index.php"], stub="bad_stub.php"))

        assert not result.success
        assert "__HALT_COMPILER" in result.error

    def test_unwritable_destination(self, project, make_options, write_files):
        write_files(project, {"blocker": "file, not a directory"})
        result = Builder().build(make_options(files=["index.php"], dist="blocker/dist"))

        assert not result.success
        assert result.error

    def test_clear_failure_becomes_result(self, project, make_options):
        options = make_options(files=["index.php"], clear=True)
        with patch("pharkit.build.steps.clear_step.clear_directory", side_effect=PermissionError("denied")):
            result = Builder().build(options)

        assert not result.success
        assert "denied" in result.error

    def test_validate_build_pipeline(self):
        assert Builder().validate_build_pipeline() == []
