"""
路径过滤器单元测试
"""

import pytest

from pharkit.build.path_filter import PathFilter
from pharkit.config.loader import ConfigError


class TestIgnore:
    """忽略规则测试"""

    def test_empty_ignore_filters_nothing(self):
        path_filter = PathFilter()
        assert not path_filter.ignore("src/a.php")
        assert path_filter.include("src/a.php")

    def test_prefix_match(self):
        path_filter = PathFilter(ignore=["vendor"])
        assert path_filter.ignore("vendor")
        assert path_filter.ignore("vendor/autoload.php")
        assert path_filter.ignore("vendors.php")

    def test_matches_at_segment_start(self):
        path_filter = PathFilter(ignore=["tests"])
        assert path_filter.ignore("src/tests")
        assert path_filter.ignore("src/tests/b.php")
        assert not path_filter.ignore("src/mytests/b.php")

    def test_caret_pins_to_path_start(self):
        path_filter = PathFilter(ignore=["^vendor"])
        assert path_filter.ignore("vendor/x.php")
        assert not path_filter.ignore("lib/vendor/x.php")

    def test_case_insensitive(self):
        path_filter = PathFilter(ignore=["Tests"])
        assert path_filter.ignore("TESTS/a.php")
        assert path_filter.ignore("tests/a.php")

    def test_ignore_wins_over_rules(self):
        path_filter = PathFilter(rules=[r"\.php$"], ignore=["src/legacy"])
        assert not path_filter.include("src/legacy/old.php")
        assert path_filter.include("src/new.php")


class TestRules:
    """包含规则测试"""

    def test_empty_rules_accept_everything(self):
        path_filter = PathFilter(ignore=["build"])
        for path in ("a.php", "src/b.txt", "deep/nested/c"):
            assert path_filter.include(path) == (not path_filter.ignore(path))

    def test_unanchored_match(self):
        path_filter = PathFilter(rules=["util"])
        assert path_filter.rule("src/Util/Str.php")
        assert path_filter.rule("utility.php")
        assert not path_filter.rule("src/App.php")

    def test_any_rule_matches(self):
        path_filter = PathFilter(rules=[r"^src", r"\.stub$"])
        assert path_filter.include("src/App.php")
        assert path_filter.include("bin/run.stub")
        assert not path_filter.include("bin/run.sh")

    def test_callable(self):
        path_filter = PathFilter(rules=["keep"])
        assert list(filter(path_filter, ["keep.php", "drop.php"])) == ["keep.php"]


class TestInvalidPatterns:
    """无效正则测试"""

    @pytest.mark.parametrize("kwargs", [{"rules": ["("]}, {"ignore": ["[a-"]}])
    def test_invalid_regex_raises_config_error(self, kwargs):
        with pytest.raises(ConfigError):
            PathFilter(**kwargs)

    def test_from_options(self, make_options):
        options = make_options(rules=[r"\.php$"], exclude=["src/tests"])
        path_filter = PathFilter.from_options(options)
        assert path_filter.include("src/App.php")
        assert not path_filter.include("src/tests/AppTest.php")
        assert not path_filter.include("assets/logo.txt")
