"""
路径过滤器

根据包含规则和忽略规则判断相对路径是否参与打包。
忽略规则从路径开头或任一路径分量的开头匹配，包含规则在路径任意位置匹配，
均不区分大小写；忽略规则始终优先。忽略规则中的 ^ 只匹配整个路径的开头。
"""

import re
from typing import Iterable, List, Pattern

from ..config.loader import ConfigError


def _compile_patterns(patterns: Iterable[str]) -> List[Pattern[str]]:
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern, re.IGNORECASE))
        except re.error as e:
            raise ConfigError(f"无效的正则表达式 {pattern!r}: {e}") from e
    return compiled


class PathFilter:
    """路径过滤器

    规则在构造时一次性编译，无效的正则立即抛出 ConfigError。
    """

    def __init__(self, rules: Iterable[str] = (), ignore: Iterable[str] = ()):
        self._rules = _compile_patterns(rules)
        self._ignore = _compile_patterns(ignore)

    @classmethod
    def from_options(cls, options) -> 'PathFilter':
        return cls(options.rules, options.ignore)

    def ignore(self, path: str) -> bool:
        """任一忽略规则在路径开头或某个 / 之后匹配即忽略"""
        if not self._ignore:
            return False
        starts = [0] + [i + 1 for i, char in enumerate(path) if char == '/']
        return any(pattern.match(path, pos) for pattern in self._ignore for pos in starts)

    def rule(self, path: str) -> bool:
        """没有包含规则时接受所有路径，否则任一规则匹配即接受"""
        if not self._rules:
            return True
        return any(pattern.search(path) for pattern in self._rules)

    def include(self, path: str) -> bool:
        """路径是否参与打包"""
        if self.ignore(path):
            return False
        return self.rule(path)

    __call__ = include
