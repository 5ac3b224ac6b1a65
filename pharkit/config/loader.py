"""
配置加载器

负责读取项目根目录下的构建配置文件（build.json / build.yaml），
按 默认值 ← 配置文件 ← 调用方覆盖 的顺序合并并验证为 BuildOptions。
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ..utils.logging import warning, debug, LogStage
from .schema import BuildOptions

# 项目根目录下按顺序查找的配置文件名
CONFIG_FILENAMES = ("build.json", "build.yaml", "build.yml")


class ConfigError(Exception):
    """配置错误基类"""
    pass


class ConfigValidationError(ConfigError):
    """配置验证错误"""

    def __init__(self, message: str, errors: List[Dict[str, Any]]):
        super().__init__(message)
        self.errors = errors

    def format_errors(self) -> str:
        """格式化错误信息为人类可读的格式"""
        formatted = []
        for error in self.errors:
            loc = " -> ".join(str(item) for item in error.get('loc', []))
            msg = error.get('msg', '未知错误')
            input_val = error.get('input', '')

            if loc:
                formatted.append(f"字段 '{loc}': {msg}")
                if input_val:
                    formatted.append(f"  输入值: {input_val}")
            else:
                formatted.append(f"根级别: {msg}")

        return "\n".join(formatted)

    def format_errors_json(self) -> str:
        """格式化错误信息为 JSON 格式"""
        return json.dumps(self.errors, ensure_ascii=False, indent=2, default=str)


def merge_options(
    file_config: Optional[Dict[str, Any]],
    *overrides: Optional[Dict[str, Any]],
) -> Dict[str, Any]:
    """按顺序合并配置层，后面的层覆盖前面的层

    配置文件层原样保留（"output": null 表示不打包）；覆盖层中值为 None 的键视为未设置。
    exclude 在每一层内先换算为 ignore。
    """
    def normalized(layer: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        layer = dict(layer or {})
        if 'exclude' in layer:
            layer['ignore'] = layer.pop('exclude')
        return layer

    merged = normalized(file_config)
    for layer in overrides:
        for key, value in normalized(layer).items():
            if value is not None:
                merged[key] = value
    return merged


class ConfigLoader:
    """配置加载器"""

    def __init__(self):
        self.yaml = YAML()
        self.yaml.preserve_quotes = True
        self.yaml.width = 4096  # 避免长行自动换行

    def find_config_file(self, base_path: Union[str, Path]) -> Optional[Path]:
        """查找项目根目录下的约定配置文件"""
        for name in CONFIG_FILENAMES:
            candidate = Path(base_path) / name
            if candidate.is_file():
                return candidate
        return None

    def read_config_file(self, config_path: Union[str, Path]) -> Dict[str, Any]:
        """读取并解析配置文件

        Args:
            config_path: 配置文件路径

        Returns:
            Dict: 原始配置字典

        Raises:
            ConfigError: 文件不存在、格式错误或根级别不是对象
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise ConfigError(f"配置文件不存在: {config_path}")

        if not config_path.is_file():
            raise ConfigError(f"配置路径不是文件: {config_path}")

        suffix = config_path.suffix.lower()
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                if suffix in ('.yaml', '.yml'):
                    raw_data = self.yaml.load(f)
                elif suffix == '.json':
                    raw_data = json.load(f)
                else:
                    raise ConfigError(f"配置文件必须是 .json、.yaml 或 .yml 格式: {config_path}")
        except json.JSONDecodeError as e:
            raise ConfigError(f"JSON 解析错误: {e}")
        except YAMLError as e:
            raise ConfigError(f"YAML 解析错误: {e}")
        except OSError as e:
            raise ConfigError(f"文件读取错误: {e}")

        if raw_data is None:
            raise ConfigError("配置文件为空")

        if not isinstance(raw_data, dict):
            raise ConfigError("配置文件根级别必须是对象/字典格式")

        return dict(raw_data)

    def load_project_config(self, base_path: Union[str, Path]) -> Dict[str, Any]:
        """读取项目根目录下的约定配置文件

        文件不存在或内容无效时返回空字典，不视为错误。
        """
        config_path = self.find_config_file(base_path)
        if config_path is None:
            debug(f"未找到配置文件，使用默认配置: {base_path}", stage=LogStage.INIT)
            return {}

        try:
            data = self.read_config_file(config_path)
        except ConfigError as e:
            warning(f"忽略无效的配置文件 {config_path}: {e}", stage=LogStage.INIT)
            return {}

        debug(f"已读取配置文件: {config_path}", stage=LogStage.INIT)
        return data

    def load_options(
        self,
        base_path: Union[str, Path],
        config_path: Optional[Union[str, Path]] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> BuildOptions:
        """加载并验证构建配置

        Args:
            base_path: 项目根目录
            config_path: 显式指定的配置文件；为空时查找约定文件
            overrides: 调用方覆盖项（值为 None 的键被忽略）

        Returns:
            BuildOptions: 验证后的配置

        Raises:
            ConfigError: 显式配置文件无法读取
            ConfigValidationError: 配置验证失败
        """
        if config_path is not None:
            file_config = self.read_config_file(config_path)
        else:
            file_config = self.load_project_config(base_path)

        return self.load_from_dict(merge_options(file_config, overrides), base_path)

    def load_from_dict(self, data: Dict[str, Any], base_path: Union[str, Path]) -> BuildOptions:
        """从字典加载配置

        Raises:
            ConfigValidationError: 配置验证错误
        """
        data = dict(data)
        data['base_path'] = Path(base_path)

        try:
            return BuildOptions.from_dict(data)
        except ValidationError as e:
            raise ConfigValidationError("配置验证失败", [error for error in e.errors()])

    def save_to_file(self, options: BuildOptions, output_path: Union[str, Path]) -> None:
        """保存配置到文件（按扩展名选择 JSON 或 YAML）

        Raises:
            ConfigError: 保存错误
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        data = options.to_dict()
        try:
            with open(output_path, 'w', encoding='utf-8') as f:
                if output_path.suffix.lower() in ('.yaml', '.yml'):
                    self.yaml.dump(data, f)
                else:
                    json.dump(data, f, ensure_ascii=False, indent=4)
        except OSError as e:
            raise ConfigError(f"保存配置文件失败: {e}")

    def validate(
        self,
        base_path: Union[str, Path],
        config_path: Optional[Union[str, Path]] = None,
    ) -> List[Dict[str, Any]]:
        """验证配置并返回错误列表，空列表表示验证通过"""
        try:
            self.load_options(base_path, config_path)
            return []
        except ConfigValidationError as e:
            return e.errors
        except ConfigError as e:
            return [{
                'loc': [],
                'msg': str(e),
                'type': 'config_error'
            }]


# 全局加载器实例
config_loader = ConfigLoader()


def load_options(
    base_path: Union[str, Path],
    config_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> BuildOptions:
    """便捷函数：加载构建配置"""
    return config_loader.load_options(base_path, config_path, overrides)


def load_project_config(base_path: Union[str, Path]) -> Dict[str, Any]:
    """便捷函数：读取项目约定配置文件"""
    return config_loader.load_project_config(base_path)


def validate_config(
    base_path: Union[str, Path],
    config_path: Optional[Union[str, Path]] = None,
) -> List[Dict[str, Any]]:
    """便捷函数：验证配置"""
    return config_loader.validate(base_path, config_path)


def save_config(options: BuildOptions, output_path: Union[str, Path]) -> None:
    """便捷函数：保存配置文件"""
    config_loader.save_to_file(options, output_path)
