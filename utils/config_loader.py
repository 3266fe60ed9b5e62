"""
通用配置加载器

功能：
- 支持加载JSON/YAML/INI配置文件
- 支持按段(section)读取
- 支持环境变量覆盖（带前缀）
- 支持简单的类型schema验证
"""

import json
import os
from configparser import ConfigParser
from typing import Dict, Any, List, Tuple
from pathlib import Path

import yaml

from .json_utils import load_json


class ConfigLoadError(Exception):
    """配置加载错误"""
    pass


class ConfigValidationError(Exception):
    """配置验证错误"""
    pass


class ConfigLoader:
    """
    通用配置加载器

    支持多种格式的配置文件加载和验证
    """

    FORMAT_MAP = {
        ".json": "json",
        ".yaml": "yaml",
        ".yml": "yaml",
        ".ini": "ini",
        ".cfg": "ini",
    }

    TYPE_MAP = {
        "string": str,
        "integer": int,
        "number": (int, float),
        "boolean": bool,
        "object": dict,
    }

    def load(self, path: str, format: str = "auto") -> Dict[str, Any]:
        """
        加载配置文件

        Args:
            path: 配置文件路径
            format: 文件格式 ("auto", "json", "yaml", "ini")

        Returns:
            Dict[str, Any]: 配置字典，空文件返回空字典

        Raises:
            ConfigLoadError: 加载失败时抛出
        """
        if not os.path.exists(path):
            raise ConfigLoadError(f"配置文件不存在: {path}")

        if format == "auto":
            format = self._detect_format(path)

        try:
            if format == "json":
                config = load_json(path)
            elif format == "yaml":
                with open(path, 'r', encoding='utf-8') as f:
                    config = yaml.safe_load(f)
            elif format == "ini":
                parser = ConfigParser()
                parser.read(path, encoding='utf-8')
                config = {section: dict(parser.items(section)) for section in parser.sections()}
            else:
                raise ConfigLoadError(f"不支持的配置格式: {format}")
        except ConfigLoadError:
            raise
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigLoadError(f"配置解析错误: {e}")
        except Exception as e:
            raise ConfigLoadError(f"加载配置文件失败: {e}")

        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ConfigLoadError(f"配置文件顶层必须是映射: {path}")

        return config

    def load_section(self, path: str, section: str) -> Dict[str, Any]:
        """
        加载配置文件中的某一段

        段不存在时返回空字典。
        """
        config = self.load(path)
        value = config.get(section) or {}
        if not isinstance(value, dict):
            raise ConfigLoadError(f"配置段 '{section}' 必须是映射")
        return value

    def _detect_format(self, path: str) -> str:
        """根据文件扩展名检测格式"""
        ext = Path(path).suffix.lower()
        if ext in self.FORMAT_MAP:
            return self.FORMAT_MAP[ext]
        raise ConfigLoadError(f"无法自动检测文件格式: {ext}")

    def load_from_env(self, prefix: str) -> Dict[str, str]:
        """
        从环境变量加载配置

        Args:
            prefix: 环境变量前缀，如 "CONTACT_WINDOWS_"

        Returns:
            Dict[str, str]: 去掉前缀并转为小写的键 -> 原始字符串值
        """
        result = {}
        prefix_lower = prefix.lower()

        for key, value in os.environ.items():
            key_lower = key.lower()
            if key_lower.startswith(prefix_lower):
                result[key_lower[len(prefix_lower):]] = value

        return result

    @staticmethod
    def coerce(value: Any, expected_type: str) -> Any:
        """
        将字符串值（环境变量、INI）转换为schema声明的类型

        Raises:
            ConfigValidationError: 无法转换
        """
        if not isinstance(value, str):
            return value
        text = value.strip()
        try:
            if expected_type == "integer":
                return int(text)
            if expected_type == "number":
                return float(text)
            if expected_type == "boolean":
                lowered = text.lower()
                if lowered in ("1", "true", "yes", "on"):
                    return True
                if lowered in ("0", "false", "no", "off"):
                    return False
                raise ValueError(f"not a boolean: {text!r}")
        except ValueError as e:
            raise ConfigValidationError(f"无法将 {value!r} 转换为 {expected_type}: {e}")
        return text

    def validate(self, config: Dict[str, Any], schema: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """
        验证配置

        Args:
            config: 配置字典
            schema: {"required": [...], "properties": {name: {"type": ...}}}

        Returns:
            Tuple[bool, List[str]]: (是否有效, 错误列表)
        """
        errors = []

        for field in schema.get("required", []):
            if field not in config:
                errors.append(f"缺少必需字段: {field}")

        for prop, prop_schema in schema.get("properties", {}).items():
            if prop not in config or "type" not in prop_schema:
                continue
            expected = self.TYPE_MAP.get(prop_schema["type"])
            value = config[prop]
            # bool是int的子类，数值字段不接受布尔值
            if expected is None:
                continue
            if not isinstance(value, expected) or (
                    isinstance(value, bool) and prop_schema["type"] != "boolean"):
                errors.append(
                    f"字段 '{prop}' 类型错误: 期望 {prop_schema['type']}, 实际 {type(value).__name__}"
                )

        unknown = set(config) - set(schema.get("properties", {}))
        if unknown and not schema.get("additionalProperties", True):
            errors.append(f"未知字段: {', '.join(sorted(unknown))}")

        return len(errors) == 0, errors
