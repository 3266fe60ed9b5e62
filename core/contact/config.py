"""
接触窗口计算配置

配置来源优先级（后者覆盖前者）：
1. 内置默认值
2. 配置文件中的 contact_windows 段（YAML/JSON/INI）
3. CONTACT_WINDOWS_ 前缀的环境变量
"""

import os
import logging
from dataclasses import dataclass, field, fields, asdict
from typing import Dict, Any, Optional

from core.orbit.utils import EARTH_RADIUS_KM, MIN_PLAUSIBLE_RADIUS_KM, MAX_PLAUSIBLE_RADIUS_KM
from utils.config_loader import ConfigLoader, ConfigValidationError

logger = logging.getLogger(__name__)


CONFIG_SECTION = "contact_windows"
ENV_PREFIX = "CONTACT_WINDOWS_"

CONFIG_SCHEMA = {
    "properties": {
        "step_seconds": {"type": "number"},
        "horizon_minutes": {"type": "number"},
        "minimum_elevation_threshold_deg": {"type": "number"},
        "earth_radius_km": {"type": "number"},
        "close_open_pass_at_horizon": {"type": "boolean"},
        "max_workers": {"type": "integer"},
        "pair_timeout_seconds": {"type": "number"},
        "min_radius_km": {"type": "number"},
        "max_radius_km": {"type": "number"},
        "sqlite_path": {"type": "string"},
    },
    "additionalProperties": False,
}


def default_max_workers() -> int:
    """计算线程池默认大小"""
    return min(32, (os.cpu_count() or 1) * 2)


@dataclass
class ContactWindowConfig:
    """
    接触窗口计算配置

    Attributes:
        step_seconds: 扫描步长（秒）
        horizon_minutes: 预报时长（分钟）
        minimum_elevation_threshold_deg: 窗口持久化的最小峰值仰角（度）
        earth_radius_km: 球形地球近似半径（千米）
        close_open_pass_at_horizon: 扫描结束时是否闭合未结束的过境
        max_workers: 计算线程池大小
        pair_timeout_seconds: 单对写入超时（秒）
        min_radius_km: 合理ECI矢径下限
        max_radius_km: 合理ECI矢径上限
        sqlite_path: 窗口数据库路径
    """
    step_seconds: float = 10.0
    horizon_minutes: float = 1440.0
    minimum_elevation_threshold_deg: float = 10.0
    earth_radius_km: float = EARTH_RADIUS_KM
    close_open_pass_at_horizon: bool = False
    max_workers: int = field(default_factory=default_max_workers)
    pair_timeout_seconds: float = 30.0
    min_radius_km: float = MIN_PLAUSIBLE_RADIUS_KM
    max_radius_km: float = MAX_PLAUSIBLE_RADIUS_KM
    sqlite_path: str = "./data/contact_windows.db"

    def __post_init__(self):
        errors = []
        if self.step_seconds <= 0:
            errors.append(f"step_seconds must be positive, got {self.step_seconds}")
        if self.horizon_minutes <= 0:
            errors.append(f"horizon_minutes must be positive, got {self.horizon_minutes}")
        if not -90.0 <= self.minimum_elevation_threshold_deg <= 90.0:
            errors.append(
                f"minimum_elevation_threshold_deg must be within [-90, 90], "
                f"got {self.minimum_elevation_threshold_deg}"
            )
        if self.earth_radius_km <= 0:
            errors.append(f"earth_radius_km must be positive, got {self.earth_radius_km}")
        if self.max_workers < 1:
            errors.append(f"max_workers must be at least 1, got {self.max_workers}")
        if self.pair_timeout_seconds <= 0:
            errors.append(f"pair_timeout_seconds must be positive, got {self.pair_timeout_seconds}")
        if not 0 <= self.min_radius_km < self.max_radius_km:
            errors.append(
                f"plausible radius band invalid: [{self.min_radius_km}, {self.max_radius_km}]"
            )
        if errors:
            raise ConfigValidationError("; ".join(errors))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ContactWindowConfig':
        """
        从字典创建配置（字符串值按schema转换类型）

        Raises:
            ConfigValidationError: 未知字段、类型错误或取值非法
        """
        properties = CONFIG_SCHEMA["properties"]
        coerced = {}
        for key, value in data.items():
            if key in properties:
                value = ConfigLoader.coerce(value, properties[key]["type"])
            coerced[key] = value

        # 整数字段允许写成 4.0
        if isinstance(coerced.get("max_workers"), float) and coerced["max_workers"].is_integer():
            coerced["max_workers"] = int(coerced["max_workers"])

        valid, errors = ConfigLoader().validate(coerced, CONFIG_SCHEMA)
        if not valid:
            raise ConfigValidationError("; ".join(errors))
        return cls(**coerced)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def replace(self, **changes) -> 'ContactWindowConfig':
        """返回修改了部分字段的新配置"""
        data = self.to_dict()
        data.update(changes)
        return ContactWindowConfig.from_dict(data)


def load_config(path: Optional[str] = None,
                env_prefix: str = ENV_PREFIX,
                overrides: Optional[Dict[str, Any]] = None) -> ContactWindowConfig:
    """
    加载接触窗口配置

    Args:
        path: 配置文件路径，为None时只使用默认值与环境变量
        env_prefix: 环境变量前缀
        overrides: 调用方显式覆盖（优先级最高，如命令行参数）

    Returns:
        ContactWindowConfig

    Raises:
        ConfigLoadError: 配置文件无法读取
        ConfigValidationError: 配置值非法
    """
    loader = ConfigLoader()
    data: Dict[str, Any] = {}

    if path:
        data.update(loader.load_section(path, CONFIG_SECTION))
        logger.debug(f"Loaded contact window config from {path}")

    known = {f.name for f in fields(ContactWindowConfig)}
    for key, value in loader.load_from_env(env_prefix).items():
        # 环境变量中的未知键忽略（如同前缀的其他工具变量）
        if key in known:
            data[key] = value

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})

    return ContactWindowConfig.from_dict(data)
