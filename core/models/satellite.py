"""
卫星模型 - 定义被跟踪卫星的身份和轨道根数引用

卫星分为两类：
- live：来自真实编目（NORAD）的在轨卫星
- simulated：用户自定义的模拟卫星

卫星同一时刻只引用一组"当前"轨道根数，根数刷新后引用随之更新。
"""

from enum import Enum
from dataclasses import dataclass
from typing import Dict, Any, Optional
from datetime import datetime, timezone


class SatelliteClass(Enum):
    """卫星类别"""
    LIVE = "live"
    SIMULATED = "simulated"


def ensure_utc_datetime(dt: Optional[datetime]) -> Optional[datetime]:
    """
    将datetime统一为UTC时区

    naive datetime视为UTC；带时区的datetime转换到UTC。

    Args:
        dt: 输入时间，可为None

    Returns:
        UTC时区的datetime，输入为None时返回None
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_epoch_string(value: str) -> datetime:
    """
    解析ISO 8601时间字符串为UTC datetime

    支持 "Z" 后缀、时区偏移、无时区（视为UTC）以及仅日期格式。

    Raises:
        ValueError: 无法解析时抛出
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValueError(f"Cannot parse epoch string: {value!r}")
    return ensure_utc_datetime(parsed)


def format_utc(dt: datetime) -> str:
    """格式化为带Z后缀的ISO 8601字符串"""
    return ensure_utc_datetime(dt).isoformat().replace("+00:00", "Z")


@dataclass
class Satellite:
    """
    卫星模型

    Attributes:
        id: 卫星唯一标识
        name: 卫星名称
        classification: 卫星类别（live/simulated）
        norad_id: NORAD编目号（自定义卫星可为空）
        current_elements_id: 当前轨道根数ID
        description: 描述
    """
    id: str
    name: str = ""
    classification: SatelliteClass = SatelliteClass.LIVE
    norad_id: Optional[int] = None
    current_elements_id: Optional[str] = None
    description: str = ""

    def __post_init__(self):
        if isinstance(self.classification, str):
            self.classification = SatelliteClass(self.classification)

    def has_elements(self) -> bool:
        """是否引用了当前轨道根数"""
        return bool(self.current_elements_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'classification': self.classification.value,
            'norad_id': self.norad_id,
            'current_elements_id': self.current_elements_id,
            'description': self.description,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Satellite':
        norad_id = data.get('norad_id')
        return cls(
            id=str(data['id']),
            name=data.get('name', ''),
            classification=SatelliteClass(data.get('classification', 'live')),
            norad_id=int(norad_id) if norad_id is not None else None,
            current_elements_id=data.get('current_elements_id'),
            description=data.get('description') or '',
        )
