"""
接触窗口模型

一个接触窗口表示卫星在某地面站最小仰角以上的时间段（AOS到LOS）。
同一卫星-地面站对内以 (satellite_id, ground_station_id, scheduled_aos) 为自然键。
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, Tuple
from datetime import datetime

from .satellite import ensure_utc_datetime, parse_epoch_string, format_utc


class ContactStatus(Enum):
    """接触窗口状态（completed/missed由外部观测结果设置）"""
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    MISSED = "missed"


@dataclass(frozen=True, slots=True)
class ContactWindow:
    """
    接触窗口

    Attributes:
        satellite_id: 卫星ID
        ground_station_id: 地面站ID
        scheduled_aos: 信号获取时刻（UTC）
        scheduled_los: 信号丢失时刻（UTC）
        elements_used_id: 计算所用轨道根数ID
        max_elevation_deg: 窗口内最大仰角（度）
        duration_seconds: 持续时间（秒）
        status: 窗口状态
    """
    satellite_id: str
    ground_station_id: str
    scheduled_aos: datetime
    scheduled_los: datetime
    elements_used_id: str
    max_elevation_deg: float
    duration_seconds: int = field(default=-1)
    status: ContactStatus = ContactStatus.SCHEDULED

    def __post_init__(self):
        aos = ensure_utc_datetime(self.scheduled_aos)
        los = ensure_utc_datetime(self.scheduled_los)
        if not aos < los:
            raise ValueError(f"scheduled_aos must precede scheduled_los: {aos} >= {los}")

        expected = round((los - aos).total_seconds())
        if self.duration_seconds == -1:
            object.__setattr__(self, 'duration_seconds', expected)
        elif self.duration_seconds != expected:
            raise ValueError(
                f"duration_seconds {self.duration_seconds} inconsistent with AOS/LOS ({expected})"
            )

        object.__setattr__(self, 'scheduled_aos', aos)
        object.__setattr__(self, 'scheduled_los', los)
        if isinstance(self.status, str):
            object.__setattr__(self, 'status', ContactStatus(self.status))

    @property
    def pair_key(self) -> Tuple[str, str]:
        return (self.satellite_id, self.ground_station_id)

    @property
    def natural_key(self) -> Tuple[str, str, datetime]:
        """去重自然键"""
        return (self.satellite_id, self.ground_station_id, self.scheduled_aos)

    def is_active(self, now: datetime) -> bool:
        """给定时刻是否处于窗口内"""
        now = ensure_utc_datetime(now)
        return self.scheduled_aos <= now < self.scheduled_los

    def __lt__(self, other):
        """用于排序"""
        return self.scheduled_aos < other.scheduled_aos

    def to_dict(self) -> Dict[str, Any]:
        return {
            'satellite_id': self.satellite_id,
            'ground_station_id': self.ground_station_id,
            'scheduled_aos': format_utc(self.scheduled_aos),
            'scheduled_los': format_utc(self.scheduled_los),
            'elements_used_id': self.elements_used_id,
            'max_elevation_deg': self.max_elevation_deg,
            'duration_seconds': self.duration_seconds,
            'status': self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ContactWindow':
        def _as_datetime(value) -> datetime:
            return parse_epoch_string(value) if isinstance(value, str) else value

        duration: Optional[Any] = data.get('duration_seconds')
        return cls(
            satellite_id=str(data['satellite_id']),
            ground_station_id=str(data['ground_station_id']),
            scheduled_aos=_as_datetime(data['scheduled_aos']),
            scheduled_los=_as_datetime(data['scheduled_los']),
            elements_used_id=str(data['elements_used_id']),
            max_elevation_deg=float(data['max_elevation_deg']),
            duration_seconds=int(duration) if duration is not None else -1,
            status=ContactStatus(data.get('status', 'scheduled')),
        )
