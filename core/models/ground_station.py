"""
地面站模型 - 定义地面站的地理位置和支持频段

接触窗口计算只使用地面站的大地坐标，其余字段为描述性元数据
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any
import math

from core.contact.errors import GeodeticInputError
from core.orbit.utils import GeodeticPosition


@dataclass
class GroundStation:
    """
    地面站模型

    Attributes:
        id: 地面站唯一标识
        name: 地面站名称
        longitude: 经度（度）
        latitude: 纬度（度）
        altitude: 海拔高度（米）
        bands: 支持的频段
    """
    id: str
    name: str = ""
    longitude: float = 0.0  # 度
    latitude: float = 0.0  # 度
    altitude: float = 0.0  # 米
    bands: List[str] = field(default_factory=list)

    def __post_init__(self):
        """初始化后验证"""
        for name in ('longitude', 'latitude', 'altitude'):
            value = getattr(self, name)
            if value is None or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise GeodeticInputError(f"Ground station {self.id}: {name} must be a finite number, got {value!r}")
        if not (-180 <= self.longitude <= 180):
            raise GeodeticInputError(f"Longitude must be in [-180, 180], got {self.longitude}")
        if not (-90 <= self.latitude <= 90):
            raise GeodeticInputError(f"Latitude must be in [-90, 90], got {self.latitude}")

    def geodetic(self) -> GeodeticPosition:
        """地面站大地坐标（高度换算为千米）"""
        return GeodeticPosition(
            latitude=float(self.latitude),
            longitude=float(self.longitude),
            height_km=self.altitude / 1000.0,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'longitude': self.longitude,
            'latitude': self.latitude,
            'altitude': self.altitude,
            'bands': list(self.bands),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GroundStation':
        try:
            longitude = data['longitude']
            latitude = data['latitude']
        except KeyError as e:
            raise GeodeticInputError(f"Ground station {data.get('id')!r} missing field {e}")
        return cls(
            id=str(data['id']),
            name=data.get('name', ''),
            longitude=longitude,
            latitude=latitude,
            altitude=data.get('altitude', 0.0),
            bands=list(data.get('bands') or []),
        )
