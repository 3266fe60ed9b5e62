"""
轨道工具函数

提供轨道计算相关的共享工具函数和常量
"""

import math
from dataclasses import dataclass
from typing import Tuple

# =============================================================================
# 常数
# =============================================================================

# 球形地球近似半径（千米）
EARTH_RADIUS_KM = 6371.0

# 合理的ECI位置矢径范围（千米），超出范围视为非物理状态
MIN_PLAUSIBLE_RADIUS_KM = 6000.0
MAX_PLAUSIBLE_RADIUS_KM = 50000.0


# =============================================================================
# 坐标类型
# =============================================================================

@dataclass(frozen=True, slots=True)
class EciPosition:
    """地心惯性系(ECI/TEME)位置，单位千米"""
    x: float
    y: float
    z: float

    def magnitude(self) -> float:
        return math.sqrt(self.x**2 + self.y**2 + self.z**2)

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)


@dataclass(frozen=True, slots=True)
class GeodeticPosition:
    """
    大地坐标

    Attributes:
        latitude: 纬度（度）
        longitude: 经度（度）
        height_km: 相对球形地球表面的高度（千米）
    """
    latitude: float
    longitude: float
    height_km: float


# =============================================================================
# 通用工具函数
# =============================================================================

def clamp(value: float, min_val: float, max_val: float) -> float:
    """
    将值限制在指定范围内

    Args:
        value: 输入值
        min_val: 最小值
        max_val: 最大值

    Returns:
        限制在[min_val, max_val]范围内的值
    """
    return max(min_val, min(max_val, value))


def asin_deg_clamped(ratio: float) -> float:
    """
    计算反正弦（度），参数先截断到[-1, 1]

    浮点误差可能使点积比值略微超出定义域，截断后不会产生NaN。
    """
    return math.degrees(math.asin(clamp(ratio, -1.0, 1.0)))


def normalize_longitude(lon: float) -> float:
    """经度归一化到[-180, 180)"""
    return (lon + 180.0) % 360.0 - 180.0


def geodetic_to_cartesian(position: GeodeticPosition,
                          earth_radius_km: float = EARTH_RADIUS_KM) -> Tuple[float, float, float]:
    """
    球形地球近似下的大地坐标转地心直角坐标

    Args:
        position: 大地坐标
        earth_radius_km: 地球半径（千米）

    Returns:
        (x, y, z) in km
    """
    lat_rad = math.radians(position.latitude)
    lon_rad = math.radians(position.longitude)

    r = earth_radius_km + position.height_km
    x = r * math.cos(lat_rad) * math.cos(lon_rad)
    y = r * math.cos(lat_rad) * math.sin(lon_rad)
    z = r * math.sin(lat_rad)

    return (x, y, z)
