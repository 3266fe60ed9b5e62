"""
站心几何计算

由卫星星下点大地坐标和地面站大地坐标计算卫星相对地面站本地水平面的仰角。

采用球形地球近似（默认半径6371km）：地面站"天顶"方向取地心指向地面站的方向，
而非WGS-84椭球面法线，与传播器的大地坐标转换保持一致。
"""

import math

from core.orbit.utils import (
    GeodeticPosition,
    EARTH_RADIUS_KM,
    asin_deg_clamped,
    geodetic_to_cartesian,
)


def elevation_angle_deg(sat: GeodeticPosition, station: GeodeticPosition,
                        earth_radius_km: float = EARTH_RADIUS_KM) -> float:
    """
    计算仰角

    elevation = asin(dot(d, up) / (|d| * |up|))，其中d为地面站到卫星的向量，
    up为地面站位置向量。比值截断到[-1, 1]。

    Args:
        sat: 卫星大地坐标（高度千米）
        station: 地面站大地坐标（高度千米）
        earth_radius_km: 地球半径（千米）

    Returns:
        仰角（度），正值表示在地平线以上
    """
    sx, sy, sz = geodetic_to_cartesian(sat, earth_radius_km)
    gx, gy, gz = geodetic_to_cartesian(station, earth_radius_km)

    # 地面站到卫星的向量
    dx = sx - gx
    dy = sy - gy
    dz = sz - gz

    d_norm = math.sqrt(dx**2 + dy**2 + dz**2)
    up_norm = math.sqrt(gx**2 + gy**2 + gz**2)
    if d_norm == 0.0 or up_norm == 0.0:
        return 90.0

    ratio = (dx * gx + dy * gy + dz * gz) / (d_norm * up_norm)
    return asin_deg_clamped(ratio)
