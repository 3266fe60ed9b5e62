"""
SGP4轨道传播器

基于sgp4库，将两行根数(TLE)与UTC时刻转换为ECI位置，
再借助格林尼治平恒星时转换为大地坐标（球形地球近似）。

单步传播失败（错误码非零、NaN、非物理矢径）返回None，由调用方视为"无可见性数据"。
"""

import logging
import math
from typing import List, Optional, Sequence
from datetime import datetime

import numpy as np
from sgp4.api import Satrec, jday
from sgp4.propagation import gstime

from core.contact.errors import ElementSetError
from core.models.orbital_elements import OrbitalElements, validate_tle_lines
from core.models.satellite import ensure_utc_datetime
from core.orbit.utils import (
    EciPosition,
    GeodeticPosition,
    EARTH_RADIUS_KM,
    MIN_PLAUSIBLE_RADIUS_KM,
    MAX_PLAUSIBLE_RADIUS_KM,
    normalize_longitude,
)

logger = logging.getLogger(__name__)


# sgp4错误码含义
SGP4_ERRORS = {
    1: "Mean eccentricity out of range (0.0 < e < 1.0)",
    2: "Mean motion less than 0.0",
    3: "Perturbed eccentricity out of range",
    4: "Semi-latus rectum < 0.0",
    5: "Epoch elements are sub-orbital",
    6: "Satellite has decayed",
}


def julian_date(instant: datetime):
    """UTC时刻转为 (jd, fr) 儒略日对"""
    dt = ensure_utc_datetime(instant)
    return jday(dt.year, dt.month, dt.day,
                dt.hour, dt.minute, dt.second + dt.microsecond / 1e6)


def gmst_radians(instant: datetime) -> float:
    """格林尼治平恒星时（弧度，IAU-82）"""
    jd, fr = julian_date(instant)
    return gstime(jd + fr)


def eci_to_geodetic(position: EciPosition, instant: datetime,
                    earth_radius_km: float = EARTH_RADIUS_KM) -> GeodeticPosition:
    """
    将ECI坐标转换为大地坐标

    与仰角计算保持一致，采用球形地球近似：
    纬度为地心纬度，高度为矢径减去地球半径。

    Args:
        position: ECI坐标 (km)
        instant: UTC时刻
        earth_radius_km: 地球半径（千米）

    Returns:
        GeodeticPosition
    """
    x, y, z = position.as_tuple()
    r = math.sqrt(x**2 + y**2 + z**2)

    lat = math.degrees(math.asin(max(-1.0, min(1.0, z / r))))
    lon = normalize_longitude(math.degrees(math.atan2(y, x) - gmst_radians(instant)))

    return GeodeticPosition(latitude=lat, longitude=lon, height_km=r - earth_radius_km)


class SGP4Propagator:
    """
    SGP4轨道传播器

    使用两行轨道根数(TLE)进行轨道传播
    """

    def __init__(self, satrec: Satrec, satellite_id: str = "",
                 earth_radius_km: float = EARTH_RADIUS_KM,
                 min_radius_km: float = MIN_PLAUSIBLE_RADIUS_KM,
                 max_radius_km: float = MAX_PLAUSIBLE_RADIUS_KM):
        """
        初始化传播器

        Args:
            satrec: SGP4卫星记录
            satellite_id: 卫星标识
            earth_radius_km: 大地坐标转换使用的地球半径
            min_radius_km: 合理矢径下限
            max_radius_km: 合理矢径上限
        """
        self.satrec = satrec
        self.satellite_id = satellite_id
        self.earth_radius_km = earth_radius_km
        self.min_radius_km = min_radius_km
        self.max_radius_km = max_radius_km

    @classmethod
    def from_tle(cls, line1: str, line2: str, satellite_id: str = "", **kwargs) -> 'SGP4Propagator':
        """
        从TLE创建传播器

        Raises:
            ElementSetError: TLE格式错误
        """
        validate_tle_lines(line1, line2)
        try:
            satrec = Satrec.twoline2rv(line1.rstrip(), line2.rstrip())
        except ValueError as e:
            raise ElementSetError(f"Malformed TLE for satellite {satellite_id}: {e}")
        return cls(satrec, satellite_id, **kwargs)

    @classmethod
    def from_elements(cls, elements: OrbitalElements, **kwargs) -> 'SGP4Propagator':
        """从轨道根数模型创建传播器"""
        return cls.from_tle(elements.line1, elements.line2, elements.satellite_id, **kwargs)

    def _checked_position(self, error: int, position: Sequence[float],
                          instant: datetime) -> Optional[EciPosition]:
        """校验单步传播结果"""
        if error != 0:
            logger.debug(
                f"SGP4 error {error} ({SGP4_ERRORS.get(error, 'Unknown error')}) "
                f"for {self.satellite_id} at {instant.isoformat()}"
            )
            return None

        x, y, z = (float(v) for v in position)
        if any(math.isnan(v) for v in (x, y, z)):
            logger.debug(f"SGP4 returned NaN position for {self.satellite_id} at {instant.isoformat()}")
            return None

        eci = EciPosition(x, y, z)
        radius = eci.magnitude()
        if not self.min_radius_km <= radius <= self.max_radius_km:
            logger.debug(f"Position magnitude out of range for {self.satellite_id}: {radius:.1f}km")
            return None
        return eci

    def propagate(self, instant: datetime) -> Optional[EciPosition]:
        """
        传播到指定时间

        Args:
            instant: UTC时刻

        Returns:
            ECI位置（千米），传播失败时返回None
        """
        jd, fr = julian_date(instant)
        error, position, _velocity = self.satrec.sgp4(jd, fr)
        return self._checked_position(error, position, instant)

    def propagate_series(self, instants: Sequence[datetime]) -> List[Optional[EciPosition]]:
        """
        批量传播时间序列

        一次调用sgp4_array完成全部时刻，逐点结果语义与propagate相同。
        """
        if not instants:
            return []

        pairs = [julian_date(t) for t in instants]
        jd = np.array([p[0] for p in pairs], dtype=float)
        fr = np.array([p[1] for p in pairs], dtype=float)
        errors, positions, _velocities = self.satrec.sgp4_array(jd, fr)

        return [
            self._checked_position(int(errors[i]), positions[i], instant)
            for i, instant in enumerate(instants)
        ]

    def geodetic_at(self, instant: datetime) -> Optional[GeodeticPosition]:
        """指定时刻的星下点大地坐标"""
        position = self.propagate(instant)
        if position is None:
            return None
        return eci_to_geodetic(position, instant, self.earth_radius_km)

    def geodetic_series(self, instants: Sequence[datetime]) -> List[Optional[GeodeticPosition]]:
        """时间序列的大地坐标，传播失败的点为None"""
        return [
            eci_to_geodetic(position, instant, self.earth_radius_km) if position is not None else None
            for position, instant in zip(self.propagate_series(instants), instants)
        ]
