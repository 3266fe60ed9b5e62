"""
Pytest 配置文件

定义共享 fixtures：
- 有效的ISS两行根数
- 解析圆轨道位置源（与SGP4Propagator接口相同，用于确定性场景测试）
- 内存SQLite存储
"""

import logging
from datetime import datetime, timezone, timedelta

import pytest

from core.models.satellite import Satellite, ensure_utc_datetime
from core.models.ground_station import GroundStation
from core.models.orbital_elements import OrbitalElements
from core.orbit.utils import GeodeticPosition, normalize_longitude
from storage import StorageManager, StorageConfig, StorageBackend
from utils.logger import PACKAGE_LOGGERS


ISS_LINE1 = "1 25544U 98067A   19343.69339541  .00001764  00000-0  38792-4 0  9991"
ISS_LINE2 = "2 25544  51.6439 211.2001 0007417  17.6667  85.6398 15.50103472202482"

# 与ISS_LINE1/ISS_LINE2等价的CelesTrak OMM记录
ISS_OMM = {
    "OBJECT_NAME": "ISS (ZARYA)",
    "OBJECT_ID": "1998-067A",
    "EPOCH": "2019-12-09T16:38:29.363424",
    "MEAN_MOTION": 15.50103472,
    "ECCENTRICITY": 0.0007417,
    "INCLINATION": 51.6439,
    "RA_OF_ASC_NODE": 211.2001,
    "ARG_OF_PERICENTER": 17.6667,
    "MEAN_ANOMALY": 85.6398,
    "EPHEMERIS_TYPE": 0,
    "CLASSIFICATION_TYPE": "U",
    "NORAD_CAT_ID": 25544,
    "ELEMENT_SET_NO": 999,
    "REV_AT_EPOCH": 20248,
    "BSTAR": 3.8792e-05,
    "MEAN_MOTION_DOT": 1.764e-05,
    "MEAN_MOTION_DDOT": 0,
}

# 场景测试的固定扫描起点
SCENARIO_START = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


class CircularOrbitSource:
    """
    解析圆轨道位置源

    星下点纬度固定，经度随时间匀速变化：
    longitude(t) = start_longitude + rate_deg_per_s * (t - epoch)

    Attributes:
        gaps: 返回None（模拟传播失败）的时刻集合
        calls: geodetic_series被调用的次数
    """

    def __init__(self, epoch: datetime = SCENARIO_START, start_longitude: float = -30.0,
                 rate_deg_per_s: float = 0.1, latitude: float = 0.0, height_km: float = 500.0,
                 gaps=(), on_call=None):
        self.epoch = ensure_utc_datetime(epoch)
        self.start_longitude = start_longitude
        self.rate_deg_per_s = rate_deg_per_s
        self.latitude = latitude
        self.height_km = height_km
        self.gaps = {ensure_utc_datetime(t) for t in gaps}
        self.on_call = on_call
        self.calls = 0

    def position_at(self, instant: datetime) -> GeodeticPosition:
        elapsed = (ensure_utc_datetime(instant) - self.epoch).total_seconds()
        return GeodeticPosition(
            latitude=self.latitude,
            longitude=normalize_longitude(self.start_longitude + self.rate_deg_per_s * elapsed),
            height_km=self.height_km,
        )

    def geodetic_series(self, instants):
        self.calls += 1
        if self.on_call is not None:
            self.on_call(self)
        return [
            None if ensure_utc_datetime(t) in self.gaps else self.position_at(t)
            for t in instants
        ]


@pytest.fixture(autouse=True)
def reset_package_loggers():
    """CLI测试会配置包级logger，每个测试后恢复默认状态"""
    yield
    for name in PACKAGE_LOGGERS:
        package_logger = logging.getLogger(name)
        for handler in list(package_logger.handlers):
            package_logger.removeHandler(handler)
            handler.close()
        package_logger.setLevel(logging.NOTSET)
        package_logger.propagate = True


@pytest.fixture
def iss_lines():
    """有效的ISS两行根数"""
    return ISS_LINE1, ISS_LINE2


@pytest.fixture
def iss_omm():
    """与iss_lines等价的OMM记录"""
    return dict(ISS_OMM)


@pytest.fixture
def iss_elements():
    """ISS轨道根数模型"""
    return OrbitalElements(id="ISS@20191209", satellite_id="ISS", line1=ISS_LINE1, line2=ISS_LINE2)


@pytest.fixture
def scenario_start():
    return SCENARIO_START


@pytest.fixture
def circular_source():
    """
    圆轨道位置源工厂

    默认参数：赤道轨道，0.1°/s，高度500km，t=300s时经过(0°, 0°)正上方
    """
    def factory(**kwargs):
        return CircularOrbitSource(**kwargs)
    return factory


@pytest.fixture
def equator_station():
    """位于(0°, 0°)、海拔0的地面站"""
    return GroundStation(id="GS-EQ", name="Equator", longitude=0.0, latitude=0.0, altitude=0.0)


@pytest.fixture
def storage_manager():
    """内存SQLite存储（已建表）"""
    manager = StorageManager(StorageConfig(relational_backend=StorageBackend.MEMORY))
    manager.open()
    yield manager
    manager.close()


@pytest.fixture
def seeded_catalog(storage_manager):
    """
    预置目录：
    - SAT-A、SAT-B 有当前根数
    - SAT-NOTLE 无根数
    - 地面站 GS-EQ(0°, 0°) 与 GS-17(17.5°N, 0°)
    """
    catalog = storage_manager.catalog
    for sat_id in ("SAT-A", "SAT-B", "SAT-NOTLE"):
        catalog.save_satellite(Satellite(id=sat_id, name=sat_id))
    for sat_id in ("SAT-A", "SAT-B"):
        catalog.save_elements(OrbitalElements(
            id=f"{sat_id}-E1", satellite_id=sat_id, line1=ISS_LINE1, line2=ISS_LINE2
        ))
    catalog.save_ground_station(GroundStation(id="GS-EQ", name="Equator", longitude=0.0, latitude=0.0))
    catalog.save_ground_station(GroundStation(id="GS-17", name="North 17.5", longitude=0.0, latitude=17.5))
    return catalog


def window_times(windows):
    """窗口的 (AOS, LOS) 偏移秒数，便于断言"""
    return [
        ((w.scheduled_aos - SCENARIO_START).total_seconds(),
         (w.scheduled_los - SCENARIO_START).total_seconds())
        for w in windows
    ]


@pytest.fixture
def offsets():
    """返回把窗口转换为相对SCENARIO_START秒偏移的函数"""
    return window_times


@pytest.fixture
def at():
    """返回 SCENARIO_START + seconds 的函数"""
    def _at(seconds: float) -> datetime:
        return SCENARIO_START + timedelta(seconds=seconds)
    return _at
