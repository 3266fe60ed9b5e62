"""
可见性区间检测器

以固定步长扫描预报时段，用两状态状态机（OUT_OF_CONTACT / IN_CONTACT）
跟踪卫星是否在地平线以上，仰角向下穿越0°时闭合一个 (AOS, LOS) 区间。

判定规则：
- 仰角 > 0 进入接触；仰角 <= 0 退出接触
- 传播失败的采样点视为仰角 -inf
- 峰值仰角低于最小仰角门限的过境静默丢弃
- 扫描结束时仍处于接触状态的过境默认丢弃
"""

import logging
from enum import Enum
from dataclasses import dataclass
from typing import List, Iterator, Tuple
from datetime import datetime, timedelta

from core.models.contact_window import ContactWindow
from core.models.satellite import ensure_utc_datetime
from core.orbit.utils import GeodeticPosition, EARTH_RADIUS_KM
from .geometry import elevation_angle_deg

logger = logging.getLogger(__name__)


class ContactState(Enum):
    """接触状态"""
    OUT_OF_CONTACT = "out_of_contact"
    IN_CONTACT = "in_contact"


@dataclass(frozen=True, slots=True)
class DetectedPass:
    """
    一次完整的地平线以上过境

    Attributes:
        aos: 首个仰角 > 0 的采样时刻
        los: 首个仰角 <= 0 的采样时刻
        max_elevation: 过境内最大仰角（度）
    """
    aos: datetime
    los: datetime
    max_elevation: float

    def duration(self) -> float:
        """持续时间（秒）"""
        return (self.los - self.aos).total_seconds()


class ContactDetector:
    """
    接触窗口检测器

    position_source 需提供 geodetic_series(instants) -> List[Optional[GeodeticPosition]]，
    SGP4Propagator 即满足该接口。
    """

    def __init__(self,
                 step_seconds: float = 10.0,
                 horizon_minutes: float = 1440.0,
                 min_elevation_deg: float = 10.0,
                 earth_radius_km: float = EARTH_RADIUS_KM,
                 close_open_pass_at_horizon: bool = False):
        """
        初始化

        Args:
            step_seconds: 扫描步长（秒）
            horizon_minutes: 预报时长（分钟）
            min_elevation_deg: 最小仰角门限（度）
            earth_radius_km: 地球半径（千米）
            close_open_pass_at_horizon: 扫描结束时是否以最后采样时刻闭合未结束的过境
        """
        if step_seconds <= 0:
            raise ValueError(f"step_seconds must be positive, got {step_seconds}")
        if horizon_minutes <= 0:
            raise ValueError(f"horizon_minutes must be positive, got {horizon_minutes}")

        self.step = timedelta(seconds=step_seconds)
        self.horizon = timedelta(minutes=horizon_minutes)
        self.min_elevation = min_elevation_deg
        self.earth_radius_km = earth_radius_km
        self.close_open_pass_at_horizon = close_open_pass_at_horizon

    @classmethod
    def from_config(cls, config) -> 'ContactDetector':
        """从ContactWindowConfig创建"""
        return cls(
            step_seconds=config.step_seconds,
            horizon_minutes=config.horizon_minutes,
            min_elevation_deg=config.minimum_elevation_threshold_deg,
            earth_radius_km=config.earth_radius_km,
            close_open_pass_at_horizon=config.close_open_pass_at_horizon,
        )

    def sample_times(self, start_time: datetime) -> List[datetime]:
        """扫描时刻序列，包含起止两端"""
        start = ensure_utc_datetime(start_time)
        end = start + self.horizon
        times = []
        current = start
        while current <= end:
            times.append(current)
            current += self.step
        return times

    def elevations(self, position_source, station: GeodeticPosition,
                   start_time: datetime) -> Iterator[Tuple[datetime, float]]:
        """
        逐点计算仰角

        Yields:
            (timestamp, elevation)，传播失败的点仰角为 -inf
        """
        times = self.sample_times(start_time)
        positions = position_source.geodetic_series(times)
        gaps = 0

        for timestamp, position in zip(times, positions):
            if position is None:
                gaps += 1
                yield timestamp, float('-inf')
            else:
                yield timestamp, elevation_angle_deg(position, station, self.earth_radius_km)

        if gaps:
            logger.debug(f"{gaps}/{len(times)} samples had no propagation result")

    def detect_passes(self, position_source, station: GeodeticPosition,
                      start_time: datetime) -> List[DetectedPass]:
        """
        检测所有地平线以上的过境（不做门限过滤）

        Args:
            position_source: 位置源
            station: 地面站大地坐标
            start_time: 扫描开始时刻

        Returns:
            List[DetectedPass]: 按时间排序的已闭合过境
        """
        passes = []
        state = ContactState.OUT_OF_CONTACT
        aos = None
        max_elevation = float('-inf')
        last_timestamp = None

        for timestamp, elevation in self.elevations(position_source, station, start_time):
            last_timestamp = timestamp
            if elevation > 0:
                if state is ContactState.OUT_OF_CONTACT:
                    state = ContactState.IN_CONTACT
                    aos = timestamp
                    max_elevation = elevation
                else:
                    max_elevation = max(max_elevation, elevation)
            elif state is ContactState.IN_CONTACT:
                state = ContactState.OUT_OF_CONTACT
                passes.append(DetectedPass(aos=aos, los=timestamp, max_elevation=max_elevation))

        if state is ContactState.IN_CONTACT:
            if self.close_open_pass_at_horizon and last_timestamp > aos:
                passes.append(DetectedPass(aos=aos, los=last_timestamp, max_elevation=max_elevation))
            else:
                logger.debug(f"Dropping pass still open at horizon end (AOS {aos.isoformat()})")

        return passes

    def compute_windows(self, satellite_id: str, ground_station_id: str, elements_id: str,
                        position_source, station: GeodeticPosition,
                        start_time: datetime) -> List[ContactWindow]:
        """
        计算满足最小仰角门限的接触窗口

        Returns:
            List[ContactWindow]: 按AOS排序的窗口
        """
        windows = []
        discarded = 0

        for detected in self.detect_passes(position_source, station, start_time):
            if detected.max_elevation < self.min_elevation:
                discarded += 1
                continue
            windows.append(ContactWindow(
                satellite_id=satellite_id,
                ground_station_id=ground_station_id,
                scheduled_aos=detected.aos,
                scheduled_los=detected.los,
                elements_used_id=elements_id,
                max_elevation_deg=detected.max_elevation,
            ))

        if discarded:
            logger.debug(
                f"{satellite_id}/{ground_station_id}: discarded {discarded} passes "
                f"below {self.min_elevation:.1f} deg"
            )
        return windows
