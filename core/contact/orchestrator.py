"""
接触窗口刷新编排器

对每个卫星-地面站对：
1. 解析卫星当前轨道根数
2. 构建传播器并扫描预报时段得到窗口
3. 交由对账器替换该对的持久化窗口

各对的计算在计算线程池中并行执行，写入在独立的对账线程池中执行并带超时等待。
单对失败只记录在刷新摘要中，不影响其他对。
"""

import sqlite3
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed, TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Any, Union

from core.models.satellite import Satellite, ensure_utc_datetime, format_utc
from core.models.ground_station import GroundStation
from core.models.orbital_elements import OrbitalElements
from core.models.contact_window import ContactWindow
from core.orbit.propagator.sgp4_propagator import SGP4Propagator
from core.orbit.visibility.contact_detector import ContactDetector
from .config import ContactWindowConfig
from .errors import (
    ContactWindowError,
    MissingElementsError,
    NotFoundError,
    PersistenceError,
    PairTimeoutError,
)
from .reconciler import WindowReconciler

logger = logging.getLogger(__name__)

Pair = Tuple[str, str]

NO_UPCOMING_CONTACT = "No upcoming contact"


def utc_now() -> datetime:
    """当前UTC时刻"""
    return datetime.now(timezone.utc)


def format_next_window_label(window: Optional[ContactWindow]) -> str:
    """
    下一接触窗口的展示文本

    Returns:
        "Next AOS: <AOS>\\nLOS: <LOS>"，无窗口时为 "No upcoming contact"
    """
    if window is None:
        return NO_UPCOMING_CONTACT
    return f"Next AOS: {format_utc(window.scheduled_aos)}\nLOS: {format_utc(window.scheduled_los)}"


@dataclass(frozen=True)
class PairFailure:
    """单对失败记录"""
    satellite_id: str
    ground_station_id: str
    error_type: str
    message: str

    @classmethod
    def from_exception(cls, pair: Pair, error: BaseException) -> 'PairFailure':
        return cls(pair[0], pair[1], type(error).__name__, str(error))

    def to_dict(self) -> Dict[str, str]:
        return {
            'satellite_id': self.satellite_id,
            'ground_station_id': self.ground_station_id,
            'error_type': self.error_type,
            'message': self.message,
        }


@dataclass
class RefreshSummary:
    """
    一次刷新的结果摘要

    Attributes:
        started_at: 刷新起始时刻（同时是扫描起点）
        finished_at: 刷新结束时刻
        window_counts: 成功对 -> 写入窗口数
        failures: 失败对及原因
        cancelled: 因取消未执行的对
    """
    started_at: datetime
    finished_at: Optional[datetime] = None
    window_counts: Dict[Pair, int] = field(default_factory=dict)
    failures: List[PairFailure] = field(default_factory=list)
    cancelled: List[Pair] = field(default_factory=list)

    @property
    def succeeded(self) -> List[Pair]:
        return sorted(self.window_counts)

    @property
    def total_windows(self) -> int:
        return sum(self.window_counts.values())

    @property
    def ok(self) -> bool:
        """全部对均成功"""
        return not self.failures and not self.cancelled

    @property
    def partial(self) -> bool:
        """部分成功、部分失败或取消"""
        return bool(self.window_counts) and not self.ok

    def failure_for(self, satellite_id: str, ground_station_id: str) -> Optional[PairFailure]:
        for failure in self.failures:
            if (failure.satellite_id, failure.ground_station_id) == (satellite_id, ground_station_id):
                return failure
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'started_at': format_utc(self.started_at),
            'finished_at': format_utc(self.finished_at) if self.finished_at else None,
            'ok': self.ok,
            'partial': self.partial,
            'total_windows': self.total_windows,
            'succeeded': [
                {'satellite_id': s, 'ground_station_id': g, 'windows': self.window_counts[(s, g)]}
                for s, g in self.succeeded
            ],
            'failures': [f.to_dict() for f in self.failures],
            'cancelled': [{'satellite_id': s, 'ground_station_id': g} for s, g in self.cancelled],
        }


class _PairCancelled(Exception):
    """该对在开始前被取消（内部使用）"""
    pass


class RefreshOrchestrator:
    """
    刷新编排器

    Attributes:
        catalog: 目录仓库（卫星、地面站、轨道根数）
        window_store: 窗口存储
        config: 计算配置
        detector: 窗口检测器
        reconciler: 窗口对账器
    """

    def __init__(self,
                 catalog,
                 window_store,
                 config: Optional[ContactWindowConfig] = None,
                 clock: Optional[Callable[[], datetime]] = None,
                 propagator_factory: Optional[Callable[[OrbitalElements], Any]] = None):
        """
        初始化编排器

        Args:
            catalog: 目录仓库
            window_store: 窗口存储
            config: 计算配置，默认使用内置默认值
            clock: 返回当前UTC时刻的可调用对象（测试中可固定）
            propagator_factory: 由轨道根数构建位置源，默认使用SGP4Propagator
        """
        self.catalog = catalog
        self.window_store = window_store
        self.config = config or ContactWindowConfig()
        self.clock = clock or utc_now
        self.propagator_factory = propagator_factory or self._default_propagator
        self.detector = ContactDetector.from_config(self.config)
        self.reconciler = WindowReconciler(window_store, lock_timeout=self.config.pair_timeout_seconds)

        self._cancel_event = threading.Event()
        self._compute_executor = ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix="contact_calc"
        )
        self._reconcile_executor = ThreadPoolExecutor(
            max_workers=max(1, min(4, self.config.max_workers)),
            thread_name_prefix="contact_reconcile"
        )
        logger.info(f"RefreshOrchestrator initialized with {self.config.max_workers} workers")

    def _default_propagator(self, elements: OrbitalElements) -> SGP4Propagator:
        return SGP4Propagator.from_elements(
            elements,
            earth_radius_km=self.config.earth_radius_km,
            min_radius_km=self.config.min_radius_km,
            max_radius_km=self.config.max_radius_km,
        )

    def _now(self) -> datetime:
        return ensure_utc_datetime(self.clock())

    # ------------------------------------------------------------------
    # 查找
    # ------------------------------------------------------------------

    def _require_satellite(self, satellite: Union[str, Satellite]) -> Satellite:
        if isinstance(satellite, Satellite):
            return satellite
        found = self._read_catalog(self.catalog.get_satellite, satellite)
        if found is None:
            raise NotFoundError("Satellite", satellite)
        return found

    def _require_station(self, station: Union[str, GroundStation]) -> GroundStation:
        if isinstance(station, GroundStation):
            return station
        found = self._read_catalog(self.catalog.get_ground_station, station)
        if found is None:
            raise NotFoundError("Ground station", station)
        return found

    @staticmethod
    def _read_catalog(getter, *args):
        try:
            return getter(*args)
        except sqlite3.Error as e:
            raise PersistenceError(f"Catalog read failed: {e}") from e

    # ------------------------------------------------------------------
    # 单对处理
    # ------------------------------------------------------------------

    def _compute_pair(self, satellite: Satellite, station: GroundStation,
                      start_time: datetime) -> List[ContactWindow]:
        """计算单对窗口（纯计算，不写存储）"""
        elements = self._read_catalog(self.catalog.get_current_elements, satellite.id)
        if elements is None:
            raise MissingElementsError(satellite.id)

        source = self.propagator_factory(elements)
        return self.detector.compute_windows(
            satellite_id=satellite.id,
            ground_station_id=station.id,
            elements_id=elements.id,
            position_source=source,
            station=station.geodetic(),
            start_time=start_time,
        )

    def _reconcile_with_timeout(self, pair: Pair, windows: List[ContactWindow]) -> int:
        """在对账线程池中写入并限时等待"""
        future = self._reconcile_executor.submit(self.reconciler.reconcile, pair[0], pair[1], windows)
        try:
            return future.result(timeout=self.config.pair_timeout_seconds)
        except FutureTimeoutError:
            raise PairTimeoutError(pair[0], pair[1], self.config.pair_timeout_seconds)

    def _run_pair(self, satellite: Satellite, station: GroundStation, start_time: datetime,
                  cancel_event: Optional[threading.Event] = None) -> List[ContactWindow]:
        """
        处理单对：计算并对账

        注意：此方法在计算线程池中执行。
        """
        if self._is_cancelled(cancel_event):
            raise _PairCancelled()

        windows = self._compute_pair(satellite, station, start_time)
        self._reconcile_with_timeout((satellite.id, station.id), windows)
        return windows

    def _is_cancelled(self, cancel_event: Optional[threading.Event]) -> bool:
        return self._cancel_event.is_set() or (cancel_event is not None and cancel_event.is_set())

    # ------------------------------------------------------------------
    # 对外接口
    # ------------------------------------------------------------------

    def refresh_all(self,
                    satellites: Optional[Sequence[Union[str, Satellite]]] = None,
                    ground_stations: Optional[Sequence[Union[str, GroundStation]]] = None,
                    cancel_event: Optional[threading.Event] = None) -> RefreshSummary:
        """
        刷新所有卫星-地面站对的窗口

        Args:
            satellites: 卫星（或ID）列表，默认目录中全部卫星
            ground_stations: 地面站（或ID）列表，默认目录中全部地面站
            cancel_event: 外部取消信号

        Returns:
            RefreshSummary: 成功、失败、取消的对
        """
        self._cancel_event.clear()
        start_time = self._now()
        summary = RefreshSummary(started_at=start_time)

        if satellites is None:
            satellites = self._read_catalog(self.catalog.list_satellites)
        if ground_stations is None:
            ground_stations = self._read_catalog(self.catalog.list_ground_stations)
        satellites = list(satellites)
        ground_stations = list(ground_stations)

        resolved_satellites = []
        for sat in satellites:
            try:
                resolved_satellites.append(self._require_satellite(sat))
            except ContactWindowError as e:
                sat_id = sat.id if isinstance(sat, Satellite) else sat
                for gs in ground_stations:
                    gs_id = gs.id if isinstance(gs, GroundStation) else gs
                    summary.failures.append(PairFailure.from_exception((sat_id, gs_id), e))

        resolved_stations = []
        for gs in ground_stations:
            try:
                resolved_stations.append(self._require_station(gs))
            except ContactWindowError as e:
                gs_id = gs.id if isinstance(gs, GroundStation) else gs
                for sat in resolved_satellites:
                    summary.failures.append(PairFailure.from_exception((sat.id, gs_id), e))

        total = len(resolved_satellites) * len(resolved_stations)
        logger.info(
            f"Refreshing contact windows for {len(resolved_satellites)} satellites x "
            f"{len(resolved_stations)} ground stations ({total} pairs) from {format_utc(start_time)}"
        )

        futures = {
            self._compute_executor.submit(self._run_pair, sat, gs, start_time, cancel_event): (sat.id, gs.id)
            for sat in resolved_satellites
            for gs in resolved_stations
        }

        completed = 0
        progress_interval = max(1, total // 10)

        for future in as_completed(futures):
            pair = futures[future]
            try:
                windows = future.result()
            except _PairCancelled:
                summary.cancelled.append(pair)
                continue
            except ContactWindowError as e:
                logger.warning(
                    f"Pair {pair[0]}/{pair[1]} failed: {e}",
                    extra={'extra_data': {'satellite_id': pair[0], 'ground_station_id': pair[1],
                                          'error_type': type(e).__name__}}
                )
                summary.failures.append(PairFailure.from_exception(pair, e))
                continue
            except Exception as e:
                logger.error(f"Unexpected error for {pair[0]}/{pair[1]}: {e}", exc_info=True)
                summary.failures.append(PairFailure.from_exception(pair, e))
                continue

            summary.window_counts[pair] = len(windows)
            completed += 1
            logger.info(
                f"{pair[0]}/{pair[1]}: {len(windows)} windows",
                extra={'extra_data': {'satellite_id': pair[0], 'ground_station_id': pair[1],
                                      'windows': len(windows)}}
            )
            if completed % progress_interval == 0:
                logger.debug(f"Progress: {completed}/{total} ({100 * completed // total}%)")

        summary.failures.sort(key=lambda f: (f.satellite_id, f.ground_station_id))
        summary.cancelled.sort()
        summary.finished_at = self._now()

        log = logger.info if summary.ok else logger.warning
        log(
            f"Refresh finished: {len(summary.window_counts)} succeeded, "
            f"{len(summary.failures)} failed, {len(summary.cancelled)} cancelled, "
            f"{summary.total_windows} windows"
        )
        return summary

    def refresh_pair(self, satellite_id: str, ground_station_id: str) -> List[ContactWindow]:
        """
        按需刷新单对

        Returns:
            List[ContactWindow]: 新窗口（空列表表示已计算、无过境）

        Raises:
            NotFoundError: 卫星或地面站不存在
            MissingElementsError: 卫星无当前轨道根数
            ElementSetError: 轨道根数格式错误
            PersistenceError: 存储失败
            PairTimeoutError: 写入超时
        """
        satellite = self._require_satellite(satellite_id)
        station = self._require_station(ground_station_id)
        windows = self._compute_pair(satellite, station, self._now())
        self._reconcile_with_timeout((satellite.id, station.id), windows)
        logger.info(f"{satellite.id}/{station.id}: {len(windows)} windows")
        return windows

    def _require_pair(self, satellite_id: str, ground_station_id: str) -> Pair:
        """确认卫星与地面站均存在，否则抛出NotFoundError"""
        satellite = self._require_satellite(satellite_id)
        station = self._require_station(ground_station_id)
        return satellite.id, station.id

    def list_windows(self, satellite_id: str, ground_station_id: str) -> List[ContactWindow]:
        """
        持久化窗口，按AOS升序

        Raises:
            NotFoundError: 卫星或地面站不存在
            PersistenceError: 存储读取失败
        """
        satellite_id, ground_station_id = self._require_pair(satellite_id, ground_station_id)
        try:
            return self.window_store.query_where(satellite_id, ground_station_id)
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to read windows: {e}") from e

    def next_window(self, satellite_id: str, ground_station_id: str,
                    now: Optional[datetime] = None) -> Optional[ContactWindow]:
        """
        下一个LOS晚于当前时刻的窗口（含正在进行的窗口）

        Returns:
            ContactWindow，没有时返回None

        Raises:
            NotFoundError: 卫星或地面站不存在
            PersistenceError: 存储读取失败
        """
        satellite_id, ground_station_id = self._require_pair(satellite_id, ground_station_id)
        now = ensure_utc_datetime(now) if now is not None else self._now()
        try:
            upcoming = self.window_store.query_ending_after(satellite_id, ground_station_id, now)
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to read windows: {e}") from e
        return upcoming[0] if upcoming else None

    def cancel(self) -> None:
        """请求取消进行中的刷新（尚未开始的对被标记为取消）"""
        self._cancel_event.set()
        logger.info("Refresh cancellation requested")

    def shutdown(self) -> None:
        """关闭线程池"""
        self._compute_executor.shutdown(wait=True)
        self._reconcile_executor.shutdown(wait=True)
        logger.debug("Refresh thread pools shut down")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()
        return False
