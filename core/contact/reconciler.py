"""
接触窗口对账器

将某卫星-地面站对新算出的窗口集合写入存储，替换该对已有的全部窗口。
单对内先删除后按自然键upsert，整体在一个事务中完成：
要么全部为旧窗口，要么全部为新窗口。
"""

import sqlite3
import logging
import threading
from typing import Dict, List, Sequence, Tuple

from core.models.contact_window import ContactWindow
from .errors import PersistenceError, PairTimeoutError

logger = logging.getLogger(__name__)


class WindowReconciler:
    """
    窗口对账器

    同一对的对账通过对级锁串行化，不同对之间互不阻塞。

    Attributes:
        store: 窗口存储（需提供transaction/delete_where/upsert）
        lock_timeout: 获取对级锁的超时（秒）
    """

    def __init__(self, store, lock_timeout: float = 30.0):
        """
        初始化对账器

        Args:
            store: 窗口存储
            lock_timeout: 获取对级锁的超时（秒）
        """
        self.store = store
        self.lock_timeout = lock_timeout
        self._locks: Dict[Tuple[str, str], threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _pair_lock(self, pair: Tuple[str, str]) -> threading.Lock:
        """获取（必要时创建）对级锁"""
        with self._locks_guard:
            lock = self._locks.get(pair)
            if lock is None:
                lock = threading.Lock()
                self._locks[pair] = lock
            return lock

    def reconcile(self, satellite_id: str, ground_station_id: str,
                  windows: Sequence[ContactWindow]) -> int:
        """
        用新窗口集合替换该对的持久化窗口

        空集合表示"已计算、无过境"，会清空该对的旧窗口。

        Args:
            satellite_id: 卫星ID
            ground_station_id: 地面站ID
            windows: 新窗口集合

        Returns:
            int: 写入的窗口数

        Raises:
            ValueError: 窗口不属于该对
            PairTimeoutError: 等待对级锁超时
            PersistenceError: 存储失败（事务已回滚）
        """
        pair = (satellite_id, ground_station_id)
        for window in windows:
            if window.pair_key != pair:
                raise ValueError(
                    f"Window for {window.satellite_id}/{window.ground_station_id} "
                    f"cannot be reconciled into {satellite_id}/{ground_station_id}"
                )

        lock = self._pair_lock(pair)
        if not lock.acquire(timeout=self.lock_timeout):
            raise PairTimeoutError(satellite_id, ground_station_id, self.lock_timeout)

        try:
            ordered: List[ContactWindow] = sorted(windows, key=lambda w: w.scheduled_aos)
            with self.store.transaction():
                deleted = self.store.delete_where(satellite_id, ground_station_id)
                for window in ordered:
                    self.store.upsert(window)
        except sqlite3.Error as e:
            logger.error(f"Reconciliation failed for {satellite_id}/{ground_station_id}: {e}")
            raise PersistenceError(
                f"Failed to persist windows for {satellite_id}/{ground_station_id}: {e}"
            ) from e
        finally:
            lock.release()

        logger.debug(
            f"Reconciled {satellite_id}/{ground_station_id}: "
            f"replaced {deleted} windows with {len(ordered)}"
        )
        return len(ordered)
