"""
接触窗口计算模块

- errors: 异常定义
- config: 计算配置
- reconciler: 窗口持久化对账
- orchestrator: 刷新编排
"""

from .errors import (
    ContactWindowError,
    ElementSetError,
    GeodeticInputError,
    MissingElementsError,
    NotFoundError,
    PersistenceError,
    PairTimeoutError,
)
from .config import ContactWindowConfig, load_config

__all__ = [
    'ContactWindowError',
    'ElementSetError',
    'GeodeticInputError',
    'MissingElementsError',
    'NotFoundError',
    'PersistenceError',
    'PairTimeoutError',
    'ContactWindowConfig',
    'load_config',
]
