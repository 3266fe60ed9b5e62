"""
核心模块 - 卫星接触窗口计算引擎

包含数据模型、轨道传播、可见性检测以及窗口刷新编排
"""

from .models import Satellite, SatelliteClass, OrbitalElements, GroundStation, ContactWindow, ContactStatus

__all__ = [
    'Satellite', 'SatelliteClass',
    'OrbitalElements',
    'GroundStation',
    'ContactWindow', 'ContactStatus',
]
