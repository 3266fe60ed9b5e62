"""可见性计算模块"""

from .geometry import elevation_angle_deg
from .contact_detector import ContactDetector, ContactState, DetectedPass

__all__ = [
    'elevation_angle_deg',
    'ContactDetector',
    'ContactState',
    'DetectedPass',
]
