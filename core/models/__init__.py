"""核心数据模型"""

from .satellite import Satellite, SatelliteClass, ensure_utc_datetime, parse_epoch_string
from .orbital_elements import OrbitalElements, ElementSource
from .ground_station import GroundStation
from .contact_window import ContactWindow, ContactStatus

__all__ = [
    'Satellite', 'SatelliteClass', 'ensure_utc_datetime', 'parse_epoch_string',
    'OrbitalElements', 'ElementSource',
    'GroundStation',
    'ContactWindow', 'ContactStatus',
]
