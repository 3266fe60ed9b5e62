"""
YAML目录文件解析器

从YAML文件加载卫星、轨道根数和地面站：

    satellites:
      - id: "ISS"
        name: "ISS (ZARYA)"
        classification: "live"
        tle:
          line1: "1 25544U ..."
          line2: "2 25544 ..."
      - id: "SIM-1"
        classification: "simulated"
        omm: {OBJECT_ID: ..., EPOCH: ..., NORAD_CAT_ID: ..., ...}

    ground_stations:
      - id: "GS-BJ"
        name: "Beijing"
        location: [116.4, 39.9, 50.0]   # 经度, 纬度, 海拔(米)
        bands: ["S", "X"]
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Any, List, Tuple, Optional

import yaml

from core.contact.errors import ElementSetError, GeodeticInputError
from core.models.satellite import Satellite, SatelliteClass
from core.models.ground_station import GroundStation
from core.models.orbital_elements import OrbitalElements, ElementSource, parse_tle_epoch


@dataclass
class CatalogData:
    """YAML目录解析结果"""
    satellites: List[Satellite] = field(default_factory=list)
    elements: List[OrbitalElements] = field(default_factory=list)
    ground_stations: List[GroundStation] = field(default_factory=list)


def default_elements_id(satellite_id: str, epoch) -> str:
    """根数记录默认ID：卫星ID加历元"""
    return f"{satellite_id}@{epoch.strftime('%Y%m%dT%H%M%S')}"


class YamlLoader:
    """
    YAML目录加载器

    支持从YAML文件加载：
    - 卫星（可内联TLE或OMM根数）
    - 地面站
    """

    def load(self, file_path: str) -> Dict[str, Any]:
        """
        加载YAML文件

        Args:
            file_path: YAML文件路径

        Returns:
            Dict[str, Any]: 解析后的配置字典

        Raises:
            FileNotFoundError: 文件不存在
            yaml.YAMLError: YAML解析错误
        """
        if not os.path.exists(file_path):
            raise FileNotFoundError(f"YAML文件不存在: {file_path}")

        with open(file_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f) or {}

        return config

    def validate_schema(self, config: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """
        验证目录结构

        Args:
            config: 配置字典

        Returns:
            Tuple[bool, List[str]]: (是否有效, 错误列表)
        """
        errors = []

        if not isinstance(config, dict):
            return False, ["目录文件顶层必须是映射"]

        for section in ('satellites', 'ground_stations'):
            value = config.get(section)
            if value is not None and not isinstance(value, list):
                errors.append(f"'{section}' 必须是列表")

        for i, sat in enumerate(config.get('satellites') or []):
            if not isinstance(sat, dict) or 'id' not in sat:
                errors.append(f"satellites[{i}] 缺少 'id' 字段")
            elif 'tle' in sat and 'omm' in sat:
                errors.append(f"卫星 {sat['id']} 不能同时提供 'tle' 和 'omm'")

        for i, gs in enumerate(config.get('ground_stations') or []):
            if not isinstance(gs, dict) or 'id' not in gs:
                errors.append(f"ground_stations[{i}] 缺少 'id' 字段")

        return len(errors) == 0, errors

    def parse_satellite(self, sat_config: Dict[str, Any]) -> Tuple[Satellite, Optional[OrbitalElements]]:
        """
        解析单颗卫星及其内联根数

        Raises:
            ElementSetError: 根数非法
        """
        sat_id = str(sat_config['id'])
        classification = SatelliteClass(sat_config.get('classification', 'live'))
        source = ElementSource(classification.value)

        elements = None
        if sat_config.get('tle'):
            tle = sat_config['tle']
            line1, line2 = tle.get('line1', ''), tle.get('line2', '')
            elements_id = tle.get('id') or default_elements_id(sat_id, parse_tle_epoch(line1.rstrip()))
            elements = OrbitalElements(
                id=elements_id,
                satellite_id=sat_id,
                line1=line1,
                line2=line2,
                source=ElementSource(tle.get('source', source.value)),
            )
        elif sat_config.get('omm'):
            omm = sat_config['omm']
            probe = OrbitalElements.from_omm(omm, elements_id="", satellite_id=sat_id, source=source)
            elements = OrbitalElements(
                id=omm.get('id') or default_elements_id(sat_id, probe.epoch),
                satellite_id=sat_id,
                line1=probe.line1,
                line2=probe.line2,
                epoch=probe.epoch,
                source=source,
            )

        norad_id = sat_config.get('norad_id')
        if norad_id is None and elements is not None and classification is SatelliteClass.LIVE:
            norad_id = elements.norad_id

        satellite = Satellite(
            id=sat_id,
            name=sat_config.get('name', sat_id),
            classification=classification,
            norad_id=int(norad_id) if norad_id is not None else None,
            current_elements_id=elements.id if elements else None,
            description=sat_config.get('description', ''),
        )
        return satellite, elements

    def parse_ground_station(self, gs_config: Dict[str, Any]) -> GroundStation:
        """
        解析地面站，支持 location: [经度, 纬度, 海拔] 或显式字段

        Raises:
            GeodeticInputError: 坐标缺失或越界
        """
        data = dict(gs_config)
        location = data.pop('location', None)
        if location is not None:
            if not isinstance(location, (list, tuple)) or len(location) < 2:
                raise GeodeticInputError(f"Ground station {data.get('id')!r}: location must be [lon, lat, alt]")
            data['longitude'] = location[0]
            data['latitude'] = location[1]
            data['altitude'] = location[2] if len(location) > 2 else 0.0
        data.setdefault('name', data['id'])
        return GroundStation.from_dict(data)

    def load_catalog(self, file_path: str) -> CatalogData:
        """
        加载YAML目录文件

        Raises:
            FileNotFoundError: 文件不存在
            ValueError: 目录结构非法
            ElementSetError: 根数非法
            GeodeticInputError: 地面站坐标非法
        """
        config = self.load(file_path)
        valid, errors = self.validate_schema(config)
        if not valid:
            raise ValueError(f"Invalid catalog {file_path}: {'; '.join(errors)}")

        data = CatalogData()
        for sat_config in config.get('satellites') or []:
            try:
                satellite, elements = self.parse_satellite(sat_config)
            except ElementSetError as e:
                raise ElementSetError(f"Satellite {sat_config.get('id')}: {e}") from e
            data.satellites.append(satellite)
            if elements is not None:
                data.elements.append(elements)

        for gs_config in config.get('ground_stations') or []:
            data.ground_stations.append(self.parse_ground_station(gs_config))

        return data


def load_catalog(file_path: str) -> CatalogData:
    """加载YAML目录文件（便捷函数）"""
    return YamlLoader().load_catalog(file_path)
