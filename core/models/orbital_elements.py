"""
轨道根数模型 - 两行根数(TLE)及其校验、历元解析和OMM转换

TLE每行固定69个字符，第69列为模10校验和：
数字按其值累加，减号计为1，其余字符计为0。
"""

import math
import re
from enum import Enum
from dataclasses import dataclass
from typing import Dict, Any, Optional
from datetime import datetime, timedelta, timezone

from core.contact.errors import ElementSetError
from .satellite import ensure_utc_datetime, parse_epoch_string, format_utc


TLE_LINE_LENGTH = 69

# 两位年份分界：小于57为20xx年，否则为19xx年
EPOCH_YEAR_PIVOT = 57

OMM_REQUIRED_FIELDS = (
    'NORAD_CAT_ID', 'OBJECT_ID', 'EPOCH', 'MEAN_MOTION', 'INCLINATION',
    'RA_OF_ASC_NODE', 'ECCENTRICITY', 'ARG_OF_PERICENTER', 'MEAN_ANOMALY',
)

_INTL_DESIGNATOR = re.compile(r'^(\d{2})(\d{2})-(\d{3})([A-Z]{0,3})$')


class ElementSource(Enum):
    """轨道根数来源"""
    LIVE = "live"
    SIMULATED = "simulated"


def tle_checksum(line: str) -> int:
    """计算TLE行前68个字符的校验和"""
    total = 0
    for char in line[:TLE_LINE_LENGTH - 1]:
        if char.isdigit():
            total += int(char)
        elif char == '-':
            total += 1
    return total % 10


def validate_tle_lines(line1: str, line2: str, verify_checksum: bool = True) -> None:
    """
    校验两行根数格式

    Raises:
        ElementSetError: 行长度、行号、编目号或校验和不合法
    """
    if not isinstance(line1, str) or not isinstance(line2, str):
        raise ElementSetError("TLE lines must be strings")

    line1 = line1.rstrip()
    line2 = line2.rstrip()

    if len(line1) != TLE_LINE_LENGTH or len(line2) != TLE_LINE_LENGTH:
        raise ElementSetError(
            f"Invalid TLE line length. Line1: {len(line1)}, Line2: {len(line2)}"
        )
    if not line1.startswith('1 ') or not line2.startswith('2 '):
        raise ElementSetError("TLE lines must start with '1 ' and '2 '")
    if line1[2:7] != line2[2:7]:
        raise ElementSetError(
            f"Catalog number mismatch between lines: {line1[2:7]!r} vs {line2[2:7]!r}"
        )

    if verify_checksum:
        for number, line in ((1, line1), (2, line2)):
            expected = tle_checksum(line)
            if not line[-1].isdigit() or int(line[-1]) != expected:
                raise ElementSetError(
                    f"TLE line {number} checksum mismatch: expected {expected}, got {line[-1]!r}"
                )


def parse_tle_epoch(line1: str) -> datetime:
    """
    从TLE第1行第19-32列解析历元

    Returns:
        UTC历元
    """
    try:
        year = int(line1[18:20])
        day_of_year = float(line1[20:32])
    except ValueError:
        raise ElementSetError(f"Cannot parse TLE epoch field: {line1[18:32]!r}")

    full_year = 2000 + year if year < EPOCH_YEAR_PIVOT else 1900 + year
    return datetime(full_year, 1, 1, tzinfo=timezone.utc) + timedelta(days=day_of_year - 1)


def _format_epoch(epoch: datetime) -> str:
    """格式化为TLE历元字段 YYDDD.DDDDDDDD"""
    epoch = ensure_utc_datetime(epoch)
    start_of_year = datetime(epoch.year, 1, 1, tzinfo=timezone.utc)
    day = (epoch - start_of_year).total_seconds() / 86400.0 + 1.0
    return f"{epoch.year % 100:02d}{day:012.8f}"


def _format_first_derivative(value: float) -> str:
    """
    格式化平均运动一阶导数字段，如 ' .00001764'

    Raises:
        ElementSetError: 绝对值（保留8位小数后）不小于1，超出字段宽度
    """
    text = f"{abs(value):.8f}"
    if not text.startswith("0."):
        raise ElementSetError(f"MEAN_MOTION_DOT out of TLE field range: {value}")
    sign = '-' if value < 0 else ' '
    return f"{sign}{text[1:]}"


def _format_exponential(value: float, name: str = "value") -> str:
    """
    格式化TLE隐含小数点的指数字段，如 3.8792e-5 -> ' 38792-4'

    Raises:
        ElementSetError: 指数超出一位数字
    """
    if value == 0:
        return " 00000-0"
    sign = '-' if value < 0 else ' '
    exponent = math.floor(math.log10(abs(value))) + 1
    mantissa = round(abs(value) / 10**exponent * 100000)
    if mantissa >= 100000:
        mantissa //= 10
        exponent += 1
    if abs(exponent) > 9:
        raise ElementSetError(f"{name} out of TLE field range: {value}")
    exp_sign = '-' if exponent < 0 else '+'
    return f"{sign}{mantissa:05d}{exp_sign}{abs(exponent)}"


def _format_designator(object_id: str) -> str:
    """国际编号 '1998-067A' 转为TLE格式 '98067A'"""
    match = _INTL_DESIGNATOR.match(object_id.strip().upper())
    if match:
        _, year, launch, piece = match.groups()
        return f"{year}{launch}{piece}"
    return object_id.strip()[:8]


@dataclass(frozen=True)
class OrbitalElements:
    """
    轨道根数（TLE）

    创建后不可变。卫星刷新根数时新建一条记录并更新引用。

    Attributes:
        id: 根数记录ID
        satellite_id: 所属卫星ID
        line1: TLE第1行
        line2: TLE第2行
        epoch: 历元（UTC），未提供时从第1行解析
        source: 来源（live/simulated）
    """
    id: str
    satellite_id: str
    line1: str
    line2: str
    epoch: Optional[datetime] = None
    source: ElementSource = ElementSource.LIVE

    def __post_init__(self):
        validate_tle_lines(self.line1, self.line2)
        object.__setattr__(self, 'line1', self.line1.rstrip())
        object.__setattr__(self, 'line2', self.line2.rstrip())
        if isinstance(self.source, str):
            object.__setattr__(self, 'source', ElementSource(self.source))
        if self.epoch is None:
            object.__setattr__(self, 'epoch', parse_tle_epoch(self.line1))
        else:
            object.__setattr__(self, 'epoch', ensure_utc_datetime(self.epoch))

    @property
    def norad_id(self) -> int:
        """NORAD编目号"""
        return int(self.line1[2:7])

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'satellite_id': self.satellite_id,
            'line1': self.line1,
            'line2': self.line2,
            'epoch': format_utc(self.epoch),
            'source': self.source.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OrbitalElements':
        epoch = data.get('epoch')
        if isinstance(epoch, str):
            epoch = parse_epoch_string(epoch)
        return cls(
            id=str(data['id']),
            satellite_id=str(data['satellite_id']),
            line1=data['line1'],
            line2=data['line2'],
            epoch=epoch,
            source=ElementSource(data.get('source', 'live')),
        )

    @classmethod
    def from_omm(cls, record: Dict[str, Any], elements_id: str, satellite_id: str,
                 source: ElementSource = ElementSource.LIVE) -> 'OrbitalElements':
        """
        由CelesTrak OMM（JSON）记录生成两行根数

        Args:
            record: OMM字段字典
            elements_id: 新根数记录ID
            satellite_id: 所属卫星ID
            source: 来源

        Raises:
            ElementSetError: 缺少必需字段或字段值无法编码
        """
        for name in OMM_REQUIRED_FIELDS:
            if record.get(name) is None:
                raise ElementSetError(f"Missing required field for TLE conversion: {name}")

        try:
            norad_id = int(record['NORAD_CAT_ID'])
            epoch = parse_epoch_string(str(record['EPOCH']))
            eccentricity = round(float(record['ECCENTRICITY']) * 1e7)
        except (TypeError, ValueError) as e:
            raise ElementSetError(f"Invalid OMM record: {e}")

        if not 0 < norad_id <= 99999:
            raise ElementSetError(f"NORAD_CAT_ID out of TLE range: {norad_id}")
        if not 0 <= eccentricity < 10**7:
            raise ElementSetError(f"ECCENTRICITY out of range: {record['ECCENTRICITY']}")

        designator = _format_designator(str(record['OBJECT_ID']))
        classification = str(record.get('CLASSIFICATION_TYPE') or 'U')[:1]
        element_set_no = int(record.get('ELEMENT_SET_NO') or 999) % 10000
        rev_number = int(record.get('REV_AT_EPOCH') or 0) % 100000

        body1 = (
            f"1 {norad_id:05d}{classification} {designator:<8} {_format_epoch(epoch)} "
            f"{_format_first_derivative(float(record.get('MEAN_MOTION_DOT') or 0.0))} "
            f"{_format_exponential(float(record.get('MEAN_MOTION_DDOT') or 0.0), 'MEAN_MOTION_DDOT')} "
            f"{_format_exponential(float(record.get('BSTAR') or 0.0), 'BSTAR')} 0 {element_set_no:>4}"
        )
        body2 = (
            f"2 {norad_id:05d} {float(record['INCLINATION']):8.4f} "
            f"{float(record['RA_OF_ASC_NODE']):8.4f} {eccentricity:07d} "
            f"{float(record['ARG_OF_PERICENTER']):8.4f} {float(record['MEAN_ANOMALY']):8.4f} "
            f"{float(record['MEAN_MOTION']):11.8f}{rev_number:5d}"
        )
        line1 = body1 + str(tle_checksum(body1))
        line2 = body2 + str(tle_checksum(body2))

        return cls(
            id=elements_id,
            satellite_id=satellite_id,
            line1=line1,
            line2=line2,
            epoch=epoch,
            source=source,
        )
