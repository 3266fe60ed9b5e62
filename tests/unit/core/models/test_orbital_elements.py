"""
轨道根数模型测试：TLE校验、历元解析、OMM转换
"""

import pytest
from datetime import datetime, timezone

from core.contact.errors import ElementSetError
from core.models.orbital_elements import (
    OrbitalElements,
    ElementSource,
    tle_checksum,
    validate_tle_lines,
    parse_tle_epoch,
)


class TestTleChecksum:
    """测试校验和"""

    def test_known_lines(self, iss_lines):
        line1, line2 = iss_lines
        assert tle_checksum(line1) == int(line1[-1])
        assert tle_checksum(line2) == int(line2[-1])

    def test_minus_counts_as_one(self):
        assert tle_checksum("1-" + " " * 66) == 2
        assert tle_checksum("-" * 68) == 8


class TestValidateTleLines:
    """测试两行根数校验"""

    def test_valid_lines(self, iss_lines):
        validate_tle_lines(*iss_lines)

    def test_trailing_whitespace_ignored(self, iss_lines):
        line1, line2 = iss_lines
        validate_tle_lines(line1 + "  ", line2 + "\n")

    def test_missing_checksum_rejected(self, iss_lines):
        """68字符（缺校验位）的行被拒绝"""
        line1, line2 = iss_lines
        with pytest.raises(ElementSetError, match="length"):
            validate_tle_lines(line1[:68], line2)

    def test_bad_checksum_rejected(self, iss_lines):
        line1, line2 = iss_lines
        wrong = (int(line2[-1]) + 1) % 10
        with pytest.raises(ElementSetError, match="checksum"):
            validate_tle_lines(line1, line2[:-1] + str(wrong))

    def test_swapped_lines_rejected(self, iss_lines):
        line1, line2 = iss_lines
        with pytest.raises(ElementSetError, match="start with"):
            validate_tle_lines(line2, line1)

    def test_catalog_number_mismatch(self, iss_lines):
        line1, line2 = iss_lines
        body = line2[:2] + "25545" + line2[7:68]
        with pytest.raises(ElementSetError, match="mismatch"):
            validate_tle_lines(line1, body + str(tle_checksum(body)))

    def test_non_string_rejected(self, iss_lines):
        with pytest.raises(ElementSetError):
            validate_tle_lines(None, iss_lines[1])


class TestParseTleEpoch:
    """测试历元解析"""

    def test_iss_epoch(self, iss_lines):
        epoch = parse_tle_epoch(iss_lines[0])
        assert epoch.tzinfo == timezone.utc
        assert (epoch.year, epoch.month, epoch.day) == (2019, 12, 9)
        assert (epoch.hour, epoch.minute, epoch.second) == (16, 38, 29)

    def test_two_digit_year_pivot(self, iss_lines):
        line1 = iss_lines[0]
        assert parse_tle_epoch(line1[:18] + "57" + line1[20:]).year == 1957
        assert parse_tle_epoch(line1[:18] + "56" + line1[20:]).year == 2056

    def test_unparseable_epoch(self):
        with pytest.raises(ElementSetError, match="epoch"):
            parse_tle_epoch("1 25544U 98067A   xxxxx.xxxxxxxx")


class TestOrbitalElements:
    """测试 OrbitalElements"""

    def test_epoch_derived_from_line1(self, iss_elements):
        assert iss_elements.epoch == parse_tle_epoch(iss_elements.line1)
        assert iss_elements.norad_id == 25544
        assert iss_elements.source is ElementSource.LIVE

    def test_frozen(self, iss_elements):
        with pytest.raises(AttributeError):
            iss_elements.line1 = "x"

    def test_invalid_lines_raise(self, iss_lines):
        with pytest.raises(ElementSetError):
            OrbitalElements(id="E", satellite_id="S", line1=iss_lines[0][:60], line2=iss_lines[1])

    def test_dict_round_trip(self, iss_elements):
        restored = OrbitalElements.from_dict(iss_elements.to_dict())
        assert restored.line1 == iss_elements.line1
        assert restored.line2 == iss_elements.line2
        assert abs((restored.epoch - iss_elements.epoch).total_seconds()) < 1e-3

    def test_explicit_naive_epoch_normalized(self, iss_lines):
        elements = OrbitalElements(id="E", satellite_id="S", line1=iss_lines[0], line2=iss_lines[1],
                                   epoch=datetime(2019, 12, 9, 16, 38, 29), source="simulated")
        assert elements.epoch.tzinfo == timezone.utc
        assert elements.source is ElementSource.SIMULATED


class TestFromOmm:
    """测试 OMM -> TLE 转换"""

    def test_reproduces_published_lines(self, iss_omm, iss_lines):
        elements = OrbitalElements.from_omm(iss_omm, elements_id="E1", satellite_id="ISS")
        assert elements.line1 == iss_lines[0]
        assert elements.line2 == iss_lines[1]
        assert elements.epoch.microsecond == 363424

    def test_negative_derivative_and_exponent(self, iss_omm):
        record = dict(iss_omm, MEAN_MOTION_DOT=-0.00000123, BSTAR=-0.00011606)
        elements = OrbitalElements.from_omm(record, elements_id="E1", satellite_id="ISS")
        assert elements.line1[33:43] == "-.00000123"
        assert elements.line1[53:61] == "-11606-3"

    def test_largest_first_derivative_fits(self, iss_omm):
        elements = OrbitalElements.from_omm(dict(iss_omm, MEAN_MOTION_DOT=0.99999999),
                                            elements_id="E1", satellite_id="ISS")
        assert elements.line1[33:43] == " .99999999"

    @pytest.mark.parametrize("value", [1.5, -2.0, 12.345, 0.999999999])
    def test_first_derivative_out_of_field_range(self, iss_omm, value):
        """一阶导数字段只能表示绝对值小于1的数"""
        with pytest.raises(ElementSetError, match="MEAN_MOTION_DOT"):
            OrbitalElements.from_omm(dict(iss_omm, MEAN_MOTION_DOT=value), elements_id="E1", satellite_id="ISS")

    @pytest.mark.parametrize("field, value", [("BSTAR", 3.0e12), ("MEAN_MOTION_DDOT", 1.0e-15)])
    def test_exponent_out_of_field_range(self, iss_omm, field, value):
        with pytest.raises(ElementSetError, match=field):
            OrbitalElements.from_omm(dict(iss_omm, **{field: value}), elements_id="E1", satellite_id="ISS")

    @pytest.mark.parametrize("field", ["NORAD_CAT_ID", "EPOCH", "MEAN_MOTION", "ECCENTRICITY"])
    def test_missing_required_field(self, iss_omm, field):
        record = dict(iss_omm)
        del record[field]
        with pytest.raises(ElementSetError, match=field):
            OrbitalElements.from_omm(record, elements_id="E1", satellite_id="ISS")

    def test_bad_epoch_value(self, iss_omm):
        with pytest.raises(ElementSetError, match="Invalid OMM"):
            OrbitalElements.from_omm(dict(iss_omm, EPOCH="yesterday"), elements_id="E1", satellite_id="ISS")

    def test_simulated_source(self, iss_omm):
        elements = OrbitalElements.from_omm(iss_omm, elements_id="E1", satellite_id="SIM",
                                            source=ElementSource.SIMULATED)
        assert elements.source is ElementSource.SIMULATED
        assert elements.satellite_id == "SIM"
