"""Tests for property iteration and JSON serialization helpers."""

import datetime
import decimal
import ipaddress
from types import SimpleNamespace

import orjson
import pytest

from db_iterator.utils import (
    convert_row_to_json_safe,
    convert_value_to_json_safe,
    dumps,
    is_numeric_key,
    named_properties,
)


class TestNumericKeys:
    @pytest.mark.parametrize("key", [0, 7, -1, "0", "12", "-1"])
    def test_numeric(self, key):
        assert is_numeric_key(key) is True

    @pytest.mark.parametrize("key", ["id", "1a", "", "-", "²", " 1", True, None])
    def test_not_numeric(self, key):
        assert is_numeric_key(key) is False


class TestNamedProperties:
    def test_mapping(self):
        assert named_properties({"id": 1, 0: 1, "title": "x"}) == {"id": 1, "title": "x"}

    def test_attribute_bag(self):
        assert named_properties(SimpleNamespace(id=1, title="x")) == {"id": 1, "title": "x"}

    def test_sequence_has_no_named_properties(self):
        assert named_properties((1, "x")) == {}

    def test_unreadable_object(self):
        with pytest.raises(TypeError):
            named_properties(42)


class TestSerialization:
    def test_decimal_becomes_string(self):
        assert convert_value_to_json_safe(decimal.Decimal("12.50")) == "12.50"

    def test_timedelta_becomes_seconds(self):
        assert convert_value_to_json_safe(datetime.timedelta(minutes=2)) == 120.0

    def test_bytes(self):
        assert convert_value_to_json_safe(b"hello") == "hello"
        assert convert_value_to_json_safe(b"\xff\xfe") == "//4="

    def test_ip_address(self):
        assert convert_value_to_json_safe(ipaddress.IPv4Address("10.0.0.1")) == "10.0.0.1"

    def test_row(self):
        row = {"id": 1, "created": datetime.date(2024, 1, 15), "price": decimal.Decimal("3")}

        assert convert_row_to_json_safe(row) == {
            "id": 1,
            "created": "2024-01-15",
            "price": "3",
        }

    def test_dumps_is_valid_json(self):
        data = {"rows": [{"id": 1, "title": "x"}]}

        assert orjson.loads(dumps(data)) == data
