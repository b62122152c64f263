from enum import IntEnum

import pytest

from postlog.validators import validate_properties


class Plan(IntEnum):
    FREE = 0
    PRO = 1


class TestValidateProperties:
    def test_empty_mapping_is_valid(self):
        assert validate_properties({}) is True

    def test_all_scalar_kinds_are_valid(self):
        assert validate_properties(
            {"username": "tester", "age": 31, "score": 4.5, "beta": True}
        ) is True

    def test_int_subclass_is_valid(self):
        assert validate_properties({"plan": Plan.PRO}) is True

    @pytest.mark.parametrize(
        "value",
        [
            None,
            ["admin"],
            ("a", "b"),
            {"nested": "map"},
            {"a", "b"},
            b"raw",
            object(),
        ],
    )
    def test_rejects_non_scalar_values(self, value):
        assert validate_properties({"username": "tester", "bad": value}) is False

    def test_single_bad_value_fails_whole_mapping(self):
        properties = {f"k{i}": i for i in range(50)}
        properties["k25"] = [25]
        assert validate_properties(properties) is False
