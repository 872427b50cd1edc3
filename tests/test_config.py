import json
from types import SimpleNamespace

import pytest

from authop.config import (
    names_filter,
    nested_field_copy,
    nested_slice,
    nested_string,
    pruned,
    set_nested_field,
    unstructured_config_from,
)


def test_nested_field_copy_returns_independent_copy():
    obj = {"a": {"b": [1, 2]}}
    value, found = nested_field_copy(obj, "a", "b")
    assert found is True
    assert value == [1, 2]
    value.append(3)
    assert obj["a"]["b"] == [1, 2]


def test_nested_field_copy_missing():
    assert nested_field_copy({"a": {}}, "a", "b") == (None, False)
    assert nested_field_copy(None, "a") == (None, False)


def test_nested_field_copy_through_non_map_raises():
    with pytest.raises(TypeError, match="accessor error"):
        nested_field_copy({"a": "x"}, "a", "b")


def test_nested_string():
    assert nested_string({"a": {"b": "v"}}, "a", "b") == ("v", True)
    assert nested_string({"a": {}}, "a", "b") == ("", False)
    with pytest.raises(TypeError, match="expected string"):
        nested_string({"a": {"b": 1}}, "a", "b")


def test_nested_slice():
    obj = {"a": ["x", "y"]}
    value, found = nested_slice(obj, "a")
    assert (value, found) == (["x", "y"], True)
    value.append("z")
    assert obj["a"] == ["x", "y"]
    assert nested_slice(obj, "missing") == (None, False)
    with pytest.raises(TypeError, match="expected list"):
        nested_slice({"a": "x"}, "a")


def test_set_nested_field_creates_maps_and_copies():
    obj = {}
    items = [1]
    set_nested_field(obj, items, "a", "b")
    items.append(2)
    assert obj == {"a": {"b": [1]}}


def test_set_then_get_round_trip():
    obj = {"keep": True}
    set_nested_field(obj, "value", "x", "y", "z")
    assert nested_string(obj, "x", "y", "z") == ("value", True)
    assert obj["keep"] is True


def test_set_nested_field_errors():
    with pytest.raises(TypeError, match="is not a map"):
        set_nested_field({"a": "str"}, 1, "a", "b")
    with pytest.raises(ValueError):
        set_nested_field({}, 1)


def test_pruned_single_and_multiple_paths():
    config = {"a": {"b": 1, "c": 2}, "d": 3}
    assert pruned(config, ["a", "b"]) == {"a": {"b": 1}}
    assert pruned(config, ["a", "c"], ["d"]) == {"a": {"c": 2}, "d": 3}
    assert pruned(config, ["missing"]) == {}
    assert pruned(config, ["d", "x"]) == {}


def test_pruned_passthrough():
    config = {"a": 1}
    assert pruned(None, ["a"]) is None
    assert pruned(config) is config


def test_unstructured_config_from_without_prefix():
    data = b'{"a": 1}'
    assert unstructured_config_from(data) is data


def test_unstructured_config_from_with_prefix():
    data = json.dumps({"oauthServer": {"x": {"y": 1}}, "other": 2}).encode()
    result = unstructured_config_from(data, "oauthServer")
    assert json.loads(result) == {"x": {"y": 1}}


def test_unstructured_config_from_missing_or_invalid():
    assert json.loads(unstructured_config_from(b'{"a": 1}', "oauthServer")) is None
    assert unstructured_config_from(b"not json", "oauthServer") == b"null"


def test_names_filter():
    accept = names_filter("a", "b")
    assert accept({"metadata": {"name": "a"}}) is True
    assert accept({"metadata": {"name": "c"}}) is False
    assert accept(SimpleNamespace(metadata=SimpleNamespace(name="b"))) is True
    assert accept("plain") is False
    assert accept({"name": "a"}) is False