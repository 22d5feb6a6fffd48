import pytest

from gdmarshal.type_registry import (OBJECT_SENTINEL, get_builtin_size_pairs,
                                     get_builtin_sizes, iter_small_int_metas,
                                     known_classes_from_api)

from tests.utils import config


def test_builtin_sizes_contain_expected_entries():
    sizes = get_builtin_sizes()
    assert sizes["String"] == 8
    assert sizes["Vector3"] == 12
    assert sizes["Projection"] == 64
    assert sizes["Variant"] == 24
    assert "int" not in sizes
    assert "bool" not in sizes


def test_builtin_size_pairs_keep_file_order():
    pairs = get_builtin_size_pairs()
    assert pairs[0] == ("String", 8)
    names = [name for name, _ in pairs]
    assert len(names) == len(set(names))


def test_size_overrides_are_applied(config):
    config["types"]["size_overrides"] = {"Vector3": 24, "Rect2": 32}
    sizes = get_builtin_sizes(config)
    assert sizes["Vector3"] == 24
    assert sizes["Rect2"] == 32
    assert get_builtin_sizes()["Vector3"] == 12


def test_size_overrides_must_be_positive(config):
    config["types"]["size_overrides"] = {"Vector3": 0}
    with pytest.raises(ValueError):
        get_builtin_sizes(config)


def test_known_classes_include_object_and_extras(config):
    config["types"]["extra_classes"] = ["MyNode"]
    api = {"classes": [{"name": "Node"}, {"name": "Resource"}]}
    classes = known_classes_from_api(api, config)
    assert classes == frozenset({"Node", "Resource", "MyNode", OBJECT_SENTINEL})


def test_small_int_metas_are_narrower_than_64_bits():
    metas = list(iter_small_int_metas())
    assert "int32" in metas
    assert "uint8" in metas
    assert "int64" not in metas
