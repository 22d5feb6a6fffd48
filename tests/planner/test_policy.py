import pytest

from gdmarshal.planner import BindingPolicy, escape_identifier
from gdmarshal.planner.policy import UTILITY_POLICY_KEY

from tests.utils import config


def test_escape_identifier():
    assert escape_identifier("get_name") == "get_name"
    assert escape_identifier("class") == "class_"
    assert escape_identifier("match") == "match_"


def test_empty_policy_allows_everything(config):
    policy = BindingPolicy.from_config(config, ["Node"])
    assert not policy.is_used_by_property("Node", "get_name")
    assert not policy.is_discardable("Node", "add_child")
    assert not policy.is_discardable(None, "print")


def test_policy_tables_from_config(config):
    config["policy"]["used_by_property"]["Node"] = ["get_name", "set_name"]
    config["policy"]["discardable_result"]["Node"] = ["add_child"]
    config["policy"]["discardable_result"][UTILITY_POLICY_KEY] = ["push_error"]

    policy = BindingPolicy.from_config(config, ["Node", "Resource"])
    assert policy.is_used_by_property("Node", "get_name")
    assert not policy.is_used_by_property("Resource", "get_name")
    assert policy.is_discardable("Node", "add_child")
    assert policy.is_discardable(None, "push_error")


def test_policy_entries_must_be_lists(config):
    config["policy"]["used_by_property"]["Node"] = "get_name"
    with pytest.raises(TypeError):
        BindingPolicy.from_config(config)
