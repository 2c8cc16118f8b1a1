"""Tests for deep merging of configuration layers."""

from gitgate.core.yaml_settings import merge_dicts


def test_nested_dicts_merge():
    base = {"config": {"service": {"api_base": "a", "timeout": None}}}
    override = {"config": {"service": {"timeout": 30}}}
    assert merge_dicts(base, override) == {
        "config": {"service": {"api_base": "a", "timeout": 30}},
    }


def test_override_replaces_lists_and_scalars():
    base = {"include": ["a.yaml"], "name": "x"}
    override = {"include": ["b.yaml"], "name": "y"}
    assert merge_dicts(base, override) == {"include": ["b.yaml"], "name": "y"}


def test_dict_replaced_by_scalar():
    assert merge_dicts({"a": {"b": 1}}, {"a": None}) == {"a": None}


def test_inputs_not_mutated():
    base = {"a": {"b": 1}}
    merge_dicts(base, {"a": {"c": 2}})
    assert base == {"a": {"b": 1}}
