import copy

import pytest

from flowdag.env import NODE_TABLE_KEY, EnvVar
from flowdag.ids import NodeTable


def test_set_and_get():
    env = EnvVar(NodeTable())
    env.set("Hello", "World")
    assert env.get("Hello", str) == "World"
    assert env.get("Hello") == "World"


def test_get_wrong_type_returns_none():
    env = EnvVar(NodeTable())
    env.set("base", 2)
    assert env.get("base", str) is None
    assert env.get("base", int) == 2


def test_get_missing_returns_none():
    assert EnvVar(NodeTable()).get("absent", int) is None


def test_node_table_is_stored():
    table = NodeTable()
    env = EnvVar(table)
    assert env.get(NODE_TABLE_KEY, NodeTable) is table
    assert NODE_TABLE_KEY in env


def test_get_node_id():
    table = NodeTable()
    node_id = table.alloc_id_for("root")
    env = EnvVar(table)
    assert env.get_node_id("root") == node_id
    assert env.get_node_id("other") is None


def test_get_node_id_without_table_raises():
    env = EnvVar(NodeTable())
    env.set(NODE_TABLE_KEY, 5)
    with pytest.raises(KeyError):
        env.get_node_id("root")


def test_set_overwrites():
    env = EnvVar(NodeTable())
    env.set("x", 1)
    env.set("x", 2)
    assert env.get("x", int) == 2


def test_copy_is_independent():
    env = EnvVar(NodeTable())
    env.set("x", 1)
    clone = copy.copy(env)
    clone.set("x", 3)
    assert env.get("x", int) == 1
    assert clone.get("x", int) == 3