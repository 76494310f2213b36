import unittest

import pytest

from keyinject import Container


class Named:
    def __init__(self, name):
        self.name = name


class TestLifetimeControl(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_singleton_returns_same_instance_and_runs_factory_once(self):
        calls = []

        class ClassK:
            def __init__(self):
                calls.append(self)
                self.ctr = len(calls)

        self.cont.register_type(ClassK, singleton=True)

        first = self.cont.get("ClassK")
        for _ in range(3):
            assert self.cont.get("ClassK") is first, "SINGLETON should return the cached instance"
        assert first.ctr == 1
        assert len(calls) == 1

    def test_singleton_is_listed_in_all_instances(self):
        self.cont.register("config", dict, singleton=True)
        config = self.cont.get("config")
        assert self.cont.all_instances("config") == [config]

    def test_singleton_ignores_args_once_cached(self):
        self.cont.register_type(Named, singleton=True)
        first = self.cont.get("Named", "a")
        second = self.cont.get("Named", "b")
        assert second is first
        assert second.name == "a"

    def test_map_instances_keeps_creation_order(self):
        self.cont.register_type(Named, map_instances=True)

        created = [self.cont.get("Named", name) for name in ("x", "y", "z", "x")]

        assert self.cont.all_instances("Named") == created

    def test_map_instances_by_index_field(self):
        self.cont.register("class_d", Named, map_instances=True, instance_index_field="name")

        ryan = self.cont.create("class_d", "ryan")
        stevens = self.cont.create("class_d", "stevens")

        assert self.cont.all_instances("class_d") == [ryan, stevens]

    def test_map_instances_index_field_collision_overwrites_slot(self):
        self.cont.register("class_d", Named, map_instances=True, instance_index_field="name")

        self.cont.create("class_d", "a")
        b = self.cont.create("class_d", "b")
        second_a = self.cont.create("class_d", "a")

        instances = self.cont.all_instances("class_d")
        assert instances == [second_a, b]
        assert len(instances) == 2

    def test_missing_index_field_fails_without_storing(self):
        self.cont.register(
            "class_d",
            Named,
            map_instances=True,
            instance_index_field="missing",
            interfaces=[{"tag": "named", "map_instances": True}],
        )

        with pytest.raises(AttributeError):
            self.cont.create("class_d", "a")

        assert self.cont.all_instances("class_d") == []
        assert self.cont.all_instances("named") == []
