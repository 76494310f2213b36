import pytest

from keyinject import Container, InjectionSpec, InterfaceSpec


def test_injection_spec_requires_key_or_interface():
    with pytest.raises(ValueError):
        InjectionSpec()


def test_injection_spec_rejects_both_key_and_interface():
    with pytest.raises(ValueError):
        InjectionSpec(key="a", interface="b")


def test_register_invalid_injection_leaves_store_untouched():
    c = Container()

    with pytest.raises(ValueError):
        c.register("svc", object, injections={"dep": {"key": "a", "interface": "b"}})

    assert not c.has("svc")


def test_register_unknown_injection_option_raises():
    c = Container()

    with pytest.raises(ValueError):
        c.register("svc", object, injections={"dep": {"key": "a", "lazy": True}})


def test_register_invalid_injection_type_raises():
    c = Container()

    with pytest.raises(ValueError):
        c.register("svc", object, injections={"dep": 42})


def test_register_invalid_interface_declaration_raises():
    c = Container()

    with pytest.raises(ValueError):
        c.register("svc", object, interfaces=[{"tag": "x", "unknown": 1}])
    with pytest.raises(ValueError):
        c.register("svc", object, interfaces=[42])

    assert not c.has("svc")
    assert not c.has("x")


def test_interface_declarations_are_normalized():
    c = Container()
    c.register(
        "svc",
        object,
        interfaces=["plain", {"type": "legacy", "map_instances": True}, InterfaceSpec("spec")],
    )

    policy = c.store["svc"].policy
    assert policy.interfaces == (
        InterfaceSpec("plain"),
        InterfaceSpec("legacy", map_instances=True),
        InterfaceSpec("spec"),
    )


def test_injection_declarations_are_normalized():
    c = Container()
    c.register(
        "svc",
        object,
        injections={
            "a": "dep",
            "b": {"interface": "tag", "constructor": True},
            "c": {"key": "dep", "constructor_args": ["x"]},
        },
    )

    injections = c.store["svc"].policy.injections
    assert injections["a"] == InjectionSpec(key="dep")
    assert injections["b"] == InjectionSpec(interface="tag", constructor=True)
    assert injections["c"] == InjectionSpec(key="dep", constructor_args=("x",))


def test_policy_defaults():
    c = Container()
    c.register("svc", object)

    policy = c.store["svc"].policy
    assert policy.singleton is False
    assert policy.map_instances is False
    assert policy.instance_index_field is None
    assert policy.interfaces == ()
    assert dict(policy.injections) == {}
    assert policy.factory_args == ()
    assert policy.factory_context is None
    assert dict(policy.attributes) == {}
