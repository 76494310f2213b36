from __future__ import annotations

import inspect
import logging
import warnings
from typing import TYPE_CHECKING, Any

from ._errors import AmbiguousInterfaceWarning, DuplicateKeyError, UnknownKeyError
from ._selectors import SelectorChain
from ._store import Candidate, Entry, InstanceStore, make_policy


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable, Iterable, Mapping

    from ._selectors import BindingLike, Selector
    from ._store import InjectionLike, InterfaceLike, Policy

INSTANCE_STORE = "instance_store"
DEFAULT_STORE_KEY = "DefaultInstanceStore"


class Container:
    """Key based DI container.

    - register factories or classes under string keys
    - lifetimes: transient, singleton, indexed collections (`map_instances`)
    - lookup by interface tag, narrowed by selectors
    - constructor and property injection

    Resolution is synchronous and re-entrant. Cyclic injections are not
    detected and end in `RecursionError`.
    """

    def __init__(self, store: InstanceStore | None = None) -> None:
        self._store = store if store is not None else InstanceStore()
        self._lock = self._store.lock
        self._selectors = SelectorChain()
        self._resolver = Resolver(self)
        self._bootstrap()

    @property
    def store(self) -> InstanceStore:
        return self._store

    def _bootstrap(self) -> None:
        # A container is itself resolvable, backed by whichever store the
        # `instance_store` interface selects.
        cls = type(self)
        store = self._store
        with self._lock:
            if cls.__name__ not in store:

                def new_container(injections: dict[str, Any], *_: Any) -> Container:
                    if injections["store"] is None:
                        msg = f"No {INSTANCE_STORE!r} provider was selected for a new {cls.__name__}"
                        raise LookupError(msg)
                    return cls(injections["store"])

                self.register(
                    cls.__name__,
                    new_container,
                    injections={"store": {"interface": INSTANCE_STORE, "constructor": True}},
                )
            if DEFAULT_STORE_KEY not in store:
                self.register(DEFAULT_STORE_KEY, lambda: store, interfaces=[INSTANCE_STORE])

    def register(
        self,
        key: str,
        factory: Callable[..., Any],
        *,
        singleton: bool = False,
        map_instances: bool = False,
        instance_index_field: str | None = None,
        interfaces: Iterable[InterfaceLike] = (),
        injections: Mapping[str, InjectionLike] | None = None,
        factory_args: Iterable[Any] = (),
        factory_context: Any = None,
        attributes: Mapping[str, Any] | None = None,
    ) -> None:
        """Register a factory under `key`.

        Example:
          container.register("db", create_db, singleton=True, interfaces=["storage"])
          container.register("repo", Repo, injections={"db": "db"})

        Raises DuplicateKeyError if `key` already exists, interface tags included.
        """
        if not callable(factory):
            msg = f"Factory for {key!r} must be callable"
            raise TypeError(msg)

        policy = make_policy(
            singleton=singleton,
            map_instances=map_instances,
            instance_index_field=instance_index_field,
            interfaces=interfaces,
            injections=injections,
            factory_args=factory_args,
            factory_context=factory_context,
            attributes=attributes,
        )

        with self._lock:
            if key in self._store:
                msg = f"The factory {key!r} is already registered"
                raise DuplicateKeyError(msg)
            self._store.add(key, Entry(factory=factory, policy=policy))
            for interface in policy.interfaces:
                self._store.interface(interface.tag).keys.append(key)

        logger.debug("Registered %r (interfaces: %s)", key, [i.tag for i in policy.interfaces])

    def register_type(self, cls: type, **options: Any) -> None:
        """Register `cls` under its own name."""
        self.register_type_by_key(cls.__name__, cls, **options)

    def register_type_by_key(self, key: str, cls: type, **options: Any) -> None:
        """Register `cls` as the factory for `key`; any number of constructor args is forwarded."""
        if not inspect.isclass(cls):
            msg = f"Expected a class for {key!r}, got {type(cls).__name__}"
            raise TypeError(msg)
        if options.get("factory_context") is not None:
            msg = "`factory_context` cannot be used with a type registration."
            raise ValueError(msg)
        self.register(key, cls, **options)

    def has(self, key: str) -> bool:
        return key in self._store

    def create(self, key: str, *args: Any) -> Any:
        """Resolve `key` to an instance.

        - Singletons return their cached instance without re-resolving injections.
        - `args` replace the registration's `factory_args` when given.
        - Interface placeholder keys resolve to None.
        """
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                msg = f"Key {key!r} not found"
                raise UnknownKeyError(msg)

            if entry.factory is None or entry.policy is None:
                return None

            if entry.policy.singleton and entry.instances:
                return next(iter(entry.instances.values()))

            return self._resolver.build(key, entry, entry.factory, entry.policy, args)

    get = create

    def all_instances(self, key: str) -> list[Any]:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return []
            return list(entry.instances.values())

    def get_keys_by_interface(self, tag: str) -> list[str]:
        with self._lock:
            entry = self._store.get(tag)
            if entry is None:
                return []
            candidates = [Candidate(key, self._store[key].policy) for key in entry.keys]
            return [candidate.key for candidate in self._selectors.select(tag, candidates)]

    def get_instance_by_interface(self, tag: str) -> Any:
        with self._lock:
            keys = self.get_keys_by_interface(tag)
            if not keys:
                logger.debug("No registration provides interface %r", tag)
                return None

            if len(keys) > 1:
                # Points at the caller; for an interface injection that is the Resolver.
                warnings.warn(
                    f"Interface {tag!r} matched {len(keys)} registrations {keys}; using {keys[0]!r}. "
                    "Consider adding a selector.",
                    AmbiguousInterfaceWarning,
                    stacklevel=2,
                )

            return self.create(keys[0])

    def add_selectors(self, *bindings: BindingLike) -> None:
        self._selectors.extend(bindings)

    def add_selector(self, tag: str, selector: Selector) -> None:
        self._selectors.add(tag, selector)


class Resolver:
    """Builds instances for a container: injections, factory call, lifecycle bookkeeping."""

    def __init__(self, container: Container) -> None:
        self._container = container

    def build(
        self,
        key: str,
        entry: Entry,
        factory: Callable[..., Any],
        policy: Policy,
        args: tuple[Any, ...],
    ) -> object:
        constructor_injections, prop_injections = self.resolve_injections(policy)

        # Caller supplied args take precedence over the registered defaults.
        call_args = list(args) if args else list(policy.factory_args)
        if constructor_injections:
            call_args.insert(0, constructor_injections)

        logger.debug("Creating %r with %d argument(s)", key, len(call_args))
        instance = self._invoke(factory, policy, call_args)

        for prop, value in prop_injections.items():
            setattr(instance, prop, value)

        self._retain(entry, policy, instance)
        return instance

    def resolve_injections(self, policy: Policy) -> tuple[dict[str, Any], dict[str, Any]]:
        constructor_injections: dict[str, Any] = {}
        prop_injections: dict[str, Any] = {}

        for prop, injection in policy.injections.items():
            if injection.key is not None:
                value = self._container.create(injection.key, *injection.constructor_args)
            else:
                value = self._container.get_instance_by_interface(injection.interface)  # type: ignore[arg-type]

            if injection.constructor:
                constructor_injections[prop] = value
            else:
                prop_injections[prop] = value

        return constructor_injections, prop_injections

    def _invoke(self, factory: Callable[..., Any], policy: Policy, args: list[Any]) -> object:
        if policy.factory_context is None:
            return factory(*args)
        return factory(policy.factory_context, *args)

    def _retain(self, entry: Entry, policy: Policy, instance: object) -> None:
        # Every index is computed before any map is written.
        targets: list[tuple[Entry, Hashable]] = []
        pending: dict[int, int] = {}

        def plan(target: Entry, index_field: str | None) -> None:
            index = target.next_index(instance, index_field, pending.get(id(target), 0))
            pending[id(target)] = pending.get(id(target), 0) + 1
            targets.append((target, index))

        if policy.keeps_instances:
            plan(entry, policy.instance_index_field)

        store = self._container.store
        for interface in policy.interfaces:
            if interface.map_instances:
                plan(store[interface.tag], interface.instance_index_field)

        for target, index in targets:
            target.instances[index] = instance

