from __future__ import annotations

import logging
import threading
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, NamedTuple


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable, Iterable

    InterfaceLike = str | InterfaceSpec | Mapping[str, Any]
    InjectionLike = str | InjectionSpec | Mapping[str, Any]


@dataclass(frozen=True)
class InterfaceSpec:
    """A capability declared by a registration.

    `map_instances` / `instance_index_field` index instances under the tag
    itself, independently of the registration's own policy.
    """

    tag: str
    map_instances: bool = False
    instance_index_field: str | None = None


@dataclass(frozen=True)
class InjectionSpec:
    key: str | None = None
    interface: str | None = None
    constructor: bool = False
    constructor_args: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        if (self.key is None) == (self.interface is None):
            msg = "An injection needs exactly one of `key` or `interface`."
            raise ValueError(msg)


@dataclass(frozen=True)
class Policy:
    singleton: bool = False
    map_instances: bool = False
    instance_index_field: str | None = None
    interfaces: tuple[InterfaceSpec, ...] = ()
    injections: Mapping[str, InjectionSpec] = field(default_factory=dict)
    factory_args: tuple[Any, ...] = ()
    factory_context: Any = None
    attributes: Mapping[str, Any] = field(default_factory=dict)

    @property
    def keeps_instances(self) -> bool:
        return self.singleton or self.map_instances


class Candidate(NamedTuple):
    """A registration offered to selectors when narrowing an interface."""

    key: str
    policy: Policy


@dataclass
class Entry:
    """One row of the store.

    Entries created only to index an interface have no factory and no policy.
    """

    factory: Callable[..., object] | None = None
    policy: Policy | None = None
    instances: dict[Hashable, object] = field(default_factory=dict)
    keys: list[str] = field(default_factory=list)

    def next_index(self, instance: object, index_field: str | None, pending: int = 0) -> Hashable:
        """Index for `instance`; `pending` counts writes to this entry not yet applied."""
        if index_field:
            return getattr(instance, index_field)
        return len(self.instances) + pending


class InstanceStore:
    """Table of registrations, interface indexes and materialized instances.

    Several containers may share one store. `clear()` empties it; it must not
    be called while a resolution is in progress.
    """

    def __init__(self) -> None:
        self._entries: dict[str, Entry] = {}
        self.lock = threading.RLock()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __getitem__(self, key: str) -> Entry:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Entry | None:
        return self._entries.get(key)

    def add(self, key: str, entry: Entry) -> None:
        self._entries[key] = entry

    def interface(self, tag: str) -> Entry:
        """Return the entry indexing `tag`, creating a placeholder if needed."""
        entry = self._entries.get(tag)
        if entry is None:
            entry = self._entries[tag] = Entry()
        return entry

    def clear(self) -> None:
        with self.lock:
            logger.debug("Clearing instance store (%d entries)", len(self._entries))
            self._entries.clear()


def normalize_interface(value: InterfaceLike) -> InterfaceSpec:
    if isinstance(value, InterfaceSpec):
        return value
    if isinstance(value, str):
        return InterfaceSpec(tag=value)
    if isinstance(value, Mapping):
        options = dict(value)
        if "type" in options:
            options["tag"] = options.pop("type")
        try:
            return InterfaceSpec(**options)
        except TypeError as e:
            msg = f"Invalid interface declaration {value!r}: {e}"
            raise ValueError(msg) from e
    msg = f"Interfaces must be tag strings, mappings or InterfaceSpec, got {type(value).__name__}"
    raise ValueError(msg)


def normalize_injection(value: InjectionLike) -> InjectionSpec:
    if isinstance(value, InjectionSpec):
        return value
    if isinstance(value, str):
        return InjectionSpec(key=value)
    if isinstance(value, Mapping):
        options = dict(value)
        if "constructor_args" in options:
            options["constructor_args"] = tuple(options["constructor_args"])
        try:
            return InjectionSpec(**options)
        except TypeError as e:
            msg = f"Invalid injection declaration {value!r}: {e}"
            raise ValueError(msg) from e
    msg = f"Injections must be key strings, mappings or InjectionSpec, got {type(value).__name__}"
    raise ValueError(msg)


def make_policy(
    *,
    singleton: bool = False,
    map_instances: bool = False,
    instance_index_field: str | None = None,
    interfaces: Iterable[InterfaceLike] = (),
    injections: Mapping[str, InjectionLike] | None = None,
    factory_args: Iterable[Any] = (),
    factory_context: Any = None,
    attributes: Mapping[str, Any] | None = None,
) -> Policy:
    return Policy(
        singleton=singleton,
        map_instances=map_instances,
        instance_index_field=instance_index_field,
        interfaces=tuple(normalize_interface(i) for i in interfaces),
        injections={prop: normalize_injection(spec) for prop, spec in (injections or {}).items()},
        factory_args=tuple(factory_args),
        factory_context=factory_context,
        attributes=dict(attributes or {}),
    )
