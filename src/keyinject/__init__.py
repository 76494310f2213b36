"""Key based dependency injection.

Factories are registered under string keys and resolved on demand, with
lifecycle policies and capability ("interface") lookup.

Exports:
- `Container`: registry and resolver; `register`, `create`/`get`, `all_instances`,
  `get_keys_by_interface`, `get_instance_by_interface`, `add_selectors`.
- `InstanceStore`: the table a container works on. Containers may share one.
- `container` / `global_store` / `clear`: the process-wide default container,
  its store, and a reset for test isolation.
- `InjectionSpec`, `InterfaceSpec`, `Policy`, `Candidate`, `SelectorBinding`:
  declaration and selector types.
- `DuplicateKeyError`, `UnknownKeyError`, `AmbiguousInterfaceWarning`.
"""

from ._container import Container
from ._default import clear, container, global_store
from ._errors import AmbiguousInterfaceWarning, DuplicateKeyError, UnknownKeyError
from ._selectors import Selector, SelectorBinding
from ._store import Candidate, InjectionSpec, InstanceStore, InterfaceSpec, Policy


__all__ = [
    "AmbiguousInterfaceWarning",
    "Candidate",
    "Container",
    "DuplicateKeyError",
    "InjectionSpec",
    "InstanceStore",
    "InterfaceSpec",
    "Policy",
    "Selector",
    "SelectorBinding",
    "UnknownKeyError",
    "clear",
    "container",
    "global_store",
]
