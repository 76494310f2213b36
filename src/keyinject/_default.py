from __future__ import annotations

from ._container import Container
from ._store import InstanceStore


global_store = InstanceStore()
container = Container(global_store)


def clear() -> None:
    """Empty the process-wide store, bootstrap registrations included.

    Meant for test isolation; never call it while a resolution is running.
    """
    global_store.clear()
