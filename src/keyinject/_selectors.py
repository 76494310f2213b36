from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, NamedTuple, Protocol


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ._store import Candidate

    BindingLike = SelectorBinding | tuple[str, Selector] | Mapping[str, Any]


class Selector(Protocol):
    """Narrows the candidates registered for an interface.

    Selectors may close over mutable state; they are called on every lookup
    and their output is never cached.
    """

    def __call__(self, candidates: list[Candidate], /) -> list[Candidate]: ...


class SelectorBinding(NamedTuple):
    tag: str
    selector: Selector


class SelectorChain:
    """Ordered tie-break selectors, per interface tag."""

    def __init__(self) -> None:
        self._selectors: dict[str, list[Selector]] = {}

    def add(self, tag: str, selector: Selector) -> None:
        if not callable(selector):
            msg = f"Selector for interface {tag!r} must be callable"
            raise TypeError(msg)
        self._selectors.setdefault(tag, []).append(selector)

    def extend(self, bindings: Iterable[BindingLike]) -> None:
        for binding in bindings:
            tag, selector = normalize_binding(binding)
            self.add(tag, selector)

    def __contains__(self, tag: object) -> bool:
        return tag in self._selectors

    def select(self, tag: str, candidates: list[Candidate]) -> list[Candidate]:
        """Run the chain for `tag`, stopping once a single candidate is left."""
        for selector in self._selectors.get(tag, ()):
            if len(candidates) == 1:
                break
            candidates = list(selector(list(candidates)))
            logger.debug("Selector %r left %d candidate(s) for %r", selector, len(candidates), tag)
        return candidates


def normalize_binding(value: BindingLike) -> SelectorBinding:
    """Accept a `SelectorBinding`, a `(tag, selector)` pair or a mapping with `tag` (or `type`) and `selector`."""
    if isinstance(value, SelectorBinding):
        return value
    if isinstance(value, Mapping):
        tag = value.get("tag", value.get("type"))
        selector = value.get("selector")
        if not isinstance(tag, str) or selector is None or set(value) - {"tag", "type", "selector"}:
            msg = f"Invalid selector binding {value!r}: expected `tag` (or `type`) and `selector`"
            raise ValueError(msg)
        return SelectorBinding(tag, selector)
    if isinstance(value, tuple) and len(value) == 2 and isinstance(value[0], str):
        return SelectorBinding(*value)
    msg = f"Selector bindings must be SelectorBinding, (tag, selector) pairs or mappings, got {value!r}"
    raise ValueError(msg)
