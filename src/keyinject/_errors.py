from __future__ import annotations


class DuplicateKeyError(KeyError):
    """Raised when a key is registered a second time."""


class UnknownKeyError(KeyError):
    """Raised when resolving a key that was never registered."""


class AmbiguousInterfaceWarning(UserWarning):
    """More than one registration is left for an interface after selection.

    Resolution carries on with the first candidate in registration order.
    """
