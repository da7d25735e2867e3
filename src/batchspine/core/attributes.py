"""Attribute bag shared by successive handler calls within one step attempt."""

from __future__ import annotations

from typing import Any


class AttributeAccessor:
    """Mutable name/value bag.

    One instance lives for exactly one step execution attempt and is passed
    by reference into every :class:`~batchspine.core.protocols.StepHandler`
    call.  It has no internal locking; calls must be sequential.
    """

    def __init__(self) -> None:
        self._attributes: dict[str, Any] = {}

    def set_attribute(self, name: str, value: Any) -> None:
        """Set *name* to *value*; ``None`` removes the attribute."""
        if value is None:
            self._attributes.pop(name, None)
        else:
            self._attributes[name] = value

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self._attributes.get(name, default)

    def remove_attribute(self, name: str) -> Any:
        return self._attributes.pop(name, None)

    def has_attribute(self, name: str) -> bool:
        return name in self._attributes

    def attribute_names(self) -> list[str]:
        return list(self._attributes)

    def __contains__(self, name: object) -> bool:
        return name in self._attributes

    def __repr__(self) -> str:
        return f"AttributeAccessor({self._attributes!r})"
