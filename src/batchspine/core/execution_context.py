"""ExecutionContext — restart-durable key/value state of one execution.

Manifesto:
    A restarted step must see what the failed attempt wrote.  The context
    is the only state that crosses that boundary, so it is an explicit
    mapping object owned by the execution record, never a global.  Keys are
    namespaced strings (``"<module>.<Class>.<NAME>"``) so unrelated
    components cannot collide.

Architecture:
    ::

        StepExecution.execution_context ──▶ ExecutionContext
              ├── .put(key, value)           (None removes)
              ├── .get(key, default)
              ├── .get_string / get_int / get_float   (type-checked)
              ├── .put_if_absent(key, value) → stored value
              └── .is_dirty() / clear_dirty_flag()   → persistence hint

        JobRepository.update_execution_context(step_execution)
              └── stores a deep copy (a "persisted" snapshot)

Example::

    ctx = ExecutionContext()
    ctx.put("reader.offset", 120)
    ctx.get_int("reader.offset")           # 120
    ctx.put_if_absent("reader.offset", 0)  # 120, unchanged

Tags:
    batchspine, execution-context, restart, state

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

_MISSING = object()


class ExecutionContext:
    """Mutable string-keyed mapping with dirty tracking."""

    def __init__(self, initial: Mapping[str, Any] | ExecutionContext | None = None) -> None:
        self._map: dict[str, Any] = {}
        self._dirty = False
        if initial is not None:
            items = initial.to_dict() if isinstance(initial, ExecutionContext) else dict(initial)
            for key, value in items.items():
                self._check_key(key)
                self._map[key] = value

    @staticmethod
    def _check_key(key: Any) -> None:
        if not isinstance(key, str):
            raise TypeError(f"ExecutionContext keys must be str, got {type(key).__name__}")

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def put(self, key: str, value: Any) -> None:
        """Store *value* under *key*. A ``None`` value removes the key."""
        self._check_key(key)
        if value is None:
            if self._map.pop(key, _MISSING) is not _MISSING:
                self._dirty = True
            return
        if self._map.get(key, _MISSING) != value:
            self._dirty = True
        self._map[key] = value

    def put_if_absent(self, key: str, value: Any) -> Any:
        """Store *value* only if *key* is absent; return whatever is stored."""
        self._check_key(key)
        if key not in self._map:
            self.put(key, value)
        return self._map.get(key)

    def remove(self, key: str) -> Any:
        """Remove *key* and return its previous value (or None)."""
        value = self._map.pop(key, None)
        if value is not None:
            self._dirty = True
        return value

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        return self._map.get(key, default)

    def _get_typed(self, key: str, expected: type | tuple[type, ...], default: Any) -> Any:
        if key not in self._map:
            return default
        value = self._map[key]
        # bool is an int subclass but never a valid int/float entry
        if isinstance(value, bool) or not isinstance(value, expected):
            raise TypeError(
                f"Value for key={key!r} is not of type {getattr(expected, '__name__', expected)}: "
                f"{type(value).__name__}"
            )
        return value

    def get_string(self, key: str, default: str | None = None) -> str | None:
        return self._get_typed(key, str, default)

    def get_int(self, key: str, default: int | None = None) -> int | None:
        return self._get_typed(key, int, default)

    def get_float(self, key: str, default: float | None = None) -> float | None:
        value = self._get_typed(key, (int, float), default)
        return float(value) if value is not None else None

    def contains_key(self, key: str) -> bool:
        return key in self._map

    def contains_value(self, value: Any) -> bool:
        return value in self._map.values()

    def keys(self) -> list[str]:
        return list(self._map)

    def items(self) -> list[tuple[str, Any]]:
        return list(self._map.items())

    def to_dict(self) -> dict[str, Any]:
        """Shallow copy of the entries."""
        return dict(self._map)

    def is_empty(self) -> bool:
        return not self._map

    # ------------------------------------------------------------------
    # Dirty tracking
    # ------------------------------------------------------------------

    def is_dirty(self) -> bool:
        """True if the context changed since the last ``clear_dirty_flag()``."""
        return self._dirty

    def clear_dirty_flag(self) -> None:
        self._dirty = False

    # ------------------------------------------------------------------
    # Dunder
    # ------------------------------------------------------------------

    def __contains__(self, key: object) -> bool:
        return key in self._map

    def __len__(self) -> int:
        return len(self._map)

    def __iter__(self) -> Iterator[str]:
        return iter(self._map)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ExecutionContext):
            return NotImplemented
        return self._map == other._map

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ExecutionContext(dirty={self._dirty}, map={self._map!r})"
