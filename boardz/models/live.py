# Rev 0.1.0
"""Live values: the nodes of the recomputation graph (Rev 0.1.0)

A LiveValue caches the latest value it computed and emits `changed` with it.
Store subscriptions, contact projections, task joins, the board aggregator
and status columns are all LiveValues, so a consumer can always ask for the
current value and get notified of the next one.

All connections are direct: emission runs the slots on the calling thread
before `_publish` returns. No Qt event loop is needed.
"""
from __future__ import annotations

from typing import Any, Callable, List, Optional

from PySide6.QtCore import QObject, Signal

_UNSET = object()


class LiveValue(QObject):
    changed = Signal(object)

    def __init__(self, name: str = "", parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self.name = name
        self._value: Any = _UNSET
        self._closed = False
        # derived nodes are kept alive by their source until they are closed
        self._dependents: List["LiveValue"] = []

    # ---- queries
    def has_value(self) -> bool:
        return self._value is not _UNSET

    def value(self, default: Any = None) -> Any:
        return default if self._value is _UNSET else self._value

    @property
    def closed(self) -> bool:
        return self._closed

    # ---- wiring
    def listen(self, slot: Callable[[Any], None]) -> None:
        """Connect `slot` and replay the cached value to it, if any."""
        self.changed.connect(slot)
        if self.has_value() and not self._closed:
            slot(self._value)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._on_close()

    def _on_close(self) -> None:
        """Release upstream resources. Subclasses override."""

    # ---- emission
    def _publish(self, value: Any) -> bool:
        if self._closed:
            return False
        if self._value is not _UNSET and self._value == value:
            return False
        self._value = value
        self.changed.emit(value)
        return True

    def __repr__(self) -> str:
        state = "closed" if self._closed else ("ready" if self.has_value() else "pending")
        return f"<{type(self).__name__} {self.name or '?'} {state}>"


class MappedValue(LiveValue):
    """Derived node: value = fn(source value). Closing it closes the source when owned."""

    def __init__(self, source: LiveValue, fn: Callable[[Any], Any], *, owns_source: bool = True, name: str = "") -> None:
        super().__init__(name or source.name)
        self._source = source
        self._fn = fn
        self._owns_source = owns_source
        source._dependents.append(self)
        source.listen(self._on_source)

    def _on_source(self, value: Any) -> None:
        if self._closed:
            return
        self._publish(self._fn(value))

    def _on_close(self) -> None:
        try:
            self._source.changed.disconnect(self._on_source)
        except (RuntimeError, TypeError):
            pass
        try:
            self._source._dependents.remove(self)
        except ValueError:
            pass
        if self._owns_source:
            self._source.close()
