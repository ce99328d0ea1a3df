"""Variable storage: a process-wide id allocator and arena-backed value slots.

A variable's value lives in exactly one arena slot, keyed by the variable id.
Every ``VariableRef`` node and every ``VariableHandle`` for that id reads and
writes the same slot, so a write through the handle is seen by all nodes.

Ids come from a single allocator shared by all arenas. They grow
monotonically, are never reset and are never reused, even after release.
"""

from __future__ import annotations

import contextlib
import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import ContextManager

import numpy as np

from tensorexpr.ir.buffer import DenseBuffer, Shape
from tensorexpr.ir.errors import ShapeMismatchError
from tensorexpr.ir.node import VariableRef

logger = logging.getLogger(__name__)


# =============================================================================
# Id allocation
# =============================================================================


class IdAllocator:
    """Thread-safe increment-and-fetch counter."""

    def __init__(self, start: int = 0) -> None:
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            return next(self._counter)


_ID_ALLOCATOR = IdAllocator()


def default_id_allocator() -> IdAllocator:
    return _ID_ALLOCATOR


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True, slots=True)
class ArenaConfig:
    """Configuration for a variable arena.

    Attributes:
        name: Label used in diagnostics.
        thread_safe: Guard the slot table with a lock. When False the arena is
                     single-threaded by contract.
    """

    name: str = "default"
    thread_safe: bool = True

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Arena name must be non-empty")


# =============================================================================
# Arena
# =============================================================================


@dataclass(eq=False)
class VariableArena:
    """Slots of dense buffers keyed by variable id.

    Values are immutable buffers, so replacing a slot is the only mutation.

    Example:
        >>> arena = VariableArena(ArenaConfig(name="params"))
        >>> node, var_id, handle = arena.new_variable(DenseBuffer.constant(0.0, (2, 3)))
        >>> handle.set(DenseBuffer.constant(1.0, (2, 3)))
        >>> node.value.all_equal_to(1.0)
        True
    """

    config: ArenaConfig = field(default_factory=ArenaConfig)
    ids: IdAllocator = field(default_factory=default_id_allocator, repr=False)

    _slots: dict[int, DenseBuffer] = field(default_factory=dict, repr=False)
    _tags: dict[int, str] = field(default_factory=dict, repr=False)
    _lock: ContextManager = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._lock = threading.Lock() if self.config.thread_safe else contextlib.nullcontext()

    # -------------------------------------------------------------------------
    # Core Operations
    # -------------------------------------------------------------------------

    def alloc(self, initial: DenseBuffer, tag: str = "") -> int:
        """Store `initial` in a fresh slot and return the new variable id."""
        if not isinstance(initial, DenseBuffer):
            raise TypeError(f"Expected a DenseBuffer, got {type(initial).__name__}")
        var_id = self.ids.next_id()
        with self._lock:
            self._slots[var_id] = initial
            self._tags[var_id] = tag or f"v{var_id}"
        logger.debug("arena %s: allocated variable %d shape=%s", self.config.name, var_id, initial.shape)
        return var_id

    def get(self, var_id: int) -> DenseBuffer:
        """Return the current value of a variable.

        Raises:
            KeyError: If the id was never allocated here or has been released.
        """
        with self._lock:
            try:
                return self._slots[var_id]
            except KeyError:
                raise KeyError(f"Unknown variable id {var_id} in arena {self.config.name!r}") from None

    def set(self, var_id: int, value: DenseBuffer | np.ndarray) -> None:
        """Replace a variable's value. The shape must stay the same.

        Raw array-like data is accepted and laid out in the variable's shape.
        """
        with self._lock:
            if var_id not in self._slots:
                raise KeyError(f"Unknown variable id {var_id} in arena {self.config.name!r}")
            shape = self._slots[var_id].shape
            if not isinstance(value, DenseBuffer):
                value = DenseBuffer(value, shape)
            if value.shape != shape:
                raise ShapeMismatchError(
                    f"Variable {var_id} has shape {shape}, cannot assign shape {value.shape}"
                )
            self._slots[var_id] = value

    def release(self, var_id: int) -> None:
        """Drop a variable's slot. Its id is never handed out again."""
        with self._lock:
            if var_id not in self._slots:
                raise KeyError(f"Cannot release variable {var_id}: not allocated or already released")
            del self._slots[var_id]
            del self._tags[var_id]
        logger.debug("arena %s: released variable %d", self.config.name, var_id)

    def new_variable(
        self, initial: DenseBuffer, tag: str = ""
    ) -> tuple[VariableRef, int, VariableHandle]:
        var_id = self.alloc(initial, tag)
        node = VariableRef(var_id, initial.shape, self)
        return node, var_id, VariableHandle(var_id, initial.shape, self)

    def __contains__(self, var_id: object) -> bool:
        with self._lock:
            return var_id in self._slots

    def __len__(self) -> int:
        with self._lock:
            return len(self._slots)

    # -------------------------------------------------------------------------
    # Diagnostics
    # -------------------------------------------------------------------------

    def format_state(self, *, max_vars: int = 10) -> str:
        """Format arena state for debugging."""
        with self._lock:
            entries = sorted(self._slots.items())
            tags = dict(self._tags)
        total = sum(buf.nbytes for _, buf in entries)
        lines = [
            f"VariableArena({self.config.name!r}):",
            f"  Variables: {len(entries)}",
            f"  Bytes:     {total:,}",
        ]
        for var_id, buf in entries[:max_vars]:
            lines.append(f"    #{var_id}: shape={buf.shape} {buf.nbytes:,} bytes [{tags[var_id]}]")
        if len(entries) > max_vars:
            lines.append(f"    ... ({len(entries) - max_vars} more)")
        return "\n".join(lines)


# =============================================================================
# Handles
# =============================================================================


@dataclass(frozen=True, slots=True)
class VariableHandle:
    """External read/write access to a variable's slot."""

    var_id: int
    shape: Shape
    arena: VariableArena = field(repr=False, compare=False)

    def get(self) -> DenseBuffer:
        return self.arena.get(self.var_id)

    def set(self, value: DenseBuffer | np.ndarray) -> None:
        self.arena.set(self.var_id, value)

    @property
    def value(self) -> DenseBuffer:
        return self.get()


# =============================================================================
# Default arena
# =============================================================================


_DEFAULT_ARENA: VariableArena | None = None
_DEFAULT_ARENA_LOCK = threading.Lock()


def default_arena() -> VariableArena:
    global _DEFAULT_ARENA
    with _DEFAULT_ARENA_LOCK:
        if _DEFAULT_ARENA is None:
            _DEFAULT_ARENA = VariableArena()
        return _DEFAULT_ARENA


def new_variable(
    initial: DenseBuffer, *, arena: VariableArena | None = None, tag: str = ""
) -> tuple[VariableRef, int, VariableHandle]:
    """Allocate a variable and return ``(node, id, handle)``.

    The node and the handle share one slot; writes through the handle are
    visible through ``node.value`` and through every tree containing the node.
    """
    if arena is None:
        arena = default_arena()
    return arena.new_variable(initial, tag)
