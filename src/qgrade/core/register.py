"""
Scoped qubit register allocation.

A ``QubitArena`` hands out ``Register`` handles, each owning one
``StateVector``. ``QubitArena.scoped`` guarantees the register is released,
and its amplitudes zeroed, on every exit path including exceptions.
"""

from __future__ import annotations

import itertools
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Optional

from qgrade.core.errors import (
    ArenaExhaustedError,
    DimensionMismatchError,
    ReleasedRegisterError,
)
from qgrade.core.statevector import StateVector


logger = logging.getLogger(__name__)

DEFAULT_MAX_QUBITS = 16


@dataclass
class Register:
    """Handle to an allocated register of ``num_qubits`` qubits."""

    handle: int
    num_qubits: int
    state: StateVector = field(repr=False)
    _arena: Optional["QubitArena"] = field(default=None, repr=False)

    @property
    def qubits(self) -> list[int]:
        return list(range(self.num_qubits))

    @property
    def released(self) -> bool:
        return self.state.released

    def split(self, *sizes: int) -> list[list[int]]:
        """
        Partition the register's qubits into consecutive groups.

        Example:
            >>> probe, target = register.split(1, 3)
        """
        if sum(sizes) != self.num_qubits:
            raise DimensionMismatchError(
                f"Cannot split {self.num_qubits} qubits into groups {sizes}"
            )
        groups, start = [], 0
        for size in sizes:
            groups.append(list(range(start, start + size)))
            start += size
        return groups

    def release(self) -> None:
        if self._arena is not None:
            self._arena.release(self)
        else:
            self.state.release()


class QubitArena:
    """
    Bookkeeping for live registers.

    The arena caps the size of each register so a runaway exercise cannot
    allocate an intractable state vector. The cap applies to every register
    on its own, so concurrent runs never compete for qubits. It is safe to
    share between worker threads; registers themselves are not shared.
    """

    def __init__(self, max_qubits: int = DEFAULT_MAX_QUBITS) -> None:
        self.max_qubits = max_qubits
        self._live: dict[int, Register] = {}
        self._handles = itertools.count(1)
        self._lock = threading.Lock()

    @property
    def live_qubits(self) -> int:
        with self._lock:
            return sum(r.num_qubits for r in self._live.values())

    @property
    def live_registers(self) -> int:
        with self._lock:
            return len(self._live)

    def acquire(self, num_qubits: int) -> Register:
        """Allocate a register initialized to |0...0⟩."""
        if num_qubits < 1:
            raise DimensionMismatchError(f"Register size must be positive, got {num_qubits}")
        if num_qubits > self.max_qubits:
            raise ArenaExhaustedError(
                f"Cannot allocate {num_qubits} qubits: registers are limited to {self.max_qubits}"
            )
        with self._lock:
            handle = next(self._handles)
            register = Register(handle=handle, num_qubits=num_qubits,
                                state=StateVector(num_qubits), _arena=self)
            self._live[handle] = register
        logger.debug(f"Acquired register #{handle} ({num_qubits} qubits)")
        return register

    def release(self, register: Register) -> None:
        """Release a register. Releasing twice is an error."""
        with self._lock:
            if self._live.pop(register.handle, None) is None:
                raise ReleasedRegisterError(f"Register #{register.handle} is not live")
        register.state.release()
        logger.debug(f"Released register #{register.handle}")

    @contextmanager
    def scoped(self, num_qubits: int) -> Iterator[Register]:
        """
        Allocate a register for the duration of a ``with`` block.

        Example:
            >>> with arena.scoped(3) as register:
            ...     engine = ApplicationEngine(register.state)
        """
        register = self.acquire(num_qubits)
        try:
            yield register
        finally:
            self.release(register)
