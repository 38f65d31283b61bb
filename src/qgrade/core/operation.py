"""
Operations: the unit a submission and a reference are expressed as.

An ``Operation`` has one required method, ``body``, and a set of capability
flags fixed at construction. ``adjoint()`` and ``controlled()`` build the
corresponding variants and raise ``CapabilityError`` immediately when the
capability was not declared, so a missing variant is never discovered halfway
through a simulation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Flag, auto
from typing import TYPE_CHECKING, Callable, Optional, Sequence

from qgrade.core.errors import CapabilityError, DimensionMismatchError, QubitIndexError
from qgrade.core.gates import Gate

if TYPE_CHECKING:
    from qgrade.core.engine import ApplicationEngine


Body = Callable[["ApplicationEngine", list[int]], None]


class Capability(Flag):
    """Optional variants an operation supports beyond its body."""

    NONE = 0
    ADJOINT = auto()
    CONTROLLED = auto()
    ALL = ADJOINT | CONTROLLED


class Operation(ABC):
    """
    Abstract base class for operations over a fixed number of qubits.

    Operations are stateless: everything they act on comes in through the
    engine and the qubit list passed to ``body``.
    """

    def __init__(
        self,
        name: str,
        num_qubits: int,
        capabilities: Capability = Capability.ALL,
    ) -> None:
        if num_qubits < 0:
            raise DimensionMismatchError(f"Operation '{name}' has negative qubit count")
        self.name = name
        self.num_qubits = num_qubits
        self.capabilities = capabilities
        self._adjoint: Optional[Operation] = None

    @abstractmethod
    def body(self, engine: "ApplicationEngine", qubits: list[int]) -> None:
        """Issue this operation's instructions on ``qubits``."""

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def adjoint(self) -> "Operation":
        """The inverse operation; ``op.adjoint().adjoint() is op``."""
        if not self.supports(Capability.ADJOINT):
            raise CapabilityError(f"Operation '{self.name}' does not support Adjoint")
        if self._adjoint is None:
            inverse = self._make_adjoint()
            if inverse is not self:
                inverse._adjoint = self
            self._adjoint = inverse
        return self._adjoint

    def _make_adjoint(self) -> "Operation":
        return AdjointOperation(self)

    def controlled(self, num_controls: int = 1) -> "Operation":
        """Variant taking ``num_controls`` control qubits before the original qubits."""
        if not self.supports(Capability.CONTROLLED):
            raise CapabilityError(f"Operation '{self.name}' does not support Controlled")
        if num_controls < 1:
            raise ValueError("A controlled operation needs at least one control qubit")
        return ControlledOperation(self, num_controls)

    def __call__(self, engine: "ApplicationEngine", qubits: Sequence[int]) -> None:
        engine.apply(self, qubits)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, num_qubits={self.num_qubits})"


class GateOperation(Operation):
    """A single primitive gate; its adjoint is closed-form."""

    def __init__(self, gate: Gate, name: Optional[str] = None) -> None:
        super().__init__(name or str(gate), gate.num_qubits, Capability.ALL)
        self.gate = gate

    def body(self, engine: "ApplicationEngine", qubits: list[int]) -> None:
        engine.gate(self.gate, qubits)

    def _make_adjoint(self) -> Operation:
        if self.gate.is_self_adjoint:
            return self
        return GateOperation(self.gate.adjoint())


class AdjointOperation(Operation):
    """Inverse of an operation with no closed-form adjoint, derived by replay."""

    def __init__(self, inner: Operation) -> None:
        super().__init__(f"Adjoint {inner.name}", inner.num_qubits, inner.capabilities)
        self.inner = inner
        self._adjoint = inner

    def body(self, engine: "ApplicationEngine", qubits: list[int]) -> None:
        with engine.record() as tape:
            self.inner.body(engine, qubits)
        engine.replay_adjoint(tape)


class ControlledOperation(Operation):
    """``inner`` applied only where all of the leading control qubits are |1⟩."""

    def __init__(self, inner: Operation, num_controls: int, name: Optional[str] = None) -> None:
        if name is None:
            prefix = "Controlled" if num_controls == 1 else f"Controlled[{num_controls}]"
            name = f"{prefix} {inner.name}"
        super().__init__(
            name,
            inner.num_qubits + num_controls,
            inner.capabilities | Capability.CONTROLLED,
        )
        self.inner = inner
        self.num_controls = num_controls

    def body(self, engine: "ApplicationEngine", qubits: list[int]) -> None:
        controls, targets = qubits[: self.num_controls], qubits[self.num_controls:]
        with engine.controlled_by(controls):
            self.inner.body(engine, targets)

    def _make_adjoint(self) -> Operation:
        return ControlledOperation(self.inner.adjoint(), self.num_controls)

    def controlled(self, num_controls: int = 1) -> Operation:
        if num_controls < 1:
            raise ValueError("A controlled operation needs at least one control qubit")
        return ControlledOperation(self.inner, self.num_controls + num_controls)


class PhaseShifted(Operation):
    """``inner`` followed by a global phase ``exp(i*theta)``."""

    def __init__(self, inner: Operation, theta: float) -> None:
        super().__init__(f"{inner.name}·e^(i{theta:.4g})", inner.num_qubits, inner.capabilities)
        self.inner = inner
        self.theta = theta

    def body(self, engine: "ApplicationEngine", qubits: list[int]) -> None:
        self.inner.body(engine, qubits)
        engine.phase(self.theta)

    def _make_adjoint(self) -> Operation:
        return PhaseShifted(self.inner.adjoint(), -self.theta)


class Circuit(Operation):
    """
    An ordered sequence of operations on subsets of the circuit's qubits.

    Example:
        >>> bell = Circuit(2, "bell").add(H, 0).add(CNOT, 0, 1)
    """

    def __init__(self, num_qubits: int, name: str = "circuit") -> None:
        super().__init__(name, num_qubits, Capability.ALL)
        self.steps: list[tuple[Operation, tuple[int, ...]]] = []

    def add(self, op: Operation, *qubits: int) -> "Circuit":
        """Append ``op`` acting on the given circuit-relative qubit indices."""
        if len(qubits) != op.num_qubits:
            raise DimensionMismatchError(
                f"Operation '{op.name}' acts on {op.num_qubits} qubit(s), got {len(qubits)}"
            )
        if len(set(qubits)) != len(qubits) or any(not 0 <= q < self.num_qubits for q in qubits):
            raise QubitIndexError(f"Invalid qubits {qubits} for {self.num_qubits}-qubit circuit")
        self.steps.append((op, tuple(qubits)))
        self.capabilities &= op.capabilities
        self._adjoint = None
        return self

    def body(self, engine: "ApplicationEngine", qubits: list[int]) -> None:
        for op, indices in self.steps:
            engine.apply(op, [qubits[i] for i in indices])

    def _make_adjoint(self) -> Operation:
        inverse = Circuit(self.num_qubits, f"Adjoint {self.name}")
        for op, indices in reversed(self.steps):
            inverse.add(op.adjoint(), *indices)
        return inverse

    def __len__(self) -> int:
        return len(self.steps)


class CallableOperation(Operation):
    """
    An operation whose body is a python function ``fn(engine, qubits)``.

    The adjoint is derived by recording the body, unless an explicit adjoint
    body is registered with ``define_adjoint``.
    """

    def __init__(
        self,
        fn: Body,
        num_qubits: int,
        name: Optional[str] = None,
        capabilities: Capability = Capability.ALL,
    ) -> None:
        super().__init__(name or fn.__name__, num_qubits, capabilities)
        self.fn = fn
        self.adjoint_fn: Optional[Body] = None
        self.__doc__ = fn.__doc__

    def body(self, engine: "ApplicationEngine", qubits: list[int]) -> None:
        self.fn(engine, qubits)

    def define_adjoint(self, fn: Body) -> Body:
        """Decorator registering a hand-written adjoint body."""
        self.adjoint_fn = fn
        self._adjoint = None
        return fn

    def _make_adjoint(self) -> Operation:
        if self.adjoint_fn is None:
            return AdjointOperation(self)
        return CallableOperation(
            self.adjoint_fn, self.num_qubits, f"Adjoint {self.name}", self.capabilities
        )


def operation(
    num_qubits: int,
    name: Optional[str] = None,
    adjoint: bool = True,
    controlled: bool = True,
) -> Callable[[Body], CallableOperation]:
    """
    Decorator turning a function into an ``Operation``.

    Example:
        >>> @operation(num_qubits=2)
        ... def bell(engine, qubits):
        ...     engine.h(qubits[0])
        ...     engine.cnot(qubits[0], qubits[1])
    """
    capabilities = Capability.NONE
    if adjoint:
        capabilities |= Capability.ADJOINT
    if controlled:
        capabilities |= Capability.CONTROLLED

    def decorator(fn: Body) -> CallableOperation:
        return CallableOperation(fn, num_qubits, name, capabilities)

    return decorator
