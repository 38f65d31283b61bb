"""Exercise definitions and grading results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

from qgrade.core.errors import DimensionMismatchError, ProgrammingError
from qgrade.core.operation import Operation
from qgrade.core.types import EquivalenceMode, Verdict, VerdictStatus
from qgrade.verification.diagnostics import Diagnostic


@dataclass
class Exercise:
    """
    One gradable task: a reference operation and how to compare against it.

    ``mode`` defaults to state mode when a preparer is given and to operator
    mode otherwise. ``candidate_name`` is the name the learner's operation is
    looked up by, and defaults to the exercise name.
    """

    name: str
    num_qubits: int
    reference: Operation
    preparer: Optional[Operation] = None
    mode: Optional[EquivalenceMode] = None
    description: str = ""
    hint: str = ""
    candidate_name: Optional[str] = None
    tags: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.reference.num_qubits != self.num_qubits:
            raise DimensionMismatchError(
                f"Exercise '{self.name}' declares {self.num_qubits} qubit(s) but its reference "
                f"acts on {self.reference.num_qubits}"
            )
        if self.mode is None:
            self.mode = EquivalenceMode.STATE if self.preparer is not None else EquivalenceMode.OPERATOR
        if self.preparer is not None and self.mode is EquivalenceMode.OPERATOR:
            raise ProgrammingError(f"Exercise '{self.name}' uses a preparer in operator mode")
        if self.candidate_name is None:
            self.candidate_name = self.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "num_qubits": self.num_qubits,
            "reference": self.reference.name,
            "preparer": self.preparer.name if self.preparer else None,
            "mode": self.mode.value,
            "description": self.description,
            "hint": self.hint,
            "candidate_name": self.candidate_name,
            "tags": self.tags,
        }


@dataclass
class GradeResult:
    """Verdict for one exercise plus the diagnostic gathered for the learner."""

    exercise: str
    candidate: str
    verdict: Verdict
    diagnostic: Optional[Diagnostic] = None

    @property
    def status(self) -> VerdictStatus:
        return self.verdict.status

    @property
    def passed(self) -> bool:
        return self.verdict.status == VerdictStatus.CORRECT

    def to_dict(self) -> dict[str, Any]:
        return {
            "exercise": self.exercise,
            "candidate": self.candidate,
            "verdict": self.verdict.to_dict(),
            "diagnostic": self.diagnostic.to_dict() if self.diagnostic else None,
        }


class ExerciseCatalog:
    """
    Named collection of exercises.

    Example:
        >>> catalog = ExerciseCatalog([flip_qubit, bell_state])
        >>> catalog.get("flip_qubit").num_qubits
        1
    """

    def __init__(self, exercises: Optional[list[Exercise]] = None) -> None:
        self._exercises: dict[str, Exercise] = {}
        for exercise in exercises or []:
            self.add(exercise)

    def add(self, exercise: Exercise) -> Exercise:
        if exercise.name in self._exercises:
            raise ValueError(f"Duplicate exercise name: {exercise.name}")
        self._exercises[exercise.name] = exercise
        return exercise

    def get(self, name: str) -> Exercise:
        try:
            return self._exercises[name]
        except KeyError:
            raise KeyError(f"Unknown exercise: {name}") from None

    def names(self) -> list[str]:
        return list(self._exercises)

    def filter(self, tag: str) -> list[Exercise]:
        return [e for e in self._exercises.values() if tag in e.tags]

    def __contains__(self, name: object) -> bool:
        return name in self._exercises

    def __len__(self) -> int:
        return len(self._exercises)

    def __iter__(self) -> Iterator[Exercise]:
        return iter(self._exercises.values())

    def get_statistics(self) -> dict[str, Any]:
        """Get catalog statistics."""
        by_size: dict[int, int] = {}
        by_mode: dict[str, int] = {}
        for exercise in self._exercises.values():
            by_size[exercise.num_qubits] = by_size.get(exercise.num_qubits, 0) + 1
            by_mode[exercise.mode.value] = by_mode.get(exercise.mode.value, 0) + 1
        return {
            "total_exercises": len(self._exercises),
            "by_num_qubits": by_size,
            "by_mode": by_mode,
        }
