"""
Reporters turn grade results into learner-facing text.

A reporter is handed to the harness for one grading run: ``begin`` is called
before the check, ``report`` once with the result, ``finish`` at the end.
Nothing in the checker or engine writes output directly.
"""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from typing import Optional, TextIO

from rich.console import Console
from rich.table import Table

from qgrade.core.errors import ProgrammingError
from qgrade.core.types import VerdictStatus
from qgrade.harness.exercise import Exercise, GradeResult


class Reporter(ABC):
    """Abstract base class for reporters."""

    def __init__(self) -> None:
        self._active: Optional[str] = None

    def begin(self, exercise: Exercise) -> None:
        if self._active is not None:
            raise ProgrammingError(
                f"Reporter is already reporting '{self._active}', cannot begin '{exercise.name}'"
            )
        self._active = exercise.name

    @abstractmethod
    def report(self, result: GradeResult, exercise: Exercise) -> None:
        """Render one result."""

    def finish(self) -> None:
        self._active = None


class NullReporter(Reporter):
    """Discards everything."""

    def report(self, result: GradeResult, exercise: Exercise) -> None:
        pass


class CollectingReporter(Reporter):
    """Keeps results in memory."""

    def __init__(self) -> None:
        super().__init__()
        self.results: list[GradeResult] = []

    def report(self, result: GradeResult, exercise: Exercise) -> None:
        self.results.append(result)


class TextReporter(Reporter):
    """
    Writes "Correct." / "Incorrect." with an optional hint to a text sink.

    Args:
        sink: Writable text stream (stdout by default)
        show_diagnostics: Append the state comparison on failure
    """

    def __init__(self, sink: Optional[TextIO] = None, show_diagnostics: bool = True) -> None:
        super().__init__()
        self.sink = sink if sink is not None else sys.stdout
        self.show_diagnostics = show_diagnostics

    def _write(self, line: str = "") -> None:
        self.sink.write(line + "\n")

    def report(self, result: GradeResult, exercise: Exercise) -> None:
        status = result.status
        if status is VerdictStatus.CORRECT:
            self._write("Correct.")
            return
        if status is VerdictStatus.INCORRECT:
            self._write("Incorrect.")
            if exercise.hint:
                self._write(f"Hint: {exercise.hint}")
            diagnostic = result.diagnostic
            if self.show_diagnostics and diagnostic is not None:
                if diagnostic.counterexample is not None:
                    self._write(f"Outputs differ for {diagnostic.counterexample.description}.")
                if diagnostic.comparison is not None:
                    self._write(diagnostic.comparison.describe())
                for note in diagnostic.notes:
                    self._write(note)
            return
        if status is VerdictStatus.EXECUTION_ERROR:
            self._write(f"Execution error: {result.verdict.message}")
            return
        self._write(f"Test aborted: {result.verdict.message}")

    def finish(self) -> None:
        super().finish()
        self.sink.flush()


class RichReporter(Reporter):
    """Terminal reporter with expected-vs-actual tables."""

    STYLES = {
        VerdictStatus.CORRECT: ("bold green", "✓ Correct."),
        VerdictStatus.INCORRECT: ("bold red", "✗ Incorrect."),
        VerdictStatus.EXECUTION_ERROR: ("bold yellow", "! Execution error"),
        VerdictStatus.ABORTED: ("bold magenta", "! Test aborted"),
    }

    def __init__(self, console: Optional[Console] = None, show_diagnostics: bool = True) -> None:
        super().__init__()
        self.console = console or Console()
        self.show_diagnostics = show_diagnostics

    def begin(self, exercise: Exercise) -> None:
        super().begin(exercise)
        self.console.print(
            f"[bold blue]{exercise.name}[/bold blue] "
            f"({exercise.num_qubits} qubit(s), {exercise.mode.value} mode)"
        )

    def report(self, result: GradeResult, exercise: Exercise) -> None:
        style, headline = self.STYLES[result.status]
        self.console.print(f"[{style}]{headline}[/{style}]")
        if result.status is not VerdictStatus.CORRECT and result.verdict.message:
            self.console.print(f"  {result.verdict.message}")
        if result.status is VerdictStatus.INCORRECT and exercise.hint:
            self.console.print(f"  [italic]Hint:[/italic] {exercise.hint}")

        diagnostic = result.diagnostic
        if not self.show_diagnostics or diagnostic is None:
            return
        if diagnostic.counterexample is not None:
            self.console.print(f"  Outputs differ for {diagnostic.counterexample.description}")
        if diagnostic.comparison is not None:
            comparison = diagnostic.comparison
            table = Table(title=f"Per-qubit P(|1⟩), fidelity {comparison.fidelity:.4f}")
            table.add_column("Qubit", style="cyan")
            table.add_column("Expected", style="green")
            table.add_column("Actual", style="red")
            for qubit, expected, actual in comparison.qubit_rows():
                table.add_row(str(qubit), f"{expected:.4f}", f"{actual:.4f}")
            self.console.print(table)
        for note in diagnostic.notes:
            self.console.print(f"  [dim]{note}[/dim]")
