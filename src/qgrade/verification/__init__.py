"""
Verification module for QGRADE.

This module provides the control-indirection equivalence checker and the
diagnostic tools used to explain failed checks.
"""

from qgrade.verification.equivalence import (
    EquivalenceChecker,
    operations_equivalent,
)
from qgrade.verification.diagnostics import (
    Diagnostic,
    DiagnosticRunner,
    StateComparison,
)

__all__ = [
    "EquivalenceChecker",
    "operations_equivalent",
    "Diagnostic",
    "DiagnosticRunner",
    "StateComparison",
]
