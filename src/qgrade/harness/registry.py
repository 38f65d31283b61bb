"""Resolving submitted operations by name."""

from __future__ import annotations

import logging
from pathlib import Path
from types import ModuleType
from typing import Iterator, Optional, Union

from qgrade.core.errors import UnknownOperationError
from qgrade.core.operation import Operation
from qgrade.utils.loading import load_module


logger = logging.getLogger(__name__)


class OperationRegistry:
    """
    Maps names to operations.

    Submissions are usually loaded wholesale from a module: every module-level
    ``Operation`` instance is registered under its attribute name.
    """

    def __init__(self, operations: Optional[dict[str, Operation]] = None) -> None:
        self._operations: dict[str, Operation] = dict(operations or {})

    def register(self, name: str, op: Operation, replace: bool = False) -> Operation:
        if not isinstance(op, Operation):
            raise TypeError(f"Cannot register {type(op).__name__} as an operation")
        if name in self._operations and not replace:
            raise ValueError(f"Operation '{name}' is already registered")
        self._operations[name] = op
        return op

    def resolve(self, name: str) -> Operation:
        try:
            return self._operations[name]
        except KeyError:
            raise UnknownOperationError(f"No operation named '{name}' was submitted") from None

    def register_module(self, module: ModuleType, replace: bool = True) -> int:
        """Register all module-level operations; returns how many were found."""
        count = 0
        for attribute, value in vars(module).items():
            if attribute.startswith("_") or not isinstance(value, Operation):
                continue
            self.register(attribute, value, replace=replace)
            count += 1
        logger.debug(f"Registered {count} operation(s) from {module.__name__}")
        return count

    @classmethod
    def from_source(cls, source: Union[str, Path]) -> "OperationRegistry":
        """Build a registry from a submission file or module name."""
        registry = cls()
        registry.register_module(load_module(source))
        return registry

    def names(self) -> list[str]:
        return sorted(self._operations)

    def __contains__(self, name: object) -> bool:
        return name in self._operations

    def __len__(self) -> int:
        return len(self._operations)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())
