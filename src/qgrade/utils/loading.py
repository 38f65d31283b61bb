"""Loading submissions from python files or importable modules."""

from __future__ import annotations

import importlib
import importlib.util
import logging
from pathlib import Path
from types import ModuleType
from typing import Any, Union


logger = logging.getLogger(__name__)


def load_module(source: Union[str, Path]) -> ModuleType:
    """
    Import a submission.

    Args:
        source: Path to a ``.py`` file, or a dotted module name

    Raises:
        FileNotFoundError: if a file path does not exist
        ImportError: if the module cannot be imported
    """
    source_str = str(source)
    if source_str.endswith(".py") or Path(source_str).suffix == ".py":
        path = Path(source_str)
        if not path.exists():
            raise FileNotFoundError(f"Submission file not found: {path}")
        module_name = f"qgrade_submission_{path.stem}"
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot load submission from {path}")
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        logger.debug(f"Loaded submission file {path}")
        return module
    return importlib.import_module(source_str)


def load_object(reference: str) -> Any:
    """
    Load ``module_or_file:attribute``.

    Example:
        >>> load_object("submissions/alice.py:flip_qubit")
    """
    source, sep, attribute = reference.rpartition(":")
    if not sep or not source or not attribute:
        raise ValueError(f"Expected 'module:attribute', got '{reference}'")
    module = load_module(source)
    try:
        return getattr(module, attribute)
    except AttributeError:
        raise ImportError(f"'{source}' has no attribute '{attribute}'") from None
