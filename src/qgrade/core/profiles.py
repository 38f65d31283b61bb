"""
Target capability profiles.

The target profile is a single string setting owned by the editor
integration. It restricts which instructions an authored operation may use;
it has no influence on how equivalence is decided.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import FrozenSet


logger = logging.getLogger(__name__)


class Instruction(Enum):
    """Instruction families an operation body can issue."""

    GATE = "gate"
    GLOBAL_PHASE = "global_phase"
    MEASURE = "measure"
    RESET = "reset"
    CUSTOM_UNITARY = "custom_unitary"


class TargetProfile(Enum):
    """Named instruction sets."""

    BASE = "base"
    ADAPTIVE = "adaptive"
    UNRESTRICTED = "unrestricted"

    @property
    def friendly_name(self) -> str:
        return _FRIENDLY_NAMES[self]

    @property
    def instructions(self) -> FrozenSet[Instruction]:
        return _INSTRUCTIONS[self]

    def allows(self, instruction: Instruction) -> bool:
        return instruction in _INSTRUCTIONS[self]

    @classmethod
    def from_setting(cls, value: str) -> "TargetProfile":
        """
        Parse the configuration string.

        Unknown values are logged and fall back to ``UNRESTRICTED``, matching
        the editor's own handling of a corrupted setting.
        """
        key = (value or "").strip().lower()
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            logger.error(f"Invalid target profile '{value}', using 'unrestricted'")
            return cls.UNRESTRICTED

    @classmethod
    def from_friendly_name(cls, text: str) -> "TargetProfile":
        for profile, name in _FRIENDLY_NAMES.items():
            if name == text:
                return profile
        logger.error(f"Invalid target profile found: '{text}'")
        return cls.UNRESTRICTED

    @classmethod
    def available(cls, enable_adaptive: bool = False) -> list["TargetProfile"]:
        """Profiles offered for selection."""
        profiles = [cls.BASE, cls.ADAPTIVE, cls.UNRESTRICTED]
        if not enable_adaptive:
            profiles.remove(cls.ADAPTIVE)
        return profiles


_FRIENDLY_NAMES = {
    TargetProfile.BASE: "QIR base",
    TargetProfile.ADAPTIVE: "QIR Adaptive",
    TargetProfile.UNRESTRICTED: "unrestricted",
}

_ALIASES = {
    "quantinuum": "adaptive",
    "adaptive_ri": "adaptive",
}

_BASE_SET = frozenset({Instruction.GATE, Instruction.GLOBAL_PHASE, Instruction.MEASURE})

_INSTRUCTIONS = {
    TargetProfile.BASE: _BASE_SET,
    TargetProfile.ADAPTIVE: _BASE_SET | {Instruction.RESET},
    TargetProfile.UNRESTRICTED: frozenset(Instruction),
}
