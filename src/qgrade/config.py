"""
Grader configuration.

Settings can be given directly, loaded from the ``qgrade:`` section of a YAML
file, or built from a plain dictionary.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Optional, Union

from qgrade.core.errors import ConfigurationError
from qgrade.core.profiles import TargetProfile


@dataclass
class GraderConfig:
    """Configuration for a grading session."""

    # Editor-owned setting
    target_profile: str = "unrestricted"
    enable_adaptive_profile: bool = False

    # Equivalence checking
    tolerance: float = 1e-9
    max_qubits: int = 16

    # Harness
    timeout_seconds: float = 30.0
    max_workers: int = 4
    diagnostics: bool = True
    counterexample_max_qubits: int = 6
    seed: Optional[int] = None

    # General settings
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Raise ``ConfigurationError`` on out-of-range values."""
        if not 0 < self.tolerance < 1:
            raise ConfigurationError(f"tolerance must be in (0, 1), got {self.tolerance}")
        if self.max_qubits < 1:
            raise ConfigurationError(f"max_qubits must be positive, got {self.max_qubits}")
        if self.timeout_seconds <= 0:
            raise ConfigurationError(
                f"timeout_seconds must be positive, got {self.timeout_seconds}"
            )
        if self.max_workers < 1:
            raise ConfigurationError(f"max_workers must be positive, got {self.max_workers}")
        if self.log_level.upper() not in {"TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ConfigurationError(f"Unknown log level: {self.log_level}")

    @property
    def profile(self) -> TargetProfile:
        profile = TargetProfile.from_setting(self.target_profile)
        if profile is TargetProfile.ADAPTIVE and not self.enable_adaptive_profile:
            raise ConfigurationError(
                "The adaptive profile is disabled; set enable_adaptive_profile to use it"
            )
        return profile

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GraderConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {sorted(unknown)}")
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "GraderConfig":
        """Load configuration from YAML file."""
        import yaml
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data.get("qgrade", {}))

    def with_overrides(self, **overrides: Any) -> "GraderConfig":
        """Copy with the non-None overrides applied."""
        data = self.to_dict()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return GraderConfig.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)
