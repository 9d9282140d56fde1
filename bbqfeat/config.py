"""Run configuration for the featurization pipeline.

A single :class:`FeaturizerConfig` is shared by every structure of a batch,
so it is validated once, before any structure is processed.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Union

from .constants import (
    DEFAULT_CONTACT_RADIUS,
    DEFAULT_HBOND_ANGLE_MIN,
    DEFAULT_HBOND_ANTECEDENT_ANGLE_MIN,
    DEFAULT_HBOND_DISTANCE_MAX,
    DEFAULT_MAX_PARTNERS,
    DEFAULT_PADDING_POLICY,
    DEFAULT_SEQUENCE_WINDOW,
    DEFAULT_SUPPORTED_POLYMER_TYPES,
    PADDING_POLICIES,
    STANDARD_RESIDUE_TYPES,
)
from .errors import ConfigError, InconsistentWindowConfig

PAD_SENTINEL = "pad-sentinel"
REPORT_COUNT = "report-count"


def normalize_padding_policy(policy: Optional[str]) -> Optional[str]:
    """Accept ``pad_sentinel``/``PAD-SENTINEL`` spellings; ``None``/``"none"`` means no policy."""
    if policy is None:
        return None
    value = str(policy).strip().lower().replace("_", "-")
    if value in ("", "none"):
        return None
    if value not in PADDING_POLICIES:
        raise ConfigError(
            f"Unsupported window_padding_policy: {policy!r}. "
            f"Allowed: {list(PADDING_POLICIES)} or None"
        )
    return value


def _frozen_tokens(values: Iterable[str]) -> FrozenSet[str]:
    if isinstance(values, str):
        values = [values]
    return frozenset(str(v).strip().upper() for v in values)


FLOAT_OPTIONS = (
    "contact_radius",
    "hbond_distance_max",
    "hbond_angle_min",
    "hbond_antecedent_angle_min",
    "neighbor_radius",
)


def _as_float(name: str, value: Any) -> float:
    """Numeric option as float; JSON strings such as "4.0" are accepted."""
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be a number, got {value!r}") from e


@dataclass(frozen=True)
class FeaturizerConfig:
    contact_radius: float = DEFAULT_CONTACT_RADIUS
    hbond_distance_max: float = DEFAULT_HBOND_DISTANCE_MAX
    hbond_angle_min: float = DEFAULT_HBOND_ANGLE_MIN
    hbond_antecedent_angle_min: float = DEFAULT_HBOND_ANTECEDENT_ANGLE_MIN
    max_partners: int = DEFAULT_MAX_PARTNERS
    window_padding_policy: Optional[str] = DEFAULT_PADDING_POLICY
    sequence_window: int = DEFAULT_SEQUENCE_WINDOW
    neighbor_radius: Optional[float] = None
    supported_residue_types: FrozenSet[str] = field(default=STANDARD_RESIDUE_TYPES)
    supported_polymer_types: FrozenSet[str] = field(
        default=frozenset(DEFAULT_SUPPORTED_POLYMER_TYPES)
    )
    remove_ligands: bool = True

    def __post_init__(self) -> None:
        # Normalize container/enum fields so that equal configs compare equal.
        for name in FLOAT_OPTIONS:
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, _as_float(name, value))
        object.__setattr__(
            self, "window_padding_policy", normalize_padding_policy(self.window_padding_policy)
        )
        object.__setattr__(
            self, "supported_residue_types", _frozen_tokens(self.supported_residue_types)
        )
        object.__setattr__(
            self,
            "supported_polymer_types",
            frozenset(str(p).strip().lower() for p in self.supported_polymer_types),
        )

    @property
    def effective_neighbor_radius(self) -> float:
        """Radius of the candidate residue-pair search."""
        floor = max(self.contact_radius, self.hbond_distance_max)
        if self.neighbor_radius is None:
            return floor
        return max(float(self.neighbor_radius), floor)

    @property
    def pads(self) -> bool:
        return self.window_padding_policy == PAD_SENTINEL

    def validate(self) -> "FeaturizerConfig":
        """Check batch-wide settings; returns self for chaining."""
        if isinstance(self.max_partners, bool) or not isinstance(self.max_partners, int):
            raise InconsistentWindowConfig(
                f"max_partners must be an integer, got {self.max_partners!r}"
            )
        if self.max_partners < 1:
            raise InconsistentWindowConfig(
                f"max_partners must be >= 1, got {self.max_partners}"
            )
        if not isinstance(self.sequence_window, int) or self.sequence_window < 0:
            raise InconsistentWindowConfig(
                f"sequence_window must be a non-negative integer, got {self.sequence_window!r}"
            )
        for name in ("contact_radius", "hbond_distance_max"):
            value = getattr(self, name)
            if not value > 0:
                raise ConfigError(f"{name} must be > 0, got {value!r}")
        if self.neighbor_radius is not None and not self.neighbor_radius > 0:
            raise ConfigError(f"neighbor_radius must be > 0, got {self.neighbor_radius!r}")
        for name in ("hbond_angle_min", "hbond_antecedent_angle_min"):
            value = getattr(self, name)
            if not 0.0 <= value <= 180.0:
                raise ConfigError(f"{name} must lie in [0, 180] degrees, got {value!r}")
        if not self.supported_residue_types:
            raise ConfigError("supported_residue_types must not be empty")
        if not self.supported_polymer_types:
            raise ConfigError("supported_polymer_types must not be empty")
        return self

    def with_overrides(self, **overrides: Any) -> "FeaturizerConfig":
        """Copy with the non-None overrides applied."""
        overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **overrides)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FeaturizerConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration option(s): {unknown}. Allowed: {sorted(known)}")
        return cls(**dict(data))

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "FeaturizerConfig":
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to read configuration file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file {path} must contain a JSON object")
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["supported_residue_types"] = sorted(self.supported_residue_types)
        data["supported_polymer_types"] = sorted(self.supported_polymer_types)
        return data
