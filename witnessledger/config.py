"""
witnessledger configuration.

Sources, later wins:
    1. WitnessConfig defaults
    2. YAML file            (WitnessConfig.from_yaml / load_config)
    3. WITNESSLEDGER_* env  (apply_env)

Unknown YAML keys are rejected so typos fail loudly at startup.
"""

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from witnessledger.core.exceptions import ValidationError
from witnessledger.core.models import DEFAULT_LOGIC_SUMMARY_LEN

ENV_PREFIX = "WITNESSLEDGER_"


@dataclass(frozen=True)
class WitnessConfig:
    settlement_interval_seconds: float         = 10.0
    ledger_url:                  Optional[str] = None
    ledger_timeout_seconds:      float         = 5.0
    credential_path:             Optional[str] = None
    signing_key_path:            Optional[str] = None
    logic_summary_length:        int           = DEFAULT_LOGIC_SUMMARY_LEN
    log_level:                   str           = "INFO"

    def __post_init__(self) -> None:
        if self.settlement_interval_seconds <= 0:
            raise ValidationError(
                "settlement_interval_seconds must be positive",
                {"value": self.settlement_interval_seconds},
            )
        if self.ledger_timeout_seconds <= 0:
            raise ValidationError(
                "ledger_timeout_seconds must be positive",
                {"value": self.ledger_timeout_seconds},
            )
        if self.logic_summary_length < 0:
            raise ValidationError(
                "logic_summary_length must not be negative",
                {"value": self.logic_summary_length},
            )

    # ── Construction ──────────────────────────────────────────

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "WitnessConfig":
        known   = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValidationError(
                "Unknown configuration keys",
                {"keys": ",".join(unknown)},
            )
        return cls(**{k: _coerce(k, v) for k, v in data.items()})

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "WitnessConfig":
        """Load from a YAML file. An empty file yields the defaults."""
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValidationError(
                "Configuration file must contain a mapping",
                {"path": str(path)},
            )
        return cls.from_mapping(data)

    def apply_env(self, environ: Optional[Mapping[str, str]] = None) -> "WitnessConfig":
        """Return a copy with WITNESSLEDGER_<FIELD> environment overrides applied."""
        environ = os.environ if environ is None else environ
        overrides: Dict[str, Any] = {}
        for f in fields(self):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            overrides[f.name] = _coerce(f.name, raw)
        if not overrides:
            return self
        return replace(self, **overrides)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "WitnessConfig":
        return cls().apply_env(environ)


def load_config(
    path:    Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> WitnessConfig:
    """YAML file (if given) then environment overrides."""
    config = WitnessConfig.from_yaml(path) if path else WitnessConfig()
    return config.apply_env(environ)


_FLOAT_FIELDS = {"settlement_interval_seconds", "ledger_timeout_seconds"}
_INT_FIELDS   = {"logic_summary_length"}


def _coerce(name: str, value: Any) -> Any:
    if value is None:
        if name in _FLOAT_FIELDS or name in _INT_FIELDS:
            raise ValidationError(f"{name} must not be null")
        return "INFO" if name == "log_level" else None
    try:
        if name in _FLOAT_FIELDS:
            return float(value)
        if name in _INT_FIELDS:
            return int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            f"Invalid value for {name}",
            {"value": value},
        ) from exc
    if isinstance(value, str) and value == "":
        return None if name != "log_level" else "INFO"
    return str(value)
