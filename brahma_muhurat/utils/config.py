# brahma_muhurat/utils/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import yaml

from brahma_muhurat.core.muhurat import TraditionType
from brahma_muhurat.core.refraction import RefractionModelName
from brahma_muhurat.core.solar import PrecisionTier
from brahma_muhurat.core.validators import parse_enum

__all__ = ["AttrDict", "CalculatorSettings", "load_config", "settings_from_config", "DEFAULT_CONFIG_PATH"]

DEFAULT_CONFIG_PATH = "config/defaults.yaml"

# env var → key inside the `calculator:` section
_ENV_OVERRIDES = {
    "BM_PRECISION": "precision",
    "BM_TRADITION": "tradition",
    "BM_REFRACTION_MODEL": "refraction_model",
}


class AttrDict(dict):
    """Dict that also supports attribute access: cfg.calculator and cfg['calculator'] both work."""
    def __getattr__(self, item):
        try:
            return self[item]
        except KeyError as e:
            raise AttributeError(item) from e
    def __setattr__(self, key, value):
        self[key] = value


def _to_attr(obj):
    if isinstance(obj, dict):
        return AttrDict({k: _to_attr(v) for k, v in obj.items()})
    if isinstance(obj, list):
        return [_to_attr(x) for x in obj]
    return obj


def load_config(path: Optional[str] = None) -> AttrDict:
    """
    Load YAML config from `path` (default BM_CONFIG or config/defaults.yaml).
    A missing file yields an empty config; malformed YAML raises yaml.YAMLError.
    Env overrides for the calculator section:
      - BM_PRECISION, BM_TRADITION, BM_REFRACTION_MODEL
    """
    path = path or os.getenv("BM_CONFIG", DEFAULT_CONFIG_PATH)
    data: Dict[str, Any] = {}
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"config root must be a mapping: {path}")

    calc = dict(data.get("calculator") or {})
    for env, key in _ENV_OVERRIDES.items():
        val = os.getenv(env)
        if val:
            calc[key] = val
    data["calculator"] = calc
    return _to_attr(data)


@dataclass(frozen=True)
class CalculatorSettings:
    precision: PrecisionTier = PrecisionTier.HIGH
    tradition: TraditionType = TraditionType.STANDARD
    refraction_model: RefractionModelName = RefractionModelName.BENNETT

    @classmethod
    def from_mapping(cls, m: Optional[Mapping[str, Any]] = None, defaults: Optional["CalculatorSettings"] = None) -> "CalculatorSettings":
        base = defaults or cls()
        m = m or {}
        return cls(
            precision=parse_enum(m.get("precision") or base.precision, PrecisionTier, "precision"),
            tradition=parse_enum(m.get("tradition") or base.tradition, TraditionType, "tradition"),
            refraction_model=parse_enum(
                m.get("refraction_model") or base.refraction_model, RefractionModelName, "refraction_model"
            ),
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "precision": self.precision.value,
            "tradition": self.tradition.value,
            "refraction_model": self.refraction_model.value,
        }


def settings_from_config(cfg: Optional[Mapping[str, Any]]) -> CalculatorSettings:
    section = (cfg or {}).get("calculator") or {}
    return CalculatorSettings.from_mapping(section)
