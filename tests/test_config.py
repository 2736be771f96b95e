# tests/test_config.py
from __future__ import annotations

import logging

import pytest
import yaml

from brahma_muhurat.core.muhurat import TraditionType
from brahma_muhurat.core.refraction import RefractionModelName
from brahma_muhurat.core.solar import PrecisionTier
from brahma_muhurat.core.validators import ValidationError
from brahma_muhurat.utils.config import CalculatorSettings, load_config, settings_from_config
from brahma_muhurat.utils.observability import CompositeObserver, LoggingObserver, NullObserver


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for k in ("BM_PRECISION", "BM_TRADITION", "BM_REFRACTION_MODEL", "BM_CONFIG"):
        monkeypatch.delenv(k, raising=False)


def test_missing_file_gives_defaults(tmp_path) -> None:
    cfg = load_config(str(tmp_path / "absent.yaml"))
    assert cfg.calculator == {}
    assert settings_from_config(cfg) == CalculatorSettings()


def test_yaml_values_and_attribute_access(tmp_path) -> None:
    p = tmp_path / "bm.yaml"
    p.write_text("calculator:\n  precision: basic\n  tradition: dynamic\napi:\n  max_batch: 10\n", encoding="utf-8")
    cfg = load_config(str(p))
    assert cfg.api.max_batch == 10
    s = settings_from_config(cfg)
    assert s.precision is PrecisionTier.BASIC
    assert s.tradition is TraditionType.DYNAMIC
    assert s.refraction_model is RefractionModelName.BENNETT


def test_env_overrides_file(tmp_path, monkeypatch) -> None:
    p = tmp_path / "bm.yaml"
    p.write_text("calculator:\n  precision: basic\n", encoding="utf-8")
    monkeypatch.setenv("BM_PRECISION", "maximum")
    monkeypatch.setenv("BM_REFRACTION_MODEL", "rigorous")
    s = settings_from_config(load_config(str(p)))
    assert s.precision is PrecisionTier.MAXIMUM
    assert s.refraction_model is RefractionModelName.RIGOROUS


def test_bm_config_env_selects_file(tmp_path, monkeypatch) -> None:
    p = tmp_path / "other.yaml"
    p.write_text("calculator:\n  tradition: smarta\n", encoding="utf-8")
    monkeypatch.setenv("BM_CONFIG", str(p))
    assert settings_from_config(load_config()).tradition is TraditionType.SMARTA


def test_malformed_yaml_propagates(tmp_path) -> None:
    p = tmp_path / "bad.yaml"
    p.write_text("calculator: [unclosed\n", encoding="utf-8")
    with pytest.raises(yaml.YAMLError):
        load_config(str(p))


def test_invalid_setting_value(tmp_path) -> None:
    p = tmp_path / "bm.yaml"
    p.write_text("calculator:\n  precision: ludicrous\n", encoding="utf-8")
    with pytest.raises(ValidationError, match="precision"):
        settings_from_config(load_config(str(p)))


def test_settings_from_mapping_keeps_defaults() -> None:
    base = CalculatorSettings(precision=PrecisionTier.BASIC)
    s = CalculatorSettings.from_mapping({"tradition": "extended", "precision": None}, defaults=base)
    assert s.precision is PrecisionTier.BASIC
    assert s.to_dict() == {"precision": "basic", "tradition": "extended", "refraction_model": "bennett"}


def test_logging_observer_messages(caplog) -> None:
    obs = LoggingObserver()
    with caplog.at_level(logging.DEBUG, logger="brahma_muhurat"):
        obs.degraded("sunrise", "kernel: missing", latitude=1.0)
        obs.batch_item_failed(2, "2024-02-30", ValueError("bad date"))
    text = caplog.text
    assert "degraded result at sunrise" in text
    assert "batch item 2" in text


def test_composite_observer_fans_out() -> None:
    seen = []

    class _Spy(NullObserver):
        def degraded(self, stage, reason, **context):
            seen.append(stage)

    CompositeObserver([_Spy(), NullObserver(), _Spy()]).degraded("position", "x")
    assert seen == ["position", "position"]
