# tests/test_ephemeris_adapter.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from brahma_muhurat.core.ephemeris_adapter import Config, EphemerisAdapter, EphemerisError


def _adapter(tmp_path, **kw) -> EphemerisAdapter:
    return EphemerisAdapter(Config(kernel_path="", data_dir=str(tmp_path), allow_download=False, **kw))


def test_missing_kernel_is_a_kernel_error(tmp_path) -> None:
    adapter = _adapter(tmp_path)
    with pytest.raises(EphemerisError) as ei:
        adapter._load()
    assert ei.value.stage == "kernel"
    assert "BM_EPHEMERIS" in ei.value.message
    assert adapter.available() is False


def test_lfs_pointer_is_rejected(tmp_path) -> None:
    (tmp_path / "de421.bsp").write_text(
        "version https://git-lfs.github.com/spec/v1\noid sha256:abc\nsize 17000000\n"
    )
    with pytest.raises(EphemerisError, match="LFS pointer"):
        _adapter(tmp_path)._load()


def test_queries_without_kernel_raise_before_searching(tmp_path) -> None:
    start = datetime(2024, 2, 18, tzinfo=timezone.utc)
    adapter = _adapter(tmp_path)
    with pytest.raises(EphemerisError):
        adapter.sunrise(25.3, 83.0, 80.0, start, start + timedelta(days=1))
    with pytest.raises(EphemerisError):
        adapter.position(25.3, 83.0, 80.0, start)


def test_diagnostics_report_skyfield_version(tmp_path) -> None:
    diag = _adapter(tmp_path).diagnostics()
    assert isinstance(diag["skyfield"], str) and diag["skyfield"]
    assert diag["kernel_loaded"] is False
    assert diag["kernel_path"] is None
    assert diag["allow_download"] is False
